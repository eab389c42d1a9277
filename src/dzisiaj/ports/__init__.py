"""Ports - interfaces/protocols for external dependencies."""

from .event_repo import EventRepository
from .task_repo import TaskRepository
from .schema_repo import SchemaRepository
from .reminder_repo import HabitRepository, ReminderRepository
from .place_repo import PlaceRepository

__all__ = [
    "EventRepository",
    "TaskRepository",
    "SchemaRepository",
    "ReminderRepository",
    "HabitRepository",
    "PlaceRepository",
]
