"""Functional core - pure business logic with no I/O."""

from .events import Event, Repeat, expand_repeating_events, expand_rows, original_id
from .tasks import Task, active_tasks, sort_tasks
from .planner import DayPlan, DaySchema, DragController, PlanItem, PlanItemKind, compose_day_plan
from .notifications import NotificationConfig, NotificationScheduler, ScheduledNotification
from .places import Place

__all__ = [
    # Events
    "Event",
    "Repeat",
    "expand_repeating_events",
    "expand_rows",
    "original_id",
    # Tasks
    "Task",
    "active_tasks",
    "sort_tasks",
    # Planner
    "DayPlan",
    "DaySchema",
    "DragController",
    "PlanItem",
    "PlanItemKind",
    "compose_day_plan",
    # Notifications
    "NotificationConfig",
    "NotificationScheduler",
    "ScheduledNotification",
    # Places
    "Place",
]
