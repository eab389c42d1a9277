"""Task repository interface."""

from datetime import date
from typing import Protocol

from dzisiaj.core.tasks import Task


class TaskRepository(Protocol):
    """Interface for reading and updating tasks."""

    def fetch(
        self,
        user: str,
        date_from: date | None = None,
        date_to: date | None = None,
        show_completed: bool = True,
    ) -> list[Task]:
        """Tasks owned by or assigned to the user, optionally by due date."""
        ...

    def set_scheduled_time(self, task_id: str, scheduled_time: str | None) -> None:
        """Place a task on the day plan, or clear it with None."""
        ...

    def set_status(self, task_id: str, status: str) -> None:
        ...
