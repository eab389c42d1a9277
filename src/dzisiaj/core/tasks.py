"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime

from .events import parse_timestamp

PENDING = "pending"
ACCEPTED = "accepted"
DONE = "done"
WAITING_FOR_ACCEPTANCE = "waiting for acceptance"

ACTIVE_STATUSES = (PENDING, ACCEPTED)


@dataclass
class Task:
    """A task as stored in the tasks table."""

    id: str
    title: str
    priority: int | None = None
    category: str = ""
    description: str = ""
    due_date: date | None = None
    deadline_date: date | None = None
    status: str = PENDING
    scheduled_time: datetime | None = None
    user_name: str = ""
    for_user: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status == DONE

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_time is not None

    @classmethod
    def from_row(cls, data: dict) -> "Task":
        """Create Task from a store row."""
        scheduled = data.get("scheduled_time")
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            priority=data.get("priority"),
            category=data.get("category") or "",
            description=data.get("description") or "",
            due_date=_parse_date(data.get("due_date")),
            deadline_date=_parse_date(data.get("deadline_date")),
            status=data.get("status") or PENDING,
            scheduled_time=parse_timestamp(scheduled) if scheduled else None,
            user_name=data.get("user_name") or "",
            for_user=data.get("for_user") or None,
        )


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value.split("T")[0].split(" ")[0])


def active_tasks(tasks: list[Task]) -> list[Task]:
    """Tasks that are pending or accepted."""
    return [t for t in tasks if t.is_active]


def scheduled_tasks(tasks: list[Task]) -> list[Task]:
    """Active tasks placed on the day plan."""
    return [t for t in active_tasks(tasks) if t.is_scheduled]


def _acceptance_rank(task: Task) -> int:
    # Tasks waiting for acceptance float to the top
    return 0 if task.status == WAITING_FOR_ACCEPTANCE else 1


def sort_tasks(tasks: list[Task], sort_order: str = "priority") -> list[Task]:
    """
    Sort tasks by the user's configured order, done tasks last.

    Pure function - no I/O. Missing due dates sort first, missing priority last.
    """

    def due(t: Task) -> date:
        return t.due_date or date.min

    match sort_order:
        case "due_date":
            key = lambda t: (_acceptance_rank(t), due(t))
        case "due_date_alphabetical":
            key = lambda t: (_acceptance_rank(t), due(t), t.title.casefold())
        case "priority":
            key = lambda t: (
                _acceptance_rank(t),
                t.priority if t.priority is not None else float("inf"),
            )
        case _:
            key = lambda t: (_acceptance_rank(t), t.title.casefold())

    ordered = sorted(tasks, key=key)
    return sorted(ordered, key=lambda t: t.is_done)
