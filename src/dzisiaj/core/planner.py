"""Pure daily planner logic - hour-bucketed agenda, no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone, tzinfo
from enum import Enum

from .events import Event, events_for_day, format_timestamp, parse_timestamp
from .tasks import Task, scheduled_tasks

FIRST_HOUR = 6
LAST_HOUR = 23


class PlanItemKind(Enum):
    """Source of a plan item, drives rendering and the allowed actions."""

    EVENT = "event"
    SCHEMA = "schema"
    TASK = "task"


_ACTIONS = {
    PlanItemKind.EVENT: ("delete",),
    PlanItemKind.SCHEMA: (),
    PlanItemKind.TASK: ("done", "unschedule"),
}


@dataclass
class ScheduleEntry:
    """A fixed, time-labeled routine entry, e.g. 07:00 wake up."""

    time: str
    label: str

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduleEntry":
        return cls(time=str(data.get("time") or ""), label=data.get("label") or "")


@dataclass
class DaySchema:
    """A weekday-scoped routine. Days use store numbering: 0 = Sunday."""

    id: str
    name: str
    days: list[int] = field(default_factory=list)
    entries: list[ScheduleEntry] = field(default_factory=list)

    def applies_to(self, day: date) -> bool:
        return store_weekday(day) in self.days

    @classmethod
    def from_row(cls, data: dict) -> "DaySchema":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            days=[int(d) for d in data.get("days") or []],
            entries=[ScheduleEntry.from_dict(e) for e in data.get("entries") or []],
        )


@dataclass
class PlanItem:
    """One entry in a planner slot."""

    id: str
    title: str
    kind: PlanItemKind
    data: Event | Task | ScheduleEntry | None = None

    @property
    def actions(self) -> tuple[str, ...]:
        return _ACTIONS[self.kind]


@dataclass
class DayPlan:
    """Hourly slots for a single day, in display order."""

    day: date
    slots: dict[str, list[PlanItem]]

    def items(self) -> list[PlanItem]:
        return [item for items in self.slots.values() for item in items]

    def is_empty(self) -> bool:
        return not any(self.slots.values())


@dataclass
class ScheduleRequest:
    """A pending write placing a task on the plan."""

    task_id: str
    scheduled_time: str


def store_weekday(day: date) -> int:
    """Weekday in store numbering (0 = Sunday ... 6 = Saturday)."""
    return (day.weekday() + 1) % 7


def slot_labels(first_hour: int = FIRST_HOUR, last_hour: int = LAST_HOUR) -> list[str]:
    """Hourly slot labels, e.g. ["06:00", ..., "23:00"]."""
    return [f"{h:02d}:00" for h in range(first_hour, last_hour + 1)]


def slot_for(value: datetime | str, tz: tzinfo = timezone.utc) -> str:
    """
    Hour-floor slot label for a datetime (read on a wall clock in `tz`) or an
    "HH:MM" string. Raises ValueError when the string has no numeric hour.
    """
    if isinstance(value, datetime):
        hour = parse_timestamp(value).astimezone(tz).hour
    else:
        hour = int(value.split(":")[0])
    return f"{hour:02d}:00"


def schema_for_day(schemas: list[DaySchema], day: date) -> DaySchema | None:
    """First schema whose weekday set includes the day."""
    return next((s for s in schemas if s.applies_to(day)), None)


def compose_day_plan(
    day: date,
    events: list[Event],
    schemas: list[DaySchema],
    tasks: list[Task],
    first_hour: int = FIRST_HOUR,
    last_hour: int = LAST_HOUR,
    tz: tzinfo = timezone.utc,
) -> DayPlan:
    """
    Bucket routine entries, event occurrences and scheduled tasks by hour.

    Pure function - no I/O. Within a slot, schema entries come first, then
    events, then tasks, each in input order. Event and task times are bucketed
    by their hour in `tz`, and only occurrences starting on `day` there are
    placed. Items whose hour falls outside the slot range, and routine entries
    without a readable time, are dropped.
    """
    slots: dict[str, list[PlanItem]] = {label: [] for label in slot_labels(first_hour, last_hour)}

    def place(label: str, item: PlanItem) -> None:
        if label in slots:
            slots[label].append(item)

    schema = schema_for_day(schemas, day)
    if schema:
        for idx, entry in enumerate(schema.entries):
            try:
                label = slot_for(entry.time)
            except ValueError:
                continue
            place(
                label,
                PlanItem(id=f"schema-{idx}", title=entry.label, kind=PlanItemKind.SCHEMA, data=entry),
            )

    for event in events_for_day(events, day, tz):
        place(
            slot_for(event.start_time, tz),
            PlanItem(id=event.id, title=event.title, kind=PlanItemKind.EVENT, data=event),
        )

    for task in scheduled_tasks(tasks):
        place(
            slot_for(task.scheduled_time, tz),
            PlanItem(id=task.id, title=task.title, kind=PlanItemKind.TASK, data=task),
        )

    return DayPlan(day=day, slots=slots)


def scheduled_timestamp(day: date, slot_label: str, tz: tzinfo = timezone.utc) -> str:
    """Store (UTC) timestamp for a task dropped onto a slot of the given day in `tz`."""
    hours, _, minutes = slot_label.partition(":")
    moment = datetime.combine(day, time(int(hours), int(minutes or 0)), tzinfo=tz)
    return format_timestamp(moment)


class DragController:
    """
    Drag state for one planner view.

    Drag ids are "task-{id}" for unscheduled tasks and "scheduled-task-{id}"
    for tasks already on the plan.
    """

    SCHEDULED_PREFIX = "scheduled-task-"
    TASK_PREFIX = "task-"

    def __init__(self, day: date, tasks: list[Task], tz: tzinfo = timezone.utc):
        self.day = day
        self.tz = tz
        self._tasks = {t.id: t for t in tasks}
        self.dragged: Task | None = None

    @classmethod
    def task_id_from_drag_id(cls, drag_id: str) -> str | None:
        if drag_id.startswith(cls.SCHEDULED_PREFIX):
            return drag_id[len(cls.SCHEDULED_PREFIX):]
        if drag_id.startswith(cls.TASK_PREFIX):
            return drag_id[len(cls.TASK_PREFIX):]
        return None

    def start(self, drag_id: str) -> Task | None:
        """Begin dragging. Unknown ids leave nothing dragged."""
        task_id = self.task_id_from_drag_id(drag_id)
        self.dragged = self._tasks.get(task_id) if task_id is not None else None
        return self.dragged

    def drop(self, slot_label: str | None) -> ScheduleRequest | None:
        """Finish dragging; returns the write to perform, if any."""
        task, self.dragged = self.dragged, None
        if task is None or not slot_label:
            return None
        return ScheduleRequest(task_id=task.id, scheduled_time=scheduled_timestamp(self.day, slot_label, self.tz))

    def cancel(self) -> None:
        self.dragged = None
