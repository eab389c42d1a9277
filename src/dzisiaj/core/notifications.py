"""Pure notification scheduling - computes reminder times, no I/O dependencies."""

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, time, timedelta

from .events import Event
from .tasks import Task

HABIT_META_KEYS = ("id", "date", "user_name", "water_amount", "daily_spending")


@dataclass
class TaskNotificationConfig:
    enabled: bool = True
    reminder_minutes: list[int] = field(default_factory=list)
    daily_digest: bool = True
    digest_time: str = "08:00"


@dataclass
class ReminderNotificationConfig:
    enabled: bool = True
    exact_time: bool = True


@dataclass
class HabitNotificationConfig:
    enabled: bool = True
    reminder_time: str = "20:00"


@dataclass
class CalendarNotificationConfig:
    enabled: bool = True
    # A week, a day, an hour and five minutes before the event
    reminder_minutes: list[int] = field(default_factory=lambda: [10080, 1440, 60, 5])


@dataclass
class NotificationConfig:
    """Per-user notification settings."""

    tasks: TaskNotificationConfig = field(default_factory=TaskNotificationConfig)
    reminders: ReminderNotificationConfig = field(default_factory=ReminderNotificationConfig)
    habits: HabitNotificationConfig = field(default_factory=HabitNotificationConfig)
    calendar: CalendarNotificationConfig = field(default_factory=CalendarNotificationConfig)


_SECTION_TYPES = {
    "tasks": TaskNotificationConfig,
    "reminders": ReminderNotificationConfig,
    "habits": HabitNotificationConfig,
    "calendar": CalendarNotificationConfig,
}


def _check_type(section: str, key: str, value, expected) -> None:
    if expected is bool:
        ok = isinstance(value, bool)
    elif expected is str:
        ok = isinstance(value, str)
        if ok:
            _parse_hhmm(value)
    else:
        ok = isinstance(value, list) and all(isinstance(v, int) and not isinstance(v, bool) for v in value)
    if not ok:
        raise ValueError(f"Invalid notification setting {section}.{key}: {value!r}")


def merge_with_defaults(user_config: dict | None) -> NotificationConfig:
    """
    Overlay a partial user config (JSON-shaped dict) on the defaults.

    Keys may be snake_case or the camelCase used by the web client.
    Raises ValueError on unknown sections or wrongly typed values.
    """
    config = NotificationConfig()
    for section, values in (user_config or {}).items():
        if section not in _SECTION_TYPES:
            raise ValueError(f"Unknown notification section: {section}")
        current = getattr(config, section)
        known = {f.name: f for f in fields(current)}
        updates = {}
        for key, value in (values or {}).items():
            name = _snake_case(key)
            if name not in known:
                raise ValueError(f"Unknown notification setting {section}.{key}")
            _check_type(section, name, value, type(getattr(current, name)))
            updates[name] = value
        setattr(config, section, replace(current, **updates))
    return config


def validate(data) -> bool:
    """Check that a JSON-shaped dict is a complete, well-typed notification config."""
    if not isinstance(data, dict):
        return False
    for section, section_type in _SECTION_TYPES.items():
        values = data.get(section)
        if not isinstance(values, dict):
            return False
        values = {_snake_case(k): v for k, v in values.items()}
        for f in fields(section_type):
            if f.name not in values:
                return False
            default = getattr(section_type(), f.name)
            try:
                _check_type(section, f.name, values[f.name], type(default))
            except ValueError:
                return False
    return True


def _snake_case(key: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in key)


def _parse_hhmm(value: str) -> time:
    hours, _, minutes = value.partition(":")
    return time(int(hours), int(minutes or 0))


@dataclass
class ScheduledNotification:
    """A notification to deliver at a computed time."""

    id: str
    type: str
    title: str
    body: str
    scheduled_time: datetime
    data: dict = field(default_factory=dict)
    url: str = "/"


@dataclass
class Reminder:
    """A repeating reminder: due every interval_days after it was last done."""

    id: str
    title: str
    start_date: date
    interval_days: int
    done: date | None = None

    def next_due(self) -> date:
        if self.done:
            return self.done + timedelta(days=self.interval_days)
        return self.start_date

    @classmethod
    def from_row(cls, data: dict) -> "Reminder":
        done = data.get("done")
        return cls(
            id=str(data["id"]),
            title=data.get("tytul") or data.get("title") or "",
            start_date=date.fromisoformat(str(data["data_poczatkowa"])[:10]),
            interval_days=int(data.get("powtarzanie") or 0),
            done=date.fromisoformat(str(done)[:10]) if done else None,
        )


@dataclass
class DailyHabits:
    """One day's habit checklist."""

    day: date
    flags: dict[str, bool] = field(default_factory=dict)
    water_amount: float = 0
    daily_spending: float = 0

    def undone(self) -> list[str]:
        return [name for name, value in self.flags.items() if value is False]

    @classmethod
    def from_row(cls, data: dict) -> "DailyHabits":
        return cls(
            day=date.fromisoformat(str(data["date"])[:10]),
            flags={k: v for k, v in data.items() if k not in HABIT_META_KEYS and isinstance(v, bool)},
            water_amount=data.get("water_amount") or 0,
            daily_spending=data.get("daily_spending") or 0,
        )


def visible_reminders(reminders: list[Reminder], today: date) -> list[Reminder]:
    """Reminders that have started and are due today or overdue."""
    return [r for r in reminders if r.start_date <= today and r.next_due() <= today]


class NotificationScheduler:
    """
    Computes the notifications to deliver from user configuration.

    `now` should be timezone-aware in the user's timezone: wall-clock times
    such as the 09:00 due-day reminder are interpreted in that zone.
    """

    def __init__(self, config: NotificationConfig | None = None, now: datetime | None = None):
        self.config = config or NotificationConfig()
        self.now = now or datetime.now().astimezone()

    def _at(self, day: date, clock: time) -> datetime:
        return datetime.combine(day, clock, tzinfo=self.now.tzinfo)

    def _next_daily(self, clock: str) -> datetime:
        """Today at the given time, or tomorrow if it already passed."""
        moment = self._at(self.now.date(), _parse_hhmm(clock))
        if moment < self.now:
            moment += timedelta(days=1)
        return moment

    def task_notifications(self, tasks: list[Task]) -> list[ScheduledNotification]:
        """Reminders before each open task's due date, plus one at 09:00 on the day."""
        if not self.config.tasks.enabled:
            return []

        notifications = []
        for task in tasks:
            if task.is_done or not task.due_date:
                continue

            due = self._at(task.due_date, time.min)
            for minutes in self.config.tasks.reminder_minutes:
                when = due - timedelta(minutes=minutes)
                if when > self.now:
                    notifications.append(
                        ScheduledNotification(
                            id=f"task-{task.id}-{minutes}",
                            type="task",
                            title=f"Zadanie: {task.title}",
                            body=f"Za {minutes} minut kończy się termin",
                            scheduled_time=when,
                            data={"taskId": task.id},
                            url="/tasks",
                        )
                    )

            if due > self.now:
                when = self._at(task.due_date, time(9, 0))
                notifications.append(
                    ScheduledNotification(
                        id=f"task-{task.id}-due",
                        type="task",
                        title=f"Termin dzisiaj: {task.title}",
                        body=task.description or "Pamiętaj o wykonaniu tego zadania",
                        scheduled_time=when,
                        data={"taskId": task.id},
                        url="/tasks",
                    )
                )

        return notifications

    def daily_digest(self, tasks: list[Task]) -> ScheduledNotification | None:
        """Morning summary of today's open tasks."""
        if not self.config.tasks.enabled or not self.config.tasks.daily_digest:
            return None

        today = self.now.date()
        todays = [t for t in tasks if not t.is_done and t.due_date == today]
        if not todays:
            return None

        return ScheduledNotification(
            id="task-digest",
            type="digest",
            title="Dzisiaj - Twoje zadania",
            body=f"Masz {len(todays)} zadań na dziś",
            scheduled_time=self._next_daily(self.config.tasks.digest_time),
            url="/tasks",
        )

    def reminder_notifications(self, reminders: list[Reminder]) -> list[ScheduledNotification]:
        """One 09:00 notification on each reminder's next due day."""
        if not self.config.reminders.enabled:
            return []

        notifications = []
        today = self.now.date()
        for reminder in reminders:
            next_due = reminder.next_due()
            if next_due < today:
                continue
            when = self._at(next_due, time(9, 0))
            if when > self.now:
                notifications.append(
                    ScheduledNotification(
                        id=f"reminder-{reminder.id}",
                        type="reminder",
                        title=f"Przypomnienie: {reminder.title}",
                        body=f"Powtarza się co {reminder.interval_days} dni",
                        scheduled_time=when,
                        data={"reminderId": reminder.id},
                        url="/tasks",
                    )
                )
        return notifications

    def habit_reminder(self, habits: DailyHabits) -> ScheduledNotification | None:
        """Evening nudge when some habits are still unchecked."""
        if not self.config.habits.enabled:
            return None

        undone = habits.undone()
        if not undone:
            return None

        return ScheduledNotification(
            id="habit-reminder",
            type="habit",
            title="Dzisiaj - Nawyki",
            body=f"Pamiętaj o {len(undone)} nawykach",
            scheduled_time=self._next_daily(self.config.habits.reminder_time),
            data={"habits": undone},
            url="/tasks",
        )

    def calendar_notifications(self, events: list[Event]) -> list[ScheduledNotification]:
        """Reminders ahead of each event occurrence."""
        if not self.config.calendar.enabled:
            return []

        notifications = []
        for event in events:
            for minutes in self.config.calendar.reminder_minutes:
                when = event.start_time - timedelta(minutes=minutes)
                if when <= self.now:
                    continue
                place = f" w {event.place}" if event.place else ""
                notifications.append(
                    ScheduledNotification(
                        id=f"calendar-{event.id}-{minutes}",
                        type="calendar",
                        title=f"Wydarzenie: {event.title}",
                        body=f"Za {minutes} minut{place}",
                        scheduled_time=when,
                        data={"eventId": event.id},
                        url="/calendar",
                    )
                )
        return notifications

    def all_notifications(
        self,
        tasks: list[Task],
        reminders: list[Reminder],
        habits: DailyHabits | None,
        events: list[Event],
    ) -> list[ScheduledNotification]:
        """Every pending notification, earliest first."""
        notifications = [
            *self.task_notifications(tasks),
            *self.reminder_notifications(reminders),
            *self.calendar_notifications(events),
        ]

        digest = self.daily_digest(tasks)
        if digest:
            notifications.append(digest)

        if habits:
            habit = self.habit_reminder(habits)
            if habit:
                notifications.append(habit)

        return sorted(notifications, key=lambda n: n.scheduled_time)
