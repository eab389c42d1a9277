"""Supabase-backed repositories for events, tasks, day schemas, reminders, habits and places."""

import logging
from datetime import date

from dzisiaj.core.events import Event, original_id
from dzisiaj.core.notifications import DailyHabits, Reminder
from dzisiaj.core.places import Place
from dzisiaj.core.planner import DaySchema
from dzisiaj.core.tasks import DONE, Task

from .supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


def _parse_rows(rows: list[dict], factory, kind: str) -> list:
    """Build domain objects, logging and skipping rows that do not parse."""
    parsed = []
    for row in rows:
        try:
            parsed.append(factory(row))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Skipping malformed {kind} {row.get('id')!r}: {e}")
    return parsed


class SupabaseEventRepository:
    """
    Event store accessor.

    Implements EventRepository protocol. Writes always target the template
    record: synthesized occurrence ids are mapped back with original_id().
    """

    TABLE = "events"

    def __init__(self, client: SupabaseClient):
        self.client = client

    def fetch_raw(self, user: str) -> list[dict]:
        """Rows the user owns or that were shared with them."""
        return self.client.select(self.TABLE, or_eq=[("user_name", user), ("share", user)])

    def fetch_template(self, event_id: str) -> Event | None:
        rows = self.client.select(self.TABLE, eq={"id": original_id(event_id)})
        events = _parse_rows(rows, Event.from_row, "event")
        return events[0] if events else None

    def add(self, event: Event, user: str) -> None:
        row = event.to_row()
        row["user_name"] = user
        self.client.insert(self.TABLE, row)

    def edit(self, event: Event, user: str) -> None:
        row = event.to_row()
        row["user_name"] = user
        self.client.update(self.TABLE, row, eq={"id": original_id(event.id)})

    def delete(self, event_id: str) -> None:
        self.client.delete(self.TABLE, eq={"id": original_id(event_id)})


class SupabaseTaskRepository:
    """Implements TaskRepository protocol."""

    TABLE = "tasks"

    def __init__(self, client: SupabaseClient):
        self.client = client

    def fetch(
        self,
        user: str,
        date_from: date | None = None,
        date_to: date | None = None,
        show_completed: bool = True,
    ) -> list[Task]:
        filters = []
        if date_from:
            filters.append(("due_date", "gte", date_from.isoformat()))
        if date_to:
            filters.append(("due_date", "lte", date_to.isoformat()))
        if not show_completed:
            filters.append(("status", "neq", DONE))

        rows = self.client.select(
            self.TABLE,
            or_eq=[("user_name", user), ("for_user", user)],
            filters=filters,
        )
        return _parse_rows(rows, Task.from_row, "task")

    def set_scheduled_time(self, task_id: str, scheduled_time: str | None) -> None:
        self.client.update(self.TABLE, {"scheduled_time": scheduled_time}, eq={"id": task_id})

    def set_status(self, task_id: str, status: str) -> None:
        self.client.update(self.TABLE, {"status": status}, eq={"id": task_id})


class SupabaseSchemaRepository:
    """Implements SchemaRepository protocol."""

    TABLE = "day_schemas"

    def __init__(self, client: SupabaseClient):
        self.client = client

    def fetch(self, user: str) -> list[DaySchema]:
        rows = self.client.select(self.TABLE, eq={"user_name": user})
        return _parse_rows(rows, DaySchema.from_row, "day schema")


class SupabaseReminderRepository:
    """Implements ReminderRepository protocol."""

    TABLE = "reminders"

    def __init__(self, client: SupabaseClient):
        self.client = client

    def fetch(self, user: str) -> list[Reminder]:
        rows = self.client.select(self.TABLE, eq={"user_email": user}, order="data_poczatkowa.asc")
        return _parse_rows(rows, Reminder.from_row, "reminder")


class SupabaseHabitRepository:
    """Implements HabitRepository protocol."""

    TABLE = "daily_habits"

    def __init__(self, client: SupabaseClient):
        self.client = client

    def fetch_day(self, user: str, day: date) -> DailyHabits | None:
        rows = self.client.select(self.TABLE, eq={"date": day.isoformat(), "user_name": user})
        habits = _parse_rows(rows, DailyHabits.from_row, "habits")
        return habits[0] if habits else None


class SupabasePlaceRepository:
    """Implements PlaceRepository protocol."""

    TABLE = "places"

    def __init__(self, client: SupabaseClient):
        self.client = client

    def insert_many(self, places: list[Place], user: str) -> int:
        if not places:
            return 0
        rows = self.client.insert(self.TABLE, [p.to_row(user) for p in places])
        return len(rows)
