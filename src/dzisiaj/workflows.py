"""Shared workflow layer between the CLI and the reminder loop.

Every read is one complete fetch from the store. Every mutation is a single
write whose outcome comes back as a WriteResult; callers decide whether to
report it and re-fetch.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .adapters import (
    StoreError,
    SupabaseClient,
    SupabaseEventRepository,
    SupabaseHabitRepository,
    SupabasePlaceRepository,
    SupabaseReminderRepository,
    SupabaseSchemaRepository,
    SupabaseTaskRepository,
)
from .adapters.ics import event_to_ics, export_filename, parse_ics
from .adapters.places import parse_saved_places
from .config import Config, ConfigurationError
from .core.events import Event, expand_rows, sort_events_by_start
from .core.notifications import (
    NotificationConfig,
    NotificationScheduler,
    Reminder,
    ScheduledNotification,
    merge_with_defaults,
    visible_reminders,
)
from .core.planner import DayPlan, DragController, compose_day_plan, scheduled_timestamp
from .core.tasks import DONE, Task, sort_tasks
from .ports import (
    EventRepository,
    HabitRepository,
    PlaceRepository,
    ReminderRepository,
    SchemaRepository,
    TaskRepository,
)

logger = logging.getLogger(__name__)

# Covers the longest default calendar reminder (one week ahead)
NOTIFICATION_HORIZON = timedelta(days=8)


@dataclass
class Store:
    """Repositories bound to one store client."""

    events: EventRepository
    tasks: TaskRepository
    schemas: SchemaRepository
    reminders: ReminderRepository
    habits: HabitRepository
    places: PlaceRepository


def open_store(config: Config) -> Store:
    """Build the Supabase-backed store. Raises ConfigurationError if unset."""
    client = SupabaseClient.from_config(config)
    return Store(
        events=SupabaseEventRepository(client),
        tasks=SupabaseTaskRepository(client),
        schemas=SupabaseSchemaRepository(client),
        reminders=SupabaseReminderRepository(client),
        habits=SupabaseHabitRepository(client),
        places=SupabasePlaceRepository(client),
    )


@dataclass
class WriteResult:
    """Outcome of a store mutation."""

    ok: bool
    error: str | None = None
    count: int = 0

    @classmethod
    def success(cls, count: int = 1) -> "WriteResult":
        return cls(ok=True, count=count)

    @classmethod
    def failure(cls, error: str, count: int = 0) -> "WriteResult":
        return cls(ok=False, error=error, count=count)


def _write(action: str, write) -> WriteResult:
    """Run a single write, turning store failures into a failed result."""
    try:
        write()
    except StoreError as e:
        logger.error(f"Failed to {action}: {e}")
        return WriteResult.failure(str(e))
    return WriteResult.success()


def timezone_for(config: Config) -> ZoneInfo:
    try:
        return ZoneInfo(config.timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown TIMEZONE: {config.timezone}") from e


def today(config: Config) -> date:
    """Current date in the configured timezone."""
    return datetime.now(timezone_for(config)).date()


# ============== Reads ==============


def fetch_events(
    repo: EventRepository,
    user: str,
    start: date | datetime,
    end: date | datetime,
    tz: tzinfo = timezone.utc,
) -> list[Event]:
    """
    Fetch the user's raw event rows and expand them into the window.

    Bare dates are whole days in `tz`.
    """
    rows = repo.fetch_raw(user)
    return sort_events_by_start(expand_rows(rows, start, end, tz))


def fetch_tasks(
    store: Store,
    config: Config,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[Task]:
    tasks = store.tasks.fetch(
        config.user_email,
        date_from=date_from,
        date_to=date_to,
        show_completed=config.show_completed,
    )
    return sort_tasks(tasks, config.task_sort_order)


def build_day_plan(store: Store, config: Config, day: date) -> tuple[DayPlan, list[Task]]:
    """
    Fetch everything the planner needs for a day and compose it.

    Returns the plan and the tasks due up to that day, the latter being
    what a drag can pick from.
    """
    user = config.user_email
    tz = timezone_for(config)
    events = fetch_events(store.events, user, day, day, tz)
    schemas = store.schemas.fetch(user)
    tasks = fetch_tasks(store, config, date_to=day)

    plan = compose_day_plan(
        day,
        events,
        schemas,
        tasks,
        first_hour=config.planner_first_hour,
        last_hour=config.planner_last_hour,
        tz=tz,
    )
    return plan, tasks


# ============== Mutations ==============


def schedule_task(
    store: Store,
    task_id: str,
    day: date,
    slot_label: str,
    tz: tzinfo = timezone.utc,
) -> WriteResult:
    """Place a task on the plan at the given slot (wall clock in `tz`) of the day."""
    scheduled = scheduled_timestamp(day, slot_label, tz)
    result = _write(
        f"schedule task {task_id}",
        lambda: store.tasks.set_scheduled_time(task_id, scheduled),
    )
    if result.ok:
        logger.info(f"Scheduled task {task_id} at {scheduled}")
    return result


def drag_controller(config: Config, day: date, tasks: list[Task]) -> DragController:
    """Drag state for a planner view of `day`, slots read in the configured timezone."""
    return DragController(day, tasks, tz=timezone_for(config))


def apply_drop(store: Store, controller: DragController, slot_label: str | None) -> WriteResult | None:
    """Finish a drag. Returns None when the drop does not lead to a write."""
    request = controller.drop(slot_label)
    if request is None:
        return None
    return _write(
        f"schedule task {request.task_id}",
        lambda: store.tasks.set_scheduled_time(request.task_id, request.scheduled_time),
    )


def unschedule_task(store: Store, task_id: str) -> WriteResult:
    return _write(
        f"unschedule task {task_id}",
        lambda: store.tasks.set_scheduled_time(task_id, None),
    )


def mark_task_done(store: Store, task_id: str) -> WriteResult:
    return _write(f"complete task {task_id}", lambda: store.tasks.set_status(task_id, DONE))


def delete_event(store: Store, event_id: str) -> WriteResult:
    """Delete an event. Occurrence ids delete the whole series."""
    return _write(f"delete event {event_id}", lambda: store.events.delete(event_id))


def edit_event(store: Store, event: Event, user: str) -> WriteResult:
    """Save an event. Editing an occurrence rewrites its template."""
    return _write(f"edit event {event.id}", lambda: store.events.edit(event, user))


# ============== File import/export ==============


def import_ics(store: Store, config: Config, content: str | bytes) -> WriteResult:
    """
    Import every VEVENT of an .ics file as a new event.

    Each event is written independently: one failed insert is logged and
    the rest of the file is still imported.
    """
    try:
        events = parse_ics(content)
    except ValueError as e:
        logger.error(f"Failed to parse calendar file: {e}")
        return WriteResult.failure(f"Invalid calendar file: {e}")

    added = 0
    failed = 0
    for event in events:
        try:
            store.events.add(event, config.user_email)
            added += 1
        except StoreError as e:
            failed += 1
            logger.warning(f"Failed to import event {event.title!r}: {e}")

    logger.info(f"Imported {added} of {len(events)} events")
    if failed:
        return WriteResult.failure(f"{failed} of {len(events)} events failed to import", count=added)
    return WriteResult.success(added)


def export_event(store: Store, event_id: str) -> tuple[str, bytes] | None:
    """Export the stored event behind an id as (filename, .ics bytes)."""
    event = store.events.fetch_template(event_id)
    if event is None:
        return None
    return export_filename(event), event_to_ics(event)


def import_places(store: Store, config: Config, content: str, auto_tag: bool = True) -> WriteResult:
    """Import a Google Maps saved-places export in one write."""
    try:
        places = parse_saved_places(content, auto_tag=auto_tag)
    except ValueError as e:
        logger.error(f"Failed to parse places file: {e}")
        return WriteResult.failure(f"Invalid places file: {e}")

    if not places:
        return WriteResult.success(0)

    try:
        count = store.places.insert_many(places, config.user_email)
    except StoreError as e:
        logger.error(f"Failed to import places: {e}")
        return WriteResult.failure(str(e))
    return WriteResult.success(count)


# ============== Notifications ==============


def notification_settings(config: Config) -> NotificationConfig:
    """The NOTIFICATIONS setting merged over defaults. Raises ConfigurationError if invalid."""
    try:
        return merge_with_defaults(config.notifications)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def collect_notifications(
    store: Store,
    config: Config,
    now: datetime | None = None,
) -> list[ScheduledNotification]:
    """Every upcoming notification for the configured user, earliest first."""
    notification_config = notification_settings(config)
    now = now or datetime.now(timezone_for(config))
    user = config.user_email

    tasks = store.tasks.fetch(user, show_completed=False)
    reminders = store.reminders.fetch(user)
    habits = store.habits.fetch_day(user, now.date())
    events = fetch_events(store.events, user, now, now + NOTIFICATION_HORIZON)

    scheduler = NotificationScheduler(notification_config, now=now)
    return scheduler.all_notifications(tasks, reminders, habits, events)


def due_reminders(store: Store, config: Config, day: date | None = None) -> list[Reminder]:
    """Repeating reminders due on or before the day."""
    return visible_reminders(store.reminders.fetch(config.user_email), day or today(config))
