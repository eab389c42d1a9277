"""Dzisiaj CLI - daily planner, calendar and reminders."""

import json
import logging
import sys
from datetime import date, datetime, timedelta
from functools import wraps
from pathlib import Path

import click

from .adapters import StoreError
from .config import ConfigurationError, load_config
from .core.events import Event, format_timestamp
from .core.planner import DayPlan
from .core.tasks import Task
from .workflows import (
    WriteResult,
    build_day_plan,
    collect_notifications,
    delete_event,
    due_reminders,
    export_event,
    fetch_events,
    import_ics,
    import_places,
    mark_task_done,
    open_store,
    schedule_task,
    timezone_for,
    today,
    unschedule_task,
)


def _handle_errors(command):
    """Report configuration and store failures as `Error: ...` and exit 1."""

    @wraps(command)
    def wrapper(*args, **kwargs):
        try:
            return command(*args, **kwargs)
        except (ConfigurationError, StoreError) as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    return wrapper


def _parse_date(value: str | None, default: date) -> date:
    if not value:
        return default
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


def _report(result: WriteResult, message: str) -> None:
    if not result.ok:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)
    click.echo(message)


def _event_json(e: Event) -> dict:
    return {
        "id": e.id,
        "title": e.title,
        "start": format_timestamp(e.start_time),
        "end": format_timestamp(e.end_time),
        "repeat": e.repeat.value,
        "place": e.place,
        "description": e.description,
    }


def _task_json(t: Task) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "priority": t.priority,
        "status": t.status,
        "due_date": t.due_date.isoformat() if t.due_date else None,
        "scheduled_time": format_timestamp(t.scheduled_time) if t.scheduled_time else None,
    }


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Dzisiaj - daily planner and reminders."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.WARNING,
    )


@main.command()
@click.option("--from", "date_from", default=None, help="First day (YYYY-MM-DD), defaults to today")
@click.option("--to", "date_to", default=None, help="Last day (YYYY-MM-DD), defaults to a week later")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_handle_errors
def events(date_from: str | None, date_to: str | None, as_json: bool):
    """List events and recurring occurrences in a date range."""
    config = load_config()
    start = _parse_date(date_from, today(config))
    end = _parse_date(date_to, start + timedelta(days=7))
    if end < start:
        raise click.BadParameter("--to must not be before --from")

    tz = timezone_for(config)
    store = open_store(config)
    occurrences = fetch_events(store.events, config.user_email, start, end, tz)

    if as_json:
        click.echo(json.dumps([_event_json(e) for e in occurrences], indent=2))
        return

    if not occurrences:
        click.echo("No events.")
        return

    current_date = None
    for event in occurrences:
        event_date = event.start_time.astimezone(tz).date()
        if event_date != current_date:
            if current_date is not None:
                click.echo()
            click.echo(f"### {event_date.strftime('%A, %B %d')}")
            current_date = event_date

        place = f" @ {event.place}" if event.place else ""
        click.echo(f"  {event.format_time(tz):8} {event.title}{place}")


def _show_plan(plan: DayPlan, tasks: list[Task]) -> None:
    click.echo(f"### {plan.day.strftime('%A, %B %d')}")
    for label, items in plan.slots.items():
        if not items:
            continue
        click.echo(label)
        for item in items:
            click.echo(f"  [{item.kind.value:6}] {item.title}  ({item.id})")

    unscheduled = [t for t in tasks if t.is_active and not t.is_scheduled]
    if unscheduled:
        click.echo()
        click.echo("Unscheduled:")
        for task in unscheduled:
            click.echo(f"  • {task.title}  ({task.id})")


@main.command()
@click.option("--date", "-d", "target_date", default=None, help="Day to plan (YYYY-MM-DD), defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_handle_errors
def plan(target_date: str | None, as_json: bool):
    """Show the hourly plan for a day."""
    config = load_config()
    day = _parse_date(target_date, today(config))
    store = open_store(config)
    day_plan, tasks = build_day_plan(store, config, day)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "date": day.isoformat(),
                    "slots": {
                        label: [
                            {"id": i.id, "title": i.title, "type": i.kind.value, "actions": list(i.actions)}
                            for i in items
                        ]
                        for label, items in day_plan.slots.items()
                    },
                    "tasks": [_task_json(t) for t in tasks],
                },
                indent=2,
            )
        )
        return

    if day_plan.is_empty():
        click.echo(f"Nothing planned for {day.isoformat()}.")
    _show_plan(day_plan, tasks)


@main.command()
@click.argument("task_id")
@click.argument("slot")
@click.option("--date", "-d", "target_date", default=None, help="Day (YYYY-MM-DD), defaults to today")
@_handle_errors
def schedule(task_id: str, slot: str, target_date: str | None):
    """Put a task on the plan at SLOT (HH:MM)."""
    config = load_config()
    day = _parse_date(target_date, today(config))
    try:
        at = datetime.strptime(slot, "%H:%M").strftime("%H:%M")
    except ValueError:
        raise click.BadParameter(f"expected HH:MM, got {slot!r}")

    store = open_store(config)
    _report(
        schedule_task(store, task_id, day, at, tz=timezone_for(config)),
        f"Scheduled {task_id} at {day.isoformat()} {at}",
    )


@main.command()
@click.argument("task_id")
@_handle_errors
def unschedule(task_id: str):
    """Remove a task from the plan."""
    store = open_store(load_config())
    _report(unschedule_task(store, task_id), f"Unscheduled {task_id}")


@main.command()
@click.argument("task_id")
@_handle_errors
def done(task_id: str):
    """Mark a task as done."""
    store = open_store(load_config())
    _report(mark_task_done(store, task_id), f"Completed {task_id}")


@main.command("event-delete")
@click.argument("event_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@_handle_errors
def event_delete(event_id: str, yes: bool):
    """Delete an event (an occurrence id deletes its whole series)."""
    if not yes and not click.confirm(f"Delete event {event_id}?"):
        click.echo("Aborted.")
        return
    store = open_store(load_config())
    _report(delete_event(store, event_id), f"Deleted {event_id}")


@main.command("import-ics")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_handle_errors
def import_ics_command(file: Path):
    """Import events from an .ics file."""
    config = load_config()
    store = open_store(config)
    result = import_ics(store, config, file.read_bytes())
    _report(result, f"Imported {result.count} events")


@main.command("export-ics")
@click.argument("event_id")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write to this file instead of the default name")
@_handle_errors
def export_ics_command(event_id: str, output: Path | None):
    """Export an event as an .ics file."""
    store = open_store(load_config())
    exported = export_event(store, event_id)
    if exported is None:
        click.echo(f"Error: event {event_id} not found", err=True)
        sys.exit(1)

    filename, content = exported
    path = output or Path(filename)
    path.write_bytes(content)
    click.echo(f"Saved {path}")


@main.command("import-places")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--no-tags", is_flag=True, help="Skip automatic tagging")
@_handle_errors
def import_places_command(file: Path, no_tags: bool):
    """Import a Google Maps saved-places export."""
    config = load_config()
    store = open_store(config)
    result = import_places(store, config, file.read_text(encoding="utf-8"), auto_tag=not no_tags)
    _report(result, f"Imported {result.count} places")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_handle_errors
def notifications(as_json: bool):
    """List upcoming notifications."""
    config = load_config()
    store = open_store(config)
    upcoming = collect_notifications(store, config)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": n.id,
                        "type": n.type,
                        "title": n.title,
                        "body": n.body,
                        "scheduled_time": n.scheduled_time.isoformat(),
                        "url": n.url,
                    }
                    for n in upcoming
                ],
                indent=2,
            )
        )
        return

    if not upcoming:
        click.echo("No upcoming notifications.")
        return

    for n in upcoming:
        click.echo(f"{n.scheduled_time.strftime('%Y-%m-%d %H:%M')}  {n.title} - {n.body}")


@main.command()
@_handle_errors
def reminders():
    """List repeating reminders that are due."""
    config = load_config()
    store = open_store(config)
    due = due_reminders(store, config)
    if not due:
        click.echo("No reminders due.")
        return
    for r in due:
        click.echo(f"• {r.title} (every {r.interval_days} days, due {r.next_due().isoformat()})")


@main.command()
@_handle_errors
def remind():
    """Run the reminder loop, delivering notifications as they come due."""
    from .reminders import run_reminders

    config = load_config()
    store = open_store(config)
    click.echo("Starting Dzisiaj reminders...")
    click.echo("Press Ctrl+C to stop")
    try:
        run_reminders(store, config)
    except KeyboardInterrupt:
        click.echo("\nReminders stopped.")
