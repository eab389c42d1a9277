"""Reminder delivery loop - polls the store and fires notifications on time."""

import logging
from datetime import datetime
from typing import Callable

import click
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .adapters import StoreError
from .config import Config
from .core.notifications import ScheduledNotification
from .workflows import Store, collect_notifications, notification_settings, timezone_for

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "refresh"
NOTIFICATION_JOB_PREFIX = "notify:"

Notifier = Callable[[ScheduledNotification], None]


def echo_notification(notification: ScheduledNotification) -> None:
    """Default delivery: print the notification to the terminal."""
    stamp = notification.scheduled_time.strftime("%H:%M")
    click.echo(f"[{stamp}] {notification.title}")
    if notification.body:
        click.echo(f"        {notification.body}")


def sync_jobs(
    scheduler,
    notifications: list[ScheduledNotification],
    notify: Notifier,
    now: datetime,
) -> int:
    """
    Make the scheduler's notification jobs match the given notifications.

    Future notifications are added (or replaced); jobs for notifications
    that disappeared are removed. Returns the number of scheduled jobs.
    """
    wanted = {}
    for notification in notifications:
        if notification.scheduled_time > now:
            wanted[NOTIFICATION_JOB_PREFIX + notification.id] = notification

    for job in scheduler.get_jobs():
        if job.id.startswith(NOTIFICATION_JOB_PREFIX) and job.id not in wanted:
            job.remove()

    for job_id, notification in wanted.items():
        scheduler.add_job(
            notify,
            DateTrigger(run_date=notification.scheduled_time),
            args=[notification],
            id=job_id,
            replace_existing=True,
        )

    return len(wanted)


def refresh(
    scheduler,
    store: Store,
    config: Config,
    notify: Notifier,
    now: datetime | None = None,
) -> None:
    """Re-fetch and reschedule. Store failures keep the previous schedule."""
    now = now or datetime.now(timezone_for(config))
    try:
        notifications = collect_notifications(store, config, now=now)
    except StoreError as e:
        logger.error(f"Failed to refresh notifications: {e}")
        return

    count = sync_jobs(scheduler, notifications, notify, now)
    logger.debug(f"{count} notifications scheduled")


def setup_scheduler(
    store: Store,
    config: Config,
    notify: Notifier = echo_notification,
) -> BlockingScheduler:
    """Set up the polling refresh job; notification jobs are added on each refresh."""
    scheduler = BlockingScheduler(timezone=timezone_for(config))

    scheduler.add_job(
        refresh,
        IntervalTrigger(seconds=config.refresh_seconds),
        args=[scheduler, store, config, notify],
        id=REFRESH_JOB_ID,
        next_run_time=datetime.now(timezone_for(config)),
    )
    logger.info(f"Refreshing notifications every {config.refresh_seconds}s")

    return scheduler


def run_reminders(store: Store, config: Config, notify: Notifier = echo_notification) -> None:
    """
    Run the reminder loop until interrupted.

    Raises ConfigurationError up front for an invalid NOTIFICATIONS setting.
    """
    notification_settings(config)
    scheduler = setup_scheduler(store, config, notify)
    logger.info("Starting reminder loop...")
    scheduler.start()
