"""Tests for the reminder delivery loop."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

import pytest
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from dzisiaj.adapters import StoreError
from dzisiaj.config import Config, ConfigurationError
from dzisiaj.core.notifications import ScheduledNotification
from dzisiaj.reminders import (
    NOTIFICATION_JOB_PREFIX,
    REFRESH_JOB_ID,
    echo_notification,
    refresh,
    run_reminders,
    setup_scheduler,
    sync_jobs,
)

WARSAW = ZoneInfo("Europe/Warsaw")


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 10, 0, tzinfo=WARSAW)


@pytest.fixture
def make_notification(now):
    def _make(id: str, minutes: int) -> ScheduledNotification:
        return ScheduledNotification(
            id=id,
            type="task",
            title=f"Zadanie: {id}",
            body="Za 5 minut kończy się termin",
            scheduled_time=now + timedelta(minutes=minutes),
        )
    return _make


def job(job_id: str) -> MagicMock:
    j = MagicMock()
    j.id = job_id
    return j


class TestSyncJobs:
    def test_adds_future_notifications(self, now, make_notification):
        scheduler = MagicMock()
        scheduler.get_jobs.return_value = []
        notify = MagicMock()
        upcoming = make_notification("a", 30)

        count = sync_jobs(scheduler, [upcoming, make_notification("past", -5)], notify, now)

        assert count == 1
        args, kwargs = scheduler.add_job.call_args
        assert args[0] is notify
        assert isinstance(args[1], DateTrigger)
        assert kwargs["args"] == [upcoming]
        assert kwargs["id"] == NOTIFICATION_JOB_PREFIX + "a"
        assert kwargs["replace_existing"] is True

    def test_removes_stale_jobs_only(self, now, make_notification):
        stale = job(NOTIFICATION_JOB_PREFIX + "gone")
        kept = job(NOTIFICATION_JOB_PREFIX + "a")
        refresh_job = job(REFRESH_JOB_ID)
        scheduler = MagicMock()
        scheduler.get_jobs.return_value = [stale, kept, refresh_job]

        sync_jobs(scheduler, [make_notification("a", 30)], MagicMock(), now)

        stale.remove.assert_called_once()
        kept.remove.assert_not_called()
        refresh_job.remove.assert_not_called()


class TestRefresh:
    @patch("dzisiaj.reminders.collect_notifications")
    def test_reschedules(self, mock_collect, now, make_notification):
        mock_collect.return_value = [make_notification("a", 24 * 60)]
        scheduler = MagicMock()
        scheduler.get_jobs.return_value = []
        store = MagicMock()
        config = Config(user_email="me@example.com")

        refresh(scheduler, store, config, MagicMock(), now=now)

        assert mock_collect.call_args.args == (store, config)
        assert mock_collect.call_args.kwargs == {"now": now}
        scheduler.add_job.assert_called_once()

    @patch("dzisiaj.reminders.collect_notifications")
    def test_store_error_keeps_schedule(self, mock_collect, caplog):
        mock_collect.side_effect = StoreError("offline")
        scheduler = MagicMock()

        refresh(scheduler, MagicMock(), Config(), MagicMock())

        scheduler.add_job.assert_not_called()
        scheduler.get_jobs.assert_not_called()
        assert "Failed to refresh notifications" in caplog.text


class TestRunReminders:
    @patch("dzisiaj.reminders.setup_scheduler")
    def test_invalid_settings_fail_before_start(self, mock_setup):
        config = Config(notifications={"tasks": {"enabled": "sometimes"}})

        with pytest.raises(ConfigurationError):
            run_reminders(MagicMock(), config)

        mock_setup.assert_not_called()

    @patch("dzisiaj.reminders.setup_scheduler")
    def test_starts_scheduler(self, mock_setup):
        store, config = MagicMock(), Config()

        run_reminders(store, config)

        mock_setup.assert_called_once()
        mock_setup.return_value.start.assert_called_once()


class TestSetupScheduler:
    def test_refresh_job(self):
        config = Config(refresh_seconds=45)
        scheduler = setup_scheduler(MagicMock(), config)

        refresh_job = scheduler.get_job(REFRESH_JOB_ID)
        assert refresh_job is not None
        assert isinstance(refresh_job.trigger, IntervalTrigger)
        assert refresh_job.trigger.interval == timedelta(seconds=45)
        assert str(scheduler.timezone) == "Europe/Warsaw"


def test_echo_notification(capsys, make_notification):
    echo_notification(make_notification("a", 30))
    out = capsys.readouterr().out
    assert "[10:30] Zadanie: a" in out
    assert "Za 5 minut kończy się termin" in out
