"""Tests for notification scheduling."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from dzisiaj.core.events import Event
from dzisiaj.core.notifications import (
    DailyHabits,
    NotificationConfig,
    NotificationScheduler,
    Reminder,
    merge_with_defaults,
    validate,
    visible_reminders,
)
from dzisiaj.core.tasks import DONE, Task

WARSAW = ZoneInfo("Europe/Warsaw")


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 10, 0, tzinfo=WARSAW)


@pytest.fixture
def scheduler(now):
    return NotificationScheduler(NotificationConfig(), now=now)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 1, day, hour, minute, tzinfo=WARSAW)


class TestMergeWithDefaults:
    def test_empty_gives_defaults(self):
        config = merge_with_defaults({})
        assert config == NotificationConfig()
        assert config.calendar.reminder_minutes == [10080, 1440, 60, 5]
        assert config.tasks.digest_time == "08:00"
        assert config.habits.reminder_time == "20:00"

    def test_partial_override_camel_case(self):
        config = merge_with_defaults({"tasks": {"reminderMinutes": [30], "dailyDigest": False}})
        assert config.tasks.reminder_minutes == [30]
        assert config.tasks.daily_digest is False
        assert config.tasks.enabled is True
        assert config.reminders == NotificationConfig().reminders

    def test_snake_case_keys(self):
        config = merge_with_defaults({"habits": {"reminder_time": "21:30"}})
        assert config.habits.reminder_time == "21:30"

    def test_none_is_defaults(self):
        assert merge_with_defaults(None) == NotificationConfig()

    @pytest.mark.parametrize(
        "bad",
        [
            {"weather": {}},
            {"tasks": {"snooze": True}},
            {"tasks": {"enabled": "yes"}},
            {"calendar": {"reminderMinutes": [True]}},
            {"habits": {"reminderTime": "25:00"}},
        ],
    )
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            merge_with_defaults(bad)


class TestValidate:
    def test_complete_config(self):
        data = {
            "tasks": {"enabled": True, "reminderMinutes": [60], "dailyDigest": True, "digestTime": "08:00"},
            "reminders": {"enabled": True, "exactTime": True},
            "habits": {"enabled": False, "reminderTime": "20:00"},
            "calendar": {"enabled": True, "reminderMinutes": [5]},
        }
        assert validate(data) is True

    def test_missing_section(self):
        assert validate({"tasks": {}}) is False

    def test_not_a_dict(self):
        assert validate([]) is False


class TestRecords:
    def test_reminder_from_row(self):
        reminder = Reminder.from_row(
            {"id": 1, "tytul": "Podlać kwiaty", "powtarzanie": 7, "data_poczatkowa": "2025-01-01", "done": "2025-01-10"}
        )
        assert reminder.title == "Podlać kwiaty"
        assert reminder.next_due() == date(2025, 1, 17)

    def test_reminder_never_done_is_due_at_start(self):
        reminder = Reminder(id="1", title="x", start_date=date(2025, 1, 3), interval_days=7)
        assert reminder.next_due() == date(2025, 1, 3)

    def test_habits_from_row(self):
        habits = DailyHabits.from_row(
            {
                "id": 1,
                "date": "2025-01-15",
                "user_name": "me@example.com",
                "water_amount": 1.5,
                "daily_spending": 20,
                "pills": True,
                "bath": False,
                "note": "text is not a habit",
            }
        )
        assert habits.flags == {"pills": True, "bath": False}
        assert habits.undone() == ["bath"]
        assert habits.water_amount == 1.5

    def test_visible_reminders(self):
        today = date(2025, 1, 15)
        reminders = [
            Reminder(id="due", title="x", start_date=date(2025, 1, 1), interval_days=7, done=date(2025, 1, 8)),
            Reminder(id="later", title="x", start_date=date(2025, 1, 1), interval_days=7, done=date(2025, 1, 14)),
            Reminder(id="future", title="x", start_date=date(2025, 2, 1), interval_days=7),
        ]
        assert [r.id for r in visible_reminders(reminders, today)] == ["due"]


class TestTaskNotifications:
    def test_due_day_reminder_at_nine(self, scheduler):
        task = Task(id="1", title="Raport", due_date=date(2025, 1, 16))
        [notification] = scheduler.task_notifications([task])

        assert notification.id == "task-1-due"
        assert notification.scheduled_time == at(16, 9)
        assert notification.title == "Termin dzisiaj: Raport"
        assert notification.data == {"taskId": "1"}

    def test_minutes_before_due(self, now):
        config = merge_with_defaults({"tasks": {"reminderMinutes": [60]}})
        scheduler = NotificationScheduler(config, now=now)
        task = Task(id="1", title="Raport", due_date=date(2025, 1, 16))

        notifications = scheduler.task_notifications([task])

        assert [n.id for n in notifications] == ["task-1-60", "task-1-due"]
        assert notifications[0].scheduled_time == at(15, 23)

    def test_skips_done_past_and_undated(self, scheduler):
        tasks = [
            Task(id="done", title="x", due_date=date(2025, 1, 20), status=DONE),
            Task(id="today", title="x", due_date=date(2025, 1, 15)),
            Task(id="nodate", title="x"),
        ]
        assert scheduler.task_notifications(tasks) == []

    def test_disabled(self, now):
        scheduler = NotificationScheduler(merge_with_defaults({"tasks": {"enabled": False}}), now=now)
        assert scheduler.task_notifications([Task(id="1", title="x", due_date=date(2025, 1, 20))]) == []


class TestDailyDigest:
    def test_counts_open_tasks_due_today(self, scheduler):
        tasks = [
            Task(id="1", title="a", due_date=date(2025, 1, 15)),
            Task(id="2", title="b", due_date=date(2025, 1, 15)),
            Task(id="3", title="c", due_date=date(2025, 1, 15), status=DONE),
            Task(id="4", title="d", due_date=date(2025, 1, 16)),
        ]
        digest = scheduler.daily_digest(tasks)

        assert digest.body == "Masz 2 zadań na dziś"
        # 08:00 already passed, so the digest moves to tomorrow
        assert digest.scheduled_time == at(16, 8)

    def test_nothing_due(self, scheduler):
        assert scheduler.daily_digest([Task(id="1", title="a", due_date=date(2025, 1, 16))]) is None


class TestReminderNotifications:
    def test_next_due_at_nine(self, scheduler):
        reminder = Reminder(id="r", title="Podlać", start_date=date(2025, 1, 1), interval_days=7, done=date(2025, 1, 10))
        [notification] = scheduler.reminder_notifications([reminder])

        assert notification.id == "reminder-r"
        assert notification.scheduled_time == at(17, 9)
        assert notification.body == "Powtarza się co 7 dni"

    def test_overdue_and_already_passed_are_skipped(self, scheduler):
        reminders = [
            Reminder(id="overdue", title="x", start_date=date(2025, 1, 1), interval_days=7, done=date(2025, 1, 5)),
            Reminder(id="this-morning", title="x", start_date=date(2025, 1, 15), interval_days=7),
        ]
        assert scheduler.reminder_notifications(reminders) == []


class TestHabitReminder:
    def test_undone_habits(self, scheduler):
        habits = DailyHabits(day=date(2025, 1, 15), flags={"pills": True, "bath": False, "walk": False})
        notification = scheduler.habit_reminder(habits)

        assert notification.body == "Pamiętaj o 2 nawykach"
        assert notification.data == {"habits": ["bath", "walk"]}
        assert notification.scheduled_time == at(15, 20)

    def test_all_done(self, scheduler):
        assert scheduler.habit_reminder(DailyHabits(day=date(2025, 1, 15), flags={"pills": True})) is None


class TestCalendarNotifications:
    def test_future_offsets_only(self, scheduler):
        start = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)  # 13:00 in Warsaw
        event = Event(id="e1", title="Kino", start_time=start, end_time=start, place="Muranów")

        notifications = scheduler.calendar_notifications([event])

        assert [n.id for n in notifications] == ["calendar-e1-60", "calendar-e1-5"]
        assert notifications[0].body == "Za 60 minut w Muranów"
        assert notifications[0].url == "/calendar"


class TestAllNotifications:
    def test_sorted_by_time(self, scheduler):
        start = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
        result = scheduler.all_notifications(
            tasks=[Task(id="1", title="a", due_date=date(2025, 1, 16))],
            reminders=[],
            habits=DailyHabits(day=date(2025, 1, 15), flags={"bath": False}),
            events=[Event(id="e1", title="Kino", start_time=start, end_time=start)],
        )

        times = [n.scheduled_time for n in result]
        assert times == sorted(times)
        assert [n.type for n in result] == ["calendar", "calendar", "habit", "task"]

    def test_without_habits(self, scheduler):
        assert scheduler.all_notifications([], [], None, []) == []
