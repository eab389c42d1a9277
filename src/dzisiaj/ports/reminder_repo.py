"""Reminder and habit repository interfaces."""

from datetime import date
from typing import Protocol

from dzisiaj.core.notifications import DailyHabits, Reminder


class ReminderRepository(Protocol):
    def fetch(self, user: str) -> list[Reminder]:
        """Repeating reminders owned by the user."""
        ...


class HabitRepository(Protocol):
    def fetch_day(self, user: str, day: date) -> DailyHabits | None:
        """The habit checklist for a day, or None if nothing was recorded."""
        ...
