"""Day schema repository interface."""

from typing import Protocol

from dzisiaj.core.planner import DaySchema


class SchemaRepository(Protocol):
    def fetch(self, user: str) -> list[DaySchema]:
        """Day schemas owned by the user."""
        ...
