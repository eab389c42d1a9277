"""Saved place repository interface."""

from typing import Protocol

from dzisiaj.core.places import Place


class PlaceRepository(Protocol):
    def insert_many(self, places: list[Place], user: str) -> int:
        """Insert places for the user in one write. Returns the number stored."""
        ...
