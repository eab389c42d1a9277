"""Event repository interface."""

from typing import Protocol

from dzisiaj.core.events import Event


class EventRepository(Protocol):
    """Interface for the event store accessor."""

    def fetch_raw(self, user: str) -> list[dict]:
        """Raw event rows owned by or shared with the user."""
        ...

    def fetch_template(self, event_id: str) -> Event | None:
        """The stored template behind an event or occurrence id."""
        ...

    def add(self, event: Event, user: str) -> None:
        """Insert a new template event owned by the user."""
        ...

    def edit(self, event: Event, user: str) -> None:
        """Update the template behind an event or occurrence."""
        ...

    def delete(self, event_id: str) -> None:
        """Delete the template behind an event or occurrence id."""
        ...
