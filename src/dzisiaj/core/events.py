"""Pure calendar event logic - recurrence expansion, no I/O dependencies."""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

# Separates a template id from the instance start in a synthesized occurrence id
INSTANCE_SEPARATOR = "_"


class Repeat(Enum):
    """How often a template event recurs."""

    NONE = "none"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: str | None) -> "Repeat":
        """Parse a stored repeat rule. Missing or empty means no repetition."""
        if not value:
            return cls.NONE
        return cls(value.strip().lower())


@dataclass
class Event:
    """A calendar event: either a stored template or a synthesized occurrence."""

    id: str
    title: str
    start_time: datetime
    end_time: datetime
    repeat: Repeat = Repeat.NONE
    description: str = ""
    place: str = ""
    share: str | None = None
    user_name: str = ""

    @property
    def template_id(self) -> str:
        """Id of the stored record this event (or occurrence) came from."""
        return original_id(self.id)

    @property
    def is_occurrence(self) -> bool:
        return INSTANCE_SEPARATOR in self.id

    def format_time(self, tz: tzinfo = timezone.utc) -> str:
        """Format the event start for display."""
        return self.start_time.astimezone(tz).strftime("%H:%M")

    def span_days(self) -> int:
        """Whole calendar days between start and end."""
        return whole_days_between(self.start_time, self.end_time)

    @classmethod
    def from_row(cls, row: dict) -> "Event":
        """Create Event from a store row. Raises ValueError/KeyError on bad data."""
        return cls(
            id=str(row["id"]) if row.get("id") is not None else "",
            title=row.get("title") or "",
            start_time=parse_timestamp(row["start_time"]),
            end_time=parse_timestamp(row["end_time"]),
            repeat=Repeat.parse(row.get("repeat")),
            description=row.get("description") or "",
            place=row.get("place") or "",
            share=row.get("share") or None,
            user_name=row.get("user_name") or "",
        )

    def to_row(self) -> dict:
        """Serialize for a store write. The id is never part of the payload."""
        return {
            "title": self.title,
            "description": self.description,
            "place": self.place,
            "share": self.share,
            "start_time": format_timestamp(self.start_time),
            "end_time": format_timestamp(self.end_time),
            "repeat": self.repeat.value,
            "user_name": self.user_name,
        }


def parse_timestamp(value: str | datetime) -> datetime:
    """
    Parse a stored timestamp into an aware UTC datetime.

    Accepts "2026-01-22 23:59:00+00", "2026-01-22T23:59:00+00",
    "2025-01-08T00:00:00.000Z" and bare dates. Naive values are UTC.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        dt = isoparse(value.strip())
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime in the store's timestamp format."""
    return parse_timestamp(dt).strftime("%Y-%m-%dT%H:%M:%S+00")


def instance_id(event_id: str, start: datetime) -> str:
    """Synthesize a unique occurrence id: {id}_{start as ISO-8601 UTC with millis}."""
    start = parse_timestamp(start)
    millis = start.microsecond // 1000
    return f"{event_id}{INSTANCE_SEPARATOR}{start.strftime('%Y-%m-%dT%H:%M:%S')}.{millis:03d}Z"


def original_id(event_id: str) -> str:
    """Map an occurrence id back to its template id. Template ids pass through."""
    return str(event_id).split(INSTANCE_SEPARATOR, 1)[0]


def whole_days_between(start: datetime, end: datetime) -> int:
    """Calendar-day difference between two timestamps (sub-day part is dropped)."""
    return (end.date() - start.date()).days


def window_bounds(
    window_start: date | datetime,
    window_end: date | datetime,
    tz: tzinfo = timezone.utc,
) -> tuple[datetime, datetime]:
    """
    Resolve a query window to UTC bounds.

    Bare dates cover the whole day inclusively, as seen on a wall clock in `tz`.
    """
    if isinstance(window_start, datetime):
        start = parse_timestamp(window_start)
    else:
        start = parse_timestamp(datetime.combine(window_start, time.min, tzinfo=tz))

    if isinstance(window_end, datetime):
        end = parse_timestamp(window_end)
    else:
        end = parse_timestamp(datetime.combine(window_end, time(23, 59, 59), tzinfo=tz))

    return start, end


def advance(start: datetime, repeat: Repeat, steps: int) -> datetime:
    """
    Start of the Nth occurrence of a series.

    Always computed from the template start, so month-end clamping never
    accumulates: Jan 31 -> Feb 28 (or 29) -> Mar 31 -> Apr 30.
    """
    match repeat:
        case Repeat.WEEKLY:
            return start + timedelta(weeks=steps)
        case Repeat.MONTHLY:
            return start + relativedelta(months=steps)
        case Repeat.YEARLY:
            return start + relativedelta(years=steps)
    raise ValueError(f"{repeat} does not recur")


def _first_step(start: datetime, repeat: Repeat, range_start: datetime) -> int:
    """Index of the first occurrence starting at or after range_start."""
    if start >= range_start:
        return 0

    # Conservative estimate that never overshoots, then walk forward
    match repeat:
        case Repeat.WEEKLY:
            steps = (range_start - start).days // 7
        case Repeat.MONTHLY:
            steps = (range_start.year - start.year) * 12 + range_start.month - start.month - 1
        case _:
            steps = range_start.year - start.year - 1
    steps = max(steps, 0)

    while advance(start, repeat, steps) < range_start:
        steps += 1
    return steps


def expand_event(event: Event, range_start: datetime, range_end: datetime) -> list[Event]:
    """Concrete occurrences of one event inside [range_start, range_end]."""
    if event.repeat is Repeat.NONE:
        if event.end_time >= range_start and event.start_time <= range_end:
            return [event]
        return []

    duration = timedelta(days=event.span_days())
    occurrences = []

    steps = _first_step(event.start_time, event.repeat, range_start)
    current = advance(event.start_time, event.repeat, steps)
    while current <= range_end:
        occurrences.append(
            replace(
                event,
                id=instance_id(event.id, current),
                start_time=current,
                end_time=current + duration,
            )
        )
        steps += 1
        current = advance(event.start_time, event.repeat, steps)

    return occurrences


def expand_repeating_events(
    events: list[Event],
    window_start: date | datetime,
    window_end: date | datetime,
    tz: tzinfo = timezone.utc,
) -> list[Event]:
    """
    Expand template events into the occurrences that fall inside a window.

    Pure function - no I/O. Input events are never mutated; recurring
    occurrences are fresh objects with synthesized ids.
    """
    range_start, range_end = window_bounds(window_start, window_end, tz)

    result = []
    for event in events:
        result.extend(expand_event(event, range_start, range_end))
    return result


def expand_rows(
    rows: list[dict],
    window_start: date | datetime,
    window_end: date | datetime,
    tz: tzinfo = timezone.utc,
) -> list[Event]:
    """
    Parse raw store rows and expand them.

    Each row is handled independently: a malformed row is logged and
    skipped, the rest of the batch is still expanded.
    """
    range_start, range_end = window_bounds(window_start, window_end, tz)

    result = []
    for row in rows:
        try:
            event = Event.from_row(row)
            result.extend(expand_event(event, range_start, range_end))
        except (ValueError, KeyError, TypeError, OverflowError) as e:
            logger.warning(f"Skipping event {row.get('id')!r}: {e}")
            continue
    return result


def events_for_day(events: list[Event], day: date, tz: tzinfo = timezone.utc) -> list[Event]:
    """Events starting on a given day in `tz`."""
    return [e for e in events if e.start_time.astimezone(tz).date() == day]


def event_spans_date(event: Event, day: date, tz: tzinfo = timezone.utc) -> bool:
    """Check if a day falls within the event's (inclusive) date span in `tz`."""
    return event.start_time.astimezone(tz).date() <= day <= event.end_time.astimezone(tz).date()


def sort_events_by_start(events: list[Event]) -> list[Event]:
    """Sort events by start time."""
    return sorted(events, key=lambda e: e.start_time)
