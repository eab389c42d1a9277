"""iCalendar import/export for events."""

import logging
from datetime import date, datetime, time, timedelta, timezone

from icalendar import Calendar, Event as ICalEvent, vCalAddress

from dzisiaj.core.events import Event, Repeat, parse_timestamp

logger = logging.getLogger(__name__)

PRODID = "-//Dzisiajv3//PL"

_FREQ_TO_REPEAT = {
    "WEEKLY": Repeat.WEEKLY,
    "MONTHLY": Repeat.MONTHLY,
    "YEARLY": Repeat.YEARLY,
}


def _to_datetime(value: date | datetime) -> datetime:
    """DTSTART/DTEND values: all-day dates become midnight UTC."""
    if isinstance(value, datetime):
        return parse_timestamp(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _repeat_from(component) -> Repeat:
    rrule = component.get("RRULE")
    if not rrule:
        return Repeat.NONE
    freq = rrule.get("FREQ") or []
    freq = freq[0] if isinstance(freq, list) and freq else freq
    repeat = _FREQ_TO_REPEAT.get(str(freq).upper())
    if repeat is None:
        logger.info(f"Unsupported RRULE frequency {freq!r}, importing as a single event")
        return Repeat.NONE
    return repeat


def _event_from_component(component) -> Event:
    dtstart = component.get("DTSTART")
    if dtstart is None:
        raise ValueError("missing DTSTART")

    start_value = dtstart.dt
    start = _to_datetime(start_value)
    all_day = not isinstance(start_value, datetime)

    dtend = component.get("DTEND")
    duration = component.get("DURATION")
    if dtend is not None:
        end = _to_datetime(dtend.dt)
        if all_day and end > start:
            # DTEND is exclusive for all-day events; the app stores the last day
            end -= timedelta(days=1)
    elif duration is not None:
        end = start + duration.dt
    else:
        end = start

    return Event(
        id="",
        title=str(component.get("SUMMARY", "")),
        start_time=start,
        end_time=end,
        repeat=_repeat_from(component),
        description=str(component.get("DESCRIPTION", "")),
        place=str(component.get("LOCATION", "")),
    )


def parse_ics(content: str | bytes) -> list[Event]:
    """
    Parse an .ics file into template events.

    Raises ValueError if the calendar itself cannot be parsed. Individual
    VEVENTs that fail are logged and skipped.
    """
    calendar = Calendar.from_ical(content)

    events = []
    for component in calendar.walk("VEVENT"):
        try:
            events.append(_event_from_component(component))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping VEVENT {str(component.get('UID', ''))!r}: {e}")
            continue
    return events


def export_uid(event: Event) -> str:
    return event.id.replace(" ", "_") if event.id else f"evt-{int(datetime.now().timestamp() * 1000)}"


def export_filename(event: Event) -> str:
    return f"{event.start_time.strftime('%Y-%m-%d')}_{export_uid(event)}.ics"


def event_to_ics(event: Event) -> bytes:
    """Serialize a single event (or occurrence) as a standalone calendar."""
    calendar = Calendar()
    calendar.add("prodid", PRODID)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", "PUBLISH")

    vevent = ICalEvent()
    vevent.add("uid", export_uid(event))
    vevent.add("dtstamp", datetime.now(timezone.utc))
    vevent.add("dtstart", event.start_time)
    vevent.add("dtend", event.end_time)
    if event.title:
        vevent.add("summary", event.title)
    if event.description:
        vevent.add("description", event.description)
    if event.place:
        vevent.add("location", event.place)
    if event.user_name:
        vevent.add("organizer", vCalAddress(f"MAILTO:{event.user_name}"))
    if event.repeat is not Repeat.NONE and not event.is_occurrence:
        vevent.add("rrule", {"freq": event.repeat.value.upper()})

    calendar.add_component(vevent)
    return calendar.to_ical()
