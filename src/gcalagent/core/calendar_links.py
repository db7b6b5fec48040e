"""Calendar artifact generation: Google/Outlook deep links and iCalendar bodies."""

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlencode

import pytz
from icalendar import Calendar, Event, vText

from gcalagent.config.constants import (
    GOOGLE_CALENDAR_BASE_URL,
    ICS_PRODID,
    ICS_UID_DOMAIN,
    ICS_VERSION,
    OUTLOOK_CALENDAR_BASE_URL,
    OUTLOOK_COMPOSE_PATH,
    SOURCE_LINE_TEMPLATE,
)
from gcalagent.core.event_model import CalendarArtifactSet, NormalizedEvent

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
UidFactory = Callable[[datetime], str]


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


def default_uid(generated_at: datetime) -> str:
    """Build a UID from the generation time plus a random suffix."""
    millis = int(generated_at.timestamp() * 1000)
    return f"{millis}-{uuid.uuid4().hex[:12]}@{ICS_UID_DOMAIN}"


def format_compact_utc(dt: datetime) -> str:
    """Format as ``YYYYMMDDTHHMMSSZ`` from the UTC fields of ``dt``."""
    d = dt.astimezone(pytz.utc)
    return (
        f"{d.year:04d}{d.month:02d}{d.day:02d}"
        f"T{d.hour:02d}{d.minute:02d}{d.second:02d}Z"
    )


def format_iso_utc(dt: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.sssZ`` (millisecond precision, UTC)."""
    d = dt.astimezone(pytz.utc)
    return (
        f"{d.year:04d}-{d.month:02d}-{d.day:02d}"
        f"T{d.hour:02d}:{d.minute:02d}:{d.second:02d}.{d.microsecond // 1000:03d}Z"
    )


def compose_description(
    description: Optional[str], source_url: Optional[str] = None
) -> str:
    """Join the event description and the provenance line with a blank line."""
    parts = []
    if description:
        parts.append(description)
    if source_url:
        parts.append(SOURCE_LINE_TEMPLATE.format(url=source_url))
    return "\n\n".join(parts)


def _with_optional(
    params: List[Tuple[str, str]], name: str, value: Optional[str]
) -> List[Tuple[str, str]]:
    if value:
        params.append((name, value))
    return params


def google_calendar_url(event: NormalizedEvent, source_url: Optional[str] = None) -> str:
    """Build a Google Calendar "create event" template link."""
    dates = f"{format_compact_utc(event.start)}/{format_compact_utc(event.end)}"
    params = [
        ("action", "TEMPLATE"),
        ("text", event.title),
        ("dates", dates),
    ]
    _with_optional(params, "details", compose_description(event.description, source_url))
    _with_optional(params, "location", event.location)
    return f"{GOOGLE_CALENDAR_BASE_URL}?{urlencode(params)}"


def outlook_calendar_url(event: NormalizedEvent, source_url: Optional[str] = None) -> str:
    """Build an Outlook.com compose deep link.

    Outlook takes full ISO-8601 instants, unlike Google's compact form.
    """
    params = [
        ("path", OUTLOOK_COMPOSE_PATH),
        ("rru", "addevent"),
        ("subject", event.title),
        ("startdt", format_iso_utc(event.start)),
        ("enddt", format_iso_utc(event.end)),
    ]
    _with_optional(params, "body", compose_description(event.description, source_url))
    _with_optional(params, "location", event.location)
    return f"{OUTLOOK_CALENDAR_BASE_URL}?{urlencode(params)}"


def _create_ics_calendar() -> Calendar:
    """Create a new ICS calendar with standard headers."""
    cal = Calendar()
    cal.add("PRODID", ICS_PRODID)
    cal.add("VERSION", ICS_VERSION)
    return cal


def _create_ics_event(
    event: NormalizedEvent,
    description: str,
    generated_at: datetime,
    uid: str,
) -> Event:
    ve = Event()
    ve.add("UID", uid)
    ve.add("DTSTAMP", generated_at.astimezone(pytz.utc))
    ve.add("DTSTART", event.start.astimezone(pytz.utc))
    ve.add("DTEND", event.end.astimezone(pytz.utc))
    ve.add("SUMMARY", vText(event.title))

    # vText escapes newlines to the literal "\n" sequence
    if description:
        ve.add("DESCRIPTION", vText(description))
    if event.location:
        ve.add("LOCATION", vText(event.location))
    return ve


def _format_ics_output(cal: Calendar) -> str:
    """Format calendar to ICS string with proper line endings.

    Args:
        cal: The Calendar object to format.

    Returns:
        ICS content string with CRLF line endings.
    """
    raw_ical = cal.to_ical()
    decoded_ical = raw_ical.decode("utf-8", errors="replace")
    # Ensure CRLF line endings per RFC5545
    return decoded_ical.replace("\r\n", "\n").replace("\n", "\r\n")


def build_ics(
    event: NormalizedEvent,
    source_url: Optional[str] = None,
    clock: Clock = _utc_now,
    uid_factory: UidFactory = default_uid,
) -> str:
    """Build a single-event iCalendar body.

    Args:
        event: The event to render.
        source_url: Optional provenance link appended to the description.
        clock: Source of the DTSTAMP value.
        uid_factory: Builds the UID from the generation time.

    Returns:
        ICS text with CRLF line endings.
    """
    generated_at = clock()
    cal = _create_ics_calendar()
    cal.add_component(
        _create_ics_event(
            event,
            compose_description(event.description, source_url),
            generated_at,
            uid_factory(generated_at),
        )
    )
    return _format_ics_output(cal)


class CalendarLinkGenerator:
    """Renders a NormalizedEvent for Google, Outlook and Apple calendars."""

    def __init__(self, clock: Clock = _utc_now, uid_factory: UidFactory = default_uid):
        self.clock = clock
        self.uid_factory = uid_factory

    def generate(
        self, event: NormalizedEvent, source_url: Optional[str] = None
    ) -> CalendarArtifactSet:
        source_url = (source_url or "").strip() or None
        artifacts = CalendarArtifactSet(
            google=google_calendar_url(event, source_url),
            outlook=outlook_calendar_url(event, source_url),
            apple=build_ics(event, source_url, self.clock, self.uid_factory),
        )
        logger.debug("Generated calendar artifacts for '%s'", event.title)
        return artifacts


def generate(event: NormalizedEvent, source_url: Optional[str] = None) -> CalendarArtifactSet:
    """Render ``event`` into all three calendar artifacts."""
    return CalendarLinkGenerator().generate(event, source_url)
