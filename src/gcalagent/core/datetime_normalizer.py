"""Validation and repair of event start/end timestamps."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Optional, Union

from dateutil import parser as dateutil_parser

from gcalagent.config.constants import DEFAULT_EVENT_DURATION_MINUTES
from gcalagent.core.timezone_utils import to_utc
from gcalagent.exceptions.errors import InvalidDateError

logger = logging.getLogger(__name__)

DEFAULT_DURATION = timedelta(minutes=DEFAULT_EVENT_DURATION_MINUTES)


@dataclass(frozen=True)
class NormalizedInterval:
    """An ordered pair of UTC instants with ``end > start``."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def parse_timestamp(
    raw: object,
    default_tz: Optional[Union[str, tzinfo]] = None,
    field_name: Optional[str] = None,
) -> datetime:
    """Parse a timestamp string into a UTC-aware datetime.

    ISO-8601 is tried first; other unambiguous formats ("May 2, 2024 10:00")
    go through dateutil's general parser. Naive values are read in
    ``default_tz``.

    Raises:
        InvalidDateError: If the value is not a string or cannot be parsed.
    """
    if isinstance(raw, datetime):
        return to_utc(raw, default_tz)
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidDateError(raw, field_name)

    text = raw.strip()
    try:
        parsed = dateutil_parser.isoparse(text)
    except (ValueError, OverflowError):
        if not any(ch.isdigit() for ch in text):
            raise InvalidDateError(raw, field_name)
        try:
            parsed = dateutil_parser.parse(text)
        except (ValueError, OverflowError) as exc:
            raise InvalidDateError(raw, field_name) from exc

    try:
        return to_utc(parsed, default_tz)
    except (ValueError, OverflowError) as exc:
        raise InvalidDateError(raw, field_name) from exc


def normalize_interval(start: datetime, end: datetime) -> NormalizedInterval:
    """Apply the ordering repair rule to already-parsed instants.

    When ``end`` is not after ``start`` the end is moved to one hour after the
    start. A valid interval is returned unchanged.

    Raises:
        InvalidDateError: If the repaired end falls past the last
            representable instant.
    """
    if end <= start:
        try:
            repaired = start + DEFAULT_DURATION
        except OverflowError as exc:
            raise InvalidDateError(end.isoformat(), "endDateTime") from exc
        logger.debug(
            "End %s is not after start %s - using %s",
            end.isoformat(), start.isoformat(), repaired.isoformat()
        )
        end = repaired
    return NormalizedInterval(start=start, end=end)


def normalize(
    start_raw: object,
    end_raw: object,
    default_tz: Optional[Union[str, tzinfo]] = None,
) -> NormalizedInterval:
    """Parse and repair a start/end pair.

    Args:
        start_raw: Start timestamp, ideally ISO-8601.
        end_raw: End timestamp, ideally ISO-8601.
        default_tz: Zone for timestamps without an offset (default: local).

    Returns:
        A NormalizedInterval in UTC with ``end > start``.

    Raises:
        InvalidDateError: If either timestamp cannot be parsed.
    """
    start = parse_timestamp(start_raw, default_tz, "startDateTime")
    end = parse_timestamp(end_raw, default_tz, "endDateTime")
    return normalize_interval(start, end)
