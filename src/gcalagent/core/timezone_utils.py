"""Timezone resolution utilities."""

import logging
from datetime import datetime, tzinfo
from typing import Optional, Union

import pytz
import tzlocal
from dateutil import tz as du_tz

from gcalagent.config.constants import ABBR_TO_TZ

logger = logging.getLogger(__name__)


def resolve_timezone(tz_spec: Optional[Union[str, tzinfo]] = None) -> tzinfo:
    """Resolve a timezone name or object to a tzinfo.

    Args:
        tz_spec: IANA name, common abbreviation, "local", a tzinfo, or None
            (same as "local").

    Returns:
        A tzinfo. Unknown names resolve to UTC with a warning.
    """
    if isinstance(tz_spec, tzinfo):
        return tz_spec

    tz_str_raw = (tz_spec or "local").strip() or "local"
    tz_upper = tz_str_raw.upper()

    if tz_upper == "LOCAL":
        # User's system zone (DST aware)
        local_tz_obj = tzlocal.get_localzone()
        tz_name = getattr(local_tz_obj, "zone", None) or getattr(local_tz_obj, "key", None)
        if not tz_name:
            return local_tz_obj
    elif tz_upper in ("UTC", "Z"):
        return pytz.utc
    else:
        tz_name = ABBR_TO_TZ.get(tz_upper, tz_str_raw)

    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        # Last-ditch attempt with dateutil (may return fixed offset)
        fallback = du_tz.gettz(tz_name)
        if fallback is None:
            logger.warning("Couldn't resolve timezone '%s' - using UTC", tz_str_raw)
            return pytz.utc
        return fallback


def attach_timezone(tzobj: tzinfo, naive_dt: datetime) -> datetime:
    """Return timezone-aware datetime, using proper DST rules where possible.

    Args:
        tzobj: The timezone object (pytz or dateutil).
        naive_dt: A naive datetime to attach the timezone to.

    Returns:
        A timezone-aware datetime.
    """
    if hasattr(tzobj, "localize"):
        # pytz: honour DST rules, prefer the earlier offset on ambiguous times
        try:
            return tzobj.localize(naive_dt, is_dst=None)
        except (pytz.AmbiguousTimeError, pytz.NonExistentTimeError):
            return tzobj.localize(naive_dt, is_dst=True)
    # zoneinfo/dateutil implement DST via utcoffset()
    return naive_dt.replace(tzinfo=tzobj)


def to_utc(dt: datetime, default_tz: Optional[Union[str, tzinfo]] = None) -> datetime:
    """Convert a datetime to UTC, interpreting naive values in ``default_tz``."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        dt = attach_timezone(resolve_timezone(default_tz), dt)
    return dt.astimezone(pytz.utc)
