"""Data models passed between pipeline stages."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import quote

from gcalagent.config.constants import ICS_DATA_URL_PREFIX

# Untyped mapping returned by the completion service.
RawEventFields = Dict[str, Any]


@dataclass(frozen=True)
class RawPost:
    """Unvalidated content scraped from a social post."""

    source_url: str
    caption: str = ""
    author: Optional[str] = None
    thumbnail_url: Optional[str] = None

    def has_caption(self) -> bool:
        return bool(self.caption.strip())

    def is_usable(self) -> bool:
        """A post is usable when it carries a caption or a thumbnail."""
        return bool(self.caption.strip() or (self.thumbnail_url or "").strip())


@dataclass(frozen=True)
class NormalizedEvent:
    """Validated calendar event with UTC start/end and ``end > start``."""

    title: str
    start: datetime
    end: datetime
    location: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        title = (self.title or "").strip()
        if not title:
            raise ValueError("Event title must not be empty")
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("Event start and end must be timezone-aware")
        if self.end <= self.start:
            raise ValueError("Event end must be after its start")
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "title", title)
        object.__setattr__(self, "location", _blank_to_none(self.location))
        object.__setattr__(self, "description", _blank_to_none(self.description))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase shape used by the completion service."""
        result = {
            "title": self.title,
            "startDateTime": self.start.isoformat(),
            "endDateTime": self.end.isoformat(),
        }
        if self.location:
            result["location"] = self.location
        if self.description:
            result["description"] = self.description
        return result


@dataclass(frozen=True)
class CalendarArtifactSet:
    """Provider-specific renderings of one event."""

    google: str
    outlook: str
    apple: str

    def apple_data_url(self) -> str:
        """Return the iCalendar body as a ``data:`` URL for direct download."""
        return ICS_DATA_URL_PREFIX + quote(self.apple, safe="")

    def to_dict(self) -> Dict[str, str]:
        return {"google": self.google, "outlook": self.outlook, "apple": self.apple}


def _blank_to_none(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
