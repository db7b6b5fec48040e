"""Post URL validation and normalization."""

import re

from gcalagent.config.constants import INSTAGRAM_URL_PATTERNS
from gcalagent.exceptions.errors import InvalidUrlError

_COMPILED_PATTERNS = [re.compile(pattern) for pattern in INSTAGRAM_URL_PATTERNS]


def is_valid_post_url(url: str) -> bool:
    """Return True if ``url`` is an Instagram post, reel or TV link."""
    if not isinstance(url, str):
        return False
    candidate = url.strip()
    return any(pattern.match(candidate) for pattern in _COMPILED_PATTERNS)


def validate_post_url(url: str) -> str:
    """Return the stripped URL, or raise InvalidUrlError if unsupported."""
    if not is_valid_post_url(url):
        raise InvalidUrlError(url)
    return url.strip()


def normalize_post_url(url: str) -> str:
    """Remove query parameters, fragment and trailing slashes."""
    base = url.strip().split("#", 1)[0].split("?", 1)[0]
    return base.rstrip("/")
