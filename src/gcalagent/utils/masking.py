"""Masking of secrets before they reach the logs."""

from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

SECRET_QUERY_PARAMS = {"access_token", "key", "api_key"}


def mask_key(key: Optional[str]) -> str:
    """Mask an API key, keeping the first and last four characters."""
    if not key:
        return "<empty>"
    if len(key) <= 8:
        return "***"
    return f"{key[:4]}...{key[-4:]}"


def mask_url_secrets(url: str) -> str:
    """Mask secret-looking query parameters (tokens, keys) in a URL."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (name, mask_key(value) if name.lower() in SECRET_QUERY_PARAMS else value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query)))
