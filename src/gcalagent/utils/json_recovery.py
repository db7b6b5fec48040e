"""Recovery of JSON payloads from free-form model replies."""

import json
import logging
import re
from typing import Any, Dict

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*\n?([\s\S]*?)\n?```")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences and stray backticks around a payload.

    Args:
        text: Raw model reply.

    Returns:
        The fenced content when a fence is present, otherwise the trimmed text,
        in both cases without leading/trailing backticks.
    """
    cleaned = (text or "").strip()
    match = CODE_FENCE_PATTERN.search(cleaned)
    if match:
        cleaned = match.group(1).strip()
    return cleaned.strip("`").strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse a model reply into a JSON object.

    A one-element array wrapping an object is unwrapped.

    Raises:
        ValueError: If the reply is not JSON or not an object.
    """
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.debug("Failed to decode JSON: %s", e)
        logger.debug("Received text was: %s", cleaned)
        raise ValueError(f"Model returned invalid JSON: {e}") from e

    if isinstance(data, list) and len(data) == 1 and isinstance(data[0], dict):
        data = data[0]
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
