"""Exception types for gcalagent.

Every pipeline failure is one of these; each carries an ``ErrorKind`` so the
orchestrator can report it without inspecting messages.
"""

from enum import Enum
from typing import Iterable, List, Optional, Set, Tuple


class ErrorKind(str, Enum):
    """Terminal failure categories of a pipeline run."""

    INVALID_URL = "invalid_url"
    EXTRACTION_FAILED = "extraction_failed"
    INTERPRETATION_FAILED = "interpretation_failed"
    INVALID_RESPONSE = "invalid_response"
    INVALID_DATE = "invalid_date"


class GCalAgentError(Exception):
    """Base class for all gcalagent errors."""

    kind: ErrorKind = ErrorKind.INTERPRETATION_FAILED


class InvalidUrlError(GCalAgentError):
    """The URL does not look like a supported post, reel or TV link."""

    kind = ErrorKind.INVALID_URL

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Unsupported post URL: {url!r}")


class StrategyFailedError(GCalAgentError):
    """A single extraction strategy could not produce a post."""

    kind = ErrorKind.EXTRACTION_FAILED

    def __init__(self, strategy: str, reason: str):
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"{strategy}: {reason}")


class ExtractionFailedError(GCalAgentError):
    """Every extraction strategy failed for a URL."""

    kind = ErrorKind.EXTRACTION_FAILED

    def __init__(
        self,
        url: str,
        failures: Optional[Iterable[Tuple[str, str]]] = None,
        message: Optional[str] = None,
    ):
        self.url = url
        self.failures: List[Tuple[str, str]] = list(failures or [])
        if message is None:
            if self.failures:
                details = "; ".join(f"{name}: {reason}" for name, reason in self.failures)
                message = f"Could not extract post content from {url} ({details})"
            else:
                message = f"Could not extract post content from {url}"
        super().__init__(message)


class InterpretationFailedError(GCalAgentError):
    """The completion service call itself failed."""

    kind = ErrorKind.INTERPRETATION_FAILED


class InvalidResponseError(GCalAgentError):
    """The completion service answered, but the payload was unusable."""

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(
        self,
        message: str,
        raw_text: Optional[str] = None,
        missing_fields: Optional[Set[str]] = None,
    ):
        self.raw_text = raw_text
        self.missing_fields = set(missing_fields or ())
        super().__init__(message)


class InvalidDateError(GCalAgentError):
    """A timestamp could not be parsed."""

    kind = ErrorKind.INVALID_DATE

    def __init__(self, value: object, field_name: Optional[str] = None):
        self.value = value
        self.field_name = field_name
        label = f" for {field_name}" if field_name else ""
        super().__init__(f"Invalid date{label}: {value!r}")
