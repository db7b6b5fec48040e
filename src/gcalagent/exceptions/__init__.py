"""Custom exceptions for gcalagent."""

from gcalagent.exceptions.errors import (
    ErrorKind,
    GCalAgentError,
    InvalidUrlError,
    StrategyFailedError,
    ExtractionFailedError,
    InterpretationFailedError,
    InvalidResponseError,
    InvalidDateError,
)

__all__ = [
    "ErrorKind",
    "GCalAgentError",
    "InvalidUrlError",
    "StrategyFailedError",
    "ExtractionFailedError",
    "InterpretationFailedError",
    "InvalidResponseError",
    "InvalidDateError",
]
