"""Classification of completion-service errors."""

import logging

from gcalagent.config.constants import API_KEY_ERROR_PATTERNS, RATE_LIMIT_ERROR_PATTERNS
from gcalagent.exceptions.errors import InterpretationFailedError

logger = logging.getLogger(__name__)


def _matches(error: BaseException, patterns) -> bool:
    error_str = str(error).lower()
    error_type = type(error).__name__.lower()
    if any(pattern in error_str or pattern in error_type for pattern in patterns):
        return True
    # Also check the exception chain (__cause__) for wrapped errors
    cause = error.__cause__
    if cause is not None:
        cause_str = str(cause).lower()
        return any(pattern in cause_str for pattern in patterns)
    return False


def is_api_key_error(error: BaseException) -> bool:
    """Check if error is related to API key issues."""
    return _matches(error, API_KEY_ERROR_PATTERNS)


def is_rate_limit_error(error: BaseException) -> bool:
    """Check if error reports throttling or an exhausted quota."""
    return _matches(error, RATE_LIMIT_ERROR_PATTERNS)


def wrap_service_error(error: BaseException, masked_key: str) -> InterpretationFailedError:
    """Wrap a completion-service failure with a user-friendly message.

    Args:
        error: The original exception.
        masked_key: The masked API key for logging.

    Returns:
        An InterpretationFailedError describing the failure.
    """
    if is_api_key_error(error):
        if "expired" in str(error).lower():
            msg = "API key has expired. Please renew your Gemini API key."
        else:
            msg = "API key is invalid. Please check your Gemini API key."
        logger.error("API key error (%s): %s", masked_key, error)
        return InterpretationFailedError(msg)

    if is_rate_limit_error(error):
        logger.error("Completion service rate limited: %s", error)
        return InterpretationFailedError(
            "The AI service is rate limiting requests. Please try again shortly."
        )

    logger.error("Completion service call failed (%s): %s", type(error).__name__, error)
    return InterpretationFailedError(
        f"AI service call failed: {type(error).__name__}: {error}"
    )
