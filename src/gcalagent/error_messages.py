"""User-friendly error message handling."""

from gcalagent.exceptions.errors import (
    ErrorKind,
    ExtractionFailedError,
    GCalAgentError,
    InvalidResponseError,
)


# Error message mappings for user-friendly display
ERROR_MAPPINGS = {
    "api key": "Your API key appears to be invalid or expired. Please check your settings.",
    "rate limit": "Too many requests. Please wait a moment and try again.",
    "network": "Network error. Please check your internet connection.",
    "timeout": "Request timed out. Please try again.",
    "quota": "API quota exceeded. Please try again later or check your API plan.",
}

KIND_MESSAGES = {
    ErrorKind.INVALID_URL: (
        "That doesn't look like an Instagram post link. "
        "Use a URL like https://www.instagram.com/p/<id>/."
    ),
    ErrorKind.EXTRACTION_FAILED: (
        "Couldn't read that post. It may be private or Instagram is blocking "
        "access right now. Try pasting the caption as text instead."
    ),
    ErrorKind.INTERPRETATION_FAILED: "The AI service could not be reached. Please try again.",
    ErrorKind.INVALID_RESPONSE: (
        "The AI returned an unexpected response. Please try rephrasing your event description."
    ),
    ErrorKind.INVALID_DATE: "The AI returned a date that couldn't be understood.",
}


def get_user_friendly_error(error: Exception) -> str:
    """Convert an exception to a user-friendly error message.

    Args:
        error: The exception to convert.

    Returns:
        A user-friendly error message string.
    """
    error_str = str(error).lower()

    if isinstance(error, InvalidResponseError) and error.missing_fields:
        return f"Event data is incomplete: missing {', '.join(sorted(error.missing_fields))}"

    if isinstance(error, ExtractionFailedError) and not error.failures:
        # Raised for posts that were fetched but had nothing to read
        return str(error)

    if isinstance(error, GCalAgentError) and error.kind != ErrorKind.INTERPRETATION_FAILED:
        return KIND_MESSAGES.get(error.kind, str(error))

    # Service failures: pattern matches carry more detail than the kind text
    for pattern, message in ERROR_MAPPINGS.items():
        if pattern in error_str:
            return message

    if isinstance(error, GCalAgentError):
        return KIND_MESSAGES.get(error.kind, str(error))

    return f"An error occurred: {str(error)}"
