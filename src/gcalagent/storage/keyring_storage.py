"""Keyring-based secure storage for the Gemini API key."""

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError

from gcalagent.config.constants import KEYRING_SERVICE_NAME, KEYRING_ACCOUNT_NAME

logger = logging.getLogger(__name__)

# Track whether we've seen the OS keyring fail this session
_keyring_available = True


def is_keyring_available() -> bool:
    """Check if keyring is available for use."""
    return _keyring_available


def load_from_keyring() -> Optional[str]:
    """Load the API key from the OS keyring if available.

    Returns:
        The API key if found, None otherwise.
    """
    global _keyring_available
    if not _keyring_available:
        return None

    try:
        return keyring.get_password(KEYRING_SERVICE_NAME, KEYRING_ACCOUNT_NAME)
    except (KeyringError, RuntimeError) as e:
        logger.warning("Keyring lookup failed: %s", e)
        _keyring_available = False
        return None


def save_to_keyring(api_key: str) -> bool:
    """Persist the API key to the OS keyring if available.

    Args:
        api_key: The API key to save.

    Returns:
        True if saved successfully, False otherwise.
    """
    global _keyring_available
    if not _keyring_available:
        return False

    try:
        keyring.set_password(KEYRING_SERVICE_NAME, KEYRING_ACCOUNT_NAME, api_key)
        return True
    except (KeyringError, RuntimeError) as e:
        logger.warning("Keyring save failed: %s", e)
        _keyring_available = False
        return False
