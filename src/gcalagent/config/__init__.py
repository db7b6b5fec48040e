"""Configuration module for gcalagent."""

from gcalagent.config.settings import (
    API_CONFIG,
    EXTRACTION_CONFIG,
    APIConfig,
    AppConfig,
    ExtractionConfig,
)
from gcalagent.config.constants import (
    KEYRING_SERVICE_NAME,
    KEYRING_ACCOUNT_NAME,
    PREFERRED_ENV_VAR,
    PRIMARY_ENV_VAR,
    DEFAULT_STRATEGY_ORDER,
    ICS_PRODID,
)

__all__ = [
    "API_CONFIG",
    "EXTRACTION_CONFIG",
    "APIConfig",
    "AppConfig",
    "ExtractionConfig",
    "KEYRING_SERVICE_NAME",
    "KEYRING_ACCOUNT_NAME",
    "PREFERRED_ENV_VAR",
    "PRIMARY_ENV_VAR",
    "DEFAULT_STRATEGY_ORDER",
    "ICS_PRODID",
]
