"""Runtime configuration for gcalagent.

Configuration is built once (usually via ``AppConfig.from_env``) and injected
into the pipeline; leaf components never read the process environment.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple

from gcalagent.config.constants import (
    DEFAULT_HEADLESS_MAX_CONCURRENCY,
    DEFAULT_META_WAIT_SECONDS,
    DEFAULT_OEMBED_ENDPOINT,
    DEFAULT_STRATEGY_ORDER,
    DEFAULT_STRATEGY_TIMEOUTS,
    BROWSER_USER_AGENT,
    PREFERRED_ENV_VAR,
    PRIMARY_ENV_VAR,
    SERVERLESS_ENV_VARS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class APIConfig:
    """Settings for the Gemini completion service."""

    model_name: str = "gemini-2.0-flash"
    temperature: float = 0.3
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 2048
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class ExtractionConfig:
    """Settings for the post extraction strategy chain."""

    strategy_order: Tuple[str, ...] = DEFAULT_STRATEGY_ORDER
    timeouts: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_STRATEGY_TIMEOUTS)
    )
    oembed_endpoint: str = DEFAULT_OEMBED_ENDPOINT
    oembed_access_token: Optional[str] = None
    user_agent: str = BROWSER_USER_AGENT
    meta_wait_seconds: float = DEFAULT_META_WAIT_SECONDS
    headless_max_concurrency: int = DEFAULT_HEADLESS_MAX_CONCURRENCY
    chromium_executable_path: Optional[str] = None
    serverless: bool = False

    def timeout_for(self, strategy_name: str) -> float:
        """Return the timeout for a strategy, falling back to the default table."""
        if strategy_name in self.timeouts:
            return self.timeouts[strategy_name]
        return DEFAULT_STRATEGY_TIMEOUTS.get(strategy_name, 10.0)


@dataclass(frozen=True)
class AppConfig:
    """Top-level configuration injected into the pipeline."""

    api_key: Optional[str] = None
    default_timezone: str = "local"
    api: APIConfig = field(default_factory=APIConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)

    def with_api_key(self, api_key: str) -> "AppConfig":
        return replace(self, api_key=api_key)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        use_key_storage: bool = True,
    ) -> "AppConfig":
        """Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ).
            use_key_storage: Fall back to keyring/.env storage when no API key
                is set in the environment.

        Returns:
            A populated AppConfig.
        """
        env = os.environ if environ is None else environ

        api_key = env.get(PREFERRED_ENV_VAR) or env.get(PRIMARY_ENV_VAR)
        if not api_key and use_key_storage:
            from gcalagent.storage.key_manager import load_api_key
            api_key = load_api_key(env)

        api = APIConfig(
            model_name=env.get("GCALAGENT_MODEL") or APIConfig.model_name,
            timeout_seconds=_get_float_env(
                env, "GCALAGENT_API_TIMEOUT", APIConfig.timeout_seconds
            ),
        )

        order = DEFAULT_STRATEGY_ORDER
        raw_order = env.get("GCALAGENT_STRATEGIES")
        if raw_order:
            order = tuple(
                name.strip().lower() for name in raw_order.split(",") if name.strip()
            )

        timeouts = dict(DEFAULT_STRATEGY_TIMEOUTS)
        for name in set(order) | set(timeouts):
            env_name = f"GCALAGENT_{name.upper()}_TIMEOUT"
            timeouts[name] = _get_float_env(
                env, env_name, DEFAULT_STRATEGY_TIMEOUTS.get(name, 10.0)
            )

        chromium_path = env.get("GCALAGENT_CHROMIUM_PATH") or None
        serverless = any(env.get(name) for name in SERVERLESS_ENV_VARS)

        extraction = ExtractionConfig(
            strategy_order=order,
            timeouts=timeouts,
            oembed_endpoint=env.get("GCALAGENT_OEMBED_ENDPOINT") or DEFAULT_OEMBED_ENDPOINT,
            oembed_access_token=env.get("GCALAGENT_OEMBED_TOKEN") or None,
            meta_wait_seconds=_get_float_env(
                env, "GCALAGENT_META_WAIT", DEFAULT_META_WAIT_SECONDS
            ),
            headless_max_concurrency=max(
                1,
                _get_int_env(
                    env,
                    "GCALAGENT_HEADLESS_MAX_CONCURRENCY",
                    DEFAULT_HEADLESS_MAX_CONCURRENCY,
                ),
            ),
            chromium_executable_path=chromium_path,
            serverless=serverless,
        )

        return cls(
            api_key=api_key,
            default_timezone=env.get("GCALAGENT_TIMEZONE") or "local",
            api=api,
            extraction=extraction,
        )


def _get_int_env(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, value)
        return default


def _get_float_env(env: Mapping[str, str], name: str, default: float) -> float:
    value = env.get(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, value)
        return default
    if parsed <= 0:
        logger.warning("Ignoring non-positive %s=%r", name, value)
        return default
    return parsed


# Default instances
API_CONFIG = APIConfig()
EXTRACTION_CONFIG = ExtractionConfig()
