"""Ordered strategy chain for post extraction."""

import logging
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import requests

from gcalagent.config.constants import (
    STRATEGY_AI_FETCH,
    STRATEGY_HEADLESS,
    STRATEGY_HTML,
    STRATEGY_OEMBED,
)
from gcalagent.config.settings import ExtractionConfig
from gcalagent.core.event_model import RawPost
from gcalagent.core.gemini_client import CompletionService
from gcalagent.exceptions.errors import ExtractionFailedError, StrategyFailedError
from gcalagent.extraction.ai_fetch import AIFetchStrategy
from gcalagent.extraction.base import ExtractionStrategy
from gcalagent.extraction.headless import HeadlessBrowserStrategy
from gcalagent.extraction.html_fetch import HTMLMetaStrategy
from gcalagent.extraction.oembed import OEmbedStrategy
from gcalagent.extraction.urls import normalize_post_url, validate_post_url

logger = logging.getLogger(__name__)


class StrategyChain:
    """Tries strategies in order and returns the first captioned post."""

    def __init__(
        self,
        strategies: Sequence[ExtractionStrategy],
        skipped: Optional[Sequence[Tuple[str, str]]] = None,
    ):
        """Initialize the chain.

        Args:
            strategies: Strategies in the order they are tried.
            skipped: ``(name, reason)`` for configured strategies that could
                not be built; reported with every extraction failure.
        """
        self.skipped = list(skipped or [])
        if not strategies and not self.skipped:
            raise ValueError("StrategyChain needs at least one strategy")
        self.strategies = list(strategies)

    @property
    def names(self) -> List[str]:
        return [strategy.name for strategy in self.strategies]

    def extract(self, url: str) -> RawPost:
        """Extract a post, stopping at the first strategy that succeeds.

        Args:
            url: Post URL; validated and normalized before any strategy runs.

        Returns:
            The first post with a caption. A thumbnail-only post is returned
            only when no later strategy finds a caption.

        Raises:
            InvalidUrlError: If the URL is not a supported post URL.
            ExtractionFailedError: If every strategy failed.
        """
        url = normalize_post_url(validate_post_url(url))
        failures: List[Tuple[str, str]] = list(self.skipped)
        thumbnail_only: Optional[RawPost] = None

        for strategy in self.strategies:
            started = time.monotonic()
            try:
                post = strategy.try_extract(url)
            except StrategyFailedError as e:
                reason = e.reason
            except requests.Timeout:
                reason = f"timed out after {strategy.timeout:.0f}s"
            except requests.RequestException as e:
                reason = f"HTTP error: {e}"
            except Exception as e:
                # Any strategy error is a strategy failure, never a chain abort
                reason = f"{type(e).__name__}: {e}"
            else:
                if post is not None and post.has_caption():
                    logger.info(
                        "Extracted %s via %s in %.1fs",
                        url, strategy.name, time.monotonic() - started
                    )
                    return post
                if post is not None and post.is_usable():
                    if thumbnail_only is None:
                        thumbnail_only = post
                    reason = "no caption (thumbnail only)"
                else:
                    reason = "no usable content"

            logger.warning("Strategy %s failed for %s: %s", strategy.name, url, reason)
            failures.append((strategy.name, reason))

        if thumbnail_only is not None:
            logger.info("No caption found for %s, keeping thumbnail-only post", url)
            return thumbnail_only
        raise ExtractionFailedError(url, failures)


def build_strategy_chain(
    config: ExtractionConfig,
    service: Optional[CompletionService] = None,
    session: Optional[requests.Session] = None,
) -> StrategyChain:
    """Build a chain in the configured order with the configured timeouts.

    Args:
        config: Strategy order, timeouts and per-strategy settings.
        service: Completion service for the AI fetch strategy; without one
            that strategy is left out and reported as skipped.
        session: Shared HTTP session for the HTTP strategies.

    Raises:
        ValueError: On unknown strategy names.
    """
    session = session or requests.Session()

    factories: Dict[str, Callable[[float], Optional[ExtractionStrategy]]] = {
        STRATEGY_OEMBED: lambda timeout: OEmbedStrategy(
            timeout,
            endpoint=config.oembed_endpoint,
            access_token=config.oembed_access_token,
            session=session,
        ),
        STRATEGY_AI_FETCH: lambda timeout: (
            AIFetchStrategy(timeout, service) if service is not None else None
        ),
        STRATEGY_HTML: lambda timeout: HTMLMetaStrategy(
            timeout, user_agent=config.user_agent, session=session
        ),
        STRATEGY_HEADLESS: lambda timeout: HeadlessBrowserStrategy(timeout, config=config),
    }

    unknown = [name for name in config.strategy_order if name not in factories]
    if unknown:
        raise ValueError(
            f"Unknown extraction strategies {unknown}; expected some of {sorted(factories)}"
        )

    strategies = []
    skipped = []
    for name in config.strategy_order:
        strategy = factories[name](config.timeout_for(name))
        if strategy is None:
            logger.info("Skipping %s strategy: no completion service configured", name)
            skipped.append((name, "no completion service configured"))
            continue
        strategies.append(strategy)
    return StrategyChain(strategies, skipped=skipped)
