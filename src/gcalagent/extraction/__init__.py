"""Post extraction: URL rules, strategies and the strategy chain."""

from gcalagent.extraction.base import ExtractionStrategy
from gcalagent.extraction.chain import StrategyChain, build_strategy_chain
from gcalagent.extraction.oembed import OEmbedStrategy
from gcalagent.extraction.ai_fetch import AIFetchStrategy
from gcalagent.extraction.html_fetch import HTMLMetaStrategy
from gcalagent.extraction.headless import HeadlessBrowserStrategy, BrowserLimiter
from gcalagent.extraction.urls import is_valid_post_url, normalize_post_url, validate_post_url

__all__ = [
    "ExtractionStrategy",
    "StrategyChain",
    "build_strategy_chain",
    "OEmbedStrategy",
    "AIFetchStrategy",
    "HTMLMetaStrategy",
    "HeadlessBrowserStrategy",
    "BrowserLimiter",
    "is_valid_post_url",
    "normalize_post_url",
    "validate_post_url",
]
