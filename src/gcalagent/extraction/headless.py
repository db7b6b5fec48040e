"""Strategy 4: render the post in a headless Chromium and read its meta tags.

Browsers are expensive external processes, so launches go through a
process-wide limiter and every browser is closed by the context manager that
launched it.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from gcalagent.config.constants import (
    BROWSER_USER_AGENT,
    DEFAULT_HEADLESS_MAX_CONCURRENCY,
    DEFAULT_META_WAIT_SECONDS,
    META_WAIT_SELECTOR,
    SERVERLESS_CHROMIUM_ARGS,
    STRATEGY_HEADLESS,
)
from gcalagent.config.settings import ExtractionConfig
from gcalagent.core.event_model import RawPost
from gcalagent.exceptions.errors import StrategyFailedError
from gcalagent.extraction.base import ExtractionStrategy
from gcalagent.extraction.meta_tags import post_from_html

logger = logging.getLogger(__name__)

# Called with the seconds left for the launch
BrowserFactory = Callable[[float], ContextManager]


class BrowserLimiter:
    """Bounds the number of concurrently running headless browsers."""

    def __init__(self, max_concurrency: int = DEFAULT_HEADLESS_MAX_CONCURRENCY):
        self.max_concurrency = max(1, max_concurrency)
        self._semaphore = threading.BoundedSemaphore(self.max_concurrency)

    @contextmanager
    def slot(self, timeout: float) -> Iterator[None]:
        """Hold one browser slot; raise StrategyFailedError if none frees up in time."""
        if not self._semaphore.acquire(timeout=timeout):
            raise StrategyFailedError(
                STRATEGY_HEADLESS,
                f"no browser slot free within {timeout:.0f}s "
                f"({self.max_concurrency} already running)",
            )
        try:
            yield
        finally:
            self._semaphore.release()


_shared_limiter: Optional[BrowserLimiter] = None
_shared_limiter_lock = threading.Lock()


def shared_browser_limiter(max_concurrency: int = DEFAULT_HEADLESS_MAX_CONCURRENCY) -> BrowserLimiter:
    """Return the process-wide limiter, creating it on first use."""
    global _shared_limiter
    with _shared_limiter_lock:
        if _shared_limiter is None:
            _shared_limiter = BrowserLimiter(max_concurrency)
        elif _shared_limiter.max_concurrency != max_concurrency:
            logger.debug(
                "Browser limiter already sized at %d, ignoring %d",
                _shared_limiter.max_concurrency, max_concurrency
            )
        return _shared_limiter


@contextmanager
def launch_browser(config: ExtractionConfig, timeout: float) -> Iterator[object]:
    """Launch Chromium and guarantee it is closed on every exit path.

    Serverless runtimes (or an explicit executable path) get the
    single-process flag set that works inside Lambda-like sandboxes.
    """
    launch_kwargs = {"headless": True, "timeout": timeout * 1000}
    if config.serverless or config.chromium_executable_path:
        launch_kwargs["args"] = list(SERVERLESS_CHROMIUM_ARGS)
        if config.chromium_executable_path:
            launch_kwargs["executable_path"] = config.chromium_executable_path

    with sync_playwright() as pw:
        browser = pw.chromium.launch(**launch_kwargs)
        logger.debug("Launched headless Chromium (%s)", launch_kwargs.get("executable_path", "bundled"))
        try:
            yield browser
        finally:
            browser.close()
            logger.debug("Closed headless Chromium")


class HeadlessBrowserStrategy(ExtractionStrategy):
    """Last resort: render the page, wait for og tags, scan the DOM."""

    name = STRATEGY_HEADLESS

    def __init__(
        self,
        timeout: float,
        config: Optional[ExtractionConfig] = None,
        browser_factory: Optional[BrowserFactory] = None,
        limiter: Optional[BrowserLimiter] = None,
    ):
        super().__init__(timeout)
        self.config = config or ExtractionConfig()
        self.browser_factory = browser_factory or (
            lambda seconds: launch_browser(self.config, seconds)
        )
        self.limiter = limiter or shared_browser_limiter(self.config.headless_max_concurrency)
        self.meta_wait_seconds = self.config.meta_wait_seconds or DEFAULT_META_WAIT_SECONDS
        self.user_agent = self.config.user_agent or BROWSER_USER_AGENT

    def _remaining(self, deadline: float) -> float:
        """Seconds left before ``deadline``; fail once nothing is left."""
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise self.fail(f"timed out after {self.timeout:.0f}s")
        return remaining

    def render(self, url: str) -> str:
        """Return the rendered page HTML.

        The slot wait, launch, navigation and meta wait share one deadline of
        ``self.timeout`` seconds.
        """
        deadline = time.monotonic() + self.timeout
        try:
            with self.limiter.slot(self._remaining(deadline)):
                with self.browser_factory(self._remaining(deadline)) as browser:
                    return self._render_in(browser, url, deadline)
        except PlaywrightTimeoutError as e:
            raise self.fail(f"timed out after {self.timeout:.0f}s") from e

    def _render_in(self, browser, url: str, deadline: float) -> str:
        context = browser.new_context(
            user_agent=self.user_agent,
            viewport={"width": 1280, "height": 900},
        )
        try:
            page = context.new_page()
            page.goto(
                url,
                wait_until="networkidle",
                timeout=self._remaining(deadline) * 1000,
            )
            meta_wait = min(self.meta_wait_seconds, self._remaining(deadline))
            try:
                page.wait_for_selector(
                    META_WAIT_SELECTOR,
                    state="attached",
                    timeout=meta_wait * 1000,
                )
            except PlaywrightTimeoutError:
                logger.debug("Meta tag did not appear for %s, using page as-is", url)
            return page.content()
        finally:
            context.close()

    def try_extract(self, url: str) -> Optional[RawPost]:
        post = post_from_html(self.render(url), url)
        if not post.is_usable():
            raise self.fail("rendered page has no caption or thumbnail")
        return post
