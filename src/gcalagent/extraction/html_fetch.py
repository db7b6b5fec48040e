"""Strategy 3: fetch the raw page and read its Open Graph tags."""

import logging
from typing import Optional

import requests

from gcalagent.config.constants import BROWSER_HEADERS, BROWSER_USER_AGENT, STRATEGY_HTML
from gcalagent.core.event_model import RawPost
from gcalagent.extraction.base import ExtractionStrategy
from gcalagent.extraction.meta_tags import post_from_html

logger = logging.getLogger(__name__)


class HTMLMetaStrategy(ExtractionStrategy):
    """GET the post page with a desktop browser signature and scan meta tags."""

    name = STRATEGY_HTML

    def __init__(
        self,
        timeout: float,
        user_agent: str = BROWSER_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(timeout)
        self.user_agent = user_agent
        self.session = session or requests.Session()

    def fetch_html(self, url: str) -> str:
        headers = dict(BROWSER_HEADERS)
        headers["User-Agent"] = self.user_agent
        response = self.session.get(
            url, headers=headers, timeout=self.timeout, allow_redirects=True
        )
        response.raise_for_status()
        return response.text

    def try_extract(self, url: str) -> Optional[RawPost]:
        html = self.fetch_html(url)
        post = post_from_html(html, url)
        if not post.is_usable():
            # Instagram serves a login wall without og tags to suspected bots
            raise self.fail("no caption or thumbnail in page meta tags (login wall?)")
        return post
