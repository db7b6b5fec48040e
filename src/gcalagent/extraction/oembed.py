"""Strategy 1: the public oEmbed endpoint."""

import logging
from typing import Optional

import requests

from gcalagent.config.constants import DEFAULT_OEMBED_ENDPOINT, STRATEGY_OEMBED
from gcalagent.core.event_model import RawPost
from gcalagent.extraction.base import ExtractionStrategy
from gcalagent.utils.masking import mask_url_secrets

logger = logging.getLogger(__name__)


class OEmbedStrategy(ExtractionStrategy):
    """Single unauthenticated GET against the embed endpoint.

    Fast and browser-free, but frequently rate limited.
    """

    name = STRATEGY_OEMBED

    def __init__(
        self,
        timeout: float,
        endpoint: str = DEFAULT_OEMBED_ENDPOINT,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(timeout)
        self.endpoint = endpoint
        self.access_token = access_token
        self.session = session or requests.Session()

    def try_extract(self, url: str) -> Optional[RawPost]:
        params = {"url": url, "omitscript": "true"}
        if self.access_token:
            params["access_token"] = self.access_token
            params["fields"] = "title,author_name,thumbnail_url"

        response = self.session.get(self.endpoint, params=params, timeout=self.timeout)
        logger.debug(
            "oEmbed %s -> HTTP %s", mask_url_secrets(response.url or self.endpoint),
            response.status_code
        )
        if response.status_code == 429:
            raise self.fail("rate limited (HTTP 429)")
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise self.fail(f"non-JSON response: {e}") from e
        if not isinstance(data, dict):
            raise self.fail("unexpected JSON payload")

        return RawPost(
            source_url=url,
            caption=(data.get("title") or "").strip(),
            author=data.get("author_name") or None,
            thumbnail_url=data.get("thumbnail_url") or None,
        )
