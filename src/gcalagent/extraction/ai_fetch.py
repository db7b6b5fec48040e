"""Strategy 2: ask the completion service to fetch the post for us."""

import logging
from typing import Optional

from gcalagent.config.constants import STRATEGY_AI_FETCH
from gcalagent.core.event_model import RawPost
from gcalagent.core.gemini_client import CompletionService
from gcalagent.extraction.base import ExtractionStrategy
from gcalagent.utils.json_recovery import parse_json_object

logger = logging.getLogger(__name__)


class AIFetchStrategy(ExtractionStrategy):
    """Delegates fetching and summarizing the page to the AI service."""

    name = STRATEGY_AI_FETCH

    SYSTEM_PROMPT = """You are an Instagram content extractor. Given an Instagram URL, fetch and extract the post information.

Return ONLY a valid JSON object with these fields:
- caption: The post caption/description text (string)
- username: The Instagram username who posted it (string)
- thumbnailUrl: The main image/video thumbnail URL (string, optional)

Return ONLY the JSON object, no additional text or markdown formatting."""

    USER_PROMPT_TEMPLATE = """Extract the Instagram post information from this URL: {url}

Fetch the page content and extract the caption, username, and thumbnail URL if available."""

    def __init__(self, timeout: float, service: CompletionService):
        super().__init__(timeout)
        self.service = service

    def try_extract(self, url: str) -> Optional[RawPost]:
        reply = self.service.complete(
            self.USER_PROMPT_TEMPLATE.format(url=url),
            system_instruction=self.SYSTEM_PROMPT,
            timeout=self.timeout,
        )
        if not reply or not reply.strip():
            raise self.fail("empty response")

        try:
            data = parse_json_object(reply)
        except ValueError as e:
            raise self.fail(str(e)) from e

        caption = str(data.get("caption") or "").strip()
        if not caption:
            # Without a caption there is nothing for the interpreter to read
            raise self.fail("no caption in response")

        return RawPost(
            source_url=url,
            caption=caption,
            author=str(data.get("username") or "").strip() or None,
            thumbnail_url=str(data.get("thumbnailUrl") or "").strip() or None,
        )
