"""Pipeline orchestration: URL, text or image in, calendar artifacts out."""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from gcalagent.config.settings import AppConfig
from gcalagent.core.calendar_links import CalendarLinkGenerator
from gcalagent.core.event_model import CalendarArtifactSet, NormalizedEvent, RawPost
from gcalagent.core.gemini_client import CompletionService, GeminiCompletionService
from gcalagent.core.interpreter import EventInterpreter
from gcalagent.error_messages import get_user_friendly_error
from gcalagent.exceptions.errors import (
    ErrorKind,
    ExtractionFailedError,
    GCalAgentError,
    InterpretationFailedError,
)
from gcalagent.extraction.chain import StrategyChain, build_strategy_chain
from gcalagent.extraction.urls import normalize_post_url, validate_post_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Completed:
    """Terminal success state."""

    artifacts: CalendarArtifactSet
    event: NormalizedEvent
    source_url: Optional[str] = None

    ok = True


@dataclass(frozen=True)
class Failed:
    """Terminal failure state."""

    kind: ErrorKind
    message: str
    error: Optional[GCalAgentError] = None

    ok = False


PipelineResult = Union[Completed, Failed]


class EventPipeline:
    """Single-pass pipeline; no stage is retried.

    Build one per request: strategies and the interpreter hold no shared
    state apart from the headless browser limiter.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        interpreter: Optional[EventInterpreter] = None,
        extractor: Optional[StrategyChain] = None,
        generator: Optional[CalendarLinkGenerator] = None,
        service: Optional[CompletionService] = None,
    ):
        """Initialize the pipeline.

        Args:
            config: Application configuration (default: empty AppConfig).
            interpreter: Event interpreter; built from ``service`` if omitted.
            extractor: Post extraction chain; built from config if omitted.
            generator: Artifact generator.
            service: Completion service; a Gemini client is created from the
                configured API key when neither this nor ``interpreter`` is given.
        """
        self.config = config or AppConfig()
        self._service = service
        self._interpreter = interpreter
        self._extractor = extractor
        self.generator = generator or CalendarLinkGenerator()

    @property
    def service(self) -> CompletionService:
        if self._service is None:
            self._service = GeminiCompletionService(self.config.api_key, self.config.api)
        return self._service

    @property
    def interpreter(self) -> EventInterpreter:
        if self._interpreter is None:
            self._interpreter = EventInterpreter(
                self.service,
                default_timezone=self.config.default_timezone,
                timeout=self.config.api.timeout_seconds,
            )
        return self._interpreter

    @property
    def extractor(self) -> StrategyChain:
        if self._extractor is None:
            try:
                service = self.service
            except InterpretationFailedError as e:
                logger.info("Building extraction chain without AI fetch: %s", e)
                service = None
            self._extractor = build_strategy_chain(self.config.extraction, service)
        return self._extractor

    def run(
        self,
        url: Optional[str] = None,
        text: Optional[str] = None,
        image: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> PipelineResult:
        """Dispatch on the single input provided.

        Raises:
            ValueError: If zero or several inputs are given.
        """
        provided = [name for name, value in (("url", url), ("text", text), ("image", image)) if value]
        if len(provided) != 1:
            raise ValueError(
                f"Exactly one of url, text or image is required (got {provided or 'none'})"
            )
        if url:
            return self.from_url(url)
        if text:
            return self.from_text(text)
        return self.from_image(image, mime_type)

    def from_url(self, url: str) -> PipelineResult:
        """Extract a post, interpret its caption and render artifacts."""
        logger.info("Pipeline start: url %s", url)
        try:
            source_url = normalize_post_url(validate_post_url(url))
            post = self.extractor.extract(source_url)
            return self._complete_from_post(post, source_url)
        except GCalAgentError as e:
            return self._failed(e)

    def _complete_from_post(self, post: RawPost, source_url: str) -> Completed:
        caption = post.caption.strip()
        if not caption:
            raise ExtractionFailedError(
                source_url, message="The post has no caption text to read an event from."
            )
        context = f"Instagram post by {post.author or 'unknown'}"
        event = self.interpreter.interpret_text(caption, context=context)
        return self._completed(event, source_url)

    def from_text(self, text: str) -> PipelineResult:
        """Interpret free-form text and render artifacts."""
        if not text or not text.strip():
            raise ValueError("text must not be empty")
        logger.info("Pipeline start: text (%d chars)", len(text))
        try:
            event = self.interpreter.interpret_text(text)
            return self._completed(event)
        except GCalAgentError as e:
            return self._failed(e)

    def from_image(self, image_bytes: bytes, mime_type: Optional[str] = None) -> PipelineResult:
        """Interpret an image and render artifacts."""
        if not image_bytes:
            raise ValueError("image must not be empty")
        logger.info("Pipeline start: image (%d bytes)", len(image_bytes))
        try:
            event = self.interpreter.interpret_image(image_bytes, mime_type)
            return self._completed(event)
        except GCalAgentError as e:
            return self._failed(e)

    def _completed(self, event: NormalizedEvent, source_url: Optional[str] = None) -> Completed:
        artifacts = self.generator.generate(event, source_url)
        logger.info("Pipeline completed: '%s'", event.title)
        return Completed(artifacts=artifacts, event=event, source_url=source_url)

    def _failed(self, error: GCalAgentError) -> Failed:
        logger.warning("Pipeline failed (%s): %s", error.kind.value, error)
        return Failed(kind=error.kind, message=get_user_friendly_error(error), error=error)


def from_url(url: str, config: Optional[AppConfig] = None) -> PipelineResult:
    return EventPipeline(config).from_url(url)


def from_text(text: str, config: Optional[AppConfig] = None) -> PipelineResult:
    return EventPipeline(config).from_text(text)


def from_image(
    image_bytes: bytes, mime_type: Optional[str] = None, config: Optional[AppConfig] = None
) -> PipelineResult:
    return EventPipeline(config).from_image(image_bytes, mime_type)
