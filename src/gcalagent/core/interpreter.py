"""Event interpretation: completion service reply -> NormalizedEvent."""

import logging
from datetime import datetime, tzinfo
from string import Formatter
from typing import Callable, Optional, Union

from gcalagent.core.datetime_normalizer import normalize
from gcalagent.core.event_model import NormalizedEvent, RawEventFields
from gcalagent.core.gemini_client import CompletionService, ImagePayload
from gcalagent.core.image_preprocessing import preprocess_image_bytes
from gcalagent.core.timezone_utils import resolve_timezone
from gcalagent.exceptions.errors import InvalidResponseError
from gcalagent.utils.json_recovery import parse_json_object

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "startDateTime", "endDateTime")


class EventInterpreter:
    """Turns text or images into a NormalizedEvent via a completion service."""

    # System prompt for the LLM
    SYSTEM_PROMPT = """
You are an expert at extracting calendar event information from social media
posts, messages, flyers and screenshots.

Return ONLY a valid JSON object with these keys:
  - "title"         : event name (required)
  - "startDateTime" : ISO 8601 date-time (required)
  - "endDateTime"   : ISO 8601 date-time (required)
  - "location"      : physical or virtual location, "" if none
  - "description"   : brief description, "" if none

Rules:
1. For relative dates like "tomorrow" or "next Friday", calculate from the
   current date given below.
2. If only a date is given (no time), use 10:00 AM.
3. If no end time is given, set the end to 1 hour after the start.
4. For ranges with a single AM/PM suffix such as "12-6pm", both ends share
   the suffix (12:00 PM to 6:00 PM).
5. Write times in the user's timezone with its UTC offset unless the source
   states another timezone.
6. Give the location as a full address when it can be derived (venue plus
   street/city); otherwise the venue name, "virtual", "Zoom", etc.

Do not wrap the JSON in markdown code blocks or backticks. No additional text.
"""

    TEXT_PROMPT_TEMPLATE = """
Current date/time for reference: {current_datetime} ({day_name})
User timezone: {user_timezone}
{context_line}
Text to parse:
{event_text}
"""

    IMAGE_PROMPT_TEMPLATE = """
Extract the calendar event shown in the attached image. Read all visible
text: dates, times, venue names, addresses and event names.

Current date/time for reference: {current_datetime} ({day_name})
User timezone: {user_timezone}
"""

    def __init__(
        self,
        service: CompletionService,
        default_timezone: Optional[Union[str, tzinfo]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the interpreter.

        Args:
            service: Completion backend.
            default_timezone: Zone used for the prompt and for timestamps the
                model returns without an offset (default: local zone).
            clock: Returns the current time (default: ``datetime.now``).
            timeout: Per-call timeout passed to the service.
        """
        self.service = service
        self.tz = resolve_timezone(default_timezone)
        self.clock = clock or (lambda: datetime.now(self.tz))
        self.timeout = timeout
        self._validate_prompt_templates()

    def _validate_prompt_templates(self) -> None:
        """Validate that the prompt templates have the expected keys."""
        expected = {
            "TEXT_PROMPT_TEMPLATE": {
                "current_datetime", "day_name", "user_timezone", "context_line", "event_text"
            },
            "IMAGE_PROMPT_TEMPLATE": {"current_datetime", "day_name", "user_timezone"},
        }
        for attr, required_keys in expected.items():
            found_keys = {
                fn for _, fn, _, _ in Formatter().parse(getattr(self, attr)) if fn
            }
            if found_keys != required_keys:
                raise ValueError(
                    f"Template mismatch in {attr}! "
                    f"Expected keys {required_keys} but got {found_keys}"
                )

    def _date_context(self) -> dict:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=self.tz)
        return {
            "current_datetime": now.isoformat(timespec="seconds"),
            "day_name": now.strftime("%A"),
            "user_timezone": str(getattr(self.tz, "zone", None) or self.tz),
        }

    def build_text_prompt(self, text: str, context: Optional[str] = None) -> str:
        return self.TEXT_PROMPT_TEMPLATE.format(
            event_text=text.strip(),
            context_line=f"Context: {context}\n" if context else "",
            **self._date_context(),
        )

    def build_image_prompt(self) -> str:
        return self.IMAGE_PROMPT_TEMPLATE.format(**self._date_context())

    def interpret_text(self, text: str, context: Optional[str] = None) -> NormalizedEvent:
        """Interpret free-form text (e.g. a post caption) as an event.

        Raises:
            InterpretationFailedError: If the service call fails.
            InvalidResponseError: If the reply is not a usable event object.
            InvalidDateError: If a returned timestamp cannot be parsed.
        """
        prompt = self.build_text_prompt(text, context)
        reply = self.service.complete(
            prompt, system_instruction=self.SYSTEM_PROMPT, timeout=self.timeout
        )
        return self.parse_reply(reply)

    def interpret_image(
        self, image_bytes: bytes, mime_type: Optional[str] = None
    ) -> NormalizedEvent:
        """Interpret an image (flyer, screenshot) as an event.

        Raises the same errors as ``interpret_text``.
        """
        payload: ImagePayload = preprocess_image_bytes(image_bytes, mime_type)
        reply = self.service.complete(
            self.build_image_prompt(),
            system_instruction=self.SYSTEM_PROMPT,
            image=payload,
            timeout=self.timeout,
        )
        return self.parse_reply(reply)

    def parse_reply(self, reply: Optional[str]) -> NormalizedEvent:
        """Recover, validate and normalize a raw service reply."""
        if not reply or not reply.strip():
            raise InvalidResponseError("AI service returned an empty response", raw_text=reply)

        try:
            fields = parse_json_object(reply)
        except ValueError as e:
            logger.warning("Unusable AI response: %s", e)
            raise InvalidResponseError(
                "The AI returned invalid JSON", raw_text=reply
            ) from e

        return self.to_event(fields, raw_text=reply)

    def to_event(self, fields: RawEventFields, raw_text: Optional[str] = None) -> NormalizedEvent:
        """Validate untyped fields and build a NormalizedEvent."""
        missing = {
            name for name in REQUIRED_FIELDS
            if fields.get(name) is None or not str(fields.get(name)).strip()
        }
        if missing:
            raise InvalidResponseError(
                f"AI response is missing required fields: {', '.join(sorted(missing))}",
                raw_text=raw_text,
                missing_fields=missing,
            )

        interval = normalize(fields["startDateTime"], fields["endDateTime"], self.tz)
        event = NormalizedEvent(
            title=str(fields["title"]),
            start=interval.start,
            end=interval.end,
            location=fields.get("location"),
            description=fields.get("description"),
        )
        logger.info(
            "Interpreted event '%s' (%s - %s)",
            event.title, event.start.isoformat(), event.end.isoformat()
        )
        return event
