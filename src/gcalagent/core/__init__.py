"""Core business logic for gcalagent."""

from gcalagent.core.calendar_links import CalendarLinkGenerator, generate
from gcalagent.core.datetime_normalizer import NormalizedInterval, normalize
from gcalagent.core.event_model import CalendarArtifactSet, NormalizedEvent, RawPost
from gcalagent.core.gemini_client import CompletionService, GeminiCompletionService
from gcalagent.core.interpreter import EventInterpreter

__all__ = [
    "CalendarLinkGenerator",
    "generate",
    "NormalizedInterval",
    "normalize",
    "CalendarArtifactSet",
    "NormalizedEvent",
    "RawPost",
    "CompletionService",
    "GeminiCompletionService",
    "EventInterpreter",
]
