"""
gcalagent - Social Post to Calendar Event Converter

Turns an Instagram post URL, free-form text or an image into Google Calendar,
Outlook and Apple (.ics) calendar artifacts, using Google's Gemini AI to
read the event details.
"""

__version__ = "1.0.0"

# Public API - import commonly used components
from gcalagent.config.settings import AppConfig, APIConfig, ExtractionConfig
from gcalagent.exceptions.errors import (
    ErrorKind,
    GCalAgentError,
    InvalidUrlError,
    ExtractionFailedError,
    InterpretationFailedError,
    InvalidResponseError,
    InvalidDateError,
)
from gcalagent.core.calendar_links import CalendarLinkGenerator, generate
from gcalagent.core.datetime_normalizer import normalize
from gcalagent.core.event_model import CalendarArtifactSet, NormalizedEvent, RawPost
from gcalagent.core.interpreter import EventInterpreter
from gcalagent.extraction.chain import StrategyChain, build_strategy_chain
from gcalagent.pipeline import Completed, EventPipeline, Failed

__all__ = [
    # Version
    "__version__",
    # Config
    "AppConfig",
    "APIConfig",
    "ExtractionConfig",
    # Exceptions
    "ErrorKind",
    "GCalAgentError",
    "InvalidUrlError",
    "ExtractionFailedError",
    "InterpretationFailedError",
    "InvalidResponseError",
    "InvalidDateError",
    # Core
    "CalendarLinkGenerator",
    "generate",
    "normalize",
    "CalendarArtifactSet",
    "NormalizedEvent",
    "RawPost",
    "EventInterpreter",
    "StrategyChain",
    "build_strategy_chain",
    # Pipeline
    "Completed",
    "EventPipeline",
    "Failed",
]
