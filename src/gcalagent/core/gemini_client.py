"""Gemini completion service used for event interpretation and AI page fetches."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from gcalagent.config.settings import API_CONFIG, APIConfig
from gcalagent.core.service_errors import wrap_service_error
from gcalagent.exceptions.errors import InterpretationFailedError
from gcalagent.utils.masking import mask_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePayload:
    """Inline image sent alongside a prompt."""

    data: bytes
    mime_type: str


class CompletionService(ABC):
    """A text/vision completion backend returning free-form text."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        image: Optional[ImagePayload] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Run one completion.

        Args:
            prompt: The user prompt.
            system_instruction: Optional system-level instruction.
            image: Optional inline image.
            timeout: Request timeout in seconds.

        Returns:
            The reply text (possibly empty).

        Raises:
            InterpretationFailedError: If the call itself fails.
        """


class GeminiCompletionService(CompletionService):
    """Completion service backed by Google's Gemini API."""

    def __init__(self, api_key: str, config: APIConfig = API_CONFIG):
        """Initialize the client with the given API key.

        Args:
            api_key: The Gemini API key.
            config: Model and generation settings.
        """
        if not api_key:
            raise InterpretationFailedError(
                "No Gemini API key configured. Set GEMINI_API_KEY or run 'gcalagent set-key'."
            )

        # Import genai here for lazy loading
        import google.generativeai as genai
        self.genai = genai
        self.config = config
        self.api_key_masked = mask_key(api_key)

        self.genai.configure(api_key=api_key)

        self.generation_config = {
            "temperature": config.temperature,
            "top_p": config.top_p,
            "top_k": config.top_k,
            "max_output_tokens": config.max_output_tokens,
            "response_mime_type": "text/plain",
        }
        logger.debug(
            "Gemini client ready (model=%s, key=%s)",
            config.model_name, self.api_key_masked
        )

    def _model(self, system_instruction: Optional[str]):
        return self.genai.GenerativeModel(
            model_name=self.config.model_name,
            generation_config=self.generation_config,
            system_instruction=system_instruction,
        )

    def complete(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        image: Optional[ImagePayload] = None,
        timeout: Optional[float] = None,
    ) -> str:
        contents = [prompt]
        if image is not None:
            contents.append({"mime_type": image.mime_type, "data": image.data})

        logger.debug("Gemini prompt (first 200 chars): %s", prompt[:200])
        try:
            response = self._model(system_instruction).generate_content(
                contents,
                request_options={"timeout": timeout or self.config.timeout_seconds},
            )
        except Exception as e:
            raise wrap_service_error(e, self.api_key_masked) from e

        text = self._extract_text(response)
        logger.debug("Raw Gemini response: %s", text)
        return text

    def _extract_text(self, response) -> str:
        """Extract text from an API response.

        ``response.text`` raises when the candidate was blocked or has no
        text parts, so fall back to joining the parts.
        """
        try:
            text = response.text
        except (ValueError, AttributeError) as e:
            logger.warning("Response has no direct text: %s", e)
        else:
            if text is not None:
                return text

        parts = getattr(response, "parts", None) or []
        return "".join(getattr(part, "text", "") or "" for part in parts)
