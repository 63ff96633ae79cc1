"""
Gemini (Google Generative AI) client.

Wraps ``google.generativeai`` so the services only deal with prompts and
text. Provider failures surface as AssistantProviderError; a missing
GEMINI_API_KEY as AssistantNotConfiguredError.
"""

import json
import logging
from typing import Optional

import google.generativeai as genai
from django.conf import settings
from google.api_core import exceptions as google_exceptions

from .exceptions import (
    AssistantNotConfiguredError,
    AssistantProviderError,
)

logger = logging.getLogger(__name__)


class GeminiClient:
    """Text generation against a single Gemini model."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        model=None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model_name = model_name or settings.GEMINI_MODEL
        self.temperature = temperature if temperature is not None else settings.GEMINI_TEMPERATURE
        self.max_output_tokens = max_output_tokens or settings.GEMINI_MAX_OUTPUT_TOKENS
        self._model = model

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) or self._model is not None

    def _get_model(self):
        if self._model is None:
            if not self.api_key:
                raise AssistantNotConfiguredError(
                    "Gemini AI is not configured. Please add GEMINI_API_KEY to environment variables."
                )
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(
                model_name=self.model_name,
                generation_config={
                    'temperature': self.temperature,
                    'max_output_tokens': self.max_output_tokens,
                },
            )
        return self._model

    def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the reply text.

        Raises:
            AssistantNotConfiguredError: No API key
            AssistantProviderError: The API call failed or returned no text
        """
        model = self._get_model()
        try:
            response = model.generate_content(prompt)
            text = response.text
        except google_exceptions.GoogleAPIError as e:
            logger.error("Gemini request failed: %s", e)
            raise AssistantProviderError(f"Gemini request failed: {e}") from e
        except ValueError as e:
            # blocked or empty candidates
            logger.warning("Gemini returned no text: %s", e)
            raise AssistantProviderError(f"Gemini returned no text: {e}") from e

        return (text or '').strip()

    def generate_json(self, prompt: str):
        """
        Generate and decode the first JSON object or array in the reply.

        Returns None when the reply holds no valid JSON.
        """
        return extract_json(self.generate(prompt))


def extract_json(text: str):
    """Decode the outermost JSON object or array embedded in free text."""
    brackets = sorted(
        (('[', ']'), ('{', '}')),
        key=lambda pair: text.find(pair[0]) if pair[0] in text else len(text),
    )
    for opening, closing in brackets:
        start = text.find(opening)
        end = text.rfind(closing)
        if start < 0 or end <= start:
            continue
        try:
            return json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            continue
    return None


def get_client() -> GeminiClient:
    """Client configured from settings."""
    return GeminiClient()
