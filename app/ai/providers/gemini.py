"""Gemini question provider using the google-genai SDK."""

from __future__ import annotations

import logging
from typing import Final

from google import genai

from app.ai.providers.base import DEFAULT_MAX_MATERIAL_CHARS, QuestionProvider

logger = logging.getLogger(__name__)


class GeminiQuestionProvider(QuestionProvider):
  """Gemini provider in JSON response mode."""

  name = "gemini"
  _TEMPERATURE: Final[float] = 0.2

  def __init__(self, *, api_key: str, model: str = "gemini-2.0-flash", max_material_chars: int = DEFAULT_MAX_MATERIAL_CHARS) -> None:
    super().__init__(api_key=api_key, model=model, max_material_chars=max_material_chars)
    self._client = genai.Client(api_key=api_key)

  async def _complete(self, prompt: str) -> str:
    # Use the async client to avoid blocking the asyncio event loop.
    response = await self._client.aio.models.generate_content(model=self.model, contents=prompt, config={"response_mime_type": "application/json", "temperature": self._TEMPERATURE})
    content = response.text or ""
    logger.debug("Gemini response (%d chars) from %s", len(content), self.model)
    return content
