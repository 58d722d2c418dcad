"""OpenAI question provider using the openai SDK."""

from __future__ import annotations

import logging
from typing import Any, Final

from openai import AsyncOpenAI

from app.ai.providers.base import DEFAULT_MAX_MATERIAL_CHARS, QuestionProvider

logger = logging.getLogger(__name__)


class OpenAIQuestionProvider(QuestionProvider):
  """OpenAI chat-completions provider in JSON object mode."""

  name = "openai"
  _TEMPERATURE: Final[float] = 0.2
  _SYSTEM_MESSAGE: Final[str] = "You write multiple-choice exam questions and reply with a single JSON object only."

  def __init__(self, *, api_key: str, model: str = "gpt-4o-mini", max_material_chars: int = DEFAULT_MAX_MATERIAL_CHARS) -> None:
    super().__init__(api_key=api_key, model=model, max_material_chars=max_material_chars)
    self._client = self._build_client(api_key)

  def _build_client(self, api_key: str) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=api_key)

  def _response_format(self) -> dict[str, Any] | None:
    return {"type": "json_object"}

  async def _complete(self, prompt: str) -> str:
    kwargs: dict[str, Any] = {}
    response_format = self._response_format()
    if response_format is not None:
      kwargs["response_format"] = response_format

    response = await self._client.chat.completions.create(model=self.model, messages=[{"role": "system", "content": self._SYSTEM_MESSAGE}, {"role": "user", "content": prompt}], temperature=self._TEMPERATURE, **kwargs)
    content = (response.choices[0].message.content or "") if response.choices else ""
    logger.debug("%s response (%d chars) from %s", self.name, len(content), self.model)
    return content
