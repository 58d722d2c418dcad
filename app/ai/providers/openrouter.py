"""OpenRouter question provider using the OpenAI-compatible API."""

from __future__ import annotations

import os
from typing import Any, Final

from openai import AsyncOpenAI

from app.ai.providers.base import DEFAULT_MAX_MATERIAL_CHARS
from app.ai.providers.openai import OpenAIQuestionProvider

OPENROUTER_BASE_URL: Final[str] = "https://openrouter.ai/api/v1"


class OpenRouterQuestionProvider(OpenAIQuestionProvider):
  """OpenRouter provider; many routed models ignore ``response_format`` so the prompt carries the format."""

  name = "openrouter"

  def __init__(self, *, api_key: str, model: str = "openai/gpt-oss-20b:free", base_url: str = OPENROUTER_BASE_URL, max_material_chars: int = DEFAULT_MAX_MATERIAL_CHARS) -> None:
    self._base_url = base_url or OPENROUTER_BASE_URL
    super().__init__(api_key=api_key, model=model, max_material_chars=max_material_chars)

  def _build_client(self, api_key: str) -> AsyncOpenAI:
    # OpenRouter accepts optional attribution headers.
    default_headers = {}
    referer = os.getenv("OPENROUTER_HTTP_REFERER")
    if referer:
      default_headers["HTTP-Referer"] = referer
    title = os.getenv("OPENROUTER_TITLE")
    if title:
      default_headers["X-Title"] = title

    return AsyncOpenAI(api_key=api_key, base_url=self._base_url, default_headers=default_headers or None)

  def _response_format(self) -> dict[str, Any] | None:
    return None
