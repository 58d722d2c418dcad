"""Routing utilities for provider chain selection."""

from __future__ import annotations

import logging
from enum import Enum

from app.ai.providers.base import QuestionProvider
from app.ai.providers.gemini import GeminiQuestionProvider
from app.ai.providers.openai import OpenAIQuestionProvider
from app.ai.providers.openrouter import OpenRouterQuestionProvider
from app.config import Settings

logger = logging.getLogger(__name__)


class ProviderMode(str, Enum):
  """Supported provider modes."""

  GEMINI = "gemini"
  OPENAI = "openai"
  OPENROUTER = "openrouter"


def get_provider_for_mode(mode: str | ProviderMode, settings: Settings) -> QuestionProvider:
  """Return a configured provider for the given mode; raises ValueError when it cannot be built."""
  key = mode.value if isinstance(mode, ProviderMode) else mode
  api_key = settings.provider_api_key(key)
  if not api_key:
    raise ValueError(f"Provider '{key}' has no API key configured.")

  max_chars = settings.ai_max_material_chars
  if key == ProviderMode.GEMINI.value:
    return GeminiQuestionProvider(api_key=api_key, model=settings.gemini_model, max_material_chars=max_chars)
  if key == ProviderMode.OPENAI.value:
    return OpenAIQuestionProvider(api_key=api_key, model=settings.openai_model, max_material_chars=max_chars)
  if key == ProviderMode.OPENROUTER.value:
    return OpenRouterQuestionProvider(api_key=api_key, model=settings.openrouter_model, base_url=settings.openrouter_base_url, max_material_chars=max_chars)
  raise ValueError(f"Unsupported provider mode '{mode}'.")


def build_provider_chain(settings: Settings) -> list[QuestionProvider]:
  """Build the ordered fallback chain, skipping providers without a credential."""
  chain: list[QuestionProvider] = []
  for name in settings.ai_provider_order:
    if not settings.provider_api_key(name):
      logger.info("Skipping provider %s: no API key configured", name)
      continue
    chain.append(get_provider_for_mode(name, settings))
  return chain
