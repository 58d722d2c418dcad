"""Base interface for question-generating providers."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from app.ai.errors import ProviderError, ProviderProtocolViolation, ProviderRateLimitedError, QuestionPipelineError, is_rate_limit_error
from app.ai.json_parser import parse_json_with_fallback, strip_json_fences
from app.ai.pipeline.contracts import CandidateQuestion, CandidateValidationError, validate_candidates
from app.ai.prompts import build_generation_prompt, truncate_material

logger = logging.getLogger(__name__)

DEFAULT_MAX_MATERIAL_CHARS = 60000


class QuestionProvider(ABC):
  """Turn material text into exactly ``count`` validated candidate questions.

  Subclasses only implement ``_complete``; prompt rendering, response parsing,
  shape validation and upstream error classification live here so every
  provider fails the same way.
  """

  name: str

  def __init__(self, *, api_key: str, model: str, max_material_chars: int = DEFAULT_MAX_MATERIAL_CHARS) -> None:
    if not api_key:
      raise ValueError(f"{self.name} provider requires an API key")
    self.model = model
    self._api_key = api_key
    self._max_material_chars = max_material_chars

  @abstractmethod
  async def _complete(self, prompt: str) -> str:
    """Send one prompt upstream and return the raw response text."""

  async def generate(self, material_text: str, course_label: str, topic_label: str | None, difficulty: str, *, count: int, excluded_texts: Sequence[str] = ()) -> list[CandidateQuestion]:
    """Request ``count`` questions and return them shape-validated."""
    material = truncate_material(material_text, self._max_material_chars)
    prompt = build_generation_prompt(material, course_label, topic_label, difficulty, count=count, excluded_texts=excluded_texts)

    try:
      raw = await self._complete(prompt)
    except QuestionPipelineError:
      raise
    except Exception as exc:
      if is_rate_limit_error(exc):
        logger.warning("Provider %s rate limited: %s", self.name, exc)
        raise ProviderRateLimitedError(f"{self.name} is rate limiting requests.") from exc
      # Keep upstream text in server logs only.
      logger.warning("Provider %s request failed: %s", self.name, exc)
      raise ProviderError(f"{self.name} request failed.") from exc

    return self._parse_questions(raw, count)

  def _parse_questions(self, raw: str | None, count: int) -> list[CandidateQuestion]:
    if not raw or not raw.strip():
      raise ProviderProtocolViolation(f"{self.name} returned an empty response.")

    try:
      payload: Any = parse_json_with_fallback(strip_json_fences(raw))
    except json.JSONDecodeError as exc:
      logger.warning("Provider %s returned invalid JSON: %s", self.name, exc)
      raise ProviderProtocolViolation(f"{self.name} returned invalid JSON.") from exc

    items = payload.get("questions") if isinstance(payload, dict) else None
    if not isinstance(items, list):
      raise ProviderProtocolViolation(f"{self.name} response has no questions list.")

    try:
      return validate_candidates(items, expected_count=count, require_difficulty=True)
    except CandidateValidationError as exc:
      logger.warning("Provider %s returned malformed questions: %s", self.name, exc)
      raise ProviderProtocolViolation(f"{self.name} returned malformed questions: {exc}") from exc
