"""Duplicate suppression for candidate questions."""

from __future__ import annotations

from collections.abc import Iterable

from app.ai.pipeline.contracts import CandidateQuestion
from app.services.text_normalizer import normalize_stem


def build_seen_set(texts: Iterable[str | None]) -> set[str]:
  """Seed the seen-set from stored question texts."""
  return {key for key in (normalize_stem(text) for text in texts) if key}


def filter_unique(candidates: Iterable[CandidateQuestion], seen: set[str]) -> list[CandidateQuestion]:
  """Return candidates whose normalized stem is new, recording each accepted stem in ``seen``.

  ``seen`` is mutated so a caller running several passes (one per generation
  attempt) also rejects repeats across passes.
  """
  survivors: list[CandidateQuestion] = []
  for candidate in candidates:
    key = normalize_stem(candidate.text)
    if not key or key in seen:
      continue
    seen.add(key)
    survivors.append(candidate)
  return survivors
