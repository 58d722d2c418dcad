"""Text canonicalization used by bank parsing and duplicate detection."""

from __future__ import annotations

import re

_CARRIAGE_RETURN_RE = re.compile(r"\r\n?")
_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_STEM_CHARS_RE = re.compile(r"[^a-z0-9 ]")


def normalize_text(text: str | None) -> str:
  """Canonicalize extracted document text before line-based parsing."""
  if not text:
    return ""
  unified = _CARRIAGE_RETURN_RE.sub("\n", text)
  return _EXCESS_BLANK_LINES_RE.sub("\n\n", unified).strip()


def collapse_whitespace(text: str) -> str:
  """Collapse runs of whitespace into single spaces and trim."""
  return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_stem(text: str | None) -> str:
  """Reduce a question stem to its comparison key.

  Lowercases, folds whitespace to spaces, drops everything outside
  ``[a-z0-9 ]`` and collapses the remaining spaces. Applying it twice
  yields the same key.
  """
  if not text:
    return ""
  lowered = _WHITESPACE_RE.sub(" ", text.lower())
  return collapse_whitespace(_NON_STEM_CHARS_RE.sub("", lowered))
