"""Recognize documents that are already formatted multiple-choice question banks.

The parser is a line-oriented heuristic, not a grammar:

- a block starts at a line like ``1) ...``, ``Q3. ...`` or ``Question 4: ...``;
- ``A)``/``B.``/``C:``/``D-`` lines fill the four option slots;
- ``Answer: B``/``Ans - c``/``Correct: D`` on its own line, or after an option
  such as ``D) 6  Answer: B``, sets the answer; stem wording is never read as one;
- every other line is folded into the stem.

Outline numbering such as ``1.1``/``1.2`` looks like question starts and can
split a single question into several blocks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from app.ai.pipeline.contracts import OPTION_LABELS, CandidateQuestion
from app.services.text_normalizer import collapse_whitespace, normalize_text

logger = logging.getLogger(__name__)

QUESTION_START_RE = re.compile(r"^\s*(?:Q\s*\d+|Question\s*\d+|\d+)\s*[).:-]\s*(.+)$", re.IGNORECASE)
OPTION_RE = re.compile(r"^\s*([A-D])\s*[).:-]\s*(.+)$", re.IGNORECASE)
ANSWER_LINE_RE = re.compile(r"^\s*(?:correct\s+answer|answer|ans|correct)\s*(?:is\s*)?[:\-]\s*\(?([A-D])\)?\s*\.?\s*$", re.IGNORECASE)
TRAILING_ANSWER_RE = re.compile(r"\s+(?:correct\s+answer|answer|ans|correct)\s*[:\-]\s*\(?([A-D])\)?\s*\.?\s*$", re.IGNORECASE)

MIN_BANK_QUESTIONS = 2


@dataclass(frozen=True)
class QuestionBankParseResult:
  """Outcome of scanning a document for ready-made questions."""

  is_question_bank: bool
  questions: list[CandidateQuestion] = field(default_factory=list)
  missing_answers: int = 0

  @property
  def answered(self) -> list[CandidateQuestion]:
    return [question for question in self.questions if question.correct_answer is not None]


def _split_into_blocks(text: str) -> list[list[str]]:
  lines = [line.strip() for line in normalize_text(text).split("\n")]
  blocks: list[list[str]] = []
  current: list[str] = []
  for line in lines:
    if not line:
      continue
    if QUESTION_START_RE.match(line) and current:
      blocks.append(current)
      current = []
    current.append(line)
  if current:
    blocks.append(current)
  return blocks


def _parse_block(lines: list[str]) -> CandidateQuestion | None:
  options: dict[str, str] = {}
  stem_parts: list[str] = []
  correct_answer: str | None = None

  for line in lines:
    answer_line = ANSWER_LINE_RE.match(line)
    if answer_line:
      correct_answer = correct_answer or answer_line.group(1).upper()
      continue

    question_match = QUESTION_START_RE.match(line)
    option_match = None if question_match else OPTION_RE.match(line)
    if option_match:
      label, option_text = option_match.group(1).upper(), option_match.group(2)
      # "D) Paris  Answer: B" keeps the marker out of the option text.
      answer_match = TRAILING_ANSWER_RE.search(option_text)
      if answer_match:
        correct_answer = correct_answer or answer_match.group(1).upper()
        option_text = option_text[: answer_match.start()]
      options[label] = option_text.strip()
      continue

    stem_parts.append(question_match.group(1) if question_match else line)

  stem = collapse_whitespace(" ".join(stem_parts))
  if not stem or any(not options.get(label) for label in OPTION_LABELS):
    return None

  return CandidateQuestion(text=stem, options={label: options[label] for label in OPTION_LABELS}, correct_answer=correct_answer)


def parse_question_bank(raw_text: str | None) -> QuestionBankParseResult:
  """Scan text for question/option/answer blocks. Never raises on malformed input."""
  questions: list[CandidateQuestion] = []
  for block in _split_into_blocks(raw_text or ""):
    candidate = _parse_block(block)
    if candidate is not None:
      questions.append(candidate)

  missing_answers = sum(1 for question in questions if question.correct_answer is None)
  is_bank = len(questions) >= MIN_BANK_QUESTIONS
  if questions:
    logger.debug("Question bank scan found %d complete blocks (%d missing answers); bank=%s", len(questions), missing_answers, is_bank)
  return QuestionBankParseResult(is_question_bank=is_bank, questions=questions, missing_answers=missing_answers)
