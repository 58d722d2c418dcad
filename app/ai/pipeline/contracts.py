"""Shared data contracts for the question pipeline."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

OptionLabel = Literal["A", "B", "C", "D"]
Difficulty = Literal["easy", "medium", "hard"]
RequestedDifficulty = Literal["easy", "medium", "hard", "mixed"]

OPTION_LABELS: tuple[str, ...] = ("A", "B", "C", "D")
VALID_DIFFICULTIES: frozenset[str] = frozenset({"easy", "medium", "hard"})
DEFAULT_DIFFICULTY: Difficulty = "medium"


class CandidateQuestion(BaseModel):
  """An unpersisted multiple-choice question from a bank document, a provider or a manual import."""

  model_config = ConfigDict(frozen=True, populate_by_name=True)

  text: str = Field(min_length=1)
  options: dict[str, str]
  correct_answer: OptionLabel | None = Field(default=None, alias="correctAnswer")
  difficulty: Difficulty | None = None

  @field_validator("text")
  @classmethod
  def _strip_text(cls, value: str) -> str:
    stripped = value.strip()
    if not stripped:
      raise ValueError("question text must not be blank")
    return stripped

  @field_validator("options")
  @classmethod
  def _require_four_labels(cls, value: dict[str, str]) -> dict[str, str]:
    if set(value) != set(OPTION_LABELS):
      raise ValueError("options must be exactly A, B, C, D")
    cleaned = {label: str(value[label]).strip() for label in OPTION_LABELS}
    if any(not option for option in cleaned.values()):
      raise ValueError("options must not be blank")
    return cleaned

  @field_validator("correct_answer", mode="before")
  @classmethod
  def _upper_label(cls, value: Any) -> Any:
    if isinstance(value, str):
      return value.strip().upper() or None
    return value

  @field_validator("difficulty", mode="before")
  @classmethod
  def _lower_difficulty(cls, value: Any) -> Any:
    if isinstance(value, str):
      return value.strip().lower() or None
    return value

  def to_payload(self) -> dict[str, Any]:
    """Serialize with the camelCase keys clients expect."""
    return {"text": self.text, "options": dict(self.options), "correctAnswer": self.correct_answer, "difficulty": self.difficulty}


class CandidateValidationError(ValueError):
  """Raised when a candidate question fails shape validation."""

  def __init__(self, index: int | None, reason: str) -> None:
    super().__init__(f"Question {index + 1}: {reason}" if index is not None else reason)
    self.index = index
    self.reason = reason


def _first_error(exc: ValidationError) -> str:
  errors = exc.errors()
  if not errors:
    return "invalid question"
  first = errors[0]
  location = ".".join(str(part) for part in first.get("loc", ()))
  return f"{location}: {first.get('msg', 'invalid')}" if location else str(first.get("msg", "invalid"))


def validate_candidate(raw: Mapping[str, Any] | CandidateQuestion, *, index: int = 0, require_answer: bool = True, require_difficulty: bool = False) -> CandidateQuestion:
  """Shape-validate one candidate; raises CandidateValidationError with the first problem."""
  if isinstance(raw, CandidateQuestion):
    candidate = raw
  else:
    if not isinstance(raw, Mapping):
      raise CandidateValidationError(index, "not an object")
    try:
      candidate = CandidateQuestion.model_validate(dict(raw))
    except ValidationError as exc:
      raise CandidateValidationError(index, _first_error(exc)) from exc

  if require_answer and candidate.correct_answer is None:
    raise CandidateValidationError(index, "correctAnswer must be one of A, B, C, D")
  if require_difficulty and candidate.difficulty is None:
    raise CandidateValidationError(index, "difficulty must be one of easy, medium, hard")
  return candidate


def validate_candidates(items: Iterable[Mapping[str, Any] | CandidateQuestion], *, expected_count: int | None = None, require_difficulty: bool = False) -> list[CandidateQuestion]:
  """Validate a whole batch; the batch fails on the first malformed item or a count mismatch."""
  materialized = list(items)
  if expected_count is not None and len(materialized) != expected_count:
    raise CandidateValidationError(None, f"expected exactly {expected_count} questions, got {len(materialized)}")
  return [validate_candidate(item, index=index, require_difficulty=require_difficulty) for index, item in enumerate(materialized)]
