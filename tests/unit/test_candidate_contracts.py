from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.ai.pipeline.contracts import CandidateQuestion, CandidateValidationError, validate_candidate, validate_candidates

OPTIONS = {"A": "alpha", "B": "beta", "C": "gamma", "D": "delta"}


def _raw(**overrides):
  payload = {"text": "Pick beta", "options": dict(OPTIONS), "correctAnswer": "b", "difficulty": "Hard"}
  payload.update(overrides)
  return payload


def test_candidate_normalizes_answer_and_difficulty() -> None:
  candidate = validate_candidate(_raw())

  assert candidate.correct_answer == "B"
  assert candidate.difficulty == "hard"
  assert candidate.to_payload() == {"text": "Pick beta", "options": OPTIONS, "correctAnswer": "B", "difficulty": "hard"}


@pytest.mark.parametrize(
  "overrides",
  [
    {"options": {"A": "alpha", "B": "beta", "C": "gamma"}},
    {"options": {"A": "alpha", "B": "beta", "C": "gamma", "D": "delta", "E": "epsilon"}},
    {"options": {"A": "alpha", "B": " ", "C": "gamma", "D": "delta"}},
    {"text": "   "},
    {"correctAnswer": "E"},
    {"difficulty": "impossible"},
  ],
)
def test_malformed_candidates_are_rejected(overrides) -> None:
  with pytest.raises(CandidateValidationError) as excinfo:
    validate_candidate(_raw(**overrides), index=2)

  assert excinfo.value.index == 2
  assert str(excinfo.value).startswith("Question 3:")


def test_answer_is_required_unless_disabled() -> None:
  raw = _raw(correctAnswer=None)

  with pytest.raises(CandidateValidationError):
    validate_candidate(raw)
  assert validate_candidate(raw, require_answer=False).correct_answer is None


def test_difficulty_only_required_on_request() -> None:
  raw = _raw(difficulty=None)

  assert validate_candidate(raw).difficulty is None
  with pytest.raises(CandidateValidationError):
    validate_candidate(raw, require_difficulty=True)


def test_non_mapping_items_are_rejected() -> None:
  with pytest.raises(CandidateValidationError, match="not an object"):
    validate_candidate(["not", "a", "question"])  # type: ignore[arg-type]


def test_batch_requires_exact_count() -> None:
  with pytest.raises(CandidateValidationError, match="expected exactly 3 questions, got 2"):
    validate_candidates([_raw(), _raw()], expected_count=3)

  assert len(validate_candidates([_raw(), _raw()], expected_count=2)) == 2


def test_model_accepts_field_names_and_aliases() -> None:
  by_name = CandidateQuestion(text="Q", options=OPTIONS, correct_answer="A")
  by_alias = CandidateQuestion.model_validate({"text": "Q", "options": OPTIONS, "correctAnswer": "A"})

  assert by_name == by_alias
  with pytest.raises(ValidationError):
    CandidateQuestion(text="Q", options={"A": "x"})
