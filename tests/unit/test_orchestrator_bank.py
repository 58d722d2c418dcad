from __future__ import annotations

import pytest
from conftest import MATERIAL_ID, ScriptedProvider

from app.ai.errors import ConflictError

ANSWERED_BANK = """Midterm review

1) Which sort is stable?
A) Quick sort
B) Heap sort
C) Merge sort
D) Selection sort
Answer: C

2) Best-case complexity of insertion sort?
A) O(1)
B) O(n)
C) O(n log n)
D) O(n^2)
Answer: B

3) Which structure backs a priority queue?
A) Stack
B) Heap
C) Queue
D) List
Ans: B
"""

PARTIAL_BANK = """Q1. Which sort is stable?
A) Quick sort
B) Heap sort
C) Merge sort
D) Selection sort
Answer: C

Q2. Which structure backs a priority queue?
A) Stack
B) Heap
C) Queue
D) List
"""


@pytest.mark.anyio
async def test_answered_bank_is_imported_without_ai(harness) -> None:
  harness.materials.add(content=ANSWERED_BANK)
  gemini = ScriptedProvider("gemini", [])

  result = await harness.orchestrator([gemini]).generate_questions(MATERIAL_ID, "admin-1")

  assert result.mode == "question_bank"
  assert [question.correct_answer for question in result.questions] == ["C", "B", "B"]
  assert all(question.source == "Human" and question.status == "pending" for question in result.questions)
  assert all(question.difficulty == "medium" for question in result.questions)
  assert gemini.calls == []
  assert harness.logs.items == {}

  material = harness.materials.items[MATERIAL_ID]
  assert material.processing_status == "completed"
  assert material.questions_generated == 3
  assert list(material.question_ids) == [question.id for question in result.questions]

  payload = result.to_payload()
  assert "log" not in payload
  assert "missingAnswers" not in payload


@pytest.mark.anyio
async def test_bank_with_missing_answers_is_returned_for_completion(harness) -> None:
  harness.materials.add(content=PARTIAL_BANK)

  result = await harness.orchestrator().generate_questions(MATERIAL_ID, "admin-1")

  assert result.mode == "question_bank"
  assert result.questions == []
  assert result.missing_answers == 1
  assert len(result.extracted_questions) == 2
  assert harness.questions.items == []
  assert harness.materials.items[MATERIAL_ID].processing_status == "completed"

  payload = result.to_payload()
  assert payload["missingAnswers"] == 1
  assert payload["extractedQuestions"][1]["correctAnswer"] is None
  assert payload["extractedQuestions"][0]["options"]["C"] == "Merge sort"


@pytest.mark.anyio
async def test_bank_import_skips_existing_questions(harness) -> None:
  harness.materials.add(content=ANSWERED_BANK)
  harness.questions.seed("which sort is STABLE")

  result = await harness.orchestrator().generate_questions(MATERIAL_ID, "admin-1")

  assert [question.text for question in result.questions] == ["Best-case complexity of insertion sort?", "Which structure backs a priority queue?"]
  assert result.duplicates_skipped == 1


@pytest.mark.anyio
async def test_bank_of_only_duplicates_is_a_conflict(harness) -> None:
  harness.materials.add(content=ANSWERED_BANK)
  for text in ("Which sort is stable?", "Best-case complexity of insertion sort?", "Which structure backs a priority queue?"):
    harness.questions.seed(text)

  with pytest.raises(ConflictError):
    await harness.orchestrator().generate_questions(MATERIAL_ID, "admin-1")

  assert harness.materials.items[MATERIAL_ID].processing_status == "failed"


@pytest.mark.anyio
async def test_bank_path_works_with_ai_disabled(harness) -> None:
  harness.materials.add(content=ANSWERED_BANK)

  result = await harness.orchestrator(ai_generation_enabled=False).generate_questions(MATERIAL_ID, "admin-1")

  assert len(result.questions) == 3


@pytest.mark.anyio
async def test_questions_in_other_courses_are_not_duplicates(harness) -> None:
  harness.materials.add(content=ANSWERED_BANK)
  harness.questions.seed("Which sort is stable?", course_id="course-2")

  result = await harness.orchestrator().generate_questions(MATERIAL_ID, "admin-1")

  assert len(result.questions) == 3
