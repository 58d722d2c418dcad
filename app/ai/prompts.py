"""Prompt construction for question generation."""

from __future__ import annotations

from collections.abc import Sequence

_RESPONSE_FORMAT = """{
  "questions": [
    {
      "text": "Question text here?",
      "options": {"A": "Option A", "B": "Option B", "C": "Option C", "D": "Option D"},
      "correctAnswer": "A",
      "difficulty": "easy"
    }
  ]
}"""


def difficulty_distribution(count: int) -> str:
  """Describe how a mixed batch of ``count`` questions splits across difficulty levels."""
  if count == 20:
    return "6 easy, 8 medium, 6 hard"
  if count == 10:
    return "3 easy, 4 medium, 3 hard"
  return f"balanced across easy, medium, hard totaling {count}"


def _difficulty_rule(difficulty: str, count: int) -> str:
  if difficulty == "mixed":
    return f"Difficulty distribution: {difficulty_distribution(count)}"
  return f"Every question must have difficulty \"{difficulty}\""


def _duplicate_guard(excluded_texts: Sequence[str]) -> str:
  """List questions the model must not repeat."""
  texts = [text for text in excluded_texts if text]
  if not texts:
    return "Generate completely original questions."

  listed = "\n".join(f'{index}. "{text}"' for index, text in enumerate(texts, start=1))
  return f"Do NOT generate these existing or previously generated questions again (same meaning, topic or stem):\n{listed}\n\nEvery question must differ significantly from the list above: different stems, angles and contexts."


def truncate_material(text: str, max_chars: int) -> str:
  """Trim material text to the configured prompt budget."""
  if len(text) <= max_chars:
    return text
  return text[:max_chars].rstrip()


def build_generation_prompt(material_text: str, course_label: str, topic_label: str | None, difficulty: str, *, count: int, excluded_texts: Sequence[str] = ()) -> str:
  """Render the generation prompt for one provider call."""
  topic_line = topic_label or "General"
  return f"""You are an expert question generator for university courses.
Generate exactly {count} multiple-choice questions from the following material.

Course: {course_label}
Topic: {topic_line}
Difficulty Level: {difficulty}

Material Content:
{material_text}

STRICT REQUIREMENTS:
1. Generate EXACTLY {count} questions
2. Each question must have 4 options (A, B, C, D)
3. Only ONE correct answer per question
4. Questions must be clear and unambiguous
5. Use only content from the material above
6. {_difficulty_rule(difficulty, count)}
7. Each question must be new and different from the excluded list

{_duplicate_guard(excluded_texts)}

RESPONSE FORMAT (JSON ONLY, no markdown):
{_RESPONSE_FORMAT}
"""
