"""Storage interfaces for source materials, questions and generation logs."""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

ProcessingStatus = Literal["uploaded", "processing", "completed", "failed"]
QuestionSource = Literal["AI", "Human"]
QuestionStatus = Literal["pending", "approved", "rejected"]
GenerationStatus = Literal["pending", "success", "failed"]


def _iso(value: datetime.datetime | None) -> str | None:
  return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class CourseRecord:
  id: str
  code: str
  title: str


@dataclass(frozen=True)
class TopicRecord:
  id: str
  course_id: str
  name: str


@dataclass(frozen=True)
class MaterialRecord:
  """Snapshot of a source material row."""

  id: str
  organization_id: str
  course_id: str
  title: str
  file_type: str
  processing_status: ProcessingStatus
  department_id: str | None = None
  topic_id: str | None = None
  file_url: str | None = None
  content: str | None = None
  processing_error: str | None = None
  question_ids: tuple[str, ...] = ()
  questions_generated: int = 0
  processing_started_at: datetime.datetime | None = None
  processing_completed_at: datetime.datetime | None = None


@dataclass(frozen=True)
class QuestionDraft:
  """A validated question ready to be inserted into the corpus."""

  organization_id: str
  course_id: str
  topic_id: str | None
  source_material_id: str | None
  text: str
  options: dict[str, str]
  correct_answer: str
  difficulty: str
  source: QuestionSource
  created_by: str | None
  status: QuestionStatus = "pending"


@dataclass(frozen=True)
class QuestionRecord:
  """A persisted question."""

  id: str
  organization_id: str
  course_id: str
  topic_id: str | None
  source_material_id: str | None
  text: str
  options: dict[str, str]
  correct_answer: str
  difficulty: str
  source: QuestionSource
  status: QuestionStatus
  is_active: bool = True
  created_by: str | None = None
  created_at: datetime.datetime | None = None

  def to_payload(self) -> dict[str, Any]:
    return {
      "id": self.id,
      "courseId": self.course_id,
      "topicId": self.topic_id,
      "sourceMaterialId": self.source_material_id,
      "text": self.text,
      "options": dict(self.options),
      "correctAnswer": self.correct_answer,
      "difficulty": self.difficulty,
      "source": self.source,
      "status": self.status,
      "isActive": self.is_active,
      "createdAt": _iso(self.created_at),
    }


@dataclass(frozen=True)
class GenerationLogRecord:
  """Audit row for one AI generation run; also serves as the freshness cache."""

  id: str
  material_id: str
  organization_id: str
  initiated_by: str
  difficulty: str
  status: GenerationStatus
  created_at: datetime.datetime
  provider: str | None = None
  attempts: int = 0
  questions_generated: int = 0
  generated_question_ids: tuple[str, ...] = field(default_factory=tuple)
  execution_time_ms: int | None = None
  error_message: str | None = None
  updated_at: datetime.datetime | None = None

  def to_payload(self) -> dict[str, Any]:
    return {
      "id": self.id,
      "materialId": self.material_id,
      "initiatedBy": self.initiated_by,
      "difficulty": self.difficulty,
      "status": self.status,
      "provider": self.provider,
      "attempts": self.attempts,
      "questionsGenerated": self.questions_generated,
      "generatedQuestionIds": list(self.generated_question_ids),
      "executionTimeMs": self.execution_time_ms,
      "errorMessage": self.error_message,
      "createdAt": _iso(self.created_at),
    }


class CourseDirectory(Protocol):
  """Read-only lookup for course and topic labels."""

  async def get_course(self, course_id: str) -> CourseRecord | None:
    """Fetch a course by identifier."""

  async def get_topic(self, topic_id: str) -> TopicRecord | None:
    """Fetch a topic by identifier."""


class MaterialsRepository(Protocol):
  """Repository contract for source materials."""

  async def get_material(self, material_id: str) -> MaterialRecord | None:
    """Fetch a material by identifier."""

  async def update_material(
    self,
    material_id: str,
    *,
    content: str | None = None,
    processing_status: ProcessingStatus | None = None,
    processing_error: str | None = None,
    question_ids: Sequence[str] | None = None,
    questions_generated: int | None = None,
    processing_started_at: datetime.datetime | None = None,
    processing_completed_at: datetime.datetime | None = None,
  ) -> MaterialRecord | None:
    """Apply partial updates; ``None`` leaves a field unchanged and an empty ``processing_error`` clears it."""


class QuestionsRepository(Protocol):
  """Repository contract for the question corpus."""

  async def list_question_texts(self, *, organization_id: str, course_id: str, topic_id: str | None, limit: int | None = None) -> list[str]:
    """Return stored question texts in scope, most recent first."""

  async def create_questions(self, drafts: Sequence[QuestionDraft]) -> list[QuestionRecord]:
    """Insert questions and return them with their identifiers, in input order."""

  async def get_questions(self, question_ids: Sequence[str]) -> list[QuestionRecord]:
    """Load questions by identifier, skipping ids that no longer exist."""


class GenerationLogsRepository(Protocol):
  """Repository contract for AI generation logs."""

  async def create_log(self, *, material_id: str, organization_id: str, initiated_by: str, difficulty: str) -> GenerationLogRecord:
    """Persist a pending log."""

  async def update_log(
    self,
    log_id: str,
    *,
    status: GenerationStatus | None = None,
    provider: str | None = None,
    attempts: int | None = None,
    questions_generated: int | None = None,
    generated_question_ids: Sequence[str] | None = None,
    execution_time_ms: int | None = None,
    error_message: str | None = None,
  ) -> GenerationLogRecord | None:
    """Apply partial updates to a log."""

  async def count_since(self, organization_id: str, since: datetime.datetime) -> int:
    """Count logs created for an organization at or after ``since``."""

  async def find_recent_success(self, *, material_id: str, difficulty: str, since: datetime.datetime) -> GenerationLogRecord | None:
    """Return the newest successful log for a material and difficulty created at or after ``since``."""
