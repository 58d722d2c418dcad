"""Postgres-backed repositories for the question pipeline using SQLAlchemy."""

from __future__ import annotations

import datetime
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_session_factory
from app.schema.materials import AIGenerationLog, Course, Question, SourceMaterial, Topic
from app.storage.materials_repo import CourseDirectory, CourseRecord, GenerationLogRecord, GenerationLogsRepository, GenerationStatus, MaterialRecord, MaterialsRepository, ProcessingStatus, QuestionDraft, QuestionRecord, QuestionsRepository, TopicRecord


def _require_session_factory(session_factory: async_sessionmaker[AsyncSession] | None) -> async_sessionmaker[AsyncSession]:
  factory = session_factory or get_session_factory()
  if factory is None:
    raise RuntimeError("Database not initialized")
  return factory


class PostgresCourseDirectory(CourseDirectory):
  """Read course and topic rows."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = _require_session_factory(session_factory)

  async def get_course(self, course_id: str) -> CourseRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Course, course_id)
      if row is None:
        return None
      return CourseRecord(id=row.id, code=row.code, title=row.title)

  async def get_topic(self, topic_id: str) -> TopicRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Topic, topic_id)
      if row is None:
        return None
      return TopicRecord(id=row.id, course_id=row.course_id, name=row.name)


class PostgresMaterialsRepository(MaterialsRepository):
  """Persist source material processing state."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = _require_session_factory(session_factory)

  async def get_material(self, material_id: str) -> MaterialRecord | None:
    async with self._session_factory() as session:
      row = await session.get(SourceMaterial, material_id)
      if row is None or not row.is_active:
        return None
      return self._model_to_record(row)

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
    async with self._session_factory() as session:
      row = await session.get(SourceMaterial, material_id)
      if row is None:
        return None
      if content is not None:
        row.content = content
      if processing_status is not None:
        row.processing_status = processing_status
      if processing_error is not None:
        row.processing_error = processing_error or None
      if question_ids is not None:
        row.question_ids = list(question_ids)
      if questions_generated is not None:
        row.questions_generated = questions_generated
      if processing_started_at is not None:
        row.processing_started_at = processing_started_at
      if processing_completed_at is not None:
        row.processing_completed_at = processing_completed_at
      await session.commit()
      await session.refresh(row)
      return self._model_to_record(row)

  def _model_to_record(self, row: SourceMaterial) -> MaterialRecord:
    return MaterialRecord(
      id=row.id,
      organization_id=row.organization_id,
      department_id=row.department_id,
      course_id=row.course_id,
      topic_id=row.topic_id,
      title=row.title,
      file_type=row.file_type,
      file_url=row.file_url,
      content=row.content,
      processing_status=row.processing_status,  # type: ignore[arg-type]
      processing_error=row.processing_error,
      question_ids=tuple(row.question_ids or ()),
      questions_generated=row.questions_generated,
      processing_started_at=row.processing_started_at,
      processing_completed_at=row.processing_completed_at,
    )


class PostgresQuestionsRepository(QuestionsRepository):
  """Read and insert corpus questions."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = _require_session_factory(session_factory)

  async def list_question_texts(self, *, organization_id: str, course_id: str, topic_id: str | None, limit: int | None = None) -> list[str]:
    async with self._session_factory() as session:
      stmt = select(Question.text).where(Question.organization_id == organization_id, Question.course_id == course_id)
      if topic_id is not None:
        stmt = stmt.where(Question.topic_id == topic_id)
      stmt = stmt.order_by(Question.created_at.desc())
      if limit is not None:
        stmt = stmt.limit(limit)
      rows = (await session.execute(stmt)).scalars().all()
      return list(rows)

  async def create_questions(self, drafts: Sequence[QuestionDraft]) -> list[QuestionRecord]:
    if not drafts:
      return []
    async with self._session_factory() as session:
      rows = [
        Question(
          organization_id=draft.organization_id,
          course_id=draft.course_id,
          topic_id=draft.topic_id,
          source_material_id=draft.source_material_id,
          text=draft.text,
          options=dict(draft.options),
          correct_answer=draft.correct_answer,
          difficulty=draft.difficulty,
          source=draft.source,
          status=draft.status,
          created_by=draft.created_by,
        )
        for draft in drafts
      ]
      session.add_all(rows)
      await session.commit()
      for row in rows:
        await session.refresh(row)
      return [self._model_to_record(row) for row in rows]

  async def get_questions(self, question_ids: Sequence[str]) -> list[QuestionRecord]:
    if not question_ids:
      return []
    async with self._session_factory() as session:
      stmt = select(Question).where(Question.id.in_(list(question_ids)))
      rows = (await session.execute(stmt)).scalars().all()
      by_id = {row.id: row for row in rows}
      return [self._model_to_record(by_id[question_id]) for question_id in question_ids if question_id in by_id]

  def _model_to_record(self, row: Question) -> QuestionRecord:
    return QuestionRecord(
      id=row.id,
      organization_id=row.organization_id,
      course_id=row.course_id,
      topic_id=row.topic_id,
      source_material_id=row.source_material_id,
      text=row.text,
      options=dict(row.options),
      correct_answer=row.correct_answer,
      difficulty=row.difficulty,
      source=row.source,  # type: ignore[arg-type]
      status=row.status,  # type: ignore[arg-type]
      is_active=row.is_active,
      created_by=row.created_by,
      created_at=row.created_at,
    )


class PostgresGenerationLogsRepository(GenerationLogsRepository):
  """Persist AI generation logs."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = _require_session_factory(session_factory)

  async def create_log(self, *, material_id: str, organization_id: str, initiated_by: str, difficulty: str) -> GenerationLogRecord:
    async with self._session_factory() as session:
      row = AIGenerationLog(material_id=material_id, organization_id=organization_id, initiated_by=initiated_by, difficulty=difficulty, status="pending")
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._model_to_record(row)

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
    async with self._session_factory() as session:
      row = await session.get(AIGenerationLog, log_id)
      if row is None:
        return None
      if status is not None:
        row.status = status
      if provider is not None:
        row.provider = provider
      if attempts is not None:
        row.attempts = attempts
      if questions_generated is not None:
        row.questions_generated = questions_generated
      if generated_question_ids is not None:
        row.generated_question_ids = list(generated_question_ids)
      if execution_time_ms is not None:
        row.execution_time_ms = execution_time_ms
      if error_message is not None:
        row.error_message = error_message
      await session.commit()
      await session.refresh(row)
      return self._model_to_record(row)

  async def count_since(self, organization_id: str, since: datetime.datetime) -> int:
    async with self._session_factory() as session:
      stmt = select(func.count()).select_from(AIGenerationLog).where(AIGenerationLog.organization_id == organization_id, AIGenerationLog.created_at >= since)
      return int((await session.execute(stmt)).scalar_one())

  async def find_recent_success(self, *, material_id: str, difficulty: str, since: datetime.datetime) -> GenerationLogRecord | None:
    async with self._session_factory() as session:
      stmt = (
        select(AIGenerationLog)
        .where(AIGenerationLog.material_id == material_id, AIGenerationLog.difficulty == difficulty, AIGenerationLog.status == "success", AIGenerationLog.created_at >= since)
        .order_by(AIGenerationLog.created_at.desc())
        .limit(1)
      )
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is None:
        return None
      return self._model_to_record(row)

  def _model_to_record(self, row: AIGenerationLog) -> GenerationLogRecord:
    return GenerationLogRecord(
      id=row.id,
      material_id=row.material_id,
      organization_id=row.organization_id,
      initiated_by=row.initiated_by,
      difficulty=row.difficulty,
      status=row.status,  # type: ignore[arg-type]
      created_at=row.created_at,
      provider=row.provider,
      attempts=row.attempts,
      questions_generated=row.questions_generated,
      generated_question_ids=tuple(row.generated_question_ids or ()),
      execution_time_ms=row.execution_time_ms,
      error_message=row.error_message,
      updated_at=row.updated_at,
    )
