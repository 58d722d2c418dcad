"""SQLAlchemy models for source materials, the question corpus and AI generation logs."""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


def _new_id() -> str:
  return str(uuid.uuid4())


class Course(Base):
  __tablename__ = "courses"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
  organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
  code: Mapped[str] = mapped_column(String(32), nullable=False)
  title: Mapped[str] = mapped_column(String, nullable=False)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class Topic(Base):
  __tablename__ = "topics"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
  course_id: Mapped[str] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
  name: Mapped[str] = mapped_column(String, nullable=False)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class SourceMaterial(Base):
  __tablename__ = "source_materials"
  __table_args__ = (Index("ix_source_materials_course_status", "course_id", "processing_status"),)

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
  organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
  department_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
  course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"), nullable=False, index=True)
  topic_id: Mapped[str | None] = mapped_column(ForeignKey("topics.id"), nullable=True)
  title: Mapped[str] = mapped_column(String, nullable=False)
  file_type: Mapped[str] = mapped_column(String(16), nullable=False)
  file_url: Mapped[str | None] = mapped_column(String, nullable=True)
  content: Mapped[str | None] = mapped_column(Text, nullable=True)
  processing_status: Mapped[str] = mapped_column(String(16), nullable=False, default="uploaded", server_default="uploaded", index=True)
  processing_error: Mapped[str | None] = mapped_column(Text, nullable=True)
  question_ids: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list, server_default=text("'[]'::jsonb"))
  questions_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
  uploaded_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
  processing_started_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  processing_completed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
  updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Question(Base):
  __tablename__ = "questions"
  __table_args__ = (Index("ix_questions_scope", "organization_id", "course_id", "topic_id"),)

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
  organization_id: Mapped[str] = mapped_column(String(36), nullable=False)
  course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"), nullable=False)
  topic_id: Mapped[str | None] = mapped_column(ForeignKey("topics.id"), nullable=True)
  source_material_id: Mapped[str | None] = mapped_column(ForeignKey("source_materials.id"), nullable=True, index=True)
  text: Mapped[str] = mapped_column(Text, nullable=False)
  options: Mapped[dict[str, str]] = mapped_column(JSONB, nullable=False)
  correct_answer: Mapped[str] = mapped_column(String(1), nullable=False)
  difficulty: Mapped[str] = mapped_column(String(16), nullable=False, default="medium", server_default="medium")
  source: Mapped[str] = mapped_column(String(8), nullable=False, default="AI", server_default="AI", index=True)
  status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending", index=True)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
  created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class AIGenerationLog(Base):
  __tablename__ = "ai_generation_logs"
  __table_args__ = (
    Index("ix_ai_generation_logs_org_created", "organization_id", "created_at"),
    Index("ix_ai_generation_logs_material_difficulty", "material_id", "difficulty", "status"),
  )

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
  material_id: Mapped[str] = mapped_column(ForeignKey("source_materials.id"), nullable=False)
  organization_id: Mapped[str] = mapped_column(String(36), nullable=False)
  initiated_by: Mapped[str] = mapped_column(String(36), nullable=False)
  difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
  status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
  provider: Mapped[str | None] = mapped_column(String(32), nullable=True)
  attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
  questions_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
  generated_question_ids: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list, server_default=text("'[]'::jsonb"))
  execution_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
  error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
  updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
