"""Create question pipeline tables.

Revision ID: 5a1f0c3e9d2b
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "5a1f0c3e9d2b"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "courses",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("organization_id", sa.String(length=36), nullable=False),
    sa.Column("code", sa.String(length=32), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_courses_organization_id"), "courses", ["organization_id"], unique=False)

  op.create_table(
    "topics",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("course_id", sa.String(length=36), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_topics_course_id"), "topics", ["course_id"], unique=False)

  op.create_table(
    "source_materials",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("organization_id", sa.String(length=36), nullable=False),
    sa.Column("department_id", sa.String(length=36), nullable=True),
    sa.Column("course_id", sa.String(length=36), nullable=False),
    sa.Column("topic_id", sa.String(length=36), nullable=True),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("file_type", sa.String(length=16), nullable=False),
    sa.Column("file_url", sa.String(), nullable=True),
    sa.Column("content", sa.Text(), nullable=True),
    sa.Column("processing_status", sa.String(length=16), server_default="uploaded", nullable=False),
    sa.Column("processing_error", sa.Text(), nullable=True),
    sa.Column("question_ids", postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
    sa.Column("questions_generated", sa.Integer(), server_default="0", nullable=False),
    sa.Column("uploaded_by", sa.String(length=36), nullable=True),
    sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    sa.Column("processing_started_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("processing_completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
    sa.ForeignKeyConstraint(["topic_id"], ["topics.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_source_materials_organization_id"), "source_materials", ["organization_id"], unique=False)
  op.create_index(op.f("ix_source_materials_course_id"), "source_materials", ["course_id"], unique=False)
  op.create_index(op.f("ix_source_materials_processing_status"), "source_materials", ["processing_status"], unique=False)
  op.create_index("ix_source_materials_course_status", "source_materials", ["course_id", "processing_status"], unique=False)

  op.create_table(
    "questions",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("organization_id", sa.String(length=36), nullable=False),
    sa.Column("course_id", sa.String(length=36), nullable=False),
    sa.Column("topic_id", sa.String(length=36), nullable=True),
    sa.Column("source_material_id", sa.String(length=36), nullable=True),
    sa.Column("text", sa.Text(), nullable=False),
    sa.Column("options", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("correct_answer", sa.String(length=1), nullable=False),
    sa.Column("difficulty", sa.String(length=16), server_default="medium", nullable=False),
    sa.Column("source", sa.String(length=8), server_default="AI", nullable=False),
    sa.Column("status", sa.String(length=16), server_default="pending", nullable=False),
    sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    sa.Column("created_by", sa.String(length=36), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
    sa.ForeignKeyConstraint(["topic_id"], ["topics.id"]),
    sa.ForeignKeyConstraint(["source_material_id"], ["source_materials.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_questions_source_material_id"), "questions", ["source_material_id"], unique=False)
  op.create_index(op.f("ix_questions_source"), "questions", ["source"], unique=False)
  op.create_index(op.f("ix_questions_status"), "questions", ["status"], unique=False)
  op.create_index("ix_questions_scope", "questions", ["organization_id", "course_id", "topic_id"], unique=False)

  op.create_table(
    "ai_generation_logs",
    sa.Column("id", sa.String(length=36), nullable=False),
    sa.Column("material_id", sa.String(length=36), nullable=False),
    sa.Column("organization_id", sa.String(length=36), nullable=False),
    sa.Column("initiated_by", sa.String(length=36), nullable=False),
    sa.Column("difficulty", sa.String(length=16), nullable=False),
    sa.Column("status", sa.String(length=16), server_default="pending", nullable=False),
    sa.Column("provider", sa.String(length=32), nullable=True),
    sa.Column("attempts", sa.Integer(), server_default="0", nullable=False),
    sa.Column("questions_generated", sa.Integer(), server_default="0", nullable=False),
    sa.Column("generated_question_ids", postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
    sa.Column("execution_time_ms", sa.Integer(), nullable=True),
    sa.Column("error_message", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["material_id"], ["source_materials.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index("ix_ai_generation_logs_org_created", "ai_generation_logs", ["organization_id", "created_at"], unique=False)
  op.create_index("ix_ai_generation_logs_material_difficulty", "ai_generation_logs", ["material_id", "difficulty", "status"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index("ix_ai_generation_logs_material_difficulty", table_name="ai_generation_logs")
  op.drop_index("ix_ai_generation_logs_org_created", table_name="ai_generation_logs")
  op.drop_table("ai_generation_logs")
  op.drop_index("ix_questions_scope", table_name="questions")
  op.drop_index(op.f("ix_questions_status"), table_name="questions")
  op.drop_index(op.f("ix_questions_source"), table_name="questions")
  op.drop_index(op.f("ix_questions_source_material_id"), table_name="questions")
  op.drop_table("questions")
  op.drop_index("ix_source_materials_course_status", table_name="source_materials")
  op.drop_index(op.f("ix_source_materials_processing_status"), table_name="source_materials")
  op.drop_index(op.f("ix_source_materials_course_id"), table_name="source_materials")
  op.drop_index(op.f("ix_source_materials_organization_id"), table_name="source_materials")
  op.drop_table("source_materials")
  op.drop_index(op.f("ix_topics_course_id"), table_name="topics")
  op.drop_table("topics")
  op.drop_index(op.f("ix_courses_organization_id"), table_name="courses")
  op.drop_table("courses")
