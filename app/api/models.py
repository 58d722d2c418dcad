from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from app.ai.pipeline.contracts import RequestedDifficulty

MAX_IMPORT_QUESTIONS = 200


class GenerateQuestionsRequest(BaseModel):
  """Request payload for generating questions from a material."""

  difficulty: RequestedDifficulty = Field(default="mixed", description="Requested difficulty; mixed spreads questions across easy, medium and hard.")
  initiated_by: StrictStr = Field(alias="initiatedBy", min_length=1, description="Identifier of the staff member starting the run.")
  model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ImportQuestionsRequest(BaseModel):
  """Request payload for importing manually completed questions.

  Items stay loosely typed here; the pipeline validates each question and
  reports the first malformed one.
  """

  initiated_by: StrictStr = Field(alias="initiatedBy", min_length=1)
  questions: list[dict[str, Any]] = Field(min_length=1, max_length=MAX_IMPORT_QUESTIONS)
  model_config = ConfigDict(extra="forbid", populate_by_name=True)
