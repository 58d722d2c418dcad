from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.ai.orchestrator import QuestionGenerationOrchestrator
from app.ai.router import build_provider_chain
from app.api.models import GenerateQuestionsRequest, ImportQuestionsRequest
from app.config import Settings, get_settings
from app.services.extraction import HttpTextExtractor
from app.storage.postgres_materials_repo import PostgresCourseDirectory, PostgresGenerationLogsRepository, PostgresMaterialsRepository, PostgresQuestionsRepository

router = APIRouter()


def get_question_service(settings: Annotated[Settings, Depends(get_settings)]) -> QuestionGenerationOrchestrator:
  """Dependency to provide an orchestrator wired to Postgres and the configured providers."""
  return QuestionGenerationOrchestrator(
    settings=settings,
    materials=PostgresMaterialsRepository(),
    questions=PostgresQuestionsRepository(),
    logs=PostgresGenerationLogsRepository(),
    courses=PostgresCourseDirectory(),
    providers=build_provider_chain(settings) if settings.ai_generation_enabled else [],
    extractor=HttpTextExtractor(settings),
  )


@router.post("/{material_id}/questions/generate")
async def generate_questions(material_id: str, request: GenerateQuestionsRequest, service: Annotated[QuestionGenerationOrchestrator, Depends(get_question_service)]) -> dict[str, Any]:
  """Import the material's question bank or generate pending questions with AI."""
  result = await service.generate_questions(material_id, request.initiated_by, request.difficulty)
  return result.to_payload()


@router.post("/{material_id}/questions/import", status_code=status.HTTP_201_CREATED)
async def import_questions(material_id: str, request: ImportQuestionsRequest, service: Annotated[QuestionGenerationOrchestrator, Depends(get_question_service)]) -> dict[str, Any]:
  """Persist manually completed questions for a material."""
  result = await service.import_questions(material_id, request.initiated_by, request.questions)
  return result.to_payload()
