"""Orchestration for turning a source material into pending questions."""

from __future__ import annotations

import asyncio
import datetime
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from app.ai.errors import ConflictError, ExhaustedError, GenerationTimeoutError, InvalidInputError, NotFoundError, ProviderError, QuestionPipelineError, ServiceDisabledError
from app.ai.pipeline.contracts import DEFAULT_DIFFICULTY, CandidateQuestion, CandidateValidationError, validate_candidate
from app.ai.providers.base import QuestionProvider
from app.config import Settings
from app.services.dedup import build_seen_set, filter_unique
from app.services.extraction import ExtractionError, TextExtractor
from app.services.generation_guard import check_daily_limit, find_cached_generation, utc_now
from app.services.question_bank import QuestionBankParseResult, parse_question_bank
from app.storage.materials_repo import CourseDirectory, CourseRecord, GenerationLogRecord, GenerationLogsRepository, MaterialRecord, MaterialsRepository, QuestionDraft, QuestionRecord, QuestionSource, QuestionsRepository, TopicRecord

logger = logging.getLogger(__name__)

REQUESTED_DIFFICULTIES: frozenset[str] = frozenset({"easy", "medium", "hard", "mixed"})
Clock = Callable[[], datetime.datetime]
Monotonic = Callable[[], float]
ResultMode = Literal["question_bank", "ai", "import"]


@dataclass(frozen=True)
class GenerationResult:
  """Outcome of one pipeline invocation."""

  mode: ResultMode
  material_id: str
  questions: list[QuestionRecord] = field(default_factory=list)
  extracted_questions: list[CandidateQuestion] = field(default_factory=list)
  missing_answers: int = 0
  log: GenerationLogRecord | None = None
  cached: bool = False
  duplicates_skipped: int = 0

  def to_payload(self) -> dict[str, Any]:
    payload: dict[str, Any] = {"mode": self.mode, "materialId": self.material_id, "questions": [question.to_payload() for question in self.questions]}
    if self.missing_answers:
      payload["missingAnswers"] = self.missing_answers
      payload["extractedQuestions"] = [candidate.to_payload() for candidate in self.extracted_questions]
    if self.mode == "ai":
      payload["log"] = self.log.to_payload() if self.log is not None else None
      if self.cached:
        payload["cached"] = True
    if self.duplicates_skipped:
      payload["duplicatesSkipped"] = self.duplicates_skipped
    return payload


@dataclass
class _GenerationRun:
  """Mutable state for one AI generation retry loop."""

  seen: set[str]
  corpus_texts: list[str]
  accepted: list[CandidateQuestion] = field(default_factory=list)
  attempts: int = 0
  provider: str | None = None
  duplicates: int = 0
  last_error: QuestionPipelineError | None = None


class QuestionGenerationOrchestrator:
  """Coordinates bank import, AI generation, persistence and processing state for one material."""

  def __init__(
    self,
    *,
    settings: Settings,
    materials: MaterialsRepository,
    questions: QuestionsRepository,
    logs: GenerationLogsRepository,
    courses: CourseDirectory,
    providers: Sequence[QuestionProvider],
    extractor: TextExtractor | None = None,
    clock: Clock = utc_now,
    monotonic: Monotonic = time.monotonic,
  ) -> None:
    self._settings = settings
    self._materials = materials
    self._questions = questions
    self._logs = logs
    self._courses = courses
    self._providers = list(providers)
    self._extractor = extractor
    self._clock = clock
    self._monotonic = monotonic

  async def generate_questions(self, material_id: str, initiated_by: str, difficulty: str = "mixed") -> GenerationResult:
    """Import a ready-made question bank or generate questions with the provider chain."""
    difficulty = (difficulty or "mixed").strip().lower()
    if difficulty not in REQUESTED_DIFFICULTIES:
      raise InvalidInputError(f"Unsupported difficulty '{difficulty}'; expected easy, medium, hard or mixed.")

    material = await self._load_material(material_id)
    try:
      course, topic = await self._load_labels(material)
      material = await self._mark_processing(material)
      text = await self._ensure_text(material)
      parsed = parse_question_bank(text)
      if parsed.is_question_bank:
        logger.info("Material %s recognized as a question bank (%d questions)", material.id, len(parsed.questions))
        return await self._import_bank(material, initiated_by, parsed)
      return await self._generate_with_ai(material, course, topic, text, initiated_by, difficulty)
    except Exception as exc:
      await self._mark_failed(material.id, exc)
      raise

  async def import_questions(self, material_id: str, initiated_by: str, questions: Sequence[Mapping[str, Any] | CandidateQuestion]) -> GenerationResult:
    """Persist manually completed questions for a material as pending human questions."""
    if not questions:
      raise InvalidInputError("At least one question is required.")
    try:
      candidates = [validate_candidate(item, index=index) for index, item in enumerate(questions)]
    except CandidateValidationError as exc:
      raise InvalidInputError(str(exc)) from exc

    material = await self._load_material(material_id)
    try:
      material = await self._mark_processing(material)
      records, skipped = await self._persist_unique(material, candidates, source="Human", initiated_by=initiated_by)
      await self._mark_completed(material, records)
      logger.info("Imported %d questions for material %s (%d duplicates skipped)", len(records), material.id, skipped)
      return GenerationResult(mode="import", material_id=material.id, questions=records, duplicates_skipped=skipped)
    except Exception as exc:
      await self._mark_failed(material.id, exc)
      raise

  async def _load_material(self, material_id: str) -> MaterialRecord:
    material = await self._materials.get_material(material_id)
    if material is None:
      raise NotFoundError("Material not found.")
    return material

  async def _load_labels(self, material: MaterialRecord) -> tuple[CourseRecord, TopicRecord | None]:
    course = await self._courses.get_course(material.course_id)
    if course is None:
      raise NotFoundError("Course not found.")
    topic = None
    if material.topic_id:
      topic = await self._courses.get_topic(material.topic_id)
      if topic is None:
        raise NotFoundError("Topic not found.")
    return course, topic

  async def _ensure_text(self, material: MaterialRecord) -> str:
    if material.content and material.content.strip():
      return material.content

    if not material.file_url or self._extractor is None:
      raise InvalidInputError("Material has no content to generate questions from.")

    try:
      text = await self._extractor.extract(material.file_url, material.file_type)
    except ExtractionError as exc:
      raise InvalidInputError(f"Material text could not be extracted: {exc}") from exc

    if not text or not text.strip():
      raise InvalidInputError("Material has no content to generate questions from.")
    await self._materials.update_material(material.id, content=text)
    return text

  async def _import_bank(self, material: MaterialRecord, initiated_by: str, parsed: QuestionBankParseResult) -> GenerationResult:
    if parsed.missing_answers > 0:
      # Unanswered blocks go back to the caller for manual completion.
      await self._materials.update_material(material.id, processing_status="completed", processing_completed_at=self._clock())
      return GenerationResult(mode="question_bank", material_id=material.id, extracted_questions=list(parsed.questions), missing_answers=parsed.missing_answers)

    records, skipped = await self._persist_unique(material, parsed.questions, source="Human", initiated_by=initiated_by)
    await self._mark_completed(material, records)
    return GenerationResult(mode="question_bank", material_id=material.id, questions=records, duplicates_skipped=skipped)

  async def _persist_unique(self, material: MaterialRecord, candidates: Sequence[CandidateQuestion], *, source: QuestionSource, initiated_by: str) -> tuple[list[QuestionRecord], int]:
    corpus = await self._questions.list_question_texts(organization_id=material.organization_id, course_id=material.course_id, topic_id=material.topic_id)
    unique = filter_unique(candidates, build_seen_set(corpus))
    if not unique:
      raise ConflictError("All questions already exist in the question bank.")
    records = await self._questions.create_questions([self._draft(material, candidate, source=source, initiated_by=initiated_by) for candidate in unique])
    return records, len(candidates) - len(unique)

  async def _generate_with_ai(self, material: MaterialRecord, course: CourseRecord, topic: TopicRecord | None, text: str, initiated_by: str, difficulty: str) -> GenerationResult:
    settings = self._settings
    if not settings.ai_generation_enabled:
      raise ServiceDisabledError("AI question generation is disabled.")
    if not self._providers:
      raise ServiceDisabledError("No AI provider is configured.")

    now = self._clock()
    cached = await find_cached_generation(self._logs, self._questions, material_id=material.id, difficulty=difficulty, freshness_hours=settings.ai_cache_freshness_hours, now=now)
    if cached is not None:
      logger.info("Returning cached generation %s for material %s", cached.log.id, material.id)
      await self._materials.update_material(material.id, processing_status="completed", processing_completed_at=self._clock())
      return GenerationResult(mode="ai", material_id=material.id, questions=cached.questions, log=cached.log, cached=True)

    await check_daily_limit(self._logs, organization_id=material.organization_id, limit=settings.ai_daily_limit_per_org, timezone=settings.rate_limit_timezone, now=now)

    log = await self._logs.create_log(material_id=material.id, organization_id=material.organization_id, initiated_by=initiated_by, difficulty=difficulty)
    started = self._monotonic()
    run: _GenerationRun | None = None
    try:
      corpus = await self._questions.list_question_texts(organization_id=material.organization_id, course_id=material.course_id, topic_id=material.topic_id)
      run = _GenerationRun(seen=build_seen_set(corpus), corpus_texts=corpus)
      await self._run_attempts(run, text=text, course_label=course.code or course.title, topic_label=topic.name if topic else None, difficulty=difficulty, started=started)

      if not run.accepted:
        if run.last_error is not None:
          raise run.last_error
        if run.duplicates:
          raise ConflictError("Every generated question duplicated an existing question.")
        raise ExhaustedError("No unique questions could be generated.")

      records = await self._questions.create_questions([self._draft(material, candidate, source="AI", initiated_by=initiated_by) for candidate in run.accepted])
      log = await self._logs.update_log(
        log.id,
        status="success",
        provider=run.provider,
        attempts=run.attempts,
        questions_generated=len(records),
        generated_question_ids=[record.id for record in records],
        execution_time_ms=self._elapsed_ms(started),
      ) or log
      await self._mark_completed(material, records)
      logger.info("Generated %d questions for material %s via %s in %d attempt(s)", len(records), material.id, run.provider, run.attempts)
      return GenerationResult(mode="ai", material_id=material.id, questions=records, log=log, duplicates_skipped=run.duplicates)
    except Exception as exc:
      await self._logs.update_log(log.id, status="failed", attempts=run.attempts if run else 0, error_message=_failure_message(exc), execution_time_ms=self._elapsed_ms(started))
      raise

  async def _run_attempts(self, run: _GenerationRun, *, text: str, course_label: str, topic_label: str | None, difficulty: str, started: float) -> None:
    settings = self._settings
    target = settings.ai_target_question_count
    deadline = started + settings.ai_total_timeout_seconds

    for attempt in range(1, settings.ai_max_attempts + 1):
      shortfall = target - len(run.accepted)
      if shortfall <= 0:
        return
      if self._monotonic() >= deadline:
        run.last_error = GenerationTimeoutError("Question generation ran out of time.")
        return

      run.attempts = attempt
      excluded = self._excluded_texts(run)
      batch = await self._call_chain(run, text=text, course_label=course_label, topic_label=topic_label, difficulty=difficulty, count=shortfall, excluded=excluded, deadline=deadline)
      if batch is None:
        continue

      provider_name, candidates = batch
      # Only failures after the latest returned batch decide the outcome.
      run.last_error = None
      unique = filter_unique(candidates, run.seen)[:shortfall]
      run.duplicates += len(candidates) - len(unique)
      if unique:
        run.accepted.extend(unique)
        run.provider = provider_name
      logger.info("Attempt %d via %s: %d/%d unique questions (%d total)", attempt, provider_name, len(unique), len(candidates), len(run.accepted))

  async def _call_chain(self, run: _GenerationRun, *, text: str, course_label: str, topic_label: str | None, difficulty: str, count: int, excluded: list[str], deadline: float) -> tuple[str, list[CandidateQuestion]] | None:
    """Try providers in order; the first valid batch wins."""
    for provider in self._providers:
      remaining = deadline - self._monotonic()
      if remaining <= 0:
        run.last_error = GenerationTimeoutError("Question generation ran out of time.")
        return None

      timeout = min(self._settings.ai_attempt_timeout_seconds, remaining)
      try:
        candidates = await asyncio.wait_for(provider.generate(text, course_label, topic_label, difficulty, count=count, excluded_texts=excluded), timeout=timeout)
      except TimeoutError:
        logger.warning("Provider %s timed out after %.1fs", provider.name, timeout)
        run.last_error = GenerationTimeoutError(f"{provider.name} did not respond in time.")
        continue
      except QuestionPipelineError as exc:
        logger.warning("Provider %s failed: %s", provider.name, exc.message)
        run.last_error = exc
        continue
      except Exception:
        logger.exception("Provider %s raised unexpectedly", provider.name)
        run.last_error = ProviderError(f"{provider.name} request failed.")
        continue
      return provider.name, candidates
    return None

  def _excluded_texts(self, run: _GenerationRun) -> list[str]:
    """Texts the next request must not repeat: this run's accepted questions first, then the newest corpus texts."""
    accepted = [candidate.text for candidate in reversed(run.accepted)]
    return (accepted + run.corpus_texts)[: self._settings.ai_max_excluded_texts]

  def _draft(self, material: MaterialRecord, candidate: CandidateQuestion, *, source: QuestionSource, initiated_by: str) -> QuestionDraft:
    return QuestionDraft(
      organization_id=material.organization_id,
      course_id=material.course_id,
      topic_id=material.topic_id,
      source_material_id=material.id,
      text=candidate.text,
      options=dict(candidate.options),
      correct_answer=candidate.correct_answer or "",
      difficulty=candidate.difficulty or DEFAULT_DIFFICULTY,
      source=source,
      created_by=initiated_by,
    )

  async def _mark_processing(self, material: MaterialRecord) -> MaterialRecord:
    updated = await self._materials.update_material(material.id, processing_status="processing", processing_error="", processing_started_at=self._clock())
    return updated or material

  async def _mark_completed(self, material: MaterialRecord, records: Sequence[QuestionRecord]) -> None:
    question_ids = list(material.question_ids) + [record.id for record in records]
    await self._materials.update_material(material.id, processing_status="completed", question_ids=question_ids, questions_generated=len(question_ids), processing_completed_at=self._clock())

  async def _mark_failed(self, material_id: str, exc: Exception) -> None:
    try:
      await self._materials.update_material(material_id, processing_status="failed", processing_error=_failure_message(exc), processing_completed_at=self._clock())
    except Exception:
      logger.exception("Failed to record failure on material %s", material_id)

  def _elapsed_ms(self, started: float) -> int:
    return int((self._monotonic() - started) * 1000)


def _failure_message(exc: Exception) -> str:
  if isinstance(exc, QuestionPipelineError):
    return exc.message
  return "Question generation failed unexpectedly."
