"""Shared fixtures: in-memory repositories, scripted providers and an HTTP client."""

from __future__ import annotations

import os

os.environ.setdefault("QBANK_ALLOWED_ORIGINS", "http://localhost:3000")

import asyncio  # noqa: E402
import dataclasses  # noqa: E402
import datetime  # noqa: E402
import itertools  # noqa: E402
from collections.abc import Callable, Sequence  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.ai.orchestrator import QuestionGenerationOrchestrator  # noqa: E402
from app.ai.pipeline.contracts import CandidateQuestion  # noqa: E402
from app.ai.providers.base import QuestionProvider  # noqa: E402
from app.api.routes.materials import get_question_service  # noqa: E402
from app.config import Settings  # noqa: E402
from app.main import app  # noqa: E402
from app.storage.materials_repo import CourseRecord, GenerationLogRecord, MaterialRecord, QuestionDraft, QuestionRecord, TopicRecord  # noqa: E402

FIXED_NOW = datetime.datetime(2026, 3, 10, 14, 30, tzinfo=datetime.UTC)
ORG_ID = "org-1"
COURSE_ID = "course-1"
TOPIC_ID = "topic-1"
MATERIAL_ID = "material-1"


@pytest.fixture
def anyio_backend():
  return "asyncio"


def build_settings(**overrides: Any) -> Settings:
  values: dict[str, Any] = {
    "environment": "test",
    "allowed_origins": ("http://localhost:3000",),
    "debug": False,
    "log_max_bytes": 1024,
    "log_backup_count": 0,
    "log_http_4xx": False,
    "pg_dsn": None,
    "pg_connect_timeout": 5,
    "ai_generation_enabled": True,
    "ai_provider_order": ("gemini", "openai"),
    "gemini_api_key": None,
    "gemini_model": "gemini-2.0-flash",
    "openai_api_key": None,
    "openai_model": "gpt-4o-mini",
    "openrouter_api_key": None,
    "openrouter_model": "openai/gpt-oss-20b:free",
    "openrouter_base_url": "https://openrouter.ai/api/v1",
    "ai_daily_limit_per_org": 5,
    "ai_cache_freshness_hours": 24.0,
    "ai_attempt_timeout_seconds": 5.0,
    "ai_total_timeout_seconds": 30.0,
    "ai_target_question_count": 20,
    "ai_max_attempts": 3,
    "ai_max_excluded_texts": 100,
    "ai_max_material_chars": 60000,
    "rate_limit_timezone": "UTC",
    "extraction_timeout_seconds": 5.0,
  }
  values.update(overrides)
  return Settings(**values)


def make_candidates(count: int, *, prefix: str = "Generated question", difficulty: str = "medium") -> list[CandidateQuestion]:
  return [CandidateQuestion(text=f"{prefix} {index}?", options={"A": "one", "B": "two", "C": "three", "D": "four"}, correct_answer="B", difficulty=difficulty) for index in range(1, count + 1)]


class FakeMonotonic:
  """Manually advanced monotonic clock."""

  def __init__(self, start: float = 1000.0) -> None:
    self.now = start

  def __call__(self) -> float:
    return self.now

  def advance(self, seconds: float) -> None:
    self.now += seconds


class InMemoryCourses:
  def __init__(self) -> None:
    self.courses: dict[str, CourseRecord] = {COURSE_ID: CourseRecord(id=COURSE_ID, code="CSC101", title="Intro to Computing")}
    self.topics: dict[str, TopicRecord] = {TOPIC_ID: TopicRecord(id=TOPIC_ID, course_id=COURSE_ID, name="Algorithms")}

  async def get_course(self, course_id: str) -> CourseRecord | None:
    return self.courses.get(course_id)

  async def get_topic(self, topic_id: str) -> TopicRecord | None:
    return self.topics.get(topic_id)


class InMemoryMaterials:
  def __init__(self) -> None:
    self.items: dict[str, MaterialRecord] = {}
    self.status_history: list[str] = []

  def add(self, **overrides: Any) -> MaterialRecord:
    values: dict[str, Any] = {"id": MATERIAL_ID, "organization_id": ORG_ID, "course_id": COURSE_ID, "topic_id": TOPIC_ID, "title": "Week 1 notes", "file_type": "text", "processing_status": "uploaded", "content": "Sorting algorithms arrange items in order."}
    values.update(overrides)
    record = MaterialRecord(**values)
    self.items[record.id] = record
    return record

  async def get_material(self, material_id: str) -> MaterialRecord | None:
    return self.items.get(material_id)

  async def update_material(self, material_id: str, **changes: Any) -> MaterialRecord | None:
    record = self.items.get(material_id)
    if record is None:
      return None
    updates = {key: value for key, value in changes.items() if value is not None}
    if updates.get("processing_error") == "":
      updates["processing_error"] = None
    if "question_ids" in updates:
      updates["question_ids"] = tuple(updates["question_ids"])
    if "processing_status" in updates:
      self.status_history.append(updates["processing_status"])
    record = dataclasses.replace(record, **updates)
    self.items[material_id] = record
    return record


class InMemoryQuestions:
  def __init__(self) -> None:
    self.items: list[QuestionRecord] = []
    self._ids = itertools.count(1)

  def seed(self, text: str, **overrides: Any) -> QuestionRecord:
    values: dict[str, Any] = {"id": f"q-{next(self._ids)}", "organization_id": ORG_ID, "course_id": COURSE_ID, "topic_id": TOPIC_ID, "source_material_id": None, "text": text, "options": {"A": "a", "B": "b", "C": "c", "D": "d"}, "correct_answer": "A", "difficulty": "medium", "source": "Human", "status": "approved"}
    values.update(overrides)
    record = QuestionRecord(**values)
    self.items.append(record)
    return record

  async def list_question_texts(self, *, organization_id: str, course_id: str, topic_id: str | None, limit: int | None = None) -> list[str]:
    texts = [item.text for item in reversed(self.items) if item.organization_id == organization_id and item.course_id == course_id and (topic_id is None or item.topic_id == topic_id)]
    return texts[:limit] if limit is not None else texts

  async def create_questions(self, drafts: Sequence[QuestionDraft]) -> list[QuestionRecord]:
    created = []
    for draft in drafts:
      record = QuestionRecord(id=f"q-{next(self._ids)}", is_active=True, created_at=FIXED_NOW, **dataclasses.asdict(draft))
      self.items.append(record)
      created.append(record)
    return created

  async def get_questions(self, question_ids: Sequence[str]) -> list[QuestionRecord]:
    by_id = {item.id: item for item in self.items}
    return [by_id[question_id] for question_id in question_ids if question_id in by_id]


class InMemoryLogs:
  def __init__(self, clock: Callable[[], datetime.datetime] = lambda: FIXED_NOW) -> None:
    self.items: dict[str, GenerationLogRecord] = {}
    self._clock = clock
    self._ids = itertools.count(1)

  def seed(self, **overrides: Any) -> GenerationLogRecord:
    values: dict[str, Any] = {"id": f"log-{next(self._ids)}", "material_id": MATERIAL_ID, "organization_id": ORG_ID, "initiated_by": "admin-1", "difficulty": "mixed", "status": "success", "created_at": FIXED_NOW}
    values.update(overrides)
    record = GenerationLogRecord(**values)
    self.items[record.id] = record
    return record

  async def create_log(self, *, material_id: str, organization_id: str, initiated_by: str, difficulty: str) -> GenerationLogRecord:
    return self.seed(material_id=material_id, organization_id=organization_id, initiated_by=initiated_by, difficulty=difficulty, status="pending", created_at=self._clock())

  async def update_log(self, log_id: str, **changes: Any) -> GenerationLogRecord | None:
    record = self.items.get(log_id)
    if record is None:
      return None
    updates = {key: value for key, value in changes.items() if value is not None}
    if "generated_question_ids" in updates:
      updates["generated_question_ids"] = tuple(updates["generated_question_ids"])
    record = dataclasses.replace(record, **updates)
    self.items[log_id] = record
    return record

  async def count_since(self, organization_id: str, since: datetime.datetime) -> int:
    return sum(1 for item in self.items.values() if item.organization_id == organization_id and item.created_at >= since)

  async def find_recent_success(self, *, material_id: str, difficulty: str, since: datetime.datetime) -> GenerationLogRecord | None:
    matches = [item for item in self.items.values() if item.material_id == material_id and item.difficulty == difficulty and item.status == "success" and item.created_at >= since]
    return max(matches, key=lambda item: item.created_at, default=None)


class ScriptedProvider(QuestionProvider):
  """Provider whose replies are scripted per call.

  Each script step is a list of candidates, an exception to raise, a callable
  receiving the requested count, or the string ``"hang"`` to sleep past any timeout.
  """

  def __init__(self, name: str, steps: Sequence[Any] = (), *, repeat_last: bool = True) -> None:
    self.name = name
    super().__init__(api_key="test-key", model=f"{name}-model")
    self._steps = list(steps)
    self._repeat_last = repeat_last
    self.calls: list[dict[str, Any]] = []

  async def _complete(self, prompt: str) -> str:
    raise NotImplementedError

  async def generate(self, material_text: str, course_label: str, topic_label: str | None, difficulty: str, *, count: int, excluded_texts: Sequence[str] = ()) -> list[CandidateQuestion]:
    self.calls.append({"count": count, "excluded_texts": list(excluded_texts), "difficulty": difficulty, "course_label": course_label, "topic_label": topic_label})
    if not self._steps:
      raise AssertionError(f"{self.name} called without a scripted reply")
    step = self._steps[0] if (self._repeat_last and len(self._steps) == 1) else self._steps.pop(0)
    if step == "hang":
      await asyncio.sleep(3600)
    if isinstance(step, BaseException):
      raise step
    if callable(step):
      return step(count)
    return list(step)


@dataclasses.dataclass
class PipelineHarness:
  settings: Settings
  materials: InMemoryMaterials
  questions: InMemoryQuestions
  logs: InMemoryLogs
  courses: InMemoryCourses
  monotonic: FakeMonotonic
  extractor: Any = None

  def orchestrator(self, providers: Sequence[QuestionProvider] = (), **settings_overrides: Any) -> QuestionGenerationOrchestrator:
    settings = dataclasses.replace(self.settings, **settings_overrides) if settings_overrides else self.settings
    return QuestionGenerationOrchestrator(settings=settings, materials=self.materials, questions=self.questions, logs=self.logs, courses=self.courses, providers=providers, extractor=self.extractor, clock=lambda: FIXED_NOW, monotonic=self.monotonic)


@pytest.fixture
def harness() -> PipelineHarness:
  return PipelineHarness(settings=build_settings(), materials=InMemoryMaterials(), questions=InMemoryQuestions(), logs=InMemoryLogs(), courses=InMemoryCourses(), monotonic=FakeMonotonic())


@pytest.fixture
async def async_client(harness):
  app.dependency_overrides[get_question_service] = lambda: harness.orchestrator()
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client
  app.dependency_overrides.clear()
