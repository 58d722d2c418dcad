"""Daily generation ceiling and freshness-cache lookups backed by the generation log."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from app.ai.errors import RateLimitedError
from app.storage.materials_repo import GenerationLogRecord, GenerationLogsRepository, QuestionRecord, QuestionsRepository

logger = logging.getLogger(__name__)


def utc_now() -> datetime.datetime:
  """Return timezone-aware current UTC time."""
  return datetime.datetime.now(datetime.UTC)


def start_of_local_day(*, now: datetime.datetime, timezone: str) -> datetime.datetime:
  """Return local midnight of ``now``'s day in ``timezone``, as an aware datetime."""
  if now.tzinfo is None:
    raise ValueError("now must be timezone-aware.")
  local_now = now.astimezone(ZoneInfo(timezone))
  return local_now.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class DailyUsage:
  """Generation count for one organization in the current local day."""

  organization_id: str
  window_start: datetime.datetime
  used: int
  limit: int

  @property
  def remaining(self) -> int:
    return max(self.limit - self.used, 0)


@dataclass(frozen=True)
class CachedGeneration:
  log: GenerationLogRecord
  questions: list[QuestionRecord]


async def check_daily_limit(logs_repo: GenerationLogsRepository, *, organization_id: str, limit: int, timezone: str, now: datetime.datetime) -> DailyUsage:
  """Raise RateLimitedError when the organization already used its daily generations.

  The count and the subsequent log insert are not atomic, so concurrent
  requests can overshoot the ceiling slightly.
  """
  window_start = start_of_local_day(now=now, timezone=timezone)
  used = await logs_repo.count_since(organization_id, window_start)
  usage = DailyUsage(organization_id=organization_id, window_start=window_start, used=used, limit=limit)
  if used >= limit:
    logger.info("Organization %s reached daily generation limit (%d/%d)", organization_id, used, limit)
    raise RateLimitedError(f"Daily AI generation limit of {limit} reached for this organization.")
  return usage


async def find_cached_generation(logs_repo: GenerationLogsRepository, questions_repo: QuestionsRepository, *, material_id: str, difficulty: str, freshness_hours: float, now: datetime.datetime) -> CachedGeneration | None:
  """Return a recent successful generation whose questions are still pending review."""
  if freshness_hours <= 0:
    return None

  since = now - datetime.timedelta(hours=freshness_hours)
  log = await logs_repo.find_recent_success(material_id=material_id, difficulty=difficulty, since=since)
  if log is None or not log.generated_question_ids:
    return None

  questions = await questions_repo.get_questions(log.generated_question_ids)
  live = [question for question in questions if question.status == "pending" and question.is_active]
  if not live:
    logger.debug("Cached generation %s for material %s no longer resolves to pending questions", log.id, material_id)
    return None
  return CachedGeneration(log=log, questions=live)
