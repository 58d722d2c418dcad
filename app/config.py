"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

SUPPORTED_PROVIDERS: tuple[str, ...] = ("gemini", "openai", "openrouter")


@dataclass(frozen=True)
class Settings:
  """Typed settings for the question generation service."""

  environment: str
  allowed_origins: tuple[str, ...]
  debug: bool
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  pg_dsn: str | None
  pg_connect_timeout: int
  ai_generation_enabled: bool
  ai_provider_order: tuple[str, ...]
  gemini_api_key: str | None
  gemini_model: str
  openai_api_key: str | None
  openai_model: str
  openrouter_api_key: str | None
  openrouter_model: str
  openrouter_base_url: str
  ai_daily_limit_per_org: int
  ai_cache_freshness_hours: float
  ai_attempt_timeout_seconds: float
  ai_total_timeout_seconds: float
  ai_target_question_count: int
  ai_max_attempts: int
  ai_max_excluded_texts: int
  ai_max_material_chars: int
  rate_limit_timezone: str
  extraction_timeout_seconds: float

  def provider_api_key(self, provider: str) -> str | None:
    """Return the credential configured for a provider name, if any."""
    keys = {"gemini": self.gemini_api_key, "openai": self.openai_api_key, "openrouter": self.openrouter_api_key}
    return keys.get(provider)

  def provider_model(self, provider: str) -> str | None:
    """Return the model configured for a provider name, if any."""
    models = {"gemini": self.gemini_model, "openai": self.openai_model, "openrouter": self.openrouter_model}
    return models.get(provider)


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    raise ValueError("QBANK_ALLOWED_ORIGINS must be set to one or more origins.")

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("QBANK_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("QBANK_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_provider_order(raw: str | None) -> tuple[str, ...]:
  """Parse the ordered provider list, dropping repeats while keeping order."""
  names = [name.strip().lower() for name in (raw or "gemini,openai").split(",") if name.strip()]
  unknown = [name for name in names if name not in SUPPORTED_PROVIDERS]
  if unknown:
    raise ValueError(f"QBANK_AI_PROVIDERS contains unsupported providers: {', '.join(unknown)}.")
  return tuple(dict.fromkeys(names))


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _positive_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")
  return value


def _parse_timezone(raw: str | None) -> str:
  name = (raw or "UTC").strip()
  try:
    ZoneInfo(name)
  except ZoneInfoNotFoundError as exc:
    raise ValueError(f"QBANK_RATE_LIMIT_TIMEZONE '{name}' is not a known timezone.") from exc
  return name


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("QBANK_ENV", "development").lower()

  # Toggle verbose error output and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("QBANK_DEBUG"))

  log_max_bytes = _positive_int("QBANK_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("QBANK_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("QBANK_LOG_BACKUP_COUNT must be zero or a positive integer.")

  ai_total_timeout_seconds = _positive_float("QBANK_AI_TOTAL_TIMEOUT_SECONDS", "240")
  ai_attempt_timeout_seconds = _positive_float("QBANK_AI_ATTEMPT_TIMEOUT_SECONDS", "60")
  if ai_attempt_timeout_seconds > ai_total_timeout_seconds:
    raise ValueError("QBANK_AI_ATTEMPT_TIMEOUT_SECONDS must not exceed QBANK_AI_TOTAL_TIMEOUT_SECONDS.")

  ai_daily_limit_per_org = int(os.getenv("QBANK_AI_DAILY_LIMIT_PER_ORG", "50"))
  if ai_daily_limit_per_org < 0:
    raise ValueError("QBANK_AI_DAILY_LIMIT_PER_ORG must be zero or a positive integer.")

  ai_cache_freshness_hours = float(os.getenv("QBANK_AI_CACHE_FRESHNESS_HOURS", "24"))
  if ai_cache_freshness_hours < 0:
    raise ValueError("QBANK_AI_CACHE_FRESHNESS_HOURS must be zero or positive.")

  return Settings(
    environment=environment,
    allowed_origins=_parse_origins(os.getenv("QBANK_ALLOWED_ORIGINS")),
    debug=debug,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("QBANK_LOG_HTTP_4XX")),
    pg_dsn=os.getenv("QBANK_PG_DSN") or os.getenv("DATABASE_URL"),
    pg_connect_timeout=int(os.getenv("QBANK_PG_CONNECT_TIMEOUT", "5")),
    ai_generation_enabled=_parse_bool(os.getenv("QBANK_AI_ENABLED"), default=True),
    ai_provider_order=_parse_provider_order(os.getenv("QBANK_AI_PROVIDERS")),
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    gemini_model=os.getenv("QBANK_GEMINI_MODEL", "gemini-2.0-flash"),
    openai_api_key=_optional_str(os.getenv("OPENAI_API_KEY")),
    openai_model=os.getenv("QBANK_OPENAI_MODEL", "gpt-4o-mini"),
    openrouter_api_key=_optional_str(os.getenv("OPENROUTER_API_KEY")),
    openrouter_model=os.getenv("QBANK_OPENROUTER_MODEL", "openai/gpt-oss-20b:free"),
    openrouter_base_url=(os.getenv("QBANK_OPENROUTER_BASE_URL") or "https://openrouter.ai/api/v1").strip(),
    ai_daily_limit_per_org=ai_daily_limit_per_org,
    ai_cache_freshness_hours=ai_cache_freshness_hours,
    ai_attempt_timeout_seconds=ai_attempt_timeout_seconds,
    ai_total_timeout_seconds=ai_total_timeout_seconds,
    ai_target_question_count=_positive_int("QBANK_AI_TARGET_QUESTION_COUNT", "20"),
    ai_max_attempts=_positive_int("QBANK_AI_MAX_ATTEMPTS", "3"),
    ai_max_excluded_texts=_positive_int("QBANK_AI_MAX_EXCLUDED_TEXTS", "100"),
    ai_max_material_chars=_positive_int("QBANK_AI_MAX_MATERIAL_CHARS", "60000"),
    rate_limit_timezone=_parse_timezone(os.getenv("QBANK_RATE_LIMIT_TIMEZONE")),
    extraction_timeout_seconds=_positive_float("QBANK_EXTRACTION_TIMEOUT_SECONDS", "60"),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration like CORS."""
  debug = _parse_bool(os.getenv("QBANK_DEBUG"))
  pg_connect_timeout = int(os.getenv("QBANK_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("QBANK_PG_CONNECT_TIMEOUT must be a positive integer.")

  pg_dsn = os.getenv("QBANK_PG_DSN") or os.getenv("DATABASE_URL")

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value
