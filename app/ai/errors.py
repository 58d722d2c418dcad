"""Error taxonomy for the question pipeline and provider error classification."""

from __future__ import annotations

from collections.abc import Iterable


class QuestionPipelineError(RuntimeError):
  """Base class for pipeline-level failures surfaced to callers."""

  status_code: int = 500
  code: str = "PIPELINE_ERROR"

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message

  def to_detail(self) -> dict[str, str]:
    """Return the client-facing error body."""
    return {"code": self.code, "message": self.message}


class NotFoundError(QuestionPipelineError):
  """A material, course or topic does not exist."""

  status_code = 404
  code = "NOT_FOUND"


class InvalidInputError(QuestionPipelineError):
  """The material has no usable content or the submitted questions are malformed."""

  status_code = 400
  code = "INVALID_INPUT"


class ServiceDisabledError(QuestionPipelineError):
  """AI generation is turned off or no provider is usable."""

  status_code = 503
  code = "SERVICE_DISABLED"


class RateLimitedError(QuestionPipelineError):
  """The organization reached its daily generation ceiling."""

  status_code = 429
  code = "RATE_LIMITED"


class GenerationTimeoutError(QuestionPipelineError):
  """A provider call or the whole generation budget ran out of time."""

  status_code = 504
  code = "TIMEOUT"


class ProviderProtocolViolation(QuestionPipelineError):
  """A provider answered, but not with the requested number of well-formed questions."""

  status_code = 502
  code = "PROVIDER_PROTOCOL_VIOLATION"


class ProviderRateLimitedError(QuestionPipelineError):
  """The upstream provider throttled the request."""

  status_code = 429
  code = "PROVIDER_RATE_LIMITED"


class ProviderError(QuestionPipelineError):
  """Any other upstream provider failure; the raw upstream text is kept out of the message."""

  status_code = 502
  code = "PROVIDER_ERROR"


class ExhaustedError(QuestionPipelineError):
  """No unique question survived any attempt."""

  status_code = 502
  code = "EXHAUSTED"


class ConflictError(QuestionPipelineError):
  """Every candidate duplicated existing content."""

  status_code = 409
  code = "CONFLICT"


_RATE_LIMIT_HINTS: tuple[str, ...] = (
  "429",
  "rate limit",
  "rate_limit",
  "too many requests",
  "resource exhausted",
  "resource_exhausted",
  "quota exceeded",
)


def _match_hint(message: str, hints: Iterable[str]) -> bool:
  """Return True when any hint appears in the message."""
  return any(hint in message for hint in hints)


def is_rate_limit_error(exc: BaseException) -> bool:
  """Return True when an upstream exception reports throttling or quota exhaustion."""
  # SDK errors expose the HTTP status under different attribute names.
  for attr in ("status_code", "code", "status"):
    if getattr(exc, attr, None) == 429:
      return True
  return _match_hint(str(exc).lower(), _RATE_LIMIT_HINTS)
