"""Unit tests for API exception sanitization behavior."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from app.ai.errors import ProviderError, RateLimitedError
from app.core.exceptions import _coerce_json_safe, _error_payload, _sanitize_validation_errors, pipeline_exception_handler


def test_sanitize_validation_errors_removes_input_and_serializes_exception_ctx() -> None:
  """Ensure validation errors stay JSON-serializable and redact raw request payloads."""
  errors = [{"type": "value_error", "loc": ("body", "difficulty"), "msg": "Value error, Unsupported difficulty 'extreme'.", "input": {"difficulty": "extreme"}, "ctx": {"error": ValueError("Unsupported difficulty 'extreme'."), "input": {"difficulty": "extreme"}}}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert sanitized[0]["ctx"]["error"] == "ValueError: Unsupported difficulty 'extreme'."
  assert "input" not in sanitized[0]["ctx"]
  assert sanitized[0]["loc"] == ["body", "difficulty"]


def test_coerce_json_safe_handles_bare_exceptions() -> None:
  assert _coerce_json_safe(KeyError()) == "KeyError"


def test_error_payload_omits_missing_request_id() -> None:
  assert _error_payload("boom") == {"detail": "boom"}
  assert _error_payload("boom", request_id="req-1") == {"detail": "boom", "requestId": "req-1"}


@pytest.mark.anyio
@pytest.mark.parametrize(("exc", "status_code", "code"), [(RateLimitedError("Daily limit reached."), 429, "RATE_LIMITED"), (ProviderError("gemini request failed."), 502, "PROVIDER_ERROR")])
async def test_pipeline_errors_map_to_status_and_code(exc, status_code, code) -> None:
  request = MagicMock()
  request.state.request_id = "req-42"
  request.url.path = "/v1/materials/material-1/questions/generate"

  response = await pipeline_exception_handler(request, exc)

  assert response.status_code == status_code
  assert json.loads(response.body) == {"detail": {"code": code, "message": exc.message}, "requestId": "req-42"}
