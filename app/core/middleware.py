import logging
import re
import time
import uuid
from typing import Any

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("app.core.middleware")

REQUEST_ID_HEADER = "x-request-id"
_CLIENT_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{8,64}$")
_QUIET_PATHS = frozenset({"/health"})


def _resolve_request_id(scope: Scope) -> str:
  """Reuse a well-formed client or proxy request id, otherwise mint one."""
  incoming = Headers(scope=scope).get(REQUEST_ID_HEADER)
  if incoming and _CLIENT_REQUEST_ID_RE.match(incoming):
    return incoming
  return str(uuid.uuid4())


class RequestLoggingMiddleware:
  """Tag every HTTP request with an id and log method, path, status and duration."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    # Exception handlers read the id back from request.state.
    request_id = _resolve_request_id(scope)
    scope.setdefault("state", {})["request_id"] = request_id

    path = scope.get("path", "")
    method = scope.get("method", "UNKNOWN")
    quiet = path in _QUIET_PATHS
    started = time.perf_counter()
    status_code = 0

    async def send_wrapper(message: dict[str, Any]) -> None:
      nonlocal status_code
      if message.get("type") == "http.response.start":
        status_code = message.get("status", 0)
        MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
      await send(message)

    try:
      await self.app(scope, receive, send_wrapper)
    finally:
      elapsed_ms = (time.perf_counter() - started) * 1000
      if not quiet:
        logger.info("%s %s -> %s request_id=%s (%.1fms)", method, path, status_code or 500, request_id, elapsed_ms)
