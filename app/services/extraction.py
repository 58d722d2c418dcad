"""Text extraction for uploaded materials."""

from __future__ import annotations

import asyncio
import logging
from typing import Final, Protocol

import httpx
from google import genai
from google.genai import types

from app.config import Settings

logger = logging.getLogger(__name__)

_TEXT_FILE_TYPES: Final[frozenset[str]] = frozenset({"text"})
_MIME_TYPES: Final[dict[str, str]] = {"pdf": "application/pdf", "image": "image/png"}
_EXTRACTION_PROMPT: Final[str] = "Extract all readable text from this document. Preserve question numbering, option labels and answer lines exactly as written. Return plain text only."


class ExtractionError(RuntimeError):
  """Raised when a material file cannot be turned into text."""


class TextExtractor(Protocol):
  """Turn a stored material file into plain text."""

  async def extract(self, file_url: str, file_type: str) -> str:
    """Return the document text or raise ExtractionError."""


class HttpTextExtractor:
  """Download material files over HTTP; read text files directly and send PDFs and images to Gemini."""

  def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
    self._timeout = settings.extraction_timeout_seconds
    self._model_name = settings.gemini_model
    self._transport = transport
    self._client = genai.Client(api_key=settings.gemini_api_key) if settings.gemini_api_key else None

  async def extract(self, file_url: str, file_type: str) -> str:
    if not file_url:
      raise ExtractionError("Material has no file to extract text from.")

    content, content_type = await self._download(file_url)
    if file_type in _TEXT_FILE_TYPES:
      return content.decode("utf-8", errors="replace")

    mime_type = _MIME_TYPES.get(file_type)
    if mime_type is None:
      raise ExtractionError(f"Unsupported material file type '{file_type}'.")
    if file_type == "image" and content_type and content_type.startswith("image/"):
      mime_type = content_type
    return await self._extract_with_model(content, mime_type)

  async def _download(self, file_url: str) -> tuple[bytes, str | None]:
    try:
      async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport, follow_redirects=True) as client:
        response = await client.get(file_url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
      logger.warning("Material download failed for %s: %s", file_url, exc)
      raise ExtractionError("Material file could not be downloaded.") from exc
    return response.content, response.headers.get("content-type")

  async def _extract_with_model(self, content: bytes, mime_type: str) -> str:
    if self._client is None:
      raise ExtractionError("Document text extraction requires GEMINI_API_KEY.")

    try:
      response = await asyncio.wait_for(self._client.aio.models.generate_content(model=self._model_name, contents=[types.Part.from_bytes(data=content, mime_type=mime_type), _EXTRACTION_PROMPT]), timeout=self._timeout)
    except TimeoutError as exc:
      logger.warning("Gemini text extraction timed out after %.1fs", self._timeout)
      raise ExtractionError("Document text extraction timed out.") from exc
    except Exception as exc:
      logger.exception("Gemini text extraction failed")
      raise ExtractionError("Document text extraction failed.") from exc

    text = response.text or ""
    logger.info("Extracted %d characters from %s document", len(text), mime_type)
    return text
