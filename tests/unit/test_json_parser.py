from __future__ import annotations

import json

import pytest

from app.ai.json_parser import parse_json_with_fallback, strip_json_fences


def test_strict_json_is_returned_unchanged() -> None:
  assert parse_json_with_fallback('{"questions": []}') == {"questions": []}


def test_fenced_json_is_unwrapped() -> None:
  raw = '```json\n{"questions": [{"text": "Q"}]}\n```'
  assert parse_json_with_fallback(strip_json_fences(raw)) == {"questions": [{"text": "Q"}]}


def test_first_object_is_extracted_from_surrounding_prose() -> None:
  raw = 'Here you go: {"questions": [{"text": "has } brace"}]} Hope this helps!'
  assert parse_json_with_fallback(raw) == {"questions": [{"text": "has } brace"}]}


def test_trailing_commas_are_tolerated() -> None:
  assert parse_json_with_fallback('{"questions": [1, 2,],}') == {"questions": [1, 2]}


def test_unrecoverable_payload_raises_decode_error() -> None:
  with pytest.raises(json.JSONDecodeError):
    parse_json_with_fallback("no json here")
  with pytest.raises(json.JSONDecodeError):
    parse_json_with_fallback('{"questions": [')
