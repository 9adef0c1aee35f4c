"""Parsing of untrusted model output.

Model responses are free text that should contain JSON. Parsing never raises:
callers get back either Parsed(value) or Malformed(raw, reason) and decide
what to do with each.

Repairs handled before giving up:
- Markdown code fences
- Prose around the JSON array/object
- Missing commas between fields or items
- Trailing commas
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from updateq.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")
_STRING_LIST = TypeAdapter(list[str])


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T


@dataclass(frozen=True)
class Malformed:
    raw: str
    reason: str


def strip_code_fences(text: str) -> str:
    """Remove a leading ```/```json fence and a trailing ``` fence."""
    text = text.strip()
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text)
    return text.strip()


def _repair_commas(text: str) -> str:
    repaired = re.sub(r'"\s*\n\s*"', '",\n"', text)
    repaired = re.sub(r"(\d+\.?\d*|true|false|null)\s*\n\s*\"", r'\1,\n"', repaired)
    repaired = re.sub(r'\}\s*\n\s*"', '},\n"', repaired)
    repaired = re.sub(r'\]\s*\n\s*"', '],\n"', repaired)
    return re.sub(r",\s*([\}\]])", r"\1", repaired)


def _candidates(text: str) -> list[str]:
    """Progressively more aggressive readings of text, most faithful first."""
    candidates = [text]
    # Greedy match so nested arrays/objects stay intact
    for pattern in (r"\[.*\]", r"\{.*\}"):
        match = re.search(pattern, text, re.DOTALL)
        if match and match.group(0) != text:
            candidates.append(match.group(0))
    candidates.extend(_repair_commas(c) for c in list(candidates))
    return candidates


def parse_json_payload(raw: str | None) -> Parsed[Any] | Malformed:
    """Decode the JSON value carried by a model response."""
    if raw is None or not raw.strip():
        return Malformed(raw or "", "empty response")

    text = strip_code_fences(raw)
    last_error = "no JSON value found"
    for candidate in _candidates(text):
        try:
            return Parsed(json.loads(candidate))
        except json.JSONDecodeError as e:
            last_error = f"invalid JSON: {e.msg} at position {e.pos}"

    logger.debug("Unparseable model response (%s): %.200s", last_error, raw)
    return Malformed(raw, last_error)


def parse_string_list(raw: str | None, max_items: int | None = None) -> Parsed[list[str]] | Malformed:
    """
    Decode a JSON array of strings.

    Blank entries are dropped and the rest stripped. An array holding anything
    other than strings is Malformed.
    """
    result = parse_json_payload(raw)
    if isinstance(result, Malformed):
        return result

    try:
        items = _STRING_LIST.validate_python(result.value, strict=True)
    except ValidationError as e:
        return Malformed(raw or "", f"expected a JSON array of strings ({e.error_count()} errors)")

    cleaned = [item.strip() for item in items if item and item.strip()]
    if max_items is not None:
        cleaned = cleaned[:max_items]
    return Parsed(cleaned)
