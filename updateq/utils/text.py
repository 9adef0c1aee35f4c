"""
Text helpers shared by classification and digest stages.

Provides:
- create_business_description(): commit/PR text -> manager-readable sentence
- clean_activity_description(): same, also dropping a "PR #N:" prefix
- split_sentences(): sentence splitter used by the keyword fallbacks
- format_date_range(): "for the period from X to Y" / "for this week"
"""

from __future__ import annotations

import re
from datetime import date

CONVENTIONAL_PREFIX = re.compile(
    r"^(feat|fix|refactor|docs|test|chore|style|perf|security):\s*", re.IGNORECASE
)
ACTION_PREFIX = re.compile(r"^(add|implement|create|update|fix|remove|delete):\s*", re.IGNORECASE)
PR_PREFIX = re.compile(r"^PR #\d+:\s*", re.IGNORECASE)
SENTENCE_BOUNDARY = re.compile(r"[.!?;\n]+")


def capitalize_and_punctuate(text: str) -> str:
    """Upper-case the first character and end with "." unless already . ! or ?"""
    text = text.strip()
    if not text:
        return text
    text = text[0].upper() + text[1:]
    if text[-1] not in ".!?":
        text += "."
    return text


def create_business_description(text: str) -> str:
    """
    Examples:
        "fix: null pointer in parser" -> "Null pointer in parser."
        "feat: add CSV export" -> "Add CSV export."
    """
    description = CONVENTIONAL_PREFIX.sub("", text.strip())
    description = ACTION_PREFIX.sub("", description)
    return capitalize_and_punctuate(description)


def clean_activity_description(text: str) -> str:
    """
    Examples:
        "PR #42: speed up search" -> "Speed up search."
    """
    cleaned = CONVENTIONAL_PREFIX.sub("", text.strip())
    cleaned = PR_PREFIX.sub("", cleaned)
    return capitalize_and_punctuate(cleaned)


def split_sentences(text: str, min_length: int = 0) -> list[str]:
    """Split on . ! ? ; and newlines, keeping trimmed pieces longer than min_length."""
    pieces = (piece.strip() for piece in SENTENCE_BOUNDARY.split(text))
    return [piece for piece in pieces if piece and len(piece) > min_length]


def contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    """Case-insensitive substring match against any keyword."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def format_date_range(start: date | str | None, end: date | str | None) -> str:
    if not start or not end:
        return "for this week"
    start_text = start.isoformat() if isinstance(start, date) else start
    end_text = end.isoformat() if isinstance(end, date) else end
    return f"for the period from {start_text} to {end_text}"
