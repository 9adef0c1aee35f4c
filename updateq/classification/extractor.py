"""
Content extraction from supplementary text (notes, documents, free-form context).

Each extraction kind (achievements, insights, learnings) is one model call with
a task-specific prompt expecting a JSON array of strings. On a model error or
a malformed payload the kind falls back to sentence splitting plus its keyword
table from rules.py.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from updateq.classification.rules import (
    ACHIEVEMENT_KEYWORDS,
    INSIGHT_KEYWORDS,
    LEARNING_KEYWORDS,
)
from updateq.config import (
    DEDUP_MAX_ITEMS,
    DEDUP_MIN_ITEM_CHARS,
    EXTRACT_MAX_ACHIEVEMENTS,
    EXTRACT_MAX_INSIGHTS,
    EXTRACT_MAX_LEARNINGS,
    EXTRACT_MIN_SENTENCE_CHARS,
)
from updateq.contracts.activity import ContentType
from updateq.contracts.sources import SupplementaryContent
from updateq.llm.errors import GenerationError
from updateq.llm.gateway import ModelGateway
from updateq.llm.parsing import Malformed, parse_string_list
from updateq.llm.prompts import PromptLoader, get_prompt_loader
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter
from updateq.utils.text import contains_any, split_sentences

logger = get_logger(__name__)

# kind -> (keyword table, fallback cap)
_FALLBACK_RULES: dict[str, tuple[tuple[str, ...], int]] = {
    "achievements": (ACHIEVEMENT_KEYWORDS, EXTRACT_MAX_ACHIEVEMENTS),
    "insights": (INSIGHT_KEYWORDS, EXTRACT_MAX_INSIGHTS),
    "learnings": (LEARNING_KEYWORDS, EXTRACT_MAX_LEARNINGS),
}

# Structured notes (page links, templates)
_PAGE_LINK = re.compile(r"\[\[([^\]]+)\]\]")
_TEMPLATE = re.compile(r"\{\{([^}]+)\}\}")
# Lightweight markup
_HEADER = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC = re.compile(r"\*([^*]+)\*")
_CODE_BLOCK = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`([^`]+)`")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
# Shared
_HORIZONTAL_RULE = re.compile(r"^[ \t]*(?:\*{3,}|_{3,})[ \t]*$|-{3,}", re.MULTILINE)
_BULLET = re.compile(r"^\s*[-*+]\s+", re.MULTILINE)
_NUMBERED = re.compile(r"^\s*\d+\.\s+", re.MULTILINE)
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ProcessedContent:
    achievements: list[str] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    learnings: list[str] = field(default_factory=list)
    word_count: int = 0
    processed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    content_type: ContentType = ContentType.PLAIN_TEXT

    def is_empty(self) -> bool:
        return not (self.achievements or self.insights or self.learnings)


def _clean_structured_notes(text: str) -> str:
    text = _PAGE_LINK.sub(r"\1", text)
    text = _TEMPLATE.sub("", text)
    text = _HORIZONTAL_RULE.sub("", text)
    text = _BULLET.sub("", text)
    text = _NUMBERED.sub("", text)
    return _EXTRA_BLANK_LINES.sub("\n\n", text)


def _clean_lightweight_markup(text: str) -> str:
    # Code blocks go before inline code so fences are not read as inline spans
    text = _CODE_BLOCK.sub("", text)
    text = _HEADER.sub("", text)
    text = _HORIZONTAL_RULE.sub("", text)
    text = _BOLD.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    text = _INLINE_CODE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _BULLET.sub("", text)
    text = _NUMBERED.sub("", text)
    return _EXTRA_BLANK_LINES.sub("\n\n", text)


def clean_content(text: str, content_type: ContentType) -> str:
    """Strip format-specific markup before extraction."""
    if content_type is ContentType.STRUCTURED_NOTES:
        cleaned = _clean_structured_notes(text)
    elif content_type is ContentType.LIGHTWEIGHT_MARKUP:
        cleaned = _clean_lightweight_markup(text)
    else:
        cleaned = _WHITESPACE.sub(" ", text)
    return cleaned.strip()


def keyword_extract(text: str, keywords: tuple[str, ...], limit: int) -> list[str]:
    """Sentences longer than the minimum that mention any keyword, capped at limit."""
    found: list[str] = []
    for sentence in split_sentences(text, min_length=EXTRACT_MIN_SENTENCE_CHARS):
        if contains_any(sentence, keywords):
            found.append(sentence)
            if len(found) >= limit:
                break
    return found


def deduplicate_and_rank(items: Iterable[str]) -> list[str]:
    """
    Drop exact duplicates and short items, longest first, capped.

    Items must be longer than DEDUP_MIN_ITEM_CHARS once trimmed. The sort is
    stable, so equal-length items keep their first-seen order.
    """
    seen: set[str] = set()
    unique: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        if len(item.strip()) > DEDUP_MIN_ITEM_CHARS:
            unique.append(item)
    unique.sort(key=len, reverse=True)
    return unique[:DEDUP_MAX_ITEMS]


def convert_to_achievements(processed: ProcessedContent) -> list[str]:
    """Flatten extraction results into achievement lines, first occurrence wins."""
    lines = [
        *processed.achievements,
        *(f"Researched and documented {insight.lower()}" for insight in processed.insights),
        *(f"Learned and applied {learning.lower()}" for learning in processed.learnings),
    ]
    return list(dict.fromkeys(lines))


class ContentExtractor:
    """
    Model-first extraction of achievements, insights and learnings.

    Example:
        >>> extractor = ContentExtractor(gateway)
        >>> processed = extractor.process_content(notes, ContentType.LIGHTWEIGHT_MARKUP)
        >>> convert_to_achievements(processed)
    """

    def __init__(self, gateway: ModelGateway, prompts: PromptLoader | None = None):
        self.gateway = gateway
        self.prompts = prompts or get_prompt_loader()

    def _extract(self, kind: str, text: str) -> list[str]:
        if not text or not text.strip():
            return []

        keywords, limit = _FALLBACK_RULES[kind]
        try:
            raw = self.gateway.generate(
                self.prompts.extraction_prompt(kind, text), stage=f"extract.{kind}"
            )
        except GenerationError as e:
            logger.warning("Extraction of %s failed, using keyword fallback: %s", kind, e)
            counter(f"extract.{kind}.fallback")
            return keyword_extract(text, keywords, limit)

        result = parse_string_list(raw)
        if isinstance(result, Malformed):
            logger.warning("Malformed %s payload (%s), using keyword fallback", kind, result.reason)
            counter(f"extract.{kind}.malformed")
            return keyword_extract(text, keywords, limit)

        counter(f"extract.{kind}.gemini_hit")
        return result.value

    def extract_achievements(self, text: str) -> list[str]:
        return self._extract("achievements", text)

    def extract_insights(self, text: str) -> list[str]:
        return self._extract("insights", text)

    def extract_learnings(self, text: str) -> list[str]:
        return self._extract("learnings", text)

    def process_content(
        self, text: str, content_type: ContentType = ContentType.PLAIN_TEXT
    ) -> ProcessedContent:
        """
        Clean one blob and run all three extractions on it.

        Blank input (before or after cleaning) makes no model calls.
        """
        cleaned = clean_content(text or "", content_type)
        if not cleaned:
            return ProcessedContent(content_type=content_type)

        return ProcessedContent(
            achievements=self.extract_achievements(cleaned),
            insights=self.extract_insights(cleaned),
            learnings=self.extract_learnings(cleaned),
            word_count=len(cleaned.split()),
            content_type=content_type,
        )

    def process_many(self, contents: Sequence[SupplementaryContent]) -> ProcessedContent:
        """Process each blob, then deduplicate and rank every list across blobs."""
        results = [self.process_content(c.text, c.content_type) for c in contents]
        content_type = contents[0].content_type if contents else ContentType.PLAIN_TEXT
        return ProcessedContent(
            achievements=deduplicate_and_rank(a for r in results for a in r.achievements),
            insights=deduplicate_and_rank(i for r in results for i in r.insights),
            learnings=deduplicate_and_rank(le for r in results for le in r.learnings),
            word_count=sum(r.word_count for r in results),
            content_type=content_type,
        )
