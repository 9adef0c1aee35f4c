"""Highlight selection: the 1-3 highest-impact activities of the period."""

from __future__ import annotations

from collections.abc import Sequence

from updateq.classification.rules import is_highlight
from updateq.config import HIGHLIGHTS_MAX
from updateq.llm.errors import GenerationError
from updateq.llm.gateway import ModelGateway
from updateq.llm.parsing import Malformed, parse_string_list
from updateq.llm.prompts import PromptLoader, get_prompt_loader
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter
from updateq.utils.text import clean_activity_description

logger = get_logger(__name__)


def keyword_highlights(texts: Sequence[str], limit: int = HIGHLIGHTS_MAX) -> list[str]:
    """Cleaned texts mentioning a HIGHLIGHT_KEYWORDS word, capped at limit."""
    return [clean_activity_description(t) for t in texts if is_highlight(t)][:limit]


class HighlightExtractor:
    def __init__(self, gateway: ModelGateway, prompts: PromptLoader | None = None):
        self.gateway = gateway
        self.prompts = prompts or get_prompt_loader()

    def extract_highlights(self, texts: Sequence[str]) -> list[str]:
        """
        Ask the model to rank the top activities; keyword scan on any failure.

        An empty JSON array from the model is a valid answer (nothing stood out).
        """
        if not texts:
            return []

        try:
            raw = self.gateway.generate(self.prompts.highlights_prompt(texts), stage="highlights")
        except GenerationError as e:
            logger.warning("Highlight extraction failed, using keyword scan: %s", e)
            counter("highlights.fallback.error")
            return keyword_highlights(texts)

        result = parse_string_list(raw, max_items=HIGHLIGHTS_MAX)
        if isinstance(result, Malformed):
            logger.warning("Malformed highlights payload (%s), using keyword scan", result.reason)
            counter("highlights.fallback.malformed")
            return keyword_highlights(texts)

        counter("highlights.gemini_hit")
        return result.value
