"""
Activity classification.

Implements the classification cascade:
    Gemini (via rate-limited gateway) → keyword rules

The result is always a member of the closed Category taxonomy: a model error,
an empty response or an out-of-taxonomy label all fall through to
keyword_classify().
"""

from __future__ import annotations

from collections.abc import Sequence

from updateq.classification.rules import assess_impact, keyword_classify
from updateq.contracts.activity import (
    CategorizedActivity,
    Category,
    Decider,
    ImpactLevel,
    SourceKind,
)
from updateq.llm.errors import GenerationError
from updateq.llm.gateway import ModelGateway
from updateq.llm.prompts import PromptLoader, get_prompt_loader
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter, log_event
from updateq.utils.text import create_business_description

logger = get_logger(__name__)


class ActivityClassifier:
    """
    Maps one free-text activity to one Category.

    Cascade order (first usable answer wins):
    1. Gemini - classification prompt, label lower-cased and stripped
    2. Fallback - ordered keyword rules, default chore

    Example:
        >>> classifier = ActivityClassifier(gateway)
        >>> classifier.classify("fix: null pointer in parser")
        <Category.FIX: 'fix'>
    """

    def __init__(self, gateway: ModelGateway, prompts: PromptLoader | None = None):
        self.gateway = gateway
        self.prompts = prompts or get_prompt_loader()

    def classify_detailed(self, text: str) -> tuple[Category, Decider]:
        """Classify and report which cascade stage decided."""
        try:
            label = self.gateway.generate(
                self.prompts.classification_prompt(text), stage="classification"
            )
        except GenerationError as e:
            logger.warning("Classification call failed, using keyword rules: %s", e)
            counter("classification.fallback.error")
            return keyword_classify(text), Decider.FALLBACK

        category = Category.from_label(label.strip().strip("\"'."))
        if category is None:
            logger.info("Model label %r outside taxonomy, using keyword rules", label[:40])
            counter("classification.fallback.invalid_label")
            return keyword_classify(text), Decider.FALLBACK

        counter("classification.gemini_hit")
        return category, Decider.GEMINI

    def classify(self, text: str) -> Category:
        category, _ = self.classify_detailed(text)
        return category

    def categorize(self, text: str, source_kind: SourceKind) -> CategorizedActivity:
        category, decider = self.classify_detailed(text)
        return CategorizedActivity(
            category=category,
            impact_level=assess_impact(text, category),
            business_description=create_business_description(text),
            source_kind=source_kind,
            original_text=text,
            decider=decider,
        )

    def classify_batch(
        self, texts: Sequence[str], source_kind: SourceKind
    ) -> list[CategorizedActivity]:
        """
        Classify texts one at a time, preserving order.

        Returns exactly one CategorizedActivity per input. If building an item
        fails outright, only that item degrades (keyword category, low impact).
        """
        results: list[CategorizedActivity] = []
        for text in texts:
            try:
                results.append(self.categorize(text, source_kind))
            except Exception as e:
                logger.warning("Classification of one activity failed: %s", e)
                counter("classification.item_degraded")
                results.append(
                    CategorizedActivity(
                        category=keyword_classify(text),
                        impact_level=ImpactLevel.LOW,
                        business_description=create_business_description(text) or text,
                        source_kind=source_kind,
                        original_text=text,
                        decider=Decider.FALLBACK,
                    )
                )

        log_event(
            "classification.batch",
            source_kind=source_kind.value,
            total=len(results),
            gemini=sum(1 for r in results if r.decider is Decider.GEMINI),
        )
        return results
