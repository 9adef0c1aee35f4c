"""
Grouping of categorized activities into the weekly summary buckets.

The category -> bucket mapping is fixed:
    feature, performance, security -> features
    fix                             -> fixes
    refactor, docs, test, chore     -> refactors
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from updateq.contracts.activity import CategorizedActivity, Category, WeeklySummary
from updateq.llm.errors import GenerationError
from updateq.llm.gateway import ModelGateway
from updateq.llm.prompts import PromptLoader, get_prompt_loader
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter
from updateq.utils.text import clean_activity_description

logger = get_logger(__name__)

BUCKET_CATEGORIES: dict[str, tuple[Category, ...]] = {
    "features": (Category.FEATURE, Category.PERFORMANCE, Category.SECURITY),
    "fixes": (Category.FIX,),
    "refactors": (Category.REFACTOR, Category.DOCS, Category.TEST, Category.CHORE),
}


def group_by_category(
    activities: Sequence[CategorizedActivity],
) -> dict[Category, list[CategorizedActivity]]:
    """Every category is present (possibly empty); input order kept within each."""
    grouped: dict[Category, list[CategorizedActivity]] = {category: [] for category in Category}
    for activity in activities:
        grouped[activity.category].append(activity)
    return grouped


def map_to_summary_buckets(
    grouped: Mapping[Category, Sequence[CategorizedActivity]],
) -> dict[str, list[str]]:
    """Business descriptions per bucket, in BUCKET_CATEGORIES order."""
    return {
        bucket: [
            activity.business_description
            for category in categories
            for activity in grouped.get(category, ())
        ]
        for bucket, categories in BUCKET_CATEGORIES.items()
    }


def build_weekly_summary(activities: Sequence[CategorizedActivity]) -> WeeklySummary:
    """Summary with every business description in exactly one bucket."""
    buckets = map_to_summary_buckets(group_by_category(activities))
    return WeeklySummary(
        features=tuple(buckets["features"]),
        fixes=tuple(buckets["fixes"]),
        refactors=tuple(buckets["refactors"]),
    )


class ActivityAggregator:
    """Per-category prose summaries on top of the pure grouping functions."""

    def __init__(self, gateway: ModelGateway, prompts: PromptLoader | None = None):
        self.gateway = gateway
        self.prompts = prompts or get_prompt_loader()

    def summarize_group(self, texts: Sequence[str], category: Category) -> str | None:
        """
        One business-friendly sentence for a group of activities.

        Returns:
            None for an empty group; the cleaned text for a single member
            (no model call); otherwise the model's summary, or the first
            member's cleaned text when the call fails.
        """
        if not texts:
            return None
        if len(texts) == 1:
            return clean_activity_description(texts[0])

        try:
            summary = self.gateway.generate(
                self.prompts.summarization_prompt(texts, category.value),
                stage="aggregation",
            )
        except GenerationError as e:
            logger.warning("Summary for %s group failed, using first item: %s", category.value, e)
            counter("aggregation.fallback")
            return clean_activity_description(texts[0])

        counter("aggregation.gemini_hit")
        return summary

    def combine_related_activities(self, activities: Sequence[CategorizedActivity]) -> list[str]:
        """One line per non-empty category, in taxonomy order."""
        combined: list[str] = []
        for category, members in group_by_category(activities).items():
            if not members:
                continue
            if len(members) == 1:
                combined.append(members[0].business_description)
                continue
            summary = self.summarize_group([m.business_description for m in members], category)
            if summary:
                combined.append(summary)
        return combined

    def condensed_summary(self, activities: Sequence[CategorizedActivity]) -> WeeklySummary:
        """
        Like build_weekly_summary, but each non-empty category contributes one
        summarized line instead of every description.
        """
        grouped = group_by_category(activities)
        buckets: dict[str, list[str]] = {bucket: [] for bucket in BUCKET_CATEGORIES}
        for bucket, categories in BUCKET_CATEGORIES.items():
            for category in categories:
                summary = self.summarize_group(
                    [a.business_description for a in grouped[category]], category
                )
                if summary:
                    buckets[bucket].append(summary)
        return WeeklySummary(
            features=tuple(buckets["features"]),
            fixes=tuple(buckets["fixes"]),
            refactors=tuple(buckets["refactors"]),
        )
