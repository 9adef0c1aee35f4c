"""Tests for grouping categorized activities into summary buckets."""

from __future__ import annotations

from collections import Counter

import pytest

from updateq.contracts.activity import (
    CategorizedActivity,
    Category,
    ImpactLevel,
    SourceKind,
)
from updateq.digest.aggregator import (
    ActivityAggregator,
    build_weekly_summary,
    group_by_category,
    map_to_summary_buckets,
)
from updateq.observability.telemetry import get_counter


def make_activity(category: Category, description: str) -> CategorizedActivity:
    return CategorizedActivity(
        category=category,
        impact_level=ImpactLevel.LOW,
        business_description=description,
        source_kind=SourceKind.COMMIT,
        original_text=description.lower(),
    )


@pytest.fixture
def activities() -> list[CategorizedActivity]:
    return [
        make_activity(Category.FEATURE, "Add CSV export."),
        make_activity(Category.FIX, "Null pointer in parser."),
        make_activity(Category.SECURITY, "Rotate signing keys."),
        make_activity(Category.DOCS, "Document the API."),
        make_activity(Category.FEATURE, "Add dark mode."),
        make_activity(Category.CHORE, "Bump dependencies."),
        make_activity(Category.PERFORMANCE, "Cache search results."),
        make_activity(Category.TEST, "Cover the importer."),
        make_activity(Category.REFACTOR, "Split the settings module."),
    ]


@pytest.fixture
def make_aggregator(gateway_factory):
    def _make(client):
        return ActivityAggregator(gateway_factory(client))

    return _make


class TestGrouping:
    def test_every_category_present(self):
        grouped = group_by_category([])
        assert set(grouped) == set(Category)
        assert all(members == [] for members in grouped.values())

    def test_flattening_groups_reconstructs_input(self, activities):
        grouped = group_by_category(activities)
        flattened = [a for members in grouped.values() for a in members]
        assert Counter(flattened) == Counter(activities)

    def test_input_order_kept_within_group(self, activities):
        features = group_by_category(activities)[Category.FEATURE]
        assert [a.business_description for a in features] == ["Add CSV export.", "Add dark mode."]


class TestBuckets:
    def test_bucket_mapping(self, activities):
        buckets = map_to_summary_buckets(group_by_category(activities))

        assert buckets["features"] == [
            "Add CSV export.",
            "Add dark mode.",
            "Cache search results.",
            "Rotate signing keys.",
        ]
        assert buckets["fixes"] == ["Null pointer in parser."]
        assert buckets["refactors"] == [
            "Split the settings module.",
            "Document the API.",
            "Cover the importer.",
            "Bump dependencies.",
        ]

    def test_each_activity_in_exactly_one_bucket(self, activities):
        summary = build_weekly_summary(activities)

        bucketed = [*summary.features, *summary.fixes, *summary.refactors]
        assert Counter(bucketed) == Counter(a.business_description for a in activities)
        assert summary.highlights is None
        assert summary.notes is None


class TestSummarizeGroup:
    def test_empty_group(self, make_aggregator, failing_client):
        assert make_aggregator(failing_client).summarize_group([], Category.FIX) is None
        assert failing_client.calls == 0

    def test_singleton_makes_no_call(self, make_aggregator, failing_client):
        summary = make_aggregator(failing_client).summarize_group(
            ["fix: PR #12: login loop"], Category.FIX
        )
        assert summary == "Login loop."
        assert failing_client.calls == 0

    def test_model_summary(self, make_aggregator, scripted):
        client = scripted(["Improved reliability of sign-in."])
        summary = make_aggregator(client).summarize_group(
            ["Login loop.", "Session expiry."], Category.FIX
        )

        assert summary == "Improved reliability of sign-in."
        assert "fix" in client.prompts[0]
        assert "1. Login loop." in client.prompts[0]
        assert "2. Session expiry." in client.prompts[0]

    def test_failure_falls_back_to_first_cleaned_text(self, make_aggregator, failing_client):
        summary = make_aggregator(failing_client).summarize_group(
            ["feat: faster builds", "ci tweaks"], Category.PERFORMANCE
        )
        assert summary == "Faster builds."
        assert get_counter("aggregation.fallback") == 1


class TestCombined:
    def test_combine_related_activities(self, make_aggregator, scripted, activities):
        client = scripted(["Shipped export and dark mode."])
        lines = make_aggregator(client).combine_related_activities(activities)

        # Only the feature group has more than one member
        assert client.calls == 1
        assert lines[0] == "Shipped export and dark mode."
        assert "Null pointer in parser." in lines
        assert len(lines) == 8

    def test_condensed_summary_one_line_per_category(self, make_aggregator, failing_client, activities):
        summary = make_aggregator(failing_client).condensed_summary(activities)

        assert summary.features == (
            "Add CSV export.",
            "Cache search results.",
            "Rotate signing keys.",
        )
        assert summary.fixes == ("Null pointer in parser.",)
        assert len(summary.refactors) == 4
