"""Tests for weekly email rendering."""

from __future__ import annotations

import pytest

from updateq.contracts.activity import WeeklySummary
from updateq.digest.email_composer import (
    EmailComposer,
    render_template_email,
    summary_from_achievements,
)
from updateq.observability.telemetry import get_counter

DATE_RANGE = "for the period from 2024-03-04 to 2024-03-08"


@pytest.fixture
def summary() -> WeeklySummary:
    return WeeklySummary(
        features=("Add CSV export.",),
        fixes=("Null pointer in parser.",),
        refactors=("Split settings.",),
        highlights=("Add CSV export.",),
        notes=("Busy week.",),
    )


@pytest.fixture
def make_composer(gateway_factory):
    def _make(client):
        return EmailComposer(gateway_factory(client))

    return _make


class TestTemplateEmail:
    def test_subject_and_bullets(self, summary):
        email = render_template_email(summary, DATE_RANGE)

        assert email.startswith(f"Subject: Weekly Update - {DATE_RANGE}\n")
        assert f"I wanted to share a quick update on my progress {DATE_RANGE}:" in email
        assert email.count("• ") == 5
        assert "• Null pointer in parser." in email
        assert email.rstrip().endswith("[Your name]")

    def test_bullet_order_follows_all_items(self, summary):
        email = render_template_email(summary, DATE_RANGE)
        bullets = [line[2:] for line in email.splitlines() if line.startswith("• ")]
        assert bullets == summary.all_items()


class TestEmailComposer:
    def test_model_email_returned(self, make_composer, scripted, summary):
        client = scripted(["Hi team,\n\nGreat week.\n"])
        email = make_composer(client).generate_email(summary, DATE_RANGE)

        assert email == "Hi team,\n\nGreat week."
        assert DATE_RANGE in client.prompts[0]
        assert '["Null pointer in parser."]' in client.prompts[0]
        assert "Highlights:" in client.prompts[0]
        assert get_counter("email.gemini_hit") == 1

    def test_optional_sections_omitted_when_absent(self, make_composer, scripted):
        client = scripted(["ok"])
        make_composer(client).generate_email(WeeklySummary(features=("A.",)), DATE_RANGE)

        assert "Highlights:" not in client.prompts[0]
        assert "Notes:" not in client.prompts[0]

    def test_failure_renders_template(self, make_composer, failing_client, summary):
        email = make_composer(failing_client).generate_email(summary, DATE_RANGE)

        assert email == render_template_email(summary, DATE_RANGE)
        assert get_counter("email.fallback") == 1


class TestSummaryFromAchievements:
    def test_keyword_buckets_case_insensitive(self):
        summary = summary_from_achievements(
            [
                "Implemented the export API",
                "Fixed flaky upload retries",
                "Refactored the settings loader",
                "Met with the design team",
            ]
        )

        assert summary.features == ("Implemented the export API", "Met with the design team")
        assert summary.fixes == ("Fixed flaky upload retries",)
        assert summary.refactors == ("Refactored the settings loader",)
        assert summary.highlights is None
        assert summary.notes is None

    def test_line_goes_to_first_matching_bucket(self):
        summary = summary_from_achievements(
            ["Resolved and cleaned up the cache layer", "Implemented and fixed the importer"]
        )
        assert summary.features == ("Implemented and fixed the importer",)
        assert summary.fixes == ("Resolved and cleaned up the cache layer",)
        assert summary.refactors == ()

    def test_marker_lines_are_only_highlights(self):
        summary = summary_from_achievements(["🌟 Implemented v2", "Fix login"])
        assert summary.features == ()
        assert summary.fixes == ("Fix login",)
        assert summary.highlights == ("🌟 Implemented v2",)

    def test_unmatched_lines_kept_alongside_matched_ones(self):
        summary = summary_from_achievements(
            ["Fixed a parser crash", "Submitted 1 pull request(s) for code review and integration."]
        )
        assert summary.features == (
            "Submitted 1 pull request(s) for code review and integration.",
        )
        assert summary.fixes == ("Fixed a parser crash",)

    def test_template_has_one_bullet_per_line(self):
        lines = [
            "Shipped CSV export for finance",
            "Fixed and improved the parser",
            "🌟 Cut build time in half",
            "Optimized the cache",
        ]
        email = render_template_email(summary_from_achievements(lines), DATE_RANGE)

        for line in lines:
            assert email.count(f"• {line}") == 1
        assert email.count("• ") == len(lines)

    def test_nothing_matches_everything_is_a_feature(self):
        lines = ["Met with the design team", "Wrote the quarterly plan"]
        summary = summary_from_achievements(lines)

        assert summary.features == tuple(lines)
        assert summary.fixes == ()
        assert summary.refactors == ()
