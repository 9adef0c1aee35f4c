"""
Tests for JSON recovery from model responses.

Model output often arrives wrapped in markdown fences or prose, or with the
odd missing/trailing comma. Parsing must recover what it can and otherwise
return Malformed rather than raise.
"""

from __future__ import annotations

import pytest

from updateq.llm.parsing import (
    Malformed,
    Parsed,
    parse_json_payload,
    parse_string_list,
    strip_code_fences,
)


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n["a"]\n```') == '["a"]'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"k": 1}\n```') == '{"k": 1}'

    def test_no_fence_unchanged(self):
        assert strip_code_fences('  ["a"]  ') == '["a"]'


class TestParseJsonPayload:
    def test_plain_array(self):
        assert parse_json_payload('["one", "two"]') == Parsed(["one", "two"])

    def test_fenced_array(self):
        result = parse_json_payload('```json\n["one", "two"]\n```')
        assert result == Parsed(["one", "two"])

    def test_array_inside_prose(self):
        raw = 'Here are the achievements: ["Shipped export", "Fixed login"] Hope this helps!'
        assert parse_json_payload(raw) == Parsed(["Shipped export", "Fixed login"])

    def test_object_inside_prose(self):
        raw = 'Result:\n{"category": "fix", "confidence": 0.9}\nDone.'
        result = parse_json_payload(raw)
        assert isinstance(result, Parsed)
        assert result.value == {"category": "fix", "confidence": 0.9}

    def test_missing_commas_between_items(self):
        raw = '[\n"Shipped export"\n"Fixed login"\n]'
        assert parse_json_payload(raw) == Parsed(["Shipped export", "Fixed login"])

    def test_missing_comma_after_number(self):
        raw = '{\n"count": 3\n"label": "fix"\n}'
        assert parse_json_payload(raw) == Parsed({"count": 3, "label": "fix"})

    def test_trailing_comma(self):
        assert parse_json_payload('["a", "b",]') == Parsed(["a", "b"])

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_is_malformed(self, raw):
        result = parse_json_payload(raw)
        assert isinstance(result, Malformed)
        assert result.reason == "empty response"

    def test_prose_only_is_malformed(self):
        result = parse_json_payload("I could not find any achievements this week.")
        assert isinstance(result, Malformed)
        assert result.raw == "I could not find any achievements this week."

    def test_truncated_is_malformed(self):
        result = parse_json_payload('["Shipped export", "Fixed')
        assert isinstance(result, Malformed)
        assert result.reason.startswith("invalid JSON")


class TestParseStringList:
    def test_strips_and_drops_blank_items(self):
        result = parse_string_list('["  Shipped export ", "", "   ", "Fixed login"]')
        assert result == Parsed(["Shipped export", "Fixed login"])

    def test_max_items(self):
        result = parse_string_list('["a", "b", "c", "d"]', max_items=2)
        assert result == Parsed(["a", "b"])

    def test_empty_array_is_parsed(self):
        assert parse_string_list("[]") == Parsed([])

    @pytest.mark.parametrize(
        "raw",
        [
            "[1, 2, 3]",
            '["ok", 42]',
            '[{"text": "nested"}]',
            '{"achievements": ["a"]}',
            '"just a string"',
        ],
    )
    def test_non_string_arrays_are_malformed(self, raw):
        result = parse_string_list(raw)
        assert isinstance(result, Malformed)
        assert "array of strings" in result.reason

    def test_unparseable_passes_through_as_malformed(self):
        result = parse_string_list("no json at all")
        assert isinstance(result, Malformed)
        assert result.raw == "no json at all"
