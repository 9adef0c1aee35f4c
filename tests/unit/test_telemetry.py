"""Tests for in-memory telemetry helpers."""

from __future__ import annotations

from updateq.observability.telemetry import (
    counter,
    get_counter,
    get_latency_stats,
    reset_telemetry,
    time_block,
)


def test_counter_accumulates():
    assert counter("classification.gemini_hit") == 1
    assert counter("classification.gemini_hit", increment=2) == 3
    assert get_counter("classification.gemini_hit") == 3
    assert get_counter("never.seen") == 0


def test_time_block_records_latency_even_on_error():
    with time_block("classification.llm.latency"):
        pass
    try:
        with time_block("classification.llm.latency"):
            raise ValueError("boom")
    except ValueError:
        pass

    stats = get_latency_stats("classification.llm.latency")
    assert stats["count"] == 2
    assert stats["min"] <= stats["p50"] <= stats["max"]
    # ".latency" names are normalized to "_ms"
    assert get_latency_stats("classification.llm.latency_ms")["count"] == 2


def test_empty_latency_stats():
    assert get_latency_stats("nothing.latency")["count"] == 0


def test_reset():
    counter("x")
    reset_telemetry()
    assert get_counter("x") == 0
