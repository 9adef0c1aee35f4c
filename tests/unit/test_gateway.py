"""Tests for ModelGateway error normalization and per-stage telemetry."""

from __future__ import annotations

import time

import pytest

from updateq.infrastructure.rate_limiter import RateLimiter
from updateq.llm.errors import GenerationError
from updateq.llm.gateway import ModelGateway
from updateq.observability.telemetry import get_counter, get_latency_stats


def test_returns_stripped_text(gateway_factory, scripted):
    assert gateway_factory(scripted(["  feature \n"])).generate("p", stage="classification") == (
        "feature"
    )
    assert get_counter("classification.llm_calls") == 1
    assert get_counter("classification.llm_errors") == 0


def test_client_error_becomes_generation_error(gateway_factory, failing_client):
    with pytest.raises(GenerationError, match="email: backend unavailable"):
        gateway_factory(failing_client).generate("p", stage="email")

    assert get_counter("email.llm_errors") == 1


@pytest.mark.parametrize("reply", ["", "   \n"])
def test_blank_reply_is_an_error(gateway_factory, scripted, reply):
    with pytest.raises(GenerationError, match="empty response"):
        gateway_factory(scripted([reply])).generate("p", stage="highlights")

    assert get_counter("highlights.llm_empty") == 1


def test_latency_excludes_rate_limit_wait(fake_clock, scripted):
    def slow_sleep(seconds: float) -> None:
        time.sleep(0.2)
        fake_clock.sleep(seconds)

    limiter = RateLimiter(
        max_calls=1,
        window_seconds=60,
        safety_margin_seconds=0,
        clock=fake_clock,
        sleep=slow_sleep,
    )
    gateway = ModelGateway(scripted(default="ok"), limiter)

    gateway.generate("first", stage="optimized")
    gateway.generate("second", stage="optimized")

    assert fake_clock.sleeps == [60]
    stats = get_latency_stats("optimized.llm.latency")
    assert stats["count"] == 2
    assert stats["max"] < 0.2
