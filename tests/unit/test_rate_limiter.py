"""Unit tests for the generation-API rate limiter

Tests cover:
- Calls under the limit proceed immediately
- Exhaustion suspends for window - elapsed + margin
- Calls are recorded even when the operation raises
- Usage stats and remaining never negative
- Lazy pruning of stale timestamps
- Optional wait cap
- Atomic check-and-append across threads
"""

from __future__ import annotations

import threading

import pytest

from updateq.infrastructure.rate_limiter import RateLimiter, RateLimitTimeout
from updateq.llm.errors import GenerationError


@pytest.fixture
def limiter(fake_clock):
    return RateLimiter(
        max_calls=3,
        window_seconds=10,
        safety_margin_seconds=1,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


def test_calls_under_limit_proceed_without_sleeping(limiter, fake_clock):
    for i in range(3):
        assert limiter.can_proceed()
        assert limiter.execute(lambda i=i: i * 2) == i * 2

    assert fake_clock.sleeps == []
    assert not limiter.can_proceed()


def test_exhausted_window_suspends_until_oldest_call_expires(limiter, fake_clock):
    for _ in range(3):
        limiter.execute(lambda: None)
    fake_clock.advance(4)

    limiter.execute(lambda: "ok")

    # 10s window - 4s elapsed + 1s margin
    assert fake_clock.sleeps == [pytest.approx(7.0)]
    assert limiter.get_usage_stats().current == 1


def test_call_is_recorded_when_operation_raises(limiter):
    def boom():
        raise ValueError("api error")

    with pytest.raises(ValueError):
        limiter.execute(boom)

    assert limiter.get_usage_stats().current == 1


def test_usage_stats_remaining(limiter):
    stats = limiter.get_usage_stats()
    assert (stats.current, stats.max, stats.remaining) == (0, 3, 3)

    for _ in range(3):
        limiter.wait_for_slot()

    stats = limiter.get_usage_stats()
    assert stats.current == 3
    assert stats.remaining == 0


def test_stale_calls_pruned_lazily(limiter, fake_clock):
    limiter.execute(lambda: None)
    limiter.execute(lambda: None)
    fake_clock.advance(10)

    assert limiter.get_usage_stats().current == 0
    assert limiter.get_usage_stats().remaining == 3


def test_can_proceed_does_not_record(limiter):
    for _ in range(5):
        limiter.can_proceed()
    assert limiter.get_usage_stats().current == 0


def test_reset_clears_window(limiter):
    for _ in range(3):
        limiter.execute(lambda: None)
    limiter.reset()
    assert limiter.can_proceed()


def test_wait_cap_raises_timeout(fake_clock):
    limiter = RateLimiter(
        max_calls=1,
        window_seconds=60,
        safety_margin_seconds=1,
        max_wait_seconds=5,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )
    limiter.execute(lambda: None)

    with pytest.raises(RateLimitTimeout) as exc_info:
        limiter.execute(lambda: None)

    assert isinstance(exc_info.value, GenerationError)
    assert exc_info.value.wait_seconds == pytest.approx(61.0)
    assert fake_clock.sleeps == []


def test_wait_within_cap_still_sleeps(fake_clock):
    limiter = RateLimiter(
        max_calls=1,
        window_seconds=10,
        safety_margin_seconds=0,
        max_wait_seconds=30,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )
    limiter.execute(lambda: None)
    limiter.execute(lambda: None)
    assert fake_clock.sleeps == [pytest.approx(10.0)]


@pytest.mark.parametrize("kwargs", [{"max_calls": 0}, {"window_seconds": 0}])
def test_invalid_configuration_rejected(kwargs):
    with pytest.raises(ValueError):
        RateLimiter(**kwargs)


def test_concurrent_callers_cannot_exceed_limit():
    """With a zero wait cap, only max_calls threads may record a call."""
    limiter = RateLimiter(max_calls=5, window_seconds=60, max_wait_seconds=0)
    successes: list[int] = []
    timeouts: list[int] = []
    lock = threading.Lock()
    barrier = threading.Barrier(20)

    def worker(n: int) -> None:
        barrier.wait()
        try:
            limiter.wait_for_slot()
        except RateLimitTimeout:
            with lock:
                timeouts.append(n)
        else:
            with lock:
                successes.append(n)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(successes) == 5
    assert len(timeouts) == 15
    assert limiter.get_usage_stats().current == 5
