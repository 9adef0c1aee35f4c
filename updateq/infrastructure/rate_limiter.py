"""Sliding-window governor for calls to the generation API.

One RateLimiter is constructed per process and passed to every stage that calls
the model. Timestamps of recent calls are kept in a list and pruned lazily on
each check, the same way the API's request middleware tracks per-IP buckets.

Concurrency:
    FastAPI runs the plain ``def`` endpoints in a threadpool, so several request
    threads can share one limiter. The prune, count and append happen under one
    lock; sleeping happens outside it and the check is repeated after waking.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from updateq.config import (
    RATE_LIMIT_MAX_CALLS,
    RATE_LIMIT_MAX_WAIT_SECONDS,
    RATE_LIMIT_SAFETY_MARGIN_SECONDS,
    RATE_LIMIT_WINDOW_SECONDS,
)
from updateq.llm.errors import GenerationError
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter, log_event

logger = get_logger(__name__)

T = TypeVar("T")


class RateLimitTimeout(GenerationError):
    """The computed wait for a free slot exceeded max_wait_seconds."""

    def __init__(self, wait_seconds: float, max_wait_seconds: float):
        super().__init__(
            f"rate limit wait of {wait_seconds:.1f}s exceeds cap of {max_wait_seconds:.1f}s"
        )
        self.wait_seconds = wait_seconds
        self.max_wait_seconds = max_wait_seconds


@dataclass(frozen=True)
class UsageStats:
    current: int
    max: int
    remaining: int


class RateLimiter:
    """
    Fixed-size trailing window: at most max_calls recorded calls per window.

    Exhaustion is resolved by sleeping until the oldest call leaves the window,
    never by rejecting, unless max_wait_seconds caps the wait.
    """

    def __init__(
        self,
        max_calls: int = RATE_LIMIT_MAX_CALLS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        safety_margin_seconds: float = RATE_LIMIT_SAFETY_MARGIN_SECONDS,
        max_wait_seconds: float | None = RATE_LIMIT_MAX_WAIT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_calls <= 0:
            raise ValueError("max_calls must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.safety_margin_seconds = safety_margin_seconds
        self.max_wait_seconds = max_wait_seconds
        self._clock = clock
        self._sleep = sleep
        self._calls: list[float] = []
        self._lock = threading.Lock()

    def _prune(self, now: float) -> None:
        """Drop timestamps older than the window. Caller holds the lock."""
        self._calls = [ts for ts in self._calls if now - ts < self.window_seconds]

    def can_proceed(self) -> bool:
        """Non-blocking check for a free slot. Records nothing."""
        with self._lock:
            self._prune(self._clock())
            return len(self._calls) < self.max_calls

    def _try_acquire(self) -> float:
        """
        Record a call if a slot is free.

        Returns:
            0.0 when the call was recorded, otherwise the seconds to wait
            before checking again.
        """
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._calls) < self.max_calls:
                self._calls.append(now)
                return 0.0
            oldest = self._calls[0]
            return max(
                self.window_seconds - (now - oldest) + self.safety_margin_seconds,
                0.0,
            )

    def wait_for_slot(self) -> None:
        """
        Block until a slot frees, then record a new call.

        Raises:
            RateLimitTimeout: If max_wait_seconds is set and a single computed
                wait would exceed it
        """
        while True:
            wait_seconds = self._try_acquire()
            if wait_seconds == 0.0:
                return

            if self.max_wait_seconds is not None and wait_seconds > self.max_wait_seconds:
                counter("rate_limiter.timeouts")
                log_event(
                    "rate_limiter.timeout",
                    wait_seconds=round(wait_seconds, 2),
                    max_wait_seconds=self.max_wait_seconds,
                )
                raise RateLimitTimeout(wait_seconds, self.max_wait_seconds)

            counter("rate_limiter.waits")
            logger.info(
                "Rate limit reached (%d calls / %.0fs), waiting %.1fs",
                self.max_calls,
                self.window_seconds,
                wait_seconds,
            )
            self._sleep(wait_seconds)

    def execute(self, operation: Callable[[], T]) -> T:
        """
        Acquire a slot, then run operation.

        The slot is recorded before the operation runs, so failed calls still
        count against the window.
        """
        self.wait_for_slot()
        return operation()

    def get_usage_stats(self) -> UsageStats:
        with self._lock:
            self._prune(self._clock())
            current = len(self._calls)
        return UsageStats(
            current=current,
            max=self.max_calls,
            remaining=max(0, self.max_calls - current),
        )

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()
