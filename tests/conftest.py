"""
Pytest configuration for updateq tests

Provides fake generation clients, a manual clock for the rate limiter and
agent fixtures shared across all test files.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import pytest

from updateq.agent.orchestrator import WeeklyUpdateAgent
from updateq.infrastructure.rate_limiter import RateLimiter
from updateq.llm.gateway import ModelGateway
from updateq.observability.events import BufferedEventSink
from updateq.observability.telemetry import reset_telemetry


class FakeClock:
    """Monotonic clock advanced by tests (and by FakeClock.sleep)."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedClient:
    """
    GenerationClient double.

    Each generate() call consumes the next scripted reply; an Exception reply
    is raised instead of returned. When the script runs out, `default` is used.
    """

    def __init__(
        self,
        replies: Iterable[str | Exception] = (),
        default: str | Exception | Callable[[str], str] = "",
    ):
        self.replies = list(replies)
        self.default = default
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


class FailingClient(ScriptedClient):
    """Backend that fails every call."""

    def __init__(self, error: Exception | None = None):
        super().__init__(default=error or RuntimeError("backend unavailable"))


@pytest.fixture(autouse=True)
def _reset_telemetry():
    reset_telemetry()
    yield
    reset_telemetry()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_clock: FakeClock) -> RateLimiter:
    """Roomy limiter on a fake clock so tests never sleep for real."""
    return RateLimiter(
        max_calls=1000,
        window_seconds=60,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


@pytest.fixture
def scripted() -> type[ScriptedClient]:
    """The ScriptedClient class, for tests that build their own scripts."""
    return ScriptedClient


@pytest.fixture
def failing_client() -> FailingClient:
    return FailingClient()


@pytest.fixture
def gateway_factory(rate_limiter: RateLimiter) -> Callable[[ScriptedClient], ModelGateway]:
    def _make(client: ScriptedClient) -> ModelGateway:
        return ModelGateway(client, rate_limiter)

    return _make


@pytest.fixture
def event_sink() -> BufferedEventSink:
    return BufferedEventSink()


@pytest.fixture
def agent_factory(
    rate_limiter: RateLimiter, event_sink: BufferedEventSink
) -> Callable[..., WeeklyUpdateAgent]:
    def _make(client: ScriptedClient, **kwargs) -> WeeklyUpdateAgent:
        return WeeklyUpdateAgent(
            client,
            rate_limiter=rate_limiter,
            sink=event_sink,
            clock=lambda: 1_700_000_000.0,
            **kwargs,
        )

    return _make
