"""Process-wide collaborators for the API.

One RateLimiter and one event buffer are shared by every request so the
generation quota and GET /api/logs see the whole process. Tests replace
get_agent through app.dependency_overrides.
"""

from __future__ import annotations

from functools import lru_cache

from updateq.agent.orchestrator import WeeklyUpdateAgent
from updateq.config import EVENT_BUFFER_SIZE
from updateq.infrastructure.rate_limiter import RateLimiter
from updateq.llm.client import GeminiClient
from updateq.observability.events import BufferedEventSink, FanoutEventSink, LoggingEventSink


@lru_cache(maxsize=1)
def get_event_buffer() -> BufferedEventSink:
    return BufferedEventSink(max_events=EVENT_BUFFER_SIZE)


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    return RateLimiter()


@lru_cache(maxsize=1)
def get_agent() -> WeeklyUpdateAgent:
    """
    Build the shared agent on first use.

    Raises:
        ConfigurationError: If no Gemini credentials are configured
    """
    sink = FanoutEventSink([LoggingEventSink(), get_event_buffer()])
    return WeeklyUpdateAgent(GeminiClient(), rate_limiter=get_rate_limiter(), sink=sink)
