"""Error types shared by every stage that calls the generation service."""

from __future__ import annotations

from updateq.infrastructure.env import ConfigurationError


class GenerationError(RuntimeError):
    """A transient model failure: API error, exhausted retries or empty text.

    Stages catch this and run their own fallback; it never escapes the agent.
    """


class GeminiInitializationError(ConfigurationError):
    """Raised when no Gemini model can be initialized."""


__all__ = ["ConfigurationError", "GeminiInitializationError", "GenerationError"]
