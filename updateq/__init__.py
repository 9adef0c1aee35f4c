"""updateq - Turn developer activity into a categorized weekly update email"""

from __future__ import annotations

__version__ = "0.1.0"


# Lazy imports so `import updateq` does not pull in the Gemini SDK
def __getattr__(name: str):
    """
    Lazy imports to avoid loading heavy dependencies when only importing lightweight modules.
    """
    if name == "WeeklyUpdateAgent":
        from updateq.agent.orchestrator import WeeklyUpdateAgent
        return WeeklyUpdateAgent

    if name == "GeminiClient":
        from updateq.llm.client import GeminiClient
        return GeminiClient

    if name == "RateLimiter":
        from updateq.infrastructure.rate_limiter import RateLimiter
        return RateLimiter

    if name in ("ActivityInput", "AnalysisMode", "WeeklySummary"):
        from updateq import contracts
        return getattr(contracts, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "ActivityInput",
    "AnalysisMode",
    "GeminiClient",
    "RateLimiter",
    "WeeklySummary",
    "WeeklyUpdateAgent",
]
