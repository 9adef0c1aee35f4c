"""Centralized configuration for updateq.

Re-exports everything from updateq.infrastructure.settings, then adds typed
constants for rate limiting, the LLM client, content extraction and the API.
Environment variable overrides use safe defaults so the app starts without
extra env configuration.
"""

from __future__ import annotations

import os

from updateq.infrastructure.settings import *  # noqa: F401, F403  re-export


def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _env_optional_float(key: str) -> float | None:
    raw = os.getenv(key)
    return float(raw) if raw else None


# --- App ---
APP_VERSION: str = "0.1.0"

# --- Rate Limiting (generation API) ---
RATE_LIMIT_MAX_CALLS: int = int(os.getenv("UPDATEQ_RATE_LIMIT_MAX_CALLS", "10"))
RATE_LIMIT_WINDOW_SECONDS: float = _env_float("UPDATEQ_RATE_LIMIT_WINDOW_SECONDS", 60.0)
RATE_LIMIT_SAFETY_MARGIN_SECONDS: float = _env_float("UPDATEQ_RATE_LIMIT_SAFETY_MARGIN", 1.0)
# Unset means wait as long as the window requires
RATE_LIMIT_MAX_WAIT_SECONDS: float | None = _env_optional_float("UPDATEQ_RATE_LIMIT_MAX_WAIT")

# --- LLM ---
LLM_MAX_RETRIES: int = int(os.getenv("UPDATEQ_LLM_MAX_RETRIES", "3"))
LLM_RETRY_MIN_WAIT_SECONDS: float = _env_float("UPDATEQ_LLM_RETRY_MIN_WAIT", 1.0)
LLM_RETRY_MAX_WAIT_SECONDS: float = _env_float("UPDATEQ_LLM_RETRY_MAX_WAIT", 10.0)
LLM_TIMEOUT_SECONDS: int = int(os.getenv("UPDATEQ_LLM_TIMEOUT", "30"))

# --- Content Extraction ---
EXTRACT_MAX_ACHIEVEMENTS: int = 5
EXTRACT_MAX_INSIGHTS: int = 3
EXTRACT_MAX_LEARNINGS: int = 3
EXTRACT_MIN_SENTENCE_CHARS: int = 10
DEDUP_MIN_ITEM_CHARS: int = 10
DEDUP_MAX_ITEMS: int = 10

# --- Summaries ---
HIGHLIGHTS_MAX: int = 3
NOTES_ACTIVITY_THRESHOLD: int = 10
OPTIMIZED_MAX_ACHIEVEMENTS: int = 12

# --- Analysis ---
DEFAULT_ANALYSIS_MODE: str = os.getenv("UPDATEQ_ANALYSIS_MODE", "optimized")

# --- Events ---
EVENT_BUFFER_SIZE: int = int(os.getenv("UPDATEQ_EVENT_BUFFER_SIZE", "50"))
