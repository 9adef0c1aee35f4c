"""Health check endpoint.

Reports credential readiness for Vertex AI / Gemini and the current rate
limiter window. Never calls the model.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends

from updateq.api.dependencies import get_rate_limiter
from updateq.config import APP_VERSION
from updateq.infrastructure.rate_limiter import RateLimiter

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(rate_limiter: RateLimiter = Depends(get_rate_limiter)) -> dict[str, Any]:
    has_api_key = bool(os.getenv("GOOGLE_API_KEY"))
    has_project = bool(os.getenv("GOOGLE_CLOUD_PROJECT"))
    usage = rate_limiter.get_usage_stats()

    return {
        "status": "healthy",
        "service": "updateq API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "llm": {
            "ready": has_api_key or has_project,
            "google_api_key": has_api_key,
            "google_cloud_project": has_project,
        },
        "rate_limit": {
            "current": usage.current,
            "max": usage.max,
            "remaining": usage.remaining,
        },
    }
