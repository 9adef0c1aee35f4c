"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os
from pathlib import Path

# Project paths
UPDATEQ_ROOT = Path(__file__).parent.parent
PROMPTS_DIR = UPDATEQ_ROOT / "llm" / "prompts"

# Environment
ENV = os.getenv("UPDATEQ_ENV", "development")

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
LOG_LEVEL = os.getenv("UPDATEQ_LOG_LEVEL", "INFO")

# Gemini (credentials are read fresh by infrastructure.env)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-001")
GEMINI_LOCATION = os.getenv("GEMINI_LOCATION", "us-central1")
GEMINI_MAX_TOKENS = int(os.getenv("GEMINI_MAX_TOKENS", "1024"))
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "0.3"))


def is_development() -> bool:
    """Check if running in development"""
    return ENV == "development"
