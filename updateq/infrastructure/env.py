"""
Centralized environment variable loader for updateq.

Anything that reads credentials must call ensure_env_loaded() first so a
project-level .env file is honored.

Side Effects:
    - Loads .env file from project root (once per process)

Usage:
    from updateq.infrastructure.env import check_generation_credentials, get_optional_env

    backend = check_generation_credentials()
    model_name = get_optional_env("GEMINI_MODEL", "gemini-2.0-flash-001")
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

_ENV_LOADED = False


class ConfigurationError(RuntimeError):
    """Raised when the process is missing configuration it cannot run without."""


def ensure_env_loaded(env_path: Path | None = None) -> None:
    """
    Ensure .env file is loaded exactly once.

    Args:
        env_path: Optional path to .env file. If None, walks up from this file
            looking for one, then falls back to the current directory.

    Side Effects:
        - Loads environment variables from .env file (existing values win)
        - Sets module-level flag to prevent double-loading
    """
    global _ENV_LOADED
    if _ENV_LOADED:
        return

    if env_path is None:
        current = Path(__file__).parent
        while current != current.parent:
            env_candidate = current / ".env"
            if env_candidate.exists():
                env_path = env_candidate
                break
            current = current.parent

    if env_path and env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()
    _ENV_LOADED = True


def get_optional_env(key: str, default: str = "") -> str:
    """Get optional environment variable with default value."""
    ensure_env_loaded()
    return os.getenv(key, default)


def check_generation_credentials() -> str:
    """
    Confirm that at least one Gemini credential source is configured.

    Vertex AI needs GOOGLE_CLOUD_PROJECT; the public API needs GOOGLE_API_KEY.
    The environment is read fresh on every call.

    Returns:
        "vertex" or "api_key", whichever backend the credentials point at

    Raises:
        ConfigurationError: If neither variable is set
    """
    ensure_env_loaded()
    if os.getenv("GOOGLE_CLOUD_PROJECT"):
        return "vertex"
    if os.getenv("GOOGLE_API_KEY"):
        return "api_key"
    raise ConfigurationError(
        "No Gemini credentials configured: set GOOGLE_CLOUD_PROJECT (Vertex AI) "
        "or GOOGLE_API_KEY (Gemini API)"
    )
