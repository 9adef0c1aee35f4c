"""
Gemini Model Manager - shared model instance for the generation client.

Supports two backends:
  1. Vertex AI SDK (production) - uses GOOGLE_CLOUD_PROJECT + service account
  2. google-generativeai (local dev) - uses GOOGLE_API_KEY
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from updateq.infrastructure.env import get_optional_env
from updateq.infrastructure.settings import GEMINI_LOCATION, GEMINI_MODEL
from updateq.llm.errors import GeminiInitializationError
from updateq.observability.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_gemini_model() -> Any:
    """
    Get or create the shared Gemini model instance.

    Tries the Vertex AI SDK first. Falls back to google-generativeai with
    GOOGLE_API_KEY for local development.

    Returns:
        GenerativeModel from whichever SDK initialized

    Raises:
        GeminiInitializationError: If no SDK is installed or credentials are missing
    """
    # Read env vars fresh (settings.py may have been imported before dotenv ran)
    project = get_optional_env("GOOGLE_CLOUD_PROJECT")
    location = get_optional_env("GEMINI_LOCATION") or GEMINI_LOCATION
    model_name = get_optional_env("GEMINI_MODEL") or GEMINI_MODEL

    if project:
        try:
            import vertexai
            from vertexai.generative_models import GenerativeModel

            vertexai.init(project=project, location=location)
            model = GenerativeModel(model_name)
            logger.info(
                "Initialized Gemini model (Vertex AI): project=%s, location=%s, model=%s",
                project,
                location,
                model_name,
            )
            return model
        except ImportError:
            logger.info("Vertex AI SDK not installed, trying google-generativeai fallback")

    try:
        import google.generativeai as genai
    except ImportError as e:
        raise GeminiInitializationError(
            "No Gemini SDK available. Install google-cloud-aiplatform or google-generativeai."
        ) from e

    api_key = get_optional_env("GOOGLE_API_KEY")
    if not api_key:
        raise GeminiInitializationError(
            "Vertex AI unavailable and GOOGLE_API_KEY not set. "
            "Set GOOGLE_CLOUD_PROJECT or GOOGLE_API_KEY."
        )

    genai.configure(api_key=api_key)
    model = genai.GenerativeModel(model_name)
    logger.info("Initialized Gemini model (google-generativeai): model=%s", model_name)
    return model
