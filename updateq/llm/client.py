"""Generation client: the single ``generate(prompt) -> str`` seam to the model.

GeminiClient is the production implementation. Tests inject any object with a
``generate`` method instead.

Retries up to LLM_MAX_RETRIES times with exponential backoff on the transient
Vertex AI exceptions (DeadlineExceeded, ServiceUnavailable, ResourceExhausted,
InternalServerError). Anything still failing after retries is raised as
GenerationError so each pipeline stage can run its own fallback.
"""

from __future__ import annotations

from typing import Any, Protocol

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from updateq.config import (
    LLM_MAX_RETRIES,
    LLM_RETRY_MAX_WAIT_SECONDS,
    LLM_RETRY_MIN_WAIT_SECONDS,
    LLM_TIMEOUT_SECONDS,
)
from updateq.infrastructure.env import check_generation_credentials
from updateq.infrastructure.settings import GEMINI_MAX_TOKENS, GEMINI_TEMPERATURE
from updateq.llm.errors import GenerationError
from updateq.llm.gemini import get_gemini_model
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter

logger = get_logger(__name__)


class GenerationClient(Protocol):
    def generate(self, prompt: str) -> str: ...


@retry(
    stop=stop_after_attempt(LLM_MAX_RETRIES),
    wait=wait_exponential(
        multiplier=1, min=LLM_RETRY_MIN_WAIT_SECONDS, max=LLM_RETRY_MAX_WAIT_SECONDS
    ),
    retry=retry_if_exception_type((TimeoutError, ConnectionError, OSError)),
    reraise=True,
)
def _call_model(model: Any, prompt: str, generation_config: dict[str, Any]) -> str:
    """Call the model once, converting Vertex AI exceptions to retryable builtins.

    Raises:
        TimeoutError: On deadline exceeded (retryable).
        ConnectionError: On service unavailable or internal error (retryable).
        OSError: On resource exhausted / rate limited (retryable).
        Exception: On other errors (not retried, caller handles).
    """
    from google.api_core.exceptions import (
        DeadlineExceeded,
        InternalServerError,
        ResourceExhausted,
        ServiceUnavailable,
    )

    try:
        response = model.generate_content(prompt, generation_config=generation_config)
        return response.text
    except DeadlineExceeded as e:
        counter("llm.timeout")
        logger.warning("LLM call timed out after %ds", LLM_TIMEOUT_SECONDS)
        raise TimeoutError(f"LLM call timed out: {e}") from e
    except ServiceUnavailable as e:
        counter("llm.service_unavailable")
        logger.warning("LLM service unavailable, will retry: %s", e)
        raise ConnectionError(f"LLM service unavailable: {e}") from e
    except ResourceExhausted as e:
        counter("llm.rate_limited")
        logger.warning("LLM rate limited (429), will retry: %s", e)
        raise OSError(f"LLM rate limited: {e}") from e
    except InternalServerError as e:
        counter("llm.internal_error")
        logger.warning("LLM internal error (500), will retry: %s", e)
        raise ConnectionError(f"LLM internal error: {e}") from e


class GeminiClient:
    """
    Gemini-backed GenerationClient.

    Construction checks credentials first, so a misconfigured process fails
    immediately with ConfigurationError instead of on the first request.
    """

    def __init__(
        self,
        model: Any | None = None,
        temperature: float = GEMINI_TEMPERATURE,
        max_output_tokens: int = GEMINI_MAX_TOKENS,
    ):
        if model is None:
            backend = check_generation_credentials()
            logger.info("Gemini credentials found for backend=%s", backend)
            model = get_gemini_model()
        self._model = model
        self.generation_config: dict[str, Any] = {
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        }

    def generate(self, prompt: str) -> str:
        try:
            text = _call_model(self._model, prompt, self.generation_config)
        except Exception as e:
            counter("llm.errors")
            logger.error("LLM call failed: %s", e)
            raise GenerationError(f"Gemini generation failed: {e}") from e

        if not text or not text.strip():
            counter("llm.empty_response")
            raise GenerationError("Gemini returned an empty response")
        counter("llm.calls_ok")
        return text
