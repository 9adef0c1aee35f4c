"""Rate-limited access to the generation client.

Every model call in the pipeline goes through ModelGateway.generate, which
acquires a RateLimiter slot, calls the client and normalizes every failure
(including a blank response) to GenerationError.
"""

from __future__ import annotations

from updateq.infrastructure.rate_limiter import RateLimiter
from updateq.llm.client import GenerationClient
from updateq.llm.errors import GenerationError
from updateq.observability.logging import get_logger
from updateq.observability.telemetry import counter, time_block

logger = get_logger(__name__)


class ModelGateway:
    def __init__(self, client: GenerationClient, rate_limiter: RateLimiter):
        self.client = client
        self.rate_limiter = rate_limiter

    def generate(self, prompt: str, stage: str = "llm") -> str:
        """
        Run one rate-limited generation call.

        Args:
            prompt: Fully rendered prompt text
            stage: Telemetry prefix for the calling stage

        Returns:
            Non-empty response text, stripped

        Raises:
            GenerationError: On any client failure, rate-limit timeout or blank text
        """
        counter(f"{stage}.llm_calls")
        try:
            text = self.rate_limiter.execute(lambda: self._timed_call(prompt, stage))
        except GenerationError:
            counter(f"{stage}.llm_errors")
            raise
        except Exception as e:
            counter(f"{stage}.llm_errors")
            logger.warning("%s: generation client raised %s: %s", stage, type(e).__name__, e)
            raise GenerationError(f"{stage}: {e}") from e

        if not isinstance(text, str) or not text.strip():
            counter(f"{stage}.llm_empty")
            raise GenerationError(f"{stage}: empty response")
        return text.strip()

    def _timed_call(self, prompt: str, stage: str) -> str:
        # Runs after any rate-limit wait
        with time_block(f"{stage}.llm.latency"):
            return self.client.generate(prompt)
