"""Retrieval-augmented generation client.

Security: Reads API key from settings only, never hardcoded.
"""

import logging
import time
from typing import Protocol

import openai
from openai import AsyncOpenAI

from docgate.app.errors import RemoteOperationFailed, TransportError
from docgate.app.utils.logging import StructuredRemoteLogger
from docgate.app.utils.metrics import PrometheusRemoteMetrics

logger = logging.getLogger(__name__)


class InferenceClient(Protocol):
    """Protocol for inference implementations."""

    async def generate(self, *, store_id: str, prompt: str) -> str:
        """Answer ``prompt`` using retrieval over the store ``store_id``.

        Args:
            store_id: Remote store to retrieve from
            prompt: Full prompt (instructions plus question)

        Returns:
            Generated text, unmodified
        """
        ...


class OpenAIFileSearchClient:
    """OpenAI Responses API with the file_search tool."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4o-mini",
        metrics: PrometheusRemoteMetrics | None = None,
        remote_logger: StructuredRemoteLogger | None = None,
    ):
        """Initialize client.

        Args:
            client: Async OpenAI client (shared with the store backend)
            model: Model name to use (default: gpt-4o-mini for cost efficiency)
        """
        self.client = client
        self.model = model
        self._metrics = metrics or PrometheusRemoteMetrics()
        self._logger = remote_logger or StructuredRemoteLogger()

    async def generate(self, *, store_id: str, prompt: str) -> str:
        """Generate an answer grounded in the store's documents."""
        start = time.monotonic()
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=prompt,
                tools=[{"type": "file_search", "vector_store_ids": [store_id]}],
            )
        except (openai.APIConnectionError, openai.APITimeoutError) as e:
            self._record_failure(start, "transport", str(e))
            raise TransportError(f"Could not reach inference service: {e}") from e
        except openai.APIStatusError as e:
            self._record_failure(start, f"status_{e.status_code}", str(e))
            raise RemoteOperationFailed(f"Inference failed: {e.message}") from e

        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency("generate", "success", elapsed_ms)
        self._logger.log_call("generate", "success", elapsed_ms)
        return response.output_text

    def _record_failure(self, start: float, reason: str, detail: str) -> None:
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency("generate", "error", elapsed_ms)
        self._metrics.inc_error("generate", reason)
        self._logger.log_call("generate", "error", elapsed_ms, error_reason=detail)
