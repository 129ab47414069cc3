"""Waits for long-running remote operations to finish.

The wait is a sleep/re-fetch loop on the calling task: it holds no lock, so
other requests keep making progress while an upload is being ingested.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from docgate.app.errors import RemoteOperationFailed, RemoteTimeout
from docgate.app.models.documents import DocumentRecord, LongRunningOperation
from docgate.app.utils.metrics import PrometheusRemoteMetrics

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 1000


class OperationPoller:
    """Fixed-interval poller with a bounded number of status fetches."""

    def __init__(
        self,
        fetch: Callable[[LongRunningOperation], Awaitable[LongRunningOperation]],
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        max_attempts: int | None = 600,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
        metrics: PrometheusRemoteMetrics | None = None,
    ) -> None:
        """Initialize poller.

        Args:
            fetch: Re-fetches an operation's current state
            poll_interval_ms: Delay between fetches
            max_attempts: Maximum fetches before giving up (None = wait forever)
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
            metrics: Poll counter sink
        """
        self._fetch = fetch
        self.poll_interval_ms = poll_interval_ms
        self.max_attempts = max_attempts
        self._sleep = sleep_fn or asyncio.sleep
        self._metrics = metrics or PrometheusRemoteMetrics()

    async def await_completion(self, operation: LongRunningOperation) -> DocumentRecord:
        """Wait until ``operation`` is done and return its result.

        Raises:
            RemoteOperationFailed: The operation finished with an error or no result
            RemoteTimeout: Still running after ``max_attempts`` fetches
        """
        attempts = 0
        while not operation.done:
            if self.max_attempts is not None and attempts >= self.max_attempts:
                raise RemoteTimeout(
                    f"Operation {operation.name} still running after {attempts} status checks"
                )
            await self._sleep(self.poll_interval_ms / 1000)
            operation = await self._fetch(operation)
            attempts += 1
            self._metrics.inc_poll()

        if operation.error:
            raise RemoteOperationFailed(f"Upload failed: {operation.error}")
        if operation.result is None:
            raise RemoteOperationFailed(f"Operation {operation.name} finished without a result")

        logger.debug(f"Operation {operation.name} completed after {attempts} status checks")
        return operation.result
