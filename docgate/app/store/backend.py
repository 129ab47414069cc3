"""Remote store backend on OpenAI vector stores.

Mapping onto the remote service:
- a store is a vector store, matched by its ``name``
- a document is a vector-store file; its display name and word count live in the
  file's ``attributes``
- an upload creates the file and attaches it; the attachment stays
  ``in_progress`` until ingestion finishes, which makes it the long-running
  operation that callers poll
"""

import logging
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Protocol, TypeVar

import openai
from openai import AsyncOpenAI

from docgate.app.errors import GatewayError, RemoteOperationFailed, TransportError
from docgate.app.models.documents import (
    DocumentRecord,
    DocumentStatus,
    LongRunningOperation,
    RemotePage,
    RemoteStore,
)
from docgate.app.utils.logging import StructuredRemoteLogger
from docgate.app.utils.metrics import PrometheusRemoteMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISPLAY_NAME_ATTRIBUTE = "display_name"
WORD_COUNT_ATTRIBUTE = "word_count"

_STATUS_MAP = {
    "in_progress": DocumentStatus.processing,
    "completed": DocumentStatus.ready,
    "failed": DocumentStatus.failed,
    "cancelled": DocumentStatus.failed,
}


class StoreBackend(Protocol):
    """Protocol for remote store implementations."""

    async def list_stores(self, cursor: str | None = None) -> RemotePage[RemoteStore]:
        """Fetch one page of stores, continuing from ``cursor`` when given."""
        ...

    async def create_store(self, display_name: str) -> RemoteStore:
        """Create a new, empty store."""
        ...

    async def delete_store(self, store_id: str) -> None:
        """Delete a store and everything in it."""
        ...

    async def list_documents(
        self, store_id: str, cursor: str | None = None
    ) -> RemotePage[DocumentRecord]:
        """Fetch one page of documents in a store."""
        ...

    async def start_upload(
        self,
        store_id: str,
        content: bytes,
        display_name: str,
        word_count: int | None = None,
    ) -> LongRunningOperation:
        """Submit content for ingestion and return the pending operation."""
        ...

    async def get_operation(self, operation: LongRunningOperation) -> LongRunningOperation:
        """Fetch the latest state of an operation."""
        ...

    async def delete_document(self, store_id: str, remote_id: str) -> None:
        """Force-delete a document and its underlying content."""
        ...


def map_status(remote_status: str | None) -> DocumentStatus:
    """Translate a remote ingestion status to ``DocumentStatus``."""
    if remote_status is None:
        return DocumentStatus.unknown
    return _STATUS_MAP.get(remote_status, DocumentStatus.unknown)


def _next_cursor(page: Any) -> str | None:
    data = list(page.data or [])
    if getattr(page, "has_more", False) and data:
        return str(data[-1].id)
    return None


def _operation_name(store_id: str, file_id: str) -> str:
    return f"{store_id}/{file_id}"


def _split_operation_name(name: str) -> tuple[str, str]:
    store_id, _, file_id = name.partition("/")
    if not store_id or not file_id:
        raise RemoteOperationFailed(f"Invalid operation name: {name}")
    return store_id, file_id


class OpenAIStoreBackend:
    """OpenAI-backed remote store."""

    def __init__(
        self,
        client: AsyncOpenAI,
        page_size: int = 20,
        metrics: PrometheusRemoteMetrics | None = None,
        remote_logger: StructuredRemoteLogger | None = None,
    ) -> None:
        """Initialize backend.

        Args:
            client: Async OpenAI client (API key already configured)
            page_size: Items requested per listing page
            metrics: Remote call metrics (default: Prometheus)
            remote_logger: Structured call logger
        """
        self.client = client
        self.page_size = page_size
        self._metrics = metrics or PrometheusRemoteMetrics()
        self._logger = remote_logger or StructuredRemoteLogger()

    @classmethod
    def from_api_key(cls, api_key: str, page_size: int = 20) -> "OpenAIStoreBackend":
        return cls(AsyncOpenAI(api_key=api_key), page_size=page_size)

    async def _call(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run one SDK call, translating SDK errors and recording telemetry."""
        start = time.monotonic()
        try:
            result = await fn()
        except (openai.APIConnectionError, openai.APITimeoutError) as e:
            self._record_failure(operation, start, "transport", str(e))
            raise TransportError(f"Could not reach remote service during {operation}: {e}") from e
        except openai.APIStatusError as e:
            self._record_failure(operation, start, f"status_{e.status_code}", str(e))
            raise RemoteOperationFailed(f"Remote service rejected {operation}: {e.message}") from e

        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(operation, "success", elapsed_ms)
        self._logger.log_call(operation, "success", elapsed_ms)
        return result

    def _record_failure(self, operation: str, start: float, reason: str, detail: str) -> None:
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(operation, "error", elapsed_ms)
        self._metrics.inc_error(operation, reason)
        self._logger.log_call(operation, "error", elapsed_ms, error_reason=detail)

    async def list_stores(self, cursor: str | None = None) -> RemotePage[RemoteStore]:
        kwargs: dict[str, Any] = {"limit": self.page_size}
        if cursor:
            kwargs["after"] = cursor
        page = await self._call("list_stores", lambda: self.client.vector_stores.list(**kwargs))
        stores = [RemoteStore(id=vs.id, display_name=vs.name or "") for vs in page.data]
        return RemotePage(items=stores, next_cursor=_next_cursor(page))

    async def create_store(self, display_name: str) -> RemoteStore:
        vs = await self._call(
            "create_store", lambda: self.client.vector_stores.create(name=display_name)
        )
        return RemoteStore(id=vs.id, display_name=vs.name or display_name)

    async def delete_store(self, store_id: str) -> None:
        await self._call("delete_store", lambda: self.client.vector_stores.delete(store_id))

    async def list_documents(
        self, store_id: str, cursor: str | None = None
    ) -> RemotePage[DocumentRecord]:
        kwargs: dict[str, Any] = {"vector_store_id": store_id, "limit": self.page_size}
        if cursor:
            kwargs["after"] = cursor
        page = await self._call(
            "list_documents", lambda: self.client.vector_stores.files.list(**kwargs)
        )
        return RemotePage(
            items=[self._to_record(f) for f in page.data], next_cursor=_next_cursor(page)
        )

    async def start_upload(
        self,
        store_id: str,
        content: bytes,
        display_name: str,
        word_count: int | None = None,
    ) -> LongRunningOperation:
        uploaded = await self._call(
            "upload_file",
            lambda: self.client.files.create(file=(display_name, content), purpose="assistants"),
        )

        attributes: dict[str, str | float | bool] = {DISPLAY_NAME_ATTRIBUTE: display_name}
        if word_count is not None:
            attributes[WORD_COUNT_ATTRIBUTE] = word_count

        vs_file = await self._call(
            "attach_file",
            lambda: self.client.vector_stores.files.create(
                vector_store_id=store_id, file_id=uploaded.id, attributes=attributes
            ),
        )
        return self._to_operation(store_id, vs_file)

    async def get_operation(self, operation: LongRunningOperation) -> LongRunningOperation:
        store_id, file_id = _split_operation_name(operation.name)
        vs_file = await self._call(
            "get_operation",
            lambda: self.client.vector_stores.files.retrieve(file_id, vector_store_id=store_id),
        )
        return self._to_operation(store_id, vs_file)

    async def delete_document(self, store_id: str, remote_id: str) -> None:
        await self._call(
            "detach_file",
            lambda: self.client.vector_stores.files.delete(remote_id, vector_store_id=store_id),
        )
        # Detaching leaves the uploaded file behind; remove it too.
        try:
            await self._call("delete_file", lambda: self.client.files.delete(remote_id))
        except GatewayError as e:
            logger.warning(f"Detached {remote_id} but could not delete the file: {e.message}")

    def _to_record(self, vs_file: Any) -> DocumentRecord:
        attributes = vs_file.attributes or {}
        display_name = attributes.get(DISPLAY_NAME_ATTRIBUTE) or vs_file.id
        word_count = attributes.get(WORD_COUNT_ATTRIBUTE)
        return DocumentRecord(
            remote_id=vs_file.id,
            display_name=str(display_name),
            word_count=int(word_count) if isinstance(word_count, (int, float)) else 0,
            status=map_status(getattr(vs_file, "status", None)),
        )

    def _to_operation(self, store_id: str, vs_file: Any) -> LongRunningOperation:
        record = self._to_record(vs_file)
        done = record.status != DocumentStatus.processing
        error = None
        if record.status == DocumentStatus.failed:
            last_error = getattr(vs_file, "last_error", None)
            error = getattr(last_error, "message", None) or f"ingestion {vs_file.status}"
        return LongRunningOperation(
            name=_operation_name(store_id, vs_file.id),
            remote_id=vs_file.id,
            done=done,
            result=record if done and error is None else None,
            error=error,
        )
