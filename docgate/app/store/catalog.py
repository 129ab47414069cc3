"""Document operations against the bound remote store.

Nothing is cached locally: every listing and lookup is a fresh round trip.
Display names are the client-facing key. Uploads refuse a name that is already
present; when duplicates exist anyway (created out of band or by racing
uploads), lookups and deletes act on the first match in catalog order.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

from docgate.app.errors import (
    DuplicateDocument,
    GatewayError,
    RemoteOperationFailed,
    RemoteTimeout,
    ValidationError,
)
from docgate.app.models.documents import DocumentRecord, LongRunningOperation, RemotePage
from docgate.app.store.backend import StoreBackend
from docgate.app.store.handle import RemoteStoreHandle
from docgate.app.store.pagination import find_first, iterate_items
from docgate.app.store.poller import OperationPoller

logger = logging.getLogger(__name__)

DocPage = RemotePage[DocumentRecord]
DocumentTraversal = tuple[
    Callable[[], Awaitable[DocPage]],
    Callable[[DocPage], bool],
    Callable[[DocPage], Awaitable[DocPage]],
    Callable[[DocPage], list[DocumentRecord]],
]


def count_words(content: bytes) -> int | None:
    """Whitespace-delimited word count for UTF-8 text, None for binary content."""
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        return None
    return len(text.split())


class DocumentCatalog:
    """Upload, list and delete documents by display name."""

    def __init__(
        self,
        handle: RemoteStoreHandle,
        backend: StoreBackend,
        poller: OperationPoller,
        max_pages: int | None = None,
    ) -> None:
        self._handle = handle
        self._backend = backend
        self._poller = poller
        self._max_pages = max_pages

    def _documents(self, store_id: str) -> DocumentTraversal:
        """Traversal callbacks over one store's documents."""

        async def fetch_first() -> RemotePage[DocumentRecord]:
            return await self._backend.list_documents(store_id)

        async def fetch_next(page: RemotePage[DocumentRecord]) -> RemotePage[DocumentRecord]:
            return await self._backend.list_documents(store_id, page.next_cursor)

        def has_next(page: RemotePage[DocumentRecord]) -> bool:
            return page.has_next

        def items_of(page: RemotePage[DocumentRecord]) -> list[DocumentRecord]:
            return page.items

        return fetch_first, has_next, fetch_next, items_of

    def iter_documents(self) -> AsyncIterator[DocumentRecord]:
        """Lazily iterate every document in the store."""
        store = self._handle.require()
        return iterate_items(*self._documents(store.id), max_pages=self._max_pages)

    async def list_documents(self) -> list[DocumentRecord]:
        """Every document in the store, in remote order."""
        return [doc async for doc in self.iter_documents()]

    async def find_by_display_name(self, display_name: str) -> DocumentRecord | None:
        """First document whose display name matches exactly."""
        store = self._handle.require()
        return await find_first(
            *self._documents(store.id),
            lambda doc: doc.display_name == display_name,
            max_pages=self._max_pages,
        )

    async def upload(self, content: bytes, display_name: str) -> DocumentRecord:
        """Ingest ``content`` under ``display_name`` and wait for completion.

        Raises:
            ValidationError: Empty display name
            DuplicateDocument: Name already present in the store
            RemoteOperationFailed: Ingestion reported an error
            RemoteTimeout: Ingestion did not finish within the poll bound

        A failed or timed-out ingestion is removed from the store before the
        error propagates, so the name can be uploaded again.
        """
        if not display_name or not display_name.strip():
            raise ValidationError("Document name is required")

        store = self._handle.require()
        if await self.find_by_display_name(display_name) is not None:
            raise DuplicateDocument(f"A document named {display_name!r} already exists")

        logger.info(f"Uploading {display_name!r} ({len(content)} bytes)")
        word_count = await asyncio.to_thread(count_words, content)
        operation = await self._backend.start_upload(
            store.id, content, display_name, word_count=word_count
        )
        try:
            record = await self._poller.await_completion(operation)
        except (RemoteOperationFailed, RemoteTimeout):
            await self._discard(store.id, operation)
            raise
        logger.info(f"Uploaded {display_name!r} as {record.remote_id}")
        return record

    async def upload_file(self, path: str | Path, display_name: str | None = None) -> DocumentRecord:
        """Upload a staged file; the display name defaults to the file name."""
        path = Path(path)
        content = await asyncio.to_thread(path.read_bytes)
        return await self.upload(content, display_name or path.name)

    async def _discard(self, store_id: str, operation: LongRunningOperation) -> None:
        """Remove the remains of an upload that did not complete."""
        if operation.remote_id is None:
            return
        try:
            await self._backend.delete_document(store_id, operation.remote_id)
        except GatewayError as e:
            logger.warning(f"Could not remove incomplete upload {operation.remote_id}: {e.message}")
        else:
            logger.info(f"Removed incomplete upload {operation.remote_id}")

    async def delete_by_display_name(self, display_name: str) -> bool:
        """Force-delete the first document named ``display_name``.

        Returns:
            True if a document was deleted, False if none had that name
        """
        store = self._handle.require()
        logger.info(f"Looking up document {display_name!r}")
        doc = await self.find_by_display_name(display_name)
        if doc is None:
            logger.info(f"Document not found: {display_name!r}")
            return False

        await self._backend.delete_document(store.id, doc.remote_id)
        logger.info(f"Deleted document {display_name!r} ({doc.remote_id})")
        return True
