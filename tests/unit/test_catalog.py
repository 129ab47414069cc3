"""Unit tests for the document catalog."""

from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from docgate.app.errors import (
    DuplicateDocument,
    RemoteOperationFailed,
    RemoteTimeout,
    StoreNotInitialized,
    ValidationError,
)
from docgate.app.models.documents import DocumentStatus
from docgate.app.store.catalog import DocumentCatalog, count_words
from docgate.app.store.handle import RemoteStoreHandle
from docgate.app.store.poller import OperationPoller


async def _no_sleep(delay: float) -> None:
    return None


@pytest_asyncio.fixture
async def catalog(fake_backend: Any) -> DocumentCatalog:
    handle = RemoteStoreHandle(fake_backend)
    await handle.acquire("docs")
    poller = OperationPoller(fake_backend.get_operation, sleep_fn=_no_sleep, max_attempts=5)
    return DocumentCatalog(handle, fake_backend, poller)


def store_id(fake_backend: Any) -> str:
    return str(fake_backend.stores[0].id)


def test_count_words() -> None:
    assert count_words(b"one two\nthree ") == 3
    assert count_words(b"") == 0
    assert count_words(b"\xff\xfe\x00binary") is None


@pytest.mark.asyncio
async def test_list_documents_spans_pages(catalog: DocumentCatalog, fake_backend: Any) -> None:
    for name in ["a.txt", "b.txt", "c.txt", "d.txt", "e.txt"]:
        fake_backend.add_document(store_id(fake_backend), name, word_count=7)

    documents = await catalog.list_documents()

    assert [d.display_name for d in documents] == ["a.txt", "b.txt", "c.txt", "d.txt", "e.txt"]
    assert fake_backend.calls.count("list_documents") == 3


@pytest.mark.asyncio
async def test_list_documents_keeps_defaults(catalog: DocumentCatalog, fake_backend: Any) -> None:
    fake_backend.add_document(store_id(fake_backend), "scan.pdf", status=DocumentStatus.unknown)

    [document] = await catalog.list_documents()

    assert document.word_count == 0
    assert document.status == DocumentStatus.unknown


@pytest.mark.asyncio
async def test_upload_waits_for_ingestion(catalog: DocumentCatalog, fake_backend: Any) -> None:
    fake_backend.polls_until_done = 3

    record = await catalog.upload(b"hello brave new world", "hello.txt")

    assert record.display_name == "hello.txt"
    assert record.word_count == 4
    assert record.status == DocumentStatus.ready
    assert fake_backend.calls.count("get_operation") == 3


@pytest.mark.asyncio
async def test_upload_rejects_duplicate_name(catalog: DocumentCatalog, fake_backend: Any) -> None:
    fake_backend.add_document(store_id(fake_backend), "hello.txt")

    with pytest.raises(DuplicateDocument):
        await catalog.upload(b"again", "hello.txt")

    assert "start_upload" not in fake_backend.calls


@pytest.mark.asyncio
async def test_upload_rejects_blank_name(catalog: DocumentCatalog) -> None:
    with pytest.raises(ValidationError):
        await catalog.upload(b"content", "  ")


@pytest.mark.asyncio
async def test_upload_surfaces_ingestion_error(catalog: DocumentCatalog, fake_backend: Any) -> None:
    fake_backend.fail_ingest_with = "unsupported file type"

    with pytest.raises(RemoteOperationFailed, match="unsupported file type"):
        await catalog.upload(b"\x00\x01", "blob.bin")


@pytest.mark.asyncio
async def test_failed_upload_is_removed_and_can_be_retried(
    catalog: DocumentCatalog, fake_backend: Any
) -> None:
    fake_backend.fail_ingest_with = "transient failure"

    with pytest.raises(RemoteOperationFailed):
        await catalog.upload(b"first try", "a.txt")

    assert await catalog.list_documents() == []

    fake_backend.fail_ingest_with = None
    record = await catalog.upload(b"second try", "a.txt")

    assert record.status == DocumentStatus.ready
    assert [d.display_name for d in await catalog.list_documents()] == ["a.txt"]


@pytest.mark.asyncio
async def test_timed_out_upload_is_removed(catalog: DocumentCatalog, fake_backend: Any) -> None:
    fake_backend.polls_until_done = 10

    with pytest.raises(RemoteTimeout):
        await catalog.upload(b"slow", "slow.txt")

    assert fake_backend.calls.count("get_operation") == 5
    assert "delete_document" in fake_backend.calls
    assert fake_backend.documents[store_id(fake_backend)] == []


@pytest.mark.asyncio
async def test_upload_file_names_document_after_file(
    catalog: DocumentCatalog, fake_backend: Any, tmp_path: Path
) -> None:
    path = tmp_path / "notes.txt"
    path.write_bytes(b"three little words")

    record = await catalog.upload_file(path)

    assert record.display_name == "notes.txt"
    assert record.word_count == 3


@pytest.mark.asyncio
async def test_delete_on_empty_catalog_returns_false(catalog: DocumentCatalog) -> None:
    assert await catalog.delete_by_display_name("ghost.txt") is False


@pytest.mark.asyncio
async def test_delete_without_match_returns_false(
    catalog: DocumentCatalog, fake_backend: Any
) -> None:
    fake_backend.add_document(store_id(fake_backend), "a.txt")

    assert await catalog.delete_by_display_name("ghost.txt") is False
    assert "delete_document" not in fake_backend.calls


@pytest.mark.asyncio
async def test_delete_single_match_succeeds_exactly_once(
    catalog: DocumentCatalog, fake_backend: Any
) -> None:
    fake_backend.add_document(store_id(fake_backend), "a.txt")

    assert await catalog.delete_by_display_name("a.txt") is True
    assert await catalog.delete_by_display_name("a.txt") is False
    assert fake_backend.documents[store_id(fake_backend)] == []


@pytest.mark.asyncio
async def test_delete_stops_at_first_page_with_match(
    catalog: DocumentCatalog, fake_backend: Any
) -> None:
    for name in ["a.txt", "b.txt", "c.txt", "d.txt", "e.txt"]:
        fake_backend.add_document(store_id(fake_backend), name)

    assert await catalog.delete_by_display_name("b.txt") is True
    assert fake_backend.calls.count("list_documents") == 1


@pytest.mark.asyncio
async def test_operations_require_acquired_store(fake_backend: Any) -> None:
    poller = OperationPoller(fake_backend.get_operation, sleep_fn=_no_sleep)
    catalog = DocumentCatalog(RemoteStoreHandle(fake_backend), fake_backend, poller)

    with pytest.raises(StoreNotInitialized):
        await catalog.list_documents()
    assert fake_backend.calls == []
