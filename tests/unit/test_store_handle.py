"""Unit tests for idempotent store acquisition."""

import asyncio
from typing import Any

import pytest

from docgate.app.errors import StoreNotInitialized
from docgate.app.models.documents import RemoteStore
from docgate.app.store.handle import RemoteStoreHandle, StoreAlreadyBound


def test_current_is_none_before_acquire(fake_backend: Any) -> None:
    handle = RemoteStoreHandle(fake_backend)

    assert handle.current() is None
    with pytest.raises(StoreNotInitialized):
        handle.require()


@pytest.mark.asyncio
async def test_acquire_binds_existing_store_on_later_page(fake_backend: Any) -> None:
    fake_backend.stores = [
        RemoteStore(id="s1", display_name="alpha"),
        RemoteStore(id="s2", display_name="beta"),
        RemoteStore(id="s3", display_name="target"),
    ]
    handle = RemoteStoreHandle(fake_backend)

    store = await handle.acquire("target")

    assert store.id == "s3"
    assert handle.current() == store
    assert fake_backend.calls == ["list_stores", "list_stores"]


@pytest.mark.asyncio
async def test_acquire_creates_store_when_missing(fake_backend: Any) -> None:
    fake_backend.stores = [RemoteStore(id="s1", display_name="alpha")]
    handle = RemoteStoreHandle(fake_backend)

    store = await handle.acquire("target")

    assert store.display_name == "target"
    assert fake_backend.calls == ["list_stores", "create_store"]
    assert len(fake_backend.stores) == 2


@pytest.mark.asyncio
async def test_second_acquire_reuses_bound_store(fake_backend: Any) -> None:
    handle = RemoteStoreHandle(fake_backend)

    first = await handle.acquire("target")
    second = await handle.acquire("target")

    assert first == second
    assert fake_backend.calls.count("create_store") == 1
    assert fake_backend.calls.count("list_stores") == 1


@pytest.mark.asyncio
async def test_concurrent_acquire_creates_one_store(fake_backend: Any) -> None:
    handle = RemoteStoreHandle(fake_backend)

    results = await asyncio.gather(*(handle.acquire("target") for _ in range(5)))

    assert len({store.id for store in results}) == 1
    assert fake_backend.calls.count("create_store") == 1


@pytest.mark.asyncio
async def test_acquire_other_name_while_bound_raises(fake_backend: Any) -> None:
    handle = RemoteStoreHandle(fake_backend)
    await handle.acquire("target")

    with pytest.raises(StoreAlreadyBound):
        await handle.acquire("elsewhere")


@pytest.mark.asyncio
async def test_delete_store_unbinds_handle(fake_backend: Any) -> None:
    handle = RemoteStoreHandle(fake_backend)
    await handle.acquire("target")

    await handle.delete_store()

    assert handle.current() is None
    assert fake_backend.stores == []
