"""Process-wide handle on the remote store."""

import asyncio
import logging

from docgate.app.errors import StoreNotInitialized
from docgate.app.models.documents import RemotePage, RemoteStore
from docgate.app.store.backend import StoreBackend
from docgate.app.store.pagination import find_first

logger = logging.getLogger(__name__)


class StoreAlreadyBound(RuntimeError):
    """The handle is bound to a different store."""

    pass


class RemoteStoreHandle:
    """Owns the single store reference for the process lifetime.

    ``acquire`` is a one-shot barrier: concurrent callers serialize on a lock,
    the first one finds or creates the store and the rest get the same
    reference back.
    """

    def __init__(self, backend: StoreBackend, max_pages: int | None = None) -> None:
        self._backend = backend
        self._max_pages = max_pages
        self._store: RemoteStore | None = None
        self._lock = asyncio.Lock()

    def current(self) -> RemoteStore | None:
        """Bound store, or None before acquisition."""
        return self._store

    def require(self) -> RemoteStore:
        """Bound store.

        Raises:
            StoreNotInitialized: Nothing has been acquired yet
        """
        if self._store is None:
            raise StoreNotInitialized("Remote store is not initialized")
        return self._store

    async def acquire(self, display_name: str) -> RemoteStore:
        """Find the store named ``display_name`` or create it, then bind to it.

        Raises:
            StoreAlreadyBound: Already bound to a store with another name
        """
        async with self._lock:
            if self._store is not None:
                if self._store.display_name != display_name:
                    raise StoreAlreadyBound(
                        f"Handle already bound to {self._store.display_name!r}, "
                        f"cannot acquire {display_name!r}"
                    )
                return self._store

            logger.info(f"Looking up store {display_name!r}")
            store = await find_first(
                lambda: self._backend.list_stores(),
                lambda page: page.has_next,
                lambda page: self._backend.list_stores(page.next_cursor),
                _page_items,
                lambda candidate: candidate.display_name == display_name,
                max_pages=self._max_pages,
            )

            if store is not None:
                logger.info(f"Found store {store.id}")
            else:
                logger.info(f"Store {display_name!r} not found, creating it")
                store = await self._backend.create_store(display_name)
                logger.info(f"Created store {store.id}")

            self._store = store
            return store

    async def delete_store(self) -> None:
        """Delete the bound store remotely and unbind the handle."""
        async with self._lock:
            store = self.require()
            logger.info(f"Deleting store {store.id}")
            await self._backend.delete_store(store.id)
            self._store = None


def _page_items(page: RemotePage[RemoteStore]) -> list[RemoteStore]:
    return page.items
