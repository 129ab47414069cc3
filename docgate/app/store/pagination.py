"""Cursor-following traversal over remote listings.

Used the same way for finding a store by name, listing every document and
finding a document by name. Each traversal is one-shot and forward-only:
start a new one for every search.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

from docgate.app.errors import RemoteTimeout

P = TypeVar("P")
T = TypeVar("T")


async def for_each_page(
    fetch_first: Callable[[], Awaitable[P]],
    has_next: Callable[[P], bool],
    fetch_next: Callable[[P], Awaitable[P]],
    visit: Callable[[P], bool],
    *,
    max_pages: int | None = None,
) -> bool:
    """Visit pages in order until ``visit`` asks to stop or pages run out.

    Args:
        fetch_first: Fetches the first page
        has_next: Whether another page follows the given one
        fetch_next: Fetches the page after the given one
        visit: Called once per page; returning True stops the traversal
        max_pages: Upper bound on pages fetched (None = unbounded)

    Returns:
        True if ``visit`` stopped the traversal early, False if it was exhausted

    Raises:
        RemoteTimeout: More than ``max_pages`` pages would be fetched
    """
    page = await fetch_first()
    fetched = 1
    while True:
        if visit(page):
            return True
        if not has_next(page):
            return False
        if max_pages is not None and fetched >= max_pages:
            raise RemoteTimeout(f"Remote listing did not end after {max_pages} pages")
        page = await fetch_next(page)
        fetched += 1


async def iterate_items(
    fetch_first: Callable[[], Awaitable[P]],
    has_next: Callable[[P], bool],
    fetch_next: Callable[[P], Awaitable[P]],
    items_of: Callable[[P], list[T]],
    *,
    max_pages: int | None = None,
) -> AsyncIterator[T]:
    """Lazily yield every item across pages, fetching a page only when needed.

    Breaking out of the ``async for`` stops fetching further pages.
    """
    page = await fetch_first()
    fetched = 1
    while True:
        for item in items_of(page):
            yield item
        if not has_next(page):
            return
        if max_pages is not None and fetched >= max_pages:
            raise RemoteTimeout(f"Remote listing did not end after {max_pages} pages")
        page = await fetch_next(page)
        fetched += 1


async def find_first(
    fetch_first: Callable[[], Awaitable[P]],
    has_next: Callable[[P], bool],
    fetch_next: Callable[[P], Awaitable[P]],
    items_of: Callable[[P], list[T]],
    predicate: Callable[[T], bool],
    *,
    max_pages: int | None = None,
) -> T | None:
    """Return the first item matching ``predicate``, stopping at the match."""
    found: list[T] = []

    def visit(page: P) -> bool:
        for item in items_of(page):
            if predicate(item):
                found.append(item)
                return True
        return False

    await for_each_page(fetch_first, has_next, fetch_next, visit, max_pages=max_pages)
    return found[0] if found else None
