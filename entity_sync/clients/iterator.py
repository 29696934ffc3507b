"""Lazy iterator over the pages of a remote list."""

from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple
import logging

from entity_sync.core.exceptions import InvalidPageError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 100

# Fetches one page given its index and size; returns the page items and the
# total number of pages, when the remote reports it.
PageFetcher = Callable[[int, int], Awaitable[Tuple[List[Any], Optional[int]]]]


class RemoteListIterator:
    """Cursor over the pages of a remote list.

    Pages are fetched on demand, one remote call per page, and kept for the
    lifetime of the iterator. The total page count is unknown until the first
    page has been fetched.
    """

    def __init__(
        self,
        fetch: PageFetcher,
        limit: Optional[int] = None,
        position: int = 1,
    ):
        self._fetch = fetch
        self.limit = limit or DEFAULT_PAGE_LIMIT
        self._position = position
        self._count: Optional[int] = None
        self._pages: Dict[int, List[Any]] = {}

    async def current(self) -> List[Any]:
        """Get the items of the page at the current position."""
        if self._position not in self._pages:
            await self._fetch_page(self._position)
        return self._pages[self._position]

    async def _fetch_page(self, page: int) -> None:
        logger.debug(f"Fetching page {page} with limit {self.limit}")
        items, count = await self._fetch(page, self.limit)
        self._pages[page] = list(items or [])
        if count is not None:
            self._count = count

    def key(self) -> int:
        return self._position

    def next(self) -> None:
        self._position += 1

    def rewind(self) -> None:
        self._position = 1

    def valid(self) -> bool:
        return self._is_valid(self._position)

    def _is_valid(self, position: int) -> bool:
        if position < 1:
            return False
        if self._count is not None and position > self._count:
            return False
        return True

    def move(self, page: int) -> None:
        """Move the cursor to the given page.

        Raises:
            InvalidPageError: If the page is not a valid position.
        """
        if not self._is_valid(page):
            raise InvalidPageError(f"Invalid page {page}")
        self._position = page

    async def get(self, page: int) -> List[Any]:
        """Move to the given page and get its items."""
        self.move(page)
        return await self.current()

    def count(self) -> Optional[int]:
        """Total number of pages, if known."""
        return self._count

    def set_count(self, count: Optional[int]) -> None:
        self._count = count

    async def pages(self) -> AsyncIterator[List[Any]]:
        """Iterate over the pages from the current position onwards."""
        while self.valid():
            page = await self.current()
            # Without a known total an empty page marks the end of the list.
            if not page and self._count is None:
                return
            yield page
            self.next()

    async def items(self) -> AsyncIterator[Any]:
        """Iterate over the items of all pages in page order."""
        async for page in self.pages():
            for item in page:
                yield item

    def __aiter__(self) -> AsyncIterator[Any]:
        return self.items()
