"""Paginated enumerator — turns a page-at-a-time listing call into one lazy sequence."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C")


class FetchError(Exception):
    """Raised when a page request to the remote store fails."""

    def __init__(
        self,
        message: str,
        cursor: Any = None,
        status_code: int | None = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.cursor = cursor
        self.status_code = status_code
        self.transient = transient


class PaginationStalledError(FetchError):
    """Raised when the source reports more data but gives no way to reach it."""


@dataclass(frozen=True)
class Page(Generic[T, C]):
    """One page of a remote listing.

    Attributes:
        items: Items on this page, in the order the source returned them.
        next_cursor: Cursor for the following page; ignored when has_more is False.
        has_more: Whether the source holds further pages.
    """

    items: Sequence[T]
    next_cursor: C | None
    has_more: bool


FetchPage = Callable[[C], Page[T, C]]


class PaginatedEnumerator(Generic[T, C]):
    """Lazy, finite sequence over every item of a paginated remote collection.

    Each ``iter()`` call starts a fresh fetch loop from the initial cursor. The
    iterator it returns is forward-only: all items of one page are yielded
    before the next page is requested, and nothing is fetched until the first
    item is pulled. Fetch errors propagate out of the iterator unchanged.
    """

    def __init__(self, fetch_page: FetchPage[C, T], initial_cursor: C, name: str = "") -> None:
        """Initialise the enumerator.

        Args:
            fetch_page: Callable returning the page at a given cursor.
            initial_cursor: Cursor of the first page (e.g. offset 0).
            name: Label used in log messages.
        """
        self._fetch_page = fetch_page
        self._initial_cursor = initial_cursor
        self._name = name or type(fetch_page).__name__

    def __iter__(self) -> Iterator[T]:
        return self._pages()

    def _pages(self) -> Iterator[T]:
        cursor: C | None = self._initial_cursor
        page_number = 0
        item_count = 0
        while True:
            page_number += 1
            logger.debug(
                "[paginate] fetching page; source:%s;page:%d;cursor:%s",
                self._name,
                page_number,
                cursor,
            )
            page = self._fetch_page(cursor)  # type: ignore[arg-type]
            for item in page.items:
                item_count += 1
                yield item
            if not page.has_more:
                break
            if page.next_cursor is None or page.next_cursor == cursor:
                logger.error(
                    "[paginate] source reports more data without advancing; source:%s;cursor:%s",
                    self._name,
                    cursor,
                )
                raise PaginationStalledError(
                    f"{self._name}: page {page_number} did not advance the cursor",
                    cursor=cursor,
                )
            cursor = page.next_cursor
        logger.info(
            "[paginate] enumeration complete; source:%s;pages:%d;items:%d",
            self._name,
            page_number,
            item_count,
        )
