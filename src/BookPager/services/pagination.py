"""Pagination engine: the per-query cursor state machine.

Turns an offset-based upstream search into a resumable window over stored
books. Every transition reads the cursor, decides between serving the window
from stored books and fetching another upstream batch, and commits its writes
in a single store transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Protocol, Sequence

from BookPager.core.models import Book, Cursor, FetchResult
from BookPager.core.query import QuerySpec
from BookPager.utils.log import log

if TYPE_CHECKING:
    from BookPager.storage.session_store import SqliteSessionStore


class BookFetcher(Protocol):
    """Protocol for the upstream book search API."""

    def fetch(self, spec: QuerySpec, offset: int) -> FetchResult:
        """Fetch one batch starting at `offset`."""
        raise NotImplementedError


class PageStatus(str, Enum):
    """Outcome of a pagination transition."""

    OK = "ok"
    NO_RESULTS = "no_results"
    NO_MORE = "no_more"
    FIRST_PAGE = "first_page"


@dataclass(frozen=True, slots=True)
class PageResult:
    """Window produced by one engine call.

    Attributes:
        status: Transition outcome.
        query_id: Query the window belongs to; None when a search found nothing.
        items: Books of the visible window, ascending by order.
        cursor: Cursor the window was rendered from.
    """

    status: PageStatus
    query_id: str | None
    items: Sequence[Book] = ()
    cursor: Cursor | None = None


@dataclass(slots=True)
class PaginationEngine:
    """Cursor state machine over a session store and an upstream fetcher."""

    store: SqliteSessionStore
    fetcher: BookFetcher
    page_size: int = 5

    def search(self, spec: QuerySpec, session_id: str) -> PageResult:
        """Start a new query in the session.

        Fetches the first batch; only a non-empty batch allocates a new query
        id and persists spec, books and cursor together.
        """
        batch = self.fetcher.fetch(spec, 0)
        if not batch.items:
            log.info("Search found no books for session %s", session_id)
            return PageResult(status=PageStatus.NO_RESULTS, query_id=None)

        with self.store.transaction():
            query_id = self.store.allocate_query_id(session_id)
            cursor = Cursor(
                start_index=0,
                total_results=max(batch.total_results, len(batch.items)),
                results_stored=len(batch.items),
                page_size=self.page_size,
            )
            self.store.put_query_spec(spec, session_id, query_id)
            self.store.put_results(batch.items, 0, session_id, query_id)
            self.store.put_cursor(cursor, session_id, query_id)

        log.info(
            "New query %s/%s: stored=%d total=%d",
            session_id,
            query_id,
            cursor.results_stored,
            cursor.total_results,
        )
        return self._render(PageStatus.OK, session_id, query_id, cursor)

    def more(self, session_id: str, query_id: str) -> PageResult:
        """Advance the window by one page, fetching upstream on a cache miss."""
        cursor = self.store.get_cursor(session_id, query_id)
        next_index = cursor.start_index + cursor.page_size
        if next_index >= cursor.total_results:
            log.debug("No more results for %s/%s at %d", session_id, query_id, cursor.start_index)
            return self._render(PageStatus.NO_MORE, session_id, query_id, cursor)

        if next_index + cursor.page_size <= cursor.results_stored or cursor.results_stored >= cursor.total_results:
            advanced = replace(cursor, start_index=next_index)
            self.store.put_cursor(advanced, session_id, query_id)
            log.debug("Served page at %d for %s/%s from store", next_index, session_id, query_id)
            return self._render(PageStatus.OK, session_id, query_id, advanced)

        spec = self.store.get_query_spec(session_id, query_id)
        batch = self.fetcher.fetch(spec, next_index)
        if not batch.items:
            log.info("Upstream returned no usable books at %d for %s/%s", next_index, session_id, query_id)
            return self._render(PageStatus.NO_MORE, session_id, query_id, cursor)

        advanced = replace(
            cursor,
            start_index=next_index,
            results_stored=max(cursor.results_stored, next_index + len(batch.items)),
        )
        with self.store.transaction():
            self.store.put_results(batch.items, next_index, session_id, query_id)
            self.store.put_cursor(advanced, session_id, query_id)
        log.debug(
            "Fetched page at %d for %s/%s: stored=%d",
            next_index,
            session_id,
            query_id,
            advanced.results_stored,
        )
        return self._render(PageStatus.OK, session_id, query_id, advanced)

    def previous(self, session_id: str, query_id: str) -> PageResult:
        """Move the window back by one page; clamps to the first page."""
        cursor = self.store.get_cursor(session_id, query_id)
        new_index = cursor.start_index - cursor.page_size
        if new_index < 0:
            return self._render(PageStatus.FIRST_PAGE, session_id, query_id, replace(cursor, start_index=0))

        moved = replace(cursor, start_index=new_index)
        self.store.put_cursor(moved, session_id, query_id)
        return self._render(PageStatus.OK, session_id, query_id, moved)

    def results(self, session_id: str, query_id: str) -> PageResult:
        """Render the current window without touching the cursor."""
        cursor = self.store.get_cursor(session_id, query_id)
        return self._render(PageStatus.OK, session_id, query_id, cursor)

    def describe(self, session_id: str, query_id: str, ordinal: int) -> Book:
        """Return the stored book with order `ordinal`.

        Raises:
            NoActiveQueryError: If the query has no cursor.
            ItemNotFoundError: If no stored book has that order.
        """
        self.store.get_cursor(session_id, query_id)
        return self.store.get_item_by_order(ordinal, session_id, query_id)

    def _render(self, status: PageStatus, session_id: str, query_id: str, cursor: Cursor) -> PageResult:
        items = self.store.list_items(session_id, query_id, cursor.start_index, cursor.page_size)
        return PageResult(status=status, query_id=query_id, items=tuple(items), cursor=cursor)
