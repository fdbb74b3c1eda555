"""Session-scoped result store.

Persists the three record kinds of a paginated query (query spec, book
batch, cursor) keyed by `(session_id, query_id)`, plus the per-session query
counter used to hand out query ids.
"""

from __future__ import annotations

import functools
import json
import sqlite3
from contextlib import contextmanager
from dataclasses import asdict, replace
from typing import TYPE_CHECKING, Any, Iterator, Sequence

from dateutil import parser as dt_parser

from BookPager.core.errors import ItemNotFoundError, NoActiveQueryError, NotFoundError, StorageError
from BookPager.core.models import Book, Cursor
from BookPager.core.query import QuerySpec, format_query_id
from BookPager.utils.log import log

if TYPE_CHECKING:
    from BookPager.storage.db import DatabaseManager

CURSOR_FIELDS = ("start_index", "total_results", "results_stored", "page_size")


def _storage_operation(func):
    """Re-raise backend failures of a store method as `StorageError`."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except sqlite3.Error as error:
            log.error("Storage operation %s failed: %s", func.__name__, error)
            raise StorageError(f"{func.__name__} failed: {error}") from error

    return wrapper


class SqliteSessionStore:
    """SQLite-backed store for query specs, books and cursors.

    Every write runs inside `transaction()`; nested calls join the outer
    transaction, so callers can group a batch of writes into one commit.
    """

    def __init__(self, db_manager: DatabaseManager):
        """Initialize the session store.

        Args:
            db_manager: Shared database manager instance.
        """
        log.debug("Initializing SqliteSessionStore")
        self.conn = db_manager.get_connection()
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group writes into a single `BEGIN IMMEDIATE` ... `COMMIT` block.

        Raises:
            StorageError: If the transaction cannot be opened or committed.
        """
        if self._depth == 0:
            try:
                self.conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as error:
                raise StorageError(f"could not open transaction: {error}") from error
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self.conn.execute("ROLLBACK")
            raise
        self._depth -= 1
        if self._depth == 0:
            try:
                self.conn.execute("COMMIT")
            except sqlite3.Error as error:
                self.conn.execute("ROLLBACK")
                raise StorageError(f"could not commit transaction: {error}") from error

    # -- query counter -----------------------------------------------------

    @_storage_operation
    def count_queries(self, session_id: str) -> int:
        """Return how many query ids were ever allocated in the session."""
        row = self.conn.execute(
            "SELECT query_count FROM sessions WHERE session_id = ?",
            (session_id,),
        ).fetchone()
        return row[0] if row else 0

    @_storage_operation
    def allocate_query_id(self, session_id: str) -> str:
        """Increment the session's query counter and return the new query id."""
        with self.transaction():
            self.conn.execute(
                """
                INSERT INTO sessions (session_id, query_count) VALUES (?, 1)
                ON CONFLICT(session_id) DO UPDATE SET query_count = query_count + 1
                """,
                (session_id,),
            )
            row = self.conn.execute(
                "SELECT query_count FROM sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        query_id = format_query_id(row[0])
        log.debug("Allocated %s for session %s", query_id, session_id)
        return query_id

    # -- query specs -------------------------------------------------------

    @_storage_operation
    def put_query_spec(self, spec: QuerySpec, session_id: str, query_id: str) -> None:
        """Persist the query spec of `(session_id, query_id)`."""
        with self.transaction():
            self.conn.execute(
                """
                INSERT OR REPLACE INTO queries (session_id, query_id, spec)
                VALUES (?, ?, ?)
                """,
                (session_id, query_id, json.dumps(asdict(spec), ensure_ascii=False)),
            )

    @_storage_operation
    def get_query_spec(self, session_id: str, query_id: str) -> QuerySpec:
        """Load the query spec of `(session_id, query_id)`.

        Raises:
            NotFoundError: If no spec is stored.
        """
        row = self.conn.execute(
            "SELECT spec FROM queries WHERE session_id = ? AND query_id = ?",
            (session_id, query_id),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"No query spec stored for {session_id}/{query_id}")
        return QuerySpec(**json.loads(row[0]))

    # -- books -------------------------------------------------------------

    @_storage_operation
    def put_results(
        self,
        items: Sequence[Book],
        start_offset: int,
        session_id: str,
        query_id: str,
    ) -> list[Book]:
        """Append a batch of books, tagging each with its absolute order.

        Orders already stored for the query are left untouched.

        Args:
            items: Books in upstream order.
            start_offset: Upstream offset of the first book.
            session_id: Owning session.
            query_id: Owning query.

        Returns:
            The books with their `order` field set.
        """
        stored = [replace(book, order=start_offset + idx) for idx, book in enumerate(items)]
        with self.transaction():
            for book in stored:
                self.conn.execute(
                    """
                    INSERT OR IGNORE INTO books (session_id, query_id, order_num, title, payload)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (session_id, query_id, book.order, book.title, _book_to_payload(book)),
                )
        log.debug("Stored %d books for %s/%s from order %d", len(stored), session_id, query_id, start_offset)
        return stored

    @_storage_operation
    def list_items(self, session_id: str, query_id: str, from_order: int, limit: int) -> list[Book]:
        """Return up to `limit` books with `order >= from_order`, ascending."""
        cursor = self.conn.execute(
            """
            SELECT order_num, payload FROM books
            WHERE session_id = ? AND query_id = ? AND order_num >= ?
            ORDER BY order_num ASC
            LIMIT ?
            """,
            (session_id, query_id, from_order, limit),
        )
        return [_book_from_payload(row[1], order=row[0]) for row in cursor]

    @_storage_operation
    def get_item_by_order(self, order: int, session_id: str, query_id: str) -> Book:
        """Return the stored book with the given order.

        Raises:
            ItemNotFoundError: If no book has that order.
        """
        row = self.conn.execute(
            """
            SELECT order_num, payload FROM books
            WHERE session_id = ? AND query_id = ? AND order_num = ?
            """,
            (session_id, query_id, order),
        ).fetchone()
        if row is None:
            raise ItemNotFoundError(order, session_id, query_id)
        return _book_from_payload(row[1], order=row[0])

    # -- cursors -----------------------------------------------------------

    @_storage_operation
    def put_cursor(self, cursor: Cursor, session_id: str, query_id: str) -> None:
        """Insert or replace the single cursor row of `(session_id, query_id)`."""
        with self.transaction():
            self.conn.execute(
                """
                INSERT INTO cursors (session_id, query_id, start_index, total_results, results_stored, page_size)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(session_id, query_id) DO UPDATE SET
                    start_index = excluded.start_index,
                    total_results = excluded.total_results,
                    results_stored = excluded.results_stored,
                    page_size = excluded.page_size,
                    created_at = CAST(strftime('%s','now') AS INTEGER)
                """,
                (
                    session_id,
                    query_id,
                    cursor.start_index,
                    cursor.total_results,
                    cursor.results_stored,
                    cursor.page_size,
                ),
            )

    @_storage_operation
    def get_cursor(self, session_id: str, query_id: str) -> Cursor:
        """Load the cursor of `(session_id, query_id)`.

        Raises:
            NoActiveQueryError: If the query has no cursor.
        """
        row = self.conn.execute(
            """
            SELECT start_index, total_results, results_stored, page_size
            FROM cursors WHERE session_id = ? AND query_id = ?
            """,
            (session_id, query_id),
        ).fetchone()
        if row is None:
            raise NoActiveQueryError(session_id, query_id)
        return Cursor(start_index=row[0], total_results=row[1], results_stored=row[2], page_size=row[3])

    def get_cursor_field(self, name: str, session_id: str, query_id: str) -> int:
        """Return one cursor field by name.

        Raises:
            ValueError: If `name` is not a cursor field.
            NoActiveQueryError: If the query has no cursor.
        """
        if name not in CURSOR_FIELDS:
            raise ValueError(f"Unknown cursor field: {name}")
        return getattr(self.get_cursor(session_id, query_id), name)

    @_storage_operation
    def count_cursors(self, session_id: str, query_id: str) -> int:
        """Return the number of cursor rows for `(session_id, query_id)`."""
        row = self.conn.execute(
            "SELECT COUNT(*) FROM cursors WHERE session_id = ? AND query_id = ?",
            (session_id, query_id),
        ).fetchone()
        return row[0]

    @_storage_operation
    def delete_cursor(self, session_id: str, query_id: str) -> None:
        with self.transaction():
            self.conn.execute(
                "DELETE FROM cursors WHERE session_id = ? AND query_id = ?",
                (session_id, query_id),
            )

    # -- deletion ----------------------------------------------------------

    @_storage_operation
    def delete_all(self, session_id: str, query_id: str) -> None:
        """Drop the query spec, books and cursor of one query."""
        with self.transaction():
            for table in ("queries", "books", "cursors"):
                self.conn.execute(
                    f"DELETE FROM {table} WHERE session_id = ? AND query_id = ?",
                    (session_id, query_id),
                )
        log.debug("Deleted stored state for %s/%s", session_id, query_id)

    @_storage_operation
    def delete_session(self, session_id: str) -> None:
        """Drop every record of a session, including its query counter."""
        with self.transaction():
            for table in ("queries", "books", "cursors", "sessions"):
                self.conn.execute(f"DELETE FROM {table} WHERE session_id = ?", (session_id,))
        log.info("Deleted session %s", session_id)

    @_storage_operation
    def purge_older_than(self, cutoff: int) -> int:
        """Drop queries whose last activity happened before `cutoff`.

        A query's last activity is its cursor timestamp, or the spec timestamp
        when it has no cursor. Session counters are kept so query ids are
        never reused.

        Args:
            cutoff: Epoch seconds.

        Returns:
            Number of queries removed.
        """
        stale = self.conn.execute(
            """
            SELECT q.session_id, q.query_id FROM queries q
            LEFT JOIN cursors c ON c.session_id = q.session_id AND c.query_id = q.query_id
            WHERE COALESCE(c.created_at, q.created_at) < ?
            """,
            (cutoff,),
        ).fetchall()
        with self.transaction():
            for session_id, query_id in stale:
                self.delete_all(session_id, query_id)
        if stale:
            log.info("Purged %d stale queries", len(stale))
        return len(stale)


def _book_to_payload(book: Book) -> str:
    data: dict[str, Any] = asdict(book)
    data.pop("order")
    data["authors"] = list(book.authors)
    data["categories"] = list(book.categories)
    data["published"] = book.published.isoformat() if book.published else None
    return json.dumps(data, ensure_ascii=False)


def _book_from_payload(payload: str, *, order: int) -> Book:
    data = json.loads(payload)
    published = data.get("published")
    data["published"] = dt_parser.isoparse(published) if published else None
    data["authors"] = tuple(data.get("authors") or ())
    data["categories"] = tuple(data.get("categories") or ())
    return Book(**data, order=order)
