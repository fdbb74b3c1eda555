"""Tests for the SQLite session store."""

from __future__ import annotations

import sys
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from BookPager.core.errors import ItemNotFoundError, NoActiveQueryError, NotFoundError, StorageError
from BookPager.core.models import Book, Cursor
from BookPager.core.query import build_query_spec
from BookPager.storage.db import DatabaseManager
from BookPager.storage.session_store import SqliteSessionStore


def _books(*titles: str) -> list[Book]:
    return [Book(id=f"id-{title}", title=title) for title in titles]


class _StoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.manager = DatabaseManager(Path(self._tmpdir.name) / "sessions.db")
        self.store = SqliteSessionStore(self.manager)

    def tearDown(self) -> None:
        self.manager.close()
        self._tmpdir.cleanup()


class TestQueryCounter(_StoreTestCase):
    def test_allocate_is_monotonic_per_session(self) -> None:
        self.assertEqual(self.store.count_queries("s1"), 0)
        self.assertEqual(self.store.allocate_query_id("s1"), "query-1")
        self.assertEqual(self.store.allocate_query_id("s1"), "query-2")
        self.assertEqual(self.store.allocate_query_id("s2"), "query-1")
        self.assertEqual(self.store.count_queries("s1"), 2)

    def test_delete_session_resets_counter(self) -> None:
        self.store.allocate_query_id("s1")
        self.store.delete_session("s1")
        self.assertEqual(self.store.count_queries("s1"), 0)


class TestQuerySpecs(_StoreTestCase):
    def test_round_trip(self) -> None:
        spec = build_query_spec("dune", {"authors": ["Frank Herbert"], "language": "English"})
        self.store.put_query_spec(spec, "s1", "query-1")
        self.assertEqual(self.store.get_query_spec("s1", "query-1"), spec)

    def test_missing_spec(self) -> None:
        with self.assertRaises(NotFoundError):
            self.store.get_query_spec("s1", "query-9")


class TestBooks(_StoreTestCase):
    def test_orders_assigned_from_offset(self) -> None:
        stored = self.store.put_results(_books("a", "b", "c"), 5, "s1", "query-1")
        self.assertEqual([b.order for b in stored], [5, 6, 7])

    def test_list_items_ascending_with_limit(self) -> None:
        self.store.put_results(_books("c", "d"), 2, "s1", "query-1")
        self.store.put_results(_books("a", "b"), 0, "s1", "query-1")
        items = self.store.list_items("s1", "query-1", 1, 2)
        self.assertEqual([(b.order, b.title) for b in items], [(1, "b"), (2, "c")])

    def test_list_items_scoped_to_query(self) -> None:
        self.store.put_results(_books("a"), 0, "s1", "query-1")
        self.store.put_results(_books("x"), 0, "s1", "query-2")
        self.assertEqual([b.title for b in self.store.list_items("s1", "query-2", 0, 10)], ["x"])
        self.assertEqual(self.store.list_items("s2", "query-1", 0, 10), [])

    def test_existing_order_not_overwritten(self) -> None:
        self.store.put_results(_books("first"), 0, "s1", "query-1")
        self.store.put_results(_books("second"), 0, "s1", "query-1")
        self.assertEqual(self.store.get_item_by_order(0, "s1", "query-1").title, "first")

    def test_payload_round_trip(self) -> None:
        book = Book(
            id="v1",
            title="Dune",
            authors=("Frank Herbert",),
            published=datetime(1965, 8, 1, tzinfo=timezone.utc),
            categories=("Fiction",),
            page_count=412,
            rating=4.5,
            embeddable=True,
        )
        self.store.put_results([book], 0, "s1", "query-1")
        loaded = self.store.get_item_by_order(0, "s1", "query-1")
        self.assertEqual(loaded.authors, ("Frank Herbert",))
        self.assertEqual(loaded.published, book.published)
        self.assertEqual(loaded.page_count, 412)
        self.assertTrue(loaded.embeddable)
        self.assertEqual(loaded.order, 0)

    def test_missing_item(self) -> None:
        with self.assertRaises(ItemNotFoundError) as ctx:
            self.store.get_item_by_order(3, "s1", "query-1")
        self.assertEqual(ctx.exception.order, 3)


class TestCursors(_StoreTestCase):
    def test_upsert_keeps_single_row(self) -> None:
        self.store.put_cursor(Cursor(0, 12, 5, 5), "s1", "query-1")
        self.store.put_cursor(Cursor(5, 12, 10, 5), "s1", "query-1")
        self.assertEqual(self.store.count_cursors("s1", "query-1"), 1)
        self.assertEqual(self.store.get_cursor("s1", "query-1"), Cursor(5, 12, 10, 5))

    def test_get_cursor_field(self) -> None:
        self.store.put_cursor(Cursor(5, 12, 10, 5), "s1", "query-1")
        self.assertEqual(self.store.get_cursor_field("results_stored", "s1", "query-1"), 10)
        with self.assertRaises(ValueError):
            self.store.get_cursor_field("bogus", "s1", "query-1")

    def test_missing_cursor(self) -> None:
        with self.assertRaises(NoActiveQueryError):
            self.store.get_cursor("s1", "query-1")

    def test_delete_cursor(self) -> None:
        self.store.put_cursor(Cursor(0, 3, 3, 5), "s1", "query-1")
        self.store.delete_cursor("s1", "query-1")
        self.assertEqual(self.store.count_cursors("s1", "query-1"), 0)

    def test_negative_start_index_is_storage_error(self) -> None:
        with self.assertRaises(StorageError):
            self.store.put_cursor(Cursor(-1, 3, 3, 5), "s1", "query-1")


class TestDeletion(_StoreTestCase):
    def _seed(self, session_id: str, query_id: str) -> None:
        self.store.put_query_spec(build_query_spec("dune"), session_id, query_id)
        self.store.put_results(_books("a", "b"), 0, session_id, query_id)
        self.store.put_cursor(Cursor(0, 2, 2, 5), session_id, query_id)

    def test_delete_all_only_touches_one_query(self) -> None:
        self._seed("s1", "query-1")
        self._seed("s1", "query-2")
        self.store.delete_all("s1", "query-1")
        self.assertEqual(self.store.list_items("s1", "query-1", 0, 10), [])
        self.assertEqual(self.store.count_cursors("s1", "query-1"), 0)
        with self.assertRaises(NotFoundError):
            self.store.get_query_spec("s1", "query-1")
        self.assertEqual(len(self.store.list_items("s1", "query-2", 0, 10)), 2)

    def test_purge_removes_stale_queries(self) -> None:
        self._seed("s1", "query-1")
        self._seed("s1", "query-2")
        conn = self.manager.get_connection()
        conn.execute("UPDATE cursors SET created_at = 100 WHERE query_id = 'query-1'")
        conn.commit()

        removed = self.store.purge_older_than(1000)

        self.assertEqual(removed, 1)
        with self.assertRaises(NoActiveQueryError):
            self.store.get_cursor("s1", "query-1")
        self.assertEqual(self.store.get_cursor("s1", "query-2").total_results, 2)


class TestTransaction(_StoreTestCase):
    def test_rollback_on_error(self) -> None:
        with self.assertRaises(RuntimeError):
            with self.store.transaction():
                self.store.put_results(_books("a"), 0, "s1", "query-1")
                raise RuntimeError("boom")
        self.assertEqual(self.store.list_items("s1", "query-1", 0, 10), [])


if __name__ == "__main__":
    unittest.main()
