"""Tests for schema migration mechanism.

Covers:
  1. fresh database      - all tables created, schema_version written
  2. already up to date  - second run executes no DDL
  3. new migration       - v2 applied on top of v1, old data intact
  4. broken migration    - transaction rolled back, version unchanged
Plus: version-gap validation raises ValueError at startup.
"""

from __future__ import annotations

import sqlite3
import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from BookPager.storage.db import DatabaseManager
from BookPager.storage.migration import Migration, load_migrations, run_migrations

MIGRATIONS = load_migrations()
_LATEST_VERSION = max(m.version for m in MIGRATIONS)


def _connect(path: Path) -> sqlite3.Connection:
    return sqlite3.connect(str(path))


def _current_version(conn: sqlite3.Connection) -> int:
    row = conn.execute(
        "SELECT version FROM schema_version WHERE id = 1"
    ).fetchone()
    return row[0] if row else 0


def _table_names(conn: sqlite3.Connection) -> set[str]:
    return {
        row[0]
        for row in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
    }


class TestDiscovery(unittest.TestCase):
    def test_versions_are_consecutive(self):
        self.assertEqual([m.version for m in MIGRATIONS], list(range(1, _LATEST_VERSION + 1)))


class TestFreshDatabase(unittest.TestCase):
    """First run on a database file that does not yet exist."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self._db_path = Path(self._tmpdir.name) / "sessions.db"
        self._conn = _connect(self._db_path)

    def tearDown(self):
        self._conn.close()
        self._tmpdir.cleanup()

    def test_schema_version_equals_latest(self):
        self.assertEqual(run_migrations(self._conn), _LATEST_VERSION)
        self.assertEqual(_current_version(self._conn), _LATEST_VERSION)

    def test_main_tables_created(self):
        run_migrations(self._conn)
        tables = _table_names(self._conn)
        for name in ("sessions", "queries", "books", "cursors", "schema_version"):
            with self.subTest(table=name):
                self.assertIn(name, tables)


class TestDatabaseManagerMigrates(unittest.TestCase):
    def test_manager_opens_migrated_database(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "nested" / "sessions.db"
            with DatabaseManager(db_path) as manager:
                self.assertIs(DatabaseManager(db_path), manager)
                self.assertIn("cursors", _table_names(manager.get_connection()))
            self.assertTrue(db_path.exists())


class TestAlreadyUpToDate(unittest.TestCase):
    """Second run after DB is already at the latest version."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self._conn = _connect(Path(self._tmpdir.name) / "sessions.db")
        run_migrations(self._conn)

    def tearDown(self):
        self._conn.close()
        self._tmpdir.cleanup()

    def test_version_unchanged_on_second_run(self):
        version_before = _current_version(self._conn)
        run_migrations(self._conn)
        self.assertEqual(_current_version(self._conn), version_before)

    def test_no_new_tables_on_second_run(self):
        tables_before = _table_names(self._conn)
        run_migrations(self._conn)
        self.assertEqual(_table_names(self._conn), tables_before)


class TestNewMigration(unittest.TestCase):
    """Simulated next-version migration applied to a current database."""

    def setUp(self):
        self._next = Migration(
            version=_LATEST_VERSION + 1,
            description="Add note column to books",
            sql="ALTER TABLE books ADD COLUMN note TEXT;",
        )
        self._tmpdir = tempfile.TemporaryDirectory()
        self._conn = _connect(Path(self._tmpdir.name) / "sessions.db")
        run_migrations(self._conn)
        self._conn.execute(
            "INSERT INTO books (session_id, query_id, order_num, title, payload) VALUES (?, ?, ?, ?, ?)",
            ("s1", "query-1", 0, "Dune", "{}"),
        )
        self._conn.commit()

    def tearDown(self):
        self._conn.close()
        self._tmpdir.cleanup()

    def test_version_advances(self):
        run_migrations(self._conn, MIGRATIONS + [self._next])
        self.assertEqual(_current_version(self._conn), self._next.version)

    def test_old_data_preserved(self):
        run_migrations(self._conn, MIGRATIONS + [self._next])
        row = self._conn.execute(
            "SELECT title, note FROM books WHERE order_num = 0"
        ).fetchone()
        self.assertEqual(row, ("Dune", None))


class TestRollbackOnError(unittest.TestCase):
    """Bad migration SQL causes exception; version number must not change."""

    def setUp(self):
        self._bad = Migration(
            version=_LATEST_VERSION + 1,
            description="Intentionally broken migration",
            sql="CREATE TABLE extra (id INTEGER); THIS IS NOT VALID SQL;",
        )
        self._tmpdir = tempfile.TemporaryDirectory()
        self._conn = _connect(Path(self._tmpdir.name) / "sessions.db")
        run_migrations(self._conn)

    def tearDown(self):
        self._conn.close()
        self._tmpdir.cleanup()

    def test_failure_rolls_back(self):
        version_before = _current_version(self._conn)
        with self.assertRaises(sqlite3.Error):
            run_migrations(self._conn, MIGRATIONS + [self._bad])
        self.assertEqual(_current_version(self._conn), version_before)
        self.assertNotIn("extra", _table_names(self._conn))


class TestVersionContinuityValidation(unittest.TestCase):
    def test_gap_raises_value_error(self):
        gap = MIGRATIONS + [
            Migration(version=_LATEST_VERSION + 2, description="Gap migration", sql="SELECT 1;")
        ]
        with tempfile.TemporaryDirectory() as tmpdir:
            conn = _connect(Path(tmpdir) / "sessions.db")
            try:
                with self.assertRaises(ValueError):
                    run_migrations(conn, gap)
            finally:
                conn.close()


if __name__ == "__main__":
    unittest.main()
