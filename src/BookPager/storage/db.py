"""SQLite database utilities."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import ClassVar

from BookPager.storage.migration import run_migrations


class DatabaseManager:
    """Shared database connection manager.

    Keeps one connection per resolved database path, so the session store and
    any maintenance command opened against the same file share transaction
    state instead of fighting over write locks.

    Supports context manager protocol for automatic connection cleanup.
    """

    _instances: ClassVar[dict[Path, DatabaseManager]] = {}

    def __new__(cls, db_path: Path):
        """Create or return the existing manager for `db_path`.

        Args:
            db_path: Absolute path or project-relative path to database file.

        Returns:
            DatabaseManager instance bound to that path.
        """
        key = Path(db_path).resolve()
        instance = cls._instances.get(key)
        if instance is None:
            instance = super().__new__(cls)
            instance.db_path = key
            instance.conn = ensure_db(key)
            run_migrations(instance.conn)
            cls._instances[key] = instance
        return instance

    def get_connection(self) -> sqlite3.Connection:
        """Get the shared database connection."""
        return self.conn

    def close(self) -> None:
        """Close the database connection and forget this instance.

        A later `DatabaseManager(path)` opens a fresh connection.
        """
        if getattr(self, "conn", None) is not None:
            self.conn.close()
            self.conn = None
            type(self)._instances.pop(self.db_path, None)

    def __enter__(self) -> DatabaseManager:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def ensure_db(db_path: Path) -> sqlite3.Connection:
    """Ensure database file exists and return connection.

    Args:
        db_path: Absolute path or project-relative path to database file.

    Returns:
        SQLite connection.

    Raises:
        OSError: If directory creation fails.
        sqlite3.Error: If database connection fails.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(str(db_path))
