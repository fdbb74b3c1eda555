"""Storage layer for BookPager.

Provides the shared SQLite connection, schema migrations and the
session-scoped result store.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from BookPager.storage.db import DatabaseManager
from BookPager.storage.migration import run_migrations
from BookPager.storage.session_store import SqliteSessionStore
from BookPager.utils.log import log

if TYPE_CHECKING:
    from BookPager.config import AppConfig


def create_storage(config: AppConfig) -> tuple[DatabaseManager, SqliteSessionStore]:
    """Open the configured database and build the session store.

    Args:
        config: Application configuration containing storage settings.

    Returns:
        Tuple of (db_manager, session_store).
    """
    db_path = Path(config.storage.db_path)
    db_manager = DatabaseManager(db_path)
    log.debug("Session storage: %s", db_path)
    return db_manager, SqliteSessionStore(db_manager)


__all__ = [
    "DatabaseManager",
    "SqliteSessionStore",
    "run_migrations",
    "create_storage",
]
