"""Schema migration mechanism for BookPager's SQLite database.

Migrations live as one module per version in `BookPager.storage.migrations`
and are applied automatically when a `DatabaseManager` opens a database.
Each migration runs in an explicit transaction; failures roll back
atomically, leaving the database at the previous version.
"""

from __future__ import annotations

import importlib
import pkgutil
import sqlite3
from dataclasses import dataclass

from BookPager.utils.log import log

_MIGRATIONS_PACKAGE = "BookPager.storage.migrations"

_SCHEMA_VERSION_DDL = """
CREATE TABLE IF NOT EXISTS schema_version (
    id      INTEGER PRIMARY KEY CHECK (id = 1),
    version INTEGER NOT NULL
)
"""


@dataclass(frozen=True)
class Migration:
    """A single versioned schema migration.

    Attributes:
        version: Monotonically increasing integer, starting at 1.
        description: Human-readable summary of what this migration does.
        sql: One or more semicolon-separated DDL/DML statements to execute.
    """

    version: int
    description: str
    sql: str


def load_migrations() -> list[Migration]:
    """Discover `MIGRATION` constants in the migrations package, sorted by version."""
    package = importlib.import_module(_MIGRATIONS_PACKAGE)
    found: list[Migration] = []
    for module_info in pkgutil.iter_modules(package.__path__):
        module = importlib.import_module(f"{_MIGRATIONS_PACKAGE}.{module_info.name}")
        migration = getattr(module, "MIGRATION", None)
        if isinstance(migration, Migration):
            found.append(migration)
    return sorted(found, key=lambda m: m.version)


def run_migrations(conn: sqlite3.Connection, migrations: list[Migration] | None = None) -> int:
    """Apply all pending migrations to the database.

    Args:
        conn: Active SQLite connection.
        migrations: Explicit migration list; discovered from the package
            when omitted.

    Returns:
        Schema version after the run.

    Raises:
        ValueError: If migration versions are not consecutive from 1.
        sqlite3.Error: If a migration statement fails (transaction is rolled back).
    """
    if migrations is None:
        migrations = load_migrations()
    _validate_migration_list(migrations)
    conn.execute(_SCHEMA_VERSION_DDL)
    conn.commit()

    current_ver = _get_current_version(conn)
    pending = [m for m in migrations if m.version > current_ver]
    if not pending:
        log.debug("schema already at version %d, no migrations to run", current_ver)
        return current_ver

    for migration in pending:
        _apply_migration(conn, migration)
        log.info("applied migration v%d: %s", migration.version, migration.description)
    return pending[-1].version


def _validate_migration_list(migrations: list[Migration]) -> None:
    for expected, m in enumerate(migrations, start=1):
        if m.version != expected:
            raise ValueError(
                f"Migration version gap: expected version {expected}, "
                f"got {m.version} (description: {m.description!r})"
            )


def _get_current_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row else 0


def _apply_migration(conn: sqlite3.Connection, migration: Migration) -> None:
    """Execute a single migration inside an explicit transaction.

    Statements run one by one through `execute()`; `executescript()` would
    issue an implicit COMMIT and break atomicity.
    """
    conn.execute("BEGIN")
    try:
        for stmt in (s.strip() for s in migration.sql.split(";")):
            if stmt:
                conn.execute(stmt)
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (id, version) VALUES (1, ?)",
            (migration.version,),
        )
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise
