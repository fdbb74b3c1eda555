"""Migration v001: initial schema (sessions, queries, books, cursors)."""

from __future__ import annotations

from BookPager.storage.migration import Migration

MIGRATION = Migration(
    version=1,
    description="Initial schema: sessions, queries, books, cursors",
    sql="""
        CREATE TABLE IF NOT EXISTS sessions (
          session_id TEXT PRIMARY KEY,
          query_count INTEGER NOT NULL DEFAULT 0,
          created_at INTEGER NOT NULL DEFAULT (CAST(strftime('%s','now') AS INTEGER))
        );

        CREATE TABLE IF NOT EXISTS queries (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          session_id TEXT NOT NULL,
          query_id TEXT NOT NULL,
          spec TEXT NOT NULL,
          created_at INTEGER NOT NULL DEFAULT (CAST(strftime('%s','now') AS INTEGER)),
          UNIQUE(session_id, query_id)
        );

        CREATE TABLE IF NOT EXISTS books (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          session_id TEXT NOT NULL,
          query_id TEXT NOT NULL,
          order_num INTEGER NOT NULL,
          title TEXT NOT NULL,
          payload TEXT NOT NULL,
          created_at INTEGER NOT NULL DEFAULT (CAST(strftime('%s','now') AS INTEGER)),
          UNIQUE(session_id, query_id, order_num)
        );

        CREATE TABLE IF NOT EXISTS cursors (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          session_id TEXT NOT NULL,
          query_id TEXT NOT NULL,
          start_index INTEGER NOT NULL CHECK (start_index >= 0),
          total_results INTEGER NOT NULL,
          results_stored INTEGER NOT NULL,
          page_size INTEGER NOT NULL CHECK (page_size > 0),
          created_at INTEGER NOT NULL DEFAULT (CAST(strftime('%s','now') AS INTEGER)),
          UNIQUE(session_id, query_id)
        );

        CREATE INDEX IF NOT EXISTS idx_books_session_query_order
          ON books(session_id, query_id, order_num);

        CREATE INDEX IF NOT EXISTS idx_books_created
          ON books(created_at);

        CREATE INDEX IF NOT EXISTS idx_queries_created
          ON queries(created_at);

        CREATE INDEX IF NOT EXISTS idx_cursors_created
          ON cursors(created_at)
    """,
)
