"""Service layer for BookPager.

Exposes the pagination engine, the session controller, and factory functions
that wire them to the configured upstream source.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from BookPager.services.pagination import BookFetcher, PageResult, PageStatus, PaginationEngine
from BookPager.services.session import SessionController, SessionReply

if TYPE_CHECKING:
    from BookPager.config import AppConfig
    from BookPager.sources.google_books.source import GoogleBooksSource
    from BookPager.storage.session_store import SqliteSessionStore


def create_book_source(config: AppConfig) -> GoogleBooksSource:
    """Create the Google Books fetcher from config."""
    from BookPager.sources.google_books.client import GoogleBooksApiClient
    from BookPager.sources.google_books.source import GoogleBooksSource

    upstream = config.google_books
    return GoogleBooksSource(
        client=GoogleBooksApiClient(
            base_url=upstream.base_url,
            api_key=upstream.api_key,
            timeout=upstream.timeout,
            max_attempts=upstream.max_attempts,
        ),
        batch_size=upstream.batch_size,
    )


def create_session_controller(
    config: AppConfig,
    store: SqliteSessionStore,
    fetcher: BookFetcher,
) -> SessionController:
    """Create a session controller over the given store and fetcher.

    Args:
        config: Application configuration (page size).
        store: Session-scoped result store.
        fetcher: Upstream book fetcher.

    Returns:
        Ready-to-use SessionController.
    """
    engine = PaginationEngine(store=store, fetcher=fetcher, page_size=config.session.page_size)
    return SessionController(engine=engine)


__all__ = [
    "BookFetcher",
    "PageResult",
    "PageStatus",
    "PaginationEngine",
    "SessionController",
    "SessionReply",
    "create_book_source",
    "create_session_controller",
]
