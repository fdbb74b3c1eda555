"""Google Books source adapter."""

from __future__ import annotations

from dataclasses import dataclass

import requests

from BookPager.core.errors import UpstreamError
from BookPager.core.models import FetchResult
from BookPager.core.query import QuerySpec
from BookPager.sources.google_books.client import GoogleBooksApiClient
from BookPager.sources.google_books.parser import parse_total_items, parse_volumes
from BookPager.sources.google_books.query import compile_volume_params
from BookPager.utils.log import log

# Upstream caps maxResults at 40.
MAX_BATCH_SIZE = 40


@dataclass(slots=True)
class GoogleBooksSource:
    """Google Books-backed fetcher that returns normalized books."""

    client: GoogleBooksApiClient
    batch_size: int = 10
    name: str = "google_books"

    def fetch(self, spec: QuerySpec, offset: int) -> FetchResult:
        """Fetch one batch of books starting at `offset`.

        Args:
            spec: Query to run.
            offset: Absolute upstream start index.

        Returns:
            Parsed books and the upstream total match count.

        Raises:
            UpstreamError: On network, HTTP or payload failures.
        """
        params = compile_volume_params(spec, offset=offset, max_results=min(self.batch_size, MAX_BATCH_SIZE))
        try:
            payload = self.client.fetch_volumes(query_params=params)
        except (requests.RequestException, ValueError) as error:
            log.warning("Google Books request failed: offset=%d error=%s", offset, error)
            raise UpstreamError(f"Google Books request failed: {error}") from error

        books = parse_volumes(payload.get("items"))
        total = parse_total_items(payload)
        log.info("Google Books returned %d books at offset %d (total=%d)", len(books), offset, total)
        return FetchResult(items=books, total_results=total)

    def close(self) -> None:
        """Close resources held by the source adapter."""
        self.client.close()
