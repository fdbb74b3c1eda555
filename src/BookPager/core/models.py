from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence


@dataclass(frozen=True, slots=True)
class Book:
    """Internal canonical book model.

    The upstream parser maps every volume to this shape; the store persists it
    as a flat JSON payload and the renderers serialize it for display.

    Attributes:
        id: Upstream volume identifier.
        title: Book title (never empty; titleless volumes are dropped).
        authors: Author display names.
        publisher: Publisher name if known.
        published: Publication date if known.
        description: Plain-text description.
        categories: Subject categories.
        page_count: Number of pages if known.
        language: Language code reported by upstream.
        isbn: Preferred ISBN (13 over 10) if present.
        rating: Average user rating if present.
        thumbnail: Cover thumbnail URL.
        info_link: Landing page URL.
        preview_link: Preview page URL.
        embeddable: Whether an embedded preview is available.
        order: Absolute offset of this book in its query's result sequence,
            -1 until the book has been stored.
    """

    id: str
    title: str
    authors: Sequence[str] = ()
    publisher: Optional[str] = None
    published: Optional[datetime] = None
    description: str = ""
    categories: Sequence[str] = ()
    page_count: Optional[int] = None
    language: Optional[str] = None
    isbn: Optional[str] = None
    rating: Optional[float] = None
    thumbnail: Optional[str] = None
    info_link: Optional[str] = None
    preview_link: Optional[str] = None
    embeddable: bool = False
    order: int = -1


@dataclass(frozen=True, slots=True)
class Cursor:
    """Pagination position for one query within one session.

    Attributes:
        start_index: Order of the first book in the visible window.
        total_results: Upstream-reported total match count, fixed at search time.
        results_stored: High-water mark of stored orders; never decreases.
        page_size: Window length, fixed when the query is created.
    """

    start_index: int
    total_results: int
    results_stored: int
    page_size: int


@dataclass(frozen=True, slots=True)
class FetchResult:
    """One upstream batch.

    `items` may be empty even when `total_results` exceeds the requested
    offset; callers treat that as "no more usable results".
    """

    items: Sequence[Book]
    total_results: int
