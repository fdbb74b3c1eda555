"""JSON display renderers.

Turns books into the structured payload the dialog layer shows next to the
spoken/text reply.
"""

from __future__ import annotations

import json
from typing import Iterable

from BookPager.core.models import Book


def render_book(book: Book) -> dict:
    """Render one book into a JSON-serializable mapping."""
    return {
        "order": book.order,
        "id": book.id,
        "title": book.title,
        "authors": list(book.authors),
        "publisher": book.publisher,
        "published": book.published.strftime("%Y-%m-%d") if book.published else None,
        "description": book.description,
        "categories": list(book.categories),
        "page_count": book.page_count,
        "language": book.language,
        "isbn": book.isbn,
        "rating": book.rating,
        "links": {
            "thumbnail": book.thumbnail,
            "info": book.info_link,
            "preview": book.preview_link,
        },
        "embeddable": book.embeddable,
    }


def render_json(books: Iterable[Book]) -> list[dict]:
    """Render books into JSON-serializable Python objects."""
    return [render_book(book) for book in books]


def serialize_page(books: Iterable[Book]) -> str:
    """Serialize a page of books into the display string."""
    return json.dumps(render_json(books), ensure_ascii=False)


def serialize_book(book: Book) -> str:
    """Serialize a single book into the display string."""
    return json.dumps(render_book(book), ensure_ascii=False)
