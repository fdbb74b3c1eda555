"""Console text renderers.

Renders books into human-friendly text for the command-line front end.
"""

from __future__ import annotations

import textwrap
from datetime import datetime
from typing import Iterable

from BookPager.core.models import Book

_DESCRIPTION_WIDTH = 100


def _fmt_dt(dt: datetime | None) -> str:
    """Format a publication date, "-" when unknown."""
    if not dt:
        return "-"
    return dt.strftime("%Y-%m-%d")


def render_text(books: Iterable[Book]) -> str:
    """Render a page of books into a text block.

    Each entry is numbered by its absolute order, which is the number the
    `describe` and `preview` commands expect.
    """
    lines: list[str] = []
    for book in books:
        lines.append(f"[{book.order}] {book.title}")
        if book.authors:
            lines.append(f"    Authors: {', '.join(book.authors)}")
        lines.append(f"    Published: {_fmt_dt(book.published)}")
        if book.info_link:
            lines.append(f"    Link: {book.info_link}")
    return "\n".join(lines)


def render_detail(book: Book) -> str:
    """Render a single book with its description."""
    lines = [render_text([book])]
    if book.publisher:
        lines.append(f"    Publisher: {book.publisher}")
    if book.page_count:
        lines.append(f"    Pages: {book.page_count}")
    if book.categories:
        lines.append(f"    Categories: {', '.join(book.categories)}")
    if book.preview_link:
        lines.append(f"    Preview: {book.preview_link}")
    if book.description:
        lines.append(textwrap.indent(textwrap.fill(book.description, _DESCRIPTION_WIDTH), "    "))
    return "\n".join(lines)
