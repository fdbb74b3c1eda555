"""Google Books payload parser."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from dateutil import parser as dt_parser

from BookPager.core.models import Book

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def parse_total_items(payload: Mapping[str, Any]) -> int:
    """Return the upstream total match count, 0 when absent or malformed."""
    total = payload.get("totalItems")
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        return 0
    return total


def parse_volumes(items: Any) -> list[Book]:
    """Parse Google Books volume items into `Book` objects.

    Volumes without a title are skipped, so the result can be shorter than
    the upstream batch.
    """
    if not isinstance(items, list):
        return []

    books: list[Book] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        info = item.get("volumeInfo")
        if not isinstance(info, Mapping):
            continue
        title = _safe_str(info.get("title"))
        if not title:
            continue
        subtitle = _safe_str(info.get("subtitle"))
        if subtitle:
            title = f"{title}: {subtitle}"

        access = item.get("accessInfo") if isinstance(item.get("accessInfo"), Mapping) else {}
        images = info.get("imageLinks") if isinstance(info.get("imageLinks"), Mapping) else {}
        books.append(
            Book(
                id=_safe_str(item.get("id")),
                title=title,
                authors=_collect_str_list(info.get("authors")),
                publisher=_safe_str(info.get("publisher")) or None,
                published=_parse_published(_safe_str(info.get("publishedDate"))),
                description=_clean_description(_safe_str(info.get("description"))),
                categories=_collect_str_list(info.get("categories")),
                page_count=_safe_int(info.get("pageCount")),
                language=_safe_str(info.get("language")) or None,
                isbn=_extract_isbn(info.get("industryIdentifiers")),
                rating=_safe_float(info.get("averageRating")),
                thumbnail=_safe_str(images.get("thumbnail")) or None,
                info_link=_safe_str(info.get("infoLink")) or None,
                preview_link=_safe_str(info.get("previewLink")) or None,
                embeddable=access.get("embeddable") is True,
            )
        )
    return books


def _parse_published(raw_value: str) -> datetime | None:
    """Parse `YYYY`, `YYYY-MM` or `YYYY-MM-DD` into a UTC datetime."""
    if not raw_value:
        return None
    try:
        parsed = dt_parser.isoparse(raw_value)
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _extract_isbn(identifiers: Any) -> str | None:
    """Prefer ISBN_13 over ISBN_10."""
    if not isinstance(identifiers, list):
        return None
    by_type: dict[str, str] = {}
    for ident in identifiers:
        if isinstance(ident, Mapping):
            kind = _safe_str(ident.get("type"))
            value = _safe_str(ident.get("identifier"))
            if kind and value:
                by_type.setdefault(kind, value)
    return by_type.get("ISBN_13") or by_type.get("ISBN_10")


def _clean_description(text: str) -> str:
    if not text:
        return ""
    no_tags = _TAG_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", no_tags).strip()


def _collect_str_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, Sequence) or isinstance(value, str):
        return ()
    return tuple(text for text in (_safe_str(item) for item in value) if text)


def _safe_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _safe_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _safe_str(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""
