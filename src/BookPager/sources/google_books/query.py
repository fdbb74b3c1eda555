"""Google Books query compiler."""

from __future__ import annotations

from BookPager.core.query import TOKEN_SEPARATOR, QuerySpec

# Values accepted by the `filter` parameter; any other type goes to `printType`.
_VOLUME_FILTERS = frozenset({"partial", "full", "free-ebooks", "paid-ebooks", "ebooks"})
_PRINT_TYPES = frozenset({"all", "books", "magazines"})
_ORDERS = frozenset({"relevance", "newest"})


def compile_volume_params(spec: QuerySpec, *, offset: int, max_results: int) -> dict[str, str]:
    """Compile a query spec into Google Books `volumes` parameters.

    Args:
        spec: Normalized query specification.
        offset: Upstream start index.
        max_results: Batch size requested from upstream.

    Returns:
        Query parameters; unset filters are omitted.
    """
    terms = [term for term in spec.query_string.split(TOKEN_SEPARATOR) if term]
    if spec.categories:
        terms.append(f'subject:"{spec.categories}"')

    params = {
        "q": " ".join(terms),
        "startIndex": str(max(0, offset)),
        "maxResults": str(max_results),
    }

    book_type = (spec.type or "").strip().lower()
    if book_type in _VOLUME_FILTERS:
        params["filter"] = book_type
    elif book_type in _PRINT_TYPES:
        params["printType"] = book_type

    order = (spec.order or "").strip().lower()
    if order in _ORDERS:
        params["orderBy"] = order

    if spec.language:
        params["langRestrict"] = spec.language.split("-")[0]
    return params
