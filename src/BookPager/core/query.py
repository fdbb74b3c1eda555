from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from BookPager.core.errors import EmptyInputError

TOKEN_SEPARATOR = "+"
QUERY_ID_PREFIX = "query-"

_SHOW_ME_PREFIX = "show me "

_LANGUAGE_CODES: dict[str, str] = {
    "Chinese": "zh-CN",
    "English": "en-US",
    "French": "fr",
    "German": "de",
    "Hindi": "hi",
    "Italian": "it",
    "Japanese": "ja",
    "Korean": "ko",
    "Portuguese": "pt",
    "Russian": "ru",
    "Spanish": "es",
    "Swedish": "sv",
}


@dataclass(frozen=True, slots=True)
class QuerySpec:
    """Normalized, immutable book search request.

    Only created through `build_query_spec`, which guarantees a non-empty
    `user_input`. Filters the caller did not provide stay None.

    Attributes:
        user_input: Raw text the user typed or said.
        query_string: Upstream query text: input words plus field tokens,
            joined by `TOKEN_SEPARATOR`.
        type: Volume type filter (e.g. "ebooks", "magazines").
        categories: Subject category filter.
        authors: Rendered `inauthor:"..."` tokens.
        title: Rendered `intitle:"..."` token.
        order: Upstream sort order (e.g. "newest").
        language: Language code restriction.
        bookshelf: Capitalized bookshelf name for library requests.
        friend: Normalized friend name for shared-library requests.
        is_my_library: Whether the request targets the authenticated
            user's own library.
    """

    user_input: str
    query_string: str
    type: Optional[str] = None
    categories: Optional[str] = None
    authors: Optional[str] = None
    title: Optional[str] = None
    order: Optional[str] = None
    language: Optional[str] = None
    bookshelf: Optional[str] = None
    friend: Optional[str] = None
    is_my_library: bool = False


def build_query_spec(
    user_input: str | None,
    parameters: Mapping[str, Any] | None = None,
    *,
    requires_auth: bool = False,
) -> QuerySpec:
    """Build a `QuerySpec` from detected input text and intent parameters.

    Args:
        user_input: Raw user text. Required.
        parameters: Optional intent parameters (type, categories, authors,
            title, order, language, bookshelf, friend). Values are strings,
            person mappings (`{"name": ...}`) or lists of either.
        requires_auth: Marks the spec as scoped to the user's own library.

    Returns:
        Immutable query specification.

    Raises:
        EmptyInputError: If `user_input` is missing or blank.
    """
    if user_input is None or not user_input.strip():
        raise EmptyInputError("Search input must not be empty")
    if not _strip_show_me(user_input).strip():
        raise EmptyInputError("Search input has no terms after the \"show me\" prefix")

    params = parameters or {}
    authors = _render_authors(params.get("authors"))
    title = _render_title(params.get("title"))
    return QuerySpec(
        user_input=user_input,
        query_string=_render_query_string(user_input, authors=authors, title=title),
        type=_plain_value(params.get("type")),
        categories=_plain_value(params.get("categories")),
        authors=authors,
        title=title,
        order=_plain_value(params.get("order")),
        language=language_code(_plain_value(params.get("language"))),
        bookshelf=_render_bookshelf(params.get("bookshelf")),
        friend=_render_friend(params.get("friend")),
        is_my_library=requires_auth,
    )


def language_code(language: str | None) -> str | None:
    """Map a language name to its upstream language code.

    Returns None for a missing or unsupported language name.
    """
    if not language:
        return None
    return _LANGUAGE_CODES.get(language.strip().capitalize())


def format_query_id(number: int) -> str:
    """Render the n-th query id of a session (`query-<n>`)."""
    return f"{QUERY_ID_PREFIX}{number}"


def _render_query_string(user_input: str, *, authors: str | None, title: str | None) -> str:
    parts = [_join_words(_strip_show_me(user_input))]
    if authors:
        parts.append(authors)
    if title:
        parts.append(title)
    return TOKEN_SEPARATOR.join(parts)


def _strip_show_me(user_input: str) -> str:
    if user_input.lower().startswith(_SHOW_ME_PREFIX):
        return user_input[len(_SHOW_ME_PREFIX):]
    return user_input


def _render_authors(value: Any) -> str | None:
    if value is None:
        return None
    values = value if isinstance(value, (list, tuple)) else [value]
    tokens = []
    for item in values:
        name = _person_name(item)
        if name:
            tokens.append(f'inauthor:"{_join_words(name)}"')
    return TOKEN_SEPARATOR.join(tokens) if tokens else None


def _render_title(value: Any) -> str | None:
    title = _plain_value(value)
    if title is None:
        return None
    return f'intitle:"{_join_words(title)}"'


def _render_bookshelf(value: Any) -> str | None:
    name = _plain_value(value)
    if name is None:
        return None
    return name[:1].upper() + name[1:]


def _render_friend(value: Any) -> str | None:
    friend = _person_name(value)
    if not friend:
        return None
    if friend.endswith("'s"):
        friend = friend[:-2]
    names = [
        part[:1].upper() + part[1:].lower() if len(part) > 1 else part
        for part in friend.split(" ")
    ]
    return " ".join(names)


def _person_name(value: Any) -> str | None:
    """Return the name of a person parameter (`{"name": ...}` or plain string)."""
    if isinstance(value, Mapping):
        value = value.get("name")
    return _plain_value(value)


def _plain_value(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _join_words(text: str) -> str:
    return TOKEN_SEPARATOR.join(word for word in text.split(" ") if word)
