"""Session controller: the intent-level entry point.

Maps an intent name onto the pagination engine, resolves which query of the
session it targets, and turns the outcome (or failure) into a reply the
dialog layer can speak and display. No `BookPagerError` escapes `handle`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from BookPager.core.errors import (
    BookPagerError,
    EmptyInputError,
    NoActiveQueryError,
    NotFoundError,
    StorageError,
    UpstreamError,
)
from BookPager.core.models import Book
from BookPager.core.query import build_query_spec, format_query_id
from BookPager.renderers.json import serialize_book, serialize_page
from BookPager.services.pagination import PageResult, PageStatus, PaginationEngine
from BookPager.utils.log import log

MSG_FOUND = "Here's what I found."
MSG_NO_RESULTS = "I couldn't find any results. Can you try again?"
MSG_NEXT_PAGE = "Here's the next page of results."
MSG_NO_MORE = "I'm sorry, there are no more results."
MSG_PREVIOUS_PAGE = "Here's the previous page of results."
MSG_FIRST_PAGE = "This is the first page of results."
MSG_RESULTS = "Here are the results."
MSG_EMPTY_INPUT = "What would you like me to search for?"
MSG_UPSTREAM = "I'm having trouble reaching the book search service. Please try again."
MSG_NOT_FOUND = "I couldn't find that item."
MSG_NO_ACTIVE_QUERY = "There's no search to page through yet. Try searching for a book first."
MSG_FALLBACK = "I'm sorry, something went wrong. Can you try again?"
MSG_UNKNOWN_INTENT = "I'm sorry, I didn't catch that. Can you repeat that?"


@dataclass(frozen=True, slots=True)
class SessionReply:
    """Reply for one intent.

    Attributes:
        summary: Human-readable text to speak or print.
        display: Serialized JSON page or book, None when nothing is shown.
        query_id: Query the reply belongs to, None when no query is involved.
        books: The books behind `display`, for front ends that render
            their own view.
    """

    summary: str
    display: str | None = None
    query_id: str | None = None
    books: tuple[Book, ...] = ()


@dataclass(slots=True)
class SessionController:
    """Routes book intents for one conversation turn."""

    engine: PaginationEngine

    def handle(
        self,
        intent: str,
        session_id: str,
        *,
        user_input: str | None = None,
        parameters: Mapping[str, Any] | None = None,
        query_id: str | None = None,
    ) -> SessionReply:
        """Handle one intent and build the reply.

        Args:
            intent: One of search/more/previous/results/description/preview.
            session_id: Conversation identifier.
            user_input: Raw user text; required by `search`.
            parameters: Intent parameters (filters, `number` for item lookups).
            query_id: Target query; defaults to the newest query of the session.

        Returns:
            Reply with summary text, optional display payload and query id.
        """
        params = parameters or {}
        name = intent.strip().lower()
        handler = self._query_handlers().get(name)
        if handler is None and name != "search":
            log.warning("Unsupported book intent: %s", intent)
            return SessionReply(summary=MSG_UNKNOWN_INTENT, query_id=query_id)

        try:
            if handler is None:
                return self._search(session_id, user_input, params)
            resolved = query_id or self.newest_query_id(session_id)
            return handler(session_id, resolved, params)
        except EmptyInputError:
            return SessionReply(summary=MSG_EMPTY_INPUT)
        except UpstreamError as error:
            log.warning("Upstream failure for intent=%s session=%s: %s", intent, session_id, error)
            return SessionReply(summary=MSG_UPSTREAM, query_id=query_id)
        except NoActiveQueryError:
            return SessionReply(summary=MSG_NO_ACTIVE_QUERY)
        except NotFoundError as error:
            log.info("Lookup miss for intent=%s session=%s: %s", intent, session_id, error)
            return SessionReply(summary=MSG_NOT_FOUND, query_id=query_id)
        except StorageError as error:
            log.error("Storage failure for intent=%s session=%s: %s", intent, session_id, error)
            return SessionReply(summary=MSG_FALLBACK)
        except BookPagerError as error:
            log.error("Intent %s failed: %s", intent, error)
            return SessionReply(summary=MSG_FALLBACK)

    def newest_query_id(self, session_id: str) -> str:
        """Return the most recently allocated query id (`query-0` when none)."""
        return format_query_id(self.engine.store.count_queries(session_id))

    def _query_handlers(self) -> dict[str, Callable[[str, str, Mapping[str, Any]], SessionReply]]:
        """Intents that operate on an existing query."""
        return {
            "more": self._more,
            "previous": self._previous,
            "results": self._results,
            "description": self._description,
            "describe": self._description,
            "preview": self._preview,
        }

    def _search(self, session_id: str, user_input: str | None, params: Mapping[str, Any]) -> SessionReply:
        spec = build_query_spec(user_input, params)
        page = self.engine.search(spec, session_id)
        if page.status is PageStatus.NO_RESULTS:
            return SessionReply(summary=MSG_NO_RESULTS)
        return _page_reply(MSG_FOUND, page)

    def _more(self, session_id: str, query_id: str, params: Mapping[str, Any]) -> SessionReply:
        page = self.engine.more(session_id, query_id)
        summary = MSG_NO_MORE if page.status is PageStatus.NO_MORE else MSG_NEXT_PAGE
        return _page_reply(summary, page)

    def _previous(self, session_id: str, query_id: str, params: Mapping[str, Any]) -> SessionReply:
        page = self.engine.previous(session_id, query_id)
        summary = MSG_FIRST_PAGE if page.status is PageStatus.FIRST_PAGE else MSG_PREVIOUS_PAGE
        return _page_reply(summary, page)

    def _results(self, session_id: str, query_id: str, params: Mapping[str, Any]) -> SessionReply:
        return _page_reply(MSG_RESULTS, self.engine.results(session_id, query_id))

    def _description(self, session_id: str, query_id: str, params: Mapping[str, Any]) -> SessionReply:
        book = self.engine.describe(session_id, query_id, _ordinal(params))
        return SessionReply(
            summary=f"Here's a description for {book.title}.",
            display=serialize_book(book),
            query_id=query_id,
            books=(book,),
        )

    def _preview(self, session_id: str, query_id: str, params: Mapping[str, Any]) -> SessionReply:
        book = self.engine.describe(session_id, query_id, _ordinal(params))
        return SessionReply(
            summary=f"Here's a preview of {book.title}.",
            display=serialize_book(book),
            query_id=query_id,
            books=(book,),
        )


def _page_reply(summary: str, page: PageResult) -> SessionReply:
    return SessionReply(
        summary=summary,
        display=serialize_page(page.items),
        query_id=page.query_id,
        books=tuple(page.items),
    )


def _ordinal(params: Mapping[str, Any]) -> int:
    """Read the `number` parameter as an item order.

    Raises:
        NotFoundError: If the parameter is missing or not a whole number.
    """
    value = params.get("number")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise NotFoundError(f"Invalid item number: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise NotFoundError(f"Invalid item number: {value!r}")
    return int(value)
