"""Error taxonomy shared by the pagination core.

Every failure the session controller knows how to answer is a subclass of
`BookPagerError`; anything else is a programming error and propagates.
"""

from __future__ import annotations


class BookPagerError(Exception):
    """Base class for expected, user-facing failures."""


class EmptyInputError(BookPagerError, ValueError):
    """Raised when a search is requested without any input text."""


class UpstreamError(BookPagerError):
    """Raised when the external book search API fails or returns garbage."""


class NotFoundError(BookPagerError, LookupError):
    """Raised when a requested record does not exist."""


class ItemNotFoundError(NotFoundError):
    """Raised when no stored item matches the requested order number.

    Attributes:
        order: The order number that was requested.
    """

    def __init__(self, order: int, session_id: str, query_id: str) -> None:
        super().__init__(f"No stored book with order={order} for {session_id}/{query_id}")
        self.order = order


class NoActiveQueryError(NotFoundError):
    """Raised when a paging intent targets a query that has no cursor."""

    def __init__(self, session_id: str, query_id: str) -> None:
        super().__init__(f"No cursor stored for {session_id}/{query_id}")
        self.session_id = session_id
        self.query_id = query_id


class StorageError(BookPagerError):
    """Raised when the persistence backend fails."""
