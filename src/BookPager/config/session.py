"""Session domain configuration (paging behavior)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from BookPager.config.common import expect_int, get_required_value, get_section


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Validated paging settings.

    Attributes:
        page_size: Books per window; stored on each new query's cursor.
    """

    page_size: int


def load_session(raw: Mapping[str, Any]) -> SessionConfig:
    section = get_section(raw, "session", required=True)
    return SessionConfig(
        page_size=expect_int(get_required_value(section, "page_size", "session.page_size"), "session.page_size"),
    )


def check_session(config: SessionConfig) -> None:
    if config.page_size <= 0:
        raise ValueError("session.page_size must be positive")
