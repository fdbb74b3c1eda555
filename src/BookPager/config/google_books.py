"""Upstream domain configuration for the Google Books API."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from BookPager.config.common import (
    expect_float,
    expect_int,
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)

_MAX_BATCH_SIZE = 40


@dataclass(frozen=True, slots=True)
class GoogleBooksConfig:
    """Validated upstream API settings.

    Attributes:
        base_url: API root (the client appends `/volumes`).
        api_key_env: Environment variable holding the API key.
        api_key: Key read from `api_key_env`; empty means anonymous access.
        timeout: Request timeout in seconds.
        max_attempts: HTTP attempts per fetch for transient failures.
        batch_size: Books requested per upstream call.
    """

    base_url: str
    api_key_env: str
    api_key: str
    timeout: float
    max_attempts: int
    batch_size: int


def load_google_books(raw: Mapping[str, Any]) -> GoogleBooksConfig:
    """Load the `google_books` section.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "google_books", required=True)
    api_key_env = expect_str(
        get_optional_value(section, "api_key_env", "GOOGLE_BOOKS_API_KEY"),
        "google_books.api_key_env",
    )
    return GoogleBooksConfig(
        base_url=expect_str(get_required_value(section, "base_url", "google_books.base_url"), "google_books.base_url"),
        api_key_env=api_key_env,
        api_key=_load_api_key_from_env(api_key_env),
        timeout=expect_float(get_optional_value(section, "timeout", 30), "google_books.timeout"),
        max_attempts=expect_int(get_optional_value(section, "max_attempts", 4), "google_books.max_attempts"),
        batch_size=expect_int(
            get_required_value(section, "batch_size", "google_books.batch_size"),
            "google_books.batch_size",
        ),
    )


def check_google_books(config: GoogleBooksConfig) -> None:
    """Validate upstream domain constraints."""
    if not config.base_url.strip():
        raise ValueError("google_books.base_url must not be empty")
    if config.timeout <= 0:
        raise ValueError("google_books.timeout must be positive")
    if config.max_attempts <= 0:
        raise ValueError("google_books.max_attempts must be positive")
    if not 1 <= config.batch_size <= _MAX_BATCH_SIZE:
        raise ValueError(f"google_books.batch_size must be between 1 and {_MAX_BATCH_SIZE}")


def _load_api_key_from_env(api_key_env: str) -> str:
    return os.getenv(api_key_env, "").strip() if api_key_env.strip() else ""
