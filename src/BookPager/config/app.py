"""Application config orchestration and YAML loading entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from BookPager.config.google_books import GoogleBooksConfig, check_google_books, load_google_books
from BookPager.config.runtime import RuntimeConfig, check_runtime, load_runtime
from BookPager.config.session import SessionConfig, check_session, load_session
from BookPager.config.storage import StorageConfig, check_storage, load_storage

DEFAULT_CONFIG_PATH = Path("config/default.yml")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    runtime: RuntimeConfig
    session: SessionConfig
    google_books: GoogleBooksConfig
    storage: StorageConfig


def parse_config_dict(raw: Mapping[str, Any]) -> AppConfig:
    """Parse a normalized mapping into AppConfig."""
    runtime = load_runtime(raw)
    session = load_session(raw)
    google_books = load_google_books(raw)
    storage = load_storage(raw)

    check_runtime(runtime)
    check_session(session)
    check_google_books(google_books)
    check_storage(storage)
    check_paging(session, google_books)

    return AppConfig(
        runtime=runtime,
        session=session,
        google_books=google_books,
        storage=storage,
    )


def check_paging(session: SessionConfig, google_books: GoogleBooksConfig) -> None:
    """Validate constraints spanning the session and upstream sections.

    A page wider than one upstream batch would skip the books between the end
    of a batch and the start of the next page.
    """
    if session.page_size > google_books.batch_size:
        raise ValueError(
            f"session.page_size ({session.page_size}) must not exceed "
            f"google_books.batch_size ({google_books.batch_size})"
        )


def load_config(path: Path) -> AppConfig:
    """Load a YAML config file without default merge."""
    return load_config_with_defaults(path, default_path=path)


def load_config_with_defaults(config_path: Path, default_path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load config by merging defaults with an optional override file."""
    base = parse_yaml(default_path.read_text(encoding="utf-8"))
    if config_path == default_path:
        return parse_config_dict(base)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    return parse_config_dict(merge_config_dicts(base, override))


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings; override wins on scalar conflicts."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
