"""Public configuration API for BookPager."""

from __future__ import annotations

from BookPager.config.app import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from BookPager.config.google_books import GoogleBooksConfig
from BookPager.config.runtime import RuntimeConfig
from BookPager.config.session import SessionConfig
from BookPager.config.storage import StorageConfig

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "RuntimeConfig",
    "SessionConfig",
    "GoogleBooksConfig",
    "StorageConfig",
    "AppConfig",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
