"""Storage domain configuration for session persistence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from BookPager.config.common import (
    expect_int,
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Validated storage settings.

    Attributes:
        db_path: SQLite file holding session state.
        retention_days: Age after which `purge` drops idle queries.
    """

    db_path: str
    retention_days: int


def load_storage(raw: Mapping[str, Any]) -> StorageConfig:
    section = get_section(raw, "storage", required=True)
    return StorageConfig(
        db_path=expect_str(get_required_value(section, "db_path", "storage.db_path"), "storage.db_path"),
        retention_days=expect_int(
            get_optional_value(section, "retention_days", 7),
            "storage.retention_days",
        ),
    )


def check_storage(config: StorageConfig) -> None:
    """Validate storage domain constraints."""
    if not config.db_path.strip():
        raise ValueError("storage.db_path must not be empty")
    if config.retention_days <= 0:
        raise ValueError("storage.retention_days must be positive")
