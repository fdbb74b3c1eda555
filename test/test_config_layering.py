"""Tests for layered config parsing and validation."""

from __future__ import annotations

import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from BookPager.config import load_config, load_config_with_defaults, merge_config_dicts, parse_config_dict

DEFAULT_YML = REPO_ROOT / "config" / "default.yml"


def _base_raw_config() -> dict:
    return {
        "log": {"level": "info", "to_file": False, "dir": "log"},
        "session": {"page_size": 5},
        "google_books": {
            "base_url": "https://www.googleapis.com/books/v1",
            "api_key_env": "GOOGLE_BOOKS_API_KEY",
            "timeout": 30,
            "max_attempts": 4,
            "batch_size": 10,
        },
        "storage": {"db_path": "database/sessions.db", "retention_days": 7},
    }


class TestConfigLayering(unittest.TestCase):
    def test_parse_success_nested_access(self) -> None:
        with patch.dict(os.environ, {"GOOGLE_BOOKS_API_KEY": " k-123 "}, clear=False):
            cfg = parse_config_dict(_base_raw_config())
        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.session.page_size, 5)
        self.assertEqual(cfg.google_books.batch_size, 10)
        self.assertEqual(cfg.google_books.timeout, 30.0)
        self.assertEqual(cfg.google_books.api_key, "k-123")
        self.assertEqual(cfg.storage.db_path, "database/sessions.db")

    def test_missing_api_key_means_anonymous(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = parse_config_dict(_base_raw_config())
        self.assertEqual(cfg.google_books.api_key, "")

    def test_page_size_must_be_positive(self) -> None:
        raw = _base_raw_config()
        raw["session"]["page_size"] = 0
        with self.assertRaisesRegex(ValueError, "session\\.page_size"):
            parse_config_dict(raw)

    def test_batch_size_capped(self) -> None:
        raw = _base_raw_config()
        raw["google_books"]["batch_size"] = 41
        with self.assertRaisesRegex(ValueError, "google_books\\.batch_size"):
            parse_config_dict(raw)

    def test_type_error_contains_key(self) -> None:
        raw = _base_raw_config()
        raw["google_books"]["max_attempts"] = "4"
        with self.assertRaisesRegex(TypeError, "google_books\\.max_attempts"):
            parse_config_dict(raw)

    def test_unknown_log_level(self) -> None:
        raw = _base_raw_config()
        raw["log"]["level"] = "chatty"
        with self.assertRaisesRegex(ValueError, "log\\.level"):
            parse_config_dict(raw)

    def test_missing_section(self) -> None:
        raw = _base_raw_config()
        del raw["storage"]
        with self.assertRaisesRegex(ValueError, "storage"):
            parse_config_dict(raw)

    def test_page_size_may_not_exceed_batch_size(self) -> None:
        raw = _base_raw_config()
        raw["session"]["page_size"] = 20
        raw["google_books"]["batch_size"] = 10
        with self.assertRaisesRegex(ValueError, "session\\.page_size.*google_books\\.batch_size"):
            parse_config_dict(raw)

    def test_page_size_equal_to_batch_size_allowed(self) -> None:
        raw = _base_raw_config()
        raw["session"]["page_size"] = 10
        self.assertEqual(parse_config_dict(raw).session.page_size, 10)

    def test_merge_is_deep(self) -> None:
        merged = merge_config_dicts(_base_raw_config(), {"google_books": {"batch_size": 20}})
        self.assertEqual(merged["google_books"]["batch_size"], 20)
        self.assertEqual(merged["google_books"]["timeout"], 30)


class TestConfigFiles(unittest.TestCase):
    def test_default_file_parses(self) -> None:
        cfg = load_config(DEFAULT_YML)
        self.assertEqual(cfg.session.page_size, 5)
        self.assertEqual(cfg.storage.retention_days, 7)

    def test_override_file_layered_on_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            override = Path(tmpdir) / "override.yml"
            override.write_text("session:\n  page_size: 3\nstorage:\n  db_path: /tmp/x.db\n", encoding="utf-8")
            cfg = load_config_with_defaults(override, default_path=DEFAULT_YML)
        self.assertEqual(cfg.session.page_size, 3)
        self.assertEqual(cfg.storage.db_path, "/tmp/x.db")
        self.assertEqual(cfg.google_books.batch_size, 10)


if __name__ == "__main__":
    unittest.main()
