"""Smoke test for BookPager CLI.

Run:
  python test/smoke_test.py

This script patches the Google Books HTTP client to avoid network access and
validates that the CLI can run a search and page through its results.
"""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
sys.path.insert(0, str(SRC_DIR))


SMOKE_PAYLOAD = {
    "totalItems": 7,
    "items": [
        {
            "id": f"smoke-{i}",
            "volumeInfo": {
                "title": f"Smoke Test Book {i}",
                "authors": ["Alice Example"],
                "publishedDate": "2020-01-01",
                "infoLink": f"https://books.example/smoke-{i}",
            },
        }
        for i in range(7)
    ],
}


def _fake_fetch_volumes(*, query_params, timeout=None):
    del timeout
    start = int(query_params["startIndex"])
    size = int(query_params["maxResults"])
    return {"totalItems": SMOKE_PAYLOAD["totalItems"], "items": SMOKE_PAYLOAD["items"][start:start + size]}


def _make_runner() -> CliRunner:
    """Create CliRunner with best-effort stderr capture."""
    try:
        return CliRunner(mix_stderr=True)
    except TypeError:
        # Newer Click versions always mix stderr into output.
        return CliRunner()


def main() -> int:
    from BookPager.cli import cli

    runner = _make_runner()
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "smoke.yml"
        config_path.write_text(
            (REPO_ROOT / "config" / "default.yml")
            .read_text(encoding="utf-8")
            .replace("database/sessions.db", str(Path(tmpdir) / "sessions.db")),
            encoding="utf-8",
        )
        base_args = ["--config", str(config_path), "--session", "smoke"]
        with patch(
            "BookPager.sources.google_books.client.GoogleBooksApiClient.fetch_volumes",
            side_effect=_fake_fetch_volumes,
        ):
            search = runner.invoke(cli, base_args + ["search", "smoke", "test"], catch_exceptions=False)
            more = runner.invoke(cli, base_args + ["more"], catch_exceptions=False)

    assert search.exit_code == 0, search.output
    assert "Here's what I found." in search.output, search.output
    assert "[0] Smoke Test Book 0" in search.output, search.output
    assert more.exit_code == 0, more.output
    assert "[5] Smoke Test Book 5" in more.output, more.output
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
