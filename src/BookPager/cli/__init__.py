"""CLI package for BookPager command orchestration.

Splits the click interface, resource management and per-command behavior
into separate modules.
"""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from BookPager.cli.runner import CommandRunner
from BookPager.cli.ui import cli


def main() -> None:
    """Run BookPager CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
