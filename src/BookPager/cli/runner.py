"""Command runner for coordinating CLI execution.

Manages component lifecycle, resource cleanup, logging configuration,
and error handling for command execution.
"""

from __future__ import annotations

from typing import Any, Callable

import click

from BookPager.cli.commands import ForgetCommand, IntentCommand, PurgeCommand
from BookPager.config import AppConfig
from BookPager.services import create_book_source, create_session_controller
from BookPager.services.pagination import BookFetcher
from BookPager.storage import create_storage
from BookPager.utils.log import configure_logging, log

FetcherFactory = Callable[[AppConfig], BookFetcher]


class CommandRunner:
    """Orchestrates command execution with proper resource management.

    Handles logging configuration, component creation, database context
    management, and the CLI error boundary.
    """

    def __init__(self, config: AppConfig, fetcher_factory: FetcherFactory = create_book_source) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
            fetcher_factory: Builds the upstream fetcher; replaced in tests.
        """
        self.config = config
        self.fetcher_factory = fetcher_factory

    def run_intent(
        self,
        action: str,
        *,
        session_id: str,
        intent: str,
        user_input: str | None = None,
        parameters: dict[str, Any] | None = None,
        query_id: str | None = None,
        as_json: bool = False,
    ) -> None:
        """Run one intent against the configured store and upstream.

        Raises:
            click.Abort: When the command fails unexpectedly.
        """
        self._configure_logging(action)
        fetcher = None
        try:
            db_manager, store = create_storage(self.config)
            with db_manager:
                fetcher = self.fetcher_factory(self.config)
                controller = create_session_controller(self.config, store, fetcher)
                IntentCommand(
                    controller=controller,
                    session_id=session_id,
                    intent=intent,
                    user_input=user_input,
                    parameters=parameters or {},
                    query_id=query_id,
                    as_json=as_json,
                ).execute()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action, e)
            raise click.Abort from e
        finally:
            close = getattr(fetcher, "close", None)
            if callable(close):
                close()

    def run_forget(self, action: str, *, session_id: str) -> None:
        """Delete all stored state of a session."""
        self._configure_logging(action)
        try:
            db_manager, store = create_storage(self.config)
            with db_manager:
                ForgetCommand(store=store, session_id=session_id).execute()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action, e)
            raise click.Abort from e

    def run_purge(self, action: str, *, older_than_days: int | None = None) -> None:
        """Drop idle queries; defaults to `storage.retention_days`."""
        self._configure_logging(action)
        days = older_than_days if older_than_days is not None else self.config.storage.retention_days
        try:
            db_manager, store = create_storage(self.config)
            with db_manager:
                PurgeCommand(store=store, older_than_days=days).execute()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action, e)
            raise click.Abort from e

    def _configure_logging(self, action: str) -> None:
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
