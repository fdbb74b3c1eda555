"""Command implementations for the BookPager CLI.

Encapsulates what each command does with the session controller and store,
separated from CLI parameter handling and resource management.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import click

from BookPager.renderers.console import render_detail, render_text
from BookPager.services.session import SessionController, SessionReply
from BookPager.storage.session_store import SqliteSessionStore
from BookPager.utils.log import log

_SECONDS_PER_DAY = 86400
_DETAIL_INTENTS = frozenset({"description", "preview"})


@dataclass(slots=True)
class IntentCommand:
    """One dialog turn routed through the session controller.

    Prints the reply summary and the books through the logger, or the raw
    display payload when `as_json` is set.
    """

    controller: SessionController
    session_id: str
    intent: str
    user_input: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    query_id: str | None = None
    as_json: bool = False

    def execute(self) -> SessionReply:
        log.debug(
            "Running intent=%s session=%s query=%s params=%s",
            self.intent,
            self.session_id,
            self.query_id,
            self.parameters,
        )
        reply = self.controller.handle(
            self.intent,
            self.session_id,
            user_input=self.user_input,
            parameters=self.parameters,
            query_id=self.query_id,
        )
        if self.as_json and reply.display is not None:
            click.echo(reply.display)
            return reply

        log.info(reply.summary)
        if reply.books:
            text = render_detail(reply.books[0]) if self.intent in _DETAIL_INTENTS else render_text(reply.books)
            for line in text.splitlines():
                log.info(line)
        if reply.query_id:
            log.debug("query_id=%s", reply.query_id)
        return reply


@dataclass(slots=True)
class ForgetCommand:
    """Delete every stored record of one session."""

    store: SqliteSessionStore
    session_id: str

    def execute(self) -> None:
        self.store.delete_session(self.session_id)


@dataclass(slots=True)
class PurgeCommand:
    """Drop queries idle for longer than the retention window."""

    store: SqliteSessionStore
    older_than_days: int

    def execute(self) -> int:
        cutoff = int(time.time()) - self.older_than_days * _SECONDS_PER_DAY
        removed = self.store.purge_older_than(cutoff)
        log.info("Removed %d queries idle for more than %d days", removed, self.older_than_days)
        return removed
