"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
from dotenv import load_dotenv

from BookPager.cli.runner import CommandRunner
from BookPager.config import DEFAULT_CONFIG_PATH, AppConfig, load_config, load_config_with_defaults

_QUERY_ID_OPTION = click.option(
    "--query-id",
    default=None,
    help="Query to page through; defaults to the newest query of the session.",
)
_JSON_OPTION = click.option("--json", "as_json", is_flag=True, help="Print the JSON display payload.")


def _load(config_path: Path) -> AppConfig:
    """Load config, layering it over the default file when both exist."""
    if config_path != DEFAULT_CONFIG_PATH and DEFAULT_CONFIG_PATH.is_file():
        return load_config_with_defaults(config_path, default_path=DEFAULT_CONFIG_PATH)
    return load_config(config_path)


@click.group(help="BookPager: page through book search results in the terminal.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to YAML config file.",
)
@click.option(
    "--session",
    "session_id",
    envvar="BOOKPAGER_SESSION",
    default="cli",
    show_default=True,
    help="Conversation session id.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path, session_id: str) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config.
    """
    load_dotenv()

    ctx.ensure_object(dict)
    ctx.obj["config"] = _load(config_path)
    ctx.obj["session_id"] = session_id


def _runner(ctx: click.Context) -> CommandRunner:
    return CommandRunner(ctx.obj["config"])


@cli.command("search")
@click.argument("text", nargs=-1, required=True)
@click.option("--author", "authors", multiple=True, help="Restrict to an author (repeatable).")
@click.option("--title", default=None, help="Restrict to words in the title.")
@click.option("--type", "type_", default=None, help="Volume filter or print type, e.g. free-ebooks, magazines.")
@click.option("--category", "categories", default=None, help="Restrict to a subject category.")
@click.option("--order", default=None, type=click.Choice(["relevance", "newest"]), help="Result ordering.")
@click.option("--language", default=None, help="Restrict to a language name, e.g. French.")
@_JSON_OPTION
@click.pass_context
def search_cmd(
    ctx: click.Context,
    text: tuple[str, ...],
    authors: tuple[str, ...],
    title: str | None,
    type_: str | None,
    categories: str | None,
    order: str | None,
    language: str | None,
    as_json: bool,
) -> None:
    """Start a new book search and show its first page.

    Raises:
        click.Abort: When the search fails.
    """
    parameters: dict[str, Any] = {
        "authors": list(authors),
        "title": title,
        "type": type_,
        "categories": categories,
        "order": order,
        "language": language,
    }
    _runner(ctx).run_intent(
        ctx.command.name,
        session_id=ctx.obj["session_id"],
        intent="search",
        user_input=" ".join(text),
        parameters={k: v for k, v in parameters.items() if v},
        as_json=as_json,
    )


def _paging_command(intent: str, help_text: str) -> click.Command:
    @cli.command(intent, help=help_text)
    @_QUERY_ID_OPTION
    @_JSON_OPTION
    @click.pass_context
    def command(ctx: click.Context, query_id: str | None, as_json: bool) -> None:
        _runner(ctx).run_intent(
            ctx.command.name,
            session_id=ctx.obj["session_id"],
            intent=intent,
            query_id=query_id,
            as_json=as_json,
        )

    return command


more_cmd = _paging_command("more", "Show the next page of results.")
previous_cmd = _paging_command("previous", "Show the previous page of results.")
results_cmd = _paging_command("results", "Show the current page of results again.")


def _item_command(name: str, intent: str, help_text: str) -> click.Command:
    @cli.command(name, help=help_text)
    @click.argument("number", type=int)
    @_QUERY_ID_OPTION
    @_JSON_OPTION
    @click.pass_context
    def command(ctx: click.Context, number: int, query_id: str | None, as_json: bool) -> None:
        _runner(ctx).run_intent(
            ctx.command.name,
            session_id=ctx.obj["session_id"],
            intent=intent,
            parameters={"number": number},
            query_id=query_id,
            as_json=as_json,
        )

    return command


describe_cmd = _item_command("describe", "description", "Show the description of a listed book.")
preview_cmd = _item_command("preview", "preview", "Show the preview link of a listed book.")


@cli.command("forget")
@click.pass_context
def forget_cmd(ctx: click.Context) -> None:
    """Delete every stored query of the session."""
    _runner(ctx).run_forget(ctx.command.name, session_id=ctx.obj["session_id"])


@cli.command("purge")
@click.option(
    "--older-than-days",
    type=click.IntRange(min=0),
    default=None,
    help="Idle age in days; defaults to storage.retention_days.",
)
@click.pass_context
def purge_cmd(ctx: click.Context, older_than_days: int | None) -> None:
    """Remove queries idle for longer than the retention window."""
    _runner(ctx).run_purge(ctx.command.name, older_than_days=older_than_days)
