"""Command-line entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Build AppState from Settings
- Pick the flow (show, list, render, update, clear) and map outcomes to
  exit codes: 0 on success, 1 on not-found, failure or missing input
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog
import typer
from rich.console import Console
from rich.markup import escape

from shortman import __version__
from shortman.cache import CacheStore
from shortman.config import Settings
from shortman.errors import ShortmanError
from shortman.fetcher import ArchiveFetcher, build_http_client
from shortman.models.page import Platform
from shortman.pages import clear_cache, find_page, render_file
from shortman.render import render_page
from shortman.resolver import PageNotFound, list_pages, platform_order
from shortman.state import AppState
from shortman.updater import check_and_maybe_update, update_cache

log = structlog.get_logger()

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

app = typer.Typer(
    name="shortman",
    help="Show short, example-driven help pages for command-line tools.",
    add_completion=False,
)


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once per invocation before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout is reserved for page output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _build_state(settings: Settings) -> AppState:
    store = CacheStore(Path(settings.cache.directory).expanduser())
    http_client = build_http_client(settings.archive)
    return AppState(
        settings=settings,
        store=store,
        fetcher=ArchiveFetcher(http_client),
        http_client=http_client,
    )


def _report_error(exc: ShortmanError) -> None:
    err_console.print(f"[red]Error:[/red] {escape(exc.message)}", markup=True)
    if exc.suggestion:
        err_console.print(exc.suggestion, markup=False)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@app.command()
def main(
    ctx: typer.Context,
    command: Optional[List[str]] = typer.Argument(
        None,
        help="Command to show. Several words are joined with '-' (git checkout -> git-checkout).",
    ),
    update: bool = typer.Option(False, "--update", "-u", help="Refresh the page cache"),
    list_pages_flag: bool = typer.Option(False, "--list", "-l", help="List all cached commands"),
    render: Optional[Path] = typer.Option(
        None,
        "--render",
        "-f",
        help="Render a local page file instead of a cached page",
    ),
    platform: Optional[Platform] = typer.Option(
        None,
        "--platform",
        "-p",
        help="Look up pages for this platform instead of the detected one",
    ),
    clear: bool = typer.Option(False, "--clear-cache", help="Delete all cached pages"),
    no_auto_update: bool = typer.Option(
        False,
        "--no-auto-update",
        help="Do not refresh a stale cache before showing a page",
    ),
    version: bool = typer.Option(False, "--version", "-v", help="Show version information"),
) -> None:
    """Show the page for COMMAND, or manage the local page cache."""
    if version:
        console.print(f"shortman v{__version__}", markup=False)
        raise typer.Exit()

    settings = Settings()
    _setup_logging(settings)

    if render is not None:
        try:
            document = render_file(render)
        except ShortmanError as exc:
            _report_error(exc)
            raise typer.Exit(code=1)
        console.print(render_page(document))
        raise typer.Exit()

    state = _build_state(settings)
    try:
        _run(ctx, state, command, update, list_pages_flag, platform, clear, no_auto_update)
    finally:
        if state.http_client is not None:
            state.http_client.close()


def _run(
    ctx: typer.Context,
    state: AppState,
    command: Optional[List[str]],
    update: bool,
    list_pages_flag: bool,
    platform: Optional[Platform],
    clear: bool,
    no_auto_update: bool,
) -> None:
    settings = state.settings
    platforms = platform_order(platform or settings.display.platform)
    acted = False

    if clear:
        try:
            clear_cache(state)
        except ShortmanError as exc:
            _report_error(exc)
            raise typer.Exit(code=1)
        console.print("Cache cleared.", markup=False)
        acted = True

    if update:
        outcome = update_cache(state)
        if outcome.failed:
            err_console.print(
                f"[red]Could not update cache:[/red] {escape(outcome.reason or '')}",
                markup=True,
            )
            raise typer.Exit(code=1)
        console.print("Successfully updated cache.", markup=False)
        acted = True

    if list_pages_flag:
        names = list_pages(state.store, platforms)
        if not names:
            err_console.print("No pages cached. Run `shortman --update` first.", markup=False)
            raise typer.Exit(code=1)
        console.print(", ".join(names), markup=False)
        raise typer.Exit()

    if not command:
        if acted:
            raise typer.Exit()
        console.print(ctx.get_help(), markup=False)
        raise typer.Exit(code=1)

    if settings.cache.auto_update and not no_auto_update and not update:
        outcome = check_and_maybe_update(state)
        if outcome.failed:
            # A stale cache is still better than nothing.
            reason = escape(outcome.reason or "")
            err_console.print(
                f"[yellow]Warning:[/yellow] could not refresh the cache: {reason}",
                markup=True,
            )

    name = "-".join(command)
    try:
        result = find_page(state, name, platforms)
    except ShortmanError as exc:
        _report_error(exc)
        raise typer.Exit(code=1)

    if isinstance(result, PageNotFound):
        err_console.print(f"Page {name} not found in cache.", markup=False)
        if result.suggestions:
            err_console.print(f"Did you mean: {', '.join(result.suggestions)}?", markup=False)
        err_console.print(
            "Try updating with `shortman --update`, or submit a pull request to "
            "https://github.com/tldr-pages/tldr",
            markup=False,
        )
        raise typer.Exit(code=1)

    console.print(render_page(result))


if __name__ == "__main__":
    app()
