"""Page flows used by the CLI: look up, read, list and reset."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from shortman.errors import CacheIOError
from shortman.parser import parse_page
from shortman.resolver import PageNotFound, list_pages, resolve, suggest_pages

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from shortman.models.page import PageDocument
    from shortman.state import AppState

log = structlog.get_logger()


def find_page(
    state: AppState,
    command: str,
    platforms: Iterable[str],
) -> PageDocument | PageNotFound:
    """Resolve and parse the page for ``command``.

    A miss comes back as PageNotFound carrying close matches from the same
    platforms, for "did you mean" output.
    """
    platforms = list(platforms)
    result = resolve(state.store, command, platforms)
    if isinstance(result, PageNotFound):
        names = list_pages(state.store, platforms)
        suggestions = suggest_pages(command, names)
        log.info("page_not_found", command=command, platforms=result.platforms)
        return PageNotFound(
            command=result.command,
            platforms=result.platforms,
            suggestions=suggestions,
        )

    log.debug("page_resolved", command=command, platform=result.platform, path=str(result.path))
    return render_file(result.path)


def render_file(path: Path) -> PageDocument:
    """Read and parse a page file from anywhere on disk."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise CacheIOError(
            f"Could not read page {path}: {exc}",
            suggestion="Check that the file exists and is readable.",
        ) from exc
    return parse_page(raw)


def clear_cache(state: AppState) -> None:
    """Remove everything from the cache. Raises CacheIOError on failure."""
    state.store.clear()
