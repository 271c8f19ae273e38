"""Page resolution.

Pure lookup logic over a CacheStore: walks platform directories in
precedence order and returns the first exact match. No parsing, no
network.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rapidfuzz import fuzz, process

from shortman.models.page import Platform

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shortman.models.page import PageEntry
    from shortman.protocols import CacheStoreProtocol


@dataclass(frozen=True)
class PageNotFound:
    """Resolution outcome when no platform directory holds the command.

    Not an error: callers report it to the user and move on.
    """

    command: str
    platforms: tuple[str, ...]
    suggestions: list[str] = field(default_factory=list)


def detect_platform() -> Platform | None:
    """Map the running interpreter's platform onto a page directory."""
    if sys.platform.startswith("linux"):
        return Platform.LINUX
    if sys.platform == "darwin":
        return Platform.OSX
    if sys.platform.startswith("sunos"):
        return Platform.SUNOS
    if sys.platform in ("win32", "cygwin"):
        return Platform.WINDOWS
    return None


def platform_order(override: str | None = None) -> list[str]:
    """Return the lookup order: the requested or detected platform, then common."""
    primary = override if override is not None else detect_platform()
    return search_order([primary] if primary is not None else [])


def search_order(platforms: Iterable[str]) -> list[str]:
    """Drop duplicates and make ``common`` the final entry if it is missing."""
    order = list(dict.fromkeys(str(platform) for platform in platforms))
    if Platform.COMMON not in order:
        order.append(str(Platform.COMMON))
    return order


def resolve(
    store: CacheStoreProtocol,
    command: str,
    platforms: Iterable[str],
) -> PageEntry | PageNotFound:
    """Find the page for ``command``, most specific platform first.

    Stops at the first hit. The match is exact and case-sensitive on the
    file stem. All platforms are read from one snapshot of the cache.
    """
    order = search_order(platforms)
    snapshot = store.snapshot()
    if snapshot is not None:
        for platform in order:
            for entry in store.enumerate(platform, snapshot=snapshot):
                if entry.command == command:
                    return entry

    return PageNotFound(command=command, platforms=tuple(order))


def list_pages(store: CacheStoreProtocol, platforms: Iterable[str]) -> list[str]:
    """Sorted, de-duplicated command names visible for ``platforms`` plus common."""
    snapshot = store.snapshot()
    if snapshot is None:
        return []
    names: set[str] = set()
    for platform in search_order(platforms):
        names.update(entry.command for entry in store.enumerate(platform, snapshot=snapshot))
    return sorted(names)


def suggest_pages(
    command: str,
    names: list[str],
    *,
    limit: int = 3,
    score_cutoff: int = 70,
) -> list[str]:
    """Return up to ``limit`` page names close to ``command``, best first."""
    if not command or not names:
        return []
    results = process.extract(
        command,
        names,
        scorer=fuzz.ratio,
        limit=limit,
        score_cutoff=score_cutoff,
    )
    return [name for name, _score, _idx in results]
