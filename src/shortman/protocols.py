"""Protocol interfaces for swappable components.

AppState and the update/page flows reference these protocols, not the
concrete implementations, so tests can substitute in-memory fetchers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import timedelta
    from pathlib import Path

    from shortman.models.cache import CacheState
    from shortman.models.page import PageEntry


class FetcherProtocol(Protocol):
    """Interface for the archive downloader."""

    def fetch(self, url: str) -> bytes: ...


class CacheStoreProtocol(Protocol):
    """Interface for the on-disk page cache."""

    root: Path

    def is_stale(self, max_age: timedelta) -> bool: ...

    def atomic_replace(
        self,
        staging: Path,
        *,
        subdirectory: str = "",
        source_url: str | None = None,
    ) -> CacheState: ...

    def snapshot(self) -> Path | None: ...

    def enumerate(self, platform: str, *, snapshot: Path | None = None) -> Iterator[PageEntry]: ...

    def clear(self) -> None: ...
