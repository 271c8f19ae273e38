"""Application state container.

AppState is created once per CLI invocation and passed to the update and
page flows. The cache root travels inside it; there is no module-level
cache singleton.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from shortman.config import Settings
    from shortman.protocols import CacheStoreProtocol, FetcherProtocol


@dataclass
class AppState:
    """Holds the shared runtime objects for one invocation."""

    settings: Settings
    store: CacheStoreProtocol
    fetcher: FetcherProtocol | None = None
    http_client: httpx.Client | None = None
