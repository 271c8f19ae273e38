"""HTTP archive fetcher.

All network I/O for refreshing the page cache goes through a single
ArchiveFetcher. It receives an httpx.Client via constructor injection; the
caller owns the client lifecycle. The fetcher never touches the disk.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog

from shortman import __version__
from shortman.errors import TransportError

if TYPE_CHECKING:
    from shortman.config import ArchiveSettings

log = structlog.get_logger()


def build_http_client(settings: ArchiveSettings) -> httpx.Client:
    """Create the httpx client used for archive downloads."""
    return httpx.Client(
        # Archive hosts redirect to a CDN for the actual payload
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds, connect=10.0),
        headers={"User-Agent": f"shortman/{__version__}"},
    )


class ArchiveFetcher:
    """Downloads the page archive as one in-memory byte string."""

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    def fetch(self, url: str) -> bytes:
        """Download ``url`` and return the complete body.

        Raises TransportError on network errors, timeouts, non-2xx responses
        and bodies shorter than the advertised Content-Length.
        """
        try:
            response = self._client.get(url)
        except httpx.TimeoutException as exc:
            raise TransportError(f"Timed out fetching {url}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Network error fetching {url}: {exc}") from exc

        if not response.is_success:
            raise TransportError(
                f"HTTP {response.status_code} fetching {url}",
                recoverable=response.status_code >= 500 or response.status_code in {408, 429},
            )

        content = response.content
        declared = response.headers.get("content-length")
        # Content-Length counts encoded bytes; only compare identity bodies.
        if declared is not None and "content-encoding" not in response.headers:
            try:
                expected = int(declared)
            except ValueError:
                expected = None
            if expected is not None and len(content) < expected:
                raise TransportError(
                    f"Truncated body fetching {url}: got {len(content)} of {expected} bytes"
                )

        log.info(
            "archive_fetch_complete",
            url=url,
            status_code=response.status_code,
            content_length=len(content),
        )
        return content
