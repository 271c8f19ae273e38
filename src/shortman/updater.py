"""Cache refresh flows: fetch, extract, publish."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import structlog

from shortman.errors import ShortmanError
from shortman.extractor import extract_archive
from shortman.models.cache import UpdateOutcome

if TYPE_CHECKING:
    from shortman.state import AppState

log = structlog.get_logger()


def update_cache(state: AppState) -> UpdateOutcome:
    """Download the archive and publish it, regardless of freshness.

    Extraction and publication start only once the full archive is in
    memory; any failure leaves the previously published cache untouched.
    """
    if state.fetcher is None:
        return UpdateOutcome(status="failed", reason="No archive fetcher configured")

    archive = state.settings.archive
    try:
        data = state.fetcher.fetch(archive.url)
        staging = extract_archive(data, state.store.root)
        published = state.store.atomic_replace(
            staging,
            subdirectory=archive.subdirectory,
            source_url=archive.url,
        )
    except ShortmanError as exc:
        log.warning(
            "cache_update_failed",
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return UpdateOutcome(status="failed", reason=exc.message, suggestion=exc.suggestion)

    log.info("cache_updated", generation=published.generation, url=archive.url)
    return UpdateOutcome(status="updated")


def check_and_maybe_update(state: AppState, max_age: timedelta | None = None) -> UpdateOutcome:
    """Refresh the cache only if it is older than ``max_age`` (or never populated)."""
    if max_age is None:
        max_age = timedelta(hours=state.settings.cache.max_age_hours)

    if not state.store.is_stale(max_age):
        log.debug("cache_up_to_date", max_age_seconds=max_age.total_seconds())
        return UpdateOutcome(status="up_to_date")

    log.info("cache_stale", max_age_seconds=max_age.total_seconds())
    return update_cache(state)
