"""On-disk page cache with atomic publication.

Layout under the cache root::

    pages               -> pages.<generation>   (live pointer, relative symlink)
    pages.<generation>/  common/tar.md, linux/ip.md, ...
    .staging-*/          in-flight extractions, one per updater
    state.json           last successful publication

Readers only ever open ``pages`` and resolve it once per lookup, so they
see one complete generation. Writers build a new generation next to the
live one and publish it with a single ``os.replace`` of the pointer. Where
symlinks are unavailable, ``pages`` is a real directory and publication
falls back to a rename swap. The previous directory is renamed aside, not
deleted, so an interruption between the two renames leaves it recoverable.

Filesystem errors while publishing or clearing are raised as
``CacheIOError``. Errors while reading (state, enumeration) are logged and
degrade to "stale" or "no entries"; a broken cache must never prevent the
caller from deciding to refresh it.
"""

from __future__ import annotations

import os
import secrets
import shutil
import sys
import time
from collections.abc import Callable, Iterator
from contextlib import suppress
from datetime import UTC, datetime, timedelta
from pathlib import Path

import structlog
from pydantic import ValidationError

from shortman.errors import CacheIOError
from shortman.extractor import STAGING_PREFIX
from shortman.models.cache import CacheState
from shortman.models.page import PAGE_SUFFIX, PageEntry

log = structlog.get_logger()

LIVE_NAME = "pages"
STATE_NAME = "state.json"
_BACKUP_PREFIX = f".{LIVE_NAME}.old-"

# Leftovers younger than this may belong to an update still in progress.
PRUNE_GRACE = timedelta(minutes=10)

SwapDirectory = Callable[[Path, Path], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Directory swap
# ---------------------------------------------------------------------------


def swap_directory(target: Path, live: Path) -> None:
    """Make ``live`` refer to ``target``, a sibling directory, atomically.

    Creates a relative symlink under a temporary name and renames it over
    ``live``. Falls back to ``rename_swap`` when the platform refuses to
    create symlinks.
    """
    pointer_tmp = live.with_name(f".{live.name}.{os.getpid()}.{secrets.token_hex(4)}.lnk")
    try:
        os.symlink(target.name, pointer_tmp, target_is_directory=True)
    except (OSError, NotImplementedError):
        log.debug("cache_symlink_unavailable", live=str(live))
        rename_swap(target, live)
        return

    backup: Path | None = None
    try:
        if live.is_dir() and not live.is_symlink():
            # A pointer cannot replace a real directory; move it aside first.
            backup = _backup_name(live)
            os.rename(live, backup)
        try:
            os.replace(pointer_tmp, live)
        except BaseException:
            if backup is not None:
                _restore_backup(backup, live)
            raise
    finally:
        with suppress(OSError):
            pointer_tmp.unlink(missing_ok=True)


def rename_swap(target: Path, live: Path) -> None:
    """Swap ``target`` into ``live`` with two renames, restoring on failure.

    The old ``live`` (directory or pointer) is renamed aside rather than
    deleted, so an interruption between the renames leaves it recoverable
    as a ``.pages.old-*`` backup.
    """
    backup: Path | None = None
    if os.path.lexists(live):
        backup = _backup_name(live)
        os.rename(live, backup)

    try:
        os.rename(target, live)
    except BaseException:
        if backup is not None:
            _restore_backup(backup, live)
        raise

    if backup is None:
        return
    if backup.is_symlink():
        backup.unlink()
    else:
        shutil.rmtree(backup, ignore_errors=True)


def _backup_name(live: Path) -> Path:
    return live.with_name(f"{_BACKUP_PREFIX}{secrets.token_hex(4)}")


def _restore_backup(backup: Path, live: Path) -> None:
    # Left in place on failure; CacheStore promotes orphaned backups.
    if os.path.lexists(backup) and not os.path.lexists(live):
        with suppress(OSError):
            os.rename(backup, live)


# ---------------------------------------------------------------------------
# Cache store
# ---------------------------------------------------------------------------


class CacheStore:
    """Owns the cache root: freshness, publication, enumeration and reset."""

    def __init__(
        self,
        root: Path,
        *,
        swap: SwapDirectory = swap_directory,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.root = root
        self._swap = swap
        self._clock = clock

    @property
    def live_path(self) -> Path:
        return self.root / LIVE_NAME

    @property
    def state_path(self) -> Path:
        return self.root / STATE_NAME

    # ------------------------------------------------------------------
    # Freshness
    # ------------------------------------------------------------------

    def read_state(self) -> CacheState | None:
        """Return the last publication record, or ``None`` if missing or unreadable."""
        try:
            raw = self.state_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError:
            log.warning("cache_state_read_error", path=str(self.state_path), exc_info=True)
            return None

        try:
            return CacheState.model_validate_json(raw)
        except ValidationError:
            log.warning("cache_state_invalid", path=str(self.state_path), exc_info=True)
            return None

    def last_update(self) -> datetime | None:
        state = self.read_state()
        return state.updated_at if state is not None else None

    def is_stale(self, max_age: timedelta) -> bool:
        """True if never populated, unreadable, or older than ``max_age``."""
        state = self.read_state()
        if state is None:
            return True
        if self.snapshot() is None:
            # State survived but the content did not.
            return True
        updated_at = state.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=UTC)
        return self._clock() - updated_at > max_age

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    def atomic_replace(
        self,
        staging: Path,
        *,
        subdirectory: str = "",
        source_url: str | None = None,
    ) -> CacheState:
        """Publish ``staging`` (or ``staging/subdirectory``) as the live cache.

        Everything up to the pointer swap happens beside the live cache; a
        failure before the swap leaves the previous content and state as
        they were. The staging directory is consumed either way.
        """
        now = self._clock()
        generation = f"{LIVE_NAME}.{now:%Y%m%dT%H%M%S}.{secrets.token_hex(4)}"
        target = self.root / generation
        content = staging / subdirectory if subdirectory else staging
        self._restore_orphaned_backup()
        previous = self.snapshot()

        try:
            if not content.is_dir():
                raise CacheIOError(
                    f"Archive does not contain the page directory {subdirectory!r}",
                    suggestion="Check the archive.subdirectory setting.",
                )
            os.rename(content, target)
            # Fresh mtime keeps concurrent pruners away until the swap is done.
            os.utime(target)
            self._swap(target, self.live_path)
        except CacheIOError:
            self._discard(target, staging)
            raise
        except OSError as exc:
            self._discard(target, staging)
            raise CacheIOError(f"Failed to publish cache in {self.root}: {exc}") from exc

        if content != staging:
            shutil.rmtree(staging, ignore_errors=True)

        state = CacheState(updated_at=now, generation=generation, source_url=source_url)
        try:
            _write_text_atomic(self.state_path, state.model_dump_json())
        except OSError:
            # Content is live; drop the old record so the cache reads as stale.
            log.warning("cache_state_write_error", path=str(self.state_path), exc_info=True)
            with suppress(OSError):
                self.state_path.unlink(missing_ok=True)

        self._prune(keep={target, previous})
        log.info("cache_published", generation=generation, source_url=source_url)
        return state

    def _discard(self, target: Path, staging: Path) -> None:
        # Only remove the new generation if the pointer does not reference it.
        if target.exists() and self.snapshot() != target.resolve():
            shutil.rmtree(target, ignore_errors=True)
        shutil.rmtree(staging, ignore_errors=True)

    def _prune(self, keep: set[Path | None]) -> None:
        """Remove superseded generations and abandoned staging directories."""
        keep_resolved = {path.resolve() for path in keep if path is not None}
        # Without a live pointer a backup may be the only complete copy.
        live_missing = not os.path.lexists(self.live_path)
        # Compared against real mtimes, so use the wall clock, not self._clock.
        cutoff = time.time() - PRUNE_GRACE.total_seconds()
        try:
            children = list(self.root.iterdir())
        except OSError:
            log.warning("cache_prune_list_error", root=str(self.root), exc_info=True)
            return

        for child in children:
            name = child.name
            if not (
                name.startswith(f"{LIVE_NAME}.")
                or name.startswith(STAGING_PREFIX)
                or name.startswith(_BACKUP_PREFIX)
            ):
                continue
            if name.startswith(_BACKUP_PREFIX):
                if live_missing:
                    continue
                if child.is_symlink():
                    with suppress(OSError):
                        child.unlink()
                    continue
            if child.is_symlink() or not child.is_dir():
                continue
            if child.resolve() in keep_resolved:
                continue
            try:
                if child.stat().st_mtime > cutoff:
                    continue
            except OSError:
                continue
            shutil.rmtree(child, ignore_errors=True)
            log.debug("cache_pruned", path=str(child))

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def snapshot(self) -> Path | None:
        """Return the directory that is live right now, or ``None`` if empty.

        If an interrupted swap left ``pages`` missing, the newest backup
        stands in for it until the next publication restores it.
        """
        try:
            resolved = self.live_path.resolve(strict=True)
        except OSError:
            backup = self._orphaned_backup()
            return backup.resolve() if backup is not None else None
        return resolved if resolved.is_dir() else None

    def _orphaned_backup(self) -> Path | None:
        """Return the newest backup left by an interrupted swap, if ``pages`` is gone."""
        if os.path.lexists(self.live_path):
            return None
        candidates: list[tuple[float, Path]] = []
        for child in self.root.glob(f"{_BACKUP_PREFIX}*"):
            try:
                resolved = child.resolve(strict=True)
                if resolved.is_dir():
                    candidates.append((resolved.stat().st_mtime, child))
            except OSError:
                continue
        return max(candidates)[1] if candidates else None

    def _restore_orphaned_backup(self) -> None:
        backup = self._orphaned_backup()
        if backup is None:
            return
        try:
            os.rename(backup, self.live_path)
        except OSError:
            log.warning("cache_restore_error", backup=str(backup), exc_info=True)
            return
        log.warning("cache_live_restored", backup=str(backup))

    def enumerate(self, platform: str, *, snapshot: Path | None = None) -> Iterator[PageEntry]:
        """Yield the pages of one platform directory.

        Each call re-reads the filesystem. A missing or unreadable directory
        yields nothing. Pass ``snapshot`` to pin several calls to one
        generation.
        """
        root = snapshot if snapshot is not None else self.snapshot()
        if root is None:
            return
        platform_dir = root / platform
        try:
            with os.scandir(platform_dir) as entries:
                for entry in entries:
                    if not entry.name.endswith(PAGE_SUFFIX) or not entry.is_file():
                        continue
                    yield PageEntry(
                        command=entry.name[: -len(PAGE_SUFFIX)],
                        platform=platform,
                        path=Path(entry.path),
                    )
        except (FileNotFoundError, NotADirectoryError):
            return
        except OSError:
            log.warning("cache_enumerate_error", platform=platform, exc_info=True)
            return

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Remove all cached content. ``is_stale`` reports True afterwards."""
        if not self.root.exists():
            return
        try:
            # State first: a crash mid-clear must not leave a "fresh" marker.
            self.state_path.unlink(missing_ok=True)
            children = list(self.root.iterdir())
            # Backups next, so an interrupted clear cannot bring old pages back.
            for child in children:
                if child.name.startswith(_BACKUP_PREFIX):
                    if child.is_symlink():
                        child.unlink()
                    elif child.is_dir():
                        shutil.rmtree(child)
            if self.live_path.is_symlink():
                self.live_path.unlink()
            for child in children:
                name = child.name
                if child.is_dir() and not child.is_symlink() and (
                    name == LIVE_NAME
                    or name.startswith(f"{LIVE_NAME}.")
                    or name.startswith(STAGING_PREFIX)
                ):
                    shutil.rmtree(child)
        except OSError as exc:
            raise CacheIOError(f"Failed to clear cache in {self.root}: {exc}") from exc
        log.info("cache_cleared", root=str(self.root))


def _write_text_atomic(path: Path, text: str) -> None:
    tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    try:
        with tmp_path.open("w", encoding="utf-8") as file_obj:
            file_obj.write(text)
            file_obj.flush()
            os.fsync(file_obj.fileno())
        os.replace(tmp_path, path)
        _fsync_directory(path.parent)
    finally:
        with suppress(OSError):
            tmp_path.unlink(missing_ok=True)


def _fsync_directory(path: Path) -> None:
    if sys.platform == "win32":
        return  # Windows does not support fsync on directory handles
    directory_fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(directory_fd)
    finally:
        os.close(directory_fd)
