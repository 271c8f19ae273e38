"""Safe archive extraction into a private staging directory.

Every member is validated before anything is written: names must stay
inside the staging root and members must be regular files or directories.
Any failure removes the staging directory, so a failed extraction leaves
nothing behind that the cache store could later publish.
"""

from __future__ import annotations

import io
import os
import shutil
import stat
import tarfile
import tempfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath

import structlog

from shortman.errors import (
    CacheIOError,
    InvalidArchive,
    UnsafeArchiveEntry,
    UnsupportedEntryType,
)

log = structlog.get_logger()

STAGING_PREFIX = ".staging-"


def extract_archive(data: bytes, destination_root: Path) -> Path:
    """Extract ``data`` (zip or tar, any compression) into a new staging directory.

    The staging directory is created under ``destination_root`` with a unique
    name, so concurrent updaters never share one. Returns its path.
    """
    try:
        destination_root.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=destination_root))
    except OSError as exc:
        raise CacheIOError(f"Cannot create staging directory in {destination_root}: {exc}") from exc

    try:
        if zipfile.is_zipfile(io.BytesIO(data)):
            files = _extract_zip(data, staging)
        else:
            files = _extract_tar(data, staging)
    except OSError as exc:
        shutil.rmtree(staging, ignore_errors=True)
        raise CacheIOError(f"Failed to extract archive into {staging}: {exc}") from exc
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    log.info("archive_extracted", staging=str(staging), files=files)
    return staging


def _member_target(root: Path, member_name: str) -> Path:
    """Return where ``member_name`` lands under ``root``, rejecting escapes."""
    normalized = member_name.replace("\\", "/")
    has_drive = len(normalized) > 1 and normalized[0].isalpha() and normalized[1] == ":"
    if PurePosixPath(normalized).is_absolute() or has_drive:
        raise UnsafeArchiveEntry(f"Absolute path in archive: {member_name!r}")

    root_str = os.path.normpath(root)
    target = os.path.normpath(os.path.join(root_str, *normalized.split("/")))
    if target == root_str:
        return Path(target)
    if os.path.commonpath([root_str, target]) != root_str:
        raise UnsafeArchiveEntry(f"Archive entry escapes the extraction root: {member_name!r}")
    return Path(target)


def _extract_tar(data: bytes, staging: Path) -> int:
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as archive:
            members = archive.getmembers()
            # Validate everything before the first write.
            planned: list[tuple[tarfile.TarInfo, Path]] = []
            for member in members:
                target = _member_target(staging, member.name)
                if member.isdir() or member.isfile():
                    planned.append((member, target))
                    continue
                if member.issym() or member.islnk():
                    raise UnsupportedEntryType(f"Link in archive: {member.name!r}")
                if member.isdev():
                    raise UnsupportedEntryType(f"Device node in archive: {member.name!r}")
                raise UnsupportedEntryType(f"Unsupported archive entry type: {member.name!r}")

            files = 0
            for member, target in planned:
                if member.isdir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                source = archive.extractfile(member)
                if source is None:
                    raise InvalidArchive(f"Failed to read archive entry: {member.name!r}")
                target.parent.mkdir(parents=True, exist_ok=True)
                with source, target.open("wb") as sink:
                    shutil.copyfileobj(source, sink)
                files += 1
            return files
    except (tarfile.TarError, EOFError, zlib.error) as exc:
        raise InvalidArchive(f"Unreadable tar archive: {exc}") from exc


def _extract_zip(data: bytes, staging: Path) -> int:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            members = archive.infolist()
            planned: list[tuple[zipfile.ZipInfo, Path]] = []
            for member in members:
                target = _member_target(staging, member.filename)
                mode = (member.external_attr >> 16) & 0xFFFF
                kind = stat.S_IFMT(mode)
                # Archives written on Windows carry no Unix mode bits (kind 0).
                if kind not in (0, stat.S_IFREG, stat.S_IFDIR):
                    raise UnsupportedEntryType(f"Unsupported archive entry type: {member.filename!r}")
                planned.append((member, target))

            files = 0
            for member, target in planned:
                if member.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(member, "r") as source, target.open("wb") as sink:
                    shutil.copyfileobj(source, sink)
                files += 1
            return files
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        raise InvalidArchive(f"Unreadable zip archive: {exc}") from exc
