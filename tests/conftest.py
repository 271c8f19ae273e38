"""Shared test fixtures for the shortman test suite."""

from __future__ import annotations

import io
import tarfile
import tempfile
import zipfile
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from shortman.cache import CacheStore

SAMPLE_PAGE = """\
# tar

> Archiving utility.
> Often combined with a compression method, such as gzip or bzip2.

- Create an archive from files:

`tar cf {{target.tar}} {{file1}} {{file2}}`

- Extract an archive in a target directory:

`tar xf {{source.tar}} -C {{directory}}`
"""


class FakeClock:
    """Callable clock for CacheStore that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache_root(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture()
def store(cache_root: Path, clock: FakeClock) -> CacheStore:
    return CacheStore(cache_root, clock=clock)


@pytest.fixture()
def sample_page() -> str:
    return SAMPLE_PAGE


@pytest.fixture()
def build_archive() -> Callable[..., bytes]:
    """Return a factory building an in-memory tar.gz (or zip) from {name: content}."""

    def _build(files: dict[str, str | bytes], *, fmt: str = "tar.gz") -> bytes:
        buffer = io.BytesIO()
        if fmt == "zip":
            with zipfile.ZipFile(buffer, "w") as archive:
                for name, content in files.items():
                    archive.writestr(name, content)
            return buffer.getvalue()

        mode = "w:gz" if fmt == "tar.gz" else "w"
        with tarfile.open(fileobj=buffer, mode=mode) as archive:
            for name, content in files.items():
                payload = content.encode("utf-8") if isinstance(content, str) else content
                info = tarfile.TarInfo(name)
                info.size = len(payload)
                archive.addfile(info, io.BytesIO(payload))
        return buffer.getvalue()

    return _build


@pytest.fixture()
def publish() -> Callable[[CacheStore, dict[str, str]], None]:
    """Return a helper that publishes {relative_path: text} as a new generation."""

    def _publish(target: CacheStore, files: dict[str, str]) -> None:
        target.root.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".staging-", dir=target.root))
        for name, content in files.items():
            path = staging / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        target.atomic_replace(staging)

    return _publish
