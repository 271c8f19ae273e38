"""Integration test fixtures.

Runs the typer app against a temporary cache directory configured through
the environment, the same way a user would point shortman elsewhere.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog
from typer.testing import CliRunner

from shortman.cache import CacheStore

if TYPE_CHECKING:
    from pathlib import Path

ARCHIVE_URL = "https://example.com/tldr-main.tar.gz"


@pytest.fixture(autouse=True)
def _reset_structlog():
    # The CLI binds structlog to the runner's stderr; drop it after each test.
    yield
    structlog.reset_defaults()


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    directory = tmp_path / "shortman-cache"
    monkeypatch.setenv("SHORTMAN__CACHE__DIRECTORY", str(directory))
    monkeypatch.setenv("SHORTMAN__ARCHIVE__URL", ARCHIVE_URL)
    monkeypatch.setenv("SHORTMAN__DISPLAY__PLATFORM", "linux")
    return directory


@pytest.fixture()
def cli_store(cli_cache_dir: Path) -> CacheStore:
    """Store on the CLI's cache directory, using the real clock."""
    return CacheStore(cli_cache_dir)
