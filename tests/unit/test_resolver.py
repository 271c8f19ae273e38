"""Unit tests for shortman.resolver."""

from __future__ import annotations

import sys

import pytest

from shortman.cache import CacheStore
from shortman.models.page import Platform
from shortman.resolver import (
    PageNotFound,
    detect_platform,
    list_pages,
    platform_order,
    resolve,
    search_order,
    suggest_pages,
)

# ---------------------------------------------------------------------------
# Platform order
# ---------------------------------------------------------------------------


class TestSearchOrder:
    def test_common_appended(self) -> None:
        assert search_order(["linux"]) == ["linux", "common"]

    def test_common_not_duplicated(self) -> None:
        assert search_order(["linux", "common", "linux"]) == ["linux", "common"]

    def test_empty_input_is_common_only(self) -> None:
        assert search_order([]) == ["common"]

    def test_enum_values_accepted(self) -> None:
        assert search_order([Platform.OSX]) == ["osx", "common"]


class TestPlatformDetection:
    @pytest.mark.parametrize(
        ("sys_platform", "expected"),
        [
            ("linux", Platform.LINUX),
            ("darwin", Platform.OSX),
            ("sunos5", Platform.SUNOS),
            ("win32", Platform.WINDOWS),
            ("emscripten", None),
        ],
    )
    def test_detect(
        self, monkeypatch: pytest.MonkeyPatch, sys_platform: str, expected: Platform | None
    ) -> None:
        monkeypatch.setattr(sys, "platform", sys_platform)
        assert detect_platform() == expected

    def test_override_wins(self) -> None:
        assert platform_order("sunos") == ["sunos", "common"]

    def test_unknown_platform_falls_back_to_common(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "emscripten")
        assert platform_order() == ["common"]


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


class TestResolve:
    def test_common_only_page_found_via_fallback(self, store: CacheStore, publish) -> None:
        publish(store, {"common/tar.md": "# tar", "linux/ip.md": "# ip"})
        entry = resolve(store, "tar", ["linux", "common"])
        assert not isinstance(entry, PageNotFound)
        assert entry.platform == "common"

    def test_platform_page_preferred_over_common(self, store: CacheStore, publish) -> None:
        publish(store, {"common/tar.md": "# common tar", "linux/tar.md": "# linux tar"})
        entry = resolve(store, "tar", ["linux", "common"])
        assert not isinstance(entry, PageNotFound)
        assert entry.platform == "linux"
        assert entry.path.read_text() == "# linux tar"

    def test_common_implicit_when_omitted(self, store: CacheStore, publish) -> None:
        publish(store, {"common/tar.md": "# tar"})
        entry = resolve(store, "tar", ["osx"])
        assert not isinstance(entry, PageNotFound)
        assert entry.platform == "common"

    def test_first_hit_in_caller_order(self, store: CacheStore, publish) -> None:
        publish(store, {"osx/say.md": "# osx", "linux/say.md": "# linux"})
        entry = resolve(store, "say", ["osx", "linux"])
        assert not isinstance(entry, PageNotFound)
        assert entry.platform == "osx"

    def test_other_platform_pages_not_used(self, store: CacheStore, publish) -> None:
        publish(store, {"osx/say.md": "# say"})
        result = resolve(store, "say", ["linux"])
        assert isinstance(result, PageNotFound)
        assert result.platforms == ("linux", "common")

    def test_case_sensitive(self, store: CacheStore, publish) -> None:
        publish(store, {"common/tar.md": "# tar"})
        assert isinstance(resolve(store, "TAR", ["linux"]), PageNotFound)

    def test_no_extension_guessing(self, store: CacheStore, publish) -> None:
        publish(store, {"common/tar.md": "# tar"})
        assert isinstance(resolve(store, "tar.md", ["linux"]), PageNotFound)

    def test_empty_cache_is_not_found(self, store: CacheStore) -> None:
        result = resolve(store, "tar", ["linux"])
        assert isinstance(result, PageNotFound)
        assert result.command == "tar"


# ---------------------------------------------------------------------------
# list_pages / suggest_pages
# ---------------------------------------------------------------------------


class TestListPages:
    def test_sorted_and_deduplicated(self, store: CacheStore, publish) -> None:
        publish(
            store,
            {
                "common/tar.md": "",
                "common/ls.md": "",
                "linux/tar.md": "",
                "linux/ip.md": "",
                "osx/say.md": "",
            },
        )
        assert list_pages(store, ["linux"]) == ["ip", "ls", "tar"]

    def test_empty_cache(self, store: CacheStore) -> None:
        assert list_pages(store, ["linux"]) == []


class TestSuggestPages:
    def test_close_match(self) -> None:
        assert suggest_pages("tarr", ["tar", "git", "ls"]) == ["tar"]

    def test_no_match_below_cutoff(self) -> None:
        assert suggest_pages("kubectl", ["tar", "ls"]) == []

    def test_empty_inputs(self) -> None:
        assert suggest_pages("", ["tar"]) == []
        assert suggest_pages("tar", []) == []
