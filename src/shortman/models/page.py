from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

PAGE_SUFFIX = ".md"


class Platform(StrEnum):
    """Page directories known to the cache. ``COMMON`` is the universal fallback."""

    LINUX = "linux"
    OSX = "osx"
    SUNOS = "sunos"
    WINDOWS = "windows"
    ANDROID = "android"
    COMMON = "common"


@dataclass(frozen=True)
class PageEntry:
    """A page file found while enumerating one platform directory."""

    command: str
    platform: str
    path: Path


# ---------------------------------------------------------------------------
# Parsed lines
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommandSegment:
    text: str
    placeholder: bool = False


@dataclass(frozen=True)
class Title:
    text: str


@dataclass(frozen=True)
class Description:
    text: str


@dataclass(frozen=True)
class ExampleDescription:
    text: str


@dataclass(frozen=True)
class ExampleCommand:
    segments: tuple[CommandSegment, ...]

    @property
    def text(self) -> str:
        return "".join(segment.text for segment in self.segments)


@dataclass(frozen=True)
class Passthrough:
    text: str


PageLine = Title | Description | ExampleDescription | ExampleCommand | Passthrough


@dataclass
class Example:
    description: str
    command: ExampleCommand | None = None


@dataclass
class PageDocument:
    """In-memory form of one page.

    ``lines`` keeps every input line in order; ``title``, ``description``
    and ``examples`` are the structured view built from the same pass.
    """

    title: str | None = None
    description: list[str] = field(default_factory=list)
    examples: list[Example] = field(default_factory=list)
    lines: list[PageLine] = field(default_factory=list)
