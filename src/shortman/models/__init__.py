from __future__ import annotations

from shortman.models.cache import CacheState, UpdateOutcome
from shortman.models.page import (
    PAGE_SUFFIX,
    CommandSegment,
    Description,
    Example,
    ExampleCommand,
    ExampleDescription,
    PageDocument,
    PageEntry,
    PageLine,
    Passthrough,
    Platform,
    Title,
)

__all__ = [
    # cache
    "CacheState",
    "UpdateOutcome",
    # pages
    "PAGE_SUFFIX",
    "Platform",
    "PageEntry",
    "PageDocument",
    "Example",
    # parsed lines
    "PageLine",
    "Title",
    "Description",
    "ExampleDescription",
    "ExampleCommand",
    "CommandSegment",
    "Passthrough",
]
