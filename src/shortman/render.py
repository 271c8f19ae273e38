"""Styled rendering of parsed pages.

``page_segments`` turns a PageDocument into ``(style, text)`` pairs in
line order; ``render_page`` maps them through the fixed STYLE_TABLE into a
rich ``Text`` for the console. Both are pure functions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from rich.text import Text

from shortman.models.page import (
    Description,
    ExampleCommand,
    ExampleDescription,
    PageDocument,
    Passthrough,
    Title,
)


class SegmentStyle(StrEnum):
    TITLE = "title"
    DESCRIPTION = "description"
    EXAMPLE = "example"
    COMMAND = "command"
    PLACEHOLDER = "placeholder"
    PLAIN = "plain"


STYLE_TABLE: dict[SegmentStyle, str] = {
    SegmentStyle.TITLE: "bold",
    SegmentStyle.DESCRIPTION: "dim",
    SegmentStyle.EXAMPLE: "green",
    SegmentStyle.COMMAND: "red",
    SegmentStyle.PLACEHOLDER: "underline cyan",
    SegmentStyle.PLAIN: "",
}

_INDENT = "  "


@dataclass(frozen=True)
class StyledSegment:
    style: SegmentStyle
    text: str


def page_segments(document: PageDocument) -> list[StyledSegment]:
    """Flatten a document into styled segments, one output line per input line."""
    segments: list[StyledSegment] = []
    for line in document.lines:
        if isinstance(line, Title):
            segments.append(StyledSegment(SegmentStyle.TITLE, f"{_INDENT}{line.text}"))
        elif isinstance(line, Description):
            segments.append(StyledSegment(SegmentStyle.DESCRIPTION, f"{_INDENT}{line.text}"))
        elif isinstance(line, ExampleDescription):
            segments.append(StyledSegment(SegmentStyle.EXAMPLE, f"{_INDENT}- {line.text}"))
        elif isinstance(line, ExampleCommand):
            segments.append(StyledSegment(SegmentStyle.PLAIN, _INDENT * 2))
            for part in line.segments:
                style = SegmentStyle.PLACEHOLDER if part.placeholder else SegmentStyle.COMMAND
                segments.append(StyledSegment(style, part.text))
        elif isinstance(line, Passthrough):
            segments.append(StyledSegment(SegmentStyle.PLAIN, line.text))
        segments.append(StyledSegment(SegmentStyle.PLAIN, "\n"))
    return segments


def render_page(document: PageDocument) -> Text:
    """Render a document as rich Text using STYLE_TABLE."""
    text = Text()
    for segment in page_segments(document):
        text.append(segment.text, style=STYLE_TABLE[segment.style])
    return text
