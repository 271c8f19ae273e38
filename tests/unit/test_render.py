"""Unit tests for styled page rendering."""

from __future__ import annotations

from shortman.parser import parse_page
from shortman.render import (
    STYLE_TABLE,
    SegmentStyle,
    page_segments,
    render_page,
)


class TestPageSegments:
    def test_every_style_has_a_table_entry(self) -> None:
        assert set(STYLE_TABLE) == set(SegmentStyle)

    def test_placeholders_distinct_from_literal_command_text(self, sample_page: str) -> None:
        segments = page_segments(parse_page(sample_page))
        placeholders = [s.text for s in segments if s.style is SegmentStyle.PLACEHOLDER]
        literals = [s.text for s in segments if s.style is SegmentStyle.COMMAND]

        assert placeholders == ["target.tar", "file1", "file2", "source.tar", "directory"]
        assert "tar cf " in literals
        assert STYLE_TABLE[SegmentStyle.PLACEHOLDER] != STYLE_TABLE[SegmentStyle.COMMAND]

    def test_title_and_examples_styled(self, sample_page: str) -> None:
        segments = page_segments(parse_page(sample_page))
        titles = [s.text.strip() for s in segments if s.style is SegmentStyle.TITLE]
        examples = [s.text.strip() for s in segments if s.style is SegmentStyle.EXAMPLE]

        assert titles == ["tar"]
        assert examples == [
            "- Create an archive from files:",
            "- Extract an archive in a target directory:",
        ]

    def test_one_output_line_per_input_line(self, sample_page: str) -> None:
        segments = page_segments(parse_page(sample_page))
        newlines = sum(1 for s in segments if s.text == "\n")
        assert newlines == len(sample_page.splitlines())

    def test_passthrough_kept_verbatim(self) -> None:
        segments = page_segments(parse_page("some free text"))
        assert segments[0].style is SegmentStyle.PLAIN
        assert segments[0].text == "some free text"


class TestRenderPage:
    def test_plain_text_contains_command(self, sample_page: str) -> None:
        text = render_page(parse_page(sample_page))
        assert "tar cf target.tar file1 file2" in text.plain

    def test_placeholder_spans_use_placeholder_style(self) -> None:
        text = render_page(parse_page("`cp {{src}} {{dst}}`"))
        placeholder_style = STYLE_TABLE[SegmentStyle.PLACEHOLDER]
        styled = {
            text.plain[span.start : span.end]
            for span in text.spans
            if span.style == placeholder_style
        }
        assert styled == {"src", "dst"}

    def test_garbage_renders(self) -> None:
        text = render_page(parse_page(b"\x00\xff\xfe garbage \x1b[31m"))
        assert isinstance(text.plain, str)

    def test_empty_document_renders_empty(self) -> None:
        assert render_page(parse_page(b"")).plain == ""
