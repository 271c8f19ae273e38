"""Page parser.

Single-pass, line-oriented classification of tldr-style page markdown.
Each line becomes one tagged variant (see ``shortman.models.page``):

    # tar                         -> Title
    > Archiving utility.          -> Description
    - Create an archive:          -> ExampleDescription
    `tar cf {{target.tar}} {{file}}` -> ExampleCommand
    anything else, blank lines    -> Passthrough

Parsing is total: any input, including binary garbage, yields a
PageDocument. Lines that do not fit a category degrade to Passthrough.
"""

from __future__ import annotations

import re

from shortman.models.page import (
    CommandSegment,
    Description,
    Example,
    ExampleCommand,
    ExampleDescription,
    PageDocument,
    PageLine,
    Passthrough,
    Title,
)

_PLACEHOLDER_RE = re.compile(r"\{\{(.*?)\}\}")


def parse_page(raw: bytes | str) -> PageDocument:
    """Parse page markup into a PageDocument. Never raises."""
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    document = PageDocument()
    current: Example | None = None

    raw_lines = text.split("\n")
    if raw_lines[-1] == "":
        raw_lines.pop()

    for raw_line in raw_lines:
        line = classify_line(raw_line.removesuffix("\r"))
        document.lines.append(line)

        if isinstance(line, Title):
            if document.title is None:
                document.title = line.text
        elif isinstance(line, Description):
            document.description.append(line.text)
        elif isinstance(line, ExampleDescription):
            current = Example(description=line.text)
            document.examples.append(current)
        elif isinstance(line, ExampleCommand):
            if current is None or current.command is not None:
                # Orphan command: give it an example of its own.
                current = Example(description="")
                document.examples.append(current)
            current.command = line

    return document


def classify_line(line: str) -> PageLine:
    """Classify one line by its leading marker."""
    stripped = line.strip()
    if not stripped:
        return Passthrough(line)

    marker, body = stripped[0], stripped[1:].strip()
    if marker == "#" and body:
        return Title(body.lstrip("#").strip())
    if marker == ">" and body:
        return Description(body)
    if marker == "-" and body:
        return ExampleDescription(body)
    if marker == "`":
        command = stripped.strip("`").strip()
        if command:
            return ExampleCommand(parse_command(command))
    return Passthrough(line)


def parse_command(command: str) -> tuple[CommandSegment, ...]:
    """Split a command template into literal and ``{{placeholder}}`` segments.

    Unterminated ``{{`` stays literal.
    """
    segments: list[CommandSegment] = []
    position = 0
    for match in _PLACEHOLDER_RE.finditer(command):
        if match.start() > position:
            segments.append(CommandSegment(command[position : match.start()]))
        if match.group(1):
            segments.append(CommandSegment(match.group(1), placeholder=True))
        else:
            segments.append(CommandSegment(match.group(0)))
        position = match.end()
    if position < len(command):
        segments.append(CommandSegment(command[position:]))
    return tuple(segments)
