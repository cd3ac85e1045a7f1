"""Placement of a single classified line onto the page.

``layout_line`` is a pure function of its inputs: it takes the cursor left by
the previous line and returns the commands for this line together with the
cursor for the next one. Text widths come from a :class:`GlyphMetrics`
provider; nothing here talks to the PDF library directly.

Coordinates are PDF points with the origin at the top-left corner and ``y``
growing downward. Text is drawn with its baseline at the cursor.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol, Union

from .markup import Blank, Header, LineKind, LinkLine, Plain

FONT_FAMILY = "times"
BODY_SIZE = 14

LINK_PAD_X = 2.5
LINK_RISE = 12.0
LINK_HEIGHT = 15.0


@dataclass(frozen=True)
class FontSpec:
    family: str
    style: str
    size: float


BODY_FONT = FontSpec(FONT_FAMILY, "", BODY_SIZE)


@dataclass(frozen=True)
class PageGeometry:
    page_width: float = 595.0
    page_height: float = 842.0
    top_margin: float = 40.0
    bottom_margin: float = 50.0
    margin_x: float = 30.0
    line_height: float = 20.0

    @property
    def max_width(self) -> float:
        return self.page_width - 2 * self.margin_x

    @property
    def bottom_limit(self) -> float:
        return self.page_height - self.bottom_margin

    def top_left(self) -> "Cursor":
        return Cursor(self.margin_x, self.top_margin)


@dataclass(frozen=True)
class Cursor:
    x: float
    y: float


@dataclass(frozen=True)
class SetFont:
    family: str
    style: str
    size: float

    @property
    def font(self) -> FontSpec:
        return FontSpec(self.family, self.style, self.size)


@dataclass(frozen=True)
class MoveCursor:
    x: float
    y: float


@dataclass(frozen=True)
class DrawText:
    text: str


@dataclass(frozen=True)
class AddLinkRegion:
    url: str
    x: float
    y: float
    w: float
    h: float


@dataclass(frozen=True)
class NewPage:
    pass


PlacementCommand = Union[SetFont, MoveCursor, DrawText, AddLinkRegion, NewPage]


class GlyphMetrics(Protocol):
    def measure(self, font: FontSpec, text: str) -> float: ...


def header_size(level: int) -> int:
    return max(12, 24 - 2 * level)


class _LineWriter:
    """Accumulates commands for one line and tracks the cursor while doing so."""

    def __init__(self, cursor: Cursor, geometry: PageGeometry, metrics: GlyphMetrics) -> None:
        self.cursor = cursor
        self.geometry = geometry
        self.metrics = metrics
        self.commands: list[PlacementCommand] = []

    def ensure_room(self) -> None:
        if self.cursor.y > self.geometry.bottom_limit:
            self.commands.append(NewPage())
            self.cursor = self.geometry.top_left()

    def width(self, text: str) -> float:
        return self.metrics.measure(BODY_FONT, text)

    def draw(self, text: str, x: float) -> None:
        self.commands.append(MoveCursor(x, self.cursor.y))
        self.commands.append(DrawText(text))
        self.cursor = replace(self.cursor, x=x)

    def advance(self, dy: float) -> None:
        self.cursor = Cursor(self.geometry.margin_x, self.cursor.y + dy)

    def header(self, line: Header) -> None:
        self.ensure_room()
        size = header_size(line.level)
        self.commands.append(SetFont(FONT_FAMILY, "B", size))
        self.draw(line.text, self.geometry.margin_x)
        self.advance(self.geometry.line_height * 1.5)
        self.commands.append(SetFont(BODY_FONT.family, BODY_FONT.style, BODY_FONT.size))

    def link_line(self, line: LinkLine) -> None:
        self.ensure_room()
        text = line.text
        x = self.geometry.margin_x
        y = self.cursor.y
        last = 0
        for span in line.spans:
            before = text[last : span.start]
            if before:
                self.draw(before, x)
                x += self.width(before)
            link_width = self.width(span.text)
            self.draw(span.text, x)
            self.commands.append(
                AddLinkRegion(span.url, x - LINK_PAD_X, y - LINK_RISE, link_width + 2 * LINK_PAD_X, LINK_HEIGHT)
            )
            x += link_width
            last = span.end
        if last < len(text):
            self.draw(text[last:], x)
        self.advance(self.geometry.line_height)

    def flush(self, text: str) -> None:
        self.ensure_room()
        self.draw(text, self.geometry.margin_x)
        self.advance(self.geometry.line_height)

    def plain(self, line: Plain) -> None:
        self.ensure_room()
        max_width = self.geometry.max_width
        if self.width(line.text) <= max_width:
            self.flush(line.text)
            return

        current = ""
        for word in line.text.split():
            candidate = f"{current} {word}" if current else word
            if self.width(candidate) > max_width:
                if current:
                    self.flush(current)
                current = word
            else:
                current = candidate
        if current:
            self.flush(current)


def layout_line(
    line: LineKind,
    cursor: Cursor,
    geometry: PageGeometry,
    metrics: GlyphMetrics,
) -> tuple[list[PlacementCommand], Cursor]:
    """Lay out one logical line starting at ``cursor``.

    Returns the placement commands in emission order and the cursor for the
    next line. Blank lines only move the cursor down by half a line and never
    trigger a page break; every other kind checks for overflow before its
    first draw, and wrapped paragraphs check again before each wrapped line.
    """
    writer = _LineWriter(cursor, geometry, metrics)
    if isinstance(line, Blank):
        writer.advance(geometry.line_height * 0.5)
    elif isinstance(line, Header):
        writer.header(line)
    elif isinstance(line, LinkLine):
        writer.link_line(line)
    elif isinstance(line, Plain):
        writer.plain(line)
    else:
        raise TypeError(f"Unknown line kind: {type(line).__name__}")
    return writer.commands, writer.cursor
