"""Line classification for OCR Markdown.

Only two constructs are recognised: ATX headers (``# Title`` through
``###### Title``, separated from the text by ASCII whitespace) and inline
links (``[label](url)``). Everything else is plain text. A header line is
never scanned for links, so link markup inside a header stays literal.

Link matching is minimal on both halves: the label runs up to the first
``]`` and the URL up to the first ``)``. A URL that itself contains ``)`` is
therefore cut short; this is a known limitation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$", re.ASCII)
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


@dataclass(frozen=True)
class Blank:
    pass


@dataclass(frozen=True)
class Header:
    level: int
    text: str


@dataclass(frozen=True)
class Plain:
    text: str


@dataclass(frozen=True)
class LinkSpan:
    text: str
    url: str
    start: int
    end: int


@dataclass(frozen=True)
class LinkLine:
    text: str
    spans: tuple[LinkSpan, ...]


LineKind = Union[Blank, Header, Plain, LinkLine]


def find_links(line: str) -> tuple[LinkSpan, ...]:
    return tuple(
        LinkSpan(text=m.group(1), url=m.group(2), start=m.start(), end=m.end())
        for m in _LINK_RE.finditer(line)
    )


def classify(raw_line: str) -> LineKind:
    line = (raw_line or "").strip()
    if not line:
        return Blank()

    match = _HEADING_RE.match(line)
    if match:
        return Header(level=len(match.group(1)), text=match.group(2))

    spans = find_links(line)
    if spans:
        return LinkLine(text=line, spans=spans)
    return Plain(text=line)
