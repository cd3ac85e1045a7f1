from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from .layout import Cursor, GlyphMetrics, NewPage, PageGeometry, PlacementCommand, layout_line
from .logging_utils import get_logger
from .markup import classify

log = get_logger(__name__)

DOCUMENT_SEPARATOR = "\n\n"


class PageSink(Protocol):
    def new_page(self) -> None: ...

    def execute(self, command: PlacementCommand) -> None: ...


def split_lines(markdown: str) -> tuple[str, ...]:
    text = str(markdown or "").replace("\r\n", "\n")
    return tuple(line.strip() for line in text.split("\n"))


def combine(markdowns: Iterable[str]) -> str:
    """Join several Markdown sources so each boundary reads as one blank line."""
    return DOCUMENT_SEPARATOR.join(str(md or "") for md in markdowns)


def render(
    document: Sequence[str],
    geometry: PageGeometry,
    metrics: GlyphMetrics,
    sink: PageSink,
) -> Cursor:
    """Lay out every line of ``document`` onto ``sink``, paging as needed.

    The sink gets one ``new_page`` up front and one more per page break.
    Errors from the metrics provider or the sink propagate unchanged; the
    sink is left in whatever state it reached and should be discarded.
    """
    sink.new_page()
    cursor = geometry.top_left()
    pages = 1
    for raw in document:
        commands, cursor = layout_line(classify(raw), cursor, geometry, metrics)
        for command in commands:
            if isinstance(command, NewPage):
                sink.new_page()
                pages += 1
            else:
                sink.execute(command)
    log.debug("Laid out %d lines over %d page(s)", len(document), pages)
    return cursor
