from __future__ import annotations

import pytest

from digitize.layout import AddLinkRegion, Cursor, DrawText, MoveCursor, NewPage, PageGeometry, SetFont
from digitize.paginate import combine, render, split_lines

from conftest import CHAR_WIDTH, FixedWidthMetrics, RecordingSink

GEOMETRY = PageGeometry()


def _draw_ys(events) -> list[float]:
    ys = []
    for prev, cur in zip(events, events[1:]):
        if isinstance(cur, DrawText) and isinstance(prev, MoveCursor):
            ys.append(prev.y)
    return ys


def test_split_lines_trims_each_line() -> None:
    assert split_lines("  a \r\n\n\tb\t") == ("a", "", "b")


def test_render_opens_first_page(metrics, sink) -> None:
    cursor = render(("hello",), GEOMETRY, metrics, sink)
    assert sink.events == [NewPage(), MoveCursor(30, 40), DrawText("hello")]
    assert cursor == Cursor(30, 60)


def test_empty_document_is_one_empty_page(metrics, sink) -> None:
    render(split_lines(""), GEOMETRY, metrics, sink)
    assert sink.events == [NewPage()]


def test_blank_line_spacing(metrics, sink) -> None:
    render(("a", "", "b"), GEOMETRY, metrics, sink)
    ys = _draw_ys(sink.events)
    assert ys[1] - ys[0] == GEOMETRY.line_height + 0.5 * GEOMETRY.line_height
    assert sink.page_count == 1


def test_blank_lines_alone_never_add_pages(metrics, sink) -> None:
    render(("",) * 500, GEOMETRY, metrics, sink)
    assert sink.page_count == 1


def test_page_break_after_the_last_line_that_fits(metrics, sink) -> None:
    # Lines sit at 40, 60, ... ; the first y past 842 - 50 = 792 is 800, the 39th line.
    fits = int((GEOMETRY.bottom_limit - GEOMETRY.top_margin) // GEOMETRY.line_height) + 1
    assert fits == 38
    render(tuple(f"line {i}" for i in range(fits + 1)), GEOMETRY, metrics, sink)
    assert sink.page_count == 2
    break_at = sink.events.index(NewPage(), 1)
    assert sink.events[break_at - 1] == DrawText(f"line {fits - 1}")
    assert sink.events[break_at + 1] == MoveCursor(GEOMETRY.margin_x, GEOMETRY.top_margin)
    assert sink.events[break_at + 2] == DrawText(f"line {fits}")


def test_no_trailing_empty_page(metrics, sink) -> None:
    fits = 38
    render(tuple(f"line {i}" for i in range(fits)), GEOMETRY, metrics, sink)
    assert sink.page_count == 1


def test_small_page_geometry(metrics, sink) -> None:
    geometry = PageGeometry(page_height=200, top_margin=20, bottom_margin=20, line_height=50)
    render(("a", "b", "c", "d", "e"), geometry, metrics, sink)
    # y: 20, 70, 120, 170 fit under 180; 220 does not.
    assert sink.page_count == 2
    assert _draw_ys(sink.events) == [20, 70, 120, 170, 20]


def test_combine_joins_with_blank_line() -> None:
    assert combine(["A", "B"]) == "A\n\nB"
    assert combine([]) == ""


def test_combined_render_matches_single_document() -> None:
    combined, single = RecordingSink(), RecordingSink()
    render(split_lines(combine(["A", "B"])), GEOMETRY, FixedWidthMetrics(), combined)
    render(split_lines("A\n\nB"), GEOMETRY, FixedWidthMetrics(), single)
    assert combined.events == single.events
    assert combined.page_count == 1


def test_end_to_end_scenario(metrics, sink) -> None:
    render(split_lines("# Title\n\nHello world [link](http://example.com)"), GEOMETRY, metrics, sink)
    y_link = 40 + 1.5 * 20 + 0.5 * 20
    link_x = 30 + len("Hello world ") * CHAR_WIDTH
    assert sink.events == [
        NewPage(),
        SetFont("times", "B", 22),
        MoveCursor(30, 40),
        DrawText("Title"),
        SetFont("times", "", 14),
        MoveCursor(30, y_link),
        DrawText("Hello world "),
        MoveCursor(link_x, y_link),
        DrawText("link"),
        AddLinkRegion("http://example.com", link_x - 2.5, y_link - 12, 4 * CHAR_WIDTH + 5, 15),
    ]


def test_link_regions_stay_on_their_page(metrics, sink) -> None:
    lines = tuple(f"row {i} [go](http://x/{i})" for i in range(100))
    render(lines, GEOMETRY, metrics, sink)
    for event in sink.events:
        if isinstance(event, AddLinkRegion):
            assert event.y >= GEOMETRY.top_margin - 12
            assert event.y + event.h <= GEOMETRY.page_height
            assert event.x + event.w <= GEOMETRY.page_width


class _Boom(RuntimeError):
    pass


def test_metrics_failure_aborts_render(sink) -> None:
    class FailingMetrics:
        def measure(self, font, text):
            raise _Boom("no glyphs")

    with pytest.raises(_Boom):
        render(("first", "second"), GEOMETRY, FailingMetrics(), sink)
    assert not any(isinstance(e, DrawText) for e in sink.events)


def test_sink_failure_aborts_render(metrics) -> None:
    class FailingSink(RecordingSink):
        def execute(self, command):
            if isinstance(command, DrawText) and command.text == "second":
                raise _Boom("disk full")
            super().execute(command)

    failing = FailingSink()
    with pytest.raises(_Boom):
        render(("first", "second", "third"), GEOMETRY, metrics, failing)
    assert DrawText("third") not in failing.events
