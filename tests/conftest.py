from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make `digitize` importable without an install (the package lives under backend/).
_BACKEND = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND) not in sys.path:
    sys.path.insert(0, str(_BACKEND))

from digitize.layout import FontSpec, NewPage, PlacementCommand  # noqa: E402

CHAR_WIDTH = 7.0


class FixedWidthMetrics:
    """Every character is CHAR_WIDTH points wide at body size, scaled by font size."""

    def __init__(self) -> None:
        self.calls: list[tuple[FontSpec, str]] = []

    def measure(self, font: FontSpec, text: str) -> float:
        self.calls.append((font, text))
        return len(text) * CHAR_WIDTH * font.size / 14.0


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[PlacementCommand] = []

    def new_page(self) -> None:
        self.events.append(NewPage())

    def execute(self, command: PlacementCommand) -> None:
        self.events.append(command)

    @property
    def page_count(self) -> int:
        return sum(1 for e in self.events if isinstance(e, NewPage))


@pytest.fixture
def metrics() -> FixedWidthMetrics:
    return FixedWidthMetrics()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
