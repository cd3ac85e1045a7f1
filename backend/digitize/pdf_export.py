from __future__ import annotations

from pathlib import Path
from typing import Sequence

from fpdf import FPDF

from .layout import BODY_FONT, AddLinkRegion, DrawText, FontSpec, MoveCursor, PageGeometry, PlacementCommand, SetFont
from .logging_utils import get_logger
from .paginate import combine, render, split_lines

log = get_logger(__name__)

STAGE_FONT = "failed to add font"
STAGE_MEASURE = "failed to measure text"
STAGE_DRAW = "failed to draw text"
STAGE_OUTPUT = "failed to write output"

_CORE_FAMILY = "Times"
_CUSTOM_FAMILY = "DigitizeSerif"
_ASCII_REPLACEMENTS = {
    "\u00a0": " ",
    "\u2007": " ",
    "\u2009": " ",
    "\u200b": "",
    "\u2010": "-",
    "\u2011": "-",
    "\u2012": "-",
    "\u2013": "-",
    "\u2014": "--",
    "\u2015": "--",
    "\u2212": "-",
    "\u2026": "...",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": "\"",
    "\u201d": "\"",
    "\u2022": "*",
    "\u2190": "<-",
    "\u2192": "->",
    "\u2194": "<->",
    "\u21d2": "=>",
}


class RenderError(RuntimeError):
    def __init__(self, stage: str, cause: BaseException | str) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {cause}")


def _normalize_ascii(text: str) -> str:
    out = text
    for key, val in _ASCII_REPLACEMENTS.items():
        out = out.replace(key, val)
    return out


def _sanitize_pdf_text(text: str, *, allow_unicode: bool) -> str:
    if allow_unicode:
        return text
    cleaned = _normalize_ascii(text)
    return cleaned.encode("latin-1", "replace").decode("latin-1")


class FontBook:
    """Maps layout fonts onto what is registered with an :class:`FPDF` document.

    With no font file the built-in Times core font is used, which only covers
    latin-1; text is then folded to latin-1 before it is measured or drawn.
    With a TTF file, the regular face is also registered as bold unless a
    separate bold file is given.
    """

    def __init__(self, font_path: Path | str | None = None, bold_font_path: Path | str | None = None) -> None:
        if bold_font_path and not font_path:
            raise RenderError(STAGE_FONT, f"bold font {bold_font_path} given without a regular font")
        self.font_path = Path(font_path) if font_path else None
        self.bold_font_path = Path(bold_font_path) if bold_font_path else self.font_path
        self.allow_unicode = self.font_path is not None

    @property
    def family(self) -> str:
        return _CUSTOM_FAMILY if self.font_path else _CORE_FAMILY

    def register(self, pdf: FPDF) -> None:
        if not self.font_path:
            return
        try:
            pdf.add_font(_CUSTOM_FAMILY, style="", fname=str(self.font_path))
            pdf.add_font(_CUSTOM_FAMILY, style="B", fname=str(self.bold_font_path))
        except Exception as e:
            raise RenderError(STAGE_FONT, e) from e

    def apply(self, pdf: FPDF, font: FontSpec) -> None:
        pdf.set_font(self.family, font.style, font.size)

    def sanitize(self, text: str) -> str:
        return _sanitize_pdf_text(text, allow_unicode=self.allow_unicode)


class FpdfMetrics:
    """Text widths from fpdf2, measured on a private document."""

    def __init__(self, fonts: FontBook) -> None:
        self.fonts = fonts
        self._pdf = FPDF(orientation="P", unit="pt", format="A4")
        fonts.register(self._pdf)

    def measure(self, font: FontSpec, text: str) -> float:
        try:
            self.fonts.apply(self._pdf, font)
            return float(self._pdf.get_string_width(self.fonts.sanitize(text)))
        except Exception as e:
            raise RenderError(STAGE_MEASURE, e) from e


class FpdfSink:
    def __init__(self, fonts: FontBook) -> None:
        self.fonts = fonts
        self.pdf = FPDF(orientation="P", unit="pt", format="A4")
        self.pdf.set_auto_page_break(auto=False)
        fonts.register(self.pdf)
        self._font = BODY_FONT
        self._x = 0.0
        self._y = 0.0

    def new_page(self) -> None:
        try:
            self.pdf.add_page()
            # Text on the first page needs a font before the first SetFont arrives.
            self.fonts.apply(self.pdf, self._font)
        except Exception as e:
            raise RenderError(STAGE_DRAW, e) from e

    def execute(self, command: PlacementCommand) -> None:
        if isinstance(command, MoveCursor):
            self._x, self._y = command.x, command.y
            return
        if not isinstance(command, (SetFont, DrawText, AddLinkRegion)):
            raise TypeError(f"Unsupported placement command: {type(command).__name__}")
        try:
            if isinstance(command, SetFont):
                self._font = command.font
                self.fonts.apply(self.pdf, self._font)
            elif isinstance(command, DrawText):
                self.pdf.text(self._x, self._y, self.fonts.sanitize(command.text))
            else:
                self.pdf.link(command.x, command.y, command.w, command.h, command.url)
        except Exception as e:
            raise RenderError(STAGE_DRAW, e) from e

    @property
    def page_count(self) -> int:
        return self.pdf.page_no()

    def output(self) -> bytes:
        try:
            return bytes(self.pdf.output())
        except Exception as e:
            raise RenderError(STAGE_OUTPUT, e) from e


def render_markdown_to_pdf(
    markdown: str,
    font_path: Path | str | None = None,
    *,
    bold_font_path: Path | str | None = None,
    geometry: PageGeometry | None = None,
) -> bytes:
    geometry = geometry or PageGeometry()
    fonts = FontBook(font_path, bold_font_path)
    metrics = FpdfMetrics(fonts)
    sink = FpdfSink(fonts)
    document = split_lines(markdown)
    log.info("Rendering %d markdown lines to PDF", len(document))
    render(document, geometry, metrics, sink)
    data = sink.output()
    log.info("Rendered PDF: %d page(s), %d bytes", sink.page_count, len(data))
    return data


def render_markdowns_to_pdf(
    markdowns: Sequence[str],
    font_path: Path | str | None = None,
    *,
    bold_font_path: Path | str | None = None,
    geometry: PageGeometry | None = None,
) -> bytes:
    return render_markdown_to_pdf(
        combine(markdowns),
        font_path,
        bold_font_path=bold_font_path,
        geometry=geometry,
    )
