"""Render Markdown files to a PDF without going through OCR.

Useful for checking layout on OCR output saved earlier::

    digitize-render page1.md page2.md -o scan.pdf --font fonts/times.ttf

Several inputs are combined the same way the batch endpoint combines OCR
results, so the output matches what the server would produce.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import BOLD_FONT_PATH, FONT_PATH
from .logging_utils import get_logger
from .pdf_export import RenderError, render_markdowns_to_pdf

log = get_logger(__name__)


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8-sig", errors="replace")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Render OCR Markdown to a paginated PDF.")
    ap.add_argument("inputs", nargs="+", type=Path, help="Markdown files, combined in the given order")
    ap.add_argument("-o", "--output", type=Path, required=True, help="Output PDF path")
    ap.add_argument("--font", type=Path, default=FONT_PATH, help="Regular TTF font (default: DIGITIZE_FONT_PATH or core Times)")
    ap.add_argument("--bold-font", type=Path, default=BOLD_FONT_PATH, help="Bold TTF font (default: the regular font)")
    args = ap.parse_args(argv)

    try:
        markdowns = [read_text(p) for p in args.inputs]
        data = render_markdowns_to_pdf(markdowns, args.font, bold_font_path=args.bold_font)
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(data)
    except (RenderError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    log.info("Wrote %s (%d bytes)", args.output, len(data))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
