"""
OutputSink — stamps page chrome on a finished Document and emits the PDF.

Chrome (running header, footer label, "Page i of N") is added in one pass
after every section has been placed, so page numbers always reflect the final
page count. The display list is then replayed onto a reportlab canvas.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Optional

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from config.settings import BRAND_NAME, OUTPUT_DIR, REPORT_FOOTER_LABEL
from layout import theme as th
from layout.context import CircleOp, Document, ImageOp, LineOp, Page, RectOp, TextOp
from layout.exceptions import ReportBuildError
from layout.text import truncate_to_width

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

HEADER_TEXT_OFFSET = 8 * mm
HEADER_RULE_OFFSET = 5 * mm
FOOTER_TEXT_OFFSET = 5 * mm


@dataclass
class ReportArtifact:
    filename: str
    content: bytes = field(repr=False)
    page_count: int
    media_type: str = "application/pdf"


def sanitize_filename_part(text: str) -> str:
    """Whitespace → underscores; characters unsafe in filenames are dropped."""
    text = re.sub(r"\s", "_", (text or "").strip())
    return _UNSAFE.sub("", text).strip("._")


def build_filename(kind: str, title: Optional[str], created_at: datetime, ext: str = "pdf") -> str:
    parts = [sanitize_filename_part(kind)]
    title_part = sanitize_filename_part(title or "")
    if title_part:
        parts.append(title_part)
    parts.append(created_at.strftime("%Y-%m-%d"))
    return "_".join(parts) + f".{ext}"


class OutputSink:

    def __init__(self, footer_label: str = REPORT_FOOTER_LABEL, theme: th.Theme = th.DEFAULT_THEME):
        self.footer_label = footer_label
        self.theme = theme

    # ── chrome ───────────────────────────────────────────────────────
    def finalize(self, document: Document) -> Document:
        """Return a copy of ``document`` with header/footer chrome on every page."""
        if document.finalized:
            return document
        total = document.page_count
        pages = tuple(
            replace(page, chrome=self._chrome(document, page, total))
            for page in document.pages
        )
        return replace(document, pages=pages, finalized=True)

    def _chrome(self, document: Document, page: Page, total: int):
        g, t = document.geometry, self.theme
        font, size = t.fonts.regular, t.small_size
        left, right = g.margin_left, g.width - g.margin_right
        ops = []
        if page.index > 0:
            header = truncate_to_width(document.title, font, size, right - left)
            ops.append(TextOp(left, g.margin_top - HEADER_TEXT_OFFSET, header, font, size, th.TEXT_LIGHT))
            ops.append(LineOp(left, g.margin_top - HEADER_RULE_OFFSET, right,
                              g.margin_top - HEADER_RULE_OFFSET, th.BORDER))
        footer_y = g.height - g.margin_bottom
        ops.append(LineOp(left, footer_y, right, footer_y, th.BORDER))
        if self.footer_label:
            ops.append(TextOp(left, footer_y + FOOTER_TEXT_OFFSET, self.footer_label, font, size, th.TEXT_LIGHT))
        ops.append(TextOp(right, footer_y + FOOTER_TEXT_OFFSET, f"Page {page.index + 1} of {total}",
                          font, size, th.TEXT_LIGHT, align="right"))
        return tuple(ops)

    # ── PDF emission ─────────────────────────────────────────────────
    def render(self, document: Document) -> bytes:
        g = document.geometry
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=(g.width, g.height))
        c.setTitle(document.title)
        c.setAuthor(BRAND_NAME)
        for page in document.pages:
            for op in page.ops + page.chrome:
                self._draw(c, op, g.height)
            c.showPage()
        c.save()
        return buffer.getvalue()

    @staticmethod
    def _draw(c: canvas.Canvas, op, page_height: float) -> None:
        # Display-list y grows downwards; reportlab's origin is bottom-left
        if isinstance(op, TextOp):
            c.setFont(op.font, op.size)
            c.setFillColor(op.color)
            y = page_height - op.baseline
            if op.align == "right":
                c.drawRightString(op.x, y, op.text)
            elif op.align == "center":
                c.drawCentredString(op.x, y, op.text)
            else:
                c.drawString(op.x, y, op.text)
        elif isinstance(op, RectOp):
            y = page_height - op.y - op.height
            if op.fill is not None:
                c.setFillColor(op.fill)
            if op.stroke is not None:
                c.setStrokeColor(op.stroke)
                c.setLineWidth(op.line_width)
            stroke, fill = int(op.stroke is not None), int(op.fill is not None)
            if op.radius > 0:
                c.roundRect(op.x, y, op.width, op.height, op.radius, stroke=stroke, fill=fill)
            else:
                c.rect(op.x, y, op.width, op.height, stroke=stroke, fill=fill)
        elif isinstance(op, LineOp):
            c.setStrokeColor(op.color)
            c.setLineWidth(op.line_width)
            c.line(op.x1, page_height - op.y1, op.x2, page_height - op.y2)
        elif isinstance(op, CircleOp):
            if op.fill is not None:
                c.setFillColor(op.fill)
            if op.stroke is not None:
                c.setStrokeColor(op.stroke)
                c.setLineWidth(op.line_width)
            c.circle(op.cx, page_height - op.cy, op.r,
                     stroke=int(op.stroke is not None), fill=int(op.fill is not None))
        elif isinstance(op, ImageOp):
            c.drawImage(ImageReader(BytesIO(op.asset.data)), op.x, page_height - op.y - op.height,
                        width=op.width, height=op.height, mask="auto")
        else:
            raise TypeError(f"Unknown draw op: {type(op).__name__}")

    def emit(self, document: Document) -> ReportArtifact:
        document = self.finalize(document)
        try:
            content = self.render(document)
        except Exception as e:
            raise ReportBuildError(f"PDF emission failed: {e}") from e
        filename = build_filename(
            document.kind,
            document.file_title if document.file_title is not None else document.title,
            document.created_at,
        )
        logger.info(f"Emitted {filename} ({document.page_count} pages, {len(content):,} bytes)")
        return ReportArtifact(filename=filename, content=content, page_count=document.page_count)

    def save(self, artifact: ReportArtifact, directory: Optional[Path] = None) -> Path:
        directory = Path(directory or OUTPUT_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / artifact.filename
        path.write_bytes(artifact.content)
        logger.info(f"Saved report to {path}")
        return path
