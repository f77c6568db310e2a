"""
RenderContext — page geometry, the write cursor, the Break Manager and the
display list a report is drawn into.

Renderers receive the context explicitly and draw through its primitives in
content coordinates (origin at the top-left corner of the content rectangle,
y growing downwards). Nothing is written to a PDF canvas here; the Output Sink
replays the finished pages later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Union

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics

from layout.blocks import RasterAsset
from layout.theme import DEFAULT_THEME, Theme

logger = logging.getLogger(__name__)

EPSILON = 1e-6


@dataclass(frozen=True)
class PageGeometry:
    width: float = A4[0]
    height: float = A4[1]
    margin_top: float = 15 * mm
    margin_bottom: float = 15 * mm
    margin_left: float = 15 * mm
    margin_right: float = 15 * mm

    @property
    def content_width(self) -> float:
        return self.width - self.margin_left - self.margin_right

    @property
    def content_height(self) -> float:
        return self.height - self.margin_top - self.margin_bottom


# ── Display list ─────────────────────────────────────────────────────
# All op coordinates are page coordinates measured from the top-left corner.

@dataclass(frozen=True)
class TextOp:
    x: float
    baseline: float
    text: str
    font: str
    size: float
    color: colors.Color
    align: str = "left"

    @property
    def top(self) -> float:
        ascent, _ = pdfmetrics.getAscentDescent(self.font, self.size)
        return self.baseline - ascent

    @property
    def bottom(self) -> float:
        _, descent = pdfmetrics.getAscentDescent(self.font, self.size)
        return self.baseline - descent


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[colors.Color] = None
    stroke: Optional[colors.Color] = None
    radius: float = 0.0
    line_width: float = 0.5

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: colors.Color
    line_width: float = 0.5

    @property
    def top(self) -> float:
        return min(self.y1, self.y2)

    @property
    def bottom(self) -> float:
        return max(self.y1, self.y2)


@dataclass(frozen=True)
class CircleOp:
    cx: float
    cy: float
    r: float
    fill: Optional[colors.Color] = None
    stroke: Optional[colors.Color] = None
    line_width: float = 0.5

    @property
    def top(self) -> float:
        return self.cy - self.r

    @property
    def bottom(self) -> float:
        return self.cy + self.r


@dataclass(frozen=True)
class ImageOp:
    x: float
    y: float
    width: float
    height: float
    asset: RasterAsset = field(repr=False)

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height


DrawOp = Union[TextOp, RectOp, LineOp, CircleOp, ImageOp]


@dataclass(frozen=True)
class Placement:
    """Vertical slot a committed block occupies, in content coordinates."""

    page_index: int
    top: float
    height: float
    kind: str

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class Page:
    index: int
    ops: Tuple[DrawOp, ...] = ()
    placements: Tuple[Placement, ...] = ()
    chrome: Tuple[DrawOp, ...] = ()

    def texts(self) -> List[str]:
        return [op.text for op in self.ops + self.chrome if isinstance(op, TextOp)]


@dataclass(frozen=True)
class Document:
    kind: str
    title: str
    geometry: PageGeometry
    pages: Tuple[Page, ...]
    created_at: datetime = field(default_factory=datetime.now)
    finalized: bool = False
    # Title segment of the download filename; None reuses ``title``
    file_title: Optional[str] = None

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass
class Cursor:
    page_index: int = 0
    y: float = 0.0


@dataclass
class _PageBuffer:
    index: int
    ops: List[DrawOp] = field(default_factory=list)
    placements: List[Placement] = field(default_factory=list)


class RenderContext:
    """Explicit drawing state threaded through every renderer call."""

    def __init__(self, geometry: Optional[PageGeometry] = None, theme: Optional[Theme] = None):
        self.geometry = geometry or PageGeometry()
        self.theme = theme or DEFAULT_THEME
        self.cursor = Cursor()
        self._pages: List[_PageBuffer] = [_PageBuffer(0)]
        self._closed = False

    # ── geometry ─────────────────────────────────────────────────────
    @property
    def content_width(self) -> float:
        return self.geometry.content_width

    @property
    def content_height(self) -> float:
        return self.geometry.content_height

    @property
    def remaining(self) -> float:
        return self.content_height - self.cursor.y

    @property
    def page_count(self) -> int:
        return len(self._pages)

    # ── break manager ────────────────────────────────────────────────
    def ensure_space(self, height: float) -> bool:
        """Start a new page unless ``height`` fits below the cursor.

        Returns True when a page break happened. A block taller than a whole
        page is placed at the top of a fresh page and allowed to overflow.
        A page holding nothing but section headers never breaks, so a header
        is not stranded apart from the block it introduces.
        """
        if height <= 0:
            return False
        broke = False
        if (self.cursor.y > 0 and self.cursor.y + height > self.content_height + EPSILON
                and not self._holds_only_headers()):
            self.new_page()
            broke = True
        if self.cursor.y + height > self.content_height + EPSILON:
            logger.warning(
                f"Block of {height:.1f}pt at {self.cursor.y:.1f}pt exceeds page content height "
                f"{self.content_height:.1f}pt; it will overflow page {self.cursor.page_index + 1}"
            )
        return broke

    def _holds_only_headers(self) -> bool:
        placements = self._current.placements
        return bool(placements) and all(p.kind == "section-header" for p in placements)

    def new_page(self) -> None:
        self._check_open()
        self._pages.append(_PageBuffer(len(self._pages)))
        self.cursor = Cursor(page_index=len(self._pages) - 1, y=0.0)

    def commit(self, kind: str, height: float) -> None:
        """Record the slot just drawn and advance the cursor past it."""
        self._current.placements.append(
            Placement(self.cursor.page_index, self.cursor.y, height, kind)
        )
        self.cursor.y += height

    def skip(self, height: float) -> None:
        """Advance by trailing whitespace, never past the bottom of the page."""
        self.cursor.y = min(self.cursor.y + height, max(self.content_height, self.cursor.y))

    # ── drawing primitives (content coordinates) ─────────────────────
    def _px(self, x: float) -> float:
        return self.geometry.margin_left + x

    def _py(self, y: float) -> float:
        return self.geometry.margin_top + y

    @property
    def _current(self) -> _PageBuffer:
        return self._pages[self.cursor.page_index]

    def _emit(self, op: DrawOp) -> None:
        self._check_open()
        self._current.ops.append(op)

    def text(self, x: float, baseline: float, text: str, font: str, size: float,
             color: colors.Color, align: str = "left") -> None:
        if text:
            self._emit(TextOp(self._px(x), self._py(baseline), text, font, size, color, align))

    def rect(self, x: float, y: float, width: float, height: float,
             fill: Optional[colors.Color] = None, stroke: Optional[colors.Color] = None,
             radius: float = 0.0, line_width: float = 0.5) -> None:
        self._emit(RectOp(self._px(x), self._py(y), width, height, fill, stroke, radius, line_width))

    def line(self, x1: float, y1: float, x2: float, y2: float,
             color: colors.Color, line_width: float = 0.5) -> None:
        self._emit(LineOp(self._px(x1), self._py(y1), self._px(x2), self._py(y2), color, line_width))

    def circle(self, cx: float, cy: float, r: float, fill: Optional[colors.Color] = None,
               stroke: Optional[colors.Color] = None, line_width: float = 0.5) -> None:
        self._emit(CircleOp(self._px(cx), self._py(cy), r, fill, stroke, line_width))

    def image(self, x: float, y: float, width: float, height: float, asset: RasterAsset) -> None:
        self._emit(ImageOp(self._px(x), self._py(y), width, height, asset))

    # ── completion ───────────────────────────────────────────────────
    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("RenderContext already produced its Document")

    def finish(self, kind: str, title: str, file_title: Optional[str] = None) -> Document:
        """Freeze the pages into an immutable Document; the context is spent afterwards."""
        self._check_open()
        self._closed = True
        pages = tuple(
            Page(index=p.index, ops=tuple(p.ops), placements=tuple(p.placements))
            for p in self._pages
        )
        return Document(kind=kind, title=title, geometry=self.geometry, pages=pages,
                        file_title=file_title)
