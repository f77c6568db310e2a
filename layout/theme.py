"""
Typography, color system and spacing metrics shared by measurement and drawing.

Measurement and rendering must read every metric from the same Theme
instance, otherwise measured heights drift away from drawn heights.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from config.settings import FONT_DIR

logger = logging.getLogger(__name__)


# ── Font Registration ────────────────────────────────────────────────
@dataclass(frozen=True)
class FontSet:
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"
    italic: str = "Helvetica-Oblique"


def register_fonts(font_dir: Optional[str] = FONT_DIR) -> FontSet:
    """Register the Inter family when its TTF files are present, else use Helvetica."""
    if not font_dir:
        return FontSet()
    base = Path(font_dir)
    try:
        pdfmetrics.registerFont(TTFont("Inter-Regular", str(base / "Inter-Regular.ttf")))
        pdfmetrics.registerFont(TTFont("Inter-Bold", str(base / "Inter-Bold.ttf")))
        pdfmetrics.registerFont(TTFont("Inter-Italic", str(base / "Inter-Italic.ttf")))
        return FontSet(regular="Inter-Regular", bold="Inter-Bold", italic="Inter-Italic")
    except Exception as e:
        logger.debug(f"Inter fonts unavailable in {base}, falling back to Helvetica: {e}")
        return FontSet()


# ── Color System ─────────────────────────────────────────────────────
PRIMARY = colors.HexColor("#3b82f6")
TEXT_DARK = colors.HexColor("#111827")
TEXT = colors.HexColor("#374151")
TEXT_LIGHT = colors.HexColor("#6b7280")
BG_LIGHT = colors.HexColor("#f3f4f6")
SUMMARY_BG = colors.HexColor("#f9fafb")
SUMMARY_BORDER = colors.HexColor("#e5e7eb")
BORDER = colors.HexColor("#e5e7eb")

POSITIVE = colors.HexColor("#10b981")
WARNING = colors.HexColor("#f59e0b")
CRITICAL = colors.HexColor("#ef4444")

WARNING_BG = colors.HexColor("#fffbeb")
WARNING_BORDER = colors.HexColor("#fde68a")
WARNING_TEXT = colors.HexColor("#78350f")
CONCLUSIVE_BG = colors.HexColor("#dbeafe")
CONCLUSIVE_BORDER = colors.HexColor("#bfdbfe")
CARD_BG = colors.HexColor("#eff6ff")
CARD_BORDER = colors.HexColor("#bfdbfe")
RUN_CARD_BG = colors.HexColor("#f0f9ff")

LATENCY = colors.HexColor("#3b82f6")
THROUGHPUT = colors.HexColor("#16a34a")

STATE_COLORS: Dict[str, colors.Color] = {
    "neutral": TEXT_DARK,
    "positive": POSITIVE,
    "warning": WARNING,
    "critical": CRITICAL,
}

SEVERITY_COLORS: Dict[str, colors.Color] = {
    "Positive": POSITIVE,
    "Neutral": PRIMARY,
    "Warning": WARNING,
    "Critical": CRITICAL,
}

GRADE_COLORS: Dict[str, colors.Color] = {
    "A": colors.Color(22 / 255, 163 / 255, 74 / 255),
    "B": colors.Color(37 / 255, 99 / 255, 235 / 255),
    "C": colors.Color(234 / 255, 179 / 255, 8 / 255),
    "D": colors.Color(249 / 255, 115 / 255, 22 / 255),
    "F": colors.Color(220 / 255, 38 / 255, 38 / 255),
}
GRADE_FALLBACK = colors.Color(107 / 255, 114 / 255, 128 / 255)


def grade_color(grade: str) -> colors.Color:
    return GRADE_COLORS.get((grade or "").strip().upper()[:1], GRADE_FALLBACK)


@dataclass(frozen=True)
class GradeBand:
    grade: str
    score_range: str
    description: str
    criteria: str


GRADE_LEGEND = (
    GradeBand("A", "90-100", "Near-Perfect Reliability", ">99.5%"),
    GradeBand("B", "80-89", "Excellent Reliability", ">98%"),
    GradeBand("C", "70-79", "Good Reliability", ">95%"),
    GradeBand("D", "60-69", "Fair Reliability", ">90%"),
    GradeBand("F", "0-59", "Poor Reliability", "<90%"),
)


# ── Metrics ──────────────────────────────────────────────────────────
LINE_HEIGHT = 5.5 * mm


@dataclass(frozen=True)
class Theme:
    """Fonts and spacing metrics. Every length is in points."""

    fonts: FontSet = field(default_factory=FontSet)

    title_size: float = 20
    h1_size: float = 16
    h2_size: float = 12
    body_size: float = 10
    small_size: float = 8
    tiny_size: float = 6

    # Vertical advance of one wrapped body line
    body_leading: float = LINE_HEIGHT * 0.9
    small_leading: float = 3.6 * mm

    block_gap: float = LINE_HEIGHT
    panel_padding: float = 4 * mm
    panel_radius: float = 3 * mm
    quote_indent: float = 10 * mm
    text_indent: float = 4 * mm

    header_space_before: float = LINE_HEIGHT * 2
    header_rule_offset: float = 1.5 * mm
    header_space_after: float = LINE_HEIGHT * 1.5

    stat_card_height: float = 25 * mm
    stat_card_gap: float = 5 * mm

    score_card_height: float = 50 * mm
    score_legend_height: float = 16 * mm
    score_section_gap: float = 10 * mm

    table_font_size: float = 9
    table_leading: float = 4.2 * mm
    table_padding: float = 1.5 * mm

    image_caption_leading: float = LINE_HEIGHT

    def leading_for(self, size: float) -> float:
        """Line box height for a single line set at ``size``."""
        return size * 1.4

    def baseline(self, leading: float) -> float:
        """Offset of a text baseline from the top of its line box."""
        return leading * 0.72


DEFAULT_THEME = Theme()
