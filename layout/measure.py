"""
Measurement functions — one per block kind.

Each ``measure_*`` computes the vertical space a block will consume when drawn
at the given content width, without drawing anything. The ``*_metrics``
helpers expose the intermediate geometry (wrapped spans, paddings, column
widths) and are consumed by the renderers too, so a renderer can never wrap
text differently from its measurement.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from reportlab.lib.units import mm

from layout.blocks import (
    ImageBlock,
    RunCardRow,
    ScoreCard,
    SectionHeader,
    StatCardRow,
    SummaryBlock,
    Table,
    TextBlock,
    TitleBlock,
)
from layout.text import RichText, truncate_to_width, wrap_lines, wrap_rich
from layout.theme import DEFAULT_THEME, Theme

Span = Tuple[int, int]


# ── Section header & title ───────────────────────────────────────────

def measure_section_header(block: SectionHeader, width: float, theme: Theme = DEFAULT_THEME) -> float:
    if not block.text.strip():
        return 0.0
    return theme.header_space_before + theme.leading_for(theme.h1_size) + theme.header_space_after


TITLE_TOP_PAD = 10 * mm


def measure_title(block: TitleBlock, width: float, theme: Theme = DEFAULT_THEME) -> float:
    if not block.title.strip():
        return 0.0
    height = TITLE_TOP_PAD + theme.leading_for(theme.title_size)
    if block.subtitle:
        height += theme.leading_for(theme.h2_size)
    if block.generated_line:
        height += theme.leading_for(theme.small_size)
    return height + theme.block_gap * 2


# ── Text block ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class TextMetrics:
    rich: RichText
    spans: List[Span]
    font: str
    left: float
    wrap_width: float
    padding: float
    title_height: float
    panel_height: float
    height: float


def text_block_metrics(block: TextBlock, width: float, theme: Theme = DEFAULT_THEME) -> TextMetrics:
    left = theme.quote_indent if block.quote else theme.text_indent
    wrap_width = width - left - theme.text_indent
    font = theme.fonts.italic if block.italic else theme.fonts.regular
    rich, spans = wrap_rich(block.text, font, theme.body_size, wrap_width)
    if not spans:
        return TextMetrics(rich, [], font, left, wrap_width, 0.0, 0.0, 0.0, 0.0)
    padding = theme.panel_padding if block.background is not None else 0.0
    title_height = theme.body_leading if block.title else 0.0
    panel_height = padding * 2 + title_height + len(spans) * theme.body_leading
    gap = theme.block_gap if block.gap is None else block.gap
    return TextMetrics(rich, spans, font, left, wrap_width, padding, title_height,
                       panel_height, panel_height + gap)


def measure_text(block: TextBlock, width: float, theme: Theme = DEFAULT_THEME) -> float:
    return text_block_metrics(block, width, theme).height


# ── Stat cards ───────────────────────────────────────────────────────

def card_width(width: float, columns: int, gap: float) -> float:
    return (width - gap * (columns - 1)) / columns


def measure_stat_cards(block: StatCardRow, width: float, theme: Theme = DEFAULT_THEME) -> float:
    if not block.cards:
        return 0.0
    return theme.stat_card_height + theme.stat_card_gap


RUN_CARD_HEIGHT = 85 * mm


def measure_run_cards(block: RunCardRow, width: float, theme: Theme = DEFAULT_THEME) -> float:
    if not block.cards:
        return 0.0
    return RUN_CARD_HEIGHT + theme.stat_card_gap


# ── Structured summary ───────────────────────────────────────────────

DIVIDER_ABOVE = 2 * mm
DIVIDER_BELOW = 3 * mm


@dataclass(frozen=True)
class SummaryMetrics:
    analysis: Tuple[RichText, List[Span]]
    suggestion: Tuple[RichText, List[Span]]
    wrap_width: float
    box_height: float
    height: float


def summary_metrics(block: SummaryBlock, width: float, theme: Theme = DEFAULT_THEME) -> SummaryMetrics:
    wrap_width = width - theme.text_indent * 2
    font = theme.fonts.regular
    empty = wrap_rich("", font, theme.body_size, wrap_width)
    summary = block.summary
    if summary is None or not summary.analysis.strip():
        return SummaryMetrics(empty, empty, wrap_width, 0.0, 0.0)
    analysis = wrap_rich(f"**Analysis:** {summary.analysis}", font, theme.body_size, wrap_width)
    suggestion = empty
    if summary.suggestion.strip():
        suggestion = wrap_rich(f"**Suggestion:** {summary.suggestion}", font, theme.body_size, wrap_width)

    box = theme.panel_padding * 2 + theme.body_leading  # padding + title line
    box += len(analysis[1]) * theme.body_leading
    if suggestion[1]:
        box += DIVIDER_ABOVE + DIVIDER_BELOW + len(suggestion[1]) * theme.body_leading
    return SummaryMetrics(analysis, suggestion, wrap_width, box, box + theme.block_gap)


def measure_summary(block: SummaryBlock, width: float, theme: Theme = DEFAULT_THEME) -> float:
    return summary_metrics(block, width, theme).height


# ── Score card ───────────────────────────────────────────────────────

SCORE_CIRCLE_X = 20 * mm
SCORE_CIRCLE_R = 12 * mm
SCORE_TEXT_X = SCORE_CIRCLE_X + SCORE_CIRCLE_R + 15 * mm
SCORE_RATIONALE_X = SCORE_TEXT_X + 60 * mm
SCORE_PANEL_INSET = 5 * mm
SCORE_RATIONALE_PAD = 4 * mm
SCORE_RATIONALE_TEXT_TOP = 9 * mm


@dataclass(frozen=True)
class ScoreCardMetrics:
    rationale_x: float
    rationale_width: float
    panel_height: float
    lines: List[str]
    height: float


def score_card_metrics(block: ScoreCard, width: float, theme: Theme = DEFAULT_THEME) -> ScoreCardMetrics:
    rationale_width = max(width - SCORE_RATIONALE_X - SCORE_PANEL_INSET, 20 * mm)
    panel_height = theme.score_card_height - 2 * SCORE_PANEL_INSET
    if not (block.grade or "").strip():
        return ScoreCardMetrics(SCORE_RATIONALE_X, rationale_width, panel_height, [], 0.0)

    text_width = rationale_width - 2 * SCORE_RATIONALE_PAD
    font = theme.fonts.regular
    lines = wrap_lines(block.rationale, font, theme.small_size, text_width)
    available = panel_height - SCORE_RATIONALE_TEXT_TOP - SCORE_RATIONALE_PAD / 2
    max_lines = max(int(available // theme.small_leading), 1)
    if len(lines) > max_lines:
        lines = lines[:max_lines]
        lines[-1] = truncate_to_width(lines[-1], font, theme.small_size, text_width)

    height = theme.score_card_height + theme.score_section_gap
    if block.show_legend:
        height += theme.score_legend_height + theme.score_section_gap
    return ScoreCardMetrics(SCORE_RATIONALE_X, rationale_width, panel_height, lines, height)


def measure_score_card(block: ScoreCard, width: float, theme: Theme = DEFAULT_THEME) -> float:
    return score_card_metrics(block, width, theme).height


# ── Table ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TableMetrics:
    col_widths: List[float]
    header_lines: List[List[str]]
    header_height: float
    row_lines: List[List[List[str]]]
    row_heights: List[float]
    height: float


def column_widths(block: Table, width: float) -> List[float]:
    count = len(block.columns)
    weights = list(block.weights) if block.weights and len(block.weights) == count else [1.0] * count
    total = sum(weights) or 1.0
    return [width * w / total for w in weights]


def _row_lines(cells: Sequence[str], widths: Sequence[float], font: str,
               theme: Theme) -> Tuple[List[List[str]], float]:
    lines = []
    tallest = 1
    for idx, cell_width in enumerate(widths):
        text = str(cells[idx]) if idx < len(cells) and cells[idx] is not None else ""
        wrapped = wrap_lines(text, font, theme.table_font_size, cell_width - 2 * theme.table_padding)
        lines.append(wrapped)
        tallest = max(tallest, len(wrapped))
    return lines, tallest * theme.table_leading + 2 * theme.table_padding


def table_metrics(block: Table, width: float, theme: Theme = DEFAULT_THEME) -> TableMetrics:
    if not block.columns or not block.rows:
        return TableMetrics([], [], 0.0, [], [], 0.0)
    widths = column_widths(block, width)
    header_lines, header_height = _row_lines(block.columns, widths, theme.fonts.bold, theme)
    row_lines: List[List[List[str]]] = []
    row_heights: List[float] = []
    for row in block.rows:
        lines, height = _row_lines(row, widths, theme.fonts.regular, theme)
        row_lines.append(lines)
        row_heights.append(height)
    total = header_height + sum(row_heights) + theme.block_gap
    return TableMetrics(widths, header_lines, header_height, row_lines, row_heights, total)


def measure_table(block: Table, width: float, theme: Theme = DEFAULT_THEME) -> float:
    return table_metrics(block, width, theme).height


# ── Image ────────────────────────────────────────────────────────────

def image_height(block: ImageBlock, width: float) -> float:
    asset = block.asset
    if asset is None or not asset.is_valid:
        return 0.0
    return asset.height * width / asset.width


def measure_image(block: ImageBlock, width: float, theme: Theme = DEFAULT_THEME) -> float:
    height = image_height(block, width)
    if height <= 0:
        return 0.0
    if block.caption:
        height += theme.image_caption_leading
    return height + theme.block_gap


# ── Dispatch ─────────────────────────────────────────────────────────

MEASURES: Dict[type, Callable[..., float]] = {
    SectionHeader: measure_section_header,
    TitleBlock: measure_title,
    TextBlock: measure_text,
    StatCardRow: measure_stat_cards,
    RunCardRow: measure_run_cards,
    SummaryBlock: measure_summary,
    ScoreCard: measure_score_card,
    Table: measure_table,
    ImageBlock: measure_image,
}


def measure(block, width: float, theme: Theme = DEFAULT_THEME) -> float:
    """Rendered height of ``block`` at ``width``; zero means the block is omitted."""
    try:
        fn = MEASURES[type(block)]
    except KeyError:
        raise TypeError(f"Unknown block kind: {type(block).__name__}") from None
    return fn(block, width, theme)


def measure_lead(block, width: float, theme: Theme = DEFAULT_THEME) -> float:
    """Height of the part of a block that must stay with a preceding header.

    Tables break between rows, so only the header row and first body row
    have to follow a section header; every other block is atomic.
    """
    if isinstance(block, Table):
        metrics = table_metrics(block, width, theme)
        if not metrics.row_heights:
            return 0.0
        return metrics.header_height + metrics.row_heights[0]
    return measure(block, width, theme)
