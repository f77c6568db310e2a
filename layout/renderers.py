"""
Block renderers — one drawing function per block kind.

Every renderer follows the same contract: take its geometry from the matching
``layout.measure`` helper, reserve that height once through
``RenderContext.ensure_space``, draw relative to the cursor, then commit the
slot. Tables are the only block that reserve row by row, since a table may
break between rows but never inside one.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth

from layout import theme as th
from layout.blocks import (
    ImageBlock,
    RunCard,
    RunCardRow,
    ScoreCard,
    SectionHeader,
    StatCard,
    StatCardRow,
    SummaryBlock,
    Table,
    TextBlock,
    TitleBlock,
)
from layout.context import RenderContext
from layout.measure import (
    DIVIDER_ABOVE,
    DIVIDER_BELOW,
    RUN_CARD_HEIGHT,
    SCORE_CIRCLE_R,
    SCORE_CIRCLE_X,
    SCORE_PANEL_INSET,
    SCORE_RATIONALE_PAD,
    SCORE_RATIONALE_TEXT_TOP,
    SCORE_TEXT_X,
    TITLE_TOP_PAD,
    card_width,
    image_height,
    measure_image,
    measure_run_cards,
    measure_section_header,
    measure_stat_cards,
    measure_title,
    score_card_metrics,
    summary_metrics,
    table_metrics,
    text_block_metrics,
)
from layout.text import RichText, truncate_to_width

Span = Tuple[int, int]


# ── Helpers ──────────────────────────────────────────────────────────

def _fit(text: str, font: str, size: float, max_width: float) -> str:
    if stringWidth(text, font, size) <= max_width:
        return text
    return truncate_to_width(text, font, size, max_width)


def _draw_rich_lines(ctx: RenderContext, x: float, top: float, rich: RichText,
                     spans: Sequence[Span], regular: str, size: float,
                     leading: float, color: colors.Color) -> float:
    """Draw wrapped spans line by line, reapplying bold runs; returns the height used."""
    bold = ctx.theme.fonts.bold
    baseline = ctx.theme.baseline(leading)
    for i, (start, end) in enumerate(spans):
        cursor_x = x
        # Spans were wrapped with regular widths; a line with many bold runs
        # may draw slightly wider than the wrap width. Height is unaffected.
        for text, is_bold in rich.runs(start, end):
            font = bold if is_bold else regular
            ctx.text(cursor_x, top + i * leading + baseline, text, font, size, color)
            cursor_x += stringWidth(text, font, size)
    return len(spans) * leading


# ── Section header & title ───────────────────────────────────────────

def render_section_header(ctx: RenderContext, block: SectionHeader) -> None:
    t = ctx.theme
    height = measure_section_header(block, ctx.content_width, t)
    if height <= 0:
        return
    ctx.ensure_space(height)
    y = ctx.cursor.y + t.header_space_before
    leading = t.leading_for(t.h1_size)
    ctx.text(0, y + t.baseline(leading), _fit(block.text, t.fonts.bold, t.h1_size, ctx.content_width),
             t.fonts.bold, t.h1_size, th.TEXT_DARK)
    rule_y = y + leading + t.header_rule_offset
    ctx.line(0, rule_y, ctx.content_width, rule_y, th.BORDER)
    ctx.commit("section-header", height)


def render_title(ctx: RenderContext, block: TitleBlock) -> None:
    t = ctx.theme
    height = measure_title(block, ctx.content_width, t)
    if height <= 0:
        return
    ctx.ensure_space(height)
    center = ctx.content_width / 2
    y = ctx.cursor.y + TITLE_TOP_PAD
    lines = [(block.title, t.fonts.bold, t.title_size, th.TEXT_DARK)]
    if block.subtitle:
        lines.append((block.subtitle, t.fonts.regular, t.h2_size, th.TEXT_LIGHT))
    if block.generated_line:
        lines.append((block.generated_line, t.fonts.regular, t.small_size, th.TEXT_LIGHT))
    for text, font, size, color in lines:
        leading = t.leading_for(size)
        ctx.text(center, y + t.baseline(leading), _fit(text, font, size, ctx.content_width),
                 font, size, color, align="center")
        y += leading
    ctx.commit("title", height)


# ── Text ─────────────────────────────────────────────────────────────

def render_text(ctx: RenderContext, block: TextBlock) -> None:
    t = ctx.theme
    m = text_block_metrics(block, ctx.content_width, t)
    if m.height <= 0:
        return
    ctx.ensure_space(m.height)
    top = ctx.cursor.y
    if block.background is not None:
        ctx.rect(0, top, ctx.content_width, m.panel_height, fill=block.background,
                 stroke=block.border or block.background, radius=t.panel_radius)
    y = top + m.padding
    if block.title:
        ctx.text(m.left, y + t.baseline(t.body_leading),
                 _fit(block.title, t.fonts.bold, t.body_size, m.wrap_width),
                 t.fonts.bold, t.body_size, th.TEXT_DARK)
        y += m.title_height
    if block.quote:
        text_height = len(m.spans) * t.body_leading
        ctx.line(t.text_indent, y, t.text_indent, y + text_height,
                 block.accent_color or th.PRIMARY, line_width=2)
    _draw_rich_lines(ctx, m.left, y, m.rich, m.spans, m.font, t.body_size,
                     t.body_leading, block.text_color or th.TEXT)
    ctx.commit("text", m.height)


# ── Cards ────────────────────────────────────────────────────────────

def _draw_stat_card(ctx: RenderContext, card: StatCard, x: float, top: float, width: float) -> None:
    t = ctx.theme
    inner = width - 10 * mm
    ctx.rect(x, top, width, t.stat_card_height, fill=colors.white, stroke=th.BORDER,
             radius=t.panel_radius)
    ctx.text(x + 5 * mm, top + 7 * mm, _fit(card.title, t.fonts.bold, t.small_size, inner),
             t.fonts.bold, t.small_size, th.TEXT_LIGHT)
    value_color = th.STATE_COLORS.get(card.state, th.TEXT_DARK)
    ctx.text(x + 5 * mm, top + 16 * mm, _fit(card.value, t.fonts.bold, 16, inner),
             t.fonts.bold, 16, value_color)
    if card.sub_value:
        ctx.text(x + 5 * mm, top + 21 * mm, _fit(card.sub_value, t.fonts.regular, t.small_size, inner),
                 t.fonts.regular, t.small_size, th.TEXT)


def render_stat_cards(ctx: RenderContext, block: StatCardRow) -> None:
    t = ctx.theme
    height = measure_stat_cards(block, ctx.content_width, t)
    if height <= 0:
        return
    ctx.ensure_space(height)
    top = ctx.cursor.y
    width = card_width(ctx.content_width, block.columns, t.stat_card_gap)
    for i, card in enumerate(block.cards):
        _draw_stat_card(ctx, card, i * (width + t.stat_card_gap), top, width)
    ctx.commit("stat-cards", height)


def _draw_run_card(ctx: RenderContext, card: RunCard, x: float, top: float, width: float) -> None:
    t = ctx.theme
    ctx.rect(x, top, width, RUN_CARD_HEIGHT, fill=th.RUN_CARD_BG, stroke=th.BORDER,
             radius=t.panel_radius)

    badge = colors.Color(124 / 255, 58 / 255, 237 / 255) if card.stair_step else colors.Color(37 / 255, 99 / 255, 235 / 255)
    ctx.rect(x + 4 * mm, top + 4 * mm, 25 * mm, 6 * mm, fill=badge, radius=1 * mm)
    ctx.text(x + 16.5 * mm, top + 8 * mm, _fit(card.profile, t.fonts.bold, 7, 23 * mm),
             t.fonts.bold, 7, colors.white, align="center")
    ctx.text(x + width - 4 * mm, top + 8 * mm, card.date, t.fonts.regular, t.small_size,
             th.TEXT_LIGHT, align="right")

    box_height = 18 * mm
    y = top + 14 * mm
    ctx.rect(x + 4 * mm, y, width - 8 * mm, box_height, fill=colors.white, stroke=th.BORDER, radius=1 * mm)
    ctx.text(x + 8 * mm, y + 5 * mm, "PEAK CONCURRENT USERS", t.fonts.regular, 7, th.TEXT_LIGHT)
    users = str(card.peak_users)
    ctx.text(x + 8 * mm, y + 14 * mm, users, t.fonts.bold, 14, th.TEXT_DARK)
    ctx.text(x + 8 * mm + stringWidth(users, t.fonts.bold, 14) + 2 * mm, y + 14 * mm, "users",
             t.fonts.regular, t.small_size, th.TEXT_LIGHT)

    y += box_height + 4 * mm
    ctx.rect(x + 4 * mm, y, width - 8 * mm, box_height + 6 * mm, fill=colors.white, stroke=th.BORDER, radius=1 * mm)
    ctx.text(x + 8 * mm, y + 5 * mm, "SUCCESSFUL SUBMISSIONS", t.fonts.regular, 7, th.TEXT_LIGHT)
    ctx.text(x + 8 * mm, y + 14 * mm, f"{card.success_count:,}", t.fonts.bold, 14, th.THROUGHPUT)
    bar_width = width - 16 * mm
    rate = min(max(card.success_rate, 0.0), 100.0)
    if rate > 99.5:
        bar_color = th.GRADE_COLORS["A"]
    elif rate > 95:
        bar_color = th.GRADE_COLORS["C"]
    else:
        bar_color = th.GRADE_COLORS["F"]
    ctx.rect(x + 8 * mm, y + 18 * mm, bar_width, 2 * mm, fill=th.BORDER)
    if rate > 0:
        ctx.rect(x + 8 * mm, y + 18 * mm, bar_width * rate / 100, 2 * mm, fill=bar_color)

    y += box_height + 6 * mm + 4 * mm
    ctx.line(x + 4 * mm, y, x + width - 4 * mm, y, th.BORDER)
    y += 5 * mm
    ctx.text(x + 8 * mm, y, "AVG LATENCY", t.fonts.regular, 7, th.TEXT_LIGHT)
    ctx.text(x + width / 2 + 4 * mm, y, "THROUGHPUT", t.fonts.regular, 7, th.TEXT_LIGHT)
    y += 5 * mm
    ctx.text(x + 8 * mm, y, f"{card.avg_latency_ms:.0f}ms", t.fonts.bold, 10, th.LATENCY)
    ctx.text(x + width / 2 + 4 * mm, y, f"{card.throughput:.1f}/s", t.fonts.bold, 10, th.THROUGHPUT)


def render_run_cards(ctx: RenderContext, block: RunCardRow) -> None:
    t = ctx.theme
    height = measure_run_cards(block, ctx.content_width, t)
    if height <= 0:
        return
    ctx.ensure_space(height)
    top = ctx.cursor.y
    width = card_width(ctx.content_width, block.columns, t.stat_card_gap)
    for i, card in enumerate(block.cards):
        _draw_run_card(ctx, card, i * (width + t.stat_card_gap), top, width)
    ctx.commit("run-cards", height)


# ── Structured summary ───────────────────────────────────────────────

def render_summary(ctx: RenderContext, block: SummaryBlock) -> None:
    t = ctx.theme
    m = summary_metrics(block, ctx.content_width, t)
    if m.height <= 0:
        return
    ctx.ensure_space(m.height)
    top = ctx.cursor.y
    ctx.rect(0, top, ctx.content_width, m.box_height, fill=th.SUMMARY_BG,
             stroke=th.SUMMARY_BORDER, radius=t.panel_radius)
    y = top + t.panel_padding
    ctx.text(t.text_indent, y + t.baseline(t.body_leading),
             _fit(block.title, t.fonts.bold, t.body_size, m.wrap_width),
             t.fonts.bold, t.body_size, th.TEXT_DARK)
    y += t.body_leading
    rich, spans = m.analysis
    y += _draw_rich_lines(ctx, t.text_indent, y, rich, spans, t.fonts.regular,
                          t.body_size, t.body_leading, th.TEXT)
    rich, spans = m.suggestion
    if spans:
        y += DIVIDER_ABOVE
        ctx.line(t.text_indent, y, ctx.content_width - t.text_indent, y, th.BORDER)
        y += DIVIDER_BELOW
        _draw_rich_lines(ctx, t.text_indent, y, rich, spans, t.fonts.regular,
                         t.body_size, t.body_leading, th.TEXT)
    ctx.commit("summary", m.height)


# ── Score card ───────────────────────────────────────────────────────

def render_score_card(ctx: RenderContext, block: ScoreCard) -> None:
    t = ctx.theme
    m = score_card_metrics(block, ctx.content_width, t)
    if m.height <= 0:
        return
    ctx.ensure_space(m.height)
    top = ctx.cursor.y
    width = ctx.content_width
    color = th.grade_color(block.grade)

    ctx.rect(0, top, width, t.score_card_height, fill=th.CARD_BG, stroke=th.CARD_BORDER,
             radius=t.panel_radius)
    cy = top + t.score_card_height / 2
    ctx.circle(SCORE_CIRCLE_X, cy, SCORE_CIRCLE_R, stroke=color, line_width=3)
    ctx.text(SCORE_CIRCLE_X, cy + 24 * 0.3, block.grade.strip()[:2], t.fonts.bold, 24, color,
             align="center")

    label_width = m.rationale_x - SCORE_TEXT_X - 4 * mm
    ctx.text(SCORE_TEXT_X, top + 15 * mm, "Performance Trend", t.fonts.bold, 14, th.TEXT_DARK)
    score = f" ({block.score:g}/100)" if block.score is not None else ""
    ctx.text(SCORE_TEXT_X, top + 22 * mm,
             _fit(f"{block.direction or 'Unknown'}{score}", t.fonts.regular, 12, label_width),
             t.fonts.regular, 12, color)

    panel_top = top + SCORE_PANEL_INSET
    ctx.rect(m.rationale_x, panel_top, m.rationale_width, m.panel_height, fill=colors.white,
             stroke=th.CARD_BORDER, radius=2 * mm)
    ctx.text(m.rationale_x + SCORE_RATIONALE_PAD, panel_top + 7 * mm, "Rating Rationale:",
             t.fonts.bold, 9, th.TEXT_DARK)
    y = panel_top + SCORE_RATIONALE_TEXT_TOP
    for line in m.lines:
        ctx.text(m.rationale_x + SCORE_RATIONALE_PAD, y + t.baseline(t.small_leading), line,
                 t.fonts.regular, t.small_size, th.TEXT)
        y += t.small_leading

    if block.show_legend:
        legend_top = top + t.score_card_height + t.score_section_gap
        cell = width / len(th.GRADE_LEGEND)
        for i, band in enumerate(th.GRADE_LEGEND):
            lx = i * cell
            band_color = th.grade_color(band.grade)
            ctx.rect(lx, legend_top, cell - 2 * mm, t.score_legend_height, fill=colors.white,
                     stroke=band_color, radius=1 * mm)
            inner = cell - 6 * mm
            ctx.text(lx + 2 * mm, legend_top + 4 * mm,
                     _fit(f"{band.grade} ({band.score_range})", t.fonts.bold, 8, inner),
                     t.fonts.bold, 8, band_color)
            ctx.text(lx + 2 * mm, legend_top + 8 * mm, _fit(band.description, t.fonts.regular, t.tiny_size, inner),
                     t.fonts.regular, t.tiny_size, band_color)
            ctx.text(lx + 2 * mm, legend_top + 12 * mm, band.criteria, t.fonts.regular, t.tiny_size, band_color)
    ctx.commit("score-card", m.height)


# ── Table ────────────────────────────────────────────────────────────

def _draw_table_row(ctx: RenderContext, cells: List[List[str]], widths: Sequence[float],
                    height: float, font: str, fill: colors.Color, align: Sequence[str]) -> None:
    t = ctx.theme
    top = ctx.cursor.y
    ctx.rect(0, top, sum(widths), height, fill=fill, stroke=th.BORDER)
    x = 0.0
    baseline = t.baseline(t.table_leading)
    for idx, (lines, width) in enumerate(zip(cells, widths)):
        if idx:
            ctx.line(x, top, x, top + height, th.BORDER)
        mode = align[idx] if idx < len(align) else "left"
        if mode == "right":
            text_x = x + width - t.table_padding
        elif mode == "center":
            text_x = x + width / 2
        else:
            text_x = x + t.table_padding
        for j, line in enumerate(lines):
            ctx.text(text_x, top + t.table_padding + j * t.table_leading + baseline, line,
                     font, t.table_font_size, th.TEXT_DARK, align=mode)
        x += width


def render_table(ctx: RenderContext, block: Table) -> None:
    t = ctx.theme
    m = table_metrics(block, ctx.content_width, t)
    if not m.row_heights:
        return
    align = list(block.align or [])
    header_fill = block.header_fill or th.BG_LIGHT

    def draw_header() -> None:
        _draw_table_row(ctx, m.header_lines, m.col_widths, m.header_height,
                        t.fonts.bold, header_fill, align)
        ctx.commit("table-header", m.header_height)

    ctx.ensure_space(m.header_height + m.row_heights[0])
    draw_header()
    for idx, (lines, height) in enumerate(zip(m.row_lines, m.row_heights)):
        if idx and ctx.ensure_space(height) and block.repeat_header:
            ctx.ensure_space(m.header_height + height)
            draw_header()
        _draw_table_row(ctx, lines, m.col_widths, height, t.fonts.regular, colors.white, align)
        ctx.commit("table-row", height)
    ctx.skip(t.block_gap)


# ── Image ────────────────────────────────────────────────────────────

def render_image(ctx: RenderContext, block: ImageBlock) -> None:
    t = ctx.theme
    height = measure_image(block, ctx.content_width, t)
    if height <= 0:
        return
    ctx.ensure_space(height)
    top = ctx.cursor.y
    picture = image_height(block, ctx.content_width)
    ctx.image(0, top, ctx.content_width, picture, block.asset)
    if block.caption:
        ctx.text(ctx.content_width / 2, top + picture + t.baseline(t.image_caption_leading),
                 _fit(block.caption, t.fonts.italic, t.small_size, ctx.content_width),
                 t.fonts.italic, t.small_size, th.TEXT_LIGHT, align="center")
    ctx.commit("image", height)


# ── Dispatch ─────────────────────────────────────────────────────────

RENDERERS: Dict[type, Callable[[RenderContext, object], None]] = {
    SectionHeader: render_section_header,
    TitleBlock: render_title,
    TextBlock: render_text,
    StatCardRow: render_stat_cards,
    RunCardRow: render_run_cards,
    SummaryBlock: render_summary,
    ScoreCard: render_score_card,
    Table: render_table,
    ImageBlock: render_image,
}


def render_block(ctx: RenderContext, block) -> None:
    try:
        renderer = RENDERERS[type(block)]
    except KeyError:
        raise TypeError(f"Unknown block kind: {type(block).__name__}") from None
    renderer(ctx, block)
