"""
Test: pagination — the break manager, section placement rules and
table row breaking.
"""

import logging
import math
import random
import sys
from collections import defaultdict
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from layout import (
    PageGeometry,
    RenderContext,
    Section,
    SectionHeader,
    StructuredSummary,
    SummaryBlock,
    Table,
    TextBlock,
    measure,
    place_section,
    render_block,
)
from layout.theme import Theme

EPS = 1e-6
SMALL_PAGE = PageGeometry(height=300)


def lines_of_text(count: int) -> str:
    return "\n".join(f"line {i}" for i in range(count))


def placements_by_page(document):
    pages = defaultdict(list)
    for page in document.pages:
        for placement in page.placements:
            pages[placement.page_index].append(placement)
    return pages


def assert_no_overlap(document):
    for placements in placements_by_page(document).values():
        ordered = sorted(placements, key=lambda p: p.top)
        for prev, nxt in zip(ordered, ordered[1:]):
            assert nxt.top >= prev.bottom - EPS, (prev, nxt)


class TestBreakManager:
    def test_fits_without_break(self):
        ctx = RenderContext(SMALL_PAGE)
        assert ctx.ensure_space(50) is False
        assert ctx.page_count == 1

    def test_breaks_when_block_does_not_fit(self):
        ctx = RenderContext(SMALL_PAGE)
        ctx.commit("filler", ctx.content_height - 10)
        assert ctx.ensure_space(20) is True
        assert ctx.page_count == 2
        assert ctx.cursor.y == 0

    def test_zero_height_never_breaks(self):
        ctx = RenderContext(SMALL_PAGE)
        ctx.commit("filler", ctx.content_height)
        assert ctx.ensure_space(0) is False
        assert ctx.page_count == 1

    def test_overtall_block_on_fresh_page_does_not_break(self, caplog):
        ctx = RenderContext(SMALL_PAGE)
        with caplog.at_level(logging.WARNING):
            assert ctx.ensure_space(ctx.content_height * 3) is False
        assert ctx.page_count == 1
        assert "exceeds page content height" in caplog.text

    def test_page_holding_only_headers_does_not_break(self, caplog):
        ctx = RenderContext(SMALL_PAGE)
        ctx.commit("section-header", 80)
        with caplog.at_level(logging.WARNING):
            assert ctx.ensure_space(ctx.content_height - 40) is False
        assert ctx.page_count == 1
        assert "overflow page 1" in caplog.text

    def test_page_with_content_after_header_still_breaks(self):
        ctx = RenderContext(SMALL_PAGE)
        ctx.commit("section-header", 80)
        ctx.commit("text", 40)
        assert ctx.ensure_space(ctx.content_height - 40) is True
        assert ctx.page_count == 2

    def test_skip_is_clamped_to_page_bottom(self):
        ctx = RenderContext(SMALL_PAGE)
        ctx.commit("filler", ctx.content_height - 2)
        ctx.skip(50)
        assert ctx.cursor.y == pytest.approx(ctx.content_height)

    def test_finished_context_rejects_drawing(self):
        ctx = RenderContext(SMALL_PAGE)
        document = ctx.finish("Kind", "Title")
        assert document.page_count == 1
        with pytest.raises(RuntimeError):
            ctx.new_page()


class TestNoOverlap:
    def test_random_blocks_never_overlap(self):
        rng = random.Random(42)
        ctx = RenderContext(SMALL_PAGE)
        for _ in range(80):
            render_block(ctx, TextBlock(lines_of_text(rng.randint(1, 12))))
        document = ctx.finish("Kind", "Title")
        assert document.page_count > 1
        assert_no_overlap(document)
        for page in document.pages:
            for placement in page.placements:
                assert placement.bottom <= ctx.content_height + EPS

    def test_overtall_block_gets_its_own_page(self):
        ctx = RenderContext(SMALL_PAGE)
        render_block(ctx, TextBlock("intro"))
        tall = TextBlock(lines_of_text(40))
        assert measure(tall, ctx.content_width) > ctx.content_height
        render_block(ctx, tall)
        render_block(ctx, TextBlock("after"))
        document = ctx.finish("Kind", "Title")

        assert document.page_count == 3
        assert [p.top for p in document.pages[1].placements] == [0.0]
        assert document.pages[2].placements[0].top == 0.0
        assert_no_overlap(document)

    def test_summary_without_analysis_takes_no_space(self):
        ctx = RenderContext(SMALL_PAGE)
        render_block(ctx, SummaryBlock("KPI Insights", None))
        render_block(ctx, SummaryBlock("KPI Insights", StructuredSummary("Stable.")))
        document = ctx.finish("Kind", "Title")
        assert [p.kind for p in document.pages[0].placements] == ["summary"]
        assert document.pages[0].placements[0].top == 0.0


class TestSections:
    def test_empty_section_is_omitted_with_header(self):
        ctx = RenderContext()
        placed = place_section(ctx, Section("Error Summary", [Table(["Error", "Count"], [])]))
        assert placed is False
        document = ctx.finish("Kind", "Title")
        assert "Error Summary" not in document.pages[0].texts()
        assert document.pages[0].placements == ()

    def test_header_stays_with_first_block(self):
        ctx = RenderContext(SMALL_PAGE)
        ctx.commit("filler", ctx.content_height - 60)
        place_section(ctx, Section("Latency Statistics", [TextBlock(lines_of_text(3))]))
        document = ctx.finish("Kind", "Title")
        assert document.page_count == 2
        kinds = [p.kind for p in document.pages[1].placements]
        assert kinds == ["section-header", "text"]

    def test_header_stays_with_first_table_row(self):
        ctx = RenderContext(SMALL_PAGE)
        ctx.commit("filler", ctx.content_height - 80)
        rows = [[f"row {i}", str(i)] for i in range(30)]
        place_section(ctx, Section("Error Summary", [Table(["Error", "Count"], rows)]))
        document = ctx.finish("Kind", "Title")
        first_page_kinds = [p.kind for p in document.pages[0].placements]
        assert "section-header" not in first_page_kinds
        assert [p.kind for p in document.pages[1].placements][:3] == [
            "section-header", "table-header", "table-row"]

    def test_keep_together_moves_whole_section(self):
        ctx = RenderContext(SMALL_PAGE)
        ctx.commit("filler", 60)
        blocks = [TextBlock(lines_of_text(3)), TextBlock(lines_of_text(3))]
        place_section(ctx, Section("Performance Visualizations", blocks, keep_together=True))
        document = ctx.finish("Kind", "Title")
        assert document.page_count == 2
        assert [p.kind for p in document.pages[1].placements] == ["section-header", "text", "text"]

    def test_start_on_new_page(self):
        ctx = RenderContext()
        render_block(ctx, TextBlock("intro"))
        place_section(ctx, Section("Key Observations", [TextBlock("body")], start_on_new_page=True))
        document = ctx.finish("Kind", "Title")
        assert document.page_count == 2
        assert document.pages[1].placements[0].kind == "section-header"

    def test_header_is_not_stranded_above_overtall_first_block(self):
        ctx = RenderContext(SMALL_PAGE)
        render_block(ctx, TextBlock("Checkout latency rose under load."))
        body = TextBlock(lines_of_text(13))
        header_height = measure(SectionHeader("Root Cause Analysis"), ctx.content_width)
        assert header_height + measure(body, ctx.content_width) > ctx.content_height
        place_section(ctx, Section("Root Cause Analysis", [body]))
        document = ctx.finish("Kind", "Title")

        assert document.page_count == 2
        assert [p.kind for p in document.pages[0].placements] == ["text"]
        assert [p.kind for p in document.pages[1].placements] == ["section-header", "text"]
        header, text = document.pages[1].placements
        assert header.top == 0.0
        assert text.top == pytest.approx(header.bottom)

    def test_add_ignores_none(self):
        section = Section("Degradation at a Glance").add(None).add(TextBlock("x"))
        assert len(section.blocks) == 1


class TestLargeTable:
    def test_500_rows_break_between_rows(self):
        rows = [[f"Endpoint /api/v1/item/{i}", f"{i * 1.5:.1f} ms", str(i)] for i in range(500)]
        table = Table(["Endpoint", "Latency", "Count"], rows)
        ctx = RenderContext()
        render_block(ctx, table)
        document = ctx.finish("Kind", "Title")

        row_height = ctx.theme.table_leading + 2 * ctx.theme.table_padding
        rows_per_page = int(ctx.content_height // row_height) - 1
        assert document.page_count >= 500 // rows_per_page

        total_rows = 0
        for page in document.pages:
            kinds = [p.kind for p in page.placements]
            assert kinds[0] == "table-header"
            total_rows += kinds.count("table-row")
            for placement in page.placements:
                assert placement.bottom <= ctx.content_height + EPS
        assert total_rows == 500
        assert_no_overlap(document)

    def test_header_not_repeated_when_disabled(self):
        rows = [[str(i)] for i in range(200)]
        ctx = RenderContext()
        render_block(ctx, Table(["Index"], rows, repeat_header=False))
        document = ctx.finish("Kind", "Title")
        assert document.page_count > 1
        headers = sum(p.kind == "table-header" for page in document.pages for p in page.placements)
        assert headers == 1

    def test_six_unit_rows_on_250_unit_page(self):
        theme = Theme(table_leading=4, table_padding=1)
        geometry = PageGeometry(height=250, margin_top=0, margin_bottom=0)
        ctx = RenderContext(geometry, theme)
        render_block(ctx, Table(["Run"], [[str(i)] for i in range(500)]))
        document = ctx.finish("Kind", "Title")

        assert ctx.content_height == 250
        assert document.page_count >= math.ceil(500 * 6 / 250)
        rows = [p for page in document.pages for p in page.placements if p.kind == "table-row"]
        assert len(rows) == 500
        for placement in rows:
            assert placement.height == pytest.approx(6)
            assert placement.bottom <= 250 + EPS
