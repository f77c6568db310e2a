"""
Test: block measurement — idempotence, omission of empty blocks, and
agreement between measured height and what the renderers actually draw.
"""

import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from layout import theme as th
from layout.blocks import (
    ImageBlock,
    RasterAsset,
    RunCard,
    RunCardRow,
    ScoreCard,
    SectionHeader,
    StatCard,
    StatCardRow,
    StructuredSummary,
    SummaryBlock,
    Table,
    TextBlock,
    TitleBlock,
    chunk_cards,
    normalize_summary,
)
from layout.context import LineOp, RenderContext
from layout.measure import measure, measure_lead
from layout.renderers import render_block

EPS = 1e-6
WIDTH = RenderContext().content_width

WORDS = ["latency", "throughput", "p95", "users", "ramp", "error", "TTFB", "Apdex",
         "degraded", "stable", "1,200", "req/s", "ms", "baseline", "regression"]


def random_text(rng: random.Random, max_words: int = 120) -> str:
    out = []
    for _ in range(rng.randint(0, max_words)):
        roll = rng.random()
        if roll < 0.05:
            out.append("\n")
        elif roll < 0.10:
            out.append("**")
        elif roll < 0.12:
            out.append("y" * rng.randint(60, 200))
        else:
            out.append(rng.choice(WORDS))
    return " ".join(out)


def sample_asset(width=800, height=400) -> RasterAsset:
    return RasterAsset(data=b"\x89PNG fake", width=width, height=height)


def sample_blocks():
    return [
        SectionHeader("Test Overview"),
        TitleBlock("Checkout Flow", "Performance Test Report", "Report Generated: 2024-05-01"),
        TextBlock("Plain paragraph with **bold** words."),
        TextBlock("Quoted observation", title="Observation", quote=True,
                  accent_color=th.CRITICAL, background=th.SUMMARY_BG),
        StatCardRow([StatCard("Total Requests", "10,000", "12 errors"),
                     StatCard("Throughput", "250.0 req/s", state="positive")]),
        RunCardRow([RunCard("Stress", "2024-05-01", 500, 9800, 98.0, 210.0, 120.5, True)]),
        SummaryBlock("KPI Insights", StructuredSummary("Latency is stable.", "Add caching.")),
        ScoreCard("B", "Improving", 72.5, "Latency improved across runs. " * 10),
        Table(["Metric", "Value"], [["Average", "120 ms"], ["Max", "900 ms"]]),
        ImageBlock(sample_asset(), caption="Response time over time"),
    ]


def draw_alone(block) -> RenderContext:
    ctx = RenderContext()
    render_block(ctx, block)
    return ctx


class TestMeasureBasics:
    @pytest.mark.parametrize("block", sample_blocks(), ids=lambda b: type(b).__name__)
    def test_idempotent(self, block):
        first = measure(block, WIDTH)
        assert first > 0
        assert measure(block, WIDTH) == first

    def test_empty_blocks_measure_zero(self):
        assert measure(TextBlock(""), WIDTH) == 0
        assert measure(TextBlock("   "), WIDTH) == 0
        assert measure(SummaryBlock("KPI Insights", None), WIDTH) == 0
        assert measure(Table(["A"], []), WIDTH) == 0
        assert measure(ImageBlock(None, caption="Chart"), WIDTH) == 0
        assert measure(ImageBlock(RasterAsset(b"", 0, 0)), WIDTH) == 0
        assert measure(StatCardRow([]), WIDTH) == 0
        assert measure(ScoreCard(""), WIDTH) == 0

    def test_unknown_block_kind(self):
        with pytest.raises(TypeError):
            measure(object(), WIDTH)

    def test_image_scales_with_width(self):
        block = ImageBlock(sample_asset(800, 400))
        assert measure(block, 400) < measure(block, 800)

    def test_table_lead_is_header_plus_first_row(self):
        table = Table(["Metric", "Value"], [["a", "1"]] * 50)
        assert measure_lead(table, WIDTH) < measure(table, WIDTH)
        text = TextBlock("atomic")
        assert measure_lead(text, WIDTH) == measure(text, WIDTH)

    def test_suggestion_adds_height(self):
        only = SummaryBlock("KPI", StructuredSummary("Stable latency."))
        both = SummaryBlock("KPI", StructuredSummary("Stable latency.", "Scale out."))
        assert measure(both, WIDTH) > measure(only, WIDTH)

    def test_text_gap_overrides_block_gap(self):
        spaced = TextBlock("1. Add a read replica.")
        tight = TextBlock("1. Add a read replica.", gap=0.0)
        gap = RenderContext().theme.block_gap
        assert measure(spaced, WIDTH) - measure(tight, WIDTH) == pytest.approx(gap)

    def test_card_row_rejects_more_cards_than_columns(self):
        cards = [StatCard(f"Metric {i}", str(i)) for i in range(4)]
        with pytest.raises(ValueError):
            StatCardRow(cards, columns=3)
        runs = [RunCard("Load", "2024-05-01", 100, 990, 99.0, 120.0, 50.0)] * 3
        with pytest.raises(ValueError):
            RunCardRow(runs, columns=2)
        rows = [StatCardRow(chunk, columns=3) for chunk in chunk_cards(cards, 3)]
        assert [len(r.cards) for r in rows] == [3, 1]


class TestNormalizeSummary:
    def test_shapes(self):
        assert normalize_summary(None) is None
        assert normalize_summary("") is None
        assert normalize_summary({"suggestion": "x"}) is None
        assert normalize_summary("Text") == StructuredSummary("Text", "")
        assert normalize_summary({"analysis": " A ", "suggestion": "S"}) == StructuredSummary("A", "S")

    def test_analysis_only_summary_has_no_divider(self):
        ctx = draw_alone(SummaryBlock("KPI Insights", normalize_summary("Latency is stable.")))
        page = ctx.finish("k", "t").pages[0]
        assert not [op for op in page.ops if isinstance(op, LineOp)]
        assert "Suggestion:" not in page.texts()
        assert "Analysis:" in page.texts()

    def test_suggestion_is_drawn_below_divider(self):
        summary = normalize_summary({"analysis": "Latency is stable.", "suggestion": "Scale out."})
        page = draw_alone(SummaryBlock("KPI Insights", summary)).finish("k", "t").pages[0]
        dividers = [op for op in page.ops if isinstance(op, LineOp)]
        assert len(dividers) == 1
        labels = [op for op in page.ops if getattr(op, "text", None) == "Suggestion:"]
        assert len(labels) == 1
        assert labels[0].top > dividers[0].bottom

    def test_empty_summary_is_not_drawn(self):
        ctx = draw_alone(SummaryBlock("KPI Insights", normalize_summary({"analysis": ""})))
        assert ctx.cursor.y == 0
        assert ctx.finish("k", "t").pages[0].ops == ()


class TestDrawMatchesMeasure:
    @staticmethod
    def assert_within(block):
        expected = measure(block, WIDTH)
        ctx = draw_alone(block)
        margin_top = ctx.geometry.margin_top
        assert ctx.cursor.page_index == 0
        assert ctx.cursor.y == pytest.approx(expected)
        for op in ctx.finish("k", "t").pages[0].ops:
            assert op.top >= margin_top - EPS, op
            assert op.bottom <= margin_top + expected + EPS, op

    @pytest.mark.parametrize("block", sample_blocks(), ids=lambda b: type(b).__name__)
    def test_fixed_blocks(self, block):
        self.assert_within(block)

    def test_random_text_blocks(self):
        rng = random.Random(1234)
        for _ in range(60):
            block = TextBlock(
                random_text(rng, 80),
                title=rng.choice(["", "Executive Summary"]),
                quote=rng.random() < 0.5,
                background=rng.choice([None, th.BG_LIGHT]),
                italic=rng.random() < 0.3,
            )
            self.assert_within(block)

    def test_random_summaries(self):
        rng = random.Random(99)
        for _ in range(40):
            summary = normalize_summary({"analysis": random_text(rng, 60),
                                         "suggestion": random_text(rng, 40)})
            self.assert_within(SummaryBlock("KPI Insights", summary))

    def test_random_tables(self):
        rng = random.Random(7)
        for _ in range(20):
            columns = ["Metric", "Baseline", "Comparison", "Change"][:rng.randint(1, 4)]
            rows = [[" ".join(rng.choice(WORDS) for _ in range(rng.randint(0, 10))) for _ in columns] for _ in range(rng.randint(1, 8))]
            self.assert_within(Table(columns, rows))

    def test_long_rationale_is_clipped_to_panel(self):
        self.assert_within(ScoreCard("F", "Degrading", 12.0, "Throughput collapsed. " * 200))
