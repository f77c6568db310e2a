"""
ComparisonTemplate — baseline vs. comparison run report.

Input:  ComparisonExport (two runs + optional AI comparison analysis)
Output: Document
"""

from __future__ import annotations

import logging

from charts import figures
from layout import theme as th
from layout.blocks import Table, TextBlock, TitleBlock
from layout.context import Document, RenderContext
from layout.sections import Section
from reports.base import (
    BaseReport,
    bulleted,
    format_change,
    generated_line,
    item_blocks,
    numbered,
    percent_change,
)
from reports.models import ComparisonExport, TestRunSummary

logger = logging.getLogger(__name__)


def _delta(baseline: float, value: float) -> str:
    return format_change(percent_change(baseline, value), plus_on_zero=False)


def metrics_table(run_a: TestRunSummary, run_b: TestRunSummary) -> Table:
    a, b = run_a.stats, run_b.stats
    return Table(
        columns=["Metric", f"Baseline ({run_a.date or run_a.id})",
                 f"Comparison ({run_b.date or run_b.id})", "Delta"],
        rows=[
            ["Avg Latency", f"{a.avg_response_time:.0f}ms", f"{b.avg_response_time:.0f}ms",
             _delta(a.avg_response_time, b.avg_response_time)],
            ["Throughput", f"{a.throughput:.2f}/s", f"{b.throughput:.2f}/s",
             _delta(a.throughput, b.throughput)],
            ["Error Rate", f"{a.error_rate:.2f}%", f"{b.error_rate:.2f}%", ""],
            ["Apdex Score", f"{a.apdex_score:.2f}", f"{b.apdex_score:.2f}", ""],
        ],
        weights=[1.2, 1.4, 1.4, 1],
        align=["left", "right", "right", "right"],
        header_fill=th.CONCLUSIVE_BG,
    )


class ComparisonTemplate(BaseReport):
    """Summary → metric deltas → charts → changes, root cause, recommendations."""

    name = "ComparisonReport"
    kind = "Comparison_Report"
    default_title = "Test Comparison Report"

    async def _build(self, ctx: RenderContext, export: ComparisonExport) -> Document:
        self.gate.validate(export.run_a.stats, label="runA.stats")
        self.gate.validate(export.run_b.stats, label="runB.stats")
        report = export.report
        title = export.title or self.default_title

        self._place(ctx, Section(None, [TitleBlock(title, generated_line=generated_line("Generated"))]))

        if report is not None:
            self._place(ctx, Section("Executive Summary").add(
                TextBlock(report.comparison_summary, background=th.SUMMARY_BG, border=th.SUMMARY_BORDER)
            ))

        self._place(ctx, Section("Key Metrics Comparison", [metrics_table(export.run_a, export.run_b)]))

        visual = Section("Visual Comparison")
        for chart_id in (figures.COMPARISON_LATENCY, figures.COMPARISON_THROUGHPUT):
            visual.add(await self.adapter.embed(chart_id))
        self._place(ctx, visual)

        if report is not None:
            changes = [f"{c.metric}: {c.analysis} ({c.delta})" for c in report.key_metric_changes]
            self._place_all(ctx, [
                Section("Key Metric Changes", item_blocks(bulleted(changes))),
                Section("Root Cause Analysis", [TextBlock(report.root_cause_analysis)]),
                Section("Recommendations", item_blocks(numbered(report.recommendations))),
            ])

        return ctx.finish(self.kind, title, file_title=export.title)
