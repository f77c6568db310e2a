"""
TrendAnalysisTemplate — multi-run trend analysis report.

Input:  TrendExport (runs + AI trend analysis)
Output: Document
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from charts import figures
from layout import theme as th
from layout.blocks import RunCard, RunCardRow, ScoreCard, Table, TextBlock, TitleBlock, chunk_cards
from layout.context import Document, RenderContext
from layout.sections import Section
from reports.base import BaseReport, format_change, generated_line, item_blocks, numbered, percent_change
from reports.models import TestRunSummary, TrendExport

logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    "id", "users", "avg_latency", "max_latency", "throughput",
    "total_requests", "error_count", "success_count",
]


def runs_frame(runs: Sequence[TestRunSummary]) -> pd.DataFrame:
    """One row per run, ordered by peak users (stable for equal user counts)."""
    records = []
    for position, run in enumerate(runs):
        stats = run.stats
        records.append({
            "position": position,
            "id": run.id,
            "users": run.config.users,
            "avg_latency": stats.avg_response_time if stats else np.nan,
            "max_latency": stats.max_response_time if stats else np.nan,
            "throughput": stats.throughput if stats else np.nan,
            "total_requests": stats.total_requests if stats else np.nan,
            "error_count": stats.error_count if stats else np.nan,
            "success_count": stats.success_count if stats else np.nan,
        })
    if not records:
        return pd.DataFrame(columns=["position"] + FRAME_COLUMNS)
    frame = pd.DataFrame.from_records(records)
    return frame.sort_values("users", kind="mergesort").reset_index(drop=True)


def sorted_runs(runs: Sequence[TestRunSummary], frame: pd.DataFrame) -> List[TestRunSummary]:
    return [runs[int(i)] for i in frame["position"]]


def degradation_table(ordered: Sequence[TestRunSummary]) -> Optional[Table]:
    """First vs. last run by peak users; None unless both differ and carry stats."""
    if len(ordered) < 2:
        return None
    first, last = ordered[0], ordered[-1]
    if first.stats is None or last.stats is None or first.id == last.id:
        return None
    first_avg, last_avg = first.stats.avg_response_time, last.stats.avg_response_time
    first_tput, last_tput = first.stats.throughput, last.stats.throughput
    latency_delta = percent_change(first_avg, last_avg) or 0.0
    tput_delta = percent_change(first_tput, last_tput) or 0.0
    return Table(
        columns=["Metric", f"Baseline ({first.config.users} Users)",
                 f"Comparison ({last.config.users} Users)", "Change"],
        rows=[
            ["Avg. Latency", f"{first_avg:.0f} ms", f"{last_avg:.0f} ms", format_change(latency_delta)],
            ["Throughput", f"{first_tput:.2f} req/s", f"{last_tput:.2f} req/s", format_change(tput_delta)],
        ],
        weights=[1.2, 1.4, 1.4, 1], align=["left", "right", "right", "right"],
    )


def run_card(run: TestRunSummary) -> Optional[RunCard]:
    stats = run.stats
    if stats is None:
        return None
    config = run.config
    if config.run_mode == "iterations":
        profile = "Iterations"
    else:
        profile = "Stair Step" if config.load_profile == "stair-step" else "Ramp Up"
    total = stats.total_requests
    success_rate = stats.success_count / total * 100 if total > 0 else 0.0
    return RunCard(
        profile=profile,
        date=run.date,
        peak_users=config.users,
        success_count=int(stats.success_count),
        success_rate=success_rate,
        avg_latency_ms=stats.avg_response_time,
        throughput=stats.throughput,
        stair_step=config.load_profile == "stair-step",
    )


def runs_table(ordered: Sequence[TestRunSummary]) -> Table:
    rows = []
    for run in ordered:
        stats, config = run.stats, run.config
        if stats is None:
            rows.append(["Data Missing", "-", "-", "-", "-", "-", "-"])
            continue
        if config.run_mode == "iterations":
            profile = f"{config.iterations:,} iter. @ {config.users} users"
        else:
            profile = f"{config.users} users @ {config.duration}s"
        rows.append([
            profile,
            f"{stats.avg_response_time:.0f} ms",
            f"{stats.max_response_time:.0f} ms",
            f"{stats.throughput:.2f} req/s",
            f"{stats.error_rate:.1f} %",
            f"{int(stats.total_requests):,}",
            f"{int(stats.error_count):,}",
        ])
    return Table(
        columns=["Load Profile", "Avg Latency", "Max Latency", "Throughput",
                 "Error Rate", "Total Requests", "Error Count"],
        rows=rows,
        weights=[1.8, 1, 1, 1.2, 1, 1.1, 1],
        align=["left"] + ["right"] * 6,
    )


class TrendAnalysisTemplate(BaseReport):
    """Score card → progression chart → degradation → narrative → per-run data."""

    name = "TrendAnalysisReport"
    kind = "Trend_Analysis_Report"
    default_title = "Multi-Test Trend Analysis"

    async def _build(self, ctx: RenderContext, export: TrendExport) -> Document:
        for i, run in enumerate(export.runs):
            if run.stats is not None:
                self.gate.validate(run.stats, label=f"runs[{i}].stats")

        report = export.report
        frame = runs_frame(export.runs)
        ordered = sorted_runs(export.runs, frame)
        self.log.metadata["runs"] = len(ordered)
        title = export.title or self.default_title
        count = report.analyzed_runs_count or len(ordered)

        self._place(ctx, Section(None, [TitleBlock(title, f"Analysis of {count} Test Runs", generated_line())]))
        if report.trend_grade:
            self._place(ctx, Section(None, [ScoreCard(
                grade=report.trend_grade,
                direction=report.trend_direction,
                score=report.trend_score,
                rationale=report.score_rationale,
            )]))

        chart = await self.adapter.embed(figures.TREND)
        self._place(ctx, Section("Metric Progression", [chart], keep_together=True))

        self._place_all(ctx, [
            Section("Degradation at a Glance").add(degradation_table(ordered)),
            Section("Overall Trend Summary", [TextBlock(
                report.overall_trend_summary or "N/A", quote=True,
                background=th.SUMMARY_BG, border=th.PRIMARY,
            )]),
            Section("Performance Threshold", [TextBlock(
                report.performance_threshold or "N/A",
                background=th.WARNING_BG, border=th.WARNING_BORDER, text_color=th.WARNING_TEXT,
            )]),
            self._visual_summary(ordered),
        ], start_on_new_page=True)

        self._place_all(ctx, [
            Section("Key Observations", item_blocks(numbered(report.key_observations))),
            Section("Suggested Root Cause & Recommendations", [
                TextBlock(report.root_cause_suggestion or "N/A"),
                *item_blocks(numbered(report.recommendations)),
            ]),
            Section("Conclusive Summary", [TextBlock(
                report.conclusive_summary,
                background=th.CONCLUSIVE_BG, border=th.CONCLUSIVE_BORDER, text_color=th.TEXT_DARK,
            )]),
        ], start_on_new_page=True)

        if ordered:
            self._place(ctx, Section("Analyzed Test Runs Data", [runs_table(ordered)],
                                     start_on_new_page=True))

        return ctx.finish(self.kind, title, file_title=export.title)

    @staticmethod
    def _visual_summary(ordered: Sequence[TestRunSummary]) -> Section:
        cards = [card for card in (run_card(r) for r in ordered) if card is not None]
        return Section("Visual Summary", [RunCardRow(row) for row in chunk_cards(cards, 2)])
