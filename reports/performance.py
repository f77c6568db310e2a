"""
PerformanceReportTemplate — single-run performance & load test report.

Input:  PerformanceExport
Output: Document (title page, overview, AI analysis, chart deep-dives)
"""

from __future__ import annotations

import logging
from typing import List, Optional

from charts import figures
from layout import theme as th
from layout.blocks import (
    StatCard,
    StatCardRow,
    StructuredSummary,
    SummaryBlock,
    Table,
    TextBlock,
    TitleBlock,
)
from layout.context import Document, RenderContext
from layout.sections import Section
from reports.base import BaseReport, generated_line, item_blocks, numbered
from reports.models import LoadTestConfig, PerformanceExport, PerformanceReport, TestStats

logger = logging.getLogger(__name__)


TIMELINE_EXPLANATION = (
    "This chart visualizes the relationship between user load and application performance "
    "over the duration of the test. Key elements are:\n"
    "  • Virtual Users (Green Line): the simulated concurrent user load on the system.\n"
    "  • Average Latency (Blue Line): the average response time. An upward trend correlated "
    "with user load suggests potential scalability issues.\n"
    "  • Latency Range (Orange Area): the spread between minimum and maximum response times. "
    "A wide or expanding area signifies performance inconsistency.\n"
    "  • Errors (Red Bars): the percentage of failed requests. Spikes in errors at peak load "
    "often point to resource exhaustion or system limits."
)

NETWORK_EXPLANATION = (
    "This chart breaks down the total response time into its network phases, helping to "
    "isolate bottlenecks.\n"
    "  • DNS, TCP, TLS: connection setup. These are typically fast; 0ms indicates a cached "
    "or reused connection.\n"
    "  • TTFB (Time to First Byte): the server's think time, from sending the request until "
    "the first byte of the response arrives. A high TTFB strongly indicates a backend "
    "bottleneck such as a slow database or complex logic.\n"
    "  • Download: the time taken to receive the full response payload. A high value "
    "suggests large responses or limited bandwidth."
)

LATENCY_EXPLANATION = (
    "This section details the distribution of response times, a critical factor in user "
    "experience.\n"
    "  • Min/Avg/Max Response Time: the best, average and worst-case performance observed. "
    "A large gap between average and maximum means some users experience significant delays.\n"
    "  • Standard Deviation & Consistency (CV): statistical measures of variability. High "
    "values indicate an unpredictable user experience, even when the average looks acceptable."
)

ERROR_EXPLANATION = (
    "This section categorizes all failed requests, helping to pinpoint the root cause of "
    "failures.\n"
    "  • 'Request Timeout': the client gave up waiting for a response, often because of "
    "long-running queries, deadlocks or an overwhelmed application server.\n"
    "  • 'Network Error': the client failed to establish a connection. Under load this "
    "suggests the server is saturated and refusing new connections.\n"
    "  • 'HTTP 5xx Errors': definitive server-side errors indicating application crashes "
    "or an unhealthy service."
)


def apdex_state(score: float) -> str:
    if score >= 0.85:
        return "positive"
    return "warning" if score >= 0.5 else "critical"


def consistency_state(cv: float) -> str:
    if cv <= 25:
        return "positive"
    return "warning" if cv <= 75 else "critical"


def config_lines(config: LoadTestConfig) -> List[str]:
    target = config.url or ("API-wide scan" if config.endpoints else "N/A")
    run_mode = (
        f"{config.iterations:,} Iterations" if config.run_mode == "iterations"
        else f"{config.duration} seconds"
    )
    lines = [
        f"**Target URL:** {target}",
        f"**HTTP Method:** {config.method}",
        f"**Run Mode:** {run_mode}",
        f"**Peak Virtual Users:** {config.users}",
        f"**Load Profile:** {config.load_profile}",
    ]
    if config.run_mode == "duration":
        if config.load_profile == "ramp-up":
            lines.append(f"**Ramp-up Period:** {config.ramp_up} s")
        elif config.load_profile == "stair-step":
            lines.append(
                f"**Stair Step:** {config.initial_users} users, "
                f"+{config.step_users} every {config.step_duration}s"
            )
    lines.append(f"**Request Pacing:** {config.pacing} ms")
    return lines


def kpi_cards(stats: TestStats) -> List[StatCardRow]:
    errors = int(stats.error_count)
    first = [
        StatCard("Throughput", f"{stats.throughput:.2f} req/s"),
        StatCard("Avg. Response Time", f"{stats.avg_response_time:.0f} ms"),
        StatCard("Error Rate", f"{stats.error_rate:.1f}%", f"{errors:,} failures",
                 "critical" if errors > 0 else "positive"),
    ]
    second = [
        StatCard("Total Requests", f"{int(stats.total_requests):,}"),
        StatCard("Apdex Score", f"{stats.apdex_score:.2f}", "", apdex_state(stats.apdex_score)),
        StatCard("Consistency (CV)", f"{stats.latency_cv:.1f}%", "", consistency_state(stats.latency_cv)),
    ]
    return [StatCardRow(first), StatCardRow(second)]


def explanation(title: str, text: str) -> TextBlock:
    return TextBlock(text, title=title, background=th.BG_LIGHT, text_color=th.TEXT)


class PerformanceReportTemplate(BaseReport):
    """Title page → overview → analysis → visual deep-dives."""

    name = "PerformanceReport"
    kind = "Performance_Report"

    async def _build(self, ctx: RenderContext, export: PerformanceExport) -> Document:
        stats = self.gate.validate(export.stats)
        report = export.report

        # ── Title page ───────────────────────────────────────────────
        self._place(ctx, Section(None, [TitleBlock(
            export.title, "Performance & Load Test Summary", generated_line(),
        )]))

        # ── Test overview ────────────────────────────────────────────
        overview = Section("Test Overview", [TextBlock("\n".join(config_lines(export.config)))],
                           start_on_new_page=True)
        overview.blocks.extend(kpi_cards(stats))
        overview.add(self._summary("KPI Insights", report.kpi_summary if report else None))
        self._place(ctx, overview)

        # ── AI analysis ──────────────────────────────────────────────
        if report is not None:
            self._place(ctx, self._analysis_section(report))

        # ── Deep dives ───────────────────────────────────────────────
        self._place(ctx, Section("Performance Visualizations", [
            explanation("Reading the Timeline Chart", TIMELINE_EXPLANATION),
            self._summary("Timeline Analysis", report.timeline_summary if report else None),
            await self.adapter.embed(figures.TIMELINE, "Response time, load and errors over time"),
        ], keep_together=True))

        timings = stats.avg_network_timings
        if timings is not None:
            self._place(ctx, Section("Network Timing Analysis (Averages)", [
                explanation("Understanding Network Timing", NETWORK_EXPLANATION),
                self._summary("Insights: Network", report.network_summary if report else None),
                await self.adapter.embed(figures.NETWORK_TIMING, "Average time spent per network phase"),
                Table(
                    columns=["Phase", "Average"],
                    rows=[[name, f"{value:.0f} ms"] for name, value in timings.phases().items()]
                    + [["Total", f"{timings.total:.0f} ms"]],
                    weights=[2, 1], align=["left", "right"],
                ),
            ], keep_together=True))

        self._place(ctx, Section("Latency Statistics", [
            explanation("Interpreting Latency Statistics", LATENCY_EXPLANATION),
            self._summary("Latency Insights", report.latency_summary if report else None),
            await self.adapter.embed(figures.LATENCY_DISTRIBUTION, "Distribution of response times"),
            Table(
                columns=["Metric", "Value"],
                rows=[
                    ["Min Response Time", f"{stats.min_response_time:.0f} ms"],
                    ["Avg Response Time", f"{stats.avg_response_time:.0f} ms"],
                    ["Max Response Time", f"{stats.max_response_time:.0f} ms"],
                    ["Standard Deviation", f"{stats.latency_std_dev:.0f} ms"],
                    ["Consistency (CV)", f"{stats.latency_cv:.1f}%"],
                ],
                weights=[2, 1], align=["left", "right"],
            ),
        ], keep_together=True))

        if stats.error_count > 0:
            self._place(ctx, Section("Error Summary", [
                explanation("Analyzing the Error Summary", ERROR_EXPLANATION),
                self._summary("Error Analysis", report.error_summary if report else None),
                await self.adapter.embed(figures.ERROR_DISTRIBUTION, "Failed requests by reason"),
                self._error_table(stats),
            ], keep_together=True))
        else:
            self._log("No errors recorded; Error Summary omitted")

        return ctx.finish(self.kind, export.title)

    # ── helpers ──────────────────────────────────────────────────────
    @staticmethod
    def _summary(title: str, summary: Optional[StructuredSummary]) -> SummaryBlock:
        return SummaryBlock(title, summary)

    def _analysis_section(self, report: PerformanceReport) -> Section:
        section = Section("Analysis & Recommendations", [
            self._summary("Executive Summary", report.executive_summary),
        ])
        for obs in report.key_observations:
            section.add(TextBlock(
                obs.finding, title=obs.metric, quote=True,
                accent_color=th.SEVERITY_COLORS.get(obs.severity, th.TEXT_LIGHT),
            ))
        if report.recommendations:
            section.blocks.extend(item_blocks(numbered(report.recommendations), title="Recommendations"))
        return section

    @staticmethod
    def _error_table(stats: TestStats) -> Table:
        total = stats.error_count or 1
        ordered = sorted(stats.error_distribution.items(), key=lambda kv: kv[1], reverse=True)
        return Table(
            columns=["Error", "Failures", "Share"],
            rows=[[reason, f"{count:,}", f"{count / total * 100:.1f}%"] for reason, count in ordered],
            weights=[3, 1, 1], align=["left", "right", "right"],
        )
