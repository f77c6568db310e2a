"""
ExportOrchestrator — runs one export action end to end: parse the request,
build its charts, run the template, and emit the PDF.

Usage:
    from orchestrator.export import ExportOrchestrator
    result = await ExportOrchestrator().export_performance(payload)
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Type, Union

import plotly.graph_objects as go

from charts import figures
from charts.embedding import ChartEmbeddingAdapter
from charts.rasterizer import ChartRasterizer, PlotlyChartRasterizer
from layout.exceptions import InvalidStatisticsError, ReportError
from layout.theme import Theme, register_fonts
from output.sink import OutputSink, ReportArtifact
from reports import ComparisonTemplate, PerformanceReportTemplate, TrendAnalysisTemplate
from reports.base import BaseReport
from reports.models import ComparisonExport, PerformanceExport, TrendExport
from reports.trend import runs_frame

logger = logging.getLogger(__name__)

RasterizerFactory = Callable[[Dict[str, go.Figure]], ChartRasterizer]


def plotly_rasterizer(charts: Dict[str, go.Figure]) -> ChartRasterizer:
    rasterizer = PlotlyChartRasterizer()
    for chart_id, figure in charts.items():
        rasterizer.register(chart_id, figure)
    return rasterizer


@dataclass
class ExportResult:
    """Outcome of one export: either an artifact or one failure message."""
    export_id: str = ""
    kind: str = ""
    status: str = "pending"          # pending | running | completed | failed
    duration_seconds: float = 0.0
    artifact: Optional[ReportArtifact] = None
    saved_path: str = ""
    error: str = ""
    error_type: str = ""
    charts_captured: int = 0
    charts_skipped: int = 0
    report_log: Dict[str, Any] = field(default_factory=dict)

    def summary_dict(self) -> Dict[str, Any]:
        """Serialisable summary for API responses."""
        return {
            "export_id": self.export_id,
            "kind": self.kind,
            "status": self.status,
            "duration_seconds": self.duration_seconds,
            "filename": self.artifact.filename if self.artifact else None,
            "pages": self.artifact.page_count if self.artifact else 0,
            "saved_path": self.saved_path,
            "charts_captured": self.charts_captured,
            "charts_skipped": self.charts_skipped,
            "error": self.error,
            "error_type": self.error_type,
        }


# ── Chart builders per template ──────────────────────────────────────

def performance_charts(request: PerformanceExport) -> Dict[str, go.Figure]:
    stats = request.stats
    charts = {
        figures.TIMELINE: figures.timeline_figure(request.timeline),
        figures.LATENCY_DISTRIBUTION: figures.latency_distribution_figure(request.latency_samples),
    }
    if stats is not None:
        charts[figures.NETWORK_TIMING] = figures.network_timing_figure(stats.avg_network_timings)
        charts[figures.ERROR_DISTRIBUTION] = figures.error_distribution_figure(stats.error_distribution)
    return {k: v for k, v in charts.items() if v is not None}


def trend_charts(request: TrendExport) -> Dict[str, go.Figure]:
    figure = figures.trend_figure(runs_frame(request.runs))
    return {figures.TREND: figure} if figure is not None else {}


def comparison_charts(request: ComparisonExport) -> Dict[str, go.Figure]:
    built = figures.comparison_figures(request.run_a, request.run_b)
    return dict(zip((figures.COMPARISON_LATENCY, figures.COMPARISON_THROUGHPUT), built))


class ExportOrchestrator:
    """Execute Parse → Charts → Template → Sink for one export request."""

    def __init__(self, rasterizer_factory: RasterizerFactory = plotly_rasterizer,
                 sink: Optional[OutputSink] = None, theme: Optional[Theme] = None,
                 save_dir: Optional[Path] = None):
        self.rasterizer_factory = rasterizer_factory
        self.theme = theme or Theme(fonts=register_fonts())
        self.sink = sink or OutputSink(theme=self.theme)
        self.save_dir = save_dir

    async def export_performance(self, payload: Union[Dict[str, Any], PerformanceExport]) -> ExportResult:
        return await self._run(PerformanceReportTemplate, PerformanceExport, performance_charts, payload)

    async def export_trend(self, payload: Union[Dict[str, Any], TrendExport]) -> ExportResult:
        return await self._run(TrendAnalysisTemplate, TrendExport, trend_charts, payload)

    async def export_comparison(self, payload: Union[Dict[str, Any], ComparisonExport]) -> ExportResult:
        return await self._run(ComparisonTemplate, ComparisonExport, comparison_charts, payload)

    async def _run(self, template_cls: Type[BaseReport], request_cls, chart_builder, payload) -> ExportResult:
        export_id = uuid.uuid4().hex[:12]
        result = ExportResult(export_id=export_id, kind=template_cls.kind, status="running")
        start = time.perf_counter()
        template: Optional[BaseReport] = None

        try:
            request = request_cls.from_dict(payload) if isinstance(payload, dict) else payload

            # ── 1) Charts ────────────────────────────────────────────
            adapter = ChartEmbeddingAdapter(self.rasterizer_factory(chart_builder(request)))

            # ── 2) Template ──────────────────────────────────────────
            template = template_cls(adapter, theme=self.theme)
            document = await template.run(request)
            result.charts_captured, result.charts_skipped = adapter.captured, adapter.skipped

            # ── 3) Sink ──────────────────────────────────────────────
            result.artifact = self.sink.emit(document)
            if self.save_dir is not None:
                result.saved_path = str(self.sink.save(result.artifact, self.save_dir))

            result.status = "completed"

        except InvalidStatisticsError as exc:
            result.status = "failed"
            result.error_type = type(exc).__name__
            result.error = f"Cannot build report: {exc}"
        except ReportError as exc:
            result.status = "failed"
            result.error_type = type(exc).__name__
            result.error = str(exc)
        except Exception as exc:
            result.status = "failed"
            result.error_type = type(exc).__name__
            result.error = f"Export failed: {exc}"
            logger.exception("Export %s failed", export_id)

        if result.status == "failed":
            result.artifact = None
        if template is not None:
            result.report_log = asdict(template.log)
        result.duration_seconds = round(time.perf_counter() - start, 3)
        logger.info(
            "Export %s (%s) %s in %.2fs",
            export_id, result.kind, result.status, result.duration_seconds,
        )
        return result
