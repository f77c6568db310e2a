"""
Shared fixtures: dashboard-shaped payloads and an offline chart rasterizer.
"""

import sys
from io import BytesIO
from pathlib import Path
from typing import Dict, Optional

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from charts.rasterizer import ChartRasterizer
from layout.blocks import RasterAsset


def make_png(width: int = 400, height: int = 200, color=(59, 130, 246)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class StaticRasterizer(ChartRasterizer):
    """Returns the same PNG for every known chart id; records every request."""

    def __init__(self, chart_ids=None, width: int = 400, height: int = 200):
        self.chart_ids = set(chart_ids) if chart_ids is not None else None
        self.asset = RasterAsset(make_png(width, height), width, height)
        self.requested = []

    async def capture_snapshot(self, chart_id: str) -> Optional[RasterAsset]:
        self.requested.append(chart_id)
        if self.chart_ids is not None and chart_id not in self.chart_ids:
            return None
        return self.asset


def stats_dict(**overrides) -> Dict:
    stats = {
        "totalRequests": 10000,
        "successCount": 9950,
        "errorCount": 50,
        "avgResponseTime": 120.0,
        "minResponseTime": 35.0,
        "maxResponseTime": 980.0,
        "throughput": 250.5,
        "latencyStdDev": 40.2,
        "latencyCV": 33.5,
        "apdexScore": 0.92,
        "apdexBreakdown": {"satisfied": 9000, "tolerating": 800, "frustrated": 200},
        "errorDistribution": {"HTTP 500": 30, "Timeout": 20},
        "avgNetworkTimings": {"dns": 2, "tcp": 5, "tls": 12, "ttfb": 90, "download": 11, "total": 120},
    }
    stats.update(overrides)
    return stats


def run_dict(run_id: str, users: int, avg: float, throughput: float, **stats_overrides) -> Dict:
    return {
        "id": run_id,
        "created_at": "2024-05-01T10:00:00Z",
        "title": f"Run {run_id}",
        "config": {"url": "https://shop.example.com", "users": users, "duration": 60},
        "stats": stats_dict(avgResponseTime=avg, throughput=throughput, **stats_overrides),
    }


@pytest.fixture
def png_bytes():
    return make_png


@pytest.fixture
def rasterizer_factory():
    """ExportOrchestrator-compatible factory producing StaticRasterizers."""
    created = []

    def factory(charts):
        rasterizer = StaticRasterizer(chart_ids=charts.keys())
        created.append(rasterizer)
        return rasterizer

    factory.created = created
    return factory


@pytest.fixture
def static_rasterizer():
    return StaticRasterizer()


@pytest.fixture
def performance_payload():
    return {
        "title": "Checkout Flow",
        "config": {
            "url": "https://shop.example.com/checkout",
            "method": "POST",
            "users": 200,
            "duration": 120,
            "rampUp": 30,
            "loadProfile": "ramp-up",
        },
        "stats": stats_dict(),
        "report": {
            "executiveSummary": {"analysis": "The service held **250 req/s** with stable latency.",
                                 "suggestion": "Add a cache in front of the catalog service."},
            "keyObservations": [
                {"metric": "Latency", "finding": "p95 rose after 150 users.", "severity": "Warning"},
                {"metric": "Errors", "finding": "HTTP 500s cluster at peak load.", "severity": "Critical"},
            ],
            "recommendations": ["Scale the checkout pods", "Tune the DB pool"],
            "kpiSummary": "Throughput met the target.",
            "errorSummary": {"analysis": "Errors are dominated by HTTP 500."},
        },
        "timeline": [
            {"elapsed": i * 10, "users": i * 20, "avgLatency": 100 + i, "minLatency": 40,
             "maxLatency": 400 + i * 5, "errorRate": 0.5}
            for i in range(10)
        ],
        "latencySamples": [100, 110, 125, 140, 90, 300, 95, 120],
    }


@pytest.fixture
def trend_payload():
    return {
        "runs": [
            run_dict("r3", 300, 180.0, 400.0),
            run_dict("r1", 100, 120.0, 500.0),
            run_dict("r2", 200, 150.0, 450.0),
        ],
        "report": {
            "overallTrendSummary": "Latency grows with load.",
            "performanceThreshold": "Degradation starts at **200 users**.",
            "keyObservations": ["Latency +50% from 100 to 300 users", "Throughput falls 20%"],
            "rootCauseSuggestion": "Connection pool saturation.",
            "recommendations": ["Increase pool size"],
            "analyzedRunsCount": 3,
            "conclusiveSummary": "The system scales to 200 users.",
            "trendGrade": "C",
            "trendDirection": "Degrading",
            "trendScore": 58,
            "scoreRationale": "Latency worsened steadily as load increased.",
        },
    }


@pytest.fixture
def comparison_payload():
    return {
        "runA": run_dict("a", 100, 120.0, 500.0),
        "runB": run_dict("b", 100, 90.0, 550.0),
        "report": {
            "comparisonSummary": "Run B is faster across the board.",
            "keyMetricChanges": [
                {"metric": "Avg Latency", "baselineValue": "120ms", "comparisonValue": "90ms",
                 "delta": "-25%", "analysis": "Caching helped.", "impact": "Positive"},
            ],
            "rootCauseAnalysis": "A new cache layer was introduced.",
            "recommendations": ["Keep the cache enabled"],
        },
    }


@pytest.fixture
def stats_factory():
    return stats_dict
