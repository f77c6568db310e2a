"""
Plotly figure builders for every chart a report can embed.

Each builder returns None when its data is absent, so the chart is simply
never registered and the report omits its image.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

logger = logging.getLogger(__name__)

# ── Chart ids ────────────────────────────────────────────────────────
TIMELINE = "response-time-chart"
NETWORK_TIMING = "network-timing-chart"
LATENCY_DISTRIBUTION = "latency-distribution-chart"
ERROR_DISTRIBUTION = "error-distribution-chart"
TREND = "trend-chart"
COMPARISON_LATENCY = "comparison-latency-chart"
COMPARISON_THROUGHPUT = "comparison-throughput-chart"

_LAYOUT = dict(
    template="plotly_white",
    font=dict(family="Inter, sans-serif"),
    margin=dict(l=40, r=20, t=50, b=40),
    height=400,
    width=800,
)

_USERS = "#16a34a"
_LATENCY = "#3b82f6"
_RANGE = "rgba(249, 115, 22, 0.25)"
_ERRORS = "#ef4444"


def timeline_figure(points: Sequence[Any]) -> Optional[go.Figure]:
    if not points:
        return None
    df = pd.DataFrame([asdict(p) for p in points]).sort_values("elapsed")
    fig = make_subplots(specs=[[{"secondary_y": True}]])
    fig.add_trace(go.Scatter(x=df["elapsed"], y=df["max_latency"], mode="lines",
                             line=dict(width=0), showlegend=False, hoverinfo="skip"))
    fig.add_trace(go.Scatter(x=df["elapsed"], y=df["min_latency"], mode="lines", fill="tonexty",
                             fillcolor=_RANGE, line=dict(width=0), name="Latency Range"))
    fig.add_trace(go.Scatter(x=df["elapsed"], y=df["avg_latency"], mode="lines",
                             line=dict(color=_LATENCY, width=2.5), name="Avg Latency (ms)"))
    fig.add_trace(go.Bar(x=df["elapsed"], y=df["error_rate"], marker_color=_ERRORS,
                         opacity=0.6, name="Errors (%)"), secondary_y=True)
    fig.add_trace(go.Scatter(x=df["elapsed"], y=df["users"], mode="lines",
                             line=dict(color=_USERS, width=2), name="Virtual Users"), secondary_y=True)
    fig.update_layout(title="Response Time Over Load", xaxis_title="Elapsed (s)", **_LAYOUT)
    fig.update_yaxes(title_text="Latency (ms)", secondary_y=False)
    fig.update_yaxes(title_text="Users / Errors %", secondary_y=True)
    return fig


def network_timing_figure(timings: Any) -> Optional[go.Figure]:
    if timings is None:
        return None
    phases = timings.phases()
    fig = go.Figure(go.Bar(
        x=list(phases.values()), y=list(phases.keys()), orientation="h",
        marker_color=["#a78bfa", "#60a5fa", "#34d399", "#f59e0b", "#f87171"],
        text=[f"{v:.0f} ms" for v in phases.values()], textposition="auto",
    ))
    fig.update_layout(title="Average Network Timing Breakdown", xaxis_title="ms", **_LAYOUT)
    fig.update_yaxes(autorange="reversed")
    return fig


def latency_distribution_figure(samples: Sequence[float], bins: int = 20) -> Optional[go.Figure]:
    values = np.asarray(samples, dtype=float)
    values = values[np.isfinite(values)]
    if values.size == 0:
        return None
    counts, edges = np.histogram(values, bins=min(bins, max(int(values.size), 1)))
    labels = [f"{edges[i]:.0f}-{edges[i + 1]:.0f}" for i in range(len(counts))]
    fig = go.Figure(go.Bar(x=labels, y=counts, marker_color=_LATENCY, opacity=0.85))
    fig.update_layout(title="Latency Distribution", xaxis_title="Response time (ms)",
                      yaxis_title="Requests", **_LAYOUT)
    return fig


def error_distribution_figure(distribution: Dict[str, int]) -> Optional[go.Figure]:
    items = sorted(((k, v) for k, v in distribution.items() if v > 0), key=lambda kv: kv[1], reverse=True)
    if not items:
        return None
    fig = go.Figure(go.Pie(labels=[k for k, _ in items], values=[v for _, v in items], hole=0.45))
    fig.update_layout(title="Error Distribution", **_LAYOUT)
    return fig


def trend_figure(frame: pd.DataFrame) -> Optional[go.Figure]:
    """Latency and throughput progression across runs ordered by peak users."""
    frame = frame.dropna(subset=["avg_latency", "throughput"])
    if len(frame) < 2:
        return None
    fig = make_subplots(specs=[[{"secondary_y": True}]])
    fig.add_trace(go.Scatter(x=frame["users"], y=frame["avg_latency"], mode="lines+markers",
                             line=dict(color=_LATENCY, width=2.5), name="Avg Latency (ms)"))
    fig.add_trace(go.Scatter(x=frame["users"], y=frame["throughput"], mode="lines+markers",
                             line=dict(color=_USERS, width=2.5), name="Throughput (req/s)"),
                  secondary_y=True)
    fig.update_layout(title="Metric Progression", xaxis_title="Peak users", **_LAYOUT)
    return fig


def comparison_figures(run_a: Any, run_b: Any) -> List[go.Figure]:
    if run_a.stats is None or run_b.stats is None:
        return []
    labels = [f"Baseline ({run_a.date or run_a.id})", f"Comparison ({run_b.date or run_b.id})"]
    latency = go.Figure(go.Bar(
        x=labels, y=[run_a.stats.avg_response_time, run_b.stats.avg_response_time],
        marker_color=["#9ca3af", _LATENCY],
    ))
    latency.update_layout(title="Average Latency (ms)", **_LAYOUT)
    throughput = go.Figure(go.Bar(
        x=labels, y=[run_a.stats.throughput, run_b.stats.throughput],
        marker_color=["#9ca3af", _USERS],
    ))
    throughput.update_layout(title="Throughput (req/s)", **_LAYOUT)
    return [latency, throughput]
