"""
Input value objects for the three report templates.

Payloads arrive as camelCase dictionaries (the dashboard's own JSON shape).
``from_dict`` never raises on missing numbers: absent or non-numeric values
become NaN so ``reports.validation`` can reject them with one clear message.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from layout.blocks import StructuredSummary, normalize_summary

NAN = float("nan")


def _num(data: Dict[str, Any], key: str, default: float = NAN) -> float:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int(data: Dict[str, Any], key: str, default: int = 0) -> int:
    value = _num(data, key)
    return default if math.isnan(value) else int(value)


def _str(data: Dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    return default if value is None else str(value)


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]


# ── Load-test configuration ──────────────────────────────────────────

@dataclass
class LoadTestConfig:
    url: str = ""
    method: str = "GET"
    users: int = 0
    duration: int = 0
    pacing: int = 0
    load_profile: str = "ramp-up"      # ramp-up | stair-step
    ramp_up: int = 0
    initial_users: int = 0
    step_users: int = 0
    step_duration: int = 0
    run_mode: str = "duration"         # duration | iterations
    iterations: int = 0
    endpoints: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "LoadTestConfig":
        data = data or {}
        endpoints = data.get("endpoints")
        return cls(
            url=_str(data, "url"),
            method=_str(data, "method", "GET"),
            users=_int(data, "users"),
            duration=_int(data, "duration"),
            pacing=_int(data, "pacing"),
            load_profile=_str(data, "loadProfile", "ramp-up"),
            ramp_up=_int(data, "rampUp"),
            initial_users=_int(data, "initialUsers"),
            step_users=_int(data, "stepUsers"),
            step_duration=_int(data, "stepDuration"),
            run_mode=_str(data, "runMode", "duration"),
            iterations=_int(data, "iterations"),
            endpoints=list(endpoints) if isinstance(endpoints, list) else [],
        )


# ── Statistics ───────────────────────────────────────────────────────

@dataclass
class NetworkTimings:
    dns: float = 0.0
    tcp: float = 0.0
    tls: float = 0.0
    ttfb: float = 0.0
    download: float = 0.0
    total: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["NetworkTimings"]:
        if not isinstance(data, dict) or not data:
            return None
        return cls(**{k: _num(data, k, 0.0) for k in ("dns", "tcp", "tls", "ttfb", "download", "total")})

    def phases(self) -> Dict[str, float]:
        return {
            "DNS": self.dns,
            "TCP": self.tcp,
            "TLS": self.tls,
            "TTFB": self.ttfb,
            "Download": self.download,
        }


@dataclass
class ApdexBreakdown:
    satisfied: float = 0.0
    tolerating: float = 0.0
    frustrated: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ApdexBreakdown":
        data = data or {}
        return cls(
            satisfied=_num(data, "satisfied", 0.0),
            tolerating=_num(data, "tolerating", 0.0),
            frustrated=_num(data, "frustrated", 0.0),
        )


@dataclass
class TestStats:
    # Not a pytest test class despite the name
    __test__ = False

    total_requests: float = NAN
    success_count: float = NAN
    error_count: float = NAN
    avg_response_time: float = NAN
    min_response_time: float = NAN
    max_response_time: float = NAN
    throughput: float = NAN
    latency_std_dev: float = NAN
    latency_cv: float = NAN
    apdex_score: float = NAN
    apdex_breakdown: ApdexBreakdown = field(default_factory=ApdexBreakdown)
    error_distribution: Dict[str, int] = field(default_factory=dict)
    avg_network_timings: Optional[NetworkTimings] = None

    REQUIRED = (
        "total_requests", "success_count", "error_count",
        "avg_response_time", "min_response_time", "max_response_time",
        "throughput", "latency_std_dev", "latency_cv", "apdex_score",
    )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["TestStats"]:
        if not isinstance(data, dict):
            return None
        distribution = data.get("errorDistribution") or {}
        return cls(
            total_requests=_num(data, "totalRequests"),
            success_count=_num(data, "successCount"),
            error_count=_num(data, "errorCount"),
            avg_response_time=_num(data, "avgResponseTime"),
            min_response_time=_num(data, "minResponseTime"),
            max_response_time=_num(data, "maxResponseTime"),
            throughput=_num(data, "throughput"),
            latency_std_dev=_num(data, "latencyStdDev"),
            latency_cv=_num(data, "latencyCV"),
            apdex_score=_num(data, "apdexScore"),
            apdex_breakdown=ApdexBreakdown.from_dict(data.get("apdexBreakdown")),
            error_distribution={
                str(k): _int(distribution, k) for k in distribution
            } if isinstance(distribution, dict) else {},
            avg_network_timings=NetworkTimings.from_dict(data.get("avgNetworkTimings")),
        )

    @property
    def error_rate(self) -> float:
        """Failed share of all requests, in percent."""
        if not self.total_requests or math.isnan(self.total_requests):
            return 0.0
        return self.error_count / self.total_requests * 100


@dataclass
class TimelinePoint:
    elapsed: float
    users: float = 0.0
    avg_latency: float = 0.0
    min_latency: float = 0.0
    max_latency: float = 0.0
    error_rate: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelinePoint":
        return cls(
            elapsed=_num(data, "elapsed", 0.0),
            users=_num(data, "users", 0.0),
            avg_latency=_num(data, "avgLatency", 0.0),
            min_latency=_num(data, "minLatency", 0.0),
            max_latency=_num(data, "maxLatency", 0.0),
            error_rate=_num(data, "errorRate", 0.0),
        )


# ── AI-generated analyses ────────────────────────────────────────────

@dataclass
class KeyObservation:
    metric: str
    finding: str
    severity: str = "Neutral"          # Positive | Neutral | Warning | Critical

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyObservation":
        return cls(
            metric=_str(data, "metric"),
            finding=_str(data, "finding"),
            severity=_str(data, "severity", "Neutral"),
        )


@dataclass
class PerformanceReport:
    executive_summary: Optional[StructuredSummary] = None
    key_observations: List[KeyObservation] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    kpi_summary: Optional[StructuredSummary] = None
    timeline_summary: Optional[StructuredSummary] = None
    latency_summary: Optional[StructuredSummary] = None
    error_summary: Optional[StructuredSummary] = None
    network_summary: Optional[StructuredSummary] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PerformanceReport"]:
        if not isinstance(data, dict):
            return None
        observations = data.get("keyObservations") or []
        return cls(
            executive_summary=normalize_summary(data.get("executiveSummary")),
            key_observations=[KeyObservation.from_dict(o) for o in observations if isinstance(o, dict)],
            recommendations=_str_list(data.get("recommendations")),
            kpi_summary=normalize_summary(data.get("kpiSummary")),
            timeline_summary=normalize_summary(data.get("timelineSummary")),
            latency_summary=normalize_summary(data.get("latencySummary")),
            error_summary=normalize_summary(data.get("errorSummary")),
            network_summary=normalize_summary(data.get("networkSummary")),
        )


@dataclass
class TrendAnalysisReport:
    overall_trend_summary: str = ""
    performance_threshold: str = ""
    key_observations: List[str] = field(default_factory=list)
    root_cause_suggestion: str = ""
    recommendations: List[str] = field(default_factory=list)
    analyzed_runs_count: int = 0
    conclusive_summary: str = ""
    trend_grade: str = ""
    trend_direction: str = ""
    trend_score: Optional[float] = None
    score_rationale: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TrendAnalysisReport":
        data = data or {}
        score = _num(data, "trendScore")
        return cls(
            overall_trend_summary=_str(data, "overallTrendSummary"),
            performance_threshold=_str(data, "performanceThreshold"),
            key_observations=_str_list(data.get("keyObservations")),
            root_cause_suggestion=_str(data, "rootCauseSuggestion"),
            recommendations=_str_list(data.get("recommendations")),
            analyzed_runs_count=_int(data, "analyzedRunsCount"),
            conclusive_summary=_str(data, "conclusiveSummary"),
            trend_grade=_str(data, "trendGrade"),
            trend_direction=_str(data, "trendDirection"),
            trend_score=None if math.isnan(score) else score,
            score_rationale=_str(data, "scoreRationale"),
        )


@dataclass
class ComparisonMetricChange:
    metric: str
    baseline_value: str = ""
    comparison_value: str = ""
    delta: str = ""
    analysis: str = ""
    impact: str = "Neutral"            # Positive | Negative | Neutral

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComparisonMetricChange":
        return cls(
            metric=_str(data, "metric"),
            baseline_value=_str(data, "baselineValue"),
            comparison_value=_str(data, "comparisonValue"),
            delta=_str(data, "delta"),
            analysis=_str(data, "analysis"),
            impact=_str(data, "impact", "Neutral"),
        )


@dataclass
class ComparisonAnalysisReport:
    comparison_summary: str = ""
    key_metric_changes: List[ComparisonMetricChange] = field(default_factory=list)
    root_cause_analysis: str = ""
    recommendations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ComparisonAnalysisReport"]:
        if not isinstance(data, dict):
            return None
        changes = data.get("keyMetricChanges") or []
        return cls(
            comparison_summary=_str(data, "comparisonSummary"),
            key_metric_changes=[ComparisonMetricChange.from_dict(c) for c in changes if isinstance(c, dict)],
            root_cause_analysis=_str(data, "rootCauseAnalysis"),
            recommendations=_str_list(data.get("recommendations")),
        )


# ── Runs & export requests ───────────────────────────────────────────

@dataclass
class TestRunSummary:
    __test__ = False

    id: str
    created_at: str = ""
    title: str = ""
    config: LoadTestConfig = field(default_factory=LoadTestConfig)
    stats: Optional[TestStats] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestRunSummary":
        return cls(
            id=_str(data, "id"),
            created_at=_str(data, "created_at") or _str(data, "createdAt"),
            title=_str(data, "title"),
            config=LoadTestConfig.from_dict(data.get("config")),
            stats=TestStats.from_dict(data.get("stats")),
        )

    @property
    def date(self) -> str:
        """Calendar date part of ``created_at``."""
        return self.created_at[:10]


@dataclass
class PerformanceExport:
    title: str
    config: LoadTestConfig
    stats: Optional[TestStats]
    report: Optional[PerformanceReport] = None
    timeline: List[TimelinePoint] = field(default_factory=list)
    latency_samples: List[float] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PerformanceExport":
        timeline = data.get("timeline") or []
        samples = data.get("latencySamples") or []
        return cls(
            title=_str(data, "title", "Untitled Test"),
            config=LoadTestConfig.from_dict(data.get("config")),
            stats=TestStats.from_dict(data.get("stats")),
            report=PerformanceReport.from_dict(data.get("report")),
            timeline=[TimelinePoint.from_dict(p) for p in timeline if isinstance(p, dict)],
            latency_samples=[_num({"v": s}, "v", 0.0) for s in samples],
        )


@dataclass
class TrendExport:
    runs: List[TestRunSummary]
    report: TrendAnalysisReport
    title: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrendExport":
        runs = data.get("runs") or []
        return cls(
            runs=[TestRunSummary.from_dict(r) for r in runs if isinstance(r, dict)],
            report=TrendAnalysisReport.from_dict(data.get("report")),
            title=_str(data, "title"),
        )


@dataclass
class ComparisonExport:
    run_a: TestRunSummary
    run_b: TestRunSummary
    report: Optional[ComparisonAnalysisReport] = None
    title: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComparisonExport":
        return cls(
            run_a=TestRunSummary.from_dict(data.get("runA") or {}),
            run_b=TestRunSummary.from_dict(data.get("runB") or {}),
            report=ComparisonAnalysisReport.from_dict(data.get("report")),
            title=_str(data, "title"),
        )
