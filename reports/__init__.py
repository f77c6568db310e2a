from .performance import PerformanceReportTemplate
from .trend import TrendAnalysisTemplate
from .comparison import ComparisonTemplate

__all__ = [
    "PerformanceReportTemplate",
    "TrendAnalysisTemplate",
    "ComparisonTemplate",
]
