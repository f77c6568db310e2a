"""
StatisticsGate — fatal validation of the core statistics a report is built on.

Optional inputs (AI prose, charts, network timings) are never checked here;
missing ones simply drop their blocks. Only the statistics object itself can
abort an export, since a document built on broken numbers is worse than none.
"""

import logging
from typing import Optional

import numpy as np

from layout.exceptions import InvalidStatisticsError
from reports.models import TestStats

logger = logging.getLogger(__name__)


class StatisticsGate:
    """Validates ``TestStats`` before any template starts drawing."""

    COUNT_FIELDS = ("total_requests", "success_count", "error_count")

    def validate(self, stats: Optional[TestStats], label: str = "stats") -> TestStats:
        if stats is None:
            raise InvalidStatisticsError(label, "no statistics were supplied")

        values = np.array([getattr(stats, name) for name in TestStats.REQUIRED], dtype=float)
        bad = ~np.isfinite(values)
        if bad.any():
            name = TestStats.REQUIRED[int(np.argmax(bad))]
            raise InvalidStatisticsError(f"{label}.{name}", "missing or not a finite number")

        for name in self.COUNT_FIELDS:
            if getattr(stats, name) < 0:
                raise InvalidStatisticsError(f"{label}.{name}", "must not be negative")
        if stats.error_count > stats.total_requests:
            raise InvalidStatisticsError(f"{label}.error_count", "exceeds total_requests")
        if not 0.0 <= stats.apdex_score <= 1.0:
            raise InvalidStatisticsError(f"{label}.apdex_score", "must lie between 0 and 1")

        logger.debug(f"{label}: statistics passed validation")
        return stats
