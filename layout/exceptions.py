"""Exception hierarchy for report generation.

Only ``InvalidStatisticsError`` aborts an export. Chart capture failures are
recovered inside the embedding adapter by omitting the image.
"""


class ReportError(Exception):
    """Base exception for all report generation errors."""
    pass


class InvalidStatisticsError(ReportError):
    """Raised when the statistics a report is built from are malformed."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid statistics field '{field}': {reason}")


class ReportBuildError(ReportError):
    """Raised when a document could not be assembled or emitted."""
    pass


class ChartCaptureError(ReportError):
    """Raised by a rasterizer when a chart snapshot cannot be produced."""
    pass
