from .blocks import (
    ImageBlock,
    RasterAsset,
    RunCard,
    RunCardRow,
    ScoreCard,
    SectionHeader,
    StatCard,
    StatCardRow,
    StructuredSummary,
    SummaryBlock,
    Table,
    TextBlock,
    TitleBlock,
    normalize_summary,
)
from .context import Document, Page, PageGeometry, Placement, RenderContext
from .exceptions import ChartCaptureError, InvalidStatisticsError, ReportBuildError, ReportError
from .measure import measure
from .renderers import render_block
from .sections import Section, place_section

__all__ = [
    "ImageBlock",
    "RasterAsset",
    "RunCard",
    "RunCardRow",
    "ScoreCard",
    "SectionHeader",
    "StatCard",
    "StatCardRow",
    "StructuredSummary",
    "SummaryBlock",
    "Table",
    "TextBlock",
    "TitleBlock",
    "normalize_summary",
    "Document",
    "Page",
    "PageGeometry",
    "Placement",
    "RenderContext",
    "ChartCaptureError",
    "InvalidStatisticsError",
    "ReportBuildError",
    "ReportError",
    "measure",
    "render_block",
    "Section",
    "place_section",
]
