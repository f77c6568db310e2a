"""
Block types — the smallest independently measured and drawn units of a report.

A Block only carries semantic content. Heights are computed right before
placement by ``layout.measure`` and are never stored on the block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Union

from reportlab.lib import colors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StructuredSummary:
    analysis: str
    suggestion: str = ""


SummaryInput = Union[None, str, dict, StructuredSummary]


def normalize_summary(value: Any) -> Optional[StructuredSummary]:
    """Accept absent, plain string, or ``{analysis, suggestion?}`` uniformly.

    Anything without analysis text collapses to None so the block is omitted.
    """
    if value is None:
        return None
    if isinstance(value, StructuredSummary):
        summary = value
    elif isinstance(value, str):
        summary = StructuredSummary(analysis=value)
    elif isinstance(value, dict):
        summary = StructuredSummary(
            analysis=str(value.get("analysis") or ""),
            suggestion=str(value.get("suggestion") or ""),
        )
    else:
        logger.warning(f"Unsupported summary shape {type(value).__name__}; omitting block")
        return None
    if not summary.analysis.strip():
        return None
    return StructuredSummary(summary.analysis.strip(), (summary.suggestion or "").strip())


@dataclass(frozen=True)
class RasterAsset:
    """PNG snapshot of a chart plus its intrinsic pixel size."""

    data: bytes = field(repr=False)
    width: int
    height: int

    @property
    def is_valid(self) -> bool:
        return bool(self.data) and self.width > 0 and self.height > 0


# ── Block union ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class SectionHeader:
    text: str


@dataclass(frozen=True)
class TitleBlock:
    title: str
    subtitle: str = ""
    generated_line: str = ""


@dataclass(frozen=True)
class TextBlock:
    text: str
    title: str = ""
    quote: bool = False
    accent_color: Optional[colors.Color] = None
    background: Optional[colors.Color] = None
    border: Optional[colors.Color] = None
    text_color: Optional[colors.Color] = None
    italic: bool = False
    # Trailing space below the block; None uses the theme block gap
    gap: Optional[float] = None


@dataclass(frozen=True)
class StatCard:
    title: str
    value: str
    sub_value: str = ""
    state: str = "neutral"  # neutral | positive | warning | critical


@dataclass(frozen=True)
class StatCardRow:
    cards: Sequence[StatCard]
    columns: int = 3

    def __post_init__(self):
        if len(self.cards) > self.columns:
            raise ValueError(f"{len(self.cards)} cards do not fit a row of {self.columns}; use chunk_cards")


@dataclass(frozen=True)
class RunCard:
    """Per-run tile of the trend report's visual summary grid."""

    profile: str
    date: str
    peak_users: int
    success_count: int
    success_rate: float
    avg_latency_ms: float
    throughput: float
    stair_step: bool = False


@dataclass(frozen=True)
class RunCardRow:
    cards: Sequence[RunCard]
    columns: int = 2

    def __post_init__(self):
        if len(self.cards) > self.columns:
            raise ValueError(f"{len(self.cards)} cards do not fit a row of {self.columns}; use chunk_cards")


@dataclass(frozen=True)
class SummaryBlock:
    title: str
    summary: Optional[StructuredSummary]


@dataclass(frozen=True)
class ScoreCard:
    grade: str
    direction: str = ""
    score: Optional[float] = None
    rationale: str = ""
    show_legend: bool = True


@dataclass(frozen=True)
class Table:
    columns: Sequence[str]
    rows: Sequence[Sequence[str]]
    weights: Optional[Sequence[float]] = None
    align: Optional[Sequence[str]] = None  # "left" | "right" | "center" per column
    header_fill: Optional[colors.Color] = None
    repeat_header: bool = True


@dataclass(frozen=True)
class ImageBlock:
    asset: Optional[RasterAsset]
    caption: str = ""


Block = Union[
    SectionHeader, TitleBlock, TextBlock, StatCardRow, RunCardRow,
    SummaryBlock, ScoreCard, Table, ImageBlock,
]


def chunk_cards(cards: List[Any], columns: int) -> List[List[Any]]:
    return [cards[i:i + columns] for i in range(0, len(cards), columns)]
