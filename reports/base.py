"""
BaseReport — contract shared by the three document templates.

Every template receives a typed export request and builds one Document by
placing an ordered list of Sections. Logging, timing, and error wrapping
are handled here so templates only implement `_build`.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from reportlab.lib.units import mm

from charts.embedding import ChartEmbeddingAdapter
from layout.blocks import TextBlock
from layout.context import Document, PageGeometry, RenderContext
from layout.exceptions import InvalidStatisticsError, ReportBuildError
from layout.sections import Section, place_section
from layout.theme import DEFAULT_THEME, Theme
from reports.validation import StatisticsGate

logger = logging.getLogger(__name__)


@dataclass
class ReportLog:
    """Structured log entry produced by every template run."""
    report_name: str = ""
    status: str = "pending"          # pending | running | success | error
    duration_seconds: float = 0.0
    messages: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class BaseReport(ABC):
    """Abstract base for every report template."""

    name: str = "BaseReport"
    kind: str = "Report"             # filename prefix

    def __init__(self, adapter: Optional[ChartEmbeddingAdapter] = None,
                 geometry: Optional[PageGeometry] = None,
                 theme: Theme = DEFAULT_THEME) -> None:
        self.adapter = adapter or ChartEmbeddingAdapter()
        self.geometry = geometry or PageGeometry()
        self.theme = theme
        self.gate = StatisticsGate()
        self.log = ReportLog(report_name=self.name)

    # ── public entry point ───────────────────────────────────────────
    async def run(self, input_data: Any) -> Document:
        """Build the document with timing, logging, and error handling.

        Invalid statistics propagate unchanged; any other failure is
        wrapped in ReportBuildError. The partial document is discarded.
        """
        self.log = ReportLog(report_name=self.name, status="running")
        start = time.perf_counter()
        try:
            self._log(f"{self.name} started")
            ctx = RenderContext(self.geometry, self.theme)
            document = await self._build(ctx, input_data)
            self.log.status = "success"
            self.log.metadata["pages"] = document.page_count
            self._log(f"{self.name} completed with {document.page_count} page(s)")
            return document
        except InvalidStatisticsError as exc:
            self.log.status = "error"
            self.log.errors.append(str(exc))
            logger.error("[%s] rejected statistics: %s", self.name, exc)
            raise
        except Exception as exc:
            self.log.status = "error"
            self.log.errors.append(str(exc))
            logger.exception("[%s] failed", self.name)
            raise ReportBuildError(f"{self.name} failed: {exc}") from exc
        finally:
            self.log.duration_seconds = round(time.perf_counter() - start, 3)

    # ── subclasses implement this ────────────────────────────────────
    @abstractmethod
    async def _build(self, ctx: RenderContext, input_data: Any) -> Document:
        """Place every section and return ``ctx.finish(...)``."""
        ...

    # ── helpers ──────────────────────────────────────────────────────
    def _place(self, ctx: RenderContext, section: Section) -> bool:
        placed = place_section(ctx, section)
        if not placed and section.header:
            self.log.metadata.setdefault("omitted_sections", []).append(section.header)
        return placed

    def _place_all(self, ctx: RenderContext, sections: Sequence[Section],
                   start_on_new_page: bool = False) -> None:
        """Place sections in order. ``start_on_new_page`` applies to the first one placed."""
        pending = start_on_new_page
        for section in sections:
            if pending:
                section = replace(section, start_on_new_page=True)
            if self._place(ctx, section):
                pending = False

    def _log(self, message: str) -> None:
        self.log.messages.append(message)
        logger.info("[%s] %s", self.name, message)


# ── Shared formatting ────────────────────────────────────────────────

def generated_line(prefix: str = "Report Generated", now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{prefix}: {now:%Y-%m-%d %H:%M:%S}"


def percent_change(baseline: float, value: float) -> Optional[float]:
    """Relative change from ``baseline`` in percent; None when the baseline is zero."""
    if not baseline:
        return None
    return (value - baseline) / baseline * 100


def format_change(pct: Optional[float], plus_on_zero: bool = True) -> str:
    if pct is None:
        return "-"
    positive = pct >= 0 if plus_on_zero else pct > 0
    return f"{'+' if positive else ''}{pct:.1f}%"


def numbered(items: Sequence[str]) -> List[str]:
    return [f"{i}. {item}" for i, item in enumerate(items, 1)]


def bulleted(items: Sequence[str]) -> List[str]:
    return [f"• {item}" for item in items]


LIST_ITEM_GAP = 1.5 * mm


def item_blocks(lines: Sequence[str], title: str = "", **style) -> List[TextBlock]:
    """One TextBlock per list entry so long lists break between entries.

    ``title`` goes on the first entry; the last keeps the regular block gap.
    """
    blocks = []
    for idx, line in enumerate(lines):
        last = idx == len(lines) - 1
        blocks.append(TextBlock(line, title=title if idx == 0 else "",
                                gap=None if last else LIST_ITEM_GAP, **style))
    return blocks
