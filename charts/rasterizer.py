"""
Chart rasterization — turns registered Plotly figures into PNG snapshots.

Rendering goes through kaleido (``plotly.io.to_image``) in a worker thread,
bounded by a timeout. kaleido drives a single headless browser, so captures
are serialised with a lock.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Dict, Optional

import plotly.graph_objects as go
import plotly.io as pio
from reportlab.lib.utils import ImageReader

from config.settings import CHART_CAPTURE_SCALE, CHART_CAPTURE_TIMEOUT
from layout.blocks import RasterAsset
from layout.exceptions import ChartCaptureError

logger = logging.getLogger(__name__)


class ChartRasterizer(ABC):
    """Collaborator contract: chart id in, raster snapshot (or None) out."""

    @abstractmethod
    async def capture_snapshot(self, chart_id: str) -> Optional[RasterAsset]:
        ...


def png_size(data: bytes) -> tuple:
    width, height = ImageReader(BytesIO(data)).getSize()
    return int(width), int(height)


class PlotlyChartRasterizer(ChartRasterizer):
    """Registry of chart id → Plotly figure, rendered on demand."""

    def __init__(self, timeout: float = CHART_CAPTURE_TIMEOUT, scale: float = CHART_CAPTURE_SCALE):
        self.timeout = timeout
        self.scale = scale
        self._figures: Dict[str, go.Figure] = {}
        self._lock = asyncio.Lock()

    def register(self, chart_id: str, figure: Optional[go.Figure]) -> None:
        if figure is not None:
            self._figures[chart_id] = figure

    def __contains__(self, chart_id: str) -> bool:
        return chart_id in self._figures

    async def capture_snapshot(self, chart_id: str) -> Optional[RasterAsset]:
        figure = self._figures.get(chart_id)
        if figure is None:
            logger.info(f"No chart registered under '{chart_id}'")
            return None

        async with self._lock:
            try:
                data = await asyncio.wait_for(
                    asyncio.to_thread(pio.to_image, figure, format="png", scale=self.scale),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError as e:
                raise ChartCaptureError(f"Chart '{chart_id}' timed out after {self.timeout}s") from e
            except Exception as e:
                raise ChartCaptureError(f"Chart '{chart_id}' failed to render: {e}") from e

        try:
            width, height = png_size(data)
        except Exception as e:
            raise ChartCaptureError(f"Chart '{chart_id}' produced an unreadable image: {e}") from e
        logger.debug(f"Captured chart '{chart_id}' ({width}x{height}px)")
        return RasterAsset(data=data, width=width, height=height)
