"""
ChartEmbeddingAdapter — awaits one chart snapshot and wraps it as an ImageBlock.

A failed or empty capture becomes an ImageBlock without an asset, which
measures to zero and is skipped. Captures are single attempts; a chart is
never retried.
"""

from __future__ import annotations

import logging
from typing import Optional

from charts.rasterizer import ChartRasterizer
from layout.blocks import ImageBlock

logger = logging.getLogger(__name__)


class ChartEmbeddingAdapter:

    def __init__(self, rasterizer: Optional[ChartRasterizer] = None):
        self.rasterizer = rasterizer
        self.captured = 0
        self.skipped = 0

    async def embed(self, chart_id: str, caption: str = "") -> ImageBlock:
        if self.rasterizer is None:
            self.skipped += 1
            return ImageBlock(asset=None, caption=caption)
        try:
            asset = await self.rasterizer.capture_snapshot(chart_id)
        except Exception as e:
            logger.warning(f"Chart '{chart_id}' capture failed, omitting image: {e}")
            self.skipped += 1
            return ImageBlock(asset=None, caption=caption)

        if asset is None or not asset.is_valid:
            logger.info(f"Chart '{chart_id}' unavailable, omitting image")
            self.skipped += 1
            return ImageBlock(asset=None, caption=caption)

        self.captured += 1
        return ImageBlock(asset=asset, caption=caption)
