"""
Export routes — build a report from dashboard JSON and return the PDF.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Dict
from urllib.parse import quote

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import Response

from orchestrator.export import ExportOrchestrator, ExportResult

router = APIRouter()


def get_orchestrator() -> ExportOrchestrator:
    return ExportOrchestrator()


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII ``filename`` and, when needed, RFC 5987 ``filename*``."""
    folded = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    folded = re.sub(r"_{2,}", "_", folded)
    header = f'attachment; filename="{folded}"'
    if folded != filename:
        header += f"; filename*=UTF-8''{quote(filename)}"
    return header


def _download(result: ExportResult) -> Response:
    if result.status != "completed" or result.artifact is None:
        status = 422 if result.error_type == "InvalidStatisticsError" else 500
        raise HTTPException(status, result.error or "Report export failed.")

    artifact = result.artifact
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": content_disposition(artifact.filename),
            "X-Report-Pages": str(artifact.page_count),
        },
    )


@router.post("/export/performance")
async def export_performance(
    payload: Dict[str, Any] = Body(...),
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """Single-run performance report.

    Body: ``{title, config, stats, report?, timeline?, latencySamples?}``
    """
    return _download(await orchestrator.export_performance(payload))


@router.post("/export/trend")
async def export_trend(
    payload: Dict[str, Any] = Body(...),
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """Multi-run trend analysis. Body: ``{runs, report, title?}``"""
    return _download(await orchestrator.export_trend(payload))


@router.post("/export/comparison")
async def export_comparison(
    payload: Dict[str, Any] = Body(...),
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """Baseline vs. comparison run. Body: ``{runA, runB, report?, title?}``"""
    return _download(await orchestrator.export_comparison(payload))
