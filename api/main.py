"""
FastAPI application — main entry point.

Run with:  uvicorn api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes.export import router as export_router
from config.settings import BRAND_NAME, CHART_CAPTURE_SCALE, CHART_CAPTURE_TIMEOUT, FONT_DIR

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-7s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("API")
logger.info(f"Chart capture: timeout {CHART_CAPTURE_TIMEOUT}s, scale x{CHART_CAPTURE_SCALE}")
logger.info(f"Report fonts from {FONT_DIR or 'built-in Helvetica'}")

# ── App ──────────────────────────────────────────────────────────────
app = FastAPI(
    title=f"{BRAND_NAME} Report API",
    description="Render performance, trend-analysis and comparison reports "
                "for load-test runs as paginated PDF downloads.",
    version="1.0.0",
)

# ── CORS ─────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ───────────────────────────────────────────────────────────
app.include_router(export_router, prefix="/api", tags=["Report Export"])


@app.get("/", tags=["Health"])
async def health_check():
    """Health-check endpoint."""
    return {"status": "healthy", "service": BRAND_NAME}
