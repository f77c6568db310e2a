"""
Centralized configuration for the load-test report engine.
All settings are read from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ── Paths ────────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", str(BASE_DIR / "outputs")))
FONT_DIR = os.getenv("REPORT_FONT_DIR", str(BASE_DIR / "assets" / "fonts"))

# ── Server ───────────────────────────────────────────────────────────────
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))

# ── Chart capture ────────────────────────────────────────────────────────
CHART_CAPTURE_TIMEOUT = float(os.getenv("CHART_CAPTURE_TIMEOUT", "15"))
CHART_CAPTURE_SCALE = float(os.getenv("CHART_CAPTURE_SCALE", "2"))

# ── Branding ─────────────────────────────────────────────────────────────
BRAND_NAME = os.getenv("BRAND_NAME", "RO-PORTAL")
REPORT_FOOTER_LABEL = os.getenv(
    "REPORT_FOOTER_LABEL", f"{BRAND_NAME} Performance Test Report"
)
