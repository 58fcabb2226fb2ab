"""Application configuration."""

import os
from pathlib import Path

DATA_DIR = Path(os.environ.get("DATA_DIR", str(Path(__file__).parent.parent / "data")))
DATA_DIR.mkdir(parents=True, exist_ok=True)

UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR", str(DATA_DIR / "uploads")))
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))

# Sessions
CODE_TTL_SECONDS = int(os.environ.get("CODE_TTL_SECONDS", "600"))
SWEEP_INTERVAL_SECONDS = int(os.environ.get("SWEEP_INTERVAL_SECONDS", "60"))
PIN_MAX_LENGTH = int(os.environ.get("PIN_MAX_LENGTH", "16"))

# Uploads
MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))
ALLOWED_MIME_TYPES = [
    t.strip()
    for t in os.environ.get(
        "ALLOWED_MIME_TYPES",
        "application/pdf,"
        "application/vnd.openxmlformats-officedocument.presentationml.presentation,"
        "image/png,"
        "image/jpeg",
    ).split(",")
    if t.strip()
]

# Download throttling (per client IP, HEAD and GET share the budget)
DOWNLOAD_RATE_LIMIT = int(os.environ.get("DOWNLOAD_RATE_LIMIT", "10"))
DOWNLOAD_RATE_WINDOW_SECONDS = int(os.environ.get("DOWNLOAD_RATE_WINDOW_SECONDS", "600"))

# CORS
CORS_EXTRA_ORIGINS = [
    o.strip() for o in os.environ.get("CORS_EXTRA_ORIGINS", "").split(",") if o.strip()
]

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
