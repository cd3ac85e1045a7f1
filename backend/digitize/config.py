from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


REPO_ROOT = _repo_root()

load_dotenv(REPO_ROOT / ".env", override=False)

MISTRAL_BASE_URL = os.getenv("MISTRAL_BASE_URL", "https://api.mistral.ai").rstrip("/")
MISTRAL_OCR_MODEL = os.getenv("MISTRAL_OCR_MODEL", "mistral-ocr-2505")
MISTRAL_TIMEOUT_S = float(os.getenv("MISTRAL_TIMEOUT_S", "60"))

# Unset means the built-in Times core font (latin-1 only).
FONT_PATH = Path(os.environ["DIGITIZE_FONT_PATH"]) if os.getenv("DIGITIZE_FONT_PATH") else None
BOLD_FONT_PATH = Path(os.environ["DIGITIZE_BOLD_FONT_PATH"]) if os.getenv("DIGITIZE_BOLD_FONT_PATH") else None

MAX_FILE_BYTES = int(os.getenv("DIGITIZE_MAX_FILE_BYTES", str(10 << 20)))
MAX_FILES = int(os.getenv("DIGITIZE_MAX_FILES", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def mistral_api_key() -> str | None:
    # Read at call time so a key added to the environment after startup is picked up.
    key = os.getenv("MISTRAL_API_KEY", "").strip()
    return key or None
