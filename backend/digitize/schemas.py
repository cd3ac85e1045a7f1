from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class HealthResponse(BaseModel):
    status: str
    ocr_base_url: str
    ocr_model: str
    api_key_configured: bool
    font_ready: bool
    font_path: str | None = None
    max_file_bytes: int
    max_files: int
