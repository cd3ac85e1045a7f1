from __future__ import annotations

import asyncio

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import BOLD_FONT_PATH, FONT_PATH, MAX_FILE_BYTES, MAX_FILES, MISTRAL_BASE_URL, MISTRAL_OCR_MODEL, mistral_api_key
from .logging_utils import get_logger
from .ocr import OcrError, ocr_image
from .pdf_export import RenderError, render_markdown_to_pdf, render_markdowns_to_pdf
from .schemas import ErrorResponse, HealthResponse
from .uploads import ImageUpload, UploadValidationError, check_batch_size, check_filename, check_size, validate_image

log = get_logger(__name__)

API_PREFIX = "/digitize-api/images"
BATCH_FILENAME = "multiple_images.pdf"

app = FastAPI(title="digitize-server")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ApiError(Exception):
    def __init__(self, status_code: int, error: str, details: str | None = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


def _error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(ApiError)
async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    log.warning("%s %s -> %d %s (%s)", request.method, request.url.path, exc.status_code, exc.error, exc.details or "-")
    return _error_response(exc.status_code, exc.error, exc.details)


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(400, "Failed to parse form data", str(exc.errors()))


def _pdf_response(data: bytes, filename: str) -> Response:
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _read_upload(upload: UploadFile, *, index: int | None = None) -> ImageUpload:
    filename = upload.filename or ""
    try:
        # Reject on name and declared size before reading the body.
        check_filename(filename, index=index)
        if upload.size is not None:
            check_size(upload.size, filename, index=index, max_bytes=MAX_FILE_BYTES)
    except UploadValidationError as e:
        await upload.close()
        raise ApiError(400, str(e)) from e
    try:
        data = await upload.read()
    except Exception as e:
        what = f"image {index} ({filename})" if index is not None else "image data"
        raise ApiError(500, f"Failed to read {what}", str(e)) from e
    finally:
        await upload.close()
    try:
        return validate_image(filename, data, index=index, max_bytes=MAX_FILE_BYTES)
    except UploadValidationError as e:
        raise ApiError(400, str(e)) from e


async def _render(markdowns: list[str]) -> bytes:
    try:
        if len(markdowns) == 1:
            return await asyncio.to_thread(render_markdown_to_pdf, markdowns[0], FONT_PATH, bold_font_path=BOLD_FONT_PATH)
        return await asyncio.to_thread(render_markdowns_to_pdf, markdowns, FONT_PATH, bold_font_path=BOLD_FONT_PATH)
    except RenderError as e:
        raise ApiError(500, "Failed to generate PDF", str(e)) from e


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        ocr_base_url=MISTRAL_BASE_URL,
        ocr_model=MISTRAL_OCR_MODEL,
        api_key_configured=mistral_api_key() is not None,
        font_ready=FONT_PATH is None or FONT_PATH.is_file(),
        font_path=str(FONT_PATH) if FONT_PATH else None,
        max_file_bytes=MAX_FILE_BYTES,
        max_files=MAX_FILES,
    )


@app.post(f"{API_PREFIX}/process-image", responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def process_image(image: UploadFile | None = File(None)) -> Response:
    if image is None:
        raise ApiError(400, "No image file provided", "multipart field 'image' is required")

    upload = await _read_upload(image)
    try:
        markdown = await ocr_image(upload.data, mime_type=upload.content_type)
    except OcrError as e:
        raise ApiError(500, "Failed to process image with OCR", str(e)) from e

    pdf_bytes = await _render([markdown])
    return _pdf_response(pdf_bytes, f"{upload.stem}.pdf")


@app.post(
    f"{API_PREFIX}/process-multiple-images",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def process_multiple_images(images: list[UploadFile] | None = File(None)) -> Response:
    if not images:
        raise ApiError(400, "No images provided in the form")
    try:
        check_batch_size(len(images), max_files=MAX_FILES)
    except UploadValidationError as e:
        raise ApiError(400, str(e)) from e

    markdowns: list[str] = []
    for index, image in enumerate(images, start=1):
        upload = await _read_upload(image, index=index)
        try:
            markdown = await ocr_image(upload.data, mime_type=upload.content_type)
        except OcrError as e:
            raise ApiError(500, f"Failed to process image {index} ({upload.filename}) with OCR", str(e)) from e
        markdowns.append(markdown)

    log.info("OCR finished for %d image(s); rendering combined PDF", len(markdowns))
    pdf_bytes = await _render(markdowns)
    return _pdf_response(pdf_bytes, BATCH_FILENAME)
