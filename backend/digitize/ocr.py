from __future__ import annotations

import base64
from typing import Any

import httpx

from .config import MISTRAL_BASE_URL, MISTRAL_OCR_MODEL, MISTRAL_TIMEOUT_S, mistral_api_key
from .logging_utils import get_logger

log = get_logger(__name__)

PAGE_SEPARATOR = "\n\n"


class OcrError(RuntimeError):
    pass


def encode_image(image_data: bytes, mime_type: str = "image/jpeg") -> str:
    encoded = base64.b64encode(image_data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def build_payload(image_data: bytes, *, model: str = MISTRAL_OCR_MODEL, mime_type: str = "image/jpeg") -> dict[str, Any]:
    return {
        "model": model,
        "document": {
            "type": "image_url",
            "image_url": encode_image(image_data, mime_type),
        },
    }


def combine_pages(data: Any) -> str:
    if not isinstance(data, dict):
        raise OcrError(f"Unexpected Mistral OCR response shape: {type(data).__name__}")

    error = data.get("error")
    if isinstance(error, dict) and error:
        raise OcrError(f"Mistral API error: {error.get('message') or error}")

    pages = data.get("pages") or []
    if not isinstance(pages, list) or not pages:
        raise OcrError("No pages returned from Mistral API")

    texts: list[str] = []
    for index, page in enumerate(pages):
        text = page.get("markdown") if isinstance(page, dict) else page
        if text is None:
            text = ""
        if not isinstance(page, dict) or not isinstance(text, str):
            raise OcrError(f"Unexpected Mistral OCR page shape at index {index}: {page!r:.200}")
        texts.append(text)

    markdown = PAGE_SEPARATOR.join(texts)
    if not markdown.strip():
        raise OcrError("No markdown content found in response pages")
    return markdown


async def ocr_image(
    image_data: bytes,
    *,
    mime_type: str = "image/jpeg",
    base_url: str = MISTRAL_BASE_URL,
    model: str = MISTRAL_OCR_MODEL,
    api_key: str | None = None,
    timeout_s: float = MISTRAL_TIMEOUT_S,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Run Mistral OCR on one image and return its pages as a single Markdown string.

    Multi-page results are joined with a blank line between pages. Every
    failure (missing key, transport, HTTP status, malformed or empty
    response) raises :class:`OcrError`; there are no retries.
    """
    key = api_key or mistral_api_key()
    if not key:
        raise OcrError("MISTRAL_API_KEY environment variable is not set")

    payload = build_payload(image_data, model=model, mime_type=mime_type)
    headers = {"Authorization": f"Bearer {key}", "Content-Type": "application/json"}
    url = f"{base_url.rstrip('/')}/v1/ocr"

    log.info("Sending %d-byte image to Mistral OCR (%s)", len(image_data), model)
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=httpx.Timeout(timeout_s))
    try:
        resp = await client.post(url, json=payload, headers=headers)
    except httpx.TimeoutException as e:
        raise OcrError(f"Mistral OCR request timed out after {timeout_s:.1f}s ({type(e).__name__}).") from e
    except httpx.HTTPError as e:
        msg = str(e).strip() or repr(e)
        raise OcrError(f"Failed to send request to Mistral API ({type(e).__name__}): {msg}") from e
    finally:
        if owns_client:
            await client.aclose()

    if resp.status_code != 200:
        raise OcrError(f"Mistral API returned error status {resp.status_code}: {resp.text}")

    try:
        data = resp.json()
    except ValueError as e:
        raise OcrError(f"Failed to parse Mistral API response: {e}") from e

    markdown = combine_pages(data)
    log.info("Mistral OCR returned %d page(s), %d chars", len(data.get("pages") or []), len(markdown))
    return markdown
