from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import PurePath

from PIL import Image, UnidentifiedImageError

from .config import MAX_FILE_BYTES, MAX_FILES

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
ALLOWED_TYPES_LABEL = "JPEG, PNG, GIF, and WebP"


class UploadValidationError(ValueError):
    pass


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    data: bytes
    content_type: str

    @property
    def stem(self) -> str:
        return PurePath(self.filename).stem or "document"


def is_valid_image_type(filename: str) -> bool:
    return PurePath(filename or "").suffix.lower() in ALLOWED_EXTENSIONS


def _mb(n: int) -> str:
    return f"{n / (1 << 20):g} MB"


def detect_content_type(data: bytes) -> str:
    """Sniff ``data`` with Pillow; anything Pillow cannot open is octet-stream."""
    if not data:
        return "application/octet-stream"
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return "application/octet-stream"
    return Image.MIME.get(fmt or "", "application/octet-stream")


def _label(index: int | None, filename: str) -> str:
    return f"image {index} ({filename})" if index is not None else "image"


def check_filename(filename: str, *, index: int | None = None) -> None:
    if is_valid_image_type(filename):
        return
    if index is None:
        raise UploadValidationError(f"Invalid file type. Only {ALLOWED_TYPES_LABEL} images are allowed")
    raise UploadValidationError(
        f"Invalid file type for {_label(index, filename)}. Only {ALLOWED_TYPES_LABEL} images are allowed"
    )


def check_size(size: int, filename: str, *, index: int | None = None, max_bytes: int = MAX_FILE_BYTES) -> None:
    if size <= max_bytes:
        return
    if index is None:
        raise UploadValidationError(f"File size too large. Maximum size is {_mb(max_bytes)}")
    raise UploadValidationError(
        f"File size too large for {_label(index, filename)}. Maximum size is {_mb(max_bytes)} per image"
    )


def check_batch_size(count: int, *, max_files: int = MAX_FILES) -> None:
    if count <= 0:
        raise UploadValidationError("No images provided")
    if count > max_files:
        raise UploadValidationError(f"Too many images. Maximum is {max_files} images per request")


def validate_image(
    filename: str,
    data: bytes,
    *,
    index: int | None = None,
    max_bytes: int = MAX_FILE_BYTES,
) -> ImageUpload:
    """Check one uploaded image and return it with its sniffed content type.

    ``index`` is the 1-based position in a batch; it only changes the wording
    of error messages.
    """
    filename = str(filename or "")
    check_filename(filename, index=index)
    check_size(len(data), filename, index=index, max_bytes=max_bytes)
    content_type = detect_content_type(data)
    if not content_type.startswith("image/"):
        if index is None:
            raise UploadValidationError(f"File is not a valid image. Detected type: {content_type}")
        raise UploadValidationError(f"File {index} ({filename}) is not a valid image. Detected type: {content_type}")
    return ImageUpload(filename=filename, data=data, content_type=content_type)
