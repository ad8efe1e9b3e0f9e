"""
Image crop pipeline.

Turns an uploaded flyer plus a confirmed crop rectangle (source-pixel
coordinates) into a JPEG of exactly ``width x height`` pixels. Decode and
encode failures raise distinct exceptions so the caller can tell them apart.
The rectangle is not validated against the image bounds: whatever falls
outside the source is left black on the output surface.
"""
from __future__ import annotations

import io
import logging
import mimetypes
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from doctavende.core.config import settings
from doctavende.schemas.common import CropArea

logger = logging.getLogger(__name__)

JPEG_CONTENT_TYPE = "image/jpeg"


class ImageProcessingError(Exception):
    """Base class for crop pipeline failures."""


class ImageDecodeError(ImageProcessingError):
    def __init__(self, message: str = "image failed to decode") -> None:
        super().__init__(message)


class ImageEncodeError(ImageProcessingError):
    def __init__(self, message: str = "empty output") -> None:
        super().__init__(message)


class ImageTooLargeError(ImageProcessingError):
    def __init__(self, message: str = "crop area too large") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class UploadCandidate:
    data: bytes
    extension: str
    content_type: str
    cropped: bool = False


def _decode(data: bytes) -> Image.Image:
    try:
        with Image.open(io.BytesIO(data)) as source:
            source.load()
            # La UI recorta sobre la imagen ya rotada según EXIF
            oriented = ImageOps.exif_transpose(source)
            return oriented.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        logger.warning("[crop] Decode failed: %s", exc)
        raise ImageDecodeError() from exc


def _encode(surface: Image.Image, quality: int) -> bytes:
    output = io.BytesIO()
    try:
        surface.save(output, format="JPEG", quality=quality)
    except (OSError, ValueError, SystemError) as exc:
        logger.warning("[crop] Encode failed: %s", exc)
        raise ImageEncodeError() from exc
    encoded = output.getvalue()
    if not encoded:
        raise ImageEncodeError()
    return encoded


def crop_image(data: bytes, area: CropArea, quality: Optional[int] = None) -> bytes:
    source = _decode(data)

    left, top = int(round(area.x)), int(round(area.y))
    width, height = int(round(area.width)), int(round(area.height))
    if width <= 0 or height <= 0:
        raise ImageEncodeError()
    if width * height > settings.MAX_CROP_PIXELS:
        logger.warning("[crop] Rejected %sx%s crop surface", width, height)
        raise ImageTooLargeError()

    # Superficie nueva del tamaño exacto del recorte, sin escalar
    surface = Image.new("RGB", (width, height))
    surface.paste(source.crop((left, top, left + width, top + height)), (0, 0))

    encoded = _encode(surface, quality or settings.JPEG_QUALITY)
    logger.debug(
        "[crop] %sx%s source -> %sx%s jpeg (%s bytes)",
        source.width,
        source.height,
        width,
        height,
        len(encoded),
    )
    return encoded


def file_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return "jpg"
    return filename.rsplit(".", 1)[-1].lower() or "jpg"


def prepare_upload(data: bytes, filename: Optional[str], crop: Optional[CropArea]) -> UploadCandidate:
    """Crop when a rectangle was confirmed; otherwise keep the selected file untouched."""
    if crop is None:
        extension = file_extension(filename)
        content_type = mimetypes.guess_type(f"file.{extension}")[0] or "application/octet-stream"
        return UploadCandidate(data=data, extension=extension, content_type=content_type)

    return UploadCandidate(
        data=crop_image(data, crop),
        extension="jpg",
        content_type=JPEG_CONTENT_TYPE,
        cropped=True,
    )
