from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from ..core.constants import ALLOWED_IMAGE_TYPES
from ..core.exceptions import ValidationError

_FORMAT_TO_TYPE = {"JPEG": "image/jpeg", "PNG": "image/png"}


@dataclass(frozen=True)
class ImageInfo:
    content_type: str
    size: int


def inspect_image(data: bytes) -> ImageInfo:
    """Check that ``data`` is a non-empty JPEG/PNG and report its type.

    The decoded format wins over the declared content type; mobile clients
    frequently send ``application/octet-stream``.
    """
    if not data:
        raise ValidationError("Selfie image is required")

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationError("Selfie is not a readable image") from e

    detected = _FORMAT_TO_TYPE.get(fmt or "")
    if detected is None or detected not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Only .png, .jpg and .jpeg images are allowed")
    return ImageInfo(content_type=detected, size=len(data))
