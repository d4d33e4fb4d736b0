# SPDX-License-Identifier: Apache-2.0
"""Image decoding and placement for image and signature fields."""

from __future__ import annotations

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from typing import Any, Optional

from PIL import Image, UnidentifiedImageError

from pdf_field_filler.core.models import BBox, FitMode

from .surface import ImageRef

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = frozenset({"png", "jpeg"})


class ImageDecodeError(ValueError):
    """Raised when a field value cannot be decoded as a supported image."""


@dataclass(frozen=True)
class ImagePlacement:
    """Where and how large an image is drawn, in PDF coordinates."""

    x: float
    y: float
    width: float
    height: float
    crop: Optional[tuple[int, int, int, int]] = None


def decode_image_value(value: Any) -> Optional[ImageRef]:
    """Decode a field value into an ImageRef.

    Accepts ``data:image/png;base64,...`` and ``data:image/jpeg;base64,...``
    URLs as well as raw PNG/JPEG bytes. Other strings (e.g. plain text
    typed into an image field) are not images and yield None.

    Args:
        value: Field value.

    Returns:
        ImageRef, or None if ``value`` is not image data.

    Raises:
        ImageDecodeError: If ``value`` claims to be an image but is corrupt
            or in an unsupported format.
    """
    if isinstance(value, str):
        if not value.startswith("data:image"):
            return None
        header, _, payload = value.partition(",")
        if ";base64" not in header:
            raise ImageDecodeError(f"Image data URL is not base64 encoded: {header}")
        try:
            data = base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ImageDecodeError(f"Invalid base64 image data: {exc}") from exc
    elif isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    else:
        return None

    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format = (image.format or "").lower()
            width, height = image.size
            # Decode the pixels now so truncated data fails here, not at embed time
            image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as exc:
        raise ImageDecodeError(f"Unreadable image data: {exc}") from exc

    if image_format == "jpg":
        image_format = "jpeg"
    if image_format not in SUPPORTED_FORMATS:
        raise ImageDecodeError(f"Unsupported image format: {image_format or 'unknown'}")

    return ImageRef(data=data, format=image_format, width=width, height=height)


def compute_placement(image_width: int, image_height: int, bbox: BBox, fit_mode: FitMode) -> ImagePlacement:
    """Scale an image into a box.

    - FIT: uniform scale so the whole image is visible, centred in the box
    - FILL: uniform scale so the box is covered; the overflow is cropped
      away (``crop`` in source pixels) and the result fills the box exactly
    - STRETCH: the box, regardless of aspect ratio

    Args:
        image_width: Source width in pixels.
        image_height: Source height in pixels.
        bbox: Field box in PDF coordinates.
        fit_mode: Scaling mode.

    Returns:
        ImagePlacement inside ``bbox``.
    """
    if image_width <= 0 or image_height <= 0 or fit_mode == FitMode.STRETCH:
        return ImagePlacement(bbox.x0, bbox.y0, bbox.width, bbox.height)

    scale_x = bbox.width / image_width
    scale_y = bbox.height / image_height

    if fit_mode == FitMode.FILL:
        scale = max(scale_x, scale_y)
        visible_w = min(image_width, round(bbox.width / scale))
        visible_h = min(image_height, round(bbox.height / scale))
        left = (image_width - visible_w) // 2
        top = (image_height - visible_h) // 2
        return ImagePlacement(
            bbox.x0,
            bbox.y0,
            bbox.width,
            bbox.height,
            crop=(left, top, left + visible_w, top + visible_h),
        )

    scale = min(scale_x, scale_y)
    width = image_width * scale
    height = image_height * scale
    return ImagePlacement(
        x=bbox.x0 + (bbox.width - width) / 2,
        y=bbox.y0 + (bbox.height - height) / 2,
        width=width,
        height=height,
    )
