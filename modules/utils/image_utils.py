"""Utility helpers for image encoding and previews."""

from __future__ import annotations

import base64
import binascii
import io
from typing import Tuple

from PIL import Image

DATA_URL_PREFIX = "data:image/png;base64,"


def image_to_png_bytes(image: Image.Image) -> bytes:
    """Encode a Pillow image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def image_to_data_url(image: Image.Image) -> str:
    """Return a ``data:image/png;base64,...`` URL for the image."""
    encoded = base64.b64encode(image_to_png_bytes(image)).decode("ascii")
    return DATA_URL_PREFIX + encoded


def data_url_to_image(data_url: str) -> Image.Image:
    """Decode a base64 PNG data URL into a Pillow image."""
    if not data_url.startswith("data:") or "," not in data_url:
        raise ValueError("Not a data URL")
    header, payload = data_url.split(",", 1)
    if ";base64" not in header:
        raise ValueError("Only base64 data URLs are supported")
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc
    image = Image.open(io.BytesIO(raw))
    image.load()
    return image


def generate_thumbnail(image: Image.Image, max_size: Tuple[int, int] = (160, 160)) -> Image.Image:
    """Create a thumbnail suitable for history previews."""
    thumb = image.copy()
    thumb.thumbnail(max_size, Image.Resampling.NEAREST)
    return thumb
