"""Turning the model's encoded image into the downloadable PNG artifact."""

from __future__ import annotations

import base64
import binascii
from io import BytesIO
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from . import config

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def download_filename(original_name: Optional[str], settings: Optional[config.Settings] = None) -> str:
    """
    Name of the downloaded cutout: `<base><suffix>.png`.

    The base is everything before the last dot. A name without an extension,
    a dotfile, or a missing name falls back to the configured default.
    """
    settings = settings or config.get_settings()
    base = ""
    if original_name:
        dot = original_name.rfind(".")
        base = original_name[:dot] if dot > 0 else ""
    base = base or settings.default_download_name
    return f"{base}{settings.download_suffix}.png"


def decode_processed(encoded: str) -> bytes:
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Processed image is not valid base64") from exc


def ensure_png(data: bytes) -> bytes:
    """
    Return PNG bytes for `data`.

    The model is asked for a PNG but may answer in another format; anything
    else is re-encoded as RGBA PNG so transparency survives.
    """
    if data.startswith(PNG_SIGNATURE):
        return data

    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("Invalid image data") from exc

    logger.info("Re-encoding %s output as PNG", image.format)
    buf = BytesIO()
    image.convert("RGBA").save(buf, format="PNG")
    return buf.getvalue()
