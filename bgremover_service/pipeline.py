"""
High-level background-removal pipeline.

`process_image_bytes` is the one-shot entry point used by the `/remove-bg`
endpoint and the local CLI helper:
bytes in -> Gemini -> base64 decode -> PNG bytes out.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from .genai_client import remove_background
from .postprocessing import decode_processed, ensure_png
from .preprocessing import SourceImage

logger = logging.getLogger(__name__)


async def process_image_bytes(
    image_bytes: bytes,
    content_type: str,
    filename: Optional[str] = None,
    remover: Optional[Callable[[SourceImage], Awaitable[str]]] = None,
) -> bytes:
    """
    Full pipeline from raw upload bytes to PNG bytes.

    Raises:
        ValueError: when the upload is not an image or the output is unreadable.
        BackgroundRemovalError: when the service cannot produce an image.
    """
    image = SourceImage(data=image_bytes, content_type=content_type, filename=filename)
    if not image.is_image:
        raise ValueError(f"Unsupported media type: {content_type or 'unknown'}")

    remover = remover or remove_background
    encoded = await remover(image)
    png_bytes = ensure_png(decode_processed(encoded))
    logger.info("Background removed file=%s output_bytes=%d", filename, len(png_bytes))
    return png_bytes
