"""
Background removal through the Gemini image model.

`remove_background` is the single outbound call of the service: one request,
fully buffered, no retries and no streaming.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, List, Optional

from google.genai import types

from . import config
from .client_loader import get_genai_client, require_api_key
from .errors import NoImageReturnedError, ServiceRefusalError
from .preprocessing import SourceImage, build_contents

logger = logging.getLogger(__name__)

RESPONSE_MODALITIES = [types.Modality.IMAGE, types.Modality.TEXT]


def _response_parts(response: types.GenerateContentResponse) -> List[types.Part]:
    """Parts of the first candidate, or an empty list for a bare response."""
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return []
    return list(candidates[0].content.parts or [])


def extract_image_base64(response: types.GenerateContentResponse) -> str:
    """
    Pull the base64 image out of a generation response.

    Raises:
        ServiceRefusalError: no image but the model returned text.
        NoImageReturnedError: neither image nor text in the response.
    """
    parts = _response_parts(response)

    for part in parts:
        if part.inline_data is not None and part.inline_data.data:
            return base64.b64encode(part.inline_data.data).decode("ascii")

    for part in parts:
        if part.text:
            raise ServiceRefusalError(part.text)

    raise NoImageReturnedError()


async def remove_background(
    image: SourceImage,
    settings: Optional[config.Settings] = None,
    client: Optional[Any] = None,
) -> str:
    """
    Ask Gemini to strip the background of `image`.

    Returns the processed image as a base64 string. The credential check runs
    first so a missing `API_KEY` never reaches the network. Without explicit
    `settings` the credential is read from the environment on every call.
    """
    settings = settings or config.get_call_settings()
    require_api_key(settings)
    client = client or get_genai_client(settings)

    logger.info(
        "Requesting background removal model=%s file=%s type=%s bytes=%d",
        settings.gemini_model,
        image.filename,
        image.content_type,
        len(image.data),
    )
    response = await client.aio.models.generate_content(
        model=settings.gemini_model,
        contents=build_contents(image, settings.removal_prompt),
        config=types.GenerateContentConfig(response_modalities=RESPONSE_MODALITIES),
    )
    return extract_image_base64(response)
