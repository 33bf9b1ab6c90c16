"""
Turning an uploaded file into a Gemini request payload.

The image bytes travel as an inline-data part tagged with the upload's media
type; the SDK base64-encodes inline data when it serializes the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from google.genai import types

IMAGE_MEDIA_PREFIX = "image/"


def is_image_media_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith(IMAGE_MEDIA_PREFIX)


@dataclass(frozen=True)
class SourceImage:
    """An uploaded file as the user handed it to us. No decoding is attempted."""

    data: bytes
    content_type: str
    filename: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return is_image_media_type(self.content_type)


def file_to_inline_part(image: SourceImage) -> types.Part:
    return types.Part(
        inline_data=types.Blob(data=image.data, mime_type=image.content_type)
    )


def build_contents(image: SourceImage, prompt: str) -> types.Content:
    """Single user turn: the image first, then the instruction."""
    return types.Content(
        role="user",
        parts=[file_to_inline_part(image), types.Part(text=prompt)],
    )
