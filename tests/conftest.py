from __future__ import annotations

import base64
from io import BytesIO
from types import SimpleNamespace

from PIL import Image
import pytest

from bgremover_service import config
from bgremover_service.preprocessing import SourceImage


def _encode(mode: str, fmt: str, color) -> bytes:
    buf = BytesIO()
    Image.new(mode, (8, 6), color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _encode("RGBA", "PNG", (255, 0, 0, 0))


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _encode("RGB", "JPEG", (10, 200, 30))


@pytest.fixture
def source_image(jpeg_bytes) -> SourceImage:
    return SourceImage(data=jpeg_bytes, content_type="image/jpeg", filename="cat.jpg")


@pytest.fixture
def settings() -> config.Settings:
    return config.Settings(api_key="test-key", _env_file=None)


@pytest.fixture
def encoded_png(png_bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


class FakeModels:
    def __init__(self, response=None, exc: Exception = None) -> None:
        self.response = response
        self.exc = exc
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        return self.response


def make_fake_client(response=None, exc: Exception = None):
    """Stand-in for `genai.Client` exposing only `client.aio.models`."""
    return SimpleNamespace(aio=SimpleNamespace(models=FakeModels(response=response, exc=exc)))


@pytest.fixture
def fake_client():
    return make_fake_client
