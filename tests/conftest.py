"""Fixtures compartidos para los tests del clasificador."""

from __future__ import annotations

import base64
import io
import random

import pytest
from PIL import Image

from rubbish_classifier.errors import LabelingError
from rubbish_classifier.resolver import CategoryResolver
from rubbish_classifier.settings import Settings


class StubLabeler:
    """Labeler determinístico: devuelve una etiqueta fija o lanza LabelingError."""

    def __init__(self, label: str | None = "plastic", error: Exception | None = None):
        self._label = label
        self._error = error
        self.calls: list[str] = []

    def label(self, image_uri: str) -> str:
        self.calls.append(image_uri)
        if self._error is not None:
            raise self._error
        return self._label


class FailingLabeler(StubLabeler):
    def __init__(self, message: str = "OpenAI API error: 429"):
        super().__init__(error=LabelingError(message))


def make_image_bytes(fmt: str = "PNG", color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), color=color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="sk-test", vision_timeout_seconds=2.0)


@pytest.fixture
def random_settings() -> Settings:
    return Settings(openai_api_key="sk-test", fallback_policy="random")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def make_resolver(settings):
    def _make(labeler, cfg: Settings | None = None, seed: int | None = None):
        rng = random.Random(seed) if seed is not None else None
        return CategoryResolver(labeler, cfg or settings, rng=rng)

    return _make


@pytest.fixture
def png_b64(png_bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")
