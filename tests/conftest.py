import io
from typing import Iterable, Optional, Tuple

import pytest
from PIL import Image

from app.schemas.classification import ClassificationResult
from app.services.image_loader import ImageSource
from app.services.strategy import ClassificationStrategy

Pixel = Tuple[int, int, int, int]

GREEN = (50, 140, 50, 255)
BROWN = (150, 110, 40, 255)
SILVER = (200, 200, 200, 255)
BLUE = (0, 0, 255, 255)
BLACK = (0, 0, 0, 255)


def rgba_bytes(pixels: Iterable[Pixel]) -> bytes:
    return bytes(channel for pixel in pixels for channel in pixel)


def png_bytes(pixels: Iterable[Pixel], width: int = 10, height: int = 10) -> bytes:
    image = Image.new("RGBA", (width, height))
    image.putdata(list(pixels))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class FakeStrategy(ClassificationStrategy):
    """Returns a canned result (or raises) and counts calls."""

    def __init__(self, name: str, result: Optional[ClassificationResult] = None, error: Exception = None):
        self.name = name
        self.result = result
        self.error = error
        self.calls = 0

    async def attempt_classify(self, image: ImageSource) -> Optional[ClassificationResult]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def mostly_green_png() -> bytes:
    """10x10 image: 80 green pixels, 20 black."""
    return png_bytes([GREEN] * 80 + [BLACK] * 20)


@pytest.fixture
def green_image(mostly_green_png) -> ImageSource:
    return ImageSource.from_bytes(mostly_green_png, "image/png")


@pytest.fixture
def corrupt_image() -> ImageSource:
    return ImageSource.from_bytes(b"definitely not an image", "image/jpeg")
