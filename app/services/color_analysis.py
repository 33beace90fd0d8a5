"""
Offline color heuristic used when no remote model is reachable.

Pixels are counted into four color buckets (green, brown, metallic,
plastic). The buckets are not exclusive: a pixel increments every bucket
whose condition it satisfies, and the decision thresholds are tuned
against that counting.
"""
import logging
from typing import NamedTuple, Union

import numpy as np

from app.services.label_mapper import DEFAULT_ITEM_KEY

logger = logging.getLogger(__name__)

PLANT_KEY = "plant"
CAN_KEY = "can"

ORGANIC_RATIO_THRESHOLD = 0.3
METALLIC_RATIO_THRESHOLD = 0.2

PixelBuffer = Union[bytes, bytearray, memoryview, np.ndarray]


class ColorCounts(NamedTuple):
    green: int
    brown: int
    metallic: int
    plastic: int

    @property
    def total(self) -> int:
        return self.green + self.brown + self.metallic + self.plastic


def _flatten(pixels: PixelBuffer) -> np.ndarray:
    if isinstance(pixels, np.ndarray):
        return np.asarray(pixels, dtype=np.uint8).reshape(-1)
    return np.frombuffer(pixels, dtype=np.uint8)


def _as_rgba_rows(pixels: PixelBuffer) -> np.ndarray:
    flat = _flatten(pixels)
    # A trailing partial pixel is ignored.
    usable = flat.size - flat.size % 4
    # int16 so channel differences can go negative
    return flat[:usable].reshape(-1, 4).astype(np.int16)


def analyze_image_colors(pixels: PixelBuffer) -> ColorCounts:
    """Count pixels per color bucket over an RGBA buffer."""
    rgba = _as_rgba_rows(pixels)
    r, g, b = rgba[:, 0], rgba[:, 1], rgba[:, 2]

    green = (g > r) & (g > b) & (g > 100)
    brown = (r > 100) & (g > 80) & (b < 80) & (np.abs(r - g) < 50)
    metallic = (np.abs(r - g) < 30) & (np.abs(g - b) < 30) & (r > 120)

    channel_max = np.maximum(np.maximum(r, g), b)
    channel_min = np.minimum(np.minimum(r, g), b)
    plastic = ((r > 150) | (g > 150) | (b > 150)) & ((channel_max - channel_min) > 50)

    return ColorCounts(
        green=int(np.count_nonzero(green)),
        brown=int(np.count_nonzero(brown)),
        metallic=int(np.count_nonzero(metallic)),
        plastic=int(np.count_nonzero(plastic)),
    )


def determine_key_from_colors(colors: ColorCounts) -> str:
    total = colors.total
    if total == 0:
        return DEFAULT_ITEM_KEY

    green_ratio = colors.green / total
    brown_ratio = colors.brown / total
    metallic_ratio = colors.metallic / total
    # Not part of the decision yet.
    plastic_ratio = colors.plastic / total

    logger.debug(
        f"Color ratios: green={green_ratio:.2f} brown={brown_ratio:.2f} "
        f"metallic={metallic_ratio:.2f} plastic={plastic_ratio:.2f}"
    )

    if green_ratio > ORGANIC_RATIO_THRESHOLD or brown_ratio > ORGANIC_RATIO_THRESHOLD:
        return PLANT_KEY
    if metallic_ratio > METALLIC_RATIO_THRESHOLD:
        return CAN_KEY
    return DEFAULT_ITEM_KEY


def analyze(pixels: PixelBuffer, width: int, height: int) -> str:
    """
    Guess a canonical item key from raw RGBA pixel data.

    Args:
        pixels: RGBA bytes (4 per pixel) or a uint8 array of the same data
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        Canonical item key ("plant", "can" or "bottle")
    """
    flat = _flatten(pixels)[: max(width, 0) * max(height, 0) * 4]
    return determine_key_from_colors(analyze_image_colors(flat))
