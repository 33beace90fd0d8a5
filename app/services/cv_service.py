from typing import Optional
import asyncio
import logging

from app.schemas.classification import ClassificationResult, ClassificationSource
from app.services import catalog
from app.services.color_analysis import analyze
from app.services.image_loader import ImageError, ImageSource, decode_pixels
from app.services.strategy import ClassificationStrategy

logger = logging.getLogger(__name__)


def decode_and_analyze(data: bytes) -> str:
    """Decode image bytes and return the canonical key their colors suggest."""
    decoded = decode_pixels(data)
    key = analyze(decoded.pixels, decoded.width, decoded.height)
    logger.info(f"Local analysis: {key} ({decoded.width}x{decoded.height})")
    return key


class ColorHeuristicClassifier(ClassificationStrategy):
    """Local color analysis; needs no network beyond loading the image."""

    name = "fallback"

    async def attempt_classify(self, image: ImageSource) -> Optional[ClassificationResult]:
        """
        Decode the image and classify it by its color distribution.

        Returns:
            Catalog entry for the guessed item, or None if the image
            cannot be loaded or decoded
        """
        try:
            data = await image.load_bytes()
            # CPU-bound; keep it off the event loop
            key = await asyncio.to_thread(decode_and_analyze, data)
        except ImageError as e:
            logger.warning(f"Local analysis skipped: {str(e)}")
            return None

        entry = catalog.lookup(key)
        if entry is None:
            return None
        return entry.model_copy(update={"source": ClassificationSource.HEURISTIC})


# Global service instance
cv_service = ColorHeuristicClassifier()
