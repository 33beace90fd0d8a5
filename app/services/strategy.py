from abc import ABC, abstractmethod
from typing import Optional

from app.schemas.classification import ClassificationResult
from app.services.image_loader import ImageSource


class ClassificationStrategy(ABC):
    """One way of turning an image into a classification."""

    name: str = "strategy"

    @abstractmethod
    async def attempt_classify(self, image: ImageSource) -> Optional[ClassificationResult]:
        """
        Try to classify the image.

        Returns:
            ClassificationResult, or None when this strategy is unavailable
            for the image (service down, bad response, undecodable image).
            Expected failures are never raised.
        """
