from typing import List, Optional
import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from app.schemas.classification import (
    ClassificationResult,
    ClassificationSource,
    LabelPrediction,
)
from app.services import catalog
from app.services.image_loader import ImageError, ImageSource
from app.services.label_mapper import map_label_to_key
from app.services.strategy import ClassificationStrategy

logger = logging.getLogger(__name__)

_PREDICTIONS = TypeAdapter(List[LabelPrediction])


def parse_predictions(payload) -> Optional[List[LabelPrediction]]:
    """Validate a labeler response body; None if it is not a usable prediction list."""
    if not isinstance(payload, list) or not payload:
        return None
    try:
        return _PREDICTIONS.validate_python(payload)
    except ValidationError as e:
        logger.warning(f"Malformed labeler response: {e.error_count()} errors")
        return None


def apply_confidence_floor(confidence: int, floor: int) -> int:
    return min(100, max(confidence, floor))


class HuggingFaceLabeler(ClassificationStrategy):
    """Generic image-labeling model behind the Hugging Face inference API."""

    name = "huggingface"

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        timeout: float = 15.0,
        confidence_floor: int = 75,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.confidence_floor = confidence_floor
        self._transport = transport

    async def fetch_predictions(self, image_bytes: bytes, content_type: Optional[str]):
        """Single POST of the raw image; returns the decoded JSON body or None."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": content_type or "application/octet-stream",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.endpoint, content=image_bytes, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"Labeler request failed: {str(e)}")
            return None

        if not response.is_success:
            logger.warning(f"Labeler returned HTTP {response.status_code}")
            return None

        try:
            return response.json()
        except ValueError:
            logger.warning("Labeler returned a non-JSON body")
            return None

    async def attempt_classify(self, image: ImageSource) -> Optional[ClassificationResult]:
        try:
            image_bytes = await image.load_bytes()
        except ImageError as e:
            logger.warning(f"Labeler skipped: {str(e)}")
            return None

        predictions = parse_predictions(
            await self.fetch_predictions(image_bytes, image.content_type)
        )
        if predictions is None:
            return None

        top = predictions[0]
        label = top.label.lower()
        confidence = round(top.score * 100)
        key = map_label_to_key(label)

        entry = catalog.lookup(key)
        if entry is None:
            return None

        logger.info(f"Labeler prediction: {label} ({confidence}%) -> {key}")
        return entry.model_copy(
            update={
                "confidence": apply_confidence_floor(confidence, self.confidence_floor),
                "source": ClassificationSource.LABELER,
            }
        )
