from typing import Optional
import logging

import httpx
import ollama
from pydantic import ValidationError

from app.schemas.classification import (
    ClassificationResult,
    ClassificationSource,
    VisionClassification,
)
from app.services import catalog
from app.services.image_loader import ImageError, ImageSource
from app.services.labeler_service import apply_confidence_floor
from app.services.strategy import ClassificationStrategy
from app.utils.prompt_builder import build_classification_prompt

logger = logging.getLogger(__name__)

HOSTED_OLLAMA_HOST = "https://ollama.com"


def parse_vision_response(content: Optional[str]) -> Optional[VisionClassification]:
    """Validate the model's JSON answer; None if it does not fit the expected shape."""
    if not content:
        return None
    try:
        return VisionClassification.model_validate_json(content.strip())
    except ValidationError as e:
        logger.warning(f"Malformed vision response: {e.error_count()} errors")
        return None


def to_classification_result(
    vision: VisionClassification, confidence_floor: int
) -> ClassificationResult:
    guidance = catalog.guidance_for(vision.type)
    return ClassificationResult(
        category=vision.type,
        confidence=apply_confidence_floor(vision.confidence, confidence_floor),
        item_label=vision.item or catalog.UNIDENTIFIED_ITEM,
        instructions=list(guidance.instructions),
        tips=list(guidance.tips),
        impact_statement=guidance.impact_statement,
        source=ClassificationSource.VISION,
    )


class OllamaVisionClassifier(ClassificationStrategy):
    """Vision model prompted to answer with category, item and confidence."""

    name = "ollama"

    def __init__(
        self,
        client: ollama.AsyncClient,
        model: str,
        temperature: float = 0.2,
        confidence_floor: int = 75,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.confidence_floor = confidence_floor

    @classmethod
    def from_settings(cls, settings) -> "OllamaVisionClassifier":
        client = ollama.AsyncClient(
            host=settings.ollama_host or HOSTED_OLLAMA_HOST,
            headers=settings.ollama_headers,
            timeout=settings.llm_timeout,
        )
        return cls(
            client=client,
            model=settings.ollama_model,
            temperature=settings.llm_temperature,
            confidence_floor=settings.confidence_floor,
        )

    async def generate_classification(self, image_bytes: bytes) -> Optional[str]:
        """Single chat round trip; returns the raw message content or None."""
        try:
            response = await self.client.chat(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": build_classification_prompt(),
                        "images": [image_bytes],
                    }
                ],
                format="json",
                options={"temperature": self.temperature},
            )
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
            logger.warning(f"Vision request failed: {str(e)}")
            return None
        return response["message"]["content"]

    async def attempt_classify(self, image: ImageSource) -> Optional[ClassificationResult]:
        try:
            image_bytes = await image.load_bytes()
        except ImageError as e:
            logger.warning(f"Vision skipped: {str(e)}")
            return None

        vision = parse_vision_response(await self.generate_classification(image_bytes))
        if vision is None:
            return None

        logger.info(f"Vision prediction: {vision.item} ({vision.type.value}, {vision.confidence}%)")
        return to_classification_result(vision, self.confidence_floor)
