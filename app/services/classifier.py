"""
Classification pipeline.

Strategies are tried one after another in a fixed order; the first one to
produce a result wins. When every strategy is unavailable the synthesized
default is returned, so ``classify`` always yields a displayable result.
"""
from typing import List, Optional, Sequence
import logging

from app.config import ClassifierSettings
from app.schemas.classification import AIStatus, ClassificationResult
from app.services import catalog
from app.services.cv_service import cv_service
from app.services.image_loader import ImageSource
from app.services.labeler_service import HuggingFaceLabeler
from app.services.llm_service import OllamaVisionClassifier
from app.services.strategy import ClassificationStrategy

logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"


class WasteClassifier:
    """Runs the ordered fallback chain for each image."""

    def __init__(self, strategies: Sequence[ClassificationStrategy]):
        self.strategies: List[ClassificationStrategy] = list(strategies)

    @property
    def strategy_names(self) -> List[str]:
        return [s.name for s in self.strategies]

    async def _attempt(
        self, strategy: ClassificationStrategy, image: ImageSource
    ) -> Optional[ClassificationResult]:
        try:
            return await strategy.attempt_classify(image)
        except Exception:
            logger.exception(f"Strategy '{strategy.name}' failed unexpectedly")
            return None

    async def classify(self, image: ImageSource) -> ClassificationResult:
        """
        Classify an image, degrading through the chain as needed.

        Never raises; the last resort is the default classification.
        """
        for strategy in self.strategies:
            result = await self._attempt(strategy, image)
            if result is not None:
                logger.info(
                    f"Classified by '{strategy.name}': {result.item_label} "
                    f"({result.category.value}, {result.confidence}%)"
                )
                return result
            logger.info(f"Strategy '{strategy.name}' unavailable, falling back")

        logger.info("All strategies unavailable, using default classification")
        return catalog.default_classification()


def build_classifier(settings: ClassifierSettings) -> WasteClassifier:
    strategies: List[ClassificationStrategy] = []
    if settings.has_labeler_credential:
        strategies.append(
            HuggingFaceLabeler(
                api_key=settings.huggingface_api_key,
                endpoint=settings.labeler_endpoint,
                timeout=settings.labeler_timeout,
                confidence_floor=settings.confidence_floor,
            )
        )
    if settings.has_vision_credential:
        strategies.append(OllamaVisionClassifier.from_settings(settings))
    strategies.append(cv_service)

    classifier = WasteClassifier(strategies)
    logger.info(f"Classifier chain: {' -> '.join(classifier.strategy_names)}")
    return classifier


def check_ai_configuration(settings: ClassifierSettings) -> AIStatus:
    strategies = settings.strategy_names()
    if settings.has_labeler_credential:
        return AIStatus(
            configured=True,
            active_model="huggingface",
            message="Hugging Face API configured",
            strategies=strategies,
        )
    if settings.has_vision_credential:
        return AIStatus(
            configured=True,
            active_model="ollama",
            message="Ollama vision model configured",
            strategies=strategies,
        )
    return AIStatus(
        configured=False,
        active_model="fallback",
        message="No AI services configured. Using fallback classification.",
        strategies=strategies,
    )
