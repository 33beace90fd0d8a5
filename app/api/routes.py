from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app import config
from app.config import ClassifierSettings, load_settings
from app.schemas.classification import (
    AIStatus,
    CategoryGuidance,
    ClassificationResult,
    ClassifyUrlRequest,
    ServiceDescriptor,
    WasteCategory,
)
from app.services import catalog
from app.services.classifier import (
    SERVICE_VERSION,
    WasteClassifier,
    build_classifier,
    check_ai_configuration,
)
from app.services.image_loader import ImageSource

router = APIRouter()


@lru_cache
def get_settings() -> ClassifierSettings:
    return load_settings()


@lru_cache
def get_classifier() -> WasteClassifier:
    return build_classifier(get_settings())


def _validate_extension(filename: Optional[str]) -> None:
    if not filename or "." not in filename:
        return
    extension = filename.rsplit(".", 1)[-1].lower()
    if extension not in config.ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=400, detail=f"Unsupported file type: .{extension}")


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/classify", response_model=ServiceDescriptor)
def classify_status(classifier: WasteClassifier = Depends(get_classifier)):
    return ServiceDescriptor(
        status="AI Classification API is running",
        models=classifier.strategy_names,
        version=SERVICE_VERSION,
    )


@router.post("/classify", response_model=ClassificationResult)
async def classify_image(
    image: Optional[UploadFile] = File(None),
    classifier: WasteClassifier = Depends(get_classifier),
):
    """
    Classify an uploaded photo. Always answers with a result once the
    upload itself is acceptable.
    """
    if image is None:
        raise HTTPException(status_code=400, detail="No image provided")
    _validate_extension(image.filename)

    data = await image.read()
    if not data:
        raise HTTPException(status_code=400, detail="No image provided")
    if len(data) > config.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="Image too large")

    return await classifier.classify(ImageSource.from_bytes(data, image.content_type))


@router.post("/classify-url", response_model=ClassificationResult)
async def classify_image_url(
    request: ClassifyUrlRequest,
    classifier: WasteClassifier = Depends(get_classifier),
    settings: ClassifierSettings = Depends(get_settings),
):
    source = ImageSource(
        url=request.imageUrl,
        fetch_timeout=settings.image_fetch_timeout,
        max_bytes=settings.max_image_bytes,
        block_private_hosts=not settings.allow_private_image_hosts,
    )
    return await classifier.classify(source)


@router.get("/ai-status", response_model=AIStatus)
def ai_status(settings: ClassifierSettings = Depends(get_settings)):
    return check_ai_configuration(settings)


@router.get("/guidance/{category}", response_model=CategoryGuidance)
def category_guidance(category: WasteCategory):
    return catalog.guidance_for(category)
