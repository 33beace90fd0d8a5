from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WasteCategory(str, Enum):
    BIODEGRADABLE = "biodegradable"
    RECYCLABLE = "recyclable"
    HAZARDOUS = "hazardous"


class ClassificationSource(str, Enum):
    """Fallback tier that produced a result."""

    CATALOG = "catalog"
    LABELER = "labeler"
    VISION = "vision"
    HEURISTIC = "heuristic"
    DEFAULT = "default"


class ClassificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: WasteCategory
    confidence: int = Field(ge=0, le=100)
    item_label: str = Field(min_length=1)
    instructions: List[str] = Field(min_length=1)
    tips: List[str] = Field(default_factory=list)
    impact_statement: str
    source: ClassificationSource


class CategoryGuidance(BaseModel):
    model_config = ConfigDict(frozen=True)

    instructions: List[str] = Field(min_length=1)
    tips: List[str]
    impact_statement: str


class LabelPrediction(BaseModel):
    """One entry of a labeling model's prediction list."""

    label: str = Field(min_length=1)
    score: float = Field(ge=0.0, le=1.0)


class VisionClassification(BaseModel):
    """Structured answer expected from the vision prompt."""

    type: WasteCategory
    item: str = ""
    confidence: int = Field(ge=0, le=100)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("item", mode="before")
    @classmethod
    def normalize_item(cls, value):
        if value is None:
            return ""
        return str(value).strip()


class ClassifyUrlRequest(BaseModel):
    imageUrl: str = Field(min_length=1)


class AIStatus(BaseModel):
    configured: bool
    active_model: str
    message: str
    strategies: List[str]


class ServiceDescriptor(BaseModel):
    status: str
    models: List[str]
    version: str
