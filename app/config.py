import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

# Labeler Settings (Hugging Face inference API)
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY", "")
HUGGINGFACE_MODEL = os.getenv("HUGGINGFACE_MODEL", "google/vit-base-patch16-224")
HUGGINGFACE_API_URL = os.getenv(
    "HUGGINGFACE_API_URL", "https://api-inference.huggingface.co/models/"
)
LABELER_TIMEOUT = float(os.getenv("LABELER_TIMEOUT", 15))

# LLM Settings
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llava")
OLLAMA_API_KEY = os.getenv("OLLAMA_API_KEY", "")
LLM_TIMEOUT = int(os.getenv("LLM_TIMEOUT", 30))
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", 0.2))

# Image Settings
IMAGE_FETCH_TIMEOUT = float(os.getenv("IMAGE_FETCH_TIMEOUT", 10))
MAX_UPLOAD_SIZE = 10485760
# Off by default: /classify-url must not reach loopback or private networks
ALLOW_PRIVATE_IMAGE_HOSTS = os.getenv("ALLOW_PRIVATE_IMAGE_HOSTS", "false").lower() in ("1", "true", "yes")
ALLOWED_EXTENSIONS = ["jpg", "jpeg", "png", "webp", "gif", "bmp"]

# Classification Settings
CONFIDENCE_FLOOR = 75
DEFAULT_CONFIDENCE = 85

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class ClassifierSettings:
    """Everything the classification pipeline needs, resolved up front."""

    huggingface_api_key: str = ""
    huggingface_model: str = "google/vit-base-patch16-224"
    huggingface_api_url: str = "https://api-inference.huggingface.co/models/"
    labeler_timeout: float = 15.0
    ollama_host: str = ""
    ollama_model: str = "llava"
    ollama_api_key: str = ""
    llm_timeout: int = 30
    llm_temperature: float = 0.2
    image_fetch_timeout: float = 10.0
    max_image_bytes: int = MAX_UPLOAD_SIZE
    allow_private_image_hosts: bool = False
    confidence_floor: int = CONFIDENCE_FLOOR

    @property
    def has_labeler_credential(self) -> bool:
        return bool(self.huggingface_api_key)

    @property
    def has_vision_credential(self) -> bool:
        # A local Ollama host needs no key; the hosted API needs one.
        return bool(self.ollama_host or self.ollama_api_key)

    @property
    def labeler_endpoint(self) -> str:
        return f"{self.huggingface_api_url.rstrip('/')}/{self.huggingface_model}"

    @property
    def ollama_headers(self) -> Optional[dict]:
        if not self.ollama_api_key:
            return None
        return {"Authorization": f"Bearer {self.ollama_api_key}"}

    def strategy_names(self) -> List[str]:
        names = []
        if self.has_labeler_credential:
            names.append("huggingface")
        if self.has_vision_credential:
            names.append("ollama")
        names.append("fallback")
        return names


def load_settings() -> ClassifierSettings:
    """Build settings from the module-level environment values."""
    return ClassifierSettings(
        huggingface_api_key=HUGGINGFACE_API_KEY,
        huggingface_model=HUGGINGFACE_MODEL,
        huggingface_api_url=HUGGINGFACE_API_URL,
        labeler_timeout=LABELER_TIMEOUT,
        ollama_host=OLLAMA_HOST,
        ollama_model=OLLAMA_MODEL,
        ollama_api_key=OLLAMA_API_KEY,
        llm_timeout=LLM_TIMEOUT,
        llm_temperature=LLM_TEMPERATURE,
        image_fetch_timeout=IMAGE_FETCH_TIMEOUT,
        max_image_bytes=MAX_UPLOAD_SIZE,
        allow_private_image_hosts=ALLOW_PRIVATE_IMAGE_HOSTS,
        confidence_floor=CONFIDENCE_FLOOR,
    )
