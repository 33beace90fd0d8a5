from types import SimpleNamespace

import httpx
import pytest

from app.config import ClassifierSettings
from app.schemas.classification import ClassificationResult, ClassificationSource, WasteCategory
from app.services import catalog
from app.services.classifier import WasteClassifier, build_classifier, check_ai_configuration
from app.services.color_analysis import analyze
from app.services import cv_service as cv_module
from app.services.cv_service import ColorHeuristicClassifier
from app.services.image_loader import ImageSource, decode_pixels
from app.services.labeler_service import HuggingFaceLabeler
from app.services.llm_service import OllamaVisionClassifier
from conftest import BLUE, BROWN, SILVER, FakeStrategy, png_bytes


def labeler_result():
    return catalog.lookup("battery").model_copy(update={"source": ClassificationSource.LABELER})


def vision_result():
    guidance = catalog.guidance_for(WasteCategory.BIODEGRADABLE)
    return ClassificationResult(
        category=WasteCategory.BIODEGRADABLE,
        confidence=88,
        item_label="Banana Peel",
        instructions=guidance.instructions,
        tips=guidance.tips,
        impact_statement=guidance.impact_statement,
        source=ClassificationSource.VISION,
    )


def assert_well_formed(result):
    assert result.category in set(WasteCategory)
    assert 0 <= result.confidence <= 100
    assert result.item_label
    assert result.instructions


@pytest.mark.asyncio
async def test_first_success_short_circuits(green_image):
    labeler = FakeStrategy("huggingface", labeler_result())
    vision = FakeStrategy("ollama", vision_result())
    local = FakeStrategy("fallback", catalog.lookup("plant"))

    result = await WasteClassifier([labeler, vision, local]).classify(green_image)

    assert result.item_label == "Battery"
    assert (labeler.calls, vision.calls, local.calls) == (1, 0, 0)


@pytest.mark.asyncio
async def test_falls_back_to_vision_when_labeler_unavailable(green_image):
    labeler = FakeStrategy("huggingface")
    vision = FakeStrategy("ollama", vision_result())
    local = FakeStrategy("fallback", catalog.lookup("plant"))

    result = await WasteClassifier([labeler, vision, local]).classify(green_image)

    assert result.category == WasteCategory.BIODEGRADABLE
    assert result.item_label == "Banana Peel"
    assert result.source == ClassificationSource.VISION
    assert (labeler.calls, vision.calls, local.calls) == (1, 1, 0)


@pytest.mark.asyncio
@pytest.mark.parametrize("pixels", [[BLUE] * 100, [BROWN] * 100, [SILVER] * 100])
async def test_full_fallback_matches_color_analysis(pixels):
    data = png_bytes(pixels)
    classifier = WasteClassifier(
        [FakeStrategy("huggingface"), FakeStrategy("ollama"), ColorHeuristicClassifier()]
    )

    result = await classifier.classify(ImageSource.from_bytes(data))

    decoded = decode_pixels(data)
    expected = catalog.lookup(analyze(decoded.pixels, decoded.width, decoded.height))
    assert result.category == expected.category
    assert result.item_label == expected.item_label
    assert result.source == ClassificationSource.HEURISTIC


@pytest.mark.asyncio
async def test_decode_failure_yields_default(corrupt_image):
    classifier = WasteClassifier(
        [FakeStrategy("huggingface"), FakeStrategy("ollama"), ColorHeuristicClassifier()]
    )

    result = await classifier.classify(corrupt_image)

    assert result == catalog.default_classification()
    assert result.category == WasteCategory.RECYCLABLE
    assert result.confidence == 85
    assert result.item_label == "Unidentified Item"


@pytest.mark.asyncio
async def test_unexpected_strategy_error_is_contained(green_image):
    broken = FakeStrategy("huggingface", error=RuntimeError("boom"))
    local = FakeStrategy("fallback", catalog.lookup("plant"))

    result = await WasteClassifier([broken, local]).classify(green_image)

    assert result.item_label == "Plant Material"
    assert local.calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "image",
    [
        ImageSource.from_bytes(png_bytes([BLUE] * 100)),
        ImageSource.from_bytes(b""),
        ImageSource(url="data:image/png;base64,!!!"),
        ImageSource(url="file:///etc/passwd"),
    ],
)
async def test_classify_is_total(image):
    classifier = WasteClassifier(
        [FakeStrategy("huggingface", error=TimeoutError()), FakeStrategy("ollama"), ColorHeuristicClassifier()]
    )
    assert_well_formed(await classifier.classify(image))


@pytest.mark.asyncio
async def test_empty_chain_returns_default(green_image):
    assert await WasteClassifier([]).classify(green_image) == catalog.default_classification()


def test_chain_without_credentials_is_local_only():
    assert build_classifier(ClassifierSettings()).strategy_names == ["fallback"]


def test_chain_order_follows_credentials():
    settings = ClassifierSettings(huggingface_api_key="hf_test", ollama_host="http://localhost:11434")
    assert build_classifier(settings).strategy_names == ["huggingface", "ollama", "fallback"]

    settings = ClassifierSettings(ollama_api_key="ollama_test")
    assert build_classifier(settings).strategy_names == ["ollama", "fallback"]


def test_check_ai_configuration():
    status = check_ai_configuration(ClassifierSettings())
    assert not status.configured
    assert status.active_model == "fallback"

    status = check_ai_configuration(ClassifierSettings(huggingface_api_key="hf_test", ollama_host="http://ollama:11434"))
    assert status.configured
    assert status.active_model == "huggingface"
    assert status.strategies == ["huggingface", "ollama", "fallback"]

    status = check_ai_configuration(ClassifierSettings(ollama_host="http://ollama:11434"))
    assert status.active_model == "ollama"


class FakeOllamaClient:
    def __init__(self):
        self.calls = 0

    async def chat(self, **kwargs):
        self.calls += 1
        return {"message": {"content": '{"type": "recyclable", "item": "Can", "confidence": 90}'}}


@pytest.mark.asyncio
async def test_unreachable_image_is_fetched_once_across_the_chain():
    fetches = []

    def image_host(request):
        fetches.append(request)
        raise httpx.ReadTimeout("image host hung", request=request)

    labeler_calls = []
    labeler = HuggingFaceLabeler(
        api_key="hf_test",
        endpoint="https://labeler.test/models/vit",
        transport=httpx.MockTransport(lambda request: labeler_calls.append(request) or httpx.Response(200, json=[])),
    )
    ollama_client = FakeOllamaClient()
    vision = OllamaVisionClassifier(client=ollama_client, model="llava")
    classifier = WasteClassifier([labeler, vision, ColorHeuristicClassifier()])

    image = ImageSource(url="https://images.test/slow.png", transport=httpx.MockTransport(image_host))
    result = await classifier.classify(image)

    assert result == catalog.default_classification()
    assert len(fetches) == 1
    assert labeler_calls == []
    assert ollama_client.calls == 0


@pytest.mark.asyncio
async def test_local_analysis_runs_off_the_event_loop(monkeypatch, green_image):
    offloaded = []

    async def to_thread(func, *args):
        offloaded.append(func.__name__)
        return func(*args)

    monkeypatch.setattr(cv_module, "asyncio", SimpleNamespace(to_thread=to_thread))

    result = await ColorHeuristicClassifier().attempt_classify(green_image)

    assert result.item_label == "Plant Material"
    assert offloaded == ["decode_and_analyze"]


@pytest.mark.asyncio
async def test_strategies_stamp_their_own_source(green_image):
    assert catalog.lookup("plant").source == ClassificationSource.CATALOG

    result = await ColorHeuristicClassifier().attempt_classify(green_image)
    assert result.source == ClassificationSource.HEURISTIC
