import httpx
import pytest

from app.schemas.classification import ClassificationSource, WasteCategory
from app.services.image_loader import ImageSource
from app.services.labeler_service import (
    HuggingFaceLabeler,
    apply_confidence_floor,
    parse_predictions,
)

ENDPOINT = "https://labeler.test/models/google/vit-base-patch16-224"


def make_labeler(handler) -> HuggingFaceLabeler:
    return HuggingFaceLabeler(
        api_key="hf_test",
        endpoint=ENDPOINT,
        transport=httpx.MockTransport(handler),
    )


def json_handler(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return handler


@pytest.mark.asyncio
async def test_low_score_is_raised_to_floor(green_image):
    labeler = make_labeler(json_handler([{"label": "plastic bottle", "score": 0.50}]))

    result = await labeler.attempt_classify(green_image)

    assert result.category == WasteCategory.RECYCLABLE
    assert result.item_label == "Plastic Bottle"
    assert result.confidence == 75
    assert result.source == ClassificationSource.LABELER


@pytest.mark.asyncio
async def test_top_prediction_drives_result(green_image):
    seen = []
    payload = [
        {"label": "Banana", "score": 0.931},
        {"label": "water bottle", "score": 0.05},
    ]
    labeler = make_labeler(json_handler(payload, seen=seen))

    result = await labeler.attempt_classify(green_image)

    assert result.item_label == "Plant Material"
    assert result.confidence == 93
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == ENDPOINT
    assert request.headers["Authorization"] == "Bearer hf_test"
    assert request.headers["Content-Type"] == "image/png"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, status_code",
    [
        ([], 200),
        ({"error": "Model is currently loading", "estimated_time": 20.0}, 200),
        ([{"score": 0.9}], 200),
        ([{"label": "bottle", "score": "high"}], 200),
        ([{"label": "bottle", "score": 0.9}], 503),
        ({"error": "Authorization header is invalid"}, 401),
    ],
)
async def test_unusable_responses_are_unavailable(green_image, payload, status_code):
    labeler = make_labeler(json_handler(payload, status_code))
    assert await labeler.attempt_classify(green_image) is None


@pytest.mark.asyncio
async def test_transport_error_is_unavailable(green_image):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert await make_labeler(handler).attempt_classify(green_image) is None


@pytest.mark.asyncio
async def test_non_json_body_is_unavailable(green_image):
    labeler = make_labeler(lambda request: httpx.Response(200, text="<html>oops</html>"))
    assert await labeler.attempt_classify(green_image) is None


@pytest.mark.asyncio
async def test_unloadable_image_skips_request():
    seen = []
    labeler = make_labeler(json_handler([{"label": "bottle", "score": 0.9}], seen=seen))

    result = await labeler.attempt_classify(ImageSource(url="ftp://example.com/a.png"))

    assert result is None
    assert seen == []


def test_parse_predictions():
    assert parse_predictions(None) is None
    assert parse_predictions("bottle") is None
    predictions = parse_predictions([{"label": "can", "score": 1}])
    assert predictions[0].label == "can"


def test_apply_confidence_floor():
    assert apply_confidence_floor(50, 75) == 75
    assert apply_confidence_floor(90, 75) == 90
    assert apply_confidence_floor(140, 75) == 100
