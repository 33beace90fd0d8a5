# waste_sorting_streamlit.py
import streamlit as st
import requests
from PIL import Image
import io
import json
import logging
from typing import Optional, Tuple

# ----------------------------
# Configuration / Constants
# ----------------------------
DEFAULT_API_BASE_URL = "http://localhost:8000"
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB
REQUEST_TIMEOUT = 60  # seconds
APP_TITLE = "Waste Sorting Assistant"

POINTS_PER_SCAN = 50
POINTS_PER_DEMO = 25

CATEGORY_BADGES = {
    "biodegradable": "🌱 Biodegradable",
    "recyclable": "♻️ Recyclable",
    "hazardous": "⚠️ Hazardous",
}

DEMO_ITEMS = [
    {"name": "Plastic Water Bottle", "type": "recyclable", "confidence": 96, "description": "Clear PET plastic bottle"},
    {"name": "Banana Peel", "type": "biodegradable", "confidence": 98, "description": "Fresh organic fruit waste"},
    {"name": "AA Battery", "type": "hazardous", "confidence": 94, "description": "Alkaline battery"},
    {"name": "Cardboard Box", "type": "recyclable", "confidence": 92, "description": "Corrugated cardboard packaging"},
]

STATUS_LABELS = {
    "huggingface": "HuggingFace AI",
    "ollama": "Ollama Vision",
    "fallback": "Local Analysis",
}

# Streamlit page config
st.set_page_config(page_title=APP_TITLE, layout="wide")

# Lightweight logger
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("waste_app")

# Gamification lives in the browser session only
st.session_state.setdefault("user_points", 0)
st.session_state.setdefault("items_classified", 0)


# ----------------------------
# Helper functions
# ----------------------------

def bytes_to_kb(n: int) -> float:
    return n / 1024.0 if n is not None else 0.0


def is_valid_image_file(file) -> Tuple[bool, Optional[str]]:
    """Basic validation for uploaded file size and type."""
    if file is None:
        return False, "No file provided."

    size = getattr(file, "size", None)
    if size is None:
        size = len(file.getvalue())

    if size > MAX_FILE_SIZE:
        return False, f"File too large: {bytes_to_kb(size):.0f} KB (max {bytes_to_kb(MAX_FILE_SIZE):.0f} KB)"

    try:
        file.seek(0)
        Image.open(io.BytesIO(file.read()))
        file.seek(0)
    except (OSError, ValueError):
        return False, "Uploaded file is not a supported image or is corrupted."

    return True, None


@st.cache_data(show_spinner=False, ttl=30)
def check_api_health(api_base_url: str) -> Tuple[bool, Optional[str]]:
    """Check API health and return (is_up, error_message)."""
    try:
        resp = requests.get(f"{api_base_url.rstrip('/')}/health", timeout=5)
        if resp.status_code == 200:
            return True, None
        return False, f"HTTP {resp.status_code}"
    except requests.exceptions.RequestException as e:
        return False, str(e)


@st.cache_data(show_spinner=False, ttl=30)
def fetch_ai_status(api_base_url: str) -> Optional[dict]:
    try:
        resp = requests.get(f"{api_base_url.rstrip('/')}/ai-status", timeout=5)
        resp.raise_for_status()
        return resp.json()
    except (requests.exceptions.RequestException, ValueError):
        return None


@st.cache_data(show_spinner=False)
def fetch_guidance(api_base_url: str, category: str) -> Optional[dict]:
    try:
        resp = requests.get(f"{api_base_url.rstrip('/')}/guidance/{category}", timeout=10)
        resp.raise_for_status()
        return resp.json()
    except (requests.exceptions.RequestException, ValueError):
        return None


def post_file(endpoint: str, file, timeout: int = REQUEST_TIMEOUT) -> Tuple[Optional[dict], Optional[str]]:
    """POST an image to the classify endpoint and return parsed JSON or error string."""
    try:
        file.seek(0)
        filename = getattr(file, "name", "image.jpg")
        content_type = getattr(file, "type", None) or "application/octet-stream"
        files = {"image": (filename, io.BytesIO(file.read()), content_type)}
        with requests.Session() as s:
            resp = s.post(endpoint, files=files, timeout=timeout)
        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if resp.status_code == 200:
            return payload, None
        if payload and isinstance(payload, dict):
            detail = payload.get("detail") or json.dumps(payload)
        else:
            detail = resp.text
        return None, f"{resp.status_code}: {detail}"

    except requests.exceptions.Timeout:
        return None, "Request timed out. The backend may be busy or the file is large."
    except requests.exceptions.ConnectionError:
        return None, "Unable to connect to API. Verify API URL and network connectivity."


def award_points(points: int) -> None:
    st.session_state.user_points += points
    st.session_state.items_classified += 1


def render_classification(result: dict) -> None:
    category = result.get("category", "recyclable")
    st.subheader(result.get("item_label") or "Unidentified Item")
    st.markdown(f"**{CATEGORY_BADGES.get(category, category)}** · {result.get('confidence', 0)}% confidence")
    if result.get("source") in ("heuristic", "default"):
        st.caption("Estimated with offline analysis. Double-check local guidelines.")

    st.markdown("#### How to dispose")
    for i, step in enumerate(result.get("instructions", []), start=1):
        st.write(f"{i}. {step}")

    st.markdown("#### Did you know?")
    for tip in result.get("tips", []):
        st.write(f"• {tip}")

    st.success(result.get("impact_statement", ""))


# ----------------------------
# Sidebar
# ----------------------------

st.sidebar.title("Settings")
api_base_url = st.sidebar.text_input("API Base URL", value=DEFAULT_API_BASE_URL)

is_up, health_error = check_api_health(api_base_url)
status = fetch_ai_status(api_base_url) if is_up else None
if not is_up:
    st.sidebar.error(f"Offline Mode — {health_error}")
elif status:
    st.sidebar.success(STATUS_LABELS.get(status.get("active_model"), "AI Ready"))
    st.sidebar.caption(status.get("message", ""))

st.sidebar.markdown("---")
st.sidebar.metric("Points", st.session_state.user_points)
st.sidebar.metric("Items classified", st.session_state.items_classified)

st.sidebar.markdown("---")
st.sidebar.subheader("Categories")
st.sidebar.text("• Biodegradable: food, plants, wood")
st.sidebar.text("• Recyclable: plastic, metal, glass, cardboard")
st.sidebar.text("• Hazardous: batteries, electronics, chemicals")


# ----------------------------
# Main area
# ----------------------------

st.title(APP_TITLE)
st.markdown("Snap or upload a photo of an item to find out how to dispose of it.")

scan_tab, demo_tab = st.tabs(["Scan an item", "Demo mode"])

with scan_tab:
    uploaded_file = st.file_uploader(
        "Upload image — max 10 MB", type=["jpg", "jpeg", "png", "webp"], accept_multiple_files=False
    )
    camera_file = st.camera_input("Or take a photo")
    selected_file = uploaded_file or camera_file

    if selected_file is not None:
        valid, err = is_valid_image_file(selected_file)
        if not valid:
            st.error(err)
            st.stop()

        cols = st.columns([1, 1])
        with cols[0]:
            st.image(Image.open(io.BytesIO(selected_file.getvalue())), width="stretch")

        with cols[1]:
            if st.button("Classify item"):
                if not is_up:
                    st.error(f"Backend is unreachable: {health_error}")
                else:
                    with st.spinner("Analyzing — please wait..."):
                        data, error = post_file(f"{api_base_url.rstrip('/')}/classify", selected_file)
                    if error:
                        st.error(f"Classification failed — {error}")
                    else:
                        award_points(POINTS_PER_SCAN)
                        render_classification(data)
    else:
        st.info("No image selected. Upload or capture a photo to get started.")

with demo_tab:
    st.markdown("Try the assistant with sample items.")
    demo_cols = st.columns(len(DEMO_ITEMS))
    for col, item in zip(demo_cols, DEMO_ITEMS):
        with col:
            st.write(f"**{item['name']}**")
            st.caption(item["description"])
            if st.button("Try it", key=f"demo_{item['name']}"):
                st.session_state.demo_item = item

    demo_item = st.session_state.get("demo_item")
    if demo_item:
        guidance = fetch_guidance(api_base_url, demo_item["type"]) if is_up else None
        if guidance is None:
            st.error("Demo guidance unavailable — is the backend running?")
        else:
            award_points(POINTS_PER_DEMO)
            render_classification(
                {
                    "category": demo_item["type"],
                    "confidence": demo_item["confidence"],
                    "item_label": demo_item["name"],
                    **guidance,
                }
            )
            st.session_state.demo_item = None


# ----------------------------
# Footer / Troubleshooting
# ----------------------------

st.markdown("---")
with st.expander("Troubleshooting & Tips"):
    st.write(
        """
- Use a clear, well-lit photo with the item filling most of the frame.
- If the API is unreachable, ensure your backend is running and the API Base URL is correct.
- Without AI services configured the backend falls back to a simple color analysis.
"""
    )
