"""Put the project root on sys.path so tests import the flat modules directly."""
import os
import sys
from io import BytesIO
from unittest.mock import Mock, patch

import pytest
import requests
from PIL import Image

_root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _root_dir not in sys.path:
    sys.path.insert(0, _root_dir)

from performance_tracker import clear_timings, log_capture  # noqa: E402
from property_models import PropertyRecord  # noqa: E402

HERO_URL = "https://cdn.example.com/properties/hero.jpg"
GALLERY_URLS = [
    "https://cdn.example.com/properties/living.png",
    "https://cdn.example.com/properties/kitchen.png",
]


@pytest.fixture(autouse=True)
def quiet_logs():
    log_capture.disable()
    yield
    log_capture.enable()
    clear_timings()


@pytest.fixture
def png_bytes():
    def make(width=120, height=80, color=(31, 78, 121)):
        buf = BytesIO()
        Image.new("RGB", (width, height), color).save(buf, "PNG")
        return buf.getvalue()
    return make


def _response(content=b"", status=200):
    resp = Mock()
    resp.status_code = status
    resp.content = content
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Client Error")
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def serve_images():
    """Patch requests.get with a URL -> (bytes, status) table; unknown URLs fail to connect."""
    patchers = []

    def install(table):
        def fake_get(url, timeout=None):
            if url not in table:
                raise requests.ConnectionError(f"no route to {url}")
            content, status = table[url]
            return _response(content, status)

        mock_get = Mock(side_effect=fake_get)
        patcher = patch("image_pipeline.requests.get", mock_get)
        patcher.start()
        patchers.append(patcher)
        return mock_get

    yield install
    for patcher in patchers:
        patcher.stop()


def _localized(lang):
    if lang == "en":
        return {
            "title": "Modern Villa with Garden Views",
            "description": (
                "A bright four-bedroom villa set on a quiet street, with open living spaces, "
                "a renovated kitchen and a private garden. Large windows bring in natural light "
                "throughout the day.\n\nThe home sits minutes from schools, shops and the park."
            ),
            "highlights": [
                "• Four spacious bedrooms",
                "- Renovated kitchen",
                "Private landscaped garden",
                "→ Two-car garage",
                "Walking distance to schools",
                "* Energy efficient windows",
            ],
            "translatedAmenities": [
                "Swimming Pool", "Gym", "Parking", "Balcony", "Garden",
                "Security System", "Central Air Conditioning", "Fireplace",
                "Pet Friendly", "Storage Space",
            ],
            "priceLabel": "Price",
            "addressLabel": "Address",
            "cityLabel": "City",
            "stateLabel": "State",
            "zipCodeLabel": "ZIP Code",
            "amenitiesLabel": "Amenities & Features",
            "agentLabel": "Contact Your Agent",
            "propertyDescriptionLabel": "Property Description",
            "keyHighlightsLabel": "Key Highlights",
            "propertyGalleryLabel": "Property Gallery",
        }
    return {
        "title": "فيلا حديثة مع إطلالة على الحديقة",
        "description": (
            "فيلا مشرقة من أربع غرف نوم في شارع هادئ، مع مساحات معيشة مفتوحة ومطبخ مجدد "
            "وحديقة خاصة. النوافذ الكبيرة تدخل الضوء الطبيعي طوال اليوم."
        ),
        "highlights": [
            "أربع غرف نوم واسعة",
            "مطبخ مجدد",
            "حديقة خاصة",
            "مرآب لسيارتين",
            "قريبة من المدارس",
            "نوافذ موفرة للطاقة",
        ],
        "translatedAmenities": [
            "حمام السباحة", "صالة رياضية", "موقف سيارات", "شرفة", "حديقة",
            "نظام أمان", "تكييف مركزي", "مدفأة", "يسمح بالحيوانات الأليفة", "مساحة تخزين",
        ],
        "priceLabel": "السعر",
        "addressLabel": "العنوان",
        "cityLabel": "المدينة",
        "stateLabel": "الولاية",
        "zipCodeLabel": "الرمز البريدي",
        "amenitiesLabel": "المرافق والميزات",
        "agentLabel": "اتصل بوكيلك",
        "propertyDescriptionLabel": "وصف العقار",
        "keyHighlightsLabel": "المميزات الرئيسية",
        "propertyGalleryLabel": "معرض العقار",
    }


@pytest.fixture
def record_payload():
    return {
        "title": "Modern Villa",
        "description": "Four bedroom villa with a garden.",
        "price": 550000,
        "currency": "Dollar",
        "address": "123 Main St",
        "city": "Springfield",
        "state": "IL",
        "zipCode": "62704",
        "amenities": [
            "Swimming Pool", "Gym", "Parking", "Balcony", "Garden",
            "Security System", "Central Air Conditioning", "Fireplace",
            "Pet Friendly", "Storage Space",
        ],
        "imageUrls": [HERO_URL] + GALLERY_URLS,
        "agentInfo": {"name": "Jordan Lee", "email": "jordan@example.com", "phone": "+1 555 0100"},
        "aiContent": {
            "englishDescription": "Legacy English description of the villa.",
            "arabicDescription": "وصف عربي قديم للفيلا.",
            "keyHighlights": ["Legacy highlight one", "Legacy highlight two"],
        },
        "englishContent": _localized("en"),
        "arabicContent": _localized("ar"),
    }


@pytest.fixture
def full_record(record_payload):
    return PropertyRecord.model_validate(record_payload)


@pytest.fixture
def all_images(serve_images, png_bytes):
    return serve_images({
        HERO_URL: (png_bytes(1200, 800), 200),
        GALLERY_URLS[0]: (png_bytes(800, 1200, (200, 160, 40)), 200),
        GALLERY_URLS[1]: (png_bytes(640, 480, (60, 60, 60)), 200),
    })
