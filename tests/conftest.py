"""Shared fixtures: sample images, a profile and canned provider replies."""

import json
from io import BytesIO

import pytest
from PIL import Image

from doctor_food.models.models import ImageBlob, UserProfile


def make_image_bytes(fmt: str = "PNG", size=(64, 48), color=(200, 120, 40), mode: str = "RGB") -> bytes:
    """Encode a solid-color test image with Pillow."""
    output = BytesIO()
    Image.new(mode, size, color).save(output, format=fmt)
    return output.getvalue()


@pytest.fixture
def make_image():
    return make_image_bytes


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def image_blob(jpeg_bytes) -> ImageBlob:
    return ImageBlob(data=jpeg_bytes, mime_type="image/jpeg")


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile.from_form("25", "male", "70")


@pytest.fixture
def reply_payload() -> dict:
    """A well-formed analysis reply, wire field names."""
    return {
        "foodName": "سلطة خضار",
        "estimatedWeight": "250 جرام",
        "calories": "120 سعرة",
        "healthiness": "غنية بالألياف وقليلة الدهون",
        "isHealthy": True,
        "rating": 9,
        "healthyAlternatives": ["إضافة صدر دجاج مشوي", "زيت زيتون بدل الصلصة الجاهزة"],
        "analysis": "وجبة متوازنة ومناسبة لعمرك ووزنك.",
    }


@pytest.fixture
def reply_text(reply_payload) -> str:
    return json.dumps(reply_payload, ensure_ascii=False)
