"""Data models for meal analysis.

Defines Pydantic models for the persisted user profile, the captured image,
the outbound analysis request and the validated provider reply.
All models use Pydantic v2.
"""

import base64
import binascii
import re
from enum import Enum
from typing import Annotated, Any, List

from google.genai import types
from pydantic import BaseModel, ConfigDict, Field

from doctor_food.utils.errors import InvalidImageError

DATA_URL_PATTERN = re.compile(r"^data:(image/[A-Za-z0-9.+-]+);base64,(.+)$", re.DOTALL)


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


def _format_number(value: float) -> str:
    """Render a number the way it was typed into the form ("70", "70.5")."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class UserProfile(BaseModel):
    """Personal data used to tailor every analysis.

    Persisted as a single record and overwritten wholesale on edit.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    age: Annotated[int, Field(ge=1, le=120, description="Age in years (1-120)")]
    gender: Annotated[Gender, Field(description="male or female")]
    weight: Annotated[float, Field(ge=20, le=300, description="Body weight in kilograms (20-300)")]

    @classmethod
    def from_form(cls, age: str, gender: str, weight: str) -> "UserProfile":
        """Build a profile from raw form input.

        Raises:
            pydantic.ValidationError: If a field is empty, unparseable or out of range.
                An unset gender ("") is rejected here and never persisted.
        """
        return cls.model_validate({"age": age, "gender": gender, "weight": weight})

    def to_record(self) -> dict[str, str]:
        """Return the persisted representation, numbers encoded as text."""
        return {
            "age": str(self.age),
            "gender": self.gender.value,
            "weight": _format_number(self.weight),
        }


class ImageBlob(BaseModel):
    """Encoded still image plus its media type, held for one analysis cycle."""

    model_config = ConfigDict(frozen=True)

    data: Annotated[bytes, Field(min_length=1, repr=False)]
    mime_type: Annotated[str, Field(min_length=1, description="Media type, e.g. image/jpeg")]

    @property
    def size_kb(self) -> float:
        return len(self.data) / 1024

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImageBlob":
        """Decode a ``data:image/...;base64,...`` URL.

        Raises:
            InvalidImageError: If the URL is not a base64 image data URL.
        """
        match = DATA_URL_PATTERN.match(data_url.strip())
        if not match:
            raise InvalidImageError("Invalid image format")
        try:
            data = base64.b64decode(match.group(2), validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImageError(f"Invalid base64 image payload: {e}") from e
        if not data:
            raise InvalidImageError("Image payload is empty")
        return cls(data=data, mime_type=match.group(1))


class AnalysisResult(BaseModel):
    """Schema-validated nutrition assessment returned by the provider.

    Fields are populated from the wire names of the response schema only; a
    snake_case key never stands in for a missing wire key. Validation is
    strict: values are never coerced, and a missing field is never defaulted.
    The rating is trusted as-is (nominally 0-10, not enforced).
    """

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    food_name: Annotated[str, Field(alias="foodName", description="Name of the food or meal")]
    estimated_weight: Annotated[
        str, Field(alias="estimatedWeight", description="Estimated weight with unit, e.g. 250 جرام")
    ]
    calories: Annotated[str, Field(description="Estimated calories with unit, e.g. 450 سعرة")]
    healthiness: Annotated[str, Field(description="Short health impact summary")]
    is_healthy: Annotated[bool, Field(alias="isHealthy", description="Whether the meal is healthy overall")]
    rating: Annotated[float, Field(description="Meal rating out of 10")]
    healthy_alternatives: Annotated[
        List[str], Field(alias="healthyAlternatives", description="Healthier alternatives or additions")
    ]
    analysis: Annotated[str, Field(description="Full, detailed analysis")]

    def to_wire(self) -> dict[str, Any]:
        """Return the reply in its wire shape (schema field names)."""
        return self.model_dump(by_alias=True)


class AnalysisRequest(BaseModel):
    """One inference request: image, profile snapshot, prompt and output schema."""

    model_config = ConfigDict(frozen=True)

    image: ImageBlob
    profile: UserProfile
    prompt: str
    response_schema: types.Schema

    def to_generate_content_args(self) -> dict[str, Any]:
        """Return the ``contents`` and ``config`` arguments of ``generate_content``.

        The inference client sends exactly these; equal requests yield equal arguments.
        """
        return {
            "contents": [
                types.Part.from_bytes(data=self.image.data, mime_type=self.image.mime_type),
                types.Part.from_text(text=self.prompt),
            ],
            "config": types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=self.response_schema,
            ),
        }

    def to_payload(self) -> dict[str, Any]:
        """Return the ``generate_content`` arguments as plain JSON-compatible data."""
        args = self.to_generate_content_args()
        return {
            "contents": [part.model_dump(mode="json", exclude_none=True) for part in args["contents"]],
            "config": args["config"].model_dump(mode="json", exclude_none=True),
        }
