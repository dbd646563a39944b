"""Builds the inference request for one captured meal photo."""

from doctor_food.models.models import AnalysisRequest, ImageBlob, UserProfile
from doctor_food.prompts.prompts import GENDER_LABELS, MEAL_ANALYSIS_PROMPT_TEMPLATE, build_response_schema


def render_prompt(profile: UserProfile) -> str:
    """Interpolate the profile into the fixed instruction template."""
    record = profile.to_record()
    return MEAL_ANALYSIS_PROMPT_TEMPLATE.format(
        gender=GENDER_LABELS[profile.gender],
        age=record["age"],
        weight=record["weight"],
    )


def build_analysis_request(image: ImageBlob, profile: UserProfile) -> AnalysisRequest:
    """Combine image and profile snapshot into an AnalysisRequest.

    Pure: equal inputs always yield an equal request payload.
    """
    return AnalysisRequest(
        image=image,
        profile=profile,
        prompt=render_prompt(profile),
        response_schema=build_response_schema(),
    )
