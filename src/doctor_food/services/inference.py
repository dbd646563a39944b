"""Meal analysis through the Gemini multimodal API.

The only component that touches the network. One request, one reply:
no retries and no caching. Identical photos submitted twice cost two calls,
and a failure surfaces immediately so the user can re-submit.

Core Functions:
- parse_analysis_response(): Lenient JSON extraction + strict schema validation
- GeminiInferenceClient.analyze(): Precondition check, API call, error mapping
"""

import asyncio
import json
import re
import time
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors, types
from pydantic import ValidationError

from doctor_food.models.models import AnalysisRequest, AnalysisResult
from doctor_food.utils.config import config
from doctor_food.utils.errors import InferenceUnavailableError, InvalidImageError, MalformedResponseError
from doctor_food.utils.logger import logger

IMAGE_MIME_PATTERN = re.compile(r"^image/[A-Za-z0-9.+-]+$")


def _load_json_object(response_text: str) -> Optional[dict[str, Any]]:
    """Parse a JSON object out of the reply text.

    Tries multiple parsing strategies:
    1. Direct json.loads() on the full reply
    2. Regex extraction of the outermost {...} block
    """
    try:
        parsed = json.loads(response_text)
    except ValueError:
        logger.debug("Direct JSON parse failed, trying block extraction")
        json_match = re.search(r"\{.*\}", response_text, re.DOTALL)
        if not json_match:
            return None
        try:
            parsed = json.loads(json_match.group())
        except ValueError:
            return None

    return parsed if isinstance(parsed, dict) else None


def parse_analysis_response(response_text: Optional[str]) -> AnalysisResult:
    """Validate the provider reply against the AnalysisResult contract.

    Every field must be present with its exact type; nothing is defaulted
    or coerced. The rating is passed through even when outside 0-10.

    Raises:
        MalformedResponseError: If the reply is empty, not a JSON object, or
            any required field is missing or wrong-typed.
    """
    if not response_text or not response_text.strip():
        raise MalformedResponseError("No response from Gemini")

    payload = _load_json_object(response_text)
    if payload is None:
        raise MalformedResponseError("Reply is not a JSON object", raw_text=response_text)

    try:
        result = AnalysisResult.model_validate(payload)
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
        raise MalformedResponseError(
            f"Reply does not match the analysis schema (fields: {', '.join(fields)})",
            raw_text=response_text,
        ) from e

    if not 0 <= result.rating <= 10:
        logger.warning(f"Rating {result.rating} is outside 0-10, passing through unchanged")

    return result


class GeminiInferenceClient:
    """Sends AnalysisRequests to Gemini and returns validated AnalysisResults."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[genai.Client] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key (default: GEMINI_API_KEY).
            model: Model id (default: GEMINI_MODEL).
            timeout_seconds: Per-call timeout, 0 disables it (default: INFERENCE_TIMEOUT_SECONDS).
            client: Pre-built genai.Client, mainly for tests.
        """
        self.model = model or config.GEMINI_MODEL
        self.timeout_seconds = config.INFERENCE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self._client = client or genai.Client(api_key=api_key or config.GEMINI_API_KEY)

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Run one meal analysis.

        Returns:
            The schema-validated AnalysisResult.

        Raises:
            InvalidImageError: If the image media type is not image/* (checked before any call).
            InferenceUnavailableError: On timeout, connection failure or non-2xx status.
            MalformedResponseError: If the reply fails schema validation.
        """
        mime_type = request.image.mime_type
        if not IMAGE_MIME_PATTERN.match(mime_type):
            raise InvalidImageError(f"Unsupported media type for analysis: {mime_type!r}")

        logger.info(f"Requesting meal analysis from {self.model} ({request.image.size_kb:.1f}KB {mime_type})")
        start = time.perf_counter()
        response = await self._generate(request)
        logger.info(f"Gemini replied in {(time.perf_counter() - start) * 1000:.0f}ms")

        return parse_analysis_response(response.text)

    async def _generate(self, request: AnalysisRequest) -> types.GenerateContentResponse:
        call = asyncio.to_thread(
            self._client.models.generate_content,
            model=self.model,
            **request.to_generate_content_args(),
        )

        try:
            if self.timeout_seconds:
                # On timeout the worker thread is abandoned, not cancelled
                return await asyncio.wait_for(call, timeout=self.timeout_seconds)
            return await call
        except asyncio.TimeoutError as e:
            raise InferenceUnavailableError(f"Meal analysis timed out after {self.timeout_seconds}s", e) from e
        except errors.APIError as e:
            raise InferenceUnavailableError(f"Gemini API error {e.code}: {e.message}", e) from e
        except (httpx.HTTPError, OSError) as e:
            raise InferenceUnavailableError(f"Could not reach Gemini: {e}", e) from e
