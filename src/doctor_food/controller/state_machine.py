"""Application state machine for Doctor Food.

Single controller object that owns the profile, the current image/result pair
and the error shown to the user. The presentation layer reads snapshots and
forwards user intents; it never mutates state directly.

States and transitions:

    NO_PROFILE       --submit_profile-->  AWAITING_CAPTURE
    AWAITING_CAPTURE --image acquired-->  ANALYZING
    ANALYZING        --success-------->   RESULT_READY
    ANALYZING        --any failure---->   ANALYSIS_FAILED
    RESULT_READY / ANALYSIS_FAILED --reset--> AWAITING_CAPTURE
    AWAITING_CAPTURE / RESULT_READY / ANALYSIS_FAILED --edit_profile--> NO_PROFILE

At most one analysis is in flight: a capture intent outside AWAITING_CAPTURE is
ignored, and ANALYZING is entered before the first suspension point.
"""

import asyncio
import uuid
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

from doctor_food.models.models import AnalysisResult, ImageBlob, UserProfile
from doctor_food.services.image_acquisition import AcquisitionIntent, ImageSource, acquire_image
from doctor_food.services.inference import GeminiInferenceClient
from doctor_food.services.profile_store import ProfileStore
from doctor_food.services.request_builder import build_analysis_request
from doctor_food.utils.errors import DoctorFoodError, InvalidImageError, MalformedResponseError
from doctor_food.utils.logger import logger

GENERIC_FAILURE_MESSAGE = "حدث خطأ أثناء تحليل الصورة. يرجى المحاولة مرة أخرى."
INVALID_IMAGE_MESSAGE = "تعذر قراءة الصورة. يرجى اختيار صورة بصيغة JPEG أو PNG أو WebP."


class AppState(str, Enum):
    NO_PROFILE = "no_profile"
    AWAITING_CAPTURE = "awaiting_capture"
    ANALYZING = "analyzing"
    RESULT_READY = "result_ready"
    ANALYSIS_FAILED = "analysis_failed"


class ScreenState(BaseModel):
    """Immutable view of the controller handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    state: AppState
    profile: Optional[UserProfile] = None
    image: Optional[ImageBlob] = None
    result: Optional[AnalysisResult] = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def is_analyzing(self) -> bool:
        return self.state is AppState.ANALYZING


StateListener = Callable[[ScreenState], None]


class AnalysisController:
    """Drives profile entry, capture, analysis and reset."""

    def __init__(self, profile_store: ProfileStore, inference_client: GeminiInferenceClient) -> None:
        self.profile_store = profile_store
        self.inference_client = inference_client
        self.profile: Optional[UserProfile] = profile_store.load()
        self.state = AppState.AWAITING_CAPTURE if self.profile else AppState.NO_PROFILE
        self.image: Optional[ImageBlob] = None
        self.result: Optional[AnalysisResult] = None
        self.error_message: Optional[str] = None
        self.error_kind: Optional[str] = None
        self._listeners: list[StateListener] = []
        logger.info(f"Initial state: {self.state.value}")

    def subscribe(self, listener: StateListener) -> None:
        """Register a callback invoked with a fresh snapshot after every change."""
        self._listeners.append(listener)

    def snapshot(self) -> ScreenState:
        return ScreenState(
            state=self.state,
            profile=self.profile,
            image=self.image,
            result=self.result,
            error_message=self.error_message,
            error_kind=self.error_kind,
        )

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in self._listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"State listener {listener!r} failed on {snapshot.state.value}")

    def _transition(self, new_state: AppState) -> None:
        old_state = self.state
        self.state = new_state
        logger.info(f"State transition: {old_state.value} -> {new_state.value}", extra={"state": new_state.value})
        self._notify()

    def _clear_cycle(self) -> None:
        self.image = None
        self.result = None
        self.error_message = None
        self.error_kind = None

    def _ignore(self, intent: str) -> bool:
        logger.warning(f"Ignoring '{intent}' in state {self.state.value}")
        return False

    def submit_profile(self, profile: UserProfile) -> bool:
        """Persist a valid profile and move to AWAITING_CAPTURE."""
        if self.state is not AppState.NO_PROFILE:
            return self._ignore("submit_profile")
        self.profile_store.save(profile)
        self.profile = profile
        self._transition(AppState.AWAITING_CAPTURE)
        return True

    def edit_profile(self) -> bool:
        """Clear the stored profile and return to the profile form."""
        if self.state not in (AppState.AWAITING_CAPTURE, AppState.RESULT_READY, AppState.ANALYSIS_FAILED):
            return self._ignore("edit_profile")
        self.profile_store.clear()
        self.profile = None
        self._clear_cycle()
        self._transition(AppState.NO_PROFILE)
        return True

    def reset(self) -> bool:
        """Drop the finished cycle's image, result and error ("analyze another meal")."""
        if self.state not in (AppState.RESULT_READY, AppState.ANALYSIS_FAILED):
            return self._ignore("reset")
        self._clear_cycle()
        self._transition(AppState.AWAITING_CAPTURE)
        return True

    async def capture(
        self,
        image_source: ImageSource,
        intent: AcquisitionIntent = AcquisitionIntent.GALLERY,
    ) -> bool:
        """Acquire an image from the camera or gallery and analyze it.

        Acquisition (file read, decode check, compression) runs in a worker
        thread. A cancelled picker (no source) is a no-op. An undecodable image
        keeps the machine in AWAITING_CAPTURE and only sets the invalid-image
        message.

        Returns:
            True if an analysis was started, False otherwise.
        """
        if self.state is not AppState.AWAITING_CAPTURE:
            return self._ignore(f"capture ({intent.value})")

        try:
            image = await asyncio.to_thread(acquire_image, image_source, intent)
        except InvalidImageError as e:
            logger.warning(f"Rejected image: {e.message}", extra={"intent": intent.value})
            self.error_kind = e.code
            self.error_message = INVALID_IMAGE_MESSAGE
            self._notify()
            return False

        if image is None:
            return False

        return await self.analyze_image(image)

    async def analyze_image(self, image: ImageBlob) -> bool:
        """Run one analysis cycle for an acquired image.

        Returns:
            True if the analysis ran (whatever its outcome), False if the intent
            was ignored because another analysis is in flight or the machine is
            not awaiting a capture.
        """
        # Single-flight guard: checked and claimed before the first await
        if self.state is not AppState.AWAITING_CAPTURE:
            return self._ignore("analyze_image")

        self._clear_cycle()
        self.image = image
        self._transition(AppState.ANALYZING)

        analysis_id = uuid.uuid4().hex[:8]
        log_extra = {"analysis_id": analysis_id}

        try:
            request = build_analysis_request(image, self.profile)
            result = await self.inference_client.analyze(request)
        except MalformedResponseError as e:
            logger.error(f"Analysis failed: malformed response ({e.message})", extra=log_extra)
            if e.raw_text:
                logger.debug(f"Raw reply: {e.raw_text[:500]}", extra=log_extra)
            self._fail(e.code)
        except DoctorFoodError as e:
            logger.error(f"Analysis failed: {e.code} ({e.message})", extra=log_extra)
            self._fail(e.code)
        except Exception:
            logger.exception("Analysis failed with an unexpected error", extra=log_extra)
            self._fail("UNEXPECTED_ERROR")
        else:
            self.result = result
            logger.info(
                f"Analysis complete: {result.food_name} (healthy={result.is_healthy}, rating={result.rating})",
                extra=log_extra,
            )
            self._transition(AppState.RESULT_READY)

        return True

    def _fail(self, error_kind: Optional[str]) -> None:
        self.result = None
        self.error_kind = error_kind
        self.error_message = GENERIC_FAILURE_MESSAGE
        self._transition(AppState.ANALYSIS_FAILED)
