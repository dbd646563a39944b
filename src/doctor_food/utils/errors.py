"""Error kinds raised by the meal analysis pipeline."""

from typing import Optional


class DoctorFoodError(Exception):
    """Base error for meal analysis failures."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidImageError(DoctorFoodError):
    """Selected or captured data is not a decodable, supported image."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "INVALID_IMAGE")


class InferenceUnavailableError(DoctorFoodError):
    """The inference provider could not be reached (transport, timeout, non-2xx)."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message, "INFERENCE_UNAVAILABLE")
        self.original_error = original_error


class MalformedResponseError(DoctorFoodError):
    """The provider answered, but the payload does not match the result schema."""

    def __init__(self, message: str, raw_text: Optional[str] = None) -> None:
        super().__init__(message, "MALFORMED_RESPONSE")
        self.raw_text = raw_text
