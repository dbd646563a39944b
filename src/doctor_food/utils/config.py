"""Configuration management for Doctor Food.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Model used for meal analysis (image + profile prompt -> structured JSON)
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
        # Application-level timeout for one analysis call, in seconds. 0 disables it
        # and leaves only the transport default in place.
        self.INFERENCE_TIMEOUT_SECONDS: float = float(os.getenv("INFERENCE_TIMEOUT_SECONDS", "60"))
        # Maximum image size (in MB) accepted from the camera or gallery. Default: 20 MB
        # (inline image limit of the Gemini API)
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "20"))
        # Image Compression: re-encode large photos as JPEG before analysis
        self.COMPRESS_IMG: bool = _env_bool("COMPRESS_IMG", "true")
        # Images below this size (in KB) are sent as-is
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))
        # Width (in pixels) that oversized photos are scaled down to
        self.COMPRESS_IMG_MAX_WIDTH: int = int(os.getenv("COMPRESS_IMG_MAX_WIDTH", "1024"))
        # SQLite file holding the persisted profile record
        self.PROFILE_DB_FILE: str = os.getenv("PROFILE_DB_FILE", "doctor_food.db")

    def validate(self) -> None:
        """Validate required configuration.

        Raises:
            ValueError: If the API key is missing or invalid values provided.
        """
        if not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required")
        if self.INFERENCE_TIMEOUT_SECONDS < 0:
            raise ValueError(
                f"INFERENCE_TIMEOUT_SECONDS must be >= 0, got: {self.INFERENCE_TIMEOUT_SECONDS}"
            )
        if self.MAX_IMAGE_SIZE_MB < 1:
            raise ValueError(f"MAX_IMAGE_SIZE_MB must be at least 1, got: {self.MAX_IMAGE_SIZE_MB}")
        if self.COMPRESS_IMG_THRESHOLD_KB < 0:
            raise ValueError(
                f"COMPRESS_IMG_THRESHOLD_KB must be >= 0, got: {self.COMPRESS_IMG_THRESHOLD_KB}"
            )
        if self.COMPRESS_IMG_MAX_WIDTH < 64:
            raise ValueError(
                f"COMPRESS_IMG_MAX_WIDTH must be at least 64, got: {self.COMPRESS_IMG_MAX_WIDTH}"
            )


# Module-level config instance; validated by the entry points at start-up
config = Config()
