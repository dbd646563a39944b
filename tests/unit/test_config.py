"""Unit tests for configuration management."""

import pytest

from doctor_food.utils.config import Config


class TestConfigInitialization:
    """Test Config class initialization and environment variable loading."""

    def test_config_loads_default_values(self, monkeypatch):
        """Test that Config uses default values when env vars not set."""
        for name in (
            "GEMINI_MODEL",
            "INFERENCE_TIMEOUT_SECONDS",
            "MAX_IMAGE_SIZE_MB",
            "COMPRESS_IMG",
            "COMPRESS_IMG_THRESHOLD_KB",
            "COMPRESS_IMG_MAX_WIDTH",
            "PROFILE_DB_FILE",
        ):
            monkeypatch.delenv(name, raising=False)

        config = Config()

        assert config.GEMINI_MODEL == "gemini-3-flash-preview"
        assert config.INFERENCE_TIMEOUT_SECONDS == 60
        assert config.MAX_IMAGE_SIZE_MB == 20
        assert config.COMPRESS_IMG is True
        assert config.COMPRESS_IMG_THRESHOLD_KB == 300
        assert config.COMPRESS_IMG_MAX_WIDTH == 1024
        assert config.PROFILE_DB_FILE == "doctor_food.db"

    def test_config_loads_from_environment(self, monkeypatch):
        """Test that Config loads values from environment variables."""
        monkeypatch.setenv("GEMINI_API_KEY", "test_gemini_key")
        monkeypatch.setenv("GEMINI_MODEL", "custom-model")
        monkeypatch.setenv("INFERENCE_TIMEOUT_SECONDS", "12.5")
        monkeypatch.setenv("MAX_IMAGE_SIZE_MB", "8")
        monkeypatch.setenv("PROFILE_DB_FILE", "/tmp/profile.db")

        config = Config()

        assert config.GEMINI_API_KEY == "test_gemini_key"
        assert config.GEMINI_MODEL == "custom-model"
        assert config.INFERENCE_TIMEOUT_SECONDS == 12.5
        assert config.MAX_IMAGE_SIZE_MB == 8
        assert config.PROFILE_DB_FILE == "/tmp/profile.db"

    def test_config_converts_numeric_types(self, monkeypatch):
        """Test that Config properly converts numeric environment variables."""
        monkeypatch.setenv("INFERENCE_TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("MAX_IMAGE_SIZE_MB", "10")
        monkeypatch.setenv("COMPRESS_IMG_THRESHOLD_KB", "500")

        config = Config()

        assert isinstance(config.INFERENCE_TIMEOUT_SECONDS, float)
        assert isinstance(config.MAX_IMAGE_SIZE_MB, int)
        assert isinstance(config.COMPRESS_IMG_THRESHOLD_KB, int)


class TestConfigValidation:
    """Test Config validation logic."""

    def test_validate_raises_error_for_missing_gemini_key(self, monkeypatch):
        """Test that validate() raises ValueError if GEMINI_API_KEY missing."""
        monkeypatch.setenv("GEMINI_API_KEY", "")

        config = Config()
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            config.validate()

    def test_validate_succeeds_with_key(self, monkeypatch):
        """Test that validate() succeeds when the key is present."""
        monkeypatch.setenv("GEMINI_API_KEY", "gemini_key")

        config = Config()
        config.validate()  # Should not raise

    def test_validate_rejects_negative_timeout(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "key")
        monkeypatch.setenv("INFERENCE_TIMEOUT_SECONDS", "-1")

        config = Config()
        with pytest.raises(ValueError, match="INFERENCE_TIMEOUT_SECONDS"):
            config.validate()

    def test_validate_allows_disabled_timeout(self, monkeypatch):
        """Test that a timeout of 0 (disabled) is accepted."""
        monkeypatch.setenv("GEMINI_API_KEY", "key")
        monkeypatch.setenv("INFERENCE_TIMEOUT_SECONDS", "0")

        config = Config()
        config.validate()  # Should not raise

    def test_validate_rejects_zero_image_size(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "key")
        monkeypatch.setenv("MAX_IMAGE_SIZE_MB", "0")

        config = Config()
        with pytest.raises(ValueError, match="MAX_IMAGE_SIZE_MB"):
            config.validate()

    def test_validate_rejects_tiny_compression_width(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "key")
        monkeypatch.setenv("COMPRESS_IMG_MAX_WIDTH", "10")

        config = Config()
        with pytest.raises(ValueError, match="COMPRESS_IMG_MAX_WIDTH"):
            config.validate()


class TestCompressImg:
    """Test COMPRESS_IMG configuration for image compression toggle."""

    @pytest.mark.parametrize("value", ["true", "TRUE", "yes", "1"])
    def test_compress_img_enabled(self, monkeypatch, value):
        monkeypatch.setenv("COMPRESS_IMG", value)

        config = Config()
        assert config.COMPRESS_IMG is True

    @pytest.mark.parametrize("value", ["false", "False", "no", "0"])
    def test_compress_img_disabled(self, monkeypatch, value):
        monkeypatch.setenv("COMPRESS_IMG", value)

        config = Config()
        assert config.COMPRESS_IMG is False
