"""Unit tests for camera/gallery image acquisition."""

from io import BytesIO

import pytest
from PIL import Image, features

from doctor_food.services.image_acquisition import (
    AcquisitionIntent,
    acquire_image,
    compress_image,
    detect_image_mime_type,
    read_image_source,
    validate_image_decodes,
    validate_image_size,
)
from doctor_food.utils.config import config
from doctor_food.utils.errors import InvalidImageError


@pytest.fixture(autouse=True)
def default_image_config(monkeypatch):
    """Pin image settings so the environment cannot change outcomes."""
    monkeypatch.setattr(config, "MAX_IMAGE_SIZE_MB", 20)
    monkeypatch.setattr(config, "COMPRESS_IMG", True)
    monkeypatch.setattr(config, "COMPRESS_IMG_THRESHOLD_KB", 300)
    monkeypatch.setattr(config, "COMPRESS_IMG_MAX_WIDTH", 1024)


class TestReadImageSource:
    """Test reading bytes from the supported source kinds."""

    def test_bytes_returned_as_is(self, png_bytes):
        assert read_image_source(png_bytes) == png_bytes

    def test_reads_file_path(self, tmp_path, jpeg_bytes):
        path = tmp_path / "meal.jpg"
        path.write_bytes(jpeg_bytes)

        assert read_image_source(str(path)) == jpeg_bytes
        assert read_image_source(path) == jpeg_bytes

    def test_decodes_data_url(self, png_bytes):
        from doctor_food.models.models import ImageBlob

        data_url = ImageBlob(data=png_bytes, mime_type="image/png").to_data_url()
        assert read_image_source(data_url) == png_bytes

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(InvalidImageError) as exc:
            read_image_source(str(tmp_path / "missing.jpg"))
        assert "Could not read image file" in exc.value.message


class TestValidation:
    """Test format, size and decode checks."""

    def test_detects_png_and_jpeg(self, png_bytes, jpeg_bytes):
        assert detect_image_mime_type(png_bytes) == "image/png"
        assert detect_image_mime_type(jpeg_bytes) == "image/jpeg"

    @pytest.mark.skipif(not features.check("webp"), reason="Pillow built without WebP")
    def test_detects_webp(self, make_image):
        assert detect_image_mime_type(make_image("WEBP")) == "image/webp"

    def test_rejects_gif(self, make_image):
        assert detect_image_mime_type(make_image("GIF", mode="P", color=1)) is None

    def test_rejects_non_image(self):
        assert detect_image_mime_type(b"just some text") is None

    def test_size_within_limit(self, png_bytes):
        assert validate_image_size(png_bytes) is True

    def test_size_over_limit(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_IMAGE_SIZE_MB", 1)
        assert validate_image_size(b"\x00" * (1024 * 1024 + 1)) is False

    def test_valid_image_decodes(self, jpeg_bytes):
        assert validate_image_decodes(jpeg_bytes) is True

    def test_corrupt_jpeg_does_not_decode(self):
        assert validate_image_decodes(b"\xff\xd8\xff\xe0" + b"\x00" * 100) is False


class TestCompressImage:
    """Test optional re-encoding before analysis."""

    def test_below_threshold_unchanged(self, png_bytes):
        assert compress_image(png_bytes) == png_bytes

    def test_above_threshold_reencoded_as_jpeg(self, monkeypatch, png_bytes):
        monkeypatch.setattr(config, "COMPRESS_IMG_THRESHOLD_KB", 0)

        compressed = compress_image(png_bytes)

        assert detect_image_mime_type(compressed) == "image/jpeg"

    def test_wide_image_scaled_down(self, monkeypatch, make_image):
        monkeypatch.setattr(config, "COMPRESS_IMG_THRESHOLD_KB", 0)
        wide = make_image("PNG", size=(2000, 500))

        with Image.open(BytesIO(compress_image(wide, max_width=1000))) as img:
            assert img.size == (1000, 250)

    def test_transparent_image_flattened(self, monkeypatch, make_image):
        monkeypatch.setattr(config, "COMPRESS_IMG_THRESHOLD_KB", 0)
        rgba = make_image("PNG", mode="RGBA", color=(10, 20, 30, 128))

        with Image.open(BytesIO(compress_image(rgba))) as img:
            assert img.mode == "RGB"


class TestAcquireImage:
    """Test the full acquisition pipeline."""

    @pytest.mark.parametrize("source", [None, "", b""])
    def test_cancelled_picker_returns_none(self, source):
        assert acquire_image(source) is None

    def test_gallery_png_kept_as_png(self, png_bytes):
        blob = acquire_image(png_bytes, AcquisitionIntent.GALLERY)

        assert blob.mime_type == "image/png"
        assert blob.data == png_bytes

    def test_camera_and_gallery_yield_same_blob(self, tmp_path, jpeg_bytes):
        path = tmp_path / "capture.jpg"
        path.write_bytes(jpeg_bytes)

        camera = acquire_image(str(path), AcquisitionIntent.CAMERA)
        gallery = acquire_image(jpeg_bytes, AcquisitionIntent.GALLERY)

        assert camera == gallery

    def test_compressed_image_reported_as_jpeg(self, monkeypatch, png_bytes):
        monkeypatch.setattr(config, "COMPRESS_IMG_THRESHOLD_KB", 0)

        blob = acquire_image(png_bytes)

        assert blob.mime_type == "image/jpeg"
        assert blob.data != png_bytes

    def test_compression_disabled(self, monkeypatch, png_bytes):
        monkeypatch.setattr(config, "COMPRESS_IMG", False)
        monkeypatch.setattr(config, "COMPRESS_IMG_THRESHOLD_KB", 0)

        assert acquire_image(png_bytes).data == png_bytes

    def test_unsupported_format_raises(self):
        with pytest.raises(InvalidImageError) as exc:
            acquire_image(b"%PDF-1.7 not an image")
        assert "Invalid image format" in exc.value.message

    def test_oversized_image_raises(self, monkeypatch, png_bytes):
        monkeypatch.setattr(config, "MAX_IMAGE_SIZE_MB", 0)

        with pytest.raises(InvalidImageError) as exc:
            acquire_image(png_bytes)
        assert "too large" in exc.value.message

    def test_undecodable_image_raises(self):
        with pytest.raises(InvalidImageError) as exc:
            acquire_image(b"\xff\xd8\xff\xe0" + b"\x00" * 100)
        assert "could not be decoded" in exc.value.message
