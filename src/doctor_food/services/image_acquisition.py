"""Image acquisition from the camera or the gallery.

Both intents converge on one ImageBlob:

1. CAMERA: a freshly captured photo handed over by the device layer
2. GALLERY: a file the user picked

Core Functions:
- read_image_source(): Get image bytes from a path, raw bytes or a data URL
- detect_image_mime_type(): Detect JPEG/PNG/WebP from magic bytes
- validate_image_size(): Check MAX_IMAGE_SIZE_MB limit
- validate_image_decodes(): Check that Pillow can decode the payload
- compress_image(): Re-encode large photos before analysis
- acquire_image(): Full pipeline, raises InvalidImageError
"""

import os
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import filetype
from PIL import Image

from doctor_food.models.models import ImageBlob
from doctor_food.utils.config import config
from doctor_food.utils.errors import InvalidImageError
from doctor_food.utils.logger import logger

SUPPORTED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")

ImageSource = Union[str, bytes, os.PathLike, None]


class AcquisitionIntent(str, Enum):
    CAMERA = "camera"
    GALLERY = "gallery"


def read_image_source(image_source: Union[str, bytes, os.PathLike]) -> bytes:
    """Return raw image bytes from the given source.

    Handles multiple source formats:
    - Direct bytes: Returned as-is
    - Data URLs (data:image/jpeg;base64,...): Decoded from base64
    - Anything else: Treated as a filesystem path

    Raises:
        InvalidImageError: If the data URL is malformed or the file cannot be read.
    """
    if isinstance(image_source, (bytes, bytearray)):
        return bytes(image_source)

    if isinstance(image_source, str) and image_source.startswith("data:"):
        return ImageBlob.from_data_url(image_source).data

    path = Path(image_source).expanduser()
    try:
        return path.read_bytes()
    except OSError as e:
        raise InvalidImageError(f"Could not read image file {path}: {e}") from e


def detect_image_mime_type(image_bytes: bytes) -> Optional[str]:
    """Detect the media type from magic bytes, not from the file extension.

    Returns:
        One of SUPPORTED_MIME_TYPES, or None for anything else.
    """
    kind = filetype.guess(image_bytes)
    if kind is None or kind.mime not in SUPPORTED_MIME_TYPES:
        logger.warning(f"Invalid image format: {kind.mime if kind else 'unknown'}. Only JPEG, PNG and WebP supported.")
        return None
    return kind.mime


def validate_image_size(image_bytes: bytes) -> bool:
    """Validate image size against MAX_IMAGE_SIZE_MB."""
    size_mb = len(image_bytes) / (1024 * 1024)
    if size_mb > config.MAX_IMAGE_SIZE_MB:
        logger.warning(f"Image size {size_mb:.2f}MB exceeds limit of {config.MAX_IMAGE_SIZE_MB}MB")
        return False
    return True


def validate_image_decodes(image_bytes: bytes) -> bool:
    """Check that the payload is a structurally valid image Pillow can open."""
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.verify()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        logger.warning(f"Image could not be decoded: {e}")
        return False
    return True


def compress_image(image_bytes: bytes, max_width: Optional[int] = None) -> bytes:
    """Compress image for API transmission using Pillow.

    Uses JPEG format with quality=85 + optimize + progressive for optimal size/quality trade-off.
    Resizes oversized images and converts color modes to RGB.
    Only compresses if image size is at least COMPRESS_IMG_THRESHOLD_KB.

    Args:
        image_bytes: Raw image bytes to compress
        max_width: Maximum image width in pixels (default: COMPRESS_IMG_MAX_WIDTH)

    Returns:
        Compressed JPEG bytes, or the original bytes if below threshold or compression fails
    """
    max_width = max_width or config.COMPRESS_IMG_MAX_WIDTH
    size_kb = len(image_bytes) / 1024
    if size_kb < config.COMPRESS_IMG_THRESHOLD_KB:
        logger.debug(
            f"Image size {size_kb:.1f}KB below compression threshold "
            f"({config.COMPRESS_IMG_THRESHOLD_KB}KB), skipping compression"
        )
        return image_bytes

    try:
        img = Image.open(BytesIO(image_bytes))

        # Convert RGBA/LA/P to RGB for JPEG
        if img.mode in ("RGBA", "LA", "P"):
            img = img.convert("RGBA")
            rgb_img = Image.new("RGB", img.size, (255, 255, 255))
            rgb_img.paste(img, mask=img.split()[-1])
            img = rgb_img
        elif img.mode != "RGB":
            img = img.convert("RGB")

        if img.width > max_width:
            ratio = max_width / img.width
            new_height = max(1, int(img.height * ratio))
            img = img.resize((max_width, new_height), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
        compressed_bytes = output.getvalue()
    except Exception as e:
        logger.warning(f"Image compression failed, sending original: {e}")
        return image_bytes

    logger.debug(
        f"Image compressed: {size_kb:.1f}KB → {len(compressed_bytes) / 1024:.1f}KB "
        f"({(1 - len(compressed_bytes) / len(image_bytes)) * 100:.1f}% reduction)"
    )
    return compressed_bytes


def acquire_image(
    image_source: ImageSource,
    intent: AcquisitionIntent = AcquisitionIntent.GALLERY,
) -> Optional[ImageBlob]:
    """Turn a camera capture or gallery pick into an ImageBlob.

    **Pipeline Steps:**
    1. Return None if nothing was selected (picker cancelled)
    2. Read bytes from path, bytes or data URL
    3. Validate format (JPEG/PNG/WebP, from magic bytes)
    4. Validate size (MAX_IMAGE_SIZE_MB limit)
    5. Validate that the image decodes
    6. Optionally compress for API transmission

    Args:
        image_source: Path, raw bytes, data URL, or None when the user cancelled.
        intent: Which button the user pressed; both behave the same.

    Returns:
        ImageBlob ready for analysis, or None if no image was selected.

    Raises:
        InvalidImageError: If the selected data is not a supported, decodable image.
    """
    if image_source is None or (isinstance(image_source, (str, bytes)) and not image_source):
        logger.debug(f"No image selected ({intent.value}), nothing to do")
        return None

    image_bytes = read_image_source(image_source)
    if not image_bytes:
        raise InvalidImageError("Image payload is empty")

    mime_type = detect_image_mime_type(image_bytes)
    if mime_type is None:
        raise InvalidImageError("Invalid image format. Only JPEG, PNG and WebP are supported.")

    if not validate_image_size(image_bytes):
        raise InvalidImageError(f"Image too large. Maximum size is {config.MAX_IMAGE_SIZE_MB}MB")

    if not validate_image_decodes(image_bytes):
        raise InvalidImageError("Image data could not be decoded")

    if config.COMPRESS_IMG:
        compressed = compress_image(image_bytes)
        if compressed != image_bytes:
            image_bytes, mime_type = compressed, "image/jpeg"

    logger.info(f"Acquired {mime_type} image from {intent.value} ({len(image_bytes) / 1024:.1f}KB)")
    return ImageBlob(data=image_bytes, mime_type=mime_type)
