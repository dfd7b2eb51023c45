"""
ArtPalette Imaging Utilities
Validates uploaded image bytes and decodes them into a PixelBuffer.
"""
import io

from PIL import Image, UnidentifiedImageError

from artpalette.config import config
from artpalette.services.colors.sampling import PixelBuffer


class UnsupportedImageError(ValueError):
    """Raised when uploaded bytes are not a decodable PNG or JPEG."""
    pass


def validate_magic_bytes(file_bytes: bytes) -> str:
    """
    Validate file magic bytes to ensure it's actually an image.

    Args:
        file_bytes: Raw file bytes

    Returns:
        Detected MIME type

    Raises:
        UnsupportedImageError: For truncated or non PNG/JPEG data
    """
    if len(file_bytes) < 8:
        raise UnsupportedImageError("File too small or corrupt")

    if file_bytes.startswith(b'\xff\xd8\xff'):
        return "image/jpeg"
    if file_bytes.startswith(b'\x89PNG\r\n\x1a\n'):
        return "image/png"

    raise UnsupportedImageError("Invalid image file. Magic bytes don't match supported formats.")


def decode_image_bytes(file_bytes: bytes) -> PixelBuffer:
    """
    Decode PNG/JPEG bytes into an RGBA PixelBuffer.

    Raises:
        UnsupportedImageError: If the bytes are too large, not PNG/JPEG,
            or fail to decode
    """
    if len(file_bytes) > config.MAX_FILE_MB * 1024 * 1024:
        raise UnsupportedImageError(f"File too large. Maximum size: {config.MAX_FILE_MB}MB")

    validate_magic_bytes(file_bytes)

    try:
        image = Image.open(io.BytesIO(file_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise UnsupportedImageError(f"Failed to decode image: {e}")

    return PixelBuffer.from_image(image)
