"""
Tests for upload validation and decoding.
"""
import io

import numpy as np
import pytest
from PIL import Image

from artpalette.config import config
from artpalette.services.imaging import UnsupportedImageError, decode_image_bytes, validate_magic_bytes
from conftest import encode_png


class TestValidateMagicBytes:
    """Test format sniffing"""

    def test_png(self):
        assert validate_magic_bytes(encode_png(4, 4)) == "image/png"

    def test_jpeg(self):
        output = io.BytesIO()
        Image.new("RGB", (8, 8), (10, 20, 30)).save(output, format="JPEG")
        assert validate_magic_bytes(output.getvalue()) == "image/jpeg"

    def test_too_small(self):
        with pytest.raises(UnsupportedImageError):
            validate_magic_bytes(b"\x89PNG")

    def test_unknown_format(self):
        with pytest.raises(UnsupportedImageError):
            validate_magic_bytes(b"GIF89a" + bytes(20))


class TestDecodeImageBytes:
    """Test decoding into a PixelBuffer"""

    def test_png_with_alpha(self):
        buffer = decode_image_bytes(encode_png(6, 4, (10, 20, 30, 128)))

        assert (buffer.width, buffer.height) == (6, 4)
        np.testing.assert_array_equal(buffer.rgba[0, 0], [10, 20, 30, 128])

    def test_jpeg_is_opaque(self):
        output = io.BytesIO()
        Image.new("RGB", (8, 8), (10, 20, 30)).save(output, format="JPEG")
        buffer = decode_image_bytes(output.getvalue())

        assert buffer.rgba.shape == (8, 8, 4)
        assert np.all(buffer.rgba[..., 3] == 255)

    def test_truncated_png(self):
        with pytest.raises(UnsupportedImageError):
            decode_image_bytes(b"\x89PNG\r\n\x1a\n" + bytes(32))

    def test_too_large(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_FILE_MB", 0)
        with pytest.raises(UnsupportedImageError, match="too large"):
            decode_image_bytes(encode_png(4, 4))
