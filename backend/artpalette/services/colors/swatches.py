"""
Swatch Rendering Module

Renders a palette as a horizontal strip of color chips for quick visual QA.
Chips run dominant → accent → neutral; the dominant chip gets a border.
"""
import base64
from typing import List, Optional, Tuple

import cv2
import numpy as np
from loguru import logger

from artpalette.schemas import ColorPalette, OKLCHColor
from .colorspace import oklch_to_rgb


def oklch_to_bgr(color: OKLCHColor) -> Tuple[int, int, int]:
    """Convert OKLCH to a BGR tuple for OpenCV."""
    r, g, b = (int(round(channel * 255)) for channel in oklch_to_rgb(color))
    return (b, g, r)  # BGR for OpenCV


def palette_chips(palette: ColorPalette) -> List[OKLCHColor]:
    """Palette colors in display order."""
    return list(palette.dominant) + list(palette.accent) + list(palette.neutral)


def render_palette_swatch(palette: ColorPalette,
                          chip_size: int = 40,
                          border_color: Tuple[int, int, int] = (0, 0, 0),
                          border_width: int = 2,
                          highlight_dominant: bool = True) -> str:
    """
    Render a palette as a PNG swatch strip.

    Args:
        palette: Palette to render
        chip_size: Size of each color chip in pixels
        border_color: BGR color for the dominant chip border
        border_width: Width of the border in pixels
        highlight_dominant: Whether to outline the dominant chip

    Returns:
        Base64-encoded PNG image string

    Raises:
        ValueError: If the palette has no colors
    """
    chips = palette_chips(palette)
    if not chips:
        raise ValueError("Cannot render swatch for an empty palette")

    k = len(chips)
    img = np.zeros((chip_size, chip_size * k, 3), dtype=np.uint8)

    for i, color in enumerate(chips):
        x_start = i * chip_size
        img[:, x_start:x_start + chip_size, :] = oklch_to_bgr(color)

    if highlight_dominant and palette.dominant:
        cv2.rectangle(img, (0, 0), (chip_size - 1, chip_size - 1), border_color, border_width)

    success, buffer = cv2.imencode('.png', img)
    if not success:
        raise RuntimeError("Failed to encode swatch as PNG")

    b64_string = base64.b64encode(buffer.tobytes()).decode('ascii')
    logger.debug(f"Encoded swatch strip: {chip_size * k}×{chip_size} -> {len(b64_string)} chars")
    return b64_string


def decode_swatch(b64_string: str) -> Optional[np.ndarray]:
    """Decode a base64 swatch PNG back into a BGR array."""
    data = np.frombuffer(base64.b64decode(b64_string), np.uint8)
    return cv2.imdecode(data, cv2.IMREAD_COLOR)
