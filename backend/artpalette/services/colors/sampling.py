"""
Pixel sampling for palette extraction.

Downscales an RGBA image and collects a weighted multiset of OKLCH samples
using three strategies:

- grid: even coverage of the whole canvas (weight 1)
- edge: pixels on strong Sobel gradients of the luma plane (weight 2)
- center: the central 40% x 40% region where the subject usually sits (weight 1.5)

A pixel can be sampled by more than one strategy; the duplication is how
its influence on the palette grows.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np
from PIL import Image
from loguru import logger

from artpalette.config import config
from artpalette.schemas import OKLCHColor
from .colorspace import ColorKey, color_key, rgb_array_to_oklch


class EmptyImageError(ValueError):
    """Raised when a pixel buffer has no pixels to analyse."""
    pass


@dataclass(frozen=True)
class SamplerSettings:
    """Sampling constants. Defaults come from config."""
    max_edge: int = config.MAX_EDGE
    alpha_threshold: float = config.ALPHA_THRESHOLD
    edge_threshold: float = config.EDGE_THRESHOLD
    edge_stride: int = 3
    center_stride: int = 2
    center_offset: float = 0.3
    center_extent: float = 0.4
    grid_weight: float = 1.0
    edge_weight: float = 2.0
    center_weight: float = 1.5


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Decoded image: RGBA uint8 array of shape (height, width, 4)."""
    width: int
    height: int
    rgba: np.ndarray = field(repr=False)

    @property
    def area(self) -> int:
        return self.width * self.height

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "PixelBuffer":
        """Build from raw row-major RGBA bytes."""
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(
                f"RGBA buffer size mismatch: got {len(data)} bytes, "
                f"expected {expected} for {width}×{height}"
            )
        rgba = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4)
        return cls(width=width, height=height, rgba=rgba)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Build from an (H, W, 3) RGB or (H, W, 4) RGBA uint8 array."""
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3) or (H, W, 4) array, got shape {array.shape}")

        array = array.astype(np.uint8, copy=False)
        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)

        height, width = array.shape[:2]
        return cls(width=width, height=height, rgba=array)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Build from a PIL image of any mode."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls.from_array(np.asarray(image, dtype=np.uint8))


@dataclass
class SampleSet:
    """Ordered OKLCH samples plus the weight map keyed by quantized color."""
    colors: List[OKLCHColor]
    weights: Dict[ColorKey, float]
    width: int
    height: int
    strategy_counts: Dict[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.colors)


def validate_pixel_buffer(buffer: PixelBuffer) -> None:
    """
    Fail fast on buffers that cannot be analysed.

    Raises:
        EmptyImageError: If the buffer is zero-area or its array is empty
    """
    if buffer.width <= 0 or buffer.height <= 0:
        raise EmptyImageError(
            f"Cannot extract palette from zero-area image ({buffer.width}×{buffer.height})"
        )
    if buffer.rgba is None or buffer.rgba.size == 0:
        raise EmptyImageError("Cannot extract palette from empty pixel buffer")
    if buffer.rgba.shape != (buffer.height, buffer.width, 4):
        raise ValueError(
            f"Pixel array shape {buffer.rgba.shape} does not match "
            f"{buffer.width}×{buffer.height} RGBA"
        )


def scaled_size(width: int, height: int, max_edge: int = 300) -> Tuple[int, int]:
    """Target (width, height) with the longest edge at most max_edge."""
    scale = min(max_edge / width, max_edge / height, 1.0)
    if scale >= 1.0:
        return width, height
    return max(1, int(width * scale)), max(1, int(height * scale))


def downscale(buffer: PixelBuffer, max_edge: int = 300) -> np.ndarray:
    """
    Resize so the longest edge is at most max_edge pixels.

    Uses Lanczos resampling and preserves aspect ratio. Images already
    within bounds are returned unchanged.
    """
    new_width, new_height = scaled_size(buffer.width, buffer.height, max_edge)
    if (new_width, new_height) == (buffer.width, buffer.height):
        return buffer.rgba

    image = Image.fromarray(np.ascontiguousarray(buffer.rgba))
    resized = image.resize((new_width, new_height), Image.Resampling.LANCZOS)
    logger.debug(f"Downscaled {buffer.width}×{buffer.height} → {new_width}×{new_height}")

    return np.asarray(resized, dtype=np.uint8)


def _opaque(pixels: np.ndarray, alpha_threshold: float) -> np.ndarray:
    """Keep (N, 4) pixels whose alpha exceeds the threshold."""
    return pixels[pixels[:, 3] / 255.0 > alpha_threshold]


def _to_colors(pixels: np.ndarray) -> List[OKLCHColor]:
    if len(pixels) == 0:
        return []
    lch = rgb_array_to_oklch(pixels[:, :3] / 255.0)
    return [OKLCHColor(l=float(l), c=float(c), h=float(h)) for l, c, h in lch]


def grid_step(width: int, height: int) -> int:
    """Grid stride: one sample per ~1/50th of the image diagonal scale, at least 4."""
    return max(4, int(math.sqrt(width * height) / 50))


def sample_grid(rgba: np.ndarray, alpha_threshold: float = 0.3) -> List[OKLCHColor]:
    """Sample every grid_step-th pixel in both directions, row by row."""
    height, width = rgba.shape[:2]
    step = grid_step(width, height)
    pixels = rgba[0:height:step, 0:width:step].reshape(-1, 4)
    return _to_colors(_opaque(pixels, alpha_threshold))


def sobel_magnitude(rgba: np.ndarray) -> np.ndarray:
    """Sobel gradient magnitude of the (R+G+B)/3 luma plane."""
    luma = rgba[..., :3].astype(np.float64).sum(axis=2) / 3.0
    gx = cv2.Sobel(luma, cv2.CV_64F, 1, 0, ksize=3)
    gy = cv2.Sobel(luma, cv2.CV_64F, 0, 1, ksize=3)
    return np.sqrt(gx * gx + gy * gy)


def sample_edges(rgba: np.ndarray,
                 alpha_threshold: float = 0.3,
                 edge_threshold: float = 30.0,
                 stride: int = 3) -> List[OKLCHColor]:
    """
    Sample pixels that sit on strong luma edges.

    Only interior pixels on a coarse stride are tested, so the 3x3 kernel
    never reads past the border.
    """
    height, width = rgba.shape[:2]
    if height < 3 or width < 3:
        return []

    ys = np.arange(1, height - 1, stride)
    xs = np.arange(1, width - 1, stride)
    grid = np.ix_(ys, xs)

    magnitude = sobel_magnitude(rgba)[grid].reshape(-1)
    pixels = rgba[grid].reshape(-1, 4)

    return _to_colors(_opaque(pixels[magnitude > edge_threshold], alpha_threshold))


def sample_center(rgba: np.ndarray,
                  alpha_threshold: float = 0.3,
                  stride: int = 2,
                  offset: float = 0.3,
                  extent: float = 0.4) -> List[OKLCHColor]:
    """Sample the central region (offset from each edge, extent wide) on a stride."""
    height, width = rgba.shape[:2]

    start_x, start_y = width * offset, height * offset
    ys = np.floor(np.arange(start_y, start_y + height * extent, stride)).astype(int)
    xs = np.floor(np.arange(start_x, start_x + width * extent, stride)).astype(int)
    if len(ys) == 0 or len(xs) == 0:
        return []

    ys = np.clip(ys, 0, height - 1)
    xs = np.clip(xs, 0, width - 1)
    pixels = rgba[np.ix_(ys, xs)].reshape(-1, 4)

    return _to_colors(_opaque(pixels, alpha_threshold))


def sample_image(buffer: PixelBuffer, settings: Optional[SamplerSettings] = None) -> SampleSet:
    """
    Collect weighted OKLCH samples from an image.

    Args:
        buffer: Decoded RGBA image
        settings: Sampling constants (defaults from config)

    Returns:
        SampleSet with grid, edge and center samples in that order and the
        accumulated weight map

    Raises:
        EmptyImageError: If the buffer is empty or zero-area
    """
    settings = settings or SamplerSettings()
    validate_pixel_buffer(buffer)

    rgba = downscale(buffer, settings.max_edge)
    height, width = rgba.shape[:2]

    weights: Dict[ColorKey, float] = {}
    colors: List[OKLCHColor] = []
    counts: Dict[str, int] = {}

    strategies = [
        ("grid", sample_grid(rgba, settings.alpha_threshold), settings.grid_weight),
        ("edge", sample_edges(rgba, settings.alpha_threshold, settings.edge_threshold,
                              settings.edge_stride), settings.edge_weight),
        ("center", sample_center(rgba, settings.alpha_threshold, settings.center_stride,
                                 settings.center_offset, settings.center_extent), settings.center_weight),
    ]

    for name, samples, weight in strategies:
        for color in samples:
            key = color_key(color)
            weights[key] = weights.get(key, 0.0) + weight
        colors.extend(samples)
        counts[name] = len(samples)

    logger.info(
        f"Sampled {len(colors)} colors from {width}×{height} "
        f"(grid={counts['grid']}, edge={counts['edge']}, center={counts['center']})"
    )

    return SampleSet(colors=colors, weights=weights, width=width, height=height,
                     strategy_counts=counts)
