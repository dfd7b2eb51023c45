"""
Colorspace conversions.

Conversion chain: sRGB → Linear RGB → OKLab → OKLCH, and back.

Matrices are the standard OKLab coefficients
(https://bottosson.github.io/posts/oklab/). Scalar functions serve the
matcher and API; the array form serves the pixel sampler.
"""
import math
import re
from typing import NamedTuple, Tuple

import numpy as np

from artpalette.schemas import OKLCHColor
from artpalette.utils.angles import normalize_hue


# Quantized color key: (round(l*100), round(c*100), round(h))
ColorKey = Tuple[int, int, int]

HEX_COLOR_RE = re.compile(r"#[0-9A-Fa-f]{6}")


class RGB(NamedTuple):
    """sRGB triple with channels in [0, 1]."""
    r: float
    g: float
    b: float


# Linear sRGB to LMS (cone responses)
_M1 = np.array([
    [0.4122214708, 0.5363325363, 0.0514459929],
    [0.2119034982, 0.6806995451, 0.1073969566],
    [0.0883024619, 0.2817188376, 0.6299787005],
], dtype=np.float64)

# LMS' (cube-rooted) to OKLab
_M2 = np.array([
    [0.2104542553, 0.7936177850, -0.0040720468],
    [1.9779984951, -2.4285922050, 0.4505937099],
    [0.0259040371, 0.7827717662, -0.8086757660],
], dtype=np.float64)

# OKLab to LMS'
_M2_INV = np.array([
    [1.0, 0.3963377774, 0.2158037573],
    [1.0, -0.1055613458, -0.0638541728],
    [1.0, -0.0894841775, -1.2914855480],
], dtype=np.float64)

# LMS to linear sRGB
_M1_INV = np.array([
    [4.0767416621, -3.3077115913, 0.2309699292],
    [-1.2684380046, 2.6097574011, -0.3413193965],
    [-0.0041960863, -0.7034186147, 1.7076147010],
], dtype=np.float64)


def srgb_to_linear(value: float) -> float:
    """Remove the sRGB transfer curve from a channel value in [0, 1]."""
    if value <= 0.04045:
        return value / 12.92
    return ((value + 0.055) / 1.055) ** 2.4


def linear_to_srgb(value: float) -> float:
    """Apply the sRGB transfer curve to a linear channel value."""
    if value <= 0.0031308:
        return 12.92 * value
    return 1.055 * value ** (1.0 / 2.4) - 0.055


def _cbrt(x: float) -> float:
    # Real cube root; negative LMS values are valid for out-of-gamut input
    return math.copysign(abs(x) ** (1.0 / 3.0), x)


def _clamp01(x: float) -> float:
    if not math.isfinite(x):
        return 0.0
    return max(0.0, min(1.0, x))


def linear_rgb_to_oklab(r: float, g: float, b: float) -> Tuple[float, float, float]:
    """Convert linear RGB to OKLab (L, a, b)."""
    l = _M1[0, 0] * r + _M1[0, 1] * g + _M1[0, 2] * b
    m = _M1[1, 0] * r + _M1[1, 1] * g + _M1[1, 2] * b
    s = _M1[2, 0] * r + _M1[2, 1] * g + _M1[2, 2] * b

    l_, m_, s_ = _cbrt(l), _cbrt(m), _cbrt(s)

    L = _M2[0, 0] * l_ + _M2[0, 1] * m_ + _M2[0, 2] * s_
    a = _M2[1, 0] * l_ + _M2[1, 1] * m_ + _M2[1, 2] * s_
    b_lab = _M2[2, 0] * l_ + _M2[2, 1] * m_ + _M2[2, 2] * s_
    return L, a, b_lab


def oklab_to_linear_rgb(L: float, a: float, b_lab: float) -> Tuple[float, float, float]:
    """Convert OKLab back to (unclamped) linear RGB."""
    l_ = L + _M2_INV[0, 1] * a + _M2_INV[0, 2] * b_lab
    m_ = L + _M2_INV[1, 1] * a + _M2_INV[1, 2] * b_lab
    s_ = L + _M2_INV[2, 1] * a + _M2_INV[2, 2] * b_lab

    l, m, s = l_ ** 3, m_ ** 3, s_ ** 3

    r = _M1_INV[0, 0] * l + _M1_INV[0, 1] * m + _M1_INV[0, 2] * s
    g = _M1_INV[1, 0] * l + _M1_INV[1, 1] * m + _M1_INV[1, 2] * s
    b = _M1_INV[2, 0] * l + _M1_INV[2, 1] * m + _M1_INV[2, 2] * s
    return r, g, b


def oklab_to_oklch(L: float, a: float, b_lab: float) -> OKLCHColor:
    """Polar form of OKLab. atan2(0, 0) gives hue 0 for achromatic colors."""
    C = math.sqrt(a * a + b_lab * b_lab)
    h = math.degrees(math.atan2(b_lab, a))
    if h < 0:
        h += 360.0
    return OKLCHColor(l=L, c=C, h=normalize_hue(h))


def rgb_to_oklch(r: float, g: float, b: float) -> OKLCHColor:
    """
    Convert an sRGB color to OKLCH.

    Args:
        r, g, b: sRGB channels in [0, 1]

    Returns:
        OKLCHColor with hue in [0, 360)
    """
    L, a, b_lab = linear_rgb_to_oklab(srgb_to_linear(r), srgb_to_linear(g), srgb_to_linear(b))
    return oklab_to_oklch(L, a, b_lab)


def oklch_to_rgb(color: OKLCHColor) -> RGB:
    """
    Convert an OKLCH color to sRGB for display.

    Channels are clamped to [0, 1]; colors outside the sRGB gamut are
    not mapped any further.
    """
    h_rad = math.radians(color.h)
    a = color.c * math.cos(h_rad)
    b_lab = color.c * math.sin(h_rad)

    lin_r, lin_g, lin_b = oklab_to_linear_rgb(color.l, a, b_lab)

    return RGB(
        r=_clamp01(linear_to_srgb(lin_r)),
        g=_clamp01(linear_to_srgb(lin_g)),
        b=_clamp01(linear_to_srgb(lin_b)),
    )


def rgb_array_to_oklch(rgb: np.ndarray) -> np.ndarray:
    """
    Vectorised sRGB → OKLCH.

    Args:
        rgb: Array of shape (..., 3) with sRGB values in [0, 1]

    Returns:
        Array of shape (..., 3) holding (l, c, h) with h in [0, 360)
    """
    rgb = np.asarray(rgb, dtype=np.float64)
    linear = np.where(rgb <= 0.04045, rgb / 12.92, np.power((rgb + 0.055) / 1.055, 2.4))

    lms = np.einsum('...j,ij->...i', linear, _M1)
    lms_cbrt = np.cbrt(lms)
    lab = np.einsum('...j,ij->...i', lms_cbrt, _M2)

    a = lab[..., 1]
    b_lab = lab[..., 2]
    chroma = np.sqrt(a * a + b_lab * b_lab)
    hue = np.degrees(np.arctan2(b_lab, a))
    hue = np.where(hue < 0, hue + 360.0, hue)
    hue = np.where(hue >= 360.0, 0.0, hue)

    return np.stack([lab[..., 0], chroma, hue], axis=-1)


def color_key(color: OKLCHColor) -> ColorKey:
    """
    Quantized key used by the sample weight map.

    Rounds half up (``floor(x + 0.5)``), so 0.5 always goes to 1.
    """
    return (
        math.floor(color.l * 100 + 0.5),
        math.floor(color.c * 100 + 0.5),
        math.floor(color.h + 0.5),
    )


def oklch_to_hex(color: OKLCHColor) -> str:
    """Convert OKLCH to an uppercase #RRGGBB string (after gamut clamping)."""
    rgb = oklch_to_rgb(color)
    r, g, b = (max(0, min(255, round(channel * 255))) for channel in rgb)
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_oklch(hex_color: str) -> OKLCHColor:
    """
    Convert a #RRGGBB string to OKLCH.

    Raises:
        ValueError: If the string is not a 6-digit hex color
    """
    if not HEX_COLOR_RE.fullmatch(hex_color):
        raise ValueError(f"Invalid hex color format: {hex_color}")

    r = int(hex_color[1:3], 16) / 255.0
    g = int(hex_color[3:5], 16) / 255.0
    b = int(hex_color[5:7], 16) / 255.0
    return rgb_to_oklch(r, g, b)
