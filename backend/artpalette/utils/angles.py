"""
Hue angle helpers shared by the data model and the color engine.
"""
import math


def normalize_hue(h: float) -> float:
    """
    Map any angle in degrees into [0, 360).

    Non-finite input (NaN from an undefined hue) maps to 0.0, matching
    atan2(0, 0).
    """
    if not math.isfinite(h):
        return 0.0
    wrapped = h % 360.0
    # -1e-20 % 360.0 == 360.0 in floating point
    if wrapped >= 360.0:
        return 0.0
    return wrapped


def hue_difference(h1: float, h2: float) -> float:
    """Minimal circular difference between two hues, in degrees [0, 180]."""
    delta = abs(h1 - h2)
    if delta > 180.0:
        delta = 360.0 - delta
    return delta
