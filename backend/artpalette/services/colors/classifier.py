"""
Palette Classification Module

Turns clustered OKLCH samples into a tiered ColorPalette (dominant,
accent, neutral) and labels it with temperature, saturation, brightness
and harmony.
"""
from typing import List, Optional, Sequence

from loguru import logger

from artpalette.schemas import (
    Brightness, ColorPalette, Harmony, OKLCHColor, Saturation, Temperature,
)
from .clustering import WeightMap, circular_mean_hue, cluster_center, kmeans_cluster, sample_weight


# Label thresholds
VIBRANT_CHROMA = 0.15
MUTED_CHROMA = 0.05
LIGHT_LIGHTNESS = 0.7
DARK_LIGHTNESS = 0.3
MONOCHROMATIC_SPREAD = 30.0
ANALOGOUS_SPREAD = 60.0
COMPLEMENTARY_SPREAD = 150.0


def degenerate_palette() -> ColorPalette:
    """Palette for images that yielded no samples."""
    return ColorPalette(
        dominant=[],
        accent=[],
        neutral=[],
        temperature="neutral",
        saturation="balanced",
        brightness="balanced",
        harmony="monochromatic",
    )


def determine_temperature(hue: float) -> Temperature:
    """
    Classify a hue angle.

    Warm: red to yellow, [0, 60] and [300, 360).
    Cool: cyan to blue, [180, 240].
    Neutral: greens and purples in between.
    """
    if 0 <= hue <= 60 or 300 <= hue <= 360:
        return "warm"
    if 180 <= hue <= 240:
        return "cool"
    return "neutral"


def determine_saturation(mean_chroma: float) -> Saturation:
    if mean_chroma > VIBRANT_CHROMA:
        return "vibrant"
    if mean_chroma < MUTED_CHROMA:
        return "muted"
    return "balanced"


def determine_brightness(mean_lightness: float) -> Brightness:
    if mean_lightness > LIGHT_LIGHTNESS:
        return "light"
    if mean_lightness < DARK_LIGHTNESS:
        return "dark"
    return "balanced"


def determine_harmony(colors: Sequence[OKLCHColor]) -> Harmony:
    """
    Harmony from the linear spread (max - min) of sample hues.

    The spread is not circular: reds straddling 0° read as a wide spread.
    "split-complementary" is a valid palette value but this rule never
    assigns it.
    """
    if len(colors) < 2:
        return "monochromatic"

    hues = [color.h for color in colors]
    spread = max(hues) - min(hues)

    if spread < MONOCHROMATIC_SPREAD:
        return "monochromatic"
    if spread < ANALOGOUS_SPREAD:
        return "analogous"
    if spread > COMPLEMENTARY_SPREAD:
        return "complementary"
    return "triadic"


def cluster_weight(cluster: Sequence[OKLCHColor], weights: Optional[WeightMap] = None) -> float:
    """Total accumulated weight of a cluster (1 per sample without a map)."""
    return sum(sample_weight(color, weights) for color in cluster)


def rank_clusters(clusters: Sequence[List[OKLCHColor]],
                  weights: Optional[WeightMap] = None) -> List[List[OKLCHColor]]:
    """Sort clusters by total weight, heaviest first. Ties keep input order."""
    return sorted(clusters, key=lambda cluster: cluster_weight(cluster, weights), reverse=True)


def build_palette(samples: Sequence[OKLCHColor],
                  clusters: Sequence[List[OKLCHColor]],
                  weights: Optional[WeightMap] = None) -> ColorPalette:
    """
    Assemble a ColorPalette from samples and their clusters.

    Args:
        samples: All samples (labels are computed over the full set)
        clusters: Clusters of those samples
        weights: Optional weight map for ranking and weighted centroids

    Returns:
        ColorPalette; the degenerate palette when there are no samples
    """
    if not samples:
        return degenerate_palette()

    ranked = rank_clusters(clusters, weights)

    dominant = [cluster_center(ranked[0], weights)] if len(ranked) > 0 else []
    accent = [cluster_center(ranked[1], weights)] if len(ranked) > 1 else []
    neutral = [cluster_center(cluster, weights) for cluster in ranked[2:]]

    mean_lightness = sum(color.l for color in samples) / len(samples)
    mean_chroma = sum(color.c for color in samples) / len(samples)
    mean_hue = circular_mean_hue([color.h for color in samples])

    return ColorPalette(
        dominant=dominant,
        accent=accent,
        neutral=neutral,
        temperature=determine_temperature(mean_hue),
        saturation=determine_saturation(mean_chroma),
        brightness=determine_brightness(mean_lightness),
        harmony=determine_harmony(samples),
    )


def analyze_palette(samples: Sequence[OKLCHColor],
                    weights: Optional[WeightMap] = None,
                    k: int = 5,
                    iterations: int = 10,
                    init: str = "first") -> ColorPalette:
    """
    Cluster samples and classify the result.

    Args:
        samples: OKLCH samples in sampler order
        weights: Optional weight map keyed by quantized color
        k: Number of clusters
        iterations: k-means rounds
        init: k-means seeding ("first" or "kmeans++")

    Returns:
        Classified ColorPalette
    """
    if not samples:
        logger.info("No samples extracted, returning degenerate palette")
        return degenerate_palette()

    clusters = kmeans_cluster(samples, k=k, weights=weights, iterations=iterations, init=init)
    palette = build_palette(samples, clusters, weights)

    logger.debug(
        f"Palette: {len(clusters)} clusters, temperature={palette.temperature}, "
        f"saturation={palette.saturation}, brightness={palette.brightness}, "
        f"harmony={palette.harmony}"
    )
    return palette
