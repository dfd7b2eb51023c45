"""
Palette clustering in OKLCH space.

Weighted k-means using a perceptual, hue-circular distance:

    d = sqrt(ΔL² + ΔC² + C1·C2·Δh²)

where Δh is the minimal circular hue difference in radians. The chroma
product scales the hue term so that hue barely matters for near-grays.
The distance is symmetric and zero on identical colors but does not
satisfy the triangle inequality.
"""
import math
from typing import List, Mapping, Optional, Sequence

import numpy as np
from loguru import logger

from artpalette.schemas import OKLCHColor
from artpalette.utils.angles import hue_difference, normalize_hue
from .colorspace import ColorKey, color_key


WeightMap = Mapping[ColorKey, float]


def color_distance(color1: OKLCHColor, color2: OKLCHColor) -> float:
    """
    Perceptual distance between two OKLCH colors.

    Args:
        color1: First color
        color2: Second color

    Returns:
        Non-negative distance; 0.0 for identical colors
    """
    delta_l = color1.l - color2.l
    delta_c = color1.c - color2.c
    delta_h = math.radians(hue_difference(color1.h, color2.h))

    return math.sqrt(
        delta_l * delta_l +
        delta_c * delta_c +
        color1.c * color2.c * delta_h * delta_h
    )


def sample_weight(color: OKLCHColor, weights: Optional[WeightMap]) -> float:
    """Weight of a sample from the quantized weight map, 1.0 when absent."""
    if not weights:
        return 1.0
    return weights.get(color_key(color)) or 1.0


def _weighted_center(lch: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Weighted mean of (N, 3) l/c/h rows; hue uses the circular mean."""
    total = w.sum()
    l = (lch[:, 0] * w).sum() / total
    c = (lch[:, 1] * w).sum() / total

    h_rad = np.radians(lch[:, 2])
    x = (np.cos(h_rad) * w).sum() / total
    y = (np.sin(h_rad) * w).sum() / total
    h = math.degrees(math.atan2(y, x))
    if h < 0:
        h += 360.0

    return np.array([l, c, normalize_hue(h)])


def circular_mean_hue(hues: Sequence[float], weights: Optional[Sequence[float]] = None) -> float:
    """
    Mean of hue angles on the circle, in [0, 360).

    The mean of 10° and 350° is 0°, not 180°. An empty input gives 0.0.
    """
    if len(hues) == 0:
        return 0.0

    h_rad = np.radians(np.asarray(hues, dtype=np.float64))
    w = np.ones_like(h_rad) if weights is None else np.asarray(weights, dtype=np.float64)
    total = w.sum()

    x = (np.cos(h_rad) * w).sum() / total
    y = (np.sin(h_rad) * w).sum() / total
    mean = math.degrees(math.atan2(y, x))
    if mean < 0:
        mean += 360.0
    return normalize_hue(mean)


def cluster_center(colors: Sequence[OKLCHColor], weights: Optional[WeightMap] = None) -> OKLCHColor:
    """
    Centroid of a cluster.

    Lightness and chroma use the (weighted) arithmetic mean, hue the
    (weighted) circular mean. Without a weight map every sample counts 1.
    """
    if not colors:
        return OKLCHColor(l=0.0, c=0.0, h=0.0)

    lch = np.array([[color.l, color.c, color.h] for color in colors], dtype=np.float64)
    w = np.array([sample_weight(color, weights) for color in colors], dtype=np.float64)
    l, c, h = _weighted_center(lch, w)

    return OKLCHColor(l=float(l), c=float(c), h=float(h))


def pairwise_distances(lch: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """(N, K) matrix of perceptual distances between samples and centroids."""
    delta_l = lch[:, None, 0] - centroids[None, :, 0]
    delta_c = lch[:, None, 1] - centroids[None, :, 1]

    delta_h = np.abs(lch[:, None, 2] - centroids[None, :, 2])
    delta_h = np.where(delta_h > 180.0, 360.0 - delta_h, delta_h)
    delta_h = np.radians(delta_h)

    chroma_product = lch[:, None, 1] * centroids[None, :, 1]
    return np.sqrt(delta_l * delta_l + delta_c * delta_c + chroma_product * delta_h * delta_h)


def _kmeans_plus_plus(lch: np.ndarray, k: int, rng_seed: int) -> np.ndarray:
    """Deterministic k-means++ seeding under the perceptual distance."""
    rng = np.random.default_rng(rng_seed)
    n = len(lch)
    chosen = [int(rng.integers(n))]

    for _ in range(1, k):
        d = pairwise_distances(lch, lch[chosen]).min(axis=1)
        d2 = d * d
        total = d2.sum()
        if total <= 0:
            chosen.append(int(rng.integers(n)))
        else:
            chosen.append(int(rng.choice(n, p=d2 / total)))

    return lch[chosen].copy()


def kmeans_cluster(samples: Sequence[OKLCHColor],
                   k: int = 5,
                   weights: Optional[WeightMap] = None,
                   iterations: int = 10,
                   init: str = "first",
                   rng_seed: int = 42) -> List[List[OKLCHColor]]:
    """
    Cluster OKLCH samples with weighted k-means.

    Args:
        samples: Ordered samples
        k: Number of clusters
        weights: Optional weight map keyed by quantized color
        iterations: Fixed number of assign/update rounds
        init: "first" seeds with the first k samples, "kmeans++" uses
            seeded k-means++ under the same distance
        rng_seed: Seed for "kmeans++"

    Returns:
        Non-empty clusters, each a list of samples in input order. With
        len(samples) <= k every sample is its own cluster.
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    if len(samples) <= k:
        return [[sample] for sample in samples]

    lch = np.array([[s.l, s.c, s.h] for s in samples], dtype=np.float64)
    w = np.array([sample_weight(s, weights) for s in samples], dtype=np.float64)

    if init == "first":
        centroids = lch[:k].copy()
    elif init == "kmeans++":
        centroids = _kmeans_plus_plus(lch, k, rng_seed)
    else:
        raise ValueError(f"Unknown k-means init: {init}")

    labels = np.zeros(len(samples), dtype=int)
    for _ in range(iterations):
        # argmin keeps the first centroid on ties
        labels = np.argmin(pairwise_distances(lch, centroids), axis=1)

        for i in range(k):
            members = labels == i
            if members.any():
                centroids[i] = _weighted_center(lch[members], w[members])

    clusters: List[List[OKLCHColor]] = [[] for _ in range(k)]
    for sample, label in zip(samples, labels):
        clusters[label].append(sample)

    non_empty = [cluster for cluster in clusters if cluster]
    logger.debug(f"k-means ({init}) on {len(samples)} samples → cluster sizes "
                 f"{[len(cluster) for cluster in non_empty]}")

    return non_empty
