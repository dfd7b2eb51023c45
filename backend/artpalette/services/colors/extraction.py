"""
Palette extraction pipeline for artwork images.

Sampling → clustering → classification, with stage timings logged, an
optional injected palette cache and optional persistence to the artwork
store.
"""
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Hashable, Mapping, Optional, Tuple

from loguru import logger

from artpalette.config import config
from artpalette.schemas import ColorPalette
from artpalette.services.cache import PaletteCache, fingerprint_buffer
from artpalette.services.store import ArtworkStore
from .classifier import analyze_palette
from .sampling import PixelBuffer, SampleSet, SamplerSettings, sample_image, scaled_size


@dataclass(frozen=True)
class ExtractionResult:
    """Palette plus the sample statistics it was computed from."""
    palette: ColorPalette
    width: int
    height: int
    sampled_colors: int
    from_cache: bool = False


def extract_with_samples(buffer: PixelBuffer,
                         k: int = config.CLUSTER_COUNT,
                         settings: Optional[SamplerSettings] = None,
                         init: str = config.KMEANS_INIT) -> Tuple[ColorPalette, SampleSet]:
    """
    Run the full pipeline and also return the sample set.

    Raises:
        EmptyImageError: If the buffer is empty or zero-area
    """
    start_time = time.time()
    samples = sample_image(buffer, settings)
    sampling_ms = (time.time() - start_time) * 1000

    cluster_start = time.time()
    palette = analyze_palette(
        samples.colors,
        weights=samples.weights,
        k=k,
        iterations=config.KMEANS_ITERATIONS,
        init=init,
    )
    clustering_ms = (time.time() - cluster_start) * 1000

    logger.info(
        f"Palette extracted: {len(samples)} samples, "
        f"sampling {sampling_ms:.1f}ms, clustering {clustering_ms:.1f}ms, "
        f"temperature={palette.temperature}, harmony={palette.harmony}"
    )
    return palette, samples


def extract_palette(buffer: PixelBuffer,
                    k: int = config.CLUSTER_COUNT,
                    settings: Optional[SamplerSettings] = None,
                    init: str = config.KMEANS_INIT) -> ColorPalette:
    """
    Extract a classified OKLCH palette from a decoded image.

    Args:
        buffer: Decoded RGBA image
        k: Number of clusters
        settings: Sampling constants
        init: k-means seeding ("first" or "kmeans++")

    Returns:
        ColorPalette (degenerate when no pixel passes the alpha filter)

    Raises:
        EmptyImageError: If the buffer is empty or zero-area
    """
    palette, _ = extract_with_samples(buffer, k=k, settings=settings, init=init)
    return palette


class PaletteExtractor:
    """Palette extraction with an optional cache and artwork store."""

    def __init__(self,
                 cache: Optional[PaletteCache] = None,
                 store: Optional[ArtworkStore] = None,
                 k: int = config.CLUSTER_COUNT,
                 settings: Optional[SamplerSettings] = None,
                 init: str = config.KMEANS_INIT):
        if not config.validate_kmeans_init(init):
            raise ValueError(f"Unknown k-means init: {init}")
        self.cache = cache
        self.store = store
        self.k = k
        self.settings = settings
        self.init = init

    def extract(self, buffer: PixelBuffer, k: Optional[int] = None) -> ExtractionResult:
        """Extract a palette, consulting the cache first. k overrides the default cluster count."""
        k = self.k if k is None else k
        if not config.validate_cluster_count(k):
            raise ValueError(f"Cluster count must be between 1 and 12, got {k}")
        key = None
        if self.cache is not None:
            key = f"{fingerprint_buffer(buffer)}:k{k}"
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Palette cache hit: {key}")
                max_edge = (self.settings or SamplerSettings()).max_edge
                width, height = scaled_size(buffer.width, buffer.height, max_edge)
                return ExtractionResult(
                    palette=cached,
                    width=width,
                    height=height,
                    sampled_colors=0,
                    from_cache=True,
                )

        palette, samples = extract_with_samples(buffer, k=k, settings=self.settings, init=self.init)

        if key is not None:
            self.cache.set(key, palette)

        return ExtractionResult(
            palette=palette,
            width=samples.width,
            height=samples.height,
            sampled_colors=len(samples),
        )

    def extract_for_artwork(self, artwork_id: str, buffer: PixelBuffer,
                            k: Optional[int] = None) -> ExtractionResult:
        """
        Extract a palette and persist it on the artwork record.

        Raises:
            RuntimeError: If no store is configured
            Exception: Store write failures propagate after being logged
        """
        if self.store is None:
            raise RuntimeError("No artwork store configured for palette persistence")

        result = self.extract(buffer, k=k)
        try:
            self.store.save_palette(artwork_id, result.palette)
        except Exception as e:
            logger.error(f"Failed to save palette for artwork {artwork_id}: {e}")
            raise
        return result


def extract_palettes(buffers: Mapping[Hashable, PixelBuffer],
                     max_workers: int = 4,
                     k: int = config.CLUSTER_COUNT) -> Dict[Hashable, ColorPalette]:
    """
    Extract palettes for many images concurrently.

    Each image is independent. All extractions complete before the result
    is returned, ordered by id; the first failure is raised.
    """
    ids = sorted(buffers.keys(), key=str)
    if not ids:
        return {}

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        palettes = list(executor.map(lambda artwork_id: extract_palette(buffers[artwork_id], k=k), ids))

    logger.info(f"Batch extraction complete: {len(ids)} images")
    return dict(zip(ids, palettes))
