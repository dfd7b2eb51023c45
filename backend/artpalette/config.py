"""
ArtPalette Configuration
Manages environment variables and defaults for extraction, matching and caching.
"""
import os
from typing import Literal, Optional


class Config:
    """Configuration class for ArtPalette services."""

    # Upload limits
    MAX_FILE_MB: int = int(os.environ.get("ARTPALETTE_MAX_FILE_MB", "10"))
    SUPPORTED_MIME_TYPES = ["image/jpeg", "image/png"]

    # Pixel sampling
    MAX_EDGE: int = int(os.environ.get("ARTPALETTE_MAX_EDGE", "300"))
    ALPHA_THRESHOLD: float = float(os.environ.get("ARTPALETTE_ALPHA_THRESHOLD", "0.3"))
    EDGE_THRESHOLD: float = float(os.environ.get("ARTPALETTE_EDGE_THRESHOLD", "30"))

    # Clustering
    CLUSTER_COUNT: int = int(os.environ.get("ARTPALETTE_CLUSTER_COUNT", "5"))
    KMEANS_ITERATIONS: int = int(os.environ.get("ARTPALETTE_KMEANS_ITERATIONS", "10"))
    KMEANS_INIT: Literal["first", "kmeans++"] = os.environ.get("ARTPALETTE_KMEANS_INIT", "first")

    # Matching
    SEARCH_CANDIDATE_LIMIT: int = int(os.environ.get("ARTPALETTE_SEARCH_CANDIDATE_LIMIT", "100"))
    ROOM_CANDIDATE_LIMIT: int = int(os.environ.get("ARTPALETTE_ROOM_CANDIDATE_LIMIT", "200"))
    MATCH_FLOOR: float = float(os.environ.get("ARTPALETTE_MATCH_FLOOR", "0.3"))
    MATCH_WORKERS: int = int(os.environ.get("ARTPALETTE_MATCH_WORKERS", "4"))

    # Logging and caching
    LOG_LEVEL: str = os.environ.get("ARTPALETTE_LOG_LEVEL", "INFO")
    LOG_JSON: bool = os.environ.get("ARTPALETTE_LOG_JSON", "false").lower() == "true"
    REDIS_URL: Optional[str] = os.environ.get("ARTPALETTE_REDIS_URL")
    CACHE_TTL: int = int(os.environ.get("ARTPALETTE_CACHE_TTL", "604800"))  # 7 days
    CACHE_MAX_SIZE: int = int(os.environ.get("ARTPALETTE_CACHE_MAX_SIZE", "1000"))

    # Timeouts (milliseconds)
    TIMEOUT_MATCHING: int = int(os.environ.get("ARTPALETTE_TIMEOUT_MATCHING", "5000"))

    # CORS
    ALLOWED_ORIGINS: str = os.environ.get("ARTPALETTE_ALLOWED_ORIGINS", "http://localhost:3000")

    @classmethod
    def validate_cluster_count(cls, k: int) -> bool:
        """Validate k-means cluster count."""
        return 1 <= k <= 12

    @classmethod
    def validate_kmeans_init(cls, init: str) -> bool:
        """Validate k-means seeding strategy."""
        return init in ["first", "kmeans++"]

    @classmethod
    def validate_tolerance(cls, tolerance: float) -> bool:
        """Validate palette search tolerance."""
        return 0.0 < tolerance <= 2.0


# Global config instance
config = Config()
