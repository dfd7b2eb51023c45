"""
ArtPalette Palette Cache
Explicit, injected cache for computed palettes keyed by image fingerprint.
In-memory LRU with TTL, or Redis when a URL is configured.
"""
import hashlib
import json
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional

import redis
from loguru import logger
from pydantic import ValidationError

from artpalette.config import config
from artpalette.schemas import ColorPalette
from artpalette.services.colors.sampling import PixelBuffer


def fingerprint_buffer(buffer: PixelBuffer) -> str:
    """
    SHA-256 fingerprint of an image's dimensions and RGBA bytes.

    Returns:
        Cache key of the form ``palette:<hex digest>``
    """
    digest = hashlib.sha256()
    digest.update(f"{buffer.width}x{buffer.height}:".encode("ascii"))
    digest.update(buffer.rgba.tobytes())
    return f"palette:{digest.hexdigest()}"


class PaletteCache(ABC):
    """Abstract base class for palette cache backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[ColorPalette]:
        """Get palette from cache."""
        pass

    @abstractmethod
    def set(self, key: str, palette: ColorPalette) -> bool:
        """Store palette with the backend's TTL."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key from cache."""
        pass

    @abstractmethod
    def clear(self) -> bool:
        """Clear all cache entries."""
        pass


class InMemoryPaletteCache(PaletteCache):
    """In-memory LRU cache with a bounded TTL. Safe to share across worker threads."""

    def __init__(self, max_size: int = 1000, ttl: int = 3600):
        self.max_size = max_size
        self.ttl = ttl
        self._cache: Dict[str, Dict] = {}
        self._access_times: Dict[str, float] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get(self, key: str) -> Optional[ColorPalette]:
        """Get palette and update access time."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry['expires'] > time.time():
                self._access_times[key] = time.time()
                return entry['value']

            # Expired
            del self._cache[key]
            self._access_times.pop(key, None)
            return None

    def set(self, key: str, palette: ColorPalette) -> bool:
        """Set palette and manage LRU eviction."""
        with self._lock:
            if len(self._cache) >= self.max_size and key not in self._cache:
                self._evict_lru()

            self._cache[key] = {
                'value': palette,
                'expires': time.time() + self.ttl
            }
            self._access_times[key] = time.time()
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                self._access_times.pop(key, None)
                return True
            return False

    def clear(self) -> bool:
        with self._lock:
            self._cache.clear()
            self._access_times.clear()
            return True

    def _evict_lru(self):
        """Evict least recently used entry."""
        with self._lock:
            if not self._access_times:
                return

            lru_key = min(self._access_times, key=self._access_times.__getitem__)
            self.delete(lru_key)


class RedisPaletteCache(PaletteCache):
    """Redis cache backend storing palette JSON."""

    def __init__(self, redis_url: str = "redis://localhost:6379", ttl: int = 3600,
                 client: Optional[redis.Redis] = None):
        self.ttl = ttl
        self.redis_client = client or redis.from_url(redis_url, decode_responses=True)

    def get(self, key: str) -> Optional[ColorPalette]:
        try:
            value = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Redis get failed for key {key}: {e}")
            return None

        if not value:
            return None
        try:
            return ColorPalette.model_validate(json.loads(value))
        except (ValueError, ValidationError) as e:
            # Corrupt entries count as misses
            logger.warning(f"Dropping unparsable cached palette {key}: {e}")
            self.delete(key)
            return None

    def set(self, key: str, palette: ColorPalette) -> bool:
        try:
            return bool(self.redis_client.setex(key, self.ttl, palette.model_dump_json(exclude_none=True)))
        except redis.RedisError as e:
            logger.error(f"Redis set failed for key {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            return bool(self.redis_client.delete(key))
        except redis.RedisError as e:
            logger.error(f"Redis delete failed for key {key}: {e}")
            return False

    def clear(self) -> bool:
        """Clear all keys (use with caution)."""
        try:
            return bool(self.redis_client.flushdb())
        except redis.RedisError as e:
            logger.error(f"Redis clear failed: {e}")
            return False


def build_palette_cache(redis_url: Optional[str] = None) -> PaletteCache:
    """Redis cache when a URL is given (or configured), in-memory otherwise."""
    redis_url = redis_url or config.REDIS_URL
    if redis_url:
        logger.info("Using Redis palette cache")
        return RedisPaletteCache(redis_url, ttl=config.CACHE_TTL)

    logger.info("Using in-memory palette cache")
    return InMemoryPaletteCache(max_size=config.CACHE_MAX_SIZE, ttl=config.CACHE_TTL)
