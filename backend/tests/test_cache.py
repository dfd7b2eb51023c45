"""
Tests for palette caching.
"""
import json
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
import redis

from artpalette.config import config
from artpalette.services.cache import (
    InMemoryPaletteCache, RedisPaletteCache, build_palette_cache, fingerprint_buffer,
)
from conftest import solid_buffer


class TestFingerprint:
    """Test image fingerprints"""

    def test_same_pixels_same_key(self):
        assert fingerprint_buffer(solid_buffer(8, 8)) == fingerprint_buffer(solid_buffer(8, 8))

    def test_different_pixels_different_key(self):
        assert fingerprint_buffer(solid_buffer(8, 8)) != fingerprint_buffer(solid_buffer(8, 8, (0, 0, 0, 255)))

    def test_dimensions_part_of_key(self):
        assert fingerprint_buffer(solid_buffer(4, 16)) != fingerprint_buffer(solid_buffer(16, 4))

    def test_key_prefix(self):
        assert fingerprint_buffer(solid_buffer(2, 2)).startswith("palette:")


class TestInMemoryPaletteCache:
    """Test in-memory LRU cache"""

    def test_set_get(self, warm_palette):
        cache = InMemoryPaletteCache()
        assert cache.get("k") is None
        assert cache.set("k", warm_palette)
        assert cache.get("k") == warm_palette

    def test_expired_entries(self, warm_palette):
        cache = InMemoryPaletteCache(ttl=-1)
        cache.set("k", warm_palette)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_bounded_size(self, warm_palette):
        cache = InMemoryPaletteCache(max_size=2)
        for key in ("a", "b", "c"):
            cache.set(key, warm_palette)
        assert len(cache) == 2
        assert cache.get("c") == warm_palette

    def test_delete_and_clear(self, warm_palette):
        cache = InMemoryPaletteCache()
        cache.set("a", warm_palette)
        cache.set("b", warm_palette)

        assert cache.delete("a")
        assert not cache.delete("a")
        assert cache.clear()
        assert len(cache) == 0

    def test_concurrent_access_under_eviction(self, warm_palette):
        cache = InMemoryPaletteCache(max_size=8)

        def worker(worker_id):
            for i in range(2000):
                key = f"{worker_id}-{i % 50}"
                cache.set(key, warm_palette)
                cache.get(key)
                cache.get(f"{(worker_id + 1) % 8}-{i % 50}")

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(worker, worker_id) for worker_id in range(8)]
            errors = [f.exception() for f in futures if f.exception() is not None]

        assert errors == []
        assert len(cache) <= 8


class TestRedisPaletteCache:
    """Test Redis backend with a mocked client"""

    def test_set_uses_ttl(self, warm_palette):
        client = MagicMock()
        cache = RedisPaletteCache(ttl=60, client=client)

        cache.set("k", warm_palette)

        key, ttl, payload = client.setex.call_args[0]
        assert (key, ttl) == ("k", 60)
        assert json.loads(payload)["temperature"] == "warm"

    def test_get_parses_json(self, warm_palette):
        client = MagicMock()
        client.get.return_value = warm_palette.model_dump_json(exclude_none=True)
        cache = RedisPaletteCache(client=client)

        assert cache.get("k") == warm_palette

    def test_get_miss(self):
        client = MagicMock()
        client.get.return_value = None
        assert RedisPaletteCache(client=client).get("k") is None

    def test_redis_errors_are_misses(self, warm_palette):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        client.setex.side_effect = redis.ConnectionError("down")
        cache = RedisPaletteCache(client=client)

        assert cache.get("k") is None
        assert cache.set("k", warm_palette) is False

    @pytest.mark.parametrize("payload", ['{"dominant": [{"l": 0.5}]}', "not json"])
    def test_corrupt_entry_is_dropped(self, payload):
        client = MagicMock()
        client.get.return_value = payload
        cache = RedisPaletteCache(client=client)

        assert cache.get("palette:abc") is None
        client.delete.assert_called_once_with("palette:abc")


class TestBuildPaletteCache:
    """Test backend selection"""

    def test_in_memory_without_url(self, monkeypatch):
        monkeypatch.setattr(config, "REDIS_URL", None)
        assert isinstance(build_palette_cache(), InMemoryPaletteCache)

    def test_redis_with_url(self):
        # redis-py connects lazily, so no server is needed here
        assert isinstance(build_palette_cache("redis://localhost:6379/0"), RedisPaletteCache)
