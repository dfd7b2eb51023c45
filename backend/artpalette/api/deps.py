"""
Dependency providers for the ArtPalette API.
Each provider builds its service once; tests swap them through
``app.dependency_overrides``.
"""
import os
from functools import lru_cache

from dotenv import load_dotenv
from loguru import logger

from artpalette.services.cache import PaletteCache, build_palette_cache
from artpalette.services.colors.extraction import PaletteExtractor
from artpalette.services.colors.matching import ColorMatcher
from artpalette.services.store import ArtworkStore, InMemoryArtworkStore, SupabaseArtworkStore


@lru_cache(maxsize=1)
def get_artwork_store() -> ArtworkStore:
    """Supabase store when credentials are configured, in-memory otherwise."""
    load_dotenv()
    if os.environ.get("SUPABASE_URL") and os.environ.get("SUPABASE_SERVICE_ROLE_KEY"):
        return SupabaseArtworkStore()

    logger.warning("Supabase credentials not set, using in-memory artwork store")
    return InMemoryArtworkStore()


@lru_cache(maxsize=1)
def get_palette_cache() -> PaletteCache:
    return build_palette_cache()


@lru_cache(maxsize=1)
def get_color_matcher() -> ColorMatcher:
    return ColorMatcher(get_artwork_store())


@lru_cache(maxsize=1)
def get_palette_extractor() -> PaletteExtractor:
    return PaletteExtractor(cache=get_palette_cache(), store=get_artwork_store())
