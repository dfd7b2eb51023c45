"""
Test configuration and fixtures for ArtPalette tests.
"""
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from artpalette.api.deps import get_color_matcher, get_palette_extractor
from artpalette.schemas import ColorPalette, OKLCHColor
from artpalette.services.cache import InMemoryPaletteCache
from artpalette.services.colors.extraction import PaletteExtractor
from artpalette.services.colors.matching import ColorMatcher, MatcherSettings
from artpalette.services.colors.sampling import PixelBuffer
from artpalette.services.store import InMemoryArtworkStore

# Import the main app
from main import app


CRIMSON = (220, 20, 60)


def solid_buffer(width: int, height: int, rgba=(220, 20, 60, 255)) -> PixelBuffer:
    """Uniform RGBA image."""
    array = np.zeros((height, width, 4), dtype=np.uint8)
    array[:, :] = rgba
    return PixelBuffer.from_array(array)


def encode_png(width: int, height: int, rgba=(220, 20, 60, 255)) -> bytes:
    """Uniform RGBA image encoded as PNG bytes."""
    image = Image.new("RGBA", (width, height), rgba)
    output = io.BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


def make_palette(l: float, c: float, h: float, **labels) -> ColorPalette:
    """Palette with a single dominant color and the given labels."""
    return ColorPalette(dominant=[OKLCHColor(l=l, c=c, h=h)], **labels)


@pytest.fixture
def warm_palette():
    return make_palette(0.55, 0.2, 20.0, temperature="warm", saturation="vibrant")


@pytest.fixture
def cool_palette():
    return make_palette(0.75, 0.12, 230.0, temperature="cool", brightness="light")


@pytest.fixture
def muted_palette():
    return make_palette(0.6, 0.02, 90.0, temperature="neutral", saturation="muted")


@pytest.fixture
def artwork_store(warm_palette, cool_palette, muted_palette):
    """In-memory catalogue with three artworks."""
    return InMemoryArtworkStore({
        "art-warm": warm_palette,
        "art-cool": cool_palette,
        "art-muted": muted_palette,
    })


@pytest.fixture
def crimson_buffer():
    return solid_buffer(300, 300)


@pytest.fixture
def transparent_buffer():
    return solid_buffer(10, 10, (0, 0, 0, 0))


@pytest.fixture
def test_client(artwork_store):
    """Test client with in-memory store and cache."""
    matcher = ColorMatcher(artwork_store, MatcherSettings(max_workers=1))
    extractor = PaletteExtractor(cache=InMemoryPaletteCache(), store=artwork_store)

    app.dependency_overrides[get_color_matcher] = lambda: matcher
    app.dependency_overrides[get_palette_extractor] = lambda: extractor
    yield TestClient(app)
    app.dependency_overrides.clear()
