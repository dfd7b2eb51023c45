"""
Unit tests for pixel sampling.
"""
import numpy as np
import pytest

from artpalette.services.colors.colorspace import color_key
from artpalette.services.colors.sampling import (
    EmptyImageError, PixelBuffer, SamplerSettings, downscale, grid_step, sample_center,
    sample_edges, sample_grid, sample_image, scaled_size,
)
from conftest import solid_buffer


class TestPixelBuffer:
    """Test buffer construction"""

    def test_from_bytes(self):
        data = bytes([10, 20, 30, 255] * 6)
        buffer = PixelBuffer.from_bytes(3, 2, data)
        assert buffer.rgba.shape == (2, 3, 4)
        assert buffer.area == 6

    def test_from_bytes_size_mismatch(self):
        with pytest.raises(ValueError, match="size mismatch"):
            PixelBuffer.from_bytes(3, 2, bytes(10))

    def test_from_rgb_array_adds_opaque_alpha(self):
        buffer = PixelBuffer.from_array(np.zeros((4, 5, 3), dtype=np.uint8))
        assert buffer.width == 5
        assert buffer.height == 4
        assert np.all(buffer.rgba[..., 3] == 255)

    def test_from_array_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            PixelBuffer.from_array(np.zeros((4, 5), dtype=np.uint8))


class TestDownscale:
    """Test resizing"""

    def test_scaled_size_keeps_aspect(self):
        assert scaled_size(600, 300, 300) == (300, 150)
        assert scaled_size(300, 1200, 300) == (75, 300)

    def test_small_images_unchanged(self):
        assert scaled_size(100, 50, 300) == (100, 50)
        buffer = solid_buffer(100, 50)
        assert downscale(buffer, 300) is buffer.rgba

    def test_large_image_downscaled(self):
        rgba = downscale(solid_buffer(600, 300), 300)
        assert rgba.shape == (150, 300, 4)


class TestStrategies:
    """Test the three sampling strategies"""

    def test_grid_step(self):
        assert grid_step(300, 300) == 6
        assert grid_step(100, 100) == 4
        assert grid_step(10, 10) == 4

    def test_grid_covers_canvas(self):
        samples = sample_grid(solid_buffer(30, 30).rgba)
        # rows and columns 0, 4, ..., 28
        assert len(samples) == 64

    def test_uniform_image_has_no_edges(self):
        assert sample_edges(solid_buffer(30, 30).rgba) == []

    def test_edges_found_on_boundary(self):
        array = np.zeros((30, 30, 4), dtype=np.uint8)
        array[..., 3] = 255
        array[:, 14:, :3] = 255
        samples = sample_edges(array)
        assert len(samples) > 0

    def test_tiny_image_has_no_edge_samples(self):
        assert sample_edges(solid_buffer(2, 2).rgba) == []

    def test_center_region(self):
        samples = sample_center(solid_buffer(30, 30).rgba)
        # offsets 9, 11, ..., 19 in each direction
        assert len(samples) == 36

    def test_alpha_threshold(self):
        below = solid_buffer(10, 10, (200, 10, 10, 76))
        above = solid_buffer(10, 10, (200, 10, 10, 77))
        assert sample_grid(below.rgba) == []
        assert len(sample_grid(above.rgba)) > 0


class TestSampleImage:
    """Test combined sampling"""

    def test_zero_area_raises(self):
        buffer = PixelBuffer(width=0, height=0, rgba=np.zeros((0, 0, 4), dtype=np.uint8))
        with pytest.raises(EmptyImageError):
            sample_image(buffer)

    def test_transparent_image_yields_no_samples(self, transparent_buffer):
        samples = sample_image(transparent_buffer)
        assert len(samples) == 0
        assert samples.weights == {}

    def test_weights_accumulate_per_strategy(self):
        samples = sample_image(solid_buffer(30, 30))

        assert samples.strategy_counts == {"grid": 64, "edge": 0, "center": 36}
        assert len(samples) == 100

        key = color_key(samples.colors[0])
        assert samples.weights == {key: pytest.approx(64 * 1.0 + 36 * 1.5)}

    def test_grid_samples_come_first(self):
        array = np.zeros((30, 30, 4), dtype=np.uint8)
        array[..., 3] = 255
        array[0, 0, :3] = (0, 0, 255)
        samples = sample_image(PixelBuffer.from_array(array))
        assert samples.colors[0].c > 0.2

    def test_reports_processed_dimensions(self):
        samples = sample_image(solid_buffer(600, 300))
        assert (samples.width, samples.height) == (300, 150)

    def test_custom_settings(self):
        settings = SamplerSettings(center_weight=3.0)
        samples = sample_image(solid_buffer(30, 30), settings)
        assert list(samples.weights.values()) == [pytest.approx(64 + 36 * 3.0)]
