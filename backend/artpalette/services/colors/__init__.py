"""
ArtPalette Colors Module

Perceptual color engine: OKLCH conversion, weighted multi-strategy pixel
sampling, hue-circular k-means clustering, palette classification and
palette/room matching for artwork images.
"""

__version__ = "1.0.0"
