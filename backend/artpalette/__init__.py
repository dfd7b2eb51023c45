"""
ArtPalette - perceptual color intelligence for artwork catalogues.

Extracts OKLCH palettes from artwork images and ranks artworks against a
target palette or a room's decor.
"""

__version__ = "1.0.0"
