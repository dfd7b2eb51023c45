"""HTTP routes for the ArtPalette service."""
