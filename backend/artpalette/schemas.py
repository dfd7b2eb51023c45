"""
ArtPalette Schemas
Pydantic models for palettes, matches and API request/response validation.

Palette models serialise with camelCase aliases so the JSON stored on an
artwork record (``oklch_palette``) keeps the catalogue's field names.
"""
from typing import List, Literal, Optional, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from artpalette.utils.angles import normalize_hue


Temperature = Literal["warm", "cool", "neutral"]
Saturation = Literal["vibrant", "muted", "balanced"]
Brightness = Literal["light", "dark", "balanced"]
Harmony = Literal["monochromatic", "analogous", "complementary", "triadic", "split-complementary"]
LightingType = Literal["warm", "cool", "natural"]
RoomSize = Literal["small", "medium", "large"]
RoomStyle = Literal["modern", "traditional", "eclectic", "minimalist"]


class OKLCHColor(BaseModel):
    """A color in OKLCH space. Hue is always stored in [0, 360)."""
    model_config = ConfigDict(frozen=True)

    l: float = Field(..., description="Lightness, nominally [0, 1]")
    c: float = Field(..., description="Chroma, nominally [0, ~0.4]")
    h: float = Field(..., description="Hue angle in degrees [0, 360)")
    alpha: Optional[float] = Field(None, ge=0.0, le=1.0, description="Optional alpha [0, 1]")

    @field_validator("h")
    @classmethod
    def wrap_hue(cls, v: float) -> float:
        return normalize_hue(v)


class ColorPalette(BaseModel):
    """Tiered palette plus classification labels for one artwork image."""
    model_config = ConfigDict(frozen=True)

    dominant: List[OKLCHColor] = Field(default_factory=list, description="Centroid of the heaviest cluster")
    accent: List[OKLCHColor] = Field(default_factory=list, description="Centroid of the second cluster")
    neutral: List[OKLCHColor] = Field(default_factory=list, description="Centroids of the remaining clusters")
    temperature: Temperature = "neutral"
    saturation: Saturation = "balanced"
    brightness: Brightness = "balanced"
    harmony: Harmony = "monochromatic"

    @property
    def is_empty(self) -> bool:
        return not (self.dominant or self.accent or self.neutral)


class RoomPalette(BaseModel):
    """Room decor description supplied by the caller."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    dominant_colors: List[OKLCHColor] = Field(default_factory=list, alias="dominantColors")
    lighting_type: LightingType = Field("natural", alias="lightingType")
    room_size: RoomSize = Field("medium", alias="roomSize")
    style: RoomStyle = "modern"


class ColorMatch(BaseModel):
    """Ranked match between a query and one artwork."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    artwork_id: str = Field(..., alias="artworkId")
    compatibility_score: float = Field(..., ge=0.0, le=1.0, alias="compatibilityScore")
    color_harmony: str = Field(..., alias="colorHarmony")
    reasons: List[str] = Field(default_factory=list)
    complementary_colors: List[OKLCHColor] = Field(default_factory=list, alias="complementaryColors")


# ============================================================================
# API SCHEMAS
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("artpalette", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


class NamedColor(BaseModel):
    """Display form of a palette color."""
    color: OKLCHColor
    hex: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$", description="sRGB hex after gamut clamping")
    name: str = Field(..., description="Human-readable color name")


class PaletteExtractResponse(BaseModel):
    """Palette extraction response."""
    request_id: str
    artwork_id: Optional[str] = None
    width: int = Field(..., description="Processed (downscaled) width in pixels")
    height: int = Field(..., description="Processed (downscaled) height in pixels")
    sampled_colors: int = Field(..., description="Number of OKLCH samples across all strategies")
    palette: ColorPalette
    named: Dict[str, List[NamedColor]] = Field(
        ...,
        description="Palette tiers (dominant, accent, neutral) with hex values and names"
    )
    swatch_png_b64: Optional[str] = Field(None, description="Base64-encoded PNG swatch strip")
    persisted: bool = Field(False, description="Whether the palette was saved on the artwork record")


class PaletteSearchRequest(BaseModel):
    """Search artworks by a list of target colors."""
    colors: List[OKLCHColor] = Field(..., min_length=1, description="Target OKLCH colors")
    tolerance: float = Field(0.3, gt=0.0, le=2.0, description="Distance at which similarity reaches 0")
    limit: int = Field(20, ge=1, le=100, description="Maximum number of matches")


class RoomMatchRequest(BaseModel):
    """Find artworks that suit a room."""
    room: RoomPalette
    limit: int = Field(20, ge=1, le=100, description="Maximum number of matches")


class MatchResponse(BaseModel):
    """Ranked matches."""
    request_id: str
    matches: List[ColorMatch]


class HarmonyRequest(BaseModel):
    """Colors to derive harmonies from."""
    colors: List[OKLCHColor] = Field(..., min_length=1)


class HarmonyResponse(BaseModel):
    """Complementary and analogous palettes with names."""
    complementary: List[NamedColor]
    analogous: List[NamedColor]
