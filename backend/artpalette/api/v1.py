"""
ArtPalette v1 API Routes
Palette extraction, palette search, room matching and color harmonies.
"""
import asyncio
import time
from typing import Dict, List, Optional, Sequence

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from artpalette.config import config
from artpalette.schemas import (
    ColorPalette, ErrorResponse, HarmonyRequest, HarmonyResponse, MatchResponse, NamedColor, OKLCHColor,
    PaletteExtractResponse, PaletteSearchRequest, RoomMatchRequest,
)
from artpalette.services.colors.colorspace import oklch_to_hex
from artpalette.services.colors.extraction import PaletteExtractor
from artpalette.services.colors.matching import (
    ColorMatcher, analogous_palette, color_name, complementary_palette,
)
from artpalette.services.colors.sampling import EmptyImageError
from artpalette.services.colors.swatches import render_palette_swatch
from artpalette.services.imaging import UnsupportedImageError, decode_image_bytes
from artpalette.utils.ids import generate_request_id
from artpalette.utils.logging import get_logger
from .deps import get_color_matcher, get_palette_extractor

router = APIRouter(prefix="/v1", tags=["ArtPalette v1"])
logger = get_logger()


def name_colors(colors: Sequence[OKLCHColor]) -> List[NamedColor]:
    """Attach hex values and human-readable names."""
    return [NamedColor(color=color, hex=oklch_to_hex(color), name=color_name(color)) for color in colors]


def name_palette(palette: ColorPalette) -> Dict[str, List[NamedColor]]:
    return {
        "dominant": name_colors(palette.dominant),
        "accent": name_colors(palette.accent),
        "neutral": name_colors(palette.neutral),
    }


async def _run_matching(func, *args):
    """Run a blocking matcher call off the event loop with the matching timeout."""
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(func, *args),
            timeout=config.TIMEOUT_MATCHING / 1000
        )
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="Matching timed out")


@router.post("/palette/extract",
             response_model=PaletteExtractResponse,
             responses={
                 400: {"model": ErrorResponse},
                 415: {"model": ErrorResponse},
                 422: {"model": ErrorResponse},
                 500: {"model": ErrorResponse},
             },
             summary="Extract Artwork Palette",
             description="Extract a classified OKLCH palette from an uploaded PNG/JPEG image")
async def extract_palette_endpoint(
    file: UploadFile = File(..., description="PNG or JPEG artwork image"),
    artwork_id: Optional[str] = Form(None, description="Persist the palette on this artwork"),
    k: int = Query(config.CLUSTER_COUNT, ge=1, le=12, description="Number of color clusters"),
    include_swatch: bool = Query(True, description="Include a PNG swatch strip in the response"),
    extractor: PaletteExtractor = Depends(get_palette_extractor),
) -> PaletteExtractResponse:
    """
    Extract a palette from an uploaded image.

    - **file**: PNG or JPEG image (max size from config)
    - **artwork_id**: When given, the palette is saved on that artwork
    - **k**: Number of clusters (1-12)
    - **include_swatch**: Return a base64 PNG swatch strip
    """
    request_id = generate_request_id("pal")
    start_time = time.time()
    logger.info("Starting palette extraction", extra={"request_id": request_id, "artwork_id": artwork_id})

    if file.content_type not in config.SUPPORTED_MIME_TYPES:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type. Allowed: {', '.join(config.SUPPORTED_MIME_TYPES)}"
        )

    content = await file.read()
    with logger.stage("decode", request_id) as fields:
        fields["bytes"] = len(content)
        try:
            buffer = decode_image_bytes(content)
        except UnsupportedImageError as e:
            logger.warning(f"Rejected upload: {e}", extra={"request_id": request_id})
            raise HTTPException(status_code=400, detail=str(e))

    with logger.stage("extract", request_id) as fields:
        try:
            if artwork_id:
                result = await asyncio.to_thread(extractor.extract_for_artwork, artwork_id, buffer, k)
            else:
                result = await asyncio.to_thread(extractor.extract, buffer, k)
        except EmptyImageError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except Exception as e:
            logger.error(f"Palette extraction failed: {e}", extra={"request_id": request_id})
            raise HTTPException(status_code=500, detail="Palette extraction failed")
        fields["sampled_colors"] = result.sampled_colors

    swatch_b64 = None
    if include_swatch and not result.palette.is_empty:
        try:
            swatch_b64 = render_palette_swatch(result.palette)
        except Exception as e:
            logger.warning(f"Swatch generation failed: {e}", extra={"request_id": request_id})

    logger.info(
        "Palette extraction complete",
        extra={
            "request_id": request_id,
            "ms_total": (time.time() - start_time) * 1000,
            "from_cache": result.from_cache,
        }
    )

    return PaletteExtractResponse(
        request_id=request_id,
        artwork_id=artwork_id,
        width=result.width,
        height=result.height,
        sampled_colors=result.sampled_colors,
        palette=result.palette,
        named=name_palette(result.palette),
        swatch_png_b64=swatch_b64,
        persisted=bool(artwork_id),
    )


@router.post("/palette/search",
             response_model=MatchResponse,
             response_model_by_alias=True,
             responses={504: {"model": ErrorResponse}},
             summary="Search Artworks by Palette")
async def search_palette_endpoint(
    request: PaletteSearchRequest,
    matcher: ColorMatcher = Depends(get_color_matcher),
) -> MatchResponse:
    """Rank artworks whose dominant colors are close to any requested color."""
    request_id = generate_request_id("search")
    matches = await _run_matching(matcher.search_by_palette, request.colors, request.tolerance, request.limit)
    logger.info(f"Palette search returned {len(matches)} matches", extra={"request_id": request_id})
    return MatchResponse(request_id=request_id, matches=matches)


@router.post("/rooms/matches",
             response_model=MatchResponse,
             response_model_by_alias=True,
             responses={504: {"model": ErrorResponse}},
             summary="Match Artworks to a Room")
async def room_matches_endpoint(
    request: RoomMatchRequest,
    matcher: ColorMatcher = Depends(get_color_matcher),
) -> MatchResponse:
    """Rank artworks by compatibility with a room's colors, lighting and style."""
    request_id = generate_request_id("room")
    matches = await _run_matching(matcher.find_room_matches, request.room, request.limit)
    logger.info(f"Room matching returned {len(matches)} matches", extra={"request_id": request_id})
    return MatchResponse(request_id=request_id, matches=matches)


@router.post("/colors/harmonies", response_model=HarmonyResponse, summary="Color Harmonies")
async def harmonies_endpoint(request: HarmonyRequest) -> HarmonyResponse:
    """Complementary and analogous variants of the given colors."""
    return HarmonyResponse(
        complementary=name_colors(complementary_palette(request.colors)),
        analogous=name_colors(analogous_palette(request.colors)),
    )
