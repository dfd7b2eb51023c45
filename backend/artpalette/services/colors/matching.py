"""
Color Matching Module

Color naming, complementary/analogous palette generation, room
compatibility scoring and palette search over the artwork store.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger

from artpalette.config import config
from artpalette.schemas import ColorMatch, ColorPalette, OKLCHColor, RoomPalette
from artpalette.services.store import ArtworkCandidate, ArtworkStore
from .classifier import determine_temperature
from .clustering import color_distance


# Hue bands for base names, upper bounds exclusive; red wraps around 0
HUE_NAMES = [
    (30.0, "red"),
    (60.0, "orange"),
    (90.0, "yellow"),
    (150.0, "green"),
    (210.0, "cyan"),
    (270.0, "blue"),
    (330.0, "purple"),
    (360.0, "red"),
]


def color_name(color: OKLCHColor) -> str:
    """
    Human-readable name such as "dark vivid blue" or "gray".

    Near-black, near-white and near-gray are returned before any modifier
    is applied.
    """
    l, c, h = color.l, color.c, color.h

    if l < 0.2 and c < 0.05:
        return "black"
    if l > 0.9 and c < 0.05:
        return "white"
    if c < 0.02:
        return "gray"

    base_name = next(name for upper, name in HUE_NAMES if h < upper)

    modifiers = []
    if l > 0.8:
        modifiers.append("light")
    elif l < 0.3:
        modifiers.append("dark")

    if c > 0.2:
        modifiers.append("vivid")
    elif c < 0.05:
        modifiers.append("muted")

    return " ".join(modifiers + [base_name])


def complementary_palette(colors: Sequence[OKLCHColor]) -> List[OKLCHColor]:
    """Same lightness, chroma x0.8, hue rotated 180°."""
    return [
        OKLCHColor(l=color.l, c=color.c * 0.8, h=(color.h + 180) % 360, alpha=color.alpha)
        for color in colors
    ]


def analogous_palette(colors: Sequence[OKLCHColor]) -> List[OKLCHColor]:
    """Two variants per color at hue +30° and -30°."""
    analogous = []
    for color in colors:
        analogous.append(color.model_copy(update={"h": (color.h + 30) % 360}))
        analogous.append(color.model_copy(update={"h": (color.h - 30 + 360) % 360}))
    return analogous


@dataclass(frozen=True)
class RoomCompatibility:
    """Room/artwork compatibility result."""
    score: float
    harmony: str
    reasons: List[str] = field(default_factory=list)
    complementary_colors: List[OKLCHColor] = field(default_factory=list)


def room_compatibility(room: RoomPalette, artwork_palette: ColorPalette) -> RoomCompatibility:
    """
    Score how well an artwork palette suits a room.

    Temperature contrast scores 0.4, a temperature match 0.3. Muted art
    in a minimalist room and light art under natural lighting add 0.2
    each. The score is capped at 1.0.
    """
    score = 0.0
    reasons: List[str] = []

    if room.dominant_colors and artwork_palette.dominant:
        room_temp = determine_temperature(room.dominant_colors[0].h)
        if room_temp == artwork_palette.temperature:
            score += 0.3
            reasons.append(f"Matches {room_temp} color temperature")
        else:
            # TODO: confirm with product whether contrast should outscore a match
            score += 0.4
            reasons.append(f"Provides {artwork_palette.temperature} contrast to {room_temp} room")

    if artwork_palette.saturation == "muted" and room.style == "minimalist":
        score += 0.2
        reasons.append("Muted colors perfect for minimalist space")

    if artwork_palette.brightness == "light" and room.lighting_type == "natural":
        score += 0.2
        reasons.append("Light artwork complements natural lighting")

    return RoomCompatibility(
        score=max(0.0, min(1.0, score)),
        harmony=artwork_palette.harmony,
        reasons=reasons,
        complementary_colors=complementary_palette(artwork_palette.dominant),
    )


def palette_similarity(target_colors: Sequence[OKLCHColor],
                       artwork_colors: Sequence[OKLCHColor],
                       tolerance: float = 0.3) -> Tuple[float, List[str]]:
    """
    Best similarity between any target color and any artwork color.

    Similarity is ``max(0, 1 - distance / tolerance)``. A reason naming the
    artwork color is recorded each time the running best improves.

    Returns:
        Tuple of (best similarity in [0, 1], reasons)
    """
    if tolerance <= 0:
        raise ValueError(f"tolerance must be positive, got {tolerance}")

    best = 0.0
    reasons: List[str] = []
    for target in target_colors:
        for candidate in artwork_colors:
            similarity = max(0.0, 1.0 - color_distance(target, candidate) / tolerance)
            if similarity > best:
                best = similarity
                reasons.append(f"Contains {color_name(candidate)} that matches your palette")

    return best, reasons


@dataclass(frozen=True)
class MatcherSettings:
    """Candidate page sizes and ranking constants."""
    search_candidate_limit: int = config.SEARCH_CANDIDATE_LIMIT
    room_candidate_limit: int = config.ROOM_CANDIDATE_LIMIT
    match_floor: float = config.MATCH_FLOOR
    max_workers: int = config.MATCH_WORKERS


class ColorMatcher:
    """Ranks artworks from the store against a target palette or a room."""

    def __init__(self, store: ArtworkStore, settings: Optional[MatcherSettings] = None):
        self.store = store
        self.settings = settings or MatcherSettings()

    def _fetch_candidates(self, limit: int) -> List[ArtworkCandidate]:
        try:
            return self.store.fetch_candidates(limit)
        except Exception as e:
            # Matching is best-effort: an unavailable store means no candidates
            logger.error(f"Artwork store unavailable, no candidates: {e}")
            return []

    def _rank(self,
              candidates: List[ArtworkCandidate],
              scorer: Callable[[ArtworkCandidate], Optional[ColorMatch]],
              limit: int) -> List[ColorMatch]:
        if self.settings.max_workers > 1 and len(candidates) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
                scored = list(executor.map(scorer, candidates))
        else:
            scored = [scorer(candidate) for candidate in candidates]

        matches = [match for match in scored if match is not None]
        matches.sort(key=lambda match: match.compatibility_score, reverse=True)
        return matches[:limit]

    def search_by_palette(self,
                          target_colors: Sequence[OKLCHColor],
                          tolerance: float = 0.3,
                          limit: int = 20) -> List[ColorMatch]:
        """
        Find artworks whose dominant colors are close to any target color.

        Args:
            target_colors: Colors to look for
            tolerance: Distance at which similarity drops to 0
            limit: Maximum number of matches

        Returns:
            Matches scoring above the floor, best first
        """
        if not config.validate_tolerance(tolerance):
            raise ValueError(f"tolerance must be in (0, 2], got {tolerance}")

        candidates = self._fetch_candidates(self.settings.search_candidate_limit)

        def score(candidate: ArtworkCandidate) -> Optional[ColorMatch]:
            palette = candidate.palette
            if not palette.dominant:
                return None
            best, reasons = palette_similarity(target_colors, palette.dominant, tolerance)
            if best <= self.settings.match_floor:
                return None
            return ColorMatch(
                artwork_id=candidate.artwork_id,
                compatibility_score=best,
                color_harmony=palette.harmony,
                reasons=reasons,
                complementary_colors=complementary_palette(palette.dominant),
            )

        matches = self._rank(candidates, score, limit)
        logger.info(f"Palette search: {len(matches)} matches from {len(candidates)} candidates")
        return matches

    def find_room_matches(self, room: RoomPalette, limit: int = 20) -> List[ColorMatch]:
        """
        Find artworks that complement a room.

        Returns:
            Matches scoring above the floor, best first
        """
        candidates = self._fetch_candidates(self.settings.room_candidate_limit)

        def score(candidate: ArtworkCandidate) -> Optional[ColorMatch]:
            compatibility = room_compatibility(room, candidate.palette)
            if compatibility.score <= self.settings.match_floor:
                return None
            return ColorMatch(
                artwork_id=candidate.artwork_id,
                compatibility_score=compatibility.score,
                color_harmony=compatibility.harmony,
                reasons=compatibility.reasons,
                complementary_colors=compatibility.complementary_colors,
            )

        matches = self._rank(candidates, score, limit)
        logger.info(f"Room matching: {len(matches)} matches from {len(candidates)} candidates")
        return matches
