"""
ArtPalette Artwork Store
Boundary to the artwork catalogue that persists palettes and serves
candidate artworks for palette and room matching.
"""
import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError
from supabase import Client, create_client

from artpalette.schemas import ColorPalette


@dataclass(frozen=True)
class ArtworkCandidate:
    """An artwork id with its stored palette."""
    artwork_id: str
    palette: ColorPalette


class ArtworkStore(ABC):
    """Abstract artwork catalogue."""

    @abstractmethod
    def fetch_candidates(self, limit: int) -> List[ArtworkCandidate]:
        """Return up to limit available artworks that have a stored palette."""
        pass

    @abstractmethod
    def save_palette(self, artwork_id: str, palette: ColorPalette) -> None:
        """Attach a computed palette to an artwork record."""
        pass


def parse_palette(raw: Any) -> Optional[ColorPalette]:
    """
    Parse a stored palette value (JSON string or dict).

    Returns None when the value is missing or malformed.
    """
    if raw is None:
        return None
    try:
        if isinstance(raw, (str, bytes)):
            raw = json.loads(raw)
        return ColorPalette.model_validate(raw)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Skipping unparsable palette: {e}")
        return None


def serialize_palette(palette: ColorPalette) -> Dict[str, Any]:
    """JSON-ready palette with l, c, h as numbers and string labels."""
    return palette.model_dump(mode="json", by_alias=True, exclude_none=True)


class SupabaseArtworkStore(ArtworkStore):
    """Artwork store backed by the Supabase ``artworks`` table."""

    TABLE = "artworks"
    PALETTE_COLUMN = "oklch_palette"

    def __init__(self, client: Optional[Client] = None):
        if client is None:
            load_dotenv()
            client = create_client(
                os.environ["SUPABASE_URL"],
                os.environ["SUPABASE_SERVICE_ROLE_KEY"]
            )
        self.client = client

    def fetch_candidates(self, limit: int) -> List[ArtworkCandidate]:
        response = (
            self.client.table(self.TABLE)
            .select(f"id, {self.PALETTE_COLUMN}")
            .eq("status", "available")
            .not_.is_(self.PALETTE_COLUMN, "null")
            .limit(limit)
            .execute()
        )

        candidates = []
        for row in response.data or []:
            palette = parse_palette(row.get(self.PALETTE_COLUMN))
            if palette is None:
                continue
            candidates.append(ArtworkCandidate(artwork_id=str(row["id"]), palette=palette))

        logger.debug(f"Fetched {len(candidates)} palette candidates (limit={limit})")
        return candidates

    def save_palette(self, artwork_id: str, palette: ColorPalette) -> None:
        (
            self.client.table(self.TABLE)
            .update({self.PALETTE_COLUMN: serialize_palette(palette)})
            .eq("id", artwork_id)
            .execute()
        )
        logger.info(f"Saved palette for artwork {artwork_id}")


class InMemoryArtworkStore(ArtworkStore):
    """Dict-backed store for local runs and tests. Keeps insertion order."""

    def __init__(self, palettes: Optional[Dict[str, ColorPalette]] = None):
        self._palettes: Dict[str, ColorPalette] = dict(palettes or {})

    def fetch_candidates(self, limit: int) -> List[ArtworkCandidate]:
        items = list(self._palettes.items())[:limit]
        return [ArtworkCandidate(artwork_id=artwork_id, palette=palette)
                for artwork_id, palette in items]

    def save_palette(self, artwork_id: str, palette: ColorPalette) -> None:
        self._palettes[artwork_id] = palette

    def get_palette(self, artwork_id: str) -> Optional[ColorPalette]:
        return self._palettes.get(artwork_id)
