"""
Tests for the artwork store boundary.
"""
import json
from unittest.mock import MagicMock

import pytest

from artpalette.services.store import (
    InMemoryArtworkStore, SupabaseArtworkStore, parse_palette, serialize_palette,
)


@pytest.fixture
def supabase_client():
    return MagicMock()


def set_rows(client, rows):
    query = client.table.return_value.select.return_value.eq.return_value.not_.is_.return_value
    query.limit.return_value.execute.return_value.data = rows
    return query


class TestPaletteSerialization:
    """Test stored palette format"""

    def test_serialize(self, warm_palette):
        data = serialize_palette(warm_palette)

        assert data["temperature"] == "warm"
        assert data["dominant"] == [{"l": 0.55, "c": 0.2, "h": 20.0}]
        assert data["accent"] == []

    def test_parse_dict(self, warm_palette):
        assert parse_palette(serialize_palette(warm_palette)) == warm_palette

    def test_parse_json_string(self, warm_palette):
        assert parse_palette(json.dumps(serialize_palette(warm_palette))) == warm_palette

    @pytest.mark.parametrize("raw", [None, "not json", {"temperature": "hot"}, {"dominant": [{"l": 0.5}]}])
    def test_parse_invalid(self, raw):
        assert parse_palette(raw) is None


class TestSupabaseArtworkStore:
    """Test Supabase query shape with a mocked client"""

    def test_fetch_candidates(self, supabase_client, warm_palette):
        query = set_rows(supabase_client, [
            {"id": 7, "oklch_palette": serialize_palette(warm_palette)},
            {"id": "8", "oklch_palette": "garbage"},
        ])
        store = SupabaseArtworkStore(client=supabase_client)

        candidates = store.fetch_candidates(100)

        supabase_client.table.assert_called_with("artworks")
        supabase_client.table.return_value.select.assert_called_with("id, oklch_palette")
        supabase_client.table.return_value.select.return_value.eq.assert_called_with("status", "available")
        query.limit.assert_called_with(100)

        assert len(candidates) == 1
        assert candidates[0].artwork_id == "7"
        assert candidates[0].palette == warm_palette

    def test_fetch_candidates_no_data(self, supabase_client):
        set_rows(supabase_client, None)
        assert SupabaseArtworkStore(client=supabase_client).fetch_candidates(10) == []

    def test_save_palette(self, supabase_client, warm_palette):
        store = SupabaseArtworkStore(client=supabase_client)
        store.save_palette("art-1", warm_palette)

        update = supabase_client.table.return_value.update
        update.assert_called_once_with({"oklch_palette": serialize_palette(warm_palette)})
        update.return_value.eq.assert_called_once_with("id", "art-1")
        update.return_value.eq.return_value.execute.assert_called_once()

    def test_query_errors_propagate(self, supabase_client):
        supabase_client.table.side_effect = ConnectionError("unreachable")
        with pytest.raises(ConnectionError):
            SupabaseArtworkStore(client=supabase_client).fetch_candidates(10)


class TestInMemoryArtworkStore:
    """Test dict-backed store"""

    def test_fetch_respects_limit_and_order(self, artwork_store):
        candidates = artwork_store.fetch_candidates(2)
        assert [candidate.artwork_id for candidate in candidates] == ["art-warm", "art-cool"]

    def test_save_and_get(self, warm_palette):
        store = InMemoryArtworkStore()
        store.save_palette("new", warm_palette)
        assert store.get_palette("new") == warm_palette
        assert store.get_palette("missing") is None
