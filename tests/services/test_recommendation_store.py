"""
Tests for recommendation persistence and history queries.

Supabase is mocked with a query-builder chain (see conftest.supabase_client).
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, call

import pytest

from smart_advisor.schemas.recommendations import EnrichedCandidate, StoredRecommendation
from smart_advisor.services.recommendation_store import (
    delete_recommendation,
    get_user_recommendations,
    get_user_stats,
    save_recommendation,
    toggle_favorite,
)


@pytest.fixture
def enriched_book():
    return EnrichedCandidate(
        type="book",
        title="Dune",
        author="Frank Herbert",
        year=1965,
        genres=["Science Fiction", "Adventure"],
        explanation="Epic world-building.",
        poster_url="https://covers/dune.jpg",
        rating=4.3,
        content_type="both",
    )


def _row(**overrides):
    row = {
        "id": "rec-1",
        "user_id": "user-123",
        "type": "book",
        "title": "Dune",
        "description": "",
        "explanation": "Epic world-building.",
        "poster_url": "https://covers/dune.jpg",
        "genre": "Science Fiction, Adventure",
        "rating": 4.3,
        "is_favorited": False,
        "content_type": "both",
        "director": None,
        "author": "Frank Herbert",
        "year": 1965,
        "created_at": "2026-10-01T12:00:00+00:00",
    }
    row.update(overrides)
    return row


class TestSaveRecommendation:

    @pytest.mark.asyncio
    async def test_insert_payload_and_stored_result(self, supabase_client, enriched_book):
        supabase_client.query.execute.return_value = MagicMock(data=[_row()])

        stored = await save_recommendation(supabase_client, "user-123", enriched_book)

        supabase_client.table.assert_called_once_with("recommendations")
        payload = supabase_client.query.insert.call_args.args[0]
        assert payload["user_id"] == "user-123"
        assert payload["type"] == "book"
        assert payload["genre"] == "Science Fiction, Adventure"
        assert payload["description"] == ""
        assert payload["is_favorited"] is False
        assert payload["content_type"] == "both"

        assert isinstance(stored, StoredRecommendation)
        assert stored.id == "rec-1"
        assert stored.genres == ["Science Fiction", "Adventure"]

    @pytest.mark.asyncio
    async def test_write_failure_returns_candidate(self, supabase_client, enriched_book):
        supabase_client.query.execute.side_effect = Exception("permission denied")

        result = await save_recommendation(supabase_client, "user-123", enriched_book)

        assert result is enriched_book
        assert not isinstance(result, StoredRecommendation)

    @pytest.mark.asyncio
    async def test_empty_insert_result_returns_candidate(self, supabase_client, enriched_book):
        supabase_client.query.execute.return_value = MagicMock(data=[])

        result = await save_recommendation(supabase_client, "user-123", enriched_book)

        assert result is enriched_book


class TestGetUserRecommendations:

    @pytest.mark.asyncio
    async def test_defaults_newest_first(self, supabase_client):
        supabase_client.query.execute.return_value = MagicMock(data=[_row(), _row(id="rec-2")])

        recommendations = await get_user_recommendations(supabase_client, "user-123")

        assert [r.id for r in recommendations] == ["rec-1", "rec-2"]
        supabase_client.query.eq.assert_called_once_with("user_id", "user-123")
        supabase_client.query.order.assert_called_once_with("created_at", desc=True)
        supabase_client.query.range.assert_called_once_with(0, 19)

    @pytest.mark.asyncio
    async def test_filters_and_pagination(self, supabase_client):
        supabase_client.query.execute.return_value = MagicMock(data=[])
        start = datetime(2026, 10, 1, tzinfo=timezone.utc)
        end = datetime(2026, 10, 31, tzinfo=timezone.utc)

        await get_user_recommendations(
            supabase_client,
            "user-123",
            content_type="movie",
            is_favorited=True,
            start_date=start,
            end_date=end,
            sort_by="favorites_first",
            limit=5,
            offset=10,
        )

        assert supabase_client.query.eq.call_args_list == [
            call("user_id", "user-123"),
            call("type", "movie"),
            call("is_favorited", True),
        ]
        supabase_client.query.gte.assert_called_once_with("created_at", start.isoformat())
        supabase_client.query.lte.assert_called_once_with("created_at", end.isoformat())
        assert supabase_client.query.order.call_args_list == [
            call("is_favorited", desc=True),
            call("created_at", desc=True),
        ]
        supabase_client.query.range.assert_called_once_with(10, 14)

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self, supabase_client):
        supabase_client.query.execute.return_value = MagicMock(data=[
            _row(id="rec-1"),
            _row(id="rec-2", explanation=None),
            _row(id="rec-3", type="podcast"),
            _row(id="rec-4"),
        ])

        recommendations = await get_user_recommendations(supabase_client, "user-123")

        assert [r.id for r in recommendations] == ["rec-1", "rec-4"]

    @pytest.mark.asyncio
    async def test_both_does_not_filter_type(self, supabase_client):
        supabase_client.query.execute.return_value = MagicMock(data=[])

        await get_user_recommendations(supabase_client, "user-123", content_type="both", sort_by="oldest")

        supabase_client.query.eq.assert_called_once_with("user_id", "user-123")
        supabase_client.query.order.assert_called_once_with("created_at", desc=False)


class TestToggleFavorite:

    @pytest.mark.asyncio
    async def test_flips_flag(self, supabase_client):
        supabase_client.query.execute.side_effect = [
            MagicMock(data=[_row(is_favorited=False)]),
            MagicMock(data=[_row(is_favorited=True)]),
        ]

        updated = await toggle_favorite(supabase_client, "user-123", "rec-1")

        supabase_client.query.update.assert_called_once_with({"is_favorited": True})
        assert updated is not None
        assert updated.is_favorited is True

    @pytest.mark.asyncio
    async def test_not_found(self, supabase_client):
        supabase_client.query.execute.return_value = MagicMock(data=[])

        assert await toggle_favorite(supabase_client, "user-123", "missing") is None
        supabase_client.query.update.assert_not_called()


class TestDeleteRecommendation:

    @pytest.mark.asyncio
    async def test_deletes_existing(self, supabase_client):
        supabase_client.query.execute.side_effect = [
            MagicMock(data=[_row()]),
            MagicMock(data=[]),
        ]

        assert await delete_recommendation(supabase_client, "user-123", "rec-1") is True
        supabase_client.query.delete.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_returns_false(self, supabase_client):
        supabase_client.query.execute.return_value = MagicMock(data=[])

        assert await delete_recommendation(supabase_client, "user-123", "missing") is False
        supabase_client.query.delete.assert_not_called()


class TestGetUserStats:

    @pytest.mark.asyncio
    async def test_counts(self, supabase_client):
        supabase_client.query.execute.return_value = MagicMock(data=[
            {"type": "movie", "is_favorited": True, "created_at": "2026-10-02T09:00:00Z"},
            {"type": "book", "is_favorited": False, "created_at": "2026-10-15T09:00:00+00:00"},
            {"type": "book", "is_favorited": True, "created_at": "2026-09-30T23:59:59Z"},
            {"type": "movie", "is_favorited": False, "created_at": None},
        ])

        stats = await get_user_stats(
            supabase_client, "user-123", now=datetime(2026, 10, 19, tzinfo=timezone.utc)
        )

        assert stats.total_recommendations == 4
        assert stats.favorite_count == 2
        assert stats.movie_count == 2
        assert stats.book_count == 2
        assert stats.this_month_count == 2

    @pytest.mark.asyncio
    async def test_no_history(self, supabase_client):
        supabase_client.query.execute.return_value = MagicMock(data=[])

        stats = await get_user_stats(supabase_client, "user-123")

        assert stats.total_recommendations == 0
        assert stats.this_month_count == 0
