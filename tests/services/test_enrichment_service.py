"""
Tests for the enrichment fan-out: merge, degrade, and concurrency.
"""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from smart_advisor.schemas.recommendations import Candidate
from smart_advisor.services.catalog_service import (
    CatalogError,
    CatalogHit,
    CatalogMiss,
    CatalogRecord,
)
from smart_advisor.services.enrichment_service import (
    degrade_candidate,
    enrich_candidate,
    enrich_candidates,
    merge_catalog_record,
)
from smart_advisor.utils.constants import (
    PLACEHOLDER_BOOK_COVER_URL,
    PLACEHOLDER_BOOK_RATING,
    PLACEHOLDER_MOVIE_POSTER_URL,
    PLACEHOLDER_MOVIE_RATING,
)


@pytest.fixture
def movie():
    return Candidate(
        type="movie",
        title="Arrival",
        director="Denis Villeneuve",
        year=2016,
        genres=["Science Fiction"],
        explanation="Thoughtful first-contact story.",
    )


@pytest.fixture
def book():
    return Candidate(
        type="book",
        title="Dune",
        author="Frank Herbert",
        genres=["Science Fiction"],
        explanation="Epic world-building.",
    )


class TestMergeCatalogRecord:

    def test_catalog_values_win_when_present(self, book):
        record = CatalogRecord(
            poster_url="https://covers/dune.jpg",
            rating=4.3,
            year=1965,
            author="Frank Herbert",
            genres=["Fiction"],
        )

        enriched = merge_catalog_record(book, record, "both")

        assert enriched.poster_url == "https://covers/dune.jpg"
        assert enriched.rating == 4.3
        assert enriched.year == 1965
        assert enriched.genres == ["Fiction"]
        assert enriched.explanation == book.explanation
        assert enriched.content_type == "both"

    def test_empty_catalog_values_never_overwrite(self, movie):
        record = CatalogRecord(poster_url="https://posters/arrival.jpg", genres=[])

        enriched = merge_catalog_record(movie, record, "movie")

        assert enriched.director == "Denis Villeneuve"
        assert enriched.year == 2016
        assert enriched.genres == ["Science Fiction"]
        assert enriched.poster_url == "https://posters/arrival.jpg"
        assert enriched.rating == PLACEHOLDER_MOVIE_RATING

    def test_hit_without_poster_gets_placeholder(self, book):
        enriched = merge_catalog_record(book, CatalogRecord(rating=3.9), "book")

        assert enriched.poster_url == PLACEHOLDER_BOOK_COVER_URL
        assert enriched.rating == 3.9


class TestDegradeCandidate:

    def test_movie_placeholders(self, movie):
        degraded = degrade_candidate(movie, "movie", today=date(2026, 3, 1))

        assert degraded.poster_url == PLACEHOLDER_MOVIE_POSTER_URL
        assert degraded.rating == PLACEHOLDER_MOVIE_RATING
        assert degraded.year == 2016
        assert degraded.title == movie.title

    def test_book_without_year_uses_current_year(self, book):
        degraded = degrade_candidate(book, "book", today=date(2026, 3, 1))

        assert degraded.poster_url == PLACEHOLDER_BOOK_COVER_URL
        assert degraded.rating == PLACEHOLDER_BOOK_RATING
        assert degraded.year == 2026


class TestEnrichCandidate:

    @pytest.mark.asyncio
    async def test_hit_is_merged(self, movie):
        hit = CatalogHit(CatalogRecord(poster_url="https://posters/arrival.jpg", rating=7.9))

        with patch(
            "smart_advisor.services.enrichment_service.lookup_movie",
            new=AsyncMock(return_value=hit),
        ):
            enriched = await enrich_candidate(movie, "movie")

        assert enriched.poster_url == "https://posters/arrival.jpg"
        assert enriched.rating == 7.9

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result", [CatalogMiss(), CatalogError("TMDB API error: 500")])
    async def test_miss_or_error_degrades(self, movie, result):
        with patch(
            "smart_advisor.services.enrichment_service.lookup_movie",
            new=AsyncMock(return_value=result),
        ):
            enriched = await enrich_candidate(movie, "movie")

        assert enriched.poster_url == PLACEHOLDER_MOVIE_POSTER_URL
        assert enriched.rating == PLACEHOLDER_MOVIE_RATING

    @pytest.mark.asyncio
    async def test_unexpected_exception_degrades(self, book):
        with patch(
            "smart_advisor.services.enrichment_service.lookup_book",
            new=AsyncMock(side_effect=RuntimeError("boom")),
        ):
            enriched = await enrich_candidate(book, "book")

        assert enriched.poster_url == PLACEHOLDER_BOOK_COVER_URL
        assert enriched.rating == PLACEHOLDER_BOOK_RATING

    @pytest.mark.asyncio
    async def test_book_lookup_passes_author(self, book):
        lookup = AsyncMock(return_value=CatalogMiss())

        with patch("smart_advisor.services.enrichment_service.lookup_book", new=lookup):
            await enrich_candidate(book, "book")

        lookup.assert_awaited_once_with("Dune", author="Frank Herbert", client=None)


class TestEnrichCandidates:

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await enrich_candidates([], "both") == []

    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_sibling(self, movie, book):
        hit = CatalogHit(CatalogRecord(poster_url="https://covers/dune.jpg", rating=4.3))

        with patch(
            "smart_advisor.services.enrichment_service.lookup_movie",
            new=AsyncMock(return_value=CatalogError("timeout")),
        ), patch(
            "smart_advisor.services.enrichment_service.lookup_book",
            new=AsyncMock(return_value=hit),
        ):
            enriched = await enrich_candidates([movie, book], "both")

        assert [e.type for e in enriched] == ["movie", "book"]
        assert enriched[0].poster_url == PLACEHOLDER_MOVIE_POSTER_URL
        assert enriched[1].poster_url == "https://covers/dune.jpg"

    @pytest.mark.asyncio
    async def test_lookups_run_concurrently(self, movie, book):
        both_started = asyncio.Event()
        started = []
        timed_out = []

        async def slow_lookup(*args, **kwargs):
            started.append(args[0])
            if len(started) == 2:
                both_started.set()
            try:
                await asyncio.wait_for(both_started.wait(), timeout=1)
            except asyncio.TimeoutError:
                timed_out.append(args[0])
                raise
            return CatalogMiss()

        with patch(
            "smart_advisor.services.enrichment_service.lookup_movie", new=slow_lookup
        ), patch(
            "smart_advisor.services.enrichment_service.lookup_book", new=slow_lookup
        ):
            enriched = await enrich_candidates([movie, book], "both")

        assert sorted(started) == ["Arrival", "Dune"]
        assert timed_out == []
        assert len(enriched) == 2
