"""
Tests for the recommendation pipeline and its retry wrapper.

These tests verify:
- One attempt runs generate -> enrich -> persist in order
- Persistence failures surface as unsaved candidates, not errors
- The retry wrapper's attempt count and linear backoff
- RetryExhausted chains the last error

Stage functions are patched; sleep is injected so no test actually waits.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from smart_advisor.schemas.recommendations import (
    Answer,
    Candidate,
    EnrichedCandidate,
    StoredRecommendation,
)
from smart_advisor.services.exceptions import GenerationError, RetryExhausted
from smart_advisor.services.recommendation_service import (
    generate_full_recommendation,
    retry_recommendation,
)
from smart_advisor.utils.constants import PLACEHOLDER_MOVIE_POSTER_URL, PLACEHOLDER_MOVIE_RATING

SERVICE = "smart_advisor.services.recommendation_service"


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def answers():
    return [Answer(answer_text="Mind-bending science fiction")]


@pytest.fixture
def candidates():
    return [
        Candidate(type="movie", title="Arrival", explanation="First contact."),
        Candidate(type="book", title="Dune", explanation="Epic world-building."),
    ]


@pytest.fixture
def enriched(candidates):
    return [
        EnrichedCandidate(**c.model_dump(), poster_url=f"https://img/{c.title}.jpg",
                          rating=8.0, content_type="both")
        for c in candidates
    ]


def _stored(candidate: EnrichedCandidate, rec_id: str) -> StoredRecommendation:
    return StoredRecommendation(**candidate.model_dump(), id=rec_id, user_id="user-123")


class FakeSleep:
    """Records requested delays (seconds) instead of sleeping."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# =============================================================================
# generate_full_recommendation
# =============================================================================

class TestGenerateFullRecommendation:

    @pytest.mark.asyncio
    async def test_runs_all_stages(self, answers, candidates, enriched):
        supabase_client = MagicMock()
        stored = [_stored(enriched[0], "rec-1"), _stored(enriched[1], "rec-2")]

        with patch(f"{SERVICE}.generate_candidates", new=AsyncMock(return_value=candidates)) as gen, \
             patch(f"{SERVICE}.enrich_candidates", new=AsyncMock(return_value=enriched)) as enrich, \
             patch(f"{SERVICE}.save_recommendation", new=AsyncMock(side_effect=stored)) as save:
            results = await generate_full_recommendation(
                supabase_client, "user-123", answers, "both", 27
            )

        gen.assert_awaited_once_with(answers, "both", 27, client=None)
        enrich.assert_awaited_once_with(candidates, "both", client=None)
        assert save.await_count == 2
        assert save.await_args_list[0].args == (supabase_client, "user-123", enriched[0])
        assert results == stored

    @pytest.mark.asyncio
    async def test_failed_write_keeps_enriched_value(self, answers, candidates, enriched):
        with patch(f"{SERVICE}.generate_candidates", new=AsyncMock(return_value=candidates)), \
             patch(f"{SERVICE}.enrich_candidates", new=AsyncMock(return_value=enriched)), \
             patch(f"{SERVICE}.save_recommendation",
                   new=AsyncMock(side_effect=[_stored(enriched[0], "rec-1"), enriched[1]])):
            results = await generate_full_recommendation(
                MagicMock(), "user-123", answers, "both", 27
            )

        assert isinstance(results[0], StoredRecommendation)
        assert results[1] is enriched[1]

    @pytest.mark.asyncio
    async def test_generation_error_propagates(self, answers):
        with patch(f"{SERVICE}.generate_candidates",
                   new=AsyncMock(side_effect=GenerationError("bad payload"))), \
             patch(f"{SERVICE}.enrich_candidates", new=AsyncMock()) as enrich:
            with pytest.raises(GenerationError):
                await generate_full_recommendation(MagicMock(), "user-123", answers, "movie", 27)

        enrich.assert_not_awaited()


# =============================================================================
# retry_recommendation
# =============================================================================

class TestRetryRecommendation:

    @pytest.mark.asyncio
    async def test_first_attempt_success_does_not_sleep(self, answers, enriched):
        sleep = FakeSleep()

        with patch(f"{SERVICE}.generate_full_recommendation",
                   new=AsyncMock(return_value=enriched)) as pipeline:
            results = await retry_recommendation(
                MagicMock(), "user-123", answers, "both", 27, sleep=sleep
            )

        assert results == enriched
        assert pipeline.await_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failures, expected_delays", [
        (1, [1.0]),
        (2, [1.0, 2.0]),
    ])
    async def test_succeeds_after_failures(self, answers, enriched, failures, expected_delays):
        sleep = FakeSleep()
        side_effect = [GenerationError("upstream down")] * failures + [enriched]

        with patch(f"{SERVICE}.generate_full_recommendation",
                   new=AsyncMock(side_effect=side_effect)) as pipeline:
            results = await retry_recommendation(
                MagicMock(), "user-123", answers, "both", 27,
                max_retries=2, retry_delay_ms=1000, sleep=sleep
            )

        assert results == enriched
        assert pipeline.await_count == failures + 1
        assert sleep.delays == expected_delays

    @pytest.mark.asyncio
    async def test_exhausted_after_three_attempts(self, answers):
        sleep = FakeSleep()
        last = GenerationError("third failure")

        with patch(f"{SERVICE}.generate_full_recommendation",
                   new=AsyncMock(side_effect=[
                       GenerationError("first failure"),
                       GenerationError("second failure"),
                       last,
                   ])) as pipeline:
            with pytest.raises(RetryExhausted) as exc_info:
                await retry_recommendation(
                    MagicMock(), "user-123", answers, "both", 27,
                    max_retries=2, retry_delay_ms=1000, sleep=sleep
                )

        assert pipeline.await_count == 3
        assert sleep.delays == [1.0, 2.0]
        assert exc_info.value.attempts == 3
        assert exc_info.value.__cause__ is last

    @pytest.mark.asyncio
    async def test_zero_retries_fails_immediately(self, answers):
        sleep = FakeSleep()

        with patch(f"{SERVICE}.generate_full_recommendation",
                   new=AsyncMock(side_effect=GenerationError("down"))) as pipeline:
            with pytest.raises(RetryExhausted) as exc_info:
                await retry_recommendation(
                    MagicMock(), "user-123", answers, "movie", 27,
                    max_retries=0, sleep=sleep
                )

        assert pipeline.await_count == 1
        assert sleep.delays == []
        assert exc_info.value.attempts == 1
        assert isinstance(exc_info.value.__cause__, GenerationError)

    @pytest.mark.asyncio
    async def test_delay_unit_is_configurable(self, answers, enriched):
        sleep = FakeSleep()

        with patch(f"{SERVICE}.generate_full_recommendation",
                   new=AsyncMock(side_effect=[RuntimeError("x"), RuntimeError("y"), enriched])):
            await retry_recommendation(
                MagicMock(), "user-123", answers, "movie", 27,
                max_retries=2, retry_delay_ms=250, sleep=sleep
            )

        assert sleep.delays == [0.25, 0.5]


# =============================================================================
# END-TO-END SCENARIOS (real stages, mocked upstreams)
# =============================================================================

def _gemini_client_returning(payload: dict) -> MagicMock:
    part = MagicMock()
    part.text = json.dumps(payload)
    candidate = MagicMock()
    candidate.content.parts = [part]
    response = MagicMock()
    response.candidates = [candidate]
    client = MagicMock()
    client.models.generate_content.return_value = response
    return client


def _unreachable_catalog() -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("catalog unreachable", request=request)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestPipelineScenarios:

    @pytest.mark.asyncio
    async def test_movie_with_catalog_unreachable_gets_placeholders(self, answers, supabase_client):
        gemini = _gemini_client_returning({"movieRecommendation": {
            "title": "Arrival",
            "director": "Denis Villeneuve",
            "year": 2016,
            "genres": ["Science Fiction"],
            "explanation": "First contact.",
        }})
        supabase_client.query.execute.side_effect = Exception("storage down")

        async with _unreachable_catalog() as http_client:
            results = await generate_full_recommendation(
                supabase_client, "user-123", answers, "movie", 27,
                http_client=http_client, gemini_client=gemini,
            )

        assert len(results) == 1
        item = results[0]
        assert isinstance(item, EnrichedCandidate)
        assert not isinstance(item, StoredRecommendation)
        assert item.poster_url == PLACEHOLDER_MOVIE_POSTER_URL
        assert item.rating == PLACEHOLDER_MOVIE_RATING
        assert item.director == "Denis Villeneuve"
        assert item.year == 2016

    @pytest.mark.asyncio
    async def test_both_missing_book_fails_before_enrichment(self, answers):
        gemini = _gemini_client_returning({"movieRecommendation": {
            "title": "Arrival", "explanation": "First contact.",
        }})

        with patch(f"{SERVICE}.enrich_candidates", new=AsyncMock()) as enrich:
            with pytest.raises(GenerationError):
                await generate_full_recommendation(
                    MagicMock(), "user-123", answers, "both", 27, gemini_client=gemini
                )

        enrich.assert_not_awaited()
