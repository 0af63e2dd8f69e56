"""
Recommendation Service - generation, enrichment and persistence pipeline

This service implements the full recommendation flow behind
POST /recommendations:

1. Generator adapter: Gemini turns questionnaire answers into 1-2 raw
   candidates (generator_service)
2. Enrichment fan-out: each candidate gets one catalog lookup, concurrently
   (enrichment_service)
3. Persistence sink: each enriched candidate is written as a row owned by
   the user, best effort (recommendation_store)

The retry wrapper reruns all three stages from scratch on any failure, with
linear backoff (tenacity wait_incrementing): the wait before attempt n
(0-indexed) is RETRY_DELAY_MS * n. A retry may therefore return different
candidates.

Failure policy:
- Catalog failures degrade a candidate to placeholders, never propagate
- Storage failures return the unsaved candidate, never propagate
- Generation failures propagate to the retry wrapper
- Exhausted retries raise RetryExhausted
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

import httpx
from google import genai
from supabase import Client
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    stop_after_attempt,
    wait_incrementing,
)

from smart_advisor.config import settings
from smart_advisor.schemas.recommendations import Answer, RecommendationItem
from smart_advisor.services.enrichment_service import enrich_candidates
from smart_advisor.services.exceptions import RetryExhausted
from smart_advisor.services.generator_service import generate_candidates
from smart_advisor.services.recommendation_store import save_recommendation

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a failed attempt before tenacity sleeps."""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay_ms = int(retry_state.next_action.sleep * 1000) if retry_state.next_action else 0
    logger.error(f"Attempt {retry_state.attempt_number} failed: {error}")
    logger.info(f"Retrying in {delay_ms}ms...")


async def generate_full_recommendation(
    supabase_client: Client,
    user_id: str,
    answers: Sequence[Answer],
    content_type: str,
    user_age: int,
    http_client: Optional[httpx.AsyncClient] = None,
    gemini_client: Optional[genai.Client] = None,
) -> List[RecommendationItem]:
    """
    Run one attempt of the pipeline: generate, enrich, persist.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: User UUID from auth token
        answers: Questionnaire answers
        content_type: "movie", "book" or "both"
        user_age: User age in years
        http_client: Optional shared httpx client for catalog lookups
        gemini_client: Optional Gemini client for generation

    Returns:
        One item per requested type; each is a StoredRecommendation, or the
        EnrichedCandidate when its write failed

    Raises:
        GenerationError: From the generator adapter
    """
    logger.info(
        f"Generating recommendations for user_id={user_id}, "
        f"content_type={content_type}, user_age={user_age}"
    )

    candidates = await generate_candidates(
        answers, content_type, user_age, client=gemini_client
    )

    enriched = await enrich_candidates(candidates, content_type, client=http_client)

    results: List[RecommendationItem] = []
    for candidate in enriched:
        results.append(await save_recommendation(supabase_client, user_id, candidate))

    logger.info(f"Total recommendations generated: {len(results)}")
    return results


async def retry_recommendation(
    supabase_client: Client,
    user_id: str,
    answers: Sequence[Answer],
    content_type: str,
    user_age: int,
    max_retries: Optional[int] = None,
    retry_delay_ms: Optional[int] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    gemini_client: Optional[genai.Client] = None,
    sleep: Sleep = asyncio.sleep,
) -> List[RecommendationItem]:
    """
    Run the pipeline with linear-backoff retries.

    Attempts are 0-indexed; after attempt n fails and n < max_retries the
    wrapper waits retry_delay_ms * (n + 1) ms and reruns everything.

    Args:
        max_retries: Retries after the first attempt (settings default: 2)
        retry_delay_ms: Backoff unit in ms (settings default: 1000)
        sleep: Awaitable sleep taking seconds (injectable for tests)

    Returns:
        The result of the first successful attempt

    Raises:
        RetryExhausted: All max_retries + 1 attempts failed; the last error
            is chained as __cause__
    """
    if max_retries is None:
        max_retries = settings.RECOMMENDATION_MAX_RETRIES
    if retry_delay_ms is None:
        retry_delay_ms = settings.RECOMMENDATION_RETRY_DELAY_MS

    total_attempts = max_retries + 1
    delay_s = retry_delay_ms / 1000

    retrying = AsyncRetrying(
        stop=stop_after_attempt(total_attempts),
        wait=wait_incrementing(start=delay_s, increment=delay_s),
        sleep=sleep,
        before_sleep=_log_retry,
    )

    try:
        async for attempt in retrying:
            with attempt:
                logger.info(
                    f"Recommendation generation attempt "
                    f"{attempt.retry_state.attempt_number} of {total_attempts}"
                )
                return await generate_full_recommendation(
                    supabase_client=supabase_client,
                    user_id=user_id,
                    answers=answers,
                    content_type=content_type,
                    user_age=user_age,
                    http_client=http_client,
                    gemini_client=gemini_client,
                )
    except RetryError as e:
        last_error = e.last_attempt.exception()
        logger.error(f"Attempt {total_attempts} failed: {last_error}")
        raise RetryExhausted(total_attempts) from last_error

    # AsyncRetrying either returns from the block above or raises RetryError
    raise RetryExhausted(total_attempts)
