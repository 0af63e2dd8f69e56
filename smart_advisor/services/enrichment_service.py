"""
Enrichment fan-out.

Each candidate gets one catalog lookup (TMDB for movies, Google Books for
books) and the non-empty catalog fields are merged over it. Lookups for
sibling candidates run concurrently; results are reassembled by position.

A failed lookup degrades the candidate to placeholder art and rating instead
of failing the request: one catalog's outage must never cost the user the
whole recommendation.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import httpx

from smart_advisor.config import settings
from smart_advisor.schemas.recommendations import Candidate, EnrichedCandidate
from smart_advisor.services.catalog_service import (
    CatalogError,
    CatalogHit,
    CatalogMiss,
    CatalogRecord,
    CatalogResult,
    lookup_book,
    lookup_movie,
)
from smart_advisor.utils.constants import (
    PLACEHOLDER_BOOK_COVER_URL,
    PLACEHOLDER_BOOK_RATING,
    PLACEHOLDER_MOVIE_POSTER_URL,
    PLACEHOLDER_MOVIE_RATING,
)

logger = logging.getLogger(__name__)

_MERGED_FIELDS = ("poster_url", "rating", "year", "director", "author", "genres")


def placeholder_poster(candidate_type: str) -> str:
    if candidate_type == "movie":
        return PLACEHOLDER_MOVIE_POSTER_URL
    return PLACEHOLDER_BOOK_COVER_URL


def placeholder_rating(candidate_type: str) -> float:
    if candidate_type == "movie":
        return PLACEHOLDER_MOVIE_RATING
    return PLACEHOLDER_BOOK_RATING


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def merge_catalog_record(
    candidate: Candidate,
    record: CatalogRecord,
    content_type: str,
) -> EnrichedCandidate:
    """
    Merge a catalog record over a candidate.

    Catalog values win only when non-empty. Poster and rating fall back to the
    type's placeholder when neither side has one.
    """
    fields: Dict[str, Any] = candidate.model_dump()
    for name in _MERGED_FIELDS:
        catalog_value = getattr(record, name)
        if not _is_empty(catalog_value):
            fields[name] = catalog_value

    if _is_empty(fields.get("poster_url")):
        fields["poster_url"] = placeholder_poster(candidate.type)
    if _is_empty(fields.get("rating")):
        fields["rating"] = placeholder_rating(candidate.type)

    return EnrichedCandidate(**fields, content_type=content_type)


def degrade_candidate(
    candidate: Candidate,
    content_type: str,
    today: Optional[date] = None,
) -> EnrichedCandidate:
    """
    Pass a candidate through with placeholder poster and rating.

    The generator's own year is kept; the current year is used only when the
    generator gave none.
    """
    today = today or date.today()
    return EnrichedCandidate(
        **candidate.model_dump(exclude={"year"}),
        year=candidate.year if candidate.year is not None else today.year,
        poster_url=placeholder_poster(candidate.type),
        rating=placeholder_rating(candidate.type),
        content_type=content_type,
    )


async def _lookup(
    candidate: Candidate,
    client: Optional[httpx.AsyncClient],
) -> CatalogResult:
    if candidate.type == "movie":
        return await lookup_movie(candidate.title, client=client)
    return await lookup_book(candidate.title, author=candidate.author, client=client)


async def enrich_candidate(
    candidate: Candidate,
    content_type: str,
    client: Optional[httpx.AsyncClient] = None,
) -> EnrichedCandidate:
    """
    Enrich one candidate from its catalog. Never raises.

    Args:
        candidate: Raw candidate from the generator
        content_type: The requested content type, carried onto the result
        client: Optional shared httpx client

    Returns:
        EnrichedCandidate (merged on a catalog hit, degraded otherwise)
    """
    try:
        result = await _lookup(candidate, client)
        if isinstance(result, CatalogHit):
            logger.info(f"Catalog hit for {candidate.type} '{candidate.title}'")
            return merge_catalog_record(candidate, result.record, content_type)

        if isinstance(result, CatalogMiss):
            reason = "no catalog results"
        elif isinstance(result, CatalogError):
            reason = result.reason
        else:
            reason = f"unexpected catalog result {result!r}"
    except Exception as e:
        reason = f"enrichment failed: {e}"

    if settings.is_development():
        logger.debug(
            f"Enrichment degraded for {candidate.type} '{candidate.title}': {reason}"
        )
    return degrade_candidate(candidate, content_type)


async def enrich_candidates(
    candidates: Sequence[Candidate],
    content_type: str,
    client: Optional[httpx.AsyncClient] = None,
) -> List[EnrichedCandidate]:
    """
    Enrich all candidates concurrently.

    Output has the same length as the input and position i corresponds to
    candidates[i]. One candidate's failure never affects its siblings.
    """
    if not candidates:
        return []

    enriched = await asyncio.gather(
        *(enrich_candidate(c, content_type, client=client) for c in candidates)
    )
    return list(enriched)
