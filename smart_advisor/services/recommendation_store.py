"""
Recommendation persistence service.

Handles writing pipeline results to the Supabase `recommendations` table and
the history operations behind the account pages (listing with filters,
favorite toggle, delete, stats).

Rows store genres as a single ", "-joined `genre` string; rows are mapped
back to StoredRecommendation on the way out.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union, cast

from pydantic import ValidationError
from supabase import Client

from smart_advisor.schemas.recommendations import (
    EnrichedCandidate,
    StoredRecommendation,
    UserStatsResponse,
)
from smart_advisor.services.exceptions import PersistenceError
from smart_advisor.utils.constants import GENRE_SEPARATOR, RECOMMENDATIONS_TABLE

logger = logging.getLogger(__name__)


def _to_row(candidate: EnrichedCandidate, user_id: str) -> Dict[str, Any]:
    """Build the insert payload for one enriched candidate."""
    return {
        "user_id": user_id,
        "type": candidate.type,
        "title": candidate.title,
        "description": "",
        "explanation": candidate.explanation,
        "poster_url": candidate.poster_url or "",
        "genre": GENRE_SEPARATOR.join(candidate.genres),
        "rating": candidate.rating,
        "is_favorited": False,
        "content_type": candidate.content_type,
        "director": candidate.director,
        "author": candidate.author,
        "year": candidate.year,
    }


def _from_row(row: Dict[str, Any]) -> StoredRecommendation:
    """Map a stored row back to a StoredRecommendation."""
    genre = row.get("genre") or ""
    return StoredRecommendation(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        type=row["type"],
        title=row["title"],
        director=row.get("director"),
        author=row.get("author"),
        year=row.get("year"),
        genres=[g for g in genre.split(GENRE_SEPARATOR) if g],
        explanation=row.get("explanation") or "",
        poster_url=row.get("poster_url") or None,
        rating=row.get("rating"),
        content_type=row.get("content_type") or "both",
        is_favorited=bool(row.get("is_favorited")),
        created_at=row.get("created_at"),
        description=row.get("description"),
    )


async def save_recommendation(
    supabase_client: Client,
    user_id: str,
    candidate: EnrichedCandidate,
) -> Union[StoredRecommendation, EnrichedCandidate]:
    """
    Persist one enriched candidate, best effort.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: The authenticated user's ID
        candidate: Enriched candidate to store

    Returns:
        The StoredRecommendation confirmed by storage, or the unchanged
        EnrichedCandidate if the write failed. Never raises.

    Security:
        - RLS enforces user_id = auth.uid()
    """
    try:
        result = (
            supabase_client.table(RECOMMENDATIONS_TABLE)
            .insert(_to_row(candidate, user_id))
            .execute()
        )

        if not result.data:
            raise PersistenceError("Insert returned no row")

        stored = _from_row(cast(Dict[str, Any], result.data[0]))
        logger.info(f"Recommendation saved: id={stored.id}, type={stored.type}")
        return stored

    except Exception as e:
        error = e if isinstance(e, PersistenceError) else PersistenceError(str(e))
        logger.error(
            f"Failed to save {candidate.type} recommendation '{candidate.title}' "
            f"for user {user_id}: {error}"
        )
        return candidate


async def get_user_recommendations(
    supabase_client: Client,
    user_id: str,
    content_type: Optional[str] = None,
    is_favorited: Optional[bool] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    sort_by: str = "newest",
    limit: int = 20,
    offset: int = 0,
) -> List[StoredRecommendation]:
    """
    Fetch the user's recommendation history.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: The authenticated user's ID
        content_type: "movie" or "book" filters by type; "both"/None does not
        is_favorited: Only favorites (True) or non-favorites (False)
        start_date: Only rows created at or after this instant
        end_date: Only rows created at or before this instant
        sort_by: "newest" (default), "oldest" or "favorites_first"
        limit: Page size
        offset: Rows to skip

    Returns:
        List of StoredRecommendation (may be empty)
    """
    logger.debug(
        f"Fetching recommendations for user {user_id} "
        f"(content_type={content_type}, favorited={is_favorited}, "
        f"sort_by={sort_by}, limit={limit}, offset={offset})"
    )

    query = (
        supabase_client.table(RECOMMENDATIONS_TABLE)
        .select("*")
        .eq("user_id", user_id)
    )

    if content_type and content_type != "both":
        query = query.eq("type", content_type)

    if is_favorited is not None:
        query = query.eq("is_favorited", is_favorited)

    if start_date is not None:
        query = query.gte("created_at", start_date.isoformat())

    if end_date is not None:
        query = query.lte("created_at", end_date.isoformat())

    if sort_by == "oldest":
        query = query.order("created_at", desc=False)
    elif sort_by == "favorites_first":
        query = query.order("is_favorited", desc=True).order("created_at", desc=True)
    else:
        query = query.order("created_at", desc=True)

    result = query.range(offset, offset + limit - 1).execute()

    rows = cast(List[Dict[str, Any]], result.data or [])
    recommendations: List[StoredRecommendation] = []
    for row in rows:
        try:
            recommendations.append(_from_row(row))
        except (ValidationError, KeyError) as e:
            logger.warning(f"Skipping malformed recommendation row {row.get('id')}: {e}")

    logger.info(f"Found {len(recommendations)} recommendations for user {user_id}")

    return recommendations


async def get_recommendation_by_id(
    supabase_client: Client,
    user_id: str,
    recommendation_id: str,
) -> Optional[Dict[str, Any]]:
    """Fetch a single raw row, or None if it doesn't exist for this user."""
    result = (
        supabase_client.table(RECOMMENDATIONS_TABLE)
        .select("*")
        .eq("id", recommendation_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Recommendation {recommendation_id} not found for user {user_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


async def toggle_favorite(
    supabase_client: Client,
    user_id: str,
    recommendation_id: str,
) -> Optional[StoredRecommendation]:
    """
    Flip is_favorited on one recommendation.

    Returns:
        The updated recommendation, or None if not found

    Raises:
        Exception: If the update fails
    """
    current = await get_recommendation_by_id(supabase_client, user_id, recommendation_id)
    if current is None:
        return None

    new_value = not bool(current.get("is_favorited"))

    result = (
        supabase_client.table(RECOMMENDATIONS_TABLE)
        .update({"is_favorited": new_value})
        .eq("id", recommendation_id)
        .eq("user_id", user_id)
        .execute()
    )

    if not result.data:
        raise Exception(f"Failed to update recommendation {recommendation_id}")

    logger.info(
        f"Recommendation {recommendation_id} is_favorited={new_value} for user {user_id}"
    )
    return _from_row(cast(Dict[str, Any], result.data[0]))


async def delete_recommendation(
    supabase_client: Client,
    user_id: str,
    recommendation_id: str,
) -> bool:
    """
    Delete one recommendation.

    Returns:
        True if deleted, False if it did not exist for this user
    """
    current = await get_recommendation_by_id(supabase_client, user_id, recommendation_id)
    if current is None:
        return False

    (
        supabase_client.table(RECOMMENDATIONS_TABLE)
        .delete()
        .eq("id", recommendation_id)
        .eq("user_id", user_id)
        .execute()
    )

    logger.info(f"Recommendation {recommendation_id} deleted for user {user_id}")
    return True


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


async def get_user_stats(
    supabase_client: Client,
    user_id: str,
    now: Optional[datetime] = None,
) -> UserStatsResponse:
    """
    Aggregate counts over the user's history.

    this_month_count counts rows created on or after the first day of the
    current UTC month.
    """
    result = (
        supabase_client.table(RECOMMENDATIONS_TABLE)
        .select("type, is_favorited, created_at")
        .eq("user_id", user_id)
        .execute()
    )
    rows = cast(List[Dict[str, Any]], result.data or [])

    now = now or datetime.now(timezone.utc)
    start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    this_month = 0
    for row in rows:
        created_at = _parse_timestamp(row.get("created_at"))
        if created_at is not None and created_at >= start_of_month:
            this_month += 1

    stats = UserStatsResponse(
        total_recommendations=len(rows),
        favorite_count=sum(1 for r in rows if r.get("is_favorited")),
        movie_count=sum(1 for r in rows if r.get("type") == "movie"),
        book_count=sum(1 for r in rows if r.get("type") == "book"),
        this_month_count=this_month,
    )
    logger.info(f"Stats for user {user_id}: total={stats.total_recommendations}")
    return stats
