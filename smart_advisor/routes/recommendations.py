"""
FastAPI routes for recommendation generation and history.

All endpoints require authentication via Supabase Auth.

Endpoints:
- POST /recommendations: Run the pipeline for a completed questionnaire
- POST /recommendations/retry: Run it again after a failure (no duplicate check)
- GET /recommendations: History with filters, sort and pagination
- GET /recommendations/stats: Per-user counts
- PATCH /recommendations/{recommendation_id}/favorite: Toggle favorite
- DELETE /recommendations/{recommendation_id}: Delete one recommendation
"""

import logging
from datetime import datetime
from typing import Annotated, List, Optional, Sequence

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status

from smart_advisor.auth.dependencies import AuthenticatedUser, get_authenticated_user
from smart_advisor.db.client import get_supabase_client
from smart_advisor.schemas.recommendations import (
    Answer,
    ContentType,
    FavoriteToggleResponse,
    GenerateRecommendationsRequest,
    GenerateRecommendationsResponse,
    RecommendationDeleteResponse,
    RecommendationItem,
    RecommendationListResponse,
    RecommendationResult,
    RetryRecommendationsRequest,
    SortBy,
    UserStatsResponse,
)
from smart_advisor.services.exceptions import RetryExhausted
from smart_advisor.services.recommendation_service import retry_recommendation
from smart_advisor.services.recommendation_store import (
    delete_recommendation,
    get_user_recommendations,
    get_user_stats,
    toggle_favorite,
)
from smart_advisor.services.session_guard import SessionGuardRegistry, derive_session_key

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/recommendations",
    tags=["recommendations"]
)


def get_session_guards(request: Request) -> SessionGuardRegistry:
    """Per-process guard registry created in main.py."""
    return request.app.state.session_guards


async def _run_pipeline(
    auth_user: AuthenticatedUser,
    answers: Sequence[Answer],
    content_type: str,
    user_age: int,
) -> List[RecommendationItem]:
    """Run the retrying pipeline, mapping exhaustion to 502."""
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        return await retry_recommendation(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            answers=answers,
            content_type=content_type,
            user_age=user_age,
        )
    except RetryExhausted as e:
        logger.error(
            f"Recommendation generation exhausted retries for user {auth_user.user_id}: "
            f"{e} (last error: {e.__cause__})"
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "generation_failed",
                "details": "We couldn't generate recommendations right now. "
                           "Try again or retake the questionnaire.",
                "retry_allowed": True,
            }
        )


def _to_response(items: List[RecommendationItem], session_key: str) -> GenerateRecommendationsResponse:
    return GenerateRecommendationsResponse(
        recommendations=[RecommendationResult.from_item(item) for item in items],
        session_key=session_key,
    )


# ============================================================================
# GENERATION
# ============================================================================

@router.post(
    "",
    response_model=GenerateRecommendationsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate recommendations",
    description="""
    Generates one movie and/or one book recommendation from questionnaire answers.

    **Authentication:** Required (Bearer token)

    **Frontend Flow:**
    1. User completes the questionnaire
    2. POST /recommendations with answers, content_type and user_age
    3. Receive one of:
       - 201 OK: recommendations with poster/cover art and rating
       - 409 duplicate_session: these answers were already used recently;
         ask the user, then resubmit with confirm_duplicate=true
       - 502 generation_failed: offer "Try again" (POST /recommendations/retry)
         or "Retake the questionnaire"

    **Pipeline:**
    Gemini generation -> catalog enrichment (TMDB / Google Books) -> storage,
    retried as a whole up to 3 attempts with linear backoff.
    """
)
async def generate_recommendations_endpoint(
    request: GenerateRecommendationsRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    session_guards: Annotated[SessionGuardRegistry, Depends(get_session_guards)],
) -> GenerateRecommendationsResponse:
    logger.info(
        f"POST /recommendations called by user_id={auth_user.user_id}, "
        f"content_type={request.content_type}, answers={len(request.answers)}"
    )

    session_key = derive_session_key(request.answers, request.content_type, auth_user.user_id)
    guard = session_guards.for_user(auth_user.user_id)

    already_generated = guard.check_and_record(session_key)
    if already_generated and not request.confirm_duplicate:
        logger.info(f"Duplicate session for user {auth_user.user_id}; asking for confirmation")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "duplicate_session",
                "details": "Recommendations were already generated for these answers. "
                           "Resubmit with confirm_duplicate=true to generate again.",
            }
        )

    try:
        items = await _run_pipeline(
            auth_user, request.answers, request.content_type, request.user_age
        )
    except HTTPException:
        # Let the user resubmit the same answers after a failure
        if not already_generated:
            guard.forget(session_key)
        raise

    logger.info(f"Returning {len(items)} recommendations")
    return _to_response(items, session_key)


@router.post(
    "/retry",
    response_model=GenerateRecommendationsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Retry recommendation generation",
    description="""
    Reruns the pipeline after a failed attempt.

    **Authentication:** Required (Bearer token)

    **Technical Behavior:**
    - Same pipeline as POST /recommendations
    - The duplicate-session guard is not consulted
    """
)
async def retry_recommendations_endpoint(
    request: RetryRecommendationsRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    session_guards: Annotated[SessionGuardRegistry, Depends(get_session_guards)],
) -> GenerateRecommendationsResponse:
    logger.info(f"POST /recommendations/retry called by user_id={auth_user.user_id}")

    session_key = derive_session_key(request.answers, request.content_type, auth_user.user_id)

    items = await _run_pipeline(
        auth_user, request.answers, request.content_type, request.user_age
    )
    session_guards.for_user(auth_user.user_id).record(session_key)

    logger.info(f"Returning {len(items)} recommendations")
    return _to_response(items, session_key)


# ============================================================================
# HISTORY
# ============================================================================

@router.get(
    "",
    response_model=RecommendationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List recommendation history",
    description="""
    Retrieve the authenticated user's saved recommendations.

    - content_type=movie|book filters by type (both = no filter)
    - is_favorited filters favorites / non-favorites
    - start_date / end_date bound created_at (ISO 8601)
    - sort_by: newest (default), oldest, favorites_first
    - limit / offset paginate

    Security:
    - RLS ensures users only see their own recommendations
    """
)
async def list_recommendations(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    content_type: Optional[ContentType] = Query(None, description="movie, book or both"),
    is_favorited: Optional[bool] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    sort_by: SortBy = Query("newest"),
    limit: int = Query(20, ge=1, le=100, description="Maximum number of recommendations to return"),
    offset: int = Query(0, ge=0, description="Number of recommendations to skip for pagination"),
) -> RecommendationListResponse:
    logger.info(
        f"Listing recommendations for user {auth_user.user_id} "
        f"(limit={limit}, offset={offset}, sort_by={sort_by})"
    )

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        recommendations = await get_user_recommendations(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            content_type=content_type,
            is_favorited=is_favorited,
            start_date=start_date,
            end_date=end_date,
            sort_by=sort_by,
            limit=limit,
            offset=offset,
        )
    except Exception as e:
        logger.error(f"Failed to list recommendations for user {auth_user.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "fetch_error",
                "details": "Failed to retrieve recommendations from database"
            }
        )

    return RecommendationListResponse(
        recommendations=recommendations,
        count=len(recommendations),
        limit=limit,
        offset=offset,
    )


@router.get(
    "/stats",
    response_model=UserStatsResponse,
    status_code=status.HTTP_200_OK,
    summary="Recommendation statistics",
)
async def recommendation_stats(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
) -> UserStatsResponse:
    """Totals, favorites, per-type and this-month counts."""
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        return await get_user_stats(supabase_client, auth_user.user_id)
    except Exception as e:
        logger.error(f"Failed to compute stats for user {auth_user.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "fetch_error",
                "details": "Failed to retrieve user statistics"
            }
        )


@router.patch(
    "/{recommendation_id}/favorite",
    response_model=FavoriteToggleResponse,
    status_code=status.HTTP_200_OK,
    summary="Toggle favorite",
)
async def toggle_favorite_endpoint(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    recommendation_id: str = Path(..., description="Recommendation UUID"),
) -> FavoriteToggleResponse:
    """Flip is_favorited on one of the user's recommendations."""
    logger.info(f"Toggling favorite on {recommendation_id} for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        updated = await toggle_favorite(supabase_client, auth_user.user_id, recommendation_id)
    except Exception as e:
        logger.error(f"Failed to toggle favorite on {recommendation_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "update_error",
                "details": "Failed to update favorite status"
            }
        )

    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "not_found",
                "details": f"Recommendation {recommendation_id} not found"
            }
        )

    return FavoriteToggleResponse(recommendation=updated)


@router.delete(
    "/{recommendation_id}",
    response_model=RecommendationDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete recommendation",
)
async def delete_recommendation_endpoint(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    recommendation_id: str = Path(..., description="Recommendation UUID"),
) -> RecommendationDeleteResponse:
    logger.info(f"Deleting recommendation {recommendation_id} for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        deleted = await delete_recommendation(supabase_client, auth_user.user_id, recommendation_id)
    except Exception as e:
        logger.error(f"Failed to delete recommendation {recommendation_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "delete_error",
                "details": "Failed to delete recommendation"
            }
        )

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "not_found",
                "details": f"Recommendation {recommendation_id} not found"
            }
        )

    return RecommendationDeleteResponse(id=recommendation_id)
