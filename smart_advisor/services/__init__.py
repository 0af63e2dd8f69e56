"""
Service layer for the Smart Advisor backend.

Contains the recommendation pipeline and the logic around it:
- Generator adapter (Gemini) for candidates and questionnaires
- Catalog lookups (TMDB, Google Books) and the enrichment fan-out
- Best-effort persistence and history queries (Supabase, under RLS)
- Retry wrapper and the duplicate-session guard

Services act as the glue between routes (HTTP layer) and external systems.
"""

from .catalog_service import (
    CatalogError,
    CatalogHit,
    CatalogMiss,
    CatalogRecord,
    lookup_book,
    lookup_movie,
)
from .enrichment_service import (
    degrade_candidate,
    enrich_candidate,
    enrich_candidates,
    merge_catalog_record,
)
from .exceptions import (
    GenerationError,
    PersistenceError,
    RecommendationPipelineError,
    RetryExhausted,
)
from .generator_service import generate_candidates, generate_questions
from .integration_service import check_integrations
from .recommendation_service import generate_full_recommendation, retry_recommendation
from .recommendation_store import (
    delete_recommendation,
    get_recommendation_by_id,
    get_user_recommendations,
    get_user_stats,
    save_recommendation,
    toggle_favorite,
)
from .session_guard import SessionGuard, SessionGuardRegistry, derive_session_key

__all__ = [
    # Generator
    "generate_candidates",
    "generate_questions",
    # Catalogs / enrichment
    "CatalogRecord",
    "CatalogHit",
    "CatalogMiss",
    "CatalogError",
    "lookup_movie",
    "lookup_book",
    "merge_catalog_record",
    "degrade_candidate",
    "enrich_candidate",
    "enrich_candidates",
    # Pipeline
    "generate_full_recommendation",
    "retry_recommendation",
    # Storage
    "save_recommendation",
    "get_user_recommendations",
    "get_recommendation_by_id",
    "toggle_favorite",
    "delete_recommendation",
    "get_user_stats",
    # Session guard
    "derive_session_key",
    "SessionGuard",
    "SessionGuardRegistry",
    # Integrations
    "check_integrations",
    # Errors
    "RecommendationPipelineError",
    "GenerationError",
    "PersistenceError",
    "RetryExhausted",
]
