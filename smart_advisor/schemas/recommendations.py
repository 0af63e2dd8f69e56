"""
Pydantic schemas for the recommendation pipeline and history endpoints.

Candidate -> EnrichedCandidate -> StoredRecommendation mirrors the three
pipeline stages: what the generator produced, what the catalogs added, and
what storage confirmed.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from smart_advisor.utils.constants import MAX_USER_AGE, MIN_USER_AGE

ContentType = Literal["movie", "book", "both"]
CandidateType = Literal["movie", "book"]
SortBy = Literal["newest", "oldest", "favorites_first"]


# ============================================================================
# QUESTIONNAIRE INPUT
# ============================================================================

class Answer(BaseModel):
    """A single questionnaire answer."""
    question_id: Optional[str] = Field(
        None,
        description="Identifier of the answered question",
        examples=["q1"]
    )
    question_text: Optional[str] = Field(
        None,
        description="The question as shown to the user",
        max_length=1000
    )
    answer_text: str = Field(
        ...,
        description="Free-text answer; must not be blank",
        min_length=1,
        max_length=2000,
        examples=["I love slow-burn science fiction with a big twist"]
    )

    @field_validator("answer_text")
    @classmethod
    def answer_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("answer_text must not be blank")
        return v


# ============================================================================
# PIPELINE MODELS
# ============================================================================

class Candidate(BaseModel):
    """
    A raw recommendation as produced by the generator.

    Immutable once produced; never persisted directly.
    """
    model_config = ConfigDict(frozen=True)

    type: CandidateType
    title: str = Field(..., min_length=1)
    director: Optional[str] = None
    author: Optional[str] = None
    year: Optional[int] = None
    genres: List[str] = Field(default_factory=list)
    explanation: str = Field(..., min_length=1)


class EnrichedCandidate(Candidate):
    """
    A candidate after catalog enrichment.

    Every Candidate field survives enrichment with the same or a
    catalog-refined value; catalog data never overwrites with empties.
    """
    poster_url: Optional[str] = None
    rating: Optional[float] = None
    content_type: ContentType = "both"


class StoredRecommendation(EnrichedCandidate):
    """An enriched candidate as confirmed by storage."""
    id: str
    user_id: str
    is_favorited: bool = False
    created_at: Optional[datetime] = None
    description: Optional[str] = None


# Pipeline output item: persisted row, or the enriched value when the write failed
RecommendationItem = Union[StoredRecommendation, EnrichedCandidate]


# ============================================================================
# REQUEST MODELS
# ============================================================================

class GenerateRecommendationsRequest(BaseModel):
    """
    Request to generate recommendations from a completed questionnaire.

    Frontend scenarios:
    - First submission: confirm_duplicate omitted
    - Same answers submitted again: API answers 409 duplicate_session;
      the UI asks the user and resubmits with confirm_duplicate=true
    """
    answers: List[Answer] = Field(
        ...,
        description="Questionnaire answers (at least one)",
        min_length=1
    )
    content_type: ContentType = Field(
        ...,
        description="Which recommendations to generate",
        examples=["movie", "book", "both"]
    )
    user_age: int = Field(
        ...,
        description="User age, used for age-appropriate picks",
        ge=MIN_USER_AGE,
        le=MAX_USER_AGE,
        examples=[27]
    )
    confirm_duplicate: bool = Field(
        False,
        description="Generate even if these answers were already used recently"
    )


class RetryRecommendationsRequest(BaseModel):
    """
    Request to retry generation after a failure.

    Same payload as the initial request; the duplicate-session guard is
    not consulted because the user explicitly asked for another run.
    """
    answers: List[Answer] = Field(..., min_length=1)
    content_type: ContentType
    user_age: int = Field(..., ge=MIN_USER_AGE, le=MAX_USER_AGE)


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class RecommendationResult(EnrichedCandidate):
    """
    One pipeline result as returned to the client.

    persisted=False means storage rejected the write: the item is shown for
    this session but will be absent from history.
    """
    id: Optional[str] = None
    user_id: Optional[str] = None
    is_favorited: bool = False
    created_at: Optional[datetime] = None
    description: Optional[str] = None
    persisted: bool

    @classmethod
    def from_item(cls, item: RecommendationItem) -> "RecommendationResult":
        return cls(
            **item.model_dump(),
            persisted=isinstance(item, StoredRecommendation)
        )


class GenerateRecommendationsResponse(BaseModel):
    """Successful pipeline run."""
    status: Literal["OK"] = "OK"
    recommendations: List[RecommendationResult] = Field(
        ...,
        description="One item per requested type (2 when content_type is both)",
        min_length=1,
        max_length=2
    )
    session_key: str = Field(
        ...,
        description="Derived questionnaire session identity"
    )


class RecommendationListResponse(BaseModel):
    """Paginated recommendation history."""
    recommendations: List[StoredRecommendation]
    count: int
    limit: int
    offset: int


class FavoriteToggleResponse(BaseModel):
    status: Literal["UPDATED"] = "UPDATED"
    recommendation: StoredRecommendation


class RecommendationDeleteResponse(BaseModel):
    status: Literal["DELETED"] = "DELETED"
    id: str
    message: str = "Recommendation deleted successfully"


class UserStatsResponse(BaseModel):
    """Aggregate counts over the user's recommendation history."""
    total_recommendations: int = 0
    favorite_count: int = 0
    movie_count: int = 0
    book_count: int = 0
    this_month_count: int = 0
