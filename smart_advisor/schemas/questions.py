"""
Pydantic schemas for questionnaire generation.
"""

from typing import List

from pydantic import BaseModel, Field

from smart_advisor.schemas.recommendations import ContentType
from smart_advisor.utils.constants import (
    DEFAULT_QUESTION_COUNT,
    MAX_QUESTION_COUNT,
    MAX_USER_AGE,
    MIN_QUESTION_COUNT,
    MIN_USER_AGE,
)


class QuestionsRequest(BaseModel):
    """Request a personalized questionnaire."""
    content_type: ContentType = Field(
        ...,
        description="Content the questionnaire should explore",
        examples=["both"]
    )
    user_age: int = Field(
        ...,
        ge=MIN_USER_AGE,
        le=MAX_USER_AGE,
        examples=[27]
    )
    question_count: int = Field(
        DEFAULT_QUESTION_COUNT,
        ge=MIN_QUESTION_COUNT,
        le=MAX_QUESTION_COUNT,
        description="Number of questions to generate"
    )


class Question(BaseModel):
    id: str
    text: str
    content_type: ContentType
    user_age_range: str = Field(
        ...,
        description="Decade bucket of the user's age",
        examples=["20-29"]
    )


class QuestionsResponse(BaseModel):
    questions: List[Question]
