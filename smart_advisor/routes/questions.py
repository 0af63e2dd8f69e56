"""
FastAPI route for questionnaire generation.

Endpoints:
- POST /questions: Generate a personalized questionnaire
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from smart_advisor.auth.dependencies import AuthenticatedUser, get_authenticated_user
from smart_advisor.schemas.questions import QuestionsRequest, QuestionsResponse
from smart_advisor.services.exceptions import GenerationError
from smart_advisor.services.generator_service import generate_questions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/questions", tags=["questions"])


@router.post(
    "",
    response_model=QuestionsResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate questionnaire",
    description="""
    Generates a personalized questionnaire for the requested content type.

    **Authentication:** Required (Bearer token)

    **Frontend Flow:**
    1. User picks movie / book / both and a question count (3-15)
    2. POST /questions
    3. User answers the questions
    4. POST /recommendations with the answers
    """
)
async def generate_questions_endpoint(
    request: QuestionsRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> QuestionsResponse:
    logger.info(
        f"POST /questions called by user_id={auth_user.user_id}, "
        f"content_type={request.content_type}, count={request.question_count}"
    )

    try:
        questions = await generate_questions(
            content_type=request.content_type,
            user_age=request.user_age,
            question_count=request.question_count,
        )
    except GenerationError as e:
        logger.error(f"Question generation failed for user {auth_user.user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "generation_error",
                "details": "Failed to generate questions. Please try again."
            }
        )

    return QuestionsResponse(questions=questions)
