"""
Generator Service - Gemini single-shot JSON generation

Turns a completed questionnaire into raw recommendation candidates, and
produces the questionnaire itself.

Architecture:
- Pattern: Single LLM call, JSON output (response_mime_type)
- Model: settings.GEMINI_MODEL (Gemini 2.5 Flash by default)
- API: Google Gen AI Python SDK (google-genai)
- No retry here: the pipeline's retry wrapper reruns the whole flow

Every failure (client not configured, API error, empty or unparseable
response, missing recommendation for a requested type) raises
GenerationError.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from google import genai
from google.genai import types

from smart_advisor.agents.recommendation.prompts import (
    QUESTIONS_SYSTEM_PROMPT,
    RECOMMENDATION_SYSTEM_PROMPT,
    build_questions_user_prompt,
    build_recommendation_user_prompt,
)
from smart_advisor.config import settings
from smart_advisor.schemas.questions import Question
from smart_advisor.schemas.recommendations import Answer, Candidate
from smart_advisor.services.exceptions import GenerationError
from smart_advisor.utils.constants import (
    MAX_QUESTION_COUNT,
    MAX_USER_AGE,
    MIN_QUESTION_COUNT,
    MIN_USER_AGE,
)

logger = logging.getLogger(__name__)

_gemini_client: Optional[genai.Client] = None

# Payload key per candidate type
_PAYLOAD_KEYS = {
    "movie": "movieRecommendation",
    "book": "bookRecommendation",
}


def _get_gemini_client() -> Optional[genai.Client]:
    """
    Lazy initialization of the Gemini client.

    Returns None when GOOGLE_API_KEY is not configured.
    """
    global _gemini_client

    if _gemini_client is not None:
        return _gemini_client

    if not settings.GOOGLE_API_KEY:
        logger.warning(
            "GOOGLE_API_KEY not configured. Recommendation generation will not work. "
            "Please set GOOGLE_API_KEY in your .env file."
        )
        return None

    _gemini_client = genai.Client(api_key=settings.GOOGLE_API_KEY)
    logger.info("Gemini client initialized successfully")
    return _gemini_client


def _requested_types(content_type: str) -> List[str]:
    if content_type == "both":
        return ["movie", "book"]
    if content_type in _PAYLOAD_KEYS:
        return [content_type]
    raise GenerationError(f"Invalid content type: {content_type!r}")


def _parse_json_payload(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of model text.

    JSON mode normally returns a bare object, but code fences still show up
    occasionally.
    """
    content = text.strip()

    fence_match = re.search(r'```(?:json)?\s*([\s\S]*?)```', content, re.IGNORECASE)
    if fence_match:
        content = fence_match.group(1).strip()

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON response: {e}")
        raise GenerationError("Invalid JSON response from recommendation model") from e

    if not isinstance(data, dict):
        raise GenerationError("Recommendation model returned a non-object JSON payload")

    return data


def _coerce_year(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = re.match(r'^\s*(\d{4})', str(value))
    return int(match.group(1)) if match else None


def _coerce_genres(value: Any) -> List[str]:
    if isinstance(value, str):
        return [g.strip() for g in value.split(",") if g.strip()]
    if isinstance(value, list):
        return [str(g).strip() for g in value if str(g).strip()]
    return []


def _build_candidate(candidate_type: str, raw: Any) -> Candidate:
    """Validate one payload entry and build a Candidate from it."""
    if not isinstance(raw, dict):
        raise GenerationError(f"Missing required {candidate_type} recommendation")

    title = str(raw.get("title") or "").strip()
    explanation = str(raw.get("explanation") or "").strip()
    if not title or not explanation:
        raise GenerationError(
            f"{candidate_type.capitalize()} recommendation is missing title or explanation"
        )

    person_field = "director" if candidate_type == "movie" else "author"
    person = str(raw.get(person_field) or "").strip() or None

    return Candidate(
        type=candidate_type,  # type: ignore[arg-type]
        title=title,
        explanation=explanation,
        year=_coerce_year(raw.get("year")),
        genres=_coerce_genres(raw.get("genres")),
        **{person_field: person},
    )


def _response_text(response: Any) -> str:
    """Extract text from a generate_content response, preferring parts."""
    if not response.candidates or not response.candidates[0].content:
        return ""

    candidate = response.candidates[0]
    if candidate.content.parts:
        for part in candidate.content.parts:
            if getattr(part, "text", None):
                return part.text

    return response.text or ""


def _call_gemini(
    client: Optional[genai.Client],
    system_prompt: str,
    user_prompt: str,
    temperature: float,
    max_output_tokens: int,
) -> str:
    if client is None:
        raise GenerationError("Recommendation service is not configured")

    config = types.GenerateContentConfig(
        system_instruction=system_prompt,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        response_mime_type="application/json",
    )

    try:
        response = client.models.generate_content(
            model=settings.GEMINI_MODEL,
            contents=user_prompt,
            config=config,
        )
    except Exception as e:
        logger.error(f"Error calling Gemini API: {e}")
        raise GenerationError(f"Recommendation model unreachable: {e}") from e

    text = _response_text(response)
    if not text:
        logger.error("Empty response from Gemini API")
        raise GenerationError("No response content from recommendation model")

    return text


async def generate_candidates(
    answers: Sequence[Answer],
    content_type: str,
    user_age: int,
    client: Optional[genai.Client] = None,
) -> List[Candidate]:
    """
    Generate raw recommendation candidates from questionnaire answers.

    Args:
        answers: Non-empty questionnaire answers
        content_type: "movie", "book" or "both"
        user_age: User age in years
        client: Optional Gemini client (defaults to the lazily created one)

    Returns:
        One Candidate per requested type, movie first when both are requested

    Raises:
        GenerationError: Upstream unreachable, not configured, or the payload
            lacks a requested recommendation or its required fields
    """
    wanted = _requested_types(content_type)
    if not answers:
        raise GenerationError("Answers are required and must be a non-empty list")

    logger.info(
        f"Generating recommendations: content_type={content_type}, "
        f"user_age={user_age}, answers={len(answers)}"
    )

    text = _call_gemini(
        client or _get_gemini_client(),
        RECOMMENDATION_SYSTEM_PROMPT,
        build_recommendation_user_prompt(answers, content_type, user_age),
        temperature=0.8,
        max_output_tokens=1500,
    )
    payload = _parse_json_payload(text)

    missing = [t for t in wanted if not payload.get(_PAYLOAD_KEYS[t])]
    if missing:
        logger.error(f"Generator payload missing recommendations for: {missing}")
        raise GenerationError(
            f"Missing required {' and '.join(missing)} recommendation"
        )

    candidates = [_build_candidate(t, payload[_PAYLOAD_KEYS[t]]) for t in wanted]
    logger.info(f"Generated {len(candidates)} candidates: {[c.title for c in candidates]}")
    return candidates


def age_range_label(user_age: int) -> str:
    """Decade bucket for an age, e.g. 27 -> '20-29'."""
    low = (user_age // 10) * 10
    return f"{low}-{low + 9}"


async def generate_questions(
    content_type: str,
    user_age: int,
    question_count: int = 5,
    client: Optional[genai.Client] = None,
) -> List[Question]:
    """
    Generate a personalized questionnaire.

    Raises:
        ValueError: question_count or user_age out of range
        GenerationError: Upstream unreachable or malformed payload
    """
    _requested_types(content_type)
    if not MIN_QUESTION_COUNT <= question_count <= MAX_QUESTION_COUNT:
        raise ValueError(
            f"Invalid question count. Must be between {MIN_QUESTION_COUNT} and {MAX_QUESTION_COUNT}"
        )
    if not MIN_USER_AGE <= user_age <= MAX_USER_AGE:
        raise ValueError(f"Invalid age. Must be between {MIN_USER_AGE} and {MAX_USER_AGE}")

    logger.info(
        f"Generating {question_count} questions: content_type={content_type}, user_age={user_age}"
    )

    text = _call_gemini(
        client or _get_gemini_client(),
        QUESTIONS_SYSTEM_PROMPT,
        build_questions_user_prompt(content_type, user_age, question_count),
        temperature=0.7,
        max_output_tokens=1000,
    )
    payload = _parse_json_payload(text)

    raw_questions = payload.get("questions")
    if not isinstance(raw_questions, list) or not raw_questions:
        raise GenerationError("Invalid response format - missing questions array")

    age_range = age_range_label(user_age)
    questions: List[Question] = []
    for index, raw in enumerate(raw_questions):
        text_value = str(raw.get("text") or "").strip() if isinstance(raw, dict) else ""
        if not text_value:
            logger.warning(f"Skipping question {index} without text")
            continue
        questions.append(Question(
            id=str(raw.get("id") or f"q{index + 1}"),
            text=text_value,
            content_type=content_type,  # type: ignore[arg-type]
            user_age_range=age_range,
        ))

    if not questions:
        raise GenerationError("Recommendation model returned no usable questions")

    logger.info(f"Generated {len(questions)} questions")
    return questions
