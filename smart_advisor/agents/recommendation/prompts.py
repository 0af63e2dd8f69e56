"""
Recommendation System Prompt Templates

Contains the system prompts and user prompt builders for the generator
adapter (one movie and/or one book per questionnaire) and the
questionnaire generator.

Architecture:
- Pattern: Single-shot LLM call, JSON output
- Model: Gemini 2.5 Flash (settings.GEMINI_MODEL)
- Output: JSON via response_mime_type="application/json"

Prompt Engineering Pattern:
- Uses XML tags for structured content
- System prompt defines role only
- User prompt carries the task, the answers and the exact output shape
"""

from typing import List, Sequence

from smart_advisor.schemas.recommendations import Answer

# =============================================================================
# SYSTEM PROMPTS
# =============================================================================

RECOMMENDATION_SYSTEM_PROMPT = """You are Smart Advisor, a personalized movie and book recommendation engine.

<role>
You read a user's questionnaire answers and pick the single best movie and/or
book for them. You know film and literature across eras, genres and countries.
</role>

<guardrails>
- Recommendations MUST be age-appropriate for the stated user age
- Recommend only real, published titles; never invent a title, director or author
- Explanations speak directly to the user's stated preferences
</guardrails>

<output_format>
Always respond with valid JSON in the exact format requested.
No markdown code blocks, no explanatory text, only the JSON object.
</output_format>"""


QUESTIONS_SYSTEM_PROMPT = """You are a helpful assistant that generates personalized recommendation questions.

<output_format>
Always respond with valid JSON in the exact format requested.
No markdown code blocks, no explanatory text, only the JSON object.
</output_format>"""


_MOVIE_SHAPE = """"movieRecommendation": {
    "title": "Movie Title",
    "director": "Director Name",
    "year": 2023,
    "genres": ["Genre1", "Genre2"],
    "explanation": "Why this movie fits their preferences"
  }"""

_BOOK_SHAPE = """"bookRecommendation": {
    "title": "Book Title",
    "author": "Author Name",
    "year": 2023,
    "genres": ["Genre1", "Genre2"],
    "explanation": "Why this book fits their preferences"
  }"""


def format_answers(answers: Sequence[Answer]) -> str:
    """Render answers as 'Q1: ...' lines, including the question when known."""
    lines: List[str] = []
    for index, answer in enumerate(answers, start=1):
        if answer.question_text:
            lines.append(f"Q{index}: {answer.question_text}")
            lines.append(f"A{index}: {answer.answer_text.strip()}")
        else:
            lines.append(f"Q{index}: {answer.answer_text.strip()}")
    return "\n".join(lines)


def build_recommendation_user_prompt(
    answers: Sequence[Answer],
    content_type: str,
    user_age: int,
) -> str:
    """
    Build the user prompt for recommendation generation.

    Args:
        answers: Questionnaire answers
        content_type: "movie", "book" or "both"
        user_age: User age in years

    Returns:
        Formatted user prompt asking for exactly the requested recommendation(s)
    """
    if content_type == "both":
        wanted = "both 1 movie AND 1 book"
        shapes = [_MOVIE_SHAPE, _BOOK_SHAPE]
    elif content_type == "movie":
        wanted = "1 movie"
        shapes = [_MOVIE_SHAPE]
    else:
        wanted = "1 book"
        shapes = [_BOOK_SHAPE]

    output_shape = "{\n  " + ",\n  ".join(shapes) + "\n}"

    return f"""<task>
Based on these user answers, generate {content_type} recommendations for a {user_age}-year-old.
</task>

<answers>
{format_answers(answers)}
</answers>

<requirements>
- Generate {wanted}
- Consider the user's age ({user_age}) for appropriate content
- Base recommendations on their stated preferences
- Provide detailed explanations for why each recommendation fits
</requirements>

<output_schema>
{output_shape}
</output_schema>

Generate personalized recommendations now:"""


def build_questions_user_prompt(
    content_type: str,
    user_age: int,
    question_count: int,
) -> str:
    """Build the user prompt for questionnaire generation."""
    focus = "movies and books" if content_type == "both" else f"{content_type}s"
    example_subject = "movie or book" if content_type == "both" else content_type

    return f"""<task>
Generate exactly {question_count} personalized recommendation questions for a {user_age}-year-old user who wants {content_type} recommendations.
</task>

<requirements>
- Questions should be conversational and engaging
- Age-appropriate for {user_age} years old
- Focused on {focus} preferences
- Each question explores a different aspect (genres, themes, mood, recent favorites, specific preferences)
- Questions should encourage detailed responses
</requirements>

<examples>
- "What's your favorite genre and what draws you to it?"
- "Do you prefer happy endings or complex, thought-provoking conclusions?"
- "Tell me about a recent {example_subject} you absolutely loved and why"
</examples>

<output_schema>
{{"questions": [{{"id": "1", "text": "question text"}}, {{"id": "2", "text": "question text"}}]}}
</output_schema>

Generate {question_count} unique, varied questions now:"""
