"""
AI components for the Smart Advisor backend.

The generator is a single-shot Gemini workflow in JSON mode, not a
multi-agent setup:

1. Recommendation generation: questionnaire answers -> one movie and/or one
   book candidate (smart_advisor/services/generator_service.py)
2. Questionnaire generation: content type + age -> N questions

This package holds the prompts; the Gemini calls live in the service layer.
"""

from smart_advisor.agents.recommendation import (
    QUESTIONS_SYSTEM_PROMPT,
    RECOMMENDATION_SYSTEM_PROMPT,
    build_questions_user_prompt,
    build_recommendation_user_prompt,
)

__all__ = [
    "RECOMMENDATION_SYSTEM_PROMPT",
    "QUESTIONS_SYSTEM_PROMPT",
    "build_recommendation_user_prompt",
    "build_questions_user_prompt",
]
