"""
Recommendation System - Single-Shot LLM Architecture

This module contains the prompt templates for the Gemini-based generator
adapter and questionnaire generator.

The service layer is in:
- smart_advisor/services/generator_service.py

Prompt templates are in:
- smart_advisor/agents/recommendation/prompts.py
"""

from smart_advisor.agents.recommendation.prompts import (
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
