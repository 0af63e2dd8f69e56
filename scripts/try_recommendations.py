#!/usr/bin/env python3
"""
Recommendation Pipeline Try-Out Script

Runs the full pipeline (Gemini generation -> TMDB / Google Books enrichment
-> storage) locally, without the mobile app or a real Supabase project.
Storage is a mock client, so every item comes back as persisted with a fake
id unless --fail-storage is passed.

Usage:
    python scripts/try_recommendations.py
    python scripts/try_recommendations.py --type movie --age 34 \\
        --answer "I love heist movies" --answer "Nothing too violent"
    python scripts/try_recommendations.py --questions --type book --count 5

Needs GOOGLE_API_KEY; TMDB_API_KEY and GOOGLE_BOOKS_API_KEY are optional
(without them items degrade to placeholder art and ratings).
"""

import argparse
import asyncio
import json
import logging
import os
import sys
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from smart_advisor.schemas.recommendations import Answer, RecommendationResult
from smart_advisor.services.exceptions import GenerationError, RetryExhausted
from smart_advisor.services.generator_service import generate_questions
from smart_advisor.services.recommendation_service import retry_recommendation
from smart_advisor.services.session_guard import derive_session_key


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_ANSWERS = [
    "I love slow-burn science fiction with a big idea at its core",
    "Recently loved Arrival and The Left Hand of Darkness",
    "Thoughtful endings over action set pieces",
]


def create_mock_supabase_client(fail: bool = False) -> MagicMock:
    """
    Create a mock Supabase client that echoes inserted rows back.

    With fail=True every insert raises, exercising the unsaved-item path.
    """
    mock_client = MagicMock()

    def insert(row):
        insert_query = MagicMock()
        if fail:
            insert_query.execute.side_effect = Exception("mock storage unavailable")
        else:
            stored = {
                **row,
                "id": str(uuid.uuid4()),
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            insert_query.execute.return_value = MagicMock(data=[stored])
        return insert_query

    mock_client.table.return_value.insert.side_effect = insert
    return mock_client


def print_result(result: RecommendationResult) -> None:
    print(f"\n  [{result.type.upper()}] {result.title} ({result.year})")
    person = result.director if result.type == "movie" else result.author
    if person:
        print(f"    by {person}")
    print(f"    genres:    {', '.join(result.genres) or '-'}")
    print(f"    rating:    {result.rating}")
    print(f"    poster:    {result.poster_url}")
    print(f"    persisted: {result.persisted} (id={result.id})")
    print(f"    why:       {result.explanation}")


async def run_recommendations(
    answers: list[str],
    content_type: str,
    user_age: int,
    fail_storage: bool = False,
    as_json: bool = False,
) -> None:
    user_id = "local-test-user"
    parsed = [Answer(answer_text=a) for a in answers]

    print("=" * 60)
    print(f"Content type: {content_type}   Age: {user_age}")
    print(f"Session key:  {derive_session_key(parsed, content_type, user_id)[:16]}...")
    print("=" * 60)

    try:
        items = await retry_recommendation(
            supabase_client=create_mock_supabase_client(fail=fail_storage),
            user_id=user_id,
            answers=parsed,
            content_type=content_type,
            user_age=user_age,
        )
    except RetryExhausted as e:
        print(f"\n❌ {e}")
        print(f"   Last error: {e.__cause__}")
        return

    results = [RecommendationResult.from_item(item) for item in items]

    if as_json:
        print(json.dumps([r.model_dump(mode="json") for r in results], indent=2))
        return

    for result in results:
        print_result(result)
    print()


async def run_questions(content_type: str, user_age: int, count: int) -> None:
    try:
        questions = await generate_questions(content_type, user_age, count)
    except (GenerationError, ValueError) as e:
        print(f"\n❌ {e}")
        return

    print(f"\n{len(questions)} questions ({content_type}, ages {questions[0].user_age_range}):")
    for question in questions:
        print(f"  {question.id}: {question.text}")
    print()


def main():
    parser = argparse.ArgumentParser(
        description="Run the Smart Advisor recommendation pipeline locally",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--type", "-t",
        choices=["movie", "book", "both"],
        default="both",
        help="Content type (default: both)"
    )
    parser.add_argument(
        "--age", "-a",
        type=int,
        default=27,
        help="User age (default: 27)"
    )
    parser.add_argument(
        "--answer",
        action="append",
        help="Questionnaire answer (repeatable)"
    )
    parser.add_argument(
        "--questions",
        action="store_true",
        help="Generate a questionnaire instead of recommendations"
    )
    parser.add_argument(
        "--count", "-c",
        type=int,
        default=5,
        help="Question count for --questions (default: 5)"
    )
    parser.add_argument(
        "--fail-storage",
        action="store_true",
        help="Make every storage write fail"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.questions:
        asyncio.run(run_questions(args.type, args.age, args.count))
    else:
        asyncio.run(run_recommendations(
            answers=args.answer or DEFAULT_ANSWERS,
            content_type=args.type,
            user_age=args.age,
            fail_storage=args.fail_storage,
            as_json=args.json,
        ))


if __name__ == "__main__":
    main()
