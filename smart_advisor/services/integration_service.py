"""
Integration status checks for the external services the pipeline uses.

TMDB and Google Books get a cheap GET each. Gemini is only checked for a
configured key: a real call would spend tokens.
"""

import asyncio
import logging
from typing import List, Optional

import httpx

from smart_advisor.config import settings
from smart_advisor.schemas.health import IntegrationStatus
from smart_advisor.utils.constants import GOOGLE_BOOKS_API_BASE_URL, TMDB_API_BASE_URL

logger = logging.getLogger(__name__)


async def _probe(
    service: str,
    api_key: str,
    url: str,
    params: dict,
    client: httpx.AsyncClient,
) -> IntegrationStatus:
    if not api_key:
        return IntegrationStatus(
            service=service,
            is_available=False,
            has_api_key=False,
            error="API key not configured",
        )

    try:
        response = await client.get(url, params=params)
    except httpx.HTTPError as e:
        return IntegrationStatus(
            service=service,
            is_available=False,
            has_api_key=True,
            error=f"Network error: {e}",
        )

    return IntegrationStatus(
        service=service,
        is_available=response.is_success,
        has_api_key=True,
        error=None if response.is_success else f"HTTP {response.status_code}: {response.reason_phrase}",
    )


def check_gemini() -> IntegrationStatus:
    if not settings.GOOGLE_API_KEY:
        return IntegrationStatus(
            service="Gemini",
            is_available=False,
            has_api_key=False,
            error="API key not configured",
        )
    return IntegrationStatus(service="Gemini", is_available=True, has_api_key=True)


async def check_integrations(
    client: Optional[httpx.AsyncClient] = None,
) -> List[IntegrationStatus]:
    """Check TMDB, Google Books and Gemini; never raises."""
    owned_client = client is None
    client = client or httpx.AsyncClient(
        timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS)
    )

    try:
        tmdb, books = await asyncio.gather(
            _probe(
                "TMDB",
                settings.TMDB_API_KEY,
                f"{TMDB_API_BASE_URL}/configuration",
                {"api_key": settings.TMDB_API_KEY},
                client,
            ),
            _probe(
                "Google Books",
                settings.GOOGLE_BOOKS_API_KEY,
                f"{GOOGLE_BOOKS_API_BASE_URL}/volumes",
                {"q": "test", "key": settings.GOOGLE_BOOKS_API_KEY, "maxResults": 1},
                client,
            ),
        )
    finally:
        if owned_client:
            await client.aclose()

    statuses = [tmdb, books, check_gemini()]
    for item in statuses:
        if not item.is_available:
            logger.warning(f"Integration unavailable: {item.service} ({item.error})")
    return statuses
