"""
Catalog lookup service (TMDB for movies, Google Books for books).

Each lookup is a single best-effort, best-match query: the catalog's own top
result is taken and nothing else is ranked. Lookups never raise. They return
a tagged result so callers can branch on the outcome explicitly:

- CatalogHit(record): the catalog returned a top result
- CatalogMiss(): the catalog answered but had no results
- CatalogError(reason): network failure, non-success status, bad payload,
  or the catalog's API key is not configured
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import httpx

from smart_advisor.config import settings
from smart_advisor.utils.constants import (
    GOOGLE_BOOKS_API_BASE_URL,
    TMDB_API_BASE_URL,
    TMDB_IMAGE_BASE_URL,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogRecord:
    """
    Normalized best-match record from either catalog.

    Empty fields (None / empty list) mean "the catalog had nothing" and are
    never merged over generator data.
    """
    poster_url: Optional[str] = None
    rating: Optional[float] = None
    year: Optional[int] = None
    director: Optional[str] = None
    author: Optional[str] = None
    genres: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CatalogHit:
    record: CatalogRecord


@dataclass(frozen=True)
class CatalogMiss:
    pass


@dataclass(frozen=True)
class CatalogError:
    reason: str


CatalogResult = Union[CatalogHit, CatalogMiss, CatalogError]


def _year_from_date(value: Any) -> Optional[int]:
    """Leading four-digit year of '2016-11-11', '2016' or '2016-11'."""
    if not value:
        return None
    match = re.match(r'^\s*(\d{4})', str(value))
    return int(match.group(1)) if match else None


def _new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS))


async def _get_json(
    client: Optional[httpx.AsyncClient],
    url: str,
    params: Dict[str, Any],
) -> Dict[str, Any]:
    if client is not None:
        response = await client.get(url, params=params)
    else:
        async with _new_client() as owned_client:
            response = await owned_client.get(url, params=params)
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError("catalog returned a non-object payload")
    return data


def _tmdb_record(movie: Dict[str, Any]) -> CatalogRecord:
    poster_path = movie.get("poster_path")
    vote_average = movie.get("vote_average")
    return CatalogRecord(
        poster_url=f"{TMDB_IMAGE_BASE_URL}{poster_path}" if poster_path else None,
        rating=round(float(vote_average), 1) if vote_average else None,
        year=_year_from_date(movie.get("release_date")),
    )


def _cover_url(thumbnail: str) -> str:
    """HTTPS thumbnail at the largest zoom Google Books serves for it."""
    return thumbnail.replace("http:", "https:", 1).replace("&zoom=1", "&zoom=0")


def _google_books_record(volume_info: Dict[str, Any]) -> CatalogRecord:
    thumbnail = (volume_info.get("imageLinks") or {}).get("thumbnail")
    authors = volume_info.get("authors") or []
    average_rating = volume_info.get("averageRating")
    return CatalogRecord(
        poster_url=_cover_url(thumbnail) if thumbnail else None,
        rating=float(average_rating) if average_rating else None,
        year=_year_from_date(volume_info.get("publishedDate")),
        author=str(authors[0]) if authors else None,
        genres=[str(c) for c in (volume_info.get("categories") or [])],
    )


async def lookup_movie(
    title: str,
    client: Optional[httpx.AsyncClient] = None,
) -> CatalogResult:
    """
    Look up the best TMDB match for a movie title.

    Args:
        title: Movie title from the generator
        client: Optional shared httpx client (one is created per call otherwise)

    Returns:
        CatalogHit, CatalogMiss or CatalogError; never raises
    """
    if not settings.TMDB_API_KEY:
        return CatalogError("TMDB API key not configured")
    if not title.strip():
        return CatalogError("Title is required")

    params = {
        "api_key": settings.TMDB_API_KEY,
        "query": title.strip(),
        "language": "en-US",
        "page": 1,
    }

    try:
        data = await _get_json(client, f"{TMDB_API_BASE_URL}/search/movie", params)
        results = data.get("results") or []
        if not results:
            return CatalogMiss()
        return CatalogHit(_tmdb_record(results[0]))
    except httpx.HTTPStatusError as e:
        return CatalogError(f"TMDB API error: {e.response.status_code}")
    except (httpx.HTTPError, ValueError, TypeError) as e:
        return CatalogError(f"TMDB lookup failed: {e}")


async def lookup_book(
    title: str,
    author: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> CatalogResult:
    """
    Look up the best Google Books match for a title (and author, when known).

    Returns:
        CatalogHit, CatalogMiss or CatalogError; never raises
    """
    if not settings.GOOGLE_BOOKS_API_KEY:
        return CatalogError("Google Books API key not configured")
    if not title.strip():
        return CatalogError("Title is required")

    query = title.strip()
    if author and author.strip():
        query = f"{query}+inauthor:{author.strip()}"

    params = {
        "q": query,
        "key": settings.GOOGLE_BOOKS_API_KEY,
        "maxResults": 1,
        "printType": "books",
    }

    try:
        data = await _get_json(client, f"{GOOGLE_BOOKS_API_BASE_URL}/volumes", params)
        items = data.get("items") or []
        if not items:
            return CatalogMiss()
        return CatalogHit(_google_books_record(items[0].get("volumeInfo") or {}))
    except httpx.HTTPStatusError as e:
        return CatalogError(f"Google Books API error: {e.response.status_code}")
    except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
        return CatalogError(f"Google Books lookup failed: {e}")
