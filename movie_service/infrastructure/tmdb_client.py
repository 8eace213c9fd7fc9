"""
TMDb API client implementation.

Looks movies up by title on The Movie Database (REST API v3) and attaches
the titles TMDb recommends for the best match.

API Documentation: https://developer.themoviedb.org/reference
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .. import metrics
from ..domain.entities import Movie
from ..domain.exceptions import (
    MovieNotFoundException,
    ProviderFailureException,
    UnsupportedOperationException,
)
from ..repositories.movie_repository import IMovieRepository

logger = logging.getLogger(__name__)

PROVIDER_NAME = "tmdb"
IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"


class TMDbMovieRepository(IMovieRepository):
    """
    Read-only movie repository backed by the TMDb catalog, keyed by title.

    Features:
    - Async HTTP requests with connection pooling
    - Retry with exponential backoff on transport errors
    - Best-effort recommendations (failures yield an empty list)
    """

    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_seconds: float = 5.0,
        max_retries: int = 3,
        retry_backoff_seconds: float = 0.5,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize TMDb client.

        Args:
            api_key: TMDb v3 API key
            base_url: API root (defaults to the public TMDb endpoint)
            timeout_seconds: Request timeout
            max_retries: Maximum attempts per request on transport errors
            retry_backoff_seconds: Multiplier for the exponential backoff
            http_client: Pre-built client (mainly for tests)
        """
        if not api_key:
            logger.warning("TMDB_API_KEY not configured - catalog lookups will fail")

        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.retry_backoff_seconds = retry_backoff_seconds
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"User-Agent": "Movie-Night-Planner/1.0"},
            )
        return self._client

    async def close(self):
        """Close HTTP client connections."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        """
        Issue a GET request, retrying transport errors.

        Raises:
            httpx.TransportError: When every attempt failed at the transport level
        """
        client = await self._get_client()
        query = dict(params or {})
        query["api_key"] = self.api_key

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_backoff_seconds, max=5),
            reraise=True,
        ):
            with attempt:
                return await client.get(endpoint, params=query)

    async def fetch_by_key(self, key: str) -> Movie:
        """Search TMDb by title and return the most relevant match."""
        title = str(key).strip()
        found = await self._search_by_title(title)
        recommendations = await self._fetch_recommendations(found["id"])

        poster_path = found.get("poster_path")
        return Movie(
            title=found.get("title") or title,
            overview=found.get("overview") or "",
            release_date=_parse_date(found.get("release_date")),
            rating=float(found.get("vote_average") or 0.0),
            poster_url=f"{IMAGE_BASE_URL}{poster_path}" if poster_path else "",
            recommendations=recommendations,
        )

    async def _search_by_title(self, title: str) -> dict:
        """Return the first search result for a title."""
        logger.info(f"Searching for movie '{title}' on TMDb...")

        try:
            response = await self._get("/search/movie", params={"query": title})
        except httpx.TransportError as e:
            metrics.provider_calls_total.labels(provider=PROVIDER_NAME, status="error").inc()
            raise ProviderFailureException(PROVIDER_NAME, str(e)) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            metrics.provider_calls_total.labels(provider=PROVIDER_NAME, status="not_found").inc()
            raise MovieNotFoundException(title)

        if response.status_code != httpx.codes.OK:
            metrics.provider_calls_total.labels(provider=PROVIDER_NAME, status="error").inc()
            raise ProviderFailureException(
                PROVIDER_NAME, f"TMDb API returned non-200 status: {response.status_code}"
            )

        try:
            results = response.json().get("results") or []
        except ValueError as e:
            metrics.provider_calls_total.labels(provider=PROVIDER_NAME, status="error").inc()
            raise ProviderFailureException(
                PROVIDER_NAME, f"failed to decode TMDb response: {e}"
            ) from e

        if not results:
            metrics.provider_calls_total.labels(provider=PROVIDER_NAME, status="not_found").inc()
            raise MovieNotFoundException(title)

        metrics.provider_calls_total.labels(provider=PROVIDER_NAME, status="success").inc()
        return results[0]

    async def _fetch_recommendations(self, movie_id: int) -> List[str]:
        """
        Get titles recommended for a TMDb movie id.

        Any failure is logged and yields an empty list.
        """
        logger.info(f"Getting recommendations for movie ID {movie_id}...")

        try:
            response = await self._get(f"/movie/{movie_id}/recommendations")
        except httpx.TransportError as e:
            logger.warning(f"Warning: failed to call TMDb recommendations API: {e}")
            return []

        if response.status_code != httpx.codes.OK:
            logger.warning(
                f"Warning: failed to get recommendations, status: {response.status_code}"
            )
            return []

        try:
            results = response.json().get("results") or []
        except ValueError as e:
            logger.warning(f"Warning: failed to decode recommendations response: {e}")
            return []

        return [item["title"] for item in results if item.get("title")]

    async def fetch_all(self) -> List[Movie]:
        raise UnsupportedOperationException(PROVIDER_NAME, "fetch_all")

    async def create(self, movie: Movie) -> str:
        raise UnsupportedOperationException(PROVIDER_NAME, "create")

    async def update(self, key: str, movie: Movie) -> None:
        raise UnsupportedOperationException(PROVIDER_NAME, "update")

    async def delete(self, key: str) -> None:
        raise UnsupportedOperationException(PROVIDER_NAME, "delete")


def _parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a TMDb release date; TMDb sends an empty string when unknown."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.debug(f"Ignoring malformed release date: {value}")
        return None
