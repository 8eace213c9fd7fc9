"""
Movie business logic.

Wraps the (usually cached) movie repository and adds the viewing advice
derived from a movie's rating.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..domain.entities import Movie, MovieKey
from ..domain.exceptions import ValidationException
from ..repositories.movie_repository import IMovieRepository

logger = logging.getLogger(__name__)

HIGH_RATING_THRESHOLD = 7.5
AVERAGE_RATING_THRESHOLD = 5.0

ADVICE_HIGH = "It is a very good choice! A high rated movie, which is recommended to watch."
ADVICE_AVERAGE = "A good option for a night, but do not expect something perfect."
ADVICE_LOW = "A controversial choice. Not really recommended to watch, but you still can do so."


def advice_for_rating(rating: float) -> str:
    """
    Turn a rating on the 0-10 scale into a viewing recommendation.

    Args:
        rating: Average user rating

    Returns:
        Human-readable advice
    """
    if rating >= HIGH_RATING_THRESHOLD:
        return ADVICE_HIGH
    if rating >= AVERAGE_RATING_THRESHOLD:
        return ADVICE_AVERAGE
    return ADVICE_LOW


@dataclass
class MovieDetails:
    """A movie together with the advice shown to the user."""

    movie: Movie
    advice: str

    def to_dict(self) -> dict:
        return {"movie": self.movie.to_dict(), "advice": self.advice}


class MovieService:
    """
    Movie service orchestrating repository access.

    The repository passed in is normally a CachedMovieRepository, but any
    IMovieRepository works.
    """

    def __init__(self, repository: IMovieRepository):
        self.repository = repository

    async def get_movie(self, key: MovieKey) -> MovieDetails:
        """
        Get one movie with advice.

        Raises:
            ValidationException: If a title key is blank
            MovieNotFoundException: If no movie matches
            ProviderFailureException: If the backing store fails
        """
        if isinstance(key, str):
            key = key.strip()
            if not key:
                raise ValidationException("title", key, "Title cannot be empty")

        movie = await self.repository.fetch_by_key(key)
        return MovieDetails(movie=movie, advice=advice_for_rating(movie.rating))

    async def list_movies(self) -> List[Movie]:
        return await self.repository.fetch_all()

    async def create_movie(self, movie: Movie) -> MovieKey:
        movie_id = await self.repository.create(movie)
        logger.info(f"Created movie {movie_id}: {movie.title}")
        return movie_id

    async def update_movie(self, key: MovieKey, movie: Movie) -> None:
        await self.repository.update(key, movie)
        logger.info(f"Updated movie {key}")

    async def delete_movie(self, key: MovieKey) -> None:
        await self.repository.delete(key)
        logger.info(f"Deleted movie {key}")

    async def get_cache_stats(self) -> Optional[dict]:
        """Return cache statistics when the repository is cached, else None."""
        get_stats = getattr(self.repository, "get_stats", None)
        if get_stats is None:
            return None
        return await get_stats()

    async def clear_cache(self) -> bool:
        """Empty the cache. Returns False when the repository is not cached."""
        clear = getattr(self.repository, "clear", None)
        if clear is None:
            return False
        await clear()
        logger.info("Movie cache cleared")
        return True
