"""External movie catalog clients."""

from .tmdb_client import TMDbMovieRepository

__all__ = ["TMDbMovieRepository"]
