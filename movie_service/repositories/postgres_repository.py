"""
PostgreSQL implementation of the movie and user repositories.

Implements persistent storage for the movie catalog and user accounts.
Each operation runs in its own short-lived session on a worker thread.
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.entities import Movie, User
from ..domain.exceptions import (
    MovieNotFoundException,
    ProviderFailureException,
    UserAlreadyExistsException,
    UserNotFoundException,
)
from ..models import RECOMMENDATIONS_SEPARATOR, MovieRecord, UserRecord
from .movie_repository import IMovieRepository, IUserRepository

logger = logging.getLogger(__name__)

PROVIDER_NAME = "postgres"

T = TypeVar("T")


def _join_recommendations(recommendations: List[str]) -> str:
    return RECOMMENDATIONS_SEPARATOR.join(r.strip() for r in recommendations if r.strip())


def _split_recommendations(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [r for r in value.split(RECOMMENDATIONS_SEPARATOR) if r]


async def _run_write(func: Callable[..., T], *args: Any) -> T:
    """
    Run a blocking write on a worker thread.

    The thread cannot be interrupted, so a cancelled caller waits for the
    commit or rollback to settle before the cancellation propagates.
    """
    work = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(work)
    except asyncio.CancelledError:
        await asyncio.wait([work])
        raise


class PostgresMovieRepository(IMovieRepository):
    """PostgreSQL implementation for movie persistence, keyed by integer id."""

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Initialize repository.

        Args:
            session_factory: Callable returning a new SQLAlchemy session
        """
        self.session_factory = session_factory

    async def fetch_by_key(self, key: int) -> Movie:
        """Fetch a movie by id."""
        return await asyncio.to_thread(self._fetch_by_key, key)

    async def fetch_all(self) -> List[Movie]:
        """Fetch all movies ordered by id."""
        return await asyncio.to_thread(self._fetch_all)

    async def create(self, movie: Movie) -> int:
        """Insert a movie and return its new id."""
        return await _run_write(self._create, movie)

    async def update(self, key: int, movie: Movie) -> None:
        """Replace all fields of an existing movie."""
        await _run_write(self._update, key, movie)

    async def delete(self, key: int) -> None:
        """Delete a movie by id."""
        await _run_write(self._delete, key)

    def _fetch_by_key(self, key: int) -> Movie:
        with self.session_factory() as db:
            try:
                record = db.get(MovieRecord, key)
            except SQLAlchemyError as e:
                logger.error(f"Error getting movie by ID {key}: {e}")
                raise ProviderFailureException(PROVIDER_NAME, str(e)) from e

            if record is None:
                raise MovieNotFoundException(key)

            return self._map_to_entity(record)

    def _fetch_all(self) -> List[Movie]:
        with self.session_factory() as db:
            try:
                records = db.query(MovieRecord).order_by(MovieRecord.id).all()
            except SQLAlchemyError as e:
                logger.error(f"Error querying all movies: {e}")
                raise ProviderFailureException(PROVIDER_NAME, str(e)) from e

            return [self._map_to_entity(record) for record in records]

    def _create(self, movie: Movie) -> int:
        with self.session_factory() as db:
            record = MovieRecord()
            self._apply_entity(record, movie)
            try:
                db.add(record)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error creating movie: {e}")
                raise ProviderFailureException(PROVIDER_NAME, str(e)) from e

            logger.info(f"Created movie {record.id}: {movie.title}")
            return record.id

    def _update(self, key: int, movie: Movie) -> None:
        with self.session_factory() as db:
            try:
                record = db.get(MovieRecord, key)
                if record is None:
                    raise MovieNotFoundException(key)

                self._apply_entity(record, movie)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error updating movie {key}: {e}")
                raise ProviderFailureException(PROVIDER_NAME, str(e)) from e

    def _delete(self, key: int) -> None:
        with self.session_factory() as db:
            try:
                deleted = db.query(MovieRecord).filter(MovieRecord.id == key).delete()
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error deleting movie {key}: {e}")
                raise ProviderFailureException(PROVIDER_NAME, str(e)) from e

            if not deleted:
                raise MovieNotFoundException(key)

    def _map_to_entity(self, record: MovieRecord) -> Movie:
        """Map database model to domain entity."""
        return Movie(
            id=record.id,
            title=record.title,
            overview=record.overview or "",
            release_date=record.release_date,
            rating=record.rating or 0.0,
            poster_url=record.poster_url or "",
            recommendations=_split_recommendations(record.recommendations),
        )

    def _apply_entity(self, record: MovieRecord, movie: Movie) -> None:
        """Copy entity fields onto a database model."""
        record.title = movie.title
        record.overview = movie.overview
        record.release_date = movie.release_date
        record.rating = movie.rating
        record.poster_url = movie.poster_url
        record.recommendations = _join_recommendations(movie.recommendations)


class PostgresUserRepository(IUserRepository):
    """PostgreSQL implementation for user accounts."""

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Initialize repository.

        Args:
            session_factory: Callable returning a new SQLAlchemy session
        """
        self.session_factory = session_factory

    async def create_user(self, user: User) -> int:
        """Insert a user and return its new id."""
        return await _run_write(self._create_user, user)

    async def get_user_by_email(self, email: str) -> User:
        """Fetch a user by email."""
        return await asyncio.to_thread(self._get_user_by_email, email)

    def _create_user(self, user: User) -> int:
        with self.session_factory() as db:
            record = UserRecord(email=user.email, password_hash=user.password_hash)
            try:
                db.add(record)
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise UserAlreadyExistsException(user.email) from e
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error creating user: {e}")
                raise ProviderFailureException(PROVIDER_NAME, str(e)) from e

            return record.id

    def _get_user_by_email(self, email: str) -> User:
        with self.session_factory() as db:
            try:
                record = db.query(UserRecord).filter(UserRecord.email == email).first()
            except SQLAlchemyError as e:
                logger.error(f"Error getting user by email: {e}")
                raise ProviderFailureException(PROVIDER_NAME, str(e)) from e

            if record is None:
                raise UserNotFoundException(email)

            return User(
                id=record.id,
                email=record.email,
                password_hash=record.password_hash,
                created_at=record.created_at,
            )
