"""
Movie repository interfaces (Abstract Base Classes).

Defines the contracts for movie and user persistence independent of the
underlying storage mechanism. The relational store, the remote catalog and
the caching decorator all implement IMovieRepository.
"""

from abc import ABC, abstractmethod
from typing import List

from ..domain.entities import Movie, MovieKey, User


class IMovieRepository(ABC):
    """
    Abstract repository interface for movie data operations.

    This interface defines all movie data access methods without
    implementation details, enabling dependency inversion.
    """

    @abstractmethod
    async def fetch_by_key(self, key: MovieKey) -> Movie:
        """
        Fetch a single movie by its key.

        Args:
            key: Movie id (relational store) or title (remote catalog)

        Returns:
            The matching movie

        Raises:
            MovieNotFoundException: If no record matches the key
            ProviderFailureException: On network or storage faults
        """
        pass

    @abstractmethod
    async def fetch_all(self) -> List[Movie]:
        """
        Fetch every stored movie.

        Returns:
            List of movies (possibly empty)
        """
        pass

    @abstractmethod
    async def create(self, movie: Movie) -> MovieKey:
        """
        Persist a new movie.

        Args:
            movie: Movie entity to store

        Returns:
            Key of the created record
        """
        pass

    @abstractmethod
    async def update(self, key: MovieKey, movie: Movie) -> None:
        """
        Replace the stored movie for a key.

        Args:
            key: Key of the movie to update
            movie: New movie data
        """
        pass

    @abstractmethod
    async def delete(self, key: MovieKey) -> None:
        """
        Delete the movie stored under a key.

        Args:
            key: Key of the movie to delete
        """
        pass


class IUserRepository(ABC):
    """
    Repository for registered user accounts.

    Stores credentials for token-based authentication.
    """

    @abstractmethod
    async def create_user(self, user: User) -> int:
        """
        Persist a new user.

        Args:
            user: User entity with an already hashed password

        Returns:
            Id of the created user

        Raises:
            UserAlreadyExistsException: If the email is already registered
        """
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User:
        """
        Look up a user by email.

        Args:
            email: Email address used at registration

        Returns:
            The stored user

        Raises:
            UserNotFoundException: If no user has this email
        """
        pass
