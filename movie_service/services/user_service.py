"""
User account service.

Handles registration and credential checks on top of the user repository.
"""

import asyncio
import logging
from typing import Optional

from ..core.security import MAX_PASSWORD_BYTES, hash_password, verify_password
from ..domain.entities import User
from ..domain.exceptions import (
    InvalidCredentialsException,
    UserNotFoundException,
    ValidationException,
)
from ..repositories.movie_repository import IUserRepository

logger = logging.getLogger(__name__)


class UserService:
    """
    Service class for user registration and login.

    Hashing and verification run on a worker thread.
    """

    def __init__(self, repository: IUserRepository, hash_rounds: Optional[int] = None):
        """
        Initialize service.

        Args:
            repository: User account storage
            hash_rounds: bcrypt cost factor (defaults to PASSWORD_HASH_ROUNDS)
        """
        self.repository = repository
        self.hash_rounds = hash_rounds

    async def register_user(self, email: str, password: str) -> int:
        """
        Register a new user.

        Args:
            email: User email address
            password: Plain text password

        Returns:
            Id of the created user

        Raises:
            ValidationException: If the password is empty or too long
            UserAlreadyExistsException: If the email is already registered
        """
        if not password:
            raise ValidationException("password", "", "Password cannot be empty")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationException(
                "password", "***", f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )

        password_hash = await asyncio.to_thread(hash_password, password, self.hash_rounds)
        user = User(email=email.strip().lower(), password_hash=password_hash)
        user_id = await self.repository.create_user(user)

        logger.info(f"User registered successfully: {user.email}")
        return user_id

    async def login_user(self, email: str, password: str) -> User:
        """
        Check credentials and return the matching user.

        Unknown emails and wrong passwords raise the same error so callers
        cannot tell which accounts exist.

        Raises:
            InvalidCredentialsException: If the credentials do not match
        """
        try:
            user = await self.repository.get_user_by_email(email.strip().lower())
        except UserNotFoundException:
            logger.warning(f"Login failed - unknown email: {email}")
            raise InvalidCredentialsException()

        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            logger.warning(f"Login failed - wrong password for: {email}")
            raise InvalidCredentialsException()

        logger.info(f"User logged in: {user.email}")
        return user
