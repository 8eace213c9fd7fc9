"""
Security utilities for authentication.

Provides password hashing, JWT token generation and validation.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from ..config import Settings, settings
from ..logging_config import get_logger

logger = get_logger(__name__)

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


# ==================== PASSWORD HASHING ====================


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor (defaults to PASSWORD_HASH_ROUNDS)

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.PASSWORD_HASH_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        password: Plain text password to verify
        hashed_password: Stored hash to verify against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification failed: {e}")
        return False


# ==================== JWT TOKENS ====================


def create_access_token(
    user_id: int,
    expires_delta: Optional[timedelta] = None,
    app_settings: Optional[Settings] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: Id of the authenticated user
        expires_delta: Token lifetime (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)
        app_settings: Settings holding the signing key (defaults to the environment)

    Returns:
        Encoded JWT access token
    """
    config = app_settings or settings
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))

    payload = {
        "sub": str(user_id),
        "type": "access",
        "iat": now,
        "exp": expire,
    }

    token = jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)

    logger.debug(f"Created access token for user {user_id}, expires at {expire}")
    return token


def decode_access_token(token: str, app_settings: Optional[Settings] = None) -> Optional[int]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string
        app_settings: Settings holding the signing key (defaults to the environment)

    Returns:
        User id if the token is valid, None otherwise
    """
    config = app_settings or settings
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError:
        logger.debug("Access token expired")
        return None
    except InvalidTokenError as e:
        logger.warning(f"Invalid access token: {e}")
        return None

    if payload.get("type") != "access":
        logger.warning("Invalid token type")
        return None

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Invalid token payload - missing or malformed subject")
        return None
