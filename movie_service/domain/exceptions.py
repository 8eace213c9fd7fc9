"""
Custom exceptions for the movie service domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, database, etc.).
"""

from typing import Any, Optional


class MovieServiceException(Exception):
    """Base exception for all movie service errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class MovieNotFoundException(MovieServiceException):
    """Raised when no movie matches the requested key."""

    def __init__(self, key: Any):
        super().__init__(
            message=f"Movie not found: {key}", details={"key": str(key)}
        )


class UserNotFoundException(MovieServiceException):
    """Raised when no user account matches the given email."""

    def __init__(self, email: str):
        super().__init__(message=f"User not found: {email}", details={"email": email})


class ProviderFailureException(MovieServiceException):
    """Raised when the upstream catalog or storage layer fails."""

    def __init__(self, provider: str, reason: Optional[str] = None):
        message = f"Provider '{provider}' failed to respond"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"provider": provider, "reason": reason}
        )


class CacheBackendException(MovieServiceException):
    """Raised when a cache backend read, write or delete fails."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Cache {operation} failed"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"operation": operation, "reason": reason}
        )


class UnsupportedOperationException(MovieServiceException):
    """Raised when a repository cannot perform the requested operation."""

    def __init__(self, provider: str, operation: str):
        super().__init__(
            message=f"Operation '{operation}' is not supported by '{provider}'",
            details={"provider": provider, "operation": operation},
        )


class ValidationException(MovieServiceException):
    """Raised when input validation fails."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(
            message=message,
            details={"field": field, "value": str(value), "reason": reason},
        )


class InvalidCredentialsException(MovieServiceException):
    """Raised when login credentials do not match a stored account."""

    def __init__(self):
        super().__init__(message="Invalid credentials")


class UserAlreadyExistsException(MovieServiceException):
    """Raised when registering an email that is already taken."""

    def __init__(self, email: str):
        super().__init__(
            message=f"User already registered: {email}", details={"email": email}
        )
