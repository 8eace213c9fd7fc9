"""
Shared dependencies for the application.

Provides dependency injection functions used across routers.
"""

import asyncio
from typing import TYPE_CHECKING, Awaitable, Optional, TypeVar

from fastapi import Request

from .config import Settings

if TYPE_CHECKING:
    from .services.movie_service import MovieService
    from .services.user_service import UserService

T = TypeVar("T")

# Global service instances (set by main app)
_movie_service: Optional["MovieService"] = None
_user_service: Optional["UserService"] = None


def set_movie_service(service: Optional["MovieService"]) -> None:
    """
    Set the global movie service instance.

    Called by main app during startup.
    """
    global _movie_service
    _movie_service = service


def set_user_service(service: Optional["UserService"]) -> None:
    """
    Set the global user service instance.

    Called by main app during startup.
    """
    global _user_service
    _user_service = service


async def get_movie_service() -> "MovieService":
    """Get movie service instance for dependency injection."""
    if _movie_service is None:
        raise RuntimeError("Movie service not initialized")
    return _movie_service


async def get_user_service() -> "UserService":
    """Get user service instance for dependency injection."""
    if _user_service is None:
        raise RuntimeError("User service not initialized")
    return _user_service


def get_settings(request: Request) -> Settings:
    """Get the settings the serving app was built with."""
    return request.app.state.settings


def get_request_timeout(request: Request) -> float:
    """Get the per-request deadline of the serving app, in seconds."""
    return get_settings(request).REQUEST_TIMEOUT_SECONDS


async def with_request_deadline(awaitable: Awaitable[T], timeout_seconds: float) -> T:
    """
    Await a service call under the request deadline.

    Args:
        awaitable: Service call to run
        timeout_seconds: Deadline from get_request_timeout

    Raises:
        asyncio.TimeoutError: If the deadline elapses first
    """
    return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
