"""
Health check and monitoring router.

Provides endpoints for health checks, readiness probes, and cache statistics.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from .. import __version__
from ..core.auth import require_authentication
from ..database import check_db
from ..dependencies import get_movie_service
from ..services.movie_service import MovieService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = "movie-service"
    version: str = __version__


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint - returns 200 if service is running",
)
async def health_check():
    """
    Basic health check.

    Always returns 200 OK if the service is running.
    Used by load balancers and orchestrators for liveness probes.
    """
    return HealthResponse(status="healthy", timestamp=_now())


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Check if service is ready to accept traffic (dependencies available)",
)
async def readiness_check(
    response: Response, service: MovieService = Depends(get_movie_service)
):
    """
    Readiness check.

    Checks the relational database and the cache backend.
    Returns 200 if ready, 503 if not ready.
    """
    stats = await service.get_cache_stats()
    cache_ok = stats is None or stats["size"] is not None

    checks = {
        "database": "healthy" if check_db() else "unhealthy",
        "cache": "healthy" if cache_ok else "unhealthy",
    }
    all_ready = all(check == "healthy" for check in checks.values())

    if not all_ready:
        logger.warning(f"Readiness check failed: {checks}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(ready=all_ready, checks=checks, timestamp=_now())


@router.get(
    "/cache/stats", summary="Cache statistics", description="Get statistics for the movie cache"
)
async def cache_stats(service: MovieService = Depends(get_movie_service)):
    """Get hit/miss counters and store details for the movie cache."""
    stats = await service.get_cache_stats()
    if stats is None:
        return {"enabled": False}
    return {"enabled": True, **stats}


@router.delete(
    "/cache",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear cache",
    description="Drop every cached movie (requires authentication)",
)
async def clear_cache(
    service: MovieService = Depends(get_movie_service),
    user_id: int = Depends(require_authentication),
):
    await service.clear_cache()
    logger.info(f"Movie cache cleared by user {user_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
