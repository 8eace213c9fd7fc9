"""
Main FastAPI application.

This file wires together all layers:
- Domain: Movie and user entities
- Infrastructure: TMDb catalog client
- Repositories: PostgreSQL storage and the caching decorator
- Services: Movie advice and user accounts
- Routers: HTTP endpoints
"""

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional, Tuple

import redis.asyncio as redis
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from . import __version__
from .cache import ICacheStore, MemoryCacheStore, RedisCacheStore
from .config import Settings, settings
from .database import get_session_factory, init_db
from .dependencies import set_movie_service, set_user_service
from .domain.exceptions import (
    InvalidCredentialsException,
    MovieNotFoundException,
    MovieServiceException,
    ProviderFailureException,
    UnsupportedOperationException,
    UserAlreadyExistsException,
    UserNotFoundException,
    ValidationException,
)
from .infrastructure.tmdb_client import TMDbMovieRepository
from .logging_config import configure_logging
from .metrics import metrics_endpoint, track_request_metrics
from .repositories.cached_repository import CachedMovieRepository
from .repositories.movie_repository import IMovieRepository
from .repositories.postgres_repository import (
    PostgresMovieRepository,
    PostgresUserRepository,
)
from .routers import auth_router, catalog_router, health_router, movie_router
from .services.movie_service import MovieService
from .services.user_service import UserService

logger = structlog.get_logger(__name__)

# Exception type -> (HTTP status, error code); first match wins
ERROR_RESPONSES = [
    (MovieNotFoundException, 404, "movie_not_found"),
    (UserNotFoundException, 404, "user_not_found"),
    (ValidationException, 400, "validation_error"),
    (InvalidCredentialsException, 401, "invalid_credentials"),
    (UnsupportedOperationException, 405, "unsupported_operation"),
    (UserAlreadyExistsException, 409, "user_exists"),
    (ProviderFailureException, 503, "provider_unavailable"),
]


async def create_cache_store(
    app_settings: Settings,
) -> Tuple[ICacheStore, Optional[redis.Redis]]:
    """
    Create the cache store selected by CACHE_BACKEND.

    Falls back to the in-memory store when Redis cannot be reached.

    Returns:
        Tuple of (store, redis client or None)
    """
    if app_settings.CACHE_BACKEND != "redis":
        logger.info("Using in-memory movie cache")
        return MemoryCacheStore(), None

    redis_client = redis.from_url(
        app_settings.REDIS_URL, encoding="utf-8", decode_responses=False
    )
    try:
        await redis_client.ping()
    except (RedisError, OSError) as e:
        logger.warning("Redis not available, using in-memory cache", error=str(e))
        await redis_client.aclose()
        return MemoryCacheStore(), None

    logger.info("Redis connected successfully", url=app_settings.REDIS_URL.split("@")[-1])
    return RedisCacheStore(redis_client), redis_client


def create_movie_source(app_settings: Settings) -> IMovieRepository:
    """Create the repository that holds the source of truth for movies."""
    if app_settings.MOVIE_SOURCE == "tmdb":
        return TMDbMovieRepository(
            api_key=app_settings.TMDB_API_KEY,
            base_url=app_settings.TMDB_BASE_URL,
            timeout_seconds=app_settings.TMDB_TIMEOUT_SECONDS,
            max_retries=app_settings.TMDB_MAX_RETRIES,
        )
    return PostgresMovieRepository(get_session_factory())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    app_settings: Settings = app.state.settings

    configure_logging(app_settings.LOG_LEVEL, app_settings.LOG_JSON)
    logger.info("Starting Movie Service...", movie_source=app_settings.MOVIE_SOURCE)

    # Users always live in the relational store
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    store, redis_client = await create_cache_store(app_settings)
    source = create_movie_source(app_settings)
    cached_repo = CachedMovieRepository(
        source, store, ttl=timedelta(seconds=app_settings.CACHE_TTL_SECONDS)
    )

    set_movie_service(MovieService(cached_repo))
    set_user_service(
        UserService(
            PostgresUserRepository(get_session_factory()),
            hash_rounds=app_settings.PASSWORD_HASH_ROUNDS,
        )
    )
    logger.info(
        "Movie service initialized",
        cache_backend=store.name,
        cache_ttl_seconds=app_settings.CACHE_TTL_SECONDS,
    )

    yield

    logger.info("Shutting down Movie Service...")

    set_movie_service(None)
    set_user_service(None)

    if isinstance(source, TMDbMovieRepository):
        await source.close()

    if redis_client:
        await redis_client.aclose()
        logger.info("Redis connection closed")

    logger.info("Movie Service shut down complete")


def _error_body(request: Request, error: str, message: str, details: Optional[dict] = None) -> dict:
    return {
        "success": False,
        "error": error,
        "message": message,
        "details": details or {},
        "request_id": request.headers.get("X-Request-ID"),
    }


async def movie_service_exception_handler(request: Request, exc: MovieServiceException):
    """Map domain exceptions to HTTP responses."""
    for exc_type, status_code, error in ERROR_RESPONSES:
        if isinstance(exc, exc_type):
            if status_code >= 500:
                logger.warning("Upstream failure", path=request.url.path, error=exc.message)
            return JSONResponse(
                status_code=status_code,
                content=_error_body(request, error, exc.message, exc.details),
            )

    logger.error(
        "Unhandled service exception",
        path=request.url.path,
        method=request.method,
        error=exc.message,
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(request, "internal_server_error", "An unexpected error occurred"),
    )


async def timeout_exception_handler(request: Request, exc: asyncio.TimeoutError):
    """Map an exceeded request deadline to 504."""
    logger.warning("Request deadline exceeded", path=request.url.path, method=request.method)
    return JSONResponse(
        status_code=504,
        content=_error_body(request, "deadline_exceeded", "Request took too long to complete"),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(request, "internal_server_error", "An unexpected error occurred"),
    )


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Build the FastAPI application for the configured deployment.

    The settings are stored on app.state and read per request for the
    deadline and token signing, and at startup for the movie source, cache,
    bcrypt cost and logging. The database engine is a process-wide singleton
    built from the environment's DATABASE_URL and pool settings.

    Args:
        app_settings: Settings to run with (defaults to the environment)

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title=app_settings.APP_NAME,
        description="Movie metadata API with read-through caching",
        version=__version__,
        lifespan=lifespan,
        debug=app_settings.DEBUG,
    )
    app.state.settings = app_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID for distributed tracing."""
        request_id = request.headers.get("X-Request-ID") or f"req-{uuid.uuid4().hex[:12]}"

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def track_metrics(request: Request, call_next):
        """Track Prometheus metrics."""
        start_time = time.time()

        response = await call_next(request)

        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        track_request_metrics(
            request.method, endpoint, response.status_code, time.time() - start_time
        )
        return response

    app.add_exception_handler(MovieServiceException, movie_service_exception_handler)
    app.add_exception_handler(asyncio.TimeoutError, timeout_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Include routers
    if app_settings.MOVIE_SOURCE == "tmdb":
        app.include_router(catalog_router.router)
    else:
        app.include_router(movie_router.router)
    app.include_router(auth_router.router)
    app.include_router(health_router.router)

    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)

    @app.get("/")
    async def root():
        """Root endpoint with service information."""
        return {
            "service": app_settings.APP_NAME,
            "version": __version__,
            "movie_source": app_settings.MOVIE_SOURCE,
            "status": "operational",
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "movie_service.app:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
