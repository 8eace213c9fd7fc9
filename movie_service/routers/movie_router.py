"""
Movie CRUD router for the relational deployment.

Reads are public; writes require a bearer token from /auth/login.
"""

from typing import List

import structlog
from fastapi import APIRouter, Depends, Path, Response, status

from ..core.auth import require_authentication
from ..dependencies import get_movie_service, get_request_timeout, with_request_deadline
from ..schemas import (
    CreatedResponse,
    ErrorResponse,
    MovieDetailsResponse,
    MovieRequest,
    MovieResponse,
)
from ..services.movie_service import MovieService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/movies", tags=["movies"])


@router.get(
    "",
    response_model=List[MovieResponse],
    summary="List movies",
    responses={503: {"description": "Storage unavailable", "model": ErrorResponse}},
)
async def list_movies(
    service: MovieService = Depends(get_movie_service),
    timeout: float = Depends(get_request_timeout),
):
    """Return every stored movie."""
    movies = await with_request_deadline(service.list_movies(), timeout)
    return [MovieResponse.from_entity(movie) for movie in movies]


@router.get(
    "/{movie_id}",
    response_model=MovieDetailsResponse,
    summary="Get movie by id",
    responses={
        404: {"description": "Movie not found", "model": ErrorResponse},
        503: {"description": "Storage unavailable", "model": ErrorResponse},
    },
)
async def get_movie(
    movie_id: int = Path(..., ge=1),
    service: MovieService = Depends(get_movie_service),
    timeout: float = Depends(get_request_timeout),
):
    """Return one movie with viewing advice, served from cache when fresh."""
    details = await with_request_deadline(service.get_movie(movie_id), timeout)
    return MovieDetailsResponse(
        movie=MovieResponse.from_entity(details.movie), advice=details.advice
    )


@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create movie",
    responses={401: {"description": "Authentication required", "model": ErrorResponse}},
)
async def create_movie(
    request: MovieRequest,
    service: MovieService = Depends(get_movie_service),
    timeout: float = Depends(get_request_timeout),
    user_id: int = Depends(require_authentication),
):
    movie_id = await with_request_deadline(service.create_movie(request.to_entity()), timeout)
    logger.info("Movie created", movie_id=movie_id, user_id=user_id)
    return CreatedResponse(id=movie_id)


@router.put(
    "/{movie_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Replace movie",
    responses={
        401: {"description": "Authentication required", "model": ErrorResponse},
        404: {"description": "Movie not found", "model": ErrorResponse},
    },
)
async def update_movie(
    request: MovieRequest,
    movie_id: int = Path(..., ge=1),
    service: MovieService = Depends(get_movie_service),
    timeout: float = Depends(get_request_timeout),
    user_id: int = Depends(require_authentication),
):
    await with_request_deadline(service.update_movie(movie_id, request.to_entity()), timeout)
    logger.info("Movie updated", movie_id=movie_id, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{movie_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete movie",
    responses={
        401: {"description": "Authentication required", "model": ErrorResponse},
        404: {"description": "Movie not found", "model": ErrorResponse},
    },
)
async def delete_movie(
    movie_id: int = Path(..., ge=1),
    service: MovieService = Depends(get_movie_service),
    timeout: float = Depends(get_request_timeout),
    user_id: int = Depends(require_authentication),
):
    await with_request_deadline(service.delete_movie(movie_id), timeout)
    logger.info("Movie deleted", movie_id=movie_id, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
