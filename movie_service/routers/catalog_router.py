"""
Catalog search router for the TMDb deployment.

Movies are looked up by title; the remote catalog is read-only.
"""

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_movie_service, get_request_timeout, with_request_deadline
from ..schemas import ErrorResponse, MovieDetailsResponse, MovieResponse
from ..services.movie_service import MovieService

router = APIRouter(prefix="/movies", tags=["catalog"])


@router.get(
    "/search",
    response_model=MovieDetailsResponse,
    responses={
        200: {"description": "Movie found"},
        404: {"description": "Movie not found", "model": ErrorResponse},
        503: {"description": "Catalog unavailable", "model": ErrorResponse},
        504: {"description": "Request deadline exceeded", "model": ErrorResponse},
    },
    summary="Search movie by title",
)
async def search_movie(
    title: str = Query(
        ...,
        min_length=1,
        max_length=200,
        description="Movie title",
        examples=["Inception"],
    ),
    service: MovieService = Depends(get_movie_service),
    timeout: float = Depends(get_request_timeout),
):
    """
    Look a movie up by title.

    Results are cached for CACHE_TTL_SECONDS; recommendations are included
    when the catalog provides them.
    """
    details = await with_request_deadline(service.get_movie(title), timeout)
    return MovieDetailsResponse(
        movie=MovieResponse.from_entity(details.movie), advice=details.advice
    )
