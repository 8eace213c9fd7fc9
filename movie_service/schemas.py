"""
Pydantic models for request/response schemas.

Defines the HTTP payloads for the movie and authentication endpoints.
"""

from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, EmailStr, Field

from .domain.entities import Movie

# Request Models


class MovieRequest(BaseModel):
    """Model for creating or replacing a movie."""

    title: str = Field(..., min_length=1, max_length=255)
    overview: str = ""
    release_date: Optional[date] = None
    rating: float = Field(0.0, ge=0, le=10)
    poster_url: str = ""
    recommendations: List[str] = Field(default_factory=list)

    def to_entity(self) -> Movie:
        return Movie(
            title=self.title,
            overview=self.overview,
            release_date=self.release_date,
            rating=self.rating,
            poster_url=self.poster_url,
            recommendations=list(self.recommendations),
        )


class AuthRequest(BaseModel):
    """Model for registration and login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


# Response Models


class MovieResponse(BaseModel):
    """Model for movie data in responses."""

    id: Optional[int] = None
    title: str
    overview: str
    release_date: Optional[date] = None
    rating: float
    poster_url: str
    recommendations: List[str]

    @classmethod
    def from_entity(cls, movie: Movie) -> "MovieResponse":
        return cls(
            id=movie.id,
            title=movie.title,
            overview=movie.overview,
            release_date=movie.release_date,
            rating=movie.rating,
            poster_url=movie.poster_url,
            recommendations=list(movie.recommendations),
        )


class MovieDetailsResponse(BaseModel):
    """Model for a movie together with its viewing advice."""

    movie: MovieResponse
    advice: str


class CreatedResponse(BaseModel):
    """Model for the id of a newly created resource."""

    id: Union[int, str]


class RegisterResponse(BaseModel):
    """Model for a successful registration."""

    message: str = "User registered successfully"
    id: int


class TokenResponse(BaseModel):
    """Model for a successful login."""

    token: str


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error: str
    message: str
    details: dict = {}
