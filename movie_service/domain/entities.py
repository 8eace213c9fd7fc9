"""
Domain entities for movie data.

Core business objects representing movies and user accounts.
These entities are framework-agnostic and contain only business logic.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Union

# Integer id for the relational deployment, title for the remote catalog.
MovieKey = Union[int, str]


def _parse_release_date(value) -> Optional[date]:
    """Parse an ISO release date, treating empty values as unknown."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class Movie:
    """
    Aggregate root for movie metadata.

    Holds the catalog data for one movie along with an ordered list
    of recommended titles.
    """

    title: str
    overview: str = ""
    release_date: Optional[date] = None
    rating: float = 0.0
    poster_url: str = ""
    recommendations: List[str] = field(default_factory=list)
    id: Optional[int] = None

    def __post_init__(self):
        """Validate movie data."""
        if not self.title or not self.title.strip():
            raise ValueError("Movie title must not be empty")
        if self.rating < 0 or self.rating > 10:
            raise ValueError("Rating must be between 0 and 10")

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage and API responses."""
        return {
            "id": self.id,
            "title": self.title,
            "overview": self.overview,
            "release_date": self.release_date.isoformat() if self.release_date else None,
            "rating": self.rating,
            "poster_url": self.poster_url,
            "recommendations": list(self.recommendations),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Movie":
        """Build a movie from the dictionary produced by to_dict()."""
        return cls(
            id=data.get("id"),
            title=data["title"],
            overview=data.get("overview") or "",
            release_date=_parse_release_date(data.get("release_date")),
            rating=float(data.get("rating") or 0.0),
            poster_url=data.get("poster_url") or "",
            recommendations=list(data.get("recommendations") or []),
        )


@dataclass
class User:
    """Registered user account."""

    email: str
    password_hash: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None
