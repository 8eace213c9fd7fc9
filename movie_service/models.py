"""
Database models for movie service.

This module defines SQLAlchemy ORM models for movies and user accounts.
"""

from typing import Any

from sqlalchemy import Column, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base: Any = declarative_base()

RECOMMENDATIONS_SEPARATOR = ","


class MovieRecord(Base):
    """
    Movie catalog row.

    Attributes:
        id: Primary key identifier
        title: Movie title
        overview: Plot synopsis
        release_date: Theatrical release date
        rating: Average rating on a 0-10 scale
        poster_url: Absolute URL of the poster image
        recommendations: Recommended titles joined with a comma
        created_at: Timestamp of row creation
        updated_at: Timestamp of last update
    """

    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    overview = Column(Text, nullable=False, default="")
    release_date = Column(Date, nullable=True)
    rating = Column(Float, nullable=False, default=0.0)
    poster_url = Column(String(500), nullable=False, default="")
    recommendations = Column(Text, nullable=False, default="")

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)


class UserRecord(Base):
    """
    Registered user row.

    Attributes:
        id: Primary key identifier
        email: Unique login email
        password_hash: bcrypt hash of the password
        created_at: Timestamp of registration
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
