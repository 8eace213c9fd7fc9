"""
Test configuration and fixtures
"""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from movie_service.config import settings
from movie_service.domain.entities import Movie
from movie_service.domain.exceptions import MovieNotFoundException
from movie_service.models import Base
from movie_service.repositories.movie_repository import IMovieRepository

# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Use the cheapest bcrypt cost so hashing tests stay quick"""
    monkeypatch.setattr(settings, "PASSWORD_HASH_ROUNDS", 4)


@pytest.fixture(scope="function")
def session_factory():
    """Fresh database schema for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StubMovieRepository(IMovieRepository):
    """
    In-memory repository that counts calls per operation.

    Point reads can be made to fail or to block until released.
    """

    def __init__(self, movies=None):
        self.movies = dict(movies or {})
        self.calls = {"fetch_by_key": 0, "fetch_all": 0, "create": 0, "update": 0, "delete": 0}
        self.fetch_error = None
        self.fetch_delay = 0.0
        self.next_id = 100

    async def fetch_by_key(self, key):
        self.calls["fetch_by_key"] += 1
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        if self.fetch_error is not None:
            raise self.fetch_error
        if key not in self.movies:
            raise MovieNotFoundException(key)
        return self.movies[key]

    async def fetch_all(self):
        self.calls["fetch_all"] += 1
        return list(self.movies.values())

    async def create(self, movie):
        self.calls["create"] += 1
        self.next_id += 1
        self.movies[self.next_id] = movie
        return self.next_id

    async def update(self, key, movie):
        self.calls["update"] += 1
        if key not in self.movies:
            raise MovieNotFoundException(key)
        self.movies[key] = movie

    async def delete(self, key):
        self.calls["delete"] += 1
        if key not in self.movies:
            raise MovieNotFoundException(key)
        del self.movies[key]


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_movie():
    """Sample movie for testing"""
    return Movie(
        title="Inception",
        overview="A thief who steals corporate secrets through dream-sharing technology.",
        release_date=date(2010, 7, 16),
        rating=8.4,
        poster_url="https://image.tmdb.org/t/p/w500/inception.jpg",
        recommendations=["Interstellar", "The Prestige"],
    )


@pytest.fixture
def stub_repo(sample_movie):
    return StubMovieRepository({"Inception": sample_movie})
