"""
API tests for both deployments.

The application lifespan is not started; services are wired directly
through the dependency setters instead.
"""

import pytest
from fastapi.testclient import TestClient

from movie_service import dependencies
from movie_service.app import create_app
from movie_service.cache.memory_cache import MemoryCacheStore
from movie_service.config import Settings, settings
from movie_service.domain.exceptions import ProviderFailureException
from movie_service.infrastructure.tmdb_client import TMDbMovieRepository
from movie_service.repositories.cached_repository import CachedMovieRepository
from movie_service.repositories.postgres_repository import (
    PostgresMovieRepository,
    PostgresUserRepository,
)
from movie_service.services.movie_service import ADVICE_AVERAGE, ADVICE_HIGH, MovieService
from movie_service.services.user_service import UserService

MOVIE_PAYLOAD = {
    "title": "Inception",
    "overview": "Dream heist.",
    "release_date": "2010-07-16",
    "rating": 8.4,
    "poster_url": "https://image.tmdb.org/t/p/w500/inception.jpg",
    "recommendations": ["Interstellar"],
}


@pytest.fixture
def user_service(session_factory):
    service = UserService(PostgresUserRepository(session_factory))
    dependencies.set_user_service(service)
    yield service
    dependencies.set_user_service(None)


@pytest.fixture
def cached_postgres_repo(session_factory):
    return CachedMovieRepository(PostgresMovieRepository(session_factory), MemoryCacheStore())


@pytest.fixture
def client(cached_postgres_repo, user_service):
    """Client for the relational deployment"""
    dependencies.set_movie_service(MovieService(cached_postgres_repo))
    yield TestClient(create_app(Settings(MOVIE_SOURCE="postgres")))
    dependencies.set_movie_service(None)


@pytest.fixture
def catalog_client(stub_repo, user_service):
    """Client for the TMDb deployment backed by a stub catalog"""
    dependencies.set_movie_service(
        MovieService(CachedMovieRepository(stub_repo, MemoryCacheStore()))
    )
    yield TestClient(create_app(Settings(MOVIE_SOURCE="tmdb")))
    dependencies.set_movie_service(None)


@pytest.fixture
def auth_headers(client):
    client.post("/auth/register", json={"email": "alice@example.com", "password": "s3cret"})
    response = client.post("/auth/login", json={"email": "alice@example.com", "password": "s3cret"})
    return {"Authorization": f"Bearer {response.json()['token']}"}


class TestAuthEndpoints:
    """Test registration and login."""

    def test_register(self, client):
        response = client.post(
            "/auth/register", json={"email": "alice@example.com", "password": "s3cret"}
        )

        assert response.status_code == 201
        assert response.json() == {"message": "User registered successfully", "id": 1}

    def test_register_duplicate(self, client):
        payload = {"email": "alice@example.com", "password": "s3cret"}
        client.post("/auth/register", json=payload)

        response = client.post("/auth/register", json=payload)

        assert response.status_code == 409
        assert response.json()["error"] == "user_exists"

    def test_register_invalid_email(self, client):
        response = client.post("/auth/register", json={"email": "nope", "password": "s3cret"})

        assert response.status_code == 422

    def test_login(self, client):
        client.post("/auth/register", json={"email": "alice@example.com", "password": "s3cret"})

        response = client.post(
            "/auth/login", json={"email": "alice@example.com", "password": "s3cret"}
        )

        assert response.status_code == 200
        assert response.json()["token"]

    def test_login_wrong_password(self, client):
        client.post("/auth/register", json={"email": "alice@example.com", "password": "s3cret"})

        response = client.post(
            "/auth/login", json={"email": "alice@example.com", "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_tokens_are_signed_with_the_app_secret(self, client):
        other_app = TestClient(
            create_app(Settings(MOVIE_SOURCE="postgres", JWT_SECRET_KEY="other-app-secret"))
        )
        credentials = {"email": "alice@example.com", "password": "s3cret"}
        other_app.post("/auth/register", json=credentials)
        token = other_app.post("/auth/login", json=credentials).json()["token"]
        headers = {"Authorization": f"Bearer {token}"}

        assert other_app.post("/movies", json=MOVIE_PAYLOAD, headers=headers).status_code == 201
        assert client.post("/movies", json=MOVIE_PAYLOAD, headers=headers).status_code == 401


class TestMovieEndpoints:
    """Test the relational deployment CRUD routes."""

    def test_create_requires_token(self, client):
        response = client.post("/movies", json=MOVIE_PAYLOAD)

        assert response.status_code == 401

    def test_invalid_token_rejected(self, client):
        response = client.post(
            "/movies", json=MOVIE_PAYLOAD, headers={"Authorization": "Bearer garbage"}
        )

        assert response.status_code == 401

    def test_create_and_get(self, client, auth_headers):
        created = client.post("/movies", json=MOVIE_PAYLOAD, headers=auth_headers)

        assert created.status_code == 201
        movie_id = created.json()["id"]

        response = client.get(f"/movies/{movie_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["movie"]["title"] == "Inception"
        assert body["movie"]["release_date"] == "2010-07-16"
        assert body["movie"]["recommendations"] == ["Interstellar"]
        assert body["advice"] == ADVICE_HIGH

    def test_get_is_cached(self, client, auth_headers, cached_postgres_repo):
        movie_id = client.post("/movies", json=MOVIE_PAYLOAD, headers=auth_headers).json()["id"]

        client.get(f"/movies/{movie_id}")
        client.get(f"/movies/{movie_id}")

        assert cached_postgres_repo.hits == 1
        assert cached_postgres_repo.misses == 1

    def test_update_invalidates_cache(self, client, auth_headers):
        movie_id = client.post("/movies", json=MOVIE_PAYLOAD, headers=auth_headers).json()["id"]
        client.get(f"/movies/{movie_id}")

        response = client.put(
            f"/movies/{movie_id}", json={**MOVIE_PAYLOAD, "rating": 6.0}, headers=auth_headers
        )

        assert response.status_code == 204
        body = client.get(f"/movies/{movie_id}").json()
        assert body["movie"]["rating"] == 6.0
        assert body["advice"] == ADVICE_AVERAGE

    def test_delete_invalidates_cache(self, client, auth_headers):
        movie_id = client.post("/movies", json=MOVIE_PAYLOAD, headers=auth_headers).json()["id"]
        client.get(f"/movies/{movie_id}")

        response = client.delete(f"/movies/{movie_id}", headers=auth_headers)

        assert response.status_code == 204
        assert client.get(f"/movies/{movie_id}").status_code == 404

    def test_get_missing(self, client):
        response = client.get("/movies/999")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "movie_not_found"

    def test_update_missing(self, client, auth_headers):
        response = client.put("/movies/999", json=MOVIE_PAYLOAD, headers=auth_headers)

        assert response.status_code == 404

    def test_list(self, client, auth_headers):
        client.post("/movies", json=MOVIE_PAYLOAD, headers=auth_headers)
        client.post("/movies", json={**MOVIE_PAYLOAD, "title": "Tenet"}, headers=auth_headers)

        response = client.get("/movies")

        assert response.status_code == 200
        assert [m["title"] for m in response.json()] == ["Inception", "Tenet"]

    def test_rating_out_of_range(self, client, auth_headers):
        response = client.post(
            "/movies", json={**MOVIE_PAYLOAD, "rating": 11}, headers=auth_headers
        )

        assert response.status_code == 422

    def test_catalog_route_absent(self, client):
        assert client.get("/movies/search", params={"title": "Inception"}).status_code == 422


class TestCatalogEndpoints:
    """Test the TMDb deployment search route."""

    def test_search(self, catalog_client, stub_repo):
        first = catalog_client.get("/movies/search", params={"title": "Inception"})
        second = catalog_client.get("/movies/search", params={"title": "Inception"})

        assert first.status_code == 200
        assert first.json()["advice"] == ADVICE_HIGH
        assert second.json() == first.json()
        assert stub_repo.calls["fetch_by_key"] == 1

    def test_search_not_found(self, catalog_client):
        response = catalog_client.get("/movies/search", params={"title": "Nope"})

        assert response.status_code == 404

    def test_search_requires_title(self, catalog_client):
        assert catalog_client.get("/movies/search").status_code == 422

    def test_blank_title_is_400(self, catalog_client):
        response = catalog_client.get("/movies/search", params={"title": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_provider_failure_is_503(self, catalog_client, stub_repo):
        stub_repo.fetch_error = ProviderFailureException("tmdb", "connection refused")

        response = catalog_client.get("/movies/search", params={"title": "Inception"})

        assert response.status_code == 503
        assert response.json()["error"] == "provider_unavailable"

    def test_deadline_exceeded_is_504(self, catalog_client, stub_repo):
        client = TestClient(create_app(Settings(MOVIE_SOURCE="tmdb", REQUEST_TIMEOUT_SECONDS=0.05)))
        stub_repo.fetch_delay = 0.2

        response = client.get("/movies/search", params={"title": "Inception"})

        assert response.status_code == 504
        assert response.json()["error"] == "deadline_exceeded"

    def test_deadline_comes_from_the_serving_app(self, catalog_client, stub_repo, monkeypatch):
        """The environment settings do not override the deadline the app was built with."""
        monkeypatch.setattr(settings, "REQUEST_TIMEOUT_SECONDS", 0.05)
        stub_repo.fetch_delay = 0.2

        response = catalog_client.get("/movies/search", params={"title": "Inception"})

        assert response.status_code == 200

    def test_crud_routes_absent(self, catalog_client):
        assert catalog_client.post("/movies", json=MOVIE_PAYLOAD).status_code in (404, 405)

    def test_unsupported_operation_is_405(self, user_service):
        catalog = TMDbMovieRepository(api_key="test-key")
        dependencies.set_movie_service(MovieService(catalog))
        try:
            client = TestClient(create_app(Settings(MOVIE_SOURCE="postgres")))
            response = client.get("/movies")
        finally:
            dependencies.set_movie_service(None)

        assert response.status_code == 405
        assert response.json()["error"] == "unsupported_operation"


class TestServiceEndpoints:
    """Test health, stats, metrics and root."""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_cache_stats(self, client):
        response = client.get("/api/v1/cache/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["enabled"] is True
        assert body["backend"] == "memory"
        assert body["ttl_seconds"] == 300

    def test_metrics(self, client):
        client.get("/api/v1/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "movie_http_requests_total" in response.text

    def test_root(self, catalog_client):
        response = catalog_client.get("/")

        assert response.json()["movie_source"] == "tmdb"

    def test_request_id_is_echoed(self, client):
        response = client.get("/api/v1/health", headers={"X-Request-ID": "req-test-1"})

        assert response.headers["X-Request-ID"] == "req-test-1"

    def test_request_id_is_generated(self, client):
        response = client.get("/api/v1/health")

        assert response.headers["X-Request-ID"].startswith("req-")

    def test_ready(self, client, monkeypatch):
        monkeypatch.setattr("movie_service.routers.health_router.check_db", lambda: True)

        response = client.get("/api/v1/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {"database": "healthy", "cache": "healthy"}

    def test_not_ready_when_database_down(self, client, monkeypatch):
        monkeypatch.setattr("movie_service.routers.health_router.check_db", lambda: False)

        response = client.get("/api/v1/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    def test_clear_cache(self, client, auth_headers, cached_postgres_repo):
        movie_id = client.post("/movies", json=MOVIE_PAYLOAD, headers=auth_headers).json()["id"]
        client.get(f"/movies/{movie_id}")

        response = client.delete("/api/v1/cache", headers=auth_headers)

        assert response.status_code == 204
        assert client.get("/api/v1/cache/stats").json()["size"] == 0

    def test_clear_cache_requires_token(self, client):
        assert client.delete("/api/v1/cache").status_code == 401
