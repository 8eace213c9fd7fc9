"""API routers for movie service."""
