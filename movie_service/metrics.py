"""
Prometheus metrics for Movie Service.

Tracks HTTP traffic, cache effectiveness and upstream provider calls.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "movie_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "movie_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Cache metrics
cache_hits_total = Counter("movie_cache_hits_total", "Total cache hits", ["cache_type"])

cache_misses_total = Counter(
    "movie_cache_misses_total", "Total cache misses", ["cache_type"]
)

cache_invalidations_total = Counter(
    "movie_cache_invalidations_total", "Total cache invalidations", ["cache_type"]
)

cache_backend_errors_total = Counter(
    "movie_cache_backend_errors_total",
    "Cache backend faults that were logged and ignored",
    ["cache_type", "operation"],
)

# Provider metrics
provider_calls_total = Counter(
    "movie_provider_calls_total",
    "Total calls to upstream movie providers",
    ["provider", "status"],
)


def track_request_metrics(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record one finished HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


async def metrics_endpoint() -> Response:
    """Render all metrics in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
