"""Prometheus metrics for the application."""

import re
import time

from prometheus_client import Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# --- Metrics ---

APP_INFO = Info("app", "LexBias application info")
APP_INFO.info({"version": "1.0.0", "name": "lexbias"})

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)

ANALYSIS_RUNS = Counter(
    "analysis_runs_total",
    "Analysis runs by terminal state and cause",
    ["state", "cause"],
)

GENERATION_DURATION = Histogram(
    "analysis_generation_duration_seconds",
    "Wall time of the concurrent summary + bias generation step",
    buckets=[0.5, 1, 2.5, 5, 10, 20, 30, 60, 120],
)


# --- Middleware ---

# Numeric row IDs and 32-char hex pending IDs collapse to {id}
_ID_SEGMENT = re.compile(r"/(?:\d+|[0-9a-f]{32})(?=/|$)")


def _normalize_path(path: str) -> str:
    """Replace IDs in paths with {id} to avoid high cardinality."""
    return _ID_SEGMENT.sub("/{id}", path)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect HTTP request metrics for Prometheus."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = _normalize_path(request.url.path)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        REQUEST_COUNT.labels(method=method, path=path, status=response.status_code).inc()
        REQUEST_DURATION.labels(method=method, path=path).observe(duration)

        return response


def metrics_response() -> Response:
    """Generate Prometheus /metrics response."""
    return Response(
        content=generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
