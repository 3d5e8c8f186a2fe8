"""Prometheus metrics for the HTTP layer and the voting domain."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "path"),
)
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "path", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "http_request_errors_total",
    "Total number of HTTP requests that resulted in server errors.",
    labelnames=("method", "path", "status"),
)
VOTE_COUNTER = Counter(
    "awards_votes_total",
    "Accepted ballot actions by category kind, phase and action.",
    labelnames=("kind", "phase", "action"),
)
VOTE_REJECTION_COUNTER = Counter(
    "awards_vote_rejections_total",
    "Ballot attempts rejected by the voting ledger.",
    labelnames=("reason",),
)
FINALIST_PROMOTION_COUNTER = Counter(
    "awards_finalist_promotions_total",
    "Finalist promotion runs by policy.",
    labelnames=("policy",),
)
SUMMARIZER_LATENCY_SECONDS = Histogram(
    "awards_summarizer_latency_seconds",
    "Latency of text summarizer calls in seconds.",
    labelnames=("operation", "outcome"),
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request metrics for Prometheus scraping."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        method = request.method
        route = request.scope.get("route")
        # Templated route paths keep label cardinality bounded.
        path = getattr(route, "path", request.url.path)
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            route = request.scope.get("route")
            path = getattr(route, "path", path)
            status = str(response.status_code)
            if response.status_code >= 500:
                REQUEST_ERROR_COUNTER.labels(method=method, path=path, status=status).inc()
            return response
        except Exception:
            REQUEST_ERROR_COUNTER.labels(method=method, path=path, status="500").inc()
            raise
        finally:
            latency = time.perf_counter() - start_time
            REQUEST_LATENCY_SECONDS.labels(method=method, path=path).observe(latency)
            REQUEST_COUNTER.labels(method=method, path=path, status=status).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


def record_vote(kind: str, phase: int, action: str) -> None:
    VOTE_COUNTER.labels(kind=kind, phase=str(phase), action=action).inc()


def record_vote_rejection(reason: str) -> None:
    VOTE_REJECTION_COUNTER.labels(reason=reason).inc()


__all__ = [
    "FINALIST_PROMOTION_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "SUMMARIZER_LATENCY_SECONDS",
    "VOTE_COUNTER",
    "VOTE_REJECTION_COUNTER",
    "metrics_endpoint",
    "metrics_router",
    "record_vote",
    "record_vote_rejection",
]
