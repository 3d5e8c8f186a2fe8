"""Observability utilities."""

from .metrics import (
    FINALIST_PROMOTION_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    SUMMARIZER_LATENCY_SECONDS,
    VOTE_COUNTER,
    VOTE_REJECTION_COUNTER,
    PrometheusMiddleware,
    metrics_router,
    record_vote,
    record_vote_rejection,
)
from .tracing import (
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    traced,
)

__all__ = [
    "FINALIST_PROMOTION_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "SUMMARIZER_LATENCY_SECONDS",
    "VOTE_COUNTER",
    "VOTE_REJECTION_COUNTER",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "metrics_router",
    "record_vote",
    "record_vote_rejection",
    "traced",
]
