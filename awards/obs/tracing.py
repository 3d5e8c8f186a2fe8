"""OpenTelemetry tracing helpers."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.trace import Span

_SERVICE_NAME_ATTRIBUTE = "service.name"
_TRACER_NAME = "awards"


def _create_tracer_provider(service_name: str, endpoint: str | None) -> TracerProvider:
    resource = Resource(attributes={_SERVICE_NAME_ATTRIBUTE: service_name})
    provider = TracerProvider(resource=resource)
    if endpoint:
        processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
    else:
        processor = SimpleSpanProcessor(ConsoleSpanExporter())
    provider.add_span_processor(processor)
    return provider


def initialise_tracing(
    *,
    service_name: str,
    endpoint: str | None = None,
    instrument_logging: bool = True,
) -> None:
    """Initialise a global tracer provider if one has not already been configured."""

    current_provider = trace.get_tracer_provider()
    if (
        isinstance(current_provider, TracerProvider)
        and getattr(current_provider.resource, "attributes", {}).get(_SERVICE_NAME_ATTRIBUTE)
        == service_name
    ):
        return

    provider = _create_tracer_provider(service_name, endpoint)
    trace.set_tracer_provider(provider)
    if instrument_logging:
        LoggingInstrumentor().instrument(set_logging_format=True)


def instrument_fastapi_app(app: FastAPI) -> None:
    """Enable FastAPI OpenTelemetry instrumentation."""
    FastAPIInstrumentor().instrument_app(app)


def instrument_sqlalchemy_engine(engine: Any) -> None:
    """Instrument SQLAlchemy engine for tracing if not already instrumented."""
    SQLAlchemyInstrumentor().instrument(engine=engine)


@contextmanager
def traced(name: str, **attributes: Any) -> Iterator[Span]:
    """Wrap a domain operation in a span, tagging it with scalar attributes."""

    tracer = trace.get_tracer(_TRACER_NAME)
    with tracer.start_as_current_span(name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"awards.{key}", value)
        yield span


__all__ = [
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "traced",
]
