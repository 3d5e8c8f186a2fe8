"""FastAPI application entrypoint."""
from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from awards.api.routes import register_routes
from awards.core.config import Settings, get_settings
from awards.core.logging import configure_logging
from awards.db.session import SerializationConflictError
from awards.obs import (
    PrometheusMiddleware,
    initialise_tracing,
    instrument_fastapi_app,
    metrics_router,
)


async def serialization_conflict_handler(request: Request, exc: SerializationConflictError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


def create_application(settings: Settings | None = None) -> FastAPI:
    """Application factory used by ASGI servers and tests."""
    configure_logging()
    settings = settings or get_settings()

    if settings.enable_tracing:
        initialise_tracing(service_name=settings.app_name, endpoint=settings.otel_exporter_endpoint)

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
    )

    if settings.enable_metrics:
        application.add_middleware(PrometheusMiddleware)
        application.include_router(metrics_router)
    application.add_exception_handler(SerializationConflictError, serialization_conflict_handler)
    register_routes(application)

    if settings.enable_tracing:
        instrument_fastapi_app(application)

    return application


app = create_application()
