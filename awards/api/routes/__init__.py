"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from awards.api.routes import (
    auth,
    ballots,
    catalog,
    ceremony,
    editions,
    health,
    imports,
    results,
    votes,
)


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(editions.router, tags=["editions"])
    api_router.include_router(catalog.router, tags=["catalog"])
    api_router.include_router(imports.router, tags=["imports"])
    api_router.include_router(ballots.router, tags=["ballots"])
    api_router.include_router(votes.router, tags=["votes"])
    api_router.include_router(results.router, tags=["results"])
    api_router.include_router(ceremony.router, tags=["ceremony"])

    application.include_router(api_router)


__all__ = ["register_routes"]
