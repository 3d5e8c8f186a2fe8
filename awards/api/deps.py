"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy.orm import Session

from awards.core.config import get_settings
from awards.db.session import SessionLocal
from awards.services.images import ParticipantImageService
from awards.services.summarizer import SummarizerClient


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_image_service() -> ParticipantImageService:
    return ParticipantImageService(settings=get_settings())


def get_summarizer() -> Iterator[SummarizerClient]:
    """Yield a summarizer client bound to the configured endpoint."""

    client = SummarizerClient.from_settings(get_settings())
    try:
        yield client
    finally:
        client.close()


__all__ = ["get_db_session", "get_image_service", "get_summarizer"]
