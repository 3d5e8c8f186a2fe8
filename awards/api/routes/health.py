"""Health and readiness endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from awards.api.deps import get_db_session
from awards.core.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/healthz", summary="Liveness check")
def health_check() -> dict[str, str]:
    settings = get_settings()
    return {"status": "ok", "service": settings.app_name}


@router.get("/readyz", summary="Readiness check")
def readiness_check(session: Session = Depends(get_db_session)) -> dict[str, str]:
    settings = get_settings()
    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("database not reachable", extra={"error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable"
        ) from exc
    return {"status": "ready", "service": settings.app_name}
