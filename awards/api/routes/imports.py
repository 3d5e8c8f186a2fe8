"""Bulk JSON imports for the catalog."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from awards.api.deps import get_db_session
from awards.api.routes.auth import AuthenticatedUser, require_admin
from awards.schemas.catalog import ImportResponse
from awards.services.imports import (
    ImportPayloadError,
    ImportReport,
    import_categories,
    import_participants,
    parse_rows,
)

router = APIRouter(prefix="/imports")


async def _read_rows(request: Request) -> list:
    body = await request.body()
    if not body:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    try:
        return parse_rows(body)
    except ImportPayloadError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _response(report: ImportReport) -> ImportResponse:
    return ImportResponse(created=report.created, errors=report.errors)


@router.post("/categories", response_model=ImportResponse)
async def upload_categories(
    request: Request,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> ImportResponse:
    rows = await _read_rows(request)
    return _response(import_categories(session, rows))


@router.post("/participants", response_model=ImportResponse)
async def upload_participants(
    request: Request,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> ImportResponse:
    rows = await _read_rows(request)
    return _response(import_participants(session, rows))


__all__ = ["router", "upload_categories", "upload_participants"]
