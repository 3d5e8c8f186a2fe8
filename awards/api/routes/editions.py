"""Edition lifecycle endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from awards.api.deps import get_db_session
from awards.api.routes.auth import AuthenticatedUser, require_admin
from awards.schemas.edition import (
    CloneRequest,
    CloneResponse,
    EditionCreate,
    EditionRead,
    EditionUpdate,
    PhaseUpdate,
    VotingGateUpdate,
)
from awards.services.editions import (
    CloneError,
    EditionNotFoundError,
    activate_edition,
    clone_edition,
    create_edition,
    deactivate_edition,
    delete_edition,
    get_edition,
    list_editions,
    set_voting_open,
    set_voting_phase,
    update_edition,
)

router = APIRouter(prefix="/editions")


def _not_found(exc: EditionNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/", response_model=EditionRead, status_code=status.HTTP_201_CREATED)
def create(
    payload: EditionCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    edition = create_edition(
        session, name=payload.name, description=payload.description, year=payload.year
    )
    return EditionRead.model_validate(edition)


@router.get("/", response_model=list[EditionRead])
def list_all(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[EditionRead]:
    return [EditionRead.model_validate(item) for item in list_editions(session)]


@router.get("/{edition_id}", response_model=EditionRead)
def read(
    edition_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    try:
        edition = get_edition(session, edition_id=edition_id)
    except EditionNotFoundError as exc:
        raise _not_found(exc) from exc
    return EditionRead.model_validate(edition)


@router.put("/{edition_id}", response_model=EditionRead)
def update(
    edition_id: str,
    payload: EditionUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    try:
        edition = update_edition(
            session, edition_id=edition_id, changes=payload.model_dump(exclude_unset=True)
        )
    except EditionNotFoundError as exc:
        raise _not_found(exc) from exc
    return EditionRead.model_validate(edition)


@router.delete("/{edition_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(
    edition_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> None:
    try:
        delete_edition(session, edition_id=edition_id)
    except EditionNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/{edition_id}/activate", response_model=EditionRead)
def activate(
    edition_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    """Make this edition the only active one."""

    try:
        edition = activate_edition(session, edition_id=edition_id)
    except EditionNotFoundError as exc:
        raise _not_found(exc) from exc
    return EditionRead.model_validate(edition)


@router.post("/{edition_id}/deactivate", response_model=EditionRead)
def deactivate(
    edition_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    try:
        edition = deactivate_edition(session, edition_id=edition_id)
    except EditionNotFoundError as exc:
        raise _not_found(exc) from exc
    return EditionRead.model_validate(edition)


@router.put("/{edition_id}/phase", response_model=EditionRead)
def change_phase(
    edition_id: str,
    payload: PhaseUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    try:
        edition = set_voting_phase(session, edition_id=edition_id, phase=payload.voting_phase)
    except EditionNotFoundError as exc:
        raise _not_found(exc) from exc
    return EditionRead.model_validate(edition)


@router.put("/{edition_id}/voting", response_model=EditionRead)
def change_voting_gate(
    edition_id: str,
    payload: VotingGateUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    try:
        edition = set_voting_open(session, edition_id=edition_id, voting_open=payload.voting_open)
    except EditionNotFoundError as exc:
        raise _not_found(exc) from exc
    return EditionRead.model_validate(edition)


@router.post("/{edition_id}/clone", response_model=CloneResponse)
def clone(
    edition_id: str,
    payload: CloneRequest,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> CloneResponse:
    """Copy this edition's categories and curated nominations into the target edition."""

    try:
        result = clone_edition(session, source_id=edition_id, target_id=payload.target_edition_id)
    except EditionNotFoundError as exc:
        raise _not_found(exc) from exc
    except CloneError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return CloneResponse(
        categories_created=result.categories_created,
        categories_reused=result.categories_reused,
        nominations_created=result.nominations_created,
    )


__all__ = [
    "activate",
    "change_phase",
    "change_voting_gate",
    "clone",
    "create",
    "deactivate",
    "delete",
    "list_all",
    "read",
    "router",
    "update",
]
