"""Ceremony control and the public display feed."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from awards.api.deps import get_db_session
from awards.api.routes.auth import AuthenticatedUser, require_admin
from awards.schemas.catalog import NominationRead
from awards.schemas.edition import EditionRead
from awards.schemas.results import (
    CategoryResultsRead,
    CeremonyStageUpdate,
    DisplayCategoryUpdate,
    DisplayNomineeRead,
    DisplayRead,
    ResultEntryRead,
    WinnerRequest,
)
from awards.services.catalog import CategoryNotFoundError, NominationNotFoundError
from awards.services.ceremony import (
    DisplayCategoryMismatchError,
    DisplayNominee,
    category_results,
    clear_winner,
    display_snapshot,
    end_ceremony,
    select_winner,
    set_display_category,
    start_ceremony,
)
from awards.services.editions import EditionNotFoundError

router = APIRouter()


def _nominee(nominee: DisplayNominee) -> DisplayNomineeRead:
    return DisplayNomineeRead(
        nomination_id=nominee.nomination_id,
        display_name=nominee.display_name,
        image_url=nominee.image_url,
        is_winner=nominee.is_winner,
    )


@router.put("/ceremony/display", response_model=EditionRead)
def point_display(
    payload: DisplayCategoryUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    """Choose which category the projected display shows."""

    try:
        edition = set_display_category(
            session, edition_id=payload.edition_id, category_id=payload.category_id
        )
    except (EditionNotFoundError, CategoryNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DisplayCategoryMismatchError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return EditionRead.model_validate(edition)


@router.post("/ceremony/start", response_model=EditionRead)
def start(
    payload: CeremonyStageUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    try:
        edition = start_ceremony(session, edition_id=payload.edition_id)
    except EditionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return EditionRead.model_validate(edition)


@router.post("/ceremony/end", response_model=EditionRead)
def end(
    payload: CeremonyStageUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> EditionRead:
    try:
        edition = end_ceremony(session, edition_id=payload.edition_id)
    except EditionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return EditionRead.model_validate(edition)


@router.get("/ceremony/categories/{category_id}", response_model=CategoryResultsRead)
def results(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> CategoryResultsRead:
    try:
        outcome = category_results(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CategoryResultsRead(
        category_id=outcome.category.id,
        category_name=outcome.category.name,
        voting_phase=outcome.phase,
        entries=[
            ResultEntryRead(
                nomination=NominationRead.model_validate(entry.nomination),
                vote_count=entry.vote_count,
            )
            for entry in outcome.entries
        ],
    )


@router.post("/categories/{category_id}/winner", response_model=NominationRead)
def choose_winner(
    category_id: str,
    payload: WinnerRequest,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> NominationRead:
    try:
        nomination = select_winner(
            session, category_id=category_id, nomination_id=payload.nomination_id
        )
    except (CategoryNotFoundError, NominationNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return NominationRead.model_validate(nomination)


@router.delete("/categories/{category_id}/winner", status_code=status.HTTP_204_NO_CONTENT)
def remove_winner(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> None:
    try:
        clear_winner(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/display", response_model=DisplayRead)
def display(session: Session = Depends(get_db_session)) -> DisplayRead:
    """Public, unauthenticated feed for the projected screen."""

    snapshot = display_snapshot(session)
    winner = snapshot.winner
    return DisplayRead(
        edition_name=snapshot.edition_name,
        stage=snapshot.stage,
        waiting=snapshot.waiting,
        category_id=snapshot.category_id,
        category_name=snapshot.category_name,
        category_description=snapshot.category_description,
        position=snapshot.position,
        total=snapshot.total,
        nominees=[_nominee(item) for item in snapshot.nominees],
        winner=_nominee(winner) if winner is not None else None,
    )


__all__ = [
    "choose_winner",
    "display",
    "end",
    "point_display",
    "remove_winner",
    "results",
    "router",
    "start",
]
