"""Administrative vote audit and deletion endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from awards.api.deps import get_db_session
from awards.api.routes.auth import AuthenticatedUser, require_admin
from awards.models import VotingPhase
from awards.schemas.voting import VoteAudit, VoteRead, VoterPurgeRead
from awards.services.editions import (
    EditionNotFoundError,
    NoActiveEditionError,
    get_active_edition,
    get_edition,
)
from awards.services.voting import (
    VoteNotFoundError,
    list_votes,
    remove_vote,
    remove_votes_for_voter,
    unique_voters,
)

router = APIRouter()


@router.get("/votes", response_model=VoteAudit)
def audit_votes(
    edition_id: str | None = None,
    category_id: str | None = None,
    voting_phase: VotingPhase | None = None,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> VoteAudit:
    """List votes of an edition, the active one by default."""

    try:
        edition = (
            get_edition(session, edition_id=edition_id)
            if edition_id is not None
            else get_active_edition(session)
        )
    except (EditionNotFoundError, NoActiveEditionError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    votes = list_votes(session, edition_id=edition.id, category_id=category_id, phase=voting_phase)
    return VoteAudit(
        votes=[VoteRead.model_validate(item) for item in votes],
        total=len(votes),
        unique_voters=unique_voters(votes),
    )


@router.delete("/votes/{vote_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vote(
    vote_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> None:
    try:
        remove_vote(session, vote_id=vote_id)
    except VoteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.delete("/voters/{voter}/votes", response_model=VoterPurgeRead)
def purge_voter(
    voter: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> VoterPurgeRead:
    """Delete every vote and text submission of one voter."""

    result = remove_votes_for_voter(session, voter=voter)
    return VoterPurgeRead(
        votes_deleted=result.votes_deleted, submissions_deleted=result.submissions_deleted
    )


__all__ = ["audit_votes", "delete_vote", "purge_voter", "router"]
