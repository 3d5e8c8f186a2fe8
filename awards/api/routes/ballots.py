"""Voter facing ballot, vote and text submission endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from awards.api.deps import get_db_session, get_summarizer
from awards.api.routes.auth import AuthenticatedUser, require_voter
from awards.core.config import get_settings
from awards.schemas.catalog import NominationRead, ParticipantRead
from awards.schemas.voting import (
    BallotCategorySummary,
    BallotEntryRead,
    BallotOverview,
    BallotRead,
    RewriteOptionRead,
    RewriteRequest,
    SubmissionRead,
    SubmissionWrite,
    VoteRequest,
    VoteResultRead,
)
from awards.services.catalog import (
    CategoryNotFoundError,
    NominationNotFoundError,
    ParticipantNotFoundError,
    get_category,
    list_categories,
)
from awards.services.editions import NoActiveEditionError, get_active_edition
from awards.services.summarizer import PromptInjectionError, SummarizerClient, SummarizerError
from awards.services.text_submissions import get_submission, submit_text
from awards.services.voting import (
    Ballot,
    InvalidBallotError,
    VotingError,
    build_ballot,
    cast_vote,
    voted_category_ids,
)

router = APIRouter()

_NOT_FOUND = (CategoryNotFoundError, NominationNotFoundError, ParticipantNotFoundError)


def _ballot_read(ballot: Ballot) -> BallotRead:
    return BallotRead(
        category_id=ballot.category.id,
        category_name=ballot.category.name,
        kind=ballot.category.kind,
        voting_phase=ballot.phase,
        cap=ballot.cap,
        standing_votes=ballot.standing_votes,
        entries=[
            BallotEntryRead(
                nomination=NominationRead.model_validate(entry.nomination),
                vote_count=entry.vote_count,
                user_voted=entry.user_voted,
            )
            for entry in ballot.entries
        ],
        pool=[ParticipantRead.model_validate(item) for item in ballot.pool],
        submission=ballot.submission,
    )


def _voting_error(exc: VotingError) -> HTTPException:
    code = (
        status.HTTP_422_UNPROCESSABLE_ENTITY
        if isinstance(exc, InvalidBallotError)
        else status.HTTP_409_CONFLICT
    )
    return HTTPException(status_code=code, detail=str(exc))


@router.get("/ballot", response_model=BallotOverview)
def ballot_overview(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_voter),
) -> BallotOverview:
    """List the active edition's votable categories and where the voter already voted."""

    try:
        edition = get_active_edition(session)
    except NoActiveEditionError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    voted = voted_category_ids(session, voter=user.email, edition_id=edition.id, phase=edition.phase)
    return BallotOverview(
        edition_id=edition.id,
        edition_name=edition.name,
        voting_phase=edition.phase,
        voting_open=edition.accepts_ballots,
        categories=[
            BallotCategorySummary(
                id=category.id,
                name=category.name,
                description=category.description,
                kind=category.kind,
                voted=category.id in voted,
            )
            for category in list_categories(session, edition_id=edition.id)
            if category.is_votable
        ],
    )


@router.get("/ballot/categories/{category_id}", response_model=BallotRead)
def category_ballot(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_voter),
) -> BallotRead:
    try:
        ballot = build_ballot(session, voter=user.email, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _ballot_read(ballot)


@router.post("/votes", response_model=VoteResultRead)
def vote(
    payload: VoteRequest,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_voter),
) -> VoteResultRead:
    """Cast, toggle or switch a vote depending on the category and phase."""

    try:
        result = cast_vote(
            session,
            voter=user.email,
            category_id=payload.category_id,
            phase=payload.voting_phase,
            nomination_id=payload.nomination_id,
            pair=payload.pair,
        )
    except _NOT_FOUND as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except VotingError as exc:
        raise _voting_error(exc) from exc

    return VoteResultRead(
        action=result.action.value,
        category_id=result.category_id,
        voting_phase=result.phase,
        nomination_id=result.nomination_id,
        standing_votes=result.standing_votes,
    )


@router.put("/categories/{category_id}/submission", response_model=SubmissionRead)
def write_submission(
    category_id: str,
    payload: SubmissionWrite,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_voter),
) -> SubmissionRead:
    settings = get_settings()
    try:
        submission = submit_text(
            session,
            voter=user.email,
            category_id=category_id,
            text=payload.text,
            max_length=settings.text_submission_max_length,
        )
    except CategoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except VotingError as exc:
        raise _voting_error(exc) from exc
    return SubmissionRead.model_validate(submission)


@router.get("/categories/{category_id}/submission", response_model=SubmissionRead)
def read_submission(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_voter),
) -> SubmissionRead:
    submission = get_submission(session, voter=user.email, category_id=category_id)
    if submission is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No submission yet")
    return SubmissionRead.model_validate(submission)


@router.post("/submissions/rewrite", response_model=list[RewriteOptionRead])
def rewrite_submission(
    payload: RewriteRequest,
    summarizer: SummarizerClient = Depends(get_summarizer),
    user: AuthenticatedUser = Depends(require_voter),
) -> list[RewriteOptionRead]:
    """Suggest the anecdote in each supported tone."""

    if not payload.text.strip():
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Text is required")
    try:
        options = summarizer.rewrite(payload.text)
    except PromptInjectionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SummarizerError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return [RewriteOptionRead(tone=option.tone, text=option.text) for option in options]


__all__ = [
    "ballot_overview",
    "category_ballot",
    "read_submission",
    "rewrite_submission",
    "router",
    "vote",
    "write_submission",
]
