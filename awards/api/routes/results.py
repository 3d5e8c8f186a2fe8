"""Finalist promotion, moment generation and leaderboard endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from awards.api.deps import get_db_session, get_summarizer
from awards.api.routes.auth import AuthenticatedUser, require_admin
from awards.models import CategoryKind
from awards.schemas.catalog import NominationRead
from awards.schemas.results import (
    FinalistsRead,
    LeaderboardEntryRead,
    MomentIn,
    MomentsRead,
    MomentsRequest,
    PopulateRead,
    PromoteSelectedRequest,
    RankedNominationRead,
)
from awards.schemas.voting import SubmissionRead
from awards.services.catalog import (
    CategoryKindError,
    CategoryNotFoundError,
    DuplicateNominationError,
    get_category,
)
from awards.services.editions import NoActiveEditionError, get_active_edition
from awards.services.finalists import (
    EmptySelectionError,
    ForeignNominationError,
    promote_all,
    promote_selected,
    promote_top,
    rank_nominations,
)
from awards.services.leaderboards import (
    ComputedCategoryRequiredError,
    NoWinnersError,
    nominate_top_winners,
    populate_from_total_votes,
    total_votes_leaderboard,
    win_count_leaderboard,
)
from awards.services.moments import MomentValidationError, create_moment_finalists
from awards.services.summarizer import Moment, SummarizerClient, SummarizerError
from awards.services.text_submissions import list_submissions

router = APIRouter()


def _category_not_found(exc: CategoryNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/categories/{category_id}/ranking", response_model=list[RankedNominationRead])
def ranking(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[RankedNominationRead]:
    try:
        ranked = rank_nominations(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise _category_not_found(exc) from exc
    return [
        RankedNominationRead(
            nomination_id=entry.nomination_id,
            display_name=entry.display_name,
            vote_count=entry.vote_count,
            is_finalist=entry.is_finalist,
        )
        for entry in ranked
    ]


@router.post("/categories/{category_id}/finalists/top", response_model=FinalistsRead)
def finalists_top(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> FinalistsRead:
    """Promote the four most voted nominations."""

    try:
        chosen = promote_top(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise _category_not_found(exc) from exc
    return FinalistsRead(category_id=category_id, finalist_ids=chosen)


@router.post("/categories/{category_id}/finalists/selected", response_model=FinalistsRead)
def finalists_selected(
    category_id: str,
    payload: PromoteSelectedRequest,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> FinalistsRead:
    try:
        chosen = promote_selected(
            session, category_id=category_id, nomination_ids=payload.nomination_ids
        )
    except CategoryNotFoundError as exc:
        raise _category_not_found(exc) from exc
    except (EmptySelectionError, ForeignNominationError) as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return FinalistsRead(category_id=category_id, finalist_ids=chosen)


@router.post("/categories/{category_id}/finalists/all", response_model=FinalistsRead)
def finalists_all(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> FinalistsRead:
    try:
        chosen = promote_all(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise _category_not_found(exc) from exc
    return FinalistsRead(category_id=category_id, finalist_ids=chosen)


@router.get("/categories/{category_id}/submissions", response_model=list[SubmissionRead])
def category_submissions(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[SubmissionRead]:
    try:
        get_category(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise _category_not_found(exc) from exc
    return [SubmissionRead.model_validate(item) for item in list_submissions(session, category_id=category_id)]


@router.post("/categories/{category_id}/moments/generate", response_model=MomentsRead)
def generate_moments(
    category_id: str,
    session: Session = Depends(get_db_session),
    summarizer: SummarizerClient = Depends(get_summarizer),
    user: AuthenticatedUser = Depends(require_admin),
) -> MomentsRead:
    """Ask the summarizer for up to four moments; nothing is stored."""

    try:
        category = get_category(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise _category_not_found(exc) from exc
    if category.kind != CategoryKind.TEXT_BASED:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Moments can only be generated for text categories",
        )

    submissions = [item.submission_text for item in list_submissions(session, category_id=category.id)]
    if not submissions:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="There are no submissions yet")
    try:
        moments = summarizer.generate_moments(submissions)
    except SummarizerError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return MomentsRead(
        moments=[MomentIn(title=item.title, description=item.description) for item in moments],
        submissions_used=len(submissions),
    )


@router.post(
    "/categories/{category_id}/moments",
    response_model=list[NominationRead],
    status_code=status.HTTP_201_CREATED,
)
def save_moments(
    category_id: str,
    payload: MomentsRequest,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[NominationRead]:
    """Replace the category's candidates with the reviewed moments."""

    try:
        nominations = create_moment_finalists(
            session,
            category_id=category_id,
            moments=[Moment(title=item.title, description=item.description) for item in payload.moments],
        )
    except CategoryNotFoundError as exc:
        raise _category_not_found(exc) from exc
    except (CategoryKindError, MomentValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return [NominationRead.model_validate(item) for item in nominations]


def _leaderboard_edition_id(session: Session, edition_id: str | None) -> str:
    if edition_id is not None:
        return edition_id
    try:
        return get_active_edition(session).id
    except NoActiveEditionError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/leaderboards/total-votes", response_model=list[LeaderboardEntryRead])
def leaderboard_total_votes(
    edition_id: str | None = None,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[LeaderboardEntryRead]:
    entries = total_votes_leaderboard(session, edition_id=_leaderboard_edition_id(session, edition_id))
    return [
        LeaderboardEntryRead(participant_id=item.participant_id, name=item.name, score=item.score)
        for item in entries
    ]


@router.post("/categories/{category_id}/populate/total-votes", response_model=PopulateRead)
def populate_total_votes(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> PopulateRead:
    try:
        result = populate_from_total_votes(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise _category_not_found(exc) from exc
    except ComputedCategoryRequiredError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except DuplicateNominationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return PopulateRead(added=result.added, skipped=result.skipped)


@router.get("/leaderboards/wins", response_model=list[LeaderboardEntryRead])
def leaderboard_wins(
    edition_id: str | None = None,
    exclude: str | None = None,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> list[LeaderboardEntryRead]:
    entries = win_count_leaderboard(
        session,
        edition_id=_leaderboard_edition_id(session, edition_id),
        exclude_category_id=exclude,
    )
    return [
        LeaderboardEntryRead(participant_id=item.participant_id, name=item.name, score=item.score)
        for item in entries
    ]


@router.post("/categories/{category_id}/populate/wins", response_model=PopulateRead)
def populate_wins(
    category_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(require_admin),
) -> PopulateRead:
    try:
        added = nominate_top_winners(session, category_id=category_id)
    except CategoryNotFoundError as exc:
        raise _category_not_found(exc) from exc
    except (NoWinnersError, DuplicateNominationError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return PopulateRead(added=added, skipped=[])


__all__ = [
    "category_submissions",
    "finalists_all",
    "finalists_selected",
    "finalists_top",
    "generate_moments",
    "leaderboard_total_votes",
    "leaderboard_wins",
    "populate_total_votes",
    "populate_wins",
    "ranking",
    "router",
    "save_moments",
]
