"""Cross category leaderboards used to seed computed categories."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from awards.models import (
    Category,
    CategoryKind,
    Nomination,
    NominationOrigin,
    Participant,
    Vote,
    VotingPhase,
    pair_key_for,
)
from awards.services.catalog import DuplicateNominationError, existing_pair_keys, get_category

logger = logging.getLogger(__name__)

LEADERBOARD_SIZE = 3


class LeaderboardError(RuntimeError):
    """Base exception for leaderboard errors."""


class NoWinnersError(LeaderboardError):
    """Raised when no category has a winner yet."""


class ComputedCategoryRequiredError(LeaderboardError):
    """Raised when auto population targets a category open to voting."""


@dataclass(slots=True, frozen=True)
class LeaderboardEntry:
    participant_id: str
    name: str
    score: int


@dataclass(slots=True, frozen=True)
class PopulateResult:
    added: list[str]
    skipped: list[str]


def _rank(rows) -> list[LeaderboardEntry]:
    entries = [
        LeaderboardEntry(participant_id=participant_id, name=name, score=int(score))
        for participant_id, name, score in rows
    ]
    entries.sort(key=lambda entry: (-entry.score, entry.name.casefold(), entry.participant_id))
    return entries


def total_votes_leaderboard(
    session: Session, *, edition_id: str, limit: int = LEADERBOARD_SIZE
) -> list[LeaderboardEntry]:
    """Participants with the most final phase votes across votable individual categories."""

    statement = (
        select(Participant.id, Participant.name, func.count(Vote.id))
        .select_from(Vote)
        .join(Nomination, Nomination.id == Vote.nomination_id)
        .join(Category, Category.id == Nomination.category_id)
        .join(Participant, Participant.id == Nomination.participant_id)
        .where(
            Category.edition_id == edition_id,
            Category.kind == CategoryKind.PARTICIPANT_BASED,
            Category.is_votable.is_(True),
            Vote.voting_phase == VotingPhase.FINAL.value,
        )
        .group_by(Participant.id, Participant.name)
    )
    return _rank(session.execute(statement))[:limit]


def populate_from_total_votes(session: Session, *, category_id: str) -> PopulateResult:
    """Add the total votes top three to a computed category, keeping existing nominees."""

    category = get_category(session, category_id=category_id)
    if category.is_votable:
        raise ComputedCategoryRequiredError("Auto population only targets non votable categories")

    leaders = total_votes_leaderboard(session, edition_id=category.edition_id)
    taken = existing_pair_keys(session, category_id=category.id)
    added: list[str] = []
    skipped: list[str] = []
    for entry in leaders:
        key = pair_key_for(entry.participant_id)
        if key in taken:
            skipped.append(entry.participant_id)
            continue
        session.add(
            Nomination(
                category_id=category.id,
                participant_id=entry.participant_id,
                pair_key=key,
                origin=NominationOrigin.ADMIN,
                is_finalist=True,
            )
        )
        added.append(entry.participant_id)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise DuplicateNominationError("Some leaders are already nominated") from exc

    logger.info(
        "computed category populated",
        extra={"category_id": category.id, "added": len(added), "skipped": len(skipped)},
    )
    return PopulateResult(added=added, skipped=skipped)


def win_count_leaderboard(
    session: Session,
    *,
    edition_id: str,
    exclude_category_id: str | None = None,
    limit: int = LEADERBOARD_SIZE,
) -> list[LeaderboardEntry]:
    """Participants holding the most category wins in individual categories."""

    statement = (
        select(Participant.id, Participant.name, func.count(Nomination.id))
        .select_from(Nomination)
        .join(Category, Category.id == Nomination.category_id)
        .join(Participant, Participant.id == Nomination.participant_id)
        .where(
            Category.edition_id == edition_id,
            Category.kind == CategoryKind.PARTICIPANT_BASED,
            Nomination.is_winner.is_(True),
        )
        .group_by(Participant.id, Participant.name)
    )
    if exclude_category_id is not None:
        statement = statement.where(Category.id != exclude_category_id)
    return _rank(session.execute(statement))[:limit]


def nominate_top_winners(session: Session, *, category_id: str) -> list[str]:
    """Nominate the three participants with the most wins into ``category_id``."""

    category = get_category(session, category_id=category_id)
    leaders = win_count_leaderboard(
        session, edition_id=category.edition_id, exclude_category_id=category.id
    )
    if not leaders:
        raise NoWinnersError("There are no winners yet")

    taken = existing_pair_keys(session, category_id=category.id)
    already = [entry.name for entry in leaders if pair_key_for(entry.participant_id) in taken]
    if already:
        raise DuplicateNominationError(f"Already nominated: {', '.join(already)}")

    for entry in leaders:
        session.add(
            Nomination(
                category_id=category.id,
                participant_id=entry.participant_id,
                pair_key=pair_key_for(entry.participant_id),
                origin=NominationOrigin.ADMIN,
            )
        )
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise DuplicateNominationError("These participants are already nominated") from exc

    logger.info("top winners nominated", extra={"category_id": category.id, "count": len(leaders)})
    return [entry.participant_id for entry in leaders]


__all__ = [
    "ComputedCategoryRequiredError",
    "LEADERBOARD_SIZE",
    "LeaderboardEntry",
    "LeaderboardError",
    "NoWinnersError",
    "PopulateResult",
    "nominate_top_winners",
    "populate_from_total_votes",
    "total_votes_leaderboard",
    "win_count_leaderboard",
]
