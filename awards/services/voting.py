"""Voting ledger: ballot rules, vote counts and administrative deletion."""
from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from awards.db.session import SerializationConflictError, serializable_transaction
from awards.models import (
    Category,
    CategoryKind,
    CeremonyStage,
    Edition,
    Nomination,
    NominationOrigin,
    Participant,
    ParticipantKind,
    TextSubmission,
    Vote,
    VotingPhase,
    canonical_pair,
    pair_key_for,
)
from awards.obs import record_vote, record_vote_rejection
from awards.services.catalog import (
    get_category,
    get_nomination,
    get_participant,
    list_nominations,
    list_participants,
)

logger = logging.getLogger(__name__)

FINAL_PHASE_CAP = 1


class VoteAction(str, enum.Enum):
    ADDED = "added"
    REMOVED = "removed"
    SWITCHED = "switched"
    UNCHANGED = "unchanged"


class VotingError(RuntimeError):
    """Base exception for rejected ballots."""


class VotingClosedError(VotingError):
    """Raised when the category's edition is not accepting ballots."""


class PhaseMismatchError(VotingError):
    """Raised when a ballot targets a phase other than the edition's current one."""


class CategoryNotVotableError(VotingError):
    """Raised for computed categories that are excluded from voting."""


class VoteCapacityError(VotingError):
    """Raised when the voter already holds the maximum votes for the category."""


class NotAFinalistError(VotingError):
    """Raised when a final phase vote targets a non finalist nomination."""


class InvalidBallotError(VotingError):
    """Raised when the ballot does not match the category kind."""


class DuplicateBallotError(VotingError):
    """Raised when a concurrent write already recorded the same candidate or vote."""


class VoteNotFoundError(VotingError):
    """Raised when a vote identifier does not exist."""


@dataclass(slots=True, frozen=True)
class VoteResult:
    """Outcome of a ballot action."""

    action: VoteAction
    category_id: str
    phase: VotingPhase
    nomination_id: str
    standing_votes: int


@dataclass(slots=True, frozen=True)
class BallotEntry:
    nomination: Nomination
    vote_count: int
    user_voted: bool


@dataclass(slots=True)
class Ballot:
    """What a voter sees for one category."""

    category: Category
    phase: VotingPhase
    cap: int
    entries: list[BallotEntry] = field(default_factory=list)
    pool: list[Participant] = field(default_factory=list)
    submission: str | None = None

    @property
    def standing_votes(self) -> int:
        return sum(1 for entry in self.entries if entry.user_voted)


@dataclass(slots=True, frozen=True)
class VoterPurgeResult:
    votes_deleted: int
    submissions_deleted: int


def normalise_voter(voter: str) -> str:
    return voter.strip().lower()


def phase_cap(category: Category, phase: VotingPhase) -> int:
    if phase == VotingPhase.FINAL:
        return FINAL_PHASE_CAP
    return category.phase_one_cap


def ensure_ballot_open(edition: Edition, category: Category, phase: VotingPhase) -> None:
    """Reject ballots the edition is not currently accepting."""

    if not edition.is_active:
        raise VotingClosedError("This category does not belong to the active edition")
    if not edition.voting_open or edition.ceremony_stage == CeremonyStage.LIVE:
        raise VotingClosedError("Voting is closed")
    if phase != edition.phase:
        raise PhaseMismatchError(
            f"Voting is in phase {edition.voting_phase}, not phase {int(phase)}"
        )
    if not category.is_votable:
        raise CategoryNotVotableError("This category is not open to voting")


def _standing_votes(session: Session, *, category_id: str, voter: str, phase: VotingPhase) -> list[Vote]:
    statement = select(Vote).where(
        Vote.category_id == category_id,
        Vote.voter_identifier == voter,
        Vote.voting_phase == int(phase),
    )
    return list(session.scalars(statement))


def _count_standing(session: Session, *, category_id: str, voter: str, phase: VotingPhase) -> int:
    statement = select(func.count(Vote.id)).where(
        Vote.category_id == category_id,
        Vote.voter_identifier == voter,
        Vote.voting_phase == int(phase),
    )
    return int(session.scalar(statement) or 0)


def cast_vote(
    session: Session,
    *,
    voter: str,
    category_id: str,
    phase: VotingPhase,
    nomination_id: str | None = None,
    pair: Sequence[str] | None = None,
) -> VoteResult:
    """Apply one ballot action for ``voter``.

    Nomination phase: individual categories toggle a vote on and off with a cap
    of three, duo categories hold a single pick that is replaced on every new
    pick. Final phase: one vote per category, replaced when the voter switches.
    Each action commits atomically.
    """

    voter = normalise_voter(voter)
    phase = VotingPhase(phase)
    category = get_category(session, category_id=category_id)
    try:
        ensure_ballot_open(category.edition, category, phase)
        if phase == VotingPhase.FINAL:
            result = _cast_final_vote(session, voter=voter, category=category, nomination_id=nomination_id)
        elif category.kind == CategoryKind.TEXT_BASED:
            raise InvalidBallotError("Text categories take a written submission in the nomination phase")
        elif category.kind == CategoryKind.DUO:
            result = _cast_pair_vote(
                session, voter=voter, category=category, nomination_id=nomination_id, pair=pair
            )
        else:
            result = _toggle_vote(session, voter=voter, category=category, nomination_id=nomination_id)
    except VotingError as exc:
        record_vote_rejection(type(exc).__name__)
        logger.info(
            "ballot rejected",
            extra={"category_id": category_id, "phase": int(phase), "reason": str(exc)},
        )
        raise

    record_vote(category.kind.value, int(phase), result.action.value)
    logger.info(
        "ballot recorded",
        extra={
            "category_id": category_id,
            "phase": int(phase),
            "action": result.action.value,
            "nomination_id": result.nomination_id,
        },
    )
    return result


def _require_nomination(session: Session, *, category: Category, nomination_id: str | None) -> Nomination:
    if nomination_id is None:
        raise InvalidBallotError("A nomination is required")
    return get_nomination(session, nomination_id=nomination_id, category_id=category.id)


def _toggle_vote(
    session: Session, *, voter: str, category: Category, nomination_id: str | None
) -> VoteResult:
    nomination = _require_nomination(session, category=category, nomination_id=nomination_id)
    phase = VotingPhase.NOMINATION
    cap = phase_cap(category, phase)

    try:
        with serializable_transaction(session):
            existing = session.scalar(
                select(Vote).where(
                    Vote.nomination_id == nomination.id,
                    Vote.voter_identifier == voter,
                    Vote.voting_phase == int(phase),
                )
            )
            if existing is not None:
                session.delete(existing)
                action = VoteAction.REMOVED
            else:
                if _count_standing(session, category_id=category.id, voter=voter, phase=phase) >= cap:
                    raise VoteCapacityError(f"You already voted for {cap} candidates")
                session.add(
                    Vote(
                        nomination_id=nomination.id,
                        category_id=category.id,
                        voter_identifier=voter,
                        voting_phase=int(phase),
                    )
                )
                action = VoteAction.ADDED
    except (IntegrityError, SerializationConflictError) as exc:
        raise DuplicateBallotError("This vote was already recorded") from exc

    standing = _count_standing(session, category_id=category.id, voter=voter, phase=phase)
    return VoteResult(
        action=action,
        category_id=category.id,
        phase=phase,
        nomination_id=nomination.id,
        standing_votes=standing,
    )


def _replace_vote(
    session: Session,
    *,
    voter: str,
    category: Category,
    phase: VotingPhase,
    resolve_nomination: Callable[[], Nomination],
) -> VoteResult:
    """Drop the voter's standing votes in the category and vote for one nomination.

    ``resolve_nomination`` runs inside the transaction and returns the target
    nomination, creating it when needed.
    """

    try:
        with serializable_transaction(session):
            nomination = resolve_nomination()
            prior = _standing_votes(session, category_id=category.id, voter=voter, phase=phase)
            if len(prior) == 1 and prior[0].nomination_id == nomination.id:
                action = VoteAction.UNCHANGED
            else:
                action = VoteAction.SWITCHED if prior else VoteAction.ADDED
                for vote in prior:
                    session.delete(vote)
                session.flush()
                session.add(
                    Vote(
                        nomination_id=nomination.id,
                        category_id=category.id,
                        voter_identifier=voter,
                        voting_phase=int(phase),
                    )
                )
    except (IntegrityError, SerializationConflictError) as exc:
        raise DuplicateBallotError("Already nominated; refresh the ballot and try again") from exc

    return VoteResult(
        action=action,
        category_id=category.id,
        phase=phase,
        nomination_id=nomination.id,
        standing_votes=1,
    )


def _cast_final_vote(
    session: Session, *, voter: str, category: Category, nomination_id: str | None
) -> VoteResult:
    nomination = _require_nomination(session, category=category, nomination_id=nomination_id)
    if not nomination.is_finalist:
        raise NotAFinalistError("Only finalists can receive votes in the final phase")
    return _replace_vote(
        session,
        voter=voter,
        category=category,
        phase=VotingPhase.FINAL,
        resolve_nomination=lambda: nomination,
    )


def _cast_pair_vote(
    session: Session,
    *,
    voter: str,
    category: Category,
    nomination_id: str | None,
    pair: Sequence[str] | None,
) -> VoteResult:
    if pair is None and nomination_id is not None:
        nomination = get_nomination(session, nomination_id=nomination_id, category_id=category.id)
        if nomination.partner_id is None:
            raise InvalidBallotError("Duo categories take a pair of participants")
        pair = (nomination.participant_id, nomination.partner_id)
    if pair is None or len(pair) != 2:
        raise InvalidBallotError("Pick exactly two participants")
    if pair[0] == pair[1]:
        raise InvalidBallotError("Pick two different participants")
    for participant_id in pair:
        participant = get_participant(session, participant_id=participant_id)
        if participant.kind != ParticipantKind.INDIVIDUAL:
            raise InvalidBallotError("Pairs are built from people in the participant pool")

    low, high = canonical_pair(pair[0], pair[1])
    key = pair_key_for(low, high)

    def find_or_create() -> Nomination:
        nomination = session.scalar(
            select(Nomination).where(Nomination.category_id == category.id, Nomination.pair_key == key)
        )
        if nomination is None:
            nomination = Nomination(
                category_id=category.id,
                participant_id=low,
                partner_id=high,
                pair_key=key,
                origin=NominationOrigin.VOTER,
            )
            session.add(nomination)
            session.flush()
        return nomination

    return _replace_vote(
        session,
        voter=voter,
        category=category,
        phase=VotingPhase.NOMINATION,
        resolve_nomination=find_or_create,
    )


def count_votes(session: Session, *, nomination_id: str, phase: VotingPhase) -> int:
    statement = select(func.count(Vote.id)).where(
        Vote.nomination_id == nomination_id, Vote.voting_phase == int(phase)
    )
    return int(session.scalar(statement) or 0)


def vote_counts(
    session: Session, *, nomination_ids: Iterable[str], phase: VotingPhase
) -> dict[str, int]:
    """Fresh per-nomination counts; nominations without votes map to zero."""

    ids = list(nomination_ids)
    counts = dict.fromkeys(ids, 0)
    if not ids:
        return counts
    statement = (
        select(Vote.nomination_id, func.count(Vote.id))
        .where(Vote.nomination_id.in_(ids), Vote.voting_phase == int(phase))
        .group_by(Vote.nomination_id)
    )
    for nomination_id, total in session.execute(statement):
        counts[nomination_id] = int(total)
    return counts


def voted_category_ids(
    session: Session, *, voter: str, edition_id: str, phase: VotingPhase
) -> set[str]:
    """Categories where ``voter`` already has a standing ballot in ``phase``."""

    voter = normalise_voter(voter)
    statement = (
        select(Vote.category_id)
        .join(Category, Category.id == Vote.category_id)
        .where(
            Category.edition_id == edition_id,
            Vote.voter_identifier == voter,
            Vote.voting_phase == int(phase),
        )
        .distinct()
    )
    voted = set(session.scalars(statement))
    if phase == VotingPhase.NOMINATION:
        submissions = (
            select(TextSubmission.category_id)
            .join(Category, Category.id == TextSubmission.category_id)
            .where(Category.edition_id == edition_id, TextSubmission.voter_identifier == voter)
        )
        voted.update(session.scalars(submissions))
    return voted


def build_ballot(session: Session, *, voter: str, category_id: str) -> Ballot:
    voter = normalise_voter(voter)
    category = get_category(session, category_id=category_id)
    phase = category.edition.phase
    ballot = Ballot(category=category, phase=phase, cap=phase_cap(category, phase))

    if phase == VotingPhase.NOMINATION and category.kind == CategoryKind.TEXT_BASED:
        submission = session.scalar(
            select(TextSubmission).where(
                TextSubmission.category_id == category.id,
                TextSubmission.voter_identifier == voter,
            )
        )
        ballot.submission = submission.submission_text if submission else None
        return ballot

    nominations = list_nominations(
        session, category_id=category.id, finalists_only=phase == VotingPhase.FINAL
    )
    counts = vote_counts(session, nomination_ids=[item.id for item in nominations], phase=phase)
    mine = {
        vote.nomination_id
        for vote in _standing_votes(session, category_id=category.id, voter=voter, phase=phase)
    }
    ballot.entries = [
        BallotEntry(nomination=item, vote_count=counts[item.id], user_voted=item.id in mine)
        for item in nominations
    ]
    if phase == VotingPhase.NOMINATION and category.kind == CategoryKind.DUO:
        ballot.pool = list_participants(session)
    return ballot


def list_votes(
    session: Session,
    *,
    edition_id: str,
    category_id: str | None = None,
    phase: VotingPhase | None = None,
) -> list[Vote]:
    statement = (
        select(Vote)
        .join(Category, Category.id == Vote.category_id)
        .where(Category.edition_id == edition_id)
        .order_by(Vote.created_at.desc(), Vote.id)
    )
    if category_id is not None:
        statement = statement.where(Vote.category_id == category_id)
    if phase is not None:
        statement = statement.where(Vote.voting_phase == int(phase))
    return list(session.scalars(statement))


def unique_voters(votes: Iterable[Vote]) -> int:
    return len({vote.voter_identifier for vote in votes})


def remove_vote(session: Session, *, vote_id: str) -> None:
    vote = session.get(Vote, vote_id)
    if vote is None:
        raise VoteNotFoundError(f"Vote '{vote_id}' was not found")
    session.delete(vote)
    session.commit()
    logger.info("vote removed", extra={"vote_id": vote_id})


def remove_votes_for_voter(session: Session, *, voter: str) -> VoterPurgeResult:
    """Delete every vote and text submission of ``voter``; flags stay untouched."""

    voter = normalise_voter(voter)
    with serializable_transaction(session):
        votes = session.execute(delete(Vote).where(Vote.voter_identifier == voter))
        submissions = session.execute(
            delete(TextSubmission).where(TextSubmission.voter_identifier == voter)
        )
    result = VoterPurgeResult(
        votes_deleted=votes.rowcount or 0,
        submissions_deleted=submissions.rowcount or 0,
    )
    logger.info(
        "voter ballots purged",
        extra={"votes_deleted": result.votes_deleted, "submissions_deleted": result.submissions_deleted},
    )
    return result


__all__ = [
    "Ballot",
    "BallotEntry",
    "CategoryNotVotableError",
    "DuplicateBallotError",
    "FINAL_PHASE_CAP",
    "InvalidBallotError",
    "NotAFinalistError",
    "PhaseMismatchError",
    "VoteAction",
    "VoteCapacityError",
    "VoteNotFoundError",
    "VoteResult",
    "VoterPurgeResult",
    "VotingClosedError",
    "VotingError",
    "build_ballot",
    "cast_vote",
    "count_votes",
    "ensure_ballot_open",
    "list_votes",
    "normalise_voter",
    "phase_cap",
    "remove_vote",
    "remove_votes_for_voter",
    "unique_voters",
    "vote_counts",
]
