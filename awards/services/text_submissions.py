"""Free text ledger for text based categories."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from awards.models import CategoryKind, TextSubmission, VotingPhase
from awards.services.catalog import get_category
from awards.services.voting import InvalidBallotError, ensure_ballot_open, normalise_voter

logger = logging.getLogger(__name__)


class SubmissionRejectedError(InvalidBallotError):
    """Raised when the submitted text is empty or too long."""


def _find(session: Session, *, category_id: str, voter: str) -> TextSubmission | None:
    statement = select(TextSubmission).where(
        TextSubmission.category_id == category_id,
        TextSubmission.voter_identifier == voter,
    )
    return session.scalar(statement)


def submit_text(
    session: Session,
    *,
    voter: str,
    category_id: str,
    text: str,
    max_length: int,
) -> TextSubmission:
    """Store the voter's entry for the category; a later entry replaces the earlier one."""

    voter = normalise_voter(voter)
    category = get_category(session, category_id=category_id)
    if category.kind != CategoryKind.TEXT_BASED:
        raise InvalidBallotError("Only text categories accept written submissions")
    ensure_ballot_open(category.edition, category, VotingPhase.NOMINATION)

    cleaned = text.strip()
    if not cleaned:
        raise SubmissionRejectedError("The submission is empty")
    if len(cleaned) > max_length:
        raise SubmissionRejectedError(f"The submission exceeds {max_length} characters")

    submission = _find(session, category_id=category.id, voter=voter)
    if submission is None:
        submission = TextSubmission(category_id=category.id, voter_identifier=voter, submission_text=cleaned)
        session.add(submission)
        try:
            session.commit()
        except IntegrityError:
            # Lost an insert race against the same voter; overwrite instead.
            session.rollback()
            submission = _find(session, category_id=category.id, voter=voter)
            if submission is None:
                raise
            submission.submission_text = cleaned
            session.commit()
    else:
        submission.submission_text = cleaned
        session.commit()

    session.refresh(submission)
    logger.info("text submission stored", extra={"category_id": category.id})
    return submission


def get_submission(session: Session, *, voter: str, category_id: str) -> TextSubmission | None:
    return _find(session, category_id=category_id, voter=normalise_voter(voter))


def list_submissions(session: Session, *, category_id: str) -> list[TextSubmission]:
    statement = (
        select(TextSubmission)
        .where(TextSubmission.category_id == category_id)
        .order_by(TextSubmission.created_at.desc(), TextSubmission.id)
    )
    return list(session.scalars(statement))


__all__ = ["SubmissionRejectedError", "get_submission", "list_submissions", "submit_text"]
