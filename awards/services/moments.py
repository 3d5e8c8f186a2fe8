"""Turn summarized text submissions into final phase candidates."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import delete
from sqlalchemy.orm import Session

from awards.db.session import serializable_transaction
from awards.models import (
    CategoryKind,
    Nomination,
    NominationOrigin,
    Participant,
    ParticipantKind,
    Vote,
    pair_key_for,
)
from awards.services.catalog import CategoryKindError, get_category, list_nominations
from awards.services.summarizer import MAX_MOMENTS, Moment

logger = logging.getLogger(__name__)


class MomentValidationError(RuntimeError):
    """Raised when the moments to convert are missing, too many or incomplete."""


def validate_moments(moments: Sequence[Moment]) -> list[Moment]:
    if not moments:
        raise MomentValidationError("Provide at least one moment")
    if len(moments) > MAX_MOMENTS:
        raise MomentValidationError(f"At most {MAX_MOMENTS} moments can become finalists")
    cleaned: list[Moment] = []
    for position, moment in enumerate(moments, start=1):
        title = moment.title.strip()
        description = moment.description.strip()
        if not title or not description:
            raise MomentValidationError(f"Moment {position} needs a title and a description")
        cleaned.append(Moment(title=title, description=description))
    return cleaned


def create_moment_finalists(
    session: Session, *, category_id: str, moments: Sequence[Moment]
) -> list[Nomination]:
    """Replace the category's nominations with one finalist per moment."""

    category = get_category(session, category_id=category_id)
    if category.kind != CategoryKind.TEXT_BASED:
        raise CategoryKindError("Moments can only be added to text categories")
    cleaned = validate_moments(moments)

    with serializable_transaction(session):
        session.execute(
            delete(Vote).where(Vote.category_id == category.id),
            execution_options={"synchronize_session": False},
        )
        session.execute(
            delete(Nomination).where(Nomination.category_id == category.id),
            execution_options={"synchronize_session": False},
        )
        for moment in cleaned:
            participant = Participant(
                name=moment.title,
                description=moment.description,
                kind=ParticipantKind.MOMENT,
                source_text=moment.description,
            )
            session.add(participant)
            session.flush()
            session.add(
                Nomination(
                    category_id=category.id,
                    participant_id=participant.id,
                    pair_key=pair_key_for(participant.id),
                    origin=NominationOrigin.ADMIN,
                    is_finalist=True,
                )
            )

    session.expire_all()
    logger.info("moment finalists created", extra={"category_id": category.id, "count": len(cleaned)})
    return list_nominations(session, category_id=category.id)


__all__ = ["MomentValidationError", "create_moment_finalists", "validate_moments"]
