"""Edition lifecycle: CRUD, activation, phase control and cloning."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from awards.db.session import serializable_transaction
from awards.models import (
    Category,
    Edition,
    Nomination,
    NominationOrigin,
    VotingPhase,
)

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = {"name", "description", "year"}


class EditionError(RuntimeError):
    """Base exception for edition service errors."""


class EditionNotFoundError(EditionError):
    """Raised when an edition identifier does not exist."""


class NoActiveEditionError(EditionError):
    """Raised when an operation needs the active edition and none is active."""


class CloneError(EditionError):
    """Raised when an edition cannot be cloned into another."""


@dataclass(slots=True, frozen=True)
class CloneResult:
    """Counts of rows created by an edition clone."""

    categories_created: int
    categories_reused: int
    nominations_created: int


def get_edition(session: Session, *, edition_id: str) -> Edition:
    edition = session.get(Edition, edition_id)
    if edition is None:
        raise EditionNotFoundError(f"Edition '{edition_id}' was not found")
    return edition


def get_active_edition(session: Session) -> Edition:
    edition = session.scalar(select(Edition).where(Edition.is_active.is_(True)).limit(1))
    if edition is None:
        raise NoActiveEditionError("There is no active edition")
    return edition


def list_editions(session: Session) -> list[Edition]:
    statement = select(Edition).order_by(Edition.year.desc(), Edition.name)
    return list(session.scalars(statement))


def create_edition(
    session: Session,
    *,
    name: str,
    description: str | None = None,
    year: int | None = None,
) -> Edition:
    edition = Edition(name=name, description=description, year=year)
    session.add(edition)
    session.commit()
    session.refresh(edition)
    logger.info("created edition", extra={"edition_id": edition.id})
    return edition


def update_edition(session: Session, *, edition_id: str, changes: dict[str, Any]) -> Edition:
    edition = get_edition(session, edition_id=edition_id)
    for field_name, value in changes.items():
        if field_name in _MUTABLE_FIELDS:
            setattr(edition, field_name, value)
    session.commit()
    session.refresh(edition)
    return edition


def delete_edition(session: Session, *, edition_id: str) -> None:
    edition = get_edition(session, edition_id=edition_id)
    session.delete(edition)
    session.commit()


def activate_edition(session: Session, *, edition_id: str) -> Edition:
    """Make ``edition_id`` the only active edition."""

    edition = get_edition(session, edition_id=edition_id)
    with serializable_transaction(session):
        session.execute(
            update(Edition).where(Edition.id != edition_id).values(is_active=False),
            execution_options={"synchronize_session": False},
        )
        edition.is_active = True
    session.expire_all()
    session.refresh(edition)
    logger.info("activated edition", extra={"edition_id": edition.id})
    return edition


def deactivate_edition(session: Session, *, edition_id: str) -> Edition:
    edition = get_edition(session, edition_id=edition_id)
    edition.is_active = False
    session.commit()
    session.refresh(edition)
    return edition


def set_voting_phase(session: Session, *, edition_id: str, phase: VotingPhase) -> Edition:
    edition = get_edition(session, edition_id=edition_id)
    edition.voting_phase = VotingPhase(phase).value
    session.commit()
    session.refresh(edition)
    logger.info("voting phase changed", extra={"edition_id": edition.id, "phase": int(phase)})
    return edition


def set_voting_open(session: Session, *, edition_id: str, voting_open: bool) -> Edition:
    edition = get_edition(session, edition_id=edition_id)
    edition.voting_open = voting_open
    session.commit()
    session.refresh(edition)
    logger.info("voting gate changed", extra={"edition_id": edition.id, "voting_open": voting_open})
    return edition


def clone_edition(session: Session, *, source_id: str, target_id: str) -> CloneResult:
    """Copy categories and curated nominations from one edition into another."""

    if source_id == target_id:
        raise CloneError("Source and target editions must differ")
    get_edition(session, edition_id=source_id)
    get_edition(session, edition_id=target_id)

    source_categories = list(
        session.scalars(
            select(Category).where(Category.edition_id == source_id).order_by(Category.display_order)
        )
    )
    if not source_categories:
        raise CloneError("The source edition has no categories")
    target_by_name = {
        category.name: category
        for category in session.scalars(select(Category).where(Category.edition_id == target_id))
    }

    created = reused = nominations_created = 0
    with serializable_transaction(session):
        for source in source_categories:
            target = target_by_name.get(source.name)
            if target is None:
                target = Category(
                    edition_id=target_id,
                    name=source.name,
                    description=source.description,
                    display_order=source.display_order,
                    kind=source.kind,
                    is_votable=source.is_votable,
                )
                session.add(target)
                session.flush()
                target_by_name[source.name] = target
                created += 1
            else:
                reused += 1

            existing_keys = set(
                session.scalars(select(Nomination.pair_key).where(Nomination.category_id == target.id))
            )
            for nomination in source.nominations:
                if nomination.origin != NominationOrigin.ADMIN or nomination.pair_key in existing_keys:
                    continue
                session.add(
                    Nomination(
                        category_id=target.id,
                        participant_id=nomination.participant_id,
                        partner_id=nomination.partner_id,
                        duo_id=nomination.duo_id,
                        pair_key=nomination.pair_key,
                        origin=NominationOrigin.ADMIN,
                    )
                )
                existing_keys.add(nomination.pair_key)
                nominations_created += 1

    logger.info(
        "cloned edition",
        extra={
            "source_edition_id": source_id,
            "target_edition_id": target_id,
            "categories_created": created,
            "nominations_created": nominations_created,
        },
    )
    return CloneResult(
        categories_created=created,
        categories_reused=reused,
        nominations_created=nominations_created,
    )


__all__ = [
    "CloneError",
    "CloneResult",
    "EditionError",
    "EditionNotFoundError",
    "NoActiveEditionError",
    "activate_edition",
    "clone_edition",
    "create_edition",
    "deactivate_edition",
    "delete_edition",
    "get_active_edition",
    "get_edition",
    "list_editions",
    "set_voting_phase",
    "set_voting_open",
    "update_edition",
]
