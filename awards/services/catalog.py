"""Categories, participants, curated duos and nominations."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from awards.models import (
    Category,
    CategoryKind,
    Duo,
    Nomination,
    NominationOrigin,
    Participant,
    ParticipantKind,
    canonical_pair,
    pair_key_for,
)

logger = logging.getLogger(__name__)

_CATEGORY_FIELDS = {"name", "description", "display_order", "kind", "is_votable"}
_PARTICIPANT_FIELDS = {"name", "description", "image_url"}


class CatalogError(RuntimeError):
    """Base exception for catalog errors."""


class CategoryNotFoundError(CatalogError):
    """Raised when a category identifier does not exist."""


class ParticipantNotFoundError(CatalogError):
    """Raised when a participant identifier does not exist."""


class NominationNotFoundError(CatalogError):
    """Raised when a nomination is missing or belongs to another category."""


class DuoNotFoundError(CatalogError):
    """Raised when a curated duo identifier does not exist."""


class DuplicateDuoError(CatalogError):
    """Raised when the same pair of participants is registered twice."""


class SameParticipantError(CatalogError):
    """Raised when a pair is built from a single participant."""


class DuplicateNominationError(CatalogError):
    """Raised when a candidate is already nominated in the category."""


class CategoryKindError(CatalogError):
    """Raised when an operation does not apply to the category's kind."""


def get_category(session: Session, *, category_id: str) -> Category:
    category = session.get(Category, category_id)
    if category is None:
        raise CategoryNotFoundError(f"Category '{category_id}' was not found")
    return category


def list_categories(session: Session, *, edition_id: str) -> list[Category]:
    statement = (
        select(Category)
        .where(Category.edition_id == edition_id)
        .order_by(Category.display_order, Category.name)
    )
    return list(session.scalars(statement))


def create_category(
    session: Session,
    *,
    edition_id: str,
    name: str,
    description: str | None = None,
    display_order: int = 0,
    kind: CategoryKind = CategoryKind.PARTICIPANT_BASED,
    is_votable: bool = True,
) -> Category:
    category = Category(
        edition_id=edition_id,
        name=name,
        description=description,
        display_order=display_order,
        kind=kind,
        is_votable=is_votable,
    )
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def update_category(session: Session, *, category_id: str, changes: dict[str, Any]) -> Category:
    category = get_category(session, category_id=category_id)
    for field_name, value in changes.items():
        if field_name in _CATEGORY_FIELDS:
            setattr(category, field_name, value)
    session.commit()
    session.refresh(category)
    return category


def delete_category(session: Session, *, category_id: str) -> None:
    category = get_category(session, category_id=category_id)
    session.delete(category)
    session.commit()


def get_participant(session: Session, *, participant_id: str) -> Participant:
    participant = session.get(Participant, participant_id)
    if participant is None:
        raise ParticipantNotFoundError(f"Participant '{participant_id}' was not found")
    return participant


def list_participants(
    session: Session, *, kind: ParticipantKind | None = ParticipantKind.INDIVIDUAL
) -> list[Participant]:
    statement = select(Participant).order_by(Participant.name)
    if kind is not None:
        statement = statement.where(Participant.kind == kind)
    return list(session.scalars(statement))


def create_participant(
    session: Session,
    *,
    name: str,
    description: str | None = None,
    image_url: str | None = None,
) -> Participant:
    participant = Participant(name=name, description=description, image_url=image_url)
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return participant


def update_participant(
    session: Session, *, participant_id: str, changes: dict[str, Any]
) -> Participant:
    participant = get_participant(session, participant_id=participant_id)
    for field_name, value in changes.items():
        if field_name in _PARTICIPANT_FIELDS:
            setattr(participant, field_name, value)
    session.commit()
    session.refresh(participant)
    return participant


def delete_participant(session: Session, *, participant_id: str) -> None:
    participant = get_participant(session, participant_id=participant_id)
    session.delete(participant)
    session.commit()


def create_duo(
    session: Session,
    *,
    first_participant_id: str,
    second_participant_id: str,
    duo_name: str | None = None,
) -> Duo:
    if first_participant_id == second_participant_id:
        raise SameParticipantError("A duo needs two different participants")
    for participant_id in (first_participant_id, second_participant_id):
        get_participant(session, participant_id=participant_id)

    low, high = canonical_pair(first_participant_id, second_participant_id)
    duo = Duo(participant1_id=low, participant2_id=high, duo_name=duo_name or None)
    session.add(duo)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise DuplicateDuoError("This duo already exists") from exc
    session.refresh(duo)
    return duo


def list_duos(session: Session) -> list[Duo]:
    duos = list(session.scalars(select(Duo)))
    return sorted(duos, key=lambda duo: duo.display_name.casefold())


def get_duo(session: Session, *, duo_id: str) -> Duo:
    duo = session.get(Duo, duo_id)
    if duo is None:
        raise DuoNotFoundError(f"Duo '{duo_id}' was not found")
    return duo


def delete_duo(session: Session, *, duo_id: str) -> None:
    session.delete(get_duo(session, duo_id=duo_id))
    session.commit()


def get_nomination(
    session: Session, *, nomination_id: str, category_id: str | None = None
) -> Nomination:
    nomination = session.get(Nomination, nomination_id)
    if nomination is None or (category_id is not None and nomination.category_id != category_id):
        raise NominationNotFoundError(f"Nomination '{nomination_id}' was not found in this category")
    return nomination


def list_nominations(
    session: Session, *, category_id: str, finalists_only: bool = False
) -> list[Nomination]:
    statement = select(Nomination).where(Nomination.category_id == category_id)
    if finalists_only:
        statement = statement.where(Nomination.is_finalist.is_(True))
    nominations = list(session.scalars(statement))
    return sorted(nominations, key=lambda item: (item.display_name.casefold(), item.id))


def existing_pair_keys(session: Session, *, category_id: str) -> set[str]:
    statement = select(Nomination.pair_key).where(Nomination.category_id == category_id)
    return set(session.scalars(statement))


def _commit_nominations(session: Session, nominations: list[Nomination]) -> list[Nomination]:
    session.add_all(nominations)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise DuplicateNominationError("Some candidates are already nominated") from exc
    for nomination in nominations:
        session.refresh(nomination)
    return nominations


def nominate_participants(
    session: Session, *, category_id: str, participant_ids: Iterable[str]
) -> list[Nomination]:
    """Nominate individual participants.

    Nominees of computed (non votable) categories go straight to the final.
    """

    category = get_category(session, category_id=category_id)
    if category.kind == CategoryKind.DUO:
        raise CategoryKindError("Duo categories take duo nominations")

    taken = existing_pair_keys(session, category_id=category_id)
    nominations: list[Nomination] = []
    for participant_id in dict.fromkeys(participant_ids):
        participant = get_participant(session, participant_id=participant_id)
        if participant.id in taken:
            raise DuplicateNominationError(f"{participant.name} is already nominated")
        nominations.append(
            Nomination(
                category_id=category.id,
                participant_id=participant.id,
                pair_key=pair_key_for(participant.id),
                origin=NominationOrigin.ADMIN,
                is_finalist=not category.is_votable,
            )
        )
    return _commit_nominations(session, nominations)


def nominate_all_participants(session: Session, *, category_id: str) -> list[Nomination]:
    """Nominate every individual participant not yet in the category."""

    category = get_category(session, category_id=category_id)
    if category.kind == CategoryKind.DUO:
        raise CategoryKindError("Duo categories take duo nominations")
    taken = existing_pair_keys(session, category_id=category_id)
    candidates = [
        participant.id
        for participant in list_participants(session)
        if participant.id not in taken
    ]
    if not candidates:
        return []
    return nominate_participants(session, category_id=category_id, participant_ids=candidates)


def nominate_duos(session: Session, *, category_id: str, duo_ids: Iterable[str]) -> list[Nomination]:
    category = get_category(session, category_id=category_id)
    if category.kind != CategoryKind.DUO:
        raise CategoryKindError("Only duo categories take duo nominations")

    taken = existing_pair_keys(session, category_id=category_id)
    nominations: list[Nomination] = []
    for duo_id in dict.fromkeys(duo_ids):
        duo = get_duo(session, duo_id=duo_id)
        key = pair_key_for(duo.participant1_id, duo.participant2_id)
        if key in taken:
            raise DuplicateNominationError(f"{duo.display_name} is already nominated")
        nominations.append(
            Nomination(
                category_id=category.id,
                participant_id=duo.participant1_id,
                partner_id=duo.participant2_id,
                duo_id=duo.id,
                pair_key=key,
                origin=NominationOrigin.ADMIN,
                is_finalist=not category.is_votable,
            )
        )
    created = _commit_nominations(session, nominations)
    logger.info(
        "nominated duos", extra={"category_id": category_id, "count": len(created)}
    )
    return created


def delete_nomination(session: Session, *, nomination_id: str) -> None:
    session.delete(get_nomination(session, nomination_id=nomination_id))
    session.commit()


__all__ = [
    "CatalogError",
    "CategoryKindError",
    "CategoryNotFoundError",
    "DuoNotFoundError",
    "DuplicateDuoError",
    "DuplicateNominationError",
    "NominationNotFoundError",
    "ParticipantNotFoundError",
    "SameParticipantError",
    "create_category",
    "create_duo",
    "create_participant",
    "delete_category",
    "delete_duo",
    "delete_nomination",
    "delete_participant",
    "existing_pair_keys",
    "get_category",
    "get_duo",
    "get_nomination",
    "get_participant",
    "list_categories",
    "list_duos",
    "list_nominations",
    "list_participants",
    "nominate_all_participants",
    "nominate_duos",
    "nominate_participants",
    "update_category",
    "update_participant",
]
