"""Ceremony control: display pointer, winners, stage and the public snapshot."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import update
from sqlalchemy.orm import Session

from awards.db.session import serializable_transaction
from awards.models import Category, CeremonyStage, Edition, Nomination, VotingPhase
from awards.services.catalog import get_category, get_nomination, list_categories, list_nominations
from awards.services.editions import NoActiveEditionError, get_active_edition, get_edition
from awards.services.voting import vote_counts

logger = logging.getLogger(__name__)


class CeremonyError(RuntimeError):
    """Base exception for ceremony errors."""


class DisplayCategoryMismatchError(CeremonyError):
    """Raised when the display pointer targets a category of another edition."""


@dataclass(slots=True, frozen=True)
class ResultEntry:
    nomination: Nomination
    vote_count: int


@dataclass(slots=True)
class CategoryResults:
    category: Category
    phase: VotingPhase
    entries: list[ResultEntry] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class DisplayNominee:
    nomination_id: str
    display_name: str
    image_url: str | None
    is_winner: bool


@dataclass(slots=True)
class DisplaySnapshot:
    """What the projected display shows right now."""

    edition_name: str | None
    stage: CeremonyStage
    waiting: bool
    category_id: str | None = None
    category_name: str | None = None
    category_description: str | None = None
    position: int | None = None
    total: int | None = None
    nominees: list[DisplayNominee] = field(default_factory=list)

    @property
    def winner(self) -> DisplayNominee | None:
        return next((nominee for nominee in self.nominees if nominee.is_winner), None)


def set_display_category(session: Session, *, edition_id: str, category_id: str) -> Edition:
    edition = get_edition(session, edition_id=edition_id)
    category = get_category(session, category_id=category_id)
    if category.edition_id != edition.id:
        raise DisplayCategoryMismatchError("The category belongs to another edition")
    edition.current_display_category_id = category.id
    session.commit()
    session.refresh(edition)
    logger.info("display category set", extra={"edition_id": edition.id, "category_id": category.id})
    return edition


def select_winner(session: Session, *, category_id: str, nomination_id: str) -> Nomination:
    """Make ``nomination_id`` the only winner of the category."""

    category = get_category(session, category_id=category_id)
    nomination = get_nomination(session, nomination_id=nomination_id, category_id=category.id)
    with serializable_transaction(session):
        session.execute(
            update(Nomination).where(Nomination.category_id == category.id).values(is_winner=False),
            execution_options={"synchronize_session": False},
        )
        session.execute(
            update(Nomination).where(Nomination.id == nomination.id).values(is_winner=True),
            execution_options={"synchronize_session": False},
        )
    session.expire_all()
    session.refresh(nomination)
    logger.info("winner selected", extra={"category_id": category.id, "nomination_id": nomination.id})
    return nomination


def clear_winner(session: Session, *, category_id: str) -> None:
    category = get_category(session, category_id=category_id)
    session.execute(
        update(Nomination).where(Nomination.category_id == category.id).values(is_winner=False),
        execution_options={"synchronize_session": False},
    )
    session.commit()
    session.expire_all()
    logger.info("winner cleared", extra={"category_id": category.id})


def start_ceremony(session: Session, *, edition_id: str) -> Edition:
    """Go live; ballots stop being accepted."""

    edition = get_edition(session, edition_id=edition_id)
    edition.ceremony_stage = CeremonyStage.LIVE
    edition.voting_open = False
    session.commit()
    session.refresh(edition)
    logger.info("ceremony started", extra={"edition_id": edition.id})
    return edition


def end_ceremony(session: Session, *, edition_id: str) -> Edition:
    edition = get_edition(session, edition_id=edition_id)
    edition.ceremony_stage = CeremonyStage.PAUSED
    session.commit()
    session.refresh(edition)
    logger.info("ceremony paused", extra={"edition_id": edition.id})
    return edition


def category_results(session: Session, *, category_id: str) -> CategoryResults:
    """Nominations with their counts for the edition's current phase, most voted first."""

    category = get_category(session, category_id=category_id)
    phase = category.edition.phase
    nominations = list_nominations(
        session, category_id=category.id, finalists_only=phase == VotingPhase.FINAL
    )
    counts = vote_counts(session, nomination_ids=[item.id for item in nominations], phase=phase)
    entries = [ResultEntry(nomination=item, vote_count=counts[item.id]) for item in nominations]
    entries.sort(key=lambda entry: (-entry.vote_count, entry.nomination.display_name.casefold()))
    return CategoryResults(category=category, phase=phase, entries=entries)


def display_snapshot(session: Session) -> DisplaySnapshot:
    try:
        edition = get_active_edition(session)
    except NoActiveEditionError:
        return DisplaySnapshot(edition_name=None, stage=CeremonyStage.PAUSED, waiting=True)

    if edition.ceremony_stage != CeremonyStage.LIVE:
        return DisplaySnapshot(edition_name=edition.name, stage=edition.ceremony_stage, waiting=True)

    categories = list_categories(session, edition_id=edition.id)
    if not categories:
        return DisplaySnapshot(edition_name=edition.name, stage=edition.ceremony_stage, waiting=True)

    index = next(
        (
            position
            for position, category in enumerate(categories)
            if category.id == edition.current_display_category_id
        ),
        0,
    )
    category = categories[index]
    nominations = list_nominations(session, category_id=category.id)
    # Show the final shortlist once one exists.
    finalists = [item for item in nominations if item.is_finalist]
    shown = finalists or nominations
    return DisplaySnapshot(
        edition_name=edition.name,
        stage=edition.ceremony_stage,
        waiting=False,
        category_id=category.id,
        category_name=category.name,
        category_description=category.description,
        position=index + 1,
        total=len(categories),
        nominees=[
            DisplayNominee(
                nomination_id=item.id,
                display_name=item.display_name,
                image_url=item.participant.image_url if item.partner_id is None else None,
                is_winner=item.is_winner,
            )
            for item in shown
        ],
    )


__all__ = [
    "CategoryResults",
    "CeremonyError",
    "DisplayCategoryMismatchError",
    "DisplayNominee",
    "DisplaySnapshot",
    "ResultEntry",
    "category_results",
    "clear_winner",
    "display_snapshot",
    "end_ceremony",
    "select_winner",
    "set_display_category",
    "start_ceremony",
]
