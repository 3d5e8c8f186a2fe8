"""Seed script for a demo edition with categories, participants and nominations."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from awards.db.session import SessionLocal, engine
from awards.models import (
    Base,
    Category,
    CategoryKind,
    Edition,
    Nomination,
    NominationOrigin,
    Participant,
    pair_key_for,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_EDITION = "Demo Awards"

DEMO_PARTICIPANTS = ["Ana", "Bruno", "Carla", "Diego", "Elena", "Fabio"]

DEMO_CATEGORIES = [
    ("Best Teammate", CategoryKind.PARTICIPANT_BASED, True),
    ("Best Duo", CategoryKind.DUO, True),
    ("Moment of the Year", CategoryKind.TEXT_BASED, True),
    ("Most Voted Overall", CategoryKind.PARTICIPANT_BASED, False),
]


def seed(session: Session) -> None:
    """Seed one active edition; reruns leave existing rows untouched."""

    edition = session.scalar(select(Edition).where(Edition.name == DEMO_EDITION))
    if edition is None:
        edition = Edition(name=DEMO_EDITION, description="Sample edition", year=2024, is_active=True)
        session.add(edition)
        session.flush()
        logger.info("Created edition %s", edition.id)
    else:
        logger.info("Edition %s already exists", edition.id)

    existing_people = {item.name: item for item in session.scalars(select(Participant))}
    people: list[Participant] = []
    for name in DEMO_PARTICIPANTS:
        participant = existing_people.get(name)
        if participant is None:
            participant = Participant(name=name)
            session.add(participant)
            logger.info("Added participant %s", name)
        people.append(participant)
    session.flush()

    existing_categories = {item.name for item in edition.categories}
    for order, (name, kind, is_votable) in enumerate(DEMO_CATEGORIES, start=1):
        if name in existing_categories:
            logger.info("Category %s already exists", name)
            continue
        category = Category(
            edition_id=edition.id,
            name=name,
            display_order=order,
            kind=kind,
            is_votable=is_votable,
        )
        session.add(category)
        session.flush()
        if kind == CategoryKind.PARTICIPANT_BASED and is_votable:
            for participant in people:
                session.add(
                    Nomination(
                        category_id=category.id,
                        participant_id=participant.id,
                        pair_key=pair_key_for(participant.id),
                        origin=NominationOrigin.ADMIN,
                    )
                )
        logger.info("Added category %s", name)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed(session)
        session.commit()


if __name__ == "__main__":
    main()
