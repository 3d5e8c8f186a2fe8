from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from awards.models import Category, Edition, Nomination, Participant
from scripts.seed_demo_data import DEMO_CATEGORIES, DEMO_PARTICIPANTS, seed


def test_seed_is_rerunnable(db_session: Session) -> None:
    seed(db_session)
    db_session.commit()
    seed(db_session)
    db_session.commit()

    assert db_session.scalar(select(func.count()).select_from(Edition)) == 1
    assert db_session.scalar(select(func.count()).select_from(Participant)) == len(DEMO_PARTICIPANTS)
    assert db_session.scalar(select(func.count()).select_from(Category)) == len(DEMO_CATEGORIES)
    # only the votable participant category gets nominations
    assert db_session.scalar(select(func.count()).select_from(Nomination)) == len(DEMO_PARTICIPANTS)
