from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from awards.models import Category, Nomination, VotingPhase
from awards.services.catalog import list_nominations
from awards.services.finalists import (
    EmptySelectionError,
    ForeignNominationError,
    promote_all,
    promote_selected,
    promote_top,
    rank_nominations,
)
from awards.services.voting import cast_vote
from tests.factories import make_category, make_edition, make_participants, nominate


def _seed_votes(session: Session, category: Category, nomination: Nomination, count: int) -> None:
    for index in range(count):
        cast_vote(
            session,
            voter=f"voter-{nomination.id}-{index}@example.com",
            category_id=category.id,
            phase=VotingPhase.NOMINATION,
            nomination_id=nomination.id,
        )


def _finalist_ids(session: Session, category: Category) -> set[str]:
    return {item.id for item in list_nominations(session, category_id=category.id, finalists_only=True)}


@pytest.fixture()
def ranked_category(db_session: Session) -> tuple[Category, list[Nomination]]:
    edition = make_edition(db_session)
    category = make_category(db_session, edition, name="Team Spirit")
    # Carla is listed before Bruno so the tie below is only broken by name.
    nominations = nominate(
        db_session,
        category,
        make_participants(db_session, "Ana", "Carla", "Bruno", "Diego", "Elena"),
    )
    for nomination, votes in zip(nominations, (10, 7, 7, 3, 1)):
        _seed_votes(db_session, category, nomination, votes)
    return category, nominations


def test_rank_orders_by_votes_then_name(db_session: Session, ranked_category) -> None:
    category, _ = ranked_category

    ranked = rank_nominations(db_session, category_id=category.id)

    assert [(entry.display_name, entry.vote_count) for entry in ranked] == [
        ("Ana", 10),
        ("Bruno", 7),
        ("Carla", 7),
        ("Diego", 3),
        ("Elena", 1),
    ]


def test_promote_top_picks_four_most_voted(db_session: Session, ranked_category) -> None:
    category, (ana, carla, bruno, diego, elena) = ranked_category

    chosen = promote_top(db_session, category_id=category.id)

    assert set(chosen) == {ana.id, carla.id, bruno.id, diego.id}
    assert _finalist_ids(db_session, category) == set(chosen)
    assert elena.id not in _finalist_ids(db_session, category)


def test_promote_top_is_idempotent(db_session: Session, ranked_category) -> None:
    category, _ = ranked_category

    first = promote_top(db_session, category_id=category.id)
    second = promote_top(db_session, category_id=category.id)

    assert first == second
    assert _finalist_ids(db_session, category) == set(second)


def test_promote_selected_resets_earlier_flags(db_session: Session, ranked_category) -> None:
    category, (ana, _carla, _bruno, _diego, elena) = ranked_category
    promote_top(db_session, category_id=category.id)

    chosen = promote_selected(db_session, category_id=category.id, nomination_ids=[elena.id, ana.id])

    assert chosen == sorted([elena.id, ana.id])
    assert _finalist_ids(db_session, category) == {elena.id, ana.id}


def test_promote_selected_rejects_empty_and_foreign_ids(db_session: Session, ranked_category) -> None:
    category, (ana, *_rest) = ranked_category

    with pytest.raises(EmptySelectionError):
        promote_selected(db_session, category_id=category.id, nomination_ids=[])
    with pytest.raises(ForeignNominationError):
        promote_selected(db_session, category_id=category.id, nomination_ids=[ana.id, "missing"])
    assert _finalist_ids(db_session, category) == set()


def test_promote_all_flags_every_nomination(db_session: Session, ranked_category) -> None:
    category, nominations = ranked_category

    chosen = promote_all(db_session, category_id=category.id)

    assert set(chosen) == {item.id for item in nominations}
    assert _finalist_ids(db_session, category) == set(chosen)
