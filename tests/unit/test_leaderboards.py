from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from awards.models import NominationOrigin, VotingPhase
from awards.services.catalog import DuplicateNominationError, list_nominations
from awards.services.ceremony import select_winner
from awards.services.editions import set_voting_phase
from awards.services.finalists import promote_all
from awards.services.leaderboards import (
    ComputedCategoryRequiredError,
    NoWinnersError,
    nominate_top_winners,
    populate_from_total_votes,
    total_votes_leaderboard,
    win_count_leaderboard,
)
from awards.services.voting import cast_vote
from tests.factories import make_category, make_edition, make_participants, nominate


@pytest.fixture()
def final_votes(db_session: Session):
    """An edition in the final phase with 5/4/3/1 votes for Ana/Bruno/Mika/Carla."""

    edition = make_edition(db_session)
    category = make_category(db_session, edition, name="Best Teammate")
    ana, bruno, mika, carla = make_participants(db_session, "Ana", "Bruno", "Mika", "Carla")
    nominations = nominate(db_session, category, [ana, bruno, mika, carla])
    promote_all(db_session, category_id=category.id)
    set_voting_phase(db_session, edition_id=edition.id, phase=VotingPhase.FINAL)
    for nomination, votes in zip(nominations, (5, 4, 3, 1)):
        for index in range(votes):
            cast_vote(
                db_session,
                voter=f"final-{nomination.id}-{index}@example.com",
                category_id=category.id,
                phase=VotingPhase.FINAL,
                nomination_id=nomination.id,
            )
    return edition, category, (ana, bruno, mika, carla)


def test_total_votes_leaderboard_is_deterministic(db_session: Session, final_votes) -> None:
    edition, _category, (ana, bruno, mika, _carla) = final_votes

    first = total_votes_leaderboard(db_session, edition_id=edition.id)
    second = total_votes_leaderboard(db_session, edition_id=edition.id)

    assert [(entry.participant_id, entry.score) for entry in first] == [
        (ana.id, 5),
        (bruno.id, 4),
        (mika.id, 3),
    ]
    assert first == second


def test_total_votes_leaderboard_breaks_ties_by_name(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    zoe, adam = make_participants(db_session, "Zoe", "Adam")
    nominations = nominate(db_session, category, [zoe, adam])
    promote_all(db_session, category_id=category.id)
    set_voting_phase(db_session, edition_id=edition.id, phase=VotingPhase.FINAL)
    for nomination in nominations:
        cast_vote(
            db_session,
            voter=f"tie-{nomination.id}@example.com",
            category_id=category.id,
            phase=VotingPhase.FINAL,
            nomination_id=nomination.id,
        )

    entries = total_votes_leaderboard(db_session, edition_id=edition.id)

    assert [entry.name for entry in entries] == ["Adam", "Zoe"]


def test_populate_keeps_manual_nominee_without_duplicating(db_session: Session, final_votes) -> None:
    edition, _category, (ana, bruno, mika, _carla) = final_votes
    computed = make_category(db_session, edition, name="Most Voted", is_votable=False)
    (manual,) = nominate(db_session, computed, [mika])

    result = populate_from_total_votes(db_session, category_id=computed.id)

    assert result.added == [ana.id, bruno.id]
    assert result.skipped == [mika.id]
    nominations = list_nominations(db_session, category_id=computed.id)
    assert sorted(item.participant_id for item in nominations) == sorted([ana.id, bruno.id, mika.id])
    assert any(item.id == manual.id for item in nominations)
    assert all(item.origin == NominationOrigin.ADMIN for item in nominations)


def test_populate_requires_computed_category(db_session: Session, final_votes) -> None:
    _edition, category, _people = final_votes

    with pytest.raises(ComputedCategoryRequiredError):
        populate_from_total_votes(db_session, category_id=category.id)


def test_win_count_leaderboard_and_nomination(db_session: Session) -> None:
    edition = make_edition(db_session)
    ana, bruno = make_participants(db_session, "Ana", "Bruno")
    for order, name in enumerate(("Helper", "Mentor", "Planner")):
        category = make_category(db_session, edition, name=name, display_order=order)
        by_name = dict(zip(("Ana", "Bruno"), nominate(db_session, category, [ana, bruno])))
        winner = by_name["Bruno"] if name == "Planner" else by_name["Ana"]
        select_winner(db_session, category_id=category.id, nomination_id=winner.id)
    champions = make_category(db_session, edition, name="Champion", is_votable=False, display_order=9)

    entries = win_count_leaderboard(db_session, edition_id=edition.id, exclude_category_id=champions.id)
    assert [(entry.name, entry.score) for entry in entries] == [("Ana", 2), ("Bruno", 1)]

    added = nominate_top_winners(db_session, category_id=champions.id)
    assert added == [ana.id, bruno.id]

    with pytest.raises(DuplicateNominationError):
        nominate_top_winners(db_session, category_id=champions.id)


def test_nominate_top_winners_without_winners(db_session: Session) -> None:
    edition = make_edition(db_session)
    champions = make_category(db_session, edition, name="Champion", is_votable=False)

    with pytest.raises(NoWinnersError):
        nominate_top_winners(db_session, category_id=champions.id)
