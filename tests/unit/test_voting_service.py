from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from awards.models import (
    CategoryKind,
    NominationOrigin,
    Participant,
    ParticipantKind,
    Vote,
    VotingPhase,
    canonical_pair,
    pair_key_for,
)
from awards.services import voting
from awards.services.catalog import list_nominations
from awards.services.editions import set_voting_open, set_voting_phase
from awards.services.finalists import promote_selected
from awards.services.text_submissions import submit_text
from awards.services.voting import (
    CategoryNotVotableError,
    DuplicateBallotError,
    InvalidBallotError,
    NotAFinalistError,
    PhaseMismatchError,
    VoteAction,
    VoteCapacityError,
    VotingClosedError,
    build_ballot,
    cast_vote,
    count_votes,
    list_votes,
    remove_votes_for_voter,
    voted_category_ids,
)
from tests.factories import make_category, make_edition, make_participants, nominate

VOTER = "x@example.com"


def _vote(session: Session, category_id: str, nomination_id: str, *, voter: str = VOTER, phase=VotingPhase.NOMINATION):
    return cast_vote(
        session, voter=voter, category_id=category_id, phase=phase, nomination_id=nomination_id
    )


def test_nomination_phase_cap_then_toggle_off_frees_a_slot(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    n1, n2, n3, n4 = nominate(
        db_session, category, make_participants(db_session, "Ana", "Bruno", "Carla", "Diego")
    )

    for nomination in (n1, n2, n3):
        assert _vote(db_session, category.id, nomination.id).action == VoteAction.ADDED

    with pytest.raises(VoteCapacityError, match="3 candidates"):
        _vote(db_session, category.id, n4.id)

    removed = _vote(db_session, category.id, n1.id)
    assert removed.action == VoteAction.REMOVED
    assert removed.standing_votes == 2

    added = _vote(db_session, category.id, n4.id)
    assert added.action == VoteAction.ADDED
    assert added.standing_votes == 3

    standing = {vote.nomination_id for vote in list_votes(db_session, edition_id=edition.id)}
    assert standing == {n2.id, n3.id, n4.id}


def test_voter_identity_is_case_insensitive(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))

    _vote(db_session, category.id, nomination.id, voter="Mixed@Example.com")
    result = _vote(db_session, category.id, nomination.id, voter="mixed@example.com")

    assert result.action == VoteAction.REMOVED
    assert count_votes(db_session, nomination_id=nomination.id, phase=VotingPhase.NOMINATION) == 0


def test_duo_pick_replaces_previous_pick(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition, name="Best Duo", kind=CategoryKind.DUO)
    p1, p2, p3 = make_participants(db_session, "Ana", "Bruno", "Carla")

    first = cast_vote(
        db_session, voter=VOTER, category_id=category.id, phase=VotingPhase.NOMINATION, pair=[p1.id, p2.id]
    )
    second = cast_vote(
        db_session, voter=VOTER, category_id=category.id, phase=VotingPhase.NOMINATION, pair=[p1.id, p3.id]
    )

    assert first.action == VoteAction.ADDED
    assert second.action == VoteAction.SWITCHED
    votes = list_votes(db_session, edition_id=edition.id, category_id=category.id)
    assert [vote.nomination_id for vote in votes] == [second.nomination_id]

    nominations = list_nominations(db_session, category_id=category.id)
    assert {item.pair_key for item in nominations} == {
        pair_key_for(*canonical_pair(p1.id, p2.id)),
        pair_key_for(*canonical_pair(p1.id, p3.id)),
    }
    assert all(item.origin == NominationOrigin.VOTER for item in nominations)


def test_reversed_duo_pick_reuses_existing_pair(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition, name="Best Duo", kind=CategoryKind.DUO)
    p1, p2 = make_participants(db_session, "Ana", "Bruno")

    first = cast_vote(
        db_session, voter="a@example.com", category_id=category.id, phase=VotingPhase.NOMINATION, pair=[p1.id, p2.id]
    )
    second = cast_vote(
        db_session, voter="b@example.com", category_id=category.id, phase=VotingPhase.NOMINATION, pair=[p2.id, p1.id]
    )

    assert first.nomination_id == second.nomination_id
    assert count_votes(db_session, nomination_id=first.nomination_id, phase=VotingPhase.NOMINATION) == 2
    assert len(list_nominations(db_session, category_id=category.id)) == 1


def test_duo_pick_needs_two_different_participants(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition, name="Best Duo", kind=CategoryKind.DUO)
    (p1,) = make_participants(db_session, "Ana")

    with pytest.raises(InvalidBallotError):
        cast_vote(
            db_session, voter=VOTER, category_id=category.id, phase=VotingPhase.NOMINATION, pair=[p1.id, p1.id]
        )


def test_ballot_in_wrong_phase_is_rejected(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))

    with pytest.raises(PhaseMismatchError):
        _vote(db_session, category.id, nomination.id, phase=VotingPhase.FINAL)


def test_closed_voting_rejects_ballots(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))
    set_voting_open(db_session, edition_id=edition.id, voting_open=False)

    with pytest.raises(VotingClosedError):
        _vote(db_session, category.id, nomination.id)


def test_inactive_edition_rejects_ballots(db_session: Session) -> None:
    edition = make_edition(db_session, active=False)
    category = make_category(db_session, edition)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))

    with pytest.raises(VotingClosedError):
        _vote(db_session, category.id, nomination.id)


def test_computed_category_is_not_votable(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition, name="Most Voted", is_votable=False)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))

    with pytest.raises(CategoryNotVotableError):
        _vote(db_session, category.id, nomination.id)


def test_text_category_takes_no_votes_in_nomination_phase(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition, name="Moment", kind=CategoryKind.TEXT_BASED)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))

    with pytest.raises(InvalidBallotError):
        _vote(db_session, category.id, nomination.id)


def test_final_phase_single_vote_switches(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    n1, n2, n3 = nominate(db_session, category, make_participants(db_session, "Ana", "Bruno", "Carla"))
    _vote(db_session, category.id, n3.id)
    promote_selected(db_session, category_id=category.id, nomination_ids=[n1.id, n2.id])
    set_voting_phase(db_session, edition_id=edition.id, phase=VotingPhase.FINAL)

    with pytest.raises(NotAFinalistError):
        _vote(db_session, category.id, n3.id, phase=VotingPhase.FINAL)

    assert _vote(db_session, category.id, n1.id, phase=VotingPhase.FINAL).action == VoteAction.ADDED
    switched = _vote(db_session, category.id, n2.id, phase=VotingPhase.FINAL)
    assert switched.action == VoteAction.SWITCHED
    assert switched.standing_votes == 1
    again = _vote(db_session, category.id, n2.id, phase=VotingPhase.FINAL)
    assert again.action == VoteAction.UNCHANGED

    assert count_votes(db_session, nomination_id=n1.id, phase=VotingPhase.FINAL) == 0
    assert count_votes(db_session, nomination_id=n2.id, phase=VotingPhase.FINAL) == 1
    # Nomination phase history stays in its own ledger.
    assert count_votes(db_session, nomination_id=n3.id, phase=VotingPhase.NOMINATION) == 1


def test_ballot_reports_counts_and_own_votes(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    n1, n2 = nominate(db_session, category, make_participants(db_session, "Ana", "Bruno"))
    _vote(db_session, category.id, n1.id)
    _vote(db_session, category.id, n1.id, voter="other@example.com")
    _vote(db_session, category.id, n2.id, voter="other@example.com")

    ballot = build_ballot(db_session, voter=VOTER, category_id=category.id)

    assert ballot.cap == 3
    assert ballot.standing_votes == 1
    entries = {entry.nomination.id: entry for entry in ballot.entries}
    assert entries[n1.id].vote_count == 2
    assert entries[n1.id].user_voted is True
    assert entries[n2.id].vote_count == 1
    assert entries[n2.id].user_voted is False


def test_purge_voter_removes_votes_and_submissions(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    text_category = make_category(db_session, edition, name="Moment", kind=CategoryKind.TEXT_BASED)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))
    _vote(db_session, category.id, nomination.id)
    _vote(db_session, category.id, nomination.id, voter="keep@example.com")
    submit_text(db_session, voter=VOTER, category_id=text_category.id, text="The printer fire", max_length=500)

    voted = voted_category_ids(db_session, voter=VOTER, edition_id=edition.id, phase=VotingPhase.NOMINATION)
    assert voted == {category.id, text_category.id}

    result = remove_votes_for_voter(db_session, voter=VOTER.upper())

    assert result.votes_deleted == 1
    assert result.submissions_deleted == 1
    assert count_votes(db_session, nomination_id=nomination.id, phase=VotingPhase.NOMINATION) == 1


class _SerializationFailure(Exception):
    sqlstate = "40001"


def test_concurrent_nomination_vote_is_reported_as_duplicate(db_session: Session, monkeypatch) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))
    nomination_id = nomination.id
    count_standing = voting._count_standing

    def count_after_concurrent_insert(session: Session, *, category_id: str, voter: str, phase: VotingPhase) -> int:
        # the same ballot lands between the duplicate check and the insert
        session.add(
            Vote(nomination_id=nomination_id, category_id=category_id, voter_identifier=voter, voting_phase=int(phase))
        )
        return count_standing(session, category_id=category_id, voter=voter, phase=phase)

    monkeypatch.setattr(voting, "_count_standing", count_after_concurrent_insert)

    with pytest.raises(DuplicateBallotError):
        _vote(db_session, category.id, nomination_id)

    assert count_votes(db_session, nomination_id=nomination_id, phase=VotingPhase.NOMINATION) == 0


def test_concurrent_final_vote_is_reported_as_duplicate(db_session: Session, monkeypatch) -> None:
    edition = make_edition(db_session, phase=VotingPhase.FINAL)
    category = make_category(db_session, edition)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))
    promote_selected(db_session, category_id=category.id, nomination_ids=[nomination.id])
    nomination_id = nomination.id
    standing_votes = voting._standing_votes

    def standing_after_concurrent_vote(session: Session, *, category_id: str, voter: str, phase: VotingPhase):
        prior = standing_votes(session, category_id=category_id, voter=voter, phase=phase)
        session.add(
            Vote(nomination_id=nomination_id, category_id=category_id, voter_identifier=voter, voting_phase=int(phase))
        )
        return prior

    monkeypatch.setattr(voting, "_standing_votes", standing_after_concurrent_vote)

    with pytest.raises(DuplicateBallotError, match="Already nominated"):
        _vote(db_session, category.id, nomination_id, phase=VotingPhase.FINAL)

    assert count_votes(db_session, nomination_id=nomination_id, phase=VotingPhase.FINAL) == 0


def test_serialization_failure_is_reported_as_duplicate(db_session: Session, monkeypatch) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition)
    (nomination,) = nominate(db_session, category, make_participants(db_session, "Ana"))

    def conflicting_count(session: Session, **_: object) -> int:
        raise OperationalError("SELECT count(votes.id) FROM votes", {}, _SerializationFailure())

    monkeypatch.setattr(voting, "_count_standing", conflicting_count)

    with pytest.raises(DuplicateBallotError):
        _vote(db_session, category.id, nomination.id)


def test_duo_pick_rejects_synthesized_participants(db_session: Session) -> None:
    edition = make_edition(db_session)
    category = make_category(db_session, edition, name="Best Duo", kind=CategoryKind.DUO)
    (person,) = make_participants(db_session, "Ana")
    moment = Participant(name="Printer fire", kind=ParticipantKind.MOMENT, source_text="Smoke on floor three")
    db_session.add(moment)
    db_session.commit()

    with pytest.raises(InvalidBallotError):
        cast_vote(
            db_session,
            voter=VOTER,
            category_id=category.id,
            phase=VotingPhase.NOMINATION,
            pair=[person.id, moment.id],
        )
    assert list_nominations(db_session, category_id=category.id) == []
