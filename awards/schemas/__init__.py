"""Pydantic schemas package."""

from .catalog import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    DuoCreate,
    DuoRead,
    NominationRead,
    ParticipantCreate,
    ParticipantRead,
    ParticipantUpdate,
)
from .edition import EditionCreate, EditionRead, EditionUpdate
from .results import CategoryResultsRead, DisplayRead, LeaderboardEntryRead, RankedNominationRead
from .voting import BallotRead, SubmissionRead, VoteRequest, VoteResultRead

__all__ = [
    "BallotRead",
    "CategoryCreate",
    "CategoryRead",
    "CategoryResultsRead",
    "CategoryUpdate",
    "DisplayRead",
    "DuoCreate",
    "DuoRead",
    "EditionCreate",
    "EditionRead",
    "EditionUpdate",
    "LeaderboardEntryRead",
    "NominationRead",
    "ParticipantCreate",
    "ParticipantRead",
    "ParticipantUpdate",
    "RankedNominationRead",
    "SubmissionRead",
    "VoteRequest",
    "VoteResultRead",
]
