"""Pydantic schemas for ballots, votes and text submissions."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from awards.models.category import CategoryKind
from awards.models.edition import VotingPhase
from awards.schemas.catalog import NominationRead, ParticipantRead


class VoteRequest(BaseModel):
    category_id: str
    voting_phase: VotingPhase
    nomination_id: str | None = None
    pair: Annotated[list[str], Field(min_length=2, max_length=2)] | None = None

    @model_validator(mode="after")
    def _one_target(self) -> "VoteRequest":
        if self.nomination_id is None and self.pair is None:
            raise ValueError("Provide a nomination_id or a pair of participant ids")
        return self


class VoteResultRead(BaseModel):
    action: str
    category_id: str
    voting_phase: VotingPhase
    nomination_id: str
    standing_votes: int


class BallotEntryRead(BaseModel):
    nomination: NominationRead
    vote_count: int
    user_voted: bool


class BallotRead(BaseModel):
    category_id: str
    category_name: str
    kind: CategoryKind
    voting_phase: VotingPhase
    cap: int
    standing_votes: int
    entries: list[BallotEntryRead]
    pool: list[ParticipantRead] = Field(default_factory=list)
    submission: str | None = None


class BallotCategorySummary(BaseModel):
    id: str
    name: str
    description: str | None = None
    kind: CategoryKind
    voted: bool


class BallotOverview(BaseModel):
    edition_id: str
    edition_name: str
    voting_phase: VotingPhase
    voting_open: bool
    categories: list[BallotCategorySummary]


class VoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nomination_id: str
    category_id: str
    voter_identifier: str
    voting_phase: VotingPhase
    created_at: datetime


class VoteAudit(BaseModel):
    votes: list[VoteRead]
    total: int
    unique_voters: int


class VoterPurgeRead(BaseModel):
    votes_deleted: int
    submissions_deleted: int


class SubmissionWrite(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


class SubmissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    category_id: str
    voter_identifier: str
    submission_text: str
    updated_at: datetime


class RewriteRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


class RewriteOptionRead(BaseModel):
    tone: str
    text: str


__all__ = [
    "BallotCategorySummary",
    "BallotEntryRead",
    "BallotOverview",
    "BallotRead",
    "RewriteOptionRead",
    "RewriteRequest",
    "SubmissionRead",
    "SubmissionWrite",
    "VoteAudit",
    "VoteRead",
    "VoteRequest",
    "VoteResultRead",
    "VoterPurgeRead",
]
