"""Pydantic schemas for finalists, leaderboards, moments and the ceremony."""
from __future__ import annotations

from pydantic import BaseModel, Field

from awards.models.edition import CeremonyStage, VotingPhase
from awards.schemas.catalog import NominationRead


class RankedNominationRead(BaseModel):
    nomination_id: str
    display_name: str
    vote_count: int
    is_finalist: bool


class PromoteSelectedRequest(BaseModel):
    nomination_ids: list[str] = Field(..., min_length=1)


class FinalistsRead(BaseModel):
    category_id: str
    finalist_ids: list[str]


class LeaderboardEntryRead(BaseModel):
    participant_id: str
    name: str
    score: int


class PopulateRead(BaseModel):
    added: list[str]
    skipped: list[str]


class MomentIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class MomentsRequest(BaseModel):
    moments: list[MomentIn] = Field(..., min_length=1, max_length=4)


class MomentsRead(BaseModel):
    moments: list[MomentIn]
    submissions_used: int


class DisplayCategoryUpdate(BaseModel):
    edition_id: str
    category_id: str


class CeremonyStageUpdate(BaseModel):
    edition_id: str


class WinnerRequest(BaseModel):
    nomination_id: str


class ResultEntryRead(BaseModel):
    nomination: NominationRead
    vote_count: int


class CategoryResultsRead(BaseModel):
    category_id: str
    category_name: str
    voting_phase: VotingPhase
    entries: list[ResultEntryRead]


class DisplayNomineeRead(BaseModel):
    nomination_id: str
    display_name: str
    image_url: str | None = None
    is_winner: bool


class DisplayRead(BaseModel):
    edition_name: str | None = None
    stage: CeremonyStage
    waiting: bool
    category_id: str | None = None
    category_name: str | None = None
    category_description: str | None = None
    position: int | None = None
    total: int | None = None
    nominees: list[DisplayNomineeRead] = Field(default_factory=list)
    winner: DisplayNomineeRead | None = None


__all__ = [
    "CategoryResultsRead",
    "CeremonyStageUpdate",
    "DisplayCategoryUpdate",
    "DisplayNomineeRead",
    "DisplayRead",
    "FinalistsRead",
    "LeaderboardEntryRead",
    "MomentIn",
    "MomentsRead",
    "MomentsRequest",
    "PopulateRead",
    "PromoteSelectedRequest",
    "RankedNominationRead",
    "ResultEntryRead",
    "WinnerRequest",
]
