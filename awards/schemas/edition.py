"""Pydantic schemas for editions."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from awards.models.edition import CeremonyStage, VotingPhase


class EditionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    year: int | None = Field(default=None, ge=2000, le=2100)


class EditionCreate(EditionBase):
    pass


class EditionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    year: int | None = Field(default=None, ge=2000, le=2100)


class EditionRead(EditionBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    is_active: bool
    voting_phase: VotingPhase
    voting_open: bool
    ceremony_stage: CeremonyStage
    current_display_category_id: str | None = None


class PhaseUpdate(BaseModel):
    voting_phase: VotingPhase


class VotingGateUpdate(BaseModel):
    voting_open: bool


class CloneRequest(BaseModel):
    target_edition_id: str


class CloneResponse(BaseModel):
    categories_created: int
    categories_reused: int
    nominations_created: int


__all__ = [
    "CloneRequest",
    "CloneResponse",
    "EditionBase",
    "EditionCreate",
    "EditionRead",
    "EditionUpdate",
    "PhaseUpdate",
    "VotingGateUpdate",
]
