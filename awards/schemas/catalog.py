"""Pydantic schemas for categories, participants, duos and nominations."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from awards.models.category import CategoryKind
from awards.models.nomination import NominationOrigin
from awards.models.participant import ParticipantKind


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    display_order: int = Field(default=0)
    kind: CategoryKind = Field(default=CategoryKind.PARTICIPANT_BASED)
    is_votable: bool = Field(default=True)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    display_order: int | None = None
    kind: CategoryKind | None = None
    is_votable: bool | None = None


class CategoryRead(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    edition_id: str


class ParticipantBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    image_url: str | None = Field(default=None, max_length=1024)


class ParticipantCreate(ParticipantBase):
    pass


class ParticipantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    image_url: str | None = Field(default=None, max_length=1024)


class ParticipantRead(ParticipantBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: ParticipantKind


class ImageUploadResponse(BaseModel):
    participant_id: str
    image_url: str


class DuoCreate(BaseModel):
    participant1_id: str
    participant2_id: str
    duo_name: str | None = Field(default=None, max_length=255)


class DuoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    participant1_id: str
    participant2_id: str
    duo_name: str | None = None
    display_name: str


class NominationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    category_id: str
    participant_id: str
    partner_id: str | None = None
    duo_id: str | None = None
    origin: NominationOrigin
    is_finalist: bool
    is_winner: bool
    display_name: str


class NominateParticipantsRequest(BaseModel):
    participant_ids: list[str] = Field(..., min_length=1)


class NominateDuosRequest(BaseModel):
    duo_ids: list[str] = Field(..., min_length=1)


class ImportResponse(BaseModel):
    created: list[str]
    errors: list[dict]


__all__ = [
    "CategoryBase",
    "CategoryCreate",
    "CategoryRead",
    "CategoryUpdate",
    "DuoCreate",
    "DuoRead",
    "ImageUploadResponse",
    "ImportResponse",
    "NominateDuosRequest",
    "NominateParticipantsRequest",
    "NominationRead",
    "ParticipantBase",
    "ParticipantCreate",
    "ParticipantRead",
    "ParticipantUpdate",
]
