"""Participant ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from awards.models.base import Base, IdentifierMixin, TimestampMixin


class ParticipantKind(str, enum.Enum):
    INDIVIDUAL = "INDIVIDUAL"
    MOMENT = "MOMENT"


class Participant(IdentifierMixin, TimestampMixin, Base):
    """Edition independent nominee pool entry.

    ``MOMENT`` participants are synthesized from text submissions and keep the
    summarized text in ``source_text``.
    """

    __tablename__ = "participants"
    __table_args__ = (Index("ix_participants_name", "name"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(String(1024))
    kind: Mapped[ParticipantKind] = mapped_column(
        SAEnum(ParticipantKind, name="participant_kind"),
        nullable=False,
        default=ParticipantKind.INDIVIDUAL,
    )
    source_text: Mapped[str | None] = mapped_column(Text)


__all__ = ["Participant", "ParticipantKind"]
