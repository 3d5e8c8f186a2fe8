"""Nomination ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from awards.models.base import Base, IdentifierMixin, TimestampMixin


class NominationOrigin(str, enum.Enum):
    ADMIN = "ADMIN"
    VOTER = "VOTER"


def pair_key_for(participant_id: str, partner_id: str | None = None) -> str:
    """Uniqueness key of a candidate inside a category.

    Callers pass pairs in canonical order (see ``canonical_pair``).
    """
    if partner_id is None:
        return participant_id
    return f"{participant_id}:{partner_id}"


class Nomination(IdentifierMixin, TimestampMixin, Base):
    """A candidate in a category: one participant, or a pair for duo awards."""

    __tablename__ = "nominations"
    __table_args__ = (
        UniqueConstraint("category_id", "pair_key", name="uq_nominations_category_pair"),
        Index("ix_nominations_category_id", "category_id"),
        Index("ix_nominations_participant_id", "participant_id"),
    )

    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    participant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    partner_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=True
    )
    duo_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("duos.id", ondelete="SET NULL"), nullable=True
    )
    pair_key: Mapped[str] = mapped_column(String(80), nullable=False)
    origin: Mapped[NominationOrigin] = mapped_column(
        SAEnum(NominationOrigin, name="nomination_origin"),
        nullable=False,
        default=NominationOrigin.ADMIN,
    )
    is_finalist: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_winner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    category = relationship("Category", back_populates="nominations")
    participant = relationship("Participant", foreign_keys=[participant_id])
    partner = relationship("Participant", foreign_keys=[partner_id])
    duo = relationship("Duo")
    votes = relationship(
        "Vote", back_populates="nomination", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def is_pair(self) -> bool:
        return self.partner_id is not None

    @property
    def display_name(self) -> str:
        if self.duo is not None and self.duo.duo_name:
            return self.duo.duo_name
        if self.partner is None:
            return self.participant.name
        names = sorted([self.participant.name, self.partner.name], key=str.casefold)
        return " & ".join(names)


__all__ = ["Nomination", "NominationOrigin", "pair_key_for"]
