"""Curated duo ORM model."""
from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from awards.models.base import Base, IdentifierMixin, TimestampMixin


def canonical_pair(first_id: str, second_id: str) -> tuple[str, str]:
    """Return the pair in the stored order so (a, b) and (b, a) collide."""
    return (first_id, second_id) if first_id < second_id else (second_id, first_id)


class Duo(IdentifierMixin, TimestampMixin, Base):
    """Admin curated pairing of two distinct participants."""

    __tablename__ = "duos"
    __table_args__ = (
        UniqueConstraint("participant1_id", "participant2_id", name="uq_duos_pair"),
        CheckConstraint("participant1_id < participant2_id", name="ck_duos_ordered_pair"),
    )

    participant1_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    participant2_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    duo_name: Mapped[str | None] = mapped_column(String(255))

    participant1 = relationship("Participant", foreign_keys=[participant1_id])
    participant2 = relationship("Participant", foreign_keys=[participant2_id])

    @property
    def display_name(self) -> str:
        if self.duo_name:
            return self.duo_name
        names = sorted([self.participant1.name, self.participant2.name], key=str.casefold)
        return " & ".join(names)


__all__ = ["Duo", "canonical_pair"]
