"""Edition ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from awards.models.base import Base, IdentifierMixin, TimestampMixin


class VotingPhase(enum.IntEnum):
    NOMINATION = 1
    FINAL = 2


class CeremonyStage(str, enum.Enum):
    PAUSED = "PAUSED"
    LIVE = "LIVE"


class Edition(IdentifierMixin, TimestampMixin, Base):
    """One season of the awards.

    Voting phase and ceremony stage are independent fields. ``voting_open``
    gates ballots without touching the phase, which covers the "phase closed,
    results pending" waiting screens.
    """

    __tablename__ = "editions"
    __table_args__ = (
        CheckConstraint("voting_phase IN (1, 2)", name="ck_editions_voting_phase"),
        Index("ix_editions_is_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    year: Mapped[int | None] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    voting_phase: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=VotingPhase.NOMINATION.value
    )
    voting_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    ceremony_stage: Mapped[CeremonyStage] = mapped_column(
        SAEnum(CeremonyStage, name="ceremony_stage"), nullable=False, default=CeremonyStage.PAUSED
    )
    current_display_category_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey(
            "categories.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_editions_current_display_category",
        ),
        nullable=True,
    )

    categories = relationship(
        "Category",
        back_populates="edition",
        cascade="all, delete-orphan",
        passive_deletes=True,
        foreign_keys="Category.edition_id",
        order_by="Category.display_order",
    )

    @property
    def phase(self) -> VotingPhase:
        return VotingPhase(self.voting_phase)

    @property
    def accepts_ballots(self) -> bool:
        return self.is_active and self.voting_open and self.ceremony_stage != CeremonyStage.LIVE


__all__ = ["CeremonyStage", "Edition", "VotingPhase"]
