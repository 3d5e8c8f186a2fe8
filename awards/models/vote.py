"""Vote ledger ORM model."""
from __future__ import annotations

from sqlalchemy import ForeignKey, Index, SmallInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from awards.models.base import Base, IdentifierMixin, TimestampMixin


class Vote(IdentifierMixin, TimestampMixin, Base):
    """One standing vote of a voter for a nomination in a phase."""

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint(
            "nomination_id", "voter_identifier", "voting_phase", name="uq_votes_nomination_voter_phase"
        ),
        Index("ix_votes_category_voter_phase", "category_id", "voter_identifier", "voting_phase"),
        Index("ix_votes_nomination_phase", "nomination_id", "voting_phase"),
    )

    nomination_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("nominations.id", ondelete="CASCADE"), nullable=False
    )
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    voter_identifier: Mapped[str] = mapped_column(String(320), nullable=False)
    voting_phase: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    nomination = relationship("Nomination", back_populates="votes")


__all__ = ["Vote"]
