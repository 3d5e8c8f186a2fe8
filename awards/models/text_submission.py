"""Text submission ORM model."""
from __future__ import annotations

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from awards.models.base import Base, IdentifierMixin, TimestampMixin


class TextSubmission(IdentifierMixin, TimestampMixin, Base):
    """Free text entered by a voter for a text based category."""

    __tablename__ = "text_submissions"
    __table_args__ = (
        UniqueConstraint("category_id", "voter_identifier", name="uq_text_submissions_category_voter"),
    )

    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    voter_identifier: Mapped[str] = mapped_column(String(320), nullable=False)
    submission_text: Mapped[str] = mapped_column(Text, nullable=False)


__all__ = ["TextSubmission"]
