"""Category ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from awards.models.base import Base, IdentifierMixin, TimestampMixin


class CategoryKind(str, enum.Enum):
    PARTICIPANT_BASED = "participant_based"
    TEXT_BASED = "text_based"
    DUO = "duo"


class Category(IdentifierMixin, TimestampMixin, Base):
    """An award inside an edition."""

    __tablename__ = "categories"
    __table_args__ = (Index("ix_categories_edition_order", "edition_id", "display_order"),)

    edition_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("editions.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    kind: Mapped[CategoryKind] = mapped_column(
        SAEnum(CategoryKind, name="category_kind"),
        nullable=False,
        default=CategoryKind.PARTICIPANT_BASED,
    )
    is_votable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    edition = relationship("Edition", back_populates="categories", foreign_keys=[edition_id])
    nominations = relationship(
        "Nomination", back_populates="category", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def phase_one_cap(self) -> int:
        """Standing votes a voter may hold here during the nomination phase."""
        return 1 if self.kind == CategoryKind.DUO else 3


__all__ = ["Category", "CategoryKind"]
