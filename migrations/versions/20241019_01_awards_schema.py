"""Awards schema: editions, catalog, nominations and the vote ledger."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op

revision = "20241019_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _drop_enum(name: str) -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))


def upgrade() -> None:  # noqa: D401
    """Create the awards tables and constraints."""

    ceremony_stage = sa.Enum("PAUSED", "LIVE", name="ceremony_stage")
    category_kind = sa.Enum("PARTICIPANT_BASED", "TEXT_BASED", "DUO", name="category_kind")
    participant_kind = sa.Enum("INDIVIDUAL", "MOMENT", name="participant_kind")
    nomination_origin = sa.Enum("ADMIN", "VOTER", name="nomination_origin")

    op.create_table(
        "editions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("year", sa.Integer()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("voting_phase", sa.SmallInteger(), nullable=False, server_default="1"),
        sa.Column("voting_open", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("ceremony_stage", ceremony_stage, nullable=False, server_default="PAUSED"),
        sa.Column("current_display_category_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("voting_phase IN (1, 2)", name="ck_editions_voting_phase"),
    )
    op.create_index("ix_editions_is_active", "editions", ["is_active"])

    op.create_table(
        "participants",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("image_url", sa.String(length=1024)),
        sa.Column("kind", participant_kind, nullable=False, server_default="INDIVIDUAL"),
        sa.Column("source_text", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_participants_name", "participants", ["name"])

    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("edition_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("kind", category_kind, nullable=False, server_default="PARTICIPANT_BASED"),
        sa.Column("is_votable", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["edition_id"], ["editions.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_categories_edition_order", "categories", ["edition_id", "display_order"])

    # SQLite cannot add constraints to an existing table.
    if op.get_bind().dialect.name != "sqlite":
        op.create_foreign_key(
            "fk_editions_current_display_category",
            "editions",
            "categories",
            ["current_display_category_id"],
            ["id"],
            ondelete="SET NULL",
        )

    op.create_table(
        "duos",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("participant1_id", sa.String(length=36), nullable=False),
        sa.Column("participant2_id", sa.String(length=36), nullable=False),
        sa.Column("duo_name", sa.String(length=255)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["participant1_id"], ["participants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["participant2_id"], ["participants.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("participant1_id", "participant2_id", name="uq_duos_pair"),
        sa.CheckConstraint("participant1_id < participant2_id", name="ck_duos_ordered_pair"),
    )

    op.create_table(
        "nominations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("category_id", sa.String(length=36), nullable=False),
        sa.Column("participant_id", sa.String(length=36), nullable=False),
        sa.Column("partner_id", sa.String(length=36), nullable=True),
        sa.Column("duo_id", sa.String(length=36), nullable=True),
        sa.Column("pair_key", sa.String(length=80), nullable=False),
        sa.Column("origin", nomination_origin, nullable=False, server_default="ADMIN"),
        sa.Column("is_finalist", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_winner", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["participant_id"], ["participants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["partner_id"], ["participants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["duo_id"], ["duos.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("category_id", "pair_key", name="uq_nominations_category_pair"),
    )
    op.create_index("ix_nominations_category_id", "nominations", ["category_id"])
    op.create_index("ix_nominations_participant_id", "nominations", ["participant_id"])

    op.create_table(
        "votes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("nomination_id", sa.String(length=36), nullable=False),
        sa.Column("category_id", sa.String(length=36), nullable=False),
        sa.Column("voter_identifier", sa.String(length=320), nullable=False),
        sa.Column("voting_phase", sa.SmallInteger(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["nomination_id"], ["nominations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "nomination_id",
            "voter_identifier",
            "voting_phase",
            name="uq_votes_nomination_voter_phase",
        ),
    )
    op.create_index(
        "ix_votes_category_voter_phase", "votes", ["category_id", "voter_identifier", "voting_phase"]
    )
    op.create_index("ix_votes_nomination_phase", "votes", ["nomination_id", "voting_phase"])

    op.create_table(
        "text_submissions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("category_id", sa.String(length=36), nullable=False),
        sa.Column("voter_identifier", sa.String(length=320), nullable=False),
        sa.Column("submission_text", sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "category_id", "voter_identifier", name="uq_text_submissions_category_voter"
        ),
    )


def downgrade() -> None:  # noqa: D401
    """Drop the awards tables."""

    op.drop_table("text_submissions")

    op.drop_index("ix_votes_nomination_phase", table_name="votes")
    op.drop_index("ix_votes_category_voter_phase", table_name="votes")
    op.drop_table("votes")

    op.drop_index("ix_nominations_participant_id", table_name="nominations")
    op.drop_index("ix_nominations_category_id", table_name="nominations")
    op.drop_table("nominations")

    op.drop_table("duos")

    if op.get_bind().dialect.name != "sqlite":
        op.drop_constraint("fk_editions_current_display_category", "editions", type_="foreignkey")

    op.drop_index("ix_categories_edition_order", table_name="categories")
    op.drop_table("categories")

    op.drop_index("ix_participants_name", table_name="participants")
    op.drop_table("participants")

    op.drop_index("ix_editions_is_active", table_name="editions")
    op.drop_table("editions")

    for enum_name in ["nomination_origin", "participant_kind", "category_kind", "ceremony_stage"]:
        _drop_enum(enum_name)
