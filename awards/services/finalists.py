"""Finalist promotion: rank nomination phase results and flag who reaches the final."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.orm import Session

from awards.db.session import serializable_transaction
from awards.models import Category, Nomination, VotingPhase
from awards.obs import FINALIST_PROMOTION_COUNTER, traced
from awards.services.catalog import get_category, list_nominations
from awards.services.voting import vote_counts

logger = logging.getLogger(__name__)

TOP_FINALISTS = 4


class PromotionError(RuntimeError):
    """Base exception for finalist promotion errors."""


class EmptySelectionError(PromotionError):
    """Raised when a manual promotion names no nominations."""


class ForeignNominationError(PromotionError):
    """Raised when a manual promotion names nominations outside the category."""


@dataclass(slots=True, frozen=True)
class RankedNomination:
    nomination_id: str
    display_name: str
    vote_count: int
    is_finalist: bool


def rank_nominations(session: Session, *, category_id: str) -> list[RankedNomination]:
    """Order nominations by nomination phase votes, ties broken by name."""

    get_category(session, category_id=category_id)
    nominations = list_nominations(session, category_id=category_id)
    counts = vote_counts(
        session, nomination_ids=[item.id for item in nominations], phase=VotingPhase.NOMINATION
    )
    ranked = [
        RankedNomination(
            nomination_id=item.id,
            display_name=item.display_name,
            vote_count=counts[item.id],
            is_finalist=item.is_finalist,
        )
        for item in nominations
    ]
    ranked.sort(key=lambda entry: (-entry.vote_count, entry.display_name.casefold(), entry.nomination_id))
    return ranked


def _apply_finalists(
    session: Session, *, category: Category, chosen: set[str], policy: str
) -> list[str]:
    # Reset first so no flag survives from an earlier run.
    with traced("finalists.promote", category_id=category.id, policy=policy):
        with serializable_transaction(session):
            session.execute(
                update(Nomination)
                .where(Nomination.category_id == category.id)
                .values(is_finalist=False),
                execution_options={"synchronize_session": False},
            )
            if chosen:
                session.execute(
                    update(Nomination)
                    .where(Nomination.category_id == category.id, Nomination.id.in_(chosen))
                    .values(is_finalist=True),
                    execution_options={"synchronize_session": False},
                )
    session.expire_all()
    FINALIST_PROMOTION_COUNTER.labels(policy=policy).inc()
    logger.info(
        "finalists promoted",
        extra={"category_id": category.id, "policy": policy, "finalists": len(chosen)},
    )
    return sorted(chosen)


def promote_top(session: Session, *, category_id: str, limit: int = TOP_FINALISTS) -> list[str]:
    category = get_category(session, category_id=category_id)
    ranked = rank_nominations(session, category_id=category_id)
    chosen = {entry.nomination_id for entry in ranked[:limit]}
    return _apply_finalists(session, category=category, chosen=chosen, policy="top")


def promote_selected(
    session: Session, *, category_id: str, nomination_ids: Iterable[str]
) -> list[str]:
    category = get_category(session, category_id=category_id)
    chosen = set(nomination_ids)
    if not chosen:
        raise EmptySelectionError("Select at least one nomination")
    known = {item.id for item in list_nominations(session, category_id=category_id)}
    foreign = chosen - known
    if foreign:
        raise ForeignNominationError(
            f"Nominations not in this category: {', '.join(sorted(foreign))}"
        )
    return _apply_finalists(session, category=category, chosen=chosen, policy="selected")


def promote_all(session: Session, *, category_id: str) -> list[str]:
    category = get_category(session, category_id=category_id)
    chosen = {item.id for item in list_nominations(session, category_id=category_id)}
    return _apply_finalists(session, category=category, chosen=chosen, policy="all")


__all__ = [
    "EmptySelectionError",
    "ForeignNominationError",
    "PromotionError",
    "RankedNomination",
    "TOP_FINALISTS",
    "promote_all",
    "promote_selected",
    "promote_top",
    "rank_nominations",
]
