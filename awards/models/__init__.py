"""ORM models package."""
from .base import Base, IdentifierMixin, TimestampMixin, new_id
from .category import Category, CategoryKind
from .duo import Duo, canonical_pair
from .edition import CeremonyStage, Edition, VotingPhase
from .nomination import Nomination, NominationOrigin, pair_key_for
from .participant import Participant, ParticipantKind
from .text_submission import TextSubmission
from .vote import Vote

__all__ = [
    "Base",
    "Category",
    "CategoryKind",
    "CeremonyStage",
    "Duo",
    "Edition",
    "IdentifierMixin",
    "Nomination",
    "NominationOrigin",
    "Participant",
    "ParticipantKind",
    "TextSubmission",
    "TimestampMixin",
    "Vote",
    "VotingPhase",
    "canonical_pair",
    "new_id",
    "pair_key_for",
]
