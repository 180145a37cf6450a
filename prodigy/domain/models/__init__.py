"""
Domain models.

Aggregates (Player, KnowledgeTree) guard their own invariants and record
domain events; the progression coordinator drains and publishes them.
"""

from prodigy.domain.models.base import AggregateRoot, DomainEvent, DomainValidationError, Entity
from prodigy.domain.models.knowledge import (
    Branch,
    BranchLevel,
    KnowledgeTree,
    Subject,
    SubjectCategory,
    Topic,
)
from prodigy.domain.models.mission import Mission, MissionSource, MissionStatus, StudyType
from prodigy.domain.models.player import (
    MasteryLevel,
    Player,
    PlayerBranchMastery,
    PlayerDungeonStatus,
    Stats,
)

__all__ = [
    "AggregateRoot",
    "DomainEvent",
    "DomainValidationError",
    "Entity",
    "Branch",
    "BranchLevel",
    "KnowledgeTree",
    "Subject",
    "SubjectCategory",
    "Topic",
    "Mission",
    "MissionSource",
    "MissionStatus",
    "StudyType",
    "MasteryLevel",
    "Player",
    "PlayerBranchMastery",
    "PlayerDungeonStatus",
    "Stats",
]
