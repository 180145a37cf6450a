"""
Knowledge Tree Domain Model for Prodigy.

Purpose
-------
Own the Subject → Branch → Topic hierarchy and the per-branch progress
counters that the unlock rules read.

Responsibilities
----------------
- Look up branches, subjects and topics by id or name
- Accrue XP, study time and mission counts into a branch
- Reset a branch (remaster / manual reset) or a single topic
- Record unlock state changes requested by the unlock engine
- Emit domain events for every unlock and reset

Non-Responsibilities
--------------------
- Deciding *whether* something should unlock (UnlockEngine)
- Threshold multipliers (MasteryPolicy)

Design Notes
------------
- Topic requirements are relative to the parent branch's cumulative totals,
  not to the topic itself.
- Lookups that miss inside mutation paths are debug-logged no-ops so a stale
  mission (renamed branch, deleted subject) never aborts a completion.
- ``reset_topic`` subtracts the topic's requirements from the branch totals
  without clamping; totals may go negative.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from prodigy.core.logging.logger import get_logger
from prodigy.domain.models.base import AggregateRoot, validate_non_negative, validate_range

logger = get_logger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# ENUMS
# ============================================================================


class SubjectCategory(Enum):
    STEM = "stem"
    HUMANITIES = "humanities"
    LANGUAGE = "language"
    SOCIAL_SCIENCE = "social_science"


class BranchLevel(Enum):
    HIGH_SCHOOL = "high_school"
    COLLEGE = "college"


# ============================================================================
# ENTITIES
# ============================================================================


@dataclass
class Topic:
    """
    A single unlockable topic inside a branch.

    Attributes
    ----------
    xp_required, missions_required, time_required
        Thresholds measured against the parent branch's cumulative counters.
    """

    name: str
    xp_required: float
    missions_required: int
    time_required: float
    description: str = ""
    is_unlocked: bool = False
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        validate_non_negative(self.xp_required, "xp_required")
        validate_non_negative(self.missions_required, "missions_required")
        validate_non_negative(self.time_required, "time_required")


@dataclass
class Branch:
    """
    A course unit within a subject.

    Progress counters (``current_xp``, ``total_time_spent``,
    ``missions_completed``) only grow, except under reset and remaster.
    """

    name: str
    level: BranchLevel
    topics: List[Topic] = field(default_factory=list)
    description: str = ""
    prerequisite_branch_names: List[str] = field(default_factory=list)
    prerequisite_completion: float = 0.0
    total_xp_required: float = 0.0
    total_missions_required: int = 0
    total_time_required: float = 0.0
    required_stats: Optional[Dict[str, int]] = None
    is_unlocked: bool = False
    is_auto_unlocked: bool = False
    current_xp: float = 0.0
    total_time_spent: float = 0.0
    missions_completed: int = 0
    remaster_count: int = 0
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        validate_range(self.prerequisite_completion, 0.0, 1.0, "prerequisite_completion")
        validate_non_negative(self.remaster_count, "remaster_count")

    @property
    def is_mastered(self) -> bool:
        """Unlocked, has topics, and every topic is unlocked."""
        if not self.is_unlocked:
            return False
        return bool(self.topics) and all(t.is_unlocked for t in self.topics)

    @property
    def progress(self) -> float:
        """Fraction of topics unlocked; 0.0 for a branch without topics."""
        if not self.topics:
            return 0.0
        return sum(1 for t in self.topics if t.is_unlocked) / len(self.topics)

    @property
    def unlocked_topics(self) -> List[Topic]:
        return [t for t in self.topics if t.is_unlocked]

    def find_topic(self, topic_id: str) -> Optional[Topic]:
        return next((t for t in self.topics if t.id == topic_id), None)


@dataclass
class Subject:
    name: str
    category: SubjectCategory
    branches: List[Branch] = field(default_factory=list)
    icon_name: str = ""
    id: str = field(default_factory=_new_id)

    @property
    def is_stem(self) -> bool:
        return self.category is SubjectCategory.STEM


# ============================================================================
# KNOWLEDGE TREE AGGREGATE
# ============================================================================


class KnowledgeTree(AggregateRoot):
    """
    Aggregate root for the subject hierarchy.

    Domain Events
    -------------
    - knowledge.progress_applied: XP/time credited to a branch
    - knowledge.branch_unlocked: A branch became available
    - knowledge.topic_unlocked: A topic threshold was reached (or forced)
    - knowledge.branch_reset: All progress in a branch was cleared
    - knowledge.topic_reset: A single topic was re-locked
    """

    def __init__(self, subjects: List[Subject], tree_id: str = "knowledge_tree") -> None:
        super().__init__(tree_id)
        self.subjects: List[Subject] = subjects

    # ========================================================================
    # LOOKUPS
    # ========================================================================

    def iter_branches(self) -> Iterator[Tuple[Subject, Branch]]:
        for subject in self.subjects:
            for branch in subject.branches:
                yield subject, branch

    def find_subject(self, name: str) -> Optional[Subject]:
        subject = next((s for s in self.subjects if s.name == name), None)
        if subject is None:
            logger.debug(f"Subject lookup missed: {name}")
        return subject

    def find_branch(self, branch_id: str) -> Optional[Branch]:
        for _, branch in self.iter_branches():
            if branch.id == branch_id:
                return branch
        logger.debug(f"Branch lookup missed: id={branch_id}")
        return None

    def find_branch_by_name(
        self, name: str, subject_name: Optional[str] = None
    ) -> Optional[Branch]:
        """
        Find a branch by exact name, optionally scoped to one subject.

        Branch names are unique across the default catalog, but scoping by
        subject keeps mission completion exact when they are not.
        """
        for subject, branch in self.iter_branches():
            if branch.name != name:
                continue
            if subject_name is not None and subject.name != subject_name:
                continue
            return branch
        logger.debug(f"Branch lookup missed: name={name} subject={subject_name}")
        return None

    def subject_for_branch(self, branch: Branch) -> Optional[Subject]:
        for subject, candidate in self.iter_branches():
            if candidate.id == branch.id:
                return subject
        return None

    def find_topic(self, topic_id: str) -> Optional[Tuple[Branch, Topic]]:
        for _, branch in self.iter_branches():
            topic = branch.find_topic(topic_id)
            if topic is not None:
                return branch, topic
        logger.debug(f"Topic lookup missed: id={topic_id}")
        return None

    # ========================================================================
    # PROGRESS
    # ========================================================================

    def apply_progress(
        self,
        branch_name: str,
        subject_name: Optional[str],
        xp: float,
        time_spent: float,
    ) -> Optional[Branch]:
        """
        Credit one finished mission to a branch.

        Adds ``xp`` and ``time_spent`` and counts one mission. Returns the
        branch, or None (logged) when no branch matches.
        """
        validate_non_negative(xp, "xp")
        validate_non_negative(time_spent, "time_spent")

        branch = self.find_branch_by_name(branch_name, subject_name)
        if branch is None:
            logger.debug(
                "Progress dropped: no matching branch",
                extra={"branch_name": branch_name, "subject_name": subject_name},
            )
            return None

        branch.current_xp += xp
        branch.total_time_spent += time_spent
        branch.missions_completed += 1

        self.add_domain_event(
            "knowledge.progress_applied",
            {
                "branch_id": branch.id,
                "branch_name": branch.name,
                "xp": xp,
                "time_spent": time_spent,
                "current_xp": branch.current_xp,
                "missions_completed": branch.missions_completed,
            },
        )
        return branch

    # ========================================================================
    # UNLOCK STATE
    # ========================================================================

    def mark_branch_unlocked(self, branch: Branch, is_auto: bool = False) -> bool:
        """Flip a branch to unlocked. Returns False when it already was."""
        if branch.is_unlocked and not (is_auto and not branch.is_auto_unlocked):
            return False

        newly_unlocked = not branch.is_unlocked
        branch.is_unlocked = True
        if is_auto:
            branch.is_auto_unlocked = True

        if newly_unlocked:
            self.add_domain_event(
                "knowledge.branch_unlocked",
                {"branch_id": branch.id, "branch_name": branch.name, "is_auto": is_auto},
            )
        return newly_unlocked

    def mark_topic_unlocked(self, branch: Branch, topic: Topic, forced: bool = False) -> bool:
        """
        Flip a topic to unlocked. Topics of a locked branch stay locked.

        Returns True only when the topic changed state.
        """
        if topic.is_unlocked:
            return False
        if not branch.is_unlocked:
            logger.debug(
                f"Topic unlock refused, branch locked: {branch.name}/{topic.name}"
            )
            return False

        topic.is_unlocked = True
        self.add_domain_event(
            "knowledge.topic_unlocked",
            {
                "branch_id": branch.id,
                "branch_name": branch.name,
                "topic_id": topic.id,
                "topic_name": topic.name,
                "forced": forced,
            },
        )
        return True

    # ========================================================================
    # RESETS
    # ========================================================================

    def reset_branch(self, branch_id: str) -> bool:
        """
        Zero a branch's counters and re-lock every topic.

        ``remaster_count`` and the branch's own unlock flag are untouched.
        """
        branch = self.find_branch(branch_id)
        if branch is None:
            logger.debug(f"Branch reset skipped, unknown branch: {branch_id}")
            return False

        branch.current_xp = 0.0
        branch.total_time_spent = 0.0
        branch.missions_completed = 0
        for topic in branch.topics:
            topic.is_unlocked = False

        self.add_domain_event(
            "knowledge.branch_reset",
            {
                "branch_id": branch.id,
                "branch_name": branch.name,
                "remaster_count": branch.remaster_count,
            },
        )
        return True

    def reset_topic(self, topic_id: str) -> bool:
        """
        Re-lock one unlocked topic and give back its requirements.

        The topic's thresholds are subtracted from the branch counters so the
        next mission does not immediately unlock it again.
        """
        found = self.find_topic(topic_id)
        if found is None:
            logger.debug(f"Topic reset skipped, unknown topic: {topic_id}")
            return False

        branch, topic = found
        if not topic.is_unlocked:
            logger.debug(f"Topic reset skipped, already locked: {topic.name}")
            return False

        topic.is_unlocked = False
        branch.current_xp -= topic.xp_required
        branch.missions_completed -= topic.missions_required
        branch.total_time_spent -= topic.time_required

        self.add_domain_event(
            "knowledge.topic_reset",
            {"branch_id": branch.id, "topic_id": topic.id, "topic_name": topic.name},
        )
        return True
