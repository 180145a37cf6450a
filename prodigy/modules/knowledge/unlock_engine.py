"""
Unlock Engine

Purpose
-------
Evaluate prerequisites and drive unlock state transitions for branches and
topics in the knowledge tree.

Rules
-----
- A branch can be unlocked when every named prerequisite exists, is itself
  unlocked and has at least ``prerequisite_completion`` of its topics
  unlocked, and the player meets every ``required_stats`` entry. A
  prerequisite with no topics counts as complete. Stat names are matched
  case-insensitively; unknown names read as 0.
- Normal branch unlocks also need a mastery goal on the branch. A branch
  opened this way starts with its first topic unlocked.
- A topic unlocks once the branch's cumulative XP, mission count and time
  all reach the topic's thresholds scaled by ``MasteryPolicy``. Every topic
  that qualifies in a pass unlocks in that same pass.
- Auto unlocks ("I already know this") ignore all gating: the branch and
  every topic are unlocked, then each prerequisite transitively.

Design Notes
------------
All state changes go through ``KnowledgeTree.mark_*`` so the tree records
the matching domain events.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Set

from prodigy.core.logging.logger import get_logger
from prodigy.modules.mastery.policy import MasteryPolicy

if TYPE_CHECKING:
    from prodigy.domain.models.knowledge import Branch, KnowledgeTree, Topic
    from prodigy.domain.models.player import MasteryLevel, Player

logger = get_logger(__name__)


class UnlockEngine:
    def __init__(self, tree: "KnowledgeTree", policy: Optional[MasteryPolicy] = None) -> None:
        self.tree = tree
        self.policy = policy or MasteryPolicy()

    # ------------------------------------------------------------------ #
    # Gating
    # ------------------------------------------------------------------ #

    def stats_met(self, branch: "Branch", player: "Player") -> bool:
        for stat_name, required in (branch.required_stats or {}).items():
            if player.stats.get(stat_name) < required:
                return False
        return True

    def can_unlock(self, branch: "Branch", player: "Player") -> bool:
        """True when prerequisites and stat requirements are satisfied."""
        if not self.stats_met(branch, player):
            return False

        for prereq_name in branch.prerequisite_branch_names:
            prereq = self.tree.find_branch_by_name(prereq_name)
            if prereq is None or not prereq.is_unlocked:
                return False
            if not prereq.topics:
                continue
            if prereq.progress < branch.prerequisite_completion:
                return False
        return True

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def unlock_branch(self, branch: "Branch", is_auto: bool = False) -> List["Branch"]:
        """
        Unlock a branch; with ``is_auto`` also force its topics and prerequisites.

        Returns the branches whose state changed, the requested one first.
        """
        changed: List["Branch"] = []
        if not is_auto:
            if self._open_branch(branch):
                changed.append(branch)
            return changed

        self._auto_unlock(branch, visited=set(), changed=changed)
        return changed

    def _open_branch(self, branch: "Branch") -> bool:
        if not self.tree.mark_branch_unlocked(branch):
            return False
        if branch.topics:
            self.tree.mark_topic_unlocked(branch, branch.topics[0])
        return True

    def _auto_unlock(self, branch: "Branch", visited: Set[str], changed: List["Branch"]) -> None:
        if branch.id in visited:
            return
        visited.add(branch.id)

        state_changed = self.tree.mark_branch_unlocked(branch, is_auto=True)
        for topic in branch.topics:
            state_changed = self.tree.mark_topic_unlocked(branch, topic, forced=True) or state_changed
        if state_changed:
            changed.append(branch)

        for prereq_name in branch.prerequisite_branch_names:
            prereq = self.tree.find_branch_by_name(prereq_name)
            if prereq is None:
                logger.debug(f"Auto unlock skipped missing prerequisite: {prereq_name}")
                continue
            self._auto_unlock(prereq, visited, changed)

    def check_topic_unlocks(
        self, branch: "Branch", level: Optional["MasteryLevel"] = None
    ) -> List["Topic"]:
        """Unlock every locked topic whose scaled thresholds are all met."""
        if not branch.is_unlocked:
            return []

        unlocked: List["Topic"] = []
        for topic in branch.topics:
            if topic.is_unlocked:
                continue
            thresholds = self.policy.topic_thresholds(branch, topic, level)
            if thresholds.met_by(branch) and self.tree.mark_topic_unlocked(branch, topic):
                unlocked.append(topic)

        if unlocked:
            logger.info(
                f"Topics unlocked in {branch.name}: {[t.name for t in unlocked]}",
                extra={"branch_name": branch.name, "count": len(unlocked)},
            )
        return unlocked

    def check_branch_unlocks(self, player: "Player") -> List["Branch"]:
        """
        Unlock locked branches that have a mastery goal and pass ``can_unlock``.

        Repeats until stable so a chain of newly satisfied prerequisites
        resolves in one call.
        """
        unlocked: List["Branch"] = []
        progressed = True
        while progressed:
            progressed = False
            for _, branch in self.tree.iter_branches():
                if branch.is_unlocked or player.mastery_for(branch.name) is None:
                    continue
                if self.can_unlock(branch, player) and self._open_branch(branch):
                    unlocked.append(branch)
                    progressed = True
        return unlocked

    def unlock_initial_skills(self, player: "Player") -> List["Branch"]:
        """Auto unlock every branch the player declared as already known."""
        changed: List["Branch"] = []
        for subject_name, branch_names in player.initial_skills.items():
            for branch_name in branch_names:
                branch = self.tree.find_branch_by_name(branch_name, subject_name)
                if branch is None:
                    logger.debug(f"Initial skill skipped, unknown branch: {subject_name}/{branch_name}")
                    continue
                changed.extend(self.unlock_branch(branch, is_auto=True))
        return changed
