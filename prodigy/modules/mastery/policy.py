"""
Mastery goal and remaster rules.

A branch's thresholds scale with two things: the mastery goal the player
picked for it and how many times it has been remastered:

    multiplier = (1 + remaster_count * remaster_step) * level_multiplier

With the default balance a proficient goal (1.25) on a branch remastered
twice gives (1 + 2 * 0.25) * 1.25 = 1.875.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from prodigy.core.config.config_manager import ConfigManager
from prodigy.core.logging.logger import get_logger
from prodigy.domain.models.player import MasteryLevel

if TYPE_CHECKING:
    from prodigy.domain.models.knowledge import Branch, KnowledgeTree, Topic
    from prodigy.domain.models.player import Player

logger = get_logger(__name__)


@dataclass(frozen=True)
class Thresholds:
    xp: float
    missions: int
    time: float

    def met_by(self, branch: "Branch") -> bool:
        return (
            branch.current_xp >= self.xp
            and branch.missions_completed >= self.missions
            and branch.total_time_spent >= self.time
        )


class MasteryPolicy:
    """Stateless calculator for mastery multipliers plus the remaster operation."""

    def __init__(self, config_manager: "type[ConfigManager]" = ConfigManager) -> None:
        self._config = config_manager

    def level_multiplier(self, level: Optional[MasteryLevel]) -> float:
        level = level or MasteryLevel.STANDARD
        return float(self._config.get(f"mastery.level_multipliers.{level.value}", 1.0))

    def effective_multiplier(self, branch: "Branch", level: Optional[MasteryLevel]) -> float:
        step = float(self._config.get("mastery.remaster_step", 0.25))
        return (1 + branch.remaster_count * step) * self.level_multiplier(level)

    def topic_thresholds(
        self, branch: "Branch", topic: "Topic", level: Optional[MasteryLevel]
    ) -> Thresholds:
        """Scaled requirements for one topic. Mission counts round up."""
        m = self.effective_multiplier(branch, level)
        return Thresholds(
            xp=topic.xp_required * m,
            missions=math.ceil(topic.missions_required * m),
            time=topic.time_required * m,
        )

    def effective_totals(self, branch: "Branch", level: Optional[MasteryLevel]) -> Thresholds:
        """Scaled branch-level totals, for display and export only."""
        m = self.effective_multiplier(branch, level)
        return Thresholds(
            xp=branch.total_xp_required * m,
            missions=math.ceil(branch.total_missions_required * m),
            time=branch.total_time_required * m,
        )

    def remaster(
        self,
        branch: "Branch",
        subject_name: str,
        player: "Player",
        tree: "KnowledgeTree",
    ) -> bool:
        """
        Restart a mastered branch at a higher difficulty.

        Increments ``remaster_count`` and grants the subject's one-time
        permanent XP boost before resetting the branch, since the reset
        leaves ``remaster_count`` alone. Returns False for an unmastered branch.
        """
        if not branch.is_mastered:
            logger.debug(f"Remaster skipped, branch not mastered: {branch.name}")
            return False

        branch.remaster_count += 1
        boost = float(self._config.get("mastery.remaster_xp_boost", 0.005))
        granted = player.grant_permanent_boost(subject_name, boost)
        tree.reset_branch(branch.id)

        logger.info(
            f"Branch remastered: {branch.name}",
            extra={
                "branch_name": branch.name,
                "remaster_count": branch.remaster_count,
                "boost_granted": granted,
            },
        )
        return True
