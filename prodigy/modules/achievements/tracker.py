"""
Achievement Tracker

Purpose
-------
Turn game events into achievement progress and pay out rewards on unlock.

Rules
-----
Every achievement id maps to a progress rule. A rule receives the event and
the current progress and returns the new progress, or None when the event
does not concern that achievement. An achievement unlocks once its progress
reaches its goal; unlocking grants gold and the optional title (auto
equipped when the player has no active title). Unlocked achievements are
never evaluated again.

Design Notes
------------
- Achievements with no rule never progress; that is logged once at init.
- The tracker keeps the per-achievement status; the Player only receives
  the rewards.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from prodigy.core.logging.logger import get_logger
from prodigy.domain.models.knowledge import BranchLevel
from prodigy.modules.achievements.catalog import ACHIEVEMENTS, Achievement
from prodigy.modules.achievements.events import (
    GameEvent,
    GoldEarned,
    LoginTime,
    MissionCompleted,
    StreakReached,
    TopicUnlocked,
)

if TYPE_CHECKING:
    from prodigy.domain.models.knowledge import KnowledgeTree
    from prodigy.domain.models.player import Player

logger = get_logger(__name__)

ProgressRule = Callable[[GameEvent, float, Optional["KnowledgeTree"]], Optional[float]]

EARLY_BIRD_HOUR = 8


# ============================================================================
# PROGRESS RULES
# ============================================================================


def _count_missions(event: GameEvent, progress: float, tree: Optional["KnowledgeTree"]) -> Optional[float]:
    return progress + 1 if isinstance(event, MissionCompleted) else None


def _total_gold(event: GameEvent, progress: float, tree: Optional["KnowledgeTree"]) -> Optional[float]:
    return float(event.total_amount) if isinstance(event, GoldEarned) else None


def _streak_days(event: GameEvent, progress: float, tree: Optional["KnowledgeTree"]) -> Optional[float]:
    return float(event.days) if isinstance(event, StreakReached) else None


def _early_login(event: GameEvent, progress: float, tree: Optional["KnowledgeTree"]) -> Optional[float]:
    if isinstance(event, LoginTime) and event.hour < EARLY_BIRD_HOUR:
        return 1.0
    return None


def _college_branch_mastered(
    event: GameEvent, progress: float, tree: Optional["KnowledgeTree"]
) -> Optional[float]:
    if not isinstance(event, TopicUnlocked) or tree is None:
        return None
    branch = tree.find_branch_by_name(event.branch_name)
    if branch is None or branch.level is not BranchLevel.COLLEGE:
        return None
    return 1.0 if branch.is_mastered else None


DEFAULT_RULES: Dict[str, ProgressRule] = {
    "first_mission": _count_missions,
    "missions_completed_50": _count_missions,
    "missions_completed_500": _count_missions,
    "earn_1000_gold": _total_gold,
    "streak_3_days": _streak_days,
    "streak_7_days": _streak_days,
    "master_college_branch": _college_branch_mastered,
    "early_bird": _early_login,
}


@dataclass
class AchievementStatus:
    achievement_id: str
    progress: float = 0.0
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None


# ============================================================================
# TRACKER
# ============================================================================


class AchievementTracker:
    def __init__(
        self,
        achievements: Tuple[Achievement, ...] = ACHIEVEMENTS,
        rules: Optional[Dict[str, ProgressRule]] = None,
        tree: Optional["KnowledgeTree"] = None,
        saved: Optional[List[AchievementStatus]] = None,
    ) -> None:
        self.achievements: Dict[str, Achievement] = {a.id: a for a in achievements}
        self.rules = dict(DEFAULT_RULES if rules is None else rules)
        self.tree = tree

        self.statuses: Dict[str, AchievementStatus] = {s.achievement_id: s for s in saved or []}
        for achievement_id in self.achievements:
            self.statuses.setdefault(achievement_id, AchievementStatus(achievement_id))

        missing = [a for a in self.achievements if a not in self.rules]
        if missing:
            logger.debug(f"Achievements without a progress rule: {missing}")

    def process_event(self, event: GameEvent, player: "Player") -> List[str]:
        """
        Apply one event to every locked achievement.

        Returns the ids of achievements unlocked by this event.
        """
        unlocked: List[str] = []
        for achievement_id, achievement in self.achievements.items():
            status = self.statuses[achievement_id]
            if status.is_unlocked:
                continue
            rule = self.rules.get(achievement_id)
            if rule is None:
                continue
            progress = rule(event, status.progress, self.tree)
            if progress is None:
                continue
            status.progress = progress
            if progress >= achievement.goal:
                self._unlock(achievement, status, player)
                unlocked.append(achievement_id)
        return unlocked

    def _unlock(self, achievement: Achievement, status: AchievementStatus, player: "Player") -> None:
        status.is_unlocked = True
        status.unlocked_at = datetime.now(timezone.utc)
        player.add_gold(achievement.gold_reward, reason=f"achievement:{achievement.id}")
        if achievement.title_reward:
            player.unlock_title(achievement.title_reward)
        logger.info(
            f"Achievement unlocked: {achievement.name}",
            extra={
                "player_id": player.id,
                "achievement_id": achievement.id,
                "gold_reward": achievement.gold_reward,
            },
        )

    def is_unlocked(self, achievement_id: str) -> bool:
        status = self.statuses.get(achievement_id)
        return status is not None and status.is_unlocked
