"""
Achievement definitions.

``goal`` is compared against the progress value kept by the tracker; how a
given event moves that value is decided by the tracker's rule table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class AchievementTier(Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    ONYX = "onyx"
    SAPPHIRE = "sapphire"
    DIAMOND = "diamond"


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    tier: AchievementTier
    gold_reward: int
    goal: float
    is_secret: bool = False
    title_reward: Optional[str] = None


ACHIEVEMENTS: Tuple[Achievement, ...] = (
    # Bronze
    Achievement("first_mission", "First Step", "Complete your first mission.",
                AchievementTier.BRONZE, 50, 1),
    Achievement("streak_3_days", "Getting Consistent", "Reach a 3-day check-in streak.",
                AchievementTier.BRONZE, 75, 3),
    Achievement("earn_1000_gold", "Apprentice Saver", "Earn a total of 1,000 Gold.",
                AchievementTier.BRONZE, 100, 1000),
    # Silver
    Achievement("missions_completed_50", "Diligent Student", "Complete a total of 50 missions.",
                AchievementTier.SILVER, 250, 50),
    Achievement("streak_7_days", "Weekly Warrior", "Reach a 7-day check-in streak.",
                AchievementTier.SILVER, 300, 7, title_reward="Weekly Warrior"),
    # Gold
    Achievement("master_college_branch", "Major Milestone",
                "Fully complete all topics in a college-level branch.",
                AchievementTier.GOLD, 1500, 1),
    # Onyx
    Achievement("missions_completed_500", "Dedicated Scholar", "Complete a total of 500 missions.",
                AchievementTier.ONYX, 5000, 500),
    # Secret
    Achievement("early_bird", "The Early Bird", "Complete a mission before 8:00 AM.",
                AchievementTier.SILVER, 200, 1, is_secret=True),
)

