"""Achievement definitions, game events and the tracker."""

from .catalog import ACHIEVEMENTS, Achievement, AchievementTier
from .events import GameEvent, GoldEarned, LoginTime, MissionCompleted, StreakReached, TopicUnlocked
from .tracker import AchievementStatus, AchievementTracker

__all__ = [
    "ACHIEVEMENTS",
    "Achievement",
    "AchievementTier",
    "AchievementStatus",
    "AchievementTracker",
    "GameEvent",
    "GoldEarned",
    "LoginTime",
    "MissionCompleted",
    "StreakReached",
    "TopicUnlocked",
]
