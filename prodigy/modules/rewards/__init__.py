"""Reward quoting and the procrastination monster's mood modifier."""

from .calculator import RewardCalculator, RewardQuote, apply_cycle_bonus
from .mood import MonsterMood, apply_mood, mood_for

__all__ = ["RewardCalculator", "RewardQuote", "MonsterMood", "apply_cycle_bonus", "apply_mood", "mood_for"]
