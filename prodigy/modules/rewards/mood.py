"""
Procrastination monster mood.

The monster meter on the player maps to a mood tier that scales the gold of
every completed mission; a furious monster also eats all of its XP.

    value < 2  → content   (gold × 1.05)
    value < 5  → neutral   (unchanged)
    value < 8  → agitated  (gold × 0.95)
    otherwise  → furious   (gold × 0.90, xp = 0)

Gold is floored after scaling.
"""

from __future__ import annotations

import math
from enum import Enum

from prodigy.core.config.config_manager import ConfigManager
from prodigy.modules.rewards.calculator import RewardQuote


class MonsterMood(Enum):
    CONTENT = "content"
    NEUTRAL = "neutral"
    AGITATED = "agitated"
    FURIOUS = "furious"


def mood_for(value: float, config_manager: "type[ConfigManager]" = ConfigManager) -> MonsterMood:
    thresholds = config_manager.get("mood.thresholds", {}) or {}
    if value < float(thresholds.get("content", 2.0)):
        return MonsterMood.CONTENT
    if value < float(thresholds.get("neutral", 5.0)):
        return MonsterMood.NEUTRAL
    if value < float(thresholds.get("agitated", 8.0)):
        return MonsterMood.AGITATED
    return MonsterMood.FURIOUS


def apply_mood(
    quote: RewardQuote,
    mood: MonsterMood,
    config_manager: "type[ConfigManager]" = ConfigManager,
) -> RewardQuote:
    """Scale a quote by the monster's mood. No minimum floor applies here."""
    multipliers = config_manager.get("mood.gold_multipliers", {}) or {}
    gold = math.floor(quote.gold * float(multipliers.get(mood.value, 1.0)))
    xp = 0.0 if mood is MonsterMood.FURIOUS else quote.xp
    return RewardQuote(xp=xp, gold=gold)
