"""
Reward Calculator

Pure base-reward function for a mission. Used at creation time to quote
rewards and by previews; mood and permanent boosts are applied later by the
progression coordinator, so this function never sees them.

Formula (default balance):
    xp   = duration / 60 * 2.5
    gold = floor(duration / 60 * 0.5)
    college branch        → xp × 1.2, gold = floor(gold × 1.2)
    study-type modifier   → xp × modifier (e.g. derivations 1.3, reviewing notes 0.9)
    STEM, intelligence>10 → xp × (1 + (intelligence - 10) × 0.02)
    both floored at 1
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from prodigy.core.config.config_manager import ConfigManager
from prodigy.domain.models.knowledge import BranchLevel
from prodigy.modules.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from prodigy.domain.models.knowledge import Branch, Subject
    from prodigy.domain.models.mission import StudyType
    from prodigy.domain.models.player import Stats


@dataclass(frozen=True)
class RewardQuote:
    xp: float
    gold: int


class RewardCalculator:
    def __init__(self, config_manager: "type[ConfigManager]" = ConfigManager) -> None:
        self._config = config_manager

    def _rate(self, key: str, default: float) -> float:
        return float(self._config.get(f"rewards.{key}", default))

    def base_quote(self, duration: float) -> RewardQuote:
        """Duration-only rewards with no level, activity or stat modifiers."""
        if duration <= 0:
            raise ValidationError("duration", f"duration must be positive, got {duration}")
        minutes = duration / 60
        return RewardQuote(
            xp=minutes * self._rate("xp_per_minute", 2.5),
            gold=math.floor(minutes * self._rate("gold_per_minute", 0.5)),
        )

    def calculate(
        self,
        subject: "Subject",
        branch: "Branch",
        study_type: "StudyType",
        duration: float,
        stats: "Stats",
    ) -> RewardQuote:
        base = self.base_quote(duration)
        xp, gold = base.xp, base.gold

        if branch.level is BranchLevel.COLLEGE:
            college = self._rate("college_multiplier", 1.2)
            xp *= college
            gold = math.floor(gold * college)

        modifiers = self._config.get("rewards.study_type_multipliers", {}) or {}
        xp *= float(modifiers.get(study_type.value, 1.0))

        threshold = int(self._rate("stem_intelligence_threshold", 10))
        if subject.is_stem and stats.intelligence > threshold:
            bonus = (stats.intelligence - threshold) * self._rate("stem_intelligence_bonus", 0.02)
            xp *= 1 + bonus

        return RewardQuote(
            xp=max(self._rate("minimum_xp", 1), xp),
            gold=max(int(self._rate("minimum_gold", 1)), gold),
        )


def apply_cycle_bonus(
    quote: RewardQuote, config_manager: "type[ConfigManager]" = ConfigManager
) -> RewardQuote:
    """Pomodoro cycle bonus: xp × cycle_bonus, gold = floor(gold × cycle_bonus)."""
    bonus = float(config_manager.get("missions.pomodoro.cycle_bonus", 1.10))
    return RewardQuote(xp=quote.xp * bonus, gold=math.floor(quote.gold * bonus))
