"""
Unit tests for the reward calculator and the monster mood modifier.
"""

import pytest

from prodigy.core.config.config_manager import ConfigManager
from prodigy.domain.models import Stats, StudyType
from prodigy.modules.rewards import (
    MonsterMood,
    RewardCalculator,
    RewardQuote,
    apply_cycle_bonus,
    apply_mood,
    mood_for,
)
from prodigy.modules.shared.exceptions import ValidationError


@pytest.fixture
def calculator() -> RewardCalculator:
    return RewardCalculator()


@pytest.fixture
def mathematics(tree):
    return tree.find_subject("Mathematics")


@pytest.fixture
def history(tree):
    return tree.find_subject("History")


# ============================================================================
# BASE QUOTE
# ============================================================================


@pytest.mark.unit
class TestRewardCalculator:
    def test_half_hour_review_session(self, calculator, mathematics, algebra):
        """30 minutes: 75 base XP × 0.9 reviewing notes, 15 gold."""
        quote = calculator.calculate(
            mathematics, algebra, StudyType.REVIEWING_NOTES, 1800, Stats(intelligence=10)
        )

        assert quote.xp == pytest.approx(67.5)
        assert quote.gold == 15

    def test_base_quote_ignores_modifiers(self, calculator):
        assert calculator.base_quote(2700) == RewardQuote(xp=112.5, gold=22)

    def test_college_branch_multiplier(self, calculator, mathematics, calculus):
        quote = calculator.calculate(mathematics, calculus, StudyType.READING, 1800, Stats(intelligence=10))

        assert quote.xp == pytest.approx(90.0)
        assert quote.gold == 18

    def test_study_type_multiplier(self, calculator, mathematics, algebra):
        quote = calculator.calculate(mathematics, algebra, StudyType.DERIVATIONS, 1800, Stats(intelligence=10))

        assert quote.xp == pytest.approx(97.5)
        assert quote.gold == 15

    def test_stem_intelligence_bonus(self, calculator, mathematics, algebra):
        quote = calculator.calculate(mathematics, algebra, StudyType.READING, 1800, Stats(intelligence=15))

        assert quote.xp == pytest.approx(82.5)

    def test_intelligence_bonus_only_for_stem(self, calculator, history, history_branch):
        quote = calculator.calculate(
            history, history_branch, StudyType.READING, 1800, Stats(intelligence=15)
        )

        assert quote.xp == pytest.approx(75.0)

    def test_intelligence_at_threshold_gives_no_bonus(self, calculator, mathematics, algebra):
        quote = calculator.calculate(mathematics, algebra, StudyType.READING, 1800, Stats(intelligence=10))

        assert quote.xp == pytest.approx(75.0)

    def test_tiny_mission_is_floored_at_one(self, calculator, mathematics, algebra):
        quote = calculator.calculate(mathematics, algebra, StudyType.READING, 1, Stats())

        assert quote.xp == 1
        assert quote.gold == 1

    @pytest.mark.parametrize("duration", [0, -60])
    def test_non_positive_duration_rejected(self, calculator, duration):
        with pytest.raises(ValidationError):
            calculator.base_quote(duration)

    def test_rates_come_from_config(self, calculator, mathematics, algebra):
        ConfigManager.set("rewards.xp_per_minute", 5.0)

        quote = calculator.calculate(mathematics, algebra, StudyType.READING, 1800, Stats(intelligence=10))

        assert quote.xp == pytest.approx(150.0)


@pytest.mark.unit
class TestCycleBonus:
    def test_bonus_floors_gold(self):
        quote = apply_cycle_bonus(RewardQuote(xp=67.5, gold=15))

        assert quote.xp == pytest.approx(74.25)
        assert quote.gold == 16

    def test_bonus_from_config(self):
        ConfigManager.set("missions.pomodoro.cycle_bonus", 1.5)

        assert apply_cycle_bonus(RewardQuote(xp=10, gold=10)) == RewardQuote(xp=15.0, gold=15)


# ============================================================================
# MOOD
# ============================================================================


@pytest.mark.unit
class TestMonsterMood:
    @pytest.mark.parametrize(
        "value, mood",
        [
            (0.0, MonsterMood.CONTENT),
            (1.99, MonsterMood.CONTENT),
            (2.0, MonsterMood.NEUTRAL),
            (4.99, MonsterMood.NEUTRAL),
            (5.0, MonsterMood.AGITATED),
            (7.99, MonsterMood.AGITATED),
            (8.0, MonsterMood.FURIOUS),
            (25.0, MonsterMood.FURIOUS),
        ],
    )
    def test_mood_thresholds(self, value, mood):
        assert mood_for(value) is mood

    @pytest.mark.parametrize(
        "mood, xp, gold",
        [
            (MonsterMood.CONTENT, 67.5, 15),
            (MonsterMood.NEUTRAL, 67.5, 15),
            (MonsterMood.AGITATED, 67.5, 14),
            (MonsterMood.FURIOUS, 0.0, 13),
        ],
    )
    def test_apply_mood(self, mood, xp, gold):
        quote = apply_mood(RewardQuote(xp=67.5, gold=15), mood)

        assert quote.xp == xp
        assert quote.gold == gold

    def test_content_bonus_floors_gold(self):
        assert apply_mood(RewardQuote(xp=10, gold=40), MonsterMood.CONTENT).gold == 42

    def test_mood_has_no_minimum(self):
        quote = apply_mood(RewardQuote(xp=1, gold=1), MonsterMood.FURIOUS)

        assert quote == RewardQuote(xp=0.0, gold=0)
