"""
Unit tests for AchievementTracker.

Tests the event-to-progress rule table, unlock payouts and the
"evaluate once" guarantee.
"""

import pytest

from prodigy.modules.achievements import (
    ACHIEVEMENTS,
    AchievementStatus,
    AchievementTracker,
    GoldEarned,
    LoginTime,
    MissionCompleted,
    StreakReached,
    TopicUnlocked,
)


@pytest.fixture
def tracker(tree) -> AchievementTracker:
    return AchievementTracker(tree=tree)


@pytest.mark.unit
class TestMissionCounts:
    def test_first_mission_pays_out_once(self, tracker, player):
        # Act
        first = tracker.process_event(MissionCompleted(), player)
        second = tracker.process_event(MissionCompleted(), player)

        # Assert
        assert first == ["first_mission"]
        assert second == []
        assert player.gold == 100
        assert tracker.is_unlocked("first_mission")

    def test_fifty_missions(self, tracker, player):
        unlocked = []
        for _ in range(50):
            unlocked.extend(tracker.process_event(MissionCompleted(), player))

        assert unlocked == ["first_mission", "missions_completed_50"]
        assert tracker.statuses["missions_completed_500"].progress == 50


@pytest.mark.unit
class TestThresholdEvents:
    def test_gold_total(self, tracker, player):
        assert tracker.process_event(GoldEarned(total_amount=999), player) == []
        assert tracker.process_event(GoldEarned(total_amount=1000), player) == ["earn_1000_gold"]
        assert player.gold == 150

    def test_seven_day_streak_grants_title(self, tracker, player):
        # Act
        unlocked = tracker.process_event(StreakReached(days=7), player)

        # Assert
        assert unlocked == ["streak_3_days", "streak_7_days"]
        assert player.gold == 50 + 75 + 300
        assert player.unlocked_titles == ["Weekly Warrior"]
        assert player.active_title == "Weekly Warrior"

    @pytest.mark.parametrize("hour, expected", [(5, ["early_bird"]), (7, ["early_bird"]), (8, []), (23, [])])
    def test_early_bird(self, tracker, player, hour, expected):
        assert tracker.process_event(LoginTime(hour=hour), player) == expected


@pytest.mark.unit
class TestCollegeBranch:
    def test_mastered_college_branch(self, tracker, tree, calculus, player):
        tree.mark_branch_unlocked(calculus)
        for topic in calculus.topics:
            tree.mark_topic_unlocked(calculus, topic)

        assert tracker.process_event(TopicUnlocked(branch_name="Calculus I"), player) == [
            "master_college_branch"
        ]

    def test_partially_unlocked_college_branch(self, tracker, tree, calculus, player):
        tree.mark_branch_unlocked(calculus)
        tree.mark_topic_unlocked(calculus, calculus.topics[0])

        assert tracker.process_event(TopicUnlocked(branch_name="Calculus I"), player) == []

    def test_high_school_branch_does_not_count(self, tracker, tree, algebra, player):
        tree.mark_branch_unlocked(algebra)
        for topic in algebra.topics:
            tree.mark_topic_unlocked(algebra, topic)

        assert tracker.process_event(TopicUnlocked(branch_name="Algebra I"), player) == []

    def test_without_tree(self, player):
        tracker = AchievementTracker()

        assert tracker.process_event(TopicUnlocked(branch_name="Calculus I"), player) == []


@pytest.mark.unit
class TestTrackerSetup:
    def test_saved_status_is_respected(self, player):
        saved = [AchievementStatus("first_mission", progress=1, is_unlocked=True)]
        tracker = AchievementTracker(saved=saved)

        assert tracker.process_event(MissionCompleted(), player) == []
        assert player.gold == 50

    def test_custom_rules(self, player):
        tracker = AchievementTracker(
            rules={"early_bird": lambda event, progress, tree: 1.0},
        )

        assert tracker.process_event(MissionCompleted(), player) == ["early_bird"]

    def test_every_catalog_entry_has_a_status(self):
        tracker = AchievementTracker()

        assert set(tracker.statuses) == {a.id for a in ACHIEVEMENTS}
