"""
Unit Tests for Player Domain Model
==================================

Purpose
-------
Test the business logic in the Player aggregate without collaborators.

Test Coverage
-------------
- Construction and validation
- Gold and XP operations
- Check-in streak rules
- Procrastination monster meter
- Permanent boosts, titles, dungeon status
- Mission archive
- Domain event emission

Testing Strategy
----------------
- AAA pattern (Arrange, Act, Assert)
- Test one behavior per test
"""

from datetime import date

import pytest

from prodigy.domain.models import Mission, MissionStatus, Player, Stats, StudyType
from prodigy.domain.models.base import DomainValidationError
from prodigy.domain.models.player import MasteryLevel
from prodigy.modules.shared.exceptions import InsufficientResourcesError
from tests.conftest import assert_domain_event_emitted, get_domain_event_payload


# ============================================================================
# CONSTRUCTION TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestPlayerCreation:
    def test_defaults(self):
        # Arrange & Act
        player = Player(username="Ada")

        # Assert
        assert player.gold == 50
        assert player.total_xp == 0
        assert player.check_in_streak == 0
        assert player.procrastination_monster_value == 0
        assert player.active_title is None
        assert player.id

    def test_requires_username(self):
        with pytest.raises(DomainValidationError):
            Player(username="")

    def test_rejects_negative_gold(self):
        with pytest.raises(DomainValidationError):
            Player(username="Ada", gold=-1)

    def test_stats_lookup_is_case_insensitive(self):
        stats = Stats(intelligence=14)

        assert stats.get("Intelligence") == 14
        assert stats.get("INTELLIGENCE") == 14
        assert stats.get("charisma") == 0

    def test_stats_reject_negative_values(self):
        with pytest.raises(DomainValidationError):
            Stats(focus=-2)


# ============================================================================
# CURRENCY & XP TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestPlayerCurrency:
    def test_add_gold_emits_event(self, player):
        # Act
        player.add_gold(25, reason="test")

        # Assert
        assert player.gold == 75
        payload = get_domain_event_payload(player, "player.gold_changed")
        assert payload == {"player_id": "player-1", "delta": 25, "new_total": 75, "reason": "test"}

    def test_add_zero_gold_is_silent(self, player):
        player.add_gold(0)

        assert player.gold == 50
        assert not assert_domain_event_emitted(player, "player.gold_changed")

    def test_spend_gold(self, player):
        player.spend_gold(20)

        assert player.gold == 30
        assert get_domain_event_payload(player, "player.gold_changed")["delta"] == -20

    def test_spend_more_than_balance_leaves_gold_untouched(self, player):
        # Act & Assert
        with pytest.raises(InsufficientResourcesError) as exc_info:
            player.spend_gold(51)

        assert exc_info.value.required == 51
        assert exc_info.value.current == 50
        assert player.gold == 50
        assert player.get_pending_events() == []

    def test_spend_zero_rejected(self, player):
        with pytest.raises(DomainValidationError):
            player.spend_gold(0)

    def test_add_xp(self, player):
        player.add_xp(67.5, reason="mission_completed")

        assert player.total_xp == 67.5
        assert assert_domain_event_emitted(player, "player.xp_gained")

    def test_add_negative_xp_rejected(self, player):
        with pytest.raises(DomainValidationError):
            player.add_xp(-1)


# ============================================================================
# STREAK TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestCheckInStreak:
    def test_first_completion_starts_streak(self, player):
        assert player.record_mission_completion(date(2025, 6, 11)) == 1

    def test_same_day_keeps_streak(self, player):
        player.record_mission_completion(date(2025, 6, 11))

        assert player.record_mission_completion(date(2025, 6, 11)) == 1

    def test_consecutive_day_extends_streak(self, player):
        player.record_mission_completion(date(2025, 6, 10))

        assert player.record_mission_completion(date(2025, 6, 11)) == 2
        assert player.last_mission_completion_date == date(2025, 6, 11)

    def test_gap_restarts_streak(self, player):
        player.record_mission_completion(date(2025, 6, 8))
        player.record_mission_completion(date(2025, 6, 9))

        assert player.record_mission_completion(date(2025, 6, 11)) == 1

    def test_refresh_resets_stale_streak(self, player):
        # Arrange
        player.record_mission_completion(date(2025, 6, 8))
        player.clear_domain_events()

        # Act
        was_reset = player.refresh_streak(date(2025, 6, 11))

        # Assert
        assert was_reset is True
        assert player.check_in_streak == 0
        assert get_domain_event_payload(player, "player.streak_updated")["streak"] == 0

    def test_refresh_keeps_streak_from_yesterday(self, player):
        player.record_mission_completion(date(2025, 6, 10))

        assert player.refresh_streak(date(2025, 6, 11)) is False
        assert player.check_in_streak == 1


# ============================================================================
# MONSTER, BOOSTS, TITLES
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestPlayerProgressionState:
    def test_relief_is_floored_at_zero(self, player):
        player.feed_procrastination_monster(0.3)

        player.relieve_procrastination(0.5)

        assert player.procrastination_monster_value == 0.0

    def test_permanent_boost_granted_once(self, player):
        assert player.grant_permanent_boost("Mathematics", 0.005) is True
        assert player.grant_permanent_boost("Mathematics", 0.005) is False

        assert player.xp_boost_for("Mathematics") == 0.005
        assert player.xp_boost_for("History") == 0.0

    def test_first_title_is_equipped(self, player):
        player.unlock_title("Weekly Warrior")
        player.unlock_title("Thesis Champion")

        assert player.unlocked_titles == ["Weekly Warrior", "Thesis Champion"]
        assert player.active_title == "Weekly Warrior"

    def test_duplicate_title_ignored(self, player):
        player.unlock_title("Weekly Warrior")

        assert player.unlock_title("Weekly Warrior") is False

    def test_equip_requires_unlocked_title(self, player):
        with pytest.raises(DomainValidationError):
            player.equip_title("Thesis Champion")

    def test_mastery_goal_recorded(self, player):
        player.set_mastery_goal("Algebra I", "branch-1", MasteryLevel.PROFICIENT)

        assert player.mastery_for("Algebra I") is MasteryLevel.PROFICIENT
        assert player.mastery_for("Geometry") is None

    def test_mastery_levels_are_ordered(self):
        assert MasteryLevel.STANDARD < MasteryLevel.PROFICIENT < MasteryLevel.MASTERY

    def test_dungeon_status_created_on_first_access(self, player):
        status = player.dungeon_status("chem_term_paper")

        assert status.current_stage == 1
        assert status.is_completed is False
        assert player.dungeon_status("chem_term_paper") is status


# ============================================================================
# ARCHIVE TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestMissionArchive:
    def test_only_terminal_missions_are_archived(self, player, mission):
        with pytest.raises(DomainValidationError):
            player.archive_mission(mission)

    def test_archive_replaces_same_id(self, player, mission):
        # Arrange
        mission.status = MissionStatus.COMPLETED
        player.archive_mission(mission)

        # Act
        mission.review_rating = 4
        player.archive_mission(mission)

        # Assert
        assert len(player.archived_missions) == 1
        assert player.find_archived(mission.id).review_rating == 4
        assert player.has_completed(mission.id)
        assert player.completed_missions_count == 1

    def test_failed_mission_is_not_completed(self, player, mission):
        mission.status = MissionStatus.FAILED
        player.archive_mission(mission)

        assert player.has_completed(mission.id) is False
        assert player.completed_missions_count == 0

    def test_mission_requires_positive_duration(self):
        with pytest.raises(DomainValidationError):
            Mission(
                subject_name="Mathematics",
                branch_name="Algebra I",
                topic_name="Linear Functions",
                study_type=StudyType.READING,
                total_duration=0,
                xp_reward=0,
                gold_reward=0,
            )
