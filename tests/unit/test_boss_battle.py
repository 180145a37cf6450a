"""
Unit tests for BossBattleService.

Tests wager validation, the immediate debit and the victory / defeat payouts.
The service records its events on the player; publishing them is the
coordinator's job, so these tests read the pending domain events.
"""

import pytest

from prodigy.core.config.config_manager import ConfigManager
from prodigy.modules.boss_battle import BossBattleService
from prodigy.modules.shared.exceptions import (
    InsufficientResourcesError,
    InvalidOperationError,
    ValidationError,
)
from tests.conftest import assert_domain_event_emitted, get_domain_event_payload


@pytest.fixture
def service(mock_event_bus, mock_logger) -> BossBattleService:
    return BossBattleService(ConfigManager, mock_event_bus, mock_logger)


@pytest.mark.unit
class TestDeclare:
    def test_wager_is_debited_immediately(self, service, player):
        # Act
        battle = service.declare(player, "Organic Chemistry Final", 20)

        # Assert
        assert player.gold == 30
        assert battle.xp_reward == 100
        assert battle.gold_jackpot == 40
        assert service.active_battle is battle
        payload = get_domain_event_payload(player, "boss_battle.declared")
        assert payload["wager"] == 20
        assert payload["battle_id"] == battle.id

    def test_nothing_published_directly(self, service, player, mock_event_bus):
        service.declare(player, "Final Exam", 10)

        mock_event_bus.publish.assert_not_called()

    def test_name_is_trimmed(self, service, player):
        battle = service.declare(player, "  Thesis Defense  ", 10)

        assert battle.name == "Thesis Defense"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name(self, service, player, name):
        with pytest.raises(ValidationError):
            service.declare(player, name, 10)

        assert player.gold == 50

    @pytest.mark.parametrize("wager", [0, -5, "10", 2.5, True])
    def test_invalid_wager(self, service, player, wager):
        with pytest.raises(ValidationError):
            service.declare(player, "Final Exam", wager)

        assert player.gold == 50
        assert service.active_battle is None

    def test_wager_above_balance(self, service, player):
        with pytest.raises(InsufficientResourcesError):
            service.declare(player, "Final Exam", 51)

        assert player.gold == 50
        assert service.active_battle is None
        assert not assert_domain_event_emitted(player, "boss_battle.declared")

    def test_one_battle_at_a_time(self, service, player):
        service.declare(player, "Final Exam", 10)

        with pytest.raises(InvalidOperationError):
            service.declare(player, "Second Exam", 10)

        assert player.gold == 40


@pytest.mark.unit
class TestOutcome:
    def test_victory_returns_wager_and_jackpot(self, service, player):
        # Arrange
        service.declare(player, "Final Exam", 20)

        # Act
        service.report_victory(player)

        # Assert
        assert player.gold == 90
        assert player.total_xp == 100
        assert service.active_battle is None
        assert get_domain_event_payload(player, "boss_battle.won")["gold_returned"] == 60

    def test_defeat_forfeits_wager(self, service, player):
        service.declare(player, "Final Exam", 20)

        service.report_defeat(player)

        assert player.gold == 30
        assert player.total_xp == 0
        assert get_domain_event_payload(player, "boss_battle.lost")["wager_lost"] == 20

    @pytest.mark.parametrize("report", ["report_victory", "report_defeat"])
    def test_report_without_battle(self, service, player, report):
        with pytest.raises(InvalidOperationError):
            getattr(service, report)(player)

    def test_payout_multipliers_from_config(self, service, player):
        ConfigManager.set("boss_battle.jackpot_multiplier", 3)
        ConfigManager.set("boss_battle.xp_per_wager", 10)

        battle = service.declare(player, "Final Exam", 10)

        assert battle.gold_jackpot == 30
        assert battle.xp_reward == 100
