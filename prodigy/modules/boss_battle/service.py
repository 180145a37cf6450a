"""
BossBattleService - gold wagers on real-life events
=====================================================

A boss battle is a declared real-life challenge (an exam, a defense) with a
gold wager. Declaring debits the wager immediately; victory returns the
wager plus a jackpot and grants XP; defeat forfeits the wager.

Rewards (default balance):
- jackpot = wager × boss_battle.jackpot_multiplier (2)
- xp      = wager × boss_battle.xp_per_wager (5)

Only one battle can be active at a time. The service mutates the player
and records its events on the aggregate; ProgressionCoordinator runs it
under its lock and publishes what it recorded.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from prodigy.modules.shared.base_service import BaseService
from prodigy.modules.shared.exceptions import InvalidOperationError, ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from prodigy.core.config.config_manager import ConfigManager
    from prodigy.core.event_bus import EventBus
    from prodigy.domain.models.player import Player


@dataclass
class BossBattle:
    name: str
    wager: int
    xp_reward: float
    gold_jackpot: int
    declared_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def total_return(self) -> int:
        return self.wager + self.gold_jackpot


class BossBattleService(BaseService):
    def __init__(
        self,
        config_manager: "type[ConfigManager]",
        event_bus: Optional["EventBus"],
        logger: "Logger",
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self.active_battle: Optional[BossBattle] = None

    def declare(self, player: "Player", name: str, wager: Any) -> BossBattle:
        """
        Declare a battle and debit the wager.

        Raises:
            ValidationError: Blank name or non-positive wager
            InvalidOperationError: A battle is already active
            InsufficientResourcesError: Wager exceeds the player's gold
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "Boss battle needs a name")
        self.validate_positive_int(wager, "wager")
        if self.active_battle is not None:
            raise InvalidOperationError(
                "declare_boss_battle", f"'{self.active_battle.name}' is still active"
            )

        player.spend_gold(wager, reason="boss_battle_wager")

        battle = BossBattle(
            name=name,
            wager=wager,
            xp_reward=float(wager * self.get_config("boss_battle.xp_per_wager", 5)),
            gold_jackpot=int(wager * self.get_config("boss_battle.jackpot_multiplier", 2)),
        )
        self.active_battle = battle

        self.log_operation("declare_boss_battle", player_id=player.id, wager=wager)
        player.add_domain_event(
            "boss_battle.declared",
            {"player_id": player.id, "battle_id": battle.id, "name": name, "wager": wager},
        )
        return battle

    def _require_active(self, action: str) -> BossBattle:
        if self.active_battle is None:
            raise InvalidOperationError(action, "No boss battle is active")
        return self.active_battle

    def report_victory(self, player: "Player") -> BossBattle:
        battle = self._require_active("report_victory")
        player.add_gold(battle.total_return, reason="boss_battle_victory")
        player.add_xp(battle.xp_reward, reason="boss_battle_victory")
        self.active_battle = None

        self.log_operation(
            "report_victory",
            player_id=player.id,
            gold_jackpot=battle.gold_jackpot,
            xp_reward=battle.xp_reward,
        )
        player.add_domain_event(
            "boss_battle.won",
            {
                "player_id": player.id,
                "battle_id": battle.id,
                "gold_returned": battle.total_return,
                "xp_reward": battle.xp_reward,
            },
        )
        return battle

    def report_defeat(self, player: "Player") -> BossBattle:
        battle = self._require_active("report_defeat")
        self.active_battle = None

        self.log_operation("report_defeat", player_id=player.id, wager=battle.wager)
        player.add_domain_event(
            "boss_battle.lost",
            {"player_id": player.id, "battle_id": battle.id, "wager_lost": battle.wager},
        )
        return battle
