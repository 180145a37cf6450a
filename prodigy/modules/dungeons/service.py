"""
DungeonService - stage progression for multi-stage study projects
==================================================================

Handles:
- Resolving the player's current stage in a dungeon
- Building the mission for that stage
- Advancing the stage when a dungeon mission completes
- Paying the final reward exactly once when the last stage is cleared

Progress is stored on ``Player.dungeon_progress``; the catalog is read-only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from prodigy.domain.models.mission import MissionSource
from prodigy.modules.dungeons.catalog import DungeonCatalog, DungeonReward, DungeonStage
from prodigy.modules.shared.base_service import BaseService
from prodigy.modules.shared.exceptions import InvalidOperationError, NotFoundError

if TYPE_CHECKING:
    from logging import Logger

    from prodigy.core.config.config_manager import ConfigManager
    from prodigy.core.event_bus import EventBus
    from prodigy.domain.models.mission import Mission
    from prodigy.domain.models.player import Player
    from prodigy.modules.missions.factory import MissionFactory


class DungeonService(BaseService):
    def __init__(
        self,
        catalog: DungeonCatalog,
        config_manager: "type[ConfigManager]",
        event_bus: Optional["EventBus"],
        logger: "Logger",
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self.catalog = catalog

    def current_stage(self, player: "Player", dungeon_id: str) -> Optional[DungeonStage]:
        """The stage the player is on, or None once the dungeon is completed."""
        dungeon = self.catalog.get(dungeon_id)
        if dungeon is None:
            raise NotFoundError("Dungeon", dungeon_id)
        status = player.dungeon_status(dungeon_id)
        if status.is_completed:
            return None
        return dungeon.stage(status.current_stage)

    def create_stage_mission(
        self, player: "Player", dungeon_id: str, factory: "MissionFactory"
    ) -> "Mission":
        """
        Build the mission for the player's current stage.

        Raises:
            NotFoundError: Unknown dungeon
            InvalidOperationError: Dungeon already completed
        """
        stage = self.current_stage(player, dungeon_id)
        if stage is None:
            raise InvalidOperationError("start_dungeon_stage", f"Dungeon {dungeon_id} is already completed")
        dungeon = self.catalog.get(dungeon_id)
        self.log_operation("create_stage_mission", dungeon_id=dungeon_id, stage=stage.stage_number)
        return factory.create_dungeon_stage(dungeon, stage)

    def record_stage_completion(self, player: "Player", mission: "Mission") -> Optional[DungeonReward]:
        """
        Advance the dungeon a completed mission belongs to.

        Returns the final reward when this completion cleared the last stage,
        otherwise None. Missions that are not dungeon missions, unknown
        dungeons and already completed dungeons are logged no-ops.
        """
        if mission.source is not MissionSource.DUNGEON or not mission.dungeon_id:
            return None

        dungeon = self.catalog.get(mission.dungeon_id)
        if dungeon is None:
            self.log.debug(f"Dungeon completion ignored, unknown dungeon {mission.dungeon_id}")
            return None

        status = player.dungeon_status(dungeon.id)
        if status.is_completed:
            self.log.debug(f"Dungeon completion ignored, {dungeon.id} already completed")
            return None

        if status.current_stage < dungeon.stage_count:
            status.current_stage += 1
            self.log.info(
                f"Dungeon {dungeon.name} advanced to stage {status.current_stage}",
                extra={"player_id": player.id, "dungeon_id": dungeon.id},
            )
            return None

        status.is_completed = True
        reward = dungeon.final_reward
        player.add_gold(reward.gold, reason=f"dungeon:{dungeon.id}")
        player.add_xp(reward.xp, reason=f"dungeon:{dungeon.id}")
        if reward.title:
            player.unlock_title(reward.title)

        self.log.info(
            f"Dungeon completed: {dungeon.name}",
            extra={
                "player_id": player.id,
                "dungeon_id": dungeon.id,
                "gold_reward": reward.gold,
                "xp_reward": reward.xp,
            },
        )
        return reward
