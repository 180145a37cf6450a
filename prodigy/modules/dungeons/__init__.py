"""Multi-stage study projects."""

from .catalog import DUNGEONS, Dungeon, DungeonCatalog, DungeonReward, DungeonStage
from .service import DungeonService

__all__ = ["DUNGEONS", "Dungeon", "DungeonCatalog", "DungeonReward", "DungeonStage", "DungeonService"]
