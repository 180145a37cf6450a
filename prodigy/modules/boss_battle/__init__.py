from .service import BossBattle, BossBattleService

__all__ = ["BossBattle", "BossBattleService"]
