"""Mission construction and the mission timer state machine."""

from .factory import DailyMissionSettings, MissionFactory
from .timer import MissionTimer, TickOutcome, TickResult

__all__ = [
    "DailyMissionSettings",
    "MissionFactory",
    "MissionTimer",
    "TickOutcome",
    "TickResult",
]
