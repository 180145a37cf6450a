"""
Game events that drive achievement progress.

Each variant is a small frozen dataclass so trackers dispatch on type
instead of on achievement id substrings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class MissionCompleted:
    pass


@dataclass(frozen=True)
class GoldEarned:
    total_amount: int


@dataclass(frozen=True)
class StreakReached:
    days: int


@dataclass(frozen=True)
class TopicUnlocked:
    branch_name: str


@dataclass(frozen=True)
class LoginTime:
    hour: int


GameEvent = Union[MissionCompleted, GoldEarned, StreakReached, TopicUnlocked, LoginTime]
