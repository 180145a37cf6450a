"""
Player Domain Model for Prodigy.

Purpose
-------
Rich domain model for the single player whose progression the engine
simulates: currencies, XP, streaks, mastery goals, dungeon progress and
the mission archive.

Responsibilities
----------------
- Enforce currency and XP invariants (no negative gold, atomic spending)
- Maintain the check-in streak from completion dates
- Hold per-branch mastery goals and per-subject permanent XP boosts
- Track titles, dungeon status and archived missions
- Emit domain events for important changes

Non-Responsibilities
--------------------
- Reward formulas (RewardCalculator / mood)
- Unlock rules (UnlockEngine)
- Persistence

Usage Example
-------------
>>> player = Player(username="ada")
>>> player.add_gold(100, reason="mission")
>>> player.spend_gold(30, reason="store")
>>> events = player.clear_domain_events()
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, fields
from datetime import date, timedelta
from enum import Enum
from typing import Dict, List, Optional

from prodigy.domain.models.base import (
    AggregateRoot,
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
)
from prodigy.domain.models.mission import Mission, MissionStatus
from prodigy.modules.shared.exceptions import InsufficientResourcesError


# ============================================================================
# VALUE OBJECTS
# ============================================================================


class MasteryLevel(Enum):
    """Mastery goal a player sets on a branch; higher goals raise thresholds."""

    STANDARD = "standard"
    PROFICIENT = "proficient"
    MASTERY = "mastery"

    @property
    def rank(self) -> int:
        return list(MasteryLevel).index(self)

    def __lt__(self, other: "MasteryLevel") -> bool:
        if not isinstance(other, MasteryLevel):
            return NotImplemented
        return self.rank < other.rank


@dataclass
class PlayerBranchMastery:
    branch_id: str
    level: MasteryLevel


@dataclass
class PlayerDungeonStatus:
    """Per-dungeon progress. ``current_stage`` is 1-based."""

    dungeon_id: str
    current_stage: int = 1
    is_completed: bool = False


@dataclass
class Stats:
    intelligence: int = 5
    wisdom: int = 5
    dexterity: int = 5
    creativity: int = 5
    stamina: int = 5
    focus: int = 5

    def __post_init__(self) -> None:
        for f in fields(self):
            validate_non_negative(getattr(self, f.name), f.name)

    def get(self, name: str) -> int:
        """Case-insensitive stat lookup; unknown stat names read as 0."""
        key = name.strip().lower()
        if key in {f.name for f in fields(self)}:
            return getattr(self, key)
        return 0


# ============================================================================
# PLAYER AGGREGATE ROOT
# ============================================================================


class Player(AggregateRoot):
    """
    Player aggregate root.

    Business Rules
    --------------
    - Gold never goes negative; spending is checked before any mutation
    - Streak: yesterday → +1, today → unchanged, first ever or gap → 1
    - A subject's permanent XP boost is granted at most once
    - Archived missions are keyed by id; re-archiving replaces the entry

    Domain Events
    -------------
    - player.gold_changed
    - player.xp_gained
    - player.streak_updated
    - player.mastery_goal_set
    - player.permanent_boost_granted
    - player.title_unlocked
    - player.mission_archived
    """

    def __init__(
        self,
        username: str,
        player_id: Optional[str] = None,
        gold: int = 50,
        total_xp: float = 0.0,
        stats: Optional[Stats] = None,
        initial_skills: Optional[Dict[str, List[str]]] = None,
        is_college_level: bool = False,
    ) -> None:
        validate_not_empty(username, "username")
        validate_non_negative(gold, "gold")
        validate_non_negative(total_xp, "total_xp")
        super().__init__(player_id or str(uuid.uuid4()))

        self.username = username
        self._gold = gold
        self._total_xp = total_xp
        self.stats = stats or Stats()
        self.is_college_level = is_college_level

        self.check_in_streak: int = 0
        self.last_mission_completion_date: Optional[date] = None
        self.procrastination_monster_value: float = 0.0

        self.initial_skills: Dict[str, List[str]] = dict(initial_skills or {})
        self.branch_mastery_levels: Dict[str, PlayerBranchMastery] = {}
        self.dungeon_progress: Dict[str, PlayerDungeonStatus] = {}
        self.permanent_xp_boosts: Dict[str, float] = {}

        self.unlocked_titles: List[str] = []
        self.active_title: Optional[str] = None

        self._archived_missions: Dict[str, Mission] = {}

    # ========================================================================
    # PROPERTIES
    # ========================================================================

    @property
    def gold(self) -> int:
        return self._gold

    @property
    def total_xp(self) -> float:
        return self._total_xp

    @property
    def archived_missions(self) -> List[Mission]:
        return list(self._archived_missions.values())

    @property
    def completed_missions_count(self) -> int:
        return sum(
            1 for m in self._archived_missions.values() if m.status is MissionStatus.COMPLETED
        )

    # ========================================================================
    # BUSINESS LOGIC - CURRENCY & XP
    # ========================================================================

    def add_gold(self, amount: int, reason: str = "unspecified") -> None:
        """Credit gold. Zero is accepted and ignored."""
        validate_non_negative(amount, "amount")
        if amount == 0:
            return
        self._gold += amount
        self.add_domain_event(
            "player.gold_changed",
            {"player_id": self.id, "delta": amount, "new_total": self._gold, "reason": reason},
        )

    def spend_gold(self, amount: int, reason: str = "unspecified") -> None:
        """
        Debit gold atomically.

        Raises
        ------
        DomainValidationError
            If amount is not positive
        InsufficientResourcesError
            If the balance is too low; the balance is left untouched
        """
        validate_positive(amount, "amount")
        if self._gold < amount:
            raise InsufficientResourcesError("gold", required=amount, current=self._gold)
        self._gold -= amount
        self.add_domain_event(
            "player.gold_changed",
            {"player_id": self.id, "delta": -amount, "new_total": self._gold, "reason": reason},
        )

    def add_xp(self, amount: float, reason: str = "unspecified") -> None:
        validate_non_negative(amount, "amount")
        if amount == 0:
            return
        self._total_xp += amount
        self.add_domain_event(
            "player.xp_gained",
            {"player_id": self.id, "amount": amount, "new_total": self._total_xp, "reason": reason},
        )

    # ========================================================================
    # BUSINESS LOGIC - STREAK & MONSTER
    # ========================================================================

    def record_mission_completion(self, today: date) -> int:
        """
        Update the check-in streak for a completion on ``today``.

        Returns the new streak length.
        """
        last = self.last_mission_completion_date
        if last is None:
            self.check_in_streak = 1
        elif last == today:
            pass
        elif last == today - timedelta(days=1):
            self.check_in_streak += 1
        else:
            self.check_in_streak = 1

        self.last_mission_completion_date = today
        self.add_domain_event(
            "player.streak_updated",
            {"player_id": self.id, "streak": self.check_in_streak, "date": today.isoformat()},
        )
        return self.check_in_streak

    def refresh_streak(self, today: date) -> bool:
        """
        Break a stale streak without recording a completion.

        Returns True if the streak was reset.
        """
        last = self.last_mission_completion_date
        if last is None or self.check_in_streak == 0:
            return False
        if today - last > timedelta(days=1):
            self.check_in_streak = 0
            self.add_domain_event(
                "player.streak_updated",
                {"player_id": self.id, "streak": 0, "date": today.isoformat()},
            )
            return True
        return False

    def feed_procrastination_monster(self, amount: float) -> None:
        validate_non_negative(amount, "amount")
        self.procrastination_monster_value += amount

    def relieve_procrastination(self, amount: float) -> None:
        """Lower the monster meter, floored at zero."""
        validate_non_negative(amount, "amount")
        self.procrastination_monster_value = max(0.0, self.procrastination_monster_value - amount)

    # ========================================================================
    # BUSINESS LOGIC - MASTERY & BOOSTS
    # ========================================================================

    def mastery_for(self, branch_name: str) -> Optional[MasteryLevel]:
        entry = self.branch_mastery_levels.get(branch_name)
        return entry.level if entry else None

    def set_mastery_goal(self, branch_name: str, branch_id: str, level: MasteryLevel) -> None:
        self.branch_mastery_levels[branch_name] = PlayerBranchMastery(branch_id=branch_id, level=level)
        self.add_domain_event(
            "player.mastery_goal_set",
            {"player_id": self.id, "branch_name": branch_name, "level": level.value},
        )

    def xp_boost_for(self, subject_name: str) -> float:
        return self.permanent_xp_boosts.get(subject_name, 0.0)

    def grant_permanent_boost(self, subject_name: str, amount: float) -> bool:
        """Record a subject's permanent XP boost. Only the first grant counts."""
        validate_positive(amount, "amount")
        if subject_name in self.permanent_xp_boosts:
            return False
        self.permanent_xp_boosts[subject_name] = amount
        self.add_domain_event(
            "player.permanent_boost_granted",
            {"player_id": self.id, "subject_name": subject_name, "boost": amount},
        )
        return True

    # ========================================================================
    # BUSINESS LOGIC - TITLES & DUNGEONS
    # ========================================================================

    def unlock_title(self, title: str) -> bool:
        """Add a title; equip it if none is active. False if already held."""
        validate_not_empty(title, "title")
        if title in self.unlocked_titles:
            return False
        self.unlocked_titles.append(title)
        if self.active_title is None:
            self.active_title = title
        self.add_domain_event(
            "player.title_unlocked",
            {"player_id": self.id, "title": title, "equipped": self.active_title == title},
        )
        return True

    def equip_title(self, title: str) -> None:
        if title not in self.unlocked_titles:
            raise DomainValidationError(f"Title not unlocked: {title}", field="title")
        self.active_title = title

    def dungeon_status(self, dungeon_id: str) -> PlayerDungeonStatus:
        """Status for a dungeon, created at stage 1 on first access."""
        status = self.dungeon_progress.get(dungeon_id)
        if status is None:
            status = PlayerDungeonStatus(dungeon_id=dungeon_id)
            self.dungeon_progress[dungeon_id] = status
        return status

    # ========================================================================
    # BUSINESS LOGIC - ARCHIVE
    # ========================================================================

    def archive_mission(self, mission: Mission) -> None:
        """Store a terminal mission, replacing any entry with the same id."""
        if not mission.is_terminal:
            raise DomainValidationError(
                f"Only finished missions can be archived, got {mission.status.value}",
                field="status",
            )
        self._archived_missions[mission.id] = mission
        self.add_domain_event(
            "player.mission_archived",
            {"player_id": self.id, "mission_id": mission.id, "status": mission.status.value},
        )

    def find_archived(self, mission_id: str) -> Optional[Mission]:
        return self._archived_missions.get(mission_id)

    def has_completed(self, mission_id: str) -> bool:
        archived = self._archived_missions.get(mission_id)
        return archived is not None and archived.status is MissionStatus.COMPLETED
