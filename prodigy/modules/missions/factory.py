"""
Mission Factory

Purpose
-------
Build new ``Mission`` objects with their rewards quoted up front.

Responsibilities
----------------
- Manual missions: topic lookup, Pomodoro eligibility, schedule conflicts
- Quick missions: a short review session on a random unlocked topic
- Dungeon stage missions
- Familiar missions: fixed rewards for looking after a familiar
- Daily missions: a batch generated once per study day

Non-Responsibilities
--------------------
- Tracking or ticking missions (MissionTimer)
- Crediting rewards (ProgressionCoordinator)

Design Notes
------------
Randomness comes from an injectable ``random.Random`` and "now" from an
injectable clock so generation is reproducible in tests.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, FrozenSet, Iterable, List, Optional, Tuple

from prodigy.core.config.config_manager import ConfigManager
from prodigy.core.logging.logger import get_logger
from prodigy.domain.models.mission import Mission, MissionSource, MissionStatus, StudyType
from prodigy.modules.rewards.calculator import RewardCalculator
from prodigy.modules.shared.exceptions import (
    NotFoundError,
    ScheduleConflictError,
    ValidationError,
)

if TYPE_CHECKING:
    from prodigy.domain.models.knowledge import Branch, KnowledgeTree, Subject, Topic
    from prodigy.domain.models.player import Player
    from prodigy.modules.dungeons.catalog import Dungeon, DungeonStage

logger = get_logger(__name__)

WEEKDAYS: FrozenSet[int] = frozenset({0, 1, 2, 3, 4})
ALL_DAYS: FrozenSet[int] = frozenset(range(7))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# DAILY SETTINGS
# ============================================================================


@dataclass
class DailyMissionSettings:
    """
    Player preferences for automatically generated daily missions.

    ``study_days`` uses ``date.weekday()`` numbering (Monday is 0).
    ``last_generation_date`` prevents a second batch on the same day.
    """

    is_enabled: bool = True
    mission_count: int = 2
    mission_duration: float = 2700
    study_days: FrozenSet[int] = WEEKDAYS
    target_subject_names: Optional[List[str]] = None
    last_generation_date: Optional[date] = None

    @classmethod
    def from_config(cls, config_manager: "type[ConfigManager]" = ConfigManager) -> "DailyMissionSettings":
        return cls(
            mission_count=int(config_manager.get("missions.daily.mission_count", 2)),
            mission_duration=float(config_manager.get("missions.daily.mission_seconds", 2700)),
            study_days=WEEKDAYS if config_manager.get("missions.daily.weekdays_only", True) else ALL_DAYS,
        )


# ============================================================================
# FACTORY
# ============================================================================


class MissionFactory:
    def __init__(
        self,
        tree: "KnowledgeTree",
        calculator: Optional[RewardCalculator] = None,
        config_manager: "type[ConfigManager]" = ConfigManager,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.tree = tree
        self._config = config_manager
        self.calculator = calculator or RewardCalculator(config_manager)
        self._rng = rng or random.Random()
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def _resolve(
        self, subject_name: str, branch_name: str, topic_name: str
    ) -> Tuple["Subject", "Branch", "Topic"]:
        subject = self.tree.find_subject(subject_name)
        if subject is None:
            raise NotFoundError("Subject", subject_name)
        branch = next((b for b in subject.branches if b.name == branch_name), None)
        if branch is None:
            raise NotFoundError("Branch", branch_name)
        topic = next((t for t in branch.topics if t.name == topic_name), None)
        if topic is None:
            raise NotFoundError("Topic", topic_name)
        return subject, branch, topic

    def _random_unlocked_topic(
        self, subject_names: Optional[Iterable[str]] = None
    ) -> Optional[Tuple["Subject", "Branch", "Topic"]]:
        """Pick an unlocked branch, then an unlocked topic inside it."""
        allowed = set(subject_names) if subject_names else None
        branches = [
            (subject, branch)
            for subject, branch in self.tree.iter_branches()
            if branch.is_unlocked and (allowed is None or subject.name in allowed)
        ]
        if not branches:
            return None
        subject, branch = self._rng.choice(branches)
        topics = branch.unlocked_topics
        if not topics:
            return None
        return subject, branch, self._rng.choice(topics)

    # ------------------------------------------------------------------ #
    # Manual
    # ------------------------------------------------------------------ #

    def create_manual(
        self,
        player: "Player",
        subject_name: str,
        branch_name: str,
        topic_name: str,
        study_type: StudyType,
        duration: float,
        is_pomodoro: bool = False,
        scheduled_date: Optional[datetime] = None,
        existing: Iterable[Mission] = (),
    ) -> Mission:
        """
        Create a player-defined mission.

        A mission with a ``scheduled_date`` in the future starts out
        ``scheduled``; anything else is ``pending``.

        Raises
        ------
        ValidationError
            Non-positive duration, a study type that does not fit the subject,
            or Pomodoro on a mission shorter than one study block
        NotFoundError
            Unknown subject, branch or topic
        ScheduleConflictError
            The scheduled window overlaps another scheduled mission
        """
        if duration <= 0:
            raise ValidationError("duration", f"duration must be positive, got {duration}")

        study_seconds = float(self._config.get("missions.pomodoro.study_seconds", 1500))
        if is_pomodoro and duration < study_seconds:
            raise ValidationError(
                "is_pomodoro",
                f"Pomodoro missions need at least {study_seconds:.0f}s, got {duration:.0f}s",
            )

        subject, branch, topic = self._resolve(subject_name, branch_name, topic_name)
        if subject.category not in study_type.categories:
            raise ValidationError(
                "study_type",
                f"{study_type.display_name} does not apply to {subject.name}",
            )

        if scheduled_date is not None:
            end = scheduled_date + timedelta(seconds=duration)
            for other in existing:
                if other.status is MissionStatus.SCHEDULED and other.overlaps(scheduled_date, end):
                    raise ScheduleConflictError(other.id)

        quote = self.calculator.calculate(subject, branch, study_type, duration, player.stats)
        now = self._clock()
        is_future = scheduled_date is not None and scheduled_date > now

        mission = Mission(
            subject_name=subject.name,
            branch_name=branch.name,
            topic_name=topic.name,
            study_type=study_type,
            total_duration=duration,
            xp_reward=quote.xp,
            gold_reward=quote.gold,
            status=MissionStatus.SCHEDULED if is_future else MissionStatus.PENDING,
            is_pomodoro=is_pomodoro,
            source=MissionSource.MANUAL,
            creation_date=now,
            scheduled_date=scheduled_date,
        )
        logger.info(
            f"Mission created: {topic.name}",
            extra={"mission_id": mission.id, "status": mission.status.value},
        )
        return mission

    # ------------------------------------------------------------------ #
    # Generated
    # ------------------------------------------------------------------ #

    def create_quick(self, player: "Player") -> Optional[Mission]:
        """Short review mission on a random unlocked topic, or None if nothing is unlocked."""
        picked = self._random_unlocked_topic()
        if picked is None:
            logger.info("Quick mission skipped: no unlocked topics", extra={"player_id": player.id})
            return None

        subject, branch, topic = picked
        duration = float(self._config.get("missions.quick_mission_seconds", 600))
        quote = self.calculator.calculate(
            subject, branch, StudyType.REVIEWING_NOTES, duration, player.stats
        )
        return Mission(
            subject_name=subject.name,
            branch_name=branch.name,
            topic_name=topic.name,
            study_type=StudyType.REVIEWING_NOTES,
            total_duration=duration,
            xp_reward=quote.xp,
            gold_reward=quote.gold,
            source=MissionSource.AUTOMATIC,
            creation_date=self._clock(),
        )

    def create_dungeon_stage(self, dungeon: "Dungeon", stage: "DungeonStage") -> Mission:
        """
        Mission for one dungeon stage.

        Rewards use the duration-only base rate; the dungeon's final reward
        is paid separately on completion of the last stage.
        """
        quote = self.calculator.base_quote(stage.required_duration)
        return Mission(
            subject_name=dungeon.subject_name,
            branch_name=dungeon.name,
            topic_name=f"Dungeon: {stage.name}",
            study_type=stage.study_type,
            total_duration=stage.required_duration,
            xp_reward=quote.xp,
            gold_reward=quote.gold,
            source=MissionSource.DUNGEON,
            creation_date=self._clock(),
            dungeon_id=dungeon.id,
        )

    def create_familiar(self, familiar_name: str) -> Mission:
        """Fixed-reward interaction mission for a familiar; not tied to the tree."""
        name = (familiar_name or "").strip()
        if not name:
            raise ValidationError("familiar_name", "Familiar needs a name")
        mission = Mission(
            subject_name="Familiar",
            branch_name=name,
            topic_name=f"Interact with {name}",
            study_type=StudyType.FAMILIAR_INTERACTION,
            total_duration=float(self._config.get("missions.familiar.seconds", 600)),
            xp_reward=float(self._config.get("missions.familiar.xp", 50)),
            gold_reward=int(self._config.get("missions.familiar.gold", 10)),
            source=MissionSource.FAMILIAR,
            creation_date=self._clock(),
        )
        logger.info(f"Familiar mission created: {name}", extra={"mission_id": mission.id})
        return mission

    def generate_daily(self, settings: DailyMissionSettings, today: date) -> List[Mission]:
        """
        Generate today's batch of daily missions.

        Returns an empty list when the feature is off, today is not a study
        day, or a batch was already generated today. Otherwise marks
        ``settings.last_generation_date`` as today.
        """
        if not settings.is_enabled:
            logger.debug("Daily missions disabled")
            return []
        if today.weekday() not in settings.study_days:
            logger.debug(f"Daily missions skipped: {today} is not a study day")
            return []
        if settings.last_generation_date == today:
            logger.debug("Daily missions already generated today")
            return []

        quote = self.calculator.base_quote(settings.mission_duration)
        missions: List[Mission] = []
        for _ in range(settings.mission_count):
            picked = self._random_unlocked_topic(settings.target_subject_names)
            if picked is None:
                logger.warning("Daily mission skipped: no unlocked topic available")
                continue
            subject, branch, topic = picked
            missions.append(
                Mission(
                    subject_name=subject.name,
                    branch_name=branch.name,
                    topic_name=topic.name,
                    study_type=StudyType.REVIEWING_NOTES,
                    total_duration=settings.mission_duration,
                    xp_reward=quote.xp,
                    gold_reward=quote.gold,
                    source=MissionSource.AUTOMATIC,
                    creation_date=self._clock(),
                )
            )

        settings.last_generation_date = today
        logger.info(f"Generated {len(missions)} daily missions", extra={"count": len(missions)})
        return missions
