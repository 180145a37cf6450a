"""
Mission Timer

Purpose
-------
Per-mission countdown and state machine for plain and Pomodoro missions,
with one system-wide ticking slot.

State Machine
-------------
    pending | scheduled ──start──▶ in_progress ◀──start── paused
                                   │    ▲  │
                                   │    └──┴──pause──▶ paused
                                   ├──tick to 0──▶ completed
                                   └──fail──▶ failed ──retry──▶ pending

Pomodoro Cycling
----------------
While ``in_progress`` a Pomodoro mission alternates study blocks and breaks.
When a study block hits zero the mission completes if
``pomodoro_cycle * study_seconds >= total_duration``; otherwise it enters a
break of ``break_seconds``. During a break the mission keeps ticking but the
active study slot is cleared and no study time accrues. When the break ends
the cycle counter increments and the next block is
``min(total - (cycle - 1) * study, study)`` seconds.

Design Notes
------------
- ``active_mission`` is the study slot: the mission currently accruing study
  time. ``ticking_mission`` also covers a mission on break.
- Study and break lengths are read from ConfigManager
  (``missions.pomodoro.*``) when a block starts.
- Completed missions leave the timer; failed ones stay so they can be retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from prodigy.core.config.config_manager import ConfigManager
from prodigy.core.logging.logger import get_logger
from prodigy.domain.models.mission import Mission, MissionStatus
from prodigy.modules.shared.exceptions import InvalidOperationError, NotFoundError

logger = get_logger(__name__)


class TickOutcome(Enum):
    TICKED = "ticked"
    BREAK_STARTED = "break_started"
    BREAK_ENDED = "break_ended"
    COMPLETED = "completed"


@dataclass(frozen=True)
class TickResult:
    mission: Mission
    outcome: TickOutcome

    @property
    def completed(self) -> bool:
        return self.outcome is TickOutcome.COMPLETED


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MissionTimer:
    def __init__(
        self,
        config_manager: "type[ConfigManager]" = ConfigManager,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config_manager
        self._clock = clock
        self._missions: Dict[str, Mission] = {}
        self._ticking_id: Optional[str] = None
        self._active_id: Optional[str] = None

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def study_seconds(self) -> float:
        return float(self._config.get("missions.pomodoro.study_seconds", 1500))

    @property
    def break_seconds(self) -> float:
        return float(self._config.get("missions.pomodoro.break_seconds", 300))

    # ------------------------------------------------------------------ #
    # Registry
    # ------------------------------------------------------------------ #

    def add(self, mission: Mission) -> Mission:
        if mission.is_terminal:
            raise InvalidOperationError("add_mission", f"Mission is already {mission.status.value}")
        self._missions[mission.id] = mission
        return mission

    def get(self, mission_id: str) -> Optional[Mission]:
        return self._missions.get(mission_id)

    def _require(self, mission_id: str) -> Mission:
        mission = self._missions.get(mission_id)
        if mission is None:
            raise NotFoundError("Mission", mission_id)
        return mission

    @property
    def missions(self) -> List[Mission]:
        """Tracked missions, pinned first, then newest first."""
        return sorted(
            self._missions.values(),
            key=lambda m: (not m.is_pinned, -m.creation_date.timestamp()),
        )

    @property
    def active_mission(self) -> Optional[Mission]:
        """The mission currently accruing study time, if any."""
        return self._missions.get(self._active_id) if self._active_id else None

    @property
    def ticking_mission(self) -> Optional[Mission]:
        """The in-progress mission, including one that is on a break."""
        return self._missions.get(self._ticking_id) if self._ticking_id else None

    def remove(self, mission_id: str) -> Optional[Mission]:
        mission = self._missions.pop(mission_id, None)
        if mission is not None and mission_id in (self._ticking_id, self._active_id):
            self._clear_slots()
        return mission

    def _clear_slots(self) -> None:
        self._ticking_id = None
        self._active_id = None

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def start(self, mission_id: str) -> Mission:
        """
        Start or resume a mission, pausing whichever mission was running.

        Raises
        ------
        NotFoundError
            If the mission is not tracked
        InvalidOperationError
            If the mission already completed or failed
        """
        mission = self._require(mission_id)
        if mission.is_terminal:
            raise InvalidOperationError(
                "start_mission", f"Mission is already {mission.status.value}"
            )
        if mission.status is MissionStatus.IN_PROGRESS:
            return mission

        self._pause_others(mission.id)

        if mission.status in (MissionStatus.PENDING, MissionStatus.SCHEDULED) and mission.is_pomodoro:
            mission.time_remaining = min(mission.total_duration, self.study_seconds)
            if mission.pomodoro_cycle == 0:
                mission.pomodoro_cycle = 1

        mission.status = MissionStatus.IN_PROGRESS
        self._ticking_id = mission.id
        self._active_id = None if mission.is_break_time else mission.id

        logger.info(
            f"Mission started: {mission.topic_name}",
            extra={"mission_id": mission.id, "pomodoro": mission.is_pomodoro},
        )
        return mission

    def _pause_others(self, keep_id: str) -> None:
        for other in self._missions.values():
            if other.id != keep_id and other.status is MissionStatus.IN_PROGRESS:
                other.status = MissionStatus.PAUSED
                logger.debug(f"Mission paused by another start: {other.id}")
        self._clear_slots()

    def pause(self, mission_id: str) -> bool:
        """Pause an in-progress mission. Returns False for any other state."""
        mission = self._require(mission_id)
        if mission.status is not MissionStatus.IN_PROGRESS:
            logger.debug(f"Pause ignored for {mission.status.value} mission {mission.id}")
            return False
        mission.status = MissionStatus.PAUSED
        if self._ticking_id == mission.id:
            self._clear_slots()
        return True

    def fail(self, mission_id: str) -> Mission:
        mission = self._require(mission_id)
        if mission.is_terminal:
            raise InvalidOperationError("fail_mission", f"Mission is already {mission.status.value}")
        mission.status = MissionStatus.FAILED
        if self._ticking_id == mission.id:
            self._clear_slots()
        logger.info(f"Mission failed: {mission.topic_name}", extra={"mission_id": mission.id})
        return mission

    def retry(self, mission_id: str) -> Mission:
        """Return a mission to pending with a fresh first block."""
        mission = self._require(mission_id)
        if mission.status is MissionStatus.COMPLETED:
            raise InvalidOperationError("retry_mission", "Mission is already completed")
        if self._ticking_id == mission.id:
            self._clear_slots()

        mission.status = MissionStatus.PENDING
        mission.time_remaining = mission.first_block_seconds(self.study_seconds)
        mission.pomodoro_cycle = 0
        mission.is_break_time = False
        return mission

    def start_due_scheduled(self, now: Optional[datetime] = None) -> List[Mission]:
        """
        Start scheduled missions whose time has come.

        Only one mission can run, so when several are due the latest one
        started ends up in progress and the others are paused.
        """
        now = now or self._clock()
        due = [
            m
            for m in self._missions.values()
            if m.status is MissionStatus.SCHEDULED
            and m.scheduled_date is not None
            and m.scheduled_date <= now
        ]
        due.sort(key=lambda m: m.scheduled_date)
        return [self.start(m.id) for m in due]

    # ------------------------------------------------------------------ #
    # Clock
    # ------------------------------------------------------------------ #

    def tick(self) -> Optional[TickResult]:
        """Advance the running mission by one second."""
        mission = self.ticking_mission
        if mission is None or mission.status is not MissionStatus.IN_PROGRESS:
            return None

        if mission.time_remaining > 0:
            mission.time_remaining = max(0.0, mission.time_remaining - 1)
            if not mission.is_break_time:
                mission.actual_time_spent += 1

        if mission.time_remaining > 0:
            return TickResult(mission, TickOutcome.TICKED)

        if not mission.is_pomodoro:
            return self._complete(mission)

        study = self.study_seconds
        if not mission.is_break_time:
            if mission.pomodoro_cycle * study >= mission.total_duration:
                return self._complete(mission)
            mission.is_break_time = True
            mission.time_remaining = self.break_seconds
            self._active_id = None
            logger.debug(f"Break started after cycle {mission.pomodoro_cycle}: {mission.id}")
            return TickResult(mission, TickOutcome.BREAK_STARTED)

        mission.is_break_time = False
        mission.pomodoro_cycle += 1
        remaining_total = mission.total_duration - (mission.pomodoro_cycle - 1) * study
        mission.time_remaining = min(remaining_total, study)
        self._active_id = mission.id
        logger.debug(f"Cycle {mission.pomodoro_cycle} started: {mission.id}")
        return TickResult(mission, TickOutcome.BREAK_ENDED)

    def _complete(self, mission: Mission) -> TickResult:
        mission.status = MissionStatus.COMPLETED
        mission.time_remaining = 0.0
        mission.completion_date = self._clock()
        self._missions.pop(mission.id, None)
        self._clear_slots()
        logger.info(
            f"Mission timer finished: {mission.topic_name}",
            extra={"mission_id": mission.id, "actual_time_spent": mission.actual_time_spent},
        )
        return TickResult(mission, TickOutcome.COMPLETED)
