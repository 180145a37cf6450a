"""
Unit tests for MissionTimer.

Tests the mission state machine, the single running slot, Pomodoro cycling
and scheduled starts. Every test drives the clock by calling ``tick()``.
"""

from datetime import timedelta

import pytest

from prodigy.core.config.config_manager import ConfigManager
from prodigy.domain.models import Mission, MissionStatus, StudyType
from prodigy.modules.missions import MissionTimer, TickOutcome
from prodigy.modules.shared.exceptions import InvalidOperationError, NotFoundError


def make_mission(duration=1800, **kwargs) -> Mission:
    return Mission(
        subject_name="Mathematics",
        branch_name="Algebra I",
        topic_name="Linear Functions",
        study_type=StudyType.READING,
        total_duration=duration,
        xp_reward=75,
        gold_reward=15,
        **kwargs,
    )


@pytest.fixture
def timer(clock) -> MissionTimer:
    return MissionTimer(clock=clock)


def run_until_done(timer: MissionTimer, limit: int = 100_000):
    outcomes = []
    for _ in range(limit):
        result = timer.tick()
        if result is None:
            break
        outcomes.append(result.outcome)
        if result.completed:
            break
    return outcomes


@pytest.mark.unit
class TestTransitions:
    def test_start_pending_mission(self, timer):
        mission = timer.add(make_mission())

        timer.start(mission.id)

        assert mission.status is MissionStatus.IN_PROGRESS
        assert timer.active_mission is mission
        assert timer.ticking_mission is mission

    def test_starting_another_mission_pauses_the_first(self, timer):
        first = timer.add(make_mission())
        second = timer.add(make_mission())
        timer.start(first.id)

        timer.start(second.id)

        assert first.status is MissionStatus.PAUSED
        assert second.status is MissionStatus.IN_PROGRESS
        assert timer.active_mission is second

    def test_pause_and_resume_keeps_remaining_time(self, timer):
        # Arrange
        mission = timer.add(make_mission(duration=3000, is_pomodoro=True))
        timer.start(mission.id)
        for _ in range(10):
            timer.tick()

        # Act
        assert timer.pause(mission.id) is True
        timer.start(mission.id)

        # Assert
        assert mission.time_remaining == 1490
        assert mission.pomodoro_cycle == 1

    def test_pause_in_wrong_state_returns_false(self, timer):
        mission = timer.add(make_mission())

        assert timer.pause(mission.id) is False
        assert mission.status is MissionStatus.PENDING

    def test_paused_mission_does_not_tick(self, timer):
        mission = timer.add(make_mission())
        timer.start(mission.id)
        timer.pause(mission.id)

        assert timer.tick() is None
        assert timer.active_mission is None
        assert mission.time_remaining == 1800

    def test_failed_mission_cannot_start(self, timer):
        mission = timer.add(make_mission())
        timer.fail(mission.id)

        with pytest.raises(InvalidOperationError):
            timer.start(mission.id)

    def test_retry_returns_to_pending_with_fresh_block(self, timer):
        # Arrange
        mission = timer.add(make_mission(duration=5400, is_pomodoro=True))
        timer.start(mission.id)
        for _ in range(120):
            timer.tick()
        timer.fail(mission.id)

        # Act
        timer.retry(mission.id)

        # Assert
        assert mission.status is MissionStatus.PENDING
        assert mission.time_remaining == 1500
        assert mission.pomodoro_cycle == 0
        assert mission.is_break_time is False
        assert mission.actual_time_spent == 120

    def test_unknown_mission(self, timer):
        with pytest.raises(NotFoundError):
            timer.start("missing")

    def test_completed_missions_cannot_be_added(self, timer):
        mission = make_mission(status=MissionStatus.COMPLETED)

        with pytest.raises(InvalidOperationError):
            timer.add(mission)

    def test_missions_listed_pinned_first_then_newest(self, timer, clock):
        old = timer.add(make_mission(creation_date=clock() - timedelta(hours=2)))
        new = timer.add(make_mission(creation_date=clock()))
        pinned = timer.add(make_mission(creation_date=clock() - timedelta(days=1), is_pinned=True))

        assert timer.missions == [pinned, new, old]


@pytest.mark.unit
class TestCountdown:
    def test_plain_mission_completes_at_zero(self, timer, clock):
        # Arrange
        mission = timer.add(make_mission(duration=3))
        timer.start(mission.id)

        # Act
        outcomes = run_until_done(timer)

        # Assert
        assert outcomes == [TickOutcome.TICKED, TickOutcome.TICKED, TickOutcome.COMPLETED]
        assert mission.status is MissionStatus.COMPLETED
        assert mission.actual_time_spent == 3
        assert mission.completion_date == clock()
        assert timer.get(mission.id) is None
        assert timer.active_mission is None

    def test_idle_tick(self, timer):
        assert timer.tick() is None


@pytest.mark.unit
class TestPomodoro:
    def test_ninety_minutes_runs_four_cycles_and_three_breaks(self, timer):
        # Arrange
        mission = timer.add(make_mission(duration=5400, is_pomodoro=True))
        timer.start(mission.id)
        assert mission.time_remaining == 1500

        # Act
        outcomes = run_until_done(timer)

        # Assert
        assert outcomes.count(TickOutcome.BREAK_STARTED) == 3
        assert outcomes.count(TickOutcome.BREAK_ENDED) == 3
        assert outcomes[-1] is TickOutcome.COMPLETED
        assert len(outcomes) == 5400 + 3 * 300
        assert mission.pomodoro_cycle == 4
        assert mission.actual_time_spent == 5400

    def test_last_block_is_shortened(self, timer):
        mission = timer.add(make_mission(duration=2000, is_pomodoro=True))
        timer.start(mission.id)
        for _ in range(1500 + 300):
            timer.tick()

        assert mission.pomodoro_cycle == 2
        assert mission.time_remaining == 500

    def test_break_clears_study_slot(self, timer):
        mission = timer.add(make_mission(duration=3000, is_pomodoro=True))
        timer.start(mission.id)
        for _ in range(1500):
            timer.tick()

        assert mission.is_break_time is True
        assert mission.time_remaining == 300
        assert timer.active_mission is None
        assert timer.ticking_mission is mission

    def test_no_study_time_accrues_during_break(self, timer):
        mission = timer.add(make_mission(duration=3000, is_pomodoro=True))
        timer.start(mission.id)
        for _ in range(1500 + 200):
            timer.tick()

        assert mission.actual_time_spent == 1500

    def test_block_lengths_read_from_config(self, timer):
        ConfigManager.set("missions.pomodoro.study_seconds", 10)
        ConfigManager.set("missions.pomodoro.break_seconds", 2)
        mission = timer.add(make_mission(duration=20, is_pomodoro=True))
        timer.start(mission.id)

        outcomes = run_until_done(timer)

        assert len(outcomes) == 22
        assert mission.status is MissionStatus.COMPLETED


@pytest.mark.unit
class TestScheduled:
    def test_due_missions_start(self, timer, clock):
        due = timer.add(
            make_mission(status=MissionStatus.SCHEDULED, scheduled_date=clock() - timedelta(minutes=1))
        )
        later = timer.add(
            make_mission(status=MissionStatus.SCHEDULED, scheduled_date=clock() + timedelta(hours=1))
        )

        started = timer.start_due_scheduled()

        assert started == [due]
        assert due.status is MissionStatus.IN_PROGRESS
        assert later.status is MissionStatus.SCHEDULED

    def test_scheduled_mission_starts_once_clock_reaches_it(self, timer, clock):
        mission = timer.add(
            make_mission(status=MissionStatus.SCHEDULED, scheduled_date=clock() + timedelta(hours=1))
        )

        clock.advance(hours=1)
        timer.start_due_scheduled()

        assert timer.active_mission is mission
