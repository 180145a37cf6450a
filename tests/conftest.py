"""
Pytest Configuration and Fixtures for Prodigy Tests
====================================================

Purpose
-------
Centralized fixtures for the Prodigy test suite: balance configuration,
domain model factories, collaborators with injectable clocks, and mocks.

Responsibilities
----------------
- Reset ConfigManager to built-in defaults around every test
- Build small, deterministic knowledge trees and players
- Provide EventBus / coordinator fixtures for async tests
- Domain event assertion helpers

Non-Responsibilities
--------------------
- Test implementation (delegated to test files)
- Business logic (delegated to domain models and modules)

Architecture Notes
------------------
- All tests are unit tests: no files, no network, no sleeping
- Time is injected through a mutable ``FakeClock``
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from prodigy.core.config.config_manager import ConfigManager
from prodigy.core.event_bus import EventBus
from prodigy.domain.models.knowledge import (
    Branch,
    BranchLevel,
    KnowledgeTree,
    Subject,
    SubjectCategory,
    Topic,
)
from prodigy.domain.models.mission import Mission, StudyType
from prodigy.domain.models.player import Player, Stats
from prodigy.modules.progression.coordinator import ProgressionCoordinator

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["PRODIGY_ENVIRONMENT"] = "testing"
    os.environ["PRODIGY_LOG_LEVEL"] = "DEBUG"


@pytest.fixture(autouse=True)
def default_balance():
    """Every test starts from the built-in balance values."""
    ConfigManager.reset()
    yield
    ConfigManager.reset()


# ============================================================================
# CLOCK
# ============================================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    # A Wednesday, mid-morning
    return FakeClock(datetime(2025, 6, 11, 10, 0, tzinfo=timezone.utc))


# ============================================================================
# DOMAIN MODEL FIXTURES
# ============================================================================


def make_topics(count: int, xp: float = 100, missions: int = 1, time: float = 600) -> List[Topic]:
    return [
        Topic(name=f"Topic {i + 1}", xp_required=xp * (i + 1), missions_required=missions * (i + 1),
              time_required=time * (i + 1))
        for i in range(count)
    ]


@pytest.fixture
def algebra() -> Branch:
    return Branch(
        name="Algebra I",
        level=BranchLevel.HIGH_SCHOOL,
        topics=[
            Topic(name="Variables & Expressions", xp_required=50, missions_required=1, time_required=1200),
            Topic(name="Equations & Inequalities", xp_required=100, missions_required=2, time_required=2400),
            Topic(name="Linear Functions", xp_required=150, missions_required=3, time_required=3600),
            Topic(name="Systems of Equations", xp_required=200, missions_required=4, time_required=4800),
        ],
    )


@pytest.fixture
def geometry() -> Branch:
    return Branch(
        name="Geometry",
        level=BranchLevel.HIGH_SCHOOL,
        prerequisite_branch_names=["Algebra I"],
        prerequisite_completion=0.75,
        topics=make_topics(3, xp=250, missions=4, time=4500),
    )


@pytest.fixture
def calculus() -> Branch:
    return Branch(
        name="Calculus I",
        level=BranchLevel.COLLEGE,
        prerequisite_branch_names=["Geometry"],
        prerequisite_completion=0.8,
        required_stats={"Intelligence": 12},
        topics=make_topics(2, xp=400, missions=5, time=7200),
    )


@pytest.fixture
def history_branch() -> Branch:
    return Branch(
        name="High School History",
        level=BranchLevel.HIGH_SCHOOL,
        topics=make_topics(2, xp=80, missions=2, time=1440),
    )


@pytest.fixture
def tree(algebra, geometry, calculus, history_branch) -> KnowledgeTree:
    return KnowledgeTree(
        [
            Subject(
                name="Mathematics",
                category=SubjectCategory.STEM,
                branches=[algebra, geometry, calculus],
            ),
            Subject(
                name="History",
                category=SubjectCategory.HUMANITIES,
                branches=[history_branch],
            ),
        ]
    )


@pytest.fixture
def player() -> Player:
    return Player(username="Ada", player_id="player-1", gold=50, stats=Stats(intelligence=10))


@pytest.fixture
def mission() -> Mission:
    """30 minute review session on Algebra I."""
    return Mission(
        subject_name="Mathematics",
        branch_name="Algebra I",
        topic_name="Variables & Expressions",
        study_type=StudyType.REVIEWING_NOTES,
        total_duration=1800,
        xp_reward=67.5,
        gold_reward=15,
    )


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def coordinator(player, tree, event_bus, clock) -> ProgressionCoordinator:
    return ProgressionCoordinator(player, tree, ConfigManager, event_bus, clock=clock)


@pytest.fixture
def mock_event_bus(mocker):
    """
    Mock EventBus for unit tests.

    Uses: Service tests that only check what was published
    """
    mock_bus = mocker.MagicMock()
    mock_bus.publish = mocker.AsyncMock()
    mock_bus.subscribe = mocker.MagicMock()
    return mock_bus


@pytest.fixture
def mock_logger(mocker):
    return mocker.MagicMock()


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def assert_domain_event_emitted(domain_model, event_name: str) -> bool:
    """
    Assert that a domain model emitted a specific event.

    Usage:
        player.add_gold(100)
        assert assert_domain_event_emitted(player, "player.gold_changed")
    """
    events = domain_model.get_pending_events()
    return any(event.event_name == event_name for event in events)


def get_domain_event_payload(domain_model, event_name: str) -> dict | None:
    """
    Get the payload of the first matching domain event.

    Usage:
        player.record_mission_completion(today)
        payload = get_domain_event_payload(player, "player.streak_updated")
        assert payload["streak"] == 1
    """
    events = domain_model.get_pending_events()
    for event in events:
        if event.event_name == event_name:
            return event.payload
    return None
