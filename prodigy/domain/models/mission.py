"""
Mission Domain Model for Prodigy.

Purpose
-------
Represent a single timed study task and the vocabulary around it: study
types, lifecycle states and where a mission came from.

Design Notes
------------
- State transitions are driven by ``MissionTimer``; the model only exposes
  the small helpers the timer needs.
- ``xp_reward`` / ``gold_reward`` are the quoted base rewards fixed at
  creation. What was actually credited is recorded separately in
  ``credited_xp`` / ``credited_gold`` once the coordinator applies it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import FrozenSet, Optional

from prodigy.domain.models.base import validate_non_negative, validate_positive
from prodigy.domain.models.knowledge import SubjectCategory

_ALL_CATEGORIES = frozenset(SubjectCategory)


class MissionStatus(Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (MissionStatus.COMPLETED, MissionStatus.FAILED)


class MissionSource(Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"
    GUILD = "guild"
    DUNGEON = "dungeon"
    FAMILIAR = "familiar"


class StudyType(Enum):
    # General
    READING = "reading"
    DOING_HOMEWORK = "doing_homework"
    LISTENING_TO_LECTURE = "listening_to_lecture"
    REVIEWING_NOTES = "reviewing_notes"
    WATCHING_VIDEO = "watching_video"
    DOING_SPEECH = "doing_speech"
    RESEARCHING = "researching"
    # STEM
    SOLVING_PROBLEM_SET = "solving_problem_set"
    CODING_PRACTICE = "coding_practice"
    DERIVATIONS = "derivations"
    LAB_SIMULATION = "lab_simulation"
    DESIGNING_EXPERIMENT = "designing_experiment"
    MEMORIZING = "memorizing"
    # Language
    VOCABULARY_PRACTICE = "vocabulary_practice"
    SPEAKING_PRACTICE = "speaking_practice"
    LISTENING_COMPREHENSION = "listening_comprehension"
    WRITING_PRACTICE = "writing_practice"
    # Humanities / social science
    ANALYZING_SOURCES = "analyzing_sources"
    WRITING_ESSAY = "writing_essay"
    # Special
    MAJOR_EVENT = "major_event"
    FAMILIAR_INTERACTION = "familiar_interaction"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def categories(self) -> FrozenSet[SubjectCategory]:
        """Subject categories this activity makes sense for."""
        return _STUDY_TYPE_CATEGORIES.get(self, _ALL_CATEGORIES)


_STUDY_TYPE_CATEGORIES = {
    StudyType.SOLVING_PROBLEM_SET: frozenset({SubjectCategory.STEM}),
    StudyType.CODING_PRACTICE: frozenset({SubjectCategory.STEM}),
    StudyType.DERIVATIONS: frozenset({SubjectCategory.STEM}),
    StudyType.LAB_SIMULATION: frozenset({SubjectCategory.STEM}),
    StudyType.DESIGNING_EXPERIMENT: frozenset({SubjectCategory.STEM}),
    StudyType.MEMORIZING: frozenset({SubjectCategory.STEM}),
    StudyType.VOCABULARY_PRACTICE: frozenset({SubjectCategory.LANGUAGE}),
    StudyType.SPEAKING_PRACTICE: frozenset({SubjectCategory.LANGUAGE}),
    StudyType.LISTENING_COMPREHENSION: frozenset({SubjectCategory.LANGUAGE}),
    StudyType.WRITING_PRACTICE: frozenset({SubjectCategory.LANGUAGE}),
    StudyType.ANALYZING_SOURCES: frozenset(
        {SubjectCategory.HUMANITIES, SubjectCategory.SOCIAL_SCIENCE}
    ),
    StudyType.WRITING_ESSAY: frozenset(
        {SubjectCategory.HUMANITIES, SubjectCategory.SOCIAL_SCIENCE}
    ),
    StudyType.FAMILIAR_INTERACTION: frozenset(),
}


@dataclass
class Mission:
    """
    A timed study task.

    Durations and ``time_remaining`` are in seconds.
    """

    subject_name: str
    branch_name: str
    topic_name: str
    study_type: StudyType
    total_duration: float
    xp_reward: float
    gold_reward: int
    time_remaining: Optional[float] = None
    status: MissionStatus = MissionStatus.PENDING
    is_pomodoro: bool = False
    pomodoro_cycle: int = 0
    is_break_time: bool = False
    source: MissionSource = MissionSource.MANUAL
    creation_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    scheduled_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    actual_time_spent: float = 0.0
    is_pinned: bool = False
    finishing_for_bonus: bool = False
    dungeon_id: Optional[str] = None
    rewards_applied: bool = False
    credited_xp: Optional[float] = None
    credited_gold: Optional[int] = None
    review_rating: Optional[int] = None
    review_notes: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        validate_positive(self.total_duration, "total_duration")
        validate_non_negative(self.xp_reward, "xp_reward")
        validate_non_negative(self.gold_reward, "gold_reward")
        if self.time_remaining is None:
            self.time_remaining = self.total_duration

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def scheduled_end(self) -> Optional[datetime]:
        if self.scheduled_date is None:
            return None
        return self.scheduled_date + timedelta(seconds=self.total_duration)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """True if this mission's scheduled window intersects [start, end)."""
        if self.scheduled_date is None:
            return False
        return start < self.scheduled_end and end > self.scheduled_date

    def first_block_seconds(self, study_seconds: float) -> float:
        """Length of the first countdown block for this mission."""
        if self.is_pomodoro:
            return min(self.total_duration, study_seconds)
        return self.total_duration
