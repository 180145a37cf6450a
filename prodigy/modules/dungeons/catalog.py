"""
Dungeon catalog.

A dungeon is a fixed chain of study stages simulating a large academic
project. Entries are read-only; per-player progress lives on
``Player.dungeon_progress``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from prodigy.domain.models.mission import StudyType


@dataclass(frozen=True)
class DungeonStage:
    stage_number: int
    name: str
    description: str
    study_type: StudyType
    required_duration: float


@dataclass(frozen=True)
class DungeonReward:
    gold: int
    xp: float
    title: Optional[str] = None


@dataclass(frozen=True)
class Dungeon:
    id: str
    name: str
    description: str
    subject_name: str
    stages: Tuple[DungeonStage, ...]
    final_reward: DungeonReward
    icon_name: str = ""

    @property
    def stage_count(self) -> int:
        return len(self.stages)

    def stage(self, stage_number: int) -> Optional[DungeonStage]:
        for stage in self.stages:
            if stage.stage_number == stage_number:
                return stage
        return None


DUNGEONS: Tuple[Dungeon, ...] = (
    Dungeon(
        id="chem_term_paper",
        name="Term Paper (Chemistry)",
        description="Research, draft, and finalize a term paper on a chemistry topic.",
        subject_name="Chemistry",
        icon_name="icon_dungeon_paper",
        stages=(
            DungeonStage(1, "Research Phase", "Gather and read relevant research papers.",
                         StudyType.RESEARCHING, 7200),
            DungeonStage(2, "Outline & Structure", "Create a detailed outline for the paper.",
                         StudyType.WRITING_ESSAY, 3600),
            DungeonStage(3, "Draft Writing", "Write the first full draft of the term paper.",
                         StudyType.WRITING_ESSAY, 14400),
            DungeonStage(4, "Revision & Editing", "Revise the draft for clarity and accuracy.",
                         StudyType.REVIEWING_NOTES, 7200),
        ),
        final_reward=DungeonReward(gold=2500, xp=5000, title="Thesis Champion"),
    ),
    Dungeon(
        id="math_midterm_prep",
        name="Midterm Prep (Applied Math)",
        description="A rigorous study plan for a comprehensive applied mathematics midterm.",
        subject_name="Mathematics",
        icon_name="icon_dungeon_exam",
        stages=(
            DungeonStage(1, "Concept Review", "Review all lecture notes and textbook chapters.",
                         StudyType.REVIEWING_NOTES, 5400),
            DungeonStage(2, "Problem Set Gauntlet A", "Complete the first half of the problem set.",
                         StudyType.SOLVING_PROBLEM_SET, 7200),
            DungeonStage(3, "Problem Set Gauntlet B", "Complete the second half of the problem set.",
                         StudyType.SOLVING_PROBLEM_SET, 7200),
            DungeonStage(4, "Mock Exam Simulation", "Take a timed practice exam.",
                         StudyType.SOLVING_PROBLEM_SET, 10800),
        ),
        final_reward=DungeonReward(gold=3000, xp=4000),
    ),
)


class DungeonCatalog:
    """Lookup over a fixed set of dungeons."""

    def __init__(self, dungeons: Tuple[Dungeon, ...] = DUNGEONS) -> None:
        self._by_id: Dict[str, Dungeon] = {d.id: d for d in dungeons}

    def get(self, dungeon_id: str) -> Optional[Dungeon]:
        return self._by_id.get(dungeon_id)

    def all(self) -> List[Dungeon]:
        return list(self._by_id.values())
