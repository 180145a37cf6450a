"""
Default knowledge catalog.

Builds a fresh ``KnowledgeTree`` with the starter subjects. Every call
returns new objects, so a tree can be mutated freely by one session.

Topic rows are ``(name, xp_required, missions_required, time_required)``.
"""

from __future__ import annotations

from typing import Any, Dict, List

from prodigy.domain.models.knowledge import (
    Branch,
    BranchLevel,
    KnowledgeTree,
    Subject,
    SubjectCategory,
    Topic,
)

HS = BranchLevel.HIGH_SCHOOL
COLLEGE = BranchLevel.COLLEGE


_CATALOG: List[Dict[str, Any]] = [
    {
        "name": "Mathematics",
        "icon": "function",
        "category": SubjectCategory.STEM,
        "branches": [
            {
                "name": "Algebra I",
                "description": "Core concepts of algebraic manipulation, equations, and functions.",
                "level": HS,
                "topics": [
                    ("Variables & Expressions", 100, 2, 1800),
                    ("Equations & Inequalities", 150, 3, 2700),
                    ("Linear Functions", 200, 4, 3600),
                ],
            },
            {
                "name": "Geometry",
                "description": "The study of shapes, angles, and space.",
                "level": HS,
                "prerequisites": ["Algebra I"],
                "completion": 0.75,
                "totals": (800, 10, 18000),
                "topics": [
                    ("Basic Shapes & Angles", 250, 4, 4500),
                    ("Proofs & Theorems (Intro)", 300, 5, 5400),
                    ("Area & Volume", 350, 6, 6300),
                ],
            },
            {
                "name": "Pre-Calculus",
                "description": "Advanced functions, trigonometry, and series.",
                "level": HS,
                "prerequisites": ["Geometry"],
                "completion": 0.75,
                "totals": (1200, 15, 28800),
                "topics": [
                    ("Functions & Graphs", 400, 6, 7200),
                    ("Trigonometry", 450, 7, 8100),
                    ("Sequences & Series", 500, 8, 9000),
                ],
            },
            {
                "name": "Calculus I",
                "description": "Introduction to limits, derivatives, and integrals.",
                "level": COLLEGE,
                "prerequisites": ["Pre-Calculus"],
                "completion": 0.80,
                "totals": (3000, 30, 54000),
                "topics": [
                    ("Limits & Continuity", 400, 5, 7200),
                    ("Basic Derivative Rules", 600, 8, 10800),
                    ("Chain Rule & Implicit Differentiation", 800, 10, 14400),
                    ("Optimization & Related Rates", 1000, 12, 18000),
                    ("Antiderivatives & Basic Integrals", 1200, 15, 21600),
                ],
            },
            {
                "name": "Calculus II",
                "description": "Advanced integration techniques and infinite series.",
                "level": COLLEGE,
                "prerequisites": ["Calculus I"],
                "completion": 0.90,
                "totals": (4000, 35, 72000),
                "topics": [
                    ("Integration Techniques", 1000, 12, 18000),
                    ("Sequences & Series (Advanced)", 1200, 15, 21600),
                ],
            },
            {
                "name": "Real Analysis I",
                "description": "The rigorous, theoretical foundation of calculus.",
                "level": COLLEGE,
                "prerequisites": ["Calculus II"],
                "completion": 0.90,
                "totals": (8000, 60, 144000),
                "required_stats": {"Intelligence": 18},
                "topics": [
                    ("Metric Spaces & Topology", 1500, 20, 28800),
                    ("Continuity & Differentiation in Rn", 1800, 25, 32400),
                ],
            },
        ],
    },
    {
        "name": "Chemistry",
        "icon": "testtube.2",
        "category": SubjectCategory.STEM,
        "branches": [
            {
                "name": "High School Chemistry",
                "description": "The building blocks of matter and their interactions.",
                "level": HS,
                "topics": [
                    ("Basic Concepts & Matter", 120, 2, 2160),
                    ("Atomic Structure & Periodicity", 180, 3, 3240),
                    ("Chemical Bonding", 250, 4, 4500),
                    ("Stoichiometry & Reactions", 300, 5, 5400),
                    ("Acids & Bases (Intro)", 350, 6, 6300),
                ],
            },
            {
                "name": "General Chemistry I",
                "description": "Atomic structure, bonding, and states of matter.",
                "level": COLLEGE,
                "prerequisites": ["High School Chemistry", "Algebra I"],
                "completion": 0.80,
                "totals": (3500, 30, 64800),
                "topics": [
                    ("Quantum Theory & Atomic Orbitals", 500, 6, 9000),
                    ("Molecular Geometry & Hybridization", 700, 9, 12600),
                    ("States of Matter & Intermolecular Forces", 900, 12, 16200),
                ],
            },
            {
                "name": "General Chemistry II",
                "description": "Reactions, thermodynamics, and equilibrium.",
                "level": COLLEGE,
                "prerequisites": ["General Chemistry I"],
                "completion": 0.90,
                "totals": (4000, 35, 72000),
                "topics": [
                    ("Thermochemistry & Thermodynamics (Intro)", 1000, 12, 18000),
                    ("Chemical Kinetics", 1200, 15, 21600),
                    ("Equilibrium & Acids/Bases (Advanced)", 1400, 18, 25200),
                    ("Electrochemistry", 1600, 20, 28800),
                ],
            },
        ],
    },
    {
        "name": "History",
        "icon": "building.columns.fill",
        "category": SubjectCategory.HUMANITIES,
        "branches": [
            {
                "name": "High School History",
                "description": "A survey of major global and national events.",
                "level": HS,
                "topics": [
                    ("Ancient Civilizations", 80, 2, 1440),
                    ("Medieval & Early Modern History", 120, 3, 2160),
                    ("US History (Foundations)", 150, 3, 2700),
                ],
            },
            {
                "name": "World History I",
                "description": "From pre-history to the early modern era.",
                "level": COLLEGE,
                "prerequisites": ["High School History"],
                "completion": 0.80,
                "totals": (2000, 15, 36000),
                "topics": [
                    ("Rise of Civilizations", 300, 4, 5400),
                    ("Classical Empires (Greece, Rome, China)", 400, 6, 7200),
                ],
            },
        ],
    },
]


def _build_branch(row: Dict[str, Any]) -> Branch:
    xp_total, missions_total, time_total = row.get("totals", (0, 0, 0))
    return Branch(
        name=row["name"],
        description=row.get("description", ""),
        level=row["level"],
        prerequisite_branch_names=list(row.get("prerequisites", [])),
        prerequisite_completion=row.get("completion", 0.0),
        total_xp_required=xp_total,
        total_missions_required=missions_total,
        total_time_required=time_total,
        required_stats=dict(row["required_stats"]) if "required_stats" in row else None,
        topics=[
            Topic(name=name, xp_required=xp, missions_required=missions, time_required=seconds)
            for name, xp, missions, seconds in row["topics"]
        ],
    )


def build_default_subjects() -> List[Subject]:
    return [
        Subject(
            name=entry["name"],
            icon_name=entry["icon"],
            category=entry["category"],
            branches=[_build_branch(b) for b in entry["branches"]],
        )
        for entry in _CATALOG
    ]


def build_default_tree() -> KnowledgeTree:
    return KnowledgeTree(build_default_subjects())
