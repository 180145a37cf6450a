"""
Prodigy: progression and unlock engine for a study-gamification game.

Players earn XP and gold by completing timed study missions tied to a
Subject → Branch → Topic knowledge tree. Completing missions unlocks topics,
topics unlock branches, and cross-cutting modifiers (mastery goals,
remastering, the procrastination monster, streaks) shape the rewards.

Layout
------
- ``prodigy.core``: configuration, logging, event bus
- ``prodigy.domain``: aggregates and value objects (Player, KnowledgeTree, Mission)
- ``prodigy.modules``: rules and services built on the domain models
"""

__version__ = "1.0.0"
