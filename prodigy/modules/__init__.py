"""
Progression rules and services.

Each subpackage owns one concern (knowledge unlocks, missions, rewards,
mastery, achievements, dungeons, boss battles); ``progression`` sequences
them. Import from the subpackages directly.
"""
