"""
Prodigy Test Suite
==================

Test Organization
-----------------
- tests/unit/          : Fast unit tests (no files, no network, no sleeping)
- tests/unit/domain/   : Domain model tests (Player, KnowledgeTree)

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test business logic
- Time is injected through a fake clock, randomness through a seeded Random
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
