"""
Base domain model classes for Prodigy.

Purpose
-------
Provide the foundational abstractions shared by the rich domain models:
identity, domain events, and invariant validation.

Responsibilities
----------------
- Define base Entity class with identity and equality semantics
- Define base AggregateRoot class for consistency boundaries
- Collect domain events for publication by the orchestration layer
- Provide small validation helpers for model invariants

Non-Responsibilities
--------------------
- Persistence (the engine does not own storage)
- Event delivery (handled by the EventBus via the coordinator)

Design Patterns
---------------
- **Entity**: Objects with identity that persist over time
- **Aggregate Root**: Consistency boundary for domain operations
- **Domain Events**: Communicate state changes to other parts of the system

Usage Example
-------------
>>> class Player(AggregateRoot):
...     def add_gold(self, amount: int) -> None:
...         validate_positive(amount, "amount")
...         self.gold += amount
...         self.add_domain_event("player.gold_changed", {
...             "player_id": self.id,
...             "delta": amount,
...         })
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ============================================================================
# DOMAIN EVENTS
# ============================================================================


@dataclass
class DomainEvent:
    """
    Represents a domain event that has occurred.

    Attributes
    ----------
    event_name : str
        Event name (e.g., "knowledge.topic_unlocked")
    payload : Dict[str, Any]
        Event payload with relevant data
    occurred_at : datetime
        When the event occurred (UTC)
    """

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# ENTITY
# ============================================================================


class Entity(ABC):
    """
    Base class for entities with identity.

    Two entities with the same ID are considered the same entity, even if
    their attributes differ.

    Usage
    -----
    Subclasses should:
    1. Call super().__init__(entity_id) in constructor
    2. Define business methods that modify state
    3. Emit domain events for significant state changes
    """

    def __init__(self, entity_id: str) -> None:
        self._id = entity_id
        self._domain_events: List[DomainEvent] = []

    @property
    def id(self) -> str:
        """Get entity ID (immutable)."""
        return self._id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return False
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        """
        Add a domain event to be published.

        Parameters
        ----------
        event_name : str
            Event name (e.g., "player.gold_changed")
        payload : Dict[str, Any]
            Event payload with relevant data
        """
        self._domain_events.append(DomainEvent(event_name=event_name, payload=payload))

    def clear_domain_events(self) -> List[DomainEvent]:
        """
        Clear and return all domain events.

        Called by the coordinator once an operation has finished mutating
        state, right before publishing.

        Returns
        -------
        List[DomainEvent]
            All domain events that occurred since last clear
        """
        events = self._domain_events.copy()
        self._domain_events.clear()
        return events

    def get_pending_events(self) -> List[DomainEvent]:
        """Get domain events without clearing them."""
        return self._domain_events.copy()


# ============================================================================
# AGGREGATE ROOT
# ============================================================================


class AggregateRoot(Entity):
    """
    Base class for aggregate roots.

    An aggregate is a cluster of domain objects treated as a single unit
    for data changes. The aggregate root is the entry point for all
    operations on the aggregate; callers never mutate its internals directly.
    """

    pass


# ============================================================================
# DOMAIN MODEL VALIDATION
# ============================================================================


class DomainValidationError(Exception):
    """
    Exception raised when domain model validation fails.

    This is the base exception for all invariant violations in domain models.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_positive(value: float, field_name: str) -> None:
    """
    Validate that a value is positive.

    Raises
    ------
    DomainValidationError
        If value is not positive
    """
    if value <= 0:
        raise DomainValidationError(
            f"{field_name} must be positive, got {value}",
            field=field_name,
        )


def validate_non_negative(value: float, field_name: str) -> None:
    """
    Validate that a value is non-negative.

    Raises
    ------
    DomainValidationError
        If value is negative
    """
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )


def validate_range(value: float, min_val: float, max_val: float, field_name: str) -> None:
    """
    Validate that a value is within an inclusive range.

    Raises
    ------
    DomainValidationError
        If value is outside the range
    """
    if not (min_val <= value <= max_val):
        raise DomainValidationError(
            f"{field_name} must be between {min_val} and {max_val}, got {value}",
            field=field_name,
        )


def validate_not_empty(value: str, field_name: str) -> None:
    """
    Validate that a string is not empty.

    Raises
    ------
    DomainValidationError
        If value is empty or whitespace-only
    """
    if not value or not value.strip():
        raise DomainValidationError(
            f"{field_name} cannot be empty",
            field=field_name,
        )
