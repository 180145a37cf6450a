"""
Domain exceptions for the Prodigy progression engine.

Purpose
-------
Define the structured, domain-specific exception hierarchy for progression
logic. Services raise these for rule violations, resource constraints and
missing entities; a presentation layer turns them into user-facing messages.

Design Notes
------------
- All domain exceptions inherit from `ProdigyDomainException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict-like)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- Every exception is raised before any state is mutated, so catching one
  leaves the player and knowledge tree in their last consistent state.
- `get_error_severity` maps any exception to a severity for log routing.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"  # Expected, not concerning
    INFO = "info"  # Normal operation (e.g., validation failures)
    WARNING = "warning"  # Concerning but handled
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # Engine-level failures


class ProdigyDomainException(Exception):
    """
    Base exception for all Prodigy domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error (dict-like)
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise ProdigyDomainException(
        ...     "Mission could not be scheduled",
        ...     {"reason": "overlaps another mission"}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


class InsufficientResourcesError(ProdigyDomainException):
    """
    Raised when a player lacks the gold (or other resource) for an action.

    Args:
        resource: Name of the resource type (e.g., "gold")
        required: Amount required for the action
        current: Amount player currently has
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, resource: str, required: int, current: int) -> None:
        self.resource = resource
        self.required = required
        self.current = current
        message = f"Insufficient {resource}: need {required:,}, have {current:,}"
        super().__init__(
            message,
            details={
                "resource": resource,
                "required": required,
                "current": current,
                "deficit": required - current,
            },
            error_code=f"INSUFFICIENT_{resource.upper()}",
        )


class NotFoundError(ProdigyDomainException):
    """
    Raised when an explicitly requested entity does not exist.

    Args:
        resource_type: Type of resource (e.g., "Branch", "Mission", "Dungeon")
        identifier: Optional identifier for the missing resource
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier

        if identifier is not None:
            message = f"{resource_type} not found: {identifier}"
        else:
            message = f"{resource_type} not found"

        super().__init__(
            message,
            details={
                "resource_type": resource_type,
                "identifier": identifier,
            },
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class ValidationError(ProdigyDomainException):
    """
    Raised when caller input fails validation.

    Covers Pomodoro requested on a too-short mission, non-positive durations,
    bad wagers and empty names.

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={
                "field": field,
                "validation_message": message,
            },
            error_code=f"VALIDATION_{field.upper()}",
        )


class ScheduleConflictError(ProdigyDomainException):
    """
    Raised when a scheduled mission overlaps an existing scheduled mission.

    Args:
        conflicting_mission_id: ID of the mission already holding the slot
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, conflicting_mission_id: str) -> None:
        self.conflicting_mission_id = conflicting_mission_id
        super().__init__(
            "Scheduled time overlaps an existing mission",
            details={"conflicting_mission_id": conflicting_mission_id},
            error_code="SCHEDULE_CONFLICT",
        )


class InvalidOperationError(ProdigyDomainException):
    """
    Raised when an action violates the current state of the game.

    Args:
        action: Description of the invalid action
        reason: Explanation of why it's not allowed

    Example:
        >>> raise InvalidOperationError(
        ...     "start_mission",
        ...     "Mission is already completed"
        ... )
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Invalid operation '{action}': {reason}",
            details={
                "action": action,
                "reason": reason,
            },
            error_code=f"INVALID_{action.upper()}",
        )


# Utility functions


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """Severity of a domain exception; unknown exceptions count as ERROR."""
    if isinstance(exc, ProdigyDomainException):
        return exc.severity
    return ErrorSeverity.ERROR

