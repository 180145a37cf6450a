"""
Prodigy Shared Module

Domain-level foundations for all game modules:
- Domain exceptions and error classification helpers
- BaseService (config access, logging, event emission)
"""

from .base_service import BaseService
from .exceptions import (
    ErrorSeverity,
    InsufficientResourcesError,
    InvalidOperationError,
    NotFoundError,
    ProdigyDomainException,
    ScheduleConflictError,
    ValidationError,
    get_error_severity,
)

__all__ = [
    "BaseService",
    "ErrorSeverity",
    "ProdigyDomainException",
    "InsufficientResourcesError",
    "InvalidOperationError",
    "NotFoundError",
    "ScheduleConflictError",
    "ValidationError",
    "get_error_severity",
]
