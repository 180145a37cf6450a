"""
Base Service Foundation

Purpose
-------
Provides the foundational class for the progression services. Services
implement pure rules, enforce invariants through domain models, and emit
domain events.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access patterns
- Event emission helpers
- Validation error wrapping

What this class does NOT do:
- Own the Player aggregate (the coordinator owns it and passes it in)
- Contain progression rules

Usage
-----
    class DungeonService(BaseService):
        def __init__(self, catalog, config_manager, event_bus, logger):
            super().__init__(config_manager, event_bus, logger)
            self.catalog = catalog
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from .exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from prodigy.core.config.config_manager import ConfigManager
    from prodigy.core.event_bus import EventBus


class BaseService:
    """
    Base class for progression services.

    Args:
        config_manager: Balance configuration (``ConfigManager`` or compatible)
        event_bus: Event bus for cross-module communication (optional)
        logger: Structured logger instance
    """

    def __init__(
        self,
        config_manager: "type[ConfigManager]",
        event_bus: Optional[EventBus],
        logger: Logger,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self.log = logger

    def get_config(self, key: str, default: Optional[Any] = None) -> Any:
        """Retrieve a balance value by dot-notation key."""
        return self._config.get(key, default)

    async def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Publish an event on the bus; a service without a bus drops it."""
        if self._events is None:
            self.log.debug(f"No event bus attached, dropping {event_type}")
            return
        await self._events.publish(event_type, {**data, **(context or {})})

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def validate_positive_int(self, value: Any, name: str) -> None:
        """
        Validate that a value is a positive integer.

        Raises:
            ValidationError: If value is not a positive int
        """
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(name, f"{name} must be a positive integer, got {value}")
