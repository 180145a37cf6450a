"""
Core infrastructure layer for Prodigy.

Purpose
-------
Provide a single import surface for the infrastructure subsystems:

- Configuration (Config, ConfigManager)
- Logging (structured logging, logger factory, LogContext)
- Event bus (in-process async pub/sub)

Non-Responsibilities
--------------------
- Progression rules (see ``prodigy.modules``)
- Any side effects beyond simple re-exports
"""

from prodigy.core.config import Config, ConfigManager, Environment
from prodigy.core.event_bus import EventBus, ListenerPriority
from prodigy.core.logging import LogContext, get_logger, setup_logging, shutdown_logging

__all__ = [
    "Config",
    "ConfigManager",
    "Environment",
    "EventBus",
    "ListenerPriority",
    "LogContext",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
