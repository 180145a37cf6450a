"""
Configuration subsystem.

- **config.py**: static process settings from environment variables (.env support)
- **config_manager.py**: progression balance values with built-in defaults
  and YAML overrides
"""

from prodigy.core.config.config import Config, Environment
from prodigy.core.config.config_manager import ConfigManager

__all__ = ["Config", "Environment", "ConfigManager"]
