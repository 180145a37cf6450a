"""
Static configuration management for Prodigy.

Purpose
-------
Provides centralized static configuration loaded from environment variables
with sensible defaults, type validation, and bounds checking. This module
handles non-dynamic configuration that is set at application startup.

Responsibilities
----------------
- Load configuration from environment variables with .env support
- Provide type-safe access to static configuration values
- Validate critical settings on startup
- Track configuration loading metrics

Non-Responsibilities
--------------------
- Game balance values (handled by ConfigManager)
- Persistence settings (the engine does not own storage)

Architecture Notes
------------------
- Singleton pattern via class methods (no instantiation)
- Loaded lazily via Config.load(); Config.validate() is idempotent
- Metrics track which values came from environment vs defaults

Dependencies
------------
- python-dotenv: Environment variable loading

Environment Variables
---------------------
- PRODIGY_ENVIRONMENT: Environment type (default: development)
- PRODIGY_DEBUG: Debug mode flag (default: False)
- PRODIGY_LOG_LEVEL: Logging level (default: INFO)
- PRODIGY_LOG_JSON: Force JSON console logs (default: production only)
- PRODIGY_LOG_TO_FILE: Enable the rotating file handler (default: False)
- PRODIGY_LOGS_DIR: Directory for log files (default: <project>/logs)
- PRODIGY_CONFIG_DIR: Directory of YAML balance files (default: <project>/config)
"""

import logging
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        Example
        -------
        >>> Environment.from_string("production") == Environment.PRODUCTION
        True
        >>> Environment.from_string("invalid") == Environment.DEVELOPMENT
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            # Structured logger is not initialized during bootstrap
            logging.warning(f"Unknown environment '{value}', defaulting to development")
            return cls.DEVELOPMENT


class _ConfigLoadMetrics:
    """Tracks which values came from the environment and any parse errors."""

    def __init__(self):
        self.env_vars_loaded: Dict[str, bool] = {}
        self.validation_errors: Dict[str, str] = {}
        self.defaults_used: Dict[str, Any] = {}
        self.last_reload: Optional[str] = None

    def record_env_load(self, key: str, from_env: bool, default: Any):
        self.env_vars_loaded[key] = from_env
        if not from_env:
            self.defaults_used[key] = default

    def record_validation_error(self, key: str, error: str):
        self.validation_errors[key] = error

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_configs": len(self.env_vars_loaded),
            "from_environment": sum(1 for v in self.env_vars_loaded.values() if v),
            "from_defaults": sum(1 for v in self.env_vars_loaded.values() if not v),
            "validation_errors": len(self.validation_errors),
            "defaults_used": list(self.defaults_used.keys()),
            "last_reload": self.last_reload,
        }


class Config:
    """
    Centralized static configuration for the Prodigy progression engine.

    Usage
    -----
    >>> Config.validate()
    >>> if Config.is_production():
    ...     logger.info("Running in production mode")
    """

    _metrics: Optional[_ConfigLoadMetrics] = None
    _validated: bool = False

    # =========================================================================
    # Environment Configuration
    # =========================================================================

    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_TO_FILE: bool = False

    # =========================================================================
    # Directory Configuration
    # =========================================================================

    PROJECT_ROOT = Path(__file__).resolve().parents[3]
    LOGS_DIR = PROJECT_ROOT / "logs"
    CONFIG_DIR = PROJECT_ROOT / "config"

    # =========================================================================
    # Engine Metadata
    # =========================================================================

    APP_NAME: str = "Prodigy"
    APP_VERSION: str = "1.0.0"

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @classmethod
    def _init_metrics(cls):
        if cls._metrics is None:
            cls._metrics = _ConfigLoadMetrics()

    @classmethod
    def _safe_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        """
        Safely parse boolean from environment.

        Recognizes: true/false, yes/no, 1/0, on/off (case-insensitive).
        """
        cls._init_metrics()

        raw_value = os.getenv(key)
        if raw_value is None:
            cls._metrics.record_env_load(key, False, default)
            return default

        normalized = raw_value.lower().strip()
        if normalized in {"true", "yes", "1", "on"}:
            value = True
        elif normalized in {"false", "no", "0", "off"}:
            value = False
        else:
            error = f"{key}='{raw_value}' is not a valid boolean, using default {default}"
            logging.warning(error)
            cls._metrics.record_validation_error(key, error)
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_str(cls, key: str, default: str) -> str:
        cls._init_metrics()
        value = os.getenv(key, default)
        cls._metrics.record_env_load(key, key in os.environ, default)
        return value

    @classmethod
    def _safe_path(cls, key: str, default: Path) -> Path:
        raw_value = cls._safe_str(key, "")
        return Path(raw_value).expanduser() if raw_value else default

    # =========================================================================
    # Configuration Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """Load all configuration from environment variables."""
        cls._init_metrics()

        cls.ENVIRONMENT = Environment.from_string(
            cls._safe_str("PRODIGY_ENVIRONMENT", "development")
        ).value
        cls.DEBUG = bool(cls._safe_bool("PRODIGY_DEBUG", False))
        cls.LOG_LEVEL = cls._safe_str("PRODIGY_LOG_LEVEL", "INFO")
        cls.LOG_JSON = cls._safe_bool("PRODIGY_LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._safe_bool("PRODIGY_LOG_COLORS", True))
        cls.LOG_TO_FILE = bool(cls._safe_bool("PRODIGY_LOG_TO_FILE", False))

        cls.LOGS_DIR = cls._safe_path("PRODIGY_LOGS_DIR", cls.PROJECT_ROOT / "logs")
        cls.CONFIG_DIR = cls._safe_path("PRODIGY_CONFIG_DIR", cls.PROJECT_ROOT / "config")

        cls._metrics.last_reload = datetime.now(timezone.utc).isoformat()

    @classmethod
    def validate(cls) -> None:
        """Load and validate configuration once per process."""
        if cls._validated:
            return

        cls.load()

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if cls.LOG_LEVEL.upper() not in valid_log_levels:
            logging.warning(f"Invalid PRODIGY_LOG_LEVEL '{cls.LOG_LEVEL}', using INFO")
            cls.LOG_LEVEL = "INFO"

        cls._validated = True

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Summary of loaded values, safe to log."""
        summary: Dict[str, Any] = {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "logs_dir": str(cls.LOGS_DIR),
            "config_dir": str(cls.CONFIG_DIR),
            "version": cls.APP_VERSION,
        }
        if cls._metrics:
            summary["load_metrics"] = cls._metrics.get_summary()
        return summary
