"""
Game balance configuration management with YAML overrides.

Features:
- Hierarchical config access with dot notation (e.g., 'rewards.xp_per_minute')
- Built-in balance defaults so the engine runs without any config files
- YAML overrides loaded recursively from the config directory
- Runtime overrides for tests and live tuning
- Performance metrics tracking

Note:
- Static process settings (environment, log level) live in Config
- ConfigManager handles only tunable progression balance values
"""

import copy
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from prodigy.core.config.config import Config
from prodigy.core.logging.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


def _deep_merge(base: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``incoming`` into ``base`` in place, descending into nested dicts."""
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


class ConfigManager:
    """
    Progression balance configuration with dot-notation access.

    Values resolve from runtime overrides, then YAML files, then the
    built-in defaults below.
    """

    _cache: Dict[str, Any] = {}
    _initialized: bool = False
    _config_dir: Optional[Path] = None

    _metrics = {
        "gets": 0,
        "sets": 0,
        "cache_hits": 0,
        "cache_misses": 0,
        "fallback_to_defaults": 0,
        "yaml_files_loaded": 0,
        "errors": 0,
        "total_get_time_ms": 0.0,
    }

    # =========================================================================
    # DEFAULT CONFIGURATIONS
    # =========================================================================
    _defaults: Dict[str, Any] = {
        "missions": {
            "pomodoro": {
                "study_seconds": 1500,
                "break_seconds": 300,
                "cycle_bonus": 1.10,
            },
            "quick_mission_seconds": 600,
            "familiar": {
                "seconds": 600,
                "xp": 50,
                "gold": 10,
            },
            "daily": {
                "mission_count": 2,
                "mission_seconds": 2700,
                "weekdays_only": True,
            },
            "procrastination_relief": 0.5,
            "procrastination_penalty": 1.0,
        },
        "rewards": {
            "xp_per_minute": 2.5,
            "gold_per_minute": 0.5,
            "college_multiplier": 1.2,
            "study_type_multipliers": {
                "derivations": 1.3,
                "designing_experiment": 1.3,
                "writing_essay": 1.3,
                "reviewing_notes": 0.9,
                "watching_video": 0.9,
            },
            "stem_intelligence_threshold": 10,
            "stem_intelligence_bonus": 0.02,
            "minimum_xp": 1,
            "minimum_gold": 1,
        },
        "mood": {
            "thresholds": {
                "content": 2.0,
                "neutral": 5.0,
                "agitated": 8.0,
            },
            "gold_multipliers": {
                "content": 1.05,
                "neutral": 1.0,
                "agitated": 0.95,
                "furious": 0.90,
            },
        },
        "mastery": {
            "level_multipliers": {
                "standard": 1.0,
                "proficient": 1.25,
                "mastery": 1.5,
            },
            "remaster_step": 0.25,
            "remaster_xp_boost": 0.005,
        },
        "boss_battle": {
            "xp_per_wager": 5,
            "jackpot_multiplier": 2,
        },
    }

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> int:
        """
        Recursively load all YAML files under ``config_dir`` into the cache.

        Files are merged in sorted path order so overrides are deterministic.
        A malformed file is logged and skipped.
        """
        if not config_dir.exists():
            logger.debug(f"Config directory {config_dir} not found, using built-in defaults")
            return 0

        yaml_files = sorted(list(config_dir.rglob("*.yaml")) + list(config_dir.rglob("*.yml")))
        loaded_count = 0
        for yaml_file in yaml_files:
            try:
                with open(yaml_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                cls._metrics["errors"] += 1
                logger.warning(
                    f"Failed to load YAML config {yaml_file.name}: {e}",
                    extra={"file": str(yaml_file), "error": str(e)},
                )
                continue

            if isinstance(data, dict):
                _deep_merge(cls._cache, data)
                loaded_count += 1
                logger.debug(f"Loaded YAML config: {yaml_file.relative_to(config_dir)}")

        cls._metrics["yaml_files_loaded"] += loaded_count
        return loaded_count

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None) -> None:
        """
        Build the cache from defaults and YAML files.

        Args:
            config_dir: Directory to scan; defaults to ``Config.CONFIG_DIR``
        """
        cls._config_dir = Path(config_dir) if config_dir is not None else Config.CONFIG_DIR
        cls._cache = copy.deepcopy(cls._defaults)
        loaded = cls._load_yaml_configs(cls._config_dir)
        cls._initialized = True
        logger.info(
            "ConfigManager initialized",
            extra={"yaml_count": loaded, "total_keys": len(cls._cache)},
        )

    @classmethod
    def reset(cls) -> None:
        """Drop overrides and return to built-in defaults only."""
        cls._cache = copy.deepcopy(cls._defaults)
        cls._initialized = True
        cls._config_dir = None

    # =========================================================================
    # PUBLIC METHODS
    # =========================================================================

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve config value by dot notation path.

        Args:
            key: Dot-notation config path (e.g., 'rewards.xp_per_minute')
            default: Value returned when the key is absent everywhere

        Example:
            >>> ConfigManager.get('missions.pomodoro.study_seconds')
            1500
        """
        start_time = time.perf_counter()
        cls._metrics["gets"] += 1

        if not cls._initialized:
            cls.initialize()

        value = cls._traverse(cls._cache, key)
        if value is _MISSING:
            cls._metrics["cache_misses"] += 1
            value = cls._traverse(cls._defaults, key)
            if value is _MISSING:
                return default
            cls._metrics["fallback_to_defaults"] += 1
        else:
            cls._metrics["cache_hits"] += 1

        cls._metrics["total_get_time_ms"] += (time.perf_counter() - start_time) * 1000
        return value

    @staticmethod
    def _traverse(source: Dict[str, Any], key: str) -> Any:
        value: Any = source
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return _MISSING
            value = value[part]
        return value

    @classmethod
    def set(cls, key: str, value: Any, modified_by: str = "system") -> None:
        """
        Override a config value in memory.

        Example:
            >>> ConfigManager.set('missions.pomodoro.study_seconds', 1200)
        """
        if not cls._initialized:
            cls.initialize()

        cls._metrics["sets"] += 1
        parts = key.split(".")
        current = cls._cache
        for part in parts[:-1]:
            nested = current.get(part)
            if not isinstance(nested, dict):
                nested = {}
                current[part] = nested
            current = nested
        current[parts[-1]] = value

        logger.info(
            f"ConfigManager updated: key={key} by={modified_by}",
            extra={"config_key": key, "modified_by": modified_by},
        )

    @classmethod
    def get_all_keys(cls) -> List[str]:
        """Get list of all top-level config keys."""
        if not cls._initialized:
            cls.initialize()
        return list(cls._cache.keys())

    # =========================================================================
    # METRICS & MONITORING
    # =========================================================================

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        total_gets = cls._metrics["gets"]
        cache_hit_rate = (
            (cls._metrics["cache_hits"] / total_gets * 100) if total_gets > 0 else 0.0
        )
        avg_get_time = (
            cls._metrics["total_get_time_ms"] / total_gets if total_gets > 0 else 0.0
        )
        return {
            "gets": total_gets,
            "sets": cls._metrics["sets"],
            "cache_hits": cls._metrics["cache_hits"],
            "cache_misses": cls._metrics["cache_misses"],
            "cache_hit_rate": round(cache_hit_rate, 2),
            "fallback_to_defaults": cls._metrics["fallback_to_defaults"],
            "yaml_files_loaded": cls._metrics["yaml_files_loaded"],
            "errors": cls._metrics["errors"],
            "avg_get_time_ms": round(avg_get_time, 2),
            "initialized": cls._initialized,
            "config_dir": str(cls._config_dir) if cls._config_dir else None,
        }

    @classmethod
    def reset_metrics(cls) -> None:
        cls._metrics = {
            "gets": 0,
            "sets": 0,
            "cache_hits": 0,
            "cache_misses": 0,
            "fallback_to_defaults": 0,
            "yaml_files_loaded": 0,
            "errors": 0,
            "total_get_time_ms": 0.0,
        }
