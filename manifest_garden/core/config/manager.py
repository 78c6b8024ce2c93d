"""
ConfigManager: tunable game-balance configuration for the garden engine.

Purpose
-------
- Provide hierarchical, dot-notation access to game balance values
  (crafting odds, XP curve, rank thresholds, quest templates, shop catalog).
- Back configuration with the YAML files packaged under
  ``manifest_garden/config/`` plus caller-supplied overrides.

Responsibilities
----------------
- Recursively load and deep-merge every ``*.yaml`` / ``*.yml`` file in the
  config directory.
- Overlay overrides on top of YAML defaults (tests and embedding apps use
  this to rebalance without editing files).
- Serve reads with typed getters and track lightweight read metrics.

Key Design Decisions
--------------------
- One ConfigManager instance per engine; no class-level shared cache, so
  two engines in one process never see each other's overrides.
- Missing keys return the caller's default; ``require()`` raises
  ``ConfigurationError`` for values the engine cannot run without.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from manifest_garden.core.exceptions import ConfigurationError

# Config sits below the logging package, so it uses the stdlib logger directly
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"

_MISSING = object()


def deep_merge(base: Dict[str, Any], updates: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``updates`` into ``base`` in place and return it."""
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
    return base


class ConfigManager:
    """
    Game balance configuration with dot-notation access.

    Example
    -------
    >>> config = ConfigManager()
    >>> config.get("progression.combo.window_ms")
    5000
    >>> config.get("crafting.missing", default=3)
    3
    """

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        self._defaults: Dict[str, Any] = {}
        self._cache: Dict[str, Any] = {}
        self._overrides: Dict[str, Any] = {}
        self._metrics = {
            "gets": 0,
            "misses": 0,
            "files_loaded": 0,
            "load_errors": 0,
        }

        self._load_yaml_configs()
        if overrides:
            self.apply_overrides(overrides)

    # =========================================================================
    # LOADING
    # =========================================================================

    def _load_yaml_configs(self) -> None:
        """Recursively load all YAML config files into the defaults."""
        if not self._config_dir.exists():
            logger.warning(
                f"Config directory not found: {self._config_dir}",
                extra={"config_dir": str(self._config_dir)},
            )
            return

        yaml_files = sorted(
            list(self._config_dir.rglob("*.yaml")) + list(self._config_dir.rglob("*.yml"))
        )

        for yaml_file in yaml_files:
            try:
                with open(yaml_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                self._metrics["load_errors"] += 1
                logger.warning(
                    f"Failed to load YAML config {yaml_file.name}: {e}",
                    extra={"file": str(yaml_file), "error": str(e)},
                )
                continue

            if data:
                deep_merge(self._defaults, data)
                self._metrics["files_loaded"] += 1
                logger.debug(f"Loaded YAML config: {yaml_file.relative_to(self._config_dir)}")

        self._rebuild_cache()

        logger.info(
            f"Loaded {self._metrics['files_loaded']} YAML config files",
            extra={
                "yaml_count": self._metrics["files_loaded"],
                "total_keys": len(self._cache),
            },
        )

    def _rebuild_cache(self) -> None:
        self._cache = deep_merge(copy.deepcopy(self._defaults), self._overrides)

    def apply_overrides(self, overrides: Mapping[str, Any]) -> None:
        """
        Deep-merge overrides over the YAML defaults.

        Keys may be nested dicts or dot-notation strings:

        >>> config.apply_overrides({"leaderboard.rank_thresholds": {1: 900}})
        """
        for key, value in overrides.items():
            if "." in key:
                nested: Dict[str, Any] = {}
                cursor = nested
                parts = key.split(".")
                for part in parts[:-1]:
                    cursor = cursor.setdefault(part, {})
                cursor[parts[-1]] = value
                deep_merge(self._overrides, nested)
            else:
                deep_merge(self._overrides, {key: value})
        self._rebuild_cache()
        logger.info("Config overrides applied", extra={"override_keys": list(overrides)})

    def reload(self) -> None:
        """Re-read YAML files from disk, keeping overrides."""
        self._defaults = {}
        self._metrics["files_loaded"] = 0
        self._load_yaml_configs()

    # =========================================================================
    # READS
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve config value by dot notation path.

        Args:
            key: Dot-notation config path (e.g., 'crafting.input_count')
            default: Default value if key not found

        Returns:
            A deep copy of the config value, or default
        """
        self._metrics["gets"] += 1
        value = self._lookup(key)
        if value is _MISSING:
            self._metrics["misses"] += 1
            return default
        return copy.deepcopy(value)

    def _lookup(self, key: str) -> Any:
        value: Any = self._cache
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            elif isinstance(value, dict) and part.isdigit() and int(part) in value:
                value = value[int(part)]
            else:
                return _MISSING
        return value

    def require(self, key: str) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            raise ConfigurationError(key, "required configuration value is missing")
        return copy.deepcopy(value)

    def get_int(self, key: str, default: int = 0) -> int:
        return int(self._typed(key, default, int))

    def get_float(self, key: str, default: float = 0.0) -> float:
        return float(self._typed(key, default, float))

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() in {"true", "yes", "1", "on"}
        return bool(value)

    def _typed(self, key: str, default: Any, cast) -> Any:
        value = self.get(key, default)
        try:
            return cast(value)
        except (TypeError, ValueError):
            raise ConfigurationError(key, f"expected {cast.__name__}, got {value!r}")


    def get_metrics(self) -> Dict[str, Any]:
        gets = self._metrics["gets"]
        return {
            **self._metrics,
            "hit_rate": round(100 * (gets - self._metrics["misses"]) / gets, 2) if gets else 0.0,
            "config_dir": str(self._config_dir),
        }
