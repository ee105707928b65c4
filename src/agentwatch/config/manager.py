"""Configuration file management."""

import copy
import json
import logging
from pathlib import Path
from typing import Any

from agentwatch.errors import ConfigurationError
from agentwatch.platform import current_platform

logger = logging.getLogger(__name__)

# Configuration schema version
CONFIG_VERSION = "1.0.0"

CONFIG_FILENAME = "config.json"

# Shortest allowed detection cache lifetime in seconds
MIN_CACHE_DURATION = 60

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Default configuration schema
DEFAULT_CONFIG = {
    "version": CONFIG_VERSION,
    "detection": {
        "cache_enabled": True,
        "cache_duration": 3600,  # 1 hour in seconds
        "timeout": 120,  # whole detection pass, seconds
        "extra_path_patterns": [],
    },
    "catalog": {
        "path": None,  # built-in catalog
    },
    "logging": {
        "level": "WARNING",
        "file": None,
    },
    # Per-agent overrides: {"<agent id>": {"hidden": bool, "disabled": bool}}
    "agents": {},
}


def default_config_path() -> Path:
    return current_platform().config_dir() / CONFIG_FILENAME


class ConfigManager:
    """Manages agentwatch configuration."""

    def __init__(self, config_path: Path | None = None):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file. Defaults to config.json
                in the per-user config directory
        """
        self.config_path = config_path or default_config_path()
        self._config: dict[str, Any] = {}

    def load(self) -> dict[str, Any]:
        """Load configuration from file.

        Returns:
            Configuration dictionary

        Raises:
            ConfigurationError: If config file is invalid
        """
        if not self.config_path.exists():
            logger.debug(f"Config file {self.config_path} not found, using defaults")
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in config file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load config: {e}") from e

        self._validate_config()
        self._merge_with_defaults()

        logger.debug(f"Loaded configuration from {self.config_path}")
        return self._config

    def save(self, config: dict[str, Any] | None = None) -> None:
        """Save configuration to file.

        Args:
            config: Configuration to save. If None, saves current config.

        Raises:
            ConfigurationError: If save fails
        """
        if config is not None:
            self._config = config
            self._validate_config()

        if not self._config:
            self._config = copy.deepcopy(DEFAULT_CONFIG)

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2)
            logger.debug(f"Saved configuration to {self.config_path}")
        except OSError as e:
            raise ConfigurationError(f"Failed to save config: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if not self._config:
            self.load()

        # Support dot notation (e.g., "detection.cache_duration")
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
        """
        if not self._config:
            self.load()

        keys = key.split(".")
        target = self._config

        for k in keys[:-1]:
            if not isinstance(target.get(k), dict):
                target[k] = {}
            target = target[k]

        target[keys[-1]] = value

    def is_agent_hidden(self, agent_id: str) -> bool:
        """True if the agent is hidden from listings."""
        return bool(self.get(f"agents.{agent_id}.hidden", False))

    def is_agent_disabled(self, agent_id: str) -> bool:
        """True if the agent is excluded from detection altogether."""
        return bool(self.get(f"agents.{agent_id}.disabled", False))

    def set_agent_hidden(self, agent_id: str, hidden: bool = True) -> None:
        self.set(f"agents.{agent_id}.hidden", hidden)

    def set_agent_disabled(self, agent_id: str, disabled: bool = True) -> None:
        self.set(f"agents.{agent_id}.disabled", disabled)

    def cache_duration(self) -> int:
        """Detection cache lifetime in seconds, never below MIN_CACHE_DURATION."""
        duration = self.get("detection.cache_duration", DEFAULT_CONFIG["detection"]["cache_duration"])
        return max(int(duration), MIN_CACHE_DURATION)

    def _validate_config(self) -> None:
        """Validate configuration structure.

        Raises:
            ConfigurationError: If config is invalid
        """
        if not isinstance(self._config, dict):
            raise ConfigurationError("Configuration must be a dictionary")

        if "version" in self._config and not isinstance(self._config["version"], str):
            raise ConfigurationError("Configuration version must be a string")

        if "detection" in self._config:
            detection = self._config["detection"]
            if not isinstance(detection, dict):
                raise ConfigurationError("Detection settings must be a dictionary")

            if "cache_enabled" in detection and not isinstance(detection["cache_enabled"], bool):
                raise ConfigurationError("cache_enabled must be true or false")

            if "cache_duration" in detection:
                duration = detection["cache_duration"]
                if isinstance(duration, bool) or not isinstance(duration, int | float):
                    raise ConfigurationError("cache_duration must be a number of seconds")
                if duration < MIN_CACHE_DURATION:
                    raise ConfigurationError(
                        f"cache_duration must be at least {MIN_CACHE_DURATION} seconds"
                    )

            if "timeout" in detection:
                timeout = detection["timeout"]
                if isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0:
                    raise ConfigurationError("timeout must be a positive number")

            if "extra_path_patterns" in detection:
                patterns = detection["extra_path_patterns"]
                if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
                    raise ConfigurationError("extra_path_patterns must be a list of strings")

        if "catalog" in self._config:
            catalog = self._config["catalog"]
            if not isinstance(catalog, dict):
                raise ConfigurationError("Catalog settings must be a dictionary")
            path = catalog.get("path")
            if path is not None and not isinstance(path, str):
                raise ConfigurationError("catalog.path must be a string")

        if "logging" in self._config:
            log = self._config["logging"]
            if not isinstance(log, dict):
                raise ConfigurationError("Logging settings must be a dictionary")
            level = log.get("level")
            if level is not None and (not isinstance(level, str) or level.upper() not in LOG_LEVELS):
                raise ConfigurationError(f"logging.level must be one of {', '.join(LOG_LEVELS)}")
            if log.get("file") is not None and not isinstance(log["file"], str):
                raise ConfigurationError("logging.file must be a string")

        if "agents" in self._config:
            agents = self._config["agents"]
            if not isinstance(agents, dict):
                raise ConfigurationError("Agents must be a dictionary keyed by agent id")
            for agent_id, overrides in agents.items():
                if not isinstance(overrides, dict):
                    raise ConfigurationError(f"Settings for agent '{agent_id}' must be a dictionary")
                for flag in ("hidden", "disabled"):
                    if flag in overrides and not isinstance(overrides[flag], bool):
                        raise ConfigurationError(f"agents.{agent_id}.{flag} must be true or false")

    def _merge_with_defaults(self) -> None:
        """Merge loaded config with defaults for missing fields."""

        def deep_merge(default: dict, config: dict) -> dict:
            result = copy.deepcopy(default)
            for key, value in config.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value
            return result

        self._config = deep_merge(DEFAULT_CONFIG, self._config)

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        logger.info("Configuration reset to defaults")
