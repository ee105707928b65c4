"""Configuration management."""

from agentwatch.config.manager import DEFAULT_CONFIG, ConfigManager, default_config_path

__all__ = ["DEFAULT_CONFIG", "ConfigManager", "default_config_path"]
