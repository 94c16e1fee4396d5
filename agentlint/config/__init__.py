"""Configuration loading and management for agentlint."""

from agentlint.config.loader import (
    ConfigLoader,
    clear_config_cache,
    get_default_config,
    load_config,
)
from agentlint.config.models import LinterConfig, LinterSettings, LoggingConfig, LoggingSettings

__all__ = [
    "ConfigLoader",
    "LinterConfig",
    "LinterSettings",
    "LoggingConfig",
    "LoggingSettings",
    "clear_config_cache",
    "get_default_config",
    "load_config",
]
