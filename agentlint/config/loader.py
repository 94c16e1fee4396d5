"""Configuration loader for agentlint.

Supports two config sources:

1. **kind: Config YAML**: an explicit path, ``AGENTLINT_CONFIG_PATH``, or
   ``.agentlint.yaml`` in the workspace.
2. **pyproject.toml [tool.agentlint]** in the workspace.

The raw mapping is validated by :class:`LinterSettings` and converted to the
frozen :class:`LinterConfig`.
"""

from __future__ import annotations

import os
import re
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from agentlint.config.models import LinterConfig, LinterSettings
from agentlint.exceptions import ConfigurationError, ResourceNotFoundError
from agentlint.logging import get_logger

# Constants for boolean environment variable parsing
_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

CONFIG_PATH_ENV = "AGENTLINT_CONFIG_PATH"
YAML_CONFIG_NAMES = (".agentlint.yaml", ".agentlint.yml")

logger = get_logger(__name__)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = sorted(_TRUTHY_VALUES | _FALSY_VALUES)
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


@lru_cache(maxsize=32)
def _load_and_parse_cached(path_str: str) -> LinterConfig:
    """Cached configuration loader."""
    return ConfigLoader()._load_and_parse(Path(path_str))


class ConfigLoader:
    """Loads and validates agentlint configuration files."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def load_config_file(
        self, path: str | Path | None = None, workspace: str | Path | None = None
    ) -> LinterConfig:
        """Load configuration from YAML or pyproject.toml.

        Parameters
        ----------
        path : str | Path | None
            Explicit config file. If None, searches using discovery order.
        workspace : str | Path | None
            Directory searched for ``.agentlint.yaml`` and ``pyproject.toml``;
            defaults to the current directory

        Returns
        -------
        LinterConfig
            Parsed configuration with environment variables substituted
        """
        config_path = self.find_config_file(path, workspace)
        return _load_and_parse_cached(str(config_path.absolute()))

    def find_config_file(
        self, path: str | Path | None = None, workspace: str | Path | None = None
    ) -> Path:
        """Find the configuration file.

        Discovery order:
        1. Explicit path argument
        2. ``AGENTLINT_CONFIG_PATH`` env var
        3. ``.agentlint.yaml`` / ``.agentlint.yml`` in the workspace
        4. ``pyproject.toml`` with a ``[tool.agentlint]`` table in the workspace

        Raises
        ------
        ResourceNotFoundError
            If an explicit path does not exist
        FileNotFoundError
            If discovery finds nothing
        """
        if path:
            config_path = Path(path)
            if not config_path.is_file():
                raise ResourceNotFoundError("config file", str(config_path))
            return config_path

        if env_path := os.getenv(CONFIG_PATH_ENV):
            config_path = Path(env_path)
            if config_path.is_file():
                logger.debug("Using config from {var}: {path}", var=CONFIG_PATH_ENV,
                             path=config_path)
                return config_path
            logger.warning("{var} set but file not found: {path}", var=CONFIG_PATH_ENV,
                           path=config_path)

        base = Path(workspace) if workspace is not None else Path.cwd()
        for name in YAML_CONFIG_NAMES:
            if (base / name).is_file():
                return base / name

        pyproject = base / "pyproject.toml"
        if pyproject.is_file():
            with pyproject.open("rb") as f:
                data = tomllib.load(f)
            if "agentlint" in data.get("tool", {}):
                return pyproject

        raise FileNotFoundError(
            f"No configuration file found in {base}. Provide a kind: Config YAML path, "
            f"set {CONFIG_PATH_ENV}, or add [tool.agentlint] to pyproject.toml"
        )

    def _load_and_parse(self, config_path: Path) -> LinterConfig:
        """Load and parse a configuration file (YAML or TOML)."""
        logger.info("Loading configuration from {path}", path=config_path)

        if config_path.suffix in (".yaml", ".yml"):
            data = self._load_yaml_config(config_path)
        else:
            data = self._load_toml_config(config_path)
        data = self._substitute_env_vars(data)
        return self._parse_config(data, config_path.name)

    def _load_yaml_config(self, config_path: Path) -> dict[str, Any]:
        """Read the ``spec`` of a ``kind: Config`` YAML manifest.

        Raises
        ------
        ConfigurationError
            If the file is not valid YAML or not a kind: Config manifest
        """
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(config_path.name, f"invalid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                config_path.name, f"expected a mapping, got {type(data).__name__}"
            )

        kind = data.get("kind")
        if kind != "Config":
            raise ConfigurationError(
                config_path.name, f"must use 'kind: Config' manifest format, got 'kind: {kind}'"
            )

        spec = data.get("spec") or {}
        if not isinstance(spec, dict):
            raise ConfigurationError(config_path.name, "'spec' must be a mapping")
        return spec

    def _load_toml_config(self, config_path: Path) -> dict[str, Any]:
        """Read ``[tool.agentlint]`` from a TOML file, or the whole file when flat.

        Raises
        ------
        ConfigurationError
            If the file is not valid TOML
        """
        try:
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(config_path.name, f"invalid TOML: {e}") from e

        tool_data = data.get("tool", {}).get("agentlint")
        if tool_data is not None:
            return tool_data
        if config_path.name == "pyproject.toml":
            logger.warning("No [tool.agentlint] section found in pyproject.toml, using defaults")
            return {}
        return data

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively replace ``${VAR}`` placeholders with environment values.

        Unknown variables keep their placeholder.
        """
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    logger.debug(
                        "Environment variable ${{{var_name}}} not found, keeping placeholder",
                        var_name=var_name,
                    )
                    return match.group(0)
                return value

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def _parse_config(self, data: dict[str, Any], source: str) -> LinterConfig:
        """Validate raw configuration data and convert it to :class:`LinterConfig`.

        Raises
        ------
        ConfigurationError
            If the data does not match the settings schema
        """
        data = dict(data)
        if not isinstance(data.get("logging", {}), dict):
            raise ConfigurationError(source, "'logging' must be a mapping")
        data["logging"] = self._apply_logging_env(data.get("logging", {}))
        try:
            settings = LinterSettings.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(source, str(e)) from e
        config = settings.to_domain()
        logger.debug(
            "Loaded configuration: {count} disabled rules, min severity {severity}",
            count=len(config.disabled_rules),
            severity=config.min_severity,
        )
        return config

    def _apply_logging_env(self, logging_data: dict[str, Any]) -> dict[str, Any]:
        """Overlay logging settings from the environment.

        Environment variables take precedence over config file values:
        - AGENTLINT_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        - AGENTLINT_LOG_FORMAT: Output format (console, json, structured, rich)
        - AGENTLINT_LOG_COLOR: Use color output (true/false)
        """
        merged = dict(logging_data)

        if env_level := os.getenv("AGENTLINT_LOG_LEVEL"):
            merged["level"] = env_level.upper()
            logger.debug("Overriding log level from env: {}", merged["level"])

        if env_format := os.getenv("AGENTLINT_LOG_FORMAT"):
            merged["format"] = env_format.lower()
            logger.debug("Overriding log format from env: {}", merged["format"])

        if env_color := os.getenv("AGENTLINT_LOG_COLOR"):
            try:
                merged["use_color"] = _parse_bool_env(env_color)
                logger.debug("Overriding log color from env: {}", merged["use_color"])
            except ValueError as e:
                logger.warning("Invalid AGENTLINT_LOG_COLOR value: {}", e)

        return merged


def load_config(
    path: str | Path | None = None, workspace: str | Path | None = None
) -> LinterConfig:
    """Load configuration from file or return defaults.

    An explicit ``path`` that does not exist is an error; an unsuccessful
    search falls back to :func:`get_default_config`.

    Parameters
    ----------
    path : str | Path | None
        Path to configuration file or None to search
    workspace : str | Path | None
        Directory to search; defaults to the current directory

    Returns
    -------
    LinterConfig
        Loaded configuration or defaults if no file found
    """
    try:
        return ConfigLoader().load_config_file(path, workspace)
    except FileNotFoundError:
        logger.info("No configuration file found, using defaults")
        return get_default_config()


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when configuration files have been modified and
    you need to force a reload.
    """
    _load_and_parse_cached.cache_clear()


def get_default_config() -> LinterConfig:
    """Default configuration: every rule enabled, all severities shown."""
    return LinterConfig()
