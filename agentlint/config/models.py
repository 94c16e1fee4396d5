"""Configuration data models for agentlint.

The frozen dataclasses are what the rest of the package consumes. The
pydantic models validate the raw mapping read from ``.agentlint.yaml`` or
``[tool.agentlint]`` and convert to them with ``to_domain()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from agentlint.exceptions import ValidationError
from agentlint.linting.models import LintContext, Severity

# ---------------------------------------------------------------------------
# Frozen dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for agentlint.

    Attributes
    ----------
    level : str, default="WARNING"
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path to write logs to
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output
    use_rich : bool, default=False
        Use Rich for console log output

    Examples
    --------
    Environment variable overrides:

    ```bash
    export AGENTLINT_LOG_LEVEL=DEBUG
    export AGENTLINT_LOG_FORMAT=rich
    export AGENTLINT_LOG_COLOR=false
    ```
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True
    use_rich: bool = False


@dataclass(frozen=True, slots=True)
class LinterConfig:
    """Complete agentlint configuration.

    Attributes
    ----------
    disabled_rules : frozenset[str]
        Rule ids that are never run
    min_severity : Severity
        Diagnostics below this severity are hidden from the report
    context : LintContext | None
        Forces the workspace context instead of detecting it
    fail_under : int | None
        The CLI exits non-zero when the total score is below this value
    logging : LoggingConfig
        Logging configuration

    Examples
    --------
    ``.agentlint.yaml``:

    ```yaml
    kind: Config
    spec:
      disabled_rules:
        - clarity/token-budget
      min_severity: warning
      fail_under: 70
      logging:
        level: INFO
    ```
    """

    disabled_rules: frozenset[str] = frozenset()
    min_severity: Severity = Severity.INFO
    context: LintContext | None = None
    fail_under: int | None = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        """Validate the score threshold.

        Raises
        ------
        ValidationError
            If ``fail_under`` is outside 0-100
        """
        if self.fail_under is not None and not 0 <= self.fail_under <= 100:
            raise ValidationError("fail_under", "must be between 0 and 100", self.fail_under)


# ---------------------------------------------------------------------------
# Pydantic models: parsing + validation of configuration files
# ---------------------------------------------------------------------------


class LoggingSettings(BaseModel):
    """``logging`` block of a configuration file."""

    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Minimum log level"
    )
    format: Literal["console", "json", "structured", "rich"] = Field(
        default="structured", description="Log output format"
    )
    output_file: str | None = Field(default=None, description="Optional log file path")
    use_color: bool = Field(default=True, description="Use ANSI colors")
    include_timestamp: bool = Field(default=True, description="Include timestamps")
    use_rich: bool = Field(default=False, description="Use the Rich log handler")

    def to_domain(self) -> LoggingConfig:
        """Convert to the frozen dataclass used at runtime."""
        return LoggingConfig(
            level=self.level,
            format=self.format,
            output_file=self.output_file,
            use_color=self.use_color,
            include_timestamp=self.include_timestamp,
            use_rich=self.use_rich,
        )


class LinterSettings(BaseModel):
    """Top-level ``spec`` of a ``kind: Config`` file or ``[tool.agentlint]`` table."""

    model_config = ConfigDict(extra="forbid")

    disabled_rules: list[str] = Field(default_factory=list, description="Rule ids to skip")
    min_severity: Severity = Field(
        default=Severity.INFO, description="Lowest severity shown in reports"
    )
    context: LintContext | None = Field(
        default=None, description="Force a workspace context instead of detecting it"
    )
    fail_under: int | None = Field(
        default=None, ge=0, le=100, description="Minimum acceptable total score"
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings, description="Logging configuration"
    )

    def to_domain(self) -> LinterConfig:
        """Convert to the frozen dataclass used at runtime."""
        return LinterConfig(
            disabled_rules=frozenset(self.disabled_rules),
            min_severity=self.min_severity,
            context=self.context,
            fail_under=self.fail_under,
            logging=self.logging.to_domain(),
        )
