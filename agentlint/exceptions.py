"""Exception hierarchy for agentlint.

All agentlint exceptions inherit from AgentLintError so callers can catch the
whole family at once. Irregular document content is never an exception: it
surfaces as ordinary diagnostics.
"""

from __future__ import annotations

# ============================================================================
# Base Exception
# ============================================================================


class AgentLintError(Exception):
    """Base exception for all agentlint errors.

    Catch this to handle every error raised by the linter itself.
    """

    pass


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(AgentLintError):
    """Raised when linter configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError(".agentlint.yaml", "expected a mapping at top level")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the configuration source or section
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(AgentLintError):
    """Raised when a single configuration value fails validation.

    Examples
    --------
    Example usage::

        raise ValidationError("fail_under", "must be between 0 and 100", value=140)
    """

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        """Initialize validation error.

        Args
        ----
            field: Name of the field that failed validation
            constraint: Description of the validation constraint
            value: The invalid value (optional)
        """
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


# ============================================================================
# Resource Errors
# ============================================================================


class ResourceNotFoundError(AgentLintError):
    """Raised when a workspace, file or rule cannot be found.

    Examples
    --------
    Example usage::

        raise ResourceNotFoundError("rule", "clarity/bogus", ["clarity/has-examples"])
    """

    def __init__(
        self, resource_type: str, resource_id: str, available: list[str] | None = None
    ) -> None:
        """Initialize resource not found error.

        Args
        ----
            resource_type: Type of resource (e.g., "workspace", "rule")
            resource_id: Identifier of the missing resource
            available: List of available resources (optional)
        """
        msg = f"{resource_type.title()} '{resource_id}' not found"
        if available:
            msg += f". Available: {', '.join(available[:5])}"
            if len(available) > 5:
                msg += f" ... and {len(available) - 5} more"
        super().__init__(msg)
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.available = available


class DocumentReadError(AgentLintError, OSError):
    """Raised when a workspace document cannot be read.

    This aborts the whole run: a score computed over a partial document set
    would be misleading.

    Examples
    --------
    Example usage::

        raise DocumentReadError("CLAUDE.md", PermissionError("denied"))
    """

    def __init__(self, path: str, original_error: Exception) -> None:
        """Initialize document read error.

        Args
        ----
            path: Path of the unreadable document
            original_error: The underlying OS or decoding error
        """
        super().__init__(f"Cannot read '{path}': {original_error}")
        self.path = path
        self.original_error = original_error


# ============================================================================
# Execution Errors
# ============================================================================


class RuleExecutionError(AgentLintError):
    """Raised when a single rule fails while checking documents.

    The rule engine catches this per rule, logs it and carries on with the
    remaining rules; the failing rule contributes zero diagnostics.

    Examples
    --------
    Example usage::

        raise RuleExecutionError("clarity/has-examples", KeyError("lines"))
    """

    def __init__(self, rule_id: str, original_error: Exception) -> None:
        """Initialize rule execution error.

        Args
        ----
            rule_id: Identifier of the rule that failed
            original_error: The original exception raised by the rule
        """
        error_type = type(original_error).__name__
        super().__init__(f"Rule '{rule_id}' failed: {error_type}: {original_error}")
        self.rule_id = rule_id
        self.original_error = original_error
