"""Tests for agentlint.exceptions."""

from __future__ import annotations

import pytest

from agentlint.exceptions import (
    AgentLintError,
    ConfigurationError,
    DocumentReadError,
    ResourceNotFoundError,
    RuleExecutionError,
    ValidationError,
)


class TestExceptions:
    def test_hierarchy(self) -> None:
        for exc in (
            ConfigurationError("x", "y"),
            ValidationError("x", "y"),
            ResourceNotFoundError("rule", "x"),
            DocumentReadError("CLAUDE.md", OSError("denied")),
            RuleExecutionError("structure/x", ValueError("bad")),
        ):
            assert isinstance(exc, AgentLintError)

    def test_configuration_error(self) -> None:
        exc = ConfigurationError(".agentlint.yaml", "invalid YAML")
        assert str(exc) == "Configuration error in '.agentlint.yaml': invalid YAML"
        assert exc.component == ".agentlint.yaml"

    def test_validation_error_value(self) -> None:
        assert "(got 140)" in str(ValidationError("fail_under", "must be <= 100", 140))
        assert "got" not in str(ValidationError("fail_under", "must be <= 100"))

    def test_resource_not_found_lists_available(self) -> None:
        exc = ResourceNotFoundError("rule", "x/y", available=[f"r{i}" for i in range(8)])
        assert str(exc).startswith("Rule 'x/y' not found. Available: r0, r1, r2, r3, r4")
        assert str(exc).endswith("... and 3 more")

    def test_document_read_error_is_os_error(self) -> None:
        with pytest.raises(OSError):
            raise DocumentReadError("CLAUDE.md", PermissionError("denied"))

    def test_rule_execution_error(self) -> None:
        original = ValueError("bad input")
        exc = RuleExecutionError("structure/x", original)
        assert exc.original_error is original
        assert str(exc) == "Rule 'structure/x' failed: ValueError: bad input"
