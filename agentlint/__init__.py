"""agentlint: lint and score the instruction files that configure AI agents.

Scans a workspace for CLAUDE.md, AGENTS.md, SOUL.md, skills and runtime
configuration, runs a catalogue of heuristic rules over them and reports a
0-100 score per category plus a weighted total.
"""

# Version is defined in pyproject.toml and read dynamically
try:
    from importlib.metadata import version

    __version__ = version("agentlint")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for source checkouts

from agentlint.exceptions import (
    AgentLintError,
    ConfigurationError,
    DocumentReadError,
    ResourceNotFoundError,
    RuleExecutionError,
    ValidationError,
)
from agentlint.linting import (
    Category,
    Diagnostic,
    Document,
    LintContext,
    LintResult,
    Severity,
    Workspace,
    lint,
    parse_document,
)
from agentlint.scanner import scan_workspace

__all__ = [
    "AgentLintError",
    "Category",
    "ConfigurationError",
    "Diagnostic",
    "Document",
    "DocumentReadError",
    "LintContext",
    "LintResult",
    "ResourceNotFoundError",
    "RuleExecutionError",
    "Severity",
    "ValidationError",
    "Workspace",
    "__version__",
    "lint",
    "parse_document",
    "scan_workspace",
]
