"""Completeness rules: does the workspace cover identity, tools, boundaries..."""

from __future__ import annotations

import re
from collections.abc import Sequence

from agentlint.linting.common import (
    WORKSPACE,
    KeywordPresenceRule,
    diagnostic,
    find_main_file,
    has_section,
)
from agentlint.linting.models import Category, Diagnostic, Document, LintContext, Severity

_IDENTITY_HEADING_RE = re.compile(
    r"identity|persona|who you are|character|personality|role", re.IGNORECASE
)
_TOOLS_HEADING_RE = re.compile(r"tools|commands|capabilities|available tools", re.IGNORECASE)
_USER_HEADING_RE = re.compile(r"user|human|owner|about.*you", re.IGNORECASE)
_BOUNDARIES_RE = re.compile(
    r"boundar|constraint|limitation|don'?t|never|forbidden|prohibited|off.?limits|not allowed",
    re.IGNORECASE,
)


class HasIdentityRule:
    """The agent needs a defined persona."""

    rule_id = "completeness/has-identity"
    category = Category.COMPLETENESS
    severity = Severity.WARNING
    description = "Agent should have a defined identity or persona"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Accept SOUL.md, IDENTITY.md, a persona file or an identity section."""
        if any(
            doc.name in ("SOUL.md", "IDENTITY.md") or "persona" in doc.name.lower()
            for doc in documents
        ):
            return []
        main = find_main_file(documents)
        if has_section(main, _IDENTITY_HEADING_RE):
            return []
        return [
            diagnostic(
                self,
                main.name if main else WORKSPACE,
                "No identity/persona defined. Without this, the agent has no consistent "
                "personality.",
                fix="Create SOUL.md or add a ## Identity section defining who the agent is, "
                "its tone and behavior principles.",
            )
        ]


class HasToolsRule:
    """The agent needs tool documentation."""

    rule_id = "completeness/has-tools"
    category = Category.COMPLETENESS
    severity = Severity.WARNING
    description = "Agent should have tool documentation"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Accept a tools file or a tools section in the entry document."""
        if any("tools" in doc.name.lower() for doc in documents):
            return []
        main = find_main_file(documents)
        if has_section(main, _TOOLS_HEADING_RE):
            return []
        return [
            diagnostic(
                self,
                main.name if main else WORKSPACE,
                "No tool documentation found. The agent doesn't know what tools are "
                "available or how to use them.",
                fix="Create TOOLS.md or add a ## Tools section documenting available tools, "
                "APIs and usage patterns.",
            )
        ]


class HasBoundariesRule:
    """The agent needs to know what not to do."""

    rule_id = "completeness/has-boundaries"
    category = Category.COMPLETENESS
    severity = Severity.WARNING
    description = "Agent should have defined boundaries and constraints"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Search all documents for constraint vocabulary."""
        if any(_BOUNDARIES_RE.search(doc.content) for doc in documents):
            return []
        main = find_main_file(documents)
        return [
            diagnostic(
                self,
                main.name if main else WORKSPACE,
                "No boundaries or constraints defined. The agent needs to know what NOT to do.",
                fix="Add a ## Boundaries section with clear rules about what's off-limits.",
            )
        ]


class HasUserContextRule:
    """Persistent agents benefit from knowing their user."""

    rule_id = "completeness/has-user-context"
    category = Category.COMPLETENESS
    severity = Severity.INFO
    description = "Providing user context helps personalization"
    applicable_contexts = frozenset({LintContext.OPENCLAW_RUNTIME})

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Accept a user file or a user section in the entry document."""
        if any("user" in doc.name.lower() for doc in documents):
            return []
        if has_section(find_main_file(documents), _USER_HEADING_RE):
            return []
        return [
            diagnostic(
                self,
                WORKSPACE,
                "No user context found. Telling the agent about its user (preferences, role, "
                "timezone) improves responses.",
                fix="Create USER.md with name, role, timezone, preferences and "
                "communication style.",
            )
        ]


class AgentDescriptionRule:
    """Sub-agent files need frontmatter with a description."""

    rule_id = "completeness/agent-description"
    category = Category.COMPLETENESS
    severity = Severity.ERROR
    description = "Agent files in .claude/agents/ must declare name and description"
    applicable_contexts = frozenset({LintContext.CLAUDE_CODE})

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Check frontmatter presence and the name/description fields."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if ".claude/agents/" not in doc.name or not doc.is_markdown:
                continue
            if not doc.content.startswith("---"):
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Agent file missing YAML frontmatter. 'name' and 'description' "
                        "are required.",
                        fix='Add frontmatter:\n---\nname: agent-name\ndescription: "When to '
                        'delegate to this agent"\n---',
                    )
                )
                continue
            parts = doc.content.split("---")
            frontmatter = parts[1] if len(parts) > 1 else ""
            if "description" not in frontmatter:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Agent missing 'description' field, which decides when tasks are "
                        "delegated to it.",
                        fix='Add to frontmatter: description: "Use this agent when ..."',
                    )
                )
            if "name" not in frontmatter:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Agent missing 'name' field (falls back to filename).",
                        fix="Add name field: name: my-agent-name",
                        severity=Severity.WARNING,
                    )
                )
        return diagnostics


COMPLETENESS_RULES = [
    HasIdentityRule(),
    HasToolsRule(),
    HasBoundariesRule(),
    HasUserContextRule(),
    KeywordPresenceRule(
        rule_id="completeness/has-error-handling",
        category=Category.COMPLETENESS,
        severity=Severity.INFO,
        description="Agent should know how to handle errors and edge cases",
        pattern=r"error|fail|fallback|edge case|exception|when.*wrong|if.*fail|recover",
        message="No error handling guidance found. The agent should know what to do when "
        "things go wrong.",
        fix="Add error handling instructions: retry logic, fallback behavior, when to ask "
        "for help.",
    ),
    KeywordPresenceRule(
        rule_id="completeness/has-output-format",
        category=Category.COMPLETENESS,
        severity=Severity.INFO,
        description="Defining expected output format improves consistency",
        pattern=r"format|output|response.*style|markdown|json|structured|template",
        message="No output format guidance found. Defining format expectations (markdown, "
        "JSON, length) improves consistency.",
    ),
    KeywordPresenceRule(
        rule_id="completeness/has-workflow",
        category=Category.COMPLETENESS,
        severity=Severity.INFO,
        description="Defining workflows helps the agent handle multi-step tasks",
        pattern=r"workflow|deploy|git.*push|step.*by.*step|procedure|process|pipeline",
        message="No workflow documentation found. Define common multi-step processes "
        "(deploy, review).",
    ),
    KeywordPresenceRule(
        rule_id="completeness/has-priorities",
        category=Category.COMPLETENESS,
        severity=Severity.INFO,
        description="Prioritization helps agents decide what matters most",
        pattern=r"priorit|critical|important|must|P0|P1|urgent|first.*then",
        message="No priority guidance found. Help the agent know what's most important "
        "when instructions conflict.",
    ),
    AgentDescriptionRule(),
]
