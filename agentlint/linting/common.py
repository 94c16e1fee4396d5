"""Helpers shared by the rule modules."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Sequence
from typing import Any

from agentlint.linting.consistency import comparable_documents
from agentlint.linting.models import Category, Diagnostic, Document, LintContext, Severity
from agentlint.linting.rules import LintRule

# Pseudo file name for workspace-wide findings
WORKSPACE = "(workspace)"

MAIN_FILE_NAMES = ("CLAUDE.md", "AGENTS.md")

__all__ = [
    "MAIN_FILE_NAMES",
    "WORKSPACE",
    "KeywordPresenceRule",
    "all_content",
    "comparable_documents",
    "diagnostic",
    "find_document",
    "find_main_file",
    "first_matching_line",
    "has_section",
    "is_code_fence",
    "load_json_document",
]


def diagnostic(
    rule: LintRule,
    file: str,
    message: str,
    line: int | None = None,
    fix: str | None = None,
    severity: Severity | None = None,
) -> Diagnostic:
    """Build a diagnostic carrying the rule's id, category and default severity."""
    return Diagnostic(
        severity=severity or Severity(rule.severity),
        category=Category(rule.category),
        rule=rule.rule_id,
        file=file,
        message=message,
        line=line,
        fix=fix,
    )


def find_document(documents: Iterable[Document], *names: str) -> Document | None:
    """First document whose name matches one of ``names``, in document order."""
    return next((doc for doc in documents if doc.name in names), None)


def find_main_file(documents: Iterable[Document]) -> Document | None:
    """The workspace entry document (CLAUDE.md or AGENTS.md)."""
    return find_document(documents, *MAIN_FILE_NAMES)


def all_content(documents: Iterable[Document]) -> str:
    """Concatenated text of the documents."""
    return "\n".join(doc.content for doc in documents)


def first_matching_line(lines: Sequence[str], pattern: re.Pattern[str]) -> int | None:
    """1-based number of the first line matching ``pattern``."""
    for index, line in enumerate(lines):
        if pattern.search(line):
            return index + 1
    return None


def is_code_fence(line: str) -> bool:
    """True for a markdown fence opener or closer."""
    return line.strip().startswith("```")


def has_section(document: Document | None, pattern: re.Pattern[str]) -> bool:
    """True if any section heading of ``document`` matches ``pattern``."""
    if document is None:
        return False
    return any(pattern.search(section.heading) for section in document.sections)


def load_json_document(document: Document) -> Any:
    """Parse a JSON document.

    Raises
    ------
    json.JSONDecodeError
        On bad syntax, and also when the decoder refuses the input
        (oversized integer literals, nesting beyond the recursion limit)
    """
    try:
        return json.loads(document.content)
    except json.JSONDecodeError:
        raise
    except ValueError as e:
        raise json.JSONDecodeError(str(e), document.content, 0) from e
    except RecursionError as e:
        raise json.JSONDecodeError("Nesting too deep", document.content, 0) from e


class KeywordPresenceRule:
    """Workspace-level rule that passes when any document mentions a topic.

    Many completeness and memory checks reduce to "some document talks about
    X"; this class covers them with one configurable implementation.
    """

    __slots__ = (
        "rule_id",
        "category",
        "severity",
        "description",
        "applicable_contexts",
        "_pattern",
        "_message",
        "_fix",
        "_satisfied_by_name",
    )

    def __init__(
        self,
        rule_id: str,
        category: Category,
        severity: Severity,
        description: str,
        pattern: str,
        message: str,
        fix: str | None = None,
        applicable_contexts: frozenset[LintContext] | None = None,
        satisfied_by_name: tuple[str, ...] = (),
    ) -> None:
        """Initialize the rule.

        Args
        ----
            pattern: Case-insensitive regex searched in the combined content
            satisfied_by_name: Name fragments; any document whose name contains
                one of them also satisfies the rule
        """
        self.rule_id = rule_id
        self.category = category
        self.severity = severity
        self.description = description
        self.applicable_contexts = applicable_contexts
        self._pattern = re.compile(pattern, re.IGNORECASE)
        self._message = message
        self._fix = fix
        self._satisfied_by_name = satisfied_by_name

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report the topic as missing when no document covers it."""
        if any(
            fragment in doc.name for doc in documents for fragment in self._satisfied_by_name
        ):
            return []
        if self._pattern.search(all_content(documents)):
            return []
        return [diagnostic(self, WORKSPACE, self._message, fix=self._fix)]
