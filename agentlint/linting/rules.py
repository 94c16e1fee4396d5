"""Lint rule protocol and rule engine."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from agentlint.exceptions import RuleExecutionError
from agentlint.linting.models import Category, Diagnostic, Document, LintContext, Workspace
from agentlint.logging import get_logger

logger = get_logger(__name__)

# Categories whose rules see skill/plugin documents too
FULL_SET_CATEGORIES = frozenset({Category.SKILL_SAFETY, Category.RUNTIME})


class LintRule(Protocol):
    """Protocol for a single lint rule.

    ``applicable_contexts`` of ``None`` means the rule applies everywhere.
    """

    rule_id: str
    category: Category
    severity: str
    description: str
    applicable_contexts: frozenset[LintContext] | None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Run this rule against the documents and return diagnostics."""
        ...


@dataclass(frozen=True, slots=True)
class RuleRun:
    """Diagnostics of one engine pass plus the ids of rules that raised."""

    diagnostics: tuple[Diagnostic, ...]
    failed_rules: tuple[str, ...] = ()
    skipped_rules: tuple[str, ...] = ()


def is_applicable(rule: LintRule, context: LintContext) -> bool:
    """Decide whether ``rule`` runs for a workspace of the given context.

    Every rule runs for universal workspaces, and a rule that lists
    ``universal`` among its contexts runs for every workspace.
    """
    contexts = rule.applicable_contexts
    if not contexts or context == LintContext.UNIVERSAL:
        return True
    return context in contexts or LintContext.UNIVERSAL in contexts


def select_documents(rule: LintRule, workspace: Workspace) -> tuple[Document, ...]:
    """Pick the document subset a rule is allowed to see."""
    if rule.category in FULL_SET_CATEGORIES:
        return workspace.documents
    return workspace.core_documents


class RuleEngine:
    """Runs an ordered collection of rules against a workspace.

    A rule that raises is logged and contributes nothing; the remaining rules
    still run.
    """

    __slots__ = ("_rules",)

    def __init__(self, rules: Sequence[LintRule]) -> None:
        """Initialize the engine with an explicit ordered rule collection."""
        self._rules: tuple[LintRule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[LintRule, ...]:
        """Rules in evaluation order."""
        return self._rules

    def run(self, workspace: Workspace) -> RuleRun:
        """Evaluate every applicable rule and collect diagnostics in rule order."""
        diagnostics: list[Diagnostic] = []
        failed: list[str] = []
        skipped: list[str] = []

        for rule in self._rules:
            if not is_applicable(rule, workspace.context):
                skipped.append(rule.rule_id)
                continue
            try:
                diagnostics.extend(self._run_rule(rule, select_documents(rule, workspace)))
            except RuleExecutionError as e:
                logger.opt(exception=e.original_error).warning(
                    "Rule {rule_id} failed and was skipped: {error}",
                    rule_id=e.rule_id,
                    error=str(e),
                )
                failed.append(e.rule_id)

        logger.debug(
            "Rule engine finished: {count} diagnostics, {failed} failed, {skipped} skipped",
            count=len(diagnostics),
            failed=len(failed),
            skipped=len(skipped),
        )
        return RuleRun(tuple(diagnostics), tuple(failed), tuple(skipped))

    @staticmethod
    def _run_rule(rule: LintRule, documents: Sequence[Document]) -> list[Diagnostic]:
        try:
            return list(rule.check(documents))
        except Exception as e:
            raise RuleExecutionError(rule.rule_id, e) from e


def run_rules(rules: Sequence[LintRule], workspace: Workspace) -> RuleRun:
    """Run a list of lint rules against a workspace."""
    return RuleEngine(rules).run(workspace)
