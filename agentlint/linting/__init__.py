"""Linting core: document model, rule engine, rule catalogue and scoring."""

from agentlint.linting.document import detect_context, parse_document, parse_sections
from agentlint.linting.models import (
    Category,
    CategoryScore,
    Diagnostic,
    Document,
    LintContext,
    LintResult,
    Section,
    Severity,
    Workspace,
)
from agentlint.linting.registry import ALL_RULES, default_rules, get_rule, rule_ids
from agentlint.linting.rules import LintRule, RuleEngine, RuleRun, run_rules
from agentlint.linting.scoring import (
    CATEGORY_WEIGHTS,
    compute_bonus,
    lint,
    score_category,
    score_total,
)

__all__ = [
    "ALL_RULES",
    "CATEGORY_WEIGHTS",
    "Category",
    "CategoryScore",
    "Diagnostic",
    "Document",
    "LintContext",
    "LintResult",
    "LintRule",
    "RuleEngine",
    "RuleRun",
    "Section",
    "Severity",
    "Workspace",
    "compute_bonus",
    "default_rules",
    "detect_context",
    "get_rule",
    "lint",
    "parse_document",
    "parse_sections",
    "rule_ids",
    "run_rules",
    "score_category",
    "score_total",
]
