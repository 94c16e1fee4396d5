"""Scoring engine: per-category scores, bonuses and the weighted total.

Each category starts at 100, loses points per diagnostic according to its
severity, gains a category-specific bonus for positive signals and is clamped
to ``[0, 100]``. The total is the weighted sum of the category scores.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from datetime import UTC, datetime

from agentlint.linting.models import (
    Category,
    CategoryScore,
    Diagnostic,
    Document,
    LintResult,
    Severity,
    Workspace,
)
from agentlint.linting.registry import default_rules
from agentlint.linting.rules import LintRule, RuleEngine
from agentlint.linting.runtime_rules import (
    ENV_REF_RE,
    find_runtime_config,
    gateway_token,
    is_restrictive_dm_policy,
    is_strong_token,
    iter_channels,
    load_runtime_config,
)
from agentlint.linting.security_rules import SHIELD_SECTIONS, missing_shield_sections
from agentlint.logging import get_logger

logger = get_logger(__name__)

CATEGORY_WEIGHTS: dict[Category, float] = {
    Category.STRUCTURE: 0.12,
    Category.CLARITY: 0.20,
    Category.COMPLETENESS: 0.12,
    Category.SECURITY: 0.15,
    Category.CONSISTENCY: 0.08,
    Category.MEMORY: 0.10,
    Category.RUNTIME: 0.13,
    Category.SKILL_SAFETY: 0.10,
}

SEVERITY_COSTS: dict[Severity, int] = {
    Severity.CRITICAL: 20,
    Severity.ERROR: 15,
    Severity.WARNING: 5,
    Severity.INFO: 1,
}

# Runtime warnings are mostly hardening advice
RUNTIME_WARNING_COST = 3
INFO_DEDUCTION_CAP = 20
MAX_SCORE = 100

KEY_FILES = ("SOUL.md", "IDENTITY.md", "USER.md", "TOOLS.md", "SECURITY.md")

_INJECTION_GUIDANCE_RE = re.compile(r"inject|jailbreak", re.IGNORECASE)
_EXAMPLE_WORD_RE = re.compile(r"example", re.IGNORECASE)


def round_half_up(value: float) -> int:
    """Round to the nearest integer; exact halves round up."""
    return math.floor(value + 0.5)


def clamp_score(value: float) -> int:
    """Round and clamp a raw score into ``[0, 100]``."""
    return max(0, min(MAX_SCORE, round_half_up(value)))


# ---------------------------------------------------------------------------
# Bonuses
# ---------------------------------------------------------------------------


def _has(documents: Sequence[Document], name: str) -> bool:
    return any(doc.name == name for doc in documents)


def _structure_bonus(documents: Sequence[Document]) -> int:
    markdown = sum(1 for doc in documents if doc.is_markdown)
    return (5 if markdown >= 3 else 0) + (5 if markdown >= 5 else 0)


def _clarity_bonus(documents: Sequence[Document]) -> int:
    has_examples = any(
        "```" in doc.content or _EXAMPLE_WORD_RE.search(doc.content) for doc in documents
    )
    return 5 if has_examples else 0


def _completeness_bonus(documents: Sequence[Document]) -> int:
    return 2 * sum(1 for name in KEY_FILES if _has(documents, name))


def _security_bonus(documents: Sequence[Document]) -> int:
    bonus = 5 if _has(documents, "SECURITY.md") else 0
    if any(_INJECTION_GUIDANCE_RE.search(doc.content) for doc in documents):
        bonus += 5
    shield = next((doc for doc in documents if doc.name == "SHIELD.md"), None)
    if shield is not None:
        found = len(SHIELD_SECTIONS) - len(missing_shield_sections(shield))
        bonus += 5 + 2 * found
    return bonus


def _consistency_bonus(documents: Sequence[Document]) -> int:
    root = [doc.name for doc in documents if doc.is_markdown and "/" not in doc.name]
    all_upper = all(name[:-3] == name[:-3].upper() for name in root)
    return 5 if len(root) > 1 and all_upper else 0


def _memory_bonus(documents: Sequence[Document]) -> int:
    bonus = 5 if _has(documents, "MEMORY.md") else 0
    if _has(documents, "HEARTBEAT.md"):
        bonus += 3
    if any("progress" in doc.name for doc in documents):
        bonus += 3
    if any("memory/" in doc.name for doc in documents):
        bonus += 5
    return bonus


def _runtime_bonus(documents: Sequence[Document]) -> int:
    document = find_runtime_config(documents)
    if document is None:
        return 0
    bonus = 5
    config = load_runtime_config(documents)
    if config is None:
        return bonus
    if ENV_REF_RE.search(document.content):
        bonus += 10
    token = gateway_token(config)
    if token is not None and is_strong_token(token):
        bonus += 5
    channels = list(iter_channels(config))
    if any(settings.get("groupPolicy") == "allowlist" for _, settings in channels):
        bonus += 5
    if any(is_restrictive_dm_policy(settings) for _, settings in channels):
        bonus += 5
    return bonus


def _skill_safety_bonus(documents: Sequence[Document]) -> int:
    skills = [
        doc for doc in documents if "skills/" in doc.name and doc.name.endswith("SKILL.md")
    ]
    if not skills:
        return 10
    return 5 if all(doc.content.startswith("---") for doc in skills) else 0


_BONUSES = {
    Category.STRUCTURE: _structure_bonus,
    Category.CLARITY: _clarity_bonus,
    Category.COMPLETENESS: _completeness_bonus,
    Category.SECURITY: _security_bonus,
    Category.CONSISTENCY: _consistency_bonus,
    Category.MEMORY: _memory_bonus,
    Category.RUNTIME: _runtime_bonus,
    Category.SKILL_SAFETY: _skill_safety_bonus,
}


def compute_bonus(category: Category, documents: Sequence[Document]) -> int:
    """Bonus points a category earns for positive signals in the workspace."""
    return _BONUSES[category](documents)


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------


def severity_cost(category: Category, severity: Severity) -> int:
    """Points one diagnostic of ``severity`` costs in ``category``."""
    if category == Category.RUNTIME and severity == Severity.WARNING:
        return RUNTIME_WARNING_COST
    return SEVERITY_COSTS[severity]


def score_category(
    category: Category,
    diagnostics: Sequence[Diagnostic],
    documents: Sequence[Document],
) -> int:
    """Score one category.

    Parameters
    ----------
    category : Category
        Category being scored
    diagnostics : Sequence[Diagnostic]
        Diagnostics of that category only
    documents : Sequence[Document]
        Every workspace document, used for the bonus

    Returns
    -------
    int
        Score in ``[0, 100]``
    """
    infos = sum(1 for d in diagnostics if d.severity == Severity.INFO)
    deduction = sum(
        severity_cost(category, d.severity) for d in diagnostics if d.severity != Severity.INFO
    )
    deduction += min(infos * SEVERITY_COSTS[Severity.INFO], INFO_DEDUCTION_CAP)
    return clamp_score(MAX_SCORE - deduction + compute_bonus(category, documents))


def score_total(category_scores: Sequence[CategoryScore]) -> int:
    """Weighted sum of category scores, rounded half up."""
    return round_half_up(sum(entry.score * entry.weight for entry in category_scores))


def sort_key(diagnostic: Diagnostic) -> tuple[int, str, int, str]:
    """Order by severity, then file, line and rule id."""
    return (diagnostic.severity.rank, diagnostic.file, diagnostic.line or 0, diagnostic.rule)


def lint(workspace: Workspace, rules: Sequence[LintRule] | None = None) -> LintResult:
    """Run the rules over ``workspace`` and score the outcome.

    Parameters
    ----------
    workspace : Workspace
        Parsed workspace to lint
    rules : Sequence[LintRule] | None
        Rules to run; the default collection when omitted

    Returns
    -------
    LintResult
        Category scores, total score and diagnostics sorted by severity
    """
    run = RuleEngine(default_rules() if rules is None else rules).run(workspace)

    categories: list[CategoryScore] = []
    for category, weight in CATEGORY_WEIGHTS.items():
        in_category = tuple(d for d in run.diagnostics if d.category == category)
        categories.append(
            CategoryScore(
                category=category,
                score=score_category(category, in_category, workspace.documents),
                weight=weight,
                diagnostics=in_category,
            )
        )
    total = score_total(categories)
    logger.debug("Workspace {root} scored {total}", root=workspace.root, total=total)

    return LintResult(
        workspace=workspace.root,
        context=workspace.context,
        documents=tuple(doc.name for doc in workspace.documents),
        categories=tuple(categories),
        total_score=total,
        diagnostics=tuple(sorted(run.diagnostics, key=sort_key)),
        timestamp=datetime.now(UTC).isoformat(),
        failed_rules=run.failed_rules,
    )
