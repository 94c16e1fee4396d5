"""Default rule collection.

Rules are ordered by scoring category, then by their order inside each
category module. The engine receives the collection explicitly; nothing here
is mutated at runtime.
"""

from __future__ import annotations

from agentlint.exceptions import ResourceNotFoundError
from agentlint.linting.clarity_rules import CLARITY_RULES
from agentlint.linting.completeness_rules import COMPLETENESS_RULES
from agentlint.linting.consistency_rules import CONSISTENCY_RULES
from agentlint.linting.memory_rules import MEMORY_RULES
from agentlint.linting.rules import LintRule
from agentlint.linting.runtime_rules import RUNTIME_RULES
from agentlint.linting.security_rules import SECURITY_RULES
from agentlint.linting.skill_safety_rules import SKILL_SAFETY_RULES
from agentlint.linting.structure_rules import STRUCTURE_RULES

ALL_RULES: tuple[LintRule, ...] = (
    *STRUCTURE_RULES,
    *CLARITY_RULES,
    *COMPLETENESS_RULES,
    *SECURITY_RULES,
    *CONSISTENCY_RULES,
    *MEMORY_RULES,
    *RUNTIME_RULES,
    *SKILL_SAFETY_RULES,
)


def default_rules() -> tuple[LintRule, ...]:
    """The full ordered rule collection."""
    return ALL_RULES


def rule_ids() -> list[str]:
    """Ids of all registered rules, in evaluation order."""
    return [rule.rule_id for rule in ALL_RULES]


def get_rule(rule_id: str) -> LintRule:
    """Look up a rule by id.

    Raises
    ------
    ResourceNotFoundError
        If no rule has that id
    """
    for rule in ALL_RULES:
        if rule.rule_id == rule_id:
            return rule
    raise ResourceNotFoundError("rule", rule_id, available=rule_ids())


def without_rules(disabled: set[str] | frozenset[str]) -> tuple[LintRule, ...]:
    """The default collection minus the rules whose ids are in ``disabled``."""
    return tuple(rule for rule in ALL_RULES if rule.rule_id not in disabled)
