"""Tests for agentlint.linting.rules and the rule registry."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from agentlint.exceptions import ResourceNotFoundError
from agentlint.linting.common import WORKSPACE, diagnostic
from agentlint.linting.models import Category, Diagnostic, Document, LintContext, Severity
from agentlint.linting.registry import ALL_RULES, get_rule, rule_ids, without_rules
from agentlint.linting.rules import RuleEngine, is_applicable, run_rules


class _StubRule:
    """Rule that records the documents it sees and reports one diagnostic."""

    def __init__(
        self,
        rule_id: str = "structure/stub",
        category: Category = Category.STRUCTURE,
        applicable_contexts: frozenset[LintContext] | None = None,
    ) -> None:
        self.rule_id = rule_id
        self.category = category
        self.severity = Severity.WARNING
        self.description = "stub"
        self.applicable_contexts = applicable_contexts
        self.seen: list[str] = []

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        self.seen = [doc.name for doc in documents]
        return [diagnostic(self, WORKSPACE, f"{self.rule_id} ran")]


class _RaisingRule(_StubRule):
    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        raise RuntimeError("boom")


class TestRuleEngine:
    """Tests for RuleEngine."""

    def test_diagnostics_follow_rule_order(self, make_workspace) -> None:
        """Diagnostics are collected in rule order."""
        rules = [_StubRule("structure/a"), _StubRule("structure/b")]
        run = RuleEngine(rules).run(make_workspace({"CLAUDE.md": "# x"}))
        assert [d.rule for d in run.diagnostics] == ["structure/a", "structure/b"]

    def test_raising_rule_is_isolated(self, make_workspace) -> None:
        """A rule that raises contributes nothing and the others still run."""
        rules = [_StubRule("structure/a"), _RaisingRule("structure/bad"), _StubRule("structure/c")]
        run = run_rules(rules, make_workspace({"CLAUDE.md": "# x"}))
        assert [d.rule for d in run.diagnostics] == ["structure/a", "structure/c"]
        assert run.failed_rules == ("structure/bad",)

    def test_context_gating(self, make_workspace) -> None:
        """A runtime-only rule is skipped for a claude-code workspace."""
        rule = _StubRule(applicable_contexts=frozenset({LintContext.OPENCLAW_RUNTIME}))
        workspace = make_workspace({"CLAUDE.md": "# x"}, context=LintContext.CLAUDE_CODE)
        run = RuleEngine([rule]).run(workspace)
        assert run.diagnostics == ()
        assert run.skipped_rules == ("structure/stub",)

    def test_universal_workspace_runs_everything(self, make_workspace) -> None:
        """Every rule runs for a universal workspace."""
        rule = _StubRule(applicable_contexts=frozenset({LintContext.OPENCLAW_RUNTIME}))
        run = RuleEngine([rule]).run(make_workspace({"SOUL.md": "x"}))
        assert len(run.diagnostics) == 1

    def test_skill_documents_are_routed_by_category(self, make_workspace) -> None:
        """Only skill-safety and runtime rules see skill documents."""
        structure = _StubRule("structure/a", Category.STRUCTURE)
        skill_safety = _StubRule("skillSafety/a", Category.SKILL_SAFETY)
        runtime = _StubRule("runtime/a", Category.RUNTIME)
        workspace = make_workspace({"CLAUDE.md": "# x", "skills/deploy/SKILL.md": "---"})

        RuleEngine([structure, skill_safety, runtime]).run(workspace)

        assert structure.seen == ["CLAUDE.md"]
        assert skill_safety.seen == ["CLAUDE.md", "skills/deploy/SKILL.md"]
        assert runtime.seen == ["CLAUDE.md", "skills/deploy/SKILL.md"]


class TestIsApplicable:
    """Tests for is_applicable."""

    def test_no_contexts_applies_everywhere(self) -> None:
        rule = _StubRule()
        for context in LintContext:
            assert is_applicable(rule, context)

    def test_universal_in_rule_contexts(self) -> None:
        rule = _StubRule(applicable_contexts=frozenset({LintContext.UNIVERSAL}))
        assert is_applicable(rule, LintContext.CLAUDE_CODE)

    def test_mismatch(self) -> None:
        rule = _StubRule(applicable_contexts=frozenset({LintContext.CLAUDE_CODE}))
        assert not is_applicable(rule, LintContext.OPENCLAW_RUNTIME)


class TestRegistry:
    """Tests for the default rule collection."""

    def test_rule_ids_are_unique(self) -> None:
        ids = rule_ids()
        assert len(ids) == len(set(ids))

    def test_rule_ids_are_prefixed_by_category(self) -> None:
        for rule in ALL_RULES:
            assert rule.rule_id.startswith(f"{rule.category}/")

    def test_every_category_has_rules(self) -> None:
        assert {rule.category for rule in ALL_RULES} == set(Category)

    def test_get_rule(self) -> None:
        assert get_rule("security/no-secrets").category == Category.SECURITY

    def test_get_unknown_rule(self) -> None:
        with pytest.raises(ResourceNotFoundError) as exc_info:
            get_rule("nope/missing")
        assert exc_info.value.resource_id == "nope/missing"

    def test_without_rules(self) -> None:
        remaining = without_rules({"security/no-secrets"})
        assert len(remaining) == len(ALL_RULES) - 1
        assert "security/no-secrets" not in [rule.rule_id for rule in remaining]
