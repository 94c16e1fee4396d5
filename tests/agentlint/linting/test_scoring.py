"""Tests for agentlint.linting.scoring."""

from __future__ import annotations

import pytest

from agentlint.linting.consistency_rules import NoDuplicateInstructionsRule
from agentlint.linting.document import parse_document
from agentlint.linting.models import Category, CategoryScore, Diagnostic, Severity
from agentlint.linting.scoring import (
    CATEGORY_WEIGHTS,
    clamp_score,
    compute_bonus,
    lint,
    round_half_up,
    score_category,
    score_total,
    severity_cost,
    sort_key,
)
from agentlint.scanner import scan_workspace


def _diag(
    severity: Severity,
    category: Category = Category.STRUCTURE,
    file: str = "CLAUDE.md",
    line: int | None = None,
    rule: str = "structure/x",
) -> Diagnostic:
    return Diagnostic(severity, category, rule, file, "message", line)


class TestRounding:
    """Tests for round_half_up and clamp_score."""

    def test_half_rounds_up(self) -> None:
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2

    def test_clamp(self) -> None:
        assert clamp_score(-40) == 0
        assert clamp_score(130) == 100
        assert clamp_score(72.5) == 73


class TestScoreCategory:
    """Tests for per-category scoring."""

    def test_weights_sum_to_one(self) -> None:
        assert sum(CATEGORY_WEIGHTS.values()) == pytest.approx(1.0)
        assert set(CATEGORY_WEIGHTS) == set(Category)

    def test_no_diagnostics_no_bonus(self) -> None:
        """A clean category without bonus scores exactly 100."""
        assert score_category(Category.STRUCTURE, [], []) == 100

    def test_severity_costs(self) -> None:
        diagnostics = [_diag(Severity.ERROR), _diag(Severity.WARNING), _diag(Severity.INFO)]
        assert score_category(Category.STRUCTURE, diagnostics, []) == 100 - 15 - 5 - 1

    def test_many_criticals_floor_at_zero(self) -> None:
        diagnostics = [_diag(Severity.CRITICAL)] * 10
        assert score_category(Category.STRUCTURE, diagnostics, []) == 0

    def test_info_deduction_is_capped(self) -> None:
        diagnostics = [_diag(Severity.INFO)] * 50
        assert score_category(Category.STRUCTURE, diagnostics, []) == 80

    def test_runtime_warnings_cost_less(self) -> None:
        assert severity_cost(Category.RUNTIME, Severity.WARNING) == 3
        assert severity_cost(Category.RUNTIME, Severity.ERROR) == 15
        assert severity_cost(Category.SECURITY, Severity.WARNING) == 5

    def test_bonus_cannot_exceed_max(self) -> None:
        """Skill safety without skills earns a bonus but stays at 100."""
        assert compute_bonus(Category.SKILL_SAFETY, []) == 10
        assert score_category(Category.SKILL_SAFETY, [], []) == 100


class TestBonuses:
    """Tests for compute_bonus."""

    def test_completeness_key_files(self) -> None:
        docs = [parse_document("x", "SOUL.md"), parse_document("x", "USER.md")]
        assert compute_bonus(Category.COMPLETENESS, docs) == 4

    def test_memory_signals(self) -> None:
        docs = [
            parse_document("x", "MEMORY.md"),
            parse_document("x", "HEARTBEAT.md"),
            parse_document("x", "memory/2024-05-01.md"),
        ]
        assert compute_bonus(Category.MEMORY, docs) == 5 + 3 + 5

    def test_runtime_env_token_and_policies(self) -> None:
        config = (
            '{"gateway": {"auth": {"token": "${GATEWAY_TOKEN}"}},'
            ' "channels": {"telegram": {"groupPolicy": "allowlist", "dmPolicy": "pairing"}}}'
        )
        docs = [parse_document(config, "openclaw.json")]
        assert compute_bonus(Category.RUNTIME, docs) == 5 + 10 + 5 + 5 + 5

    def test_consistency_uppercase_names(self) -> None:
        docs = [parse_document("x", "CLAUDE.md"), parse_document("x", "SOUL.md")]
        assert compute_bonus(Category.CONSISTENCY, docs) == 5
        docs.append(parse_document("x", "notes.md"))
        assert compute_bonus(Category.CONSISTENCY, docs) == 0

    def test_skill_frontmatter(self) -> None:
        docs = [parse_document("---\nname: deploy\n---", "skills/deploy/SKILL.md")]
        assert compute_bonus(Category.SKILL_SAFETY, docs) == 5
        docs = [parse_document("# Deploy", "skills/deploy/SKILL.md")]
        assert compute_bonus(Category.SKILL_SAFETY, docs) == 0


class TestScoreTotal:
    """Tests for the weighted total."""

    def test_weighted_sum(self) -> None:
        entries = [
            CategoryScore(category, 100 if category != Category.CLARITY else 50, weight)
            for category, weight in CATEGORY_WEIGHTS.items()
        ]
        # 100 - 0.20 * 50
        assert score_total(entries) == 90

    def test_all_perfect(self) -> None:
        entries = [CategoryScore(c, 100, w) for c, w in CATEGORY_WEIGHTS.items()]
        assert score_total(entries) == 100

    def test_sort_key(self) -> None:
        diagnostics = [
            _diag(Severity.INFO, file="A.md"),
            _diag(Severity.ERROR, file="B.md", line=3),
            _diag(Severity.ERROR, file="B.md"),
            _diag(Severity.CRITICAL, file="Z.md"),
        ]
        ordered = sorted(diagnostics, key=sort_key)
        assert [(d.severity, d.line) for d in ordered] == [
            (Severity.CRITICAL, None),
            (Severity.ERROR, None),
            (Severity.ERROR, 3),
            (Severity.INFO, None),
        ]


class TestLint:
    """End-to-end tests for lint()."""

    def test_empty_workspace(self, make_workspace) -> None:
        result = lint(make_workspace({}))
        assert 0 <= result.total_score <= 100
        assert [entry.category for entry in result.categories] == list(CATEGORY_WEIGHTS)
        assert any(d.rule == "structure/has-main-file" for d in result.criticals)

    def test_diagnostics_are_sorted(self, make_workspace) -> None:
        result = lint(make_workspace({"notes.md": "be helpful etc"}))
        assert list(result.diagnostics) == sorted(result.diagnostics, key=sort_key)

    def test_duplicate_instruction_scenario(self, write_files, tmp_path) -> None:
        """One shared bullet costs the consistency category one warning."""
        root = write_files(
            {
                "CLAUDE.md": (
                    "# Project Guide\n\n"
                    "## Workflow\n"
                    "- Always ask before deleting files\n"
                    "- Run the full test suite before each commit\n\n"
                    "## Style\n"
                    "- Keep functions short and focused\n"
                ),
                "SOUL.md": (
                    "# Soul\n\n"
                    "- Always ask before deleting files\n"
                    "- Explain each change in plain words\n"
                ),
            }
        )
        workspace = scan_workspace(root, home=tmp_path / "home")
        result = lint(workspace)

        consistency = result.category(Category.CONSISTENCY)
        assert len(consistency.diagnostics) == 1
        duplicate = consistency.diagnostics[0]
        assert duplicate.rule == "consistency/no-duplicate-instructions"
        assert duplicate.file == "SOUL.md"
        assert duplicate.line == 3
        assert consistency.score == clamp_score(
            100 - 5 + compute_bonus(Category.CONSISTENCY, workspace.documents)
        )

    def test_failed_rules_are_reported(self, make_workspace) -> None:
        class Broken:
            rule_id = "structure/broken"
            category = Category.STRUCTURE
            severity = Severity.ERROR
            description = "always raises"
            applicable_contexts = None

            def check(self, documents):
                raise ValueError("bad")

        result = lint(make_workspace({"CLAUDE.md": "# x"}), rules=[Broken()])
        assert result.failed_rules == ("structure/broken",)
        assert result.category(Category.STRUCTURE).diagnostics == ()


class TestDuplicateInstructionTotals:
    """End-to-end totals with only the duplicate-instruction rule enabled."""

    ENTRY = (
        "# Project Guide\n\n"
        "## Workflow\n"
        "- Always ask before deleting files\n\n"
        "## Style\n"
        "- Keep functions short and focused\n\n"
        "## Review\n"
        "- Explain each change in plain words\n"
    )

    def test_one_duplicate(self, make_workspace) -> None:
        workspace = make_workspace(
            {"CLAUDE.md": self.ENTRY, "notes.md": "- Always ask before deleting files\n"}
        )
        assert len(workspace.get("CLAUDE.md").sections) == 3

        result = lint(workspace, rules=[NoDuplicateInstructionsRule()])

        assert compute_bonus(Category.CONSISTENCY, workspace.documents) == 0
        assert result.category(Category.CONSISTENCY).score == 95
        assert all(
            entry.score == 100 for entry in result.categories if entry.category != "consistency"
        )
        # 0.92 * 100 + 0.08 * 95 = 99.6
        assert result.total_score == 100
        assert result.total_score == score_total(result.categories)

    def test_two_duplicates_lower_the_total(self, make_workspace) -> None:
        workspace = make_workspace(
            {
                "CLAUDE.md": self.ENTRY,
                "notes.md": (
                    "- Always ask before deleting files\n"
                    "- Explain each change in plain words\n"
                ),
            }
        )

        result = lint(workspace, rules=[NoDuplicateInstructionsRule()])

        duplicates = result.category(Category.CONSISTENCY).diagnostics
        assert [(d.file, d.line) for d in duplicates] == [("notes.md", 1), ("notes.md", 2)]
        assert result.category(Category.CONSISTENCY).score == 90
        # 0.92 * 100 + 0.08 * 90 = 99.2
        assert result.total_score == 99
