"""Tests for agentlint.linting.structure_rules size, navigation and layout rules."""

from __future__ import annotations

from agentlint.linting.document import parse_document
from agentlint.linting.models import Severity
from agentlint.linting.structure_rules import (
    ContextBloatRule,
    ExtractInstructionsRule,
    FileSizeRule,
    HasFileMapRule,
    HasVersionOrUpdateDateRule,
    ImportDepthRule,
    ModularFilesRule,
    ProgressiveDisclosureRule,
    RulesPathRule,
    StructureOptimizerRule,
)


def _numbered(prefix: str, count: int) -> str:
    return "\n".join(f"{prefix} {i}" for i in range(count))


class TestSizeRules:
    def test_long_main_file(self) -> None:
        doc = parse_document(_numbered("line", 501), "CLAUDE.md")
        diagnostics = FileSizeRule().check([doc])
        assert len(diagnostics) == 1
        assert diagnostics[0].message.startswith("File is 501 lines.")

    def test_main_file_at_limit(self) -> None:
        assert FileSizeRule().check([parse_document(_numbered("line", 500), "AGENTS.md")]) == []

    def test_other_files_not_measured(self) -> None:
        assert FileSizeRule().check([parse_document(_numbered("line", 900), "SOUL.md")]) == []

    def test_single_long_markdown_file(self) -> None:
        doc = parse_document(_numbered("line", 101), "CLAUDE.md")
        diagnostics = ModularFilesRule().check([doc])
        assert [d.file for d in diagnostics] == ["CLAUDE.md"]

    def test_several_files_are_modular(self) -> None:
        docs = [
            parse_document(_numbered("line", 300), "CLAUDE.md"),
            parse_document("# Soul", "SOUL.md"),
        ]
        assert ModularFilesRule().check(docs) == []

    def test_short_single_file(self) -> None:
        assert ModularFilesRule().check([parse_document(_numbered("line", 100), "CLAUDE.md")]) == []


class TestContextBloatRule:
    rule = ContextBloatRule()

    def test_long_entry_file(self) -> None:
        diagnostics = self.rule.check([parse_document(_numbered("line", 301), "CLAUDE.md")])
        assert [d.severity for d in diagnostics] == [Severity.ERROR]
        assert diagnostics[0].message.startswith("301 lines detected.")

    def test_repeated_line(self) -> None:
        repeated = "- Always run the full test suite first"
        doc = parse_document("\n".join([repeated, "a", repeated, "b", repeated]), "CLAUDE.md")
        diagnostics = self.rule.check([doc])
        assert len(diagnostics) == 1
        assert diagnostics[0].severity == Severity.WARNING
        assert diagnostics[0].line == 1
        assert "(lines: 1, 3, 5)" in diagnostics[0].message

    def test_short_lines_and_pairs_pass(self) -> None:
        repeated = "- Always run the full test suite first"
        doc = parse_document("\n".join([repeated, "ok", "ok", "ok", repeated]), "CLAUDE.md")
        assert self.rule.check([doc]) == []


class TestProgressiveDisclosureRule:
    rule = ProgressiveDisclosureRule()

    def test_flat_instruction_list(self) -> None:
        doc = parse_document("## Steps\n" + _numbered("- item", 20), "CLAUDE.md")
        diagnostics = self.rule.check([doc])
        assert len(diagnostics) == 1
        assert diagnostics[0].message.startswith("20 instructions without priority grouping.")

    def test_priority_heading(self) -> None:
        doc = parse_document("## Critical Rules\n" + _numbered("- item", 20), "CLAUDE.md")
        assert self.rule.check([doc]) == []

    def test_short_list(self) -> None:
        doc = parse_document("## Steps\n" + _numbered("- item", 19), "CLAUDE.md")
        assert self.rule.check([doc]) == []


class TestNavigationRules:
    def _workspace(self, main: str) -> list:
        others = ["SOUL.md", "USER.md", "TOOLS.md", "MEMORY.md", "SECURITY.md"]
        return [parse_document(main, "CLAUDE.md")] + [
            parse_document("# Notes", name) for name in others
        ]

    def test_missing_file_map(self) -> None:
        diagnostics = HasFileMapRule().check(self._workspace("# Guide\nBe brief."))
        assert [d.file for d in diagnostics] == ["CLAUDE.md"]

    def test_file_map_present(self) -> None:
        main = "# Guide\n\n## File Map\n```\nCLAUDE.md\nSOUL.md\n```\n"
        assert HasFileMapRule().check(self._workspace(main)) == []

    def test_small_workspace_needs_no_map(self) -> None:
        assert HasFileMapRule().check([parse_document("# Guide", "CLAUDE.md")]) == []

    def test_missing_update_date(self) -> None:
        docs = [
            parse_document("# Guide\nBe brief.", "CLAUDE.md"),
            parse_document("# Tools\nUse git.", "TOOLS.md"),
            parse_document("# Soul\nBe kind.", "SOUL.md"),
        ]
        diagnostics = HasVersionOrUpdateDateRule().check(docs)
        assert [d.file for d in diagnostics] == ["CLAUDE.md", "TOOLS.md"]

    def test_update_date_present(self) -> None:
        doc = parse_document("# Guide\nLast updated: 2026-01-01", "CLAUDE.md")
        assert HasVersionOrUpdateDateRule().check([doc]) == []


class TestImportDepthRule:
    rule = ImportDepthRule()

    def _chain(self, length: int) -> list:
        names = ["CLAUDE.md"] + [f"part{i}.md" for i in range(length)]
        return [
            parse_document(f"@import {target}", name)
            for name, target in zip(names, names[1:], strict=False)
        ]

    def test_deep_chain(self) -> None:
        diagnostics = self.rule.check(self._chain(5))
        assert [d.file for d in diagnostics] == ["CLAUDE.md"]
        assert "depth is 6 levels" in diagnostics[0].message

    def test_shallow_chain(self) -> None:
        assert self.rule.check(self._chain(4)) == []

    def test_cycle_terminates(self) -> None:
        docs = [
            parse_document("@import b.md", "a.md"),
            parse_document("@import a.md", "b.md"),
        ]
        assert self.rule.check(docs) == []


class TestRulesPathRule:
    rule = RulesPathRule()

    def test_no_frontmatter(self) -> None:
        diagnostics = self.rule.check([parse_document("Use tabs.", ".claude/rules/style.md")])
        assert len(diagnostics) == 1
        assert diagnostics[0].message.startswith("Rule file has no frontmatter.")
        assert diagnostics[0].severity == Severity.INFO

    def test_frontmatter_without_paths(self) -> None:
        doc = parse_document("---\ndescription: style\n---\nUse tabs.", ".claude/rules/style.md")
        diagnostics = self.rule.check([doc])
        assert [d.message for d in diagnostics] == [
            "Rule file missing 'paths' field and applies globally."
        ]

    def test_invalid_glob(self) -> None:
        doc = parse_document('---\npaths:\n  - "!!!"\n---\nUse tabs.', ".claude/rules/style.md")
        diagnostics = self.rule.check([doc])
        assert [d.severity for d in diagnostics] == [Severity.WARNING]
        assert '"!!!"' in diagnostics[0].message

    def test_scoped_rule_file(self) -> None:
        doc = parse_document(
            '---\npaths:\n  - "src/**/*.ts"\n---\nUse tabs.', ".claude/rules/style.md"
        )
        assert self.rule.check([doc]) == []

    def test_other_files_ignored(self) -> None:
        assert self.rule.check([parse_document("Use tabs.", "CLAUDE.md")]) == []


class TestExtractInstructionsRule:
    rule = ExtractInstructionsRule()

    def _main(self, note_lines: int) -> str:
        return (
            "# Guide\n## Testing\n"
            + _numbered("- run case", 20)
            + "\n## Notes\n"
            + _numbered("note", note_lines)
        )

    def test_long_topic_section(self) -> None:
        diagnostics = self.rule.check([parse_document(self._main(80), "CLAUDE.md")])
        assert len(diagnostics) == 1
        assert diagnostics[0].message == (
            'Section "Testing" (20 lines) can be extracted to .claude/rules/testing.md'
        )
        assert diagnostics[0].line == 2

    def test_short_entry_file(self) -> None:
        assert self.rule.check([parse_document(self._main(40), "CLAUDE.md")]) == []

    def test_short_section(self) -> None:
        main = "# Guide\n## Testing\n- run pytest\n## Notes\n" + _numbered("note", 120)
        assert self.rule.check([parse_document(main, "CLAUDE.md")]) == []


class TestStructureOptimizerRule:
    rule = StructureOptimizerRule()

    def test_bare_instruction_list(self) -> None:
        doc = parse_document("# Rules\n" + _numbered("- Run lint", 12), "CLAUDE.md")
        diagnostics = self.rule.check([doc])
        assert [(d.message, d.line) for d in diagnostics] == [
            ('Section "Rules" has instructions without context/rationale.', 1)
        ]

    def test_list_with_rationale(self) -> None:
        content = "# Rules\nWe lint because review time is short.\n" + _numbered("- Run lint", 12)
        assert self.rule.check([parse_document(content, "CLAUDE.md")]) == []

    def test_long_file_without_why_what_how(self) -> None:
        doc = parse_document("# Overview\n" + _numbered("plain line", 85), "CLAUDE.md")
        diagnostics = self.rule.check([doc])
        assert len(diagnostics) == 1
        assert diagnostics[0].message.startswith("Consider WHY/WHAT/HOW structure")
        assert diagnostics[0].line is None

    def test_long_file_with_why_heading(self) -> None:
        content = "# Why\n" + _numbered("plain line", 85)
        assert self.rule.check([parse_document(content, "CLAUDE.md")]) == []
