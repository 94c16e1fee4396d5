"""Tests for agentlint.scanner."""

from __future__ import annotations

import pytest

from agentlint.exceptions import DocumentReadError, ResourceNotFoundError
from agentlint.linting.models import LintContext
from agentlint.scanner import discover_files, read_document_text, scan_workspace


class TestDiscoverFiles:
    """Tests for discover_files."""

    def test_known_locations(self, write_files, tmp_path) -> None:
        root = write_files(
            {
                "CLAUDE.md": "# Guide",
                "SOUL.md": "# Soul",
                "README.md": "not an agent file",
                ".claude/agents/reviewer.md": "reviewer",
                ".claude/rules/api.md": "rules",
                ".claude/settings.json": "{}",
                "memory/2024-05-01.md": "note",
                "skills/deploy/SKILL.md": "---",
                "skills/deploy/run.sh": "#!/bin/sh",
                "skills/deploy/data.csv": "a,b",
            }
        )
        names = [name for name, _ in discover_files(root, tmp_path / "home")]
        assert names == [
            "CLAUDE.md",
            "SOUL.md",
            ".claude/agents/reviewer.md",
            ".claude/rules/api.md",
            ".claude/settings.json",
            "memory/2024-05-01.md",
            "skills/deploy/SKILL.md",
            "skills/deploy/run.sh",
        ]

    def test_skips_hidden_and_node_modules(self, write_files, tmp_path) -> None:
        root = write_files(
            {
                "skills/a/SKILL.md": "---",
                "skills/a/node_modules/pkg/README.md": "dep",
                "skills/.cache/SKILL.md": "hidden",
            }
        )
        names = [name for name, _ in discover_files(root, tmp_path / "home")]
        assert names == ["skills/a/SKILL.md"]

    def test_skill_depth_limit(self, write_files, tmp_path) -> None:
        root = write_files(
            {
                "skills/a/b/c/SKILL.md": "shallow enough",
                "skills/a/b/c/d/e/SKILL.md": "too deep",
            }
        )
        names = [name for name, _ in discover_files(root, tmp_path / "home")]
        assert names == ["skills/a/b/c/SKILL.md"]

    def test_home_skills_are_included(self, write_files, tmp_path) -> None:
        write_files(
            {
                "project/CLAUDE.md": "# Guide",
                "home/.clawdbot/skills/notes/SKILL.md": "---",
            }
        )
        names = [name for name, _ in discover_files(tmp_path / "project", tmp_path / "home")]
        assert names == ["CLAUDE.md", "skills/notes/SKILL.md"]

    def test_duplicate_skill_names_keep_first(self, write_files, tmp_path) -> None:
        write_files(
            {
                "project/skills/notes/SKILL.md": "local",
                "home/.openclaw/skills/notes/SKILL.md": "shared",
            }
        )
        found = discover_files(tmp_path / "project", tmp_path / "home")
        assert len(found) == 1
        assert found[0][1] == tmp_path / "project/skills/notes/SKILL.md"

    def test_home_runtime_config_only_when_scanning_home(self, write_files, tmp_path) -> None:
        write_files(
            {
                "project/AGENTS.md": "# Agent",
                "home/.openclaw/openclaw.json": "{}",
            }
        )
        project_names = [n for n, _ in discover_files(tmp_path / "project", tmp_path / "home")]
        home_names = [n for n, _ in discover_files(tmp_path / "home", tmp_path / "home")]
        assert "openclaw.json" not in project_names
        assert home_names == ["openclaw.json"]

    def test_gitignore_read_with_local_memory(self, write_files, tmp_path) -> None:
        root = write_files(
            {
                "CLAUDE.md": "# Guide",
                "CLAUDE.local.md": "- my notes",
                ".gitignore": "node_modules/",
            }
        )
        names = [name for name, _ in discover_files(root, tmp_path / "home")]
        assert "CLAUDE.local.md" in names
        assert names[-1] == ".gitignore"

    def test_gitignore_skipped_without_local_memory(self, write_files, tmp_path) -> None:
        root = write_files({"CLAUDE.md": "# Guide", ".gitignore": "node_modules/"})
        names = [name for name, _ in discover_files(root, tmp_path / "home")]
        assert names == ["CLAUDE.md"]


class TestScanWorkspace:
    """Tests for scan_workspace."""

    def test_detects_context(self, write_files, tmp_path) -> None:
        root = write_files({"CLAUDE.md": "# Guide"})
        workspace = scan_workspace(root, home=tmp_path / "home")
        assert workspace.context == LintContext.CLAUDE_CODE
        assert workspace.documents[0].context == LintContext.CLAUDE_CODE
        assert workspace.documents[0].path == str(root / "CLAUDE.md")

    def test_nested_names_do_not_drive_context(self, write_files, tmp_path) -> None:
        root = write_files({"claude/AGENTS.md": "x"})
        workspace = scan_workspace(root, home=tmp_path / "home")
        assert workspace.context == LintContext.UNIVERSAL

    def test_context_override(self, write_files, tmp_path) -> None:
        root = write_files({"CLAUDE.md": "# Guide"})
        workspace = scan_workspace(
            root, home=tmp_path / "home", context=LintContext.OPENCLAW_RUNTIME
        )
        assert workspace.context == LintContext.OPENCLAW_RUNTIME

    def test_empty_workspace(self, tmp_path) -> None:
        workspace = scan_workspace(tmp_path, home=tmp_path / "home")
        assert workspace.documents == ()
        assert workspace.context == LintContext.UNIVERSAL

    def test_missing_root(self, tmp_path) -> None:
        with pytest.raises(ResourceNotFoundError):
            scan_workspace(tmp_path / "missing")

    def test_undecodable_file(self, tmp_path) -> None:
        (tmp_path / "CLAUDE.md").write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(DocumentReadError) as exc_info:
            scan_workspace(tmp_path, home=tmp_path / "home")
        assert exc_info.value.path.endswith("CLAUDE.md")

    def test_read_document_text(self, tmp_path) -> None:
        path = tmp_path / "SOUL.md"
        path.write_text("héllo", encoding="utf-8")
        assert read_document_text(path) == "héllo"
