"""Tests for agentlint.linting.runtime_rules."""

from __future__ import annotations

import json

import pytest

from agentlint.linting.document import parse_document
from agentlint.linting.models import Category, LintContext, Severity
from agentlint.linting.rules import RuleEngine
from agentlint.linting.runtime_rules import (
    ConfigValidJsonRule,
    DmPolicyRule,
    GatewayAuthTokenRule,
    GroupPolicyRule,
    HookScriptsRule,
    McpServerConfigRule,
    SuggestHooksRule,
    is_restrictive_dm_policy,
    is_strong_token,
    load_runtime_config,
)
from agentlint.linting.scoring import lint


def _config(data: dict, name: str = "openclaw.json"):
    return parse_document(json.dumps(data, indent=2), name)


class TestConfigValidJsonRule:
    rule = ConfigValidJsonRule()

    def test_invalid_json(self) -> None:
        doc = parse_document('{\n  "gateway": \n}', "openclaw.json")
        diagnostics = self.rule.check([doc])
        assert len(diagnostics) == 1
        assert diagnostics[0].severity == Severity.ERROR
        assert diagnostics[0].line == 3

    def test_valid_json(self) -> None:
        assert self.rule.check([_config({"gateway": {}})]) == []


OVERSIZED_INTEGER = '{"gateway": {"port": ' + "1" * 5000 + "}}"
DEEPLY_NESTED = "[" * 100000 + "]" * 100000


class TestUndecodableConfig:
    @pytest.mark.parametrize("content", [OVERSIZED_INTEGER, DEEPLY_NESTED])
    def test_reported_as_invalid_json(self, content: str) -> None:
        diagnostics = ConfigValidJsonRule().check([parse_document(content, "openclaw.json")])
        assert len(diagnostics) == 1
        assert diagnostics[0].message.startswith("Invalid JSON:")
        assert diagnostics[0].line == 1

    @pytest.mark.parametrize("content", [OVERSIZED_INTEGER, DEEPLY_NESTED])
    def test_runtime_config_is_unavailable(self, content: str) -> None:
        assert load_runtime_config([parse_document(content, "openclaw.json")]) is None

    @pytest.mark.parametrize("content", [OVERSIZED_INTEGER, DEEPLY_NESTED])
    def test_lint_completes(self, make_workspace, content: str) -> None:
        workspace = make_workspace(
            {"CLAUDE.md": "# Project\n\nBe helpful.\n", "openclaw.json": content},
            context=LintContext.OPENCLAW_RUNTIME,
        )
        result = lint(workspace)
        assert result.failed_rules == ()
        runtime = next(c for c in result.categories if c.category == Category.RUNTIME)
        assert "runtime/config-valid-json" in {d.rule for d in runtime.diagnostics}

    @pytest.mark.parametrize("content", [OVERSIZED_INTEGER, DEEPLY_NESTED])
    def test_mcp_config_reported(self, content: str) -> None:
        diagnostics = McpServerConfigRule().check([parse_document(content, ".claude/mcp.json")])
        assert [d.severity for d in diagnostics] == [Severity.ERROR]


class TestGatewayAuthTokenRule:
    rule = GatewayAuthTokenRule()

    def test_missing_token(self) -> None:
        diagnostics = self.rule.check([_config({"gateway": {}})])
        assert [d.severity for d in diagnostics] == [Severity.WARNING]

    def test_weak_token(self) -> None:
        diagnostics = self.rule.check([_config({"gateway": {"auth": {"token": "short"}}})])
        assert [d.severity for d in diagnostics] == [Severity.ERROR]

    def test_hardcoded_strong_token(self) -> None:
        token = "x" * 40
        diagnostics = self.rule.check([_config({"gateway": {"auth": {"token": token}}})])
        assert [d.severity for d in diagnostics] == [Severity.INFO]

    def test_env_reference(self) -> None:
        doc = _config({"gateway": {"auth": {"token": "${GATEWAY_TOKEN}"}}})
        assert self.rule.check([doc]) == []

    def test_no_runtime_config(self) -> None:
        assert self.rule.check([parse_document("# x", "AGENTS.md")]) == []

    def test_is_strong_token(self) -> None:
        assert is_strong_token("${TOKEN}")
        assert is_strong_token("y" * 32)
        assert not is_strong_token("y" * 31)


class TestChannelPolicies:
    def test_open_group_policy(self) -> None:
        doc = _config({"channels": {"discord": {"groupPolicy": "open"}}})
        diagnostics = GroupPolicyRule().check([doc])
        assert len(diagnostics) == 1
        assert '"discord"' in diagnostics[0].message

    def test_open_dm_policy(self) -> None:
        doc = _config({"channels": {"telegram": {"dmPolicy": "open"}}})
        diagnostics = DmPolicyRule().check([doc])
        assert len(diagnostics) == 1
        assert diagnostics[0].severity == Severity.ERROR

    def test_open_dm_policy_with_allowlist(self) -> None:
        settings = {"dmPolicy": "open", "allowFrom": ["+15550100"]}
        assert is_restrictive_dm_policy(settings)
        doc = _config({"channels": {"telegram": settings}})
        assert DmPolicyRule().check([doc]) == []

    def test_dm_policy_only_for_runtime_context(self, make_workspace) -> None:
        config = json.dumps({"channels": {"telegram": {"dmPolicy": "open"}}})
        rule = DmPolicyRule()

        claude = make_workspace({"openclaw.json": config}, context=LintContext.CLAUDE_CODE)
        assert RuleEngine([rule]).run(claude).diagnostics == ()

        runtime = make_workspace({"openclaw.json": config}, context=LintContext.OPENCLAW_RUNTIME)
        assert len(RuleEngine([rule]).run(runtime).diagnostics) == 1


class TestMcpServerConfigRule:
    rule = McpServerConfigRule()

    def test_missing_servers(self) -> None:
        diagnostics = self.rule.check([_config({}, ".claude/mcp.json")])
        assert len(diagnostics) == 1

    def test_server_without_command(self) -> None:
        doc = _config({"mcpServers": {"search": {"args": []}}}, ".claude/mcp.json")
        diagnostics = self.rule.check([doc])
        assert [d.severity for d in diagnostics] == [Severity.ERROR]

    def test_npx_without_yes(self) -> None:
        doc = _config(
            {"mcpServers": {"search": {"command": "npx", "args": ["@acme/search"]}}},
            ".claude/mcp.json",
        )
        diagnostics = self.rule.check([doc])
        assert len(diagnostics) == 1
        assert "-y" in diagnostics[0].message

    def test_npx_with_yes(self) -> None:
        doc = _config(
            {"mcpServers": {"search": {"command": "npx", "args": ["-y", "@acme/search"]}}},
            ".claude/mcp.json",
        )
        assert self.rule.check([doc]) == []


class TestHooks:
    def test_hook_missing_shebang(self) -> None:
        doc = parse_document("echo hi", "skills/format/hooks/post.sh")
        diagnostics = HookScriptsRule().check([doc])
        assert [d.severity for d in diagnostics] == [Severity.WARNING]

    def test_hook_ok(self) -> None:
        doc = parse_document('#!/usr/bin/env bash\nset -e\necho "${FILE}"', "skills/x/run.sh")
        assert HookScriptsRule().check([doc]) == []

    def test_suggest_hooks(self) -> None:
        doc = parse_document("- Always run tests before commit", "CLAUDE.md")
        diagnostics = SuggestHooksRule().check([doc])
        assert len(diagnostics) == 1
        assert diagnostics[0].file == "CLAUDE.md"

    def test_no_suggestion_when_hooks_configured(self) -> None:
        docs = [
            parse_document("- Always run tests before commit", "CLAUDE.md"),
            parse_document('{"hooks": {}}', ".claude/settings.json"),
        ]
        assert SuggestHooksRule().check(docs) == []
