"""Runtime rules: gateway configuration, MCP servers and hooks.

Runtime rules see the complete document set, including skill files and the
JSON configuration documents, because hook scripts usually live under
``skills/``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from agentlint.linting.common import (
    MAIN_FILE_NAMES,
    diagnostic,
    find_document,
    load_json_document,
)
from agentlint.linting.models import Category, Diagnostic, Document, LintContext, Severity

RUNTIME_CONFIG_NAMES = ("openclaw.json", "clawdbot.json")
MCP_CONFIG_NAME = ".claude/mcp.json"
SETTINGS_NAME = ".claude/settings.json"

STRONG_TOKEN_LENGTH = 32
HOOK_SET_E_MIN_LINES = 10

ENV_REF_RE = re.compile(r"\$\{[A-Za-z_][A-Za-z0-9_]*\}")
_UNQUOTED_EXPANSION_RE = re.compile(r"\$[A-Z_]+(?!\{)")

ENFORCEABLE_PATTERNS = (
    (
        re.compile(
            r"\b(?:run|execute)\s+(?:tests?|lint|linter|format|formatter|check)\b", re.IGNORECASE
        ),
        "test/lint/format",
    ),
    (
        re.compile(r"\b(?:always|must|should)\s+(?:run|execute)\s+\w+\s+(?:before|after)\b",
                   re.IGNORECASE),
        "pre/post action",
    ),
    (re.compile(r"\bnpx?\s+(?:tsc|eslint|prettier|vitest|jest)\b", re.IGNORECASE),
     "tool invocation"),
    (re.compile(r"\b(?:before|after)\s+(?:commit|push|merge|deploy)\b", re.IGNORECASE),
     "git hook pattern"),
    (re.compile(r"\bformat\s+(?:code|files?|on\s+save)\b", re.IGNORECASE), "auto-format"),
    (re.compile(r"\b(?:type[- ]?check|typecheck)\b", re.IGNORECASE), "type checking"),
)


def find_runtime_config(documents: Sequence[Document]) -> Document | None:
    """The gateway configuration document, if the workspace has one."""
    return find_document(documents, *RUNTIME_CONFIG_NAMES)


def load_runtime_config(documents: Sequence[Document]) -> dict[str, Any] | None:
    """The parsed gateway configuration, or ``None`` when absent or not a JSON object."""
    document = find_runtime_config(documents)
    if document is None:
        return None
    try:
        config = load_json_document(document)
    except json.JSONDecodeError:
        return None
    return config if isinstance(config, dict) else None


def gateway_token(config: Mapping[str, Any]) -> str | None:
    """``gateway.auth.token`` when it is a string."""
    gateway = config.get("gateway")
    auth = gateway.get("auth") if isinstance(gateway, Mapping) else None
    token = auth.get("token") if isinstance(auth, Mapping) else None
    return token if isinstance(token, str) else None


def is_strong_token(token: str) -> bool:
    """An environment reference or a literal of at least 32 characters."""
    return token.startswith("${") or len(token) >= STRONG_TOKEN_LENGTH


def iter_channels(config: Mapping[str, Any]) -> Iterator[tuple[str, Mapping[str, Any]]]:
    """Yield ``(name, settings)`` for every channel block in the configuration."""
    channels = config.get("channels")
    if not isinstance(channels, Mapping):
        return
    for name, settings in channels.items():
        if isinstance(settings, Mapping):
            yield name, settings


def is_restrictive_dm_policy(settings: Mapping[str, Any]) -> bool:
    """Pairing, or an open policy narrowed by a non-empty ``allowFrom`` list."""
    policy = settings.get("dmPolicy")
    if policy == "pairing":
        return True
    return policy == "open" and bool(settings.get("allowFrom"))


def is_hook_script(document: Document) -> bool:
    """True for shell scripts and anything under a ``hooks/`` directory."""
    return "/hooks/" in document.name or document.name.endswith((".sh", ".bash"))


class ConfigValidJsonRule:
    """JSON configuration files must parse."""

    rule_id = "runtime/config-valid-json"
    category = Category.RUNTIME
    severity = Severity.ERROR
    description = "Runtime and settings JSON files must be valid JSON"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report the decoder error for each broken configuration file."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if doc.name not in (*RUNTIME_CONFIG_NAMES, SETTINGS_NAME):
                continue
            try:
                load_json_document(doc)
            except json.JSONDecodeError as e:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        f"Invalid JSON: {e.msg}",
                        line=e.lineno,
                        fix="Fix the JSON syntax; the runtime refuses to start with a broken "
                        "config.",
                    )
                )
        return diagnostics


class GatewayAuthTokenRule:
    """The gateway must be protected by a strong token."""

    rule_id = "runtime/gateway-auth-token"
    category = Category.RUNTIME
    severity = Severity.WARNING
    description = "Gateway auth token should be set and sourced from the environment"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Check ``gateway.auth.token`` in the runtime configuration."""
        document = find_runtime_config(documents)
        config = load_runtime_config(documents)
        if document is None or config is None:
            return []
        token = gateway_token(config)
        if token is None:
            return [
                diagnostic(
                    self,
                    document.name,
                    "No gateway auth token configured. Anyone who can reach the gateway can "
                    "control the agent.",
                    fix='Set gateway.auth.token to "${GATEWAY_TOKEN}".',
                )
            ]
        if not is_strong_token(token):
            return [
                diagnostic(
                    self,
                    document.name,
                    f"Gateway auth token is only {len(token)} characters long.",
                    fix=f"Use a random token of at least {STRONG_TOKEN_LENGTH} characters, "
                    "loaded from an environment variable.",
                    severity=Severity.ERROR,
                )
            ]
        if not token.startswith("${"):
            return [
                diagnostic(
                    self,
                    document.name,
                    "Gateway auth token is hardcoded in the config file.",
                    fix='Reference it as "${GATEWAY_TOKEN}" instead.',
                    severity=Severity.INFO,
                )
            ]
        return []


class GroupPolicyRule:
    """Group chats should be allowlisted."""

    rule_id = "runtime/group-policy"
    category = Category.RUNTIME
    severity = Severity.WARNING
    description = "Channels should restrict which groups the agent answers in"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag channels whose group policy is open."""
        document = find_runtime_config(documents)
        config = load_runtime_config(documents)
        if document is None or config is None:
            return []
        return [
            diagnostic(
                self,
                document.name,
                f'Channel "{name}" answers in any group (groupPolicy: open).',
                fix='Set groupPolicy to "allowlist" and list the allowed groups.',
            )
            for name, settings in iter_channels(config)
            if settings.get("groupPolicy") == "open"
        ]


class DmPolicyRule:
    """Direct messages should require pairing or an allowlist."""

    rule_id = "runtime/dm-policy"
    category = Category.RUNTIME
    severity = Severity.ERROR
    description = "Open DM policies must be narrowed with allowFrom"
    applicable_contexts = frozenset({LintContext.OPENCLAW_RUNTIME})

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag channels that accept DMs from anyone."""
        document = find_runtime_config(documents)
        config = load_runtime_config(documents)
        if document is None or config is None:
            return []
        return [
            diagnostic(
                self,
                document.name,
                f'Channel "{name}" accepts direct messages from anyone.',
                fix='Use dmPolicy "pairing", or keep "open" with a non-empty allowFrom list.',
            )
            for name, settings in iter_channels(config)
            if settings.get("dmPolicy") == "open" and not is_restrictive_dm_policy(settings)
        ]


class McpServerConfigRule:
    """Validate ``.claude/mcp.json`` server entries."""

    rule_id = "runtime/mcp-server-config"
    category = Category.RUNTIME
    severity = Severity.WARNING
    description = "MCP server configuration should be complete and non-interactive"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Check structure, command/url presence and ``npx -y`` usage."""
        document = next(
            (doc for doc in documents if doc.name.endswith(MCP_CONFIG_NAME)), None
        )
        if document is None:
            return []
        try:
            config = load_json_document(document)
        except json.JSONDecodeError as e:
            return [
                diagnostic(
                    self,
                    document.name,
                    f"Invalid JSON in MCP config: {e.msg}",
                    line=e.lineno,
                    fix="Fix JSON syntax errors.",
                    severity=Severity.ERROR,
                )
            ]
        if not isinstance(config, dict):
            config = {}

        diagnostics: list[Diagnostic] = []
        servers = config.get("mcpServers") or config.get("servers")
        if servers is None:
            diagnostics.append(
                diagnostic(
                    self,
                    document.name,
                    "MCP config missing 'mcpServers' or 'servers' field.",
                    fix="Add an 'mcpServers' object with your server configurations.",
                )
            )
        if not isinstance(servers, dict):
            return diagnostics

        for name, server in servers.items():
            if not isinstance(server, dict):
                continue
            command = server.get("command")
            if not command and not server.get("url"):
                diagnostics.append(
                    diagnostic(
                        self,
                        document.name,
                        f'MCP server "{name}" missing \'command\' or \'url\' field.',
                        fix="Add 'command' for local servers or 'url' for remote servers.",
                        severity=Severity.ERROR,
                    )
                )
            if isinstance(command, str) and "npx" in command and "-y" not in command:
                args = server.get("args") or []
                if "-y" not in args:
                    diagnostics.append(
                        diagnostic(
                            self,
                            document.name,
                            f'MCP server "{name}" uses npx without -y. It may block on an '
                            "interactive prompt.",
                            fix="Add the -y flag: 'npx -y @package/name'.",
                        )
                    )
        return diagnostics


class HookScriptsRule:
    """Hook scripts should fail fast and quote their variables."""

    rule_id = "runtime/hook-scripts"
    category = Category.RUNTIME
    severity = Severity.INFO
    description = "Hook scripts should have a shebang and use safe shell options"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Check shebang, ``set -e`` and unquoted expansions per hook script."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not is_hook_script(doc):
                continue
            if not doc.lines or not doc.lines[0].startswith("#!"):
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Hook file missing shebang line.",
                        line=1,
                        fix="Add as first line: #!/usr/bin/env bash",
                        severity=Severity.WARNING,
                    )
                )
            if "set -e" not in doc.content and len(doc.lines) > HOOK_SET_E_MIN_LINES:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Hook doesn't use 'set -e' (exit on error).",
                        fix="Add 'set -e' near the top to fail fast on errors.",
                    )
                )
            for index, line in enumerate(doc.lines):
                if line.strip().startswith("#"):
                    continue
                if len(_UNQUOTED_EXPANSION_RE.findall(line)) > 2:
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            'Unquoted variable expansion detected. Use "${VAR}".',
                            line=index + 1,
                            fix='Quote variables: "${VAR}" instead of $VAR.',
                        )
                    )
                    break
        return diagnostics


class SuggestHooksRule:
    """Rules a hook could enforce should be enforced by one."""

    rule_id = "runtime/suggest-hooks"
    category = Category.RUNTIME
    severity = Severity.INFO
    description = "Enforceable rules in CLAUDE.md can be automated with hooks"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Suggest hooks when the entry files ask for test/lint/format runs."""
        settings = next((doc for doc in documents if doc.name.endswith(SETTINGS_NAME)), None)
        if settings is not None and '"hooks"' in settings.content:
            return []
        entry_files = [doc for doc in documents if doc.name in MAIN_FILE_NAMES]
        labels: dict[str, None] = {}
        for doc in entry_files:
            for line in doc.lines:
                for pattern, label in ENFORCEABLE_PATTERNS:
                    if pattern.search(line):
                        labels.setdefault(label)
        if not labels:
            return []
        return [
            diagnostic(
                self,
                entry_files[0].name,
                f"Found enforceable rules ({', '.join(labels)}) but no hooks configured. "
                "Hooks can enforce these automatically.",
                fix="Add a PostToolUse hook to .claude/settings.json that runs the check.",
            )
        ]


RUNTIME_RULES = [
    ConfigValidJsonRule(),
    GatewayAuthTokenRule(),
    GroupPolicyRule(),
    DmPolicyRule(),
    McpServerConfigRule(),
    HookScriptsRule(),
    SuggestHooksRule(),
]
