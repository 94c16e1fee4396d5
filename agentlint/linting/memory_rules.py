"""Memory rules: session continuity and knowledge persistence.

Most checks only make sense for long-running agents, so they are limited to
the openclaw-runtime context.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from agentlint.linting.common import (
    MAIN_FILE_NAMES,
    WORKSPACE,
    KeywordPresenceRule,
    all_content,
    diagnostic,
    find_document,
)
from agentlint.linting.models import Category, Diagnostic, Document, LintContext, Severity

_RUNTIME_ONLY = frozenset({LintContext.OPENCLAW_RUNTIME})

_MEMORY_HEADING_RE = re.compile(
    r"memory|continuity|persistence|handoff|session", re.IGNORECASE
)
_MEMORY_KEYWORDS_RE = re.compile(
    r"memory.*system|session.*continuity|persist.*across|between.*sessions|context.*window",
    re.IGNORECASE,
)
_WRITE_IT_DOWN_RE = re.compile(
    r"write.*it.*down|don'?t.*rely.*on.*memory|mental.*note.*don'?t|persist|save.*to.*file",
    re.IGNORECASE,
)
_MEMORY_MENTION_RE = re.compile(r"memory|continuity|handoff|persist", re.IGNORECASE)

AUTO_MEMORY_MAX_LINES = 200
MODULAR_MEMORY_MIN_LINES = 200
LOCAL_MEMORY_FILE = "CLAUDE.local.md"


class HasMemoryStrategyRule:
    """Persistent agents need an explicit continuity strategy."""

    rule_id = "memory/has-memory-strategy"
    category = Category.MEMORY
    severity = Severity.WARNING
    description = "Agent should have an explicit memory/continuity strategy"
    applicable_contexts = _RUNTIME_ONLY

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Accept a memory file, a memory section or memory vocabulary."""
        if any(
            doc.name in ("MEMORY.md", "HEARTBEAT.md") or "memory" in doc.name.lower()
            for doc in documents
        ):
            return []
        if any(
            _MEMORY_HEADING_RE.search(section.heading)
            for doc in documents
            for section in doc.sections
        ):
            return []
        if _MEMORY_KEYWORDS_RE.search(all_content(documents)):
            return []
        return [
            diagnostic(
                self,
                WORKSPACE,
                "No memory strategy defined. The agent will lose all context between sessions.",
                fix="Add a ## Memory section or create MEMORY.md defining how the agent "
                "persists knowledge.",
            )
        ]


class NoMentalNotesRule:
    """A memory strategy should insist on writing things down."""

    rule_id = "memory/no-mental-notes"
    category = Category.MEMORY
    severity = Severity.INFO
    description = "Agent should write things down, not rely on 'mental notes'"
    applicable_contexts = _RUNTIME_ONLY

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Only fires when memory is discussed without a write-it-down principle."""
        content = all_content(documents)
        if not _MEMORY_MENTION_RE.search(content) or _WRITE_IT_DOWN_RE.search(content):
            return []
        return [
            diagnostic(
                self,
                WORKSPACE,
                "Memory strategy exists but lacks an explicit 'write it down' principle. "
                "Mental notes don't survive restarts.",
                fix="Add: 'Write it down. Mental notes don't survive restarts.'",
            )
        ]


class AutoMemoryLineLimitRule:
    """Only the first 200 lines of MEMORY.md are auto-loaded."""

    rule_id = "memory/auto-memory-line-limit"
    category = Category.MEMORY
    severity = Severity.WARNING
    description = "MEMORY.md files should stay under 200 lines"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag memory files longer than the auto-load window."""
        return [
            diagnostic(
                self,
                doc.name,
                f"{doc.base_name} has {len(doc.lines)} lines. Only the first "
                f"{AUTO_MEMORY_MAX_LINES} lines are auto-loaded; the rest is ignored.",
                fix="Split overflow into topic files (e.g., memory/projects.md) and keep "
                f"MEMORY.md as an index under {AUTO_MEMORY_MAX_LINES} lines.",
            )
            for doc in documents
            if "memory.md" in doc.name.lower() and len(doc.lines) > AUTO_MEMORY_MAX_LINES
        ]


class MemoryHierarchyRule:
    """Local memory and modular rules should follow the Claude Code memory layout."""

    rule_id = "memory/memory-hierarchy-awareness"
    category = Category.MEMORY
    severity = Severity.INFO
    description = "Agent configs should align with the Claude Code memory hierarchy"
    applicable_contexts = frozenset({LintContext.CLAUDE_CODE})

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Check that CLAUDE.local.md is git-ignored and long entry files use .claude/rules/."""
        diagnostics: list[Diagnostic] = []

        has_local_memory = any(doc.base_name == LOCAL_MEMORY_FILE for doc in documents)
        gitignore = find_document(documents, ".gitignore")
        if has_local_memory and gitignore is not None:
            if LOCAL_MEMORY_FILE not in gitignore.content:
                diagnostics.append(
                    diagnostic(
                        self,
                        gitignore.name,
                        f"{LOCAL_MEMORY_FILE} (local/personal memory) is not in .gitignore. "
                        "This file should stay private and not be committed.",
                        fix=f"Add {LOCAL_MEMORY_FILE} to .gitignore to prevent accidental "
                        "commits of personal context.",
                        severity=Severity.WARNING,
                    )
                )

        has_rules_dir = any(".claude/rules/" in doc.name for doc in documents)
        long_main = any(
            doc.name in MAIN_FILE_NAMES and len(doc.lines) > MODULAR_MEMORY_MIN_LINES
            for doc in documents
        )
        if long_main and not has_rules_dir:
            diagnostics.append(
                diagnostic(
                    self,
                    WORKSPACE,
                    f"Main config file exceeds {MODULAR_MEMORY_MIN_LINES} lines but no "
                    ".claude/rules/ directory found. Consider modular rules.",
                    fix="Create .claude/rules/ with path-specific rules, e.g. "
                    ".claude/rules/testing.md with paths: ['tests/**'].",
                )
            )
        return diagnostics


MEMORY_RULES = [
    HasMemoryStrategyRule(),
    KeywordPresenceRule(
        rule_id="memory/has-handoff-protocol",
        category=Category.MEMORY,
        severity=Severity.WARNING,
        description="Agent should know how to hand off context between sessions",
        pattern=r"handoff|hand.?off|session.*start|every.*session|bootstrap|wake.*up"
        r"|fresh.*session|new.*session",
        message="No session handoff protocol found. The agent doesn't know what to read or "
        "do when waking up in a new session.",
        fix="Add startup instructions: which files to read first and how to restore context.",
        applicable_contexts=_RUNTIME_ONLY,
        satisfied_by_name=("progress", "handoff", "bootstrap"),
    ),
    KeywordPresenceRule(
        rule_id="memory/has-file-based-notes",
        category=Category.MEMORY,
        severity=Severity.INFO,
        description="File-based memory (daily notes, logs) provides persistence",
        pattern=r"daily.*note|daily.*log|YYYY-MM-DD|memory/|logs?/|journal|write.*down"
        r"|record.*decision",
        message="No file-based memory system (daily notes, logs). Consider structured "
        "note-taking for long-term knowledge.",
        fix="Add a memory/ directory or document a note-taking protocol "
        "(e.g., memory/YYYY-MM-DD.md).",
        applicable_contexts=_RUNTIME_ONLY,
        satisfied_by_name=("memory/", "logs/"),
    ),
    NoMentalNotesRule(),
    KeywordPresenceRule(
        rule_id="memory/has-context-window-awareness",
        category=Category.MEMORY,
        severity=Severity.INFO,
        description="Agent should be aware of context window limitations",
        pattern=r"context.*window|token.*limit|context.*limit|truncat|summariz.*long|compact"
        r"|overflow",
        message="No context window awareness. The agent should know how to handle long "
        "conversations and context overflow.",
        fix="Add guidance for long-context scenarios: when to summarize and how to "
        "prioritize recent context.",
        applicable_contexts=_RUNTIME_ONLY,
    ),
    KeywordPresenceRule(
        rule_id="memory/has-state-tracking",
        category=Category.MEMORY,
        severity=Severity.INFO,
        description="Agent should track current task state for continuity",
        pattern=r"progress|current.*task|active.*task|task.*state|work.*queue|todo|task.*track",
        message="No task/state tracking mechanism. The agent can't resume work from where "
        "it left off.",
        fix="Add a progress file (e.g., compound/progress.md) or task queue.",
        applicable_contexts=_RUNTIME_ONLY,
        satisfied_by_name=("progress", "queue", "todo", "tasks"),
    ),
    KeywordPresenceRule(
        rule_id="memory/has-learning-loop",
        category=Category.MEMORY,
        severity=Severity.INFO,
        description="Agent should learn from past interactions",
        pattern=r"learn|improv|evolv|updat.*based.*on|feedback.*loop|retrospective|distill"
        r"|curated",
        message="No learning loop defined. The agent doesn't know how to improve over time.",
        fix="Add a learning mechanism: periodic distillation of daily notes into long-term "
        "memory.",
        applicable_contexts=_RUNTIME_ONLY,
    ),
    AutoMemoryLineLimitRule(),
    MemoryHierarchyRule(),
]
