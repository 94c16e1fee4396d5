"""Parsing of raw workspace files into documents and sections."""

from __future__ import annotations

import re
from collections.abc import Iterable

from agentlint.linting.models import Document, LintContext, Section

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)")

_CLAUDE_CODE_MARKERS = frozenset({"CLAUDE.md"})
_OPENCLAW_MARKERS = frozenset({"AGENTS.md", "openclaw.json", "clawdbot.json"})


def parse_sections(lines: Iterable[str]) -> tuple[Section, ...]:
    """Split lines into heading-delimited sections in a single pass.

    A heading closes the previous section; the last open section is closed
    against the final line. Content before the first heading belongs to no
    section. Heading level jumps are kept as-is.
    """
    lines = list(lines)
    sections: list[Section] = []
    current: tuple[str, int, int] | None = None

    for index, line in enumerate(lines):
        match = _HEADING_RE.match(line)
        if not match:
            continue
        if current is not None:
            heading, level, start = current
            sections.append(
                Section(heading, level, start, index - 1, "\n".join(lines[start:index]))
            )
        current = (match.group(2).strip(), len(match.group(1)), index)

    if current is not None:
        heading, level, start = current
        sections.append(
            Section(heading, level, start, len(lines) - 1, "\n".join(lines[start:]))
        )

    return tuple(sections)


def parse_document(
    raw_text: str,
    name: str,
    context: LintContext = LintContext.UNIVERSAL,
    path: str | None = None,
) -> Document:
    """Build a Document from raw text.

    Lines are split on ``\\n`` only, so ``"\\n".join(doc.lines) == raw_text``.
    """
    lines = raw_text.split("\n")
    return Document(
        name=name,
        content=raw_text,
        lines=tuple(lines),
        sections=parse_sections(lines),
        context=context,
        path=path,
    )


def detect_context(names: Iterable[str]) -> LintContext:
    """Infer the deployment context from the root file names of a workspace."""
    present = set(names)
    if present & _CLAUDE_CODE_MARKERS:
        return LintContext.CLAUDE_CODE
    if present & _OPENCLAW_MARKERS:
        return LintContext.OPENCLAW_RUNTIME
    return LintContext.UNIVERSAL
