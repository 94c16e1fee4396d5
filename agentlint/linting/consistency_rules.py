"""Consistency rules: do the workspace documents agree with one another?

The cross-document algorithms live in :mod:`agentlint.linting.consistency`;
the rules here turn their results into diagnostics.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from agentlint.linting.common import (
    MAIN_FILE_NAMES,
    WORKSPACE,
    comparable_documents,
    diagnostic,
    find_document,
)
from agentlint.linting.consistency import (
    PERMISSION_MARKERS,
    PRIORITY_MARKERS,
    build_reference_graph,
    find_conflicts,
    find_near_duplicates,
    find_reference_cycles,
    jaccard_similarity,
    normalize_instruction,
)
from agentlint.linting.models import Category, Diagnostic, Document, Severity

# Generic references and common workspace files that are often present but not scanned
PATTERN_REFS = frozenset(
    {
        "SKILL.md",
        "README.md",
        "CHANGELOG.md",
        "LICENSE.md",
        "SECURITY.md",
        "FORMATTING.md",
        "HEARTBEAT.md",
        "SHIELD.md",
        "USER.md",
        "SOUL.md",
        "IDENTITY.md",
        "TOOLS.md",
        "MEMORY.md",
        "BOOTSTRAP.md",
        "WORKSPACE.md",
        "CONFIG.md",
        "RULES.md",
    }
)

_VERB_REF_RE = re.compile(
    r"(?:see|read|check|refer to|load|include)\s+[`\"']?([A-Z][A-Za-z_-]+\.md)"
    r"(?:#[a-z0-9-]+)?[`\"']?",
    re.IGNORECASE,
)
_BACKTICK_REF_RE = re.compile(r"`([A-Z][A-Za-z_-]+\.md)(?:#[a-z0-9-]+)?`")
_SECTION_REF_RE = re.compile(r"(?:section|see)\s+['\"`]([^'\"`]+)['\"`]", re.IGNORECASE)

_NAME_PATTERNS = (
    re.compile(r"\*\*Name:\*\*\s*(.+)", re.IGNORECASE),
    re.compile(r"name\s*[:=]\s*['\"]([^'\"]+)['\"]", re.IGNORECASE),
    re.compile(r"^#\s+.*?\s-\s*(.+)", re.MULTILINE),
)
_NAME_STOPWORDS_RE = re.compile(
    r"^(?:the|a|an|this|that|your|my|it|is|are|was|string|function|class)", re.IGNORECASE
)
IDENTITY_NAME_LIMIT = 3

_CASUAL_PERSONA_RE = re.compile(
    r"casual|friendly|informal|relaxed|conversational|chill", re.IGNORECASE
)
_FORMAL_PERSONA_RE = re.compile(
    r"formal|professional|enterprise|corporate|official", re.IGNORECASE
)
_FORMAL_MARKER_RE = re.compile(
    r"\b(?:shall|hereby|pursuant|henceforth|therefore|moreover|furthermore)\b", re.IGNORECASE
)
_CASUAL_MARKER_RE = re.compile(
    r"\b(?:lol|lmao|gonna|wanna|kinda|sorta|nah|yep|cool|chill)\b", re.IGNORECASE
)
_CONTRACTION_RE = re.compile(r"don'?t|can'?t|won'?t|it'?s|that'?s")
TONE_MARKER_THRESHOLD = 3

_CJK_RE = re.compile(r"[\u3000-\u9fff\uac00-\ud7af]")
_LATIN_WORD_RE = re.compile(r"[a-zA-Z]{4,}")
_PATH_OR_URL_RE = re.compile(r"^https?://|^\w+\.\w+")
MIXED_LANGUAGE_MIN_LINES = 5

TIMEZONE_PATTERNS = (
    (re.compile(r"Asia/Seoul|KST|GMT\+9", re.IGNORECASE), "Asia/Seoul"),
    (re.compile(r"\bUTC\b", re.IGNORECASE), "UTC"),
    (re.compile(r"\bEST\b", re.IGNORECASE), "EST"),
    (re.compile(r"\bPST\b", re.IGNORECASE), "PST"),
    (re.compile(r"America/New_York", re.IGNORECASE), "America/New_York"),
    (re.compile(r"America/Los_Angeles", re.IGNORECASE), "America/Los_Angeles"),
    (re.compile(r"Europe/London", re.IGNORECASE), "Europe/London"),
)

TASK_SPECIFIC_PATTERNS = (
    (re.compile(r"\bPython\s+\d+\.\d+", re.IGNORECASE), "Python version constraint"),
    (re.compile(r"\bTypeScript\s+strict\s+mode", re.IGNORECASE), "TypeScript strict mode"),
    (
        re.compile(r"\buse\s+(?:pytest|jest|mocha|vitest|unittest)\b", re.IGNORECASE),
        "Testing framework directive",
    ),
    (re.compile(r"\bNode\.?js\s+\d+", re.IGNORECASE), "Node.js version constraint"),
    (re.compile(r"\bJava\s+\d+", re.IGNORECASE), "Java version constraint"),
    (re.compile(r"\bGo\s+\d+\.\d+", re.IGNORECASE), "Go version constraint"),
    (re.compile(r"\bRust\s+\d+", re.IGNORECASE), "Rust version constraint"),
    (re.compile(r"\bRuby\s+\d+", re.IGNORECASE), "Ruby version constraint"),
    (
        re.compile(r"\b(?:run|execute|use)\s+npm\s+(?:test|run|install)\b", re.IGNORECASE),
        "npm command directive",
    ),
    (
        re.compile(r"\buse\s+(?:black|ruff|flake8|pylint|mypy)\b", re.IGNORECASE),
        "Python tool directive",
    ),
    (re.compile(r"\buse\s+(?:prettier|eslint|biome)\b", re.IGNORECASE), "JS/TS tool directive"),
    (
        re.compile(r"\b(?:cargo|pip|yarn|pnpm|bun)\s+(?:install|add|run|test)\b", re.IGNORECASE),
        "Package manager command",
    ),
    (
        re.compile(
            r"\b(?:use|prefer)\s+(?:React|Vue|Angular|Svelte|Next\.?js|Nuxt)\b", re.IGNORECASE
        ),
        "Framework preference",
    ),
    (
        re.compile(
            r"\b(?:Django|Flask|FastAPI|Express|NestJS)\s+(?:app|server|project)", re.IGNORECASE
        ),
        "Framework-specific instruction",
    ),
    (
        re.compile(r"\b(?:docker|kubernetes|k8s)\s+(?:build|deploy|compose)", re.IGNORECASE),
        "Container directive",
    ),
    (re.compile(r"\bvercel\s+(?:deploy|--prod)", re.IGNORECASE), "Vercel deployment directive"),
    (
        re.compile(r"\b(?:webpack|vite|rollup|esbuild)\s+(?:config|build)", re.IGNORECASE),
        "Bundler directive",
    ),
)
TASK_SPECIFIC_LIMIT = 5
_GLOBAL_FILE_NAMES = tuple(name.upper() for name in MAIN_FILE_NAMES)


def _known_names(documents: Sequence[Document]) -> set[str]:
    names: set[str] = set()
    for doc in documents:
        names.add(doc.name.lower())
        names.add(doc.base_name.lower())
    return names


class ReferencedFilesExistRule:
    """Cross-file references must resolve."""

    rule_id = "consistency/referenced-files-exist"
    category = Category.CONSISTENCY
    severity = Severity.ERROR
    description = "Files referenced in agent configs should exist"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report ``see X.md`` and backtick references to unknown files, once per file."""
        known = _known_names(documents)
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            reported: set[str] = set()
            refs = [m.group(1) for m in _VERB_REF_RE.finditer(doc.content)]
            refs.extend(m.group(1) for m in _BACKTICK_REF_RE.finditer(doc.content))
            for ref in refs:
                if ref in PATTERN_REFS or ref.lower() in known or ref in reported:
                    continue
                reported.add(ref)
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        f'Referenced file "{ref}" not found in workspace.',
                        fix=f"Create {ref} or remove the reference.",
                    )
                )
        return diagnostics


class NamingConventionRule:
    """Root documents should share one naming convention."""

    rule_id = "consistency/naming-convention"
    category = Category.CONSISTENCY
    severity = Severity.INFO
    description = "File naming should follow a consistent convention"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag a mix of UPPERCASE.md and lowercase.md root files."""
        root = [doc.name for doc in documents if doc.is_markdown and "/" not in doc.name]
        upper = [name for name in root if name[:-3] == name[:-3].upper()]
        lower = [name for name in root if name == name.lower()]
        if not upper or not lower:
            return []
        return [
            diagnostic(
                self,
                WORKSPACE,
                f"Mixed file naming: {len(upper)} UPPERCASE ({', '.join(upper)}), "
                f"{len(lower)} lowercase ({', '.join(lower)}). Pick one convention.",
                fix="Use consistent naming. UPPERCASE.md is the common convention for "
                "agent files.",
            )
        ]


class NoDuplicateInstructionsRule:
    """The same instruction should live in one place."""

    rule_id = "consistency/no-duplicate-instructions"
    category = Category.CONSISTENCY
    severity = Severity.WARNING
    description = "Same instruction should not appear in multiple files"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report near-duplicate bullets on their later occurrence."""
        return [
            diagnostic(
                self,
                match.file,
                f'Duplicate instruction also in {match.original_file}: "{match.text[:60]}..."',
                line=match.line,
                fix="Keep the instruction in one place and reference it from other files.",
            )
            for match in find_near_duplicates(documents)
        ]


class ConsolidateDuplicatesRule:
    """Repeated bullets inside one file should be merged."""

    rule_id = "consistency/consolidate-duplicates"
    category = Category.CONSISTENCY
    severity = Severity.WARNING
    description = "Near-identical instructions within one file should be consolidated"
    applicable_contexts = None
    min_length = 20
    threshold = 0.8

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Compare bullet lines pairwise within each document."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            seen: list[tuple[int, str]] = []
            for index, raw in enumerate(doc.lines):
                line = raw.strip()
                if not line.startswith(("-", "*")):
                    continue
                normalized = normalize_instruction(line)
                if len(normalized) < self.min_length:
                    continue
                earlier = next(
                    (
                        number
                        for number, text in seen
                        if jaccard_similarity(normalized, text) > self.threshold
                    ),
                    None,
                )
                if earlier is None:
                    seen.append((index + 1, normalized))
                    continue
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        f"Instruction repeats line {earlier}: \"{normalized[:60]}\"",
                        line=index + 1,
                        fix="Merge the repeated instructions into one bullet.",
                    )
                )
        return diagnostics


class IdentityAlignmentRule:
    """Identity files should name the agent consistently."""

    rule_id = "consistency/identity-alignment"
    category = Category.CONSISTENCY
    severity = Severity.WARNING
    description = "Agent identity should be consistent across files"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Warn when more than three distinct names are declared."""
        names: dict[str, None] = {}
        for doc in documents:
            if doc.name not in ("SOUL.md", "IDENTITY.md", *MAIN_FILE_NAMES):
                continue
            for pattern in _NAME_PATTERNS:
                for match in pattern.finditer(doc.content):
                    name = " ".join(match.group(1).strip().split()[:3])
                    if 2 < len(name) < 25 and not _NAME_STOPWORDS_RE.match(name):
                        names.setdefault(name)
        if len(names) <= IDENTITY_NAME_LIMIT:
            return []
        return [
            diagnostic(
                self,
                WORKSPACE,
                f"Multiple identity names found: {', '.join(names)}. Ensure they refer to "
                "the same entity.",
                fix="Use a single consistent name for the agent across all files.",
            )
        ]


class PermissionConflictRule:
    """One file must not allow what another denies."""

    rule_id = "consistency/permission-conflict"
    category = Category.CONSISTENCY
    severity = Severity.ERROR
    description = "Permission levels should not conflict across files"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report allow/deny statements that share a topic, on the later statement."""
        return [
            diagnostic(
                self,
                conflict.second.file,
                f'Permission conflict: {conflict.first.file} {conflict.first.polarity}s '
                f'"{" ".join(conflict.shared)}" but {conflict.second.file} '
                f"{conflict.second.polarity}s it.",
                line=conflict.second.line,
                fix="Align permissions across files. One source of truth for each capability.",
            )
            for conflict in find_conflicts(documents, PERMISSION_MARKERS)
        ]


class ToneVoiceAlignmentRule:
    """Instructions should sound like the persona SOUL.md defines."""

    rule_id = "consistency/tone-voice-alignment"
    category = Category.CONSISTENCY
    severity = Severity.WARNING
    description = "Instruction tone should match the defined persona in SOUL.md"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Count formal and casual markers in every other document."""
        soul = find_document(documents, "SOUL.md")
        if soul is None:
            return []
        is_casual = bool(_CASUAL_PERSONA_RE.search(soul.content))
        is_formal = bool(_FORMAL_PERSONA_RE.search(soul.content))
        if not is_casual and not is_formal:
            return []

        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            if doc.name == "SOUL.md":
                continue
            formal = sum(1 for line in doc.lines if _FORMAL_MARKER_RE.search(line))
            casual = sum(1 for line in doc.lines if _CASUAL_MARKER_RE.search(line))
            casual += sum(1 for line in doc.lines if _CONTRACTION_RE.search(line))
            if is_casual and formal > TONE_MARKER_THRESHOLD and formal > casual:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        f"Tone mismatch: SOUL.md defines a casual persona but {doc.name} "
                        f"uses formal language ({formal} formal markers).",
                        fix="Match the tone defined in SOUL.md.",
                    )
                )
            if is_formal and casual > TONE_MARKER_THRESHOLD and casual > formal:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        f"Tone mismatch: SOUL.md defines a formal persona but {doc.name} "
                        f"uses casual language ({casual} casual markers).",
                        fix="Match the tone defined in SOUL.md.",
                    )
                )
        return diagnostics


class LanguageMixingRule:
    """Sentences should stay in one language."""

    rule_id = "consistency/language-mixing"
    category = Category.CONSISTENCY
    severity = Severity.INFO
    description = "Avoid mixing languages within a single sentence or section"
    applicable_contexts = None

    @staticmethod
    def is_mixed(line: str) -> bool:
        """True for a line that is genuinely half CJK and half Latin prose."""
        if len(line) < 20 or line.startswith(("```", "|", "<!--")):
            return False
        if _PATH_OR_URL_RE.match(line):
            return False
        cjk_ratio = len(_CJK_RE.findall(line)) / len(line)
        return 0.2 < cjk_ratio < 0.8 and len(_LATIN_WORD_RE.findall(line)) >= 3

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report documents with at least five mixed lines."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            mixed = sum(1 for line in doc.lines if self.is_mixed(line.strip()))
            if mixed >= MIXED_LANGUAGE_MIN_LINES:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        f"{mixed} mixed-language lines found. Consider standardizing to one "
                        "language per section.",
                        fix="Keep each sentence in one language; technical terms are fine.",
                    )
                )
        return diagnostics


class CircularDependencyRule:
    """Documents should not refer to each other in a loop."""

    rule_id = "consistency/circular-dependency"
    category = Category.CONSISTENCY
    severity = Severity.WARNING
    description = "Files should not have circular references"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report each detected cycle on the node that closes it."""
        return [
            diagnostic(
                self,
                cycle[-1],
                f"Circular reference: {' → '.join(cycle)}",
                fix="Break the cycle. Define information in one place and reference it "
                "one-way.",
            )
            for cycle in find_reference_cycles(build_reference_graph(documents))
        ]


class TimezoneLocaleDriftRule:
    """The workspace should agree on one local timezone."""

    rule_id = "consistency/timezone-locale-drift"
    category = Category.CONSISTENCY
    severity = Severity.WARNING
    description = "Timezone references should be consistent across files"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Warn when more than one non-UTC timezone is mentioned."""
        found: dict[str, None] = {}
        for doc in documents:
            if not doc.is_markdown:
                continue
            for line in doc.lines:
                for pattern, zone in TIMEZONE_PATTERNS:
                    if pattern.search(line):
                        found.setdefault(zone)
        if len([zone for zone in found if zone != "UTC"]) <= 1:
            return []
        return [
            diagnostic(
                self,
                WORKSPACE,
                f"Multiple timezones referenced: {', '.join(found)}. Standardize to one.",
                fix="Use one timezone consistently and convert where needed.",
            )
        ]


class PriorityConflictRule:
    """A topic should not be both critical and optional."""

    rule_id = "consistency/priority-conflict"
    category = Category.CONSISTENCY
    severity = Severity.WARNING
    description = "Same topic should not have conflicting priorities across files"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report high/low statements that share a topic, on the later statement."""
        return [
            diagnostic(
                self,
                conflict.second.file,
                f'Priority conflict: "{" ".join(conflict.shared)}" is '
                f"{conflict.first.polarity} priority in {conflict.first.file} but "
                f"{conflict.second.polarity} in {conflict.second.file}.",
                line=conflict.second.line,
                fix="Align priority levels across files for the same topic.",
            )
            for conflict in find_conflicts(documents, PRIORITY_MARKERS)
        ]


class OutdatedCrossReferencesRule:
    """Quoted section references must name a real heading."""

    rule_id = "consistency/outdated-cross-references"
    category = Category.CONSISTENCY
    severity = Severity.ERROR
    description = "Section references should point to sections that actually exist"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Match ``see "Heading"`` against every heading in the workspace."""
        headings = {
            section.heading.lower() for doc in documents for section in doc.sections
        }
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            for match in _SECTION_REF_RE.finditer(doc.content):
                ref = match.group(1)
                # file references are checked by referenced-files-exist
                if ref.lower().endswith(".md") or ref.lower() in headings:
                    continue
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        f'Referenced section "{ref}" not found in any file.',
                        fix="Update the reference to match an existing section heading.",
                    )
                )
        return diagnostics


class TaskSpecificInGlobalRule:
    """Global instruction files should hold universal guidance only."""

    rule_id = "consistency/task-specific-in-global"
    category = Category.CONSISTENCY
    severity = Severity.WARNING
    description = (
        "Task-specific instructions in CLAUDE.md/AGENTS.md belong in a skill or "
        "conditionally loaded file"
    )
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report up to five task-specific lines per global file."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if doc.name.upper() not in _GLOBAL_FILE_NAMES:
                continue
            reported = 0
            for index, line in enumerate(doc.lines):
                for pattern, label in TASK_SPECIFIC_PATTERNS:
                    if reported >= TASK_SPECIFIC_LIMIT:
                        break
                    if not pattern.search(line):
                        continue
                    reported += 1
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f'Task-specific instruction in global scope: {label}: '
                            f'"{line.strip()[:60]}"',
                            line=index + 1,
                            fix="Move to a project-specific SKILL.md or use conditional "
                            "loading.",
                        )
                    )
        return diagnostics


CONSISTENCY_RULES = [
    ReferencedFilesExistRule(),
    NamingConventionRule(),
    NoDuplicateInstructionsRule(),
    ConsolidateDuplicatesRule(),
    IdentityAlignmentRule(),
    PermissionConflictRule(),
    ToneVoiceAlignmentRule(),
    LanguageMixingRule(),
    CircularDependencyRule(),
    TimezoneLocaleDriftRule(),
    PriorityConflictRule(),
    OutdatedCrossReferencesRule(),
    TaskSpecificInGlobalRule(),
]
