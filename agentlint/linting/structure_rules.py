"""Structure rules: entry file, sectioning, size and file layout."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence

from agentlint.linting.common import (
    WORKSPACE,
    comparable_documents,
    diagnostic,
    find_main_file,
    load_json_document,
)
from agentlint.linting.models import Category, Diagnostic, Document, Severity

_MAIN_FILE_CANDIDATES = frozenset({"CLAUDE.md", "AGENTS.md", ".claude/CLAUDE.md"})

MIN_MAIN_SECTIONS = 3
MAIN_FILE_MAX_LINES = 500
BLOAT_LINES = 300
MONOLITH_LINES = 100
FILE_MAP_MIN_FILES = 5
REPEAT_MIN_OCCURRENCES = 3
DISCLOSURE_MIN_BULLETS = 20
MAX_IMPORT_DEPTH = 5

_FILE_MAP_HINT_RE = re.compile(r"file.?map|directory|tree|structure", re.IGNORECASE)
_VERSION_RE = re.compile(r"(?:last )?update|version|modified|date|v\d+\.\d+", re.IGNORECASE)
_NON_WORD_RE = re.compile(r"[^\w\s]")
_BULLET_LINE_RE = re.compile(r"^\s*[-*]\s")
_PRIORITY_HEADING_RE = re.compile(
    r"critical|must|required|priority|important|⚠️|🔴|optional|nice.?to.?have|may|can",
    re.IGNORECASE,
)
_IMPORT_RE = re.compile(r"@import\s+(\S+)")
_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+")
_PATHS_BLOCK_RE = re.compile(r"paths:\s*([\s\S]*?)(?=\n\w|\n---|\Z)")
_GLOB_CHAR_RE = re.compile(r"[\w*?\[\]/.]")

EXTRACT_MIN_MAIN_LINES = 100
EXTRACT_MIN_SECTION_LINES = 15
WHY_WHAT_HOW_MIN_LINES = 80
RATIONALE_MIN_SECTION_LINES = 10

# Domain headings worth moving out of the entry file, with a suggested target
EXTRACTABLE_TOPICS = (
    (re.compile(r"git|github|version control|commit", re.IGNORECASE), "skills/git-workflow.md"),
    (re.compile(r"deploy|deployment|ci.?cd|release", re.IGNORECASE), "skills/deployment.md"),
    (re.compile(r"test|testing|qa|quality", re.IGNORECASE), ".claude/rules/testing.md"),
    (re.compile(r"security|auth|permission|access", re.IGNORECASE), "skills/security.md"),
    (
        re.compile(r"code.?style|format|linting|convention", re.IGNORECASE),
        ".claude/rules/code-style.md",
    ),
    (re.compile(r"api|endpoint|route|request", re.IGNORECASE), "skills/api-design.md"),
    (re.compile(r"database|sql|query|migration", re.IGNORECASE), "skills/database.md"),
    (re.compile(r"\bui\b|\bux\b|design|component", re.IGNORECASE), ".claude/rules/ui-patterns.md"),
)
_WHY_WHAT_HOW_RE = re.compile(
    r"\b(?:why|what|how|rationale|context|implementation)\b", re.IGNORECASE
)
_RATIONALE_RE = re.compile(
    r"\b(?:because|since|to|for|why|rationale|reason|goal|purpose)\b", re.IGNORECASE
)
_BULLET_BLOCK_RE = re.compile(r"^[-*]\s", re.MULTILINE)


def _frontmatter(content: str) -> str | None:
    """Text between the leading ``---`` fences, or None without frontmatter."""
    if not content.startswith("---"):
        return None
    parts = content.split("---")
    return parts[1] if len(parts) > 1 else ""


# ---------------------------------------------------------------------------
# Entry file and sections
# ---------------------------------------------------------------------------


class HasMainFileRule:
    """Workspace must have an entry document."""

    rule_id = "structure/has-main-file"
    category = Category.STRUCTURE
    severity = Severity.CRITICAL
    description = "Workspace must have a CLAUDE.md or AGENTS.md file"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report a missing entry document."""
        if any(doc.name in _MAIN_FILE_CANDIDATES for doc in documents):
            return []
        return [
            diagnostic(
                self,
                WORKSPACE,
                "No CLAUDE.md or AGENTS.md found. This is the main entry point for your agent.",
                fix="Create a CLAUDE.md file with your agent's core instructions.",
            )
        ]


class HasSectionsRule:
    """Entry document should be organized into headed sections."""

    rule_id = "structure/has-sections"
    category = Category.STRUCTURE
    severity = Severity.WARNING
    description = "Main file should have organized sections with headings"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Require at least three sections in the entry document."""
        main = find_main_file(documents)
        if main is None or len(main.sections) >= MIN_MAIN_SECTIONS:
            return []
        return [
            diagnostic(
                self,
                main.name,
                f"Only {len(main.sections)} section(s) found. Use ## headings to organize "
                f"instructions into clear sections (aim for {MIN_MAIN_SECTIONS}+).",
                fix="Add sections like ## Identity, ## Tools, ## Boundaries, ## Memory Strategy",
            )
        ]


class HeadingHierarchyRule:
    """Headings should not skip levels."""

    rule_id = "structure/heading-hierarchy"
    category = Category.STRUCTURE
    severity = Severity.INFO
    description = "Headings should follow a logical hierarchy (no skipping levels)"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag each heading deeper than its predecessor plus one."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            previous = 0
            for section in doc.sections:
                if previous > 0 and section.level > previous + 1:
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f"Heading level skipped: h{previous} → h{section.level}. "
                            f"Consider using h{previous + 1} instead.",
                            line=section.start_line + 1,
                        )
                    )
                previous = section.level
        return diagnostics


class NoEmptySectionsRule:
    """Sections need a body or a nested subsection."""

    rule_id = "structure/no-empty-sections"
    category = Category.STRUCTURE
    severity = Severity.WARNING
    description = "Core agent files should not have empty sections"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag headings followed by nothing but blank lines."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            sections = doc.sections
            for index, section in enumerate(sections):
                body = [line for line in section.content.split("\n")[1:] if line.strip()]
                following = sections[index + 1] if index + 1 < len(sections) else None
                has_subsection = following is not None and following.level > section.level
                if not body and not has_subsection:
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f'Empty section: "{section.heading}". '
                            "Either add content or remove the heading.",
                            line=section.start_line + 1,
                        )
                    )
        return diagnostics


# ---------------------------------------------------------------------------
# Size and modularity
# ---------------------------------------------------------------------------


class FileSizeRule:
    """Entry document should stay readable."""

    rule_id = "structure/file-size"
    category = Category.STRUCTURE
    severity = Severity.WARNING
    description = "Files should not be excessively long (readability)"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag entry documents longer than the line limit."""
        return [
            diagnostic(
                self,
                doc.name,
                f"File is {len(doc.lines)} lines. Consider splitting into separate files "
                "(SOUL.md, TOOLS.md, etc.) for maintainability.",
                fix="Split into focused files: SOUL.md (identity), TOOLS.md (tool config), "
                "SECURITY.md (security rules)",
            )
            for doc in documents
            if doc.name in ("CLAUDE.md", "AGENTS.md") and len(doc.lines) > MAIN_FILE_MAX_LINES
        ]


class ModularFilesRule:
    """A single large markdown file should be split up."""

    rule_id = "structure/modular-files"
    category = Category.STRUCTURE
    severity = Severity.INFO
    description = "Using multiple focused files is better than one monolith"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag a workspace consisting of one long markdown file."""
        markdown = [doc for doc in documents if doc.is_markdown]
        if len(markdown) != 1 or len(markdown[0].lines) <= MONOLITH_LINES:
            return []
        return [
            diagnostic(
                self,
                markdown[0].name,
                f"Only 1 file found with {MONOLITH_LINES}+ lines. "
                "Consider splitting into modular files for better organization.",
                fix="Create separate files: SOUL.md (personality), USER.md (user context), "
                "TOOLS.md (tool documentation)",
            )
        ]


class ContextBloatRule:
    """Entry document should not be bloated or repetitive."""

    rule_id = "structure/context-bloat"
    category = Category.STRUCTURE
    severity = Severity.WARNING
    description = "Detect context bloat: very long entry file or repeated lines"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag an over-long entry file and lines repeated three or more times."""
        main = find_main_file(documents)
        if main is None:
            return []

        diagnostics: list[Diagnostic] = []
        if len(main.lines) > BLOAT_LINES:
            diagnostics.append(
                diagnostic(
                    self,
                    main.name,
                    f"{len(main.lines)} lines detected. Context bloat degrades agent performance.",
                    fix="Split aggressively: core identity (50-100 lines) plus modular files "
                    "for each domain, tool or workflow.",
                    severity=Severity.ERROR,
                )
            )

        occurrences: dict[str, list[int]] = {}
        for index, line in enumerate(main.lines):
            normalized = _NON_WORD_RE.sub("", line.strip().lower())
            if len(normalized) < 20:
                continue
            occurrences.setdefault(normalized, []).append(index + 1)

        for line_numbers in occurrences.values():
            if len(line_numbers) >= REPEAT_MIN_OCCURRENCES:
                listed = ", ".join(str(n) for n in line_numbers)
                diagnostics.append(
                    diagnostic(
                        self,
                        main.name,
                        f"Repeated instruction detected {len(line_numbers)} times "
                        f"(lines: {listed}). Consolidate to reduce bloat.",
                        line=line_numbers[0],
                        fix="Keep a single canonical version and remove the copies.",
                    )
                )
        return diagnostics


class ProgressiveDisclosureRule:
    """Long instruction lists should be grouped by priority."""

    rule_id = "structure/progressive-disclosure"
    category = Category.STRUCTURE
    severity = Severity.INFO
    description = "Check for progressive disclosure structure (priority grouping)"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag 20+ bullets with no priority-named heading."""
        main = find_main_file(documents)
        if main is None:
            return []
        bullets = sum(1 for line in main.lines if _BULLET_LINE_RE.match(line))
        if bullets < DISCLOSURE_MIN_BULLETS:
            return []
        if any(_PRIORITY_HEADING_RE.search(section.heading) for section in main.sections):
            return []
        return [
            diagnostic(
                self,
                main.name,
                f"{bullets} instructions without priority grouping. "
                "Progressive disclosure improves agent compliance.",
                fix="Group by priority: ## Critical Rules, ## Standard Operating Procedure, "
                "## Optional",
            )
        ]


# ---------------------------------------------------------------------------
# Navigation aids
# ---------------------------------------------------------------------------


class HasFileMapRule:
    """Larger workspaces benefit from a file map in the entry document."""

    rule_id = "structure/has-file-map"
    category = Category.STRUCTURE
    severity = Severity.INFO
    description = "A file map helps agents navigate the workspace"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Require a tree or fenced listing once there are more than five files."""
        main = find_main_file(documents)
        if main is None or len(documents) <= FILE_MAP_MIN_FILES:
            return []
        content = main.content
        has_tree = any(marker in content for marker in ("├", "└", "```"))
        if _FILE_MAP_HINT_RE.search(content) and has_tree:
            return []
        return [
            diagnostic(
                self,
                main.name,
                f"No file map found. With {FILE_MAP_MIN_FILES}+ files, "
                "a directory tree helps the agent navigate.",
                fix="Add a ## File Map section with a tree structure showing all agent files.",
            )
        ]


class HasVersionOrUpdateDateRule:
    """Core files should record when they were last touched."""

    rule_id = "structure/has-version-or-update-date"
    category = Category.STRUCTURE
    severity = Severity.INFO
    description = "Files should indicate when they were last updated"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Look for a version or date marker in the main and tools files."""
        return [
            diagnostic(
                self,
                doc.name,
                "No version or update date found. Helps track freshness of instructions.",
                fix="Add a version comment or 'Last updated: YYYY-MM-DD' at the top or bottom.",
            )
            for doc in documents
            if doc.name in ("CLAUDE.md", "AGENTS.md", "TOOLS.md")
            and not _VERSION_RE.search(doc.content)
        ]


class ImportDepthRule:
    """``@import`` chains deeper than five levels may be dropped."""

    rule_id = "structure/import-depth-limit"
    category = Category.STRUCTURE
    severity = Severity.WARNING
    description = "@import chains should stay within 5 levels"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Measure the longest import chain starting from each importing document."""
        imports = {
            doc.name: _IMPORT_RE.findall(doc.content)
            for doc in documents
            if _IMPORT_RE.search(doc.content)
        }

        def depth(name: str, seen: frozenset[str]) -> int:
            if name in seen:
                return 0
            targets = imports.get(name, [])
            if not targets:
                return 0
            return 1 + max(depth(target, seen | {name}) for target in targets)

        diagnostics: list[Diagnostic] = []
        for name in imports:
            chain = depth(name, frozenset())
            if chain >= MAX_IMPORT_DEPTH:
                diagnostics.append(
                    diagnostic(
                        self,
                        name,
                        f"@import chain depth is {chain + 1} levels. At most "
                        f"{MAX_IMPORT_DEPTH} levels are supported; deeper imports may be "
                        "silently ignored.",
                        fix="Flatten the import chain or restructure files to stay within "
                        f"{MAX_IMPORT_DEPTH} levels of @import nesting.",
                    )
                )
        return diagnostics


class PluginManifestRule:
    """``.claude-plugin/plugin.json`` must be a valid manifest."""

    rule_id = "structure/plugin-manifest"
    category = Category.STRUCTURE
    severity = Severity.WARNING
    description = "Validate .claude-plugin/plugin.json"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Parse the manifest and check required fields and version format."""
        manifest_doc = next(
            (doc for doc in documents if doc.name.endswith(".claude-plugin/plugin.json")),
            None,
        )
        if manifest_doc is None:
            return []

        try:
            manifest = load_json_document(manifest_doc)
        except json.JSONDecodeError as e:
            return [
                diagnostic(
                    self,
                    manifest_doc.name,
                    f"Invalid JSON in plugin.json: {e.msg}",
                    line=e.lineno,
                    fix="Fix JSON syntax. Required fields: name, version, description.",
                    severity=Severity.ERROR,
                )
            ]
        if not isinstance(manifest, dict):
            return [
                diagnostic(
                    self,
                    manifest_doc.name,
                    "plugin.json must contain a JSON object.",
                    severity=Severity.ERROR,
                )
            ]

        diagnostics = [
            diagnostic(
                self,
                manifest_doc.name,
                f"plugin.json missing required field: '{field}'",
                fix=f'Add "{field}" to plugin.json, e.g. {{"name": "my-plugin", '
                '"version": "1.0.0"}',
                severity=Severity.ERROR,
            )
            for field in ("name", "version")
            if not manifest.get(field)
        ]

        version = manifest.get("version")
        if isinstance(version, str) and version and not _SEMVER_RE.match(version):
            diagnostics.append(
                diagnostic(
                    self,
                    manifest_doc.name,
                    f"plugin.json version '{version}' is not valid semver (e.g. 1.0.0).",
                    fix="Use semver format: MAJOR.MINOR.PATCH",
                )
            )
        if not manifest.get("description"):
            diagnostics.append(
                diagnostic(
                    self,
                    manifest_doc.name,
                    "plugin.json missing 'description'.",
                    fix='Add: "description": "What this plugin does"',
                )
            )
        return diagnostics


class RulesPathRule:
    """Files under ``.claude/rules/`` should scope themselves with ``paths``."""

    rule_id = "structure/rules-path"
    category = Category.STRUCTURE
    severity = Severity.INFO
    description = "Path-scoped rule files should declare a 'paths' frontmatter field"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Check frontmatter presence and glob sanity of each rule file."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if ".claude/rules/" not in doc.name or not doc.is_markdown:
                continue
            frontmatter = _frontmatter(doc.content)
            if frontmatter is None:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Rule file has no frontmatter. Consider adding a 'paths' field "
                        "for path-specific activation.",
                        fix='Add frontmatter:\n---\npaths:\n  - "src/**/*.ts"\n---',
                    )
                )
                continue
            if "paths" not in frontmatter:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Rule file missing 'paths' field and applies globally.",
                        fix='Add paths to limit activation:\n---\npaths:\n  - "src/**"\n---',
                    )
                )
                continue
            block = _PATHS_BLOCK_RE.search(frontmatter)
            if block is None:
                continue
            for raw in block.group(1).split("\n"):
                if not raw.strip().startswith("-"):
                    continue
                glob = raw.strip().lstrip("-").strip().strip("\"'")
                if glob and not _GLOB_CHAR_RE.search(glob):
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f'Paths glob pattern may be invalid: "{glob}"',
                            fix="Use standard glob patterns: 'src/**/*.ts', '*.md', 'tests/**'",
                            severity=Severity.WARNING,
                        )
                    )
        return diagnostics


class ExtractInstructionsRule:
    """Long domain sections of the entry file belong in skills or rule files."""

    rule_id = "structure/extract-instructions"
    category = Category.STRUCTURE
    severity = Severity.INFO
    description = "Suggest extracting domain sections to skills/ or .claude/rules/"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag long ``##`` sections on a known topic, once per matching topic."""
        main = find_main_file(documents)
        if main is None or len(main.lines) < EXTRACT_MIN_MAIN_LINES:
            return []

        diagnostics: list[Diagnostic] = []
        for section in main.sections:
            if section.level != 2:
                continue
            length = section.end_line - section.start_line
            if length <= EXTRACT_MIN_SECTION_LINES:
                continue
            for pattern, target in EXTRACTABLE_TOPICS:
                if not pattern.search(section.heading):
                    continue
                diagnostics.append(
                    diagnostic(
                        self,
                        main.name,
                        f'Section "{section.heading}" ({length} lines) can be extracted '
                        f"to {target}",
                        line=section.start_line + 1,
                        fix=f"Create {target} and move this section there. It will be "
                        "auto-loaded and can be path-scoped.",
                    )
                )
        return diagnostics


class StructureOptimizerRule:
    """Instructions read better with their context stated first."""

    rule_id = "structure/structure-optimizer"
    category = Category.STRUCTURE
    severity = Severity.INFO
    description = "Suggest WHY/WHAT/HOW structure for instructions"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag a long entry file without WHY/WHAT/HOW headings and bare instruction lists."""
        main = find_main_file(documents)
        if main is None:
            return []

        diagnostics: list[Diagnostic] = []
        has_structure = any(_WHY_WHAT_HOW_RE.search(s.heading) for s in main.sections)
        if not has_structure and len(main.lines) > WHY_WHAT_HOW_MIN_LINES:
            diagnostics.append(
                diagnostic(
                    self,
                    main.name,
                    "Consider WHY/WHAT/HOW structure for better agent comprehension.",
                    fix="Organize sections: ## Why (context/rationale), ## What "
                    "(goals/requirements), ## How (implementation/rules)",
                )
            )

        for section in main.sections:
            if section.level > 2:
                continue
            if not _BULLET_BLOCK_RE.search(section.content):
                continue
            if _RATIONALE_RE.search(section.content):
                continue
            if len(section.content.split("\n")) <= RATIONALE_MIN_SECTION_LINES:
                continue
            diagnostics.append(
                diagnostic(
                    self,
                    main.name,
                    f'Section "{section.heading}" has instructions without context/rationale.',
                    line=section.start_line + 1,
                    fix="Add a brief WHY paragraph before the instruction list.",
                )
            )
        return diagnostics


STRUCTURE_RULES = [
    HasMainFileRule(),
    HasSectionsRule(),
    HeadingHierarchyRule(),
    FileSizeRule(),
    ModularFilesRule(),
    NoEmptySectionsRule(),
    HasFileMapRule(),
    HasVersionOrUpdateDateRule(),
    ContextBloatRule(),
    ProgressiveDisclosureRule(),
    ExtractInstructionsRule(),
    StructureOptimizerRule(),
    ImportDepthRule(),
    PluginManifestRule(),
    RulesPathRule(),
]
