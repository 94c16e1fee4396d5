"""Core models for the agentlint linting framework."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Severity(StrEnum):
    """Diagnostic severity, most severe first."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Sort rank; 0 is the most severe."""
        return _SEVERITY_ORDER.index(self)

    def at_least(self, other: Severity) -> bool:
        """True if this severity is as severe as ``other`` or more."""
        return self.rank <= other.rank


_SEVERITY_ORDER = (Severity.CRITICAL, Severity.ERROR, Severity.WARNING, Severity.INFO)


class Category(StrEnum):
    """Scoring categories."""

    STRUCTURE = "structure"
    CLARITY = "clarity"
    COMPLETENESS = "completeness"
    SECURITY = "security"
    CONSISTENCY = "consistency"
    MEMORY = "memory"
    RUNTIME = "runtime"
    SKILL_SAFETY = "skillSafety"


class LintContext(StrEnum):
    """Deployment context a workspace is written for."""

    CLAUDE_CODE = "claude-code"
    OPENCLAW_RUNTIME = "openclaw-runtime"
    UNIVERSAL = "universal"


@dataclass(frozen=True, slots=True)
class Section:
    """A heading-delimited span of a document.

    Line numbers are 0-based and inclusive. ``content`` holds the heading line
    and every line up to, not including, the next heading.
    """

    heading: str
    level: int
    start_line: int
    end_line: int
    content: str


@dataclass(frozen=True, slots=True)
class Document:
    """One parsed workspace file."""

    name: str
    content: str
    lines: tuple[str, ...]
    sections: tuple[Section, ...]
    context: LintContext = LintContext.UNIVERSAL
    path: str | None = None

    @property
    def is_auxiliary(self) -> bool:
        """True for skill/plugin documents, which are excluded from the core set."""
        return self.name.startswith("skills/")

    @property
    def is_markdown(self) -> bool:
        """True if the document is a markdown file."""
        return self.name.lower().endswith(".md")

    @property
    def base_name(self) -> str:
        """Final path component of the logical name."""
        return self.name.rsplit("/", 1)[-1]


@dataclass(frozen=True, slots=True)
class Workspace:
    """The immutable set of documents linted in one run."""

    root: str
    documents: tuple[Document, ...]
    context: LintContext = LintContext.UNIVERSAL

    @property
    def core_documents(self) -> tuple[Document, ...]:
        """Documents minus auxiliary skill/plugin files."""
        return tuple(doc for doc in self.documents if not doc.is_auxiliary)

    def get(self, name: str) -> Document | None:
        """Look up a document by its logical name."""
        return next((doc for doc in self.documents if doc.name == name), None)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single finding produced by a rule."""

    severity: Severity
    category: Category
    rule: str
    file: str
    message: str
    line: int | None = None
    fix: str | None = None

    @property
    def location(self) -> str:
        """``file:line`` or just ``file`` when no line is known."""
        return f"{self.file}:{self.line}" if self.line is not None else self.file


@dataclass(frozen=True, slots=True)
class CategoryScore:
    """Score of one category after deductions and bonus."""

    category: Category
    score: int
    weight: float
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def issue_count(self) -> int:
        """Number of diagnostics in this category."""
        return len(self.diagnostics)


@dataclass(frozen=True, slots=True)
class LintResult:
    """Aggregated outcome of linting a workspace."""

    workspace: str
    context: LintContext
    documents: tuple[str, ...]
    categories: tuple[CategoryScore, ...]
    total_score: int
    diagnostics: tuple[Diagnostic, ...]
    timestamp: str
    failed_rules: tuple[str, ...] = field(default=())

    def _with_severity(self, severity: Severity) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    @property
    def criticals(self) -> list[Diagnostic]:
        """Diagnostics with severity 'critical'."""
        return self._with_severity(Severity.CRITICAL)

    @property
    def errors(self) -> list[Diagnostic]:
        """Diagnostics with severity 'error'."""
        return self._with_severity(Severity.ERROR)

    @property
    def warnings(self) -> list[Diagnostic]:
        """Diagnostics with severity 'warning'."""
        return self._with_severity(Severity.WARNING)

    @property
    def info(self) -> list[Diagnostic]:
        """Diagnostics with severity 'info'."""
        return self._with_severity(Severity.INFO)

    @property
    def is_clean(self) -> bool:
        """True if no diagnostics were produced."""
        return len(self.diagnostics) == 0

    def category(self, category: Category) -> CategoryScore:
        """Return the score entry for ``category``."""
        for entry in self.categories:
            if entry.category == category:
                return entry
        raise KeyError(category)
