"""Report models and formatting helpers.

The pydantic models define the JSON documents emitted by ``agentlint lint
--format json`` and ``agentlint audit --format json``; the helpers are shared
by the text renderers in the CLI.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from agentlint.audit import AuditResult, SkillAudit, Verdict
from agentlint.linting.models import Category, Diagnostic, LintContext, LintResult, Severity
from agentlint.linting.scoring import sort_key

CATEGORY_LABELS: dict[Category, str] = {
    Category.STRUCTURE: "Structure",
    Category.CLARITY: "Clarity",
    Category.COMPLETENESS: "Completeness",
    Category.SECURITY: "Security",
    Category.CONSISTENCY: "Consistency",
    Category.MEMORY: "Memory",
    Category.RUNTIME: "Runtime Config",
    Category.SKILL_SAFETY: "Skill Safety",
}

# (minimum score, grade), best first
GRADE_TIERS = (
    (98, "S"),
    (96, "A+"),
    (93, "A"),
    (90, "A-"),
    (85, "B+"),
    (80, "B"),
    (75, "B-"),
    (68, "C+"),
    (60, "C"),
    (55, "C-"),
    (50, "D"),
)

BAR_WIDTH = 10


class DiagnosticReport(BaseModel):
    """One diagnostic in the JSON report."""

    model_config = ConfigDict(frozen=True)

    severity: Severity = Field(description="critical, error, warning or info")
    category: Category = Field(description="Scoring category")
    rule: str = Field(description="Rule id, e.g. 'consistency/permission-conflict'")
    file: str = Field(description="Document name or '(workspace)'")
    line: int | None = Field(default=None, description="1-based line number")
    message: str = Field(description="Human-readable finding")
    fix: str | None = Field(default=None, description="Suggested remediation")

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> DiagnosticReport:
        """Build the report entry for a diagnostic."""
        return cls(
            severity=diagnostic.severity,
            category=diagnostic.category,
            rule=diagnostic.rule,
            file=diagnostic.file,
            line=diagnostic.line,
            message=diagnostic.message,
            fix=diagnostic.fix,
        )


class CategoryReport(BaseModel):
    """Score of one category in the JSON report."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: Category = Field(description="Category id")
    score: int = Field(ge=0, le=100, description="Category score")
    weight: float = Field(description="Weight in the total score")
    issue_count: int = Field(alias="issueCount", description="Diagnostics in this category")


class LintReportModel(BaseModel):
    """Top-level JSON report."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100, description="Weighted total score")
    context: LintContext = Field(description="Detected or configured workspace context")
    categories: list[CategoryReport] = Field(default_factory=list)
    diagnostics: list[DiagnosticReport] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list, description="Scanned document names")
    timestamp: str = Field(description="ISO-8601 UTC time of the run")


def filter_by_severity(
    diagnostics: Iterable[Diagnostic], min_severity: Severity
) -> list[Diagnostic]:
    """Keep diagnostics at ``min_severity`` or more severe."""
    return [d for d in diagnostics if d.severity.at_least(min_severity)]


def sort_diagnostics(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Most severe first, then by file, line and rule id."""
    return sorted(diagnostics, key=sort_key)


def build_report(
    result: LintResult, min_severity: Severity = Severity.INFO
) -> LintReportModel:
    """Convert a lint result into the JSON report model.

    Category issue counts always cover every diagnostic; ``min_severity``
    only filters the diagnostic list.
    """
    return LintReportModel(
        score=result.total_score,
        context=result.context,
        categories=[
            CategoryReport(
                name=entry.category,
                score=entry.score,
                weight=entry.weight,
                issue_count=entry.issue_count,
            )
            for entry in result.categories
        ],
        diagnostics=[
            DiagnosticReport.from_diagnostic(d)
            for d in sort_diagnostics(filter_by_severity(result.diagnostics, min_severity))
        ],
        files=list(result.documents),
        timestamp=result.timestamp,
    )


def format_json(
    result: LintResult, min_severity: Severity = Severity.INFO, indent: int = 2
) -> str:
    """Serialize a lint result; ``None`` fields are omitted."""
    return build_report(result, min_severity).model_dump_json(
        by_alias=True, exclude_none=True, indent=indent
    )


def grade_for(score: int) -> str:
    """Letter grade for a 0-100 score."""
    for minimum, grade in GRADE_TIERS:
        if score >= minimum:
            return grade
    return "F"


def score_bar(score: int, width: int = BAR_WIDTH) -> str:
    """Block progress bar for a 0-100 score."""
    filled = max(0, min(width, round(score * width / 100)))
    return "█" * filled + "░" * (width - filled)


# ---------------------------------------------------------------------------
# Skill audit reports
# ---------------------------------------------------------------------------


class AuditFindingReport(BaseModel):
    """One audit finding in the JSON report."""

    model_config = ConfigDict(frozen=True)

    severity: Severity = Field(description="critical, warning or info")
    category: str = Field(description="Threat category, e.g. 'Remote Fetch'")
    line: int = Field(ge=1, description="1-based line number")
    match: str = Field(description="Offending line, trimmed to 80 characters")
    message: str = Field(description="Human-readable finding")
    recommendation: str = Field(description="What to do about it")


class AuditReportModel(BaseModel):
    """JSON report for one audited skill file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file: str = Field(description="Audited file name")
    name: str | None = Field(default=None, description="Skill name when auditing a folder")
    findings: list[AuditFindingReport] = Field(default_factory=list)
    risk_score: int = Field(alias="riskScore", ge=0, le=100, description="0 safe, 100 worst")
    verdict: Verdict = Field(description="SAFE, SUSPICIOUS, DANGEROUS or MALICIOUS")


def build_audit_report(result: AuditResult, name: str | None = None) -> AuditReportModel:
    """Convert an audit result into the JSON report model."""
    return AuditReportModel(
        file=result.file,
        name=name,
        findings=[
            AuditFindingReport(
                severity=f.severity,
                category=f.category,
                line=f.line,
                match=f.match,
                message=f.message,
                recommendation=f.recommendation,
            )
            for f in result.findings
        ],
        risk_score=result.risk_score,
        verdict=result.verdict,
    )


def format_audit_json(audits: Sequence[SkillAudit] | AuditResult, indent: int = 2) -> str:
    """Serialize one audit result, or a list of skill folder audits."""
    if isinstance(audits, AuditResult):
        report = build_audit_report(audits)
        return report.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
    reports = [
        build_audit_report(audit.result, name=audit.name).model_dump(
            mode="json", by_alias=True, exclude_none=True
        )
        for audit in audits
    ]
    return json.dumps(reports, indent=indent, ensure_ascii=False)
