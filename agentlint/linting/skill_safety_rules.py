"""Skill safety rules: pre-install checks for third-party skills.

Skills that are themselves about security legitimately quote attack patterns,
so most findings are demoted to info inside code blocks, on documentation-style
lines and in security-themed skills.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence

from agentlint.linting.common import WORKSPACE, diagnostic
from agentlint.linting.models import Category, Diagnostic, Document, Severity

DANGEROUS_COMMANDS = (
    (re.compile(r"rm\s+-rf\s+[/~]"), "Recursive delete on root/home", Severity.ERROR),
    (re.compile(r"curl\s+.*\|\s*(?:bash|sh|zsh)"), "Pipe curl to shell", Severity.ERROR),
    (re.compile(r"eval\s*\("), "Dynamic eval execution", Severity.WARNING),
    (re.compile(r"wget\s+.*-O\s*-\s*\|\s*(?:bash|sh)"), "Pipe wget to shell", Severity.ERROR),
    (re.compile(r"chmod\s+777"), "World-writable permissions", Severity.WARNING),
    (re.compile(r"sudo\s+"), "Sudo usage", Severity.WARNING),
)

SENSITIVE_PATHS = (
    (re.compile(r"~/\.ssh"), "SSH keys directory"),
    (re.compile(r"~/\.gnupg"), "GPG keys directory"),
    (re.compile(r"~/\.aws/credentials"), "AWS credentials"),
    (re.compile(r"~/\.env"), "Environment file"),
    (re.compile(r"/etc/passwd"), "System password file"),
    (re.compile(r"/etc/shadow"), "System shadow file"),
    (re.compile(r"~/\.clawdbot/clawdbot\.json"), "Agent config with tokens"),
)

EXFILTRATION_PATTERNS = (
    (re.compile(r"curl\s+.*-d\s+.*\$"), "curl POST with variable data"),
    (re.compile(r"curl\s+.*--data.*\$"), "curl data with variable"),
    (re.compile(r"fetch\s*\(.*\+"), "Dynamic fetch URL construction"),
    (re.compile(r"webhook\.site|requestbin|pipedream"), "Known data collection service"),
    (re.compile(r"ngrok|localhost\.run|serveo"), "Tunnel service (potential exfil)"),
)

BROAD_PERMISSION_PATTERNS = (
    re.compile(
        r"(?:grant|give|require|need)s?\s+(?:full|unrestricted|unlimited)\s+"
        r"(?:access|permission|control)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:grant|give|require|need)s?\s+access\s+(?:to\s+)?(?:all|any|every)\s+"
        r"(?:files?|directories|folders)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:read|write|modify)\s+(?:any|all|every)\s+(?:files?|data|directories)",
               re.IGNORECASE),
    re.compile(r"disable\s+(?:security|safety|restrictions|guardrails)", re.IGNORECASE),
)

INJECTION_PATTERNS = (
    re.compile(
        r"ignore\s+(?:all\s+)?(?:previous|above|prior)\s+(?:instructions?|rules?|constraints?)",
        re.IGNORECASE,
    ),
    re.compile(r"forget\s+(?:all|everything|your)\s+(?:previous|prior|above)", re.IGNORECASE),
    re.compile(r"system\s*:\s*you\s+(?:are|must|should|will)", re.IGNORECASE),
    re.compile(r"override\s+(?:all|your|system)\s+(?:rules|instructions|constraints)",
               re.IGNORECASE),
    re.compile(
        r"you\s+are\s+now\s+(?:a|an|in)\s+(?:new|different|unrestricted|evil|DAN|jailbr)",
        re.IGNORECASE,
    ),
)

_SECURITY_SKILL_RE = re.compile(
    r"prompt[- ]?guard|security|injection|defense|detect|shield|protect|hive[- ]?fence|guard"
    r"|firewall|threat|attack|vulnerability|red[- ]?team|pentest",
    re.IGNORECASE,
)
_DOC_LINE_RE = re.compile(r"^\s*[>$#❌✅|]")
_EXAMPLE_LINE_RE = re.compile(r"^\s*(?:[❌✅|>$#]|⚠️)")
_EXAMPLE_WORDS_RE = re.compile(r"example|detect|pattern|test", re.IGNORECASE)
REPOMIX_SIGNATURES = (
    re.compile(r"repomix", re.IGNORECASE),
    re.compile(r"This file is a merged representation", re.IGNORECASE),
    re.compile(r"project-structure\.md"),
    re.compile(r"tech-stack\.md"),
    re.compile(r"files\.md.*grep", re.IGNORECASE),
)
REPOMIX_SKILL_FILES = ("SKILL.md", "/files.md", "/tech-stack.md", "/summary.md")
REPOMIX_REFERENCE_FILES = ("files.md", "tech-stack.md")

_SETUP_CONTEXT_RE = re.compile(r"install|prerequisite|setup|dependency", re.IGNORECASE)


def is_skill(document: Document) -> bool:
    """True for any file under a ``skills/`` directory."""
    return "skills/" in document.name


def is_skill_manifest(document: Document) -> bool:
    """True for a skill's SKILL.md."""
    return is_skill(document) and document.name.endswith("SKILL.md")


def is_security_skill(document: Document) -> bool:
    """True if the skill's name or opening text is about security."""
    return bool(
        _SECURITY_SKILL_RE.search(document.name)
        or _SECURITY_SKILL_RE.search(document.content[:500])
    )


def skill_directory(name: str) -> str:
    """``skills/<skill>`` prefix of a skill document name."""
    parts = name.split("/")
    index = parts.index("skills") if "skills" in parts else 0
    return "/".join(parts[: index + 2])


def iter_lines_with_fences(document: Document) -> Iterator[tuple[int, str, bool]]:
    """Yield ``(index, line, inside_code_block)``; a fence line toggles the state first."""
    in_code_block = False
    for index, line in enumerate(document.lines):
        if line.strip().startswith("```"):
            in_code_block = not in_code_block
        yield index, line, in_code_block


def _excerpt(line: str) -> str:
    return line.strip()[:60]


class HasMetadataRule:
    """Skills should declare who wrote them and what they do."""

    rule_id = "skillSafety/has-metadata"
    category = Category.SKILL_SAFETY
    severity = Severity.WARNING
    description = "Skills should have proper metadata (name, description, author)"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Check SKILL.md frontmatter for author and description."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not is_skill_manifest(doc):
                continue
            if not doc.content.startswith("---"):
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Skill missing YAML frontmatter (name, description, author).",
                        fix="Add frontmatter:\n---\nname: skill-name\ndescription: ...\n"
                        "author: ...\n---",
                        severity=Severity.INFO,
                    )
                )
                continue
            parts = doc.content.split("---")
            frontmatter = parts[1] if len(parts) > 1 else ""
            if "author" not in frontmatter:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Skill missing author field. Unattributed skills are harder to trust.",
                        fix="Add author field to frontmatter.",
                        severity=Severity.INFO,
                    )
                )
            if "description" not in frontmatter:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        "Skill missing description. Unclear what this skill does.",
                        fix="Add a description field to frontmatter.",
                        severity=Severity.INFO,
                    )
                )
        return diagnostics


class DangerousCommandsRule:
    """Skills should not run destructive shell commands."""

    rule_id = "skillSafety/dangerous-commands"
    category = Category.SKILL_SAFETY
    severity = Severity.ERROR
    description = "Skills should not contain dangerous shell commands"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report dangerous commands, demoted to info when they look like documentation."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not is_skill(doc):
                continue
            for index, line, in_code_block in iter_lines_with_fences(doc):
                for pattern, name, severity in DANGEROUS_COMMANDS:
                    if not pattern.search(line):
                        continue
                    preceding = "".join(doc.lines[max(0, index - 3) : index])
                    is_documentation = (
                        in_code_block
                        or bool(_DOC_LINE_RE.match(line))
                        or bool(_SETUP_CONTEXT_RE.search(preceding))
                    )
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f'Dangerous command: {name}: "{_excerpt(line)}"',
                            line=index + 1,
                            fix="Review this command carefully. Restrict its scope or add "
                            "user confirmation.",
                            severity=Severity.INFO if is_documentation else severity,
                        )
                    )
        return diagnostics


class SensitivePathsRule:
    """Skills should not touch credential stores or system files."""

    rule_id = "skillSafety/sensitive-paths"
    category = Category.SKILL_SAFETY
    severity = Severity.WARNING
    description = "Skills should not access sensitive system paths"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report sensitive path references; security skills get info."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not is_skill(doc):
                continue
            security_skill = is_security_skill(doc)
            for index, line in enumerate(doc.lines):
                for pattern, name in SENSITIVE_PATHS:
                    if not pattern.search(line):
                        continue
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f"Access to sensitive path: {name}",
                            line=index + 1,
                            fix="This is a security skill documenting sensitive paths. "
                            "Verify context."
                            if security_skill
                            else "Ensure this access is necessary for the skill.",
                            severity=Severity.INFO if security_skill else Severity.WARNING,
                        )
                    )
        return diagnostics


class DataExfiltrationRule:
    """Skills should not ship data to external collectors."""

    rule_id = "skillSafety/data-exfiltration"
    category = Category.SKILL_SAFETY
    severity = Severity.ERROR
    description = "Skills should not exfiltrate data to external services"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report exfiltration patterns, demoted to info when documented."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not is_skill(doc):
                continue
            security_skill = is_security_skill(doc)
            for index, line, in_code_block in iter_lines_with_fences(doc):
                for pattern, name in EXFILTRATION_PATTERNS:
                    if not pattern.search(line):
                        continue
                    is_documentation = (
                        security_skill or in_code_block or bool(_DOC_LINE_RE.match(line))
                    )
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f"Potential data exfiltration: {name}",
                            line=index + 1,
                            fix="Ensure external calls are intentional and authorized.",
                            severity=Severity.INFO if is_documentation else Severity.ERROR,
                        )
                    )
        return diagnostics


class ExcessivePermissionsRule:
    """Skills should ask for the minimum they need."""

    rule_id = "skillSafety/excessive-permissions"
    category = Category.SKILL_SAFETY
    severity = Severity.WARNING
    description = "Skills requesting broad permissions should be flagged"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report broad permission requests in SKILL.md files."""
        return [
            diagnostic(
                self,
                doc.name,
                f'Broad permission request: "{_excerpt(line)}"',
                line=index + 1,
                fix="Skills should request minimal necessary permissions. Review scope.",
            )
            for doc in documents
            if is_skill_manifest(doc)
            for index, line in enumerate(doc.lines)
            for pattern in BROAD_PERMISSION_PATTERNS
            if pattern.search(line)
        ]


class InjectionVectorsRule:
    """Skills must not carry prompt injection payloads."""

    rule_id = "skillSafety/injection-vectors"
    category = Category.SKILL_SAFETY
    severity = Severity.ERROR
    description = "Skills should not contain prompt injection vectors"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report injection phrases; examples and security skills are demoted to info."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not is_skill(doc):
                continue
            security_skill = is_security_skill(doc)
            for index, line, in_code_block in iter_lines_with_fences(doc):
                for pattern in INJECTION_PATTERNS:
                    if not pattern.search(line):
                        continue
                    is_example = (
                        in_code_block
                        or bool(_EXAMPLE_LINE_RE.match(line))
                        or bool(_EXAMPLE_WORDS_RE.search(line))
                        or security_skill
                    )
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f'Potential injection vector in skill: "{_excerpt(line)}"',
                            line=index + 1,
                            fix="This appears to be documentation. Verify it is not executable."
                            if is_example
                            else "This skill may contain a prompt injection attack. Do NOT "
                            "install without careful review.",
                            severity=Severity.INFO if is_example else Severity.ERROR,
                        )
                    )
        return diagnostics


class RepomixSkillHintRule:
    """Generated skills deserve an extra review before use."""

    rule_id = "skillSafety/repomix-skill-hint"
    category = Category.SKILL_SAFETY
    severity = Severity.INFO
    description = "Detect Repomix-generated skills and suggest validating them"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report once when a skill carries Repomix signatures or a ``references/`` tree."""
        detected: set[str] = set()
        for doc in documents:
            if not is_skill(doc):
                continue
            if "/references/" in doc.name and doc.name.endswith(REPOMIX_REFERENCE_FILES):
                detected.add(skill_directory(doc.name))
            elif doc.name.endswith(REPOMIX_SKILL_FILES) and any(
                pattern.search(doc.content[:500]) for pattern in REPOMIX_SIGNATURES
            ):
                detected.add(skill_directory(doc.name))
        if not detected:
            return []
        return [
            diagnostic(
                self,
                WORKSPACE,
                f"Repomix-generated skill(s) detected: {', '.join(sorted(detected))}. "
                "Generated skills should be reviewed before use.",
                fix="Check that SKILL.md has a description, keep reference files under 500 "
                "lines, and run 'agentlint audit' on each skill file.",
            )
        ]


SKILL_SAFETY_RULES = [
    HasMetadataRule(),
    DangerousCommandsRule(),
    SensitivePathsRule(),
    DataExfiltrationRule(),
    ExcessivePermissionsRule(),
    InjectionVectorsRule(),
    RepomixSkillHintRule(),
]
