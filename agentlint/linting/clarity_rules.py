"""Clarity rules: vague wording, contradictions, density and readability."""

from __future__ import annotations

import re
from collections.abc import Sequence

from agentlint.linting.common import (
    comparable_documents,
    diagnostic,
    find_main_file,
    is_code_fence,
)
from agentlint.linting.models import Category, Diagnostic, Document, Severity

# (pattern, suggestion) pairs; the first match per line wins
_VAGUE_PATTERNS = (
    (r"\bbe helpful\b", "Specify HOW to be helpful (e.g., 'provide code examples')"),
    (r"\bbe nice\b", "Define the specific tone (e.g., 'use casual but professional tone')"),
    (r"\bbe smart\b", "Specify what 'smart' means (e.g., 'prioritize accuracy over speed')"),
    (r"\bbe concise\b", "Set specific limits (e.g., 'keep responses under 3 paragraphs')"),
    (r"\bdo your best\b", "Define what success looks like specifically"),
    (r"\btry to\b", "Use direct instructions: 'do X' not 'try to do X'"),
    (r"\bif possible\b", "Specify the conditions or constraints explicitly"),
    (r"\bas needed\b", "Define when it's needed with specific triggers"),
    (r"\bwhen appropriate\b", "Define what 'appropriate' means in your context"),
    (r"\buse common sense\b", "Spell out the specific rules instead of relying on common sense"),
    (r"\buse good judgment\b", "Define the criteria for judgment (e.g., 'prefer X over Y when Z')"),
    (r"\betc\b", "List all items explicitly; 'etc' leaves the agent guessing"),
    (r"\band so on\b", "Be exhaustive and list all relevant items"),
    (r"\bthings like\b", "List specific items instead of 'things like'"),
)
VAGUE_PATTERNS = tuple((re.compile(p, re.IGNORECASE), s) for p, s in _VAGUE_PATTERNS)

PASSIVE_PATTERNS = (
    (re.compile(r"\bshould be done\b", re.IGNORECASE), "Use active voice: 'Do X'"),
    (re.compile(r"\bit is expected\b", re.IGNORECASE), "Use direct instructions: 'Always do X'"),
    (re.compile(r"\bcan be used\b", re.IGNORECASE), "Be direct: 'Use X for Y'"),
)

_VAGUE_CONDITIONALS = (
    re.compile(
        r"\bif\b.+\b(too many|too few|too long|too short|too much|too little|enough|large"
        r"|small|a lot)\b",
        re.IGNORECASE,
    ),
    re.compile(
        r"\bwhen\b.+\b(appropriate|necessary|needed|relevant|possible|feasible)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\bunless\b.+\b(otherwise|necessary|needed)\b", re.IGNORECASE),
    re.compile(
        r"\bif\b.+\b(something goes wrong|things? (?:go|get) (?:wrong|bad))\b", re.IGNORECASE
    ),
)

_ALWAYS_RE = re.compile(r"always\s+(\w+(?:\s+\w+){0,3})")
_NEVER_RE = re.compile(r"never\s+(\w+(?:\s+\w+){0,3})")
_EXAMPLE_RE = re.compile(r"example|e\.g\.|for instance|like this|such as", re.IGNORECASE)
_IMPERATIVE_RE = re.compile(
    r"^[-*]\s*(Always|Never|Do|Don't|Must|Should|Ensure|Make sure|Remember|Check)",
    re.IGNORECASE,
)
_ACTION_VERBS_RE = re.compile(
    r"\b(read|write|check|send|create|delete|update|run|deploy|notify|log|scan|fix|add|remove"
    r"|validate|verify|ensure|process|handle|parse|open|close|start|stop|build|push|pull|test"
    r"|review|approve|reject)\b",
    re.IGNORECASE,
)
_ABSOLUTE_RE = re.compile(
    r"\b(never|always|must|under no circumstances|absolutely|without exception)\b",
    re.IGNORECASE,
)
_ESCAPE_RE = re.compile(
    r"\b(unless|except|in emergency|escalate|ask the user|if unavoidable|override|exception)\b",
    re.IGNORECASE,
)
_SECURITY_TERMS_RE = re.compile(
    r"\b(api.?key|token|secret|password|credential|private.?key|leak|expose)\b",
    re.IGNORECASE,
)
_SAFE_PRONOUN_RE = re.compile(
    r"\b(this file|this directory|this project|this section|this workspace|that case"
    r"|this means|that is|this way|if this|it is|it's)\b",
    re.IGNORECASE,
)
_LEADING_PRONOUN_RE = re.compile(r"^(it|this|that|they|them)\s", re.IGNORECASE)
_TRIGGER_RE = re.compile(
    r"\b(when|after|before|on|during|every|if|upon|at|while|once)\b", re.IGNORECASE
)
_GENERIC_HEADING_RE = re.compile(r"rule|general|misc|other|note", re.IGNORECASE)
_SUBORDINATOR_RE = re.compile(
    r"\b(which|although|because|since|while|whereas|whereby|wherein|wherever|whenever)\b",
    re.IGNORECASE,
)
_PRIORITY_SIGNAL_RE = re.compile(
    r"\b(critical|important|must|required|optional|nice.?to.?have|priority|P[0-3]|MUST"
    r"|SHOULD|MAY)\b|⚠️|🔴"
)
_ACRONYM_RE = re.compile(r"\b[A-Z]{2,5}\b")
# Hangul, CJK ideographs, hiragana and katakana
_NON_ENGLISH_RE = re.compile(
    r"[\u3131-\u3163\uac00-\ud7a3\u4e00-\u9fff\u3040-\u309f\u30a0-\u30ff]"
)
_CODE_STYLE_RE = re.compile(
    r"\b(indent|spacing|semicolon|bracket|quote|naming convention|camelCase|snake_case"
    r"|PascalCase|line length|import order|comment style|format|prettier|eslint|linter)\b",
    re.IGNORECASE,
)
_ROLEPLAY_RE = re.compile(
    r"\b(act as|you are a|pretend to be|roleplay|imagine you are)\b", re.IGNORECASE
)
_INSTRUCTION_LINE_RE = re.compile(r"^[-*•]\s+\S|^\d+[.)]\s+\S")
_IMPERATIVE_SENTENCE_RE = re.compile(
    r"^(Do|Don't|Never|Always|Must|Should|Ensure|Check|Run|Use|Add|Set|Keep|Make|Avoid|Read"
    r"|Write|Update|Create|Delete|Send|Start|Stop|Configure|Enable|Disable|Install|Remove"
    r"|Follow|Include|Exclude|Review|Test|Deploy|Build|Push|Pull|Commit|Merge)\b",
    re.IGNORECASE,
)
_BUDGET_FILE_RE = re.compile(r"^(CLAUDE|AGENTS|RULES)\.md$", re.IGNORECASE)

KNOWN_ACRONYMS = frozenset({
    "API", "URL", "HTML", "CSS", "JSON", "SQL", "CLI", "UI", "UX", "SDK",
    "NPM", "CI", "CD", "PR", "MR", "QA", "DM", "FAQ", "FYI", "TL", "DR",
    "TODO", "CRUD", "REST", "HTTP", "HTTPS", "SSH", "TLS", "SSL", "JWT", "DNS",
    "CDN", "AWS", "GCP", "CTA", "SEO", "LLM", "AI", "ML", "NLP", "GPT", "PDF",
    "CSV", "YAML", "XML", "SVG", "PNG", "JPG", "GIF", "MD", "JS", "TS", "TSX",
    "JSX", "ENV", "IDE", "OS", "RAM", "CPU", "GPU", "SSD", "UUID", "CORS",
    "SMTP", "PII", "GDPR", "RFC", "SOUL", "USER", "TOOLS", "AGENTS", "CLAUDE",
    "SKILL", "YYYY", "MM", "DD", "HH", "GMT", "UTC", "KST", "EST", "PST",
    "CEO", "CTO", "CFO", "COO", "VP", "PM", "EM", "IC", "HR", "ID", "OK", "NO",
    "VS", "FE", "BE", "DB", "QR", "EOF", "TTY", "PID", "UID", "GID", "MAX",
    "MIN", "SRC", "DST", "TMP", "REPO", "DIR", "DEV", "OPS", "SLA", "KPI",
    "ROI", "MUST", "SHALL", "MAY", "NOT", "ALL", "ANY", "ONLY",
})  # fmt: skip

INSTRUCTION_DENSITY_LIMIT = 30
TOKEN_BUDGET_WARNING = 3000
TOKEN_BUDGET_ERROR = 5000
INSTRUCTION_BUDGET_WARNING = 150
INSTRUCTION_BUDGET_ERROR = 200
LARGE_SNIPPET_LINES = 20


def _excerpt(line: str, length: int = 80) -> str:
    return line.strip()[:length]


def _bullet_body(line: str) -> str | None:
    """Text of a ``-``/``*`` bullet line, or None for other lines."""
    stripped = line.strip()
    if not stripped.startswith(("-", "*")):
        return None
    return re.sub(r"^[-*]\s*", "", stripped)


def estimate_tokens(content: str) -> int:
    """Rough token estimate: 1.3 tokens per whitespace-separated word."""
    return round(len(content.split()) * 1.3)


def count_instructions(content: str) -> int:
    """Count bullet, numbered and imperative lines."""
    count = 0
    for line in content.split("\n"):
        stripped = line.strip()
        if _INSTRUCTION_LINE_RE.match(stripped):
            count += 1
        elif _IMPERATIVE_SENTENCE_RE.match(stripped) and len(stripped) > 10:
            count += 1
    return count


# ---------------------------------------------------------------------------
# Wording
# ---------------------------------------------------------------------------


class NoVagueInstructionsRule:
    """Instructions should be specific and actionable."""

    rule_id = "clarity/no-vague-instructions"
    category = Category.CLARITY
    severity = Severity.WARNING
    description = "Instructions should be specific and actionable, not vague"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag at most one vague phrase per line."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            for index, line in enumerate(doc.lines):
                for pattern, suggestion in VAGUE_PATTERNS:
                    if pattern.search(line):
                        diagnostics.append(
                            diagnostic(
                                self,
                                doc.name,
                                f'Vague instruction: "{_excerpt(line)}"',
                                line=index + 1,
                                fix=suggestion,
                            )
                        )
                        break
        return diagnostics


class ActionableInstructionsRule:
    """Prefer active voice."""

    rule_id = "clarity/actionable-instructions"
    category = Category.CLARITY
    severity = Severity.INFO
    description = "Prefer active voice and direct instructions"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag passive constructions in markdown files."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not doc.is_markdown:
                continue
            for index, line in enumerate(doc.lines):
                for pattern, suggestion in PASSIVE_PATTERNS:
                    if pattern.search(line):
                        diagnostics.append(
                            diagnostic(
                                self,
                                doc.name,
                                f'Passive instruction: "{_excerpt(line)}"',
                                line=index + 1,
                                fix=suggestion,
                            )
                        )
                        break
        return diagnostics


class NakedConditionalRule:
    """Conditionals need measurable triggers."""

    rule_id = "clarity/naked-conditional"
    category = Category.CLARITY
    severity = Severity.ERROR
    description = "Conditionals should have specific, measurable triggers"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag conditionals built on vague qualifiers."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            for index, line in enumerate(doc.lines):
                if line.strip().startswith("//") or is_code_fence(line):
                    continue
                if any(pattern.search(line) for pattern in _VAGUE_CONDITIONALS):
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f'Vague conditional: "{_excerpt(line)}". '
                            "Specify exact threshold or trigger.",
                            line=index + 1,
                            fix="Replace vague qualifiers with specific numbers or conditions "
                            "(e.g., 'if > 2000 chars' instead of 'if too long')",
                        )
                    )
        return diagnostics


class AmbiguousPronounRule:
    """Bullets should not open with a pronoun."""

    rule_id = "clarity/ambiguous-pronoun"
    category = Category.CLARITY
    severity = Severity.WARNING
    description = "Pronouns in instructions should have clear referents"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag bullets whose first word is a bare pronoun."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            for index, line in enumerate(doc.lines):
                body = _bullet_body(line)
                if body is None or _SAFE_PRONOUN_RE.search(line):
                    continue
                if _LEADING_PRONOUN_RE.match(body) and len(body) > 20:
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f'Instruction starts with ambiguous pronoun: "{body[:60]}"',
                            line=index + 1,
                            fix="Replace the pronoun with the specific noun it refers to.",
                        )
                    )
        return diagnostics


class AntiPatternsRule:
    """Entry file anti-patterns: code style rules, credentials, roleplay prompts."""

    rule_id = "clarity/anti-patterns"
    category = Category.CLARITY
    severity = Severity.WARNING
    description = "Detect anti-patterns in the main file"
    applicable_contexts = None

    _CREDENTIAL_PATTERNS = (
        re.compile(r"api.?key\s*[:=]\s*['\"]\w{20,}['\"]", re.IGNORECASE),
        re.compile(r"token\s*[:=]\s*['\"]\w{30,}['\"]", re.IGNORECASE),
        re.compile(r"password\s*[:=]\s*['\"]\S{8,}['\"]", re.IGNORECASE),
        re.compile(r"secret\s*[:=]\s*['\"]\w{20,}['\"]", re.IGNORECASE),
    )

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report the first code-style line, every credential line and the first roleplay line."""
        main = find_main_file(documents)
        if main is None:
            return []

        diagnostics: list[Diagnostic] = []
        for index, line in enumerate(main.lines):
            if _CODE_STYLE_RE.search(line):
                diagnostics.append(
                    diagnostic(
                        self,
                        main.name,
                        "Code style rules detected in main file. Move them to "
                        ".claude/rules/code-style.md for path-scoped activation.",
                        line=index + 1,
                        fix="Create .claude/rules/code-style.md and move formatting rules there.",
                    )
                )
                break

        for index, line in enumerate(main.lines):
            if any(pattern.search(line) for pattern in self._CREDENTIAL_PATTERNS):
                diagnostics.append(
                    diagnostic(
                        self,
                        main.name,
                        "Potential credential detected in config file. Use environment variables.",
                        line=index + 1,
                        fix="Replace with a placeholder such as '${API_KEY}'.",
                        severity=Severity.ERROR,
                    )
                )

        for index, line in enumerate(main.lines):
            if _ROLEPLAY_RE.search(line):
                diagnostics.append(
                    diagnostic(
                        self,
                        main.name,
                        "Roleplay instruction detected. Direct identity works better: "
                        "'## Identity' with factual statements instead of 'Act as X'.",
                        line=index + 1,
                        fix="Use a declarative ## Identity section instead of a roleplay prompt.",
                    )
                )
                break
        return diagnostics


class EnglishConfigFilesRule:
    """Core config files should be written in English."""

    rule_id = "clarity/english-config-files"
    category = Category.CLARITY
    severity = Severity.WARNING
    description = "Core config files should be written in English"
    applicable_contexts = None

    _CONFIG_FILES = ("CLAUDE.md", "AGENTS.md", "SOUL.md", "README.md", ".cursorrules")

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report the share of CJK lines; 30% or more is a warning, less is info."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if doc.base_name not in self._CONFIG_FILES:
                continue
            flagged = [
                index + 1
                for index, line in enumerate(doc.lines)
                if not line.strip().startswith(("```", "<!--")) and _NON_ENGLISH_RE.search(line)
            ]
            if not flagged:
                continue
            percentage = round(len(flagged) / len(doc.lines) * 100)
            diagnostics.append(
                diagnostic(
                    self,
                    doc.name,
                    f"{doc.name} contains {len(flagged)} non-English lines ({percentage}%). "
                    "English config files save tokens and reduce interpretation ambiguity.",
                    line=flagged[0],
                    fix="Translate system instructions to English. Keep names and trigger "
                    "keywords in their original language if needed.",
                    severity=Severity.WARNING if percentage >= 30 else Severity.INFO,
                )
            )
        return diagnostics


# ---------------------------------------------------------------------------
# Consistency within a file
# ---------------------------------------------------------------------------


class NoContradictionsRule:
    """An "always X" and a "never X" must not coexist in one file."""

    rule_id = "clarity/no-contradictions"
    category = Category.CLARITY
    severity = Severity.ERROR
    description = "Instructions within a file should not contradict each other"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Pair identical always/never phrases within each file."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not doc.is_markdown:
                continue
            always: list[tuple[str, int]] = []
            never: list[tuple[str, int]] = []
            for index, line in enumerate(doc.lines):
                lowered = line.lower()
                if match := _ALWAYS_RE.search(lowered):
                    always.append((match.group(1), index + 1))
                if match := _NEVER_RE.search(lowered):
                    never.append((match.group(1), index + 1))

            for text, always_line in always:
                for other, never_line in never:
                    if text == other:
                        diagnostics.append(
                            diagnostic(
                                self,
                                doc.name,
                                f'Contradiction: "always {text}" (line {always_line}) vs '
                                f'"never {other}" (line {never_line})',
                                line=never_line,
                                fix="Resolve the contradiction: pick one or add conditional logic",
                            )
                        )
        return diagnostics


# ---------------------------------------------------------------------------
# Density and readability
# ---------------------------------------------------------------------------


class HasExamplesRule:
    """Longer entry files should show examples."""

    rule_id = "clarity/has-examples"
    category = Category.CLARITY
    severity = Severity.INFO
    description = "Including examples helps the agent understand expected behavior"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Require a fenced block or example wording in entry files over 30 lines."""
        main = find_main_file(documents)
        if main is None or len(main.lines) <= 30:
            return []
        if "```" in main.content or _EXAMPLE_RE.search(main.content):
            return []
        return [
            diagnostic(
                self,
                main.name,
                "No examples found. Adding examples (code blocks, sample outputs) helps "
                "the agent understand expectations.",
                fix="Add a ## Examples section or include inline examples with ``` code blocks",
            )
        ]


class InstructionDensityRule:
    """Too many imperatives dilute the important ones."""

    rule_id = "clarity/instruction-density"
    category = Category.CLARITY
    severity = Severity.INFO
    description = "Files with too many instructions may cause confusion"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Count imperative bullets in the entry file."""
        main = find_main_file(documents)
        if main is None:
            return []
        count = sum(1 for line in main.lines if _IMPERATIVE_RE.match(line.strip()))
        if count <= INSTRUCTION_DENSITY_LIMIT:
            return []
        return [
            diagnostic(
                self,
                main.name,
                f"{count} imperative instructions found. Consider prioritizing; too many "
                "rules can dilute important ones.",
                fix="Group instructions by priority. Put critical rules first.",
            )
        ]


class CompoundInstructionRule:
    """One action per bullet."""

    rule_id = "clarity/compound-instruction"
    category = Category.CLARITY
    severity = Severity.WARNING
    description = "Each bullet point should contain one action, not multiple"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag long bullets with three or more action verbs."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            for index, line in enumerate(doc.lines):
                body = _bullet_body(line)
                if body is None or len(body) <= 60:
                    continue
                verbs = _ACTION_VERBS_RE.findall(body)
                if len(verbs) >= 3:
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f"Compound instruction with {len(verbs)} actions in one bullet. "
                            "Split into separate items.",
                            line=index + 1,
                            fix="Break into one action per bullet point for higher compliance.",
                        )
                    )
        return diagnostics


class EscapeHatchMissingRule:
    """Absolute rules should offer an exception or escalation path."""

    rule_id = "clarity/escape-hatch-missing"
    category = Category.CLARITY
    severity = Severity.WARNING
    description = "Absolute rules should have an exception/escalation path"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Look for an escape phrase on the line or the three lines after it."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            for index, line in enumerate(doc.lines):
                if not _ABSOLUTE_RE.search(line) or _SECURITY_TERMS_RE.search(line):
                    continue
                window = " ".join(doc.lines[index : index + 4])
                if not _ESCAPE_RE.search(window):
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f'Absolute rule without escape hatch: "{_excerpt(line, 70)}"',
                            line=index + 1,
                            fix="Add an exception path (e.g., 'unless the user explicitly "
                            "requests it') or escalation ('ask the user for confirmation').",
                        )
                    )
        return diagnostics


class ActionWithoutContextRule:
    """Bullets in catch-all sections should say when they apply."""

    rule_id = "clarity/action-without-context"
    category = Category.CLARITY
    severity = Severity.INFO
    description = "Instructions should specify when/why, not just what"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag short trigger-less imperatives under generic headings of the entry file."""
        main = find_main_file(documents)
        if main is None:
            return []

        diagnostics: list[Diagnostic] = []
        in_generic_section = False
        for index, raw in enumerate(main.lines):
            line = raw.strip()
            if re.match(r"^##?\s", line):
                in_generic_section = bool(_GENERIC_HEADING_RE.search(line))
                continue
            if not in_generic_section:
                continue
            body = _bullet_body(line)
            if body is None or len(body) < 15:
                continue
            previous = main.lines[index - 1] if index > 0 else ""
            if _TRIGGER_RE.search(body) or _TRIGGER_RE.search(previous):
                continue
            if re.match(r"^[A-Z][a-z]+\s", body) and len(body.split()) < 8:
                diagnostics.append(
                    diagnostic(
                        self,
                        main.name,
                        f'Action without trigger context: "{body[:50]}". '
                        "When should this happen?",
                        line=index + 1,
                        fix="Add a trigger: 'Before committing, ...' or 'When the user asks, ...'",
                    )
                )
        return diagnostics


class SentenceComplexityRule:
    """Instructions should read like command lists, not nested prose."""

    rule_id = "clarity/sentence-complexity"
    category = Category.CLARITY
    severity = Severity.INFO
    description = "Instructions should be short and simple, not nested prose"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag lines over 40 words or with three subordinate clauses."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            for index, raw in enumerate(doc.lines):
                line = raw.strip()
                if line.startswith(("```", "|", "<!--")):
                    continue
                words = len(line.split())
                if words > 40:
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f"Overly complex sentence ({words} words). "
                            "Break into shorter instructions.",
                            line=index + 1,
                            fix="Split into multiple lines.",
                        )
                    )
                    continue
                clauses = len(_SUBORDINATOR_RE.findall(line))
                if clauses >= 3:
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f"Deeply nested sentence ({clauses} subordinate clauses). Simplify.",
                            line=index + 1,
                            fix="Flatten nested clauses into separate bullets or numbered steps.",
                        )
                    )
        return diagnostics


class PrioritySignalMissingRule:
    """Long rule lists need priority markers."""

    rule_id = "clarity/priority-signal-missing"
    category = Category.CLARITY
    severity = Severity.WARNING
    description = "Files with many rules need explicit priority signals"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag files with ten or more bullets and no priority marker."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            bullets = sum(1 for line in doc.lines if re.match(r"^\s*[-*]\s", line))
            if bullets < 10:
                continue
            if any(_PRIORITY_SIGNAL_RE.search(line) for line in doc.lines):
                continue
            diagnostics.append(
                diagnostic(
                    self,
                    doc.name,
                    f"{bullets} instruction items with no priority signals. The agent can't "
                    "distinguish critical from optional.",
                    fix="Add priority markers: Critical / Standard / Nice to Have, or "
                    "MUST/SHOULD/MAY.",
                )
            )
        return diagnostics


class UndefinedTermRule:
    """Acronyms should be defined on first use."""

    rule_id = "clarity/undefined-term"
    category = Category.CLARITY
    severity = Severity.INFO
    description = "Acronyms and jargon should be defined on first use"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Report each unknown acronym once per file unless defined nearby."""
        diagnostics: list[Diagnostic] = []
        for doc in comparable_documents(documents):
            seen: set[str] = set()
            for index, line in enumerate(doc.lines):
                for acronym in _ACRONYM_RE.findall(line):
                    if acronym in KNOWN_ACRONYMS or acronym in seen:
                        continue
                    seen.add(acronym)
                    window = " ".join(doc.lines[max(0, index - 1) : index + 3])
                    escaped = re.escape(acronym)
                    definition = re.compile(rf"{escaped}\s*[:(]|\({escaped}\)", re.IGNORECASE)
                    if definition.search(window):
                        continue
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f'Undefined acronym "{acronym}". Define on first use or add to a '
                            "glossary.",
                            line=index + 1,
                            fix=f'Write it as "**{acronym} (Full Name Here)**" on first mention.',
                        )
                    )
        return diagnostics


class TokenBudgetRule:
    """Entry files should fit the model's instruction budget."""

    rule_id = "clarity/token-budget"
    category = Category.CLARITY
    severity = Severity.WARNING
    description = "Agent config files should stay within the instruction and token budget"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Estimate tokens and count instructions of CLAUDE/AGENTS/RULES files."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not _BUDGET_FILE_RE.match(doc.name):
                continue
            tokens = estimate_tokens(doc.content)
            instructions = count_instructions(doc.content)
            if tokens > TOKEN_BUDGET_ERROR or instructions > INSTRUCTION_BUDGET_ERROR:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        f"Token budget exceeded: {tokens} estimated tokens, {instructions} "
                        "instructions. Rules beyond this limit are silently ignored.",
                        fix="Split into smaller files or use conditional loading.",
                        severity=Severity.ERROR,
                    )
                )
            elif tokens > TOKEN_BUDGET_WARNING or instructions > INSTRUCTION_BUDGET_WARNING:
                diagnostics.append(
                    diagnostic(
                        self,
                        doc.name,
                        f"Token budget approaching limit: {tokens} estimated tokens, "
                        f"{instructions} instructions.",
                        fix="Move task-specific instructions to skills or conditional loading.",
                    )
                )
        return diagnostics


class LargeCodeSnippetRule:
    """Long fenced blocks belong in their own files."""

    rule_id = "clarity/large-code-snippet"
    category = Category.CLARITY
    severity = Severity.INFO
    description = "Large embedded code snippets should be file references"
    applicable_contexts = None

    def check(self, documents: Sequence[Document]) -> list[Diagnostic]:
        """Flag fenced blocks longer than 20 lines."""
        diagnostics: list[Diagnostic] = []
        for doc in documents:
            if not doc.is_markdown:
                continue
            start: int | None = None
            for index, line in enumerate(doc.lines):
                if not is_code_fence(line):
                    continue
                if start is None:
                    start = index
                    continue
                length = index - start - 1
                if length > LARGE_SNIPPET_LINES:
                    diagnostics.append(
                        diagnostic(
                            self,
                            doc.name,
                            f"Large code snippet ({length} lines) embedded. "
                            "Extract to a file and reference it instead.",
                            line=start + 1,
                            fix="Extract to a file (e.g., examples/snippet.ext) and reference it.",
                        )
                    )
                start = None
        return diagnostics


CLARITY_RULES = [
    NoVagueInstructionsRule(),
    ActionableInstructionsRule(),
    HasExamplesRule(),
    NoContradictionsRule(),
    InstructionDensityRule(),
    NakedConditionalRule(),
    CompoundInstructionRule(),
    EscapeHatchMissingRule(),
    AmbiguousPronounRule(),
    ActionWithoutContextRule(),
    SentenceComplexityRule(),
    PrioritySignalMissingRule(),
    UndefinedTermRule(),
    EnglishConfigFilesRule(),
    AntiPatternsRule(),
    TokenBudgetRule(),
    LargeCodeSnippetRule(),
]
