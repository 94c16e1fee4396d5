"""Cross-document consistency analysis.

Three lexical algorithms shared by the consistency rules:

- near-duplicate instruction detection (Jaccard similarity of bullet lines)
- circular cross-document reference detection (DFS over a reference graph)
- polarity/topic conflict correlation (allow vs deny, high vs low priority)

All functions are pure and return empty results on degenerate input.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum

from agentlint.linting.models import Document

# Working-note directories are excluded from cross-document comparisons
_NOTE_PREFIXES = ("compound/", "memory/")

_BULLET_RE = re.compile(r"^[-*>]\s*")
_WHITESPACE_RE = re.compile(r"\s+")

DUPLICATE_THRESHOLD = 0.8
DUPLICATE_MIN_LENGTH = 20
STATEMENT_MIN_LENGTH = 10
TOPIC_MAX_LENGTH = 40
TOPIC_MIN_WORD_LENGTH = 4
CONFLICT_MIN_SHARED_WORDS = 2

REFERENCE_RE = re.compile(
    r"(?:see|read|check|refer(?:\s+to)?|load|follow|defined\s+in)\s+"
    r"[`\"']?([A-Z][A-Za-z_-]+\.md)[`\"']?",
    re.IGNORECASE,
)

_MODAL_RE = re.compile(r"\b(?:always|never|must|should|do not|don't)\b")


def comparable_documents(documents: Iterable[Document]) -> list[Document]:
    """Markdown documents outside the working-note directories."""
    return [
        doc
        for doc in documents
        if doc.is_markdown and not doc.name.startswith(_NOTE_PREFIXES)
    ]


# ---------------------------------------------------------------------------
# Near-duplicate detection
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DuplicateMatch:
    """A bullet line that nearly repeats an earlier one in another document.

    Line numbers are 1-based.
    """

    file: str
    line: int
    original_file: str
    original_line: int
    text: str
    similarity: float


def normalize_instruction(line: str) -> str:
    """Strip the bullet marker, lowercase and collapse whitespace."""
    stripped = _BULLET_RE.sub("", line.strip(), count=1)
    return _WHITESPACE_RE.sub(" ", stripped.lower()).strip()


def jaccard_similarity(a: str, b: str) -> float:
    """Jaccard index of the whitespace-token sets of two strings."""
    tokens_a = set(a.split())
    tokens_b = set(b.split())
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def _candidate_lines(
    documents: Sequence[Document], min_length: int
) -> list[tuple[str, int, str]]:
    candidates: list[tuple[str, int, str]] = []
    for doc in comparable_documents(documents):
        for index, raw in enumerate(doc.lines):
            line = raw.strip()
            if len(line) < min_length or not line.startswith(("-", "*", ">")):
                continue
            normalized = normalize_instruction(line)
            if len(normalized) < min_length:
                continue
            candidates.append((doc.name, index + 1, normalized))
    return candidates


def find_near_duplicates(
    documents: Sequence[Document],
    threshold: float = DUPLICATE_THRESHOLD,
    min_length: int = DUPLICATE_MIN_LENGTH,
) -> list[DuplicateMatch]:
    """Find bullet lines repeated across different documents.

    Every later candidate is compared with every earlier one (quadratic in the
    number of bullet lines). A match is attached to the later occurrence and
    each later line is reported at most once, against its first match.
    """
    candidates = _candidate_lines(documents, min_length)
    matches: list[DuplicateMatch] = []

    for later_index, (file, line, text) in enumerate(candidates):
        for original_file, original_line, original_text in candidates[:later_index]:
            if original_file == file:
                continue
            similarity = jaccard_similarity(text, original_text)
            if similarity > threshold:
                matches.append(
                    DuplicateMatch(file, line, original_file, original_line, text, similarity)
                )
                break

    return matches


# ---------------------------------------------------------------------------
# Circular reference detection
# ---------------------------------------------------------------------------


def build_reference_graph(documents: Sequence[Document]) -> dict[str, list[str]]:
    """Map each document name to the known documents its text refers to.

    Targets resolve by exact name first, then by base name. Self references
    are ignored. Edge order follows first appearance in the text.
    """
    by_name = {doc.name: doc.name for doc in documents}
    by_base: dict[str, str] = {}
    for doc in documents:
        by_base.setdefault(doc.base_name, doc.name)

    graph: dict[str, list[str]] = {}
    for doc in documents:
        edges = graph.setdefault(doc.name, [])
        for match in REFERENCE_RE.finditer(doc.content):
            token = match.group(1)
            target = by_name.get(token) or by_base.get(token)
            if target is None or target == doc.name or target in edges:
                continue
            edges.append(target)
    return graph


def find_reference_cycles(graph: Mapping[str, Sequence[str]]) -> list[list[str]]:
    """Detect reference cycles with a three-state depth-first search.

    Each cycle is returned as a path that starts and ends on the repeated
    node, e.g. ``["A.md", "B.md", "A.md"]``. Nodes already fully explored
    from an earlier start are not walked again.
    """
    explored: set[str] = set()
    on_stack: set[str] = set()
    cycles: list[list[str]] = []

    def dfs(node: str, path: list[str]) -> None:
        if node in on_stack:
            cycles.append([*path[path.index(node) :], node])
            return
        if node in explored:
            return
        explored.add(node)
        on_stack.add(node)
        path.append(node)
        for neighbor in graph.get(node, ()):
            dfs(neighbor, path)
        path.pop()
        on_stack.discard(node)

    for start in graph:
        dfs(start, [])
    return cycles


# ---------------------------------------------------------------------------
# Conflict correlation
# ---------------------------------------------------------------------------


class Polarity(StrEnum):
    """Classification of a statement used in conflict correlation."""

    ALLOW = "allow"
    DENY = "deny"
    HIGH = "high"
    LOW = "low"


@dataclass(frozen=True, slots=True)
class PolarityMarkers:
    """Two mutually exclusive marker sets; B wins when a line matches both."""

    name: str
    a: Polarity
    a_pattern: re.Pattern[str]
    b: Polarity
    b_pattern: re.Pattern[str]


PERMISSION_MARKERS = PolarityMarkers(
    name="permission",
    a=Polarity.ALLOW,
    a_pattern=re.compile(
        r"\b(?:allow|enable|permit|can|authorized|grant|open"
        r"|auto[- ]?(?:send|run|exec|approve))\b",
        re.IGNORECASE,
    ),
    b=Polarity.DENY,
    b_pattern=re.compile(
        r"\b(?:deny|disable|forbid|cannot|never|restricted|block"
        r"|require.*?approval|require.*?confirm)\b",
        re.IGNORECASE,
    ),
)

PRIORITY_MARKERS = PolarityMarkers(
    name="priority",
    a=Polarity.HIGH,
    a_pattern=re.compile(
        r"\b(?:critical|highest|most important|P0|top priority|first priority)\b|🔴|⚠️",
        re.IGNORECASE,
    ),
    b=Polarity.LOW,
    b_pattern=re.compile(
        r"\b(?:low priority|optional|nice.?to.?have|least important|P3|minor|not important)\b",
        re.IGNORECASE,
    ),
)


@dataclass(frozen=True, slots=True)
class Statement:
    """A line classified with a polarity and reduced to topic words."""

    file: str
    line: int
    text: str
    polarity: Polarity
    topic: frozenset[str]


@dataclass(frozen=True, slots=True)
class Conflict:
    """Two statements on the same topic with opposite polarity."""

    first: Statement
    second: Statement
    shared: tuple[str, ...]


def extract_topic(line: str, markers: PolarityMarkers) -> frozenset[str]:
    """Reduce a line to its coarse topic words.

    Lowercase, strip the bullet marker and polarity/modal keywords, collapse
    whitespace, truncate, then keep words of at least four characters.
    """
    text = _BULLET_RE.sub("", line.strip().lower(), count=1)
    text = markers.a_pattern.sub(" ", text)
    text = markers.b_pattern.sub(" ", text)
    text = _MODAL_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()[:TOPIC_MAX_LENGTH]
    return frozenset(word for word in text.split() if len(word) >= TOPIC_MIN_WORD_LENGTH)


def extract_statements(
    documents: Sequence[Document], markers: PolarityMarkers
) -> list[Statement]:
    """Classify every qualifying line of the comparable documents."""
    statements: list[Statement] = []
    for doc in comparable_documents(documents):
        for index, raw in enumerate(doc.lines):
            line = raw.strip()
            if len(line) < STATEMENT_MIN_LENGTH:
                continue
            if markers.b_pattern.search(line):
                polarity = markers.b
            elif markers.a_pattern.search(line):
                polarity = markers.a
            else:
                continue
            statements.append(
                Statement(doc.name, index + 1, line, polarity, extract_topic(line, markers))
            )
    return statements


def correlate_conflicts(
    statements: Sequence[Statement],
    min_shared: int = CONFLICT_MIN_SHARED_WORDS,
) -> list[Conflict]:
    """Pair statements from different files whose polarity differs on a shared topic."""
    conflicts: list[Conflict] = []
    for i, first in enumerate(statements):
        for second in statements[i + 1 :]:
            if first.file == second.file or first.polarity == second.polarity:
                continue
            shared = first.topic & second.topic
            if len(shared) >= min_shared:
                conflicts.append(Conflict(first, second, tuple(sorted(shared))))
    return conflicts


def find_conflicts(
    documents: Sequence[Document], markers: PolarityMarkers
) -> list[Conflict]:
    """Extract statements for ``markers`` and correlate them."""
    return correlate_conflicts(extract_statements(documents, markers))
