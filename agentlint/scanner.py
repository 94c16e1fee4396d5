"""Workspace scanner: find agent instruction files on disk and parse them.

Only a known set of locations is read. Document names are POSIX paths
relative to the workspace root (``skills/<skill>/SKILL.md`` for skills found
under the home directory too), which is what the rules match on.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from agentlint.exceptions import DocumentReadError, ResourceNotFoundError
from agentlint.linting.document import detect_context, parse_document
from agentlint.linting.models import LintContext, Workspace
from agentlint.logging import get_logger

logger = get_logger(__name__)

AGENT_FILES = (
    "CLAUDE.md",
    "CLAUDE.local.md",
    "AGENTS.md",
    "SOUL.md",
    "IDENTITY.md",
    "USER.md",
    "TOOLS.md",
    "SECURITY.md",
    "SHIELD.md",
    "FORMATTING.md",
    "HEARTBEAT.md",
    "MEMORY.md",
    "BOOTSTRAP.md",
    ".clauderc",
    ".agentlinterrc",
    "clawdbot.json",
    "openclaw.json",
)

AGENT_DIRS = (".claude", "claude", ".cursor", ".windsurf")
# Subdirectories of .claude holding sub-agent definitions and path-scoped rules
CLAUDE_SUBDIRS = ("agents", "rules")
CLAUDE_SETTINGS_FILES = (
    ".claude/settings.json",
    ".claude/mcp.json",
    ".claude-plugin/plugin.json",
)
NOTE_DIRS = ("compound", "memory")
# Read only to check that local memory stays out of version control
GITIGNORE = ".gitignore"
LOCAL_MEMORY_FILE = "CLAUDE.local.md"

HOME_RUNTIME_CONFIGS = (
    Path(".clawdbot") / "clawdbot.json",
    Path(".openclaw") / "openclaw.json",
)
HOME_SKILL_DIRS = (Path(".clawdbot") / "skills", Path(".openclaw") / "skills")

DOCUMENT_SUFFIXES = (".md", ".txt")
SKILL_SUFFIXES = (".md", ".sh", ".bash")
MAX_SKILL_DEPTH = 3


def _sorted_files(directory: Path, suffixes: tuple[str, ...]) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        entry for entry in directory.iterdir() if entry.is_file() and entry.suffix in suffixes
    )


def _iter_skill_files(directory: Path, depth: int = 0) -> Iterator[Path]:
    """Walk a skills tree, skipping hidden entries and ``node_modules``."""
    if depth > MAX_SKILL_DEPTH:
        return
    for entry in sorted(directory.iterdir()):
        if entry.name == "node_modules" or entry.name.startswith("."):
            continue
        if entry.is_dir():
            yield from _iter_skill_files(entry, depth + 1)
        elif entry.suffix in SKILL_SUFFIXES:
            yield entry


def discover_files(root: Path, home: Path) -> list[tuple[str, Path]]:
    """List ``(document name, path)`` pairs for every agent file in the workspace.

    The home runtime config is only picked up when the workspace *is* the
    home directory, so scanning a project never reads the user's live tokens.
    """
    found: list[tuple[str, Path]] = []
    seen_names: set[str] = set()
    seen_paths: set[Path] = set()

    def add(name: str, path: Path) -> None:
        resolved = path.resolve()
        if name in seen_names or resolved in seen_paths:
            return
        seen_names.add(name)
        seen_paths.add(resolved)
        found.append((name, path))

    for file_name in AGENT_FILES:
        if (root / file_name).is_file():
            add(file_name, root / file_name)
    if (root / LOCAL_MEMORY_FILE).is_file() and (root / GITIGNORE).is_file():
        add(GITIGNORE, root / GITIGNORE)

    for dir_name in AGENT_DIRS:
        for path in _sorted_files(root / dir_name, DOCUMENT_SUFFIXES):
            add(f"{dir_name}/{path.name}", path)
    for sub_dir in CLAUDE_SUBDIRS:
        for path in _sorted_files(root / ".claude" / sub_dir, DOCUMENT_SUFFIXES):
            add(f".claude/{sub_dir}/{path.name}", path)
    for name in CLAUDE_SETTINGS_FILES:
        if (root / name).is_file():
            add(name, root / name)

    for dir_name in NOTE_DIRS:
        for path in _sorted_files(root / dir_name, (".md",)):
            add(f"{dir_name}/{path.name}", path)

    if root.resolve() == home.resolve():
        for relative in HOME_RUNTIME_CONFIGS:
            if (home / relative).is_file():
                add(relative.name, home / relative)
                break

    for skills_dir in (root / "skills", *(home / relative for relative in HOME_SKILL_DIRS)):
        if not skills_dir.is_dir():
            continue
        for path in _iter_skill_files(skills_dir):
            add(f"skills/{path.relative_to(skills_dir).as_posix()}", path)

    return found


def read_document_text(path: Path) -> str:
    """Read a workspace file as UTF-8.

    Raises
    ------
    DocumentReadError
        If the file cannot be read or decoded
    """
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentReadError(str(path), e) from e


def scan_workspace(
    root: str | Path,
    home: str | Path | None = None,
    context: LintContext | None = None,
) -> Workspace:
    """Scan ``root`` for agent files and build a parsed workspace.

    Parameters
    ----------
    root : str | Path
        Workspace directory
    home : str | Path | None
        Home directory used for runtime config and shared skills;
        defaults to the current user's home
    context : LintContext | None
        Overrides the context detected from the root file names

    Returns
    -------
    Workspace
        Parsed documents in discovery order

    Raises
    ------
    ResourceNotFoundError
        If ``root`` is not a directory
    DocumentReadError
        If a discovered file cannot be read
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise ResourceNotFoundError("workspace", str(root_path))
    home_path = Path(home) if home is not None else Path.home()

    files = discover_files(root_path, home_path)
    if context is None:
        context = detect_context(name for name, _ in files if "/" not in name)

    documents = tuple(
        parse_document(read_document_text(path), name, context=context, path=str(path))
        for name, path in files
    )
    logger.debug(
        "Scanned {root}: {count} documents, context {context}",
        root=str(root_path),
        count=len(documents),
        context=context,
    )
    return Workspace(root=str(root_path), documents=documents, context=context)
