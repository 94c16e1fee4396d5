"""Skill audit command for the agentlint CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agentlint.audit import AuditResult, SkillAudit, Verdict, audit_file, audit_skill_folders
from agentlint.exceptions import DocumentReadError
from agentlint.linting.models import Severity
from agentlint.logging import configure_logging
from agentlint.reporting import format_audit_json

console = Console()
err_console = Console(stderr=True)

CLI_HELP = "Audit a skill file, or a workspace's installed skills, for known attack patterns"

_OUTPUT_FORMATS = ("text", "json")
_URL_PREFIXES = ("http://", "https://")
_VERDICT_STYLE = {
    Verdict.SAFE: "bold green",
    Verdict.SUSPICIOUS: "bold yellow",
    Verdict.DANGEROUS: "bold red",
    Verdict.MALICIOUS: "bold white on red",
}
_SEVERITY_STYLE = {
    Severity.CRITICAL: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}


def audit(
    target: Annotated[
        str,
        typer.Argument(help="Skill file to audit, or a workspace whose skills to audit"),
    ],
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format (text, json)",
        ),
    ] = "text",
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Log level: debug|info|warning|error",
        ),
    ] = "warning",
) -> None:
    """Audit skills before installing them.

    A file is audited on its own. A directory is treated as a workspace: every
    skill under skills/, .claude/skills and the home skill folders is audited.
    Exits with code 1 when any skill is DANGEROUS or MALICIOUS.

    Examples
    --------
    agentlint audit downloads/SKILL.md
    agentlint audit . --format json
    """
    if output_format not in _OUTPUT_FORMATS:
        err_console.print(
            f"[red]Invalid format '{escape(output_format)}'.[/red] Choose from: "
            f"{', '.join(_OUTPUT_FORMATS)}"
        )
        raise typer.Exit(1)

    configure_logging(level=log_level.upper())  # type: ignore[arg-type]

    if target.startswith(_URL_PREFIXES):
        err_console.print(
            "[red]Remote skills are not fetched.[/red] Download the file and audit the "
            "local copy."
        )
        raise typer.Exit(1)

    path = Path(target)
    if not path.exists():
        err_console.print(f"[red]File not found:[/red] {escape(target)}")
        raise typer.Exit(1)

    try:
        if path.is_dir():
            verdicts = _audit_folders(path, output_format)
        else:
            verdicts = _audit_single(path, output_format)
    except DocumentReadError as e:
        err_console.print(f"[red]Read Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if any(verdict.blocks_install for verdict in verdicts):
        raise typer.Exit(1)


def _audit_single(path: Path, output_format: str) -> list[Verdict]:
    result = audit_file(path)
    if output_format == "json":
        typer.echo(format_audit_json(result))
    else:
        _print_result(result)
    return [result.verdict]


def _audit_folders(path: Path, output_format: str) -> list[Verdict]:
    audits = audit_skill_folders(path)
    if output_format == "json":
        typer.echo(format_audit_json(audits))
    else:
        _print_folders(audits)
    return [entry.result.verdict for entry in audits]


def _verdict_label(verdict: Verdict) -> str:
    style = _VERDICT_STYLE[verdict]
    return f"[{style}]{verdict}[/{style}]"


def _print_result(result: AuditResult) -> None:
    """Print one audit as rich text, findings grouped by category."""
    console.print()
    console.print("[bold magenta]Skill Audit[/bold magenta]")
    console.print(f"[dim]File: {escape(result.file)}[/dim]")
    console.print()
    console.print(f"  Verdict: {_verdict_label(result.verdict)}")
    console.print(f"  [dim]Risk score: {result.risk_score}/100[/dim]")
    console.print()

    if not result.findings:
        console.print("  [green]No dangerous patterns found.[/green]")
        console.print()
        return

    counts = [
        f"[{style}]{result.count(severity)} {severity}[/{style}]"
        for severity, style in _SEVERITY_STYLE.items()
        if result.count(severity)
    ]
    console.print(f"  Findings: {', '.join(counts)}")
    console.print()

    by_category: dict[str, list] = {}
    for finding in result.findings:
        by_category.setdefault(finding.category, []).append(finding)
    for category, findings in by_category.items():
        console.print(f"  [bold]{escape(category)}[/bold]")
        for f in findings:
            style = _SEVERITY_STYLE[f.severity]
            console.print(f"    [{style}]{f.severity}[/{style}] [dim](line {f.line})[/dim]")
            console.print(f"       {escape(f.message)}")
            console.print(f'       [dim]Match: "{escape(f.match)}"[/dim]')
            console.print(f"       [cyan]→ {escape(f.recommendation)}[/cyan]")
            console.print()

    if result.verdict.blocks_install:
        console.print("  [bold red]Do NOT install this skill.[/bold red]")
    elif result.verdict == Verdict.SUSPICIOUS:
        console.print("  [yellow]Proceed with caution and review the findings above.[/yellow]")
    console.print()


def _print_folders(audits: list[SkillAudit]) -> None:
    """Print a one-line verdict per installed skill and a summary."""
    console.print()
    if not audits:
        console.print("[dim]No installed skills found.[/dim]")
        console.print()
        return

    table = Table(show_header=True, border_style="dim")
    table.add_column("Skill", style="cyan")
    table.add_column("Folder", style="dim")
    table.add_column("Verdict")
    table.add_column("Risk", justify="right")
    table.add_column("Critical", justify="right")
    table.add_column("Warning", justify="right")
    for entry in audits:
        table.add_row(
            escape(entry.name),
            escape(entry.folder),
            _verdict_label(entry.result.verdict),
            str(entry.result.risk_score),
            str(entry.result.count(Severity.CRITICAL)),
            str(entry.result.count(Severity.WARNING)),
        )
    console.print(table)

    totals = {verdict: 0 for verdict in Verdict}
    for entry in audits:
        totals[entry.result.verdict] += 1
    console.print(
        "  ".join(f"{_verdict_label(verdict)} {count}" for verdict, count in totals.items())
    )
    console.print()
