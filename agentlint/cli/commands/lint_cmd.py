"""Workspace linting command for the agentlint CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agentlint.config import LinterConfig, load_config
from agentlint.exceptions import (
    ConfigurationError,
    DocumentReadError,
    ResourceNotFoundError,
)
from agentlint.linting.models import LintResult, Severity
from agentlint.linting.registry import rule_ids, without_rules
from agentlint.linting.scoring import lint as lint_workspace
from agentlint.logging import configure_logging
from agentlint.reporting import (
    CATEGORY_LABELS,
    filter_by_severity,
    format_json,
    grade_for,
    score_bar,
    sort_diagnostics,
)
from agentlint.scanner import scan_workspace

console = Console()
err_console = Console(stderr=True)

CLI_HELP = "Lint an agent workspace and score its instruction files"

_OUTPUT_FORMATS = ("text", "json")
_SEVERITY_STYLE = {
    Severity.CRITICAL: "bold red",
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}


def _score_style(score: int) -> str:
    if score >= 90:
        return "green"
    if score >= 70:
        return "yellow"
    return "red"


def _parse_severity(value: str) -> Severity:
    try:
        return Severity(value.lower())
    except ValueError:
        choices = ", ".join(s.value for s in Severity)
        err_console.print(f"[red]Invalid severity '{escape(value)}'.[/red] Choose from: {choices}")
        raise typer.Exit(1) from None


def _parse_disabled(disable: str, config: LinterConfig) -> set[str]:
    """Merge ``--disable`` with the configured rule ids and report unknown ids."""
    disabled = {r.strip() for r in disable.split(",") if r.strip()}
    disabled |= config.disabled_rules
    unknown = disabled - set(rule_ids())
    if unknown:
        err_console.print(
            f"[yellow]Unknown rule ID(s): {escape(', '.join(sorted(unknown)))}[/yellow]  "
            "Run 'agentlint rules' to list the known ids."
        )
    return disabled


def lint(
    path: Annotated[
        Path,
        typer.Argument(
            help="Workspace directory to lint",
            exists=True,
            file_okay=False,
            dir_okay=True,
            readable=True,
        ),
    ] = Path("."),
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format (text, json)",
        ),
    ] = "text",
    severity: Annotated[
        str | None,
        typer.Option(
            "--severity",
            "-s",
            help="Minimum severity to report (critical, error, warning, info)",
        ),
    ] = None,
    disable: Annotated[
        str,
        typer.Option(
            "--disable",
            "-d",
            help="Comma-separated rule IDs to skip (e.g., clarity/token-budget)",
        ),
    ] = "",
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a kind: Config YAML or pyproject.toml",
        ),
    ] = None,
    fail_under: Annotated[
        int | None,
        typer.Option(
            "--fail-under",
            min=0,
            max=100,
            help="Exit with code 1 when the total score is below this value",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Log level: debug|info|warning|error",
        ),
    ] = None,
) -> None:
    """Lint an agent workspace and print category scores and diagnostics.

    Examples
    --------
    agentlint lint
    agentlint lint path/to/workspace --severity warning
    agentlint lint --format json
    agentlint lint --disable clarity/token-budget,memory/has-learning-loop
    agentlint lint --fail-under 75
    """
    if output_format not in _OUTPUT_FORMATS:
        err_console.print(
            f"[red]Invalid format '{escape(output_format)}'.[/red] Choose from: "
            f"{', '.join(_OUTPUT_FORMATS)}"
        )
        raise typer.Exit(1)

    try:
        config = load_config(config_path, workspace=path)
    except (ConfigurationError, ResourceNotFoundError) as e:
        err_console.print(f"[red]Configuration Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    configure_logging(
        level=log_level.upper() if log_level else config.logging.level,  # type: ignore[arg-type]
        format=config.logging.format,
        output_file=config.logging.output_file,
        use_color=config.logging.use_color,
        include_timestamp=config.logging.include_timestamp,
        use_rich=config.logging.use_rich,
    )

    min_severity = _parse_severity(severity) if severity else config.min_severity
    disabled = _parse_disabled(disable, config)

    try:
        workspace = scan_workspace(path, context=config.context)
    except (DocumentReadError, ResourceNotFoundError) as e:
        err_console.print(f"[red]Scan Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    result = lint_workspace(workspace, rules=without_rules(disabled))

    if output_format == "json":
        typer.echo(format_json(result, min_severity))
    else:
        _print_text(result, min_severity)

    threshold = fail_under if fail_under is not None else config.fail_under
    if threshold is not None and result.total_score < threshold:
        err_console.print(
            f"[red]Score {result.total_score} is below the required {threshold}.[/red]"
        )
        raise typer.Exit(1)


def _print_text(result: LintResult, min_severity: Severity) -> None:
    """Print lint results as rich text."""
    console.print()
    console.print(
        f"[bold]Workspace:[/bold] {escape(result.workspace)}  [dim]({result.context})[/dim]"
    )
    files = escape(", ".join(result.documents)) if result.documents else "none"
    console.print(f"[bold]Files:[/bold] {files}")
    console.print()

    style = _score_style(result.total_score)
    console.print(
        f"[bold]Overall score:[/bold] [{style}]{result.total_score}/100[/{style}] "
        f"({grade_for(result.total_score)})"
    )
    console.print()

    scores = Table(show_header=True, border_style="dim")
    scores.add_column("Category")
    scores.add_column("Score", justify="right")
    scores.add_column("", no_wrap=True)
    scores.add_column("Issues", justify="right")
    for entry in result.categories:
        entry_style = _score_style(entry.score)
        scores.add_row(
            CATEGORY_LABELS[entry.category],
            f"[{entry_style}]{entry.score}[/{entry_style}]",
            score_bar(entry.score),
            str(entry.issue_count),
        )
    console.print(scores)
    console.print()

    shown = sort_diagnostics(filter_by_severity(result.diagnostics, min_severity))
    if not shown:
        console.print("[green]No issues found.[/green]")
        console.print()
    else:
        console.print(
            f"[bold red]{len(result.criticals)} critical[/bold red]  "
            f"[red]{len(result.errors)} error(s)[/red]  "
            f"[yellow]{len(result.warnings)} warning(s)[/yellow]  "
            f"[blue]{len(result.info)} info[/blue]"
        )
        console.print()

        table = Table(show_header=True, border_style="dim")
        table.add_column("Severity", width=8)
        table.add_column("Location", style="green")
        table.add_column("Rule", style="cyan")
        table.add_column("Message")
        table.add_column("Fix", style="dim")
        for d in shown:
            d_style = _SEVERITY_STYLE[d.severity]
            table.add_row(
                f"[{d_style}]{d.severity}[/{d_style}]",
                escape(d.location),
                escape(d.rule),
                escape(d.message),
                escape(d.fix or ""),
            )
        console.print(table)
        console.print()

    if result.failed_rules:
        console.print(
            f"[yellow]{len(result.failed_rules)} rule(s) failed and were skipped:[/yellow] "
            f"{escape(', '.join(result.failed_rules))}"
        )
        console.print()
