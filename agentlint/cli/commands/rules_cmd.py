"""Rule listing command for the agentlint CLI."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agentlint.linting.models import Category
from agentlint.linting.registry import default_rules

console = Console()

CLI_HELP = "List the registered lint rules"


def rules(
    category: Annotated[
        str | None,
        typer.Option(
            "--category",
            help="Only list rules of this category (e.g., security, skillSafety)",
        ),
    ] = None,
) -> None:
    """List every registered rule with its category, severity and contexts.

    Examples
    --------
    agentlint rules
    agentlint rules --category consistency
    """
    selected = default_rules()
    if category is not None:
        try:
            wanted = Category(category)
        except ValueError:
            choices = ", ".join(c.value for c in Category)
            console.print(
                f"[red]Unknown category '{escape(category)}'.[/red] Choose from: {choices}"
            )
            raise typer.Exit(1) from None
        selected = tuple(rule for rule in selected if rule.category == wanted)

    table = Table(show_header=True, border_style="dim")
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Contexts", style="dim")
    table.add_column("Description")
    for rule in selected:
        contexts = (
            ", ".join(sorted(rule.applicable_contexts)) if rule.applicable_contexts else "all"
        )
        table.add_row(rule.rule_id, str(rule.severity), contexts, rule.description)

    console.print(table)
    console.print(f"[dim]{len(selected)} rule(s)[/dim]")
