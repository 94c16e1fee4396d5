"""agentlint CLI - Main entrypoint."""

from typing import Annotated

import typer
from rich.console import Console

from agentlint import __version__
from agentlint.cli.commands import audit_cmd, lint_cmd, rules_cmd

app = typer.Typer(
    name="agentlint",
    help="agentlint - Lint and score the instruction files that configure AI agents.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)

console = Console()

app.command("lint", help=lint_cmd.CLI_HELP)(lint_cmd.lint)
app.command("rules", help=rules_cmd.CLI_HELP)(rules_cmd.rules)
app.command("audit", help=audit_cmd.CLI_HELP)(audit_cmd.audit)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold blue]agentlint[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """agentlint - score CLAUDE.md, AGENTS.md, SOUL.md, skills and runtime config."""


def main() -> None:
    """Main CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
