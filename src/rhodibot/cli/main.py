"""Main CLI entry point for rhodibot."""

import typer
from rich.console import Console

from rhodibot.cli import check, fleet, rules

app = typer.Typer(
    name="rhodibot",
    help="RSR compliance checks for repositories and fleets.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register subcommands
app.command(name="check")(check.check_cmd)
app.command(name="rules")(rules.rules_cmd)
app.command(name="fleet")(fleet.fleet_cmd)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output"),
    structured_logs: bool = typer.Option(
        False, "--structured-logs", help="Prefix log lines with time and logger name"
    ),
) -> None:
    """
    rhodibot: Rhodium Standard Repository compliance checks.

    - [bold]check[/bold]: Check one repository checkout
    - [bold]fleet[/bold]: Check many checkouts concurrently
    - [bold]rules[/bold]: List the rule catalog
    """
    from rhodibot.utils.logging import configure_logging

    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    else:
        level = "WARNING"
    configure_logging(level=level, structured=structured_logs)


@app.command()
def version() -> None:
    """Show the rhodibot version."""
    from rhodibot import __version__

    console.print(f"rhodibot version {__version__}")


if __name__ == "__main__":
    app()
