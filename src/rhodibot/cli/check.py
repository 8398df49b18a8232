"""CLI command for checking one repository."""

from pathlib import Path
from typing import Optional

import typer

from rhodibot.cli.utils import (
    build_orchestrator,
    console,
    emit,
    exit_code,
    fail,
    load_settings,
    parse_format,
    render_context,
)
from rhodibot.utils.errors import OrchestrationError


def check_cmd(
    path: Path = typer.Argument(..., help="Repository checkout to check"),
    policy: Optional[Path] = typer.Option(
        None,
        "--policy",
        "-p",
        help="Path to policy pack YAML file",
    ),
    no_builtin: bool = typer.Option(
        False,
        "--no-builtin",
        help="Use only the given policy pack, without the built-in RSR pack",
    ),
    format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format (terminal, json, markdown)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path",
    ),
    checklist: bool = typer.Option(
        False,
        "--checklist",
        help="Render markdown as an issue checklist",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Scan timeout in seconds",
    ),
    retries: Optional[int] = typer.Option(
        None,
        "--retries",
        "-r",
        min=0,
        help="Retries if the repository cannot be read",
    ),
    repository_id: Optional[str] = typer.Option(
        None,
        "--repository-id",
        help="Repository identifier used in the report",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to rhodibot config file",
    ),
) -> None:
    """
    Check a repository against the RSR policy.

    Exits 0 if the repository passes, 1 if any violation of severity
    high or above was found, and 2 if the scan itself failed.

    Reports are stamped with the current time, or with SOURCE_DATE_EPOCH
    when it is set so that repeated runs produce identical output. Compare
    the digest field to tell whether two reports differ in content.

    Example:
        rhodibot check . --format markdown --output report.md
    """
    settings = load_settings(config)
    fmt = parse_format(format, settings)

    try:
        orchestrator = build_orchestrator(settings, policy=policy, no_builtin=no_builtin)
        with console.status("Scanning repository..."):
            report = orchestrator.scan(
                path,
                repository_id=repository_id,
                timeout=timeout if timeout is not None else settings.scan.timeout,
                retries=retries if retries is not None else settings.scan.retries,
            )
    except OrchestrationError as e:
        raise fail(e)

    emit(report, render_context(fmt, settings, orchestrator.registry, output, checklist))
    raise typer.Exit(exit_code(report))
