"""CLI command for scanning a fleet of repositories."""

from pathlib import Path
from typing import List, Optional

import typer

from rhodibot.cli.utils import (
    EXIT_ERROR,
    EXIT_FAIL,
    EXIT_PASS,
    build_orchestrator,
    console,
    emit,
    fail,
    load_settings,
    parse_format,
    render_context,
)
from rhodibot.core.fleet import FleetScanner
from rhodibot.core.publish import DirectoryPublisher
from rhodibot.utils.errors import OrchestrationError


def fleet_cmd(
    paths: List[Path] = typer.Argument(..., help="Repository checkouts to check"),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Repositories scanned concurrently",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-d",
        help="Write one <repository>.json report per repository here",
    ),
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
        help="Summary format (terminal, json, markdown)",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Per-repository scan timeout in seconds",
    ),
    retries: Optional[int] = typer.Option(
        None,
        "--retries",
        "-r",
        min=0,
        help="Retries if a repository cannot be read",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to rhodibot config file",
    ),
) -> None:
    """
    Check many repositories with a bounded worker pool.

    Exits 0 if every repository passes, 1 if any report fails, and 2 if
    any scan could not be completed.

    Example:
        rhodibot fleet repos/* --workers 8 --output-dir reports/
    """
    settings = load_settings(config)
    fmt = parse_format(format, settings)
    publishers = [DirectoryPublisher(output_dir)] if output_dir else []

    try:
        orchestrator = build_orchestrator(
            settings, policy=policy, no_builtin=no_builtin, publishers=publishers
        )
    except OrchestrationError as e:
        raise fail(e)

    scanner = FleetScanner(orchestrator, max_workers=workers or settings.scan.max_workers)
    with console.status(f"Scanning {len(paths)} repositories..."):
        outcomes = list(
            scanner.scan(
                paths,
                timeout=timeout if timeout is not None else settings.scan.timeout,
                retries=retries if retries is not None else settings.scan.retries,
            )
        )

    emit(outcomes, render_context(fmt, settings, orchestrator.registry))
    if output_dir:
        console.print(f"Reports written to {output_dir}")

    if any(not outcome.ok for outcome in outcomes):
        raise typer.Exit(EXIT_ERROR)
    if any(not outcome.passed for outcome in outcomes):
        raise typer.Exit(EXIT_FAIL)
    raise typer.Exit(EXIT_PASS)
