"""Shared utilities for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import typer
from rich.console import Console

from rhodibot.core.orchestrator import Orchestrator
from rhodibot.core.policy import resolve_pack
from rhodibot.core.publish import ReportPublisher
from rhodibot.core.registry import RuleRegistry
from rhodibot.models.common import AuditError
from rhodibot.models.policy import PolicyPack
from rhodibot.models.report import ComplianceReport
from rhodibot.renderers import OutputFormat, RenderContext, TerminalRenderer, get_renderer
from rhodibot.utils.config import RhodibotConfig, load_config
from rhodibot.utils.errors import ConfigurationError, OrchestrationError

# Shared console instance
console = Console()

EXIT_PASS = 0
EXIT_FAIL = 1
EXIT_ERROR = 2


def load_settings(config_path: Optional[Path] = None) -> RhodibotConfig:
    """Load tool configuration, exiting with the error code if it is invalid."""
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        scan_failed(e.to_audit_error())
        raise typer.Exit(EXIT_ERROR)


def load_pack(settings: RhodibotConfig, policy: Optional[Path], no_builtin: bool) -> PolicyPack:
    """Resolve the policy pack from command options, falling back to the config file.

    Raises:
        PolicyError: If the pack cannot be loaded
    """
    path = policy if policy is not None else settings.policy.path
    include_builtin = settings.policy.include_builtin and not no_builtin
    return resolve_pack(path, include_builtin=include_builtin)


def build_orchestrator(
    settings: RhodibotConfig,
    policy: Optional[Path] = None,
    no_builtin: bool = False,
    publishers: Iterable[ReportPublisher] = (),
) -> Orchestrator:
    """Build an orchestrator from settings and command options.

    Raises:
        PolicyError: If the pack is missing or malformed
    """
    return Orchestrator(
        pack=load_pack(settings, policy, no_builtin),
        publishers=publishers,
        parallel=settings.scan.parallel,
        retry_delay=settings.scan.retry_delay,
    )


def parse_format(value: Optional[str], settings: RhodibotConfig) -> OutputFormat:
    """Parse an output format option, exiting on unknown values."""
    try:
        return OutputFormat(value or settings.output.default_format)
    except ValueError:
        choices = ", ".join(f.value for f in OutputFormat)
        console.print(f"[red]Error:[/red] Invalid format: {value} (choose from {choices})")
        raise typer.Exit(EXIT_ERROR)


def render_context(
    fmt: OutputFormat,
    settings: RhodibotConfig,
    registry: RuleRegistry | None = None,
    output: Optional[Path] = None,
    checklist: bool = False,
) -> RenderContext:
    return RenderContext.for_rules(
        registry if registry is not None else (),
        format=fmt,
        output_path=output,
        verbose=settings.output.verbose,
        color=settings.output.color,
        checklist=checklist,
    )


def emit(data: object, context: RenderContext) -> None:
    """Render data to the console or to ``context.output_path``."""
    renderer = get_renderer(context.format, console)
    if context.output_path is not None:
        renderer.render_to_file(data, context)
        console.print(f"Report written to {context.output_path}")
    elif context.format == OutputFormat.TERMINAL:
        renderer.render(data, context)
    else:
        # Plain echo; rich would wrap long lines and interpret brackets
        typer.echo(renderer.render(data, context))


def scan_failed(error: AuditError) -> None:
    """Print an orchestration failure panel."""
    TerminalRenderer(console).render(error, RenderContext())


def exit_code(report: ComplianceReport) -> int:
    return EXIT_PASS if report.passed else EXIT_FAIL


def fail(error: OrchestrationError) -> typer.Exit:
    """Report an orchestration failure and build the matching exit."""
    scan_failed(error.to_audit_error())
    return typer.Exit(EXIT_ERROR)
