"""Terminal renderer for rhodibot output."""

from __future__ import annotations

import io
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from rhodibot.models.common import AuditError, Severity
from rhodibot.models.report import ComplianceReport, ScanOutcome
from rhodibot.models.rule import Rule
from rhodibot.renderers.base import BaseRenderer, OutputFormat, RenderContext

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

SEVERITY_ORDER = sorted(Severity, key=lambda s: -s.rank)


class TerminalRenderer(BaseRenderer):
    """Renderer for rich terminal output.

    Prints to its console and returns an empty string; use
    ``render_to_file`` or a recording console to capture the text.

    Example:
        renderer = TerminalRenderer()
        renderer.render(report, RenderContext(rules={r.id: r for r in registry}))
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the terminal renderer.

        Args:
            console: Rich console to use. Creates a new one if None.
        """
        self._console = console or Console()

    @property
    def format(self) -> OutputFormat:
        return OutputFormat.TERMINAL

    def render(self, data: Any, context: RenderContext) -> str:
        """Render data to the terminal.

        Args:
            data: A ComplianceReport, an AuditError, a list of ScanOutcome,
                or a list of Rule
            context: Rendering context

        Returns:
            Empty string (output is printed to console)
        """
        if isinstance(data, ComplianceReport):
            self._render_report(data, context)
        elif isinstance(data, AuditError):
            self._render_error(data)
        elif isinstance(data, (list, tuple)) and data and all(isinstance(o, ScanOutcome) for o in data):
            self._render_fleet(list(data))
        elif isinstance(data, (list, tuple)) and all(isinstance(r, Rule) for r in data):
            self._render_rules(list(data))
        else:
            self._console.print(data)
        return ""

    def render_to_file(self, data: Any, context: RenderContext) -> None:
        """Render data to a plain-text file."""
        if context.output_path is None:
            raise ValueError("output_path must be set in context for file rendering")

        file_console = Console(record=True, width=120, file=io.StringIO())
        original_console = self._console
        self._console = file_console
        try:
            self.render(data, context)
            context.output_path.write_text(file_console.export_text(), encoding="utf-8")
        finally:
            self._console = original_console

    def _render_report(self, report: ComplianceReport, context: RenderContext) -> None:
        """Render a compliance report grouped by severity."""
        status = "[bold green]PASSED[/bold green]" if report.passed else "[bold red]FAILED[/bold red]"

        self._console.print()
        self._console.print(
            Panel(
                f"[bold]Repository:[/bold] {escape(report.repository_id)}\n"
                f"[bold]Policy:[/bold] {report.policy}\n"
                f"[bold]Status:[/bold] {status}\n"
                f"[bold]Score:[/bold] {report.score_line}",
                title=f"RSR Compliance Report: {report.title}",
            )
        )

        self._console.print()
        table = Table(title="Summary", show_header=False)
        table.add_column("Severity", style="bold")
        table.add_column("Count")
        for severity in SEVERITY_ORDER:
            style = SEVERITY_STYLES[severity]
            count = report.summary.by_severity.get(severity.value, 0)
            table.add_row(f"[{style}]{severity.value.upper()}[/{style}]", str(count))
        table.add_row("Total", str(report.summary.total))
        self._console.print(table)

        if not report.violations:
            self._console.print()
            self._console.print("[green]No violations found.[/green]")

        for severity in SEVERITY_ORDER:
            violations = report.violations_by_severity(severity)
            if not violations:
                continue
            style = SEVERITY_STYLES[severity]
            self._console.print()
            self._console.print(f"[{style}]{severity.value.upper()}[/{style}] ({len(violations)})")
            for v in violations:
                location = f" [cyan]{escape(v.path)}[/cyan]" if v.path else ""
                self._console.print(f"  [bold]{v.rule_id}[/bold]{location}: {escape(v.message)}")
                remediation = context.remediation(v.rule_id)
                if remediation:
                    self._console.print(f"      [dim]Fix: {escape(remediation)}[/dim]")

        if context.verbose:
            self._console.print()
            self._console.print(f"[dim]Digest: {report.digest}[/dim]")

    def _render_error(self, error: AuditError) -> None:
        """Render an orchestration failure."""
        self._console.print()
        self._console.print(
            Panel(
                f"[bold]Code:[/bold] {error.code}\n{escape(error.message)}",
                title="Scan failed",
                border_style="red",
            )
        )

    def _render_fleet(self, outcomes: list[ScanOutcome]) -> None:
        """Render a fleet summary table."""
        self._console.print()
        table = Table(title="Fleet Report")
        table.add_column("Repository", style="bold")
        table.add_column("Status")
        table.add_column("Violations", justify="right")
        table.add_column("Score", justify="right")
        table.add_column("Detail")

        for outcome in outcomes:
            if outcome.report is None:
                code = outcome.error.code if outcome.error else "UNKNOWN_ERROR"
                message = outcome.error.message if outcome.error else ""
                table.add_row(
                    escape(outcome.repository_id), f"[yellow]{code}[/yellow]", "-", "-", escape(message)
                )
                continue
            report = outcome.report
            status = "[green]PASS[/green]" if report.passed else "[red]FAIL[/red]"
            critical = report.summary.by_severity.get(Severity.CRITICAL.value, 0)
            high = report.summary.by_severity.get(Severity.HIGH.value, 0)
            table.add_row(
                escape(outcome.repository_id),
                status,
                str(report.summary.total),
                f"{report.summary.percentage:.0f}%",
                f"{critical} critical, {high} high",
            )

        self._console.print(table)

    def _render_rules(self, rules: list[Rule]) -> None:
        """Render a rule catalog."""
        self._console.print()
        table = Table(title="Rules")
        table.add_column("ID", style="bold")
        table.add_column("Category", style="dim")
        table.add_column("Severity")
        table.add_column("Description")
        table.add_column("Enabled")

        for rule in rules:
            style = SEVERITY_STYLES[rule.severity]
            table.add_row(
                rule.id,
                rule.category.value,
                f"[{style}]{rule.severity.value}[/{style}]",
                rule.description,
                "[green]yes[/green]" if rule.enabled else "[dim]no[/dim]",
            )

        self._console.print(table)
