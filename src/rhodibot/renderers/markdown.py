"""Markdown renderer for rhodibot output.

Produces the body of a check run, or with ``context.checklist`` the body
of a tracking issue with one checkbox per violation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from rhodibot.models.common import AuditError, Severity
from rhodibot.models.report import ComplianceReport, ScanOutcome
from rhodibot.renderers.base import BaseRenderer, OutputFormat, RenderContext
from rhodibot.utils.hashing import short_hash

SEVERITY_ICONS = {
    Severity.CRITICAL: "🔴",
    Severity.HIGH: "🟠",
    Severity.MEDIUM: "🟡",
    Severity.LOW: "🔵",
}

SEVERITY_ORDER = sorted(Severity, key=lambda s: -s.rank)


class MarkdownRenderer(BaseRenderer):
    """Renderer for Markdown output format.

    Example:
        renderer = MarkdownRenderer()
        body = renderer.render(report, RenderContext(format=OutputFormat.MARKDOWN))
    """

    @property
    def format(self) -> OutputFormat:
        return OutputFormat.MARKDOWN

    def render(self, data: Any, context: RenderContext) -> str:
        """Render data to a Markdown string.

        Args:
            data: A ComplianceReport, an AuditError, or a list of ScanOutcome
            context: Rendering context

        Returns:
            Markdown string
        """
        if isinstance(data, ComplianceReport):
            if context.checklist:
                return self._render_checklist(data, context)
            return self._render_report(data, context)
        if isinstance(data, AuditError):
            return self._render_error(data)
        if isinstance(data, (list, tuple)) and all(isinstance(o, ScanOutcome) for o in data):
            return self._render_fleet(list(data))
        return self._render_generic(data)

    def _render_report(self, report: ComplianceReport, context: RenderContext) -> str:
        """Render a report as check-run text."""
        status = "✅ Passed" if report.passed else "❌ Failed"
        lines = [
            "# RSR Compliance Report",
            "",
            f"**Repository:** `{report.repository_id}`",
            f"**Policy:** {report.policy}",
            f"**Status:** {status}",
            f"**{report.title}** - {report.score_line}",
            "",
            "## Summary",
            "",
            "| Severity | Count |",
            "|----------|-------|",
        ]
        for severity in SEVERITY_ORDER:
            count = report.summary.by_severity.get(severity.value, 0)
            lines.append(f"| {SEVERITY_ICONS[severity]} {severity.value} | {count} |")
        lines.append("")

        if not report.violations:
            lines.extend(["No violations found.", ""])

        for severity in SEVERITY_ORDER:
            violations = report.violations_by_severity(severity)
            if not violations:
                continue
            lines.extend(
                [
                    f"## {severity.value.title()} ({len(violations)})",
                    "",
                    "| Rule | Path | Message | Remediation |",
                    "|------|------|---------|-------------|",
                ]
            )
            for v in violations:
                path = f"`{v.path}`" if v.path else "-"
                remediation = self._escape_md(context.remediation(v.rule_id) or "-")
                lines.append(
                    f"| {v.rule_id} | {path} | {self._escape_md(v.message)} | {remediation} |"
                )
            lines.append("")

        if context.verbose:
            lines.extend([f"<sub>Digest: `{report.digest}`</sub>", ""])

        return "\n".join(lines)

    def _render_checklist(self, report: ComplianceReport, context: RenderContext) -> str:
        """Render a report as an issue body with one task per violation."""
        lines = [
            f"## RSR compliance: {report.repository_id}",
            "",
            f"Policy {report.policy} found {report.summary.total} violation(s).",
            "",
        ]
        for v in report.violations:
            path = f" `{v.path}`" if v.path else ""
            lines.append(f"- [ ] {SEVERITY_ICONS[v.severity]} **{v.rule_id}**{path}: {v.message}")
            remediation = context.remediation(v.rule_id)
            if remediation:
                lines.append(f"  - {remediation}")
        lines.append("")
        return "\n".join(lines)

    def _render_fleet(self, outcomes: list[ScanOutcome]) -> str:
        """Render fleet outcomes as a table."""
        lines = [
            "# RSR Fleet Report",
            "",
            "| Repository | Status | Violations | Digest | Score |",
            "|------------|--------|------------|--------|-------|",
        ]
        for outcome in outcomes:
            if outcome.report is None:
                error = outcome.error
                status = f"⚠️ {error.code}" if error else "⚠️ error"
                lines.append(f"| `{outcome.repository_id}` | {status} | - | - | - |")
                continue
            report = outcome.report
            status = "✅ pass" if report.passed else "❌ fail"
            lines.append(
                f"| `{outcome.repository_id}` | {status} | {report.summary.total} | "
                f"`{short_hash(report.digest)}` | {report.summary.percentage:.0f}% |"
            )
        lines.append("")
        return "\n".join(lines)

    def _render_error(self, error: AuditError) -> str:
        return "\n".join(
            [
                "# Scan failed",
                "",
                f"**Code:** `{error.code}`",
                "",
                self._escape_md(error.message),
                "",
            ]
        )

    def _render_generic(self, data: Any) -> str:
        if isinstance(data, BaseModel):
            dict_data = data.model_dump(mode="json", by_alias=True)
        elif isinstance(data, dict):
            dict_data = data
        else:
            return str(data)

        lines = ["# Report", ""]
        for key, value in dict_data.items():
            lines.append(f"- **{key.replace('_', ' ').title()}:** {value}")
        lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _escape_md(text: str) -> str:
        """Escape special Markdown characters."""
        if not text:
            return text
        return text.replace("|", "\\|").replace("\n", " ")
