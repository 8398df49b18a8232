"""Compliance report data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from rhodibot.models.common import AuditError, RuleCategory, Severity
from rhodibot.models.rule import Violation


class ComplianceBand(str, Enum):
    """Coarse rating of a compliance score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    PARTIAL = "partial"
    POOR = "poor"

    @classmethod
    def for_percentage(cls, percentage: float) -> "ComplianceBand":
        if percentage >= 90:
            return cls.EXCELLENT
        if percentage >= 70:
            return cls.GOOD
        if percentage >= 50:
            return cls.PARTIAL
        return cls.POOR

    @property
    def text(self) -> str:
        return _BAND_TEXT[self]


_BAND_TEXT = {
    ComplianceBand.EXCELLENT: "Excellent RSR compliance",
    ComplianceBand.GOOD: "Good RSR compliance with minor issues",
    ComplianceBand.PARTIAL: "Partial RSR compliance, improvements needed",
    ComplianceBand.POOR: "Poor RSR compliance, significant work required",
}


class ReportSummary(BaseModel):
    """Violation counts and compliance score of a report.

    The score sums the points of every enabled rule with no violation;
    ``max_score`` sums the points of every enabled rule.
    """

    model_config = {"frozen": True}

    total: int = Field(default=0, description="Total violations")
    by_severity: dict[str, int] = Field(
        default_factory=dict,
        description="Counts keyed by severity, most severe first",
    )
    by_category: dict[str, int] = Field(
        default_factory=dict,
        description="Counts keyed by rule category",
    )
    score: int = Field(default=0, ge=0, description="Points of the rules that hold")
    max_score: int = Field(default=0, ge=0, description="Points of all enabled rules")
    percentage: float = Field(default=0.0, description="score / max_score as a percentage")
    band: ComplianceBand = Field(default=ComplianceBand.POOR, description="Rating of the percentage")


class ComplianceReport(BaseModel):
    """The deterministic output of one repository scan.

    Field order is the serialization order. ``passed`` serializes as
    ``pass``; call ``model_dump(by_alias=True)`` for the wire form.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    repository_id: str = Field(description="Repository that was scanned")
    timestamp: datetime = Field(description="When the report was produced")
    policy: str = Field(description="Policy pack identity (name@version)")
    passed: bool = Field(alias="pass", description="No violation at severity high or above")
    summary: ReportSummary = Field(default_factory=ReportSummary)
    violations: tuple[Violation, ...] = Field(default=(), description="Sorted violations")
    digest: str = Field(description="Hash of the report content, excluding the timestamp")

    @property
    def title(self) -> str:
        """Check-run title, e.g. ``RSR Score: 87%``."""
        return f"RSR Score: {self.summary.percentage:.0f}%"

    @property
    def score_line(self) -> str:
        summary = self.summary
        return f"{summary.score}/{summary.max_score} ({summary.percentage:.1f}%), {summary.band.text}"

    def violations_by_rule(self, rule_id: str) -> list[Violation]:
        """Get violations for a specific rule."""
        return [v for v in self.violations if v.rule_id == rule_id]

    def violations_by_category(self, category: RuleCategory) -> list[Violation]:
        """Get violations of one category."""
        return [v for v in self.violations if v.category == category]

    def violations_by_severity(self, severity: Severity) -> list[Violation]:
        """Get violations of one severity."""
        return [v for v in self.violations if v.severity == severity]

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize to canonical JSON."""
        return self.model_dump_json(by_alias=True, indent=indent)


class ScanOutcome(BaseModel):
    """Result of scanning one repository in a fleet.

    Exactly one of ``report`` and ``error`` is set.
    """

    model_config = {"frozen": True}

    repository_id: str = Field(description="Repository that was scanned")
    report: ComplianceReport | None = Field(default=None)
    error: AuditError | None = Field(default=None)

    @property
    def ok(self) -> bool:
        """True when a report was produced (whether or not it passes)."""
        return self.report is not None

    @property
    def passed(self) -> bool:
        return self.report is not None and self.report.passed
