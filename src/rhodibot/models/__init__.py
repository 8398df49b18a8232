"""Data models for rhodibot."""

from rhodibot.models.common import AuditError, RuleCategory, Severity
from rhodibot.models.document import DocumentRecord, Symbol
from rhodibot.models.policy import (
    DirectoryRule,
    DocumentField,
    DocumentSchema,
    FieldType,
    LicensePolicy,
    PolicyConfig,
    PolicyPack,
    RequiredPath,
    WorkflowPolicy,
)
from rhodibot.models.report import ComplianceBand, ComplianceReport, ReportSummary, ScanOutcome
from rhodibot.models.rule import Rule, Violation
from rhodibot.models.snapshot import EntryKind, SnapshotEntry

__all__ = [
    # Common
    "AuditError",
    "RuleCategory",
    "Severity",
    # Rules
    "Rule",
    "Violation",
    # Policy
    "DirectoryRule",
    "DocumentField",
    "DocumentSchema",
    "FieldType",
    "LicensePolicy",
    "PolicyConfig",
    "PolicyPack",
    "RequiredPath",
    "WorkflowPolicy",
    # Snapshot
    "EntryKind",
    "SnapshotEntry",
    # Documents
    "DocumentRecord",
    "Symbol",
    # Report
    "ComplianceBand",
    "ComplianceReport",
    "ReportSummary",
    "ScanOutcome",
]
