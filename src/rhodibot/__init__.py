"""rhodibot: Rhodium Standard Repository (RSR) compliance rule engine.

rhodibot checks a repository snapshot against a policy pack and produces
a deterministic compliance report:

- **Required files**: README, license, security policy, machine-readable state
- **Structured documents**: parse and shape-check STATE/META/ECOSYSTEM files
- **Directory layout**: required and forbidden directories, CI workflows
- **Language policy**: banned languages and package-manager configuration
- **Banned patterns (CCCP)**: lockfiles of banned package managers

Usage:
    # Library API
    from rhodibot import Orchestrator, RepositorySnapshot

    orchestrator = Orchestrator()
    report = orchestrator.scan("path/to/checkout", timeout=60)
    print(report.passed, report.summary.total)

    # In-memory snapshot
    snapshot = RepositorySnapshot.from_mapping({"README.adoc": "= Project"})
    report = orchestrator.scan(snapshot)

CLI:
    rhodibot check <path>
    rhodibot fleet <path>...
    rhodibot rules
"""

__version__ = "0.1.0"

# Models (commonly used)
from rhodibot.models.common import AuditError, RuleCategory, Severity
from rhodibot.models.policy import PolicyConfig, PolicyPack
from rhodibot.models.report import ComplianceReport, ReportSummary, ScanOutcome
from rhodibot.models.rule import Rule, Violation

# Core
from rhodibot.core.policy import builtin_pack, load_policy_pack, save_policy_pack
from rhodibot.core.publish import DirectoryPublisher, ReportPublisher
from rhodibot.core.registry import RuleRegistry
from rhodibot.core.snapshot import RepositorySnapshot

# Checkers
from rhodibot.checkers import BaseChecker, Checker, ScanContext, default_checkers

# Pipeline
from rhodibot.core.orchestrator import Orchestrator
from rhodibot.core.fleet import FleetScanner

# Renderers
from rhodibot.renderers.base import OutputFormat, RenderContext, Renderer

__all__ = [
    # Version
    "__version__",
    # Models
    "AuditError",
    "RuleCategory",
    "Severity",
    "PolicyConfig",
    "PolicyPack",
    "ComplianceReport",
    "ReportSummary",
    "ScanOutcome",
    "Rule",
    "Violation",
    # Core
    "builtin_pack",
    "load_policy_pack",
    "save_policy_pack",
    "DirectoryPublisher",
    "ReportPublisher",
    "RuleRegistry",
    "RepositorySnapshot",
    # Checkers
    "BaseChecker",
    "Checker",
    "ScanContext",
    "default_checkers",
    # Pipeline
    "Orchestrator",
    "FleetScanner",
    # Renderers
    "OutputFormat",
    "RenderContext",
    "Renderer",
]
