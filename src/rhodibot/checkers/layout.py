"""Directory-layout checker."""

from __future__ import annotations

from fnmatch import fnmatchcase

from rhodibot.checkers.base import BaseChecker, ScanContext, dispatch
from rhodibot.checkers.required_files import path_present
from rhodibot.core.snapshot import RepositorySnapshot
from rhodibot.models.common import RuleCategory
from rhodibot.models.rule import Violation
from rhodibot.models.snapshot import SnapshotEntry

WORKFLOW_SUFFIXES = (".yml", ".yaml")


def directory_present(snapshot: RepositorySnapshot, path: str) -> bool:
    """A top-level directory exists (possibly empty)."""
    return snapshot.is_directory(path) or snapshot.has_nested_entry(path)


def forbidden_matches(snapshot: RepositorySnapshot, pattern: str) -> list[str]:
    """Top-level directories whose name matches a forbidden glob."""
    return [name for name in snapshot.top_level_directories if fnmatchcase(name, pattern)]


def workflow_files(snapshot: RepositorySnapshot, directory: str) -> list[SnapshotEntry]:
    """Workflow definitions directly inside the workflow directory."""
    prefix = directory.strip("/") + "/"
    return [
        entry
        for entry in snapshot.entries_under(directory)
        if entry.is_file
        and "/" not in entry.path[len(prefix):]
        and entry.name.lower().endswith(WORKFLOW_SUFFIXES)
    ]


class LayoutChecker(BaseChecker):
    """Validates the repository's directory tree against the configured RSR shape.

    Every configured rule is evaluated; nothing returns early, so all layout
    problems show up in a single scan.
    """

    name = "layout"
    category = RuleCategory.LAYOUT
    sections = {
        "required_directories": ("directory-present",),
        "forbidden_directories": ("directory-absent",),
        "workflows.count_rule": ("workflow-count",),
        "workflows.integrity_rules": ("workflow-present",),
    }
    predicates = {
        "directory-present": directory_present,
        "workflow-present": path_present,
    }

    def check(self, context: ScanContext) -> list[Violation]:
        violations: list[Violation] = []
        violations.extend(self._required_directories(context))
        violations.extend(self._forbidden_directories(context))
        violations.extend(self._workflow_count(context))
        violations.extend(self._workflow_integrity(context))
        return violations

    def _required_directories(self, context: ScanContext) -> list[Violation]:
        violations = []
        for required in context.policy.required_directories:
            rule = self.rule(context, required.rule)
            if rule is None:
                continue
            if not dispatch(self.predicates, rule)(context.snapshot, required.path):
                violations.append(
                    self.violation(
                        rule,
                        f"Required top-level directory {required.path}/ is missing",
                        path=required.path,
                    )
                )
        return violations

    def _forbidden_directories(self, context: ScanContext) -> list[Violation]:
        violations = []
        for forbidden in context.policy.forbidden_directories:
            rule = self.rule(context, forbidden.rule)
            if rule is None:
                continue
            for name in forbidden_matches(context.snapshot, forbidden.path):
                violations.append(
                    self.violation(rule, f"Forbidden top-level directory {name}/ is present", path=name)
                )
        return violations

    def _workflow_count(self, context: ScanContext) -> list[Violation]:
        workflows = context.policy.workflows
        if workflows.required_count <= 0:
            return []
        rule = self.rule(context, workflows.count_rule)
        if rule is None:
            return []

        found = len(workflow_files(context.snapshot, workflows.directory))
        if found >= workflows.required_count:
            return []
        return [
            self.violation(
                rule,
                f"Found {found} workflow file(s) in {workflows.directory}/, "
                f"at least {workflows.required_count} required",
                path=workflows.directory,
            )
        ]

    def _workflow_integrity(self, context: ScanContext) -> list[Violation]:
        workflows = context.policy.workflows
        violations = []
        for required in workflows.integrity_rules:
            rule = self.rule(context, required.rule)
            if rule is None:
                continue
            pattern = required.pattern
            if "/" not in pattern:
                pattern = f"{workflows.directory.strip('/')}/{pattern}"
            if not dispatch(self.predicates, rule)(context.snapshot, pattern):
                what = required.description or "Required workflow"
                violations.append(self.violation(rule, f"{what}: {pattern} is missing", path=pattern))
        return violations
