"""Required-files checker."""

from __future__ import annotations

from fnmatch import fnmatchcase

from rhodibot.checkers.base import BaseChecker, ScanContext, dispatch
from rhodibot.core.snapshot import RepositorySnapshot
from rhodibot.models.common import RuleCategory
from rhodibot.models.rule import Violation
from rhodibot.utils.logging import get_logger

logger = get_logger("checkers.required_files")


def path_present(snapshot: RepositorySnapshot, pattern: str) -> bool:
    """Check a plain path, glob, or directory pattern against the snapshot.

    Directory patterns (trailing ``/``) need at least one nested entry; an
    empty directory does not satisfy them.
    """
    if pattern.endswith("/"):
        return snapshot.has_nested_entry(pattern)
    if any(ch in pattern for ch in "*?["):
        return any(fnmatchcase(path, pattern) for path in snapshot.paths)
    return snapshot.has_path(pattern)


def path_present_ignore_case(snapshot: RepositorySnapshot, pattern: str) -> bool:
    """Like :func:`path_present` but case-insensitive (e.g. README vs Readme)."""
    if pattern.endswith("/"):
        wanted = pattern.rstrip("/").lower() + "/"
        return any(path.lower().startswith(wanted) for path in snapshot.paths)
    lowered = pattern.lower()
    return any(fnmatchcase(path.lower(), lowered) for path in snapshot.paths)


class RequiredFilesChecker(BaseChecker):
    """Reports every required path pattern the snapshot does not satisfy.

    Only paths are inspected, never file contents. Every pattern is
    evaluated, so one scan surfaces all missing files.
    """

    name = "required-files"
    category = RuleCategory.REQUIRED_FILE
    sections = {"required_files": ("path-present", "path-present-ignore-case")}
    predicates = {
        "path-present": path_present,
        "path-present-ignore-case": path_present_ignore_case,
    }

    def check(self, context: ScanContext) -> list[Violation]:
        violations: list[Violation] = []

        for required in context.policy.required_files:
            rule = self.rule(context, required.rule)
            if rule is None:
                continue

            predicate = dispatch(self.predicates, rule)
            if predicate(context.snapshot, required.pattern):
                continue

            what = required.description or rule.description
            if required.is_directory:
                message = f"{what}: directory {required.pattern} is missing or empty"
            else:
                message = f"{what}: no file matches {required.pattern}"
            violations.append(self.violation(rule, message, path=required.pattern))

        logger.debug(f"{len(violations)} required path(s) missing")
        return violations
