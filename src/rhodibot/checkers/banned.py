"""Banned-pattern scanner (CCCP): lockfiles of banned package ecosystems."""

from __future__ import annotations

from rhodibot.checkers.base import BaseChecker, ScanContext, dispatch, is_ignored
from rhodibot.knowledge.languages import manager_for_lockfile, manager_name
from rhodibot.models.common import RuleCategory
from rhodibot.models.rule import Violation


def banned_lockfile(filename: str, banned: frozenset[str]) -> str | None:
    """Get the package manager a lockfile belongs to if it is banned."""
    manager = manager_for_lockfile(filename)
    return manager if manager in banned else None


class BannedPatternScanner(BaseChecker):
    """Reports lockfiles left behind by banned package managers.

    A stray lockfile can appear in a repository whose languages are all
    permitted, so this runs independently of language classification.
    Matching is by filename alone.
    """

    name = "banned-patterns"
    category = RuleCategory.BANNED_PATTERN
    sections = {"lockfile_rule": ("lockfile-absent",)}
    classifiers = {"lockfile-absent": banned_lockfile}

    def check(self, context: ScanContext) -> list[Violation]:
        policy = context.policy
        if not policy.banned_package_managers:
            return []
        rule = self.rule(context, policy.lockfile_rule)
        if rule is None:
            return []
        classify = dispatch(self.classifiers, rule)

        violations: list[Violation] = []
        for entry in context.snapshot.files:
            if is_ignored(entry.path, policy.ignored_paths):
                continue
            manager = classify(entry.name, policy.banned_package_managers)
            if manager is None:
                continue
            violations.append(
                self.violation(
                    rule,
                    f"{entry.path} is a {manager_name(manager)} lockfile; "
                    f"{manager_name(manager)} is a banned package manager",
                    path=entry.path,
                )
            )
        return violations
