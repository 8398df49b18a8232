"""Language and package-manager policy enforcer."""

from __future__ import annotations

from rhodibot.checkers.base import BaseChecker, Classifier, ScanContext, dispatch, is_ignored
from rhodibot.knowledge.languages import classify_language, manager_for_config, manager_name
from rhodibot.models.common import RuleCategory
from rhodibot.models.rule import Rule, Violation


def banned_language(filename: str, banned: frozenset[str]) -> str | None:
    """Get the language of a file if it is banned."""
    language = classify_language(filename)
    return language if language in banned else None


def banned_manager_config(filename: str, banned: frozenset[str]) -> str | None:
    """Get the package manager a configuration file belongs to if it is banned."""
    manager = manager_for_config(filename)
    return manager if manager in banned else None


class LanguagePolicyChecker(BaseChecker):
    """Flags source files in banned languages and configuration files of banned managers.

    Classification is by exact filename or extension only, so a file is
    either in a table or ignored; contents are never read. One violation is
    produced per offending file. Lockfiles are left to the banned-pattern
    scanner.
    """

    name = "language-policy"
    category = RuleCategory.LANGUAGE_POLICY
    sections = {
        "language_rule": ("language-allowed",),
        "manager_config_rule": ("manager-config-allowed",),
    }
    classifiers = {
        "language-allowed": banned_language,
        "manager-config-allowed": banned_manager_config,
    }

    def check(self, context: ScanContext) -> list[Violation]:
        policy = context.policy
        checks: list[tuple[Rule, Classifier, frozenset[str]]] = []
        if policy.banned_languages:
            rule = self.rule(context, policy.language_rule)
            if rule is not None:
                checks.append((rule, dispatch(self.classifiers, rule), policy.banned_languages))
        if policy.banned_package_managers:
            rule = self.rule(context, policy.manager_config_rule)
            if rule is not None:
                checks.append((rule, dispatch(self.classifiers, rule), policy.banned_package_managers))
        if not checks:
            return []

        violations: list[Violation] = []
        for entry in context.snapshot.files:
            if is_ignored(entry.path, policy.ignored_paths):
                continue
            for rule, classify, banned in checks:
                tag = classify(entry.name, banned)
                if tag is not None:
                    message = self._message(rule, entry.path, tag)
                    violations.append(self.violation(rule, message, path=entry.path))
        return violations

    @staticmethod
    def _message(rule: Rule, path: str, tag: str) -> str:
        if rule.check == "manager-config-allowed":
            return f"{path} configures {manager_name(tag)}, which is not a permitted package manager"
        return f"{path} is written in {tag}, which is not permitted"
