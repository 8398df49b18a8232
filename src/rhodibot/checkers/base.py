"""Base checker protocol and types."""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Callable, Mapping, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, Field

from rhodibot.core.registry import RuleRegistry
from rhodibot.core.snapshot import RepositorySnapshot
from rhodibot.models.common import RuleCategory
from rhodibot.models.policy import PolicyConfig
from rhodibot.models.rule import Rule, Violation
from rhodibot.utils.errors import RegistryError


class ScanContext(BaseModel):
    """Everything a checker may look at. Checkers never modify it."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    snapshot: RepositorySnapshot = Field(description="Repository being scanned")
    policy: PolicyConfig = Field(description="Policy values")
    registry: RuleRegistry = Field(description="Rule catalog")


@runtime_checkable
class Checker(Protocol):
    """Protocol for compliance checkers.

    A checker owns exactly one rule category. It reads the snapshot and
    policy from a :class:`ScanContext` and returns violations of its own
    category only.

    To implement a custom checker:
    1. Create a class that implements this protocol
    2. Declare the policy sections it evaluates and the checks valid there

    Example:
        class MyChecker(BaseChecker):
            name = "my-checker"
            category = RuleCategory.LAYOUT
            sections = {"required_directories": ("directory-present",)}

            def check(self, context: ScanContext) -> list[Violation]:
                ...
    """

    @property
    def name(self) -> str:
        """Unique name for this checker."""
        ...

    @property
    def category(self) -> RuleCategory:
        """The single rule category this checker reports."""
        ...

    @property
    def sections(self) -> Mapping[str, tuple[str, ...]]:
        """Policy sections this checker evaluates, with the checks valid in each."""
        ...

    def check(self, context: ScanContext) -> list[Violation]:
        """Evaluate the checker's rules against a snapshot.

        Args:
            context: Snapshot, policy and registry of the scan

        Returns:
            Violations of this checker's category
        """
        ...


class BaseChecker:
    """Base implementation with common functionality.

    Subclasses set ``name``, ``category`` and ``sections`` and implement
    ``check``.
    """

    name: str = ""
    category: RuleCategory
    sections: Mapping[str, tuple[str, ...]] = {}

    def check(self, context: ScanContext) -> list[Violation]:
        """Evaluate the checker's rules. Must be implemented by subclasses."""
        raise NotImplementedError

    def rule(self, context: ScanContext, rule_id: str) -> Rule | None:
        """Get an enabled rule of this checker's category.

        Returns:
            The rule, or None if it is disabled

        Raises:
            RegistryError: If the rule is unknown or belongs to another category
        """
        rule = context.registry.get(rule_id)
        if rule is None:
            raise RegistryError(f"{self.name} references unknown rule '{rule_id}'", rule_id=rule_id)
        if rule.category != self.category:
            raise RegistryError(
                f"{self.name} cannot report rule '{rule_id}' of category {rule.category.value}",
                rule_id=rule_id,
            )
        return rule if rule.enabled else None

    def violation(self, rule: Rule, message: str, path: str | None = None) -> Violation:
        """Build a violation of one of this checker's rules."""
        if rule.category != self.category:
            raise RegistryError(
                f"{self.name} cannot report rule '{rule.id}' of category {rule.category.value}",
                rule_id=rule.id,
            )
        return Violation(
            rule_id=rule.id,
            category=rule.category,
            severity=rule.severity,
            path=path,
            message=message,
        )


Predicate = Callable[[RepositorySnapshot, str], bool]

# Per-file classifier: (filename, banned tags) -> offending tag or None
Classifier = Callable[[str, frozenset[str]], Optional[str]]

P = TypeVar("P")


def dispatch(predicates: Mapping[str, P], rule: Rule) -> P:
    """Get the predicate a rule's check names.

    Raises:
        RegistryError: If no predicate implements the check
    """
    try:
        return predicates[rule.check]
    except KeyError:
        raise RegistryError(
            f"No predicate implements check '{rule.check}' of rule '{rule.id}'",
            rule_id=rule.id,
        ) from None


def is_ignored(path: str, patterns: list[str]) -> bool:
    """Check if a path matches any ignore glob or lies under an ignored directory."""
    for pattern in patterns:
        if pattern.endswith("/"):
            if path.startswith(pattern) or path == pattern.rstrip("/"):
                return True
        elif fnmatchcase(path, pattern):
            return True
    return False
