"""Rule registry: the catalog of compliance rules available to a scan."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping

from rhodibot.models.common import RuleCategory
from rhodibot.models.policy import PolicyConfig
from rhodibot.models.rule import Rule
from rhodibot.utils.errors import RegistryError


class RuleRegistry:
    """Registry of compliance rules keyed by stable rule id.

    The registry is populated once and then frozen; a frozen registry
    rejects further registration, so one instance can be shared by every
    scan in the process.

    Example:
        registry = RuleRegistry.from_rules(pack.rules)
        registry.validate_policy(pack.policy, policy_sections(checkers))

        rule = registry["RSR-REQ-001"]
        for rule in registry.by_category(RuleCategory.LAYOUT):
            ...
    """

    def __init__(self, version: str = "1.0.0") -> None:
        """Initialize an empty registry.

        Args:
            version: Catalog version
        """
        self._rules: dict[str, Rule] = {}
        self._frozen = False
        self.version = version

    @classmethod
    def from_rules(cls, rules: Iterable[Rule], version: str = "1.0.0") -> "RuleRegistry":
        """Build and freeze a registry from a rule catalog.

        Raises:
            RegistryError: On duplicate ids or an empty catalog
        """
        registry = cls(version=version)
        for rule in rules:
            registry.register(rule)
        if not len(registry):
            raise RegistryError("Rule registry is empty")
        registry.freeze()
        return registry

    def register(self, rule: Rule) -> None:
        """Register a rule.

        Raises:
            RegistryError: If the registry is frozen or the id is taken
        """
        if self._frozen:
            raise RegistryError("Rule registry is frozen", rule_id=rule.id)
        if rule.id in self._rules:
            raise RegistryError(f"Rule '{rule.id}' is already registered", rule_id=rule.id)
        self._rules[rule.id] = rule

    def freeze(self) -> None:
        """Reject any further registration."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def __getitem__(self, rule_id: str) -> Rule:
        if rule_id not in self._rules:
            raise KeyError(f"No rule with id '{rule_id}' is registered")
        return self._rules[rule_id]

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[Rule]:
        """Iterate over rules sorted by id."""
        return iter(sorted(self._rules.values(), key=lambda r: r.id))

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def ids(self) -> list[str]:
        return sorted(self._rules)

    def by_category(self, category: RuleCategory) -> list[Rule]:
        """Rules of one category, sorted by id."""
        return [r for r in self if r.category == category]

    def validate_policy(
        self,
        policy: PolicyConfig,
        sections: Mapping[str, tuple[RuleCategory, Iterable[str]]],
    ) -> None:
        """Verify that a policy only references rules its checkers can evaluate.

        Args:
            policy: Policy to verify
            sections: For each policy section (as returned by
                ``PolicyConfig.rule_references``), the category its rules must
                belong to and the checks valid there

        Raises:
            RegistryError: On unknown rule ids, unknown checks or category mismatches
        """
        known_checks: dict[RuleCategory, set[str]] = {}
        for category, checks in sections.values():
            known_checks.setdefault(category, set()).update(checks)

        for rule in self:
            if rule.check not in known_checks.get(rule.category, set()):
                raise RegistryError(
                    f"Rule '{rule.id}' uses check '{rule.check}' which no "
                    f"{rule.category.value} checker implements",
                    rule_id=rule.id,
                )

        for rule_id, section, location in policy.rule_references():
            rule = self.get(rule_id)
            if rule is None:
                raise RegistryError(
                    f"Policy entry {location} references unknown rule '{rule_id}'",
                    rule_id=rule_id,
                )
            if section not in sections:
                raise RegistryError(f"Unknown policy section '{section}'", rule_id=rule_id)
            category, checks = sections[section]
            allowed = set(checks)
            if rule.category != category or rule.check not in allowed:
                raise RegistryError(
                    f"Policy entry {location} references rule '{rule_id}' "
                    f"({rule.category.value}/{rule.check}), expected a "
                    f"{category.value} rule checking one of {sorted(allowed)}",
                    rule_id=rule_id,
                )
