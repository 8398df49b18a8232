"""Unit tests for RuleRegistry and policy consistency checks."""

import pytest

from rhodibot.checkers import default_checkers
from rhodibot.core.orchestrator import policy_sections
from rhodibot.core.registry import RuleRegistry
from rhodibot.models.common import RuleCategory, Severity
from rhodibot.models.policy import DirectoryRule, LicensePolicy, PolicyConfig, RequiredPath
from rhodibot.models.rule import Rule
from rhodibot.utils.errors import PolicyError, RegistryError


def make_rule(
    rule_id: str,
    category: RuleCategory = RuleCategory.REQUIRED_FILE,
    check: str = "path-present",
    severity: Severity = Severity.HIGH,
) -> Rule:
    return Rule(
        id=rule_id,
        name=rule_id.lower(),
        category=category,
        severity=severity,
        description=f"Rule {rule_id}",
        check=check,
    )


@pytest.fixture
def sections():
    return policy_sections(default_checkers())


class TestRuleRegistry:
    """Tests for RuleRegistry."""

    def test_from_rules(self, pack):
        registry = RuleRegistry.from_rules(pack.rules)

        assert len(registry) == len(pack.rules)
        assert registry.frozen
        assert "RSR-REQ-001" in registry
        assert registry["RSR-REQ-001"].severity == Severity.CRITICAL
        assert registry.get("NOPE") is None

    def test_iteration_sorted_by_id(self, registry):
        ids = [rule.id for rule in registry]
        assert ids == sorted(ids)
        assert registry.ids == ids

    def test_by_category(self, registry):
        layout = registry.by_category(RuleCategory.LAYOUT)
        assert [r.id for r in layout] == ["RSR-LAY-001", "RSR-LAY-002", "RSR-LAY-003", "RSR-LAY-004"]

    def test_getitem_unknown(self, registry):
        with pytest.raises(KeyError):
            registry["NOPE"]

    def test_empty_catalog(self):
        with pytest.raises(RegistryError, match="empty"):
            RuleRegistry.from_rules([])

    def test_duplicate_id(self):
        with pytest.raises(RegistryError, match="already registered"):
            RuleRegistry.from_rules([make_rule("X-1"), make_rule("X-1")])

    def test_frozen_rejects_registration(self, registry):
        with pytest.raises(RegistryError, match="frozen"):
            registry.register(make_rule("X-1"))

    def test_registry_error_is_policy_error(self):
        error = RegistryError("bad", rule_id="X-1")
        assert isinstance(error, PolicyError)
        assert error.code == "REGISTRY_ERROR"
        assert error.details == {"rule_id": "X-1"}


class TestValidatePolicy:
    """Tests for RuleRegistry.validate_policy."""

    def test_builtin_pack_is_consistent(self, pack, registry, sections):
        registry.validate_policy(pack.policy, sections)

    def test_unknown_rule_reference(self, registry, sections):
        policy = PolicyConfig(required_files=[RequiredPath(pattern="README.adoc", rule="RSR-NOPE")])
        with pytest.raises(RegistryError, match="unknown rule 'RSR-NOPE'"):
            registry.validate_policy(policy, sections)

    def test_wrong_category_reference(self, registry, sections):
        policy = PolicyConfig(
            required_directories=[DirectoryRule(path="docs", rule="RSR-REQ-001")],
        )
        with pytest.raises(RegistryError, match="expected a layout rule"):
            registry.validate_policy(policy, sections)

    def test_wrong_check_in_section(self, registry, sections):
        # RSR-LAY-002 is a layout rule, but checks absence, not presence
        policy = PolicyConfig(
            required_directories=[DirectoryRule(path="docs", rule="RSR-LAY-002")],
        )
        with pytest.raises(RegistryError, match="directory-present"):
            registry.validate_policy(policy, sections)

    def test_unknown_check(self, sections):
        registry = RuleRegistry.from_rules([make_rule("X-1", check="file-is-pretty")])
        with pytest.raises(RegistryError, match="file-is-pretty"):
            registry.validate_policy(PolicyConfig(), sections)

    def test_unknown_section(self):
        registry = RuleRegistry.from_rules(
            [make_rule("X-1"), make_rule("RSR-LAY-003", RuleCategory.LAYOUT, "workflow-count")]
        )
        sections = {
            "required_files": (RuleCategory.REQUIRED_FILE, ("path-present",)),
            "required_directories": (RuleCategory.LAYOUT, ("workflow-count",)),
        }
        with pytest.raises(RegistryError, match="Unknown policy section"):
            registry.validate_policy(PolicyConfig(), sections)

    def test_language_rule_only_checked_when_languages_banned(self, sections):
        registry = RuleRegistry.from_rules(
            [make_rule("X-1", check="path-present"), make_rule("RSR-LAY-003", RuleCategory.LAYOUT, "workflow-count")]
        )
        policy = PolicyConfig(language_rule="MISSING")
        registry.validate_policy(policy, sections)

        with pytest.raises(RegistryError):
            registry.validate_policy(policy.model_copy(update={"banned_languages": frozenset({"go"})}), sections)

    def test_license_rule_only_checked_when_licenses_approved(self, sections):
        registry = RuleRegistry.from_rules([make_rule("X-1", check="path-present")])
        policy = PolicyConfig(license=LicensePolicy(rule="MISSING"))
        registry.validate_policy(policy, sections)

        with pytest.raises(RegistryError, match="license.rule"):
            registry.validate_policy(
                PolicyConfig(license=LicensePolicy(approved=frozenset({"mit"}), rule="MISSING")),
                sections,
            )


class TestPolicySections:
    """Tests for policy_sections."""

    def test_sections_cover_every_policy_slot(self, sections):
        assert set(sections) == {
            "required_files",
            "documents.parse_rule",
            "documents.root_rule",
            "documents.key_rule",
            "documents.value_rule",
            "license.rule",
            "required_directories",
            "forbidden_directories",
            "workflows.count_rule",
            "workflows.integrity_rules",
            "language_rule",
            "manager_config_rule",
            "lockfile_rule",
        }

    def test_one_checker_per_category(self):
        checkers = default_checkers()
        with pytest.raises(PolicyError, match="More than one checker"):
            policy_sections(checkers + [checkers[0]])

    def test_categories_partitioned(self):
        categories = [checker.category for checker in default_checkers()]
        assert sorted(c.value for c in categories) == sorted(c.value for c in RuleCategory)
