"""Unit tests for the required-files checker."""

import pytest

from rhodibot.checkers import RequiredFilesChecker, ScanContext
from rhodibot.checkers.required_files import path_present, path_present_ignore_case
from rhodibot.core.policy import BUILTIN_RULES
from rhodibot.core.registry import RuleRegistry
from rhodibot.core.snapshot import RepositorySnapshot
from rhodibot.models.common import RuleCategory, Severity
from rhodibot.models.policy import PolicyConfig, RequiredPath
from rhodibot.utils.errors import RegistryError


class TestPathPredicates:
    """Tests for the path predicates."""

    @pytest.fixture
    def snapshot(self):
        return RepositorySnapshot.from_mapping(
            {"LICENSE-MIT": "", "docs/guide.md": "", "Readme.adoc": ""},
            directories=["empty"],
        )

    def test_plain_path(self, snapshot):
        assert path_present(snapshot, "docs/guide.md")
        assert path_present(snapshot, "docs")
        assert not path_present(snapshot, "guide.md")

    def test_glob_is_case_sensitive(self, snapshot):
        assert path_present(snapshot, "LICENSE*")
        assert not path_present(snapshot, "license*")
        assert path_present(snapshot, "docs/*.md")

    def test_directory_pattern_needs_nested_entry(self, snapshot):
        assert path_present(snapshot, "docs/")
        assert not path_present(snapshot, "empty/")
        assert not path_present(snapshot, "missing/")

    def test_ignore_case(self, snapshot):
        assert path_present_ignore_case(snapshot, "README.adoc")
        assert path_present_ignore_case(snapshot, "DOCS/")
        assert not path_present_ignore_case(snapshot, "empty/")


class TestRequiredFilesChecker:
    """Tests for RequiredFilesChecker."""

    def test_compliant_repository(self, make_context, compliant_mapping):
        assert RequiredFilesChecker().check(make_context(compliant_mapping)) == []

    def test_empty_repository_reports_every_pattern(self, make_context, policy):
        violations = RequiredFilesChecker().check(make_context({}))

        assert len(violations) == len(policy.required_files)
        assert [v.path for v in violations] == [entry.pattern for entry in policy.required_files]
        assert all(v.category == RuleCategory.REQUIRED_FILE for v in violations)

    def test_severity_comes_from_rule(self, make_context, compliant_mapping):
        del compliant_mapping["README.adoc"]
        del compliant_mapping[".claude/CLAUDE.md"]

        violations = RequiredFilesChecker().check(make_context(compliant_mapping))

        by_path = {v.path: v for v in violations}
        assert by_path["README.adoc"].severity == Severity.CRITICAL
        assert by_path["README.adoc"].rule_id == "RSR-REQ-001"
        assert by_path[".claude/CLAUDE.md"].severity == Severity.CRITICAL
        assert by_path[".claude/CLAUDE.md"].rule_id == "RSR-REQ-004"

    def test_license_variants(self, make_context, compliant_mapping):
        del compliant_mapping["LICENSE.txt"]
        compliant_mapping["LICENSE"] = "MIT"
        assert RequiredFilesChecker().check(make_context(compliant_mapping)) == []

        del compliant_mapping["LICENSE"]
        compliant_mapping["license.md"] = "MIT"
        violations = RequiredFilesChecker().check(make_context(compliant_mapping))
        assert [v.path for v in violations] == ["LICENSE*"]

    def test_empty_well_known_directory(self, make_context, compliant_mapping):
        del compliant_mapping[".well-known/security.txt"]

        violations = RequiredFilesChecker().check(make_context(compliant_mapping, directories=[".well-known"]))

        assert len(violations) == 1
        assert violations[0].path == ".well-known/"
        assert "missing or empty" in violations[0].message

    def test_never_reads_contents(self, policy, registry, compliant_mapping):
        def reader(path: str) -> bytes:
            raise AssertionError(f"read {path}")

        entries = RepositorySnapshot.from_mapping(compliant_mapping).entries
        snapshot = RepositorySnapshot(entries, reader=reader)
        context = ScanContext(snapshot=snapshot, policy=policy, registry=registry)

        assert RequiredFilesChecker().check(context) == []

    def test_disabled_rule_skipped(self, policy):
        rules = [r.model_copy(update={"enabled": r.id != "RSR-REQ-003"}) for r in BUILTIN_RULES]
        context = ScanContext(
            snapshot=RepositorySnapshot.from_mapping({}),
            policy=policy,
            registry=RuleRegistry.from_rules(rules),
        )

        violations = RequiredFilesChecker().check(context)

        assert violations
        assert "RSR-REQ-003" not in {v.rule_id for v in violations}

    def test_ignore_case_rule(self):
        rule = BUILTIN_RULES[0].model_copy(update={"id": "ORG-001", "check": "path-present-ignore-case"})
        context = ScanContext(
            snapshot=RepositorySnapshot.from_mapping({"readme.md": ""}),
            policy=PolicyConfig(required_files=[RequiredPath(pattern="README.md", rule="ORG-001")]),
            registry=RuleRegistry.from_rules([rule]),
        )
        assert RequiredFilesChecker().check(context) == []

    def test_unknown_rule(self, registry):
        context = ScanContext(
            snapshot=RepositorySnapshot.from_mapping({}),
            policy=PolicyConfig(required_files=[RequiredPath(pattern="X", rule="NOPE")]),
            registry=registry,
        )
        with pytest.raises(RegistryError):
            RequiredFilesChecker().check(context)
