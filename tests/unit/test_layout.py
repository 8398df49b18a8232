"""Unit tests for the directory-layout checker."""

from rhodibot.checkers import LayoutChecker
from rhodibot.checkers.layout import workflow_files
from rhodibot.core.snapshot import RepositorySnapshot
from rhodibot.models.common import RuleCategory
from rhodibot.models.policy import DirectoryRule, RequiredPath, WorkflowPolicy


def rule_ids(violations):
    return [v.rule_id for v in violations]


class TestWorkflowFiles:
    """Tests for workflow discovery."""

    def test_only_direct_yaml_files(self):
        snapshot = RepositorySnapshot.from_mapping(
            {
                ".github/workflows/ci.yml": "",
                ".github/workflows/release.YAML": "",
                ".github/workflows/README.md": "",
                ".github/workflows/nested/deploy.yml": "",
            }
        )
        assert [e.path for e in workflow_files(snapshot, ".github/workflows")] == [
            ".github/workflows/ci.yml",
            ".github/workflows/release.YAML",
        ]


class TestLayoutChecker:
    """Tests for LayoutChecker."""

    def test_compliant_repository(self, make_context, compliant_mapping):
        assert LayoutChecker().check(make_context(compliant_mapping)) == []

    def test_missing_github_directory(self, make_context):
        violations = LayoutChecker().check(make_context({"README.adoc": ""}))

        assert rule_ids(violations) == ["RSR-LAY-001", "RSR-LAY-003"]
        assert all(v.category == RuleCategory.LAYOUT for v in violations)
        assert violations[0].path == ".github"
        assert "Found 0 workflow file(s)" in violations[1].message

    def test_empty_required_directory_present(self, make_context):
        violations = LayoutChecker().check(make_context({}, directories=[".github"]))
        assert rule_ids(violations) == ["RSR-LAY-003"]

    def test_forbidden_directory(self, make_context, compliant_mapping):
        compliant_mapping["node_modules/left-pad/index.js"] = ""
        compliant_mapping["packages/app/node_modules/x.js"] = ""

        violations = LayoutChecker().check(make_context(compliant_mapping))

        assert rule_ids(violations) == ["RSR-LAY-002"]
        assert violations[0].path == "node_modules"

    def test_forbidden_glob(self, make_context, compliant_mapping, policy):
        override = policy.model_copy(
            update={"forbidden_directories": [DirectoryRule(path="build*", rule="RSR-LAY-002")]}
        )
        violations = LayoutChecker().check(
            make_context(compliant_mapping, directories=["build", "build-cache"], policy_override=override)
        )

        assert [v.path for v in violations] == ["build", "build-cache"]

    def test_required_workflow_count(self, make_context, compliant_mapping, policy):
        override = policy.model_copy(update={"workflows": WorkflowPolicy(required_count=2)})

        violations = LayoutChecker().check(make_context(compliant_mapping, policy_override=override))

        assert rule_ids(violations) == ["RSR-LAY-003"]
        assert "at least 2 required" in violations[0].message

    def test_zero_required_workflows(self, make_context, policy):
        override = policy.model_copy(update={"workflows": WorkflowPolicy(required_count=0)})
        violations = LayoutChecker().check(make_context({}, directories=[".github"], policy_override=override))
        assert violations == []

    def test_workflow_integrity(self, make_context, compliant_mapping, policy):
        override = policy.model_copy(
            update={
                "workflows": WorkflowPolicy(
                    integrity_rules=[
                        RequiredPath(pattern="ci.yml", rule="RSR-LAY-004"),
                        RequiredPath(pattern="codeql.yml", rule="RSR-LAY-004", description="CodeQL scanning"),
                    ]
                )
            }
        )

        violations = LayoutChecker().check(make_context(compliant_mapping, policy_override=override))

        assert rule_ids(violations) == ["RSR-LAY-004"]
        assert violations[0].path == ".github/workflows/codeql.yml"
        assert violations[0].message.startswith("CodeQL scanning")

    def test_all_problems_reported(self, make_context):
        violations = LayoutChecker().check(make_context({"node_modules/a.js": ""}))
        assert rule_ids(violations) == ["RSR-LAY-001", "RSR-LAY-002", "RSR-LAY-003"]
