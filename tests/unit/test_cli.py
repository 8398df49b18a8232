"""Unit tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from rhodibot import __version__
from rhodibot.cli.main import app


runner = CliRunner()


@pytest.fixture
def failing_repo(write_repo, compliant_mapping):
    compliant_mapping["yarn.lock"] = ""
    return write_repo(compliant_mapping, name="failing-repo")


@pytest.fixture
def advisory_repo(write_repo, compliant_mapping):
    """A repository missing only supplementary documents."""
    del compliant_mapping["Justfile"]
    del compliant_mapping[".claude/CLAUDE.md"]
    return write_repo(compliant_mapping, name="advisory-repo")


@pytest.fixture
def lenient_policy(tmp_path):
    """Overlay grading the supplementary documents as advisory."""
    path = tmp_path / "lenient.yaml"
    path.write_text(
        "name: lenient\n"
        "rules:\n"
        "  - id: RSR-REQ-003\n"
        "    name: supplementary-document-present\n"
        "    category: required-file\n"
        "    severity: medium\n"
        "    description: Supplementary project document\n"
        "    check: path-present\n"
        "  - id: RSR-REQ-004\n"
        "    name: assistant-instructions-present\n"
        "    category: required-file\n"
        "    severity: low\n"
        "    description: AI assistant instructions\n"
        "    check: path-present\n",
        encoding="utf-8",
    )
    return path


class TestMainCLI:
    """Tests for main CLI app."""

    def test_help(self):
        """Test --help flag."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "rsr" in result.stdout.lower()

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    @pytest.mark.parametrize("command", ["check", "rules", "fleet"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestCheckCommand:
    """Tests for check command."""

    def test_compliant(self, compliant_repo: Path):
        result = runner.invoke(app, ["check", str(compliant_repo)])
        assert result.exit_code == 0
        assert "PASSED" in result.stdout

    def test_failing(self, failing_repo: Path):
        result = runner.invoke(app, ["check", str(failing_repo)])
        assert result.exit_code == 1
        assert "RSR-BAN-001" in result.stdout

    def test_advisory_violations_pass(self, advisory_repo: Path, lenient_policy: Path):
        result = runner.invoke(
            app, ["check", str(advisory_repo), "--policy", str(lenient_policy), "--format", "json"]
        )
        assert result.exit_code == 0

        data = json.loads(result.stdout)
        assert data["pass"] is True
        assert [v["rule_id"] for v in data["violations"]] == ["RSR-REQ-003", "RSR-REQ-004"]

    def test_json(self, failing_repo: Path):
        result = runner.invoke(
            app, ["check", str(failing_repo), "-f", "json", "--repository-id", "org/failing"]
        )
        assert result.exit_code == 1

        data = json.loads(result.stdout)
        assert data["repository_id"] == "org/failing"
        assert data["pass"] is False
        assert data["policy"] == "rsr@1.0.0"

    def test_markdown_checklist(self, failing_repo: Path):
        result = runner.invoke(app, ["check", str(failing_repo), "-f", "markdown", "--checklist"])
        assert result.exit_code == 1
        assert "- [ ] 🟠 **RSR-BAN-001** `yarn.lock`" in result.stdout

    def test_output_file(self, compliant_repo: Path, tmp_path: Path):
        output = tmp_path / "report.json"
        result = runner.invoke(app, ["check", str(compliant_repo), "-f", "json", "-o", str(output)])

        assert result.exit_code == 0
        assert json.loads(output.read_text(encoding="utf-8"))["pass"] is True

    def test_source_date_epoch_makes_output_identical(self, compliant_repo: Path, monkeypatch):
        monkeypatch.setenv("SOURCE_DATE_EPOCH", "1736942400")

        first = runner.invoke(app, ["check", str(compliant_repo), "-f", "json"])
        second = runner.invoke(app, ["check", str(compliant_repo), "-f", "json"])

        assert first.exit_code == 0
        assert first.stdout == second.stdout
        assert json.loads(first.stdout)["timestamp"].startswith("2025-01-15T12:00:00")

    def test_unreadable_repository(self, tmp_path: Path):
        result = runner.invoke(app, ["check", str(tmp_path / "missing"), "--retries", "0"])
        assert result.exit_code == 2
        assert "REPOSITORY_UNREADABLE" in result.stdout

    def test_invalid_format(self, compliant_repo: Path):
        result = runner.invoke(app, ["check", str(compliant_repo), "--format", "html"])
        assert result.exit_code == 2

    def test_invalid_policy(self, compliant_repo: Path, tmp_path: Path):
        policy = tmp_path / "policy.yaml"
        policy.write_text("policy:\n  required_files:\n    - pattern: NOTICE\n      rule: ORG-404\n", encoding="utf-8")

        result = runner.invoke(app, ["check", str(compliant_repo), "--policy", str(policy)])

        assert result.exit_code == 2
        assert "REGISTRY_ERROR" in result.stdout

    def test_custom_policy(self, compliant_repo: Path, tmp_path: Path):
        policy = tmp_path / "org.yaml"
        policy.write_text(
            "name: org\n"
            "version: 2.0.0\n"
            "rules:\n"
            "  - id: ORG-001\n"
            "    name: notice-present\n"
            "    category: required-file\n"
            "    severity: high\n"
            "    description: NOTICE file\n"
            "    check: path-present\n"
            "policy:\n"
            "  required_files:\n"
            "    - pattern: NOTICE\n"
            "      rule: ORG-001\n",
            encoding="utf-8",
        )

        result = runner.invoke(
            app, ["check", str(compliant_repo), "--policy", str(policy), "-f", "json"]
        )

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["policy"] == "org@2.0.0"
        assert [v["rule_id"] for v in data["violations"]] == ["ORG-001"]

    def test_config_file(self, failing_repo: Path, tmp_path: Path):
        config = tmp_path / "rhodibot.yaml"
        config.write_text("output:\n  default_format: json\nscan:\n  parallel: false\n", encoding="utf-8")

        result = runner.invoke(app, ["check", str(failing_repo), "--config", str(config)])

        assert result.exit_code == 1
        assert json.loads(result.stdout)["pass"] is False

    def test_missing_config_file(self, compliant_repo: Path, tmp_path: Path):
        result = runner.invoke(app, ["check", str(compliant_repo), "-c", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2
        assert "CONFIG_ERROR" in result.stdout


class TestRulesCommand:
    """Tests for rules command."""

    def test_list(self):
        result = runner.invoke(app, ["rules", "-f", "json"])
        assert result.exit_code == 0

        ids = [rule["id"] for rule in json.loads(result.stdout)]
        assert ids == sorted(ids)
        assert "RSR-REQ-001" in ids
        assert len(ids) == 16

    def test_category(self):
        result = runner.invoke(app, ["rules", "--category", "layout", "-f", "json"])
        assert result.exit_code == 0
        assert [rule["id"] for rule in json.loads(result.stdout)] == [
            "RSR-LAY-001",
            "RSR-LAY-002",
            "RSR-LAY-003",
            "RSR-LAY-004",
        ]

    def test_terminal(self):
        result = runner.invoke(app, ["rules"])
        assert result.exit_code == 0
        assert "Rules" in result.stdout

    def test_invalid_category(self):
        result = runner.invoke(app, ["rules", "--category", "style"])
        assert result.exit_code == 2

    def test_no_builtin_without_policy(self):
        result = runner.invoke(app, ["rules", "--no-builtin"])
        assert result.exit_code == 2
        assert "POLICY_ERROR" in result.stdout


class TestFleetCommand:
    """Tests for fleet command."""

    def test_all_pass(self, write_repo, compliant_mapping):
        repos = [str(write_repo(compliant_mapping, name=name)) for name in ("a", "b")]
        result = runner.invoke(app, ["fleet", *repos, "-f", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [o["repository_id"] for o in data] == ["a", "b"]

    def test_any_failure(self, compliant_repo: Path, failing_repo: Path):
        result = runner.invoke(app, ["fleet", str(compliant_repo), str(failing_repo), "-f", "markdown"])

        assert result.exit_code == 1
        assert "| `failing-repo` | ❌ fail |" in result.stdout

    def test_unreadable_repository(self, compliant_repo: Path, tmp_path: Path):
        result = runner.invoke(
            app, ["fleet", str(compliant_repo), str(tmp_path / "missing"), "-r", "0", "-f", "markdown"]
        )

        assert result.exit_code == 2
        assert "| `missing` | ⚠️ REPOSITORY_UNREADABLE | - | - |" in result.stdout

    def test_output_dir(self, compliant_repo: Path, failing_repo: Path, tmp_path: Path):
        out = tmp_path / "reports"
        result = runner.invoke(
            app, ["fleet", str(compliant_repo), str(failing_repo), "--output-dir", str(out), "-w", "2"]
        )

        assert result.exit_code == 1
        assert sorted(p.name for p in out.iterdir()) == ["compliant-repo.json", "failing-repo.json"]
        report = json.loads((out / "failing-repo.json").read_text(encoding="utf-8"))
        assert report["pass"] is False
