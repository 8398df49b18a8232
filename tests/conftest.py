"""Shared test fixtures for rhodibot tests."""

import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest

from rhodibot.core.orchestrator import Orchestrator
from rhodibot.core.policy import builtin_pack
from rhodibot.core.registry import RuleRegistry
from rhodibot.core.snapshot import RepositorySnapshot
from rhodibot.checkers import ScanContext
from rhodibot.models.policy import PolicyConfig, PolicyPack

FIXED_TIME = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

STATE_SCM = """\
;; STATE.scm - project state
(state
  (metadata
    (version "1.2.0")
    (project "rhodibot")
    (updated "2025-01-10"))
  (current-position
    (phase "implementation")
    (completion 60)))
"""

META_SCM = """\
;; META.scm - architecture decisions
(meta
  (metadata
    (version "1.0.0"))
  (architecture-decisions
    (adr-001 "Rules are data"))
  (development-practices
    (testing "pytest")))
"""

ECOSYSTEM_SCM = """\
(ecosystem
  (version "1.0.0")
  (name "rhodibot")
  (type "compliance-bot")
  (purpose "Verify RSR compliance")
  (related-projects
    (project "rsr-template-repo")))
"""


def compliant_files() -> dict[str, str]:
    """File mapping of a repository satisfying the built-in policy."""
    return {
        "README.adoc": "= rhodibot\n",
        "LICENSE.txt": "AGPL-3.0-or-later\n",
        "SECURITY.md": "# Security\n",
        "STATE.scm": STATE_SCM,
        "META.scm": META_SCM,
        "ECOSYSTEM.scm": ECOSYSTEM_SCM,
        "CONTRIBUTING.md": "# Contributing\n",
        "CODE_OF_CONDUCT.md": "# Code of Conduct\n",
        "Justfile": "test:\n    cargo test\n",
        ".well-known/security.txt": "Contact: mailto:security@example.org\n",
        ".claude/CLAUDE.md": "# Instructions\n",
        ".github/workflows/ci.yml": "name: CI\non: [push]\n",
        "src/main.rs": "fn main() {}\n",
    }


def fixed_clock() -> datetime:
    return FIXED_TIME


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Materialize a file mapping on disk."""
    for path, content in files.items():
        target = root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def pack() -> PolicyPack:
    """The built-in policy pack."""
    return builtin_pack()


@pytest.fixture
def policy(pack: PolicyPack) -> PolicyConfig:
    return pack.policy


@pytest.fixture
def registry(pack: PolicyPack) -> RuleRegistry:
    return RuleRegistry.from_rules(pack.rules)


@pytest.fixture
def compliant_snapshot() -> RepositorySnapshot:
    """Snapshot of a fully compliant repository."""
    return RepositorySnapshot.from_mapping(compliant_files(), repository_id="compliant")


@pytest.fixture
def make_context(policy: PolicyConfig, registry: RuleRegistry):
    """Factory building a ScanContext from a file mapping."""

    def _make(files: dict[str, str], directories=(), policy_override: PolicyConfig | None = None):
        snapshot = RepositorySnapshot.from_mapping(files, directories=directories)
        return ScanContext(
            snapshot=snapshot,
            policy=policy_override or policy,
            registry=registry,
        )

    return _make


@pytest.fixture
def orchestrator() -> Orchestrator:
    """Orchestrator over the built-in pack with a fixed clock."""
    return Orchestrator(clock=fixed_clock, retry_delay=0)


@pytest.fixture
def compliant_repo(tmp_path: Path) -> Path:
    """A compliant repository checkout on disk."""
    return write_tree(tmp_path / "compliant-repo", compliant_files())


@pytest.fixture
def compliant_mapping() -> dict[str, str]:
    """A fresh copy of the compliant file mapping, safe to modify."""
    return compliant_files()


@pytest.fixture
def write_repo(tmp_path: Path):
    """Factory writing a file mapping to a new checkout directory."""

    def _write(files: dict[str, str], name: str = "repo") -> Path:
        return write_tree(tmp_path / name, files)

    return _write


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers the CLI bound to a test runner's streams."""
    yield
    logger = logging.getLogger("rhodibot")
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
