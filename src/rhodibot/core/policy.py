"""Policy packs: the built-in RSR rule catalog and YAML loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from rhodibot.models.common import RuleCategory, Severity
from rhodibot.models.policy import (
    DirectoryRule,
    DocumentField,
    DocumentSchema,
    FieldType,
    LicensePolicy,
    PolicyConfig,
    PolicyPack,
    RequiredPath,
    WorkflowPolicy,
)
from rhodibot.models.rule import Rule
from rhodibot.utils.errors import PolicyError
from rhodibot.utils.logging import get_logger

logger = get_logger("policy")

BUILTIN_RULES = [
    Rule(
        id="RSR-REQ-001",
        name="core-document-present",
        category=RuleCategory.REQUIRED_FILE,
        severity=Severity.CRITICAL,
        description="Core project document",
        check="path-present",
        rationale="Every RSR repository must identify itself and its license",
        remediation="Add the missing file at the repository root",
    ),
    Rule(
        id="RSR-REQ-002",
        name="policy-document-present",
        category=RuleCategory.REQUIRED_FILE,
        severity=Severity.CRITICAL,
        description="Policy or machine-readable project document",
        check="path-present",
        rationale="Security policy and project state documents feed the rest of the fleet",
        remediation="Add the missing file; copy it from the RSR template repository if unsure",
    ),
    Rule(
        id="RSR-REQ-003",
        name="supplementary-document-present",
        category=RuleCategory.REQUIRED_FILE,
        severity=Severity.CRITICAL,
        description="Supplementary project document",
        check="path-present",
        remediation="Add the missing file from the RSR template repository",
    ),
    Rule(
        id="RSR-REQ-004",
        name="assistant-instructions-present",
        category=RuleCategory.REQUIRED_FILE,
        severity=Severity.CRITICAL,
        description="AI assistant instructions",
        check="path-present",
        remediation="Add .claude/CLAUDE.md describing repository conventions",
    ),
    Rule(
        id="RSR-SCH-001",
        name="document-parses",
        category=RuleCategory.SCHEMA,
        severity=Severity.CRITICAL,
        description="Structured document must be well-formed",
        check="document-parses",
        remediation="Fix the syntax error reported in the message (balanced parentheses, closed strings)",
    ),
    Rule(
        id="RSR-SCH-002",
        name="document-root-present",
        category=RuleCategory.SCHEMA,
        severity=Severity.HIGH,
        description="Structured document must contain its root form",
        check="document-root",
        remediation="Wrap the document content in its root form, e.g. (state ...)",
    ),
    Rule(
        id="RSR-SCH-003",
        name="document-key-present",
        category=RuleCategory.SCHEMA,
        severity=Severity.HIGH,
        description="Structured document must declare every required key",
        check="document-key",
        remediation="Add the missing key to the document",
    ),
    Rule(
        id="RSR-SCH-004",
        name="document-value-valid",
        category=RuleCategory.SCHEMA,
        severity=Severity.HIGH,
        description="Structured document values must have their declared types",
        check="document-value",
        remediation="Correct the value; versions must be MAJOR.MINOR.PATCH and dates YYYY-MM-DD",
    ),
    Rule(
        id="RSR-SCH-005",
        name="license-approved",
        category=RuleCategory.SCHEMA,
        severity=Severity.MEDIUM,
        description="License must be one of the approved licenses",
        check="license-approved",
        rationale="Fleet repositories are published under AGPL, Apache, MIT, MPL or LGPL terms",
        remediation="Relicense under an approved license and add an SPDX-License-Identifier line to the license file",
    ),
    Rule(
        id="RSR-LAY-001",
        name="required-directory-present",
        category=RuleCategory.LAYOUT,
        severity=Severity.CRITICAL,
        description="Required top-level directory",
        check="directory-present",
        remediation="Create the directory with its expected content",
    ),
    Rule(
        id="RSR-LAY-002",
        name="forbidden-directory-absent",
        category=RuleCategory.LAYOUT,
        severity=Severity.HIGH,
        description="Forbidden top-level directory",
        check="directory-absent",
        remediation="Remove the directory from version control and add it to .gitignore",
    ),
    Rule(
        id="RSR-LAY-003",
        name="workflows-present",
        category=RuleCategory.LAYOUT,
        severity=Severity.HIGH,
        description="CI workflows must be configured",
        check="workflow-count",
        remediation="Add GitHub Actions workflows under .github/workflows/",
    ),
    Rule(
        id="RSR-LAY-004",
        name="required-workflow-present",
        category=RuleCategory.LAYOUT,
        severity=Severity.MEDIUM,
        description="Required CI workflow",
        check="workflow-present",
        remediation="Copy the workflow from the RSR template repository",
    ),
    Rule(
        id="RSR-LANG-001",
        name="language-permitted",
        category=RuleCategory.LANGUAGE_POLICY,
        severity=Severity.HIGH,
        description="Source files must be in permitted languages",
        check="language-allowed",
        rationale="The RSR language policy keeps the fleet on a small set of toolchains",
        remediation="Port the file to a permitted language (e.g. Go to Rust, TypeScript to ReScript)",
    ),
    Rule(
        id="RSR-LANG-002",
        name="package-manager-config-permitted",
        category=RuleCategory.LANGUAGE_POLICY,
        severity=Severity.HIGH,
        description="No configuration for banned package managers",
        check="manager-config-allowed",
        remediation="Remove the configuration file and use Deno for JavaScript dependencies",
    ),
    Rule(
        id="RSR-BAN-001",
        name="no-banned-lockfiles",
        category=RuleCategory.BANNED_PATTERN,
        severity=Severity.HIGH,
        description="No lockfiles of banned package managers (CCCP)",
        check="lockfile-absent",
        rationale="npm, Yarn, pnpm and Bun are banned; Deno replaces them",
        remediation="Delete the lockfile and migrate dependencies to Deno",
    ),
]

BUILTIN_POLICY = PolicyConfig(
    required_files=[
        RequiredPath(pattern="README.adoc", rule="RSR-REQ-001", description="AsciiDoc README"),
        RequiredPath(pattern="LICENSE*", rule="RSR-REQ-001", description="License file"),
        RequiredPath(pattern="SECURITY.md", rule="RSR-REQ-002", description="Security policy"),
        RequiredPath(pattern="STATE.scm", rule="RSR-REQ-002", description="Project state file"),
        RequiredPath(pattern="META.scm", rule="RSR-REQ-002", description="Meta information"),
        RequiredPath(pattern="ECOSYSTEM.scm", rule="RSR-REQ-002", description="Ecosystem position"),
        RequiredPath(pattern="CONTRIBUTING.md", rule="RSR-REQ-003", description="Contributing guidelines"),
        RequiredPath(pattern="CODE_OF_CONDUCT.md", rule="RSR-REQ-003", description="Code of conduct"),
        RequiredPath(pattern="Justfile", rule="RSR-REQ-003", description="Justfile task runner"),
        RequiredPath(pattern=".well-known/", rule="RSR-REQ-003", description="Well-known metadata"),
        RequiredPath(pattern=".claude/CLAUDE.md", rule="RSR-REQ-004", description="AI assistant instructions"),
    ],
    required_directories=[
        DirectoryRule(path=".github", rule="RSR-LAY-001"),
    ],
    forbidden_directories=[
        DirectoryRule(path="node_modules", rule="RSR-LAY-002"),
        DirectoryRule(path="bower_components", rule="RSR-LAY-002"),
    ],
    workflows=WorkflowPolicy(directory=".github/workflows", required_count=1, count_rule="RSR-LAY-003"),
    documents=[
        DocumentSchema(
            path="STATE.scm",
            root="state",
            keys=[
                DocumentField(key="metadata", type=FieldType.SECTION),
                DocumentField(key="metadata.version", type=FieldType.SEMVER),
                DocumentField(key="metadata.project", type=FieldType.TEXT),
                DocumentField(key="metadata.updated", type=FieldType.DATE, required=False),
                DocumentField(key="current-position", type=FieldType.SECTION),
            ],
        ),
        DocumentSchema(
            path="META.scm",
            root="meta",
            keys=[
                DocumentField(key="metadata", type=FieldType.SECTION),
                DocumentField(key="metadata.version", type=FieldType.SEMVER),
                DocumentField(key="architecture-decisions", type=FieldType.ANY),
                DocumentField(key="development-practices", type=FieldType.ANY, required=False),
            ],
        ),
        DocumentSchema(
            path="ECOSYSTEM.scm",
            root="ecosystem",
            keys=[
                DocumentField(key="version", type=FieldType.SEMVER),
                DocumentField(key="name", type=FieldType.TEXT),
                DocumentField(key="type", type=FieldType.TEXT),
                DocumentField(key="purpose", type=FieldType.STRING),
                DocumentField(key="related-projects", type=FieldType.ANY, required=False),
            ],
        ),
    ],
    license=LicensePolicy(
        approved=frozenset({"agpl-3.0", "apache-2.0", "mit", "mpl-2.0", "lgpl-3.0"}),
    ),
    banned_languages=frozenset({"go", "typescript"}),
    banned_package_managers=frozenset({"npm", "yarn", "pnpm", "bun", "go-modules"}),
    ignored_paths=["vendor/", "third_party/"],
)


def builtin_pack() -> PolicyPack:
    """Get the built-in RSR policy pack.

    Returns:
        PolicyPack with the default rule catalog and policy
    """
    return PolicyPack(
        name="rsr",
        version="1.0.0",
        description="Rhodium Standard Repository baseline",
        rules=BUILTIN_RULES,
        policy=BUILTIN_POLICY,
    )


def load_policy_pack(path: str | Path) -> PolicyPack:
    """Load a policy pack from a YAML file.

    Args:
        path: Path to the pack file

    Returns:
        PolicyPack loaded from file

    Raises:
        PolicyError: If the file is unreadable, not YAML, or not a valid pack
    """
    source = str(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise PolicyError(f"Failed to read policy pack: {e}", source=source) from e
    except yaml.YAMLError as e:
        raise PolicyError(f"Invalid YAML in policy pack: {e}", source=source) from e

    if not isinstance(data, dict):
        raise PolicyError("Policy pack must be a YAML mapping", source=source)

    data.setdefault("name", Path(path).stem)
    try:
        pack = PolicyPack.model_validate(data)
    except ValidationError as e:
        raise PolicyError(f"Invalid policy pack: {e}", source=source) from e

    logger.debug(f"Loaded policy pack {pack.identity} with {len(pack.rules)} rule(s) from {source}")
    return pack


def merge_packs(base: PolicyPack, overlay: PolicyPack) -> PolicyPack:
    """Layer one pack on top of another.

    Overlay rules replace base rules with the same id and add new ones.
    Only the policy fields the overlay sets explicitly replace the base
    values.

    Args:
        base: Pack to start from (usually the built-in pack)
        overlay: Pack whose rules and policy fields take precedence

    Returns:
        The combined pack, named after the overlay
    """
    rules = {rule.id: rule for rule in base.rules}
    for rule in overlay.rules:
        rules[rule.id] = rule

    updates = {name: getattr(overlay.policy, name) for name in overlay.policy.model_fields_set}
    policy = base.policy.model_copy(update=updates)

    return PolicyPack(
        name=overlay.name,
        version=overlay.version,
        description=overlay.description or base.description,
        rules=sorted(rules.values(), key=lambda r: r.id),
        policy=policy,
    )


def resolve_pack(path: str | Path | None = None, include_builtin: bool = True) -> PolicyPack:
    """Get the pack a scan should use.

    Args:
        path: Optional pack file
        include_builtin: Layer the file on top of the built-in pack

    Returns:
        The effective PolicyPack

    Raises:
        PolicyError: If no pack results or the file is invalid
    """
    if path is None:
        if not include_builtin:
            raise PolicyError("No policy pack given and the built-in pack is disabled")
        return builtin_pack()

    pack = load_policy_pack(path)
    if include_builtin:
        return merge_packs(builtin_pack(), pack)
    return pack


def pack_to_dict(pack: PolicyPack) -> dict[str, Any]:
    """Convert a pack to plain data with deterministic ordering."""
    data = pack.model_dump(mode="json", exclude_none=True)
    policy = data["policy"]
    policy["banned_languages"] = sorted(policy["banned_languages"])
    policy["banned_package_managers"] = sorted(policy["banned_package_managers"])
    policy["license"]["approved"] = sorted(policy["license"]["approved"])
    return data


def save_policy_pack(pack: PolicyPack, path: str | Path) -> None:
    """Save a policy pack to a YAML file.

    Args:
        pack: The pack to save
        path: Path to save to
    """
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(pack_to_dict(pack), f, default_flow_style=False, sort_keys=False)
