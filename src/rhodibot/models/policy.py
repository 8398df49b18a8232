"""Policy configuration data models.

A :class:`PolicyConfig` holds the values checkers evaluate (which files are
required, which languages are banned, ...). Every entry names the rule it
reports under, so severity and remediation text live in one place: the
rule catalog of the enclosing :class:`PolicyPack`.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from rhodibot.knowledge.licenses import normalize_license
from rhodibot.models.rule import Rule


class RequiredPath(BaseModel):
    """A path pattern that must match at least one snapshot entry.

    Plain paths are looked up exactly, patterns containing ``*``, ``?`` or
    ``[`` are globs, and a trailing ``/`` marks a directory that must
    contain at least one nested entry.
    """

    model_config = {"frozen": True}

    pattern: str = Field(description="Path, glob, or directory pattern")
    rule: str = Field(default="RSR-REQ-001", description="Rule reported when missing")
    description: str = Field(default="", description="What the file is for")

    @field_validator("pattern")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value.strip("/"):
            raise ValueError("pattern cannot be empty")
        return value

    @property
    def is_directory(self) -> bool:
        return self.pattern.endswith("/")

    @property
    def is_glob(self) -> bool:
        return any(ch in self.pattern for ch in "*?[")


class DirectoryRule(BaseModel):
    """A top-level directory name (or glob) the layout checker evaluates."""

    model_config = {"frozen": True}

    path: str = Field(description="Top-level directory name or glob")
    rule: str = Field(description="Rule reported on failure")

    @field_validator("path")
    @classmethod
    def _strip_slashes(cls, value: str) -> str:
        value = value.strip("/")
        if not value:
            raise ValueError("path cannot be empty")
        return value


class WorkflowPolicy(BaseModel):
    """CI workflow requirements."""

    model_config = {"frozen": True}

    directory: str = Field(default=".github/workflows", description="Workflow directory")
    required_count: int = Field(default=1, ge=0, description="Minimum number of workflow files")
    count_rule: str = Field(default="RSR-LAY-003", description="Rule reported when too few workflows")
    integrity_rules: list[RequiredPath] = Field(
        default_factory=list,
        description="Workflow files that must exist",
    )


class FieldType(str, Enum):
    """Value types a structured-document field can be declared with."""

    STRING = "string"
    SYMBOL = "symbol"
    TEXT = "text"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    LIST = "list"
    SECTION = "section"
    SEMVER = "semver"
    DATE = "date"
    ANY = "any"


class DocumentField(BaseModel):
    """A shape rule for one key of a structured document."""

    model_config = {"frozen": True}

    key: str = Field(description="Dotted key path, e.g. metadata.version")
    type: FieldType = Field(default=FieldType.ANY, description="Expected value type")
    required: bool = Field(default=True, description="Whether the key must be present")

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(self.key.split("."))


class DocumentSchema(BaseModel):
    """Expected shape of one structured metadata document."""

    model_config = {"frozen": True}

    path: str = Field(description="Document path in the repository")
    root: str = Field(description="Head symbol of the root form")
    keys: list[DocumentField] = Field(default_factory=list, description="Shape rules")
    parse_rule: str = Field(default="RSR-SCH-001", description="Rule for parse failures")
    root_rule: str = Field(default="RSR-SCH-002", description="Rule for a missing root form")
    key_rule: str = Field(default="RSR-SCH-003", description="Rule for missing keys")
    value_rule: str = Field(default="RSR-SCH-004", description="Rule for ill-typed values")


class LicensePolicy(BaseModel):
    """Licenses a repository may be published under.

    An empty ``approved`` set turns the check off.
    """

    model_config = {"frozen": True}

    pattern: str = Field(default="LICENSE*", description="Glob of the license files to inspect")
    approved: frozenset[str] = Field(
        default_factory=frozenset,
        description="Approved license keys (lowercase SPDX identifiers)",
    )
    rule: str = Field(default="RSR-SCH-005", description="Rule for unapproved or unknown licenses")
    header_bytes: int = Field(default=4096, gt=0, description="Bytes of each file to inspect")

    @field_validator("approved")
    @classmethod
    def _normalize(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(normalize_license(key) for key in value)


class PolicyConfig(BaseModel):
    """The values the checkers evaluate a repository against."""

    model_config = {"frozen": True}

    required_files: list[RequiredPath] = Field(default_factory=list)
    required_directories: list[DirectoryRule] = Field(default_factory=list)
    forbidden_directories: list[DirectoryRule] = Field(default_factory=list)
    workflows: WorkflowPolicy = Field(default_factory=WorkflowPolicy)
    documents: list[DocumentSchema] = Field(default_factory=list)
    license: LicensePolicy = Field(default_factory=LicensePolicy)

    banned_languages: frozenset[str] = Field(default_factory=frozenset)
    banned_package_managers: frozenset[str] = Field(default_factory=frozenset)
    language_rule: str = Field(default="RSR-LANG-001")
    manager_config_rule: str = Field(default="RSR-LANG-002")
    lockfile_rule: str = Field(default="RSR-BAN-001")

    ignored_paths: list[str] = Field(
        default_factory=list,
        description="Globs excluded from language and banned-pattern scanning",
    )
    max_document_bytes: int = Field(default=1024 * 1024, gt=0)

    @property
    def required_workflow_count(self) -> int:
        return self.workflows.required_count

    def rule_references(self) -> list[tuple[str, str, str]]:
        """List every rule reference as (rule id, section, location).

        ``section`` names the policy slot (e.g. ``documents.parse_rule``) and
        ``location`` pinpoints the entry for error messages.
        """
        refs: list[tuple[str, str, str]] = []
        for entry in self.required_files:
            refs.append((entry.rule, "required_files", f"required_files[{entry.pattern}]"))
        for entry in self.required_directories:
            refs.append((entry.rule, "required_directories", f"required_directories[{entry.path}]"))
        for entry in self.forbidden_directories:
            refs.append((entry.rule, "forbidden_directories", f"forbidden_directories[{entry.path}]"))
        refs.append((self.workflows.count_rule, "workflows.count_rule", "workflows.count_rule"))
        for entry in self.workflows.integrity_rules:
            refs.append(
                (entry.rule, "workflows.integrity_rules", f"workflows.integrity_rules[{entry.pattern}]")
            )
        for schema in self.documents:
            for attr in ("parse_rule", "root_rule", "key_rule", "value_rule"):
                refs.append((getattr(schema, attr), f"documents.{attr}", f"documents[{schema.path}].{attr}"))
        if self.license.approved:
            refs.append((self.license.rule, "license.rule", "license.rule"))
        if self.banned_languages:
            refs.append((self.language_rule, "language_rule", "language_rule"))
        if self.banned_package_managers:
            refs.append((self.manager_config_rule, "manager_config_rule", "manager_config_rule"))
            refs.append((self.lockfile_rule, "lockfile_rule", "lockfile_rule"))
        return refs


class PolicyPack(BaseModel):
    """A versioned rule catalog together with the policy that uses it."""

    model_config = {"frozen": True}

    name: str = Field(description="Pack name")
    version: str = Field(default="1.0.0", description="Pack version")
    description: str = Field(default="", description="Pack description")
    rules: list[Rule] = Field(default_factory=list, description="Rule catalog")
    policy: PolicyConfig = Field(default_factory=PolicyConfig, description="Policy values")

    @property
    def identity(self) -> str:
        return f"{self.name}@{self.version}"
