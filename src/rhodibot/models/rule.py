"""Rule and violation data models."""

from pydantic import BaseModel, Field

from rhodibot.models.common import RuleCategory, Severity

DEFAULT_WEIGHTS = {
    Severity.CRITICAL: 10,
    Severity.HIGH: 5,
    Severity.MEDIUM: 3,
    Severity.LOW: 1,
}


class Rule(BaseModel):
    """A single compliance rule.

    Rules are data: the ``check`` field names a predicate owned by the
    checker responsible for ``category``. Policy entries point at rules by
    ``id`` and the rule supplies severity and remediation text.
    """

    model_config = {"frozen": True}

    id: str = Field(description="Stable rule identifier")
    name: str = Field(description="Short kebab-case rule name")
    category: RuleCategory = Field(description="Rule category")
    severity: Severity = Field(description="Rule severity")
    description: str = Field(description="What the rule requires")
    check: str = Field(description="Predicate the owning checker evaluates")
    remediation: str | None = Field(default=None, description="How to fix violations")
    rationale: str | None = Field(default=None, description="Why this rule exists")
    version: int = Field(default=1, ge=1, description="Rule revision")
    enabled: bool = Field(default=True, description="Whether rule is enabled")
    weight: int | None = Field(
        default=None,
        ge=0,
        description="Score points of the rule (defaults by severity)",
    )

    @property
    def points(self) -> int:
        """Points the rule contributes to the compliance score."""
        if self.weight is not None:
            return self.weight
        return DEFAULT_WEIGHTS[self.severity]


class Violation(BaseModel):
    """A single detected deviation from a rule."""

    model_config = {"frozen": True}

    rule_id: str = Field(description="Violated rule")
    category: RuleCategory = Field(description="Category of the violated rule")
    severity: Severity = Field(description="Severity of the violated rule")
    path: str | None = Field(default=None, description="Repository path the violation is about")
    message: str = Field(description="Violation message")

    def sort_key(self) -> tuple[int, str, int, str, str]:
        """Canonical ordering: severity desc, rule id, path (missing last), message."""
        return (
            -self.severity.rank,
            self.rule_id,
            1 if self.path is None else 0,
            self.path or "",
            self.message,
        )
