"""Common model types shared across modules."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Severity of a rule and of the violations it produces."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANKS[self]

    def at_least(self, other: "Severity") -> bool:
        """Check if this severity is at or above another."""
        return self.rank >= other.rank


_SEVERITY_RANKS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}


class RuleCategory(str, Enum):
    """Rule categories. Each category is owned by exactly one checker."""

    REQUIRED_FILE = "required-file"
    SCHEMA = "schema"
    LAYOUT = "layout"
    LANGUAGE_POLICY = "language-policy"
    BANNED_PATTERN = "banned-pattern"


class AuditError(BaseModel):
    """Represents an error that occurred during a scan."""

    model_config = {"frozen": True}

    code: str = Field(description="Error code for programmatic handling")
    message: str = Field(description="Human-readable error message")
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional error context",
    )

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"
