"""Renderer protocol and the options every renderer receives."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from rhodibot.models.rule import Rule

if TYPE_CHECKING:
    from rhodibot.core.registry import RuleRegistry


class OutputFormat(str, Enum):
    """Supported output formats."""

    JSON = "json"
    MARKDOWN = "markdown"
    TERMINAL = "terminal"


class RenderContext(BaseModel):
    """Options for one rendering call."""

    model_config = {"frozen": True}

    format: OutputFormat = Field(default=OutputFormat.TERMINAL, description="Output format")
    output_path: Path | None = Field(default=None, description="Write here instead of stdout")
    verbose: bool = Field(default=False, description="Include report digests")
    color: bool = Field(default=True, description="Enable color output (terminal only)")
    indent: int = Field(default=2, description="JSON indentation, 0 for compact")
    checklist: bool = Field(default=False, description="Markdown as an issue checklist")
    rules: dict[str, Rule] = Field(
        default_factory=dict,
        description="Rule catalog used to look up remediation hints",
    )

    @classmethod
    def for_rules(cls, rules: "RuleRegistry | Iterable[Rule]", **options: Any) -> "RenderContext":
        """Build a context whose remediation hints come from a rule catalog."""
        return cls(rules={rule.id: rule for rule in rules}, **options)

    def remediation(self, rule_id: str) -> str | None:
        """Get the remediation hint of a rule, if known."""
        rule = self.rules.get(rule_id)
        return rule.remediation if rule else None


@runtime_checkable
class Renderer(Protocol):
    """Turns reports, fleet outcomes, rule lists and scan errors into text.

    ``render`` returns the text; a renderer that prints directly (the
    terminal renderer) returns an empty string instead.
    """

    @property
    def format(self) -> OutputFormat:
        """The output format this renderer produces."""
        ...

    def render(self, data: Any, context: RenderContext) -> str:
        ...

    def render_to_file(self, data: Any, context: RenderContext) -> None:
        """Write the rendering to ``context.output_path``."""
        ...


class BaseRenderer:
    """Shared file output for renderers that return their text."""

    def render(self, data: Any, context: RenderContext) -> str:
        raise NotImplementedError

    def render_to_file(self, data: Any, context: RenderContext) -> None:
        """Write the rendering to ``context.output_path``, newline-terminated.

        Raises:
            ValueError: If context.output_path is not set
        """
        if context.output_path is None:
            raise ValueError("output_path must be set in context for file rendering")

        content = self.render(data, context)
        if not content.endswith("\n"):
            content += "\n"
        context.output_path.write_text(content, encoding="utf-8")
