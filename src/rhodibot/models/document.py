"""Structured metadata document models."""

from typing import Any

from pydantic import BaseModel, Field


class Symbol(str):
    """A bare symbol read from a document, as opposed to a string literal."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


class DocumentRecord(BaseModel):
    """A parsed structured document.

    ``data`` maps section keys to converted values: nested sections become
    dicts, single values stay scalars, and everything else becomes a list.
    """

    model_config = {"frozen": True}

    path: str = Field(description="Document path in the repository")
    root: str = Field(description="Head symbol of the root form")
    data: dict[str, Any] = Field(default_factory=dict, description="Converted root section")

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key path."""
        current: Any = self.data
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current
