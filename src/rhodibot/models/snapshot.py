"""Repository snapshot data models."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class EntryKind(str, Enum):
    """Kind of a snapshot entry."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"


class SnapshotEntry(BaseModel):
    """One path in a repository snapshot."""

    model_config = {"frozen": True}

    path: str = Field(description="POSIX path relative to the repository root")
    kind: EntryKind = Field(default=EntryKind.FILE, description="Entry kind")
    size: int = Field(default=0, ge=0, description="Size in bytes (0 for directories)")

    @field_validator("path")
    @classmethod
    def _normalize(cls, value: str) -> str:
        value = value.replace("\\", "/").strip("/")
        while value.startswith("./"):
            value = value[2:]
        if not value:
            raise ValueError("snapshot path cannot be empty")
        if any(part in ("", ".", "..") for part in value.split("/")):
            raise ValueError(f"snapshot path must be normalized and relative: {value}")
        return value

    @property
    def name(self) -> str:
        """Final path component."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> str | None:
        """Parent directory path, or None at the top level."""
        if "/" not in self.path:
            return None
        return self.path.rsplit("/", 1)[0]

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE
