"""RepositorySnapshot: a read-only view of a repository file tree."""

from __future__ import annotations

import os
import time
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Iterable, Iterator, Mapping

from rhodibot.models.snapshot import EntryKind, SnapshotEntry
from rhodibot.utils.errors import ScanTimeoutError, SnapshotError
from rhodibot.utils.logging import get_logger

logger = get_logger("snapshot")

ContentReader = Callable[[str], bytes]

# Never part of a snapshot: VCS internals are not repository content
SKIPPED_DIRECTORIES = frozenset({".git", ".hg", ".svn"})


class RepositorySnapshot:
    """Represents a repository file tree at one point in time.

    A snapshot is an ordered, immutable set of entries plus a content
    accessor. Checkers only ever read from it. Build one per scan and drop
    it afterwards.

    Example:
        # From a local checkout
        snapshot = RepositorySnapshot.from_directory("/src/rhodibot", timeout=30)

        # From an in-memory tree (API-backed filesystems, tests)
        snapshot = RepositorySnapshot.from_mapping({"README.adoc": b"= Title"})

        snapshot.has_path("README.adoc")
        snapshot.has_nested_entry(".well-known")
    """

    def __init__(
        self,
        entries: Iterable[SnapshotEntry],
        reader: ContentReader | None = None,
        repository_id: str = "",
    ) -> None:
        """Initialize from entries.

        Args:
            entries: Snapshot entries; missing parent directories are implied
            reader: Callable returning the bytes of a file path
            repository_id: Identifier used in reports
        """
        by_path: dict[str, SnapshotEntry] = {}
        for entry in entries:
            by_path[entry.path] = entry

        # Path-prefix index: every ancestor directory of every entry
        prefixes: set[str] = set()
        for path in by_path:
            parts = path.split("/")
            for i in range(1, len(parts)):
                prefixes.add("/".join(parts[:i]))

        for directory in prefixes:
            if directory not in by_path:
                by_path[directory] = SnapshotEntry(path=directory, kind=EntryKind.DIRECTORY)

        self._entries: tuple[SnapshotEntry, ...] = tuple(by_path[p] for p in sorted(by_path))
        self._by_path = by_path
        self._prefixes = frozenset(prefixes)
        self._reader = reader
        self._repository_id = repository_id

    @property
    def repository_id(self) -> str:
        return self._repository_id

    @property
    def entries(self) -> tuple[SnapshotEntry, ...]:
        """All entries, sorted by path."""
        return self._entries

    @property
    def paths(self) -> list[str]:
        return [e.path for e in self._entries]

    @property
    def files(self) -> list[SnapshotEntry]:
        """File entries, sorted by path."""
        return [e for e in self._entries if e.kind == EntryKind.FILE]

    @property
    def top_level_directories(self) -> list[str]:
        """Names of top-level directories, sorted."""
        return [
            e.path
            for e in self._entries
            if e.kind == EntryKind.DIRECTORY and "/" not in e.path
        ]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SnapshotEntry]:
        return iter(self._entries)

    def __contains__(self, path: str) -> bool:
        return self.has_path(path)

    def get(self, path: str) -> SnapshotEntry | None:
        """Get the entry at a path."""
        return self._by_path.get(path.strip("/"))

    def has_path(self, path: str) -> bool:
        """Check if any entry exists at exactly this path."""
        return path.strip("/") in self._by_path

    def is_file(self, path: str) -> bool:
        entry = self.get(path)
        return entry is not None and entry.kind == EntryKind.FILE

    def is_directory(self, path: str) -> bool:
        entry = self.get(path)
        return entry is not None and entry.kind == EntryKind.DIRECTORY

    def has_nested_entry(self, directory: str) -> bool:
        """Check if at least one entry lives under ``directory``."""
        return directory.strip("/") in self._prefixes

    def entries_under(self, directory: str) -> list[SnapshotEntry]:
        """Entries nested anywhere under ``directory``, sorted."""
        prefix = directory.strip("/") + "/"
        return [e for e in self._entries if e.path.startswith(prefix)]

    def match(self, pattern: str) -> list[SnapshotEntry]:
        """Entries whose path matches a case-sensitive glob."""
        return [e for e in self._entries if fnmatchcase(e.path, pattern)]

    def read_bytes(self, path: str) -> bytes:
        """Read the content of a file entry.

        Raises:
            FileNotFoundError: If the path is not a file in this snapshot
            SnapshotError: If the underlying repository cannot be read
        """
        if not self.is_file(path):
            raise FileNotFoundError(f"Not a file in snapshot: {path}")
        if self._reader is None:
            raise SnapshotError(f"Snapshot has no content reader for {path}")
        try:
            return self._reader(path.strip("/"))
        except OSError as e:
            raise SnapshotError(f"Failed to read {path}: {e}") from e

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.read_bytes(path).decode(encoding)

    @classmethod
    def from_mapping(
        cls,
        files: Mapping[str, bytes | str],
        repository_id: str = "memory",
        directories: Iterable[str] = (),
    ) -> "RepositorySnapshot":
        """Create a snapshot from an in-memory file mapping.

        Args:
            files: Mapping of path to file content
            repository_id: Identifier used in reports
            directories: Extra (possibly empty) directories

        Returns:
            RepositorySnapshot instance
        """
        contents: dict[str, bytes] = {}
        entries: list[SnapshotEntry] = []
        for path, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
            entry = SnapshotEntry(path=path, kind=EntryKind.FILE, size=len(data))
            contents[entry.path] = data
            entries.append(entry)
        for directory in directories:
            entries.append(SnapshotEntry(path=directory, kind=EntryKind.DIRECTORY))

        def reader(path: str) -> bytes:
            try:
                return contents[path]
            except KeyError:
                raise FileNotFoundError(path) from None

        return cls(entries, reader=reader, repository_id=repository_id)

    @classmethod
    def from_directory(
        cls,
        root: str | Path,
        repository_id: str | None = None,
        timeout: float | None = None,
    ) -> "RepositorySnapshot":
        """Create a snapshot of a local checkout.

        File contents are not read here; the snapshot reads them lazily from
        ``root`` when a checker asks.

        Args:
            root: Repository root directory
            repository_id: Identifier used in reports (defaults to the directory name)
            timeout: Maximum seconds to spend walking the tree

        Returns:
            RepositorySnapshot instance

        Raises:
            SnapshotError: If the root is missing or cannot be walked
            ScanTimeoutError: If walking the tree exceeds ``timeout``
        """
        root_path = Path(root)
        if not root_path.is_dir():
            raise SnapshotError(
                f"Repository is not a readable directory: {root}",
                root=str(root),
                retryable=False,
            )

        deadline = time.monotonic() + timeout if timeout is not None else None
        entries: list[SnapshotEntry] = []

        def on_error(error: OSError) -> None:
            raise SnapshotError(f"Failed to read repository: {error}", root=str(root)) from error

        for dirpath, dirnames, filenames in os.walk(root_path, onerror=on_error):
            if deadline is not None and time.monotonic() > deadline:
                raise ScanTimeoutError(
                    f"Snapshot of {root} exceeded {timeout}s",
                    timeout=timeout,
                )

            current = Path(dirpath)
            dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRECTORIES)

            for name in dirnames:
                full = current / name
                rel = full.relative_to(root_path).as_posix()
                kind = EntryKind.SYMLINK if full.is_symlink() else EntryKind.DIRECTORY
                entries.append(SnapshotEntry(path=rel, kind=kind))

            for name in filenames:
                full = current / name
                rel = full.relative_to(root_path).as_posix()
                try:
                    if full.is_symlink():
                        entries.append(SnapshotEntry(path=rel, kind=EntryKind.SYMLINK))
                    else:
                        entries.append(
                            SnapshotEntry(path=rel, kind=EntryKind.FILE, size=full.stat().st_size)
                        )
                except OSError as e:
                    raise SnapshotError(f"Failed to stat {rel}: {e}", root=str(root)) from e

        def reader(path: str) -> bytes:
            return (root_path / path).read_bytes()

        logger.debug(f"Snapshot of {root_path} has {len(entries)} entries")
        return cls(entries, reader=reader, repository_id=repository_id or root_path.resolve().name)
