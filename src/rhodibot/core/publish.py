"""Report publishers."""

from __future__ import annotations

import re
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

from rhodibot.models.report import ComplianceReport
from rhodibot.utils.logging import get_logger

logger = get_logger("publish")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@runtime_checkable
class ReportPublisher(Protocol):
    """Receives complete reports.

    Check-run posting and fleet context sharing live outside this package;
    they plug in by implementing ``publish``. Publishers are only ever
    handed complete reports.
    """

    def publish(self, report: ComplianceReport) -> None:
        """Publish one report."""
        ...


def report_filename(repository_id: str) -> str:
    """File name for a repository's report, safe on every platform."""
    name = _UNSAFE_CHARS.sub("_", repository_id).strip("._")
    return f"{name or 'repository'}.json"


class DirectoryPublisher:
    """Writes each report as ``<repository>.json`` into a directory.

    A later report for the same repository replaces the earlier file. When
    two different repositories map to one file name (``org/widget`` and
    ``org_widget``), the later one is written as ``<name>-2.json`` and so on.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.published: list[Path] = []
        self._owners: dict[str, str] = {}
        self._lock = threading.Lock()

    def path_for(self, repository_id: str) -> Path:
        """Get the report path of a repository, claiming a free name if needed."""
        with self._lock:
            for name, owner in self._owners.items():
                if owner == repository_id:
                    return self.directory / name
            base = report_filename(repository_id)[: -len(".json")]
            name, n = f"{base}.json", 1
            while name in self._owners:
                n += 1
                name = f"{base}-{n}.json"
            if n > 1:
                logger.warning(f"Report name {base}.json is taken; writing {repository_id} to {name}")
            self._owners[name] = repository_id
            return self.directory / name

    def publish(self, report: ComplianceReport) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(report.repository_id)
        path.write_text(report.to_json() + "\n", encoding="utf-8")
        self.published.append(path)
        logger.debug(f"Wrote report for {report.repository_id} to {path}")
