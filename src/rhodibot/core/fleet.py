"""Fleet scanning: many repositories through one orchestrator."""

from __future__ import annotations

import os
import threading
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator

from rhodibot.core.orchestrator import Orchestrator, ScanSource
from rhodibot.core.snapshot import RepositorySnapshot
from rhodibot.models.report import ComplianceReport, ScanOutcome
from rhodibot.utils.errors import OrchestrationError
from rhodibot.utils.logging import get_logger

logger = get_logger("fleet")


def source_id(source: ScanSource) -> str:
    """Best-effort identifier of a scan source, used when no report exists."""
    if isinstance(source, RepositorySnapshot):
        return source.repository_id
    if isinstance(source, (str, Path)):
        return Path(source).resolve().name or str(source)
    return getattr(source, "__name__", repr(source))


def fleet_ids(sources: list[ScanSource]) -> list[str | None]:
    """Assign every source a repository id that is unique within the fleet.

    Checkouts are named after their directory. When two share a name, each
    of them is named by its path relative to their common parent instead
    (``org-a/widget``, ``org-b/widget``). Any id still taken gets a
    numeric suffix (``widget-2``) in input order. Snapshot loaders get
    None: their snapshot names itself once loaded.
    """
    ids: list[str | None] = [None if callable(source) else source_id(source) for source in sources]

    counts = Counter(i for i in ids if i is not None)
    clashing = [
        i
        for i, source in enumerate(sources)
        if isinstance(source, (str, Path)) and counts[ids[i]] > 1
    ]
    if len(clashing) > 1:
        resolved = [Path(sources[i]).resolve() for i in clashing]
        common = Path(os.path.commonpath([str(p) for p in resolved]))
        for i, path in zip(clashing, resolved):
            relative = path.relative_to(common).as_posix()
            ids[i] = common.name if relative == "." else relative

    unique: list[str | None] = []
    seen: set[str] = set()
    for repository_id in ids:
        if repository_id is None:
            unique.append(None)
            continue
        candidate, n = repository_id, 1
        while candidate in seen:
            n += 1
            candidate = f"{repository_id}-{n}"
        seen.add(candidate)
        unique.append(candidate)
    return unique


class FleetScanner:
    """Scans a fleet of repositories with a bounded worker pool.

    Scans run concurrently, but outcomes are yielded in input order on the
    caller's thread and publishing happens there, one report at a time.
    A repository that cannot be scanned yields an outcome carrying an
    ``AuditError`` and the fleet carries on.

    Example:
        fleet = FleetScanner(Orchestrator(publishers=[DirectoryPublisher("out")]))
        for outcome in fleet.scan(["repos/a", "repos/b"]):
            print(outcome.repository_id, outcome.passed)
    """

    def __init__(self, orchestrator: Orchestrator, max_workers: int = 4) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.orchestrator = orchestrator
        self.max_workers = max_workers

    def scan(
        self,
        sources: Iterable[ScanSource],
        timeout: float | None = None,
        retries: int = 0,
        cancel: threading.Event | None = None,
    ) -> Iterator[ScanOutcome]:
        """Scan every source and yield one outcome per source, in input order.

        Each source is scanned under the id :func:`fleet_ids` gives it.

        Args:
            sources: Snapshots, checkout directories, or snapshot loaders
            timeout: Per-repository scan timeout in seconds
            retries: Per-repository snapshot retries
            cancel: Event that abandons every scan not yet finished
        """
        sources = list(sources)
        ids = fleet_ids(sources)
        logger.info(f"Scanning {len(sources)} repositories with {self.max_workers} worker(s)")

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="rhodibot-fleet") as pool:
            futures: list[Future[ComplianceReport]] = [
                pool.submit(
                    self.orchestrator.scan,
                    source,
                    repository_id=repository_id,
                    timeout=timeout,
                    retries=retries,
                    cancel=cancel,
                    publish=False,
                )
                for source, repository_id in zip(sources, ids)
            ]
            for source, repository_id, future in zip(sources, ids, futures):
                yield self._outcome(repository_id or source_id(source), future)

    def _outcome(self, repository_id: str, future: Future[ComplianceReport]) -> ScanOutcome:
        try:
            report = future.result()
        except OrchestrationError as e:
            logger.warning(f"Scan of {repository_id} failed: {e.message}")
            return ScanOutcome(repository_id=repository_id, error=e.to_audit_error())

        self.orchestrator.publish(report)
        return ScanOutcome(repository_id=report.repository_id, report=report)
