"""Execution orchestrator: one scan from snapshot to published report."""

from __future__ import annotations

import os
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Sequence, Union

from rhodibot.checkers import Checker, ScanContext, default_checkers
from rhodibot.core.aggregator import aggregate
from rhodibot.core.policy import builtin_pack
from rhodibot.core.publish import ReportPublisher
from rhodibot.core.registry import RuleRegistry
from rhodibot.core.snapshot import RepositorySnapshot
from rhodibot.models.common import RuleCategory
from rhodibot.models.policy import PolicyPack
from rhodibot.models.report import ComplianceReport
from rhodibot.models.rule import Violation
from rhodibot.utils.errors import (
    PolicyError,
    RegistryError,
    ScanCancelledError,
    ScanTimeoutError,
    SnapshotError,
    retry,
)
from rhodibot.utils.logging import get_logger, get_logger_with_context

logger = get_logger("orchestrator")

SnapshotLoader = Callable[[], RepositorySnapshot]
ScanSource = Union[RepositorySnapshot, str, Path, SnapshotLoader]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time, pinned by SOURCE_DATE_EPOCH when it is set."""
    epoch = os.environ.get("SOURCE_DATE_EPOCH", "").strip()
    if epoch:
        try:
            return datetime.fromtimestamp(int(epoch), timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.warning(f"Ignoring invalid SOURCE_DATE_EPOCH {epoch!r}")
    return datetime.now(timezone.utc)


def policy_sections(checkers: Iterable[Checker]) -> dict[str, tuple[RuleCategory, tuple[str, ...]]]:
    """Map each policy section to the category and checks of the checker evaluating it.

    Raises:
        PolicyError: If two checkers claim one category or one section
    """
    sections: dict[str, tuple[RuleCategory, tuple[str, ...]]] = {}
    categories: set[RuleCategory] = set()
    for checker in checkers:
        if checker.category in categories:
            raise PolicyError(f"More than one checker reports category {checker.category.value}")
        categories.add(checker.category)
        for section, checks in checker.sections.items():
            if section in sections:
                raise PolicyError(f"Policy section '{section}' is claimed by more than one checker")
            sections[section] = (checker.category, tuple(checks))
    return sections


class Orchestrator:
    """Runs the checkers against one repository and aggregates the result.

    The orchestrator is built once per policy pack; construction fails fast
    on a malformed pack so that no scan ever runs against an inconsistent
    registry. Each ``scan`` builds its own snapshot and shares nothing
    mutable with other scans, so one orchestrator may serve a whole fleet
    from several threads.

    Example:
        orchestrator = Orchestrator()
        report = orchestrator.scan("path/to/checkout", timeout=60)

        if not report.passed:
            for violation in report.violations:
                print(violation.rule_id, violation.message)
    """

    def __init__(
        self,
        pack: PolicyPack | None = None,
        checkers: Sequence[Checker] | None = None,
        clock: Clock | None = None,
        publishers: Iterable[ReportPublisher] = (),
        parallel: bool = True,
        max_workers: int = 5,
        retry_delay: float = 1.0,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            pack: Policy pack (defaults to the built-in RSR pack)
            checkers: Checkers to run (defaults to the five built-in ones)
            clock: Source of report timestamps (defaults to UTC now, or
                SOURCE_DATE_EPOCH when set)
            publishers: Receivers of every complete report
            parallel: Run checkers concurrently in a thread pool
            max_workers: Thread pool size for the checker phase
            retry_delay: Initial delay between snapshot attempts in seconds

        Raises:
            PolicyError: If the pack is malformed
            RegistryError: If the rule catalog is empty or inconsistent
        """
        self.pack = pack if pack is not None else builtin_pack()
        self.checkers = list(checkers) if checkers is not None else default_checkers()
        if not self.checkers:
            raise PolicyError("No checkers configured")

        self.registry = RuleRegistry.from_rules(self.pack.rules, version=self.pack.version)
        self.registry.validate_policy(self.pack.policy, policy_sections(self.checkers))

        self.clock = clock or utc_now
        self.publishers = list(publishers)
        self.parallel = parallel
        self.max_workers = max(1, max_workers)
        self.retry_delay = retry_delay

        logger.debug(
            f"Orchestrator ready with pack {self.pack.identity}: "
            f"{len(self.registry)} rule(s), {len(self.checkers)} checker(s)"
        )

    def scan(
        self,
        source: ScanSource,
        repository_id: str | None = None,
        timeout: float | None = None,
        retries: int = 0,
        cancel: threading.Event | None = None,
        publish: bool = True,
    ) -> ComplianceReport:
        """Scan one repository.

        Args:
            source: A snapshot, a checkout directory, or a zero-argument
                callable returning a snapshot
            repository_id: Identifier for the report (defaults to the snapshot's)
            timeout: Seconds the whole scan may take
            retries: Extra snapshot attempts after a SnapshotError
            cancel: Event the caller sets to abandon the scan
            publish: Hand the report to the registered publishers

        Returns:
            The complete ComplianceReport

        Raises:
            SnapshotError: If the repository stays unreadable after all attempts
            ScanTimeoutError: If the scan exceeds ``timeout``
            ScanCancelledError: If ``cancel`` is set before the report exists
            OrphanViolationError: If a checker reports an unregistered rule
        """
        if retries < 0:
            raise ValueError("retries cannot be negative")
        deadline = time.monotonic() + timeout if timeout is not None else None

        self._check_cancel(cancel)
        snapshot = self._load_snapshot(source, retries, deadline, timeout)
        repo = repository_id or snapshot.repository_id
        log = get_logger_with_context("orchestrator", repository=repo)
        log.debug(f"Scanning {len(snapshot)} entries against {self.pack.identity}")

        self._check_cancel(cancel)
        context = ScanContext(snapshot=snapshot, policy=self.pack.policy, registry=self.registry)
        groups = self._run_checkers(context, deadline, timeout, cancel)

        self._check_cancel(cancel)
        report = aggregate(repo, groups, self.registry, self.pack.identity, self.clock())
        log.debug(
            f"Scan finished: {'pass' if report.passed else 'fail'} "
            f"with {report.summary.total} violation(s)"
        )

        if publish:
            self.publish(report)
        return report

    def publish(self, report: ComplianceReport) -> None:
        """Hand a complete report to every registered publisher."""
        for publisher in self.publishers:
            publisher.publish(report)

    def _check_cancel(self, cancel: threading.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise ScanCancelledError()

    @staticmethod
    def _remaining(deadline: float | None, timeout: float | None) -> float | None:
        if deadline is None:
            return None
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ScanTimeoutError(f"Scan exceeded {timeout}s", timeout=timeout)
        return remaining

    def _load_snapshot(
        self,
        source: ScanSource,
        retries: int,
        deadline: float | None,
        timeout: float | None,
    ) -> RepositorySnapshot:
        if isinstance(source, RepositorySnapshot):
            return source

        @retry(
            max_attempts=retries + 1,
            delay=self.retry_delay,
            exceptions=(SnapshotError,),
            retry_if=lambda e: getattr(e, "retryable", True),
        )
        def load() -> RepositorySnapshot:
            remaining = self._remaining(deadline, timeout)
            if isinstance(source, (str, Path)):
                return RepositorySnapshot.from_directory(source, timeout=remaining)
            try:
                snapshot = source()
            except OSError as e:
                raise SnapshotError(f"Failed to load repository snapshot: {e}") from e
            if not isinstance(snapshot, RepositorySnapshot):
                raise SnapshotError(
                    f"Snapshot loader returned {type(snapshot).__name__}, not a RepositorySnapshot"
                )
            return snapshot

        return load()

    def _run_checkers(
        self,
        context: ScanContext,
        deadline: float | None,
        timeout: float | None,
        cancel: threading.Event | None,
    ) -> list[list[Violation]]:
        if not self.parallel:
            groups = []
            for checker in self.checkers:
                self._check_cancel(cancel)
                self._remaining(deadline, timeout)
                groups.append(self._run_one(checker, context))
            self._remaining(deadline, timeout)
            return groups

        remaining = self._remaining(deadline, timeout)
        pool = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(self.checkers)),
            thread_name_prefix="rhodibot-checker",
        )
        try:
            futures = [pool.submit(self._run_one, checker, context) for checker in self.checkers]
            done, pending = wait(futures, timeout=remaining, return_when=FIRST_EXCEPTION)
            if not pending:
                # Re-raises the first checker failure, if any
                return [future.result() for future in futures]
            failed = [f for f in done if f.exception() is not None]
            if failed:
                failed[0].result()
            raise ScanTimeoutError(f"Checkers exceeded {timeout}s", timeout=timeout)
        finally:
            # Abandon stragglers; their output is never aggregated
            pool.shutdown(wait=False, cancel_futures=True)

    def _run_one(self, checker: Checker, context: ScanContext) -> list[Violation]:
        started = time.monotonic()
        violations = list(checker.check(context))
        for violation in violations:
            if violation.category != checker.category:
                raise RegistryError(
                    f"Checker {checker.name} reported {violation.rule_id} "
                    f"outside its category {checker.category.value}",
                    rule_id=violation.rule_id,
                )
        logger.debug(
            f"{checker.name}: {len(violations)} violation(s) in {time.monotonic() - started:.3f}s"
        )
        return violations

