"""Report aggregation: violations in, deterministic report out."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from rhodibot.core.registry import RuleRegistry
from rhodibot.models.common import RuleCategory, Severity
from rhodibot.models.report import ComplianceBand, ComplianceReport, ReportSummary
from rhodibot.models.rule import Rule, Violation
from rhodibot.utils.errors import OrphanViolationError
from rhodibot.utils.hashing import hash_dict

# A report fails when any violation is at or above this severity
FAIL_THRESHOLD = Severity.HIGH


def summarize(violations: Iterable[Violation], rules: Iterable[Rule] = ()) -> ReportSummary:
    """Count violations per severity and per category and score the rules.

    Every severity and category is present, with zero counts included, so
    summaries of different reports have the same shape. A rule earns its
    points when it is enabled and has no violation.
    """
    by_severity = {severity.value: 0 for severity in sorted(Severity, key=lambda s: -s.rank)}
    by_category = {category.value: 0 for category in RuleCategory}
    total = 0
    violated: set[str] = set()
    for violation in violations:
        total += 1
        by_severity[violation.severity.value] += 1
        by_category[violation.category.value] += 1
        violated.add(violation.rule_id)

    score = max_score = 0
    for rule in rules:
        if not rule.enabled:
            continue
        max_score += rule.points
        if rule.id not in violated:
            score += rule.points
    percentage = round(score * 100 / max_score, 1) if max_score else 0.0

    return ReportSummary(
        total=total,
        by_severity=by_severity,
        by_category=by_category,
        score=score,
        max_score=max_score,
        percentage=percentage,
        band=ComplianceBand.for_percentage(percentage),
    )


def aggregate(
    repository_id: str,
    violation_groups: Iterable[Iterable[Violation]],
    registry: RuleRegistry,
    policy: str,
    timestamp: datetime,
) -> ComplianceReport:
    """Merge checker output into a compliance report.

    The result depends only on the multiset of violations, never on the
    order the groups arrive in.

    Args:
        repository_id: Repository the violations belong to
        violation_groups: One list of violations per checker
        registry: Rule catalog the violations must reference
        policy: Policy pack identity (name@version)
        timestamp: Report time

    Returns:
        ComplianceReport with sorted violations, pass flag, summary, score and digest

    Raises:
        OrphanViolationError: If a violation names a rule the registry lacks
    """
    violations: list[Violation] = []
    for group in violation_groups:
        for violation in group:
            if violation.rule_id not in registry:
                raise OrphanViolationError(violation.rule_id)
            violations.append(violation)

    violations.sort(key=Violation.sort_key)
    passed = not any(v.severity.at_least(FAIL_THRESHOLD) for v in violations)
    summary = summarize(violations, registry)

    content = {
        "repository_id": repository_id,
        "policy": policy,
        "pass": passed,
        "summary": summary.model_dump(mode="json"),
        "violations": [v.model_dump(mode="json") for v in violations],
    }

    return ComplianceReport(
        repository_id=repository_id,
        timestamp=timestamp,
        policy=policy,
        passed=passed,
        summary=summary,
        violations=tuple(violations),
        digest=hash_dict(content),
    )
