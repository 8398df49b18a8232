"""Core domain logic for rhodibot.

The scan pipeline lives in :mod:`rhodibot.core.orchestrator` and
:mod:`rhodibot.core.fleet`; both are re-exported from :mod:`rhodibot`.
"""

from rhodibot.core.aggregator import aggregate, summarize
from rhodibot.core.document import parse_document, read_forms
from rhodibot.core.policy import (
    BUILTIN_RULES,
    builtin_pack,
    load_policy_pack,
    merge_packs,
    resolve_pack,
    save_policy_pack,
)
from rhodibot.core.publish import DirectoryPublisher, ReportPublisher
from rhodibot.core.registry import RuleRegistry
from rhodibot.core.snapshot import RepositorySnapshot

__all__ = [
    # Snapshot and documents
    "RepositorySnapshot",
    "parse_document",
    "read_forms",
    # Rules and policy
    "RuleRegistry",
    "BUILTIN_RULES",
    "builtin_pack",
    "load_policy_pack",
    "merge_packs",
    "resolve_pack",
    "save_policy_pack",
    # Reports
    "aggregate",
    "summarize",
    "DirectoryPublisher",
    "ReportPublisher",
]
