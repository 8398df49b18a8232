"""Compliance checkers, one per rule category."""

from rhodibot.checkers.banned import BannedPatternScanner
from rhodibot.checkers.base import BaseChecker, Checker, ScanContext
from rhodibot.checkers.documents import DocumentValidator
from rhodibot.checkers.language import LanguagePolicyChecker
from rhodibot.checkers.layout import LayoutChecker
from rhodibot.checkers.required_files import RequiredFilesChecker

__all__ = [
    "BaseChecker",
    "Checker",
    "ScanContext",
    "RequiredFilesChecker",
    "DocumentValidator",
    "LayoutChecker",
    "LanguagePolicyChecker",
    "BannedPatternScanner",
    "default_checkers",
]


def default_checkers() -> list[Checker]:
    """Get one instance of each built-in checker.

    Returns:
        The five checkers, covering every rule category exactly once
    """
    return [
        RequiredFilesChecker(),
        DocumentValidator(),
        LayoutChecker(),
        LanguagePolicyChecker(),
        BannedPatternScanner(),
    ]
