"""Structured-document validator for the .scm metadata documents."""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Callable

from rhodibot.checkers.base import BaseChecker, ScanContext
from rhodibot.core.document import parse_document
from rhodibot.knowledge.licenses import identify_license, is_approved
from rhodibot.models.common import RuleCategory
from rhodibot.models.document import DocumentRecord, Symbol
from rhodibot.models.policy import DocumentSchema, FieldType
from rhodibot.models.rule import Violation
from rhodibot.utils.errors import DocumentParseError
from rhodibot.utils.logging import get_logger

logger = get_logger("checkers.documents")

# Semantic Versioning 2.0.0
SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _is_date(value: Any) -> bool:
    if not isinstance(value, str) or not DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


TYPE_CHECKS: dict[FieldType, Callable[[Any], bool]] = {
    FieldType.STRING: lambda v: isinstance(v, str) and not isinstance(v, Symbol),
    FieldType.SYMBOL: lambda v: isinstance(v, Symbol),
    FieldType.TEXT: lambda v: isinstance(v, str),
    FieldType.INTEGER: lambda v: isinstance(v, int) and not isinstance(v, bool),
    FieldType.NUMBER: lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    FieldType.BOOLEAN: lambda v: isinstance(v, bool),
    FieldType.LIST: lambda v: isinstance(v, list),
    FieldType.SECTION: lambda v: isinstance(v, dict),
    FieldType.SEMVER: lambda v: isinstance(v, str) and SEMVER_RE.match(v) is not None,
    FieldType.DATE: _is_date,
    FieldType.ANY: lambda v: True,
}

TYPE_NAMES = {
    FieldType.STRING: "a string",
    FieldType.SYMBOL: "a symbol",
    FieldType.TEXT: "a string or symbol",
    FieldType.INTEGER: "an integer",
    FieldType.NUMBER: "a number",
    FieldType.BOOLEAN: "a boolean",
    FieldType.LIST: "a list",
    FieldType.SECTION: "a section",
    FieldType.SEMVER: "a semantic version (MAJOR.MINOR.PATCH)",
    FieldType.DATE: "an ISO date (YYYY-MM-DD)",
    FieldType.ANY: "any value",
}


def _describe(value: Any) -> str:
    if isinstance(value, dict):
        return "a section"
    if isinstance(value, list):
        return "a list"
    text = repr(str(value)) if isinstance(value, str) else repr(value)
    return text if len(text) <= 40 else text[:37] + "..."


class DocumentValidator(BaseChecker):
    """Parses each configured structured document and checks its shape.

    A document that fails to parse yields a single violation and no further
    checks for that file; other documents are unaffected. Documents that are
    absent are left to the required-files checker. License files are
    checked against the approved licenses of the policy.
    """

    name = "documents"
    category = RuleCategory.SCHEMA
    sections = {
        "documents.parse_rule": ("document-parses",),
        "documents.root_rule": ("document-root",),
        "documents.key_rule": ("document-key",),
        "documents.value_rule": ("document-value",),
        "license.rule": ("license-approved",),
    }

    def check(self, context: ScanContext) -> list[Violation]:
        violations: list[Violation] = []
        for schema in context.policy.documents:
            if not context.snapshot.is_file(schema.path):
                continue
            violations.extend(self._check_document(context, schema))
        violations.extend(self.check_license(context))
        return violations

    def check_license(self, context: ScanContext) -> list[Violation]:
        """Check each top-level license file against the approved licenses.

        A missing license file is left to the required-files checker.
        """
        policy = context.policy.license
        if not policy.approved:
            return []
        rule = self.rule(context, policy.rule)
        if rule is None:
            return []

        depth = policy.pattern.count("/")
        violations: list[Violation] = []
        for entry in context.snapshot.match(policy.pattern):
            if entry.path.count("/") != depth or not context.snapshot.is_file(entry.path):
                continue
            raw = context.snapshot.read_bytes(entry.path)[: policy.header_bytes]
            expression = identify_license(raw.decode("utf-8", errors="replace"))
            if expression is None:
                message = f"{entry.path}: license could not be identified"
            elif not is_approved(expression, policy.approved):
                message = f"{entry.path}: {expression} is not an approved license"
            else:
                continue
            violations.append(self.violation(rule, message, path=entry.path))
        return violations

    def load(self, context: ScanContext, schema: DocumentSchema) -> DocumentRecord | None:
        """Read and parse one document.

        Raises:
            DocumentParseError: If the document is too large, not UTF-8, or malformed
        """
        entry = context.snapshot.get(schema.path)
        limit = context.policy.max_document_bytes
        if entry is not None and entry.size > limit:
            raise DocumentParseError(f"Document is {entry.size} bytes, limit is {limit}")

        raw = context.snapshot.read_bytes(schema.path)
        if len(raw) > limit:
            raise DocumentParseError(f"Document is {len(raw)} bytes, limit is {limit}")
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentParseError(f"Document is not valid UTF-8: {e.reason} at byte {e.start}") from e

        return parse_document(text, path=schema.path, root=schema.root)

    def _check_document(self, context: ScanContext, schema: DocumentSchema) -> list[Violation]:
        try:
            record = self.load(context, schema)
        except DocumentParseError as e:
            logger.info(f"Failed to parse {schema.path}: {e.message}")
            rule = self.rule(context, schema.parse_rule)
            if rule is None:
                return []
            return [self.violation(rule, f"Failed to parse {schema.path}: {e.message}", path=schema.path)]

        if record is None:
            rule = self.rule(context, schema.root_rule)
            if rule is None:
                return []
            return [
                self.violation(
                    rule,
                    f"{schema.path} has no ({schema.root} ...) root form",
                    path=schema.path,
                )
            ]

        violations: list[Violation] = []
        failed: list[str] = []
        key_rule = self.rule(context, schema.key_rule)
        value_rule = self.rule(context, schema.value_rule)

        for field in schema.keys:
            # Nothing useful to say about keys beneath one that already failed
            if any(field.key.startswith(prefix + ".") for prefix in failed):
                continue

            missing = object()
            value = record.get(field.key, missing)
            if value is missing:
                if field.required:
                    failed.append(field.key)
                    if key_rule is not None:
                        violations.append(
                            self.violation(
                                key_rule,
                                f"{schema.path} is missing required key '{field.key}'",
                                path=schema.path,
                            )
                        )
                continue

            if not TYPE_CHECKS[field.type](value):
                failed.append(field.key)
                if value_rule is not None:
                    violations.append(
                        self.violation(
                            value_rule,
                            f"{schema.path}: '{field.key}' must be {TYPE_NAMES[field.type]}, "
                            f"got {_describe(value)}",
                            path=schema.path,
                        )
                    )

        return violations
