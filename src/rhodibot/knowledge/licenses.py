"""License identification from LICENSE file headers.

A license is identified from an ``SPDX-License-Identifier:`` line, from a
bare SPDX expression on the first non-blank line, or from the title text
of a well-known license. Keys are lowercase SPDX identifiers without the
``-only``/``-or-later`` suffix, so ``AGPL-3.0-or-later`` and ``AGPL-3.0``
both become ``agpl-3.0``.
"""

import re

SPDX_LINE_RE = re.compile(r"SPDX-License-Identifier:\s*(?P<expression>[^\n]*)")
SPDX_EXPRESSION_RE = re.compile(
    r"^\(?[A-Za-z0-9.+-]+\)?(?:\s+(?:OR|AND|WITH)\s+\(?[A-Za-z0-9.+-]+\)?)*$"
)

# Title phrases (lowercase, whitespace collapsed) -> license key.
# Checked in order; the GNU variants must precede the plain GPL.
LICENSE_TITLES: list[tuple[tuple[str, ...], str]] = [
    (("gnu affero general public license", "version 3"), "agpl-3.0"),
    (("gnu lesser general public license", "version 3"), "lgpl-3.0"),
    (("gnu lesser general public license", "version 2.1"), "lgpl-2.1"),
    (("gnu general public license", "version 3"), "gpl-3.0"),
    (("gnu general public license", "version 2"), "gpl-2.0"),
    (("apache license", "version 2.0"), "apache-2.0"),
    (("mozilla public license", "2.0"), "mpl-2.0"),
    (("mit license",), "mit"),
    (("permission is hereby granted, free of charge",), "mit"),
    (("redistribution and use in source and binary forms", "neither the name"), "bsd-3-clause"),
    (("redistribution and use in source and binary forms",), "bsd-2-clause"),
    (("permission to use, copy, modify, and/or distribute this software",), "isc"),
    (("this is free and unencumbered software released into the public domain",), "unlicense"),
]

KNOWN_LICENSES: frozenset[str] = frozenset(key for _, key in LICENSE_TITLES) | {
    "cc0-1.0",
    "epl-2.0",
    "bsl-1.0",
    "0bsd",
}

_SUFFIXES = ("-or-later", "-only", "+")


def normalize_license(identifier: str) -> str:
    """Reduce an SPDX identifier to its license key."""
    key = identifier.strip().strip("()").lower()
    for suffix in _SUFFIXES:
        if key.endswith(suffix):
            key = key[: -len(suffix)]
    return key


_TOKEN_RE = re.compile(r"\(|\)|[^\s()]+")


def license_alternatives(expression: str) -> list[frozenset[str]]:
    """Expand an SPDX expression into its OR alternatives.

    Each alternative is the set of license keys that apply together. AND
    binds tighter than OR, parentheses group, and ``WITH`` exceptions are
    dropped. An expression that does not parse yields no alternatives.
    """
    tokens = _TOKEN_RE.findall(expression)
    position = 0

    def peek() -> str | None:
        return tokens[position].upper() if position < len(tokens) else None

    def any_of() -> list[frozenset[str]]:
        nonlocal position
        alternatives = all_of()
        while peek() == "OR":
            position += 1
            alternatives = alternatives + all_of()
        return alternatives

    def all_of() -> list[frozenset[str]]:
        nonlocal position
        alternatives = term()
        while peek() == "AND":
            position += 1
            right = term()
            alternatives = [a | b for a in alternatives for b in right]
        return alternatives

    def term() -> list[frozenset[str]]:
        nonlocal position
        token = peek()
        if token is None or token in ("OR", "AND", "WITH", ")"):
            raise ValueError(expression)
        position += 1
        if token == "(":
            alternatives = any_of()
            if peek() != ")":
                raise ValueError(expression)
            position += 1
            return alternatives
        key = normalize_license(tokens[position - 1])
        if peek() == "WITH":
            position += 2
        return [frozenset({key})]

    try:
        alternatives = any_of()
    except ValueError:
        return []
    if position != len(tokens):
        return []
    return alternatives


def identify_license(text: str) -> str | None:
    """Get the SPDX expression or license key a LICENSE header declares.

    Args:
        text: Beginning of the license file

    Returns:
        An SPDX expression, a license key, or None if nothing is recognized
    """
    match = SPDX_LINE_RE.search(text)
    if match:
        expression = match.group("expression").strip().rstrip("*/-> ").strip()
        if expression:
            return expression

    first = next((line.strip() for line in text.splitlines() if line.strip()), "")
    if first and SPDX_EXPRESSION_RE.match(first):
        alternatives = license_alternatives(first)
        if alternatives and all(alt <= KNOWN_LICENSES for alt in alternatives):
            return first

    collapsed = " ".join(text.split()).lower()
    for phrases, key in LICENSE_TITLES:
        if all(phrase in collapsed for phrase in phrases):
            return key
    return None


def is_approved(expression: str, approved: frozenset[str]) -> bool:
    """Check if at least one alternative of an expression is fully approved."""
    return any(alternative <= approved for alternative in license_alternatives(expression))
