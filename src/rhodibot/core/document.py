"""Parser for the S-expression metadata documents (STATE.scm, META.scm, ECOSYSTEM.scm).

Parsing happens in two steps. :func:`read_forms` turns source text into
nested Python lists of :class:`Symbol`, ``str``, ``int``, ``float`` and
``bool`` values. :func:`parse_document` then locates the root form and
converts it into a :class:`DocumentRecord` whose ``data`` is a plain
dict/list tree that shape rules can inspect.

Supported syntax: ``;`` line comments, ``#| |#`` block comments, ``#;``
datum comments, ``()`` and ``[]`` lists, dotted pairs, string literals with
backslash escapes, ``'`` `````` ``,`` ``,@`` prefixes, ``#t``/``#f``
booleans and numbers. Nesting is read iteratively, so deeply nested input
cannot exhaust the interpreter stack.
"""

from __future__ import annotations

import re
from typing import Any

from rhodibot.models.document import DocumentRecord, Symbol
from rhodibot.utils.errors import DocumentParseError

QUOTE = Symbol("quote")
QUASIQUOTE = Symbol("quasiquote")
UNQUOTE = Symbol("unquote")
UNQUOTE_SPLICING = Symbol("unquote-splicing")
DEFINE = Symbol("define")

_PREFIXES = {
    "'": QUOTE,
    "`": QUASIQUOTE,
    ",": UNQUOTE,
    ",@": UNQUOTE_SPLICING,
}
_DATUM_COMMENT = "#;"
_CLOSERS = {"(": ")", "[": "]"}

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<comment>;[^\n]*)
    |(?P<block>\#\|.*?\|\#)
    |(?P<datum_comment>\#;)
    |(?P<open>[(\[])
    |(?P<close>[)\]])
    |(?P<prefix>,@|['`,])
    |(?P<string>"(?:[^"\\]|\\.)*")
    |(?P<atom>[^\s()\[\]";'`,]+)
    """,
    re.VERBOSE | re.DOTALL,
)
_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+(\.\d*)?[eE][+-]?\d+)")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "0": "\0"}


class _Position:
    """Translates string offsets to 1-based line/column pairs."""

    def __init__(self, text: str) -> None:
        self._line_starts = [0] + [m.end() for m in re.finditer(r"\n", text)]

    def at(self, offset: int) -> tuple[int, int]:
        lo, hi = 0, len(self._line_starts) - 1
        while lo < hi:
            mid = (lo + hi + 1) // 2
            if self._line_starts[mid] <= offset:
                lo = mid
            else:
                hi = mid - 1
        return lo + 1, offset - self._line_starts[lo] + 1


def _tokenize(text: str, position: _Position) -> list[tuple[str, str, int]]:
    tokens: list[tuple[str, str, int]] = []
    offset = 0
    length = len(text)
    while offset < length:
        if text.startswith("#|", offset) and text.find("|#", offset + 2) < 0:
            raise DocumentParseError("Unterminated block comment", *position.at(offset))
        if text[offset] == '"':
            match = _TOKEN_RE.match(text, offset)
            if match is None or match.lastgroup != "string":
                raise DocumentParseError("Unterminated string literal", *position.at(offset))
        else:
            match = _TOKEN_RE.match(text, offset)
            if match is None:
                raise DocumentParseError(
                    f"Unexpected character {text[offset]!r}", *position.at(offset)
                )
        kind = match.lastgroup or ""
        if kind not in ("ws", "comment", "block"):
            tokens.append((kind, match.group(), offset))
        offset = match.end()
    return tokens


def _unescape(literal: str) -> str:
    body = literal[1:-1]
    if "\\" not in body:
        return body
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append(_ESCAPES.get(nxt, nxt))
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _atom(token: str) -> Any:
    if token in ("#t", "#true"):
        return True
    if token in ("#f", "#false"):
        return False
    if _INT_RE.fullmatch(token):
        return int(token)
    if _FLOAT_RE.fullmatch(token):
        return float(token)
    return Symbol(token)


class _Frame:
    __slots__ = ("opener", "offset", "items", "prefixes")

    def __init__(self, opener: str, offset: int) -> None:
        self.opener = opener
        self.offset = offset
        self.items: list[Any] = []
        # Pending prefixes as (symbol or None for a datum comment, offset)
        self.prefixes: list[tuple[Symbol | None, int]] = []


def _push_datum(frame: _Frame, datum: Any) -> None:
    while frame.prefixes:
        symbol, _ = frame.prefixes.pop()
        if symbol is None:
            return
        datum = [symbol, datum]
    frame.items.append(datum)


def _close_list(frame: _Frame, position: _Position) -> list[Any]:
    items = frame.items
    dots = [i for i, item in enumerate(items) if isinstance(item, Symbol) and item == "."]
    if not dots:
        return items
    if len(dots) > 1 or dots[0] != len(items) - 2 or dots[0] == 0:
        raise DocumentParseError("Ill-formed dotted list", *position.at(frame.offset))
    return items[:-2] + items[-1:]


def read_forms(text: str) -> list[Any]:
    """Read every top-level form of a document.

    Args:
        text: Document source

    Returns:
        List of top-level data

    Raises:
        DocumentParseError: On malformed input, with line and column
    """
    position = _Position(text)
    top = _Frame("", 0)
    stack = [top]

    for kind, value, offset in _tokenize(text, position):
        frame = stack[-1]
        if kind == "open":
            stack.append(_Frame(value, offset))
        elif kind == "close":
            if frame is top:
                raise DocumentParseError(f"Unexpected '{value}'", *position.at(offset))
            if _CLOSERS[frame.opener] != value:
                raise DocumentParseError(
                    f"Mismatched '{value}' for '{frame.opener}'", *position.at(offset)
                )
            if frame.prefixes:
                raise DocumentParseError(
                    "Prefix without a datum", *position.at(frame.prefixes[-1][1])
                )
            stack.pop()
            _push_datum(stack[-1], _close_list(frame, position))
        elif kind == "prefix":
            frame.prefixes.append((_PREFIXES[value], offset))
        elif kind == "datum_comment":
            frame.prefixes.append((None, offset))
        elif kind == "string":
            _push_datum(frame, _unescape(value))
        else:
            _push_datum(frame, _atom(value))

    if len(stack) > 1:
        unclosed = stack[-1]
        raise DocumentParseError(f"Unclosed '{unclosed.opener}'", *position.at(unclosed.offset))
    if top.prefixes:
        raise DocumentParseError("Prefix without a datum", *position.at(top.prefixes[-1][1]))
    return top.items


def _unquote(node: Any) -> Any:
    while (
        isinstance(node, list)
        and len(node) == 2
        and isinstance(node[0], Symbol)
        and node[0] in (QUOTE, QUASIQUOTE)
    ):
        node = node[1]
    return node


def _is_keyed(node: Any) -> bool:
    node = _unquote(node)
    return isinstance(node, list) and bool(node) and isinstance(node[0], Symbol) and node[0] != QUOTE


def _as_section(nodes: list[Any], first_wins: bool = False) -> dict[str, Any] | None:
    """Convert the keyed lists among ``nodes`` into a dict.

    Items that are not keyed lists, such as a free-standing description
    string, are skipped. Returns None when nothing is keyed, or when a key
    repeats and ``first_wins`` is off.
    """
    section: dict[str, Any] = {}
    for node in nodes:
        if not _is_keyed(node):
            continue
        entry = _unquote(node)
        key = str(entry[0])
        if key in section:
            if first_wins:
                continue
            return None
        section[key] = _entry_value(entry)
    return section or None


def _entry_value(entry: list[Any]) -> Any:
    rest = entry[1:]
    section = _as_section(rest)
    if section is not None:
        return section
    if len(rest) == 1:
        return _convert(rest[0])
    return [_convert(item) for item in rest]


def _convert(node: Any) -> Any:
    node = _unquote(node)
    if isinstance(node, list):
        section = _as_section(node)
        if section is not None:
            return section
        return [_convert(item) for item in node]
    return node


def _find_root(forms: list[Any], root: str) -> dict[str, Any] | None:
    for form in forms:
        form = _unquote(form)
        if not isinstance(form, list) or not form or not isinstance(form[0], Symbol):
            continue
        head = form[0]
        if head == root:
            return _as_section(form[1:], first_wins=True) or {}
        if head == DEFINE and len(form) == 3 and form[1] == root:
            body = _unquote(form[2])
            if isinstance(body, list):
                return _as_section(body, first_wins=True) or {}
    return None


def parse_document(text: str, path: str, root: str) -> DocumentRecord | None:
    """Parse a structured document.

    The root is either a form headed by ``root`` or ``(define root '(...))``.

    Args:
        text: Document source
        path: Repository path, recorded on the result
        root: Expected head symbol of the root form

    Returns:
        DocumentRecord, or None if no root form was found

    Raises:
        DocumentParseError: If the text is not well-formed
    """
    forms = read_forms(text)
    data = _find_root(forms, root)
    if data is None:
        return None
    return DocumentRecord(path=path, root=root, data=data)
