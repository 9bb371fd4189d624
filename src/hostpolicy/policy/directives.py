"""Parsing of inclusion directives inside policy documents.

Grammar (one directive per line)::

    line       := ws* keyword arg ws* [";"] ws*
    keyword    := "FetchPolicy" | "FetchModule"
    arg        := ws+ expr | "(" ... ")"      (parentheses may follow the keyword directly)
    expr       := bare | '"' text '"' | "'" text "'" | "(" expr ")"

A bare expression is a single token without whitespace. Quoted expressions
may contain whitespace. Wrappers nest, so ``("foo")`` is accepted. Anything
that does not match is not a directive and passes through as an ordinary
policy line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class DirectiveKind(str, Enum):
    POLICY = "FetchPolicy"
    MODULE = "FetchModule"

    @property
    def prefix(self) -> str:
        """Sub-directory under the source prefix that this directive fetches from."""

        return "policies" if self is DirectiveKind.POLICY else "modules"


@dataclass(frozen=True, slots=True)
class Directive:
    kind: DirectiveKind
    expr: str


_DIRECTIVE_RE = re.compile(r"^(FetchPolicy|FetchModule)(?:\s+|(?=\())(.+)$")
_QUOTES = ("'", '"')
_WRAPPER_CHARS = set("()'\"")


def is_comment(line: str) -> bool:
    """Return True for comment lines (``#`` after optional whitespace)."""

    return line.lstrip().startswith("#")


def unwrap_expression(raw: str) -> str | None:
    """Strip wrapping whitespace, quotes and parentheses from an expression.

    Returns:
        The bare expression, or None if the wrappers are unbalanced or the
        result is empty.
    """

    expr = raw.strip()
    quoted = False
    while expr:
        if expr[0] == "(" and expr[-1] == ")" and len(expr) >= 2:
            expr = expr[1:-1].strip()
            continue
        if expr[0] in _QUOTES and expr[-1] == expr[0] and len(expr) >= 2:
            expr = expr[1:-1]
            quoted = True
            continue
        break

    if not expr.strip():
        return None
    if any(ch in _WRAPPER_CHARS for ch in expr):
        return None
    if not quoted and any(ch.isspace() for ch in expr):
        return None
    return expr


def parse_directive(line: str) -> Directive | None:
    """Parse a single line, returning a Directive or None."""

    text = line.strip()
    if text.endswith(";"):
        text = text[:-1].rstrip()

    match = _DIRECTIVE_RE.match(text)
    if match is None:
        return None

    expr = unwrap_expression(match.group(2))
    if expr is None:
        return None

    return Directive(kind=DirectiveKind(match.group(1)), expr=expr)
