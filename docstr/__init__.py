"""
docstr: серия doc-комментариев `///` превращается в строковый литерал
или в аргумент вызова макроса вроде `format!` или `writeln!`.
"""

from __future__ import annotations

from .diagnostics import Diagnostic, DiagnosticCollector
from .errors import DocstrUserError, ExpansionError, InvariantViolation, LexerError
from .expander import (
    Expansion,
    expand,
    expand_detailed,
    expand_or_raise,
    expand_source,
    rewrite_invocations,
    rewrite_source,
)
from .lexer import tokenize
from .printer import to_source

__all__ = [
    "Diagnostic",
    "DiagnosticCollector",
    "DocstrUserError",
    "ExpansionError",
    "InvariantViolation",
    "LexerError",
    "Expansion",
    "expand",
    "expand_detailed",
    "expand_or_raise",
    "expand_source",
    "rewrite_invocations",
    "rewrite_source",
    "tokenize",
    "to_source",
]
