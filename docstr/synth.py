"""
Синтез вызова.

Собирает разобранные части в итоговые токены:

    writeln!  s,  /// hello  "world"

превращается в

    writeln!(s, "hello", "world")
"""

from __future__ import annotations

import logging

from .diagnostics import DiagnosticCollector
from .segments import SegmentScan, join_segments
from .target import CallTarget, PathTarget
from .tokens import (
    CALL_SITE,
    Delimiter,
    Group,
    Literal,
    Punct,
    Span,
    Spacing,
    TokenStream,
    is_punct,
)

logger = logging.getLogger(__name__)


class CallSynthesizer:

    def __init__(self, diagnostics: DiagnosticCollector, call_site: Span = CALL_SITE):
        self.diagnostics = diagnostics
        self.call_site = call_site

    def synthesize(self, target: CallTarget, scan: SegmentScan) -> TokenStream:
        """
        Строит выходные токены.

        Любая диагностика полностью заменяет результат;
        частичного результата не бывает.
        """
        if self.diagnostics:
            return self.diagnostics.to_tokens()

        literal = Literal.string(join_segments(scan.segments), self.call_site)

        if not isinstance(target, PathTarget):
            if scan.before or scan.after:
                self.diagnostics.error(
                    self.call_site,
                    "doc comments must be the entire input when no call target is given",
                )
                return self.diagnostics.to_tokens()
            logger.debug("Expanded to a bare string literal")
            return [literal]

        arguments: TokenStream = list(scan.before)
        arguments.append(literal)
        # Запятая в начале `after` уже отделяет литерал
        if not is_punct(scan.after[0] if scan.after else None, ","):
            arguments.append(Punct(",", Spacing.ALONE, self.call_site))
        arguments.extend(scan.after)

        output: TokenStream = list(target.tokens)
        output.append(Group(Delimiter.PARENTHESIS, tuple(arguments), self.call_site))
        logger.debug(f"Expanded to a call of {target.name} with {len(arguments)} argument tokens")
        return output


__all__ = ["CallSynthesizer"]
