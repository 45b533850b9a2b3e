"""
Сканер doc-сегментов.

Делит оставшийся вход на три части:

    s,  /// hello  /// {}  "world"
    ^^  ^^^^^^^^^^^^^^^^^  ^^^^^^^
    before   segments       after

Doc-комментарии приходят пониженными до `# [doc = "..."]`; каждый
такой псевдоатрибут даёт одну декодированную строку.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .diagnostics import DiagnosticCollector
from .errors import InvariantViolation, LiteralDecodeError
from .literal import decode_string_literal
from .tokens import (
    CALL_SITE,
    Delimiter,
    Group,
    Literal,
    Punct,
    Span,
    Spacing,
    TokenCursor,
    TokenStream,
    TokenTree,
    is_group,
    is_ident,
    is_punct,
)

logger = logging.getLogger(__name__)


class ScanState(enum.IntEnum):
    """
    Продвижение по серии doc-комментариев.

    Значение только растёт: NOT_REACHED -> INSIDE -> FINISHED.
    """
    NOT_REACHED = 0   # токены идут в `before`
    INSIDE = 1        # разбираются псевдоатрибуты
    FINISHED = 2      # токены идут в `after`


@dataclass
class SegmentScan:
    before: TokenStream = field(default_factory=list)
    segments: List[str] = field(default_factory=list)
    after: TokenStream = field(default_factory=list)


class DocSegmentScanner:
    """
    Вычерпывает курсор, собирая doc-строки и окружающие аргументы.

    О некорректных псевдоатрибутах сообщается, и они пропускаются;
    сканирование всегда доходит до конца входа.
    """

    def __init__(self, cursor: TokenCursor, diagnostics: DiagnosticCollector,
                 call_site: Span = CALL_SITE):
        self.cursor = cursor
        self.diagnostics = diagnostics
        self.call_site = call_site
        self.state = ScanState.NOT_REACHED

    def scan(self) -> SegmentScan:
        result = SegmentScan()

        while not self.cursor.at_end():
            token = self.cursor.next()

            if self.state is ScanState.FINISHED:
                result.after.append(token)
                continue

            if is_punct(token, "#"):
                self._advance(ScanState.INSIDE)
                segment = self._parse_attribute(token)
                if segment is not None:
                    result.segments.append(segment)
                # Следующий `#` - серия продолжается
                if not is_punct(self.cursor.peek(), "#"):
                    self._advance(ScanState.FINISHED)
                continue

            if self.state is ScanState.NOT_REACHED:
                result.before.append(token)
                if is_punct(self.cursor.peek(), "#") and not is_punct(token, ","):
                    self.diagnostics.error(token.span, "expected `,` after this")
                    # список аргументов остаётся корректным
                    result.before.append(Punct(",", Spacing.ALONE, token.span))
                continue

            raise InvariantViolation(
                f"token {token!r} reached the doc-segment scanner in state {self.state.name}"
            )

        if not result.segments:
            self.diagnostics.error(self.call_site, "expected at least one documentation comment")

        logger.debug(
            f"Scanned {len(result.segments)} doc segments, "
            f"{len(result.before)} tokens before, {len(result.after)} after"
        )
        return result

    def _advance(self, state: ScanState) -> None:
        if state < self.state:
            raise InvariantViolation(f"scan state cannot move from {self.state.name} to {state.name}")
        self.state = state

    def _parse_attribute(self, hash_token: TokenTree) -> Optional[str]:
        """
        Разбирает `# [doc = "..."]` после уже прочитанного `#`.

        Returns:
            Декодированная строка или None, если атрибут некорректен
            (в этом случае добавлена диагностика)
        """
        # #![doc = "..."]
        #  ^
        bang = self.cursor.peek()
        if is_punct(bang, "!"):
            self.cursor.next()
            self.diagnostics.error(
                bang.span,
                "inner doc comments are not supported; use the line form `///`",
            )

        # #[doc = "..."]
        #  ^^^^^^^^^^^^^
        group = self.cursor.peek()
        if not is_group(group, Delimiter.BRACKET):
            self.diagnostics.error(hash_token.span, "expected `#` to be followed by `[...]`")
            return None
        self.cursor.next()
        return self._parse_doc_body(group)

    def _parse_doc_body(self, group: Group) -> Optional[str]:
        inner = TokenCursor(group.stream, group.span)

        # #[doc = "..."]
        #   ^^^
        keyword = inner.next()
        if not is_ident(keyword, "doc"):
            self.diagnostics.error(
                keyword.span if keyword is not None else group.span,
                "expected `doc` after `[`",
            )
            return None

        # #[doc = "..."]
        #       ^
        eq = inner.next()
        if not is_punct(eq, "="):
            self.diagnostics.error(keyword.span, "expected `=` after `doc`")
            return None

        # #[doc = "..."]
        #         ^^^^^
        lit = inner.next()
        if not isinstance(lit, Literal):
            self.diagnostics.error(eq.span, "expected string literal after `=`")
            return None

        trailing = inner.next()
        if trailing is not None:
            self.diagnostics.error(trailing.span, "expected `]` after the string literal")
            return None

        try:
            text = decode_string_literal(lit)
        except LiteralDecodeError as e:
            self.diagnostics.error(lit.span, str(e))
            return None

        # `/// foo` понижается до `#[doc = " foo"]`; убираем ровно один ведущий пробел
        if text.startswith(" "):
            text = text[1:]
        return text


def join_segments(segments: List[str]) -> str:
    """Склеивает doc-строки через один перевод строки; пустые строки сохраняются."""
    return "\n".join(segments)


__all__ = ["ScanState", "SegmentScan", "DocSegmentScanner", "join_segments"]
