"""
Диагностики одного раскрытия.

Накопитель создаётся, заполняется и читается в пределах одного вызова.
После ошибки сканеры продолжают работу, чтобы за один проход сообщить
о нескольких независимых ошибках; непустой накопитель заменяет весь
результат вызовами `compile_error! { "..." }`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List

from .tokens import Delimiter, Group, Ident, Literal, Punct, Span, Spacing, TokenStream

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    span: Span
    message: str

    def __str__(self) -> str:
        return f"{self.span}: {self.message}"

    def to_tokens(self) -> TokenStream:
        """`compile_error! { "message" }` с позицией диагностики."""
        return [
            Ident("compile_error", self.span),
            Punct("!", Spacing.ALONE, self.span),
            Group(Delimiter.BRACE, (Literal.string(self.message, self.span),), self.span),
        ]


class DiagnosticCollector:
    """Накопитель диагностик одного раскрытия (только добавление)."""

    def __init__(self):
        self._items: List[Diagnostic] = []

    def error(self, span: Span, message: str) -> None:
        logger.debug(f"Diagnostic at {span}: {message}")
        self._items.append(Diagnostic(span, message))

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def to_tokens(self) -> TokenStream:
        """Все диагностики в порядке добавления как один фатальный отчёт."""
        tokens: TokenStream = []
        for diagnostic in self._items:
            tokens.extend(diagnostic.to_tokens())
        return tokens


__all__ = ["Diagnostic", "DiagnosticCollector"]
