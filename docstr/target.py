"""
Сканер цели вызова.

Читает необязательный путь макроса перед doc-комментариями:

    writeln!   s,   /// hello
    ^^^^^^^^ call target

Грамматика: `Ident ((":" | "::") Ident)* "!"`. Если вход начинается с `#`,
цели нет и результат - просто строковый литерал.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Union

from .diagnostics import DiagnosticCollector
from .tokens import CALL_SITE, Ident, Punct, Span, TokenCursor, TokenTree, is_punct

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoTarget:
    """Вход начинается с doc-комментариев: результат - строковый литерал."""
    pass


@dataclass(frozen=True)
class PathTarget:
    """Проверенный путь макроса, заканчивается на `!`."""
    tokens: tuple

    @property
    def name(self) -> str:
        return "".join(t.name if isinstance(t, Ident) else t.char for t in self.tokens)


@dataclass(frozen=True)
class InvalidTarget:
    """
    Цель вызова написана, но отвергнута.

    Диагностики уже добавлены. Дальше она считается "без цели",
    но проверки для голого литерала к ней не применяются.
    """
    pass


CallTarget = Union[NoTarget, PathTarget, InvalidTarget]


class CallTargetScanner:
    """
    Забирает путь макроса из начала курсора.

    Останавливается на `!`. При ошибке грамматики путь отбрасывается,
    добавляется диагностика, а остаток входа достаётся сканеру
    doc-сегментов, чтобы последующие ошибки тоже попали в отчёт.
    """

    def __init__(self, cursor: TokenCursor, diagnostics: DiagnosticCollector,
                 call_site: Span = CALL_SITE):
        self.cursor = cursor
        self.diagnostics = diagnostics
        self.call_site = call_site

    def scan(self) -> CallTarget:
        first = self.cursor.peek()
        if first is None or is_punct(first, "#"):
            logger.debug("No call target, expanding to a string literal")
            return NoTarget()

        path: List[TokenTree] = []
        while True:
            token = self.cursor.peek()

            if token is None:
                self._error_after(path, "expected `!` after the macro path, found end of input")
                return InvalidTarget()

            if isinstance(token, Ident):
                if path and isinstance(path[-1], Ident):
                    prev = path[-1]
                    self.diagnostics.error(
                        prev.span,
                        f"expected `::` or `!` after `{prev.name}`: "
                        f"write `{prev.name}::{token.name}` for a path "
                        f"or `{prev.name}!` to call a macro",
                    )
                    return InvalidTarget()
                path.append(self.cursor.next())
                continue

            if is_punct(token, ":"):
                if not self._colon_allowed(path):
                    self.diagnostics.error(token.span, "unexpected `:` in macro path")
                    self.cursor.next()
                    return InvalidTarget()
                path.append(self.cursor.next())
                continue

            if is_punct(token, "!"):
                self.cursor.next()
                if not path or not isinstance(path[-1], Ident):
                    self.diagnostics.error(token.span, "expected a macro name before `!`")
                    return InvalidTarget()
                path.append(token)
                target = PathTarget(tuple(path))
                logger.debug(f"Call target: {target.name}")
                return target

            if is_punct(token, ","):
                self.cursor.next()
                self.diagnostics.error(
                    token.span,
                    "expected `!` after the macro path, found `,`: "
                    "the call target must be a macro, e.g. `writeln!`",
                )
                return InvalidTarget()

            # Литерал, группа, `#` или другая пунктуация
            self._error_after(path, "expected `!` after the macro path")
            return InvalidTarget()

    @staticmethod
    def _colon_allowed(path: List[TokenTree]) -> bool:
        if not path or isinstance(path[-1], Ident):
            return True
        # не больше двух двоеточий подряд
        return (
            isinstance(path[-1], Punct)
            and path[-1].char == ":"
            and (len(path) < 2 or not is_punct(path[-2], ":"))
        )

    def _error_after(self, path: List[TokenTree], message: str) -> None:
        if not path:
            self.diagnostics.error(
                self.call_site,
                "expected a macro path such as `format!` or a documentation comment",
            )
            return
        self.diagnostics.error(path[-1].span, message)


__all__ = [
    "NoTarget",
    "PathTarget",
    "InvalidTarget",
    "CallTarget",
    "CallTargetScanner",
]
