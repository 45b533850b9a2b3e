"""
Базовые исключения docstr.

Все ожидаемые ошибки, которые показываются пользователю как чистые
сообщения (без стектрейсов), наследуются от DocstrUserError.

Внутренние дефекты (нарушенные инварианты сканеров) - InvariantViolation,
они пробрасываются с полным стектрейсом.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .diagnostics import Diagnostic


class DocstrUserError(Exception):
    """
    Базовый класс пользовательских ошибок docstr.

    Такие ошибки пользователь может исправить сам:
    неразбираемый исходный текст, неверная конфигурация, нечитаемый ввод.
    """
    pass


class LexerError(DocstrUserError):
    """Ошибка разбора исходного текста."""

    def __init__(self, message: str, line: int, column: int, position: int):
        super().__init__(f"{message} at {line}:{column}")
        self.message = message
        self.line = line
        self.column = column
        self.position = position


class LiteralDecodeError(DocstrUserError):
    """Литерал не удалось декодировать в строку."""
    pass


class ConfigError(DocstrUserError):
    """Некорректный docstr.yaml."""
    pass


class ExpansionError(DocstrUserError):
    """Раскрытие дало диагностики вместо результата."""

    def __init__(self, diagnostics: List["Diagnostic"]):
        self.diagnostics = list(diagnostics)
        lines = [str(d) for d in self.diagnostics]
        super().__init__("\n".join(lines) if lines else "expansion failed")


class InvariantViolation(RuntimeError):
    """Сканер попал в состояние, невозможное по построению."""
    pass


__all__ = [
    "DocstrUserError",
    "LexerError",
    "LiteralDecodeError",
    "ConfigError",
    "ExpansionError",
    "InvariantViolation",
]
