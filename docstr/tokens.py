"""
Деревья токенов, которые принимает и выдаёт раскрытие.

Замкнутый набор вариантов: Ident, Punct, Literal и Group. Каждый токен
несёт свой Span, чтобы диагностика указывала на место в исходнике.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union


@dataclass(frozen=True)
class Span:
    """
    Позиция токена в исходном тексте.
    """
    line: int           # Номер строки (начиная с 1)
    column: int         # Номер колонки (начиная с 1)
    position: int = 0   # Позиция символа в исходном тексте

    @property
    def is_call_site(self) -> bool:
        return self.line == 0

    def __str__(self) -> str:
        if self.is_call_site:
            return "<call site>"
        return f"{self.line}:{self.column}"


# Место самого вызова макроса; используется, когда точнее указать нечего
CALL_SITE = Span(0, 0, 0)


class Spacing(enum.Enum):
    """Следует ли за знаком пунктуации сразу другой знак пунктуации."""
    ALONE = "alone"
    JOINT = "joint"


class Delimiter(enum.Enum):
    PARENTHESIS = ("(", ")")
    BRACKET = ("[", "]")
    BRACE = ("{", "}")

    @property
    def open(self) -> str:
        return self.value[0]

    @property
    def close(self) -> str:
        return self.value[1]

    @classmethod
    def for_open(cls, char: str) -> Optional["Delimiter"]:
        for delim in cls:
            if delim.open == char:
                return delim
        return None


class LiteralKind(enum.Enum):
    STR = "str"
    STR_RAW = "str_raw"
    BYTE_STR = "byte_str"
    BYTE_STR_RAW = "byte_str_raw"
    C_STR = "c_str"
    C_STR_RAW = "c_str_raw"
    CHAR = "char"
    BYTE = "byte"
    INTEGER = "integer"
    FLOAT = "float"


@dataclass(frozen=True)
class Ident:
    name: str
    span: Span = CALL_SITE

    def __repr__(self) -> str:
        return f"Ident({self.name!r}, {self.span})"


@dataclass(frozen=True)
class Punct:
    char: str
    spacing: Spacing = Spacing.ALONE
    span: Span = CALL_SITE

    def __repr__(self) -> str:
        return f"Punct({self.char!r}, {self.spacing.value}, {self.span})"


@dataclass(frozen=True)
class Literal:
    """
    Литерал в исходном написании.

    `text` - литерал как написан (кавычки, escape-последовательности,
    решётки сырой строки) без суффикса; декодирование в docstr.literal.
    """
    text: str
    kind: LiteralKind
    suffix: str = ""
    span: Span = CALL_SITE

    @classmethod
    def string(cls, value: str, span: Span = CALL_SITE) -> "Literal":
        """Обычный строковый литерал со значением `value`."""
        from .literal import encode_string
        return cls(encode_string(value), LiteralKind.STR, "", span)

    def __repr__(self) -> str:
        return f"Literal({self.text + self.suffix}, {self.kind.value}, {self.span})"


@dataclass(frozen=True)
class Group:
    delimiter: Delimiter
    stream: tuple = field(default_factory=tuple)
    span: Span = CALL_SITE

    def __post_init__(self):
        # кортеж: группа хешируемая и неизменяемая
        if not isinstance(self.stream, tuple):
            object.__setattr__(self, "stream", tuple(self.stream))

    def __repr__(self) -> str:
        return f"Group({self.delimiter.name}, {list(self.stream)!r}, {self.span})"


TokenTree = Union[Ident, Punct, Literal, Group]
TokenStream = List[TokenTree]


def is_punct(token: Optional[TokenTree], char: str) -> bool:
    return isinstance(token, Punct) and token.char == char


def is_ident(token: Optional[TokenTree], name: Optional[str] = None) -> bool:
    if not isinstance(token, Ident):
        return False
    return name is None or token.name == name


def is_group(token: Optional[TokenTree], delimiter: Optional[Delimiter] = None) -> bool:
    if not isinstance(token, Group):
        return False
    return delimiter is None or token.delimiter is delimiter


class TokenCursor:
    """
    Курсор по последовательности токенов, только вперёд.

    Сканер владеет курсором, пока тот не исчерпан;
    шага назад нет.
    """

    def __init__(self, tokens: Iterable[TokenTree], start: Span = CALL_SITE):
        self._tokens: Sequence[TokenTree] = list(tokens)
        self._position = 0
        self.last_span = start

    def peek(self) -> Optional[TokenTree]:
        if self._position >= len(self._tokens):
            return None
        return self._tokens[self._position]

    def next(self) -> Optional[TokenTree]:
        token = self.peek()
        if token is not None:
            self._position += 1
            self.last_span = token.span
        return token

    def at_end(self) -> bool:
        return self._position >= len(self._tokens)

    def __iter__(self):
        while not self.at_end():
            yield self.next()


__all__ = [
    "Span",
    "CALL_SITE",
    "Spacing",
    "Delimiter",
    "LiteralKind",
    "Ident",
    "Punct",
    "Literal",
    "Group",
    "TokenTree",
    "TokenStream",
    "TokenCursor",
    "is_punct",
    "is_ident",
    "is_group",
]
