"""
Декодирование и кодирование строковых литералов.

Поддерживаются обычная форма в кавычках с escape-последовательностями
и сырая форма `r#"..."#`. Остальные виды литералов отклоняются.
"""

from __future__ import annotations

from typing import Dict, List

from .errors import LiteralDecodeError
from .tokens import Literal, LiteralKind

_SIMPLE_ESCAPES: Dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "0": "\0",
    "'": "'",
    '"': '"',
}

_ENCODE_ESCAPES: Dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Пробелы, пропускаемые после переноса строки через `\`
_CONTINUATION_WS = frozenset(" \t\n\r")

UNSUPPORTED_LITERAL = "only string literals are supported"


def decode_string_literal(lit: Literal) -> str:
    """
    Декодирует строковый литерал в его значение.

    Args:
        lit: Литерал вида STR или STR_RAW без суффикса

    Returns:
        Декодированная строка

    Raises:
        LiteralDecodeError: Другой вид литерала или некорректная escape-последовательность
    """
    if lit.suffix or lit.kind not in (LiteralKind.STR, LiteralKind.STR_RAW):
        raise LiteralDecodeError(UNSUPPORTED_LITERAL)

    if lit.kind is LiteralKind.STR_RAW:
        return _raw_body(lit.text)

    text = lit.text
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        raise LiteralDecodeError(f"invalid string literal: {text}")
    return unescape(text[1:-1])


def _raw_body(text: str) -> str:
    # r##"body"##
    if not text.startswith("r"):
        raise LiteralDecodeError(f"invalid raw string literal: {text}")
    hashes = len(text) - len(text[1:].lstrip("#")) - 1
    opening = 1 + hashes
    if (
        len(text) < opening * 2 + 1
        or text[opening] != '"'
        or not text.endswith('"' + "#" * hashes)
    ):
        raise LiteralDecodeError(f"invalid raw string literal: {text}")
    return text[opening + 1:len(text) - hashes - 1]


def unescape(body: str) -> str:
    """Раскрывает escape-последовательности тела обычного строкового литерала."""
    out: List[str] = []
    i = 0
    length = len(body)

    while i < length:
        char = body[i]
        if char != "\\":
            out.append(char)
            i += 1
            continue

        if i + 1 >= length:
            raise LiteralDecodeError("unterminated escape sequence")

        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
            i += 2
        elif esc == "x":
            digits = body[i + 2:i + 4]
            if len(digits) != 2 or not all(d in _HEX_DIGITS for d in digits):
                raise LiteralDecodeError("numeric character escape is too short")
            value = int(digits, 16)
            if value > 0x7F:
                raise LiteralDecodeError("out of range hex escape: must be at most \\x7f")
            out.append(chr(value))
            i += 4
        elif esc == "u":
            i = _unicode_escape(body, i, out)
        elif esc in "\r\n":
            # перенос строки: убираем перевод строки и ведущие пробелы следующей
            i += 2
            while i < length and body[i] in _CONTINUATION_WS:
                i += 1
        else:
            raise LiteralDecodeError(f"unknown character escape: `{esc}`")

    return "".join(out)


def _unicode_escape(body: str, i: int, out: List[str]) -> int:
    # body[i:] начинается с `\u{`
    if body[i + 2:i + 3] != "{":
        raise LiteralDecodeError("incorrect unicode escape sequence: expected `{`")
    close = body.find("}", i + 3)
    if close < 0:
        raise LiteralDecodeError("unterminated unicode escape")
    digits = body[i + 3:close].replace("_", "")
    if not digits or len(digits) > 6 or not all(d in _HEX_DIGITS for d in digits):
        raise LiteralDecodeError("invalid unicode character escape")
    value = int(digits, 16)
    if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
        raise LiteralDecodeError("invalid unicode character escape: not a valid scalar value")
    out.append(chr(value))
    return close + 1


def encode_string(value: str) -> str:
    """
    Записывает `value` как обычный строковый литерал (в кавычках).

    decode(encode(s)) == s для любой строки.
    """
    parts: List[str] = ['"']
    for char in value:
        if char in _ENCODE_ESCAPES:
            parts.append(_ENCODE_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            parts.append(f"\\u{{{ord(char):x}}}")
        else:
            parts.append(char)
    parts.append('"')
    return "".join(parts)


__all__ = ["decode_string_literal", "encode_string", "unescape", "UNSUPPORTED_LITERAL"]
