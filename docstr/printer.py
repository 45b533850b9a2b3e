"""
Вывод деревьев токенов обратно в текст.

Токены разделяются одним пробелом, кроме мест, где пробел
нарушил бы привычный вид кода: `format!(...)`, `std::fmt`, `#[doc]`, `a, b`.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .tokens import Group, Ident, Literal, Punct, Spacing, TokenTree


def to_source(stream: Sequence[TokenTree]) -> str:
    """Рендерит последовательность токенов в исходный текст."""
    parts: List[str] = []
    prev: Optional[TokenTree] = None
    prev_prev: Optional[TokenTree] = None

    for token in stream:
        if prev is not None and _needs_space(prev_prev, prev, token):
            parts.append(" ")
        parts.append(_render(token))
        prev_prev, prev = prev, token

    return "".join(parts)


def _render(token: TokenTree) -> str:
    if isinstance(token, Ident):
        return token.name
    if isinstance(token, Punct):
        return token.char
    if isinstance(token, Literal):
        return token.text + token.suffix
    if isinstance(token, Group):
        return token.delimiter.open + to_source(token.stream) + token.delimiter.close
    raise TypeError(f"not a token tree: {token!r}")


def _needs_space(prev_prev: Optional[TokenTree], prev: TokenTree, token: TokenTree) -> bool:
    if isinstance(prev, Punct) and prev.spacing is Spacing.JOINT:
        return False

    if isinstance(token, Punct):
        if token.char in ",;":
            return False
        # макрос: `format!`
        if token.char == "!" and token.spacing is Spacing.ALONE and isinstance(prev, Ident):
            return False
        # путь: `std::`
        if token.char == ":" and token.spacing is Spacing.JOINT and isinstance(prev, Ident):
            return False

    # путь: `::fmt`
    if (
        isinstance(prev, Punct) and prev.char == ":"
        and isinstance(prev_prev, Punct) and prev_prev.char == ":"
        and prev_prev.spacing is Spacing.JOINT
    ):
        return False

    if isinstance(token, Group):
        if isinstance(prev, Ident):
            return False
        if isinstance(prev, Punct) and prev.char in "!#":
            return False

    return True


__all__ = ["to_source"]
