"""
Поиск вызовов макроса в исходном файле Rust.

Вызовы находятся двумя путями:
- запросом `macro_calls` по узлам macro_invocation (`docstr!(...)`,
  `docstr::docstr!(...)` в выражениях и на верхнем уровне)
- последовательностью `name ! (...)` внутри token_tree других макросов
  (`println!("{}", docstr!(...))`): грамматика не разбирает содержимое
  чужих макросов, там видны только токены
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from tree_sitter import Node

from .rust_source import RustSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MacroCall:
    """Найденный вызов: заменяемый диапазон, имя макроса и аргументы."""
    start_char: int
    end_char: int
    name: Node
    args: Node


def find_macro_calls(source: RustSource, macro_name: str) -> List[MacroCall]:
    """
    Все вызовы `macro_name!` в порядке появления.

    Вложенные в аргументы найденного вызова не возвращаются:
    они раскрываются вместе с ним.
    """
    calls: List[MacroCall] = []
    seen = set()

    for match in source.matches("macro_calls"):
        call, name, args = match["macro_call"], match["macro_name"], match["macro_args"]
        if (call.start_byte, call.end_byte) in seen:
            continue
        seen.add((call.start_byte, call.end_byte))

        if source.node_text(name) == macro_name:
            start, end = source.char_range(call)
            calls.append(MacroCall(start, end, name, args))
        else:
            calls.extend(_calls_in_token_tree(source, args, macro_name))

    calls.sort(key=lambda c: c.start_char)
    logger.debug(f"Found {len(calls)} `{macro_name}!` invocation(s)")
    return calls


def _calls_in_token_tree(source: RustSource, tree: Node, macro_name: str) -> List[MacroCall]:
    calls: List[MacroCall] = []
    children = tree.children
    i = 0
    while i < len(children):
        child = children[i]

        if (
            child.type == "identifier"
            and source.node_text(child) == macro_name
            and i + 2 < len(children)
            and children[i + 1].type == "!"
            and children[i + 2].type == "token_tree"
        ):
            first = _path_start(children, i)
            start, _ = source.char_range(children[first])
            _, end = source.char_range(children[i + 2])
            calls.append(MacroCall(start, end, child, children[i + 2]))
            i += 3
            continue

        if child.type == "token_tree":
            calls.extend(_calls_in_token_tree(source, child, macro_name))
        i += 1
    return calls


def _path_start(children: List[Node], name_index: int) -> int:
    # `a::b::name` / `::name`; `::` может прийти одним листом или двумя `:`
    first = name_index
    while True:
        if first >= 1 and children[first - 1].type == "::":
            first -= 1
        elif first >= 2 and children[first - 1].type == ":" and children[first - 2].type == ":":
            first -= 2
        else:
            break
        if first >= 1 and children[first - 1].type == "identifier":
            first -= 1
        else:
            break
    return first


__all__ = ["MacroCall", "find_macro_calls"]
