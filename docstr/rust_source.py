"""
Разбор исходного текста Rust через Tree-sitter.

RustSource хранит текст и дерево разбора, выполняет именованные запросы
и переводит байтовые смещения узлов в позиции Span
(строка, колонка, символьное смещение).
"""

from __future__ import annotations

import bisect
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Tuple

from tree_sitter import Language, Node, Parser, Query, QueryCursor, Tree

from .tokens import Span

BOM = "\ufeff"

QUERIES: Dict[str, str] = {
    # Вызовы макросов: `name!(...)` и `path::name!(...)`
    "macro_calls": """
    (macro_invocation
      macro: (identifier) @macro_name
      (token_tree) @macro_args) @macro_call

    (macro_invocation
      macro: (scoped_identifier
        name: (identifier) @macro_name)
      (token_tree) @macro_args) @macro_call
    """,
}


@lru_cache(maxsize=1)
def rust_language() -> Language:
    import tree_sitter_rust as tsrust
    return Language(tsrust.language())


class RustSource:
    """
    Разобранный исходный текст Rust.

    Args:
        text: Текст для разбора (ведущий BOM отбрасывается и запоминается)
        origin: Число символов служебного префикса в начале текста;
                позиции Span считаются от конца префикса
    """

    def __init__(self, text: str, origin: int = 0):
        self.bom = text.startswith(BOM)
        self.text = text[1:] if self.bom else text
        self.origin = origin
        self._text_bytes = self.text.encode("utf-8")
        self._query_cache: Dict[str, Query] = {}

        body = self.text[origin:]
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(body) if ch == "\n"]

        self.tree: Tree = Parser(rust_language()).parse(self._text_bytes)

    @property
    def root_node(self) -> Node:
        return self.tree.root_node

    def restore(self, text: str) -> str:
        """Возвращает BOM, если он был в исходном тексте."""
        return BOM + text if self.bom else text

    # ---------------------------- запросы ---------------------------- #

    def matches(self, query_name: str, start_node: Optional[Node] = None) -> List[Dict[str, Node]]:
        """
        Выполняет именованный запрос.

        Returns:
            Список совпадений; каждое - словарь имя захвата -> узел
        """
        if query_name not in QUERIES:
            raise ValueError(f"Unknown query: {query_name}")
        if query_name not in self._query_cache:
            self._query_cache[query_name] = Query(rust_language(), QUERIES[query_name])

        cursor = QueryCursor(self._query_cache[query_name])
        results = []
        for _pattern_index, captures in cursor.matches(self.root_node if start_node is None else start_node):
            results.append({name: nodes[0] for name, nodes in captures.items()})
        return results

    def walk(self, start_node: Optional[Node] = None) -> Iterator[Node]:
        """Обход дерева в глубину через TreeCursor."""
        cursor = (self.root_node if start_node is None else start_node).walk()
        visited_children = False

        while True:
            if not visited_children:
                yield cursor.node
                if not cursor.goto_first_child():
                    visited_children = True
            elif cursor.goto_next_sibling():
                visited_children = False
            elif not cursor.goto_parent():
                break
            else:
                visited_children = True

    def first_error(self, start_node: Optional[Node] = None) -> Optional[Node]:
        """Первый узел ERROR или пропущенный (MISSING) узел, если есть."""
        node = self.root_node if start_node is None else start_node
        if not node.has_error:
            return None
        for child in self.walk(node):
            if child.is_error or child.is_missing:
                return child
        return None

    # ---------------------------- позиции ---------------------------- #

    def node_text(self, node: Node) -> str:
        return self._text_bytes[node.start_byte:node.end_byte].decode("utf-8")

    def char_range(self, node: Node) -> Tuple[int, int]:
        return self.byte_to_char_position(node.start_byte), self.byte_to_char_position(node.end_byte)

    def span(self, node: Node) -> Span:
        return self.span_at(self.byte_to_char_position(node.start_byte))

    def span_at(self, char_pos: int) -> Span:
        """Span для символьной позиции в разобранном тексте."""
        rel = min(max(char_pos - self.origin, 0), len(self.text) - self.origin)
        line = bisect.bisect_right(self._line_starts, rel) - 1
        return Span(line + 1, rel - self._line_starts[line] + 1, rel)

    def char_at(self, char_pos: int) -> Optional[str]:
        if 0 <= char_pos < len(self.text):
            return self.text[char_pos]
        return None

    def byte_to_char_position(self, byte_pos: int) -> int:
        """
        Переводит байтовую позицию в символьную.

        Если позиция попадает в середину многобайтового символа,
        возвращается позиция перед этим символом.
        """
        if byte_pos <= 0:
            return 0
        if byte_pos >= len(self._text_bytes):
            return len(self.text)
        if len(self._text_bytes) == len(self.text):
            return byte_pos

        # UTF-8: не больше 4 байт на символ
        start = max(0, byte_pos - 4)
        for end in range(byte_pos, start - 1, -1):
            try:
                return len(self._text_bytes[:end].decode("utf-8"))
            except UnicodeDecodeError:
                continue
        return 0


__all__ = ["RustSource", "rust_language", "BOM", "QUERIES"]
