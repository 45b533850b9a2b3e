"""
Лексический анализатор: узлы Tree-sitter -> деревья токенов.

Текст разбирается грамматикой tree-sitter-rust, после чего листья
`token_tree` переводятся в Ident, Punct, Literal и Group так же,
как это делает компилятор перед вызовом макроса:
- пробелы и обычные комментарии пропускаются
- doc-комментарии `///` и `/** */` понижаются до `# [doc = "..."]`
- внутренние doc-комментарии `//!` и `/*! */` понижаются до `# ! [doc = "..."]`
- скобки (), [], {} образуют вложенные группы
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from tree_sitter import Node

from .errors import LexerError
from .rust_source import BOM, RustSource
from .tokens import (
    Delimiter,
    Group,
    Ident,
    Literal,
    LiteralKind,
    Punct,
    Spacing,
    Span,
    TokenStream,
)

logger = logging.getLogger(__name__)

# Символы, из которых состоит пунктуация
PUNCT_CHARS = frozenset("~!@#$%^&*-=+|;:,.<>/?")

# Аргументы одного вызова оборачиваются в служебный макрос,
# чтобы грамматика разобрала их как token_tree
ARGS_MACRO = "__docstr_args"
_ARGS_PREFIX = ARGS_MACRO + "! {"
_ARGS_SUFFIX = "\n}"

_IDENT = re.compile(r"(?:r#)?[^\W\d]\w*")
_LEAF_PIECE = re.compile(r"(?:r#)?[^\W\d]\w*|\S")
_INT_SUFFIX = re.compile(r"(?:[iu](?:8|16|32|64|128|size)|f32|f64)$")
_HEX_SUFFIX = re.compile(r"[iu](?:8|16|32|64|128|size)$")
_FLOAT_SUFFIX = re.compile(r"f(?:32|64)$")

_COMMENTS = {"line_comment", "block_comment"}
_LITERALS = {"string_literal", "raw_string_literal", "char_literal", "integer_literal", "float_literal"}


class SourceLexer:
    """
    Переводит поддеревья Tree-sitter в деревья токенов.

    Позиции токенов берутся из RustSource, поэтому Span указывает
    на место в исходном файле.
    """

    def __init__(self, source: RustSource):
        self.source = source

    def lower_token_tree(self, node: Node) -> TokenStream:
        """
        Токены внутри `token_tree` (без внешних скобок).

        Raises:
            LexerError: В поддереве есть ошибки разбора
        """
        self.check(node)
        out: TokenStream = []
        for child in node.children[1:-1]:
            self._lower(child, out)
        return out

    def check(self, node: Node) -> None:
        """Бросает LexerError на первой ошибке разбора в поддереве."""
        error = self.source.first_error(node)
        if error is None:
            return
        span = self.source.span(error)
        if error.is_missing:
            if error.type in (")", "]", "}"):
                message = f"unclosed delimiter, expected `{error.type}`"
            else:
                message = f"missing `{error.type}`"
        else:
            snippet = self.source.node_text(error).strip().splitlines()
            message = f"unexpected `{snippet[0][:20]}`" if snippet else "syntax error"
        raise LexerError(message, span.line, span.column, span.position)

    # ---------------------------- dispatch ---------------------------- #

    def _lower(self, node: Node, out: TokenStream) -> None:
        kind = node.type

        if kind == "token_tree":
            out.append(self._group(node))
        elif kind in _COMMENTS:
            self._comment(node, out)
        elif kind in _LITERALS:
            out.append(self._literal(node))
        elif kind == "boolean_literal":
            out.append(Ident(self.source.node_text(node), self.source.span(node)))
        elif node.child_count == 0:
            self._leaf(node, out)
        else:
            # Составные узлы внутри token_tree (метапеременные, повторения)
            for child in node.children:
                self._lower(child, out)

    def _group(self, node: Node) -> Group:
        opening = self.source.node_text(node.children[0]) if node.children else ""
        delimiter = Delimiter.for_open(opening)
        if delimiter is None:
            span = self.source.span(node)
            raise LexerError(f"unexpected delimiter `{opening}`", span.line, span.column, span.position)
        inner: TokenStream = []
        for child in node.children[1:-1]:
            self._lower(child, inner)
        return Group(delimiter, tuple(inner), self.source.span(node))

    def _leaf(self, node: Node, out: TokenStream) -> None:
        """Идентификаторы, ключевые слова и пунктуация (в т.ч. составная: `::`, `=>`)."""
        start, _ = self.source.char_range(node)
        text = self.source.node_text(node)

        for piece in _LEAF_PIECE.finditer(text):
            pos = start + piece.start()
            span = self.source.span_at(pos)
            value = piece.group(0)

            if _IDENT.fullmatch(value):
                out.append(Ident(value, span))
            elif value == "'":
                # лайфтайм: кавычка всегда склеена с идентификатором
                out.append(Punct(value, Spacing.JOINT, span))
            elif value in PUNCT_CHARS:
                following = self.source.char_at(pos + 1)
                spacing = Spacing.JOINT if following is not None and following in PUNCT_CHARS else Spacing.ALONE
                out.append(Punct(value, spacing, span))
            else:
                raise LexerError(f"unknown start of token: {value!r}", span.line, span.column, span.position)

    # ---------------------------- comments ---------------------------- #

    def _comment(self, node: Node, out: TokenStream) -> None:
        text = self.source.node_text(node)
        span = self.source.span(node)

        if node.type == "line_comment":
            body = text.rstrip("\r\n")
            # `////` - обычный комментарий
            if body.startswith("///") and not body.startswith("////"):
                self._emit_doc(body[3:], span, out, inner=False)
            elif body.startswith("//!"):
                self._emit_doc(body[3:], span, out, inner=True)
            return

        # `/**/` и `/***...` - обычные комментарии
        if text.startswith("/**") and not text.startswith("/***") and text != "/**/":
            self._emit_doc(text[3:-2], span, out, inner=False)
        elif text.startswith("/*!"):
            self._emit_doc(text[3:-2], span, out, inner=True)

    @staticmethod
    def _emit_doc(text: str, span: Span, out: TokenStream, *, inner: bool) -> None:
        out.append(Punct("#", Spacing.ALONE, span))
        if inner:
            out.append(Punct("!", Spacing.ALONE, span))
        body = (
            Ident("doc", span),
            Punct("=", Spacing.ALONE, span),
            Literal.string(text, span),
        )
        out.append(Group(Delimiter.BRACKET, body, span))

    # ---------------------------- literals ---------------------------- #

    def _literal(self, node: Node) -> Literal:
        text = self.source.node_text(node)
        span = self.source.span(node)
        kind = node.type

        if kind == "string_literal":
            if text.startswith("b"):
                return Literal(text, LiteralKind.BYTE_STR, "", span)
            if text.startswith("c"):
                return Literal(text, LiteralKind.C_STR, "", span)
            return Literal(text, LiteralKind.STR, "", span)

        if kind == "raw_string_literal":
            if text.startswith("br"):
                return Literal(text, LiteralKind.BYTE_STR_RAW, "", span)
            if text.startswith("cr"):
                return Literal(text, LiteralKind.C_STR_RAW, "", span)
            return Literal(text, LiteralKind.STR_RAW, "", span)

        if kind == "char_literal":
            if text.startswith("b"):
                return Literal(text, LiteralKind.BYTE, "", span)
            return Literal(text, LiteralKind.CHAR, "", span)

        if kind == "float_literal":
            body, suffix = _split_suffix(text, _FLOAT_SUFFIX)
            return Literal(body, LiteralKind.FLOAT, suffix, span)

        # integer_literal
        is_based = text[:2].lower() in ("0x", "0o", "0b")
        body, suffix = _split_suffix(text, _HEX_SUFFIX if is_based else _INT_SUFFIX)
        return Literal(body, LiteralKind.INTEGER, suffix, span)


def _split_suffix(text: str, pattern: re.Pattern) -> tuple:
    m = pattern.search(text)
    if m is None or m.start() == 0:
        return text, ""
    return text[:m.start()], m.group(0)


def _wrapped_args(source: RustSource) -> Optional[Node]:
    for match in source.matches("macro_calls"):
        call = match["macro_call"]
        if call.start_byte == 0 and source.node_text(match["macro_name"]) == ARGS_MACRO:
            return match["macro_args"]
    return None


def tokenize(text: str) -> TokenStream:
    """
    Токенизирует текст аргументов одного вызова макроса.

    Raises:
        LexerError: Текст не разбирается как последовательность токенов
                    (незакрытые строки, скобки, неизвестные символы)
    """
    if text.startswith(BOM):
        text = text[1:]
    source = RustSource(_ARGS_PREFIX + text + _ARGS_SUFFIX, origin=len(_ARGS_PREFIX))
    lexer = SourceLexer(source)

    # ошибка в любом месте - ошибка в тексте пользователя
    lexer.check(source.root_node)
    args = _wrapped_args(source)
    if args is None:
        span = source.span_at(source.origin)
        raise LexerError("text is not a token sequence", span.line, span.column, span.position)

    tokens = lexer.lower_token_tree(args)
    logger.debug(f"Tokenized {len(text)} characters into {len(tokens)} token trees")
    return tokens


__all__ = ["SourceLexer", "tokenize", "PUNCT_CHARS", "ARGS_MACRO"]
