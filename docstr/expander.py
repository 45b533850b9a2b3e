"""
Конвейер раскрытия.

сканер цели вызова -> сканер doc-сегментов -> склейка -> синтез вызова.

Каждое раскрытие получает свой DiagnosticCollector; между вызовами
ничего не разделяется.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from .diagnostics import Diagnostic, DiagnosticCollector
from .errors import ExpansionError
from .invocations import find_macro_calls
from .lexer import SourceLexer, tokenize
from .printer import to_source
from .range_edits import RangeEditor
from .rust_source import RustSource
from .segments import DocSegmentScanner
from .synth import CallSynthesizer
from .target import CallTargetScanner
from .tokens import CALL_SITE, Group, Ident, Span, TokenCursor, TokenStream, TokenTree, is_ident, is_punct

logger = logging.getLogger(__name__)

DEFAULT_MACRO_NAME = "docstr"


@dataclass
class Expansion:
    """Результат одного раскрытия: выходные токены и диагностики к ним."""
    tokens: TokenStream
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    @property
    def source(self) -> str:
        return to_source(self.tokens)


def expand_detailed(stream: Iterable[TokenTree], call_site: Span = CALL_SITE) -> Expansion:
    diagnostics = DiagnosticCollector()
    cursor = TokenCursor(stream, call_site)

    target = CallTargetScanner(cursor, diagnostics, call_site).scan()
    scan = DocSegmentScanner(cursor, diagnostics, call_site).scan()
    tokens = CallSynthesizer(diagnostics, call_site).synthesize(target, scan)

    if diagnostics:
        logger.debug(f"Expansion at {call_site} failed with {len(diagnostics)} diagnostic(s)")
    return Expansion(tokens, diagnostics.diagnostics)


def expand(stream: Iterable[TokenTree], call_site: Span = CALL_SITE) -> TokenStream:
    """
    Раскрывает аргументы макроса.

    Returns:
        Строковый литерал / выражение вызова, либо отчёт
        `compile_error!`, если что-то было не так
    """
    return expand_detailed(stream, call_site).tokens


def expand_or_raise(stream: Iterable[TokenTree], call_site: Span = CALL_SITE) -> TokenStream:
    """Как expand(), но вместо отчёта бросает ExpansionError."""
    expansion = expand_detailed(stream, call_site)
    if not expansion.ok:
        raise ExpansionError(expansion.diagnostics)
    return expansion.tokens


def expand_source(text: str, call_site: Span = CALL_SITE) -> Expansion:
    """Токенизирует текст аргументов вызова и раскрывает его."""
    return expand_detailed(tokenize(text), call_site)


def rewrite_invocations(
    stream: Iterable[TokenTree],
    macro_name: str = DEFAULT_MACRO_NAME,
) -> Tuple[TokenStream, List[Diagnostic]]:
    """
    Заменяет каждый `macro_name!(...)` в потоке токенов его раскрытием.

    Вызовы могут быть с путём (`docstr::docstr!(...)`) и вложены в любые
    группы. Результат раскрытия обрабатывается повторно, поэтому вызовы,
    переданные как аргументы, тоже раскрываются.
    """
    diagnostics: List[Diagnostic] = []
    rewritten = _rewrite(list(stream), macro_name, diagnostics)
    logger.debug(f"Rewrote `{macro_name}!` invocations with {len(diagnostics)} diagnostic(s)")
    return rewritten, diagnostics


def rewrite_source(text: str, macro_name: str = DEFAULT_MACRO_NAME) -> Tuple[str, List[Diagnostic]]:
    """
    Раскрывает все вызовы `macro_name!` в исходном файле Rust.

    Заменяется только текст самих вызовов; остальной файл (комментарии,
    переводы строк, doc-комментарии вне вызовов) остаётся как был.

    Raises:
        LexerError: Аргументы одного из вызовов не разбираются
    """
    source = RustSource(text)
    lexer = SourceLexer(source)
    editor = RangeEditor(source.text)
    diagnostics: List[Diagnostic] = []

    for call in find_macro_calls(source, macro_name):
        expansion = expand_detailed(lexer.lower_token_tree(call.args), source.span(call.name))
        diagnostics.extend(expansion.diagnostics)
        tokens, nested = rewrite_invocations(expansion.tokens, macro_name)
        diagnostics.extend(nested)
        editor.add_replacement(call.start_char, call.end_char, to_source(tokens))

    return source.restore(editor.apply_edits()), diagnostics


def _rewrite(tokens: List[TokenTree], macro_name: str, diagnostics: List[Diagnostic]) -> TokenStream:
    out: TokenStream = []
    i = 0
    while i < len(tokens):
        token = tokens[i]

        if (
            is_ident(token, macro_name)
            and i + 2 < len(tokens)
            and is_punct(tokens[i + 1], "!")
            and isinstance(tokens[i + 2], Group)
        ):
            _drop_path_prefix(out)
            expansion = expand_detailed(tokens[i + 2].stream, token.span)
            diagnostics.extend(expansion.diagnostics)
            out.extend(_rewrite(expansion.tokens, macro_name, diagnostics))
            i += 3
            continue

        if isinstance(token, Group):
            inner = _rewrite(list(token.stream), macro_name, diagnostics)
            token = Group(token.delimiter, tuple(inner), token.span)
        out.append(token)
        i += 1
    return out


def _drop_path_prefix(out: TokenStream) -> None:
    # `docstr::docstr!` / `::docstr::docstr!`
    while len(out) >= 2 and is_punct(out[-1], ":") and is_punct(out[-2], ":"):
        del out[-2:]
        if out and isinstance(out[-1], Ident):
            out.pop()
        else:
            break


__all__ = [
    "Expansion",
    "expand",
    "expand_detailed",
    "expand_or_raise",
    "expand_source",
    "rewrite_invocations",
    "rewrite_source",
    "DEFAULT_MACRO_NAME",
]
