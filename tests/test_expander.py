"""
End-to-end expansion: call target + doc segments + synthesized call.
"""

import textwrap

import pytest

from docstr.diagnostics import DiagnosticCollector
from docstr.errors import ExpansionError
from docstr.expander import (
    expand,
    expand_detailed,
    expand_or_raise,
    expand_source,
    rewrite_invocations,
    rewrite_source,
)
from docstr.lexer import tokenize
from docstr.printer import to_source
from docstr.segments import DocSegmentScanner, SegmentScan
from docstr.synth import CallSynthesizer
from docstr.target import CallTargetScanner, InvalidTarget, NoTarget
from docstr.tokens import Delimiter, Group, Ident, Literal, Span, TokenCursor

from .conftest import doc


def _messages(expansion):
    return [d.message for d in expansion.diagnostics]


class TestBareLiteral:

    def test_lines_joined_with_newline(self):
        tokens = expand(doc(" foo") + doc(" bar"))
        assert len(tokens) == 1
        assert isinstance(tokens[0], Literal)
        assert tokens[0].text == '"foo\\nbar"'

    def test_single_empty_line(self):
        expansion = expand_source("///")
        assert expansion.ok
        assert expansion.source == '""'

    def test_trailing_empty_line(self):
        expansion = expand_source("/// foo\n/// bar\n///")
        assert expansion.source == '"foo\\nbar\\n"'

    def test_braces_are_not_interpolated(self):
        expansion = expand_source("/// I am {AGE} years old")
        assert expansion.source == '"I am {AGE} years old"'

    def test_escaping(self):
        expansion = expand_source(textwrap.dedent('''\
            /// hello "world" ' \\ ! ()
            /// ///\\\\/\\// \\u{0032}
        '''))
        assert expansion.ok
        assert expansion.source == '"hello \\"world\\" \' \\\\ ! ()\\n///\\\\\\\\/\\\\// \\\\u{0032}"'

    def test_trailing_tokens_without_target(self):
        expansion = expand_source('/// a\n"x"')
        assert _messages(expansion) == [
            "doc comments must be the entire input when no call target is given"
        ]
        assert expansion.source.startswith("compile_error!{")

    def test_leading_tokens_without_target(self):
        diagnostics = DiagnosticCollector()
        scan = SegmentScan(before=[Ident("x")], segments=["a"])
        tokens = CallSynthesizer(diagnostics).synthesize(NoTarget(), scan)
        assert len(diagnostics) == 1
        assert tokens == diagnostics.to_tokens()


class TestCallSynthesis:

    def test_format_with_trailing_argument(self):
        expansion = expand_source('format!\n/// Hello, {}\n"world"')
        assert expansion.ok
        assert expansion.source == 'format!("Hello, {}", "world")'

    def test_argument_order(self):
        expansion = expand_source('writeln!\ns,\n/// hello\n/// {}\n"world"')
        assert expansion.ok
        name, bang, group = expansion.tokens
        assert name.name == "writeln"
        assert group.delimiter is Delimiter.PARENTHESIS
        assert to_source(group.stream) == 's, "hello\\n{}", "world"'

    def test_trailing_separator_when_nothing_follows(self):
        expansion = expand_source("format!\n/// just text")
        assert expansion.source == 'format!("just text",)'

    def test_existing_separator_after_run_is_kept(self):
        expansion = expand_source("format!\n/// {}\n, x")
        assert expansion.ok
        assert expansion.source == 'format!("{}", x)'

    def test_namespaced_target(self):
        expansion = expand_source("std::format!\n/// {}\nx")
        assert expansion.source == 'std::format!("{}", x)'

    def test_literal_uses_call_site_span(self):
        site = Span(7, 3, 120)
        tokens = expand(tokenize("format!\n/// x"), call_site=site)
        group = tokens[-1]
        assert group.span == site
        assert group.stream[0].span == site

    def test_missing_comma_recovery(self):
        """The diagnostic is fatal, but the recovered arguments stay well formed."""
        diagnostics = DiagnosticCollector()
        cursor = TokenCursor(tokenize("writeln!\ns\n/// hello"))
        target = CallTargetScanner(cursor, diagnostics).scan()
        scan = DocSegmentScanner(cursor, diagnostics).scan()
        assert [d.message for d in diagnostics] == ["expected `,` after this"]

        recovered = CallSynthesizer(DiagnosticCollector()).synthesize(target, scan)
        assert to_source(recovered) == 'writeln!(s, "hello",)'

        report = CallSynthesizer(diagnostics).synthesize(target, scan)
        assert to_source(report) == 'compile_error!{"expected `,` after this"}'


class TestDiagnostics:

    def test_no_doc_comments(self):
        expansion = expand_source("format! x")
        assert _messages(expansion) == ["expected at least one documentation comment"]
        assert not expansion.ok
        assert not any(isinstance(t, Group) and t.delimiter is Delimiter.PARENTHESIS
                       for t in expansion.tokens)

    def test_zero_input(self):
        expansion = expand_detailed([])
        assert _messages(expansion) == ["expected at least one documentation comment"]

    def test_every_diagnostic_is_reported(self):
        expansion = expand_source("writeln\ns\n/// hello\n/// {}\n\"world\"")
        assert len(expansion.diagnostics) == 2
        assert "`writeln::s`" in expansion.diagnostics[0].message
        assert expansion.diagnostics[1].message == "expected `,` after this"
        assert expansion.source.count("compile_error!") == 2

    def test_comma_instead_of_bang(self):
        expansion = expand_source('writeln,\ns,\n/// hello\n"world"')
        assert len(expansion.diagnostics) == 1
        assert "found `,`" in expansion.diagnostics[0].message

    def test_invalid_target_never_falls_back_to_literal(self):
        diagnostics = DiagnosticCollector()
        diagnostics.error(Span(1, 1), "bad target")
        tokens = CallSynthesizer(diagnostics).synthesize(InvalidTarget(), SegmentScan(segments=["a"]))
        assert to_source(tokens) == 'compile_error!{"bad target"}'

    def test_report_spans(self):
        expansion = expand_source("  writeln /// x")
        ident = expansion.tokens[0]
        assert ident.name == "compile_error"
        assert (ident.span.line, ident.span.column) == (1, 3)

    def test_expand_or_raise(self):
        assert to_source(expand_or_raise(tokenize("/// ok"))) == '"ok"'
        with pytest.raises(ExpansionError) as exc:
            expand_or_raise(tokenize("format! x"))
        assert exc.value.diagnostics[0].message == "expected at least one documentation comment"
        assert "<call site>" in str(exc.value)


class TestRewrite:

    def test_rewrite_let_binding(self):
        source = textwrap.dedent("""\
            let a = docstr!(
                /// foo
                /// bar
            );
        """)
        output, diagnostics = rewrite_source(source)
        assert not diagnostics
        assert output == 'let a = "foo\\nbar";\n'

    def test_rewrite_qualified_invocation(self):
        output, diagnostics = rewrite_source("let a = docstr::docstr!(/** x */);")
        assert not diagnostics
        assert output == 'let a = "x ";'

    def test_rewrite_nested_in_block(self):
        output, _ = rewrite_source("fn f() { docstr!(format!\n/// {}\nx) }")
        assert output == 'fn f() { format!("{}", x) }'

    def test_rewrite_custom_macro_name(self):
        output, diagnostics = rewrite_source("let s = m!(/// a\n);", macro_name="m")
        assert not diagnostics
        assert output == 'let s = "a";'

    def test_rewrite_leaves_other_macros(self):
        tokens, diagnostics = rewrite_invocations(tokenize("println!(x); docstr!(/// y\n)"))
        assert not diagnostics
        assert to_source(tokens) == 'println!(x); "y"'

    def test_rewrite_collects_diagnostics(self):
        output, diagnostics = rewrite_source("a(docstr!(x /// bad\n)); b(docstr!(/// ok\n));")
        assert [d.message for d in diagnostics] == ["expected `!` after the macro path"]
        assert output == 'a(compile_error!{"expected `!` after the macro path"}); b("ok");'


class TestRewriteKeepsSource:
    """Всё, что вне вызовов, остаётся без изменений."""

    def test_comments_and_docs_outside_survive(self):
        source = "// keep me\n/// Docs for f\nfn f() {\n    let a = docstr!(/// hi\n);\n}\n"
        output, diagnostics = rewrite_source(source)
        assert not diagnostics
        assert output == "// keep me\n/// Docs for f\nfn f() {\n    let a = \"hi\";\n}\n"

    def test_layout_around_invocation(self):
        source = textwrap.dedent("""\
            fn main() {
                // before
                let a = docstr!(
                    /// x
                );

                /* after */
                println!("{}", a);
            }
        """)
        output, _ = rewrite_source(source)
        assert output == textwrap.dedent("""\
            fn main() {
                // before
                let a = "x";

                /* after */
                println!("{}", a);
            }
        """)

    def test_source_without_invocations_is_unchanged(self):
        source = "/// Docs\nfn f() -> u8 {\n    // comment\n    1\n}\n"
        output, diagnostics = rewrite_source(source)
        assert output == source
        assert diagnostics == []

    def test_byte_order_mark_is_kept(self):
        output, diagnostics = rewrite_source("\ufefflet a = docstr!(/// hi\n);\n")
        assert not diagnostics
        assert output == "\ufefflet a = \"hi\";\n"

    def test_invocation_inside_other_macro(self):
        output, diagnostics = rewrite_source('println!("{}", docstr!(/// hi\n));')
        assert not diagnostics
        assert output == 'println!("{}", "hi");'

    def test_qualified_invocation_inside_other_macro(self):
        output, _ = rewrite_source('println!("{}", docstr::docstr!(/// hi\n));')
        assert output == 'println!("{}", "hi");'

    def test_invocation_in_arguments_is_expanded(self):
        output, diagnostics = rewrite_source("let s = docstr!(format!\n/// {}\ndocstr!(/// inner\n));")
        assert not diagnostics
        assert output == 'let s = format!("{}", "inner");'

    def test_diagnostic_points_into_file(self):
        output, diagnostics = rewrite_source("fn f() {\n    docstr!(writeln /// x\n);\n}\n")
        (diag,) = diagnostics
        assert (diag.span.line, diag.span.column) == (2, 13)
        assert output.startswith("fn f() {\n    compile_error!{")
