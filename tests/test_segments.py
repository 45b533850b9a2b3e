"""
Tests for the doc-segment scanner and the payload joiner.
"""

import pytest

from docstr.diagnostics import DiagnosticCollector
from docstr.errors import InvariantViolation
from docstr.lexer import tokenize
from docstr.printer import to_source
from docstr.segments import DocSegmentScanner, ScanState, join_segments
from docstr.tokens import CALL_SITE, Ident, Punct, TokenCursor, is_punct

from .conftest import doc


def _scan(text: str):
    diagnostics = DiagnosticCollector()
    scanner = DocSegmentScanner(TokenCursor(tokenize(text)), diagnostics)
    return scanner.scan(), diagnostics, scanner


def _messages(diagnostics):
    return [d.message for d in diagnostics]


class TestSegments:

    def test_lines_are_collected_in_order(self):
        result, diagnostics, scanner = _scan("/// foo\n/// bar")
        assert result.segments == ["foo", "bar"]
        assert result.before == []
        assert result.after == []
        assert not diagnostics
        assert scanner.state is ScanState.FINISHED

    @pytest.mark.parametrize("line, expected", [
        ("/// one", "one"),
        ("///  two", " two"),
        ("///none", "none"),
        ("///", ""),
        ("///   ", "  "),
    ])
    def test_exactly_one_leading_space_is_stripped(self, line, expected):
        result, diagnostics, _ = _scan(line)
        assert result.segments == [expected]
        assert not diagnostics

    def test_raw_string_attribute(self):
        result, diagnostics, _ = _scan('#[doc = r" raw \\n"]')
        assert result.segments == ["raw \\n"]
        assert not diagnostics

    def test_prebuilt_pseudo_attributes(self):
        tokens = doc(" a") + doc("") + doc(" b")
        diagnostics = DiagnosticCollector()
        result = DocSegmentScanner(TokenCursor(tokens), diagnostics).scan()
        assert result.segments == ["a", "", "b"]


class TestBeforeAndAfter:

    def test_arguments_before_with_comma(self):
        result, diagnostics, _ = _scan("s, /// hello")
        assert [type(t) for t in result.before] == [Ident, Punct]
        assert result.segments == ["hello"]
        assert not diagnostics

    def test_missing_comma_is_reported_and_inserted(self):
        result, diagnostics, _ = _scan("s\n/// hello")
        assert _messages(diagnostics) == ["expected `,` after this"]
        assert diagnostics.diagnostics[0].span == result.before[0].span
        assert result.before[0].name == "s"
        assert is_punct(result.before[1], ",")
        assert len(result.before) == 2

    def test_arguments_after(self):
        result, diagnostics, _ = _scan('/// {} and {}\n"a" , b')
        assert result.segments == ["{} and {}"]
        assert to_source(result.after) == '"a", b'
        assert not diagnostics

    def test_second_doc_run_goes_to_after(self):
        result, diagnostics, scanner = _scan("/// a\nx\n/// b")
        assert result.segments == ["a"]
        assert result.after[0].name == "x"
        assert is_punct(result.after[1], "#")
        assert len(result.after) == 3
        assert not diagnostics
        assert scanner.state is ScanState.FINISHED


class TestMalformedAttributes:

    @pytest.mark.parametrize("text, message", [
        ('#[foo = "x"]', "expected `doc` after `[`"),
        ("#[]", "expected `doc` after `[`"),
        ('#[doc "x"]', "expected `=` after `doc`"),
        ("#[doc = x]", "expected string literal after `=`"),
        ("#[doc =]", "expected string literal after `=`"),
        ("#[doc = 1]", "only string literals are supported"),
        ('#[doc = b"x"]', "only string literals are supported"),
        ("#[doc = 'x']", "only string literals are supported"),
        ('#[doc = "x" y]', "expected `]` after the string literal"),
        ('# (doc = "x")', "expected `#` to be followed by `[...]`"),
    ])
    def test_malformed_attribute(self, text, message):
        result, diagnostics, _ = _scan(text)
        assert _messages(diagnostics)[0] == message
        assert result.segments == []

    def test_inner_doc_comment_is_reported(self):
        result, diagnostics, _ = _scan("//! inner")
        assert _messages(diagnostics) == [
            "inner doc comments are not supported; use the line form `///`"
        ]
        # the attribute itself is still parsed
        assert result.segments == ["inner"]

    def test_several_mistakes_in_one_pass(self):
        result, diagnostics, _ = _scan('#[foo]\n#[doc = 1]\n/// ok')
        assert _messages(diagnostics) == [
            "expected `doc` after `[`",
            "only string literals are supported",
        ]
        assert result.segments == ["ok"]

    def test_no_doc_comments(self):
        result, diagnostics, _ = _scan("x y")
        assert _messages(diagnostics) == ["expected at least one documentation comment"]
        assert diagnostics.diagnostics[0].span == CALL_SITE
        assert len(result.before) == 2

    def test_empty_input(self):
        result, diagnostics, _ = _scan("")
        assert _messages(diagnostics) == ["expected at least one documentation comment"]


class TestScanState:

    def test_state_never_moves_backward(self):
        scanner = DocSegmentScanner(TokenCursor([]), DiagnosticCollector())
        scanner.state = ScanState.FINISHED
        with pytest.raises(InvariantViolation):
            scanner._advance(ScanState.INSIDE)

    def test_initial_state(self):
        scanner = DocSegmentScanner(TokenCursor([]), DiagnosticCollector())
        assert scanner.state is ScanState.NOT_REACHED


class TestJoinSegments:

    def test_join(self):
        assert join_segments(["foo", "bar"]) == "foo\nbar"

    def test_trailing_empty_line(self):
        assert join_segments(["foo", "bar", ""]) == "foo\nbar\n"

    def test_single_empty_line(self):
        assert join_segments([""]) == ""

    def test_no_segments(self):
        assert join_segments([]) == ""

    @pytest.mark.parametrize("lines", [
        ["a"],
        ["", ""],
        ["a", "", "b"],
        ["  indented", "{}", ""],
    ])
    def test_split_inverts_join(self, lines):
        assert join_segments(lines).split("\n") == lines
