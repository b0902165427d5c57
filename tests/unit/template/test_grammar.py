"""Tests for token recognition and expression parsing."""
from __future__ import annotations

import pytest

from microdata_template.core.exceptions import ExpressionSyntaxError
from microdata_template.core.template.grammar import (
    Alternation,
    CandidateKind,
    Composition,
    extract_token,
    is_falsey,
    parse_expression,
    splice_token,
    split_top_level,
    strip_quotes,
)


class TestExtractToken:
    """First ``{{ ... }}`` occurrence in raw text."""

    def test_returns_stripped_inner_text(self) -> None:
        assert extract_token("Hello {{  name  }}!") == "name"

    def test_no_token_returns_none(self) -> None:
        assert extract_token("plain text") is None
        assert extract_token("") is None
        assert extract_token(None) is None

    def test_non_greedy_first_occurrence(self) -> None:
        assert extract_token("{{ a }} and {{ b }}") == "a"

    def test_spans_lines(self) -> None:
        assert extract_token("{{\n  VALUE\n}}") == "VALUE"

    def test_splice_replaces_only_first_token(self) -> None:
        assert splice_token("/u/{{ id }}/{{ x }}", "42") == "/u/42/{{ x }}"

    def test_splice_keeps_backslashes_literal(self) -> None:
        assert splice_token("{{ path }}", r"C:\temp") == r"C:\temp"


class TestLexicalHelpers:
    def test_strip_quotes_removes_one_matching_pair(self) -> None:
        assert strip_quotes("'abc'") == "abc"
        assert strip_quotes('"abc"') == "abc"
        assert strip_quotes("''abc''") == "'abc'"

    def test_strip_quotes_leaves_mismatched_quotes(self) -> None:
        assert strip_quotes("'abc\"") == "'abc\""
        assert strip_quotes("abc") == "abc"

    def test_split_top_level_respects_quotes_and_parentheses(self) -> None:
        assert split_top_level("a:'b:c':(d:e)", ":") == ["a", "'b:c'", "(d:e)"]

    def test_split_top_level_rejects_unbalanced_input(self) -> None:
        with pytest.raises(ExpressionSyntaxError):
            split_top_level("(a", ":")
        with pytest.raises(ExpressionSyntaxError):
            split_top_level("a)", ":")
        with pytest.raises(ExpressionSyntaxError):
            split_top_level("'a", ":")


class TestIsFalsey:
    @pytest.mark.parametrize(
        "value",
        ["", "   ", "false", "FALSE", "null", "undefined", "NaN", "0", None, False, 0, 0.0, float("nan")],
    )
    def test_falsey_values(self, value) -> None:
        assert is_falsey(value) is True

    @pytest.mark.parametrize("value", ["true", "yes", "1", " checked ", 1, True, "no"])
    def test_truthy_values(self, value) -> None:
        assert is_falsey(value) is False


class TestParseExpression:
    """Parsing the inside of a token into typed nodes."""

    def test_constant_reference(self) -> None:
        expr = parse_expression("VALUE")
        assert isinstance(expr.reference, Alternation)
        (candidate,) = expr.reference.candidates
        assert candidate.kind is CandidateKind.CONSTANT
        assert expr.transforms == ()
        assert expr.modifiers == frozenset()

    def test_candidate_classification(self) -> None:
        expr = parse_expression("a.b|items[0]|name|'fallback'|INDEX")
        kinds = [c.kind for c in expr.reference.candidates]
        assert kinds == [
            CandidateKind.ADDRESS,
            CandidateKind.ADDRESS,
            CandidateKind.PROPERTY,
            CandidateKind.LITERAL,
            CandidateKind.CONSTANT,
        ]
        assert expr.reference.candidates[3].literal == "fallback"

    def test_quoted_literal_with_separators(self) -> None:
        expr = parse_expression("name|'a|b:c'")
        assert [c.text for c in expr.reference.candidates] == ["name", "'a|b:c'"]

    def test_transforms_keep_declaration_order(self) -> None:
        expr = parse_expression("outer:inner:VALUE")
        assert expr.transforms == ("outer", "inner")

    def test_modifiers_are_separated_from_transforms(self) -> None:
        expr = parse_expression("html:concat:join:tags")
        assert expr.transforms == ("join",)
        assert expr.has("html") and expr.has("concat")
        assert not expr.has("boolean")

    def test_composition_arguments(self) -> None:
        expr = parse_expression("combineString:(first, ' ', last|'?')")
        assert isinstance(expr.reference, Composition)
        assert len(expr.reference.arguments) == 3
        assert expr.reference.arguments[1].candidates[0].literal == " "
        assert [c.text for c in expr.reference.arguments[2].candidates] == ["last", "'?'"]

    def test_empty_composition(self) -> None:
        expr = parse_expression("combineString:()")
        assert expr.reference == Composition(())

    @pytest.mark.parametrize(
        "source",
        ["", "   ", "join:", ":VALUE", "a||b", "join:(a, b", "join:(a,,b)", "bad name:VALUE", "a(b)"],
    )
    def test_malformed_expressions_raise(self, source: str) -> None:
        with pytest.raises(ExpressionSyntaxError) as excinfo:
            parse_expression(source)
        assert isinstance(excinfo.value, ValueError)

    def test_syntax_error_carries_expression_context(self) -> None:
        with pytest.raises(ExpressionSyntaxError) as excinfo:
            parse_expression("join:(a, b")
        assert excinfo.value.context["expression"] == "join:(a, b"
        assert excinfo.value.to_json_error()["code"] == "ExpressionSyntaxError"
