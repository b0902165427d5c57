"""Tests for the fragment tree walker."""
from __future__ import annotations

import logging
from typing import List, Tuple

import pytest

from microdata_template.core.exceptions import ExpressionSyntaxError, TransformError
from microdata_template.core.template.evaluator import RenderContext, TokenEvaluator
from microdata_template.core.template.transformers import TransformerRegistry
from microdata_template.core.template.walker import TreeWalker, iter_expressions, requests_forin


@pytest.fixture
def evaluator() -> TokenEvaluator:
    return TokenEvaluator(TransformerRegistry())


def _walk(soup, markup: str, datum, evaluator: TokenEvaluator, **kwargs):
    doc = soup(markup)
    root = doc.find()
    walker = TreeWalker(evaluator, **kwargs)
    walker.walk(root, RenderContext(datum))
    return root, walker


class TestTextNodes:
    def test_replaces_whole_text(self, soup, evaluator) -> None:
        root, _ = _walk(soup, "<p>Hello {{ name }}!</p>", {"name": "Ada"}, evaluator)
        assert str(root) == "<p>Ada</p>"

    def test_concat_splices_in_place(self, soup, evaluator) -> None:
        root, _ = _walk(soup, "<p>Hello {{ concat:name }}!</p>", {"name": "Ada"}, evaluator)
        assert str(root) == "<p>Hello Ada!</p>"

    def test_only_first_token_resolves_and_rest_is_logged(self, soup, evaluator, caplog) -> None:
        caplog.set_level(logging.DEBUG, logger="microdata_template.core.template.walker")
        root, _ = _walk(soup, '<p title="{{ concat:a }}/{{ b }}">{{ concat:a }} - {{ b }}</p>', {"a": 1, "b": 2}, evaluator)
        assert str(root) == '<p title="1/{{ b }}">1 - {{ b }}</p>'
        ignored = [r.getMessage() for r in caplog.records if "Only the first token" in r.getMessage()]
        assert ignored == [
            "Only the first token on <p title> is resolved; ignoring 1 more",
            "Only the first token on <p> is resolved; ignoring 1 more",
        ]

    def test_html_replaces_parent_children(self, soup, evaluator) -> None:
        root, _ = _walk(
            soup, "<div><p>{{ html:body }}<i>old</i></p><span>{{ x }}</span></div>",
            {"body": "<b>new</b>", "x": "y"}, evaluator,
        )
        assert str(root) == "<div><p><b>new</b></p><span>y</span></div>"

    def test_html_markup_is_not_walked_again(self, soup, evaluator) -> None:
        root, _ = _walk(soup, "<p>{{ html:body }}</p>", {"body": "<b>{{ x }}</b>", "x": "no"}, evaluator)
        assert str(root) == "<p><b>{{ x }}</b></p>"

    def test_comments_are_left_alone(self, soup, evaluator) -> None:
        root, _ = _walk(soup, "<p><!-- {{ name }} -->{{ name }}</p>", {"name": "Ada"}, evaluator)
        assert str(root) == "<p><!-- {{ name }} -->Ada</p>"

    def test_nested_elements_are_visited(self, soup, evaluator) -> None:
        root, _ = _walk(soup, "<ul><li><b>{{ a }}</b></li><li>{{ b.c }}</li></ul>", {"a": 1, "b": {"c": 2}}, evaluator)
        assert str(root) == "<ul><li><b>1</b></li><li>2</li></ul>"


class TestAttributes:
    def test_attribute_replacement_and_concat(self, soup, evaluator) -> None:
        root, _ = _walk(
            soup, '<a href="/users/{{ concat:id }}/edit" title="{{ name }}">x</a>',
            {"id": 7, "name": "Ada"}, evaluator,
        )
        assert root["href"] == "/users/7/edit"
        assert root["title"] == "Ada"

    def test_multi_valued_attribute_is_one_value(self, soup, evaluator) -> None:
        root, _ = _walk(soup, '<p class="row {{ concat:kind }}">x</p>', {"kind": "odd"}, evaluator)
        assert root["class"] == "row odd"

    @pytest.mark.parametrize("flag", ["", "false", "0", "null", "  ", False, None, 0])
    def test_boolean_attribute_removed_when_falsey(self, soup, evaluator, flag) -> None:
        root, _ = _walk(soup, '<input checked="{{ boolean:flag }}" name="n">', {"flag": flag}, evaluator)
        assert not root.has_attr("checked")
        assert root["name"] == "n"

    @pytest.mark.parametrize("flag", [True, "yes", 1, "checked"])
    def test_boolean_attribute_kept_when_truthy(self, soup, evaluator, flag) -> None:
        root, _ = _walk(soup, '<input checked="{{ boolean:flag }}">', {"flag": flag}, evaluator)
        assert root["checked"] == "checked"

    def test_boolean_missing_value_removes_attribute(self, soup, evaluator) -> None:
        root, _ = _walk(soup, '<option selected="{{ boolean:missing }}">x</option>', {}, evaluator)
        assert not root.has_attr("selected")


class TestIsolation:
    """A failing node is logged, recorded and left untouched."""

    def test_malformed_token_left_as_is(self, soup, evaluator, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="microdata_template.core.template.walker"):
            root, walker = _walk(soup, "<div><p>{{ join:(a, b }}</p><p>{{ ok }}</p></div>", {"ok": "fine"}, evaluator)
        assert str(root) == "<div><p>{{ join:(a, b }}</p><p>fine</p></div>"
        (diag,) = walker.diagnostics
        assert isinstance(diag.error, ExpressionSyntaxError)
        assert diag.node == "p#text"
        assert diag.attribute is None
        assert "left unresolved" in caplog.text

    def test_transform_failure_isolated_per_attribute(self, soup, evaluator) -> None:
        root, walker = _walk(
            soup, '<p title="{{ join:name }}" lang="{{ code }}">x</p>', {"name": "Ada", "code": "en"}, evaluator,
        )
        assert root["title"] == "{{ join:name }}"
        assert root["lang"] == "en"
        (diag,) = walker.diagnostics
        assert isinstance(diag.error, TransformError)
        assert diag.attribute == "title"
        assert diag.to_dict()["context"]["transformer"] == "join"

    def test_unknown_transformer_isolated(self, soup, evaluator) -> None:
        root, walker = _walk(soup, "<p>{{ nope:VALUE }}</p>", "x", evaluator)
        assert str(root) == "<p>{{ nope:VALUE }}</p>"
        assert walker.diagnostics[0].to_dict()["code"] == "UnknownTransformerError"


class TestNestedDispatch:
    def test_nested_templates_are_dispatched_not_walked(self, soup, evaluator) -> None:
        calls: List[Tuple[str, object]] = []

        def nested(node, ctx):
            calls.append((node["itemref"], ctx.datum))

        datum = {"name": "outer", "children": []}
        root, _ = _walk(
            soup,
            '<div><p>{{ name }}</p><ul><li itemscope hidden itemref="children">{{ name }}</li></ul></div>',
            datum, evaluator, nested_renderer=nested,
        )
        assert calls == [("children", datum)]
        assert root.li.string == "{{ name }}"
        assert root.p.string == "outer"

    def test_walk_root_is_never_nested(self, soup, evaluator) -> None:
        calls = []
        root, _ = _walk(
            soup, '<li itemscope itemref="kids">{{ name }}</li>', {"name": "n"}, evaluator,
            nested_renderer=lambda node, ctx: calls.append(node),
        )
        assert calls == []
        assert root.string == "n"

    def test_strict_mode_nested_detection(self, soup, evaluator) -> None:
        calls = []
        _walk(
            soup, '<div><span itemscope itemref="a"></span><b itemscope hidden itemprop="b"></b></div>',
            {}, evaluator, nested_renderer=lambda node, ctx: calls.append(node.name), strict=True,
        )
        assert calls == ["b"]

    def test_nested_renderer_failure_is_recorded(self, soup, evaluator) -> None:
        def broken(node, ctx):
            raise ExpressionSyntaxError("bad source", expression="(")

        _, walker = _walk(
            soup, '<div><ul itemscope itemref="("></ul><p>{{ x }}</p></div>', {"x": 1}, evaluator,
            nested_renderer=broken,
        )
        assert walker.diagnostics[0].node == "ul"
        assert walker.diagnostics[0].expression == "("


class TestForinScan:
    def test_detects_forin_outside_nested_templates(self, soup) -> None:
        doc = soup('<dl><dt>{{ forin:KEY }}</dt><dd title="{{ VALUE }}"></dd></dl>')
        assert requests_forin(doc.dl)
        assert list(iter_expressions(doc.dl)) == ["forin:KEY", "VALUE"]

    def test_ignores_forin_inside_nested_templates(self, soup) -> None:
        doc = soup('<dl><dt>{{ KEY }}</dt><dd itemscope itemref="x">{{ forin:KEY }}</dd></dl>')
        assert not requests_forin(doc.dl)

    def test_ignores_malformed_tokens(self, soup) -> None:
        doc = soup("<p>{{ (a }}</p>")
        assert not requests_forin(doc.p)
