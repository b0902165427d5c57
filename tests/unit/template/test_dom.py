"""Tests for marker detection and tree operations."""
from __future__ import annotations

from microdata_template.core.template import dom


class TestParsing:
    def test_strips_byte_order_mark(self) -> None:
        soup = dom.parse_html("\ufeff<p>x</p>")
        assert str(soup) == "<p>x</p>"

    def test_class_attribute_is_plain_text(self, soup) -> None:
        tag = soup('<p class="a {{ b }}">x</p>').p
        assert tag["class"] == "a {{ b }}"


class TestMarkers:
    def test_template_root(self, soup) -> None:
        doc = soup('<div><p itemscope hidden></p><p itemscope></p></div>')
        first, second = doc.find_all("p")
        assert dom.is_template_root(first)
        assert not dom.is_template_root(second)

    def test_nested_template_relaxed(self, soup) -> None:
        tag = soup('<li itemscope itemref="children"></li>').li
        assert dom.is_nested_template(tag)
        assert not dom.is_nested_template(tag, strict=True)

    def test_nested_template_strict_accepts_itemprop(self, soup) -> None:
        tag = soup('<li itemscope hidden itemprop="children"></li>').li
        assert dom.is_nested_template(tag, strict=True)
        assert not dom.is_nested_template(tag)
        assert dom.nested_source(tag, strict=True) == "children"
        assert dom.nested_source(tag) is None

    def test_find_template_root(self, soup) -> None:
        doc = soup('<section><ul><li itemscope hidden>x</li></ul></section>')
        section = doc.section
        assert dom.find_template_root(section) is section
        assert dom.find_template_root(section, strict=True) is doc.li
        assert dom.find_template_root(soup("<p>none</p>").p, strict=True) is None


class TestTreeOperations:
    def test_clone_is_detached_deep_copy(self, soup) -> None:
        tag = soup('<ul><li itemscope hidden><b>x</b></li></ul>').li
        copy = dom.clone(tag)
        assert copy.parent is None
        copy.b.string = "y"
        assert tag.b.string == "x"

    def test_denude_strips_markers_only(self, soup) -> None:
        tag = soup('<li itemscope hidden itemref="a" itemprop="p" class="c">x</li>').li
        dom.denude(tag)
        assert tag.attrs == {"itemprop": "p", "class": "c"}

    def test_clear_after_and_insert_after(self, soup) -> None:
        doc = soup("<ul><li id='t'></li><li>old</li> <li>old</li></ul>")
        anchor = doc.find(id="t")
        assert dom.clear_after(anchor) == 3
        dom.insert_after(anchor, [soup("<li>a</li>").li, soup("<li>b</li>").li])
        assert str(doc.ul) == '<ul><li id="t"></li><li>a</li><li>b</li></ul>'

    def test_set_inner_html(self, soup) -> None:
        doc = soup("<div>{{ x }}</div>")
        dom.set_inner_html(doc.div, "<b>bold</b> text")
        assert str(doc.div) == "<div><b>bold</b> text</div>"

    def test_iter_nested_templates_outermost_only(self, soup) -> None:
        doc = soup(
            '<div><ul itemscope itemref="a"><li itemscope itemref="b"></li></ul>'
            '<ol itemscope itemref="c"></ol></div>'
        )
        found = [tag.name for tag in dom.iter_nested_templates(doc.div)]
        assert found == ["ul", "ol"]
