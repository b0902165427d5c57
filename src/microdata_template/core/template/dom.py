"""Template identification and tree operations over BeautifulSoup.

Markers (fixed attribute names):
    itemscope   repeat marker; the element is a clone source
    hidden      co-required with itemscope to keep the source out of layout
    itemref     data-source expression of a nested template
    itemprop    microdata property name (strict mode: nested source fallback)
    itemid      record binder (strict-mode detection only)
    itemtype    schema (strict-mode detection only)
"""
from __future__ import annotations

import copy
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

MARKER_REPEAT = "itemscope"
MARKER_SOURCE = "itemref"
MARKER_PROPERTY = "itemprop"
MARKER_BINDER = "itemid"
MARKER_SCHEMA = "itemtype"
MARKER_HIDDEN = "hidden"

# Stripped from every clone so it is not mistaken for another template source.
DENUDE_MARKERS = (MARKER_REPEAT, MARKER_SOURCE, MARKER_HIDDEN)

BYTE_ORDER_MARK = "\ufeff"


def parse_html(markup: str, parser: str = "html.parser", strip_bom: bool = True) -> BeautifulSoup:
    """Parse markup into a soup whose attribute values are always plain strings."""
    if strip_bom and markup.startswith(BYTE_ORDER_MARK):
        markup = markup[len(BYTE_ORDER_MARK):]
    return BeautifulSoup(markup, parser, multi_valued_attributes=None)


def is_text(node: PageElement) -> bool:
    """Plain text nodes; comments, CDATA, doctypes and the like are skipped."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def has_marker(tag: PageElement, marker: str) -> bool:
    return isinstance(tag, Tag) and tag.has_attr(marker)


def is_template_root(tag: PageElement) -> bool:
    """A standards-compliant template root carries both itemscope and hidden."""
    return has_marker(tag, MARKER_REPEAT) and has_marker(tag, MARKER_HIDDEN)


def is_nested_template(tag: PageElement, strict: bool = False) -> bool:
    """A template inside a template: itemscope plus a data source marker.

    In strict mode the hidden marker is required and itemprop is accepted as
    the data source when itemref is absent.
    """
    if not has_marker(tag, MARKER_REPEAT):
        return False
    if not strict:
        return has_marker(tag, MARKER_SOURCE)
    return has_marker(tag, MARKER_HIDDEN) and (
        has_marker(tag, MARKER_SOURCE) or has_marker(tag, MARKER_PROPERTY)
    )


def nested_source(tag: Tag, strict: bool = False) -> Optional[str]:
    value = get_attr(tag, MARKER_SOURCE)
    if value is None and strict:
        value = get_attr(tag, MARKER_PROPERTY)
    return value


def find_template_root(element: Tag, strict: bool = False) -> Optional[Tag]:
    """Locate the template root for ``element``.

    Outside strict mode the element itself is the root. In strict mode the
    element must carry itemscope and hidden, otherwise its first such
    descendant is used; None when there is neither.
    """
    if not strict:
        return element
    if is_template_root(element):
        return element
    found = element.find(is_template_root)
    return found if isinstance(found, Tag) else None


def get_attr(tag: Tag, name: str) -> Optional[str]:
    value = tag.attrs.get(name)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def set_attr(tag: Tag, name: str, value: str) -> None:
    tag[name] = value


def remove_attr(tag: Tag, name: str) -> None:
    if name in tag.attrs:
        del tag[name]


def set_text(node: NavigableString, text: str) -> NavigableString:
    """Replace a text node's content, returning the new node."""
    replacement = NavigableString(text)
    node.replace_with(replacement)
    return replacement


def set_inner_html(tag: Tag, markup: str, parser: str = "html.parser", strip_bom: bool = True) -> None:
    """Replace all children of ``tag`` with parsed ``markup``."""
    fragment = parse_html(markup, parser=parser, strip_bom=strip_bom)
    # lxml and html5lib wrap fragments in <html><body>.
    container = fragment.body if fragment.body is not None else fragment
    tag.clear()
    for child in list(container.contents):
        tag.append(child.extract())


def clone(tag: Tag) -> Tag:
    """Deep, detached copy of ``tag``."""
    return copy.copy(tag)


def denude(tag: Tag) -> Tag:
    """Strip the template markers from ``tag``."""
    for marker in DENUDE_MARKERS:
        remove_attr(tag, marker)
    return tag


def following_siblings(anchor: Tag) -> List[PageElement]:
    return list(anchor.next_siblings)


def clear_after(anchor: Tag) -> int:
    """Remove every sibling after ``anchor``; returns how many were removed."""
    removed = following_siblings(anchor)
    for sibling in removed:
        sibling.extract()
    return len(removed)


def insert_after(anchor: Tag, nodes: List[PageElement]) -> None:
    """Insert ``nodes`` after ``anchor`` in one batch, preserving order."""
    if nodes:
        anchor.insert_after(*nodes)


def iter_nested_templates(element: Tag, strict: bool = False) -> Iterator[Tag]:
    """Yield the outermost nested templates at or below ``element``."""
    if is_nested_template(element, strict):
        yield element
        return
    for child in list(element.children):
        if isinstance(child, Tag):
            yield from iter_nested_templates(child, strict)


__all__ = [
    "MARKER_REPEAT",
    "MARKER_SOURCE",
    "MARKER_PROPERTY",
    "MARKER_BINDER",
    "MARKER_SCHEMA",
    "MARKER_HIDDEN",
    "DENUDE_MARKERS",
    "parse_html",
    "is_text",
    "has_marker",
    "is_template_root",
    "is_nested_template",
    "nested_source",
    "find_template_root",
    "get_attr",
    "set_attr",
    "remove_attr",
    "set_text",
    "set_inner_html",
    "clone",
    "denude",
    "following_siblings",
    "clear_after",
    "insert_after",
    "iter_nested_templates",
]
