"""Depth-first tree walker that resolves tokens in a cloned fragment.

The walker visits a node and its descendants in pre-order. Nested templates
are not entered: they are handed to the nested renderer together with the
current context. A failure on one text node or attribute is logged,
recorded as a diagnostic and leaves that source text untouched; the walk
carries on with the siblings.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from bs4 import PageElement, Tag

from microdata_template.core.exceptions import ExpressionSyntaxError, TemplateError

from . import dom
from .evaluator import RenderContext, TokenEvaluator
from .grammar import (
    MODIFIER_FORIN,
    TOKEN_PATTERN,
    extract_token,
    is_falsey,
    parse_expression,
    splice_token,
)

logger = logging.getLogger(__name__)

NestedRenderer = Callable[[Tag, RenderContext], None]


@dataclass
class RenderDiagnostic:
    """A non-fatal problem found while resolving one node."""

    node: str
    expression: str
    error: Exception
    attribute: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "node": self.node,
            "attribute": self.attribute,
            "expression": self.expression,
            "error": str(self.error),
            "code": self.error.__class__.__name__,
        }
        if isinstance(self.error, TemplateError):
            payload["context"] = self.error.context
        return payload


class TreeWalker:
    """Resolve every token below a fragment root for one render context."""

    def __init__(
        self,
        evaluator: TokenEvaluator,
        nested_renderer: Optional[NestedRenderer] = None,
        *,
        strict: bool = False,
        parser: str = "html.parser",
        strip_bom: bool = True,
    ) -> None:
        self.evaluator = evaluator
        self.nested_renderer = nested_renderer
        self.strict = strict
        self.parser = parser
        self.strip_bom = strip_bom
        self.diagnostics: List[RenderDiagnostic] = []

    def walk(self, root: Tag, ctx: RenderContext) -> None:
        self._visit(root, ctx, is_root=True)

    def _visit(self, node: PageElement, ctx: RenderContext, is_root: bool = False) -> None:
        if dom.is_text(node):
            self._rewrite_text(node, ctx)
            return
        if not isinstance(node, Tag):
            return
        if not is_root and dom.is_nested_template(node, self.strict):
            self.dispatch_nested(node, ctx)
            return
        self._rewrite_attributes(node, ctx)
        for child in list(node.children):
            # Detached by an html replacement or a nested template's clear.
            if child.parent is not node:
                continue
            self._visit(child, ctx)

    def dispatch_nested(self, node: Tag, ctx: RenderContext) -> None:
        if self.nested_renderer is None:
            return
        try:
            self.nested_renderer(node, ctx)
        except Exception as exc:
            self._report(node.name, dom.nested_source(node, self.strict) or "", exc)

    def _rewrite_text(self, node: Any, ctx: RenderContext) -> None:
        raw = str(node)
        inner = extract_token(raw)
        if inner is None:
            return
        parent = node.parent
        parent_name = parent.name if parent is not None else ""
        _log_ignored_tokens(raw, f"<{parent_name}>")
        try:
            result = self.evaluator.evaluate(parse_expression(inner), ctx)
            if result.html:
                if parent is not None:
                    dom.set_inner_html(parent, result.text, parser=self.parser, strip_bom=self.strip_bom)
            elif result.concat:
                dom.set_text(node, splice_token(raw, result.text))
            else:
                dom.set_text(node, result.text)
        except Exception as exc:
            self._report(f"{parent_name}#text", inner, exc)

    def _rewrite_attributes(self, tag: Tag, ctx: RenderContext) -> None:
        toggles: List[Tuple[str, Any]] = []
        for name in list(tag.attrs):
            raw = dom.get_attr(tag, name)
            inner = extract_token(raw)
            if inner is None:
                continue
            _log_ignored_tokens(raw, f"<{tag.name} {name}>")
            try:
                result = self.evaluator.evaluate(parse_expression(inner), ctx)
                if result.boolean:
                    toggles.append((name, result.value))
                elif result.concat:
                    dom.set_attr(tag, name, splice_token(raw, result.text))
                else:
                    dom.set_attr(tag, name, result.text)
            except Exception as exc:
                self._report(tag.name, inner, exc, attribute=name)

        for name, value in toggles:
            dom.remove_attr(tag, name)
            if not is_falsey(value):
                dom.set_attr(tag, name, name)

    def _report(self, node: str, expression: str, error: Exception, attribute: Optional[str] = None) -> None:
        where = f"<{node}>" if attribute is None else f"<{node} {attribute}>"
        logger.warning("Token {{ %s }} on %s left unresolved: %s", expression, where, error)
        self.diagnostics.append(RenderDiagnostic(node, expression, error, attribute))


def _log_ignored_tokens(raw: str, where: str) -> None:
    extra = TOKEN_PATTERN.findall(raw)[1:]
    if extra:
        logger.debug("Only the first token on %s is resolved; ignoring %d more", where, len(extra))


def iter_expressions(root: Tag, strict: bool = False) -> Iterator[str]:
    """Yield the token expressions of ``root``, skipping nested templates."""
    stack: List[PageElement] = [root]
    while stack:
        node = stack.pop()
        if dom.is_text(node):
            inner = extract_token(str(node))
            if inner is not None:
                yield inner
            continue
        if not isinstance(node, Tag):
            continue
        if node is not root and dom.is_nested_template(node, strict):
            continue
        for name in node.attrs:
            inner = extract_token(dom.get_attr(node, name))
            if inner is not None:
                yield inner
        stack.extend(reversed(list(node.children)))


def requests_forin(root: Tag, strict: bool = False) -> bool:
    """True when any token of the fragment carries the ``forin`` modifier."""
    for inner in iter_expressions(root, strict):
        try:
            if parse_expression(inner).has(MODIFIER_FORIN):
                return True
        except ExpressionSyntaxError:
            continue
    return False


__all__ = [
    "NestedRenderer",
    "RenderDiagnostic",
    "TreeWalker",
    "iter_expressions",
    "requests_forin",
]
