"""Token evaluation against a render context.

The evaluator turns a parsed TokenExpression plus the current
``(datum, index, key)`` into a value and the modifier directives the tree
walker needs to apply it:

    ctx = RenderContext(datum={"name": "Ada", "tags": ["x", "y"]}, index=0)
    evaluator.evaluate(parse_expression("join:tags"), ctx).text   # "x, y"
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .grammar import (
    MODIFIER_BOOLEAN,
    MODIFIER_CONCAT,
    MODIFIER_FORIN,
    MODIFIER_HTML,
    TOKEN_INDEX,
    TOKEN_KEY,
    TOKEN_VALUE,
    Alternation,
    Candidate,
    CandidateKind,
    Composition,
    TokenExpression,
    parse_expression,
)
from .resolver import MISS, get_property, has_property, resolve_path
from .transformers import TransformerRegistry, to_text


@dataclass
class RenderContext:
    """Iteration state for one cloned fragment.

    ``key`` is only set while iterating the properties of an object.
    """

    datum: Any
    index: int = 0
    key: Optional[str] = None
    show_heritage: bool = False

    def constant(self, name: str) -> Any:
        if name == TOKEN_INDEX:
            return self.index
        if name == TOKEN_KEY:
            return MISS if self.key is None else self.key
        if name == TOKEN_VALUE:
            if self.key is None:
                return self.datum
            return get_property(self.datum, self.key)
        return MISS

    def has(self, name: str) -> bool:
        return has_property(self.datum, name, self.show_heritage)


@dataclass
class Evaluation:
    """Result of evaluating one token."""

    value: Any
    html: bool = False
    concat: bool = False
    boolean: bool = False
    forin: bool = False

    @property
    def text(self) -> str:
        return to_text(self.value)


def select_candidate(candidates: Sequence[Candidate], ctx: RenderContext) -> Optional[Candidate]:
    """Pick the first candidate that resolves in ``ctx``.

    Per candidate, in order: an address that resolves (or names a direct
    key of the datum), a property present on the datum, a quoted literal
    (last candidate only), a token constant.
    """
    last = len(candidates) - 1
    for position, candidate in enumerate(candidates):
        kind = candidate.kind
        if kind is CandidateKind.ADDRESS:
            if resolve_path(ctx.datum, candidate.text) != MISS or ctx.has(candidate.text):
                return candidate
        elif kind is CandidateKind.LITERAL:
            if position == last:
                return candidate
        elif ctx.has(candidate.text):
            return candidate
        elif kind is CandidateKind.CONSTANT:
            return candidate
    return None


def resolve_candidate(candidate: Optional[Candidate], ctx: RenderContext) -> Any:
    if candidate is None:
        return MISS
    kind = candidate.kind
    if kind is CandidateKind.ADDRESS:
        value = resolve_path(ctx.datum, candidate.text)
        if value == MISS and ctx.has(candidate.text):
            return get_property(ctx.datum, candidate.text)
        return value
    if kind is CandidateKind.LITERAL:
        return candidate.literal
    if ctx.has(candidate.text):
        return get_property(ctx.datum, candidate.text)
    if kind is CandidateKind.CONSTANT:
        return ctx.constant(candidate.text)
    return MISS


def resolve_alternation(alternation: Alternation, ctx: RenderContext) -> Any:
    return resolve_candidate(select_candidate(alternation.candidates, ctx), ctx)


class TokenEvaluator:
    """Evaluate token expressions using a transformer registry."""

    def __init__(self, registry: TransformerRegistry) -> None:
        self.registry = registry

    def resolve_reference(self, expression: TokenExpression, ctx: RenderContext) -> Any:
        reference = expression.reference
        if isinstance(reference, Composition):
            return [resolve_alternation(arg, ctx) for arg in reference.arguments]
        return resolve_alternation(reference, ctx)

    def evaluate(self, expression: TokenExpression, ctx: RenderContext) -> Evaluation:
        """Resolve the reference and apply the transform chain right to left.

        ``a:b:VALUE`` evaluates to ``a(b(VALUE))``.

        Raises:
            UnknownTransformerError: if the chain names an unregistered transformer
            TransformError: if a transformer fails
        """
        value = self.resolve_reference(expression, ctx)
        for name in reversed(expression.transforms):
            value = self.registry.apply(name, value, ctx.index)
        modifiers = expression.modifiers
        return Evaluation(
            value=value,
            html=MODIFIER_HTML in modifiers,
            concat=MODIFIER_CONCAT in modifiers,
            boolean=MODIFIER_BOOLEAN in modifiers,
            forin=MODIFIER_FORIN in modifiers,
        )

    def resolve_value(self, expression_text: str, ctx: RenderContext) -> Any:
        """Evaluate a bare expression (no braces) and return the raw value."""
        return self.evaluate(parse_expression(expression_text), ctx).value


__all__ = [
    "RenderContext",
    "Evaluation",
    "select_candidate",
    "resolve_candidate",
    "resolve_alternation",
    "TokenEvaluator",
]
