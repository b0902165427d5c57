"""Token resolution and tree rewriting for microdata templates.

- grammar: ``{{ ... }}`` token recognition and expression parsing
- resolver: dotted/bracketed addressing and property access
- transformers: named value transformers and their registry
- evaluator: resolves one expression against a render context
- walker: depth-first rewrite of a cloned fragment
- dom: marker detection and BeautifulSoup tree operations
- engine: data classification, cloning and nested dispatch
"""
from __future__ import annotations

from .engine import MicrodataTemplate, classify
from .evaluator import Evaluation, RenderContext, TokenEvaluator
from .grammar import (
    Alternation,
    Candidate,
    CandidateKind,
    Composition,
    TokenExpression,
    extract_token,
    is_falsey,
    parse_expression,
)
from .resolver import MISS, resolve_path
from .transformers import BUILTIN_TRANSFORMERS, TransformerRegistry
from .walker import RenderDiagnostic, TreeWalker

__all__ = [
    # Engine
    "MicrodataTemplate",
    "classify",
    # Evaluation
    "Evaluation",
    "RenderContext",
    "TokenEvaluator",
    # Grammar
    "Alternation",
    "Candidate",
    "CandidateKind",
    "Composition",
    "TokenExpression",
    "extract_token",
    "is_falsey",
    "parse_expression",
    # Resolution
    "MISS",
    "resolve_path",
    # Transformers
    "BUILTIN_TRANSFORMERS",
    "TransformerRegistry",
    # Walker
    "RenderDiagnostic",
    "TreeWalker",
]
