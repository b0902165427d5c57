"""Token grammar for ``{{ ... }}`` expressions.

A token sits inside a text node or an attribute value:

    <li>{{ VALUE }}</li>
    <span>{{ toLocaleString:amount }}</span>
    <a href="/users/{{ concat:id }}">{{ name|login|'anonymous' }}</a>
    <input type="checkbox" checked="{{ boolean:active }}">
    <p>{{ combineString:(first, ' ', last) }}</p>

Grammar (colons, bars and commas inside quotes or parentheses do not split):

    EXPR        ::= (NAME ':')* REFERENCE
    REFERENCE   ::= '(' ALTERNATION (',' ALTERNATION)* ')' | ALTERNATION
    ALTERNATION ::= CANDIDATE ('|' CANDIDATE)*
    CANDIDATE   ::= address | property | quoted literal | INDEX | KEY | VALUE

Every NAME before the reference is either a modifier keyword (``html``,
``concat``, ``boolean``, ``forin``) or a transformer name. Candidates are
classified once at parse time; resolution against data happens in the
evaluator.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, FrozenSet, List, Optional, Tuple, Union

from microdata_template.core.exceptions import ExpressionSyntaxError

# First {{ ... }} occurrence; non-greedy so "{{a}} and {{b}}" yields "a".
TOKEN_PATTERN = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)

# Separators of a dotted / bracketed address: a.b[0]["c"]
NOTATION_PATTERN = re.compile(r"[.\[\]]+")

# Transformer and modifier names.
NAME_PATTERN = re.compile(r"^[A-Za-z_$][\w$-]*$")

QUOTES = ("'", '"')

MODIFIER_HTML = "html"
MODIFIER_CONCAT = "concat"
MODIFIER_BOOLEAN = "boolean"
MODIFIER_FORIN = "forin"
MODIFIERS: FrozenSet[str] = frozenset(
    {MODIFIER_HTML, MODIFIER_CONCAT, MODIFIER_BOOLEAN, MODIFIER_FORIN}
)

TOKEN_INDEX = "INDEX"
TOKEN_KEY = "KEY"
TOKEN_VALUE = "VALUE"
TOKEN_CONSTANTS: FrozenSet[str] = frozenset({TOKEN_INDEX, TOKEN_KEY, TOKEN_VALUE})

FALSEY_WORDS: FrozenSet[str] = frozenset({"false", "null", "undefined", "nan", "0"})


class CandidateKind(str, Enum):
    ADDRESS = "address"
    PROPERTY = "property"
    LITERAL = "literal"
    CONSTANT = "constant"


@dataclass(frozen=True)
class Candidate:
    """One alternative of an alternation, tagged with how it may resolve."""

    text: str
    kind: CandidateKind

    @property
    def literal(self) -> str:
        return strip_quotes(self.text)


@dataclass(frozen=True)
class Alternation:
    candidates: Tuple[Candidate, ...]


@dataclass(frozen=True)
class Composition:
    """Parenthetical argument list, resolved into a list of values."""

    arguments: Tuple[Alternation, ...]


Reference = Union[Alternation, Composition]


@dataclass(frozen=True)
class TokenExpression:
    """Parsed token: ``transforms`` are kept in declaration order."""

    source: str
    reference: Reference
    transforms: Tuple[str, ...] = ()
    modifiers: FrozenSet[str] = field(default_factory=frozenset)

    def has(self, modifier: str) -> bool:
        return modifier in self.modifiers


# ---------------------------------------------------------------------------
# Lexical helpers
# ---------------------------------------------------------------------------


def extract_token(raw: Optional[str]) -> Optional[str]:
    """Return the stripped inner text of the first token in ``raw``, or None."""
    if not raw:
        return None
    match = TOKEN_PATTERN.search(raw)
    if match is None:
        return None
    return match.group(1).strip()


def splice_token(raw: str, replacement: str) -> str:
    """Replace the first token in ``raw`` with ``replacement``, keeping the rest."""
    return TOKEN_PATTERN.sub(lambda _m: replacement, raw, count=1)


def strip_quotes(text: str) -> str:
    """Remove exactly one matching pair of surrounding quotes."""
    if len(text) >= 2 and text[0] in QUOTES and text[-1] == text[0]:
        return text[1:-1]
    return text


def is_quoted(text: str) -> bool:
    return len(text) >= 2 and text[0] in QUOTES and text[-1] == text[0]


def is_falsey(value: Any) -> bool:
    """Falsey test used by the ``boolean`` attribute modifier.

    Empty or whitespace-only text and the words false/null/undefined/nan/0
    (any case) are falsey, as are None, False, zero and NaN.
    """
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    text = str(value).strip().lower()
    return text == "" or text in FALSEY_WORDS


def split_top_level(text: str, separator: str, *, expression: Optional[str] = None) -> List[str]:
    """Split on ``separator`` outside quotes and parentheses.

    Raises:
        ExpressionSyntaxError: on unbalanced quotes or parentheses
    """
    parts: List[str] = []
    buf: List[str] = []
    quote: Optional[str] = None
    depth = 0
    for ch in text:
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in QUOTES:
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise ExpressionSyntaxError("Unbalanced ')'", expression=expression or text)
        elif ch == separator and depth == 0:
            parts.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    if quote:
        raise ExpressionSyntaxError(f"Unterminated {quote} quote", expression=expression or text)
    if depth:
        raise ExpressionSyntaxError("Unbalanced '('", expression=expression or text)
    parts.append("".join(buf))
    return parts


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def classify_candidate(text: str) -> Candidate:
    if is_quoted(text):
        return Candidate(text, CandidateKind.LITERAL)
    if text in TOKEN_CONSTANTS:
        return Candidate(text, CandidateKind.CONSTANT)
    if NOTATION_PATTERN.search(text):
        return Candidate(text, CandidateKind.ADDRESS)
    return Candidate(text, CandidateKind.PROPERTY)


def parse_alternation(text: str, *, expression: Optional[str] = None) -> Alternation:
    source = expression or text
    candidates: List[Candidate] = []
    for raw in split_top_level(text, "|", expression=source):
        part = raw.strip()
        if not part:
            raise ExpressionSyntaxError("Empty alternation candidate", expression=source)
        if not is_quoted(part) and ("(" in part or ")" in part):
            raise ExpressionSyntaxError(f"Unexpected parenthesis in {part!r}", expression=source)
        candidates.append(classify_candidate(part))
    return Alternation(tuple(candidates))


def _closing_paren(text: str) -> int:
    """Index of the parenthesis closing the one at ``text[0]``, or -1."""
    quote: Optional[str] = None
    depth = 0
    for i, ch in enumerate(text):
        if quote:
            if ch == quote:
                quote = None
        elif ch in QUOTES:
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def parse_composition(text: str, *, expression: Optional[str] = None) -> Composition:
    source = expression or text
    if _closing_paren(text) != len(text) - 1:
        raise ExpressionSyntaxError("Malformed parenthetical argument list", expression=source)
    inner = text[1:-1].strip()
    if not inner:
        return Composition(())
    arguments: List[Alternation] = []
    for raw in split_top_level(inner, ",", expression=source):
        arg = raw.strip()
        if not arg:
            raise ExpressionSyntaxError("Empty argument", expression=source)
        arguments.append(parse_alternation(arg, expression=source))
    return Composition(tuple(arguments))


@lru_cache(maxsize=512)
def parse_expression(inner: str) -> TokenExpression:
    """Parse the inside of a ``{{ ... }}`` token into a TokenExpression.

    Raises:
        ExpressionSyntaxError: if the expression is empty or malformed
    """
    source = (inner or "").strip()
    if not source:
        raise ExpressionSyntaxError("Empty token expression", expression=inner)

    segments = [s.strip() for s in split_top_level(source, ":", expression=source)]
    if any(not s for s in segments):
        raise ExpressionSyntaxError("Empty segment in transform chain", expression=source)

    *chain, ref_text = segments
    for name in chain:
        if not NAME_PATTERN.match(name):
            raise ExpressionSyntaxError(f"Invalid transformer name {name!r}", expression=source)

    reference: Reference
    if ref_text.startswith("("):
        reference = parse_composition(ref_text, expression=source)
    else:
        reference = parse_alternation(ref_text, expression=source)

    return TokenExpression(
        source=source,
        reference=reference,
        transforms=tuple(n for n in chain if n not in MODIFIERS),
        modifiers=frozenset(n for n in chain if n in MODIFIERS),
    )


__all__ = [
    "TOKEN_PATTERN",
    "NOTATION_PATTERN",
    "MODIFIERS",
    "MODIFIER_HTML",
    "MODIFIER_CONCAT",
    "MODIFIER_BOOLEAN",
    "MODIFIER_FORIN",
    "TOKEN_INDEX",
    "TOKEN_KEY",
    "TOKEN_VALUE",
    "TOKEN_CONSTANTS",
    "CandidateKind",
    "Candidate",
    "Alternation",
    "Composition",
    "TokenExpression",
    "extract_token",
    "splice_token",
    "strip_quotes",
    "is_falsey",
    "split_top_level",
    "classify_candidate",
    "parse_alternation",
    "parse_composition",
    "parse_expression",
]
