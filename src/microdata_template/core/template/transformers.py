"""Transformer registry for token values.

A transformer is a named callable applied to a resolved token value before
it is written into the tree:

    <span>{{ toLocaleString:amount }}</span>     ->  1,234,567

Transformers receive ``(value, index)``; callables that take a single
positional argument are called with the value only.

    registry = TransformerRegistry()

    @registry.transformer("shout")
    def shout(value, index):
        return str(value).upper()

Names that collide with modifier keywords (html, concat, boolean, forin)
or with an existing transformer are rejected, never overwritten.
"""
from __future__ import annotations

import inspect
import json
import logging
import math
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, List, Optional

from microdata_template.core.exceptions import TransformError, UnknownTransformerError

from .grammar import MODIFIERS, NAME_PATTERN

logger = logging.getLogger(__name__)

TransformerType = Callable[..., Any]


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def to_text(value: Any) -> str:
    """Render a resolved value as node text."""
    if value is None:
        return ""
    if value is True or value is False:
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, default=str)
    return str(value)


def is_truthy(value: Any) -> bool:
    """Truthiness as markup authors expect it: containers are always present."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return not (value == 0 or (isinstance(value, float) and math.isnan(value)))
    if isinstance(value, str):
        return value != ""
    return True


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


# ---------------------------------------------------------------------------
# Built-in transformers
# ---------------------------------------------------------------------------


def join(value: Any, index: int = 0) -> str:
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"join expects a list, got {type(value).__name__}")
    return ", ".join(to_text(v) for v in value)


def to_locale_string(value: Any, index: int = 0) -> Any:
    """Insert grouping separators: 1234567.890 becomes 1,234,567.89."""
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}"
    number = _as_number(value)
    if number is None:
        return value
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.3f}".rstrip("0").rstrip(".")


def parse_date_to_time_value(value: Any, index: int = 0) -> Any:
    """Date text to epoch milliseconds.

    Numeric values pass through; anything unparseable becomes "now".
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value or "").strip()
    if text:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
        if parsed is None:
            try:
                parsed = parsedate_to_datetime(text)
            except (TypeError, ValueError, IndexError):
                parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return int(parsed.timestamp() * 1000)
        number = _as_number(text)
        if number is not None:
            return int(number) if number.is_integer() else number
    return int(time.time() * 1000)


def to_mebibytes(value: Any, index: int = 0) -> str:
    """Byte count to MiB with two decimals (half rounds up)."""
    mib = math.floor(float(value) / 10485.76 + 0.5) / 100
    return f"{mib:.2f}"


def exists(value: Any, index: int = 0) -> str:
    return "true" if is_truthy(value) else "false"


def absent(value: Any, index: int = 0) -> str:
    return "false" if is_truthy(value) else "true"


def combine_string(values: Any, index: int = 0) -> str:
    if not isinstance(values, (list, tuple)):
        return ""
    return "".join(to_text(v) for v in values)


BUILTIN_TRANSFORMERS: Dict[str, TransformerType] = {
    "join": join,
    "toLocaleString": to_locale_string,
    "parseDateToTimeValue": parse_date_to_time_value,
    "toMebibytes": to_mebibytes,
    "exists": exists,
    "absent": absent,
    "combineString": combine_string,
}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _accepts_index(func: TransformerType) -> bool:
    try:
        params = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return True
    positional = 0
    for param in params:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 2


class TransformerRegistry:
    """Per-engine registry of named transformers."""

    def __init__(self, defaults: bool = True) -> None:
        """Initialize the registry, seeded with the built-ins unless ``defaults`` is False."""
        self._transformers: Dict[str, TransformerType] = {}
        self._wants_index: Dict[str, bool] = {}
        if defaults:
            for name, func in BUILTIN_TRANSFORMERS.items():
                self._store(name, func)

    def _store(self, name: str, func: TransformerType) -> None:
        self._transformers[name] = func
        self._wants_index[name] = _accepts_index(func)

    def register(self, name: str, func: TransformerType) -> bool:
        """Add a transformer.

        Returns:
            True if stored; False if the name is taken, reserved or invalid,
            or ``func`` is not callable
        """
        if not isinstance(name, str) or not NAME_PATTERN.match(name):
            logger.debug("Rejected transformer with invalid name %r", name)
            return False
        if name in MODIFIERS:
            logger.debug("Rejected transformer %r: reserved modifier name", name)
            return False
        if name in self._transformers:
            logger.debug("Rejected transformer %r: already registered", name)
            return False
        if not callable(func):
            logger.debug("Rejected transformer %r: not callable", name)
            return False
        self._store(name, func)
        return True

    def transformer(self, name: str) -> Callable[[TransformerType], TransformerType]:
        """Decorator form of :meth:`register`.

        A rejected registration is logged and the function is returned unchanged.
        """
        def decorator(func: TransformerType) -> TransformerType:
            if not self.register(name, func):
                logger.warning("Transformer %r was not registered", name)
            return func
        return decorator

    def get(self, name: str) -> Optional[TransformerType]:
        return self._transformers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._transformers

    def __len__(self) -> int:
        return len(self._transformers)

    def names(self) -> List[str]:
        """List all registered transformer names."""
        return list(self._transformers.keys())

    def copy(self) -> "TransformerRegistry":
        clone = TransformerRegistry(defaults=False)
        clone._transformers = dict(self._transformers)
        clone._wants_index = dict(self._wants_index)
        return clone

    def apply(self, name: str, value: Any, index: int) -> Any:
        """Run one transformer on ``value``.

        Raises:
            UnknownTransformerError: if ``name`` is not registered
            TransformError: if the transformer raises
        """
        func = self._transformers.get(name)
        if func is None:
            raise UnknownTransformerError(name)
        try:
            if self._wants_index[name]:
                return func(value, index)
            return func(value)
        except Exception as exc:
            raise TransformError(f"{name}() failed: {exc}", transformer=name) from exc


__all__ = [
    "TransformerType",
    "TransformerRegistry",
    "BUILTIN_TRANSFORMERS",
    "to_text",
    "is_truthy",
    "join",
    "to_locale_string",
    "parse_date_to_time_value",
    "to_mebibytes",
    "exists",
    "absent",
    "combine_string",
]
