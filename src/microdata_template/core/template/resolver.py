"""Object-path resolution and property access on data contexts.

The empty string is the universal "miss" result: nothing in here raises on
absent keys, ``None`` values or out-of-range indexes.
"""
from __future__ import annotations

import re
from collections import ChainMap
from collections.abc import Mapping
from typing import Any, List

from .grammar import NOTATION_PATTERN, strip_quotes

MISS = ""

_INDEX_PATTERN = re.compile(r"[0-9]+")
_SCALARS = (str, bytes, int, float, bool)
_MISSING = object()


def split_notation(notation: str) -> List[str]:
    """Split ``a.b[0]['c']`` into ``["a", "b", "0", "c"]``."""
    return [strip_quotes(seg) for seg in NOTATION_PATTERN.split(notation.strip()) if seg]


def _step(obj: Any, segment: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(segment, _MISSING)
    if isinstance(obj, (list, tuple)):
        if _INDEX_PATTERN.fullmatch(segment):
            index = int(segment)
            return obj[index] if index < len(obj) else _MISSING
        return _MISSING
    if isinstance(obj, _SCALARS) or segment.startswith("_"):
        return _MISSING
    return getattr(obj, segment, _MISSING)


def resolve_path(data: Any, notation: str) -> Any:
    """Walk ``data`` along a dotted/bracketed address.

    Returns:
        The value at the address, or ``MISS`` ("") when any step fails
    """
    current = data
    for segment in split_notation(notation):
        if current is None:
            return MISS
        current = _step(current, segment)
        if current is _MISSING:
            return MISS
    return MISS if current is None else current


def is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, _SCALARS)


def is_object(value: Any) -> bool:
    """Mappings and attribute-bearing objects render with the object strategy."""
    if isinstance(value, Mapping):
        return True
    return not is_scalar(value) and not isinstance(value, (list, tuple)) and hasattr(value, "__dict__")


def iter_properties(obj: Any, show_heritage: bool = False) -> List[str]:
    """Property names of ``obj`` in declaration order.

    Own properties only unless ``show_heritage``: for a ChainMap the parent
    maps are inherited, for objects the class-level public attributes are.
    """
    if isinstance(obj, ChainMap) and not show_heritage:
        return list(obj.maps[0].keys()) if obj.maps else []
    if isinstance(obj, Mapping):
        return list(obj.keys())
    own = [name for name in getattr(obj, "__dict__", {}) if not name.startswith("_")]
    if not show_heritage:
        return own
    inherited = [
        name
        for name in dir(obj)
        if not name.startswith("_") and name not in own and not callable(getattr(obj, name, None))
    ]
    return own + inherited


def has_property(obj: Any, name: str, show_heritage: bool = False) -> bool:
    if isinstance(obj, ChainMap) and not show_heritage:
        return bool(obj.maps) and name in obj.maps[0]
    if isinstance(obj, Mapping):
        return name in obj
    if is_scalar(obj) or isinstance(obj, (list, tuple)) or name.startswith("_"):
        return False
    if name in getattr(obj, "__dict__", {}):
        return True
    return show_heritage and hasattr(obj, name) and not callable(getattr(obj, name))


def get_property(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, MISS)
    return getattr(obj, name, MISS)


__all__ = [
    "MISS",
    "split_notation",
    "resolve_path",
    "is_scalar",
    "is_object",
    "iter_properties",
    "has_property",
    "get_property",
]
