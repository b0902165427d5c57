"""Dynamic transformer module loading.

Loads plain Python files that define transformer callables and registers
every public, non-class callable into a transformer registry:

    # my_transformers.py
    def shout(value, index):
        return str(value).upper()

    load_transformers(engine.registry, [Path("my_transformers.py")])

Later files cannot override names registered by earlier files or by the
built-in defaults; the registry rejects duplicates.
"""
from __future__ import annotations

import importlib.util
import logging
from pathlib import Path
from types import ModuleType
from typing import Callable, Iterable, Optional, Set

logger = logging.getLogger(__name__)


def iter_python_files(
    paths: Iterable[Path],
    exclude: Optional[Set[str]] = None,
) -> Iterable[Path]:
    """Yield *.py files in order, expanding directories (non-recursive).

    Args:
        paths: Files or directories to search (in order)
        exclude: Set of filenames to exclude (default: {"__init__.py"})

    Yields:
        Paths to Python files
    """
    if exclude is None:
        exclude = {"__init__.py"}

    for p in paths:
        p = Path(p)
        if p.is_dir():
            for path in sorted(p.glob("*.py")):
                if path.is_file() and path.name not in exclude:
                    yield path
        elif p.is_file() and p.suffix == ".py" and p.name not in exclude:
            yield p
        else:
            logger.warning("Transformer source not found or not a .py file: %s", p)


def load_module_from_path(
    path: Path,
    namespace: str = "microdata_template.dynamic",
) -> Optional[ModuleType]:
    """Dynamically load a Python module from file without adding to sys.modules.

    Args:
        path: Path to the .py file
        namespace: Module namespace prefix for the loaded module

    Returns:
        Loaded module or None on failure
    """
    module_name = f"{namespace}.{path.stem}"
    try:
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec and spec.loader:
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)  # type: ignore[attr-defined]
            return module
    except Exception as e:
        logger.warning("Failed to load module %s: %s", path, e)
    return None


def register_callables_from_module(
    module: ModuleType,
    register_fn: Callable[[str, Callable[..., object]], bool],
    exclude_prefixes: tuple[str, ...] = ("_",),
) -> int:
    """Register all public callables defined in a module.

    Names imported into the module from elsewhere are skipped so that
    ``from datetime import datetime`` does not leak in as a transformer.

    Returns:
        Number of callables the registry accepted
    """
    count = 0
    for name in dir(module):
        if any(name.startswith(p) for p in exclude_prefixes):
            continue
        obj = getattr(module, name)
        if not callable(obj) or isinstance(obj, type):
            continue
        if getattr(obj, "__module__", None) != module.__name__:
            continue
        if register_fn(name, obj):
            count += 1
        else:
            logger.debug("Transformer %r from %s was not registered", name, module.__name__)
    return count


def load_transformers(
    registry: "TransformerRegistry",  # noqa: F821 - forward reference
    paths: Iterable[Path],
) -> int:
    """Load transformer files and register their callables into ``registry``.

    Returns:
        Number of transformers newly registered
    """
    total = 0
    for path in iter_python_files(paths):
        module = load_module_from_path(path)
        if module:
            total += register_callables_from_module(module, registry.register)
    return total


__all__ = [
    "iter_python_files",
    "load_module_from_path",
    "register_callables_from_module",
    "load_transformers",
]
