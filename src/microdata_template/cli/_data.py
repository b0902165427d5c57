"""Markup and data file helpers shared by the CLI commands."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from microdata_template.core.config import ConfigManager
from microdata_template.core.exceptions import TemplateError
from microdata_template.core.template.engine import MicrodataTemplate
from microdata_template.core.template.resolver import MISS, resolve_path
from microdata_template.core.utils.loader import load_transformers

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yml", ".yaml"}


def read_markup(path: Path) -> str:
    path = Path(path)
    if not path.is_file():
        raise TemplateError(f"Template file not found: {path}", context={"path": str(path)})
    return path.read_text(encoding="utf-8")


def load_data(path: Path, key: Optional[str] = None) -> Any:
    """Load JSON (or YAML for .yml/.yaml files), optionally narrowed to ``key``.

    ``key`` is an address such as ``StatePopulations`` or ``report.rows[0]``.
    """
    path = Path(path)
    if not path.is_file():
        raise TemplateError(f"Data file not found: {path}", context={"path": str(path)})
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise TemplateError(f"Cannot parse data file {path}: {exc}", context={"path": str(path)}) from exc

    if key:
        selected = resolve_path(data, key)
        if selected == MISS:
            raise TemplateError(f"Key {key!r} not found in {path}", context={"path": str(path), "key": key})
        return selected
    return data


def write_output(document: str, output: Optional[str] = None) -> Optional[Path]:
    """Write the document to ``output``; print it when no file is given."""
    if not output:
        print(document)
        return None
    target = Path(output)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(document, encoding="utf-8")
    return target


def build_engine(args: argparse.Namespace) -> MicrodataTemplate:
    """Engine from configuration, command line toggles and transformer files."""
    engine = MicrodataTemplate.from_config(getattr(args, "config", None))
    if getattr(args, "strict", False):
        engine.strict_standard = True
    if getattr(args, "show_heritage", False):
        engine.show_heritage = True
    if getattr(args, "no_strip_bom", False):
        engine.strip_bom = False

    paths = [Path(p) for p in getattr(args, "transformers", None) or []]
    if paths:
        added = load_transformers(engine.registry, paths)
        logger.debug("Registered %d transformer(s) from %d path(s)", added, len(paths))
    return engine


__all__ = ["read_markup", "load_data", "write_output", "build_engine"]
