"""
Transformers command.

SUMMARY: List the transformers available to templates
"""

from __future__ import annotations

import argparse
import sys

from microdata_template.cli import (
    OutputFormatter,
    add_config_flag,
    add_json_flag,
    add_transformers_flag,
    build_engine,
)
from microdata_template.core.exceptions import TemplateError
from microdata_template.core.template.transformers import BUILTIN_TRANSFORMERS

SUMMARY = "List the transformers available to templates"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register CLI arguments for ``microdata-template transformers``."""
    add_transformers_flag(parser)
    add_config_flag(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    """List built-in and loaded transformer names."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        engine = build_engine(args)
    except TemplateError as e:
        formatter.error(e, error_code="transformers_error")
        return 1
    names = engine.transformer_names

    if formatter.json_mode:
        formatter.json_output({
            "transformers": [
                {"name": name, "builtin": name in BUILTIN_TRANSFORMERS}
                for name in names
            ],
            "count": len(engine.registry),
        })
        return 0

    formatter.text(f"{len(engine.registry)} transformer(s):")
    for name in names:
        suffix = "" if name in BUILTIN_TRANSFORMERS else "  (loaded)"
        formatter.text(f"  {name}{suffix}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
