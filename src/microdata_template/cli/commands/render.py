"""
Render command.

SUMMARY: Render a template file with JSON or YAML data
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from microdata_template.cli import (
    OutputFormatter,
    add_config_flag,
    add_json_flag,
    add_output_flag,
    add_select_flag,
    add_transformers_flag,
    build_engine,
    load_data,
    read_markup,
    write_output,
)
from microdata_template.core.exceptions import TemplateError

SUMMARY = "Render a template file with JSON or YAML data"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register CLI arguments for ``microdata-template render``."""
    parser.add_argument("template", help="HTML file holding the template")
    parser.add_argument("data", help="JSON file (or .yml/.yaml) with the data to bind")
    add_select_flag(parser)
    parser.add_argument(
        "--key",
        help="Render only this address of the data (e.g. StatePopulations or rows[0])",
    )
    add_output_flag(parser)
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Require itemscope + hidden on the template root",
    )
    parser.add_argument(
        "--show-heritage",
        action="store_true",
        help="Include inherited properties when iterating objects",
    )
    parser.add_argument(
        "--no-strip-bom",
        action="store_true",
        help="Keep a leading byte order mark in the template markup",
    )
    add_transformers_flag(parser)
    add_config_flag(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        markup = read_markup(Path(args.template))
        data = load_data(Path(args.data), args.key)
        document = engine.render_markup(markup, data, args.select)
    except TemplateError as e:
        formatter.error(e, error_code="render_error")
        return 1

    if formatter.json_mode:
        # stdout carries the status payload, so the document goes in it unless written to a file.
        target = write_output(document, args.output) if args.output else None
        payload = {
            "template": args.template,
            "output": str(target) if target else None,
            "diagnostics": [d.to_dict() for d in engine.diagnostics],
        }
        if target is None:
            payload["document"] = document
        formatter.success(payload, "")
        return 0

    formatter.diagnostics(engine.diagnostics)
    target = write_output(document, args.output)
    if target is not None:
        formatter.text(f"Rendered {args.template} -> {target}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
