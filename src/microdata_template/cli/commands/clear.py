"""
Clear command.

SUMMARY: Remove previously rendered output from a template file
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
    build_engine,
    read_markup,
    write_output,
)
from microdata_template.core.exceptions import TemplateError

SUMMARY = "Remove previously rendered output from a template file"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register CLI arguments for ``microdata-template clear``."""
    parser.add_argument("template", help="HTML file holding a rendered template")
    add_select_flag(parser)
    add_output_flag(parser)
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Require itemscope + hidden on the template root",
    )
    add_config_flag(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        soup = engine.parse(read_markup(Path(args.template)))
        element = soup.select_one(args.select)
        if element is None:
            raise TemplateError(f"No element matches {args.select!r}", context={"selector": args.select})
    except TemplateError as e:
        formatter.error(e, error_code="clear_error")
        return 1

    engine.clear(element)
    document = str(soup)

    if formatter.json_mode:
        target = write_output(document, args.output) if args.output else None
        payload = {"template": args.template, "output": str(target) if target else None}
        if target is None:
            payload["document"] = document
        formatter.success(payload, "")
        return 0

    target = write_output(document, args.output)
    if target is not None:
        formatter.text(f"Cleared {args.template} -> {target}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
