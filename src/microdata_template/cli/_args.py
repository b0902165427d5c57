"""Common CLI argument registration utilities.

This module provides reusable argument registration functions to reduce
duplication across CLI commands.
"""
from __future__ import annotations

import argparse

DEFAULT_SELECTOR = "[itemscope]"


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag (DEBUG logging).

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )


def add_config_flag(parser: argparse.ArgumentParser) -> None:
    """Add --config flag for an engine configuration YAML file."""
    parser.add_argument(
        "--config",
        type=str,
        help="YAML file merged over the bundled configuration defaults",
    )


def add_transformers_flag(parser: argparse.ArgumentParser) -> None:
    """Add --transformers flag (repeatable, files or directories)."""
    parser.add_argument(
        "--transformers",
        nargs="+",
        default=[],
        metavar="FILE",
        help="Python files or directories whose public functions are registered as transformers",
    )


def add_select_flag(parser: argparse.ArgumentParser) -> None:
    """Add --select flag for the template element CSS selector."""
    parser.add_argument(
        "--select",
        default=DEFAULT_SELECTOR,
        metavar="CSS",
        help=f"CSS selector of the template element (default: {DEFAULT_SELECTOR})",
    )


def add_output_flag(parser: argparse.ArgumentParser) -> None:
    """Add --output flag; the document is written to stdout when omitted."""
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Write the resulting document to this file",
    )


__all__ = [
    "DEFAULT_SELECTOR",
    "add_json_flag",
    "add_verbose_flag",
    "add_config_flag",
    "add_transformers_flag",
    "add_select_flag",
    "add_output_flag",
]
