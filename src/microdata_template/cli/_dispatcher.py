"""
Auto-discovery CLI dispatcher for microdata-template.

Scans ``cli/commands`` for command modules and registers them.
Adding a new command = just add a .py file exposing SUMMARY, register_args
and main.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any

from microdata_template.cli._args import add_verbose_flag
from microdata_template.core.exceptions import ConfigError

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@lru_cache(maxsize=1)
def discover_root_commands() -> dict[str, dict[str, Any]]:
    """Discover top-level commands under cli/commands."""
    commands_dir = Path(__file__).parent / "commands"
    commands: dict[str, dict[str, Any]] = {}

    if not commands_dir.exists():
        return commands

    for item in sorted(commands_dir.glob("*.py")):
        if item.name.startswith("_"):
            continue

        cmd_name = item.stem
        try:
            module = importlib.import_module(f"microdata_template.cli.commands.{cmd_name}")
        except ImportError as e:
            print(f"Warning: Could not import command {cmd_name}: {e}", file=sys.stderr)
            continue
        commands[cmd_name] = {
            "module": module,
            "summary": getattr(module, "SUMMARY", cmd_name),
            "register_args": getattr(module, "register_args", None),
            "main": getattr(module, "main", None),
        }

    return commands


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser with auto-discovered commands.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="microdata-template",
        description="Render microdata-marked HTML templates from JSON or YAML data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    add_verbose_flag(parser)

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
        metavar="<command>",
    )

    for cmd_name, cmd_info in sorted(discover_root_commands().items()):
        primary_name = cmd_name.replace("_", "-")
        aliases = [cmd_name] if primary_name != cmd_name else []
        cmd_parser = subparsers.add_parser(
            primary_name,
            aliases=aliases,
            help=cmd_info["summary"],
        )
        if cmd_info["register_args"]:
            cmd_info["register_args"](cmd_parser)
        if cmd_info["main"]:
            cmd_parser.set_defaults(_func=cmd_info["main"])

    return parser


def _get_version() -> str:
    """Get package version string."""
    try:
        from microdata_template import __version__
        return __version__
    except ImportError:
        return "unknown"


def _configured_log_level(args: argparse.Namespace) -> int:
    """Level from ``--verbose`` or the ``logging.level`` setting."""
    if getattr(args, "verbose", False):
        return logging.DEBUG
    from microdata_template.core.config import ConfigManager

    try:
        name = ConfigManager(getattr(args, "config", None)).get("logging.level", "WARNING")
    except ConfigError:
        # The command reports the broken config itself.
        return logging.WARNING
    return getattr(logging, str(name).upper(), logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the microdata-template CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(list(argv))

    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(level=_configured_log_level(args), format=LOG_FORMAT, stream=sys.stderr)

    func: Callable[[argparse.Namespace], int] | None = getattr(args, "_func", None)
    if func is None:
        parser.print_help()
        return 1

    try:
        return func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
