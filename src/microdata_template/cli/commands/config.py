"""
Config command.

SUMMARY: Show the effective engine configuration

Displays the merged configuration from bundled defaults, an optional YAML
file and MICRODATA_TEMPLATE_* environment variables.
"""

from __future__ import annotations

import argparse
import sys

import yaml

from microdata_template.cli import OutputFormatter, add_config_flag, add_json_flag
from microdata_template.core.config import ConfigManager
from microdata_template.core.exceptions import ConfigError

SUMMARY = "Show the effective engine configuration"


def _nest_key(key: str, value):
    """Nest a dot-notation key into a YAML/JSON-friendly mapping."""
    parts = [p for p in str(key).split(".") if p]
    out = value
    for part in reversed(parts):
        out = {part: out}
    return out


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "key",
        nargs="?",
        help="Specific configuration key to show (e.g., 'template.parser')",
    )
    add_config_flag(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    """Show configuration - delegates to ConfigManager."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        config_data = ConfigManager(getattr(args, "config", None)).load_config()
    except ConfigError as e:
        formatter.error(e, error_code="config_error")
        return 1

    if args.key:
        value = config_data
        for part in args.key.split("."):
            if not isinstance(value, dict) or part not in value:
                formatter.error(KeyError(args.key), f"Key not found: {args.key}", error_code="key_not_found")
                return 1
            value = value[part]
        config_data = _nest_key(args.key, value)

    if formatter.json_mode:
        formatter.json_output(config_data)
    else:
        formatter.text(
            yaml.safe_dump(
                config_data,
                default_flow_style=False,
                sort_keys=True,
                allow_unicode=True,
            ).rstrip()
        )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    cli_args = parser.parse_args()
    sys.exit(main(cli_args))
