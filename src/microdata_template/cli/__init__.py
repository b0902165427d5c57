"""
Microdata Template CLI package.

Provides the ``microdata-template`` command line with auto-discovery of
commands from the ``commands/`` folder.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _data: Markup and data file loading
"""
from ._output import OutputFormatter
from ._args import (
    add_json_flag,
    add_verbose_flag,
    add_config_flag,
    add_transformers_flag,
    add_select_flag,
    add_output_flag,
)
from ._data import load_data, read_markup, write_output, build_engine

__all__ = [
    # Output formatting
    "OutputFormatter",
    # Argument helpers
    "add_json_flag",
    "add_verbose_flag",
    "add_config_flag",
    "add_transformers_flag",
    "add_select_flag",
    "add_output_flag",
    # Data helpers
    "load_data",
    "read_markup",
    "write_output",
    "build_engine",
]
