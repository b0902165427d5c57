"""Unified CLI output formatting utilities.

Every command prints through OutputFormatter so that ``--json`` output stays
machine-readable and text output stays consistent.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Iterable, Optional

from microdata_template.core.exceptions import TemplateError


class OutputFormatter:
    """Unified output formatter for CLI commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON; otherwise output text
            indent: JSON indentation level
        """
        self.json_mode = json_mode
        self.indent = indent

    def success(
        self,
        data: Dict[str, Any],
        message: str,
        *,
        status: str = "success",
    ) -> None:
        """Output success result.

        Args:
            data: Result data dictionary
            message: Human-readable success message (used in text mode)
            status: Status string for JSON output
        """
        if self.json_mode:
            output = {"status": status, **data}
            print(json.dumps(output, indent=self.indent, default=str))
        else:
            print(message)

    def error(
        self,
        error: Exception,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
    ) -> None:
        """Output error result on stderr.

        Template errors carry their context dict into the JSON payload.
        """
        msg = message or str(error)
        if self.json_mode:
            output: Dict[str, Any] = {"error": error_code, "message": msg}
            if isinstance(error, TemplateError):
                output["code"] = error.__class__.__name__
                output["context"] = error.context
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        print(json.dumps(data, indent=self.indent, default=str))

    def text(self, message: str) -> None:
        print(message)

    def diagnostics(self, items: Iterable[Any]) -> None:
        """List unresolved tokens on stderr in text mode.

        JSON mode carries them in the success payload instead.
        """
        if self.json_mode:
            return
        for item in items:
            where = item.node if item.attribute is None else f"{item.node} {item.attribute}"
            print(f"Warning: <{where}> {{{{ {item.expression} }}}}: {item.error}", file=sys.stderr)


__all__ = ["OutputFormatter"]
