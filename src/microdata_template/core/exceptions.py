from __future__ import annotations

from typing import Any, Dict, Mapping


class TemplateError(Exception):
    """Base exception for the microdata template engine."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ExpressionSyntaxError(TemplateError, ValueError):
    """Raised when a token expression does not parse."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if expression is not None:
            ctx["expression"] = expression
        TemplateError.__init__(self, message, context=ctx)
        ValueError.__init__(self, message)


class UnknownTransformerError(TemplateError, LookupError):
    """Raised when a token names a transformer that is not registered."""

    def __init__(self, name: str, *, context: Mapping[str, Any] | None = None) -> None:
        ctx = dict(context or {})
        ctx["transformer"] = name
        message = f"Unknown transformer: {name!r}"
        TemplateError.__init__(self, message, context=ctx)
        LookupError.__init__(self, message)


class TransformError(TemplateError, RuntimeError):
    """Raised when a registered transformer fails on a value."""

    def __init__(
        self,
        message: str,
        *,
        transformer: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if transformer:
            ctx["transformer"] = transformer
        TemplateError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)


class ConfigError(TemplateError, ValueError):
    """Raised when engine configuration is missing or invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        TemplateError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "TemplateError",
    "ExpressionSyntaxError",
    "UnknownTransformerError",
    "TransformError",
    "ConfigError",
]
