"""scriptembed exceptions

Errors raised while quoting, converting and embedding generated script.
"""

from __future__ import annotations


class ScriptEmbedError(Exception):
    """Base exception for all scriptembed errors."""

    pass


class QuoteSyntaxError(ScriptEmbedError):
    """Raised when quasi-quoted JavaScript source cannot be tokenized."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        if line:
            super().__init__(f"{message} (line {line}, column {column})")
        else:
            super().__init__(message)


class AntiquoteError(ScriptEmbedError):
    """Raised when an antiquotation slot has no value."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No value supplied for antiquotation `({name})`")


class ConversionError(ScriptEmbedError, TypeError):
    """Raised when a Python value cannot become a JavaScript expression."""

    pass


class InvalidAttributeNameError(ScriptEmbedError, ValueError):
    """Raised when an attribute name is not valid markup."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid attribute name: {name!r}")


class SupplyUnavailableError(ScriptEmbedError):
    """Raised when no integer supply backs the rendering context."""

    pass


class ConfigError(ScriptEmbedError):
    """Raised when a scriptembed.yaml file is invalid."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid config {path}: {reason}")
