"""Errors raised while scripting a schema object graph."""
from __future__ import annotations


class ScriptingError(Exception):
    """Base class for every error raised by the scripting engine."""


class InvalidArgumentError(ScriptingError, ValueError):
    """A required object is missing, e.g. both sides of an alter pair are None."""


class UnsupportedDataTypeError(ScriptingError):
    """The dialect formatter does not know the column or type name."""

    def __init__(self, data_type: str, dialect: str | None = None) -> None:
        self.data_type = data_type
        self.dialect = dialect
        where = f" for {dialect}" if dialect else ""
        super().__init__(f"Unknown column data type{where}: {data_type}")


class UnsupportedOperationError(ScriptingError, NotImplementedError):
    """The requested object kind or feature does not exist in the dialect."""


class UnresolvedDependencyError(ScriptingError, KeyError):
    """A table declares a parent table that is not part of the object set."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message instead
        return str(self.args[0]) if self.args else ""


def not_yet_implemented(label: str) -> str:
    """Return the placeholder rendered for alter paths that are not scripted yet.

    The placeholder is not valid SQL: running a script that still contains
    one fails at that line instead of silently skipping the change.
    """
    return f"TODO: {label}\n"
