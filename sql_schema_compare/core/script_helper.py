from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence, Tuple, Type, TypeVar

from sql_schema_compare.core.errors import InvalidArgumentError, UnsupportedOperationError
from sql_schema_compare.core.model import Column, Dialect, Index, ReferentialAction, SchemaObject
from sql_schema_compare.core.options import ScriptingOptions

T = TypeVar("T")


def group_by_name(rows: Iterable[T]) -> List[List[T]]:
    """Group per-column rows (indexes, keys) into one list per object name.

    Groups keep the order in which each name first appears in ``rows``; the
    rows of a group are ordered by ordinal position (when they have one).
    """
    groups: dict = {}
    for row in rows:
        groups.setdefault(row.name, []).append(row)  # type: ignore[attr-defined]
    return [
        sorted(group, key=lambda r: getattr(r, "ordinal_position", 0))
        for group in groups.values()
    ]


def sort_and_group(rows: Iterable[T]) -> List[List[T]]:
    """Order rows by (schema, name) and group them by name."""
    ordered = sorted(rows, key=lambda r: (r.schema, r.name))  # type: ignore[attr-defined]
    return group_by_name(ordered)


class ScriptHelper(ABC):
    """Low level SQL fragments for one dialect.

    Every method is a pure function of its arguments; scripting options are
    always passed in explicitly.
    """

    dialect: Dialect
    quote_start = '"'
    quote_end = '"'
    # Identifier matching rule used when pairing source and target objects
    case_sensitive_identifiers = True

    @staticmethod
    def script_comment(text: str) -> str:
        return f"/****** {text} ******/"

    def script_commit_transaction(self) -> str:
        """Batch separator emitted after statements that need their own batch."""
        return ""

    def quote(self, identifier: str) -> str:
        escaped = identifier.replace(self.quote_end, self.quote_end * 2)
        return f"{self.quote_start}{escaped}{self.quote_end}"

    def script_name(self, schema: str | None, name: str, options: ScriptingOptions) -> str:
        if options.use_schema_name and schema:
            return f"{self.quote(schema)}.{self.quote(name)}"
        return self.quote(name)

    def script_object_name(self, obj: SchemaObject, options: ScriptingOptions) -> str:
        if obj is None:
            raise InvalidArgumentError("obj")
        return self.script_name(obj.schema, obj.name, options)

    def identifier_key(self, schema: str, name: str) -> Tuple[str, str]:
        if self.case_sensitive_identifiers:
            return (schema, name)
        return (schema.casefold(), name.casefold())

    def script_collate(self, column: Column, options: ScriptingOptions) -> str:
        if options.ignore_collate or not column.collation_name:
            return ""
        return f" COLLATE {column.collation_name}"

    def script_index_columns(self, group: Sequence[Index]) -> str:
        """Comma separated column list of an index group.

        If any column is descending every column gets an explicit ASC/DESC,
        otherwise none does.
        """
        script_order = any(row.is_descending for row in group)
        columns = []
        for row in sorted(group, key=lambda r: r.ordinal_position):
            column = self.quote(row.column_name)
            if script_order:
                column += " DESC" if row.is_descending else " ASC"
            columns.append(column)
        return ",".join(columns)

    def script_foreign_key_action(self, action: ReferentialAction) -> str:
        if not isinstance(action, ReferentialAction):
            raise InvalidArgumentError(f"Invalid referential action: {action}")
        return action.value

    def expect(self, obj: object, expected: Type[T]) -> T:
        """Return ``obj`` if it is the dialect variant ``expected``."""
        if obj is None:
            raise InvalidArgumentError(expected.__name__)
        if not isinstance(obj, expected):
            raise UnsupportedOperationError(
                f"{type(obj).__name__} cannot be scripted as {self.dialect.value}, "
                f"expected {expected.__name__}")
        return obj

    @abstractmethod
    def script_column(self, column: Column, options: ScriptingOptions) -> str:
        """Full column definition as used in CREATE TABLE."""

    @abstractmethod
    def script_data_type(self, column: Column, options: ScriptingOptions) -> str:
        """Type part of a column definition."""

