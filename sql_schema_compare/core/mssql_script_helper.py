from __future__ import annotations

from sql_schema_compare.core.errors import UnsupportedDataTypeError, UnsupportedOperationError
from sql_schema_compare.core.model import Column, Dialect, MicrosoftSqlColumn, ReferentialAction
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.script_helper import ScriptHelper

# Types rendered as a bare quoted name
FIXED_TYPES = {
    # Exact numerics
    "bigint", "int", "smallint", "tinyint", "bit", "smallmoney", "money",
    # Approximate numerics
    "real",
    # Date and time
    "date", "datetime", "smalldatetime",
    # Binary strings
    "image",
    # Other data types
    "cursor", "rowversion", "timestamp", "hierarchyid", "uniqueidentifier",
    "sql_variant", "xml", "geography", "geometry", "sysname",
}


class MicrosoftSqlScriptHelper(ScriptHelper):
    """Script helper for Microsoft SQL Server (``[bracket]`` identifiers)."""

    dialect = Dialect.MICROSOFT_SQL
    quote_start = "["
    quote_end = "]"
    case_sensitive_identifiers = False

    def script_commit_transaction(self) -> str:
        return "GO\n"

    def script_foreign_key_action(self, action: ReferentialAction) -> str:
        if action == ReferentialAction.RESTRICT:
            raise UnsupportedOperationError("Microsoft SQL does not support the RESTRICT referential action")
        return super().script_foreign_key_action(action)

    def script_column(self, column: Column, options: ScriptingOptions) -> str:
        col = self.expect(column, MicrosoftSqlColumn)

        parts = [f"{self.quote(col.name)} {self.script_data_type(col, options)}"]

        # Computed columns only carry their expression
        if col.is_computed:
            if col.is_persisted:
                parts.append("PERSISTED")
            return " ".join(parts)

        if col.is_identity:
            parts.append(f"IDENTITY({col.identity_seed},{col.identity_increment})")
        if col.column_default is not None:
            parts.append(f"DEFAULT {col.column_default}")
        parts.append("NULL" if col.is_nullable else "NOT NULL")

        return " ".join(parts)

    def script_data_type(self, column: Column, options: ScriptingOptions) -> str:
        col = self.expect(column, MicrosoftSqlColumn)

        if col.is_computed:
            return f"AS {col.definition}"

        if col.is_user_defined_type:
            return self.script_name(col.user_type_schema, col.data_type, options)

        data_type = col.data_type
        quoted = self.quote(data_type)

        if data_type in FIXED_TYPES:
            return quoted

        if data_type in ("numeric", "decimal"):
            # Without a precision the server default (18, 0) applies
            if col.numeric_precision is None:
                return quoted
            if col.numeric_scale is None:
                return f"{quoted}({col.numeric_precision})"
            return f"{quoted}({col.numeric_precision}, {col.numeric_scale})"

        if data_type == "float":
            if col.numeric_precision in (None, 53):
                return quoted
            return f"{quoted}({col.numeric_precision})"

        if data_type in ("datetimeoffset", "datetime2", "time"):
            return f"{quoted}({col.datetime_precision})"

        # Character strings
        if data_type in ("char", "nchar"):
            return f"{quoted}({col.character_max_length}){self.script_collate(col, options)}"
        if data_type in ("varchar", "nvarchar"):
            return f"{quoted}({self._length(col)}){self.script_collate(col, options)}"
        if data_type in ("text", "ntext"):
            return f"{quoted}{self.script_collate(col, options)}"

        # Binary strings
        if data_type == "binary":
            return f"{quoted}({col.character_max_length})"
        if data_type == "varbinary":
            return f"{quoted}({self._length(col)})"

        raise UnsupportedDataTypeError(data_type, self.dialect.value)

    @staticmethod
    def _length(column: Column) -> str:
        return "max" if column.character_max_length == -1 else str(column.character_max_length)
