from __future__ import annotations

from sql_schema_compare.core.errors import UnsupportedDataTypeError
from sql_schema_compare.core.model import Column, Dialect, MySqlColumn
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.script_helper import ScriptHelper

# information_schema reports these with the full type in COLUMN_TYPE
COLUMN_TYPE_TYPES = {
    # Exact numerics
    "bit", "tinyint", "smallint", "mediumint", "int", "integer", "bigint",
    "numeric", "decimal",
    # Approximate numerics
    "real", "double", "float",
    # Date and time
    "date", "year", "time", "timestamp", "datetime",
    # Binary strings
    "binary", "varbinary", "blob", "tinyblob", "mediumblob", "longblob",
    # Other data types
    "enum", "set", "json", "geometry", "point", "linestring", "polygon",
    "multipoint", "multilinestring", "multipolygon", "geometrycollection",
}

CHARACTER_TYPES = {"char", "varchar"}
TEXT_TYPES = {"text", "tinytext", "mediumtext", "longtext"}


class MySqlScriptHelper(ScriptHelper):
    """Script helper for MySQL (`backtick` identifiers)."""

    dialect = Dialect.MYSQL
    quote_start = "`"
    quote_end = "`"

    def script_column(self, column: Column, options: ScriptingOptions) -> str:
        col = self.expect(column, MySqlColumn)

        parts = [f"{self.quote(col.name)} {self.script_data_type(col, options)}"]

        if col.is_virtual_generated or col.is_stored_generated:
            return " ".join(parts)

        parts.append("NULL" if col.is_nullable else "NOT NULL")
        if col.column_default is not None:
            parts.append(f"DEFAULT {col.column_default}")

        # MySQL 8 reports DEFAULT_GENERATED for expression defaults, it is not DDL
        extra = col.extra.replace("DEFAULT_GENERATED", "").strip()
        if extra:
            parts.append(extra)

        return " ".join(parts)

    def script_data_type(self, column: Column, options: ScriptingOptions) -> str:
        col = self.expect(column, MySqlColumn)

        if col.is_virtual_generated:
            return f"{col.column_type} AS ({col.generation_expression}) VIRTUAL"
        if col.is_stored_generated:
            return f"{col.column_type} AS ({col.generation_expression}) STORED"

        data_type = col.data_type.lower()

        if data_type in COLUMN_TYPE_TYPES:
            return col.column_type or data_type

        if data_type in CHARACTER_TYPES:
            base = col.column_type or f"{data_type}({col.character_max_length})"
            return f"{base}{self._character_set(col)}{self.script_collate(col, options)}"

        if data_type in TEXT_TYPES:
            base = col.column_type or data_type
            return f"{base}{self._character_set(col)}{self.script_collate(col, options)}"

        raise UnsupportedDataTypeError(col.data_type, self.dialect.value)

    @staticmethod
    def _character_set(column: MySqlColumn) -> str:
        return f" CHARACTER SET {column.character_set_name}" if column.character_set_name else ""
