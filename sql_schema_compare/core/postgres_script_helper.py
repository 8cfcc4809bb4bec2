from __future__ import annotations

from typing import Iterable, Optional

from sql_schema_compare.core.errors import InvalidArgumentError, UnsupportedDataTypeError
from sql_schema_compare.core.model import (
    Column,
    DataType,
    Dialect,
    PostgreSqlColumn,
    PostgreSqlDataType,
    PostgreSqlFunction,
)
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.script_helper import ScriptHelper

# Internal type names (pg_type.typname) to their SQL spelling
TYPE_NAME_ALIASES = {
    "int8": "bigint",
    "serial8": "bigserial",
    "varbit": "bit varying",
    "bool": "boolean",
    "bpchar": "character",
    "char": "character",
    "varchar": "character varying",
    "float8": "double precision",
    "int": "integer",
    "int4": "integer",
    "decimal": "numeric",
    "float4": "real",
    "int2": "smallint",
    "serial2": "smallserial",
    "serial4": "serial",
    "time": "time without time zone",
    "timetz": "time with time zone",
    "timestamp": "timestamp without time zone",
    "timestamptz": "timestamp with time zone",
}

FIXED_TYPES = {
    # Numerics
    "smallint", "integer", "bigint", "real", "double precision", "money",
    # Date, binary and boolean
    "date", "bytea", "boolean",
    # Geometric, network, text search and others
    "point", "line", "lseg", "box", "path", "polygon", "circle",
    "inet", "cidr", "macaddr", "macaddr8", "tsvector", "tsquery",
    "uuid", "xml", "json", "jsonb", "pg_lsn", "txid_snapshot",
}

# Default fractional seconds precision, not scripted
DEFAULT_DATETIME_PRECISION = 6

ARGUMENT_MODES = {"i": "", "o": "OUT ", "b": "INOUT ", "v": "VARIADIC ", "t": ""}

VOLATILITY = {"i": "IMMUTABLE", "s": "STABLE", "v": "VOLATILE"}

MATCH_OPTIONS = {"FULL": "MATCH FULL", "PARTIAL": "MATCH PARTIAL", "SIMPLE": "MATCH SIMPLE", "NONE": "MATCH SIMPLE"}


def script_data_type_name(name: str) -> str:
    return TYPE_NAME_ALIASES.get(name, name)


class PostgreSqlScriptHelper(ScriptHelper):
    """Script helper for PostgreSQL (``"double quote"`` identifiers)."""

    dialect = Dialect.POSTGRESQL

    def script_collate(self, column: Column, options: ScriptingOptions) -> str:
        if options.ignore_collate or not column.collation_name:
            return ""
        return f" COLLATE {self.quote(column.collation_name)}"

    def script_column(self, column: Column, options: ScriptingOptions) -> str:
        col = self.expect(column, PostgreSqlColumn)

        parts = [
            f"{self.quote(col.name)} {self.script_data_type(col, options)}",
            "NULL" if col.is_nullable else "NOT NULL",
        ]
        if col.column_default is not None:
            parts.append(f"DEFAULT {col.column_default}")
        if col.identity_generation:
            parts.append(f"GENERATED {col.identity_generation.upper()} AS IDENTITY")
        elif col.generation_expression:
            parts.append(f"GENERATED ALWAYS AS ({col.generation_expression}) STORED")

        return " ".join(parts)

    def script_data_type(self, column: Column, options: ScriptingOptions) -> str:
        col = self.expect(column, PostgreSqlColumn)
        data_type = col.data_type

        if data_type in FIXED_TYPES:
            return data_type

        if data_type in ("numeric", "decimal"):
            if col.numeric_precision is None:
                return "numeric"
            return f"numeric({col.numeric_precision},{col.numeric_scale or 0})"

        # Character strings
        if data_type in ("character", "character varying"):
            length = f"({col.character_max_length})" if col.character_max_length is not None else ""
            return f"{data_type}{length}{self.script_collate(col, options)}"
        if data_type == "text":
            return f"text{self.script_collate(col, options)}"

        # Date and time
        if data_type in ("time with time zone", "time without time zone",
                         "timestamp with time zone", "timestamp without time zone"):
            base, _, zone = data_type.partition(" ")
            return f"{base}{self._precision(col)} {zone}"
        if data_type == "interval":
            if col.interval_type:
                return f"interval {col.interval_type}"
            return f"interval{self._precision(col)}"

        # Bit strings
        if data_type in ("bit", "bit varying"):
            length = f"({col.character_max_length})" if col.character_max_length is not None else ""
            return f"{data_type}{length}"

        if data_type == "USER-DEFINED":
            if not col.udt_name:
                raise UnsupportedDataTypeError(data_type, self.dialect.value)
            return col.udt_name

        if data_type == "ARRAY":
            if not col.udt_name:
                raise UnsupportedDataTypeError(data_type, self.dialect.value)
            # Element type name is the array type name without its leading underscore
            return f"{script_data_type_name(col.udt_name.lstrip('_'))}[]"

        raise UnsupportedDataTypeError(data_type, self.dialect.value)

    @staticmethod
    def _precision(column: PostgreSqlColumn) -> str:
        precision = column.datetime_precision
        if precision is None or precision == DEFAULT_DATETIME_PRECISION:
            return ""
        return f"({precision})"

    # -- functions and types ------------------------------------------------

    def script_function_argument_type(self, type_id: int, data_types: Iterable[DataType]) -> str:
        """Resolve a type id (pg_type oid) to its SQL name."""
        data_type = self._find_type(type_id, data_types)
        if data_type is None:
            raise UnsupportedDataTypeError(str(type_id), self.dialect.value)

        if data_type.is_array and data_type.array_type_id is not None:
            element = self._find_type(data_type.array_type_id, data_types)
            if element is not None:
                return f"{script_data_type_name(element.name)}[]"

        return script_data_type_name(data_type.name)

    def script_function_argument(
        self,
        type_id: int,
        mode: str,
        name: Optional[str],
        data_types: Iterable[DataType],
    ) -> str:
        if mode not in ARGUMENT_MODES:
            raise InvalidArgumentError(f"Unknown function argument mode: {mode}")

        prefix = ARGUMENT_MODES[mode]
        if name:
            prefix += f"{name} "
        return f"{prefix}{self.script_function_argument_type(type_id, data_types)}"

    def script_function_attributes(self, function: PostgreSqlFunction) -> str:
        if function.volatile not in VOLATILITY:
            raise InvalidArgumentError(f"Unknown function volatile: {function.volatile}")

        attributes = VOLATILITY[function.volatile]
        if function.security_type == "DEFINER":
            attributes += " SECURITY DEFINER"
        if function.is_strict:
            attributes += " STRICT"
        return attributes

    @staticmethod
    def script_foreign_key_match_option(match_option: str) -> str:
        option = (match_option or "NONE").upper()
        if option not in MATCH_OPTIONS:
            raise InvalidArgumentError(f"Unknown foreign key match option: {match_option}")
        return MATCH_OPTIONS[option]

    @staticmethod
    def _find_type(type_id: int, data_types: Iterable[DataType]) -> Optional[PostgreSqlDataType]:
        return next(
            (t for t in data_types if isinstance(t, PostgreSqlDataType) and t.type_id == type_id),
            None,
        )
