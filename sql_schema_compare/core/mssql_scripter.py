from __future__ import annotations

import re
from typing import List, Sequence

from sql_schema_compare.core.errors import UnsupportedOperationError, not_yet_implemented
from sql_schema_compare.core.model import (
    Column,
    Constraint,
    DataType,
    ForeignKey,
    Function,
    Index,
    MicrosoftSqlColumn,
    MicrosoftSqlDataType,
    MicrosoftSqlIndex,
    MicrosoftSqlIndexType,
    SchemaObject,
    Sequence as SequenceObject,
    StoredProcedure,
    Table,
    Trigger,
    View,
    by_schema_and_name,
)
from sql_schema_compare.core.mssql_script_helper import MicrosoftSqlScriptHelper
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.script_helper import group_by_name, sort_and_group
from sql_schema_compare.core.scripter import DialectScripter
from sql_schema_compare.utils.logger import get_logger

logger = get_logger(__name__)

# Leading whitespace and comments may precede the CREATE keyword
HEADER_PREFIX = r"\A((?:\s|--[^\n]*\n|/\*.*?\*/)*)"


def alter_header(definition: str, kind: str) -> str | None:
    """Rewrite ``CREATE [OR ALTER] <kind>`` at the start of a definition to ``ALTER <kind>``.

    Args:
        definition: Object definition as stored in the catalog
        kind: Regex matching the object keyword, e.g. ``VIEW`` or ``PROC(?:EDURE)?``

    Returns:
        The rewritten definition, None if the header was not recognized
    """
    pattern = re.compile(HEADER_PREFIX + r"CREATE(?:\s+OR\s+ALTER)?\s+(" + kind + r")\b",
                         re.IGNORECASE | re.DOTALL)
    rewritten, count = pattern.subn(r"\1ALTER \2", definition, count=1)
    return rewritten if count else None


class MicrosoftSqlScripter(DialectScripter):
    """Statement hooks for Microsoft SQL Server."""

    def __init__(self) -> None:
        self.helper = MicrosoftSqlScriptHelper()

    @property
    def commit(self) -> str:
        return self.helper.script_commit_transaction()

    # -- tables ---------------------------------------------------------------

    def script_create_table(self, table: Table, columns: Sequence[Column], options: ScriptingOptions) -> str:
        lines = [f"{self.indent}{self.helper.script_column(col, options)}" for col in columns]
        return (
            f"CREATE TABLE {self.name(table, options)}(\n"
            + ",\n".join(lines)
            + "\n)\n"
            + self.commit
        )

    def script_drop_table(self, table: Table, options: ScriptingOptions) -> str:
        return f"DROP TABLE {self.name(table, options)};\n{self.commit}"

    def script_add_primary_keys(self, table: Table, keys: Sequence[Index], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(keys):
            key = self.helper.expect(group[0], MicrosoftSqlIndex)
            clustered = "CLUSTERED" if key.type == MicrosoftSqlIndexType.CLUSTERED else "NONCLUSTERED"
            script += f"ALTER TABLE {self.name(table, options)}\n"
            script += (f"ADD CONSTRAINT {self.helper.quote(key.name)} PRIMARY KEY {clustered}"
                       f"({self.helper.script_index_columns(group)})\n")
            script += self.commit + "\n"
        return script

    def script_drop_primary_keys(self, table: Table, keys: Sequence[Index], options: ScriptingOptions) -> str:
        return self._drop_table_constraints(keys, options)

    def script_add_constraints(
        self, table: Table, constraints: Sequence[Constraint], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(constraints):
            constraint = group[0]
            script += f"ALTER TABLE {self.name(table, options)}\n"
            script += f"ADD CONSTRAINT {self.helper.quote(constraint.name)} CHECK {constraint.definition}\n"
            script += self.commit + "\n"
        return script

    def script_drop_constraints(
        self, table: Table, constraints: Sequence[Constraint], options: ScriptingOptions) -> str:
        return self._drop_table_constraints(constraints, options)

    def script_add_foreign_keys(
        self, table: Table, foreign_keys: Sequence[ForeignKey], options: ScriptingOptions) -> str:
        script = ""
        table_name = self.name(table, options)
        for group in sort_and_group(foreign_keys):
            key = group[0]
            quoted = self.helper.quote(key.name)
            columns = ",".join(self.helper.quote(row.column_name) for row in group)
            referenced_columns = ",".join(self.helper.quote(row.referenced_column_name) for row in group)
            referenced_table = self.helper.script_name(key.referenced_table_schema, key.referenced_table_name, options)

            script += f"ALTER TABLE {table_name} WITH CHECK ADD CONSTRAINT {quoted} FOREIGN KEY({columns})\n"
            script += f"REFERENCES {referenced_table} ({referenced_columns})\n"
            script += f"ON DELETE {self.helper.script_foreign_key_action(key.delete_rule)}\n"
            script += f"ON UPDATE {self.helper.script_foreign_key_action(key.update_rule)}\n"
            script += self.commit + "\n"
            script += f"ALTER TABLE {table_name} CHECK CONSTRAINT {quoted}\n"
            script += self.commit + "\n"
        return script

    def script_drop_foreign_keys(self, foreign_keys: Sequence[ForeignKey], options: ScriptingOptions) -> str:
        return self._drop_table_constraints(foreign_keys, options)

    def _drop_table_constraints(self, rows: Sequence[SchemaObject], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(rows):
            row = group[0]
            script += (f"ALTER TABLE {self.table_name(row, options)} "
                       f"DROP CONSTRAINT {self.helper.quote(row.name)};\n")
            script += self.commit
        return script

    def script_create_indexes(self, obj: SchemaObject, indexes: Sequence[Index], options: ScriptingOptions) -> str:
        rows: List[MicrosoftSqlIndex] = [self.helper.expect(i, MicrosoftSqlIndex) for i in indexes]

        # Clustered indexes must be created before nonclustered ones
        ordered = sorted((i for i in rows if i.type == MicrosoftSqlIndexType.CLUSTERED), key=by_schema_and_name)
        ordered += sorted((i for i in rows if i.type != MicrosoftSqlIndexType.CLUSTERED), key=by_schema_and_name)

        script = ""
        for group in group_by_name(ordered):
            index = group[0]
            if index.type in (MicrosoftSqlIndexType.CLUSTERED, MicrosoftSqlIndexType.NONCLUSTERED):
                prefix = "UNIQUE " if index.is_unique else ""
                # Without CLUSTERED a nonclustered index is created
                if index.type == MicrosoftSqlIndexType.CLUSTERED:
                    prefix += "CLUSTERED "
            elif index.type == MicrosoftSqlIndexType.XML:
                prefix = "XML "
            elif index.type == MicrosoftSqlIndexType.SPATIAL:
                prefix = "SPATIAL "
            else:
                raise UnsupportedOperationError(f"Index of type '{index.type}' is not supported")

            script += (f"CREATE {prefix}INDEX {self.helper.quote(index.name)} ON {self.name(obj, options)}"
                       f"({self.helper.script_index_columns(group)})\n")
            if index.filter_definition and index.filter_definition.strip():
                script += f"{self.indent}WHERE {index.filter_definition}\n"
            script += self.commit + "\n"
        return script

    def script_drop_indexes(self, obj: SchemaObject, indexes: Sequence[Index], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(indexes):
            script += f"DROP INDEX {self.helper.quote(group[0].name)} ON {self.name(obj, options)};\n"
            script += self.commit
        return script

    def script_add_column(self, table: Table, column: Column, options: ScriptingOptions) -> str:
        return f"ALTER TABLE {self.name(table, options)} ADD {self.helper.script_column(column, options)}\n{self.commit}"

    def script_drop_column(self, table: Table, column: Column, options: ScriptingOptions) -> str:
        return f"ALTER TABLE {self.name(table, options)} DROP COLUMN {self.helper.quote(column.name)}\n{self.commit}"

    def script_alter_column(self, table: Table, source: Column, target: Column, options: ScriptingOptions) -> str:
        src = self.helper.expect(source, MicrosoftSqlColumn)
        tgt = self.helper.expect(target, MicrosoftSqlColumn)
        table_name = self.name(table, options)
        quoted = self.helper.quote(tgt.name)

        # Identity and computed definitions cannot be changed in place
        recreate = (
            src.is_identity != tgt.is_identity
            or src.is_computed != tgt.is_computed
            or (src.is_identity and (src.identity_seed, src.identity_increment)
                != (tgt.identity_seed, tgt.identity_increment))
            or (src.is_computed and (src.definition, src.is_persisted) != (tgt.definition, tgt.is_persisted))
        )
        if recreate:
            logger.debug(f"Column {tgt.name} of {table.name} is recreated")
            return (
                f"-- WARNING: Column {quoted} of {table_name} is dropped and recreated, existing data is lost.\n"
                + self.script_drop_column(table, tgt, options)
                + self.script_add_column(table, src, options)
            )

        script = ""
        if self.helper.script_data_type(src, options) != self.helper.script_data_type(tgt, options) \
                or src.is_nullable != tgt.is_nullable:
            script += (f"ALTER TABLE {table_name} ALTER COLUMN {quoted} "
                       f"{self.helper.script_data_type(src, options)} "
                       f"{'NULL' if src.is_nullable else 'NOT NULL'}\n")
            script += self.commit

        if src.column_default != tgt.column_default:
            if tgt.column_default is None:
                script += f"ALTER TABLE {table_name} ADD DEFAULT {src.column_default} FOR {quoted}\n"
                script += self.commit
            else:
                # Defaults are named constraints that the column model does not carry
                script += not_yet_implemented("Alter Column Default Script")

        return script

    # -- programmability ------------------------------------------------------

    def _script_definition(self, definition: str) -> str:
        script = definition
        if not definition.endswith("\n"):
            script += "\n"
        return script + self.commit

    def _alter_definition(self, source_definition: str, kind: str, drop: str, create: str) -> str:
        altered = alter_header(source_definition, kind)
        if altered is None:
            logger.warning("Definition header not recognized, scripting drop and create instead")
            return self.drop_and_create(drop, create)
        return self._script_definition(altered)

    def script_create_view(self, view: View, options: ScriptingOptions) -> str:
        return self._script_definition(view.view_definition)

    def script_drop_view(self, view: View, options: ScriptingOptions) -> str:
        return f"DROP VIEW {self.name(view, options)};\n{self.commit}"

    def script_alter_view(self, source: View, target: View, options: ScriptingOptions) -> str:
        return self._alter_definition(
            source.view_definition, "VIEW",
            self.script_drop_view(target, options), self.script_create_view(source, options))

    def script_create_function(
        self, function: Function, data_types: Sequence[DataType], options: ScriptingOptions) -> str:
        return self._script_definition(function.definition)

    def script_drop_function(
        self, function: Function, data_types: Sequence[DataType], options: ScriptingOptions) -> str:
        return f"DROP FUNCTION {self.name(function, options)};\n{self.commit}"

    def script_alter_function(
        self, source: Function, target: Function, data_types: Sequence[DataType],
        options: ScriptingOptions) -> str:
        return self._alter_definition(
            source.definition, "FUNCTION",
            self.script_drop_function(target, data_types, options),
            self.script_create_function(source, data_types, options))

    def script_create_stored_procedure(self, procedure: StoredProcedure, options: ScriptingOptions) -> str:
        return self._script_definition(procedure.definition)

    def script_drop_stored_procedure(self, procedure: StoredProcedure, options: ScriptingOptions) -> str:
        return f"DROP PROCEDURE {self.name(procedure, options)};\n{self.commit}"

    def script_alter_stored_procedure(
        self, source: StoredProcedure, target: StoredProcedure, options: ScriptingOptions) -> str:
        return self._alter_definition(
            source.definition, r"PROC(?:EDURE)?",
            self.script_drop_stored_procedure(target, options), self.script_create_stored_procedure(source, options))

    def script_create_trigger(self, trigger: Trigger, options: ScriptingOptions) -> str:
        return self._script_definition(trigger.definition)

    def script_drop_trigger(self, trigger: Trigger, options: ScriptingOptions) -> str:
        return f"DROP TRIGGER {self.name(trigger, options)};\n{self.commit}"

    def script_alter_trigger(self, source: Trigger, target: Trigger, options: ScriptingOptions) -> str:
        return self._alter_definition(
            source.definition, "TRIGGER",
            self.script_drop_trigger(target, options), self.script_create_trigger(source, options))

    # -- sequences and types --------------------------------------------------

    def script_create_sequence(self, sequence: SequenceObject, options: ScriptingOptions) -> str:
        script = f"CREATE SEQUENCE {self.name(sequence, options)}\n"
        script += f"{self.indent}AS {sequence.data_type}\n"
        script += f"{self.indent}START WITH {sequence.start_value}\n"
        script += f"{self.indent}INCREMENT BY {sequence.increment}\n"
        script += (f"{self.indent}MINVALUE {sequence.min_value}\n" if sequence.min_value is not None
                   else f"{self.indent}NO MINVALUE\n")
        script += (f"{self.indent}MAXVALUE {sequence.max_value}\n" if sequence.max_value is not None
                   else f"{self.indent}NO MAXVALUE\n")
        script += f"{self.indent}CYCLE\n" if sequence.is_cycling else f"{self.indent}NO CYCLE\n"
        return script + self.commit

    def script_drop_sequence(self, sequence: SequenceObject, options: ScriptingOptions) -> str:
        return f"DROP SEQUENCE {self.name(sequence, options)};\n{self.commit}"

    def script_alter_sequence(
        self, source: SequenceObject, target: SequenceObject, options: ScriptingOptions) -> str:
        return self.drop_and_create(
            self.script_drop_sequence(target, options), self.script_create_sequence(source, options))

    def script_create_type(
        self, data_type: DataType, data_types: Sequence[DataType], options: ScriptingOptions) -> str:
        ms_type = self.helper.expect(data_type, MicrosoftSqlDataType)
        system_type = ms_type.system_type_name

        script = f"CREATE TYPE {self.name(ms_type, options)}\n"
        script += f"{self.indent}FROM {system_type}"

        # Configurable max length
        if system_type in ("binary", "char", "nchar", "nvarchar", "varbinary", "varchar"):
            script += f"({'max' if ms_type.max_length == -1 else ms_type.max_length})"
        # Configurable scale only
        elif system_type in ("datetime2", "datetimeoffset", "time"):
            script += f"({ms_type.scale})"
        # Configurable precision and scale
        elif system_type in ("decimal", "numeric"):
            script += f"({ms_type.precision},{ms_type.scale})"

        script += " NULL\n" if ms_type.is_nullable else " NOT NULL\n"
        return script + self.commit

    def script_drop_type(self, data_type: DataType, options: ScriptingOptions) -> str:
        return f"DROP TYPE {self.name(data_type, options)};\n{self.commit}"

    def script_alter_type(
        self, source: DataType, target: DataType, data_types: Sequence[DataType],
        options: ScriptingOptions) -> str:
        return self.drop_and_create(
            self.script_drop_type(target, options), self.script_create_type(source, data_types, options))
