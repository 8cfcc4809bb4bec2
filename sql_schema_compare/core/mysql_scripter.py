from __future__ import annotations

from typing import Sequence

from sql_schema_compare.core.errors import UnsupportedOperationError
from sql_schema_compare.core.model import (
    Column,
    Constraint,
    DataType,
    ForeignKey,
    Function,
    Index,
    MySqlIndex,
    SchemaObject,
    Sequence as SequenceObject,
    StoredProcedure,
    Table,
    Trigger,
    View,
)
from sql_schema_compare.core.mysql_script_helper import MySqlScriptHelper
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.script_helper import sort_and_group
from sql_schema_compare.core.scripter import DialectScripter

NO_SEQUENCES = "MySQL doesn't have sequences"
NO_TYPES = "MySQL doesn't have user defined types"

INDEX_PREFIXES = {"BTREE": "", "HASH": "", "FULLTEXT": "FULLTEXT ", "SPATIAL": "SPATIAL "}


def _terminated(definition: str) -> str:
    script = definition.rstrip()
    if not script.endswith(";"):
        script += ";"
    return script + "\n"


class MySqlScripter(DialectScripter):
    """Statement hooks for MySQL."""

    def __init__(self) -> None:
        self.helper = MySqlScriptHelper()

    # -- tables ---------------------------------------------------------------

    def script_create_table(self, table: Table, columns: Sequence[Column], options: ScriptingOptions) -> str:
        lines = [f"{self.indent}{self.helper.script_column(col, options)}" for col in columns]
        return f"CREATE TABLE {self.name(table, options)}(\n" + ",\n".join(lines) + "\n);\n"

    def script_drop_table(self, table: Table, options: ScriptingOptions) -> str:
        return f"DROP TABLE {self.name(table, options)};\n"

    def script_add_primary_keys(self, table: Table, keys: Sequence[Index], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(keys):
            script += f"ALTER TABLE {self.name(table, options)}\n"
            script += f"ADD PRIMARY KEY ({self.helper.script_index_columns(group)});\n\n"
        return script

    def script_drop_primary_keys(self, table: Table, keys: Sequence[Index], options: ScriptingOptions) -> str:
        # A table has at most one primary key, it has no name of its own
        return "".join(
            f"ALTER TABLE {self.table_name(group[0], options)} DROP PRIMARY KEY;\n"
            for group in sort_and_group(keys)
        )

    def script_add_constraints(
        self, table: Table, constraints: Sequence[Constraint], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(constraints):
            constraint = group[0]
            script += f"ALTER TABLE {self.name(table, options)}\n"
            script += f"ADD CONSTRAINT {self.helper.quote(constraint.name)} CHECK {constraint.definition};\n\n"
        return script

    def script_drop_constraints(
        self, table: Table, constraints: Sequence[Constraint], options: ScriptingOptions) -> str:
        return "".join(
            f"ALTER TABLE {self.table_name(group[0], options)} DROP CHECK {self.helper.quote(group[0].name)};\n"
            for group in sort_and_group(constraints)
        )

    def script_add_foreign_keys(
        self, table: Table, foreign_keys: Sequence[ForeignKey], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(foreign_keys):
            key = group[0]
            columns = ",".join(self.helper.quote(row.column_name) for row in group)
            referenced_columns = ",".join(self.helper.quote(row.referenced_column_name) for row in group)
            referenced_table = self.helper.script_name(key.referenced_table_schema, key.referenced_table_name, options)

            script += f"ALTER TABLE {self.name(table, options)}\n"
            script += f"ADD CONSTRAINT {self.helper.quote(key.name)} FOREIGN KEY ({columns})\n"
            script += f"REFERENCES {referenced_table} ({referenced_columns})\n"
            script += f"ON DELETE {self.helper.script_foreign_key_action(key.delete_rule)}\n"
            script += f"ON UPDATE {self.helper.script_foreign_key_action(key.update_rule)};\n\n"
        return script

    def script_drop_foreign_keys(self, foreign_keys: Sequence[ForeignKey], options: ScriptingOptions) -> str:
        return "".join(
            f"ALTER TABLE {self.table_name(group[0], options)} DROP FOREIGN KEY {self.helper.quote(group[0].name)};\n"
            for group in sort_and_group(foreign_keys)
        )

    def script_create_indexes(self, obj: SchemaObject, indexes: Sequence[Index], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(indexes):
            index = self.helper.expect(group[0], MySqlIndex)
            index_type = index.index_type.upper()
            if index_type not in INDEX_PREFIXES:
                raise UnsupportedOperationError(f"Index of type '{index.index_type}' is not supported")

            prefix = INDEX_PREFIXES[index_type]
            if index.is_unique and not prefix:
                prefix = "UNIQUE "
            using = " USING HASH" if index_type == "HASH" else ""

            script += (f"CREATE {prefix}INDEX {self.helper.quote(index.name)} ON {self.name(obj, options)} "
                       f"({self.helper.script_index_columns(group)}){using};\n\n")
        return script

    def script_drop_indexes(self, obj: SchemaObject, indexes: Sequence[Index], options: ScriptingOptions) -> str:
        return "".join(
            f"DROP INDEX {self.helper.quote(group[0].name)} ON {self.name(obj, options)};\n"
            for group in sort_and_group(indexes)
        )

    def script_add_column(self, table: Table, column: Column, options: ScriptingOptions) -> str:
        return f"ALTER TABLE {self.name(table, options)} ADD COLUMN {self.helper.script_column(column, options)};\n"

    def script_drop_column(self, table: Table, column: Column, options: ScriptingOptions) -> str:
        return f"ALTER TABLE {self.name(table, options)} DROP COLUMN {self.helper.quote(column.name)};\n"

    def script_alter_column(self, table: Table, source: Column, target: Column, options: ScriptingOptions) -> str:
        return f"ALTER TABLE {self.name(table, options)} MODIFY COLUMN {self.helper.script_column(source, options)};\n"

    # -- programmability ------------------------------------------------------

    def script_create_view(self, view: View, options: ScriptingOptions) -> str:
        return _terminated(f"CREATE VIEW {self.name(view, options)} AS {view.view_definition.strip()}")

    def script_drop_view(self, view: View, options: ScriptingOptions) -> str:
        return f"DROP VIEW {self.name(view, options)};\n"

    def script_alter_view(self, source: View, target: View, options: ScriptingOptions) -> str:
        return _terminated(f"ALTER VIEW {self.name(source, options)} AS {source.view_definition.strip()}")

    def script_create_function(
        self, function: Function, data_types: Sequence[DataType], options: ScriptingOptions) -> str:
        return _terminated(function.definition)

    def script_drop_function(
        self, function: Function, data_types: Sequence[DataType], options: ScriptingOptions) -> str:
        return f"DROP FUNCTION {self.name(function, options)};\n"

    def script_alter_function(
        self, source: Function, target: Function, data_types: Sequence[DataType],
        options: ScriptingOptions) -> str:
        return self.drop_and_create(
            self.script_drop_function(target, data_types, options),
            self.script_create_function(source, data_types, options))

    def script_create_stored_procedure(self, procedure: StoredProcedure, options: ScriptingOptions) -> str:
        return _terminated(procedure.definition)

    def script_drop_stored_procedure(self, procedure: StoredProcedure, options: ScriptingOptions) -> str:
        return f"DROP PROCEDURE {self.name(procedure, options)};\n"

    def script_alter_stored_procedure(
        self, source: StoredProcedure, target: StoredProcedure, options: ScriptingOptions) -> str:
        return self.drop_and_create(
            self.script_drop_stored_procedure(target, options), self.script_create_stored_procedure(source, options))

    def script_create_trigger(self, trigger: Trigger, options: ScriptingOptions) -> str:
        return _terminated(trigger.definition)

    def script_drop_trigger(self, trigger: Trigger, options: ScriptingOptions) -> str:
        return f"DROP TRIGGER {self.name(trigger, options)};\n"

    def script_alter_trigger(self, source: Trigger, target: Trigger, options: ScriptingOptions) -> str:
        return self.drop_and_create(
            self.script_drop_trigger(target, options), self.script_create_trigger(source, options))

    # -- sequences and types --------------------------------------------------

    def script_create_sequence(self, sequence: SequenceObject, options: ScriptingOptions) -> str:
        raise UnsupportedOperationError(NO_SEQUENCES)

    def script_drop_sequence(self, sequence: SequenceObject, options: ScriptingOptions) -> str:
        raise UnsupportedOperationError(NO_SEQUENCES)

    def script_alter_sequence(
        self, source: SequenceObject, target: SequenceObject, options: ScriptingOptions) -> str:
        raise UnsupportedOperationError(NO_SEQUENCES)

    def script_create_type(
        self, data_type: DataType, data_types: Sequence[DataType], options: ScriptingOptions) -> str:
        raise UnsupportedOperationError(NO_TYPES)

    def script_drop_type(self, data_type: DataType, options: ScriptingOptions) -> str:
        raise UnsupportedOperationError(NO_TYPES)

    def script_alter_type(
        self, source: DataType, target: DataType, data_types: Sequence[DataType],
        options: ScriptingOptions) -> str:
        raise UnsupportedOperationError(NO_TYPES)
