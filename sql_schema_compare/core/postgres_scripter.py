from __future__ import annotations

from typing import Iterable, List, Sequence

from sql_schema_compare.core.dependency import TableDependencyResolver
from sql_schema_compare.core.errors import UnsupportedOperationError
from sql_schema_compare.core.model import (
    Column,
    Constraint,
    DataType,
    ForeignKey,
    Function,
    Index,
    PostgreSqlColumn,
    PostgreSqlDataTypeComposite,
    PostgreSqlDataTypeDomain,
    PostgreSqlDataTypeEnumerated,
    PostgreSqlDataTypeRange,
    PostgreSqlForeignKey,
    PostgreSqlFunction,
    PostgreSqlIndex,
    PostgreSqlSequence,
    PostgreSqlTable,
    PostgreSqlView,
    SchemaObject,
    Sequence as SequenceObject,
    StoredProcedure,
    Table,
    Trigger,
    View,
)
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.postgres_script_helper import PostgreSqlScriptHelper
from sql_schema_compare.core.script_helper import sort_and_group
from sql_schema_compare.core.scripter import DialectScripter

NO_STORED_PROCEDURES = "PostgreSQL doesn't have stored procedures, only functions"

# btree is the default access method and is not scripted
INDEX_METHODS = {"btree": "", "gist": "USING gist ", "hash": "USING hash ", "gin": "USING gin "}


class PostgreSqlScripter(DialectScripter):
    """Statement hooks for PostgreSQL."""

    def __init__(self) -> None:
        self.helper = PostgreSqlScriptHelper()

    def sort_tables(self, tables: Iterable[Table], drop_order: bool = False) -> List[Table]:
        resolver = TableDependencyResolver(tables)
        if not resolver.has_dependencies:
            return super().sort_tables(resolver.tables, drop_order)
        return resolver.drop_order() if drop_order else resolver.create_order()

    # -- tables ---------------------------------------------------------------

    def script_create_table(self, table: Table, columns: Sequence[Column], options: ScriptingOptions) -> str:
        pg_table = self.helper.expect(table, PostgreSqlTable)

        lines = [f"{self.indent}{self.helper.script_column(col, options)}" for col in columns]
        script = f"CREATE TABLE {self.name(pg_table, options)}(\n" + ",\n".join(lines) + "\n)"

        if pg_table.parent_key is not None:
            parent = self.helper.script_name(
                pg_table.inherited_table_schema, pg_table.inherited_table_name, options)
            script += f"\nINHERITS ({parent})"

        return script + ";\n"

    def script_drop_table(self, table: Table, options: ScriptingOptions) -> str:
        return f"DROP TABLE {self.name(table, options)};\n"

    def script_add_primary_keys(self, table: Table, keys: Sequence[Index], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(keys):
            script += f"ALTER TABLE {self.name(table, options)}\n"
            script += (f"ADD CONSTRAINT {self.helper.quote(group[0].name)} "
                       f"PRIMARY KEY ({self.helper.script_index_columns(group)});\n\n")
        return script

    def script_drop_primary_keys(self, table: Table, keys: Sequence[Index], options: ScriptingOptions) -> str:
        return self._drop_table_constraints(keys, options)

    def script_add_constraints(
        self, table: Table, constraints: Sequence[Constraint], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(constraints):
            constraint = group[0]
            script += f"ALTER TABLE {self.name(table, options)}\n"
            script += f"ADD CONSTRAINT {self.helper.quote(constraint.name)} {constraint.definition};\n\n"
        return script

    def script_drop_constraints(
        self, table: Table, constraints: Sequence[Constraint], options: ScriptingOptions) -> str:
        return self._drop_table_constraints(constraints, options)

    def script_add_foreign_keys(
        self, table: Table, foreign_keys: Sequence[ForeignKey], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(foreign_keys):
            key = self.helper.expect(group[0], PostgreSqlForeignKey)
            columns = ",".join(self.helper.quote(row.column_name) for row in group)
            referenced_columns = ",".join(self.helper.quote(row.referenced_column_name) for row in group)
            referenced_table = self.helper.script_name(key.referenced_table_schema, key.referenced_table_name, options)
            match = self.helper.script_foreign_key_match_option(key.match_option)

            script += f"ALTER TABLE {self.name(table, options)}\n"
            script += f"ADD CONSTRAINT {self.helper.quote(key.name)} FOREIGN KEY ({columns})\n"
            script += f"REFERENCES {referenced_table} ({referenced_columns}) {match}\n"
            script += f"ON DELETE {self.helper.script_foreign_key_action(key.delete_rule)}\n"
            script += f"ON UPDATE {self.helper.script_foreign_key_action(key.update_rule)}\n"
            script += "DEFERRABLE\n" if key.is_deferrable else "NOT DEFERRABLE\n"
            script += "INITIALLY DEFERRED;\n" if key.is_initially_deferred else "INITIALLY IMMEDIATE;\n"
            script += "\n"
        return script

    def script_drop_foreign_keys(self, foreign_keys: Sequence[ForeignKey], options: ScriptingOptions) -> str:
        return self._drop_table_constraints(foreign_keys, options)

    def _drop_table_constraints(self, rows: Sequence[SchemaObject], options: ScriptingOptions) -> str:
        return "".join(
            f"ALTER TABLE {self.table_name(group[0], options)} DROP CONSTRAINT {self.helper.quote(group[0].name)};\n"
            for group in sort_and_group(rows)
        )

    def script_create_indexes(self, obj: SchemaObject, indexes: Sequence[Index], options: ScriptingOptions) -> str:
        script = ""
        for group in sort_and_group(indexes):
            index = self.helper.expect(group[0], PostgreSqlIndex)
            if index.type not in INDEX_METHODS:
                raise UnsupportedOperationError(f"Index of type '{index.type}' is not supported")

            unique = "UNIQUE " if index.is_unique else ""
            script += (f"CREATE {unique}INDEX {self.helper.quote(index.name)} ON {self.name(obj, options)} "
                       f"{INDEX_METHODS[index.type]}({self.helper.script_index_columns(group)})")
            if index.filter_definition and index.filter_definition.strip():
                script += f" WHERE {index.filter_definition}"
            script += ";\n\n"
        return script

    def script_drop_indexes(self, obj: SchemaObject, indexes: Sequence[Index], options: ScriptingOptions) -> str:
        # Indexes live in the schema of their table
        return "".join(
            f"DROP INDEX {self.helper.script_name(group[0].schema or obj.schema, group[0].name, options)};\n"
            for group in sort_and_group(indexes)
        )

    def script_add_column(self, table: Table, column: Column, options: ScriptingOptions) -> str:
        return f"ALTER TABLE {self.name(table, options)} ADD COLUMN {self.helper.script_column(column, options)};\n"

    def script_drop_column(self, table: Table, column: Column, options: ScriptingOptions) -> str:
        return f"ALTER TABLE {self.name(table, options)} DROP COLUMN {self.helper.quote(column.name)};\n"

    def script_alter_column(self, table: Table, source: Column, target: Column, options: ScriptingOptions) -> str:
        src = self.helper.expect(source, PostgreSqlColumn)
        tgt = self.helper.expect(target, PostgreSqlColumn)
        table_name = self.name(table, options)
        quoted = self.helper.quote(tgt.name)

        if (src.identity_generation, src.generation_expression) != (tgt.identity_generation, tgt.generation_expression):
            return (
                f"-- WARNING: Column {quoted} of {table_name} is dropped and recreated, existing data is lost.\n"
                + self.script_drop_column(table, tgt, options)
                + self.script_add_column(table, src, options)
            )

        prefix = f"ALTER TABLE {table_name} ALTER COLUMN {quoted}"
        script = ""

        source_type = self.helper.script_data_type(src, options)
        if source_type != self.helper.script_data_type(tgt, options):
            script += f"{prefix} TYPE {source_type};\n"

        if src.is_nullable != tgt.is_nullable:
            script += f"{prefix} DROP NOT NULL;\n" if src.is_nullable else f"{prefix} SET NOT NULL;\n"

        if src.column_default != tgt.column_default:
            if src.column_default is None:
                script += f"{prefix} DROP DEFAULT;\n"
            else:
                script += f"{prefix} SET DEFAULT {src.column_default};\n"

        return script

    # -- programmability ------------------------------------------------------

    def script_create_view(self, view: View, options: ScriptingOptions) -> str:
        pg_view = self.helper.expect(view, PostgreSqlView)
        name = self.name(pg_view, options)

        if pg_view.check_option == "NONE":
            script = f"CREATE VIEW {name} AS\n"
        else:
            script = f"CREATE VIEW {name}\n"
            script += "WITH(\n"
            script += f"{self.indent}CHECK_OPTION = {pg_view.check_option}\n"
            script += ") AS\n"

        return script + f"{pg_view.view_definition}\n"

    def script_drop_view(self, view: View, options: ScriptingOptions) -> str:
        return f"DROP VIEW {self.name(view, options)};\n"

    def script_alter_view(self, source: View, target: View, options: ScriptingOptions) -> str:
        return self.drop_and_create(self.script_drop_view(target, options), self.script_create_view(source, options))

    def script_create_function(
        self, function: Function, data_types: Sequence[DataType], options: ScriptingOptions) -> str:
        pg_function = self.helper.expect(function, PostgreSqlFunction)

        arg_types = pg_function.all_arg_types if pg_function.all_arg_types is not None else pg_function.arg_types
        arguments = []
        for i, arg_type in enumerate(arg_types):
            mode = pg_function.arg_modes[i] if pg_function.arg_modes else "i"
            name = pg_function.arg_names[i] if pg_function.arg_names else ""
            arguments.append(
                f"\n{self.indent}{self.helper.script_function_argument(arg_type, mode, name, data_types)}")

        set_of = "SETOF " if pg_function.return_set else ""
        return_type = self.helper.script_function_argument_type(pg_function.return_type, data_types)

        script = f"CREATE FUNCTION {self.name(pg_function, options)}(" + ",".join(arguments) + ")\n"
        script += f"{self.indent}RETURNS {set_of}{return_type}\n"
        script += f"{self.indent}LANGUAGE {pg_function.external_language}\n"
        script += "\n"
        script += f"{self.indent}COST {pg_function.cost:g}\n"
        if pg_function.rows > 0:
            script += f"{self.indent}ROWS {pg_function.rows:g}\n"
        script += f"{self.indent}{self.helper.script_function_attributes(pg_function)}\n"
        script += f"AS $BODY${pg_function.definition}$BODY$;\n"
        return script

    def script_drop_function(
        self, function: Function, data_types: Sequence[DataType], options: ScriptingOptions) -> str:
        # Functions can be overloaded, the input argument types identify one
        pg_function = self.helper.expect(function, PostgreSqlFunction)
        arguments = ", ".join(
            self.helper.script_function_argument_type(arg_type, data_types) for arg_type in pg_function.arg_types)
        return f"DROP FUNCTION {self.name(pg_function, options)}({arguments});\n"

    def script_alter_function(
        self, source: Function, target: Function, data_types: Sequence[DataType],
        options: ScriptingOptions) -> str:
        return self.drop_and_create(
            self.script_drop_function(target, data_types, options),
            self.script_create_function(source, data_types, options))

    def script_create_stored_procedure(self, procedure: StoredProcedure, options: ScriptingOptions) -> str:
        raise UnsupportedOperationError(NO_STORED_PROCEDURES)

    def script_drop_stored_procedure(self, procedure: StoredProcedure, options: ScriptingOptions) -> str:
        raise UnsupportedOperationError(NO_STORED_PROCEDURES)

    def script_alter_stored_procedure(
        self, source: StoredProcedure, target: StoredProcedure, options: ScriptingOptions) -> str:
        raise UnsupportedOperationError(NO_STORED_PROCEDURES)

    def script_create_trigger(self, trigger: Trigger, options: ScriptingOptions) -> str:
        script = trigger.definition
        if not script.endswith(";"):
            script += ";"
        return script + "\n"

    def script_drop_trigger(self, trigger: Trigger, options: ScriptingOptions) -> str:
        return f"DROP TRIGGER {self.helper.quote(trigger.name)} ON {self.table_name(trigger, options)};\n"

    def script_alter_trigger(self, source: Trigger, target: Trigger, options: ScriptingOptions) -> str:
        return self.drop_and_create(
            self.script_drop_trigger(target, options), self.script_create_trigger(source, options))

    # -- sequences and types --------------------------------------------------

    def script_create_sequence(self, sequence: SequenceObject, options: ScriptingOptions) -> str:
        pg_sequence = self.helper.expect(sequence, PostgreSqlSequence)

        script = f"CREATE SEQUENCE {self.name(pg_sequence, options)}\n"
        script += f"{self.indent}AS {pg_sequence.data_type}\n"
        script += f"{self.indent}START WITH {pg_sequence.start_value}\n"
        script += f"{self.indent}INCREMENT BY {pg_sequence.increment}\n"
        script += (f"{self.indent}MINVALUE {pg_sequence.min_value}\n" if pg_sequence.min_value is not None
                   else f"{self.indent}NO MINVALUE\n")
        script += (f"{self.indent}MAXVALUE {pg_sequence.max_value}\n" if pg_sequence.max_value is not None
                   else f"{self.indent}NO MAXVALUE\n")
        script += f"{self.indent}CYCLE\n" if pg_sequence.is_cycling else f"{self.indent}NO CYCLE\n"
        script += f"{self.indent}CACHE {pg_sequence.cache};\n"
        return script

    def script_drop_sequence(self, sequence: SequenceObject, options: ScriptingOptions) -> str:
        return f"DROP SEQUENCE {self.name(sequence, options)};\n"

    def script_alter_sequence(
        self, source: SequenceObject, target: SequenceObject, options: ScriptingOptions) -> str:
        return self.drop_and_create(
            self.script_drop_sequence(target, options), self.script_create_sequence(source, options))

    def script_create_type(
        self, data_type: DataType, data_types: Sequence[DataType], options: ScriptingOptions) -> str:
        name = self.name(data_type, options)
        indent = self.indent

        if isinstance(data_type, PostgreSqlDataTypeEnumerated):
            labels = ",".join(f"\n{indent}'{label}'" for label in data_type.labels)
            return f"CREATE TYPE {name} AS ENUM ({labels}\n);\n"

        if isinstance(data_type, PostgreSqlDataTypeComposite):
            attributes = ",".join(
                f"\n{indent}{attribute} {self.helper.script_function_argument_type(type_id, data_types)}"
                for attribute, type_id in zip(data_type.attribute_names, data_type.attribute_type_ids)
            )
            return f"CREATE TYPE {name} AS ({attributes}\n);\n"

        if isinstance(data_type, PostgreSqlDataTypeRange):
            script = f"CREATE TYPE {name} AS RANGE (\n"
            script += f"{indent}SUBTYPE = {self.helper.script_function_argument_type(data_type.sub_type_id, data_types)}"
            if data_type.canonical:
                script += f",\n{indent}CANONICAL = {data_type.canonical}"
            if data_type.sub_type_diff:
                script += f",\n{indent}SUBTYPE_DIFF = {data_type.sub_type_diff}"
            return script + "\n);\n"

        if isinstance(data_type, PostgreSqlDataTypeDomain):
            script = f"CREATE DOMAIN {name}\n"
            script += f"{indent}AS {self.helper.script_function_argument_type(data_type.base_type_id, data_types)}\n"
            if data_type.constraint_name:
                script += f"{indent}CONSTRAINT {self.helper.quote(data_type.constraint_name)}\n"
            if data_type.constraint_definition:
                script += f"{indent}{data_type.constraint_definition}"
            else:
                script += f"{indent}{'NOT NULL' if data_type.not_null else 'NULL'}"
            return script + ";\n"

        raise UnsupportedOperationError(f"Type {type(data_type).__name__} cannot be scripted for PostgreSQL")

    def script_drop_type(self, data_type: DataType, options: ScriptingOptions) -> str:
        if isinstance(data_type, PostgreSqlDataTypeDomain):
            return f"DROP DOMAIN {self.name(data_type, options)};\n"
        if isinstance(data_type, (PostgreSqlDataTypeEnumerated, PostgreSqlDataTypeComposite, PostgreSqlDataTypeRange)):
            return f"DROP TYPE {self.name(data_type, options)};\n"
        raise UnsupportedOperationError(f"Type {type(data_type).__name__} cannot be scripted for PostgreSQL")

    def script_alter_type(
        self, source: DataType, target: DataType, data_types: Sequence[DataType],
        options: ScriptingOptions) -> str:
        return self.drop_and_create(
            self.script_drop_type(target, options), self.script_create_type(source, data_types, options))
