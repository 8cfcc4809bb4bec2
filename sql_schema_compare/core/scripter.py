"""Dialect independent scripting engine.

``DatabaseScripter`` walks the schema object model, applies the ordering and
grouping policy and decides between create, drop and alter for every object
kind. Everything dialect specific is delegated to a ``DialectScripter``
implementation that it holds a reference to.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from sql_schema_compare.core.column_order import get_sorted_columns
from sql_schema_compare.core.errors import InvalidArgumentError, ScriptingError, not_yet_implemented
from sql_schema_compare.core.model import (
    Column,
    Constraint,
    Database,
    DataType,
    Dialect,
    ForeignKey,
    Function,
    Index,
    SchemaObject,
    Sequence as SequenceObject,
    StoredProcedure,
    Table,
    Trigger,
    View,
    by_schema_and_name,
)
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.script_helper import ScriptHelper, sort_and_group
from sql_schema_compare.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Section banners
LABEL_USER_DEFINED_TYPES = "User Defined Types"
LABEL_SEQUENCES = "Sequences"
LABEL_TABLES = "Tables"
LABEL_FUNCTIONS = "Functions"
LABEL_STORED_PROCEDURES = "Stored Procedures"
LABEL_TRIGGERS = "Triggers"
LABEL_CONSTRAINTS_AND_INDEXES = "Constraints and Indexes"
LABEL_FOREIGN_KEYS = "Foreign Keys"
LABEL_VIEWS = "Views"
LABEL_INDEXES = "Indexes"


class DialectScripter(ABC):
    """Per dialect statement hooks used by ``DatabaseScripter``.

    Hooks receive the rows to script (already selected by the caller) and the
    scripting options; they never decide *what* has to be scripted.
    """

    helper: ScriptHelper
    indent = "    "

    @property
    def dialect(self) -> Dialect:
        return self.helper.dialect

    def name(self, obj: SchemaObject, options: ScriptingOptions) -> str:
        return self.helper.script_object_name(obj, options)

    def table_name(self, row: SchemaObject, options: ScriptingOptions) -> str:
        """Qualified name of the table a per-table row (index, key, trigger) belongs to."""
        return self.helper.script_name(row.table_schema, row.table_name, options)  # type: ignore[attr-defined]

    def drop_and_create(self, drop: str, create: str) -> str:
        return f"{drop}\n{create}\n"

    def sort_tables(self, tables: Iterable[Table], drop_order: bool = False) -> List[Table]:
        ordered = sorted(tables, key=by_schema_and_name)
        if drop_order:
            ordered.reverse()
        return ordered

    def script_alter_table_inheritance(self, source: Table, target: Table, options: ScriptingOptions) -> str:
        return not_yet_implemented("Alter Table Inheritance Script")

    # -- tables ---------------------------------------------------------------

    @abstractmethod
    def script_create_table(self, table: Table, columns: Sequence[Column], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_table(self, table: Table, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_add_primary_keys(self, table: Table, keys: Sequence[Index], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_primary_keys(self, table: Table, keys: Sequence[Index], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_add_constraints(
        self, table: Table, constraints: Sequence[Constraint], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_constraints(
        self, table: Table, constraints: Sequence[Constraint], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_add_foreign_keys(
        self, table: Table, foreign_keys: Sequence[ForeignKey], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_foreign_keys(self, foreign_keys: Sequence[ForeignKey], options: ScriptingOptions) -> str:
        """Drop foreign keys; each row carries the table it is defined on."""

    @abstractmethod
    def script_create_indexes(self, obj: SchemaObject, indexes: Sequence[Index], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_indexes(self, obj: SchemaObject, indexes: Sequence[Index], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_add_column(self, table: Table, column: Column, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_column(self, table: Table, column: Column, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_alter_column(
        self, table: Table, source: Column, target: Column, options: ScriptingOptions) -> str: ...

    # -- programmability ------------------------------------------------------

    @abstractmethod
    def script_create_view(self, view: View, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_view(self, view: View, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_alter_view(self, source: View, target: View, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_create_function(
        self, function: Function, data_types: Sequence[DataType], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_function(
        self, function: Function, data_types: Sequence[DataType], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_alter_function(
        self, source: Function, target: Function, data_types: Sequence[DataType],
        options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_create_stored_procedure(self, procedure: StoredProcedure, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_stored_procedure(self, procedure: StoredProcedure, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_alter_stored_procedure(
        self, source: StoredProcedure, target: StoredProcedure, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_create_trigger(self, trigger: Trigger, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_trigger(self, trigger: Trigger, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_alter_trigger(self, source: Trigger, target: Trigger, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_create_sequence(self, sequence: SequenceObject, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_sequence(self, sequence: SequenceObject, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_alter_sequence(
        self, source: SequenceObject, target: SequenceObject, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_create_type(
        self, data_type: DataType, data_types: Sequence[DataType], options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_drop_type(self, data_type: DataType, options: ScriptingOptions) -> str: ...

    @abstractmethod
    def script_alter_type(
        self, source: DataType, target: DataType, data_types: Sequence[DataType],
        options: ScriptingOptions) -> str: ...


def _require(obj: Optional[T], argument: str) -> T:
    if obj is None:
        raise InvalidArgumentError(argument)
    return obj


class DatabaseScripter:
    """Generates DDL scripts for a whole database or for single objects.

    Args:
        dialect_scripter: Statement hooks of the target dialect
        options: Scripting options used by every call
    """

    def __init__(self, dialect_scripter: DialectScripter, options: Optional[ScriptingOptions] = None):
        self.dialect_scripter = dialect_scripter
        self.options = options or ScriptingOptions()

    @property
    def dialect(self) -> Dialect:
        return self.dialect_scripter.dialect

    @property
    def helper(self) -> ScriptHelper:
        return self.dialect_scripter.helper

    def generate_object_name(self, obj: SchemaObject) -> str:
        return self.helper.script_object_name(_require(obj, "obj"), self.options)

    # -- full script ----------------------------------------------------------

    def generate_full_script(self, database: Database) -> str:
        """Script every object of ``database`` in dependency safe order.

        Any scripting error aborts the run; the failing object is logged.
        """
        database = _require(database, "database")
        logger.info(f"Generating full script for database '{database.name}' ({database.dialect.value})")

        hooks = self.dialect_scripter
        opts = self.options
        commit = self.helper.script_commit_transaction()
        comment = self.helper.script_comment
        tables = sorted(database.tables, key=by_schema_and_name)
        parts: List[str] = []

        user_types = database.user_defined_types
        if user_types:
            parts.append(comment(LABEL_USER_DEFINED_TYPES) + "\n")
            for data_type in sorted(user_types, key=by_schema_and_name):
                parts.append(self._guarded(
                    "type", data_type, hooks.script_create_type, data_type, database.data_types, opts) + "\n")
            parts.append("\n")

        if database.sequences:
            parts.append(comment(LABEL_SEQUENCES) + "\n")
            for sequence in sorted(database.sequences, key=by_schema_and_name):
                parts.append(self._guarded("sequence", sequence, hooks.script_create_sequence, sequence, opts) + "\n")
            parts.append("\n")

        if tables:
            parts.append(comment(LABEL_TABLES) + "\n")
            for table in self.get_sorted_tables(tables):
                parts.append(self._guarded("table", table, self.generate_table_definition, table) + "\n")
            parts.append("\n")

        if database.functions:
            parts.append(comment(LABEL_FUNCTIONS) + "\n")
            for function in sorted(database.functions, key=by_schema_and_name):
                parts.append(commit)
                parts.append(self._guarded(
                    "function", function, hooks.script_create_function, function, database.data_types, opts) + "\n")
            parts.append("\n")

        if database.stored_procedures:
            parts.append(comment(LABEL_STORED_PROCEDURES) + "\n")
            for procedure in sorted(database.stored_procedures, key=by_schema_and_name):
                parts.append(commit)
                parts.append(self._guarded(
                    "stored procedure", procedure, hooks.script_create_stored_procedure, procedure, opts) + "\n")
            parts.append("\n")

        if any(table.triggers for table in tables):
            parts.append(comment(LABEL_TRIGGERS) + "\n")
            for table in tables:
                for trigger in sorted(table.triggers, key=by_schema_and_name):
                    parts.append(commit)
                    parts.append(self._guarded("trigger", trigger, hooks.script_create_trigger, trigger, opts) + "\n")
            parts.append("\n")

        if any(table.indexes or table.constraints for table in tables):
            parts.append(comment(LABEL_CONSTRAINTS_AND_INDEXES) + "\n")
            for table in tables:
                parts.append(self._guarded("table", table, self.generate_table_keys_and_indexes, table))
            parts.append("\n")

        if any(table.foreign_keys for table in tables):
            parts.append(comment(LABEL_FOREIGN_KEYS) + "\n")
            for table in tables:
                parts.append(self._guarded("table", table, self.generate_table_foreign_keys, table))
            parts.append("\n")

        if database.views:
            parts.append(comment(LABEL_VIEWS) + "\n")
            for view in sorted(database.views, key=by_schema_and_name):
                parts.append(commit)
                parts.append(self._guarded("view", view, hooks.script_create_view, view, opts) + "\n")
                if view.indexes:
                    parts.append(self._guarded("view", view, hooks.script_create_indexes, view, view.indexes, opts))
            parts.append("\n")

        return "".join(parts)

    def _guarded(self, kind: str, obj: SchemaObject, func: Callable[..., str], *args) -> str:
        try:
            return func(*args)
        except ScriptingError:
            logger.error(f"Failed to script {kind} {obj.schema}.{obj.name}", exc_info=True)
            raise

    # -- table building blocks ------------------------------------------------

    def get_sorted_tables(self, tables: Iterable[Table], drop_order: bool = False) -> List[Table]:
        return self.dialect_scripter.sort_tables(tables, drop_order)

    def generate_table_definition(self, table: Table, reference_table: Optional[Table] = None) -> str:
        """CREATE TABLE statement only, columns aligned to ``reference_table``."""
        table = _require(table, "table")
        columns = get_sorted_columns(table, reference_table, self.options)
        return self.dialect_scripter.script_create_table(table, columns, self.options)

    def generate_table_keys_and_indexes(self, table: Table) -> str:
        hooks = self.dialect_scripter
        return (
            hooks.script_add_primary_keys(table, table.primary_keys, self.options)
            + hooks.script_add_constraints(table, table.constraints, self.options)
            + hooks.script_create_indexes(table, table.secondary_indexes, self.options)
        )

    def generate_table_foreign_keys(self, table: Table) -> str:
        return self.dialect_scripter.script_add_foreign_keys(table, table.foreign_keys, self.options)

    # -- tables ---------------------------------------------------------------

    def generate_create_table_script(self, table: Table, reference_table: Optional[Table] = None) -> str:
        table = _require(table, "table")
        comment = self.helper.script_comment

        script = self.generate_table_definition(table, reference_table)

        if table.triggers:
            script += "\n\n" + comment(LABEL_TRIGGERS) + "\n"
            for trigger in sorted(table.triggers, key=by_schema_and_name):
                script += self.dialect_scripter.script_create_trigger(trigger, self.options) + "\n"

        has_keys_and_indexes = bool(table.indexes or table.constraints)
        if has_keys_and_indexes:
            script += "\n"
            if not table.triggers:
                script += "\n"
            script += comment(LABEL_CONSTRAINTS_AND_INDEXES) + "\n"
            script += self.generate_table_keys_and_indexes(table)

        if table.foreign_keys:
            script += "\n"
            if not has_keys_and_indexes:
                script += "\n"
            script += comment(LABEL_FOREIGN_KEYS) + "\n"
            script += self.generate_table_foreign_keys(table)

        return script

    def generate_drop_table_script(self, table: Table, drop_referencing_foreign_keys: bool = True) -> str:
        """Drop inbound foreign keys first, then the table."""
        table = _require(table, "table")
        script = ""
        if drop_referencing_foreign_keys and table.referencing_foreign_keys:
            script += self.generate_drop_foreign_keys_script(table.referencing_foreign_keys)
        return script + self.dialect_scripter.script_drop_table(table, self.options)

    def generate_drop_foreign_keys_script(self, foreign_keys: Sequence[ForeignKey]) -> str:
        return self.dialect_scripter.script_drop_foreign_keys(foreign_keys, self.options)

    def generate_add_foreign_keys_script(self, foreign_keys: Sequence[ForeignKey]) -> str:
        """Add foreign keys; each row carries the table it is defined on."""
        by_table: Dict[Tuple[str, str], List[ForeignKey]] = {}
        for fk in foreign_keys:
            by_table.setdefault((fk.table_schema, fk.table_name), []).append(fk)
        return "".join(
            self.dialect_scripter.script_add_foreign_keys(Table(name=name, schema=schema), rows, self.options)
            for (schema, name), rows in sorted(by_table.items())
        )

    def unique_foreign_keys(self, foreign_keys: Iterable[ForeignKey]) -> List[ForeignKey]:
        """Foreign key rows without duplicates, first occurrence wins."""
        seen = set()
        rows: List[ForeignKey] = []
        for fk in foreign_keys:
            identity = self.foreign_key_identity(fk)
            if identity not in seen:
                seen.add(identity)
                rows.append(fk)
        return rows

    def foreign_key_identity(self, fk: ForeignKey) -> Tuple[str, str, str, int]:
        schema, table = self.helper.identifier_key(fk.table_schema, fk.table_name)
        return schema, table, self._name_key(fk.name), fk.ordinal_position

    def generate_alter_table_script(
        self,
        source: Optional[Table],
        target: Optional[Table],
        include_foreign_keys: bool = True,
    ) -> str:
        """Create the source table, drop the target table or alter one into the other.

        When altering with ``include_foreign_keys`` false no foreign key is
        touched; ``get_alter_table_foreign_keys`` returns the ones to drop
        before and to add after the alter.
        """
        return self._decide(
            source, target,
            self.generate_create_table_script,
            self.generate_drop_table_script,
            lambda s, t: self._alter_table(s, t, include_foreign_keys),
        )

    def get_alter_table_foreign_keys(
        self, source: Table, target: Table) -> Tuple[List[ForeignKey], List[ForeignKey]]:
        """Foreign keys to drop from the target and to add from the source.

        Besides the table's own changed keys this includes foreign keys of
        other tables that reference a primary key or index being rebuilt.
        """
        changes = self._table_changes(_require(source, "source"), _require(target, "target"))
        return changes.drop_foreign_keys, changes.add_foreign_keys

    def _alter_table(self, source: Table, target: Table, include_foreign_keys: bool = True) -> str:
        hooks = self.dialect_scripter
        opts = self.options
        changes = self._table_changes(source, target)

        parts: List[str] = []
        if source.parent_key != target.parent_key:
            parts.append(hooks.script_alter_table_inheritance(source, target, opts))

        # Foreign keys go first, they may reference a key dropped below
        if include_foreign_keys and changes.drop_foreign_keys:
            parts.append(self.generate_drop_foreign_keys_script(changes.drop_foreign_keys))
        if changes.drop_indexes:
            parts.append(hooks.script_drop_indexes(target, changes.drop_indexes, opts))
        if changes.drop_constraints:
            parts.append(hooks.script_drop_constraints(target, changes.drop_constraints, opts))
        if changes.drop_primary_keys:
            parts.append(hooks.script_drop_primary_keys(target, changes.drop_primary_keys, opts))

        table_name = self.helper.script_object_name(target, opts)
        for column in changes.dropped_columns:
            parts.append(f"-- WARNING: Dropping column {self.helper.quote(column.name)} "
                         f"from {table_name} may cause data loss.\n")
            parts.append(hooks.script_drop_column(target, column, opts))
        for column in changes.added_columns:
            parts.append(hooks.script_add_column(target, column, opts))
        for source_column, target_column in changes.altered_columns:
            parts.append(hooks.script_alter_column(target, source_column, target_column, opts))

        if changes.add_primary_keys:
            parts.append(hooks.script_add_primary_keys(target, changes.add_primary_keys, opts))
        if changes.add_constraints:
            parts.append(hooks.script_add_constraints(target, changes.add_constraints, opts))
        if changes.add_indexes:
            parts.append(hooks.script_create_indexes(target, changes.add_indexes, opts))
        if include_foreign_keys and changes.add_foreign_keys:
            parts.append(self.generate_add_foreign_keys_script(changes.add_foreign_keys))

        script = "".join(parts)
        logger.debug(f"Alter table {source.schema}.{source.name}: {'changed' if script else 'no changes'}")
        return script

    def _table_changes(self, source: Table, target: Table) -> _TableChanges:
        key = self._name_key
        opts = self.options
        changes = _TableChanges()

        source_columns = {key(c.name): c for c in source.columns}
        target_columns = {key(c.name): c for c in target.columns}

        changes.dropped_columns = [c for c in sorted(target.columns, key=lambda c: c.ordinal_position)
                                   if key(c.name) not in source_columns]
        changes.added_columns = [c for c in get_sorted_columns(source, target, opts)
                                 if key(c.name) not in target_columns]
        changes.altered_columns = [
            (column, target_columns[name])
            for name, column in ((key(c.name), c) for c in get_sorted_columns(source, target, opts))
            if name in target_columns and not _same_column(column, target_columns[name])
        ]

        # Keys and indexes on a dropped or altered column have to be rebuilt
        touched = ({key(c.name) for c in changes.dropped_columns}
                   | {key(s.name) for s, _ in changes.altered_columns})

        changes.drop_indexes, changes.add_indexes = self._changed_groups(
            source.secondary_indexes, target.secondary_indexes, touched)
        changes.drop_primary_keys, changes.add_primary_keys = self._changed_groups(
            source.primary_keys, target.primary_keys, touched)
        changes.drop_constraints, changes.add_constraints = self._changed_groups(
            source.constraints, target.constraints, set())

        drop_fks, add_fks = self._changed_groups(source.foreign_keys, target.foreign_keys, touched)
        drop_fks = [_defined_on(fk, target) for fk in drop_fks]
        add_fks = [_defined_on(fk, target) for fk in add_fks]

        # A key referenced by other tables can only be dropped once their foreign keys are gone
        rebuilt = {key(row.column_name) for row in changes.drop_primary_keys + changes.drop_indexes}
        if rebuilt:
            inbound = self._referencing(target.referencing_foreign_keys, rebuilt)
            inbound_names = {key(fk.name) for fk in inbound}
            restored = {key(row.column_name) for row in changes.add_primary_keys + changes.add_indexes}
            drop_fks += inbound
            add_fks += [fk for fk in self._referencing(source.referencing_foreign_keys, restored)
                        if key(fk.name) in inbound_names]

        changes.drop_foreign_keys = self.unique_foreign_keys(drop_fks)
        changes.add_foreign_keys = self.unique_foreign_keys(add_fks)
        return changes

    def _referencing(self, foreign_keys: Sequence[ForeignKey], columns: set) -> List[ForeignKey]:
        """Rows of the foreign keys that reference one of ``columns``."""
        key = self._name_key
        return [
            fk
            for group in sort_and_group(foreign_keys)
            if any(key(row.referenced_column_name) in columns for row in group)
            for fk in group
        ]

    def _name_key(self, name: str) -> str:
        return self.helper.identifier_key("", name)[1]

    def _changed_groups(
        self,
        source_rows: Sequence[T],
        target_rows: Sequence[T],
        touched_columns: set,
    ) -> Tuple[List[T], List[T]]:
        """Rows of the groups to drop from the target and to add from the source.

        A group is rebuilt when it only exists on one side, when its rows
        differ, or when it covers one of ``touched_columns``.
        """
        key = self._name_key
        source_groups: Dict[str, List[T]] = {key(g[0].name): g for g in sort_and_group(source_rows)}
        target_groups: Dict[str, List[T]] = {key(g[0].name): g for g in sort_and_group(target_rows)}

        def touches(group: List[T]) -> bool:
            return any(key(getattr(row, "column_name", "")) in touched_columns for row in group)

        to_drop: List[T] = []
        for name, group in target_groups.items():
            other = source_groups.get(name)
            if other is None or other != group or touches(group):
                to_drop.extend(group)

        to_add: List[T] = []
        for name, group in source_groups.items():
            other = target_groups.get(name)
            if other is None or other != group or touches(group):
                to_add.extend(group)

        return to_drop, to_add

    # -- views ----------------------------------------------------------------

    def generate_create_view_script(self, view: View) -> str:
        view = _require(view, "view")
        script = self.dialect_scripter.script_create_view(view, self.options)
        if view.indexes:
            script += "\n" + self.helper.script_comment(LABEL_INDEXES) + "\n"
            script += self.dialect_scripter.script_create_indexes(view, view.indexes, self.options)
        return script

    def generate_drop_view_script(self, view: View) -> str:
        view = _require(view, "view")
        script = ""
        if view.indexes:
            script += self.dialect_scripter.script_drop_indexes(view, view.indexes, self.options)
        return script + self.dialect_scripter.script_drop_view(view, self.options)

    def generate_alter_view_script(self, source: Optional[View], target: Optional[View]) -> str:
        return self._decide(
            source, target,
            self.generate_create_view_script,
            self.generate_drop_view_script,
            lambda s, t: self.dialect_scripter.script_alter_view(s, t, self.options),
        )

    # -- functions ------------------------------------------------------------

    def generate_create_function_script(self, function: Function, data_types: Sequence[DataType] = ()) -> str:
        function = _require(function, "function")
        return self.dialect_scripter.script_create_function(function, data_types, self.options)

    def generate_drop_function_script(self, function: Function, data_types: Sequence[DataType] = ()) -> str:
        function = _require(function, "function")
        return self.dialect_scripter.script_drop_function(function, data_types, self.options)

    def generate_alter_function_script(
        self,
        source: Optional[Function],
        target: Optional[Function],
        data_types: Sequence[DataType] = (),
    ) -> str:
        return self._decide(
            source, target,
            lambda f: self.generate_create_function_script(f, data_types),
            lambda f: self.generate_drop_function_script(f, data_types),
            lambda s, t: self.dialect_scripter.script_alter_function(s, t, data_types, self.options),
        )

    # -- stored procedures ----------------------------------------------------

    def generate_create_stored_procedure_script(self, procedure: StoredProcedure) -> str:
        procedure = _require(procedure, "procedure")
        return self.dialect_scripter.script_create_stored_procedure(procedure, self.options)

    def generate_drop_stored_procedure_script(self, procedure: StoredProcedure) -> str:
        procedure = _require(procedure, "procedure")
        return self.dialect_scripter.script_drop_stored_procedure(procedure, self.options)

    def generate_alter_stored_procedure_script(
        self, source: Optional[StoredProcedure], target: Optional[StoredProcedure]) -> str:
        return self._decide(
            source, target,
            self.generate_create_stored_procedure_script,
            self.generate_drop_stored_procedure_script,
            lambda s, t: self.dialect_scripter.script_alter_stored_procedure(s, t, self.options),
        )

    # -- triggers -------------------------------------------------------------

    def generate_create_trigger_script(self, trigger: Trigger) -> str:
        return self.dialect_scripter.script_create_trigger(_require(trigger, "trigger"), self.options)

    def generate_drop_trigger_script(self, trigger: Trigger) -> str:
        return self.dialect_scripter.script_drop_trigger(_require(trigger, "trigger"), self.options)

    def generate_alter_trigger_script(self, source: Optional[Trigger], target: Optional[Trigger]) -> str:
        return self._decide(
            source, target,
            self.generate_create_trigger_script,
            self.generate_drop_trigger_script,
            lambda s, t: self.dialect_scripter.script_alter_trigger(s, t, self.options),
        )

    # -- sequences ------------------------------------------------------------

    def generate_create_sequence_script(self, sequence: SequenceObject) -> str:
        return self.dialect_scripter.script_create_sequence(_require(sequence, "sequence"), self.options)

    def generate_drop_sequence_script(self, sequence: SequenceObject) -> str:
        return self.dialect_scripter.script_drop_sequence(_require(sequence, "sequence"), self.options)

    def generate_alter_sequence_script(
        self, source: Optional[SequenceObject], target: Optional[SequenceObject]) -> str:
        return self._decide(
            source, target,
            self.generate_create_sequence_script,
            self.generate_drop_sequence_script,
            lambda s, t: self.dialect_scripter.script_alter_sequence(s, t, self.options),
        )

    # -- types ----------------------------------------------------------------

    def generate_create_type_script(self, data_type: DataType, data_types: Sequence[DataType] = ()) -> str:
        data_type = _require(data_type, "data_type")
        return self.dialect_scripter.script_create_type(data_type, data_types, self.options)

    def generate_drop_type_script(self, data_type: DataType) -> str:
        return self.dialect_scripter.script_drop_type(_require(data_type, "data_type"), self.options)

    def generate_alter_type_script(
        self,
        source: Optional[DataType],
        target: Optional[DataType],
        data_types: Sequence[DataType] = (),
    ) -> str:
        return self._decide(
            source, target,
            lambda t: self.generate_create_type_script(t, data_types),
            self.generate_drop_type_script,
            lambda s, t: self.dialect_scripter.script_alter_type(s, t, data_types, self.options),
        )

    # -- decision rule --------------------------------------------------------

    @staticmethod
    def _decide(
        source: Optional[T],
        target: Optional[T],
        create: Callable[[T], str],
        drop: Callable[[T], str],
        alter: Callable[[T, T], str],
    ) -> str:
        """Create the source, drop the target or alter one into the other."""
        if source is None and target is None:
            raise InvalidArgumentError("Both source and target are None")
        if target is None:
            return create(source)
        if source is None:
            return drop(target)
        return alter(source, target)


def _same_column(source: Column, target: Column) -> bool:
    """Column definitions are equal, ignoring position and name casing."""
    return replace(source, name="", ordinal_position=0) == replace(target, name="", ordinal_position=0)


def _defined_on(fk: ForeignKey, table: Table) -> ForeignKey:
    """Foreign key row naming the table it belongs to."""
    if fk.table_name:
        return fk
    return replace(fk, table_schema=table.schema, table_name=table.name)


@dataclass
class _TableChanges:
    """Rows an alter table drops from the target and adds from the source."""

    dropped_columns: List[Column] = field(default_factory=list)
    added_columns: List[Column] = field(default_factory=list)
    altered_columns: List[Tuple[Column, Column]] = field(default_factory=list)
    drop_primary_keys: List[Index] = field(default_factory=list)
    add_primary_keys: List[Index] = field(default_factory=list)
    drop_indexes: List[Index] = field(default_factory=list)
    add_indexes: List[Index] = field(default_factory=list)
    drop_constraints: List[Constraint] = field(default_factory=list)
    add_constraints: List[Constraint] = field(default_factory=list)
    drop_foreign_keys: List[ForeignKey] = field(default_factory=list)
    add_foreign_keys: List[ForeignKey] = field(default_factory=list)
