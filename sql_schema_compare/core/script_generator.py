from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from sql_schema_compare.core.comparator import STATUS, ComparisonItem
from sql_schema_compare.core.errors import ScriptingError, UnsupportedOperationError
from sql_schema_compare.core.model import Database, ForeignKey, Table
from sql_schema_compare.core.script_helper import sort_and_group
from sql_schema_compare.core.scripter import DatabaseScripter
from sql_schema_compare.utils.logger import get_logger

logger = get_logger(__name__)

BANNER = "-- " + "=" * 78

# Programmability kinds in deployment order
PROGRAMMABILITY_KINDS = ("functions", "stored_procedures", "triggers", "views")

DEFAULT_DEPLOY_OPTIONS: Dict[str, Any] = {
    "include_drop_phase": True,
    "include_type_phase": True,
    "include_table_phase": True,
    "include_constraint_phase": True,
    "include_foreign_key_phase": True,
    "include_programmability_phase": True,
}


class ScriptGenerator:
    """Deployment script generator turning comparison results into DDL.

    The script moves the target database toward the source. Every object
    pair is scripted with the scripter's create/drop/alter decision, phases
    are emitted in dependency safe order:

    1. drop objects that only exist in the target
    2. user defined types and sequences
    3. new tables (definition only) and altered tables
    4. keys, check constraints and indexes of the new tables
    5. foreign keys of the new tables and changed foreign keys of altered tables
    6. functions, stored procedures, triggers and views

    Behaviour can be controlled via *deployment options*, allowing the
    caller to toggle each phase.
    """

    def __init__(
        self,
        source: Database,
        target: Database,
        comparison_result: Dict[str, List[ComparisonItem]],
        scripter: DatabaseScripter,
        deploy_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.source = source
        self.target = target
        self.results = comparison_result
        self.scripter = scripter
        # Default deployment options; callers can override selectively.
        self.deploy_options: Dict[str, Any] = dict(DEFAULT_DEPLOY_OPTIONS)
        if deploy_options:
            self.deploy_options.update(deploy_options)
        # Identities of the foreign keys already dropped by an earlier phase
        self._dropped_foreign_keys: Set[Tuple[str, str, str, int]] = set()

    def generate(self) -> str:
        """Generate the complete deployment script."""
        if self.source.dialect != self.target.dialect:
            raise UnsupportedOperationError(
                f"Cannot generate a migration from {self.source.dialect.value} to {self.target.dialect.value}")
        if self.scripter.dialect != self.target.dialect:
            raise UnsupportedOperationError(
                f"A {self.scripter.dialect.value} scripter cannot script a {self.target.dialect.value} database")

        logger.info(f"Generating deployment script for database: {self.target.name}")
        self._dropped_foreign_keys.clear()
        lines: List[str] = [
            BANNER,
            "-- SQL Schema Compare - Deployment Script",
            f"-- Source Database: {self.source.name}",
            f"-- Target Database: {self.target.name}",
            f"-- Dialect: {self.target.dialect.value}",
            BANNER,
            "",
        ]

        phases: List[Tuple[str, str, Callable[[], List[str]]]] = [
            ("include_drop_phase", "DROP OBJECTS MISSING IN SOURCE", self._generate_drop_phase),
            ("include_type_phase", "USER DEFINED TYPES AND SEQUENCES", self._generate_type_phase),
            ("include_table_phase", "TABLES AND COLUMNS", self._generate_table_phase),
            ("include_constraint_phase", "CONSTRAINTS AND INDEXES", self._generate_constraint_phase),
            ("include_foreign_key_phase", "FOREIGN KEYS", self._generate_foreign_key_phase),
            ("include_programmability_phase", "PROGRAMMABILITY OBJECTS", self._generate_programmability_phase),
        ]

        for number, (option, title, phase) in enumerate(phases, start=1):
            if not self.deploy_options.get(option, True):
                continue
            lines.extend([BANNER, f"-- PHASE {number}: {title}", BANNER, ""])
            lines.extend(phase())

        return "\n".join(lines) + "\n"

    # -- phases ---------------------------------------------------------------

    def _generate_drop_phase(self) -> List[str]:
        """Phase 1: drop objects that exist only in the target."""
        lines: List[str] = []

        for kind in ("views", "triggers", "stored_procedures", "functions"):
            items = self._items(kind, STATUS["MISSING_IN_SOURCE"])
            if items:
                lines.append(f"-- Dropping {len(items)} {kind}")
                drop = self._drop_function(kind)
                for item in items:
                    lines.append(self._script(item, drop, item.target))
                lines.append("")

        tables = self._dropped_tables()
        if tables:
            # Foreign keys on, or pointing to, a dropped table go first
            foreign_keys = self._foreign_keys_of(tables)
            if foreign_keys:
                lines.extend(self._drop_foreign_keys(foreign_keys, "foreign keys"))

            lines.append(f"-- Dropping {len(tables)} tables")
            for table in tables:
                lines.append(self._script_object(
                    "tables", table,
                    lambda t: self.scripter.generate_drop_table_script(t, drop_referencing_foreign_keys=False)))
            lines.append("")

        for kind, drop in (("sequences", self.scripter.generate_drop_sequence_script),
                           ("data_types", self.scripter.generate_drop_type_script)):
            items = self._items(kind, STATUS["MISSING_IN_SOURCE"])
            if items:
                lines.append(f"-- Dropping {len(items)} {kind}")
                for item in items:
                    lines.append(self._script(item, drop, item.target))
                lines.append("")

        return lines

    def _generate_type_phase(self) -> List[str]:
        """Phase 2: create or alter user defined types and sequences."""
        lines: List[str] = []
        data_types = self.source.data_types

        items = self._changed_items("data_types")
        if items:
            lines.append(f"-- Creating/modifying {len(items)} user defined types")
            for item in items:
                lines.append(self._script(
                    item, lambda s, t: self.scripter.generate_alter_type_script(s, t, data_types),
                    item.source, item.target))
            lines.append("")

        items = self._changed_items("sequences")
        if items:
            lines.append(f"-- Creating/modifying {len(items)} sequences")
            for item in items:
                lines.append(self._script(item, self.scripter.generate_alter_sequence_script, item.source, item.target))
            lines.append("")

        return lines

    def _generate_table_phase(self) -> List[str]:
        """Phase 3: create new tables and alter existing ones."""
        lines: List[str] = []

        new_tables = self._new_tables()
        if new_tables:
            lines.append(f"-- Creating {len(new_tables)} new tables")
            for table in new_tables:
                lines.append(self._script_object("tables", table, self.scripter.generate_table_definition))
            lines.append("")

        modified = self._items("tables", STATUS["DIFFERENT"])
        if modified:
            # Foreign keys are added back in the foreign key phase, once every key they reference exists
            foreign_keys = [
                fk for fk in self.scripter.unique_foreign_keys(
                    fk for item in modified for fk in self._alter_foreign_keys(item)[0])
                if self.scripter.foreign_key_identity(fk) not in self._dropped_foreign_keys
            ]
            if foreign_keys:
                lines.extend(self._drop_foreign_keys(foreign_keys, "foreign keys of existing tables"))

            lines.append(f"-- Modifying {len(modified)} existing tables")
            for item in modified:
                script = self._script(
                    item, lambda s, t: self.scripter.generate_alter_table_script(s, t, include_foreign_keys=False),
                    item.source, item.target)
                if script:
                    lines.append(script)
            lines.append("")

        return lines

    def _generate_constraint_phase(self) -> List[str]:
        """Phase 4: keys, check constraints and indexes of the new tables."""
        lines: List[str] = []
        tables = [t for t in self._new_tables() if t.indexes or t.constraints]
        if tables:
            lines.append(f"-- Adding constraints and indexes to {len(tables)} new tables")
            for table in tables:
                lines.append(self._script_object("tables", table, self.scripter.generate_table_keys_and_indexes))
            lines.append("")
        return lines

    def _generate_foreign_key_phase(self) -> List[str]:
        """Phase 5: foreign keys of the new tables and changed foreign keys of existing ones."""
        lines: List[str] = []
        tables = [t for t in self._new_tables() if t.foreign_keys]
        if tables:
            lines.append(f"-- Adding foreign keys to {len(tables)} new tables")
            for table in tables:
                lines.append(self._script_object("tables", table, self.scripter.generate_table_foreign_keys))
            lines.append("")

        foreign_keys = self.scripter.unique_foreign_keys(
            fk for item in self._items("tables", STATUS["DIFFERENT"]) for fk in self._alter_foreign_keys(item)[1])
        if foreign_keys:
            lines.append(f"-- Adding {len(sort_and_group(foreign_keys))} foreign keys to existing tables")
            lines.append(self.scripter.generate_add_foreign_keys_script(foreign_keys).rstrip("\n"))
            lines.append("")
        return lines

    def _generate_programmability_phase(self) -> List[str]:
        """Phase 6: create or alter functions, procedures, triggers and views."""
        lines: List[str] = []
        for kind in PROGRAMMABILITY_KINDS:
            items = self._changed_items(kind)
            if items:
                lines.append(f"-- Creating/modifying {len(items)} {kind}")
                alter = self._alter_function(kind)
                for item in items:
                    lines.append(self._script(item, alter, item.source, item.target))
                lines.append("")
        return lines

    # -- helpers --------------------------------------------------------------

    def _items(self, kind: str, status: str) -> List[ComparisonItem]:
        return [item for item in self.results.get(kind, []) if item.status == status]

    def _changed_items(self, kind: str) -> List[ComparisonItem]:
        return [
            item for item in self.results.get(kind, [])
            if item.status in (STATUS["MISSING_IN_TARGET"], STATUS["DIFFERENT"])
        ]

    def _table_key(self, table: Table) -> Tuple[str, str]:
        return self.scripter.helper.identifier_key(table.schema, table.name)

    def _new_tables(self) -> List[Table]:
        """New tables in creation order, resolved against every source table."""
        names = {self._table_key(item.source) for item in self._items("tables", STATUS["MISSING_IN_TARGET"])}
        return [t for t in self.scripter.get_sorted_tables(self.source.tables) if self._table_key(t) in names]

    def _dropped_tables(self) -> List[Table]:
        """Dropped tables in drop order, resolved against every target table."""
        names = {self._table_key(item.target) for item in self._items("tables", STATUS["MISSING_IN_SOURCE"])}
        return [
            t for t in self.scripter.get_sorted_tables(self.target.tables, drop_order=True)
            if self._table_key(t) in names
        ]

    def _foreign_keys_of(self, tables: List[Table]) -> List[ForeignKey]:
        """Outbound and inbound foreign keys of ``tables``, each key once."""
        return self.scripter.unique_foreign_keys(
            fk for table in tables for fk in table.foreign_keys + table.referencing_foreign_keys)

    def _drop_foreign_keys(self, foreign_keys: List[ForeignKey], label: str) -> List[str]:
        self._dropped_foreign_keys.update(self.scripter.foreign_key_identity(fk) for fk in foreign_keys)
        return [
            f"-- Dropping {len(sort_and_group(foreign_keys))} {label}",
            self.scripter.generate_drop_foreign_keys_script(foreign_keys).rstrip("\n"),
            "",
        ]

    def _alter_foreign_keys(self, item: ComparisonItem) -> Tuple[List[ForeignKey], List[ForeignKey]]:
        try:
            return self.scripter.get_alter_table_foreign_keys(item.source, item.target)
        except ScriptingError:
            logger.error(f"Failed to script {item.kind} {item.name} ({item.status})", exc_info=True)
            raise

    def _drop_function(self, kind: str) -> Callable[[Any], str]:
        return {
            "views": self.scripter.generate_drop_view_script,
            "triggers": self.scripter.generate_drop_trigger_script,
            "stored_procedures": self.scripter.generate_drop_stored_procedure_script,
            "functions": lambda f: self.scripter.generate_drop_function_script(f, self.target.data_types),
        }[kind]

    def _alter_function(self, kind: str) -> Callable[[Any, Any], str]:
        # Target types resolve the signature of the function being replaced
        data_types = self.source.data_types + self.target.data_types
        return {
            "functions": lambda s, t: self.scripter.generate_alter_function_script(s, t, data_types),
            "stored_procedures": self.scripter.generate_alter_stored_procedure_script,
            "triggers": self.scripter.generate_alter_trigger_script,
            "views": self.scripter.generate_alter_view_script,
        }[kind]

    def _script(self, item: ComparisonItem, func: Callable[..., str], *args: Any) -> str:
        try:
            return func(*args).rstrip("\n")
        except ScriptingError:
            logger.error(f"Failed to script {item.kind} {item.name} ({item.status})", exc_info=True)
            raise

    def _script_object(self, kind: str, obj: Any, func: Callable[[Any], str]) -> str:
        try:
            return func(obj).rstrip("\n")
        except ScriptingError:
            logger.error(f"Failed to script {kind} {obj.schema}.{obj.name}", exc_info=True)
            raise
