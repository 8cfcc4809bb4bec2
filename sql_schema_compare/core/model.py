"""Schema object model.

Immutable description of one database's objects. A provider (or a snapshot
file, see ``core.snapshot``) builds the graph once; the scripting engine only
reads it. Collections are tuples so that a graph can never be changed after
construction.

Indexes, primary keys and foreign keys are stored as one row per column:
rows sharing the same ``name`` belong to the same index/key and are ordered
by ``ordinal_position``.

Dialect specific attributes live on dialect variants (``MicrosoftSqlColumn``,
``MySqlColumn``, ``PostgreSqlColumn`` ...). Each dialect's script helper
only accepts its own variants.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Dialect(str, Enum):
    MICROSOFT_SQL = "mssql"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"


class ReferentialAction(str, Enum):
    NO_ACTION = "NO ACTION"
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"


class MicrosoftSqlIndexType(str, Enum):
    CLUSTERED = "CLUSTERED"
    NONCLUSTERED = "NONCLUSTERED"
    XML = "XML"
    SPATIAL = "SPATIAL"


@dataclass(frozen=True, kw_only=True)
class SchemaObject:
    name: str
    schema: str = ""
    is_user_defined: bool = True

    @property
    def key(self) -> Tuple[str, str]:
        return (self.schema, self.name)


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class Column:
    name: str
    data_type: str
    is_nullable: bool = True
    column_default: Optional[str] = None
    ordinal_position: int = 0
    collation_name: Optional[str] = None
    # -1 means unbounded ("max")
    character_max_length: Optional[int] = None


@dataclass(frozen=True, kw_only=True)
class MicrosoftSqlColumn(Column):
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None
    datetime_precision: Optional[int] = None
    is_identity: bool = False
    identity_seed: int = 1
    identity_increment: int = 1
    is_computed: bool = False
    is_persisted: bool = False
    definition: Optional[str] = None
    # Alias types created with CREATE TYPE ... FROM
    is_user_defined_type: bool = False
    user_type_schema: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class MySqlColumn(Column):
    # Full type as reported by information_schema, e.g. "int(10) unsigned"
    column_type: str = ""
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None
    character_set_name: Optional[str] = None
    extra: str = ""
    generation_expression: Optional[str] = None

    @property
    def is_virtual_generated(self) -> bool:
        return self.extra.upper() == "VIRTUAL GENERATED"

    @property
    def is_stored_generated(self) -> bool:
        return self.extra.upper() == "STORED GENERATED"


@dataclass(frozen=True, kw_only=True)
class PostgreSqlColumn(Column):
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None
    datetime_precision: Optional[int] = None
    interval_type: Optional[str] = None
    udt_name: Optional[str] = None
    # "ALWAYS" or "BY DEFAULT" for identity columns
    identity_generation: Optional[str] = None
    generation_expression: Optional[str] = None


# ---------------------------------------------------------------------------
# Indexes, keys and constraints
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class Index(SchemaObject):
    table_schema: str = ""
    table_name: str = ""
    column_name: str = ""
    ordinal_position: int = 0
    is_descending: bool = False
    is_unique: bool = False
    is_primary_key: bool = False
    filter_definition: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class MicrosoftSqlIndex(Index):
    type: MicrosoftSqlIndexType = MicrosoftSqlIndexType.NONCLUSTERED


@dataclass(frozen=True, kw_only=True)
class MySqlIndex(Index):
    index_type: str = "BTREE"


@dataclass(frozen=True, kw_only=True)
class PostgreSqlIndex(Index):
    type: str = "btree"


@dataclass(frozen=True, kw_only=True)
class Constraint(SchemaObject):
    """Check constraint."""

    table_schema: str = ""
    table_name: str = ""
    definition: str = ""


@dataclass(frozen=True, kw_only=True)
class ForeignKey(SchemaObject):
    table_schema: str = ""
    table_name: str = ""
    column_name: str = ""
    ordinal_position: int = 0
    referenced_table_schema: str = ""
    referenced_table_name: str = ""
    referenced_column_name: str = ""
    update_rule: ReferentialAction = ReferentialAction.NO_ACTION
    delete_rule: ReferentialAction = ReferentialAction.NO_ACTION


@dataclass(frozen=True, kw_only=True)
class PostgreSqlForeignKey(ForeignKey):
    # FULL, PARTIAL or SIMPLE (reported as NONE by information_schema)
    match_option: str = "NONE"
    is_deferrable: bool = False
    is_initially_deferred: bool = False


# ---------------------------------------------------------------------------
# Programmability
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class Trigger(SchemaObject):
    table_schema: str = ""
    table_name: str = ""
    definition: str = ""


@dataclass(frozen=True, kw_only=True)
class View(SchemaObject):
    view_definition: str = ""
    indexes: Tuple[Index, ...] = ()


@dataclass(frozen=True, kw_only=True)
class PostgreSqlView(View):
    check_option: str = "NONE"


@dataclass(frozen=True, kw_only=True)
class Function(SchemaObject):
    definition: str = ""


@dataclass(frozen=True, kw_only=True)
class PostgreSqlFunction(Function):
    return_type: int = 0
    return_set: bool = False
    external_language: str = "plpgsql"
    cost: float = 100
    rows: float = 0
    # 'i' immutable, 's' stable, 'v' volatile
    volatile: str = "v"
    security_type: str = "INVOKER"
    is_strict: bool = False
    arg_types: Tuple[int, ...] = ()
    all_arg_types: Optional[Tuple[int, ...]] = None
    # 'i' in, 'o' out, 'b' inout, 'v' variadic, 't' table
    arg_modes: Optional[Tuple[str, ...]] = None
    arg_names: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True, kw_only=True)
class StoredProcedure(SchemaObject):
    definition: str = ""


# ---------------------------------------------------------------------------
# Sequences and data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class Sequence(SchemaObject):
    data_type: str = "bigint"
    start_value: int = 1
    increment: int = 1
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    is_cycling: bool = False


@dataclass(frozen=True, kw_only=True)
class PostgreSqlSequence(Sequence):
    cache: int = 1


@dataclass(frozen=True, kw_only=True)
class DataType(SchemaObject):
    pass


@dataclass(frozen=True, kw_only=True)
class MicrosoftSqlDataType(DataType):
    """Alias type created with CREATE TYPE ... FROM <system type>."""

    system_type_name: str = ""
    max_length: int = 0
    precision: int = 0
    scale: int = 0
    is_nullable: bool = True


@dataclass(frozen=True, kw_only=True)
class PostgreSqlDataType(DataType):
    type_id: int = 0
    is_array: bool = False
    array_type_id: Optional[int] = None


@dataclass(frozen=True, kw_only=True)
class PostgreSqlDataTypeEnumerated(PostgreSqlDataType):
    labels: Tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True)
class PostgreSqlDataTypeComposite(PostgreSqlDataType):
    attribute_names: Tuple[str, ...] = ()
    attribute_type_ids: Tuple[int, ...] = ()


@dataclass(frozen=True, kw_only=True)
class PostgreSqlDataTypeRange(PostgreSqlDataType):
    sub_type_id: int = 0
    canonical: Optional[str] = None
    sub_type_diff: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class PostgreSqlDataTypeDomain(PostgreSqlDataType):
    base_type_id: int = 0
    constraint_name: Optional[str] = None
    constraint_definition: Optional[str] = None
    not_null: bool = False


# ---------------------------------------------------------------------------
# Tables and database
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class Table(SchemaObject):
    columns: Tuple[Column, ...] = ()
    indexes: Tuple[Index, ...] = ()
    constraints: Tuple[Constraint, ...] = ()
    foreign_keys: Tuple[ForeignKey, ...] = ()
    referencing_foreign_keys: Tuple[ForeignKey, ...] = ()
    triggers: Tuple[Trigger, ...] = ()

    @property
    def primary_keys(self) -> Tuple[Index, ...]:
        return tuple(i for i in self.indexes if i.is_primary_key)

    @property
    def secondary_indexes(self) -> Tuple[Index, ...]:
        return tuple(i for i in self.indexes if not i.is_primary_key)

    @property
    def parent_key(self) -> Optional[Tuple[str, str]]:
        """Key of the structural parent table, None when there is none."""
        return None


@dataclass(frozen=True, kw_only=True)
class PostgreSqlTable(Table):
    inherited_table_schema: Optional[str] = None
    inherited_table_name: Optional[str] = None

    @property
    def parent_key(self) -> Optional[Tuple[str, str]]:
        if not (self.inherited_table_name or "").strip():
            return None
        return (self.inherited_table_schema or "", self.inherited_table_name)


@dataclass(frozen=True, kw_only=True)
class Database:
    name: str
    dialect: Dialect
    tables: Tuple[Table, ...] = ()
    views: Tuple[View, ...] = ()
    functions: Tuple[Function, ...] = ()
    stored_procedures: Tuple[StoredProcedure, ...] = ()
    sequences: Tuple[Sequence, ...] = ()
    data_types: Tuple[DataType, ...] = ()

    @property
    def user_defined_types(self) -> Tuple[DataType, ...]:
        return tuple(t for t in self.data_types if t.is_user_defined)

    @property
    def triggers(self) -> Tuple[Trigger, ...]:
        return tuple(trigger for table in self.tables for trigger in table.triggers)


def by_schema_and_name(obj: SchemaObject) -> Tuple[str, str]:
    """Sort key used wherever objects are listed in a script."""
    return (obj.schema, obj.name)
