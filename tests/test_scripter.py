import pytest

from sql_schema_compare.core.errors import InvalidArgumentError, UnsupportedOperationError
from sql_schema_compare.core.model import (
    Constraint,
    Database,
    Dialect,
    ForeignKey,
    Function,
    MicrosoftSqlColumn,
    MicrosoftSqlDataType,
    MicrosoftSqlIndex,
    Sequence,
    StoredProcedure,
    Table,
    Trigger,
    View,
)
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.scripter_factory import create_scripter


def column(name, position, data_type="int", **kwargs):
    return MicrosoftSqlColumn(name=name, data_type=data_type, ordinal_position=position, **kwargs)


def table(name="Customer", columns=None, **kwargs):
    return Table(
        name=name,
        schema="dbo",
        columns=columns or (column("Id", 1, is_nullable=False), column("Name", 2, "nvarchar", character_max_length=50)),
        **kwargs,
    )


# object kind -> (source, target, create, drop, alter) on a Microsoft SQL scripter
KINDS = {
    "table": (
        table(columns=(column("Id", 1), column("Extra", 2))), table(),
        "generate_create_table_script", "generate_drop_table_script", "generate_alter_table_script",
    ),
    "view": (
        View(name="V", schema="dbo", view_definition="CREATE VIEW dbo.V AS SELECT 2 AS x"),
        View(name="V", schema="dbo", view_definition="CREATE VIEW dbo.V AS SELECT 1 AS x"),
        "generate_create_view_script", "generate_drop_view_script", "generate_alter_view_script",
    ),
    "function": (
        Function(name="F", schema="dbo", definition="CREATE FUNCTION dbo.F() RETURNS int AS BEGIN RETURN 2 END"),
        Function(name="F", schema="dbo", definition="CREATE FUNCTION dbo.F() RETURNS int AS BEGIN RETURN 1 END"),
        "generate_create_function_script", "generate_drop_function_script", "generate_alter_function_script",
    ),
    "stored_procedure": (
        StoredProcedure(name="P", schema="dbo", definition="CREATE PROCEDURE dbo.P AS SELECT 2"),
        StoredProcedure(name="P", schema="dbo", definition="CREATE PROCEDURE dbo.P AS SELECT 1"),
        "generate_create_stored_procedure_script", "generate_drop_stored_procedure_script",
        "generate_alter_stored_procedure_script",
    ),
    "trigger": (
        Trigger(name="T", schema="dbo", definition="CREATE TRIGGER dbo.T ON dbo.Customer AFTER INSERT AS SELECT 2"),
        Trigger(name="T", schema="dbo", definition="CREATE TRIGGER dbo.T ON dbo.Customer AFTER INSERT AS SELECT 1"),
        "generate_create_trigger_script", "generate_drop_trigger_script", "generate_alter_trigger_script",
    ),
    "sequence": (
        Sequence(name="S", schema="dbo", increment=2),
        Sequence(name="S", schema="dbo"),
        "generate_create_sequence_script", "generate_drop_sequence_script", "generate_alter_sequence_script",
    ),
    "type": (
        MicrosoftSqlDataType(name="Code", schema="dbo", system_type_name="char", max_length=4),
        MicrosoftSqlDataType(name="Code", schema="dbo", system_type_name="char", max_length=2),
        "generate_create_type_script", "generate_drop_type_script", "generate_alter_type_script",
    ),
}


@pytest.fixture
def scripter():
    return create_scripter(Dialect.MICROSOFT_SQL)


@pytest.mark.parametrize("kind", sorted(KINDS))
def test_alter_without_objects_is_an_error(scripter, kind):
    alter = KINDS[kind][4]
    with pytest.raises(InvalidArgumentError):
        getattr(scripter, alter)(None, None)


@pytest.mark.parametrize("kind", sorted(KINDS))
def test_alter_with_source_only_creates(scripter, kind):
    source, _target, create, _drop, alter = KINDS[kind]
    assert getattr(scripter, alter)(source, None) == getattr(scripter, create)(source)


@pytest.mark.parametrize("kind", sorted(KINDS))
def test_alter_with_target_only_drops(scripter, kind):
    _source, target, _create, drop, alter = KINDS[kind]
    assert getattr(scripter, alter)(None, target) == getattr(scripter, drop)(target)


@pytest.mark.parametrize("kind", sorted(KINDS))
def test_alter_with_both_sides_alters(scripter, kind):
    source, target, create, _drop, alter = KINDS[kind]
    script = getattr(scripter, alter)(source, target)
    assert script
    assert script != getattr(scripter, create)(source)


def test_invalid_argument_is_a_value_error():
    assert issubclass(InvalidArgumentError, ValueError)


def test_unknown_dialect():
    with pytest.raises(UnsupportedOperationError):
        create_scripter("oracle")


def test_column_fragment_count(scripter):
    columns = tuple(column(f"C{i}", i) for i in range(1, 6))
    definition = scripter.generate_table_definition(table(columns=columns))
    fragments = [line for line in definition.splitlines() if line.startswith("    [")]
    assert len(fragments) == len(columns)


def test_schema_name_and_alphabetical_options():
    scripter = create_scripter("mssql", ScriptingOptions(use_schema_name=False, order_column_alphabetically=True))
    definition = scripter.generate_table_definition(table(columns=(column("b", 1), column("a", 2))))
    assert definition.startswith("CREATE TABLE [Customer](\n    [a] [int] NULL,\n    [b] [int] NULL\n)")


def test_create_table_reference_alignment(scripter):
    source = table(columns=(column("Name", 1, "nvarchar", character_max_length=50), column("Id", 2)))
    aligned = scripter.generate_create_table_script(source, table())
    assert aligned.index("[Id]") < aligned.index("[Name]")

    unaligned = create_scripter(
        "mssql", ScriptingOptions(ignore_reference_table_column_order=True)
    ).generate_create_table_script(source, table())
    assert unaligned.index("[Name]") < unaligned.index("[Id]")


def test_create_table_sections(scripter):
    pk = MicrosoftSqlIndex(name="PK_Customer", schema="dbo", column_name="Id", ordinal_position=1,
                           is_primary_key=True)
    fk = ForeignKey(name="FK_Customer_Region", schema="dbo", column_name="Id", ordinal_position=1,
                    referenced_table_schema="dbo", referenced_table_name="Region", referenced_column_name="Id")
    script = scripter.generate_create_table_script(table(indexes=(pk,), foreign_keys=(fk,)))

    assert script.index("CREATE TABLE") < script.index("/****** Constraints and Indexes ******/")
    assert script.index("/****** Constraints and Indexes ******/") < script.index("/****** Foreign Keys ******/")
    assert "\n\n/****** Constraints and Indexes ******/\n" in script


def sample_database():
    region = table("Region", columns=(column("Id", 1, is_nullable=False),))
    customer = table(
        "Customer",
        constraints=(Constraint(name="CK_Name", schema="dbo", definition="([Name]<>'')"),),
        foreign_keys=(ForeignKey(name="FK_Customer_Region", schema="dbo", column_name="Id", ordinal_position=1,
                                 referenced_table_schema="dbo", referenced_table_name="Region",
                                 referenced_column_name="Id"),),
        triggers=(Trigger(name="TR_Customer", schema="dbo", definition="CREATE TRIGGER dbo.TR_Customer"),),
    )
    return Database(
        name="Sales",
        dialect=Dialect.MICROSOFT_SQL,
        tables=(customer, region),
        views=(View(name="V", schema="dbo", view_definition="CREATE VIEW dbo.V AS SELECT 1 AS x"),),
        sequences=(Sequence(name="S", schema="dbo"),),
        data_types=(
            MicrosoftSqlDataType(name="Code", schema="dbo", system_type_name="char", max_length=2),
            MicrosoftSqlDataType(name="int", system_type_name="int", is_user_defined=False),
        ),
    )


def test_full_script_section_order(scripter):
    script = scripter.generate_full_script(sample_database())
    banners = [
        "/****** User Defined Types ******/",
        "/****** Sequences ******/",
        "/****** Tables ******/",
        "/****** Triggers ******/",
        "/****** Constraints and Indexes ******/",
        "/****** Foreign Keys ******/",
        "/****** Views ******/",
    ]
    positions = [script.index(banner) for banner in banners]
    assert positions == sorted(positions)
    assert "/****** Functions ******/" not in script
    # System types are not scripted
    assert script.count("CREATE TYPE") == 1
    assert script.index("CREATE TABLE [dbo].[Customer]") < script.index("CREATE TABLE [dbo].[Region]")


def test_full_script_is_deterministic(scripter):
    assert scripter.generate_full_script(sample_database()) == scripter.generate_full_script(sample_database())


def test_full_script_requires_database(scripter):
    with pytest.raises(InvalidArgumentError):
        scripter.generate_full_script(None)
