from dataclasses import replace

import pytest

from sql_schema_compare.core.comparator import SchemaComparator
from sql_schema_compare.core.errors import UnsupportedOperationError
from sql_schema_compare.core.model import (
    Database,
    Dialect,
    ForeignKey,
    MicrosoftSqlColumn,
    MicrosoftSqlIndex,
    MicrosoftSqlIndexType,
    PostgreSqlColumn,
    PostgreSqlTable,
    Table,
    View,
)
from sql_schema_compare.core.script_generator import ScriptGenerator
from sql_schema_compare.core.scripter_factory import create_scripter


def id_column():
    return MicrosoftSqlColumn(name="Id", data_type="int", is_nullable=False, ordinal_position=1)


def foreign_key(table_name, name):
    return ForeignKey(
        name=name, schema="dbo", table_schema="dbo", table_name=table_name,
        column_name="CustomerId", ordinal_position=1,
        referenced_table_schema="dbo", referenced_table_name="Customer", referenced_column_name="Id")


def customer(*extra_columns):
    return Table(name="Customer", schema="dbo", columns=(id_column(),) + extra_columns)


def order():
    return Table(
        name="Order",
        schema="dbo",
        columns=(id_column(), MicrosoftSqlColumn(name="CustomerId", data_type="int", ordinal_position=2)),
        indexes=(MicrosoftSqlIndex(name="PK_Order", schema="dbo", table_schema="dbo", table_name="Order",
                                   column_name="Id", ordinal_position=1, is_primary_key=True,
                                   type=MicrosoftSqlIndexType.CLUSTERED),),
        foreign_keys=(foreign_key("Order", "FK_Order_Customer"),),
    )


def legacy():
    return Table(
        name="Legacy",
        schema="dbo",
        columns=(MicrosoftSqlColumn(name="CustomerId", data_type="int", ordinal_position=1),),
        foreign_keys=(foreign_key("Legacy", "FK_Legacy_Customer"),),
    )


def databases(source_customer=None):
    source = Database(
        name="Dev", dialect=Dialect.MICROSOFT_SQL,
        tables=(source_customer or customer(), order()),
        views=(View(name="Orders", schema="dbo", view_definition="CREATE VIEW dbo.Orders AS SELECT * FROM dbo.[Order]"),),
    )
    target = Database(name="Prod", dialect=Dialect.MICROSOFT_SQL, tables=(customer(), legacy()))
    return source, target


def generate(source, target, deploy_options=None):
    results = SchemaComparator(source, target).compare()
    return ScriptGenerator(source, target, results, create_scripter("mssql"), deploy_options).generate()


def test_phases_in_dependency_order():
    script = generate(*databases())

    steps = [
        "-- PHASE 1: DROP OBJECTS MISSING IN SOURCE",
        "ALTER TABLE [dbo].[Legacy] DROP CONSTRAINT [FK_Legacy_Customer];",
        "DROP TABLE [dbo].[Legacy];",
        "-- PHASE 3: TABLES AND COLUMNS",
        "CREATE TABLE [dbo].[Order](",
        "-- PHASE 4: CONSTRAINTS AND INDEXES",
        "ADD CONSTRAINT [PK_Order] PRIMARY KEY CLUSTERED([Id])",
        "-- PHASE 5: FOREIGN KEYS",
        "ADD CONSTRAINT [FK_Order_Customer] FOREIGN KEY([CustomerId])",
        "-- PHASE 6: PROGRAMMABILITY OBJECTS",
        "CREATE VIEW dbo.Orders",
    ]
    positions = [script.index(step) for step in steps]
    assert positions == sorted(positions)
    assert script.startswith("-- ====")
    assert "-- Source Database: Dev" in script
    # Identical tables are left alone
    assert "CREATE TABLE [dbo].[Customer]" not in script


def test_changed_table_is_altered():
    email = MicrosoftSqlColumn(name="Email", data_type="nvarchar", character_max_length=200, ordinal_position=2)
    script = generate(*databases(customer(email)))
    assert "ALTER TABLE [dbo].[Customer] ADD [Email] [nvarchar](200) NULL" in script


def test_script_generator_deploy_options_toggle_phases():
    script = generate(*databases(), deploy_options={"include_drop_phase": False, "include_programmability_phase": False})

    assert "PHASE 1" not in script
    assert "DROP TABLE" not in script
    assert "PHASE 6" not in script
    assert "-- PHASE 3: TABLES AND COLUMNS" in script


def test_output_is_deterministic():
    assert generate(*databases()) == generate(*databases())


def test_cross_dialect_migration_is_not_supported():
    source, target = databases()
    mysql_source = Database(name="Dev", dialect=Dialect.MYSQL)
    results = SchemaComparator(mysql_source, target).compare()
    with pytest.raises(UnsupportedOperationError):
        ScriptGenerator(mysql_source, target, results, create_scripter("mssql")).generate()


def test_scripter_must_match_the_dialect():
    source, target = databases()
    results = SchemaComparator(source, target).compare()
    with pytest.raises(UnsupportedOperationError):
        ScriptGenerator(source, target, results, create_scripter("postgresql")).generate()


def customer_primary_key():
    return MicrosoftSqlIndex(name="PK_Customer", schema="dbo", table_schema="dbo", table_name="Customer",
                             column_name="Id", ordinal_position=1, is_primary_key=True,
                             type=MicrosoftSqlIndexType.CLUSTERED)


def test_foreign_key_to_new_table_waits_for_its_primary_key():
    new_customer = replace(customer(), indexes=(customer_primary_key(),))
    source = Database(name="Dev", dialect=Dialect.MICROSOFT_SQL, tables=(new_customer, order()))
    target = Database(name="Prod", dialect=Dialect.MICROSOFT_SQL, tables=(replace(order(), foreign_keys=()),))

    script = generate(source, target)

    primary_key = script.index("ADD CONSTRAINT [PK_Customer] PRIMARY KEY CLUSTERED([Id])")
    foreign_key = script.index("ALTER TABLE [dbo].[Order] WITH CHECK ADD CONSTRAINT [FK_Order_Customer]")
    assert script.index("-- PHASE 4") < primary_key < script.index("-- PHASE 5") < foreign_key
    assert "DROP CONSTRAINT [FK_Order_Customer]" not in script


def test_primary_key_rebuild_drops_referencing_foreign_keys_once():
    inbound = (foreign_key("Order", "FK_Order_Customer"),)
    bigint_id = replace(id_column(), data_type="bigint")
    target_customer = Table(name="Customer", schema="dbo", columns=(id_column(),),
                            indexes=(customer_primary_key(),), referencing_foreign_keys=inbound)
    source_customer = replace(target_customer, columns=(bigint_id,))
    source_order = replace(order(), columns=(
        id_column(), MicrosoftSqlColumn(name="CustomerId", data_type="bigint", ordinal_position=2)))
    source = Database(name="Dev", dialect=Dialect.MICROSOFT_SQL, tables=(source_customer, source_order))
    target = Database(name="Prod", dialect=Dialect.MICROSOFT_SQL, tables=(target_customer, order()))

    script = generate(source, target)

    steps = [
        "ALTER TABLE [dbo].[Order] DROP CONSTRAINT [FK_Order_Customer];",
        "ALTER TABLE [dbo].[Customer] DROP CONSTRAINT [PK_Customer];",
        "ALTER COLUMN [Id] [bigint] NOT NULL",
        "ADD CONSTRAINT [PK_Customer] PRIMARY KEY CLUSTERED([Id])",
        "-- PHASE 5: FOREIGN KEYS",
        "ADD CONSTRAINT [FK_Order_Customer] FOREIGN KEY([CustomerId])",
    ]
    positions = [script.index(step) for step in steps]
    assert positions == sorted(positions)
    assert script.count("DROP CONSTRAINT [FK_Order_Customer]") == 1
    assert script.count("ADD CONSTRAINT [FK_Order_Customer]") == 1


def pg_table(name, parent=None):
    return PostgreSqlTable(
        name=name,
        schema="public",
        columns=(PostgreSqlColumn(name="id", data_type="integer", is_nullable=False, ordinal_position=1),),
        inherited_table_schema="public" if parent else None,
        inherited_table_name=parent,
    )


def pg_generate(source_tables, target_tables):
    source = Database(name="dev", dialect=Dialect.POSTGRESQL, tables=tuple(source_tables))
    target = Database(name="prod", dialect=Dialect.POSTGRESQL, tables=tuple(target_tables))
    results = SchemaComparator(source, target).compare()
    return ScriptGenerator(source, target, results, create_scripter("postgresql")).generate()


def test_child_table_added_under_existing_parent():
    script = pg_generate([pg_table("p"), pg_table("c", parent="p")], [pg_table("p")])

    assert 'CREATE TABLE "public"."c"(' in script
    assert 'INHERITS ("public"."p");' in script
    assert 'CREATE TABLE "public"."p"' not in script


def test_child_table_dropped_under_kept_parent():
    script = pg_generate([pg_table("p")], [pg_table("p"), pg_table("c", parent="p")])

    assert 'DROP TABLE "public"."c";' in script
    assert 'DROP TABLE "public"."p"' not in script


def test_new_inheritance_chain_below_existing_root():
    source = [pg_table("a_leaf", parent="b_mid"), pg_table("b_mid", parent="c_root"), pg_table("c_root")]
    script = pg_generate(source, [pg_table("c_root")])

    assert script.index('CREATE TABLE "public"."b_mid"(') < script.index('CREATE TABLE "public"."a_leaf"(')
    assert 'CREATE TABLE "public"."c_root"' not in script
