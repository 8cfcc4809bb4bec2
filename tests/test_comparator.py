import json

from sql_schema_compare.core.comparator import SchemaComparator
from sql_schema_compare.core.model import (
    Database,
    Dialect,
    MicrosoftSqlColumn,
    MicrosoftSqlDataType,
    PostgreSqlColumn,
    PostgreSqlTable,
    Table,
    Trigger,
)


def ms_table(name, *columns, **kwargs):
    return Table(
        name=name,
        schema="dbo",
        columns=tuple(
            MicrosoftSqlColumn(name=c, data_type="int", ordinal_position=i) for i, c in enumerate(columns, start=1)
        ),
        **kwargs,
    )


def ms_database(*tables, **kwargs):
    return Database(name="db", dialect=Dialect.MICROSOFT_SQL, tables=tables, **kwargs)


def test_schema_comparator_basic_statuses():
    source = ms_database(ms_table("Table1", "id"), ms_table("TableOnlyInSource"))
    target = ms_database(ms_table("Table1", "id"), ms_table("TableOnlyInTarget"))

    results = SchemaComparator(source, target).compare()
    tables = {item.name: item for item in results["tables"]}

    assert tables["dbo.Table1"].status == "IDENTICAL"
    assert tables["dbo.TableOnlyInSource"].status == "MISSING_IN_TARGET"
    assert tables["dbo.TableOnlyInSource"].target is None
    assert tables["dbo.TableOnlyInTarget"].status == "MISSING_IN_SOURCE"
    assert tables["dbo.TableOnlyInTarget"].source is None

    # DeepDiff JSON for identical objects should be empty string
    assert tables["dbo.Table1"].diff == ""


def test_schema_comparator_summary_counts():
    source = ms_database(ms_table("A", "v"), ms_table("B", "v"))
    target = ms_database(ms_table("A", "v"), ms_table("B", "w"))
    results = SchemaComparator(source, target).compare()
    summary = SchemaComparator.summarize(results)

    assert summary["IDENTICAL"] == 1
    assert summary["DIFFERENT"] == 1
    assert summary["MISSING_IN_TARGET"] == 0


def test_different_items_carry_deepdiff_json():
    results = SchemaComparator(ms_database(ms_table("A", "v")), ms_database(ms_table("A", "w"))).compare()
    item = results["tables"][0]
    assert item.status == "DIFFERENT"
    assert json.loads(item.diff)


def test_column_positions_are_ignored():
    source = ms_database(ms_table("A", "x", "y"))
    target = ms_database(ms_table("A", "y", "x"))
    assert SchemaComparator(source, target).compare()["tables"][0].status == "IDENTICAL"


def test_microsoft_sql_names_match_case_insensitively():
    results = SchemaComparator(ms_database(ms_table("customer", "id")), ms_database(ms_table("Customer", "id")))
    tables = results.compare()["tables"]
    assert len(tables) == 1
    assert tables[0].source is not None and tables[0].target is not None


def test_postgres_names_match_exactly():
    def database(name):
        table = PostgreSqlTable(name=name, schema="public",
                                columns=(PostgreSqlColumn(name="id", data_type="integer"),))
        return Database(name="db", dialect=Dialect.POSTGRESQL, tables=(table,))

    tables = SchemaComparator(database("customer"), database("Customer")).compare()["tables"]
    assert sorted(item.status for item in tables) == ["MISSING_IN_SOURCE", "MISSING_IN_TARGET"]


def test_triggers_and_user_defined_types_are_compared():
    trigger = Trigger(name="TR", schema="dbo", table_schema="dbo", table_name="A", definition="CREATE TRIGGER TR")
    system_type = MicrosoftSqlDataType(name="int", system_type_name="int", is_user_defined=False)
    source = ms_database(ms_table("A", "id", triggers=(trigger,)), data_types=(system_type,))
    target = ms_database(ms_table("A", "id"))

    results = SchemaComparator(source, target).compare()
    assert [item.status for item in results["triggers"]] == ["MISSING_IN_TARGET"]
    assert results["data_types"] == []
