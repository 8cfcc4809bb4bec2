from sql_schema_compare.core.column_order import get_sorted_columns, order_columns
from sql_schema_compare.core.model import Column, Table
from sql_schema_compare.core.options import ScriptingOptions


def make_table(*names):
    return Table(
        name="t",
        columns=tuple(Column(name=name, data_type="int", ordinal_position=i) for i, name in enumerate(names, start=1)),
    )


def names(columns):
    return [c.name for c in columns]


def test_ordinal_order_by_default():
    assert names(order_columns(make_table("b", "a", "c"), ScriptingOptions())) == ["b", "a", "c"]


def test_alphabetical_order():
    options = ScriptingOptions(order_column_alphabetically=True)
    assert names(order_columns(make_table("b", "a", "c"), options)) == ["a", "b", "c"]


def test_reference_order_with_extra_columns_appended():
    columns = get_sorted_columns(make_table("b", "a", "c"), make_table("a", "b"), ScriptingOptions())
    assert names(columns) == ["a", "b", "c"]


def test_reference_matching_ignores_case():
    columns = get_sorted_columns(make_table("B", "a"), make_table("A", "b"), ScriptingOptions())
    assert names(columns) == ["a", "B"]


def test_reference_order_can_be_ignored():
    options = ScriptingOptions(ignore_reference_table_column_order=True)
    columns = get_sorted_columns(make_table("b", "a", "c"), make_table("a", "b"), options)
    assert names(columns) == ["b", "a", "c"]


def test_no_reference_table():
    assert names(get_sorted_columns(make_table("b", "a"), None, ScriptingOptions())) == ["b", "a"]
