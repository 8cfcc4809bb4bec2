from __future__ import annotations

from typing import List, Optional

from sql_schema_compare.core.model import Column, Table
from sql_schema_compare.core.options import ScriptingOptions


def order_columns(table: Table, options: ScriptingOptions) -> List[Column]:
    """Primary column order: alphabetical or by ordinal position."""
    if options.order_column_alphabetically:
        return sorted(table.columns, key=lambda c: c.name)
    return sorted(table.columns, key=lambda c: c.ordinal_position)


def get_sorted_columns(
    table: Table,
    reference_table: Optional[Table],
    options: ScriptingOptions,
) -> List[Column]:
    """Return the columns of ``table`` in the order they should be scripted.

    When a reference table (the other side of the comparison) is given, the
    columns it shares with ``table`` keep the reference order so the two
    scripts line up in a diff view. Columns missing from the reference are
    appended at the end in primary order.
    """
    columns = order_columns(table, options)

    if reference_table is None or options.ignore_reference_table_column_order:
        return columns

    sorted_columns: List[Column] = []
    for reference_column in order_columns(reference_table, options):
        wanted = reference_column.name.lower()
        match = next((c for c in columns if c.name.lower() == wanted), None)
        if match is not None:
            sorted_columns.append(match)
            columns.remove(match)

    sorted_columns.extend(columns)
    return sorted_columns
