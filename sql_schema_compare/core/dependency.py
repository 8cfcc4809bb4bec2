from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from sql_schema_compare.core.errors import UnresolvedDependencyError
from sql_schema_compare.core.model import Table, by_schema_and_name
from sql_schema_compare.utils.logger import get_logger

logger = get_logger(__name__)


class TableDependencyResolver:
    """Orders tables so that inherited (parent) tables come first.

    Tables are visited alphabetically by (schema, name). A table without a
    parent is placed as soon as it is visited; a table with a parent is
    placed right after its whole parent chain (postorder). Drop order is the
    exact reverse, so a parent is always created before and dropped after
    any of its children.
    """

    def __init__(self, tables: Iterable[Table]) -> None:
        self.tables: List[Table] = sorted(tables, key=by_schema_and_name)
        self._by_key: Dict[Tuple[str, str], Table] = {t.key: t for t in self.tables}

    @property
    def has_dependencies(self) -> bool:
        return any(t.parent_key is not None for t in self.tables)

    def create_order(self) -> List[Table]:
        placed: Set[Tuple[str, str]] = set()
        ordered: List[Table] = []

        for table in self.tables:
            self._place(table, ordered, placed, visiting=set())

        logger.debug(f"Resolved create order for {len(ordered)} tables")
        return ordered

    def drop_order(self) -> List[Table]:
        return list(reversed(self.create_order()))

    def _place(
        self,
        table: Table,
        ordered: List[Table],
        placed: Set[Tuple[str, str]],
        visiting: Set[Tuple[str, str]],
    ) -> None:
        if table.key in placed:
            return
        if table.key in visiting:
            raise UnresolvedDependencyError(
                f"Circular inheritance detected on table {table.schema}.{table.name}")

        parent_key = table.parent_key
        if parent_key is not None:
            parent = self._by_key.get(parent_key)
            if parent is None:
                raise UnresolvedDependencyError(
                    f"Unable to find inherited table {parent_key[0]}.{parent_key[1]} "
                    f"of table {table.schema}.{table.name}")
            visiting.add(table.key)
            self._place(parent, ordered, placed, visiting)
            visiting.discard(table.key)

        ordered.append(table)
        placed.add(table.key)
