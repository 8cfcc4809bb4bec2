from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from deepdiff import DeepDiff

from sql_schema_compare.core.model import Database, Dialect, SchemaObject
from sql_schema_compare.core.snapshot import to_plain
from sql_schema_compare.utils.logger import get_logger

logger = get_logger(__name__)

STATUS = {
    "IDENTICAL": "IDENTICAL",
    "DIFFERENT": "DIFFERENT",
    "MISSING_IN_TARGET": "MISSING_IN_TARGET",
    "MISSING_IN_SOURCE": "MISSING_IN_SOURCE",
}

# Object kinds in the order they are compared and reported
KINDS = (
    "data_types",
    "sequences",
    "tables",
    "views",
    "functions",
    "stored_procedures",
    "triggers",
)

# Column positions do not change a table's definition
IGNORED_COLUMN_FIELDS = ("ordinal_position",)


@dataclass(frozen=True)
class ComparisonItem:
    kind: str
    name: str
    status: str
    source: Optional[SchemaObject] = None
    target: Optional[SchemaObject] = None
    # DeepDiff JSON, empty unless the status is DIFFERENT
    diff: str = ""


class SchemaComparator:
    """Pairs the objects of two databases by qualified name and compares them.

    Names are matched with the identifier rule of the dialect: case
    insensitive for Microsoft SQL, exact for MySQL and PostgreSQL. Databases
    of different dialects are always matched case insensitively.
    """

    def __init__(self, source: Database, target: Database) -> None:
        self.source = source
        self.target = target
        self.case_insensitive = (
            source.dialect != target.dialect or source.dialect == Dialect.MICROSOFT_SQL
        )

    def compare(self) -> Dict[str, List[ComparisonItem]]:
        logger.info(f"Comparing '{self.source.name}' with '{self.target.name}'")
        results: Dict[str, List[ComparisonItem]] = {}
        for kind in KINDS:
            src_objs = self._index(self._collection(self.source, kind))
            tgt_objs = self._index(self._collection(self.target, kind))
            items: List[ComparisonItem] = []
            for key in sorted(set(src_objs) | set(tgt_objs)):
                src = src_objs.get(key)
                tgt = tgt_objs.get(key)
                name = self._display_name(src or tgt)
                if src is not None and tgt is None:
                    items.append(ComparisonItem(kind, name, STATUS["MISSING_IN_TARGET"], source=src))
                elif tgt is not None and src is None:
                    items.append(ComparisonItem(kind, name, STATUS["MISSING_IN_SOURCE"], target=tgt))
                else:
                    diff = self._diff(src, tgt)
                    status = STATUS["DIFFERENT"] if diff else STATUS["IDENTICAL"]
                    items.append(ComparisonItem(kind, name, status, source=src, target=tgt, diff=diff))
            results[kind] = items
            logger.debug(f"Compared {len(items)} {kind}")
        return results

    @staticmethod
    def summarize(results: Dict[str, List[ComparisonItem]]) -> Dict[str, int]:
        summary = {k: 0 for k in STATUS.values()}
        for items in results.values():
            for item in items:
                summary[item.status] += 1
        return summary

    @staticmethod
    def _collection(database: Database, kind: str) -> Tuple[SchemaObject, ...]:
        if kind == "data_types":
            return database.user_defined_types
        return getattr(database, kind)

    def _index(self, objects: Tuple[SchemaObject, ...]) -> Dict[Tuple[str, str], SchemaObject]:
        indexed: Dict[Tuple[str, str], SchemaObject] = {}
        for obj in objects:
            key = (obj.schema, obj.name)
            if self.case_insensitive:
                key = (obj.schema.casefold(), obj.name.casefold())
            if key in indexed:
                logger.warning(f"Duplicate object {obj.schema}.{obj.name} ignored")
                continue
            indexed[key] = obj
        return indexed

    @staticmethod
    def _display_name(obj: SchemaObject) -> str:
        return f"{obj.schema}.{obj.name}" if obj.schema else obj.name

    @staticmethod
    def _diff(src: Any, tgt: Any) -> str:
        diff = DeepDiff(_comparable(src), _comparable(tgt), ignore_order=True)
        return diff.to_json() if diff else ""


def _comparable(obj: SchemaObject) -> Dict[str, Any]:
    plain = to_plain(obj)
    for column in plain.get("columns", []):
        for field in IGNORED_COLUMN_FIELDS:
            column.pop(field, None)
    return plain
