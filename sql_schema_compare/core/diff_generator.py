from __future__ import annotations

import difflib
from itertools import zip_longest
from typing import Any, List, NamedTuple, Optional

from sql_schema_compare.core.scripter import DatabaseScripter

# Row tags, read from the source side: a line only the source has is added by the migration
SAME = "same"
ADDED = "add"
REMOVED = "del"
CHANGED = "chg"

_OPCODE_TAGS = {"equal": SAME, "delete": ADDED, "insert": REMOVED, "replace": CHANGED}


class DiffLine(NamedTuple):
    source: str
    target: str
    tag: str


class DiffGenerator:
    """Line diff between the script of a source object and its target counterpart."""

    def __init__(self, source_sql: str, target_sql: str) -> None:
        self.source = (source_sql or "").splitlines()
        self.target = (target_sql or "").splitlines()

    def side_by_side(self) -> List[DiffLine]:
        """Aligned rows of ``(source_line, target_line, tag)``.

        ``same`` rows are equal on both sides, ``add`` rows exist only in the
        source, ``del`` rows only in the target and ``chg`` rows pair up the
        lines of a changed block (padded with "" when one side is shorter).
        """
        matcher = difflib.SequenceMatcher(a=self.source, b=self.target)
        rows: List[DiffLine] = []
        for opcode, a0, a1, b0, b1 in matcher.get_opcodes():
            tag = _OPCODE_TAGS[opcode]
            pairs = zip_longest(self.source[a0:a1], self.target[b0:b1], fillvalue="")
            rows.extend(DiffLine(source_line, target_line, tag) for source_line, target_line in pairs)
        return rows

    def unified(self, source_label: str = "source", target_label: str = "target") -> str:
        """Return a unified diff turning the target text into the source text."""
        lines = difflib.unified_diff(
            self.target, self.source, fromfile=target_label, tofile=source_label, lineterm=""
        )
        return "\n".join(lines)


def script_object(scripter: DatabaseScripter, kind: str, obj: Optional[Any]) -> str:
    """Render the create script of one object, empty when it is None."""
    if obj is None:
        return ""
    if kind == "tables":
        return scripter.generate_create_table_script(obj)
    return {
        "views": scripter.generate_create_view_script,
        "functions": scripter.generate_create_function_script,
        "stored_procedures": scripter.generate_create_stored_procedure_script,
        "triggers": scripter.generate_create_trigger_script,
        "sequences": scripter.generate_create_sequence_script,
        "data_types": scripter.generate_create_type_script,
    }[kind](obj)


def object_diff(
    scripter: DatabaseScripter, kind: str, source: Optional[Any], target: Optional[Any]
) -> List[DiffLine]:
    """Side by side diff of the create scripts of a source/target pair.

    Source table columns follow the target order so column order
    differences that the comparison ignores do not show up as changed lines.
    """
    if kind == "tables" and source is not None and target is not None:
        source_sql = scripter.generate_create_table_script(source, target)
        target_sql = scripter.generate_create_table_script(target)
    else:
        source_sql = script_object(scripter, kind, source)
        target_sql = script_object(scripter, kind, target)
    return DiffGenerator(source_sql, target_sql).side_by_side()
