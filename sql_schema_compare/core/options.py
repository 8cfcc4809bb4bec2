"""Scripting options shared by every scripter entry point."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from sql_schema_compare.utils.config import Config


@dataclass(frozen=True)
class ScriptingOptions:
    """Immutable formatting options.

    Attributes:
        use_schema_name: Qualify object names with their schema.
        order_column_alphabetically: Order table columns by name instead of
            ordinal position.
        ignore_reference_table_column_order: Do not align the column order to
            the table on the other side of the comparison.
        ignore_collate: Omit COLLATE clauses from column definitions.
    """

    use_schema_name: bool = True
    order_column_alphabetically: bool = False
    ignore_reference_table_column_order: bool = False
    ignore_collate: bool = False

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> "ScriptingOptions":
        values = values or {}
        return cls(
            use_schema_name=bool(values.get("use_schema_name", True)),
            order_column_alphabetically=bool(values.get("order_column_alphabetically", False)),
            ignore_reference_table_column_order=bool(values.get("ignore_reference_table_column_order", False)),
            ignore_collate=bool(values.get("ignore_collate", False)),
        )

    @classmethod
    def from_config(cls, config: "Config") -> "ScriptingOptions":
        return cls.from_dict(config.get_section("scripting"))

    def with_overrides(self, **overrides: Any) -> "ScriptingOptions":
        """Return a copy with the given non-None values replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
