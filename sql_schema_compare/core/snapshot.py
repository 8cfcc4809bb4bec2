from __future__ import annotations

import dataclasses
import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Type

from sql_schema_compare.core import model
from sql_schema_compare.core.model import Database
from sql_schema_compare.utils.logger import get_logger

logger = get_logger(__name__)

SNAPSHOT_VERSION = 1

MODEL_TYPES: Dict[str, Type[Any]] = {
    name: obj for name, obj in vars(model).items() if isinstance(obj, type) and dataclasses.is_dataclass(obj)
}
MODEL_ENUMS: Dict[str, Type[Enum]] = {
    name: obj for name, obj in vars(model).items()
    if isinstance(obj, type) and issubclass(obj, Enum) and obj is not Enum
}


def to_plain(value: Any) -> Any:
    """Convert model objects to JSON ready values.

    Dataclasses become dicts tagged with ``__type__``, enums become
    ``{"__enum__": "Class.MEMBER"}`` and tuples become lists.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        plain = {"__type__": type(value).__name__}
        for field in dataclasses.fields(value):
            plain[field.name] = to_plain(getattr(value, field.name))
        return plain
    if isinstance(value, Enum):
        return {"__enum__": f"{type(value).__name__}.{value.name}"}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def from_plain(value: Any) -> Any:
    """Inverse of ``to_plain``; lists come back as tuples."""
    if isinstance(value, list):
        return tuple(from_plain(v) for v in value)
    if not isinstance(value, dict):
        return value

    if "__enum__" in value:
        enum_name, _, member = value["__enum__"].partition(".")
        if enum_name not in MODEL_ENUMS:
            raise ValueError(f"Unknown enum in snapshot: {enum_name}")
        try:
            return MODEL_ENUMS[enum_name][member]
        except KeyError:
            raise ValueError(f"Unknown enum member in snapshot: {value['__enum__']}") from None

    type_name = value.get("__type__")
    if type_name is None:
        return {k: from_plain(v) for k, v in value.items()}
    if type_name not in MODEL_TYPES:
        raise ValueError(f"Unknown object type in snapshot: {type_name}")

    kwargs = {k: from_plain(v) for k, v in value.items() if k != "__type__"}
    try:
        return MODEL_TYPES[type_name](**kwargs)
    except TypeError as exc:
        raise ValueError(f"Invalid {type_name} in snapshot: {exc}") from exc


def save_snapshot(path: str | Path, database: Database) -> None:
    """Save a database object graph to a snapshot file.

    The snapshot is a JSON document with a version header and a
    "database" payload so the format can evolve without breaking older
    files.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = {"version": SNAPSHOT_VERSION, "database": to_plain(database)}
    p.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info(f"Snapshot of '{database.name}' saved to {p}")


def load_snapshot(path: str | Path) -> Database:
    """Load a database object graph from a snapshot file.

    Accepts both the wrapped format {"version": .., "database": ..} and a
    bare tagged Database object.
    """
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))

    if isinstance(data, dict) and "database" in data:
        version = data.get("version", SNAPSHOT_VERSION)
        if version > SNAPSHOT_VERSION:
            raise ValueError(f"Snapshot version {version} is newer than supported version {SNAPSHOT_VERSION}")
        data = data["database"]

    database = from_plain(data)
    if not isinstance(database, Database):
        raise ValueError("Snapshot file does not contain a database object")

    logger.info(f"Snapshot of '{database.name}' loaded from {p}")
    return database
