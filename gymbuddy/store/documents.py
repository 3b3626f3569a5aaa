"""
Document primitives shared by all directory store backends.

Paths are slash-separated: an even number of segments names a document
(``chats/a_b/messages/xyz``), an odd number names a collection
(``chats/a_b/messages``).
"""

import copy
import functools
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any


class _ServerTimestamp:
    """Placeholder replaced by the store clock when a write is applied."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"

    def __deepcopy__(self, memo):
        return self


SERVER_TIMESTAMP = _ServerTimestamp()


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


def _segments(path: str) -> list[str]:
    parts = path.strip("/").split("/")
    if not all(parts):
        raise ValueError(f"Invalid path: {path!r}")
    return parts


def split_document_path(path: str) -> tuple[str, str]:
    """Return (collection path, document id) for a document path."""
    parts = _segments(path)
    if len(parts) % 2 != 0:
        raise ValueError(f"Not a document path: {path!r}")
    return "/".join(parts[:-1]), parts[-1]


def validate_collection_path(path: str) -> str:
    parts = _segments(path)
    if len(parts) % 2 != 1:
        raise ValueError(f"Not a collection path: {path!r}")
    return "/".join(parts)


def resolve_server_timestamps(data: dict[str, Any], now: datetime) -> dict[str, Any]:
    return {
        key: (now if value is SERVER_TIMESTAMP else copy.deepcopy(value))
        for key, value in data.items()
    }


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    collection: str
    data: dict[str, Any] | None = None
    create_time: datetime | None = None
    update_time: datetime | None = None

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any] | None:
        return copy.deepcopy(self.data)

    def get(self, field_name: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(field_name, default)


class Direction(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


_OPERATORS = {
    "==": lambda value, target: value == target,
    "!=": lambda value, target: value is not None and value != target,
    "array-contains": lambda value, target: isinstance(value, list) and target in value,
    "in": lambda value, target: value in target,
}


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported operator: {self.op!r}")

    def matches(self, snapshot: DocumentSnapshot) -> bool:
        return _OPERATORS[self.op](snapshot.get(self.field), self.value)


@dataclass(frozen=True)
class Query:
    """
    Immutable query over a single collection.

    Results are ordered by the ``order_by`` fields and then by document id,
    so the ordering is total even when field values tie. Documents missing an
    ordering field sort last in either direction.
    """

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    orders: tuple[tuple[str, Direction], ...] = ()
    limit_to: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "collection", validate_collection_path(self.collection))

    def where(self, field_name: str, op: str, value: Any) -> "Query":
        return replace(self, filters=self.filters + (FieldFilter(field_name, op, value),))

    def order_by(self, field_name: str, direction: Direction = Direction.ASCENDING) -> "Query":
        return replace(self, orders=self.orders + ((field_name, Direction(direction)),))

    def limit(self, count: int) -> "Query":
        return replace(self, limit_to=count)

    def filter_value(self, field_name: str, op: str) -> Any:
        for f in self.filters:
            if f.field == field_name and f.op == op:
                return f.value
        return None

    def apply(self, documents: list[DocumentSnapshot]) -> list[DocumentSnapshot]:
        matched = [d for d in documents if d.exists and all(f.matches(d) for f in self.filters)]
        matched.sort(key=functools.cmp_to_key(self._compare))
        if self.limit_to is not None:
            matched = matched[: self.limit_to]
        return matched

    def _compare(self, a: DocumentSnapshot, b: DocumentSnapshot) -> int:
        for field_name, direction in self.orders:
            va, vb = a.get(field_name), b.get(field_name)
            if va == vb:
                continue
            if va is None:
                return 1
            if vb is None:
                return -1
            result = -1 if va < vb else 1
            return result if direction == Direction.ASCENDING else -result
        return (a.id > b.id) - (a.id < b.id)

    def __str__(self) -> str:
        parts = [self.collection]
        parts += [f"{f.field} {f.op} {f.value!r}" for f in self.filters]
        parts += [f"order by {name} {direction.value}" for name, direction in self.orders]
        return " | ".join(parts)
