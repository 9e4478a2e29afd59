"""Domain models for the firemock document store.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, TypeAlias, Union

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Synthetic order-by keys that compare documents by identity instead of a field.
DOCUMENT_ID_FIELDS = frozenset({"__name__", "DocumentID"})


class ValueType(Enum):
    """Tags of the field value variant."""

    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    DOUBLE = "double"
    TIMESTAMP = "timestamp"
    STRING = "string"
    BYTES = "bytes"
    ARRAY = "array"
    MAP = "map"


NUMERIC_TYPES = frozenset({ValueType.INTEGER, ValueType.DOUBLE})


@dataclass(frozen=True)
class Value:
    """A typed field value.

    The payload representation depends on the tag:

    - NULL: None
    - BOOLEAN: bool
    - INTEGER: int (64-bit signed range)
    - DOUBLE: float
    - TIMESTAMP: timezone-aware datetime in UTC
    - STRING: str
    - BYTES: bytes
    - ARRAY: tuple of Value
    - MAP: read-only mapping of str to Value

    Build values through the classmethod constructors rather than the
    dataclass initializer so the payload is normalized.
    """

    type: ValueType
    payload: Any = None

    def __post_init__(self) -> None:
        """Freeze container payloads."""
        if self.type is ValueType.MAP and isinstance(self.payload, dict):
            object.__setattr__(self, "payload", MappingProxyType(self.payload))
        elif self.type is ValueType.ARRAY and isinstance(self.payload, list):
            object.__setattr__(self, "payload", tuple(self.payload))

    @classmethod
    def null(cls) -> "Value":
        return cls(ValueType.NULL, None)

    @classmethod
    def boolean(cls, value: bool) -> "Value":
        return cls(ValueType.BOOLEAN, bool(value))

    @classmethod
    def integer(cls, value: int) -> "Value":
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueError(f"integer {value} is outside the 64-bit signed range")
        return cls(ValueType.INTEGER, int(value))

    @classmethod
    def double(cls, value: float) -> "Value":
        return cls(ValueType.DOUBLE, float(value))

    @classmethod
    def timestamp(cls, value: datetime) -> "Value":
        # Naive datetimes are taken to be UTC already.
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return cls(ValueType.TIMESTAMP, value.astimezone(UTC))

    @classmethod
    def string(cls, value: str) -> "Value":
        return cls(ValueType.STRING, value)

    @classmethod
    def binary(cls, value: bytes | bytearray) -> "Value":
        return cls(ValueType.BYTES, bytes(value))

    @classmethod
    def array(cls, values: Sequence["Value"]) -> "Value":
        return cls(ValueType.ARRAY, tuple(values))

    @classmethod
    def map(cls, fields: Mapping[str, "Value"]) -> "Value":
        return cls(ValueType.MAP, dict(fields))

    @classmethod
    def from_python(cls, obj: Any) -> "Value":
        """Convert a plain Python object into a Value.

        Args:
            obj: None, bool, int, float, str, bytes, datetime, a mapping with
                string keys, a list/tuple, or an existing Value.

        Returns:
            The equivalent Value.

        Raises:
            TypeError: If the object (or a nested element) has no Value form.
        """
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return cls.null()
        # bool is a subclass of int, so it must be checked first
        if isinstance(obj, bool):
            return cls.boolean(obj)
        if isinstance(obj, int):
            return cls.integer(obj)
        if isinstance(obj, float):
            return cls.double(obj)
        if isinstance(obj, str):
            return cls.string(obj)
        if isinstance(obj, (bytes, bytearray)):
            return cls.binary(obj)
        if isinstance(obj, datetime):
            return cls.timestamp(obj)
        if isinstance(obj, Mapping):
            fields = {}
            for key, item in obj.items():
                if not isinstance(key, str):
                    raise TypeError(f"map keys must be strings, got {type(key).__name__}")
                fields[key] = cls.from_python(item)
            return cls.map(fields)
        if isinstance(obj, (list, tuple)):
            return cls.array([cls.from_python(item) for item in obj])
        raise TypeError(f"cannot convert {type(obj).__name__} to a field value")

    def to_python(self) -> Any:
        """Convert back into plain Python objects (dicts and lists for containers)."""
        if self.type is ValueType.MAP:
            return {key: item.to_python() for key, item in self.payload.items()}
        if self.type is ValueType.ARRAY:
            return [item.to_python() for item in self.payload]
        return self.payload

    @property
    def is_nan(self) -> bool:
        return self.type is ValueType.DOUBLE and math.isnan(self.payload)


class FieldOperator(Enum):
    """Binary operators of a field predicate."""

    LESS_THAN = "LESS_THAN"
    LESS_THAN_OR_EQUAL = "LESS_THAN_OR_EQUAL"
    GREATER_THAN = "GREATER_THAN"
    GREATER_THAN_OR_EQUAL = "GREATER_THAN_OR_EQUAL"
    EQUAL = "EQUAL"
    NOT_EQUAL = "NOT_EQUAL"
    ARRAY_CONTAINS = "ARRAY_CONTAINS"
    IN = "IN"
    ARRAY_CONTAINS_ANY = "ARRAY_CONTAINS_ANY"
    NOT_IN = "NOT_IN"


class UnaryOperator(Enum):
    """Operators of a single-field test that take no operand."""

    IS_NAN = "IS_NAN"
    IS_NULL = "IS_NULL"
    IS_NOT_NAN = "IS_NOT_NAN"
    IS_NOT_NULL = "IS_NOT_NULL"


class CompositeOperator(Enum):
    """Boolean connectives of a composite filter."""

    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class FieldFilter:
    """Predicate comparing the value at a dot-separated field path to an operand."""

    field_path: str
    op: FieldOperator
    value: Value

    def __post_init__(self) -> None:
        """Validate field filter invariants on creation."""
        if not self.field_path:
            raise ValueError("field_path must be a non-empty string")


@dataclass(frozen=True)
class UnaryFilter:
    """Predicate testing the value at a field path for null or NaN."""

    field_path: str
    op: UnaryOperator

    def __post_init__(self) -> None:
        """Validate unary filter invariants on creation."""
        if not self.field_path:
            raise ValueError("field_path must be a non-empty string")


@dataclass(frozen=True)
class CompositeFilter:
    """AND/OR over child filters."""

    op: CompositeOperator
    filters: tuple["Filter", ...] = ()  # immutable for frozen dataclass

    def __post_init__(self) -> None:
        """Accept any sequence of children."""
        if not isinstance(self.filters, tuple):
            object.__setattr__(self, "filters", tuple(self.filters))


Filter: TypeAlias = Union[FieldFilter, UnaryFilter, CompositeFilter]


class Direction(Enum):
    """Sort direction of an order-by key."""

    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"


@dataclass(frozen=True)
class OrderBy:
    """One key of a query ordering."""

    field_path: str
    direction: Direction = Direction.ASCENDING

    @property
    def is_document_id(self) -> bool:
        return self.field_path in DOCUMENT_ID_FIELDS


@dataclass(frozen=True)
class StructuredQuery:
    """A query against the documents of a single collection.

    Attributes:
        collection_path: Path ending in a collection id, e.g. "users" or
            "users/alice/orders".
        where: Filter tree, or None to match every document.
        order_by: Ordered sort keys. Ties fall back to document id ascending.
        limit: Maximum number of results; None or 0 means no limit.
        offset: Number of leading results to skip.
    """

    collection_path: str
    where: Filter | None = None
    order_by: tuple[OrderBy, ...] = ()
    limit: int | None = None
    offset: int = 0

    def __post_init__(self) -> None:
        """Validate query invariants on creation."""
        if not isinstance(self.order_by, tuple):
            object.__setattr__(self, "order_by", tuple(self.order_by))
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be non-negative, got {self.limit}")
        if self.offset < 0:
            raise ValueError(f"offset must be non-negative, got {self.offset}")


@dataclass(frozen=True)
class Write:
    """A single document mutation inside a commit.

    An empty update_mask replaces the whole document (Set); a non-empty mask
    writes only the named field paths (Update). Field paths named in the mask
    but missing from ``fields`` are removed from the document.

    Attributes:
        path: Relative document path ("collection/doc[/collection/doc...]").
        fields: Incoming top-level field map.
        update_mask: Field paths to write; empty for a full Set.
        require_exists: Fail with a precondition error if the document is missing.
        require_missing: Fail with a precondition error if the document exists.
    """

    path: str
    fields: Mapping[str, Value] = field(default_factory=dict)
    update_mask: tuple[str, ...] = ()
    require_exists: bool = False
    require_missing: bool = False

    def __post_init__(self) -> None:
        """Validate write invariants and freeze containers."""
        if self.require_exists and self.require_missing:
            raise ValueError("a write cannot require the document to both exist and be missing")
        if isinstance(self.fields, dict):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        if not isinstance(self.update_mask, tuple):
            object.__setattr__(self, "update_mask", tuple(self.update_mask))

    @property
    def is_full_set(self) -> bool:
        return not self.update_mask


@dataclass(frozen=True)
class WriteResult:
    """Outcome of one applied write."""

    path: str
    update_time: datetime


@dataclass(frozen=True)
class DocumentSnapshot:
    """Immutable copy of a document taken under the store lock.

    Snapshots are what leaves the store; internal tree nodes never do.
    """

    id: str
    path: str
    fields: dict[str, Value] | MappingProxyType[str, Value]  # converted to proxy in __post_init__
    create_time: datetime | None = None
    update_time: datetime | None = None

    def __post_init__(self) -> None:
        """Convert fields dict to read-only proxy."""
        if isinstance(self.fields, dict):
            object.__setattr__(self, "fields", MappingProxyType(self.fields))

    def to_dict(self) -> dict[str, Any]:
        """Field data as plain Python objects."""
        return {name: value.to_python() for name, value in self.fields.items()}


@dataclass(frozen=True)
class BatchGetResult:
    """One entry of a batch read; ``document`` is None when the path is missing."""

    path: str
    document: DocumentSnapshot | None

    @property
    def found(self) -> bool:
        return self.document is not None


@dataclass(frozen=True)
class StoreStats:
    """Size of the document tree."""

    collections: int
    documents: int
    top_level_collections: tuple[str, ...] = ()
