"""JSON codec for the Firestore REST wire format.

Translates between the store's domain models and the JSON shapes the
Firestore v1 REST API uses:

- Values are objects with exactly one type key (``stringValue``,
  ``integerValue``, ``mapValue``, ...). 64-bit integers travel as decimal
  strings; non-finite doubles as ``"NaN"``, ``"Infinity"``, ``"-Infinity"``.
- Documents carry ``name``, ``fields``, ``createTime`` and ``updateTime``.
- Writes carry ``update``, ``updateMask.fieldPaths`` and
  ``currentDocument.exists``.
- Structured queries carry ``from``, ``where``, ``orderBy``, ``limit`` and
  ``offset``.

Anything malformed or outside the supported subset raises WireFormatError.
"""

import base64
import math
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

from firemock.core.models import (
    CompositeFilter,
    CompositeOperator,
    Direction,
    DocumentSnapshot,
    FieldFilter,
    FieldOperator,
    Filter,
    OrderBy,
    StructuredQuery,
    UnaryFilter,
    UnaryOperator,
    Value,
    ValueType,
    Write,
    WriteResult,
)
from firemock.core.paths import strip_resource_prefix

E = TypeVar("E", bound=Enum)

_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)

_SPECIAL_DOUBLES = {
    "NaN": math.nan,
    "Infinity": math.inf,
    "-Infinity": -math.inf,
}


class WireFormatError(ValueError):
    """Request body does not follow the supported wire format."""


# ============================================================================
# TIMESTAMPS
# ============================================================================


def parse_rfc3339(text: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    A time zone offset (or ``Z``) is required. Fractional seconds beyond
    microseconds are truncated.

    Raises:
        ValueError: If the text is not an RFC 3339 timestamp.
    """
    match = _RFC3339.match(text)
    if not match:
        raise ValueError(f"not an RFC 3339 timestamp: {text!r}")
    date, time, fraction, offset = match.groups()
    micros = (fraction or "0")[:6].ljust(6, "0")
    if offset in ("Z", "z"):
        offset = "+00:00"
    return datetime.fromisoformat(f"{date}T{time}.{micros}{offset}").astimezone(UTC)


def format_rfc3339(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


# ============================================================================
# VALUES
# ============================================================================


def _encode_double(number: float) -> float | str:
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    return number


def encode_value(value: Value) -> dict[str, Any]:
    """Encode a Value as a single-key wire object."""
    kind = value.type
    if kind is ValueType.NULL:
        return {"nullValue": None}
    if kind is ValueType.BOOLEAN:
        return {"booleanValue": value.payload}
    if kind is ValueType.INTEGER:
        return {"integerValue": str(value.payload)}
    if kind is ValueType.DOUBLE:
        return {"doubleValue": _encode_double(value.payload)}
    if kind is ValueType.TIMESTAMP:
        return {"timestampValue": format_rfc3339(value.payload)}
    if kind is ValueType.STRING:
        return {"stringValue": value.payload}
    if kind is ValueType.BYTES:
        return {"bytesValue": base64.b64encode(value.payload).decode("ascii")}
    if kind is ValueType.ARRAY:
        return {"arrayValue": {"values": [encode_value(item) for item in value.payload]}}
    if kind is ValueType.MAP:
        return {"mapValue": {"fields": encode_fields(value.payload)}}
    raise ValueError(f"Unknown value type: {kind}")


def encode_fields(fields: Mapping[str, Value]) -> dict[str, dict[str, Any]]:
    return {name: encode_value(value) for name, value in fields.items()}


def _decode_integer(raw: Any) -> Value:
    if isinstance(raw, bool) or not isinstance(raw, (int, str)):
        raise WireFormatError(f"integerValue must be a decimal string, got {raw!r}")
    try:
        return Value.integer(int(raw))
    except ValueError as e:
        raise WireFormatError(f"invalid integerValue {raw!r}: {e}") from e


def _decode_double(raw: Any) -> Value:
    if isinstance(raw, str):
        if raw in _SPECIAL_DOUBLES:
            return Value.double(_SPECIAL_DOUBLES[raw])
        try:
            return Value.double(float(raw))
        except ValueError as e:
            raise WireFormatError(f"invalid doubleValue {raw!r}") from e
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise WireFormatError(f"doubleValue must be a number, got {raw!r}")
    return Value.double(raw)


def _expect(raw: Any, kind: type, key: str) -> Any:
    if not isinstance(raw, kind) or (kind is int and isinstance(raw, bool)):
        raise WireFormatError(f"{key} has the wrong JSON type: {raw!r}")
    return raw


def decode_value(data: Any) -> Value:
    """Decode a single-key wire object into a Value.

    Raises:
        WireFormatError: If the object is malformed or names an unsupported type.
    """
    if not isinstance(data, Mapping) or len(data) != 1:
        raise WireFormatError(f"value must be an object with exactly one type key, got {data!r}")
    ((kind, raw),) = data.items()

    if kind == "nullValue":
        return Value.null()
    if kind == "booleanValue":
        return Value.boolean(_expect(raw, bool, kind))
    if kind == "integerValue":
        return _decode_integer(raw)
    if kind == "doubleValue":
        return _decode_double(raw)
    if kind == "timestampValue":
        try:
            return Value.timestamp(parse_rfc3339(_expect(raw, str, kind)))
        except ValueError as e:
            raise WireFormatError(str(e)) from e
    if kind == "stringValue":
        return Value.string(_expect(raw, str, kind))
    if kind == "bytesValue":
        try:
            return Value.binary(base64.b64decode(_expect(raw, str, kind), validate=True))
        except ValueError as e:
            raise WireFormatError(f"invalid bytesValue: {e}") from e
    if kind == "arrayValue":
        values = _expect(raw, Mapping, kind).get("values", [])
        return Value.array([decode_value(item) for item in _expect(values, list, "arrayValue.values")])
    if kind == "mapValue":
        fields = _expect(raw, Mapping, kind).get("fields", {})
        return Value.map(decode_fields(fields))
    raise WireFormatError(f"unsupported value type: {kind}")


def decode_fields(data: Any) -> dict[str, Value]:
    """Decode a ``fields`` object (field name to wire value)."""
    if not isinstance(data, Mapping):
        raise WireFormatError(f"fields must be an object, got {data!r}")
    return {name: decode_value(raw) for name, raw in data.items()}


# ============================================================================
# DOCUMENTS AND WRITES
# ============================================================================


def encode_document(snapshot: DocumentSnapshot, name: str) -> dict[str, Any]:
    """Encode a snapshot as a wire document under its full resource name."""
    document: dict[str, Any] = {"name": name, "fields": encode_fields(snapshot.fields)}
    if snapshot.create_time is not None:
        document["createTime"] = format_rfc3339(snapshot.create_time)
    if snapshot.update_time is not None:
        document["updateTime"] = format_rfc3339(snapshot.update_time)
    return document


def encode_write_result(result: WriteResult) -> dict[str, Any]:
    return {"updateTime": format_rfc3339(result.update_time)}


def decode_write(data: Any) -> Write:
    """Decode one entry of a commit's ``writes`` list.

    Only update writes are supported; deletes and field transforms are
    rejected.

    Raises:
        WireFormatError: If the write is malformed or unsupported.
    """
    if not isinstance(data, Mapping):
        raise WireFormatError(f"write must be an object, got {data!r}")
    for unsupported in ("delete", "transform", "updateTransforms"):
        if data.get(unsupported):
            raise WireFormatError(f"{unsupported} writes are not supported")

    update = data.get("update")
    if not isinstance(update, Mapping):
        raise WireFormatError("write is missing its update document")
    name = update.get("name")
    if not isinstance(name, str) or not name:
        raise WireFormatError("update document is missing its name")
    fields = decode_fields(update.get("fields", {}))

    field_paths: list[str] = []
    mask = data.get("updateMask")
    if mask is not None:
        field_paths = _expect(_expect(mask, Mapping, "updateMask").get("fieldPaths", []), list, "updateMask.fieldPaths")
        if not all(isinstance(path, str) for path in field_paths):
            raise WireFormatError("updateMask.fieldPaths must be strings")

    require_exists = require_missing = False
    current = data.get("currentDocument")
    if current is not None:
        _expect(current, Mapping, "currentDocument")
        if "updateTime" in current:
            raise WireFormatError("updateTime preconditions are not supported")
        exists = current.get("exists")
        if exists is True:
            require_exists = True
        elif exists is False:
            require_missing = True
        elif exists is not None:
            raise WireFormatError(f"currentDocument.exists must be a boolean, got {exists!r}")

    return Write(
        path=strip_resource_prefix(name),
        fields=fields,
        update_mask=tuple(field_paths),
        require_exists=require_exists,
        require_missing=require_missing,
    )


# ============================================================================
# STRUCTURED QUERIES
# ============================================================================


def _decode_enum(enum_cls: type[E], raw: Any, what: str) -> E:
    try:
        return enum_cls(raw)
    except ValueError as e:
        raise WireFormatError(f"unknown {what}: {raw!r}") from e


def _field_path(reference: Any) -> str:
    if not isinstance(reference, Mapping):
        raise WireFormatError(f"field reference must be an object, got {reference!r}")
    path = reference.get("fieldPath")
    if not isinstance(path, str) or not path:
        raise WireFormatError("field reference is missing its fieldPath")
    return path


def decode_filter(data: Any) -> Filter:
    """Decode a ``where`` object into a filter tree.

    Raises:
        WireFormatError: If a node is malformed or of an unknown kind.
    """
    if not isinstance(data, Mapping) or len(data) != 1:
        raise WireFormatError(f"filter must be an object with exactly one kind key, got {data!r}")
    ((kind, body),) = data.items()
    _expect(body, Mapping, kind)

    if kind == "compositeFilter":
        children = _expect(body.get("filters", []), list, "compositeFilter.filters")
        return CompositeFilter(
            op=_decode_enum(CompositeOperator, body.get("op"), "composite operator"),
            filters=tuple(decode_filter(child) for child in children),
        )
    if kind == "fieldFilter":
        return FieldFilter(
            field_path=_field_path(body.get("field")),
            op=_decode_enum(FieldOperator, body.get("op"), "field operator"),
            value=decode_value(body.get("value")),
        )
    if kind == "unaryFilter":
        return UnaryFilter(
            field_path=_field_path(body.get("field")),
            op=_decode_enum(UnaryOperator, body.get("op"), "unary operator"),
        )
    raise WireFormatError(f"unsupported filter kind: {kind}")


def _decode_order(data: Any) -> OrderBy:
    _expect(data, Mapping, "orderBy")
    direction = data.get("direction", "ASCENDING")
    if direction == "DIRECTION_UNSPECIFIED":
        direction = "ASCENDING"
    return OrderBy(
        field_path=_field_path(data.get("field")),
        direction=_decode_enum(Direction, direction, "direction"),
    )


def _decode_limit(raw: Any) -> int | None:
    # Int32Value may arrive bare or wrapped.
    if isinstance(raw, Mapping):
        raw = raw.get("value")
    if raw is None:
        return None
    return _expect(raw, int, "limit")


def decode_structured_query(data: Any, parent_path: str = "") -> StructuredQuery:
    """Decode a ``structuredQuery`` object.

    Args:
        data: The structured query object.
        parent_path: Relative path of the parent document, or "" for the
            database root.

    Returns:
        A StructuredQuery over ``parent_path/collectionId``.

    Raises:
        WireFormatError: If the query is malformed or uses an unsupported clause.
    """
    _expect(data, Mapping, "structuredQuery")
    for unsupported in ("select", "startAt", "endAt", "findNearest"):
        if data.get(unsupported):
            raise WireFormatError(f"{unsupported} is not supported")

    sources = data.get("from")
    if not isinstance(sources, list) or len(sources) != 1:
        raise WireFormatError("query must select exactly one collection")
    source = _expect(sources[0], Mapping, "from")
    if source.get("allDescendants"):
        raise WireFormatError("collection group queries are not supported")
    collection_id = source.get("collectionId")
    if not isinstance(collection_id, str) or not collection_id:
        raise WireFormatError("from is missing its collectionId")

    where = data.get("where")
    try:
        return StructuredQuery(
            collection_path=f"{parent_path}/{collection_id}" if parent_path else collection_id,
            where=decode_filter(where) if where else None,
            order_by=tuple(_decode_order(order) for order in _expect(data.get("orderBy", []), list, "orderBy")),
            limit=_decode_limit(data.get("limit")),
            offset=_expect(data.get("offset", 0), int, "offset"),
        )
    except WireFormatError:
        raise
    except ValueError as e:
        raise WireFormatError(str(e)) from e


__all__ = [
    "WireFormatError",
    "decode_fields",
    "decode_filter",
    "decode_structured_query",
    "decode_value",
    "decode_write",
    "encode_document",
    "encode_fields",
    "encode_value",
    "encode_write_result",
    "format_rfc3339",
    "parse_rfc3339",
]
