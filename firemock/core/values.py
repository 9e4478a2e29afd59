"""Equality and ordering rules for field values.

Values of the same type compare by their natural order. INTEGER and DOUBLE
are both numbers and compare numerically with each other. Any other pair of
different types is unordered: ``compare`` returns None, ``less`` and
``equal`` are both False.

Query sorting needs a total order across every stored value, so
``total_compare`` falls back to a fixed rank between types where ``compare``
would give up.
"""

import math

from .models import INT64_MAX, INT64_MIN, NUMERIC_TYPES, Value, ValueType

# Cross-type rank used only for sorting mixed-type fields.
TYPE_ORDER = {
    ValueType.NULL: 0,
    ValueType.BOOLEAN: 1,
    ValueType.INTEGER: 2,
    ValueType.DOUBLE: 2,
    ValueType.TIMESTAMP: 3,
    ValueType.STRING: 4,
    ValueType.BYTES: 5,
    ValueType.ARRAY: 6,
    ValueType.MAP: 7,
}


def _sign(a, b) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def _compare_numbers(a: int | float, b: int | float) -> int:
    # NaN sorts before every other number and equals itself.
    a_nan = isinstance(a, float) and math.isnan(a)
    b_nan = isinstance(b, float) and math.isnan(b)
    if a_nan or b_nan:
        return _sign(not a_nan, not b_nan)
    return _sign(a, b)


def _compare(a: Value, b: Value, total: bool) -> int | None:
    if a.type in NUMERIC_TYPES and b.type in NUMERIC_TYPES:
        return _compare_numbers(a.payload, b.payload)

    if a.type is not b.type:
        if total:
            return _sign(TYPE_ORDER[a.type], TYPE_ORDER[b.type])
        return None

    kind = a.type
    if kind is ValueType.NULL:
        return 0
    if kind in (ValueType.BOOLEAN, ValueType.TIMESTAMP, ValueType.BYTES):
        return _sign(a.payload, b.payload)
    if kind is ValueType.STRING:
        # Code point order is the same as UTF-8 byte order.
        return _sign(a.payload, b.payload)
    if kind is ValueType.MAP:
        return _compare_maps(a, b, total)
    if kind is ValueType.ARRAY:
        return _compare_arrays(a, b, total)
    raise ValueError(f"Unknown value type: {kind}")


def _compare_maps(a: Value, b: Value, total: bool) -> int | None:
    a_keys = sorted(a.payload)
    b_keys = sorted(b.payload)
    for a_key, b_key in zip(a_keys, b_keys):
        if a_key != b_key:
            return _sign(a_key, b_key)
        result = _compare(a.payload[a_key], b.payload[b_key], total)
        if result != 0:
            return result
    return _sign(len(a_keys), len(b_keys))


def _compare_arrays(a: Value, b: Value, total: bool) -> int | None:
    for a_item, b_item in zip(a.payload, b.payload):
        result = _compare(a_item, b_item, total)
        if result != 0:
            return result
    # Equal prefix: the shorter array is less.
    return _sign(len(a.payload), len(b.payload))


def compare(a: Value, b: Value) -> int | None:
    """Three-way comparison of two values.

    Args:
        a: Left value.
        b: Right value.

    Returns:
        -1, 0 or 1, or None when the values are of unrelated types (or
        contain unrelated types at the first position that differs).
    """
    return _compare(a, b, total=False)


def total_compare(a: Value, b: Value) -> int:
    """Three-way comparison that orders unrelated types by type rank."""
    result = _compare(a, b, total=True)
    assert result is not None
    return result


def less(a: Value, b: Value) -> bool:
    return compare(a, b) == -1


def equal(a: Value, b: Value) -> bool:
    return compare(a, b) == 0


def coerce_operand(field: Value, operand: Value) -> Value:
    """Convert a numeric filter operand to the numeric type of the field.

    A DOUBLE operand against an INTEGER field is truncated toward zero; an
    INTEGER operand against a DOUBLE field becomes a float. Non-finite
    doubles and non-numeric pairs are returned unchanged.

    Args:
        field: The document's field value.
        operand: The filter operand.

    Returns:
        The operand in the field's representation.
    """
    if field.type is ValueType.INTEGER and operand.type is ValueType.DOUBLE:
        if math.isfinite(operand.payload):
            truncated = int(operand.payload)
            if INT64_MIN <= truncated <= INT64_MAX:
                return Value.integer(truncated)
        return operand
    if field.type is ValueType.DOUBLE and operand.type is ValueType.INTEGER:
        return Value.double(float(operand.payload))
    return operand


__all__ = [
    "TYPE_ORDER",
    "coerce_operand",
    "compare",
    "equal",
    "less",
    "total_compare",
]
