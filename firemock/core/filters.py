"""Evaluation of filter trees against documents.

A filter tree is built from CompositeFilter (AND/OR) nodes whose leaves are
FieldFilter and UnaryFilter predicates. Evaluation is stateless and never
raises for data-dependent reasons: a missing field, a field of the wrong
type for the operator, or operands of unrelated types simply do not match.
"""

from .models import (
    CompositeFilter,
    CompositeOperator,
    FieldFilter,
    FieldOperator,
    Filter,
    UnaryFilter,
    UnaryOperator,
    Value,
    ValueType,
)
from .tree import Document
from .values import coerce_operand, compare

_ORDERING_OPERATORS = {
    FieldOperator.LESS_THAN: lambda c: c < 0,
    FieldOperator.LESS_THAN_OR_EQUAL: lambda c: c <= 0,
    FieldOperator.GREATER_THAN: lambda c: c > 0,
    FieldOperator.GREATER_THAN_OR_EQUAL: lambda c: c >= 0,
    FieldOperator.EQUAL: lambda c: c == 0,
    FieldOperator.NOT_EQUAL: lambda c: c != 0,
}

_RANGE_OPERATORS = frozenset(
    {
        FieldOperator.LESS_THAN,
        FieldOperator.LESS_THAN_OR_EQUAL,
        FieldOperator.GREATER_THAN,
        FieldOperator.GREATER_THAN_OR_EQUAL,
    }
)


def matches(document: Document, where: Filter | None) -> bool:
    """Return True if the document satisfies the filter tree.

    Args:
        document: Document to test.
        where: Root of the filter tree, or None to match everything.

    Raises:
        TypeError: If a node of the tree is not a known filter kind.
    """
    if where is None:
        return True
    if isinstance(where, CompositeFilter):
        return _match_composite(document, where)
    if isinstance(where, FieldFilter):
        return _match_field(document, where)
    if isinstance(where, UnaryFilter):
        return _match_unary(document, where)
    raise TypeError(f"Unknown filter node: {type(where).__name__}")


def _match_composite(document: Document, node: CompositeFilter) -> bool:
    if node.op is CompositeOperator.AND:
        return all(matches(document, child) for child in node.filters)
    if node.op is CompositeOperator.OR:
        return any(matches(document, child) for child in node.filters)
    raise ValueError(f"Unknown composite operator: {node.op}")


def _match_field(document: Document, node: FieldFilter) -> bool:
    value = document.get_field(node.field_path)
    if value is None:
        return False
    return match_value(value, node.op, node.value)


def _match_unary(document: Document, node: UnaryFilter) -> bool:
    value = document.get_field(node.field_path)
    if value is None:
        return False
    if node.op is UnaryOperator.IS_NULL:
        return value.type is ValueType.NULL
    if node.op is UnaryOperator.IS_NOT_NULL:
        return value.type is not ValueType.NULL
    if node.op is UnaryOperator.IS_NAN:
        return value.is_nan
    if node.op is UnaryOperator.IS_NOT_NAN:
        return not value.is_nan
    raise ValueError(f"Unknown unary operator: {node.op}")


def _equals_operand(field: Value, operand: Value) -> bool:
    return compare(field, coerce_operand(field, operand)) == 0


def _in_array(field: Value, candidates: Value) -> bool:
    return any(_equals_operand(field, candidate) for candidate in candidates.payload)


def match_value(field: Value, op: FieldOperator, operand: Value) -> bool:
    """Apply one binary operator to a present field value.

    Args:
        field: The document's value at the filtered path.
        op: Operator to apply.
        operand: Filter operand. IN, NOT_IN and ARRAY_CONTAINS_ANY expect
            an ARRAY operand and match nothing otherwise.

    Returns:
        True if the predicate holds.
    """
    if op is FieldOperator.ARRAY_CONTAINS:
        if field.type is not ValueType.ARRAY:
            return False
        return any(match_value(item, FieldOperator.EQUAL, operand) for item in field.payload)

    if op is FieldOperator.ARRAY_CONTAINS_ANY:
        if field.type is not ValueType.ARRAY or operand.type is not ValueType.ARRAY:
            return False
        return any(match_value(item, FieldOperator.IN, operand) for item in field.payload)

    if op is FieldOperator.IN:
        if operand.type is not ValueType.ARRAY:
            return False
        return _in_array(field, operand)

    if op is FieldOperator.NOT_IN:
        if operand.type is not ValueType.ARRAY:
            return False
        return not _in_array(field, operand)

    check = _ORDERING_OPERATORS.get(op)
    if check is None:
        raise ValueError(f"Unknown field operator: {op}")
    operand = coerce_operand(field, operand)
    # NaN is unordered against every number, itself included.
    if op in _RANGE_OPERATORS and (field.is_nan or operand.is_nan):
        return False
    result = compare(field, operand)
    if result is None:
        return False
    return check(result)


__all__ = ["match_value", "matches"]
