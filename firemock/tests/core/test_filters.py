"""Unit tests for filter evaluation."""

import math

import pytest

from firemock.core.filters import match_value, matches
from firemock.core.models import (
    CompositeFilter,
    CompositeOperator,
    FieldFilter,
    FieldOperator,
    UnaryFilter,
    UnaryOperator,
    Value,
)
from firemock.core.tree import Document


def doc(**fields) -> Document:
    return Document(
        id="d",
        path="c/d",
        fields={name: Value.from_python(raw) for name, raw in fields.items()},
    )


def field(path: str, op: FieldOperator, operand) -> FieldFilter:
    return FieldFilter(field_path=path, op=op, value=Value.from_python(operand))


class TestFieldOperators:
    """Tests for binary operators on present fields."""

    @pytest.mark.parametrize(
        "op, operand, expected",
        [
            (FieldOperator.EQUAL, 5, True),
            (FieldOperator.EQUAL, 4, False),
            (FieldOperator.NOT_EQUAL, 4, True),
            (FieldOperator.NOT_EQUAL, 5, False),
            (FieldOperator.LESS_THAN, 6, True),
            (FieldOperator.LESS_THAN, 5, False),
            (FieldOperator.LESS_THAN_OR_EQUAL, 5, True),
            (FieldOperator.GREATER_THAN, 4, True),
            (FieldOperator.GREATER_THAN, 5, False),
            (FieldOperator.GREATER_THAN_OR_EQUAL, 5, True),
            (FieldOperator.GREATER_THAN_OR_EQUAL, 6, False),
        ],
    )
    def test_ordering_operators(self, op, operand, expected) -> None:
        assert matches(doc(x=5), field("x", op, operand)) is expected

    def test_double_operand_against_integer_field_is_truncated(self) -> None:
        assert matches(doc(x=2), field("x", FieldOperator.EQUAL, 2.7))
        assert not matches(doc(x=2), field("x", FieldOperator.GREATER_THAN, 2.7))

    def test_integer_operand_against_double_field(self) -> None:
        assert matches(doc(x=2.5), field("x", FieldOperator.GREATER_THAN, 2))
        assert matches(doc(x=3.0), field("x", FieldOperator.EQUAL, 3))

    def test_string_field_against_integer_operand_never_matches(self) -> None:
        for op in (
            FieldOperator.EQUAL,
            FieldOperator.NOT_EQUAL,
            FieldOperator.LESS_THAN,
            FieldOperator.GREATER_THAN_OR_EQUAL,
        ):
            assert not matches(doc(x="5"), field("x", op, 5))

    def test_missing_field_never_matches(self) -> None:
        assert not matches(doc(y=1), field("x", FieldOperator.EQUAL, 1))
        assert not matches(doc(y=1), field("x", FieldOperator.NOT_EQUAL, 1))

    def test_array_contains(self) -> None:
        assert matches(doc(tags=["a", "b"]), field("tags", FieldOperator.ARRAY_CONTAINS, "b"))
        assert not matches(doc(tags=["a", "b"]), field("tags", FieldOperator.ARRAY_CONTAINS, "c"))
        assert not matches(doc(tags="b"), field("tags", FieldOperator.ARRAY_CONTAINS, "b"))

    def test_array_contains_any(self) -> None:
        f = field("tags", FieldOperator.ARRAY_CONTAINS_ANY, ["x", "b"])
        assert matches(doc(tags=["a", "b"]), f)
        assert not matches(doc(tags=["a"]), f)

    def test_in(self) -> None:
        f = field("x", FieldOperator.IN, [1, 3])
        assert matches(doc(x=3), f)
        assert not matches(doc(x=2), f)

    def test_in_with_non_array_operand_never_matches(self) -> None:
        assert not matches(doc(x=3), field("x", FieldOperator.IN, 3))

    def test_not_in(self) -> None:
        f = field("x", FieldOperator.NOT_IN, [1, 3])
        assert matches(doc(x=2), f)
        assert not matches(doc(x=1), f)

    def test_not_in_unrelated_type_matches(self) -> None:
        """A value that equals no candidate is not in the list."""
        assert matches(doc(x="1"), field("x", FieldOperator.NOT_IN, [1, 3]))

    def test_equal_on_maps_and_arrays(self) -> None:
        assert matches(doc(m={"a": 1}), field("m", FieldOperator.EQUAL, {"a": 1}))
        assert matches(doc(a=[1, 2]), field("a", FieldOperator.EQUAL, [1, 2]))
        assert not matches(doc(a=[1, 2]), field("a", FieldOperator.EQUAL, [1, 2, 3]))

    def test_match_value_direct(self) -> None:
        assert match_value(Value.string("b"), FieldOperator.GREATER_THAN, Value.string("a"))

    @pytest.mark.parametrize(
        "op",
        [
            FieldOperator.LESS_THAN,
            FieldOperator.LESS_THAN_OR_EQUAL,
            FieldOperator.GREATER_THAN,
            FieldOperator.GREATER_THAN_OR_EQUAL,
        ],
    )
    def test_range_operators_never_match_nan(self, op) -> None:
        """NaN on either side of a range comparison does not match."""
        assert not match_value(Value.double(1.0), op, Value.double(math.nan))
        assert not match_value(Value.double(math.nan), op, Value.double(1.0))
        assert not match_value(Value.double(math.nan), op, Value.double(math.nan))
        assert not match_value(Value.double(math.nan), op, Value.integer(1))
        assert not matches(doc(x=1), field("x", op, math.nan))

    def test_nan_equality_is_unaffected(self) -> None:
        assert match_value(Value.double(math.nan), FieldOperator.EQUAL, Value.double(math.nan))
        assert match_value(Value.double(1.0), FieldOperator.NOT_EQUAL, Value.double(math.nan))


class TestNestedFields:
    """Tests for dotted field paths in predicates."""

    def test_nested_field_matches(self) -> None:
        f = field("field7.subfield2", FieldOperator.EQUAL, "v")
        assert matches(doc(field7={"subfield2": "v"}), f)

    def test_nested_field_other_value(self) -> None:
        f = field("field7.subfield2", FieldOperator.EQUAL, "v")
        assert not matches(doc(field7={"subfield2": "w"}), f)

    def test_nested_parent_absent_or_not_a_map(self) -> None:
        f = field("field7.subfield2", FieldOperator.EQUAL, "v")
        assert not matches(doc(other=1), f)
        assert not matches(doc(field7="v"), f)
        assert not matches(doc(field7=["v"]), f)


class TestUnaryOperators:
    """Tests for null and NaN predicates."""

    def test_is_null(self) -> None:
        f = UnaryFilter(field_path="x", op=UnaryOperator.IS_NULL)
        assert matches(doc(x=None), f)
        assert not matches(doc(x=0), f)
        assert not matches(doc(), f)

    def test_is_not_null(self) -> None:
        f = UnaryFilter(field_path="x", op=UnaryOperator.IS_NOT_NULL)
        assert matches(doc(x=0), f)
        assert not matches(doc(x=None), f)
        assert not matches(doc(), f)

    def test_is_nan(self) -> None:
        f = UnaryFilter(field_path="x", op=UnaryOperator.IS_NAN)
        assert matches(doc(x=math.nan), f)
        assert not matches(doc(x=1.0), f)

    def test_is_not_nan(self) -> None:
        f = UnaryFilter(field_path="x", op=UnaryOperator.IS_NOT_NAN)
        assert matches(doc(x=1.0), f)
        assert not matches(doc(x=math.nan), f)


class TestCompositeFilters:
    """AND/OR agree with the conjunction/disjunction of their children."""

    GT_1 = field("x", FieldOperator.GREATER_THAN, 1)
    LT_5 = field("x", FieldOperator.LESS_THAN, 5)

    @pytest.mark.parametrize("x", [0, 1, 3, 5, 9])
    def test_and(self, x) -> None:
        node = CompositeFilter(op=CompositeOperator.AND, filters=(self.GT_1, self.LT_5))
        d = doc(x=x)
        assert matches(d, node) == (matches(d, self.GT_1) and matches(d, self.LT_5))

    @pytest.mark.parametrize("x", [0, 1, 3, 5, 9])
    def test_or(self, x) -> None:
        inverted = field("x", FieldOperator.GREATER_THAN_OR_EQUAL, 5)
        node = CompositeFilter(op=CompositeOperator.OR, filters=[self.LT_5, inverted])
        d = doc(x=x)
        assert matches(d, node) == (matches(d, self.LT_5) or matches(d, inverted))

    def test_nested_composites(self) -> None:
        node = CompositeFilter(
            op=CompositeOperator.OR,
            filters=(
                CompositeFilter(op=CompositeOperator.AND, filters=(self.GT_1, self.LT_5)),
                field("name", FieldOperator.EQUAL, "special"),
            ),
        )
        assert matches(doc(x=3), node)
        assert matches(doc(x=10, name="special"), node)
        assert not matches(doc(x=10, name="plain"), node)

    def test_empty_and_matches_everything(self) -> None:
        assert matches(doc(), CompositeFilter(op=CompositeOperator.AND))

    def test_empty_or_matches_nothing(self) -> None:
        assert not matches(doc(), CompositeFilter(op=CompositeOperator.OR))

    def test_no_filter_matches(self) -> None:
        assert matches(doc(), None)

    def test_unknown_node_raises(self) -> None:
        with pytest.raises(TypeError):
            matches(doc(), "x > 1")  # type: ignore[arg-type]
