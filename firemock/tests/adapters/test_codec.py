"""Tests for the Firestore REST JSON codec."""

import math
from datetime import UTC, datetime

import pytest

from firemock.adapters.wire.codec import (
    WireFormatError,
    decode_filter,
    decode_structured_query,
    decode_value,
    decode_write,
    encode_document,
    encode_value,
    format_rfc3339,
    parse_rfc3339,
)
from firemock.core.models import (
    CompositeFilter,
    CompositeOperator,
    Direction,
    DocumentSnapshot,
    FieldFilter,
    FieldOperator,
    UnaryFilter,
    UnaryOperator,
    Value,
    ValueType,
)


class TestTimestamps:
    """Tests for RFC 3339 parsing and formatting."""

    def test_parse_utc(self) -> None:
        assert parse_rfc3339("2024-01-15T09:30:00Z") == datetime(2024, 1, 15, 9, 30, tzinfo=UTC)

    def test_parse_offset_converts_to_utc(self) -> None:
        assert parse_rfc3339("2024-01-15T11:30:00+02:00") == datetime(2024, 1, 15, 9, 30, tzinfo=UTC)

    def test_parse_nanoseconds_truncated(self) -> None:
        parsed = parse_rfc3339("2024-01-15T09:30:00.123456789Z")
        assert parsed.microsecond == 123456

    @pytest.mark.parametrize("text", ["2024-01-15", "2024-01-15T09:30:00", "yesterday", "2024-13-01T00:00:00Z"])
    def test_parse_rejects(self, text) -> None:
        with pytest.raises(ValueError):
            parse_rfc3339(text)

    def test_format(self) -> None:
        assert format_rfc3339(datetime(2024, 1, 15, 9, 30, tzinfo=UTC)) == "2024-01-15T09:30:00.000000Z"


class TestValues:
    """Tests for value encoding and decoding."""

    def test_integer_travels_as_string(self) -> None:
        assert encode_value(Value.integer(2**62)) == {"integerValue": str(2**62)}
        assert decode_value({"integerValue": "42"}) == Value.integer(42)
        assert decode_value({"integerValue": 42}) == Value.integer(42)

    def test_integer_out_of_range(self) -> None:
        with pytest.raises(WireFormatError):
            decode_value({"integerValue": str(2**64)})

    def test_special_doubles(self) -> None:
        assert encode_value(Value.double(math.inf)) == {"doubleValue": "Infinity"}
        assert encode_value(Value.double(math.nan)) == {"doubleValue": "NaN"}
        assert decode_value({"doubleValue": "-Infinity"}) == Value.double(-math.inf)
        assert decode_value({"doubleValue": "NaN"}).is_nan

    def test_plain_double(self) -> None:
        assert encode_value(Value.double(1.5)) == {"doubleValue": 1.5}
        assert decode_value({"doubleValue": 2}) == Value.double(2.0)

    def test_bytes_base64(self) -> None:
        assert encode_value(Value.binary(b"hi")) == {"bytesValue": "aGk="}
        assert decode_value({"bytesValue": "aGk="}) == Value.binary(b"hi")

    def test_invalid_base64(self) -> None:
        with pytest.raises(WireFormatError):
            decode_value({"bytesValue": "not base64!"})

    def test_null_and_boolean(self) -> None:
        assert decode_value({"nullValue": None}).type is ValueType.NULL
        assert decode_value({"nullValue": "NULL_VALUE"}).type is ValueType.NULL
        assert decode_value({"booleanValue": True}) == Value.boolean(True)

    def test_boolean_must_be_json_boolean(self) -> None:
        with pytest.raises(WireFormatError):
            decode_value({"booleanValue": "true"})

    def test_timestamp(self) -> None:
        moment = datetime(2024, 1, 15, 9, 30, tzinfo=UTC)
        assert encode_value(Value.timestamp(moment)) == {"timestampValue": "2024-01-15T09:30:00.000000Z"}
        assert decode_value({"timestampValue": "2024-01-15T09:30:00Z"}) == Value.timestamp(moment)

    def test_containers(self) -> None:
        wire = {
            "mapValue": {
                "fields": {
                    "tags": {"arrayValue": {"values": [{"stringValue": "a"}, {"integerValue": "1"}]}},
                    "empty": {"arrayValue": {}},
                }
            }
        }
        value = decode_value(wire)
        assert value.to_python() == {"tags": ["a", 1], "empty": []}
        assert encode_value(value)["mapValue"]["fields"]["tags"] == wire["mapValue"]["fields"]["tags"]

    def test_empty_map(self) -> None:
        assert decode_value({"mapValue": {}}).to_python() == {}

    @pytest.mark.parametrize(
        "wire",
        [
            {},
            {"stringValue": "a", "integerValue": "1"},
            {"geoPointValue": {"latitude": 1, "longitude": 2}},
            "plain",
        ],
    )
    def test_rejects_malformed(self, wire) -> None:
        with pytest.raises(WireFormatError):
            decode_value(wire)


class TestDocuments:
    """Tests for document encoding."""

    def test_encode_document(self) -> None:
        moment = datetime(2024, 1, 15, tzinfo=UTC)
        snapshot = DocumentSnapshot(
            id="alice",
            path="users/alice",
            fields={"age": Value.integer(30)},
            create_time=moment,
            update_time=moment,
        )
        encoded = encode_document(snapshot, "projects/p/databases/(default)/documents/users/alice")
        assert encoded == {
            "name": "projects/p/databases/(default)/documents/users/alice",
            "fields": {"age": {"integerValue": "30"}},
            "createTime": "2024-01-15T00:00:00.000000Z",
            "updateTime": "2024-01-15T00:00:00.000000Z",
        }

    def test_encode_document_without_times(self) -> None:
        snapshot = DocumentSnapshot(id="a", path="c/a", fields={})
        assert encode_document(snapshot, "c/a") == {"name": "c/a", "fields": {}}


class TestWrites:
    """Tests for commit write decoding."""

    NAME = "projects/p/databases/(default)/documents/users/alice"

    def test_full_set(self) -> None:
        write = decode_write({"update": {"name": self.NAME, "fields": {"age": {"integerValue": "30"}}}})
        assert write.path == "users/alice"
        assert write.is_full_set
        assert dict(write.fields) == {"age": Value.integer(30)}
        assert not write.require_exists and not write.require_missing

    def test_update_with_mask_and_precondition(self) -> None:
        write = decode_write(
            {
                "update": {"name": self.NAME, "fields": {}},
                "updateMask": {"fieldPaths": ["age", "address.city"]},
                "currentDocument": {"exists": True},
            }
        )
        assert write.update_mask == ("age", "address.city")
        assert write.require_exists

    def test_create_precondition(self) -> None:
        write = decode_write({"update": {"name": self.NAME}, "currentDocument": {"exists": False}})
        assert write.require_missing

    @pytest.mark.parametrize(
        "wire",
        [
            {"delete": "projects/p/databases/d/documents/c/d"},
            {"update": {"fields": {}}},
            {"update": {"name": NAME}, "updateTransforms": [{"fieldPath": "n"}]},
            {"update": {"name": NAME}, "currentDocument": {"updateTime": "2024-01-01T00:00:00Z"}},
            {"update": {"name": NAME}, "updateMask": {"fieldPaths": [1]}},
            [],
        ],
    )
    def test_rejects_unsupported(self, wire) -> None:
        with pytest.raises(WireFormatError):
            decode_write(wire)


class TestStructuredQueries:
    """Tests for structured query decoding."""

    def test_full_query(self) -> None:
        query = decode_structured_query(
            {
                "from": [{"collectionId": "orders"}],
                "where": {
                    "compositeFilter": {
                        "op": "AND",
                        "filters": [
                            {
                                "fieldFilter": {
                                    "field": {"fieldPath": "total"},
                                    "op": "GREATER_THAN",
                                    "value": {"integerValue": "10"},
                                }
                            },
                            {"unaryFilter": {"op": "IS_NOT_NULL", "field": {"fieldPath": "customer"}}},
                        ],
                    }
                },
                "orderBy": [
                    {"field": {"fieldPath": "total"}, "direction": "DESCENDING"},
                    {"field": {"fieldPath": "__name__"}},
                ],
                "limit": {"value": 5},
                "offset": 2,
            },
            parent_path="users/alice",
        )
        assert query.collection_path == "users/alice/orders"
        assert query.where == CompositeFilter(
            op=CompositeOperator.AND,
            filters=(
                FieldFilter(field_path="total", op=FieldOperator.GREATER_THAN, value=Value.integer(10)),
                UnaryFilter(field_path="customer", op=UnaryOperator.IS_NOT_NULL),
            ),
        )
        assert [o.direction for o in query.order_by] == [Direction.DESCENDING, Direction.ASCENDING]
        assert query.order_by[1].is_document_id
        assert query.limit == 5
        assert query.offset == 2

    def test_minimal_query(self) -> None:
        query = decode_structured_query({"from": [{"collectionId": "users"}]})
        assert query.collection_path == "users"
        assert query.where is None
        assert query.order_by == ()
        assert query.limit is None

    def test_bare_limit(self) -> None:
        assert decode_structured_query({"from": [{"collectionId": "c"}], "limit": 3}).limit == 3

    @pytest.mark.parametrize(
        "wire",
        [
            {},
            {"from": []},
            {"from": [{"collectionId": "c", "allDescendants": True}]},
            {"from": [{"collectionId": "c"}], "startAt": {"values": []}},
            {"from": [{"collectionId": "c"}], "select": {"fields": [{"fieldPath": "a"}]}},
            {"from": [{"collectionId": "c"}], "offset": -1},
            {"from": [{"collectionId": "c"}], "orderBy": [{"field": {"fieldPath": "a"}, "direction": "UP"}]},
        ],
    )
    def test_rejects_malformed(self, wire) -> None:
        with pytest.raises(WireFormatError):
            decode_structured_query(wire)

    def test_unknown_filter_operator(self) -> None:
        with pytest.raises(WireFormatError):
            decode_filter({"fieldFilter": {"field": {"fieldPath": "a"}, "op": "LIKE", "value": {"nullValue": None}}})
