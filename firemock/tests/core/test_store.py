"""Unit tests for the Store service."""

import logging
from datetime import UTC, datetime

import pytest

from firemock.core.errors import (
    CollectionNotFoundError,
    DocumentNotFoundError,
    InvalidPathError,
    PreconditionFailedError,
)
from firemock.core.models import (
    FieldFilter,
    FieldOperator,
    StructuredQuery,
    Value,
    Write,
)
from firemock.core.store import Store
from firemock.tests.fakes import FakeFixtureSource

NOW = datetime(2024, 3, 1, tzinfo=UTC)


def fields(**data) -> dict[str, Value]:
    return {name: Value.from_python(raw) for name, raw in data.items()}


@pytest.fixture
def store() -> Store:
    store = Store(clock=lambda: NOW)
    store.commit(
        [
            Write(path="users/alice", fields=fields(name="Alice", age=30)),
            Write(path="users/bob", fields=fields(name="Bob", age=25)),
        ]
    )
    return store


class TestGetDocument:
    """Tests for single document reads."""

    def test_get_relative_path(self, store) -> None:
        snapshot = store.get_document("users/alice")
        assert snapshot.id == "alice"
        assert snapshot.to_dict() == {"name": "Alice", "age": 30}
        assert snapshot.update_time == NOW

    def test_get_resource_name(self, store) -> None:
        snapshot = store.get_document("projects/p/databases/(default)/documents/users/bob")
        assert snapshot.path == "users/bob"

    def test_missing_document(self, store) -> None:
        with pytest.raises(DocumentNotFoundError):
            store.get_document("users/carol")

    def test_missing_collection(self, store) -> None:
        with pytest.raises(CollectionNotFoundError):
            store.get_document("missing/doc")

    def test_invalid_path(self, store) -> None:
        with pytest.raises(InvalidPathError):
            store.get_document("users")

    def test_snapshot_does_not_change_after_write(self, store) -> None:
        before = store.get_document("users/alice")
        store.commit([Write(path="users/alice", fields=fields(name="Changed"))])
        assert before.to_dict() == {"name": "Alice", "age": 30}


class TestBatchGet:
    """Tests for batch reads."""

    def test_preserves_input_order(self, store) -> None:
        results = store.batch_get_documents(["users/bob", "users/alice"])
        assert [r.document.id for r in results] == ["bob", "alice"]

    def test_continues_after_miss(self, store) -> None:
        results = store.batch_get_documents(["users/carol", "missing/doc", "users", "users/alice"])
        assert [r.found for r in results] == [False, False, False, True]
        assert [r.path for r in results] == ["users/carol", "missing/doc", "users", "users/alice"]


class TestCommit:
    """Tests for atomic batches of writes."""

    def test_returns_one_result_per_write(self, store) -> None:
        results = store.commit(
            [
                Write(path="users/carol", fields=fields(name="Carol")),
                Write(path="users/dave", fields=fields(name="Dave")),
            ]
        )
        assert [r.path for r in results] == ["users/carol", "users/dave"]
        assert all(r.update_time == NOW for r in results)

    def test_failing_write_aborts_whole_batch(self, store) -> None:
        with pytest.raises(PreconditionFailedError):
            store.commit(
                [
                    Write(path="users/carol", fields=fields(name="Carol")),
                    Write(path="users/alice", fields=fields(age=99), update_mask=("age",)),
                    Write(path="users/nobody", fields=fields(x=1), update_mask=("x",), require_exists=True),
                ]
            )
        assert not store.exists("users/carol")
        assert store.get_document("users/alice").to_dict()["age"] == 30

    def test_invalid_path_aborts_whole_batch(self, store) -> None:
        with pytest.raises(InvalidPathError):
            store.commit(
                [
                    Write(path="users/carol", fields=fields(name="Carol")),
                    Write(path="users", fields=fields(x=1)),
                ]
            )
        assert not store.exists("users/carol")

    def test_earlier_write_satisfies_later_precondition(self, store) -> None:
        store.commit(
            [
                Write(path="users/carol", fields=fields(name="Carol"), require_missing=True),
                Write(path="users/carol", fields=fields(age=40), update_mask=("age",), require_exists=True),
            ]
        )
        assert store.get_document("users/carol").to_dict() == {"name": "Carol", "age": 40}

    def test_earlier_write_violates_later_create(self, store) -> None:
        with pytest.raises(PreconditionFailedError):
            store.commit(
                [
                    Write(path="users/carol", fields=fields(name="Carol")),
                    Write(path="users/carol", fields=fields(name="Again"), require_missing=True),
                ]
            )
        assert not store.exists("users/carol")

    def test_nested_write_creates_parent_for_later_precondition(self, store) -> None:
        store.commit(
            [
                Write(path="teams/red/members/m1", fields=fields(x=1)),
                Write(path="teams/red", fields=fields(color="red"), update_mask=("color",), require_exists=True),
            ]
        )
        assert store.get_document("teams/red").to_dict() == {"color": "red"}

    def test_commit_is_logged(self, store, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="firemock.core.store"):
            store.commit([Write(path="users/carol", fields=fields(name="Carol"))])
        assert "Committed 1 write(s)" in caplog.text


class TestRunQuery:
    """Tests for queries through the store."""

    def test_returns_snapshots(self, store) -> None:
        query = StructuredQuery(
            collection_path="users",
            where=FieldFilter(field_path="age", op=FieldOperator.LESS_THAN, value=Value.integer(28)),
        )
        results = store.run_query(query)
        assert [s.id for s in results] == ["bob"]
        assert results[0].to_dict() == {"name": "Bob", "age": 25}

    def test_missing_collection_is_empty(self, store) -> None:
        assert store.run_query(StructuredQuery(collection_path="nothing")) == []


class TestAdministration:
    """Tests for reset, load and stats."""

    def test_reset_empties_store(self, store) -> None:
        store.reset()
        assert store.stats().documents == 0
        with pytest.raises(CollectionNotFoundError):
            store.get_document("users/alice")

    def test_load_adds_and_replaces_collections(self, store) -> None:
        source = FakeFixtureSource({"users/zed": {"name": "Zed"}, "teams/red": {"size": 3}})
        store.load(source.load())

        assert store.get_document("teams/red").to_dict() == {"size": 3}
        assert store.get_document("users/zed").to_dict() == {"name": "Zed"}
        assert not store.exists("users/alice")

    def test_load_does_not_alias_caller_collections(self, store) -> None:
        """Changing loaded collections afterwards leaves the store untouched."""
        collections = FakeFixtureSource({"teams/red": {"size": 3}}).load()
        store.load(collections)

        red = collections["teams"].documents["red"]
        red.set_field("size", Value.integer(99))
        collections["teams"].documents.pop("red")

        assert store.get_document("teams/red").to_dict() == {"size": 3}

    def test_stats(self, store) -> None:
        store.commit([Write(path="users/alice/orders/o1", fields=fields(total=5))])
        stats = store.stats()
        assert stats.collections == 2
        assert stats.documents == 3
        assert stats.top_level_collections == ("users",)

    def test_exists(self, store) -> None:
        assert store.exists("users/alice")
        assert not store.exists("users/zed")
