"""CLI command implementations for working with the document store.

Provides human-initiated reads, writes and queries through the command-line
interface.

This adapter maps CLI commands (get, exists, batch_get, set, update, query,
reset, load, stats) to DocumentStorePort operations. Arguments arrive as plain
JSON-decoded Python objects; field values are coerced the same way fixture
files are, so RFC 3339 strings become timestamps. Every command returns a
result dictionary with a ``status`` of ``success`` or ``error``.
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from firemock.adapters.fixtures.json_file import JSONFixtureLoader, coerce_value
from firemock.core.errors import StoreError
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
    Write,
)
from firemock.core.ports import DocumentStorePort
from firemock.core.tree import Document

logger = logging.getLogger(__name__)

# Operator spellings used by the Firestore client libraries.
FIELD_OPERATORS = {
    "<": FieldOperator.LESS_THAN,
    "<=": FieldOperator.LESS_THAN_OR_EQUAL,
    ">": FieldOperator.GREATER_THAN,
    ">=": FieldOperator.GREATER_THAN_OR_EQUAL,
    "==": FieldOperator.EQUAL,
    "!=": FieldOperator.NOT_EQUAL,
    "array-contains": FieldOperator.ARRAY_CONTAINS,
    "array-contains-any": FieldOperator.ARRAY_CONTAINS_ANY,
    "in": FieldOperator.IN,
    "not-in": FieldOperator.NOT_IN,
}

UNARY_OPERATORS = {
    "is-null": UnaryOperator.IS_NULL,
    "is-not-null": UnaryOperator.IS_NOT_NULL,
    "is-nan": UnaryOperator.IS_NAN,
    "is-not-nan": UnaryOperator.IS_NOT_NAN,
}


def build_fields(data: dict[str, Any]) -> dict[str, Value]:
    """Convert CLI data into a top-level field map.

    Keys may be dotted field paths; ``{"a.b": 1}`` becomes ``{"a": {"b": 1}}``.

    Raises:
        ValueError: If a key is not a valid field path or a value cannot be stored.
    """
    if not isinstance(data, dict):
        raise ValueError(f"data must be a JSON object, got {type(data).__name__}")
    scratch = Document(id="", path="")
    for field_path, raw in data.items():
        scratch.set_field(field_path, coerce_value(raw))
    return scratch.fields


def build_filter(where: Sequence[Sequence[Any]]) -> Filter | None:
    """Build an AND filter from ``[field, op, value]`` or ``[field, op]`` clauses.

    Two-element clauses take a unary operator (``is-null``, ``is-nan``, ...).

    Raises:
        ValueError: If a clause is malformed or names an unknown operator.
    """
    if not isinstance(where, list):
        raise ValueError("where must be a list of clauses")
    clauses: list[Filter] = []
    for clause in where:
        if not isinstance(clause, list) or not clause or not isinstance(clause[0], str):
            raise ValueError(f"invalid where clause: {clause!r}")
        if len(clause) == 2 and clause[1] in UNARY_OPERATORS:
            clauses.append(UnaryFilter(field_path=clause[0], op=UNARY_OPERATORS[clause[1]]))
        elif len(clause) == 3 and clause[1] in FIELD_OPERATORS:
            clauses.append(
                FieldFilter(
                    field_path=clause[0],
                    op=FIELD_OPERATORS[clause[1]],
                    value=coerce_value(clause[2]),
                )
            )
        else:
            raise ValueError(f"invalid where clause: {clause!r}")

    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return CompositeFilter(op=CompositeOperator.AND, filters=tuple(clauses))


def build_order_by(order_by: Sequence[str | Sequence[str]]) -> tuple[OrderBy, ...]:
    """Build order-by keys from ``"field"`` or ``["field", "asc"|"desc"]`` entries."""
    if not isinstance(order_by, list):
        raise ValueError("order_by must be a list")
    keys = []
    for entry in order_by:
        if isinstance(entry, str):
            keys.append(OrderBy(field_path=entry))
            continue
        if not (isinstance(entry, list) and len(entry) == 2 and all(isinstance(part, str) for part in entry)):
            raise ValueError(f"invalid order_by entry {entry!r}, expected \"field\" or [\"field\", \"asc\"|\"desc\"]")
        field_path, direction = entry
        if direction.lower() not in ("asc", "desc"):
            raise ValueError(f"invalid direction {direction!r}, expected 'asc' or 'desc'")
        keys.append(
            OrderBy(
                field_path=field_path,
                direction=Direction.DESCENDING if direction.lower() == "desc" else Direction.ASCENDING,
            )
        )
    return tuple(keys)


def render_document(snapshot: DocumentSnapshot) -> dict[str, Any]:
    return {
        "id": snapshot.id,
        "path": snapshot.path,
        "data": snapshot.to_dict(),
        "create_time": snapshot.create_time.isoformat() if snapshot.create_time else None,
        "update_time": snapshot.update_time.isoformat() if snapshot.update_time else None,
    }


def _error(operation: str, error: Exception, **context: Any) -> dict[str, Any]:
    logger.error(f"Failed to {operation}: {error}")
    result = {"status": "error", "operation": operation, "message": str(error), **context}
    if isinstance(error, StoreError):
        result["code"] = error.code
    return result


class CLICommandHandler:
    """Handles CLI commands by delegating to DocumentStorePort.

    Provides a command-line interface for reading, writing, querying and
    administering the store.
    """

    def __init__(self, store: DocumentStorePort):
        """Initialize the CLI command handler.

        Args:
            store: DocumentStorePort implementation to execute commands.
        """
        self.store = store

    def get_document(self, path: str) -> dict[str, Any]:
        """Read one document.

        Args:
            path: Relative document path or full resource name.

        Returns:
            Dictionary with status and the rendered document.
        """
        try:
            snapshot = self.store.get_document(path)
        except StoreError as e:
            return _error("get", e, path=path)
        return {"status": "success", "operation": "get", "document": render_document(snapshot)}

    def exists(self, path: str) -> dict[str, Any]:
        """Check whether a document exists without reading it."""
        try:
            found = self.store.exists(path)
        except StoreError as e:
            return _error("exists", e, path=path)
        return {"status": "success", "operation": "exists", "path": path, "exists": found}

    def batch_get(self, paths: list[str]) -> dict[str, Any]:
        """Read several documents.

        Returns:
            Dictionary with the found documents (None for misses, in input
            order) and the list of missing paths.
        """
        results = self.store.batch_get_documents(paths)
        return {
            "status": "success",
            "operation": "batch_get",
            "documents": [render_document(r.document) if r.document else None for r in results],
            "missing": [r.path for r in results if not r.found],
        }

    def set_document(self, path: str, data: dict[str, Any], create: bool = False) -> dict[str, Any]:
        """Replace a document's fields, creating the document if needed.

        Args:
            path: Relative document path.
            data: New field data.
            create: If True, fail when the document already exists.

        Returns:
            Dictionary with status and the write's update time.
        """
        try:
            write = Write(path=path, fields=build_fields(data), require_missing=create)
            (result,) = self.store.commit([write])
        except (StoreError, ValueError) as e:
            return _error("set", e, path=path)

        logger.info(f"Set document {path}", extra={"path": path, "create": create})
        return {
            "status": "success",
            "operation": "set",
            "path": path,
            "update_time": result.update_time.isoformat(),
        }

    def update_document(
        self,
        path: str,
        data: dict[str, Any],
        field_paths: list[str] | None = None,
    ) -> dict[str, Any]:
        """Update selected fields of an existing document.

        Args:
            path: Relative document path.
            data: Field data; keys may be dotted field paths.
            field_paths: Field paths to write. Defaults to the keys of ``data``.
                A listed path missing from ``data`` is deleted.

        Returns:
            Dictionary with status and the write's update time.
        """
        mask = tuple(field_paths if field_paths is not None else data)
        if not mask:
            return _error("update", ValueError("update needs at least one field path"), path=path)

        try:
            write = Write(path=path, fields=build_fields(data), update_mask=mask, require_exists=True)
            (result,) = self.store.commit([write])
        except (StoreError, ValueError) as e:
            return _error("update", e, path=path)

        logger.info(f"Updated document {path}", extra={"path": path, "field_paths": list(mask)})
        return {
            "status": "success",
            "operation": "update",
            "path": path,
            "field_paths": list(mask),
            "update_time": result.update_time.isoformat(),
        }

    def query(
        self,
        collection: str,
        where: list[list[Any]] | None = None,
        order_by: list[Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Run a structured query.

        Args:
            collection: Collection path, e.g. "users" or "users/alice/orders".
            where: Clauses combined with AND; see ``build_filter``.
            order_by: Sort keys; see ``build_order_by``.
            limit: Maximum number of results.
            offset: Number of leading results to skip.

        Returns:
            Dictionary with status, result count and rendered documents.
        """
        try:
            for name, number in (("limit", limit), ("offset", offset)):
                if number is None and name == "limit":
                    continue
                if isinstance(number, bool) or not isinstance(number, int):
                    raise ValueError(f"{name} must be an integer, got {number!r}")
            structured_query = StructuredQuery(
                collection_path=collection,
                where=build_filter(where or []),
                order_by=build_order_by(order_by or []),
                limit=limit,
                offset=offset,
            )
            snapshots = self.store.run_query(structured_query)
        except (StoreError, ValueError) as e:
            return _error("query", e, collection=collection)

        return {
            "status": "success",
            "operation": "query",
            "collection": collection,
            "count": len(snapshots),
            "documents": [render_document(snapshot) for snapshot in snapshots],
        }

    def reset(self) -> dict[str, Any]:
        self.store.reset()
        return {"status": "success", "operation": "reset", "message": "Store emptied"}

    def load(self, file_path: str) -> dict[str, Any]:
        """Load a JSON fixture file into the store.

        Returns:
            Dictionary with status and the names of the loaded collections.
        """
        try:
            collections = JSONFixtureLoader(Path(file_path)).load()
        except (OSError, ValueError) as e:
            return _error("load", e, file_path=file_path)

        self.store.load(collections)
        return {
            "status": "success",
            "operation": "load",
            "file_path": file_path,
            "collections": sorted(collections),
        }

    def stats(self) -> dict[str, Any]:
        stats = self.store.stats()
        return {
            "status": "success",
            "operation": "stats",
            "collections": stats.collections,
            "documents": stats.documents,
            "top_level_collections": list(stats.top_level_collections),
        }


__all__ = ["CLICommandHandler", "build_fields", "build_filter", "build_order_by"]
