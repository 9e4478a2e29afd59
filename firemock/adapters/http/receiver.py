"""Request receiver for the Firestore-compatible HTTP surface.

Turns decoded JSON request bodies into DocumentStorePort calls and the
results back into Firestore REST response shapes. The receiver knows
nothing about sockets or status codes; it raises the store's typed errors
(and WireFormatError / FixtureError for bad bodies) and lets the HTTP
server map them.
"""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from firemock.adapters.fixtures.json_file import parse_fixture
from firemock.adapters.wire.codec import (
    WireFormatError,
    decode_structured_query,
    decode_write,
    encode_document,
    encode_write_result,
    format_rfc3339,
)
from firemock.core.models import DocumentSnapshot
from firemock.core.paths import database_root, document_resource_name
from firemock.core.ports import DocumentStorePort

logger = logging.getLogger(__name__)


def _require_object(body: Any) -> Mapping[str, Any]:
    if not isinstance(body, Mapping):
        raise WireFormatError(f"request body must be a JSON object, got {type(body).__name__}")
    return body


class DocumentRequestReceiver:
    """Receiver for document and admin requests.

    Forwards every request to a DocumentStorePort. Response documents are
    named under the database root of the request when one is given, or
    under the configured project and database otherwise.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        project_id: str = "firemock",
        database_id: str = "(default)",
    ):
        """Initialize the receiver.

        Args:
            store: DocumentStorePort implementation to serve.
            project_id: Project id used in resource names.
            database_id: Database id used in resource names.
        """
        self.store = store
        self.default_root = database_root(project_id, database_id)

    def _name(self, snapshot: DocumentSnapshot, root: str | None) -> str:
        return document_resource_name(snapshot.path, root or self.default_root)

    @staticmethod
    def _now() -> str:
        return format_rfc3339(datetime.now(UTC))

    def handle_get_document(self, name: str) -> dict[str, Any]:
        """Handle a GetDocument request.

        Args:
            name: Full resource name of the document.

        Returns:
            The wire document, named exactly as requested.

        Raises:
            InvalidPathError: If the name is malformed.
            NotFoundError: If the document does not exist.
        """
        snapshot = self.store.get_document(name)
        return encode_document(snapshot, name)

    def handle_batch_get(self, body: Any, root: str | None = None) -> list[dict[str, Any]]:
        """Handle a BatchGetDocuments request.

        Returns:
            One response per requested name, in request order, each either
            ``found`` (a document) or ``missing`` (the requested name).

        Raises:
            WireFormatError: If ``documents`` is not a list of names.
        """
        names = _require_object(body).get("documents", [])
        if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
            raise WireFormatError("documents must be a list of resource names")

        read_time = self._now()
        responses = []
        for result in self.store.batch_get_documents(names):
            if result.document is None:
                responses.append({"missing": result.path, "readTime": read_time})
            else:
                responses.append(
                    {"found": encode_document(result.document, self._name(result.document, root)), "readTime": read_time}
                )
        return responses

    def handle_commit(self, body: Any) -> dict[str, Any]:
        """Handle a Commit request.

        Raises:
            WireFormatError: If a write is malformed or unsupported.
            InvalidPathError: If a document or field path is malformed.
            PreconditionFailedError: If an existence precondition fails.
        """
        body = _require_object(body)
        if body.get("transaction"):
            raise WireFormatError("transactions are not supported")
        raw_writes = body.get("writes", [])
        if not isinstance(raw_writes, list):
            raise WireFormatError("writes must be a list")

        writes = [decode_write(raw) for raw in raw_writes]
        results = self.store.commit(writes)
        commit_time = format_rfc3339(results[-1].update_time) if results else self._now()
        return {
            "writeResults": [encode_write_result(result) for result in results],
            "commitTime": commit_time,
        }

    def handle_run_query(self, body: Any, parent_path: str = "", root: str | None = None) -> list[dict[str, Any]]:
        """Handle a RunQuery request.

        Args:
            body: Request body holding a ``structuredQuery``.
            parent_path: Relative path of the parent document, "" for the root.
            root: Database root of the request.

        Returns:
            One response per matching document. An empty result is a single
            response carrying only ``readTime``.

        Raises:
            WireFormatError: If the query is malformed or unsupported.
            InvalidPathError: If the collection path is malformed.
        """
        structured_query = _require_object(body).get("structuredQuery")
        if structured_query is None:
            raise WireFormatError("request is missing its structuredQuery")

        query = decode_structured_query(structured_query, parent_path)
        snapshots = self.store.run_query(query)

        read_time = self._now()
        if not snapshots:
            return [{"readTime": read_time}]
        return [
            {"document": encode_document(snapshot, self._name(snapshot, root)), "readTime": read_time}
            for snapshot in snapshots
        ]

    def handle_reset(self) -> dict[str, Any]:
        """Handle a request to empty the store."""
        self.store.reset()
        logger.info("Store reset via HTTP")
        return {"status": "success", "operation": "reset"}

    def handle_load(self, body: Any) -> dict[str, Any]:
        """Handle a request to bulk-load fixture data.

        Raises:
            FixtureError: If the body is not shaped as fixture data.
        """
        collections = parse_fixture(body)
        self.store.load(collections)
        logger.info(
            "Fixture loaded via HTTP",
            extra={"collections": sorted(collections)},
        )
        return {"status": "success", "operation": "load", "collections": sorted(collections)}

    def handle_health(self) -> dict[str, Any]:
        stats = self.store.stats()
        return {
            "status": "healthy",
            "collections": stats.collections,
            "documents": stats.documents,
        }


__all__ = ["DocumentRequestReceiver"]
