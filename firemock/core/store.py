"""Store: implements DocumentStorePort over one document tree and one lock.

This is the core service that transports and tools call into. It owns the
whole collection/document graph and serializes access with a single
reader/writer lock: reads (get, batch get, query) hold it shared for their
entire scan and sort, writes (commit, reset, load) hold it exclusively for
path resolution plus field writes.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime

from . import mutations, query
from .errors import NotFoundError, StoreError
from .locking import ReadWriteLock
from .models import (
    BatchGetResult,
    DocumentSnapshot,
    StoreStats,
    StructuredQuery,
    Write,
    WriteResult,
)
from .paths import resolve_strict, split_document_path, strip_resource_prefix
from .ports import DocumentStorePort
from .tree import Collection, DocumentTree

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _ancestor_document_paths(path: str) -> list[str]:
    segments = split_document_path(path)
    return ["/".join(segments[:i]) for i in range(2, len(segments) + 1, 2)]


class Store(DocumentStorePort):
    """Core implementation of DocumentStorePort.

    Coordinates path resolution, filtering, sorting and mutation against
    the in-memory tree. Commits and bulk loads are logged for audit trails.
    """

    def __init__(
        self,
        tree: DocumentTree | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize the store.

        Args:
            tree: Existing tree to serve; a new empty tree if None.
            clock: Source of write timestamps.
        """
        self.tree = tree if tree is not None else DocumentTree()
        self.lock = ReadWriteLock()
        self.clock = clock

    def get_document(self, path: str) -> DocumentSnapshot:
        """Read one document by path or resource name.

        Raises:
            InvalidPathError: If the path is malformed.
            CollectionNotFoundError: If a collection on the path is missing.
            DocumentNotFoundError: If a document on the path is missing.
        """
        relative = strip_resource_prefix(path)
        with self.lock.read_locked():
            return resolve_strict(self.tree, relative).snapshot()

    def batch_get_documents(self, paths: Sequence[str]) -> list[BatchGetResult]:
        """Read several documents; misses do not stop the batch."""
        results = []
        with self.lock.read_locked():
            for path in paths:
                try:
                    document = resolve_strict(self.tree, strip_resource_prefix(path))
                except StoreError as e:
                    logger.debug(
                        f"Batch get miss for {path}: {e}",
                        extra={"path": path, "code": e.code},
                    )
                    results.append(BatchGetResult(path=path, document=None))
                else:
                    results.append(BatchGetResult(path=path, document=document.snapshot()))
        return results

    def commit(self, writes: Sequence[Write]) -> list[WriteResult]:
        """Validate every write, then apply them all in order.

        Raises:
            InvalidPathError: If a document or field path is malformed.
            PreconditionFailedError: If an existence precondition fails.
        """
        with self.lock.write_locked():
            created: set[str] = set()
            for write in writes:
                mutations.check_write(self.tree, write, created)
                created.update(_ancestor_document_paths(write.path))

            now = self.clock()
            results = [mutations.apply_write(self.tree, write, now) for write in writes]

        logger.info(
            f"Committed {len(results)} write(s)",
            extra={"writes": len(results), "paths": [w.path for w in writes]},
        )
        return results

    def run_query(self, structured_query: StructuredQuery) -> list[DocumentSnapshot]:
        """Run a structured query and snapshot the results under the read lock."""
        with self.lock.read_locked():
            documents = query.execute(self.tree, structured_query)
            results = [document.snapshot() for document in documents]

        logger.debug(
            f"Query on {structured_query.collection_path} returned {len(results)} document(s)",
            extra={
                "collection_path": structured_query.collection_path,
                "results": len(results),
            },
        )
        return results

    def reset(self) -> None:
        with self.lock.write_locked():
            self.tree.clear()
        logger.info("Store reset to empty")

    def load(self, collections: Mapping[str, Collection]) -> None:
        """Merge copies of the given top-level collections into the tree.

        The caller keeps no reference into the tree afterwards.
        """
        copies = {name: collection.copy() for name, collection in collections.items()}
        with self.lock.write_locked():
            self.tree.collections.update(copies)
        logger.info(
            f"Loaded {len(collections)} top-level collection(s)",
            extra={"collections": sorted(collections)},
        )

    def stats(self) -> StoreStats:
        with self.lock.read_locked():
            return self.tree.stats()

    def exists(self, path: str) -> bool:
        """Return True if a document exists at the path."""
        with self.lock.read_locked():
            try:
                resolve_strict(self.tree, strip_resource_prefix(path))
            except NotFoundError:
                return False
            return True


__all__ = ["Store"]
