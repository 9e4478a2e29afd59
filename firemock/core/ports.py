"""Port interfaces for the firemock document store.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package (driven ports) or in the core itself (driving ports).

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - FixtureSourcePort: Produce a parsed document tree for bulk loading

2. **Driving Ports** (adapters/external systems call into core)
   - DocumentStorePort: Reads, queries, commits and administration
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from .models import (
    BatchGetResult,
    DocumentSnapshot,
    StoreStats,
    StructuredQuery,
    Write,
    WriteResult,
)
from .tree import Collection


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class FixtureSourcePort(ABC):
    """Port for reading an initial data set into the store.

    Adapters implementing this port parse an external structured source
    (a JSON file, an inline dictionary, ...) into top-level collections.
    Coercing source-specific encodings (timestamps written as strings,
    bytes written as data URIs, ...) into field values is the adapter's
    concern.
    """

    @abstractmethod
    def load(self) -> dict[str, Collection]:
        """Parse the source.

        Returns:
            Mapping of top-level collection name to a fully built Collection
            (documents, fields and nested subcollections with correct paths).

        Raises:
            Exception: If the source cannot be read or is malformed.
        """


# ============================================================================
# DRIVING PORTS (Adapters call into core)
# ============================================================================


class DocumentStorePort(ABC):
    """Port for every operation the store exposes to transports and tools.

    All methods are synchronous and run to completion. Reads take the tree
    lock in shared mode, writes in exclusive mode. Documents returned are
    snapshots; mutating them never affects the store.
    """

    @abstractmethod
    def get_document(self, path: str) -> DocumentSnapshot:
        """Read one document.

        Args:
            path: Relative document path or fully qualified resource name.

        Returns:
            Snapshot of the document.

        Raises:
            InvalidPathError: If the path is malformed.
            CollectionNotFoundError: If a collection on the path is missing.
            DocumentNotFoundError: If a document on the path is missing.
        """

    @abstractmethod
    def batch_get_documents(self, paths: Sequence[str]) -> list[BatchGetResult]:
        """Read several documents in one shared-lock scan.

        Args:
            paths: Document paths or resource names.

        Returns:
            One result per input path, in input order. Missing documents
            (and malformed paths) produce a result with ``document=None``.
        """

    @abstractmethod
    def commit(self, writes: Sequence[Write]) -> list[WriteResult]:
        """Apply an ordered batch of writes atomically.

        Every write is validated (path shape and existence preconditions,
        taking earlier writes of the batch into account) before any is
        applied. If one fails, nothing is applied.

        Args:
            writes: Writes in application order.

        Returns:
            One WriteResult per write, in order.

        Raises:
            InvalidPathError: If a document or field path is malformed.
            PreconditionFailedError: If an existence precondition fails.
        """

    @abstractmethod
    def run_query(self, structured_query: StructuredQuery) -> list[DocumentSnapshot]:
        """Run a structured query.

        Args:
            structured_query: Query to execute.

        Returns:
            Matching documents in final order, after offset and limit.
            A missing collection yields an empty list.

        Raises:
            InvalidPathError: If the collection path is malformed.
        """

    @abstractmethod
    def reset(self) -> None:
        """Remove every collection and document."""

    @abstractmethod
    def load(self, collections: Mapping[str, Collection]) -> None:
        """Bulk-load parsed top-level collections.

        Collections with the same name as existing ones replace them.
        """

    @abstractmethod
    def stats(self) -> StoreStats:
        """Count collections and documents currently stored."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if a document exists at the path or resource name.

        Malformed paths raise InvalidPathError; missing documents or
        collections on the way return False.
        """
