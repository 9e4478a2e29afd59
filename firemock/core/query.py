"""Structured query execution.

Pipeline, in order: resolve the collection, filter every document, sort the
matches with the order-by keys (document id ascending breaks any remaining
tie), then apply offset and limit. Sorting needs every match, so the full
result is materialized before pagination.
"""

import logging
from functools import cmp_to_key

from .errors import NotFoundError
from .filters import matches
from .models import Direction, OrderBy, StructuredQuery
from .paths import resolve_collection
from .tree import Document, DocumentTree
from .values import total_compare

logger = logging.getLogger(__name__)


def _compare_ids(a: Document, b: Document) -> int:
    if a.id < b.id:
        return -1
    if a.id > b.id:
        return 1
    return 0


def _compare_key(a: Document, b: Document, order: OrderBy) -> int:
    if order.is_document_id:
        return _compare_ids(a, b)

    a_value = a.get_field(order.field_path)
    b_value = b.get_field(order.field_path)
    # An absent field sorts before any present value.
    if a_value is None or b_value is None:
        return (a_value is not None) - (b_value is not None)
    return total_compare(a_value, b_value)


def compare_documents(a: Document, b: Document, order_by: tuple[OrderBy, ...]) -> int:
    """Composite comparator over the order-by keys with id fallback.

    The id fallback is always ascending, whatever the direction of the
    last explicit key.
    """
    for order in order_by:
        result = _compare_key(a, b, order)
        if order.direction is Direction.DESCENDING:
            result = -result
        if result:
            return result
    return _compare_ids(a, b)


def paginate(documents: list[Document], offset: int, limit: int | None) -> list[Document]:
    """Drop ``offset`` leading documents, then keep at most ``limit`` (None/0 = all)."""
    page = documents[offset:]
    if limit:
        page = page[:limit]
    return page


def execute(tree: DocumentTree, query: StructuredQuery) -> list[Document]:
    """Run a structured query against the tree.

    A missing collection (or missing parent document) yields an empty
    result rather than an error.

    Args:
        tree: Document tree to read. The caller holds the read lock.
        query: Query to run.

    Returns:
        Matching documents in final order.

    Raises:
        InvalidPathError: If the collection path is malformed.
    """
    try:
        collection = resolve_collection(tree, query.collection_path)
    except NotFoundError:
        logger.debug(
            f"Query against missing collection {query.collection_path}",
            extra={"collection_path": query.collection_path},
        )
        return []

    matched = [doc for doc in collection.documents.values() if matches(doc, query.where)]
    matched.sort(key=cmp_to_key(lambda a, b: compare_documents(a, b, query.order_by)))
    return paginate(matched, query.offset, query.limit)


__all__ = ["compare_documents", "execute", "paginate"]
