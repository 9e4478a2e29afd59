"""Path resolution against the document tree.

Paths are ``/``-delimited and alternate collection ids and document ids:
``collection/doc/subcollection/subdoc``. A document path has an even number
of segments; a collection path has an odd number.

Clients may also send fully qualified resource names of the form
``projects/{project}/databases/{database}/documents/{path}``;
``strip_resource_prefix`` reduces those to the relative path.
"""

from .errors import CollectionNotFoundError, DocumentNotFoundError, InvalidPathError
from .tree import Collection, Document, DocumentTree

RESOURCE_ROOT_SEGMENTS = 5  # projects/{p}/databases/{d}/documents


def database_root(project_id: str, database_id: str) -> str:
    return f"projects/{project_id}/databases/{database_id}/documents"


def strip_resource_prefix(name: str) -> str:
    """Reduce a fully qualified resource name to a relative path.

    Relative paths are returned unchanged. The database root itself maps to
    the empty path.
    """
    parts = name.strip("/").split("/")
    if (
        len(parts) >= RESOURCE_ROOT_SEGMENTS
        and parts[0] == "projects"
        and parts[2] == "databases"
        and parts[4] == "documents"
    ):
        return "/".join(parts[RESOURCE_ROOT_SEGMENTS:])
    return name


def document_resource_name(path: str, root: str) -> str:
    """Qualify a relative document path with a database root from ``database_root``."""
    return f"{root}/{path}"


def _split(path: str) -> list[str]:
    if not path:
        raise InvalidPathError("path must be a non-empty string", path=path)
    segments = path.split("/")
    if any(not segment for segment in segments):
        raise InvalidPathError(f"empty segment in path: {path}", path=path)
    return segments


def split_document_path(path: str) -> list[str]:
    """Split a document path, checking it has an even number of segments.

    Raises:
        InvalidPathError: If the path is empty, has an empty segment, or
            does not end in a document id.
    """
    segments = _split(path)
    if len(segments) % 2 != 0:
        raise InvalidPathError(f"invalid document path: {path}", path=path)
    return segments


def split_collection_path(path: str) -> list[str]:
    """Split a collection path, checking it has an odd number of segments.

    Raises:
        InvalidPathError: If the path is empty, has an empty segment, or
            does not end in a collection id.
    """
    segments = _split(path)
    if len(segments) % 2 != 1:
        raise InvalidPathError(f"invalid collection path: {path}", path=path)
    return segments


def resolve_strict(tree: DocumentTree, path: str) -> Document:
    """Look up an existing document.

    Args:
        tree: Document tree to search.
        path: Relative document path.

    Returns:
        The document at ``path``.

    Raises:
        InvalidPathError: If the path is malformed.
        CollectionNotFoundError: If a collection on the path is missing.
        DocumentNotFoundError: If a document on the path is missing.
    """
    segments = split_document_path(path)

    children = tree.collections
    document: Document | None = None
    for i in range(0, len(segments), 2):
        collection_id, document_id = segments[i], segments[i + 1]
        collection = children.get(collection_id)
        if collection is None:
            raise CollectionNotFoundError(
                f"collection not found: {'/'.join(segments[: i + 1])}", path=path
            )
        document = collection.documents.get(document_id)
        if document is None:
            raise DocumentNotFoundError(
                f"document not found: {'/'.join(segments[: i + 2])}", path=path
            )
        children = document.subcollections

    assert document is not None
    return document


def resolve_or_create(tree: DocumentTree, path: str) -> Document:
    """Look up a document, creating every missing collection and document on the way.

    Repeated calls with the same path return the same Document instance.

    Raises:
        InvalidPathError: If the path is malformed.
    """
    segments = split_document_path(path)

    children = tree.collections
    document: Document | None = None
    for i in range(0, len(segments), 2):
        collection_id, document_id = segments[i], segments[i + 1]
        collection = children.get(collection_id)
        if collection is None:
            collection = Collection(path="/".join(segments[: i + 1]))
            children[collection_id] = collection
        document = collection.documents.get(document_id)
        if document is None:
            document = Document(id=document_id, path="/".join(segments[: i + 2]))
            collection.documents[document_id] = document
        children = document.subcollections

    assert document is not None
    return document


def resolve_collection(tree: DocumentTree, path: str) -> Collection:
    """Look up an existing collection.

    The trailing collection id is looked up in the subcollections of the
    document named by the leading segments, or at the root when there are
    none.

    Raises:
        InvalidPathError: If the path is malformed.
        CollectionNotFoundError: If the collection (or one on the way) is missing.
        DocumentNotFoundError: If a parent document on the path is missing.
    """
    segments = split_collection_path(path)
    collection_id = segments[-1]

    if len(segments) > 1:
        parent = resolve_strict(tree, "/".join(segments[:-1]))
        children = parent.subcollections
    else:
        children = tree.collections

    collection = children.get(collection_id)
    if collection is None:
        raise CollectionNotFoundError(f"collection not found: {path}", path=path)
    return collection


__all__ = [
    "database_root",
    "document_resource_name",
    "resolve_collection",
    "resolve_or_create",
    "resolve_strict",
    "split_collection_path",
    "split_document_path",
    "strip_resource_prefix",
]
