"""The in-memory document tree.

The store root maps top-level collection names to collections; every
collection maps document ids to documents; every document owns its
top-level fields and its own named subcollections. Nested field data lives
inside MAP values.

Nothing in this module locks. Callers (the Store) hold the tree lock while
touching these objects.
"""

from dataclasses import dataclass, field
from datetime import datetime

from .models import DocumentSnapshot, StoreStats, Value, ValueType


def split_field_path(field_path: str) -> list[str]:
    """Split a dot-separated field path into segments.

    Segments may be quoted with backticks to contain dots or other special
    characters (``a.`b.c`.d`` has segments ``a``, ``b.c``, ``d``). Inside a
    quoted segment a backslash escapes the next character.

    Args:
        field_path: Field path as written by a client.

    Returns:
        The list of unquoted segments.

    Raises:
        ValueError: If the path is empty, has an empty segment, or an
            unterminated quote.
    """
    if not field_path:
        raise ValueError("field path must be a non-empty string")

    segments: list[str] = []
    current: list[str] = []
    quoted = False
    i = 0
    while i < len(field_path):
        ch = field_path[i]
        if quoted:
            if ch == "\\" and i + 1 < len(field_path):
                current.append(field_path[i + 1])
                i += 2
                continue
            if ch == "`":
                quoted = False
            else:
                current.append(ch)
        elif ch == "`":
            quoted = True
        elif ch == ".":
            if not current:
                raise ValueError(f"empty segment in field path: {field_path!r}")
            segments.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    if quoted:
        raise ValueError(f"unterminated quote in field path: {field_path!r}")
    if not current:
        raise ValueError(f"empty segment in field path: {field_path!r}")
    segments.append("".join(current))
    return segments


def _put_nested(container: Value | None, segments: list[str], value: Value) -> Value:
    if not segments:
        return value
    fields = dict(container.payload) if container is not None and container.type is ValueType.MAP else {}
    head, rest = segments[0], segments[1:]
    fields[head] = _put_nested(fields.get(head), rest, value)
    return Value.map(fields)


def _remove_nested(container: Value, segments: list[str]) -> Value:
    if container.type is not ValueType.MAP:
        return container
    head, rest = segments[0], segments[1:]
    if head not in container.payload:
        return container
    fields = dict(container.payload)
    if rest:
        fields[head] = _remove_nested(fields[head], rest)
    else:
        del fields[head]
    return Value.map(fields)


@dataclass
class Document:
    """A named node holding fields and optional subcollections.

    A document exists as soon as it is created on a path, even with no
    fields; intermediate documents created while writing a deeper path are
    such empty shells.
    """

    id: str
    path: str
    fields: dict[str, Value] = field(default_factory=dict)
    subcollections: dict[str, "Collection"] = field(default_factory=dict)
    create_time: datetime | None = None
    update_time: datetime | None = None

    def get_field(self, field_path: str) -> Value | None:
        """Resolve a dotted field path, descending into MAP values.

        Returns:
            The value, or None when any segment is missing or an intermediate
            value is not a MAP. Absence is never an error.
        """
        try:
            segments = split_field_path(field_path)
        except ValueError:
            return None

        current = self.fields.get(segments[0])
        for segment in segments[1:]:
            if current is None or current.type is not ValueType.MAP:
                return None
            current = current.payload.get(segment)
        return current

    def set_field(self, field_path: str, value: Value) -> None:
        """Write a value at a dotted field path.

        Missing or non-MAP intermediate values are replaced by MAPs.
        """
        segments = split_field_path(field_path)
        head = segments[0]
        self.fields[head] = _put_nested(self.fields.get(head), segments[1:], value)

    def delete_field(self, field_path: str) -> None:
        """Remove the value at a dotted field path if it is present."""
        segments = split_field_path(field_path)
        head = segments[0]
        if head not in self.fields:
            return
        if len(segments) == 1:
            del self.fields[head]
        else:
            self.fields[head] = _remove_nested(self.fields[head], segments[1:])

    def clear_fields(self) -> None:
        self.fields.clear()

    def touch(self, now: datetime) -> None:
        """Record a write at ``now``."""
        if self.create_time is None:
            self.create_time = now
        self.update_time = now

    def snapshot(self) -> DocumentSnapshot:
        # Values are immutable, so a shallow copy of the field map is enough.
        return DocumentSnapshot(
            id=self.id,
            path=self.path,
            fields=dict(self.fields),
            create_time=self.create_time,
            update_time=self.update_time,
        )

    def copy(self) -> "Document":
        """Copy this document and its subcollections; field values are shared."""
        return Document(
            id=self.id,
            path=self.path,
            fields=dict(self.fields),
            subcollections={name: child.copy() for name, child in self.subcollections.items()},
            create_time=self.create_time,
            update_time=self.update_time,
        )


@dataclass
class Collection:
    """A named set of documents, reachable only from a parent document or the root."""

    path: str
    documents: dict[str, Document] = field(default_factory=dict)

    def copy(self) -> "Collection":
        return Collection(
            path=self.path,
            documents={doc_id: document.copy() for doc_id, document in self.documents.items()},
        )


@dataclass
class DocumentTree:
    """Root of the store: top-level collection name to Collection."""

    collections: dict[str, Collection] = field(default_factory=dict)

    def clear(self) -> None:
        self.collections.clear()

    def stats(self) -> StoreStats:
        """Count every collection and document in the tree."""
        collection_count = 0
        document_count = 0
        pending = list(self.collections.values())
        while pending:
            collection = pending.pop()
            collection_count += 1
            for document in collection.documents.values():
                document_count += 1
                pending.extend(document.subcollections.values())
        return StoreStats(
            collections=collection_count,
            documents=document_count,
            top_level_collections=tuple(sorted(self.collections)),
        )


__all__ = ["Collection", "Document", "DocumentTree", "split_field_path"]
