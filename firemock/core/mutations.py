"""Application of Set and Update writes to the document tree.

A write with an empty update mask is a full Set: every existing top-level
field is cleared, then every incoming field is written. A write with a mask
is an Update: only the masked field paths change. A masked path absent from
the incoming fields is removed from the document.

Preconditions are checked by ``check_write`` before anything is applied, so
a caller can validate a whole batch and then apply it without partial
failure.
"""

from collections.abc import Mapping, Set
from datetime import datetime

from .errors import InvalidPathError, NotFoundError, PreconditionFailedError
from .models import Value, ValueType, Write, WriteResult
from .paths import resolve_or_create, resolve_strict, split_document_path
from .tree import DocumentTree, split_field_path


def _document_exists(tree: DocumentTree, path: str) -> bool:
    try:
        resolve_strict(tree, path)
    except NotFoundError:
        return False
    return True


def _lookup(fields: Mapping[str, Value], segments: list[str]) -> Value | None:
    current = fields.get(segments[0])
    for segment in segments[1:]:
        if current is None or current.type is not ValueType.MAP:
            return None
        current = current.payload.get(segment)
    return current


def check_write(tree: DocumentTree, write: Write, created: Set[str] = frozenset()) -> None:
    """Validate a write without applying it.

    Args:
        tree: Current document tree.
        write: Write to validate.
        created: Paths that earlier writes of the same batch will create.

    Raises:
        InvalidPathError: If the document path or a masked field path is malformed.
        PreconditionFailedError: If the write's existence precondition does not hold.
    """
    split_document_path(write.path)
    for field_path in write.update_mask:
        try:
            split_field_path(field_path)
        except ValueError as e:
            raise InvalidPathError(str(e), path=write.path) from e

    if not (write.require_exists or write.require_missing):
        return

    exists = write.path in created or _document_exists(tree, write.path)
    if write.require_exists and not exists:
        raise PreconditionFailedError(f"document does not exist: {write.path}", path=write.path)
    if write.require_missing and exists:
        raise PreconditionFailedError(f"document already exists: {write.path}", path=write.path)


def apply_write(tree: DocumentTree, write: Write, now: datetime) -> WriteResult:
    """Apply a validated write, creating the document and its ancestors if needed.

    Args:
        tree: Document tree to mutate. The caller holds the write lock.
        write: Write that has passed ``check_write``.
        now: Time recorded as the document's update time.

    Returns:
        The write result.
    """
    document = resolve_or_create(tree, write.path)

    if write.is_full_set:
        document.clear_fields()
        for name, value in write.fields.items():
            document.fields[name] = value
    else:
        for field_path in write.update_mask:
            value = _lookup(write.fields, split_field_path(field_path))
            if value is None:
                document.delete_field(field_path)
            else:
                document.set_field(field_path, value)

    document.touch(now)
    return WriteResult(path=write.path, update_time=now)


def apply(tree: DocumentTree, write: Write, now: datetime) -> WriteResult:
    """Check and apply a single write."""
    check_write(tree, write)
    return apply_write(tree, write, now)


__all__ = ["apply", "apply_write", "check_write"]
